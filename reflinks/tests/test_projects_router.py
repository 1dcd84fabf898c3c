import unittest
from unittest.mock import patch

import aiosqlite
from fastapi import HTTPException

from reflinks.db.sqlite_migrations import run_migrations
from reflinks.models import MilestoneCreateRequest, ProjectCreateRequest, ProjectMemberRequest
from reflinks.routers import projects as projects_router


class ProjectsRouterTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.db = await aiosqlite.connect(":memory:")
        self.db.row_factory = aiosqlite.Row
        await run_migrations(self.db)
        self.patcher = patch.object(projects_router.connection, "get_connection", return_value=self.db)
        self.patcher.start()

    async def asyncTearDown(self) -> None:
        self.patcher.stop()
        await self.db.close()

    async def test_create_and_list_projects(self) -> None:
        created = await projects_router.create_project(
            ProjectCreateRequest(path="core/app", name="App", visibility="public")
        )
        await projects_router.create_project(ProjectCreateRequest(path="alpha/tools"))

        self.assertEqual(created.path, "core/app")
        self.assertEqual(created.visibility, "public")
        self.assertEqual([p.path for p in await projects_router.list_projects()], ["alpha/tools", "core/app"])
        self.assertEqual((await projects_router.get_project(created.id)).name, "App")

    async def test_duplicate_project_path_returns_409(self) -> None:
        await projects_router.create_project(ProjectCreateRequest(path="core/app"))
        with self.assertRaises(HTTPException) as ctx:
            await projects_router.create_project(ProjectCreateRequest(path="core/app"))
        self.assertEqual(ctx.exception.status_code, 409)

    async def test_milestones_get_sequential_iids(self) -> None:
        project = await projects_router.create_project(ProjectCreateRequest(path="core/app"))

        first = await projects_router.create_milestone(project.id, MilestoneCreateRequest(title="Alpha"))
        second = await projects_router.create_milestone(project.id, MilestoneCreateRequest(title="Beta"))

        self.assertEqual((first.iid, second.iid), (1, 2))
        listed = await projects_router.list_milestones(project.id)
        self.assertEqual([m.title for m in listed], ["Alpha", "Beta"])

    async def test_unknown_project_returns_404(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            await projects_router.create_milestone(42, MilestoneCreateRequest(title="Alpha"))
        self.assertEqual(ctx.exception.status_code, 404)

        with self.assertRaises(HTTPException) as ctx:
            await projects_router.get_project(42)
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_add_member(self) -> None:
        project = await projects_router.create_project(ProjectCreateRequest(path="secret/vault"))

        await projects_router.add_project_member(project.id, ProjectMemberRequest(userId="bob"))
        members = await projects_router.add_project_member(project.id, ProjectMemberRequest(userId="alice"))

        self.assertEqual(members, ["alice", "bob"])


if __name__ == "__main__":
    unittest.main()
