import unittest

from reflinks.models import Milestone, Project
from reflinks.references.access import ReferenceAccessPolicy
from reflinks.references.cache import ResolutionCache
from reflinks.references.collector import ReferenceCollector
from reflinks.references.filters import MilestoneReferenceFilter, ReferenceStoreError
from reflinks.references.resolver import ProjectResolver


CURRENT = Project(id=1, path="core/app", visibility="private")
OTHER = Project(id=2, path="other-team/proj", visibility="public")
SECRET = Project(id=3, path="secret/vault", visibility="private")
INTERNAL = Project(id=4, path="corp/tools", visibility="internal")


class _FakeProjectStore:
    def __init__(self, projects=None, members=None, error=None):
        self.projects = {p.path: p for p in (projects or [CURRENT, OTHER, SECRET, INTERNAL])}
        self.members = members or set()
        self.error = error
        self.lookups: list[str] = []

    async def find_by_handle(self, handle):
        self.lookups.append(handle)
        if self.error:
            raise self.error
        return self.projects.get(handle)

    async def is_member(self, project_id, user_id):
        return (project_id, user_id) in self.members


class _FakeMilestoneStore:
    def __init__(self, milestones=None, error=None):
        self.milestones = {(m.projectId, m.iid): m for m in (milestones or [])}
        self.error = error
        self.lookups: list[tuple[int, int]] = []

    async def find(self, project, iid):
        self.lookups.append((project.id, iid))
        if self.error:
            raise self.error
        return self.milestones.get((project.id, iid))


def _milestone(milestone_id, project, iid, title):
    return Milestone(id=milestone_id, projectId=project.id, iid=iid, title=title)


BETA = _milestone(10, CURRENT, 5, "Beta")
GAMMA = _milestone(11, CURRENT, 6, "Gamma")
OTHER_FIVE = _milestone(20, OTHER, 5, "Other Five")
OTHER_SEVEN = _milestone(21, OTHER, 7, "Other Seven")
SECRET_ONE = _milestone(30, SECRET, 1, "Secret One")
INTERNAL_ONE = _milestone(40, INTERNAL, 1, "Internal One")

ALL_MILESTONES = [BETA, GAMMA, OTHER_FIVE, OTHER_SEVEN, SECRET_ONE, INTERNAL_ONE]


def _title_renderer(match, milestone, project):
    return f"[{milestone.title}]"


class MilestoneReferenceFilterTests(unittest.IsolatedAsyncioTestCase):
    def _filter(self, project_store=None, milestone_store=None, user_id=None, access=True, cross_project=True):
        self.project_store = project_store or _FakeProjectStore()
        self.milestone_store = milestone_store or _FakeMilestoneStore(ALL_MILESTONES)
        policy = ReferenceAccessPolicy(self.project_store, user_id) if access else None
        resolver = ProjectResolver(self.project_store, access_policy=policy, allow_cross_project=cross_project)
        return MilestoneReferenceFilter(resolver, self.milestone_store)

    async def test_repeated_reference_is_rendered_twice_but_collected_once(self) -> None:
        collector = ReferenceCollector()
        output = await self._filter().process("See %5 and %5 again", CURRENT, _title_renderer, collector=collector)

        self.assertEqual(output, "See [Beta] and [Beta] again")
        self.assertEqual(collector.drain(), [BETA])

    async def test_text_without_references_is_returned_unchanged(self) -> None:
        collector = ReferenceCollector()
        text = "Nothing to see: 100% done, %abc, email@example.com"
        output = await self._filter().process(text, CURRENT, _title_renderer, collector=collector)

        self.assertEqual(output, text)
        self.assertEqual(collector.drain(), [])
        self.assertEqual(self.project_store.lookups, [])

    async def test_empty_text(self) -> None:
        self.assertEqual(await self._filter().process("", CURRENT, _title_renderer), "")

    async def test_unknown_project_qualifier_leaves_token_unchanged(self) -> None:
        collector = ReferenceCollector()
        output = await self._filter().process("See nobody/proj%7", CURRENT, _title_renderer, collector=collector)

        self.assertEqual(output, "See nobody/proj%7")
        self.assertEqual(collector.drain(), [])
        self.assertEqual(self.milestone_store.lookups, [])

    async def test_unknown_qualifier_does_not_fall_back_to_current_project(self) -> None:
        output = await self._filter().process("nobody/proj%5", CURRENT, _title_renderer)
        self.assertEqual(output, "nobody/proj%5")

    async def test_missing_milestone_leaves_token_unchanged(self) -> None:
        collector = ReferenceCollector()
        output = await self._filter().process("a %5 b %404 c", CURRENT, _title_renderer, collector=collector)

        self.assertEqual(output, "a [Beta] b %404 c")
        self.assertEqual(collector.drain(), [BETA])

    async def test_cross_project_reference_resolves_in_target_project(self) -> None:
        output = await self._filter().process("%5 vs other-team/proj%5", CURRENT, _title_renderer)
        self.assertEqual(output, "[Beta] vs [Other Five]")

    async def test_iids_are_scoped_per_project(self) -> None:
        output = await self._filter().process("%7 and other-team/proj%7", CURRENT, _title_renderer)
        self.assertEqual(output, "%7 and [Other Seven]")

    async def test_renderer_receives_match_entity_and_project(self) -> None:
        calls = []

        def renderer(match, milestone, project):
            calls.append((match, milestone, project))
            return "<link>"

        await self._filter().process("other-team/proj%7", CURRENT, renderer)
        self.assertEqual(calls, [("other-team/proj%7", OTHER_SEVEN, OTHER)])

    async def test_repeated_qualifier_hits_project_store_once(self) -> None:
        text = "other-team/proj%5 other-team/proj%7 other-team/proj%9 nobody/x%1 nobody/x%2"
        await self._filter().process(text, CURRENT, _title_renderer)

        self.assertEqual(self.project_store.lookups, ["other-team/proj", "nobody/x"])

    async def test_current_project_references_never_query_project_store(self) -> None:
        await self._filter().process("%5 %6 %7", CURRENT, _title_renderer)
        self.assertEqual(self.project_store.lookups, [])

    async def test_explicit_cache_is_populated(self) -> None:
        cache = ResolutionCache()
        await self._filter().process("%5 nobody/x%1", CURRENT, _title_renderer, cache=cache)

        self.assertIs(cache.get(None), CURRENT)
        self.assertIn("nobody/x", cache)
        self.assertIsNone(cache.get("nobody/x"))

    async def test_rerun_on_output_is_a_no_op(self) -> None:
        reference_filter = self._filter()
        first = await reference_filter.process("%5, other-team/proj%7 and %404", CURRENT, _title_renderer)
        collector = ReferenceCollector()
        second = await reference_filter.process(first, CURRENT, _title_renderer, collector=collector)

        self.assertEqual(first, "[Beta], [Other Seven] and %404")
        self.assertEqual(second, first)
        self.assertEqual(collector.drain(), [])

    async def test_collector_preserves_first_resolution_order(self) -> None:
        collector = ReferenceCollector()
        await self._filter().process("%6 %5 %6 other-team/proj%5", CURRENT, _title_renderer, collector=collector)
        self.assertEqual(collector.drain(), [GAMMA, BETA, OTHER_FIVE])

    async def test_oversized_id_passes_through_without_lookup(self) -> None:
        text = "See %99999999999999999999999"
        output = await self._filter().process(text, CURRENT, _title_renderer)

        self.assertEqual(output, text)
        self.assertEqual(self.milestone_store.lookups, [])

    async def test_very_long_digit_run_passes_through_without_lookup(self) -> None:
        text = "See %" + "9" * 5000 + " and other-team/proj%" + "1" * 5000
        output = await self._filter().process(text, CURRENT, _title_renderer)

        self.assertEqual(output, text)
        self.assertEqual(self.milestone_store.lookups, [])

    async def test_private_project_requires_membership(self) -> None:
        text = "secret/vault%1"
        self.assertEqual(await self._filter(user_id="mallory").process(text, CURRENT, _title_renderer), text)

        store = _FakeProjectStore(members={(SECRET.id, "alice")})
        output = await self._filter(project_store=store, user_id="alice").process(text, CURRENT, _title_renderer)
        self.assertEqual(output, "[Secret One]")

    async def test_internal_project_requires_signed_in_user(self) -> None:
        text = "corp/tools%1"
        self.assertEqual(await self._filter().process(text, CURRENT, _title_renderer), text)
        self.assertEqual(await self._filter(user_id="bob").process(text, CURRENT, _title_renderer), "[Internal One]")

    async def test_current_project_is_referenceable_by_its_own_path(self) -> None:
        output = await self._filter().process("core/app%5", CURRENT, _title_renderer)
        self.assertEqual(output, "[Beta]")

    async def test_cross_project_references_can_be_disabled(self) -> None:
        reference_filter = self._filter(cross_project=False)
        output = await reference_filter.process("%5 other-team/proj%7", CURRENT, _title_renderer)

        self.assertEqual(output, "[Beta] other-team/proj%7")
        self.assertEqual(self.project_store.lookups, [])

    async def test_project_store_fault_propagates(self) -> None:
        store = _FakeProjectStore(error=ConnectionError("store down"))
        with self.assertRaises(ReferenceStoreError) as ctx:
            await self._filter(project_store=store).process("%5 other-team/proj%7", CURRENT, _title_renderer)
        self.assertIsInstance(ctx.exception.__cause__, ConnectionError)

    async def test_milestone_store_fault_propagates(self) -> None:
        store = _FakeMilestoneStore(error=TimeoutError("timed out"))
        collector = ReferenceCollector()
        with self.assertRaises(ReferenceStoreError):
            await self._filter(milestone_store=store).process("%5", CURRENT, _title_renderer, collector=collector)
        self.assertEqual(collector.drain(), [])

    async def test_renderer_errors_are_not_wrapped(self) -> None:
        def renderer(match, milestone, project):
            raise ValueError("bad template")

        with self.assertRaises(ValueError):
            await self._filter().process("%5", CURRENT, renderer)


if __name__ == "__main__":
    unittest.main()
