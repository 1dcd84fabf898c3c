"""Who may reference a milestone in another project."""
from __future__ import annotations

from typing import Optional

from reflinks.models import Project
from reflinks.references.stores import MembershipStore


class ReferenceAccessPolicy:
    """Cross-project reference permissions for one acting user.

    The current project is always referenceable. Public projects are
    referenceable by anyone, internal projects by any signed-in user, and
    private projects only by their members.
    """

    def __init__(self, membership: MembershipStore, user_id: Optional[str] = None):
        self.membership = membership
        self.user_id = user_id

    async def can_reference(self, project: Project, current_project: Project) -> bool:
        if project.id == current_project.id:
            return True
        if project.visibility == "public":
            return True
        if not self.user_id:
            return False
        if project.visibility == "internal":
            return True
        return await self.membership.is_member(project.id, self.user_id)
