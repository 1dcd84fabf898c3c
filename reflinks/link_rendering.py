"""Host-side HTML renderer for resolved milestone references."""
from __future__ import annotations

import html
from typing import Optional

from reflinks import config
from reflinks.models import Milestone, Project
from reflinks.references.filters import Renderer


def _escape(value: str) -> str:
    # Encoding the sigil keeps rendered links from being matched again.
    return html.escape(value, quote=True).replace("%", "&#37;")


def milestone_url(milestone: Milestone, project: Project, only_path: bool = False) -> str:
    path = f"/{project.path}/milestones/{milestone.iid}"
    if only_path:
        return path
    return f"{config.BASE_URL}{path}"


def milestone_link_renderer(only_path: Optional[bool] = None) -> Renderer:
    """Return a renderer producing ``<a>`` links with ``gfm gfm-milestone`` classes."""
    if only_path is None:
        only_path = config.ONLY_PATH

    def render(match: str, milestone: Milestone, project: Project) -> str:
        url = _escape(milestone_url(milestone, project, only_path=only_path))
        title = _escape(f"Milestone: {milestone.title}")
        return (
            f'<a href="{url}" data-project="{project.id}" data-milestone="{milestone.id}" '
            f'title="{title}" class="gfm gfm-milestone">{_escape(match)}</a>'
        )

    return render
