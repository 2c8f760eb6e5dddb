"""Dashboard: greeting, stat tiles, course markers and recent courses."""

from __future__ import annotations

from typing import List

from analytics.stats import map_markers, stat_tiles
from models import Course
from views.base import ViewController, ViewContext, backend_call

RECENT_COURSES_LIMIT = 5


class DashboardView(ViewController):
    """Welcome header, stat tiles, course map markers and recent courses."""

    load_error_message = "Error loading dashboard"

    def __init__(self, ctx: ViewContext) -> None:
        super().__init__(ctx)
        self.courses: List[Course] = []

    async def _load(self) -> None:
        courses = await backend_call(
            self.db.courses.list_courses(self.uid), "Error fetching dashboard data"
        )
        self._apply(courses=courses)

    @property
    def recent_courses(self) -> List[Course]:
        return self.courses[:RECENT_COURSES_LIMIT]

    @property
    def greeting(self) -> str:
        profile = self.session.profile
        name = profile.first_name if profile else None
        return f"Welcome Back, {name}!" if name else "Welcome Back!"

    def render(self) -> dict:
        return {
            "greeting": self.greeting,
            "loading": self.loading,
            "tiles": stat_tiles(self.session.profile, self.courses),
            "markers": map_markers(self.courses),
            "recent_courses": [c.model_dump(mode="json") for c in self.recent_courses],
        }
