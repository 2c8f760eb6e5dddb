"""History: courses and rounds with filters, list/map mode and course edits."""

from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from analytics.stats import (
    filter_courses,
    filter_rounds,
    map_markers,
    round_years,
    scoring_summary,
)
from models import Course, Round
from session.errors import GolfJournalError, ValidationError
from views.base import ViewController, ViewContext, backend_call

VIEW_MODES = ("list", "map")


class HistoryView(ViewController):
    """All courses and rounds with year/course/text filters."""

    load_error_message = "Error loading your history"

    def __init__(self, ctx: ViewContext) -> None:
        super().__init__(ctx)
        self.courses: List[Course] = []
        self.rounds: List[Round] = []
        self.view_mode = "list"
        self.filter_year = "all"
        self.filter_course: Optional[str] = None
        self.search_text = ""

    async def _load(self) -> None:
        uid = self.uid
        courses = await backend_call(self.db.courses.list_courses(uid), "Error fetching courses")
        rounds = await backend_call(self.db.rounds.list_rounds(uid), "Error fetching rounds")
        self._apply(courses=courses, rounds=rounds)

    # ================================================================
    # Filters
    # ================================================================

    def set_filters(
        self,
        *,
        year: Optional[str] = None,
        course_id: Optional[str] = None,
        search: Optional[str] = None,
        view_mode: Optional[str] = None,
    ) -> None:
        if view_mode is not None:
            if view_mode not in VIEW_MODES:
                raise ValidationError(f"Unknown view mode: {view_mode}")
            self.view_mode = view_mode
        if year is not None:
            self.filter_year = year
        if course_id is not None:
            self.filter_course = course_id or None
        if search is not None:
            self.search_text = search

    def clear_filters(self) -> None:
        self.filter_year = "all"
        self.filter_course = None
        self.search_text = ""

    @property
    def years(self) -> List[str]:
        return round_years(self.rounds)

    @property
    def filtered_courses(self) -> List[Course]:
        return filter_courses(self.courses, self.search_text)

    @property
    def filtered_rounds(self) -> List[Round]:
        return filter_rounds(
            self.rounds,
            year=self.filter_year,
            course_id=self.filter_course,
            search=self.search_text,
        )

    # ================================================================
    # Course edits
    # ================================================================

    async def edit_course(self, course_id: str, **fields) -> Course:
        try:
            course = await backend_call(
                self.db.courses.update_course(self.uid, course_id, **fields),
                "Error updating course",
            )
        except PydanticValidationError as e:
            self.notifications.error("Failed to update course")
            raise ValidationError(e.errors()[0]["msg"]) from e
        except GolfJournalError:
            self.notifications.error("Failed to update course")
            raise
        self.courses = [course if c.id == course_id else c for c in self.courses]
        self.notifications.success("Course updated")
        return course

    async def delete_course(self, course_id: str) -> None:
        uid = self.uid
        try:
            deleted = await backend_call(
                self.db.courses.delete_course(uid, course_id), "Error deleting course"
            )
            if deleted:
                await backend_call(
                    self.db.profiles.adjust_course_count(uid, -1), "Error updating profile"
                )
                await self.session.refresh_profile()
        except GolfJournalError:
            self.notifications.error("Failed to delete course")
            raise
        self.courses = [c for c in self.courses if c.id != course_id]
        if self.filter_course == course_id:
            self.filter_course = None
        self.notifications.success("Course deleted")

    def render(self) -> dict:
        rounds = self.filtered_rounds
        return {
            "loading": self.loading,
            "view_mode": self.view_mode,
            "filters": {
                "year": self.filter_year,
                "course_id": self.filter_course,
                "search": self.search_text,
            },
            "years": self.years,
            "courses": [c.model_dump(mode="json") for c in self.filtered_courses],
            "rounds": [r.model_dump(mode="json") for r in rounds],
            "markers": map_markers(self.filtered_courses) if self.view_mode == "map" else [],
            "summary": scoring_summary(rounds),
        }
