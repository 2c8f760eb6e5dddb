"""Add-round form: course selection/search, photos, and the round write."""

import logging
from dataclasses import dataclass
from datetime import date
from datetime import date as _date
from typing import Callable, List, Optional, Sequence

from pydantic import BaseModel, ValidationError as PydanticValidationError

from analytics import events
from models import Course, Round
from session.errors import BackendUnavailableError, GolfJournalError, ValidationError
from storage.blob_store import photo_path, progress_percent
from views.base import ViewController, ViewContext, backend_call

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhotoUpload:
    filename: str
    data: bytes
    content_type: str = "image/jpeg"


class RoundForm(BaseModel):
    """Round form fields as entered; `played_with` is comma separated."""
    date: Optional[_date] = None
    score: Optional[int] = None
    par: Optional[int] = None
    tees: Optional[str] = None
    rating: Optional[float] = None
    slope: Optional[int] = None
    notes: Optional[str] = None
    weather: Optional[str] = None
    played_with: str = ""

    def players(self) -> List[str]:
        return [p.strip() for p in self.played_with.split(",") if p.strip()]


class CourseForm(BaseModel):
    name: str
    location: str = ""
    address: Optional[str] = None
    latitude: float = 0.0
    longitude: float = 0.0
    country: str = ""
    state: Optional[str] = None
    rating: Optional[float] = None


class AddRoundView(ViewController):
    load_error_message = "Error loading course information"

    def __init__(
        self,
        ctx: ViewContext,
        preselected_course_id: Optional[str] = None,
        on_progress: Optional[Callable[[float], None]] = None,
    ) -> None:
        super().__init__(ctx)
        self.preselected_course_id = preselected_course_id
        self.selected_course: Optional[Course] = None
        self.search_results: List[Course] = []
        self.upload_progress = 0.0
        self.uploading_photos = False
        self.submitting = False
        self._on_progress = on_progress

    async def _load(self) -> None:
        if not self.preselected_course_id:
            return
        course = await backend_call(
            self.db.courses.get_course(self.uid, self.preselected_course_id),
            "Error fetching course",
        )
        if course is not None:
            self._apply(selected_course=course)

    # ================================================================
    # Course selection
    # ================================================================

    async def search_courses(self, text: str) -> List[Course]:
        results = await backend_call(
            self.db.courses.search_courses(self.uid, text), "Error searching courses"
        )
        self._apply(search_results=results)
        return results

    async def select_course(self, course_id: str) -> Course:
        course = next((c for c in self.search_results if c.id == course_id), None)
        if course is None:
            course = await backend_call(
                self.db.courses.get_course(self.uid, course_id), "Error fetching course"
            )
        if course is None:
            raise ValidationError("That course no longer exists")
        self.selected_course = course
        events.track_course_viewed(course.id, course.name)
        return course

    def clear_course(self) -> None:
        self.selected_course = None

    async def add_course(self, form: CourseForm) -> Course:
        """Create a course, count it on the profile and select it."""
        try:
            course = Course(**form.model_dump())
        except PydanticValidationError as e:
            raise ValidationError(e.errors()[0]['msg']) from e
        uid = self.uid
        try:
            course = await backend_call(self.db.courses.create_course(uid, course), "Error adding course")
            await backend_call(self.db.profiles.adjust_course_count(uid, 1), "Error updating profile")
            await self.session.refresh_profile()
        except GolfJournalError:
            self.notifications.error("Failed to add course")
            raise
        self.selected_course = course
        self.notifications.success(f"Added {course.name}")
        return course

    # ================================================================
    # Submit
    # ================================================================

    def _report_progress(self, done_before: int, grand_total: int) -> Callable[[int, int], None]:
        def report(transferred: int, _total: int) -> None:
            self.upload_progress = progress_percent(done_before + transferred, grand_total)
            if self._on_progress:
                self._on_progress(self.upload_progress)
        return report

    async def _upload_photos(self, uid: str, photos: Sequence[PhotoUpload]) -> List[str]:
        if not photos:
            return []
        if self.ctx.storage is None:
            raise BackendUnavailableError("Photo storage is not configured")
        self.uploading_photos = True
        self.upload_progress = 0.0
        grand_total = sum(len(p.data) for p in photos)
        urls: List[str] = []
        done = 0
        try:
            for photo in photos:
                url = await backend_call(
                    self.ctx.storage.upload(
                        photo_path(uid, "rounds", photo.filename),
                        photo.data,
                        photo.content_type,
                        on_progress=self._report_progress(done, grand_total),
                    ),
                    "Upload failed",
                )
                done += len(photo.data)
                urls.append(url)
                events.track_photo_uploaded()
        finally:
            self.uploading_photos = False
        return urls

    def _build_round(self, course: Course, form: RoundForm) -> Round:
        try:
            return Round(
                course_id=course.id,
                course_name=course.name,
                date=form.date,
                score=form.score,
                par=form.par,
                tees=form.tees or None,
                rating=form.rating,
                slope=form.slope,
                notes=form.notes or None,
                weather=form.weather or None,
                played_with=form.players(),
            )
        except PydanticValidationError as e:
            raise ValidationError(e.errors()[0]['msg']) from e

    async def _update_most_played(self, uid: str, course: Course, current_id: Optional[str]) -> None:
        if current_id == course.id:
            return
        current = None
        if current_id:
            current = await self.db.courses.get_course(uid, current_id)
        if current is None or course.times_played > current.times_played:
            await self.db.profiles.set_most_played_course(uid, course.id)

    async def submit(self, form: RoundForm, photos: Sequence[PhotoUpload] = ()) -> Round:
        """Upload photos, store the round and update course and profile counters."""
        course = self.selected_course
        if course is None:
            self.notifications.warning("Please select a course")
            raise ValidationError("Please select a course")
        if form.date is None:
            self.notifications.warning("Please enter the date you played")
            raise ValidationError("Please enter the date you played")
        round_obj = self._build_round(course, form)
        uid = self.uid

        self.submitting = True
        try:
            urls = await self._upload_photos(uid, photos)
            if urls:
                round_obj = round_obj.model_copy(update={"photo_urls": urls})
            created = await backend_call(
                self.db.rounds.create_round(uid, round_obj), "Error adding round"
            )
            played = await backend_call(
                self.db.courses.record_play(uid, course.id, round_obj.date),
                "Error updating course",
            )
            profile = await backend_call(
                self.db.profiles.record_round(uid, round_obj.date), "Error updating profile"
            )
            await backend_call(
                self._update_most_played(uid, played, profile.most_played_course_id),
                "Error updating profile",
            )
            await self.session.refresh_profile()
        except GolfJournalError:
            self.notifications.error("Failed to add round")
            raise
        finally:
            self.submitting = False

        logger.info("Added round %s at %s for %s", created.id, course.name, uid)
        events.track_round_added(course.id)
        self.notifications.success("Round added successfully!")
        return created

    def render(self) -> dict:
        return {
            "loading": self.loading,
            "selected_course": self.selected_course.model_dump(mode="json") if self.selected_course else None,
            "search_results": [c.model_dump(mode="json") for c in self.search_results],
            "upload_progress": round(self.upload_progress),
            "uploading_photos": self.uploading_photos,
            "submitting": self.submitting,
        }
