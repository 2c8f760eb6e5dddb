"""Profile page: edit form, profile photo and account deletion."""

from typing import Any, Callable, Dict, Optional, Union

from analytics import events
from models import ProfileUpdate
from session.errors import (
    AccountDeletionError,
    BackendUnavailableError,
    GolfJournalError,
)
from storage.blob_store import photo_path, progress_percent
from views.base import ViewController, ViewContext, backend_call


class ProfileView(ViewController):
    """Profile form, profile photo upload and account deletion."""

    def __init__(
        self,
        ctx: ViewContext,
        on_progress: Optional[Callable[[float], None]] = None,
    ) -> None:
        super().__init__(ctx)
        self.form: Dict[str, str] = {}
        self.photo_progress = 0.0
        self.uploading_photo = False
        self.saving = False
        self._on_progress = on_progress

    async def _load(self) -> None:
        # Everything comes from the session; nothing to fetch
        self.reset_form()

    def reset_form(self) -> None:
        profile = self.session.profile
        self.form = {
            "display_name": (profile.display_name if profile else None) or "",
            "home_course_name": (profile.home_course_name if profile else None) or "",
            "home_course_location": (profile.home_course_location if profile else None) or "",
            "handicap": str(profile.handicap) if profile and profile.handicap is not None else "",
        }

    async def save(self, update: Union[ProfileUpdate, Dict[str, Any]]) -> None:
        self.saving = True
        try:
            await self.session.update_profile(update)
        except GolfJournalError:
            self.notifications.error("Failed to update profile")
            raise
        finally:
            self.saving = False
        self.reset_form()
        self.notifications.success("Profile updated successfully")

    def _report_progress(self, transferred: int, total: int) -> None:
        self.photo_progress = progress_percent(transferred, total)
        if self._on_progress:
            self._on_progress(self.photo_progress)

    async def upload_photo(self, filename: str, data: bytes, content_type: str = "image/jpeg") -> str:
        """Upload a new profile photo and point the profile at it."""
        uid = self.uid
        self.uploading_photo = True
        self.photo_progress = 0.0
        try:
            if self.ctx.storage is None:
                raise BackendUnavailableError("Photo storage is not configured")
            url = await backend_call(
                self.ctx.storage.upload(
                    photo_path(uid, "profile", filename),
                    data,
                    content_type,
                    on_progress=self._report_progress,
                ),
                "Error uploading photo",
            )
            await self.session.update_profile({"photo_url": url})
        except GolfJournalError:
            self.notifications.error("Failed to upload profile photo")
            raise
        finally:
            self.uploading_photo = False
        events.track_photo_uploaded()
        self.notifications.success("Profile photo updated successfully")
        return url

    async def delete_account(self, confirmed: bool) -> bool:
        """Delete everything. Does nothing unless the user confirmed."""
        if not confirmed:
            return False
        try:
            await self.session.delete_account()
        except AccountDeletionError as exc:
            if exc.partial:
                self.notifications.error(
                    "Account deletion did not finish. Some of your data may remain."
                )
            else:
                self.notifications.error(
                    "Failed to delete account. You may need to re-authenticate."
                )
            raise
        except GolfJournalError:
            self.notifications.error("Failed to delete account. You may need to re-authenticate.")
            raise
        self.notifications.info("Account deleted")
        return True

    def render(self) -> dict:
        profile = self.session.profile
        return {
            "profile": profile.model_dump(mode="json") if profile else None,
            "form": self.form,
            "photo_progress": round(self.photo_progress),
            "uploading_photo": self.uploading_photo,
            "saving": self.saving,
        }
