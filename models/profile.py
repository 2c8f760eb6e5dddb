from datetime import date
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional

from .base import BaseGolfModel
from .identity import Identity


class Profile(BaseGolfModel):
    """Application-level golfer record, keyed by the identity id."""
    id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None
    phone_number: Optional[str] = None
    home_course_name: Optional[str] = None
    home_course_location: Optional[str] = None
    handicap: Optional[float] = Field(None, ge=-10, le=54)
    total_rounds: int = Field(0, ge=0)
    total_courses: int = Field(0, ge=0)
    most_played_course_id: Optional[str] = None
    last_played_date: Optional[date] = None

    @classmethod
    def default_for(cls, identity: Identity) -> "Profile":
        """Fresh profile for a first sign-in: identity fields, zeroed counters."""
        return cls(
            id=identity.id,
            display_name=identity.display_name,
            email=identity.email,
            photo_url=identity.photo_url,
            phone_number=identity.phone_number,
            total_rounds=0,
            total_courses=0,
        )

    def merged(self, changes: Dict[str, Any]) -> "Profile":
        """Return a copy with exactly `changes` applied, validated field by field."""
        return Profile.model_validate({**self.model_dump(), **changes})

    @property
    def first_name(self) -> Optional[str]:
        if not self.display_name:
            return None
        return self.display_name.split(" ")[0]


class ProfileUpdate(BaseModel):
    """Partial profile edit. Only fields explicitly set are written."""
    model_config = ConfigDict(extra="forbid")

    display_name: Optional[str] = None
    home_course_name: Optional[str] = None
    home_course_location: Optional[str] = None
    handicap: Optional[float] = Field(None, ge=-10, le=54)
    photo_url: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)
