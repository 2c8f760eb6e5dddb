from datetime import date
from pydantic import Field, field_validator
from typing import Optional

from .base import BaseGolfModel


class Course(BaseGolfModel):
    """Golf course in a user's personal catalog."""
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    location: str = ""
    address: Optional[str] = None
    latitude: float = Field(0.0, ge=-90, le=90)
    longitude: float = Field(0.0, ge=-180, le=180)
    country: str = ""
    state: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    times_played: int = Field(0, ge=0)
    last_played: Optional[date] = None
    added_by_id: Optional[str] = None
    added_on: Optional[date] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Course name is required")
        return v

    @property
    def has_coordinates(self) -> bool:
        """0/0 is the "unknown location" marker."""
        return not (self.latitude == 0 and self.longitude == 0)

    def matches(self, text: str) -> bool:
        """Case-insensitive match on name or location."""
        needle = text.lower()
        return needle in self.name.lower() or needle in self.location.lower()
