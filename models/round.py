from datetime import date, datetime
from pydantic import Field
from typing import List, Optional

from .base import BaseGolfModel


class Round(BaseGolfModel):
    """A single round of golf played by a user."""
    id: Optional[str] = None
    user_id: Optional[str] = None
    course_id: str
    course_name: str  # denormalized so history needs no join
    date: date
    score: Optional[int] = None
    par: Optional[int] = None
    tees: Optional[str] = None
    rating: Optional[float] = None
    slope: Optional[int] = Field(None, ge=55, le=155)
    notes: Optional[str] = None
    weather: Optional[str] = None
    played_with: List[str] = Field(default_factory=list)
    photo_urls: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_par(self) -> Optional[int]:
        """Strokes relative to par, if both are known."""
        if self.score is None or self.par is None:
            return None
        return self.score - self.par

    def score_differential(self) -> Optional[float]:
        """WHS differential: (113 / slope) * (score - rating)."""
        if self.score is None or self.rating is None or self.slope is None:
            return None
        return round((113 / self.slope) * (self.score - self.rating), 1)

    @property
    def year(self) -> int:
        return self.date.year
