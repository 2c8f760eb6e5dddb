from .course_repo import CourseRepository
from .profile_repo import ProfileRepository
from .round_repo import RoundRepository

__all__ = ["CourseRepository", "ProfileRepository", "RoundRepository"]
