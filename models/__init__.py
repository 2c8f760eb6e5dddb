from .base import BaseGolfModel
from .course import Course
from .identity import Identity
from .profile import Profile, ProfileUpdate
from .round import Round

__all__ = ["BaseGolfModel", "Course", "Identity", "Profile", "ProfileUpdate", "Round"]
