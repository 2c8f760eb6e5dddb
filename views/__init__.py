from views.add_round import AddRoundView, CourseForm, PhotoUpload, RoundForm
from views.base import ViewContext, ViewController
from views.dashboard import DashboardView
from views.history import HistoryView
from views.profile import ProfileView

__all__ = [
    "AddRoundView",
    "CourseForm",
    "DashboardView",
    "HistoryView",
    "PhotoUpload",
    "ProfileView",
    "RoundForm",
    "ViewContext",
    "ViewController",
]
