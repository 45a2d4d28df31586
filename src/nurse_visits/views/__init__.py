"""Views: booking form, visit history and dashboard."""

from src.nurse_visits.views.booking import BookingForm, LookupGuard
from src.nurse_visits.views.dashboard import DashboardView
from src.nurse_visits.views.history import HistoryView

__all__ = [
    "BookingForm",
    "LookupGuard",
    "DashboardView",
    "HistoryView",
]
