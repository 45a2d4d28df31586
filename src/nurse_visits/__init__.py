"""Nurse-room visit booking for the school health office.

A small HTTP proxy in front of the Google Apps Script that stores bookings,
plus the client-side pieces: booking form, history list and dashboard.
"""

from src.nurse_visits.errors import NurseVisitError
from src.nurse_visits.models import VisitRecord, VisitSubmission
from src.nurse_visits.proxy import create_app

__all__ = [
    "create_app",
    "NurseVisitError",
    "VisitRecord",
    "VisitSubmission",
]
