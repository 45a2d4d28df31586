"""Booking form: field validation, student lookup and submission.

The form mirrors the nurse-room paper form: date, period, student ID, grade,
prefix, first and last name, symptom category (free text for "อื่นๆ"),
treatment and an optional photo. Grade and name are filled in from the
student lookup, and a booking can only be submitted for a student ID whose
lookup succeeded.
"""

import datetime as dt
import re
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from src.nurse_visits.catalog import (
    ALLOWED_IMAGE_TYPES,
    FORM_SYMPTOMS,
    GRADE_OPTIONS,
    MESSAGES,
    OTHER_SYMPTOM,
    PERIODS,
    PREFIXES,
)
from src.nurse_visits.client import guess_image_type
from src.nurse_visits.errors import NurseVisitError, RequestValidationError
from src.nurse_visits.logging import get_logger
from src.nurse_visits.models import StudentProfile

log = get_logger(__name__)

_DIGITS = re.compile(r"^\d+$")
MAX_IMAGE_BYTES = 5 * 1024 * 1024

LookupFn = Callable[[str], dict]
SubmitFn = Callable[[dict[str, str], Path | None], dict]


def resolve_period(period: str) -> str | None:
    """Stored value for a period given as its value or its label ("คาบ 1").

    Returns None for anything outside the period table.
    """
    text = period.strip()
    for p in PERIODS:
        if text in (p.value, p.label):
            return p.value
    return None


def allowed_date_range(today: dt.date) -> tuple[dt.date, dt.date]:
    """First and last selectable visit date: Jan 1 this year to Dec 31 next year."""
    return dt.date(today.year, 1, 1), dt.date(today.year + 1, 12, 31)


class LookupGuard:
    """At-most-once lookup per student ID value.

    An ID is claimed when its lookup starts and stays claimed after it
    finishes, whatever the outcome. Not a cache: results are not kept here.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._in_flight: set[str] = set()
        self._completed: set[str] = set()

    def claim(self, student_id: str) -> bool:
        """Claim an ID for lookup; False if it is in flight or already done."""
        with self._lock:
            if student_id in self._in_flight or student_id in self._completed:
                return False
            self._in_flight.add(student_id)
            return True

    def finish(self, student_id: str) -> None:
        with self._lock:
            self._in_flight.discard(student_id)
            self._completed.add(student_id)

    def seen(self, student_id: str) -> bool:
        with self._lock:
            return student_id in self._in_flight or student_id in self._completed


@dataclass
class SubmitResult:
    success: bool
    message: str = ""


@dataclass
class BookingForm:
    """State of one booking form."""

    date: str = ""
    period: str = ""
    student_id: str = ""
    grade: str = ""
    prefix: str = ""
    first_name: str = ""
    last_name: str = ""
    symptom_category: str = ""
    custom_symptoms: str = ""
    treatment: str = ""
    image_path: Path | None = None
    email: str = ""
    notes: str = ""
    error: str = ""
    guard: LookupGuard = field(default_factory=LookupGuard, repr=False)
    _verified_id: str | None = field(default=None, repr=False)
    _submitting: bool = field(default=False, repr=False)

    @property
    def symptoms(self) -> str:
        if self.symptom_category == OTHER_SYMPTOM:
            return self.custom_symptoms.strip()
        return self.symptom_category

    @property
    def student_verified(self) -> bool:
        return bool(self.student_id) and self._verified_id == self.student_id.strip()

    def lookup(self, lookup_fn: LookupFn) -> StudentProfile | None:
        """Look the current student ID up and autofill grade and name.

        Does nothing when the ID is empty, not numeric, or was already looked
        up (in flight or finished).

        Args:
            lookup_fn: Callable taking the ID and returning the proxy's JSON body.

        Returns:
            The student profile on success, otherwise None.
        """
        student_id = self.student_id.strip()
        if not student_id or not _DIGITS.match(student_id):
            return None
        if not self.guard.claim(student_id):
            log.debug("lookup_skipped", student_id=student_id)
            return None

        try:
            body = lookup_fn(student_id)
        except NurseVisitError as e:
            self.error = f"{MESSAGES['server_unreachable']}: {e.message}"
            return None
        finally:
            self.guard.finish(student_id)

        student = body.get("student") if body.get("success") else None
        if not isinstance(student, dict):
            self.error = str(body.get("message") or MESSAGES["lookup_not_found"])
            log.info("student_not_found", student_id=student_id)
            return None

        values = {k: str(v) for k, v in student.items() if v is not None}
        profile = StudentProfile.model_validate({**values, "studentId": student_id})
        self.grade = profile.grade or self.grade
        self.prefix = profile.prefix or self.prefix
        self.first_name = profile.first_name or self.first_name
        self.last_name = profile.last_name or self.last_name
        self._verified_id = student_id
        self.error = ""
        log.info("student_found", student_id=student_id)
        return profile

    def validate(self, today: dt.date | None = None) -> None:
        """Check the form before it is sent.

        Raises:
            RequestValidationError: With the inline message to show.
        """
        required = (
            self.date,
            self.period,
            self.student_id,
            self.grade,
            self.prefix,
            self.first_name,
            self.last_name,
            self.symptom_category,
            self.treatment,
        )
        if not all(v.strip() for v in required) or not self.symptoms:
            raise RequestValidationError(MESSAGES["form_incomplete"])
        if not _DIGITS.match(self.student_id.strip()):
            raise RequestValidationError(MESSAGES["student_id_digits"])
        if resolve_period(self.period) is None:
            raise RequestValidationError(MESSAGES["period_invalid"])

        try:
            visit_date = dt.date.fromisoformat(self.date.strip())
        except ValueError:
            raise RequestValidationError(MESSAGES["date_out_of_range"])
        first, last = allowed_date_range(today or dt.date.today())
        if not first <= visit_date <= last:
            raise RequestValidationError(MESSAGES["date_out_of_range"])

        if self.image_path is not None:
            self._validate_image(self.image_path)

    @staticmethod
    def _validate_image(path: Path) -> None:
        if guess_image_type(path) not in ALLOWED_IMAGE_TYPES:
            raise RequestValidationError(MESSAGES["image_type"])
        try:
            size = path.stat().st_size
        except OSError:
            raise RequestValidationError(MESSAGES["image_unreadable"])
        if size > MAX_IMAGE_BYTES:
            raise RequestValidationError(MESSAGES["image_size"])

    def fields(self) -> dict[str, str]:
        """Multipart text fields, keyed as the proxy expects them."""
        fields = {
            "date": self.date.strip(),
            "period": resolve_period(self.period) or self.period.strip(),
            "studentId": self.student_id.strip(),
            "grade": self.grade.strip(),
            "prefix": self.prefix.strip(),
            "firstName": self.first_name.strip(),
            "lastName": self.last_name.strip(),
            "symptoms": self.symptoms,
            "treatment": self.treatment.strip(),
        }
        if self.email.strip():
            fields["email"] = self.email.strip()
        if self.notes.strip():
            fields["notes"] = self.notes.strip()
        return fields

    def submit(self, submit_fn: SubmitFn, today: dt.date | None = None) -> SubmitResult:
        """Validate and send the booking; clears the form on success."""
        if self._submitting:
            return SubmitResult(False, self.error)

        self.error = ""
        try:
            self.validate(today)
            if not self.student_verified:
                raise RequestValidationError(MESSAGES["lookup_required"])
        except RequestValidationError as e:
            self.error = e.message
            return SubmitResult(False, e.message)

        self._submitting = True
        try:
            body = submit_fn(self.fields(), self.image_path)
        except NurseVisitError as e:
            self.error = f"{MESSAGES['server_unreachable']}: {e.message}"
            return SubmitResult(False, self.error)
        finally:
            self._submitting = False

        if not body.get("success"):
            self.error = str(body.get("message") or MESSAGES["submit_failed"])
            log.info("visit_rejected", student_id=self.student_id, message=self.error)
            return SubmitResult(False, self.error)

        log.info("visit_recorded", student_id=self.student_id)
        message = str(body.get("message") or "")
        self.reset()
        return SubmitResult(True, message)

    def reset(self) -> None:
        """Clear every field and start a fresh lookup guard for the next booking."""
        for name in (
            "date",
            "period",
            "student_id",
            "grade",
            "prefix",
            "first_name",
            "last_name",
            "symptom_category",
            "custom_symptoms",
            "treatment",
            "notes",
            "error",
        ):
            setattr(self, name, "")
        self.image_path = None
        self._verified_id = None
        self.guard = LookupGuard()


def form_choices() -> dict[str, list[str]]:
    """Options offered by the form's select fields."""
    return {
        "periods": [p.value for p in PERIODS],
        "prefixes": list(PREFIXES),
        "grades": list(GRADE_OPTIONS),
        "symptoms": list(FORM_SYMPTOMS),
    }
