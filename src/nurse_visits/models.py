"""Pydantic models for visit data.

Field names are snake_case in Python and camelCase on the wire, matching the
keys the external script reads and writes.
"""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.nurse_visits.catalog import NO_IMAGE, NOT_SPECIFIED


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StudentProfile(_CamelModel):
    """Student identity returned by the lookupStudent action."""

    student_id: str
    grade: str = ""
    prefix: str = ""
    first_name: str = ""
    last_name: str = ""


class VisitRecord(_CamelModel):
    """One nurse visit as listed by the script, after alias resolution.

    Every field is populated: missing time slot, symptoms and date carry the
    NOT_SPECIFIED placeholder so grouping always has a bucket.
    """

    date: str = NOT_SPECIFIED  # as delivered: "2024-06-03", "03/06/2567", ISO timestamp
    time_slot: str = NOT_SPECIFIED  # period value, e.g. "08:30-09:30"
    student_id: str = ""
    grade: str = ""
    prefix: str = ""
    first_name: str = ""
    last_name: str = ""
    symptoms: str = NOT_SPECIFIED
    treatment: str = ""
    image_link: str | None = None
    email: str = ""
    visit_date: dt.date | None = Field(default=None, exclude=True)  # parsed, fixed time zone

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.prefix, self.first_name, self.last_name) if p)


class VisitSubmission(_CamelModel):
    """JSON payload forwarded to the script for a new visit."""

    date: str
    period: str
    student_id: str
    grade: str
    prefix: str
    first_name: str
    last_name: str
    symptoms: str
    treatment: str
    email: str
    notes: str
    image_link: str = NO_IMAGE

    def to_payload(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)


class ImageUpload(BaseModel):
    """An image attached to a submission, held in memory."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class ScriptResponse(BaseModel):
    """Decoded answer of the external script."""

    status_code: int
    body: dict

    @property
    def success(self) -> bool:
        return bool(self.body.get("success"))

    @property
    def message(self) -> str:
        return str(self.body.get("message") or "")
