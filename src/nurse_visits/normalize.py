"""Field normalization for booking records delivered by the external script.

The spreadsheet behind the script has used several column names for the same
field (English and Thai, ``period`` and ``timeSlot``, a misspelled
``symptome``). normalize_record() resolves those aliases through
catalog.FIELD_ALIASES and parses the visit date once, in one fixed time zone.
"""

import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from zoneinfo import ZoneInfo

from src.nurse_visits.catalog import (
    FIELD_ALIASES,
    FIELD_DEFAULTS,
    NOT_AVAILABLE,
    NOT_SPECIFIED,
    OTHER_SYMPTOM,
    PERIOD_LABELS,
    SYMPTOM_RULES,
)
from src.nurse_visits.logging import get_logger
from src.nurse_visits.models import VisitRecord

log = get_logger(__name__)

DEFAULT_TIMEZONE = ZoneInfo("Asia/Bangkok")

_DMY_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

# Dates formatted with the th-TH locale carry Buddhist-era years (2567 == 2024)
_BUDDHIST_ERA_THRESHOLD = 2400
_BUDDHIST_ERA_OFFSET = 543


def _present(value: object) -> bool:
    if value is None:
        return False
    return str(value).strip() != ""


def pick_field(raw: Mapping[str, object], field: str) -> str | None:
    """Return the first present value among the aliases of a logical field.

    Args:
        raw: Record as delivered by the script.
        field: Logical field name, a key of FIELD_ALIASES.

    Returns:
        The value as a stripped string, or the field's placeholder from
        FIELD_DEFAULTS when no alias carries a value.

    Raises:
        KeyError: If the field has no alias table.
    """
    for key in FIELD_ALIASES[field]:
        value = raw.get(key)
        if _present(value):
            return str(value).strip()
    return FIELD_DEFAULTS[field]


def parse_visit_date(value: str | None, tz: ZoneInfo = DEFAULT_TIMEZONE) -> date | None:
    """Parse a visit date in any of the formats the script has produced.

    Accepted: ``DD/MM/YYYY`` (Gregorian or Buddhist-era year), ``YYYY-MM-DD``
    and ISO timestamps. Aware timestamps are converted to ``tz`` before the
    calendar date is taken; naive ones are read as local to ``tz``.

    Returns:
        The calendar date, or None when the value matches no format.
    """
    if not value:
        return None
    text = value.strip()

    match = _DMY_PATTERN.match(text)
    if match:
        day, month, year = (int(g) for g in match.groups())
        if year >= _BUDDHIST_ERA_THRESHOLD:
            year -= _BUDDHIST_ERA_OFFSET
        try:
            return date(year, month, day)
        except ValueError:
            return None

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz)
    return parsed.date()


def normalize_record(raw: Mapping[str, object], tz: ZoneInfo = DEFAULT_TIMEZONE) -> VisitRecord:
    """Map one raw booking onto the canonical VisitRecord shape."""
    values = {field: pick_field(raw, field) for field in FIELD_ALIASES}
    record = VisitRecord(**values)
    record.visit_date = parse_visit_date(record.date, tz)
    return record


def normalize_records(
    raw_records: Iterable[Mapping[str, object]], tz: ZoneInfo = DEFAULT_TIMEZONE
) -> list[VisitRecord]:
    """Normalize a booking list, skipping entries that are not objects."""
    records: list[VisitRecord] = []
    skipped = 0
    for raw in raw_records:
        if not isinstance(raw, Mapping):
            skipped += 1
            continue
        records.append(normalize_record(raw, tz))

    undated = sum(1 for r in records if r.visit_date is None)
    log.debug("records_normalized", count=len(records), undated=undated, skipped=skipped)
    return records


def group_symptom(symptom: str | None, *, keep_unmatched: bool = True) -> str:
    """Map free-text symptoms to a chart bucket.

    Rules are checked in SYMPTOM_RULES order and the first keyword hit wins,
    so text naming two symptoms lands in whichever rule comes first.

    Args:
        symptom: Free text as recorded.
        keep_unmatched: Return unmatched text verbatim (True) or OTHER_SYMPTOM.

    Returns:
        Bucket name, NOT_SPECIFIED for blank or "N/A" input.
    """
    if not symptom:
        return NOT_SPECIFIED
    text = symptom.strip()
    if text in ("", NOT_AVAILABLE, NOT_SPECIFIED):
        return NOT_SPECIFIED

    for bucket, keywords in SYMPTOM_RULES:
        if any(keyword in text for keyword in keywords):
            return bucket
    return text if keep_unmatched else OTHER_SYMPTOM


def period_label(time_slot: str | None) -> str:
    """Display name of a period value ("08:30-09:30" -> "คาบ 1").

    Unknown values are returned unchanged; blank input is NOT_SPECIFIED.
    """
    if not time_slot or not time_slot.strip():
        return NOT_SPECIFIED
    value = time_slot.strip()
    return PERIOD_LABELS.get(value, value)
