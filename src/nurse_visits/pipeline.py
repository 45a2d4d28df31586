"""Search, filter, sort and aggregate normalized visit records.

Everything here is pure: callers pass ``today`` explicitly (a date in the
configured time zone), which keeps the relative date buckets testable.
"""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from zoneinfo import ZoneInfo

from pydantic import BaseModel

from src.nurse_visits.catalog import NO_DATA, NOT_SPECIFIED, SYMPTOM_CATEGORIES
from src.nurse_visits.models import VisitRecord
from src.nurse_visits.normalize import group_symptom, period_label


class DateRange(str, Enum):
    """Relative date filter of the history view."""

    ALL = "all"
    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_2_3_DAYS = "2-3days"
    LAST_WEEK = "1week"
    LAST_MONTH = "1month"
    LAST_YEAR = "1year"


# Inclusive day-offset bounds (days before today). Buckets do not overlap.
_RANGE_OFFSETS: dict[DateRange, tuple[int, int]] = {
    DateRange.TODAY: (0, 0),
    DateRange.YESTERDAY: (1, 1),
    DateRange.LAST_2_3_DAYS: (2, 3),
    DateRange.LAST_WEEK: (4, 7),
    DateRange.LAST_MONTH: (8, 30),
    DateRange.LAST_YEAR: (31, 365),
}

DAILY_WINDOW_DAYS = 7


def today_in(tz: ZoneInfo) -> date:
    """Current calendar date in the given time zone."""
    return datetime.now(tz).date()


@dataclass(frozen=True)
class VisitFilter:
    """Conditions of the history view, combined with AND."""

    search: str = ""
    time_slots: frozenset[str] = field(default_factory=frozenset)
    date_range: DateRange = DateRange.ALL


def matches_search(record: VisitRecord, term: str) -> bool:
    """Case-insensitive substring match over name, time slot, symptoms and treatment."""
    needle = term.strip().casefold()
    if not needle:
        return True
    haystack = (
        record.prefix,
        record.first_name,
        record.last_name,
        record.time_slot,
        period_label(record.time_slot),
        record.symptoms,
        record.treatment,
    )
    return any(needle in value.casefold() for value in haystack if value)


def matches_time_slots(record: VisitRecord, time_slots: frozenset[str]) -> bool:
    if not time_slots:
        return True
    return record.time_slot in time_slots or period_label(record.time_slot) in time_slots


def matches_date_range(record: VisitRecord, date_range: DateRange, today: date) -> bool:
    """Check whether a record falls in a relative date bucket.

    Undated records only match DateRange.ALL.
    """
    if date_range is DateRange.ALL:
        return True
    if record.visit_date is None:
        return False
    low, high = _RANGE_OFFSETS[date_range]
    offset = (today - record.visit_date).days
    return low <= offset <= high


def filter_visits(
    records: Iterable[VisitRecord], visit_filter: VisitFilter, *, today: date
) -> list[VisitRecord]:
    return [
        r
        for r in records
        if matches_search(r, visit_filter.search)
        and matches_time_slots(r, visit_filter.time_slots)
        and matches_date_range(r, visit_filter.date_range, today)
    ]


def sort_visits(records: Iterable[VisitRecord], *, descending: bool = True) -> list[VisitRecord]:
    """Sort records by visit date (newest first by default).

    Undated records keep their positions in the list; only the dated ones
    are reordered among the remaining slots.
    """
    result = list(records)
    slots = [i for i, r in enumerate(result) if r.visit_date is not None]
    dated = sorted((result[i] for i in slots), key=lambda r: r.visit_date, reverse=descending)
    for i, record in zip(slots, dated):
        result[i] = record
    return result


class DailyCount(BaseModel):
    day: date
    count: int


class DashboardSummary(BaseModel):
    """Aggregates behind the dashboard cards and charts."""

    total: int
    time_slot_counts: dict[str, int]  # period label -> count, first-seen order
    symptom_counts: dict[str, int]  # bucket (unmatched text kept) -> count
    symptom_chart: dict[str, int]  # SYMPTOM_CATEGORIES -> count, unmatched in OTHER
    daily_counts: list[DailyCount]  # last DAILY_WINDOW_DAYS days, oldest first
    growth_rate: float  # percent, this week vs the week before
    average_daily: float  # records per distinct day with records
    peak_time_slot: str
    peak_time_slot_count: int
    most_common_symptom: str
    most_common_symptom_count: int


def _first_max(counts: dict[str, int]) -> tuple[str, int] | None:
    # max() keeps the first of equal counts, i.e. the earliest-seen bucket
    if not counts:
        return None
    return max(counts.items(), key=lambda item: item[1])


def count_by_time_slot(records: Iterable[VisitRecord]) -> dict[str, int]:
    return dict(Counter(period_label(r.time_slot) for r in records))


def count_by_symptom(records: Iterable[VisitRecord], *, keep_unmatched: bool = True) -> dict[str, int]:
    return dict(Counter(group_symptom(r.symptoms, keep_unmatched=keep_unmatched) for r in records))


def daily_counts(records: Iterable[VisitRecord], *, today: date, days: int = DAILY_WINDOW_DAYS) -> list[DailyCount]:
    """Per-day counts for the last ``days`` days including today, zero-filled."""
    window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    counts = Counter(r.visit_date for r in records if r.visit_date is not None)
    return [DailyCount(day=day, count=counts.get(day, 0)) for day in window]


def growth_rate(records: Iterable[VisitRecord], *, today: date) -> float:
    """Week-over-week change in percent.

    The current week spans today-7 .. today, the previous one
    today-14 .. today-8. With no previous records the rate is 100 when
    there are current records and 0 otherwise.
    """
    last_week = today - timedelta(days=7)
    two_weeks_ago = today - timedelta(days=14)
    current = previous = 0
    for r in records:
        if r.visit_date is None:
            continue
        if last_week <= r.visit_date <= today:
            current += 1
        elif two_weeks_ago <= r.visit_date < last_week:
            previous += 1

    if previous > 0:
        return round((current - previous) / previous * 100, 1)
    return 100.0 if current > 0 else 0.0


def average_daily(records: Iterable[VisitRecord]) -> float:
    dated = [r.visit_date for r in records if r.visit_date is not None]
    if not dated:
        return 0.0
    return round(len(dated) / len(set(dated)), 1)


def build_dashboard(records: list[VisitRecord], *, today: date) -> DashboardSummary:
    """Compute every dashboard figure from the normalized record list."""
    slot_counts = count_by_time_slot(records)
    symptom_counts = count_by_symptom(records)

    chart_source = count_by_symptom(records, keep_unmatched=False)
    symptom_chart = {category: chart_source.get(category, 0) for category in SYMPTOM_CATEGORIES}

    # Peak slot ignores unspecified records as long as any real slot exists
    peak_candidates = {k: v for k, v in slot_counts.items() if k != NOT_SPECIFIED}
    peak = _first_max(peak_candidates or slot_counts) or (NOT_SPECIFIED, 0)
    common = _first_max(symptom_counts) or (NO_DATA, 0)

    return DashboardSummary(
        total=len(records),
        time_slot_counts=slot_counts,
        symptom_counts=symptom_counts,
        symptom_chart=symptom_chart,
        daily_counts=daily_counts(records, today=today),
        growth_rate=growth_rate(records, today=today),
        average_daily=average_daily(records),
        peak_time_slot=peak[0],
        peak_time_slot_count=peak[1],
        most_common_symptom=common[0],
        most_common_symptom_count=common[1],
    )
