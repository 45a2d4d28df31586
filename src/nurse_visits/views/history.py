"""Visit history: the full booking list with search, filters and sorting."""

from datetime import date
from zoneinfo import ZoneInfo

from src.nurse_visits.catalog import MESSAGES
from src.nurse_visits.fetch import BookingFeed
from src.nurse_visits.models import VisitRecord
from src.nurse_visits.normalize import period_label
from src.nurse_visits.pipeline import VisitFilter, filter_visits, sort_visits, today_in


class HistoryView:
    """Loads bookings through a BookingFeed and derives the visible rows."""

    def __init__(self, feed: BookingFeed, *, timezone: ZoneInfo) -> None:
        self.feed = feed
        self.timezone = timezone

    def load(self) -> None:
        self.feed.load()

    @property
    def error(self) -> str:
        return self.feed.state.error

    def rows(
        self,
        visit_filter: VisitFilter | None = None,
        *,
        descending: bool = True,
        today: date | None = None,
    ) -> list[VisitRecord]:
        """Records matching the filter, sorted by visit date."""
        today = today or today_in(self.timezone)
        matched = filter_visits(self.feed.state.records, visit_filter or VisitFilter(), today=today)
        return sort_visits(matched, descending=descending)


def _display_date(record: VisitRecord) -> str:
    if record.visit_date is None:
        return record.date
    return record.visit_date.strftime("%d/%m/%Y")


def format_history_table(records: list[VisitRecord]) -> str:
    """Format visit records as a human-readable table.

    Columns: Date | Period | Student | Grade | Symptoms | Treatment
    """
    if not records:
        return MESSAGES["no_history"]

    headers = ["Date", "Period", "Student", "Grade", "Symptoms", "Treatment"]

    rows = []
    for r in records:
        rows.append(
            [
                _display_date(r),
                period_label(r.time_slot),
                r.full_name or "-",
                r.grade or "-",
                r.symptoms,
                r.treatment or "-",
            ]
        )

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    separator = "-+-".join("-" * w for w in widths)

    row_lines = []
    for row in rows:
        row_lines.append(" | ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)))

    return "\n".join([header_line, separator, *row_lines])
