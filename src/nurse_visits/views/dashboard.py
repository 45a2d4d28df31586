"""Dashboard: summary cards and chart data built from the booking list.

Chart payloads follow the Chart.js dataset layout (labels + datasets with
colours), using the light or dark palette from the shared preferences.
"""

from datetime import date
from zoneinfo import ZoneInfo

from src.nurse_visits.fetch import BookingFeed
from src.nurse_visits.pipeline import DashboardSummary, build_dashboard, today_in
from src.nurse_visits.preferences import PreferencesStore

_PALETTE_RGB = (
    (59, 130, 246),
    (239, 68, 68),
    (34, 197, 94),
    (245, 158, 11),
    (168, 85, 247),
    (236, 72, 153),
    (16, 185, 129),
    (249, 115, 22),
    (139, 92, 246),
    (6, 182, 212),
    (220, 38, 127),
    (14, 165, 233),
    (5, 150, 105),
    (217, 119, 6),
    (147, 51, 234),
    (8, 145, 178),
    (185, 28, 28),
    (30, 64, 175),
)


def palette(dark: bool) -> tuple[list[str], list[str]]:
    """Fill and border colours; dark mode uses a lower fill opacity."""
    alpha = 0.7 if dark else 0.8
    fills = [f"rgba({r}, {g}, {b}, {alpha})" for r, g, b in _PALETTE_RGB]
    borders = [f"rgba({r}, {g}, {b}, 1)" for r, g, b in _PALETTE_RGB]
    return fills, borders


def thai_date(day: date) -> str:
    """DD/MM/YYYY with a Buddhist-era year, as the th-TH locale prints it."""
    return f"{day:%d/%m}/{day.year + 543}"


def _dataset(label: str, data: list[int], dark: bool) -> dict:
    fills, borders = palette(dark)
    return {
        "label": label,
        "data": data,
        "backgroundColor": fills,
        "borderColor": borders,
        "borderWidth": 2,
    }


def chart_payload(summary: DashboardSummary, *, dark: bool = False) -> dict:
    """Chart.js-ready data for the three dashboard charts."""
    daily_fill = "rgba(165, 180, 252, 0.7)" if dark else "rgba(99, 102, 241, 0.8)"
    daily_border = "rgba(165, 180, 252, 1)" if dark else "rgba(99, 102, 241, 1)"
    return {
        "timeSlots": {
            "labels": list(summary.time_slot_counts),
            "datasets": [
                _dataset("ข้อมูลตามช่วงเวลา", list(summary.time_slot_counts.values()), dark)
            ],
        },
        "symptoms": {
            "labels": list(summary.symptom_chart),
            "datasets": [
                _dataset("การบันทึกตามอาการ", list(summary.symptom_chart.values()), dark)
            ],
        },
        "daily": {
            "labels": [thai_date(d.day) for d in summary.daily_counts],
            "datasets": [
                {
                    "label": "ข้อมูลการใช้งานตามวัน",
                    "data": [d.count for d in summary.daily_counts],
                    "backgroundColor": daily_fill,
                    "borderColor": daily_border,
                    "borderWidth": 2,
                }
            ],
            "stepSize": bar_step_size(max((d.count for d in summary.daily_counts), default=0)),
        },
    }


def bar_step_size(max_count: int) -> int:
    """Y-axis tick step for the daily bar chart (10% headroom on the max)."""
    y_max = -(-max_count * 11 // 10)
    if y_max <= 10:
        return 1
    if y_max <= 50:
        return 5
    if y_max <= 100:
        return 10
    return 20


class DashboardView:
    """Loads bookings through a BookingFeed and summarizes them."""

    def __init__(
        self,
        feed: BookingFeed,
        preferences: PreferencesStore,
        *,
        timezone: ZoneInfo,
    ) -> None:
        self.feed = feed
        self.preferences = preferences
        self.timezone = timezone

    def load(self) -> None:
        self.feed.load()

    @property
    def error(self) -> str:
        return self.feed.state.error

    def summary(self, today: date | None = None) -> DashboardSummary:
        return build_dashboard(self.feed.state.records, today=today or today_in(self.timezone))

    def charts(self, today: date | None = None) -> dict:
        return chart_payload(self.summary(today), dark=self.preferences.dark_mode)


def format_dashboard(summary: DashboardSummary) -> str:
    """Plain-text rendering of the summary cards and chart counts."""
    lines = [
        f"Total visits:        {summary.total}",
        f"Growth (week/week):  {summary.growth_rate:.1f}%",
        f"Average per day:     {summary.average_daily:.1f}",
        f"Peak period:         {summary.peak_time_slot} ({summary.peak_time_slot_count})",
        f"Most common symptom: {summary.most_common_symptom} ({summary.most_common_symptom_count})",
        "",
        "Last 7 days:",
    ]
    for entry in summary.daily_counts:
        lines.append(f"  {thai_date(entry.day)}  {entry.count}")

    lines.append("")
    lines.append("By period:")
    for label, count in summary.time_slot_counts.items():
        lines.append(f"  {label}: {count}")

    lines.append("")
    lines.append("By symptom:")
    for label, count in summary.symptom_counts.items():
        lines.append(f"  {label}: {count}")
    return "\n".join(lines)
