"""History and dashboard views over a BookingFeed."""

from datetime import date
from zoneinfo import ZoneInfo

from src.nurse_visits.catalog import MESSAGES
from src.nurse_visits.fetch import BookingFeed
from src.nurse_visits.pipeline import DateRange, VisitFilter, build_dashboard
from src.nurse_visits.preferences import PreferencesStore
from src.nurse_visits.views.dashboard import (
    DashboardView,
    bar_step_size,
    chart_payload,
    format_dashboard,
    thai_date,
)
from src.nurse_visits.views.history import HistoryView, format_history_table

BANGKOK = ZoneInfo("Asia/Bangkok")
TODAY = date(2024, 6, 15)

BOOKINGS = [
    {"date": "2024-06-14", "timeSlot": "08:30-09:30", "firstName": "สมชาย", "symptoms": "ปวดหัว"},
    {"date": "2024-06-15", "period": "09:30-10:30", "firstName": "สมหญิง", "symptome": "มีไข้"},
    {"วันที่": "01/01/2567", "คาบที่เรียน": "08:30-09:30", "ชื่อ": "มานะ", "อาการ": "ไอ"},
]


def loaded_feed(bookings=BOOKINGS) -> BookingFeed:
    feed = BookingFeed(lambda: bookings, sleep=lambda _: None, timezone=BANGKOK)
    feed.load()
    return feed


class TestHistoryView:
    def test_rows_newest_first(self):
        view = HistoryView(loaded_feed(), timezone=BANGKOK)
        rows = view.rows(today=TODAY)
        assert [r.first_name for r in rows] == ["สมหญิง", "สมชาย", "มานะ"]

    def test_rows_filtered(self):
        view = HistoryView(loaded_feed(), timezone=BANGKOK)
        rows = view.rows(VisitFilter(date_range=DateRange.YESTERDAY), today=TODAY)
        assert [r.first_name for r in rows] == ["สมชาย"]

    def test_table(self):
        view = HistoryView(loaded_feed(), timezone=BANGKOK)
        table = format_history_table(view.rows(today=TODAY))
        lines = table.splitlines()
        assert lines[0].startswith("Date")
        assert "15/06/2024" in lines[2]
        assert "คาบ 2" in lines[2]

    def test_empty_table(self):
        assert format_history_table([]) == MESSAGES["no_history"]


class TestDashboardView:
    def test_summary_and_charts(self, tmp_path):
        prefs = PreferencesStore(tmp_path / "prefs.json")
        view = DashboardView(loaded_feed(), prefs, timezone=BANGKOK)

        summary = view.summary(TODAY)
        assert summary.total == 3
        assert summary.peak_time_slot == "คาบ 1"

        charts = view.charts(TODAY)
        assert charts["timeSlots"]["labels"] == ["คาบ 1", "คาบ 2"]
        assert charts["daily"]["labels"][-1] == "15/06/2567"
        assert charts["daily"]["datasets"][0]["data"][-2:] == [1, 1]

    def test_dark_palette(self, tmp_path):
        prefs = PreferencesStore(tmp_path / "prefs.json")
        prefs.set_dark_mode(True)
        view = DashboardView(loaded_feed(), prefs, timezone=BANGKOK)

        dataset = view.charts(TODAY)["symptoms"]["datasets"][0]

        assert dataset["backgroundColor"][0].endswith("0.7)")
        assert dataset["borderColor"][0].endswith(", 1)")

    def test_report_text(self, tmp_path):
        view = DashboardView(loaded_feed(), PreferencesStore(tmp_path / "p.json"), timezone=BANGKOK)
        report = format_dashboard(view.summary(TODAY))
        assert "Total visits:        3" in report
        assert "คาบ 1: 2" in report


def test_light_palette_default():
    feed = loaded_feed()
    payload = chart_payload(build_dashboard(feed.state.records, today=TODAY))
    assert payload["timeSlots"]["datasets"][0]["backgroundColor"][0].endswith("0.8)")


def test_bar_step_size():
    assert bar_step_size(0) == 1
    assert bar_step_size(9) == 1
    assert bar_step_size(40) == 5
    assert bar_step_size(90) == 10
    assert bar_step_size(200) == 20


def test_thai_date():
    assert thai_date(date(2024, 6, 3)) == "03/06/2567"
