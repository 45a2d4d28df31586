"""Filtering, sorting and dashboard aggregation."""

from datetime import date, timedelta

import pytest

from src.nurse_visits.catalog import NO_DATA, NOT_SPECIFIED, OTHER_SYMPTOM, SYMPTOM_CATEGORIES
from src.nurse_visits.models import VisitRecord
from src.nurse_visits.pipeline import (
    DateRange,
    VisitFilter,
    average_daily,
    build_dashboard,
    daily_counts,
    filter_visits,
    growth_rate,
    sort_visits,
)

TODAY = date(2024, 6, 15)


def visit(days_ago: int | None = 0, **fields) -> VisitRecord:
    record = VisitRecord(**fields)
    if days_ago is not None:
        record.visit_date = TODAY - timedelta(days=days_ago)
    return record


class TestFilterVisits:
    def test_empty_filter_keeps_everything(self):
        records = [visit(0), visit(None), visit(400)]
        assert filter_visits(records, VisitFilter(), today=TODAY) == records

    def test_search_is_case_insensitive(self):
        records = [visit(treatment="Paracetamol"), visit(treatment="rest")]
        result = filter_visits(records, VisitFilter(search="PARA"), today=TODAY)
        assert result == [records[0]]

    def test_search_matches_period_label(self):
        records = [visit(time_slot="08:30-09:30"), visit(time_slot="09:30-10:30")]
        result = filter_visits(records, VisitFilter(search="คาบ 1"), today=TODAY)
        assert result == [records[0]]

    def test_time_slot_filter_accepts_value_or_label(self):
        records = [visit(time_slot="08:30-09:30"), visit(time_slot="09:30-10:30")]
        by_label = filter_visits(records, VisitFilter(time_slots=frozenset({"คาบ 2"})), today=TODAY)
        by_value = filter_visits(
            records, VisitFilter(time_slots=frozenset({"09:30-10:30"})), today=TODAY
        )
        assert by_label == by_value == [records[1]]

    @pytest.mark.parametrize(
        "date_range, days_ago",
        [
            (DateRange.TODAY, 0),
            (DateRange.YESTERDAY, 1),
            (DateRange.LAST_2_3_DAYS, 3),
            (DateRange.LAST_WEEK, 7),
            (DateRange.LAST_MONTH, 30),
            (DateRange.LAST_YEAR, 365),
        ],
    )
    def test_each_day_falls_in_exactly_one_bucket(self, date_range, days_ago):
        record = visit(days_ago)
        hits = [
            r for r in DateRange
            if r is not DateRange.ALL
            and filter_visits([record], VisitFilter(date_range=r), today=TODAY)
        ]
        assert hits == [date_range]

    def test_undated_records_only_match_all(self):
        record = visit(None)
        for date_range in DateRange:
            matched = filter_visits([record], VisitFilter(date_range=date_range), today=TODAY)
            assert bool(matched) is (date_range is DateRange.ALL)

    def test_conditions_combine_with_and(self):
        records = [
            visit(0, symptoms="ไข้", time_slot="08:30-09:30"),
            visit(0, symptoms="ไข้", time_slot="09:30-10:30"),
            visit(5, symptoms="ไข้", time_slot="08:30-09:30"),
        ]
        visit_filter = VisitFilter(
            search="ไข้", time_slots=frozenset({"คาบ 1"}), date_range=DateRange.TODAY
        )
        assert filter_visits(records, visit_filter, today=TODAY) == [records[0]]


class TestSortVisits:
    def test_newest_first_by_default(self):
        records = [visit(3), visit(0), visit(1)]
        assert [r.visit_date for r in sort_visits(records)] == [
            TODAY,
            TODAY - timedelta(days=1),
            TODAY - timedelta(days=3),
        ]

    def test_ascending(self):
        records = [visit(0), visit(3)]
        assert sort_visits(records, descending=False) == [records[1], records[0]]

    def test_undated_record_between_dated_ones(self):
        old, undated, new = visit(3, first_name="old"), visit(None, first_name="undated"), visit(0, first_name="new")
        assert [r.first_name for r in sort_visits([old, undated, new])] == ["new", "undated", "old"]
        assert [r.first_name for r in sort_visits([new, undated, old], descending=False)] == [
            "old",
            "undated",
            "new",
        ]

    def test_undated_records_keep_their_positions(self):
        records = [visit(None, first_name="a"), visit(1), visit(5), visit(None, first_name="b"), visit(0)]
        result = sort_visits(records)
        assert result[0].first_name == "a"
        assert result[3].first_name == "b"
        assert [r.visit_date for r in result if r.visit_date] == [
            TODAY,
            TODAY - timedelta(days=1),
            TODAY - timedelta(days=5),
        ]

    def test_does_not_mutate_input(self):
        records = [visit(3), visit(0)]
        sort_visits(records)
        assert records[0].visit_date == TODAY - timedelta(days=3)


class TestDashboard:
    def test_empty_list(self):
        summary = build_dashboard([], today=TODAY)
        assert summary.total == 0
        assert summary.peak_time_slot == NOT_SPECIFIED
        assert summary.peak_time_slot_count == 0
        assert summary.most_common_symptom == NO_DATA
        assert summary.growth_rate == 0
        assert summary.average_daily == 0
        assert [d.count for d in summary.daily_counts] == [0] * 7

    def test_counts_cover_every_record(self):
        records = [
            visit(0, time_slot="08:30-09:30", symptoms="ปวดหัว"),
            visit(1, time_slot="08:30-09:30", symptoms="มีไข้"),
            visit(None, symptoms="ง่วงนอน"),
        ]
        summary = build_dashboard(records, today=TODAY)
        assert summary.total == 3
        assert sum(summary.time_slot_counts.values()) == 3
        assert sum(summary.symptom_counts.values()) == 3
        assert sum(summary.symptom_chart.values()) == 3
        assert summary.time_slot_counts == {"คาบ 1": 2, NOT_SPECIFIED: 1}
        assert summary.symptom_counts["ง่วงนอน"] == 1
        assert summary.symptom_chart[OTHER_SYMPTOM] == 1
        assert list(summary.symptom_chart) == list(SYMPTOM_CATEGORIES)

    def test_peak_slot_prefers_a_real_period(self):
        records = [visit(0), visit(0), visit(0, time_slot="10:30-11:30")]
        summary = build_dashboard(records, today=TODAY)
        assert summary.peak_time_slot == "คาบ 3"
        assert summary.peak_time_slot_count == 1

    def test_ties_go_to_first_seen(self):
        records = [
            visit(0, time_slot="09:30-10:30", symptoms="ไอ"),
            visit(0, time_slot="08:30-09:30", symptoms="ปวดหัว"),
        ]
        summary = build_dashboard(records, today=TODAY)
        assert summary.peak_time_slot == "คาบ 2"
        assert summary.most_common_symptom == "ไอ/เจ็บคอ"

    def test_daily_counts_window(self):
        records = [visit(0), visit(0), visit(6), visit(7)]
        counts = daily_counts(records, today=TODAY)
        assert counts[0].day == TODAY - timedelta(days=6)
        assert counts[-1].day == TODAY
        assert [c.count for c in counts] == [1, 0, 0, 0, 0, 0, 2]


class TestGrowthRate:
    def test_week_over_week(self):
        records = [visit(1), visit(2), visit(3), visit(10), visit(12)]
        assert growth_rate(records, today=TODAY) == 50.0

    def test_no_previous_week_with_current_records(self):
        assert growth_rate([visit(0)], today=TODAY) == 100.0

    def test_no_records_at_all(self):
        assert growth_rate([], today=TODAY) == 0.0

    def test_older_records_ignored(self):
        assert growth_rate([visit(30)], today=TODAY) == 0.0


def test_average_daily_uses_dated_records():
    records = [visit(0), visit(0), visit(2), visit(None)]
    assert average_daily(records) == 1.5
