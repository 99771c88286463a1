import calendar
import os
import sys

import pytest

# Add project root to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from pulse.logic import reconciliation as rec
from pulse.models import PerformanceRecord

# April 2025: 30 days, Sundays on 6/13/20/27 -> 26 working days
YEAR, MONTH, DAY = 2025, 4, 7

MOCK_RECORDS = [
    # Master plan rows
    PerformanceRecord(department="Sales", team="Achievers", metric="Vonz Tab 10mg 30s", plan=2_600_000),
    PerformanceRecord(department="Sales", team="Achievers", metric="Atoxan 30mg Tab.", plan=260_000),
    PerformanceRecord(department="Sales", team="Achievers", metric="Neet 1mg", plan=7_800),
    PerformanceRecord(department="Sales", team="Passionate", metric="Cyestra Tablet", plan=52_000),
    # Plan of zero is not a master row
    PerformanceRecord(department="Sales", team="Concord", metric="Panadol 500mg", plan=0),
    # Daily actuals
    PerformanceRecord(department="Sales", team="Achievers", metric="Vonz Tab 10mg 30s", actual=40_000, report_date="April 07, 2025"),
    PerformanceRecord(department="Sales", team="Achievers", metric="Atoxan 30mg Tab.", actual=12_000, report_date="Daily sheet - APRIL 07, 2025 (final)"),
    PerformanceRecord(department="Sales", team="Achievers", metric="Neet 1mg", actual=295, report_date="April 07, 2025"),
    PerformanceRecord(department="Sales", team="Passionate", metric="Cyestra Tablet", actual=2_500, report_date="April 07, 2025"),
    PerformanceRecord(department="Sales", team="Achievers", metric="Vonz Tab 10mg 30s", actual=99_000, report_date="April 08, 2025"),
]


# --- Working-day calculator ---

def test_working_days_excludes_sundays():
    assert rec.working_day_count(1, 2025) == 27
    assert rec.working_day_count(2, 2025) == 24
    assert rec.working_day_count(4, 2025) == 26


def test_working_days_matches_sunday_count_for_every_month():
    for year in range(2020, 2031):
        for month in range(1, 13):
            days_in_month = calendar.monthrange(year, month)[1]
            sundays = sum(1 for week in calendar.monthcalendar(year, month) if week[calendar.SUNDAY])
            count = rec.working_day_count(month, year)
            assert count == days_in_month - sundays
            assert count >= 1


def test_working_days_fallback_when_no_day_qualifies():
    assert rec.working_day_count(4, 2025, rest_days=range(7)) == 26


def test_working_days_rejects_invalid_month():
    with pytest.raises(ValueError):
        rec.working_day_count(13, 2025)


# --- Daily target ---

def test_daily_target_rounds_once_per_row():
    assert rec.daily_target(5_000_000, 26) == 192_308
    assert rec.daily_target(2_600_000, 26) == 100_000


def test_daily_target_rounds_half_up():
    assert rec.daily_target(13, 26) == 1
    assert rec.daily_target(39, 26) == 2
    assert rec.daily_target(12, 26) == 0


# --- Daily actual matcher ---

def test_day_pattern_zero_pads_day():
    assert rec.day_pattern(2025, 1, 5) == "January 05, 2025"
    assert rec.day_pattern(2025, 12, 25) == "December 25, 2025"


def test_find_daily_actual_no_dated_record():
    assert rec.find_daily_actual(MOCK_RECORDS, "Cyestra Tablet", YEAR, MONTH, 9) == 0
    assert rec.find_daily_actual(MOCK_RECORDS, "Unknown Product", YEAR, MONTH, DAY) == 0


def test_find_daily_actual_exact_match():
    assert rec.find_daily_actual(MOCK_RECORDS, "Vonz Tab 10mg 30s", YEAR, MONTH, DAY) == 40_000
    assert rec.find_daily_actual(MOCK_RECORDS, "Vonz Tab 10mg 30s", YEAR, MONTH, 8) == 99_000


def test_find_daily_actual_substring_case_insensitive():
    assert rec.find_daily_actual(MOCK_RECORDS, "Atoxan 30mg Tab.", YEAR, MONTH, DAY) == 12_000


def test_find_daily_actual_first_match_wins():
    records = [
        PerformanceRecord(department="Sales", metric="Gaviscon Liquid", actual=10, report_date="April 07, 2025"),
        PerformanceRecord(department="Sales", metric="Gaviscon Liquid", actual=20, report_date="April 07, 2025 (revised)"),
    ]
    assert rec.find_daily_actual(records, "Gaviscon Liquid", YEAR, MONTH, DAY) == 10


def test_find_daily_actual_ignores_malformed_dates():
    records = [PerformanceRecord(department="Sales", metric="Voren Inj", actual=5, report_date="07/04/2025")]
    assert rec.find_daily_actual(records, "Voren Inj", YEAR, MONTH, DAY) == 0


def test_has_report_for_day():
    assert rec.has_report_for_day(MOCK_RECORDS, YEAR, MONTH, DAY)
    assert not rec.has_report_for_day(MOCK_RECORDS, YEAR, MONTH, 9)


# --- Team aggregation ---

def test_master_rows_filters_dated_and_zero_plan():
    masters = rec.master_rows(MOCK_RECORDS, "Achievers")
    assert [m.metric for m in masters] == ["Vonz Tab 10mg 30s", "Atoxan 30mg Tab.", "Neet 1mg"]
    assert rec.master_rows(MOCK_RECORDS, "Concord") == []


def test_team_performance_sums_targets_and_actuals():
    perf = rec.team_performance(MOCK_RECORDS, "Achievers", YEAR, MONTH, DAY)
    assert perf.team == "Achievers"
    assert perf.target == 100_000 + 10_000 + 300
    assert perf.achieved == 40_000 + 12_000 + 295


def test_team_performance_without_master_rows():
    perf = rec.team_performance(MOCK_RECORDS, "Dynamic", YEAR, MONTH, DAY)
    assert (perf.target, perf.achieved) == (0, 0)


# --- Shortfall classifier ---

@pytest.mark.parametrize("shortfall,expected", [
    (60_000, "critical"),
    (51, "critical"),
    (50, "warning"),
    (11, "warning"),
    (10, "minor"),
    (1, "minor"),
    (0, None),
    (-5, None),
])
def test_classify_severity_tiers(shortfall, expected):
    assert rec.classify_severity(shortfall) == expected


def test_classify_severity_custom_thresholds():
    assert rec.classify_severity(30, critical=20, warning=5) == "critical"
    assert rec.classify_severity(6, critical=20, warning=5) == "warning"


def test_vonz_scenario_is_critical():
    records = [
        PerformanceRecord(department="Sales", team="Achievers", metric="Vonz Tab 10mg 30s", plan=2_600_000),
        PerformanceRecord(department="Sales", team="Achievers", metric="Vonz Tab 10mg 30s", actual=40_000, report_date="January 06, 2025"),
    ]
    audit = rec.team_shortfalls(records, "Achievers", 2025, 1, 6, working_days=26)
    assert audit.state == "shortfalls"
    assert len(audit.rows) == 1
    row = audit.rows[0]
    assert row.daily_target == 100_000
    assert row.achieved == 40_000
    assert row.shortfall == 60_000
    assert row.severity == "critical"


def test_team_shortfalls_excludes_met_targets():
    audit = rec.team_shortfalls(MOCK_RECORDS, "Achievers", YEAR, MONTH, DAY)
    by_metric = {r.metric: r for r in audit.rows}
    assert set(by_metric) == {"Vonz Tab 10mg 30s", "Neet 1mg"}
    assert by_metric["Neet 1mg"].shortfall == 5
    assert by_metric["Neet 1mg"].severity == "minor"


def test_team_shortfalls_all_achieved_vs_no_targets():
    achieved = rec.team_shortfalls(MOCK_RECORDS, "Passionate", YEAR, MONTH, DAY)
    assert achieved.state == "all-achieved"
    assert achieved.rows == []

    missing = rec.team_shortfalls(MOCK_RECORDS, "Concord", YEAR, MONTH, DAY)
    assert missing.state == "no-targets"
    assert missing.rows == []


# --- Daily audit & calendar ---

@pytest.mark.parametrize("day", [6, 31, 0])
def test_check_audit_day_rejects_rest_and_out_of_month_days(day):
    with pytest.raises(ValueError):
        rec.check_audit_day(YEAR, MONTH, day)


def test_check_audit_day_accepts_working_days():
    rec.check_audit_day(YEAR, MONTH, DAY)
    rec.check_audit_day(YEAR, MONTH, 30)
    with pytest.raises(ValueError):
        rec.check_audit_day(YEAR, 13, 1)


def test_daily_audit_covers_every_team_in_order():
    audit = rec.daily_audit(MOCK_RECORDS, YEAR, MONTH, DAY)
    assert audit.working_days == 26
    assert audit.day_pattern == "April 07, 2025"
    assert [p.team for p in audit.performance] == ["Achievers", "Passionate", "Concord", "Dynamic"]
    assert [s.state for s in audit.teams] == ["shortfalls", "all-achieved", "no-targets", "no-targets"]


def test_month_calendar_layout():
    cal = rec.month_calendar(MOCK_RECORDS, YEAR, MONTH)
    assert cal.month_name == "April"
    assert cal.working_days == 26
    # April 1 2025 is a Tuesday: Sunday-first grid starts with two blanks
    assert cal.leading_blanks == 2
    assert len(cal.days) == 30
    assert cal.days[5].is_rest_day and cal.days[5].weekday == "SUN"
    assert [d.day for d in cal.days if d.has_data] == [7, 8]
    assert (cal.previous.year, cal.previous.month) == (2025, 3)
    assert (cal.next.year, cal.next.month) == (2025, 5)


def test_shift_month_rolls_year():
    assert rec.shift_month(2025, 12, 1) == (2026, 1)
    assert rec.shift_month(2025, 1, -1) == (2024, 12)
    assert rec.shift_month(2025, 6, -18) == (2023, 12)
