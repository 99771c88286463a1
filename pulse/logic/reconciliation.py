"""
Plan vs. actual reconciliation for the daily sales audit.

Every function here is pure: the record snapshot, the selected month and the
focused day are passed in on each call and nothing is cached between calls.
"""
import calendar
import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence, Tuple

from .. import config
from ..models import (
    CalendarDay,
    DailyAudit,
    MonthCalendar,
    MonthRef,
    PerformanceRecord,
    ShortfallRow,
    TeamPerformance,
    TeamShortfallAudit,
)
from .team_constants import MONTH_NAMES, REST_DAYS, TEAMS

logger = logging.getLogger("Reconciliation")

WEEKDAY_LABELS = ["MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN"]


def _check_month(month: int):
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be in 1..12, got {month}")


def working_day_count(month: int, year: int, rest_days: Sequence[int] = REST_DAYS) -> int:
    """Days in the month that are not rest days (Sundays by default)."""
    _check_month(month)
    days_in_month = calendar.monthrange(year, month)[1]

    count = 0
    for day in range(1, days_in_month + 1):
        if date(year, month, day).weekday() not in rest_days:
            count += 1

    if count == 0:
        logger.warning(f"No working days in {year}-{month:02d}; using default of {config.DEFAULT_WORKING_DAYS}")
        return config.DEFAULT_WORKING_DAYS
    return count


def daily_target(plan: int, working_days: int) -> int:
    """
    Prorates a monthly plan to one working day.

    Rounds half-up (half away from zero for the non-negative plans used here)
    on exact decimal arithmetic, once per row.
    """
    if working_days <= 0:
        working_days = config.DEFAULT_WORKING_DAYS
    quotient = Decimal(plan) / Decimal(working_days)
    return int(quotient.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def day_pattern(year: int, month: int, day: int) -> str:
    """Date token embedded in report dates, e.g. 'January 05, 2025'."""
    _check_month(month)
    return f"{MONTH_NAMES[month - 1]} {day:02d}, {year}"


def check_audit_day(year: int, month: int, day: int):
    """Raises ValueError unless the day is a working day of the given month."""
    _check_month(month)
    days_in_month = calendar.monthrange(year, month)[1]
    if not 1 <= day <= days_in_month:
        raise ValueError(f"Day {day} is outside {year}-{month:02d}")
    if date(year, month, day).weekday() in REST_DAYS:
        raise ValueError(f"{day_pattern(year, month, day)} is not a working day")


def _matches_day(record: PerformanceRecord, token: str) -> bool:
    return bool(record.report_date) and token in record.report_date.lower()


def find_daily_actual(records: Iterable[PerformanceRecord], metric: str, year: int, month: int, day: int) -> int:
    """
    Actual figure reported for a metric on a given day, or 0 if no report exists.

    Report dates are free text, so the day token only has to appear somewhere in
    them (case-insensitive). The first matching record in store order wins.
    """
    token = day_pattern(year, month, day).lower()
    for r in records:
        if r.metric == metric and _matches_day(r, token):
            return r.actual
    return 0


def has_report_for_day(records: Iterable[PerformanceRecord], year: int, month: int, day: int) -> bool:
    token = day_pattern(year, month, day).lower()
    return any(_matches_day(r, token) for r in records)


def master_rows(records: Iterable[PerformanceRecord], team: str) -> List[PerformanceRecord]:
    return [r for r in records if r.team == team and r.plan > 0 and not r.report_date]


def _resolve_rows(
    records: Sequence[PerformanceRecord],
    team: str,
    year: int,
    month: int,
    day: int,
    working_days: Optional[int],
) -> Tuple[List[PerformanceRecord], List[Tuple[PerformanceRecord, int, int]]]:
    if working_days is None:
        working_days = working_day_count(month, year)
    masters = master_rows(records, team)
    resolved = [
        (r, daily_target(r.plan, working_days), find_daily_actual(records, r.metric, year, month, day))
        for r in masters
    ]
    return masters, resolved


def team_performance(
    records: Sequence[PerformanceRecord],
    team: str,
    year: int,
    month: int,
    day: int,
    working_days: Optional[int] = None,
) -> TeamPerformance:
    """Summed daily target and achieved figure across a team's master rows."""
    _, resolved = _resolve_rows(records, team, year, month, day, working_days)
    return TeamPerformance(
        team=team,
        target=sum(target for _, target, _ in resolved),
        achieved=sum(achieved for _, _, achieved in resolved),
    )


def classify_severity(
    shortfall: int,
    critical: int = None,
    warning: int = None,
) -> Optional[str]:
    """Severity tier for a shortfall; None when the target was met."""
    critical = config.CRITICAL_SHORTFALL if critical is None else critical
    warning = config.WARNING_SHORTFALL if warning is None else warning

    if shortfall <= 0:
        return None
    if shortfall > critical:
        return "critical"
    if shortfall > warning:
        return "warning"
    return "minor"


def team_shortfalls(
    records: Sequence[PerformanceRecord],
    team: str,
    year: int,
    month: int,
    day: int,
    working_days: Optional[int] = None,
) -> TeamShortfallAudit:
    """
    Master rows that fell short of their daily target on the focused day.

    A team with no master rows reports 'no-targets', which is deliberately
    different from 'all-achieved'.
    """
    masters, resolved = _resolve_rows(records, team, year, month, day, working_days)
    if not masters:
        return TeamShortfallAudit(team=team, state="no-targets")

    rows = []
    for r, target, achieved in resolved:
        shortfall = target - achieved
        severity = classify_severity(shortfall)
        if severity is None:
            continue
        rows.append(ShortfallRow(
            metric=r.metric,
            daily_target=target,
            achieved=achieved,
            shortfall=shortfall,
            severity=severity,
        ))

    if not rows:
        return TeamShortfallAudit(team=team, state="all-achieved")
    return TeamShortfallAudit(team=team, state="shortfalls", rows=rows)


def daily_audit(
    records: Sequence[PerformanceRecord],
    year: int,
    month: int,
    day: int,
    teams: Sequence[str] = TEAMS,
) -> DailyAudit:
    """Full shortfall audit for one focused day across every team."""
    records = list(records)
    working_days = working_day_count(month, year)
    performance = [team_performance(records, t, year, month, day, working_days) for t in teams]
    sections = [team_shortfalls(records, t, year, month, day, working_days) for t in teams]

    flagged = sum(len(s.rows) for s in sections)
    logger.info(f"Audit {day_pattern(year, month, day)}: {len(teams)} teams, {flagged} shortfall rows ({working_days} working days)")

    return DailyAudit(
        year=year,
        month=month,
        day=day,
        day_pattern=day_pattern(year, month, day),
        working_days=working_days,
        performance=performance,
        teams=sections,
    )


def shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    """Moves a (year, month) pair by offset months, rolling the year over."""
    _check_month(month)
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def month_calendar(records: Sequence[PerformanceRecord], year: int, month: int) -> MonthCalendar:
    """Sunday-first calendar grid for a month with rest-day and data-synced flags."""
    _check_month(month)
    records = list(records)
    first_weekday, days_in_month = calendar.monthrange(year, month)

    days = []
    for d in range(1, days_in_month + 1):
        weekday = date(year, month, d).weekday()
        days.append(CalendarDay(
            day=d,
            weekday=WEEKDAY_LABELS[weekday],
            is_rest_day=weekday in REST_DAYS,
            has_data=has_report_for_day(records, year, month, d),
        ))

    prev_year, prev_month = shift_month(year, month, -1)
    next_year, next_month = shift_month(year, month, 1)

    return MonthCalendar(
        year=year,
        month=month,
        month_name=MONTH_NAMES[month - 1],
        working_days=working_day_count(month, year),
        # monthrange() is Monday-based; the grid starts on Sunday
        leading_blanks=(first_weekday + 1) % 7,
        days=days,
        previous=MonthRef(year=prev_year, month=prev_month),
        next=MonthRef(year=next_year, month=next_month),
    )
