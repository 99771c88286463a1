from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every payload that crosses the wire (camelCase keys, snake_case attributes)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PerformanceRecord(CamelModel):
    """
    One plan or actual-performance entry for a metric.

    A row with plan > 0 and no report date is the team's master plan row for
    that metric; a row carrying a report date is one day's actual figure.
    """
    department: str
    team: Optional[str] = None
    metric: str
    plan: int = Field(default=0, ge=0)
    actual: int = Field(default=0, ge=0)
    variance: Optional[int] = None
    unit: Optional[str] = None
    report_date: Optional[str] = None
    status: str = "on-track"
    reasoning: str = ""

    @field_validator("team", "report_date", "unit", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _fill_variance(self):
        if self.variance is None:
            self.variance = self.actual - self.plan
        return self

    @property
    def is_master(self) -> bool:
        return self.plan > 0 and not self.report_date

    @property
    def is_dated(self) -> bool:
        return bool(self.report_date)


# --- Reconciliation results ---

Severity = Literal["critical", "warning", "minor"]
AuditState = Literal["no-targets", "all-achieved", "shortfalls"]


class TeamPerformance(CamelModel):
    team: str
    target: int = 0
    achieved: int = 0


class ShortfallRow(CamelModel):
    metric: str
    daily_target: int
    achieved: int
    shortfall: int
    severity: Severity


class TeamShortfallAudit(CamelModel):
    team: str
    state: AuditState
    rows: List[ShortfallRow] = []


class DailyAudit(CamelModel):
    year: int
    month: int
    day: int
    day_pattern: str
    working_days: int
    performance: List[TeamPerformance]
    teams: List[TeamShortfallAudit]


class CalendarDay(CamelModel):
    day: int
    weekday: str
    is_rest_day: bool
    has_data: bool


class MonthRef(CamelModel):
    year: int
    month: int


class MonthCalendar(CamelModel):
    year: int
    month: int
    month_name: str
    working_days: int
    leading_blanks: int
    days: List[CalendarDay]
    previous: MonthRef
    next: MonthRef


# --- AI summarisation ---

class SummaryResult(CamelModel):
    executive_summary: str
    trend_analysis: str
    actions: List[str]


class MasterAuditSummary(CamelModel):
    whatsapp_message: str


class SummaryOutcome(CamelModel):
    """Either the model's answer (complete) or the static fallback (failed); both are valid output."""
    status: Literal["complete", "failed"]
    result: SummaryResult | MasterAuditSummary
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "complete"
