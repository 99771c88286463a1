import json
import logging
from textwrap import dedent
from typing import Iterable, List, Optional

from .. import config
from ..logic.team_constants import SALES_DEPARTMENT
from ..models import MasterAuditSummary, PerformanceRecord, SummaryOutcome, SummaryResult

logger = logging.getLogger("ExecutiveAuditor")

FALLBACK_SUMMARY = SummaryResult(
    executive_summary="Performance brief unavailable. Check 'Sales' tab data in source files.",
    trend_analysis="Insufficient trend data.",
    actions=["Verify Sales sheet formatting", "Ensure Target/Actual columns are populated"],
)

FALLBACK_ALERT = MasterAuditSummary(
    whatsapp_message="Board Alert: Sales audit ready for review in the command portal.",
)


def _serialize(records: List[PerformanceRecord], indent: Optional[int] = 2) -> str:
    return json.dumps([r.model_dump(by_alias=True, exclude_none=True) for r in records], indent=indent)


def sales_records(records: Iterable[PerformanceRecord]) -> List[PerformanceRecord]:
    return [r for r in records if r.department == SALES_DEPARTMENT]


def build_summary_prompt(records: Iterable[PerformanceRecord], previous_summary: Optional[str] = None) -> str:
    previous = ""
    if previous_summary:
        previous = f"\nPREVIOUS BRIEF (compare against it for the trend):\n{previous_summary}\n"

    return dedent("""
        You are an AI Executive Auditor for the owner of SWISS Pharmaceutical.
        Analyze the pharmaceutical sales data provided.

        CONSTRAINTS:
        - The summary must be readable in under 5 minutes.
        - Focus exclusively on 'Sales' department performance.
        - Identify gaps between 'Plan' and 'Actual'.

        GOAL:
        1. Executive Brief: A concise 2-3 sentence overview of the current status.
        2. Trend Analysis: Identify if performance is improving or declining.
        3. Board Directives: 3-4 specific, high-impact action items for management.

        OUTPUT FORMAT (JSON object only, no commentary):
        {{"executiveSummary": "...", "trendAnalysis": "...", "actions": ["...", "..."]}}
        {previous}
        Data:
        {data}
        """).format(previous=previous, data=_serialize(sales_records(records)))


def build_alert_prompt(records: Iterable[PerformanceRecord]) -> str:
    gaps = [r for r in sales_records(records) if r.status != "on-track"]
    return dedent("""
        Summarize sales performance gaps for a high-priority WhatsApp message to the Board.
        Keep it extremely concise and readable in 30 seconds.

        OUTPUT FORMAT (JSON object only, no commentary):
        {{"whatsappMessage": "..."}}

        Data: {data}
        """).format(data=_serialize(gaps, indent=None))


def extract_json(text: str):
    """Parses a JSON payload, tolerating markdown code fences around it."""
    text = (text or "").strip()
    if "```" in text:
        text = text.split("```")[1].strip()
    if text.startswith("json"):
        text = text[4:].strip()
    return json.loads(text or "{}")


class ExecutiveAuditor:
    """
    Client for the hosted model that writes the board brief and the WhatsApp alert.

    Both calls are single requests with no retry; any failure is logged and the
    static fallback is returned in a 'failed' outcome instead of raising.
    """

    def __init__(self, client=None, model: str = None, max_tokens: int = None):
        self._client = client
        self.model = model or config.AI_MODEL
        self.max_tokens = max_tokens or config.AI_MAX_TOKENS

    @property
    def client(self):
        if self._client is None:
            from anthropic import AsyncAnthropic
            self._client = AsyncAnthropic()
        return self._client

    async def _complete(self, prompt: str) -> str:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=config.AI_TEMPERATURE,
            messages=[{"role": "user", "content": prompt}],
        )
        return response.content[0].text

    async def summarize_operations(
        self,
        records: Iterable[PerformanceRecord],
        previous_summary: Optional[str] = None,
    ) -> SummaryOutcome:
        records = list(records)
        logger.info(f"Requesting executive brief for {len(sales_records(records))} Sales records")
        try:
            text = await self._complete(build_summary_prompt(records, previous_summary))
            result = SummaryResult.model_validate(extract_json(text))
            return SummaryOutcome(status="complete", result=result)
        except Exception as e:
            logger.error(f"Executive brief failed: {e}")
            return SummaryOutcome(status="failed", result=FALLBACK_SUMMARY, error=str(e))

    async def generate_master_audit_summary(self, records: Iterable[PerformanceRecord]) -> SummaryOutcome:
        try:
            text = await self._complete(build_alert_prompt(records))
            result = MasterAuditSummary.model_validate(extract_json(text))
            return SummaryOutcome(status="complete", result=result)
        except Exception as e:
            logger.error(f"Board alert failed: {e}")
            return SummaryOutcome(status="failed", result=FALLBACK_ALERT, error=str(e))
