import logging

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from ..models import DailyAudit

logger = logging.getLogger("AuditWorkbook")

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="0B1120", end_color="0B1120", fill_type="solid")
CRITICAL_FILL = PatternFill(start_color="DC2626", end_color="DC2626", fill_type="solid")
WARNING_FILL = PatternFill(start_color="EAB308", end_color="EAB308", fill_type="solid")
THIN_BORDER = Border(left=Side(style="thin"), right=Side(style="thin"), top=Side(style="thin"), bottom=Side(style="thin"))

STATE_BANNERS = {
    "no-targets": "NO TARGETS DEFINED FOR {team}. Upload a Master Plan for this group to enable auditing.",
    "all-achieved": "ALL TARGETS ACHIEVED FOR {team}",
}


def _write_header(ws, row: int, headers):
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=row, column=col, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = THIN_BORDER


def export_daily_audit(audit: DailyAudit, output_path: str) -> str:
    """Writes the daily shortfall audit to an Excel workbook and returns its path."""
    logger.info(f"Generating audit workbook: {output_path}")
    wb = Workbook()

    # --- SHEET 1: Audit Summary ---
    ws_summary = wb.active
    ws_summary.title = "Audit Summary"
    ws_summary.cell(row=1, column=1, value=f"Shortfall Audit - {audit.day_pattern}").font = Font(bold=True, size=14)
    ws_summary.cell(row=2, column=1, value=f"Target Distribution: {audit.working_days} Days")

    _write_header(ws_summary, 4, ["Team", "Daily Target", "Daily Actual", "Gap"])
    for i, perf in enumerate(audit.performance):
        r = 5 + i
        ws_summary.cell(row=r, column=1, value=perf.team)
        ws_summary.cell(row=r, column=2, value=perf.target)
        ws_summary.cell(row=r, column=3, value=perf.achieved)
        ws_summary.cell(row=r, column=4, value=perf.target - perf.achieved)
        for col in range(1, 5):
            ws_summary.cell(row=r, column=col).border = THIN_BORDER
            if col > 1:
                ws_summary.cell(row=r, column=col).number_format = "#,##0"

    ws_summary.column_dimensions["A"].width = 20
    for letter in "BCD":
        ws_summary.column_dimensions[letter].width = 15

    # --- SHEET 2: Shortfalls, one block per team ---
    ws_gaps = wb.create_sheet("Shortfalls")
    row = 1
    for section in audit.teams:
        ws_gaps.cell(row=row, column=1, value=f"{section.team} PERFORMANCE STATUS").font = Font(bold=True, size=12)
        row += 1

        if section.state in STATE_BANNERS:
            ws_gaps.cell(row=row, column=1, value=STATE_BANNERS[section.state].format(team=section.team))
            row += 2
            continue

        _write_header(ws_gaps, row, ["Product Name", "Target", "Achieved", "Gap", "Severity"])
        row += 1
        for gap in section.rows:
            values = [gap.metric, gap.daily_target, gap.achieved, -gap.shortfall, gap.severity.upper()]
            fill = {"critical": CRITICAL_FILL, "warning": WARNING_FILL}.get(gap.severity)
            for col, value in enumerate(values, 1):
                cell = ws_gaps.cell(row=row, column=col, value=value)
                cell.border = THIN_BORDER
                if fill is not None:
                    cell.fill = fill
                if col in (2, 3, 4):
                    cell.number_format = "#,##0"
            row += 1
        row += 1

    ws_gaps.column_dimensions["A"].width = 40
    for letter in "BCDE":
        ws_gaps.column_dimensions[letter].width = 15

    wb.save(output_path)
    logger.info("Audit workbook saved successfully.")
    return output_path
