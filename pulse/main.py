"""
Pulse command line.

Usage:
    pulse serve --port 8000
    pulse audit sales.xlsx --year 2025 --month 1 --day 6 --export audit.xlsx
    pulse calendar sales.xlsx --year 2025 --month 1
    pulse summarize sales.xlsx --alert
"""
import argparse
import asyncio
import logging
import sys

from . import config
from .data.importer import RecordImportError, load_records
from .llm.summarizer import ExecutiveAuditor
from .logic import reconciliation
from .tools.generate_audit_workbook import export_daily_audit

# Configure Logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger("Pulse")

SEVERITY_MARKS = {"critical": "!!", "warning": "! ", "minor": "  "}


def print_daily_audit(audit):
    print(f"\n{'='*70}")
    print(f"SHORTFALL AUDIT - {audit.day_pattern}  (Target Distribution: {audit.working_days} Days)")
    print(f"{'='*70}")
    print(f"{'Team':<15} {'Target':>14} {'Achieved':>14} {'Gap':>14}")
    print("-" * 60)
    for p in audit.performance:
        print(f"{p.team:<15} {p.target:>14,} {p.achieved:>14,} {p.target - p.achieved:>14,}")

    for section in audit.teams:
        print(f"\n{section.team.upper()} PERFORMANCE STATUS")
        if section.state == "no-targets":
            print(f"  NO TARGETS DEFINED FOR {section.team}")
            continue
        if section.state == "all-achieved":
            print(f"  ALL TARGETS ACHIEVED FOR {section.team}")
            continue
        for r in section.rows:
            print(f"  {SEVERITY_MARKS[r.severity]} {r.metric:<40} {r.daily_target:>10,} {r.achieved:>10,} {-r.shortfall:>10,}")


def print_month_calendar(cal):
    print(f"\n{cal.month_name} {cal.year}  (Target Distribution: {cal.working_days} Days)")
    print(" ".join(f"{d:>4}" for d in ["SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT"]))
    cells = ["    "] * cal.leading_blanks
    for d in cal.days:
        mark = "*" if d.has_data and not d.is_rest_day else " "
        cells.append(f"{d.day:>3}{mark}")
    for i in range(0, len(cells), 7):
        print(" ".join(cells[i:i + 7]))
    print("(* = data synced)")


def _year(value):
    year = int(value)
    if not 1 <= year <= 9999:
        raise argparse.ArgumentTypeError(f"year must be in 1-9999, got {year}")
    return year


def _load(path, sheet):
    try:
        return load_records(path, sheet_name=sheet)
    except RecordImportError as e:
        logger.error(str(e))
        sys.exit(1)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Pulse - plan vs actual reconciliation and board audit")
    sub = parser.add_subparsers(dest="command", required=True)

    p_serve = sub.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", type=str, default=config.HOST)
    p_serve.add_argument("--port", type=int, default=config.PORT)

    p_audit = sub.add_parser("audit", help="Daily shortfall audit for a sheet")
    p_audit.add_argument("file", help="Excel or CSV sheet with plan and daily rows")
    p_audit.add_argument("--sheet", type=str, default=None, help="Worksheet name (default: active sheet)")
    p_audit.add_argument("--year", type=_year, required=True)
    p_audit.add_argument("--month", type=int, required=True, choices=range(1, 13), metavar="1-12")
    p_audit.add_argument("--day", type=int, required=True)
    p_audit.add_argument("--export", type=str, default=None, help="Write the audit to this Excel file")

    p_cal = sub.add_parser("calendar", help="Month calendar with data-synced days")
    p_cal.add_argument("file")
    p_cal.add_argument("--sheet", type=str, default=None)
    p_cal.add_argument("--year", type=_year, required=True)
    p_cal.add_argument("--month", type=int, required=True, choices=range(1, 13), metavar="1-12")

    p_sum = sub.add_parser("summarize", help="AI executive brief for the Sales rows")
    p_sum.add_argument("file")
    p_sum.add_argument("--sheet", type=str, default=None)
    p_sum.add_argument("--alert", action="store_true", help="Condensed WhatsApp alert instead of the full brief")

    args = parser.parse_args(argv)

    if args.command == "audit":
        try:
            reconciliation.check_audit_day(args.year, args.month, args.day)
        except ValueError as e:
            logger.error(str(e))
            sys.exit(1)

    if args.command == "serve":
        from .api.server import run
        run(args.host, args.port)
        return 0

    records = _load(args.file, args.sheet)

    if args.command == "audit":
        audit = reconciliation.daily_audit(records, args.year, args.month, args.day)
        print_daily_audit(audit)
        if args.export:
            export_daily_audit(audit, args.export)
            print(f"\n[OK] Audit exported to: {args.export}")

    elif args.command == "calendar":
        print_month_calendar(reconciliation.month_calendar(records, args.year, args.month))

    elif args.command == "summarize":
        auditor = ExecutiveAuditor()
        if args.alert:
            outcome = asyncio.run(auditor.generate_master_audit_summary(records))
            print(outcome.result.whatsapp_message)
        else:
            outcome = asyncio.run(auditor.summarize_operations(records))
            brief = outcome.result
            print(f'\n"{brief.executive_summary}"\n')
            print(f"Trend Insight: {brief.trend_analysis}\n")
            print("Board Directives:")
            for i, action in enumerate(brief.actions, 1):
                print(f"  {i}. {action}")
        if not outcome.ok:
            logger.warning("AI service unavailable; fallback summary shown.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
