import logging
import os
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

import pandas as pd
from openpyxl import load_workbook
from pydantic import ValidationError

from ..logic.reconciliation import day_pattern
from ..logic.team_constants import DEPARTMENTS, SALES_DEPARTMENT, team_for_product
from ..models import PerformanceRecord

logger = logging.getLogger("RecordImporter")

# Accepted spellings per field (upper-cased, underscores as spaces)
COLUMN_ALIASES = {
    "department": ["DEPARTMENT", "DEPT"],
    "team": ["TEAM", "GROUP", "SALES TEAM"],
    "metric": ["METRIC", "PRODUCT", "PRODUCT NAME", "DESCRIPTION"],
    "plan": ["PLAN", "TARGET", "MONTHLY TARGET"],
    "actual": ["ACTUAL", "ACHIEVED", "ACHIEVEMENT"],
    "variance": ["VARIANCE", "GAP"],
    "unit": ["UNIT", "UNITS"],
    "status": ["STATUS"],
    "reasoning": ["REASONING", "NOTES", "REMARKS"],
    "report_date": ["REPORT DATE", "REPORTDATE", "DATE"],
}

HEADER_SCAN_ROWS = 10


class RecordImportError(Exception):
    """Raised when a sheet cannot be read into performance records."""


def _normalize_header(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().upper().replace("_", " ")


def map_columns(headers: List[Any]) -> Dict[str, int]:
    """Field name -> column index for every recognised header."""
    normalized = [_normalize_header(h) for h in headers]
    col_map = {}
    for field, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in normalized:
                col_map[field] = normalized.index(alias)
                break
    return col_map


def _safe_int(value) -> int:
    """Whole-unit quantity from a cell, rounded half-up like the daily targets."""
    try:
        number = Decimal(str(value).replace(",", "").strip())
        return int(number.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError):
        return 0


def _format_report_date(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return day_pattern(value.year, value.month, value.day)
    text = str(value).strip()
    return text or None


def _text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def row_to_record(row: List[Any], col_map: Dict[str, int], default_department: str) -> Optional[PerformanceRecord]:
    def cell(field):
        idx = col_map.get(field)
        if idx is None or idx >= len(row):
            return None
        return row[idx]

    metric = _text(cell("metric"))
    if not metric:
        return None

    plan = _safe_int(cell("plan"))
    actual = _safe_int(cell("actual"))
    variance = cell("variance")
    team = _text(cell("team")) or team_for_product(metric)

    try:
        return PerformanceRecord(
            department=_text(cell("department")) or default_department,
            team=team,
            metric=metric,
            plan=plan,
            actual=actual,
            variance=_safe_int(variance) if _text(variance) is not None else None,
            unit=_text(cell("unit")),
            report_date=_format_report_date(cell("report_date")),
            status=_text(cell("status")) or "on-track",
            reasoning=_text(cell("reasoning")) or "",
        )
    except ValidationError as e:
        logger.warning(f"Skipping invalid row for '{metric}': {e.errors()[0]['msg']}")
        return None


def _find_header_row(rows: List[List[Any]]) -> int:
    for idx, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        if "metric" in map_columns(list(row)):
            return idx
    raise RecordImportError("No header row with a Metric/Product column found.")


def _read_excel_rows(file_path: str, sheet_name: Optional[str]):
    wb = load_workbook(file_path, read_only=True, data_only=True)
    try:
        if sheet_name:
            if sheet_name not in wb.sheetnames:
                raise RecordImportError(f"Sheet '{sheet_name}' not found in {os.path.basename(file_path)}")
            ws = wb[sheet_name]
        else:
            ws = wb.active
        return ws.title, [list(r) for r in ws.iter_rows(values_only=True)]
    finally:
        wb.close()


def _read_legacy_excel_rows(file_path: str, sheet_name: Optional[str]):
    # openpyxl cannot open BIFF (.xls) workbooks
    with pd.ExcelFile(file_path, engine="xlrd") as xls:
        title = sheet_name or xls.sheet_names[0]
        if title not in xls.sheet_names:
            raise RecordImportError(f"Sheet '{title}' not found in {os.path.basename(file_path)}")
        df = pd.read_excel(xls, sheet_name=title, header=None)
    df = df.astype(object).where(pd.notna(df), None)
    return title, df.values.tolist()


def _read_csv_rows(file_path: str):
    df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
    return [list(df.columns)] + df.values.tolist()


def load_records(file_path: str, sheet_name: Optional[str] = None, department: Optional[str] = None) -> List[PerformanceRecord]:
    """
    Reads plan and daily-report rows from an Excel or CSV sheet.

    The department defaults to the sheet's tab name when that is a known
    department, else Sales. Rows without a product name are skipped.
    """
    logger.info(f"Importing performance records from: {file_path}")
    ext = os.path.splitext(file_path)[1].lower()
    sheet_title = None

    try:
        if ext in (".xlsx", ".xlsm"):
            sheet_title, rows = _read_excel_rows(file_path, sheet_name)
        elif ext == ".xls":
            sheet_title, rows = _read_legacy_excel_rows(file_path, sheet_name)
        elif ext == ".csv":
            rows = _read_csv_rows(file_path)
        else:
            raise RecordImportError(f"Unsupported file type: {ext or file_path}")
    except RecordImportError:
        raise
    except Exception as e:
        logger.error(f"Error reading file: {e}")
        raise RecordImportError(f"Could not read {os.path.basename(file_path)}: {e}") from e

    if department is None:
        department = sheet_title if sheet_title in DEPARTMENTS else SALES_DEPARTMENT

    header_idx = _find_header_row(rows)
    col_map = map_columns(list(rows[header_idx]))

    records = []
    for row in rows[header_idx + 1:]:
        record = row_to_record(list(row), col_map, department)
        if record is not None:
            records.append(record)

    masters = sum(1 for r in records if r.is_master)
    logger.info(f"Imported {len(records)} records ({masters} master plan rows, {len(records) - masters} other).")
    return records
