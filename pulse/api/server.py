import logging
import os
import shutil
import tempfile
from typing import List, Optional

from fastapi import FastAPI, File, HTTPException, Path, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.background import BackgroundTasks
from fastapi.responses import FileResponse
from pydantic import BaseModel

from .. import config
from ..data.importer import RecordImportError, load_records
from ..llm.summarizer import ExecutiveAuditor
from ..logic import reconciliation
from ..logic.record_store import RecordStore
from ..models import CamelModel, DailyAudit, MonthCalendar, PerformanceRecord, SummaryOutcome
from ..tools.generate_audit_workbook import export_daily_audit

# Configure Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("PULSE-API")

app = FastAPI(title="Pulse Operations API", version="1.0")

# CORS - the dashboard UI is served separately
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class SummaryStatus(BaseModel):
    state: str  # 'idle', 'pending', 'complete', 'failed'
    message: str


class SummaryRequest(CamelModel):
    previous_summary: Optional[str] = None


# Global State (in-memory, single session)
store = RecordStore()
auditor = ExecutiveAuditor()
summary_status = SummaryStatus(state="idle", message="Ready")


def _check_audit_day(year: int, month: int, day: int):
    try:
        reconciliation.check_audit_day(year, month, day)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/")
def read_root():
    return {"status": "Pulse backend is running"}


@app.get("/records", response_model=List[PerformanceRecord])
def get_records():
    return list(store.snapshot())


@app.put("/records")
def replace_records(records: List[PerformanceRecord]):
    store.replace(records)
    return {"count": len(store)}


@app.post("/records/import")
async def import_records(file: UploadFile = File(...), sheet: Optional[str] = None):
    suffix = os.path.splitext(file.filename or "")[1]
    tmp = tempfile.NamedTemporaryFile(suffix=suffix, delete=False)
    try:
        with tmp:
            shutil.copyfileobj(file.file, tmp)
        records = load_records(tmp.name, sheet_name=sheet)
    except RecordImportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    finally:
        os.remove(tmp.name)

    store.replace(records)
    return {"filename": file.filename, "count": len(records)}


@app.get("/calendar/{year}/{month}", response_model=MonthCalendar)
def get_calendar(year: int = Path(..., ge=1, le=9999), month: int = Path(..., ge=1, le=12)):
    return reconciliation.month_calendar(store.snapshot(), year, month)


@app.get("/audit/{year}/{month}/{day}", response_model=DailyAudit)
def get_daily_audit(year: int = Path(..., ge=1, le=9999), month: int = Path(..., ge=1, le=12), day: int = Path(..., ge=1, le=31)):
    _check_audit_day(year, month, day)
    return reconciliation.daily_audit(store.snapshot(), year, month, day)


@app.get("/audit/{year}/{month}/{day}/export")
def export_audit(year: int = Path(..., ge=1, le=9999), month: int = Path(..., ge=1, le=12), day: int = Path(..., ge=1, le=31)):
    _check_audit_day(year, month, day)
    audit = reconciliation.daily_audit(store.snapshot(), year, month, day)

    fd, output_path = tempfile.mkstemp(suffix=".xlsx")
    os.close(fd)
    try:
        export_daily_audit(audit, output_path)
    except Exception as e:
        os.remove(output_path)
        logger.error(f"Audit export failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    cleanup = BackgroundTasks()
    cleanup.add_task(os.remove, output_path)
    return FileResponse(
        path=output_path,
        filename=f"Shortfall_Audit_{year}-{month:02d}-{day:02d}.xlsx",
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        background=cleanup,
    )


def _begin_summary(message: str):
    global summary_status
    if summary_status.state == "pending":
        raise HTTPException(status_code=409, detail="Summary already in progress")
    summary_status = SummaryStatus(state="pending", message=message)


def _finish_summary(outcome: Optional[SummaryOutcome]):
    global summary_status
    if outcome is None:
        summary_status = SummaryStatus(state="failed", message="Summary request did not complete")
    elif outcome.ok:
        summary_status = SummaryStatus(state="complete", message="Summary ready")
    else:
        summary_status = SummaryStatus(state="failed", message=outcome.error or "Fallback summary returned")


@app.get("/summary/status")
def get_summary_status():
    return summary_status


@app.post("/summary", response_model=SummaryOutcome)
async def create_summary(request: Optional[SummaryRequest] = None):
    _begin_summary("Consulting Intelligence Engine...")
    previous = request.previous_summary if request else None
    outcome = None
    try:
        outcome = await auditor.summarize_operations(store.snapshot(), previous_summary=previous)
    finally:
        _finish_summary(outcome)
    return outcome


@app.post("/summary/alert", response_model=SummaryOutcome)
async def create_alert():
    _begin_summary("Drafting board alert...")
    outcome = None
    try:
        outcome = await auditor.generate_master_audit_summary(store.snapshot())
    finally:
        _finish_summary(outcome)
    return outcome


def run(host: str = None, port: int = None):
    import uvicorn
    uvicorn.run(app, host=host or config.HOST, port=port or config.PORT)


if __name__ == "__main__":
    run()
