import logging
from typing import Iterable, Tuple

from ..models import PerformanceRecord

logger = logging.getLogger("RecordStore")

INITIAL_DATA = [
    PerformanceRecord(
        department="Production",
        metric="Sample Tablet Compression",
        plan=5_000_000,
        actual=4_200_000,
        variance=-800_000,
        unit="Tabs",
        status="critical",
        reasoning="Initial system load. Use Data Entry to update.",
    ),
]


class RecordStore:
    """
    Process-wide list of performance records.

    The collection is copy-on-write: replace() builds a new tuple and swaps the
    reference in one assignment, so a reader holding a snapshot never sees a
    half-applied update.
    """

    def __init__(self, records: Iterable[PerformanceRecord] = None):
        self._records: Tuple[PerformanceRecord, ...] = tuple(INITIAL_DATA if records is None else records)

    def snapshot(self) -> Tuple[PerformanceRecord, ...]:
        return self._records

    def replace(self, records: Iterable[PerformanceRecord]) -> Tuple[PerformanceRecord, ...]:
        new_records = tuple(records)
        self._records = new_records
        logger.info(f"Record store replaced: {len(new_records)} records.")
        return new_records

    def __len__(self):
        return len(self._records)
