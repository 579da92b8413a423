"""
FastAPI dependencies: the shared record source and the reference day.

Tests replace both through ``app.dependency_overrides``.
"""

from __future__ import annotations

import logging
import threading
from datetime import date

from bbb_dashboard.services.record_source import RecordSource, WarehouseRecordSource
from bbb_dashboard.services.workbook_ingestion import WorkbookRecordSource
from bbb_dashboard.utils.config import DATA_BACKEND, WORKBOOK_PATH

logger = logging.getLogger(__name__)

_source: RecordSource | None = None
_source_lock = threading.Lock()


def build_record_source(backend: str = DATA_BACKEND) -> RecordSource:
    """Create the record source selected by *backend* (``workbook`` or ``warehouse``)."""
    if backend == "warehouse":
        logger.info("Using Databricks SQL warehouse record source")
        return WarehouseRecordSource()
    if backend == "workbook":
        logger.info("Using workbook record source at %s", WORKBOOK_PATH)
        return WorkbookRecordSource.from_path(WORKBOOK_PATH)
    raise ValueError(f"Unknown DATA_BACKEND '{backend}'. Expected 'workbook' or 'warehouse'")


def get_record_source() -> RecordSource:
    """Return the process-wide record source (created on first call)."""
    global _source
    if _source is None:
        with _source_lock:
            if _source is None:
                _source = build_record_source()
    return _source


def get_today() -> date:
    """Reference day for calendar windows."""
    return date.today()
