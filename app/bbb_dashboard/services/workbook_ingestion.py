"""
Workbook ingestion for the in-memory record source.

Reads the bookings / billings / backlog streams from either an Excel
workbook (.xlsx, .xls) with one sheet per stream, or a directory holding
``bookings.csv``, ``billings.csv`` and ``backlog.csv``.  Spreadsheet headers
(``Booking_Date``, ``Billed_Amount``, ``Expected_Shipping_Date``, ...) and
the canonical column names are both accepted.  The data is read once; the
resulting source is a read-only snapshot.
"""

from __future__ import annotations

import logging
import os

import pandas as pd
from pandas.api.types import is_numeric_dtype

from bbb_dashboard.errors import RetrievalError, WorkbookFormatError
from bbb_dashboard.services.record_source import (
    RECORD_COLUMNS,
    FrameRecordSource,
    RecordStream,
    normalize_frame,
    parse_dates,
)

logger = logging.getLogger(__name__)

# Excel's day zero (it wrongly treats 1900 as a leap year)
_EXCEL_EPOCH = "1899-12-30"

_STREAM_ORDER = (RecordStream.BOOKINGS, RecordStream.BILLINGS, RecordStream.BACKLOG)

# Accepted header spellings (compared case-insensitively) per canonical column
_HEADER_ALIASES: dict[RecordStream, dict[str, tuple[str, ...]]] = {
    RecordStream.BOOKINGS: {
        "date": ("booking_date", "date"),
        "amount": ("booking_amount", "amount"),
    },
    RecordStream.BILLINGS: {
        "date": ("billing_date", "date"),
        "amount": ("billed_amount", "billing_amount", "amount"),
    },
    RecordStream.BACKLOG: {
        "date": ("expected_shipping_date", "date"),
        "amount": ("backlog_amount", "amount"),
    },
}
_DIMENSION_ALIASES: dict[str, tuple[str, ...]] = {
    "region": ("region",),
    "product": ("product",),
    "customer": ("customer",),
}


class WorkbookRecordSource(FrameRecordSource):
    """In-memory snapshot of a workbook or CSV directory."""

    name = "workbook"

    @classmethod
    def from_path(cls, path: str) -> WorkbookRecordSource:
        """Load the three streams found at *path*.

        Raises
        ------
        RetrievalError
            If *path* does not exist or cannot be read.
        WorkbookFormatError
            If a sheet / file or a required column is missing.
        """
        frames = read_streams(path)
        source = cls(
            bookings=frames[RecordStream.BOOKINGS],
            billings=frames[RecordStream.BILLINGS],
            backlog=frames[RecordStream.BACKLOG],
        )
        logger.info("Loaded workbook %s: %s", path, source.row_counts())
        return source


def read_streams(path: str) -> dict[RecordStream, pd.DataFrame]:
    """Read and normalise the three raw stream tables found at *path*."""
    if os.path.isdir(path):
        raw = _read_csv_directory(path)
    elif os.path.isfile(path):
        ext = os.path.splitext(path)[1].lower()
        if ext not in (".xlsx", ".xls"):
            raise WorkbookFormatError(
                f"Unsupported workbook type '{ext}'. Accepted: .xlsx, .xls or a CSV directory"
            )
        raw = _read_excel(path)
    else:
        raise RetrievalError(f"Workbook not found: {path}")

    return {stream: _to_records(stream, raw[stream]) for stream in _STREAM_ORDER}


def _read_excel(path: str) -> dict[RecordStream, pd.DataFrame]:
    """Read one sheet per stream.

    Sheets named after the stream (``Bookings``, ``billings``, ...) win;
    otherwise the first three sheets are taken in bookings / billings /
    backlog order.
    """
    try:
        sheets = pd.read_excel(path, sheet_name=None)
    except Exception as exc:
        logger.error("Could not read workbook %s: %s", path, exc)
        raise RetrievalError(f"Failed to read workbook {path}") from exc

    by_name = {str(name).strip().lower(): frame for name, frame in sheets.items()}
    if all(stream.value in by_name for stream in _STREAM_ORDER):
        return {stream: by_name[stream.value] for stream in _STREAM_ORDER}

    ordered = list(sheets.values())
    if len(ordered) < len(_STREAM_ORDER):
        raise WorkbookFormatError(
            f"Workbook {path} has {len(ordered)} sheet(s); expected bookings, billings and backlog"
        )
    return dict(zip(_STREAM_ORDER, ordered))


def _read_csv_directory(path: str) -> dict[RecordStream, pd.DataFrame]:
    raw: dict[RecordStream, pd.DataFrame] = {}
    for stream in _STREAM_ORDER:
        csv_path = os.path.join(path, f"{stream.value}.csv")
        if not os.path.isfile(csv_path):
            raise WorkbookFormatError(f"Missing {stream.value}.csv in {path}")
        try:
            raw[stream] = pd.read_csv(csv_path, encoding="utf-8-sig")
        except Exception as exc:
            logger.error("Could not read %s: %s", csv_path, exc)
            raise RetrievalError(f"Failed to read {csv_path}") from exc
    return raw


def _to_records(stream: RecordStream, frame: pd.DataFrame) -> pd.DataFrame:
    """Rename *frame*'s headers to the canonical columns and coerce dtypes."""
    headers = {str(col).strip().lower(): col for col in frame.columns}
    aliases = {**_DIMENSION_ALIASES, **_HEADER_ALIASES[stream]}

    rename: dict[str, str] = {}
    missing: list[str] = []
    for canonical in RECORD_COLUMNS:
        match = next((headers[a] for a in aliases[canonical] if a in headers), None)
        if match is None:
            missing.append(canonical)
        else:
            rename[match] = canonical
    if missing:
        raise WorkbookFormatError(
            f"{stream.value} sheet is missing column(s): {', '.join(missing)}"
        )

    records = frame[list(rename)].rename(columns=rename).copy()
    records["date"] = _coerce_dates(records["date"])
    records = normalize_frame(records)

    undated = int(records["date"].isna().sum())
    if undated:
        logger.warning("%d %s row(s) have no usable date", undated, stream.value)
    return records


def _coerce_dates(values: pd.Series) -> pd.Series:
    """Parse dates, treating plain numbers as Excel serial day counts."""
    if is_numeric_dtype(values) and not pd.api.types.is_bool_dtype(values):
        return pd.to_datetime(values, unit="D", origin=_EXCEL_EPOCH, errors="coerce")
    return parse_dates(values)
