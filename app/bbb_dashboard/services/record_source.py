"""
Record sources: the read-only persistence collaborator of the dashboard.

Every aggregation consumes the three record streams (bookings, billings,
backlog) through :class:`RecordSource`.  Rows come back as a pandas
DataFrame with the canonical columns ``date``, ``region``, ``product``,
``customer`` and ``amount`` whatever the storage technology behind it.

Two backends are provided:

* :class:`FrameRecordSource` -- an in-memory snapshot (loaded once from a
  workbook, or built directly in tests) filtered with pandas.
* :class:`WarehouseRecordSource` -- parameterised SQL against three tables
  on a Databricks SQL warehouse, re-read on every request.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum

import pandas as pd

from bbb_dashboard.errors import RetrievalError
from bbb_dashboard.models import FilterCriteria
from bbb_dashboard.utils.config import TABLE_BACKLOG, TABLE_BILLINGS, TABLE_BOOKINGS
from bbb_dashboard.utils.databricks_client import execute_sql

logger = logging.getLogger(__name__)

RECORD_COLUMNS = ["date", "region", "product", "customer", "amount"]
DIMENSION_COLUMNS = ("region", "product", "customer")


class RecordStream(str, Enum):
    """The three independent fact streams."""

    BOOKINGS = "bookings"
    BILLINGS = "billings"
    BACKLOG = "backlog"


def _as_label(value) -> str | None:
    if value is None or pd.isna(value):
        return None
    label = str(value).strip()
    return label or None


def parse_dates(values: pd.Series) -> pd.Series:
    """Parse *values* to naive timestamps.

    Each value is parsed on its own (``format="mixed"``), so one column may
    mix ISO and ``MM/DD/YYYY`` spellings.  Zoned values such as warehouse
    TIMESTAMPs (``2024-03-02T10:00:00.000Z``) are converted to UTC and the
    zone dropped.  Unparseable values become ``NaT``.
    """
    parsed = pd.to_datetime(values, errors="coerce", utc=True, format="mixed")
    return parsed.dt.tz_localize(None)


def normalize_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """Coerce *frame* to the canonical record columns and dtypes.

    Missing columns are added, unparseable dates become ``NaT``, missing
    amounts become ``0.0`` and dimension values are stripped ``str`` or
    ``None`` held in ``object`` columns.
    """
    out = frame.reindex(columns=RECORD_COLUMNS).copy()
    out["date"] = parse_dates(out["date"])
    out["amount"] = pd.to_numeric(out["amount"], errors="coerce").fillna(0.0).astype(float)
    for column in DIMENSION_COLUMNS:
        out[column] = pd.Series(
            [_as_label(v) for v in out[column]], index=out.index, dtype=object
        )
    return out.reset_index(drop=True)


def empty_frame() -> pd.DataFrame:
    """Return a zero-row frame with the canonical columns and dtypes."""
    return normalize_frame(pd.DataFrame(columns=RECORD_COLUMNS))


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------
class RecordSource(ABC):
    """Read-only access to the bookings / billings / backlog streams."""

    name: str = "abstract"

    @abstractmethod
    def query_filtered(self, stream: RecordStream, criteria: FilterCriteria) -> pd.DataFrame:
        """Return the rows of *stream* matching every constraint in *criteria*.

        Raises
        ------
        RetrievalError
            If the backend cannot produce rows.
        """

    @abstractmethod
    def distinct_values(self, column: str) -> list[str]:
        """Return sorted, non-blank distinct values of *column* across all streams."""

    def ping(self) -> bool:
        """Return ``True`` if the backend is reachable."""
        return True


def _check_dimension(column: str) -> None:
    if column not in DIMENSION_COLUMNS:
        raise ValueError(f"Unknown filter dimension '{column}'")


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------
class FrameRecordSource(RecordSource):
    """Filters an in-memory snapshot of the three streams with pandas."""

    name = "frame"

    def __init__(
        self,
        bookings: pd.DataFrame | None = None,
        billings: pd.DataFrame | None = None,
        backlog: pd.DataFrame | None = None,
    ) -> None:
        provided = {
            RecordStream.BOOKINGS: bookings,
            RecordStream.BILLINGS: billings,
            RecordStream.BACKLOG: backlog,
        }
        self._frames: dict[RecordStream, pd.DataFrame] = {
            stream: empty_frame() if frame is None else normalize_frame(frame)
            for stream, frame in provided.items()
        }

    def query_filtered(self, stream: RecordStream, criteria: FilterCriteria) -> pd.DataFrame:
        frame = self._frames[RecordStream(stream)]
        mask = pd.Series(True, index=frame.index)

        if criteria.start_date is not None:
            mask &= frame["date"] >= pd.Timestamp(criteria.start_date)
        if criteria.end_date is not None:
            # Inclusive end day, whatever the time-of-day on the record
            mask &= frame["date"] < pd.Timestamp(criteria.end_date) + pd.Timedelta(days=1)
        for column in DIMENSION_COLUMNS:
            value = getattr(criteria, column)
            if value is not None:
                mask &= frame[column] == value

        return frame.loc[mask].reset_index(drop=True)

    def distinct_values(self, column: str) -> list[str]:
        _check_dimension(column)
        values: set[str] = set()
        for frame in self._frames.values():
            values.update(v for v in frame[column] if isinstance(v, str) and v.strip())
        return sorted(values)

    def row_counts(self) -> dict[str, int]:
        return {stream.value: len(frame) for stream, frame in self._frames.items()}


# ---------------------------------------------------------------------------
# Databricks SQL warehouse backend
# ---------------------------------------------------------------------------
_STREAM_TABLES: dict[RecordStream, tuple[str, str]] = {
    RecordStream.BOOKINGS: (TABLE_BOOKINGS, "booking_amount"),
    RecordStream.BILLINGS: (TABLE_BILLINGS, "billed_amount"),
    RecordStream.BACKLOG: (TABLE_BACKLOG, "backlog_amount"),
}


def build_where_clause(criteria: FilterCriteria) -> tuple[str, dict[str, str]]:
    """Build a parameterised SQL WHERE clause from *criteria*.

    Returns the clause (empty string when unconstrained) and the parameter
    mapping for the named markers it references.
    """
    where_clauses: list[str] = []
    params: dict[str, str] = {}

    if criteria.start_date is not None:
        where_clauses.append("date >= CAST(:start_date AS DATE)")
        params["start_date"] = criteria.start_date.isoformat()
    if criteria.end_date is not None:
        where_clauses.append("date <= CAST(:end_date AS DATE)")
        params["end_date"] = criteria.end_date.isoformat()
    for column in DIMENSION_COLUMNS:
        value = getattr(criteria, column)
        if value is not None:
            where_clauses.append(f"TRIM({column}) = :{column}")
            params[column] = value

    where_sql = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""
    return where_sql, params


class WarehouseRecordSource(RecordSource):
    """Reads the streams from Unity Catalog tables on every call."""

    name = "warehouse"

    def query_filtered(self, stream: RecordStream, criteria: FilterCriteria) -> pd.DataFrame:
        table, amount_column = _STREAM_TABLES[RecordStream(stream)]
        where_sql, params = build_where_clause(criteria)
        query = f"""
            SELECT date, region, product, customer, {amount_column} AS amount
            FROM {table}
            {where_sql}
            ORDER BY date
        """
        try:
            rows = execute_sql(query, params=params)
        except Exception as exc:
            logger.error("Query on %s failed: %s", table, exc)
            raise RetrievalError() from exc

        return normalize_frame(pd.DataFrame(rows, columns=RECORD_COLUMNS))

    def distinct_values(self, column: str) -> list[str]:
        _check_dimension(column)
        selects = [
            f"SELECT DISTINCT TRIM({column}) AS val FROM {table} WHERE {column} IS NOT NULL"
            for table, _ in _STREAM_TABLES.values()
        ]
        query = " UNION ".join(selects) + " ORDER BY val ASC"
        try:
            rows = execute_sql(query)
        except Exception as exc:
            logger.error("Distinct %s lookup failed: %s", column, exc)
            raise RetrievalError() from exc

        values = {str(r["val"]).strip() for r in rows if r.get("val") is not None}
        return sorted(v for v in values if v.strip())

    def ping(self) -> bool:
        try:
            execute_sql("SELECT 1 AS ok")
        except Exception as exc:
            logger.warning("Warehouse health check failed: %s", exc)
            return False
        return True
