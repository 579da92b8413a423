"""
Databricks client singleton.

Provides a single WorkspaceClient instance with SDK auto-auth for Databricks
Apps deployment and token fallback for local development, plus a helper for
parameterised SQL execution against the configured SQL warehouse.
"""

from __future__ import annotations

import logging
from typing import Any

from databricks.sdk import WorkspaceClient
from databricks.sdk.config import Config
from databricks.sdk.service.sql import StatementParameterListItem, StatementState

from bbb_dashboard.utils.config import (
    CATALOG_NAME,
    DATABRICKS_HOST,
    DATABRICKS_TOKEN,
    SCHEMA_NAME,
    SQL_WAIT_TIMEOUT,
    WAREHOUSE_ID,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Singleton client
# ---------------------------------------------------------------------------
_client: WorkspaceClient | None = None


def get_workspace_client() -> WorkspaceClient:
    """Return a cached WorkspaceClient (created on first call).

    In Databricks Apps the SDK auto-authenticates via the service principal
    bound to the app.  For local development, set DATABRICKS_HOST and
    DATABRICKS_TOKEN environment variables.
    """
    global _client
    if _client is not None:
        return _client

    if DATABRICKS_TOKEN:
        logger.info("Initializing WorkspaceClient with token (local dev mode)")
        _client = WorkspaceClient(
            host=DATABRICKS_HOST,
            token=DATABRICKS_TOKEN,
            config=Config(http_timeout_seconds=120),
        )
    else:
        logger.info("Initializing WorkspaceClient with SDK auto-auth")
        config = Config(http_timeout_seconds=120)
        _client = WorkspaceClient(config=config)

    return _client


# ---------------------------------------------------------------------------
# SQL helper
# ---------------------------------------------------------------------------
def execute_sql(
    query: str,
    *,
    params: dict[str, Any] | None = None,
) -> list[dict[str, Any]]:
    """Execute a SQL statement via the Databricks SQL Statement Execution API.

    Parameters
    ----------
    query:
        The SQL query string.  Values are referenced with named markers
        (``:region``) and bound through *params*, never interpolated.
    params:
        Mapping of marker name -> value.  ``None`` values are bound as SQL
        NULL; everything else is sent as its string form.

    Returns
    -------
    list[dict]
        Each dict maps column name -> value for one row.  The Statement
        Execution API returns every value as a string (or ``None``).
    """
    parameters = [
        StatementParameterListItem(
            name=name,
            value=None if value is None else str(value),
        )
        for name, value in (params or {}).items()
    ]

    w = get_workspace_client()
    response = w.statement_execution.execute_statement(
        warehouse_id=WAREHOUSE_ID,
        statement=query,
        wait_timeout=SQL_WAIT_TIMEOUT,
        catalog=CATALOG_NAME,
        schema=SCHEMA_NAME,
        parameters=parameters or None,
    )

    if response.status.state != StatementState.SUCCEEDED:
        error_msg = getattr(response.status, "error", None)
        raise RuntimeError(
            f"SQL execution failed ({response.status.state}): {error_msg}"
        )

    columns = [col.name for col in response.manifest.schema.columns]
    rows: list[dict[str, Any]] = []
    if response.result and response.result.data_array:
        for row in response.result.data_array:
            rows.append(dict(zip(columns, row)))

    logger.debug("SQL returned %d rows", len(rows))
    return rows
