"""
Configuration module for the BBB Dashboard backend.

All settings are configurable via environment variables (or a ``.env`` file)
with defaults suitable for local development against the bundled workbook.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Data backend
# ---------------------------------------------------------------------------
# "workbook" reads an Excel workbook / CSV directory into memory at startup;
# "warehouse" queries a Databricks SQL warehouse on every request.
DATA_BACKEND: str = os.getenv("DATA_BACKEND", "workbook").lower()

WORKBOOK_PATH: str = os.getenv("WORKBOOK_PATH", os.path.join("data", "bbb.xlsx"))

# ---------------------------------------------------------------------------
# Unity Catalog (warehouse backend)
# ---------------------------------------------------------------------------
CATALOG_NAME: str = os.getenv("CATALOG_NAME", "main")
SCHEMA_NAME: str = os.getenv("SCHEMA_NAME", "bbb_dashboard")


def _fqn(table: str) -> str:
    """Return a fully-qualified three-level Unity Catalog table name."""
    return f"{CATALOG_NAME}.{SCHEMA_NAME}.{table}"


TABLE_BOOKINGS: str = _fqn(os.getenv("TABLE_BOOKINGS", "bookings"))
TABLE_BILLINGS: str = _fqn(os.getenv("TABLE_BILLINGS", "billings"))
TABLE_BACKLOG: str = _fqn(os.getenv("TABLE_BACKLOG", "backlog"))

# ---------------------------------------------------------------------------
# SQL Warehouse
# ---------------------------------------------------------------------------
WAREHOUSE_ID: str = os.getenv("DATABRICKS_WAREHOUSE_ID", "your-warehouse-id")
SQL_WAIT_TIMEOUT: str = os.getenv("SQL_WAIT_TIMEOUT", "30s")

# ---------------------------------------------------------------------------
# Databricks connection (local dev fallback)
# ---------------------------------------------------------------------------
DATABRICKS_HOST: str = os.getenv("DATABRICKS_HOST", "")
DATABRICKS_TOKEN: str = os.getenv("DATABRICKS_TOKEN", "")

# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------
APP_TITLE: str = os.getenv("APP_TITLE", "BBB Analytics Dashboard")
APP_VERSION: str = os.getenv("APP_VERSION", "1.0.0")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
