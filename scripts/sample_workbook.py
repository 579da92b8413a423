#!/usr/bin/env python3
"""
Sample workbook tooling for the BBB Dashboard.

Generates a seeded synthetic bookings / billings / backlog workbook in the
spreadsheet layout the dashboard loads (three sheets, Booking_Date style headers), and
inspects existing workbooks.

Usage:
    python scripts/sample_workbook.py generate data/bbb.xlsx
    python scripts/sample_workbook.py generate data/bbb.xlsx --seed 7 --months 24
    python scripts/sample_workbook.py inspect data/bbb.xlsx
"""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path

import numpy as np
import pandas as pd

# ---------------------------------------------------------------------------
# Generator configuration
# ---------------------------------------------------------------------------
RANDOM_SEED = 42
DEFAULT_MONTHS = 18
BOOKINGS_PER_MONTH = 40

REGIONS = ["North", "South", "East", "West"]
PRODUCTS = ["Widget Pro", "Widget Lite", "Gadget X", "Gadget Mini", "Service Plan", "Sensor Kit"]
CUSTOMERS = [
    "Acme Corp", "Globex", "Initech", "Umbrella", "Stark Industries",
    "Wayne Enterprises", "Hooli", "Soylent", "Vandelay", "Wonka",
]

# Typical order value per product (mean, std dev)
PRODUCT_PRICING: dict[str, tuple[float, float]] = {
    "Widget Pro": (12_000.0, 3_000.0),
    "Widget Lite": (4_500.0, 1_200.0),
    "Gadget X": (18_000.0, 5_000.0),
    "Gadget Mini": (2_500.0, 600.0),
    "Service Plan": (1_500.0, 400.0),
    "Sensor Kit": (7_000.0, 2_000.0),
}

# Quarter-end purchasing spike
MONTHLY_SEASONAL_MULTIPLIERS: dict[int, float] = {
    1: 0.80, 2: 0.85, 3: 1.15, 4: 0.90, 5: 0.95, 6: 1.15,
    7: 0.90, 8: 0.85, 9: 1.10, 10: 1.00, 11: 1.05, 12: 1.30,
}

BILLED_SHARE = 0.8  # fraction of bookings that have been billed


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------
def _month_starts(months: int, today: date) -> list[pd.Timestamp]:
    end = pd.Timestamp(today.year, today.month, 1)
    return list(pd.date_range(end=end, periods=months, freq="MS"))


def generate_workbook(months: int = DEFAULT_MONTHS, seed: int = RANDOM_SEED, today: date | None = None) -> dict[str, pd.DataFrame]:
    """Return the three sheets (Bookings, Billings, Backlog) as DataFrames."""
    rng = np.random.default_rng(seed)
    today = today or date.today()

    bookings: list[dict] = []
    for month_start in _month_starts(months, today):
        count = int(BOOKINGS_PER_MONTH * MONTHLY_SEASONAL_MULTIPLIERS[month_start.month])
        days = rng.integers(0, month_start.days_in_month, size=count)
        for offset in days:
            product = str(rng.choice(PRODUCTS))
            mean, std = PRODUCT_PRICING[product]
            bookings.append({
                "Booking_Date": (month_start + pd.Timedelta(days=int(offset))).date(),
                "Region": str(rng.choice(REGIONS)),
                "Product": product,
                "Customer": str(rng.choice(CUSTOMERS)),
                "Booking_Amount": round(max(100.0, rng.normal(mean, std)), 2),
            })
    bookings_df = pd.DataFrame(bookings)

    billed_mask = rng.random(len(bookings_df)) < BILLED_SHARE
    billed = bookings_df[billed_mask]
    lag = pd.to_timedelta(rng.integers(5, 60, size=len(billed)), unit="D")
    billings_df = pd.DataFrame({
        "Billing_Date": (pd.to_datetime(billed["Booking_Date"]) + lag).dt.date,
        "Region": billed["Region"].to_numpy(),
        "Product": billed["Product"].to_numpy(),
        "Customer": billed["Customer"].to_numpy(),
        "Billed_Amount": (billed["Booking_Amount"] * rng.uniform(0.9, 1.0, size=len(billed))).round(2),
    })

    open_orders = bookings_df[~billed_mask]
    ship_lag = pd.to_timedelta(rng.integers(15, 120, size=len(open_orders)), unit="D")
    backlog_df = pd.DataFrame({
        "Expected_Shipping_Date": (pd.to_datetime(open_orders["Booking_Date"]) + ship_lag).dt.date,
        "Region": open_orders["Region"].to_numpy(),
        "Product": open_orders["Product"].to_numpy(),
        "Customer": open_orders["Customer"].to_numpy(),
        "Backlog_Amount": open_orders["Booking_Amount"].to_numpy(),
    })

    return {"Bookings": bookings_df, "Billings": billings_df, "Backlog": backlog_df}


def write_workbook(sheets: dict[str, pd.DataFrame], output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        for name, frame in sheets.items():
            frame.to_excel(writer, sheet_name=name, index=False)


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------
def inspect_workbook(path: Path) -> None:
    """Print row counts, columns and a sample record for every sheet."""
    sheets = pd.read_excel(path, sheet_name=None)
    print(f"Found {len(sheets)} sheet(s): {', '.join(map(str, sheets))}")
    for index, (name, frame) in enumerate(sheets.items(), start=1):
        print(f"\nSheet {index}: {name!r}")
        if frame.empty:
            print("  No data found in this sheet")
            continue
        print(f"  Records: {len(frame)}")
        print(f"  Columns: {', '.join(map(str, frame.columns))}")
        print(f"  Sample record: {frame.iloc[0].to_dict()}")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate or inspect BBB Dashboard workbooks")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Write a synthetic three-sheet workbook")
    gen.add_argument("output", type=Path, help="Destination .xlsx path")
    gen.add_argument("--seed", type=int, default=RANDOM_SEED, help=f"Random seed (default: {RANDOM_SEED})")
    gen.add_argument("--months", type=int, default=DEFAULT_MONTHS, help=f"Months of history (default: {DEFAULT_MONTHS})")

    insp = sub.add_parser("inspect", help="Describe the sheets of an existing workbook")
    insp.add_argument("path", type=Path, help="Workbook to inspect")

    args = parser.parse_args(argv)

    if args.command == "generate":
        if args.months < 1:
            parser.error("--months must be at least 1")
        sheets = generate_workbook(months=args.months, seed=args.seed)
        write_workbook(sheets, args.output)
        counts = ", ".join(f"{name}: {len(frame)}" for name, frame in sheets.items())
        print(f"Wrote {args.output} ({counts})")
        return 0

    if not args.path.is_file():
        print(f"ERROR: workbook not found at {args.path}", file=sys.stderr)
        return 1
    inspect_workbook(args.path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
