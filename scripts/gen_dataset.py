#!/usr/bin/env python3
"""Synthetic dataset generator for manual and performance runs.

Writes a workbook or CSV with a header row followed by data rows, mixing
text, numeric and boolean columns plus a share of "NA" cells so that the
missing-marker presets have something to select.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd


def generate_synthetic_data(rows: int, na_ratio: float = 0.1, seed: int = 42) -> pd.DataFrame:
    """Mixed-type frame: id, name, category, amount, quantity, active, note."""
    rng = np.random.default_rng(seed)
    categories = ["Electronics", "Clothing", "Books", "Food", "Sports", "Home"]

    data: dict[str, list[Any]] = {
        "id": list(range(1, rows + 1)),
        "name": [f"Item_{rng.integers(1000, 9999)}_{chr(65 + (j % 26))}" for j in range(rows)],
        "category": rng.choice(categories, rows).tolist(),
        "amount": np.round(rng.uniform(0.01, 9999.99, rows), 2).tolist(),
        "quantity": rng.integers(1, 1000, rows).tolist(),
        "active": rng.choice([True, False], rows).tolist(),
        # padded on purpose so TRIM has work to do
        "note": [f"  note {j}  " for j in range(rows)],
    }
    df = pd.DataFrame(data)

    mask = rng.random((rows, 3)) < na_ratio
    for i, column in enumerate(("category", "amount", "quantity")):
        df[column] = df[column].astype(object)
        df.loc[mask[:, i], column] = "NA"
    return df


def write_dataset(output_path: Path, df: pd.DataFrame) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = output_path.suffix.lower()
    if suffix == ".csv":
        df.to_csv(output_path, index=False)
    elif suffix in (".xlsx", ".xls"):
        with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Sheet1", index=False)
    else:
        raise ValueError(f"unsupported output type: {output_path.suffix}")

    print(f"Created dataset: {output_path}")
    print(f"  Rows: {len(df)}")
    print(f"  Columns: {len(df.columns)} ({', '.join(df.columns)})")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate synthetic tabular datasets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data/sample.xlsx
  %(prog)s data/large.csv --rows 200000 --na-ratio 0.2 --seed 7
        """,
    )
    parser.add_argument("output", type=Path, help="Output file (.xlsx or .csv)")
    parser.add_argument("--rows", type=int, default=10_000, help="Number of data rows (default: 10000)")
    parser.add_argument("--na-ratio", type=float, default=0.1, help="Share of NA cells (default: 0.1)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if not 0 <= args.na_ratio < 1:
        print("Error: --na-ratio must be in [0, 1)", file=sys.stderr)
        return 1

    try:
        write_dataset(args.output, generate_synthetic_data(args.rows, args.na_ratio, args.seed))
    except (OSError, ValueError) as e:
        print(f"Error creating dataset: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
