"""Output helper utilities.

Thin wrappers around :mod:`pandas` and :mod:`pyarrow`: Parquet for the
population snapshot, CSV or JSON Lines for per-step diagnostics and JSON
for the run summary.  Destination directories are created as needed.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Literal, Mapping

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

__all__ = [
    "COLUMN_UNITS",
    "write_parquet",
    "write_step_diagnostics",
    "write_summary",
]

COLUMN_UNITS = {
    "id": "count",
    "mass": "M_sun",
    "log_radius": "log10 R_sun",
    "log_lum": "log10 L_sun",
    "orb_a": "r_g",
}


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def write_parquet(df: pd.DataFrame, path: Path, *, compression: str = "snappy") -> None:
    """Write ``df`` to Parquet, recording known column units as metadata."""

    path = Path(path)
    _ensure_parent(path)
    table = pa.Table.from_pandas(df, preserve_index=False)
    units = {col: COLUMN_UNITS[col] for col in df.columns if col in COLUMN_UNITS}
    metadata = dict(table.schema.metadata or {})
    metadata[b"units"] = json.dumps(units, sort_keys=True).encode("utf-8")
    table = table.replace_schema_metadata(metadata)
    pq.write_table(table, path, compression=compression)


def write_step_diagnostics(
    rows: Iterable[Mapping[str, Any]],
    path: Path,
    *,
    fmt: Literal["csv", "jsonl"] = "csv",
) -> None:
    """Serialise per-step mass diagnostics."""

    rows = list(rows)
    path = Path(path)
    _ensure_parent(path)
    fmt_lower = str(fmt).lower()
    if fmt_lower == "csv":
        pd.DataFrame(rows).to_csv(path, index=False)
    elif fmt_lower == "jsonl":
        with path.open("w", encoding="utf-8") as fh:
            for row in rows:
                fh.write(json.dumps(row, sort_keys=True))
                fh.write("\n")
    else:
        raise ValueError(f"Unsupported step diagnostics format: {fmt}")


def write_summary(summary: Mapping[str, Any], path: Path) -> None:
    """Write a summary dictionary as indented JSON."""

    path = Path(path)
    _ensure_parent(path)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(summary, fh, indent=2, sort_keys=True)
