"""
Location breakdowns of scoped records – the counts behind dashboard charts.
"""

from typing import Any, Dict, Iterable, List

import pandas as pd

from healthgate.record_filter import FIELD_ALIASES, get_location_field

UNKNOWN_LOCATION = "(unknown)"


def records_frame(records: Iterable[Any]) -> pd.DataFrame:
    """One row per record, one column per logical location field (aliases resolved)."""
    rows = [
        {field: get_location_field(r, field) for field in FIELD_ALIASES}
        for r in records
    ]
    return pd.DataFrame(rows, columns=list(FIELD_ALIASES))


def summarize_by_location(records: Iterable[Any], field: str = "district") -> List[Dict[str, Any]]:
    """
    Count records per value of *field*, most frequent first.
    Records missing the field are counted under UNKNOWN_LOCATION.
    """
    if not isinstance(field, str) or field not in FIELD_ALIASES:
        raise ValueError(f"Unknown location field '{field}'. Expected one of: {', '.join(FIELD_ALIASES)}")

    df = records_frame(records)
    if df.empty:
        return []

    vc = df[field].fillna(UNKNOWN_LOCATION).astype(str).value_counts()
    vc = vc.reset_index()
    vc.columns = [field, "count"]
    vc = vc.sort_values(["count", field], ascending=[False, True], kind="mergesort")
    return [
        {"value": row[field], "count": int(row["count"])}
        for _, row in vc.iterrows()
    ]


def format_breakdown(rows: List[Dict[str, Any]], field: str = "district") -> str:
    """Markdown table of a breakdown, for the CLI."""
    if not rows:
        return "(no records)"
    df = pd.DataFrame(rows).rename(columns={"value": field})
    return df.to_markdown(index=False)
