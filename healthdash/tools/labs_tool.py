from typing import Optional, List, Dict, Sequence, Union
import os
import math
import pandas as pd
import logging

from healthdash.constants import DEFAULT_PROCESSED_DIR, LAB_RESULT_COLS, LABS_TABLE_FILE
from healthdash.ingestion.parsers import DEFAULT_CATEGORY, ParsedLabResult

logger = logging.getLogger(__name__)


def _table_path(table_path: Optional[str] = None) -> str:
    return table_path or os.path.join(os.getenv("PROCESSED_DIR", DEFAULT_PROCESSED_DIR), "tables", LABS_TABLE_FILE)


def _load_df(table_path: Optional[str] = None) -> Optional[pd.DataFrame]:
    tp = _table_path(table_path)
    if not os.path.exists(tp):
        logger.warning(f'Labs table not found at {tp}')
        return None
    try:
        df = pd.read_parquet(tp)
    except Exception as e:
        logger.error(f'Failed to load labs table at {tp}: {e}')
        return None
    if df is None or df.empty:
        logger.warning(f'Labs table is empty at {tp}')
        return None
    return df


def _safe_float(x) -> Optional[float]:
    try:
        if x is None:
            return None
        if isinstance(x, float) and (math.isnan(x) or math.isinf(x)):
            return None
        return float(x)
    except (TypeError, ValueError):
        return None


def result_status(value: Union[float, str, None], min_range: float, max_range: float) -> Optional[str]:
    """Return "Low", "High" or "Normal"; None for text values or when no range is known (0/0)."""
    v = value if isinstance(value, (int, float)) and not isinstance(value, bool) else None
    if v is None or (isinstance(v, float) and math.isnan(v)):
        return None
    if min_range == 0 and max_range == 0:
        return None
    if v < min_range:
        return "Low"
    if v > max_range:
        return "High"
    return "Normal"


def abnormal_results(results: Sequence[ParsedLabResult]) -> List[ParsedLabResult]:
    """Numeric results that fall outside a known reference range."""
    return [r for r in results if result_status(r.value, r.min_range, r.max_range) in ("Low", "High")]


def group_by_category(results: Sequence[ParsedLabResult]) -> Dict[str, List[ParsedLabResult]]:
    """Group results by category in first-seen order; uncategorised results go under "General"."""
    grouped: Dict[str, List[ParsedLabResult]] = {}
    for r in results:
        grouped.setdefault(r.category or DEFAULT_CATEGORY, []).append(r)
    return grouped


def _rows_for(df: pd.DataFrame, test_name: str) -> pd.DataFrame:
    return df[df["test_name"].str.lower() == test_name.lower()].copy()


def list_tests(prefix: Optional[str] = None, table_path: Optional[str] = None) -> List[str]:
    """
    Return a sorted list of all distinct test names in the labs table.

    Args:
        prefix: Optional case-insensitive prefix to filter names by.
        table_path: Optional path to the labs table.
    """
    df = _load_df(table_path)
    if df is None or "test_name" not in df.columns:
        return []
    names = [str(x) for x in df["test_name"].dropna().unique()]
    names.sort(key=lambda s: s.lower())
    if prefix:
        pl = prefix.lower()
        names = [n for n in names if n.lower().startswith(pl)]
    return names


def latest_value(test_name: str, table_path: Optional[str] = None) -> Optional[Dict]:
    """
    Return the most recent row for a test.

    Args:
        test_name: Name of the test, matched case-insensitively.
        table_path: Optional path to the labs table.
    """
    df = _load_df(table_path)
    if df is None or "test_name" not in df.columns:
        return None
    dff = _rows_for(df, test_name)
    if dff.empty:
        logger.warning(f'No rows found for {test_name}')
        return None
    r = dff.sort_values("date", ascending=False, na_position="last").iloc[0]
    return {c: r.get(c) for c in LAB_RESULT_COLS if c in dff.columns}


def history(test_name: str, limit: Optional[int] = None, ascending: bool = True, table_path: Optional[str] = None) -> List[Dict]:
    """
    Return the dated history of a test.

    Args:
        test_name: Name of the test, e.g. "Hemoglobin".
        limit: Max number of rows to return (the most recent ones).
        ascending: Sort order by date.
        table_path: Optional path to the labs table.
    """
    df = _load_df(table_path)
    if df is None or "test_name" not in df.columns:
        return []
    dff = _rows_for(df, test_name)
    if dff.empty:
        return []
    dff = dff.sort_values("date", ascending=ascending)
    if limit is not None and limit > 0:
        dff = dff.tail(limit) if ascending else dff.head(limit)
    cols = [c for c in ["date", "value", "value_num", "unit", "min_range", "max_range", "category", "source"] if c in dff.columns]
    return dff[cols].to_dict(orient="records")


def summary(test_name: str, table_path: Optional[str] = None) -> Optional[Dict]:
    """
    Return a summary for a test (last value/date, delta, unit, range status).

    Args:
        test_name: Name of the test.
        table_path: Optional path to the labs table.
    """
    logger.info(f'Building summary for {test_name}')
    df = _load_df(table_path)
    if df is None or "test_name" not in df.columns:
        return None
    dff = _rows_for(df, test_name)
    if dff.empty:
        logger.warning(f'No rows found for {test_name}')
        return None
    dff = dff.sort_values("date")
    vals = pd.to_numeric(dff["value_num"], errors="coerce").dropna()

    last = dff.iloc[-1]
    last_val = _safe_float(last.get("value_num"))
    prev_val = _safe_float(dff.iloc[-2].get("value_num")) if len(dff) >= 2 else None
    delta = (last_val - prev_val) if (last_val is not None and prev_val is not None) else None
    pct = (delta / prev_val * 100.0) if (delta is not None and prev_val not in (None, 0)) else None
    lo = _safe_float(last.get("min_range")) or 0.0
    hi = _safe_float(last.get("max_range")) or 0.0

    return {
        "test_name": str(last.get("test_name", test_name)),
        "category": last.get("category"),
        "count": int(len(dff)),
        "first_date": dff.iloc[0].get("date"),
        "last_date": last.get("date"),
        "last_value": last.get("value"),
        "unit": last.get("unit"),
        "min": float(vals.min()) if len(vals) else None,
        "max": float(vals.max()) if len(vals) else None,
        "mean": float(vals.mean()) if len(vals) else None,
        "delta_from_prev": delta,
        "pct_change_from_prev": pct,
        "min_range": lo,
        "max_range": hi,
        "status": result_status(last_val, lo, hi),
    }
