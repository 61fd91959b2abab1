"""IO helper utilities."""

from __future__ import annotations

import json
import math
import numbers
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from .logging import configure_logging, logger


def setup_logging(verbose: bool) -> None:
    """Initialise project logging."""
    configure_logging(verbose)


def read_any_csv(path: str | Path) -> pd.DataFrame:
    """Read a CSV file as strings, trying a few delimiter heuristics."""
    for kwargs in (dict(sep=None, engine="python"), dict(sep=";"), dict()):
        try:
            df = pd.read_csv(path, dtype=str, keep_default_na=False, **kwargs)
            logger.debug("Loaded CSV %s with %s", path, kwargs)
            return df
        except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as exc:
            logger.debug("CSV read failed for %s with %s: %s", path, kwargs, exc)
    raise RuntimeError(f"Failed to read CSV: {path}")


def read_json(path: str | Path) -> Any:
    with Path(path).open("r", encoding="utf-8") as handle:
        return json.load(handle)


def require_columns(df: pd.DataFrame, cols: set[str], label: str) -> None:
    """Ensure the expected columns are available."""
    missing = set(cols) - set(df.columns)
    if missing:
        raise RuntimeError(f"{label} missing columns: {sorted(missing)}")


def sanitize_value(value: Any) -> Any:
    """Convert numpy/pandas scalars to plain JSON values; NaN and infinities become None."""
    if value is None:
        return None
    if isinstance(value, (np.ndarray, pd.Series, pd.Index)):
        return [sanitize_value(v) for v in value.tolist()]
    if isinstance(value, (list, tuple, set)):
        return [sanitize_value(v) for v in list(value)]
    if isinstance(value, dict):
        return {str(k): sanitize_value(v) for k, v in value.items()}
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if isinstance(value, (np.bool_, bool)):
        return bool(value)
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        if not math.isfinite(float(value)):
            return None
        return float(value)
    try:
        if pd.isna(value):  # type: ignore[arg-type]
            return None
    except (TypeError, ValueError):
        pass
    return value


def write_json(path: Path, payload: Any) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(sanitize_value(payload), handle, allow_nan=False)
    return path
