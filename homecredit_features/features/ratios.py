"""
Ratio Helpers

A ratio with a zero, missing or infinite denominator has no numeric meaning.
All ratios in the pipeline go through ``safe_divide`` so that case is always
a plain missing value (NaN), never +/-inf.
"""

import numpy as np
import pandas as pd


def safe_divide(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    """Element-wise division returning NaN wherever the result is not finite.

    Args:
        numerator: Dividend series.
        denominator: Divisor series, aligned with ``numerator``.

    Returns:
        Float series; NaN where either operand is missing, the divisor is
        zero, or the quotient overflows to infinity.
    """
    num = pd.to_numeric(numerator, errors="coerce").astype("float64")
    den = pd.to_numeric(denominator, errors="coerce").astype("float64")

    with np.errstate(divide="ignore", invalid="ignore"):
        result = num / den

    return result.where(np.isfinite(result))


def replace_infinite(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of ``df`` with +/-inf in float columns replaced by NaN."""
    out = df.copy()
    numeric = out.select_dtypes(include=[np.floating]).columns
    if len(numeric):
        out[numeric] = out[numeric].replace([np.inf, -np.inf], np.nan)
    return out
