"""Common data transformation utilities."""

import math

import numpy as np
import pandas as pd

type ColumnMapping = dict[str, str]

# Currency symbols, thousands separators and whitespace
CURRENCY_NOISE = r"[\s,$€£¥₹]"


def normalize_columns(df: pd.DataFrame, mapping: ColumnMapping | None = None) -> pd.DataFrame:
    """Normalize column names to snake_case and apply optional mapping.

    Mapping keys are matched after normalization, so ``{"emp_no": "employee_id"}``
    also renames a header written as ``"Emp No"``.
    """
    df = df.copy()
    df.columns = [_snake_case(str(col)) for col in df.columns]

    if mapping:
        df = df.rename(columns={_snake_case(src): dest for src, dest in mapping.items()})

    return df


def _snake_case(name: str) -> str:
    return name.strip().lower().replace(" ", "_").replace("-", "_")


def safe_divide(numerator: float, denominator: float) -> float:
    """Divide, returning 0.0 when the denominator is zero."""
    if denominator == 0:
        return 0.0
    return float(numerator) / float(denominator)


def strip_currency(values: pd.Series) -> pd.Series:
    """Coerce currency-formatted values to floats, falling back to 0.

    Text cells lose currency symbols, thousands separators and whitespace
    before parsing, so signs and exponents survive. Negative or non-finite
    values become 0.
    """
    if pd.api.types.is_numeric_dtype(values):
        numeric = values.astype(float)
    else:
        numeric = pd.to_numeric(
            values.astype(str).str.replace(CURRENCY_NOISE, "", regex=True),
            errors="coerce",
        ).astype(float)
    numeric = numeric.where(np.isfinite(numeric), np.nan)
    return numeric.fillna(0.0).clip(lower=0.0)


def mean_or_zero(values: list[float] | pd.Series) -> float:
    """Arithmetic mean that yields 0.0 for an empty input."""
    if len(values) == 0:
        return 0.0
    result = float(np.mean(values))
    return result if math.isfinite(result) else 0.0
