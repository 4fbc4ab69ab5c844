"""Normalize and clean roster rows into employee records."""

import logging

import pandas as pd

from orgscope.analysis.models import DEFAULT_HIRE_DATE, EmployeeRecord, roster_schema
from orgscope.utils.transforms import strip_currency
from orgscope.utils.types import UNKNOWN
from orgscope.utils.validators import (
    validate_dataframe,
    validate_referential_integrity,
    validate_unique,
)

logger = logging.getLogger(__name__)

type RosterResult = tuple[list[EmployeeRecord], list[str]]

TEXT_COLUMNS = ("function", "title", "location", "country", "business_unit")
MONEY_COLUMNS = ("flrr", "base_salary", "bonus")
CANONICAL_COLUMNS = ("employee_id", "manager_id", *TEXT_COLUMNS, "hire_date", *MONEY_COLUMNS)


def _as_identifier(value: object) -> str | None:
    """Render an id cell as text; spreadsheets often hand back 1042.0 for 1042."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    return text or None


def _as_text(value: object) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return UNKNOWN
    return str(value).strip() or UNKNOWN


def normalize_roster(raw_df: pd.DataFrame) -> RosterResult:
    """Coerce a roster frame with canonical headers into validated records.

    Missing columns fall back to defaults, unparseable money to 0 and
    unparseable hire dates to 2020-01-01. Returns the records together with
    data-quality warnings (missing columns, duplicate ids, dangling manager
    references) for the caller to surface.
    """
    df = raw_df.dropna(how="all").copy()
    warnings: list[str] = []

    missing = [col for col in CANONICAL_COLUMNS if col not in df.columns]
    if missing:
        warnings.append(f"Missing columns (some analyses may be limited): {', '.join(missing)}")
        for col in missing:
            df[col] = None

    if df.empty:
        for warning in warnings:
            logger.warning(warning)
        logger.info("Roster has no employee rows")
        return [], warnings

    df["employee_id"] = pd.Series(
        [
            _as_identifier(value) or f"EMP-{row_number}"
            for row_number, value in enumerate(df["employee_id"], start=1)
        ],
        index=df.index,
        dtype=object,
    )
    df["manager_id"] = pd.Series([_as_identifier(v) for v in df["manager_id"]], index=df.index, dtype=object)
    for col in TEXT_COLUMNS:
        df[col] = df[col].map(_as_text)
    for col in MONEY_COLUMNS:
        df[col] = strip_currency(df[col])

    hire_dates = pd.to_datetime(df["hire_date"], errors="coerce", format="mixed")
    unparsed = int((hire_dates.isna() & df["hire_date"].notna()).sum())
    if unparsed:
        warnings.append(f"{unparsed} hire dates could not be parsed; defaulted to {DEFAULT_HIRE_DATE}")
    df["hire_date"] = hire_dates.fillna(pd.Timestamp(DEFAULT_HIRE_DATE)).astype("datetime64[ns]")

    outcome = validate_dataframe(df, roster_schema)
    if not outcome["valid"]:
        raise ValueError(f"Roster failed validation: {'; '.join(outcome['errors'])}")

    for check in (
        validate_unique(df, ["employee_id"]),
        validate_referential_integrity(df, df, "manager_id", "employee_id"),
    ):
        warnings.extend(check["errors"])

    records = [
        EmployeeRecord(
            employee_id=row.employee_id,
            manager_id=row.manager_id if isinstance(row.manager_id, str) else None,
            function=row.function,
            title=row.title,
            location=row.location,
            country=row.country,
            business_unit=row.business_unit,
            hire_date=row.hire_date.date(),
            flrr=float(row.flrr),
            base_salary=float(row.base_salary),
            bonus=float(row.bonus),
        )
        for row in df[list(CANONICAL_COLUMNS)].itertuples(index=False)
    ]

    for warning in warnings:
        logger.warning(warning)
    logger.info("Normalized %d employee records", len(records))
    return records, warnings
