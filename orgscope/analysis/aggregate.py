"""Structural rollups over the org tree and the flat roster."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from operator import attrgetter

import numpy as np
import pandas as pd

from orgscope.analysis.hierarchy import is_manager, walk_tree
from orgscope.analysis.models import (
    EmployeeRecord,
    FunctionSpanStat,
    GroupStat,
    HierarchyNode,
    LayerStat,
    NewHireStat,
    QuarterHires,
    SpanBucket,
    SpanRecord,
)
from orgscope.utils.transforms import safe_divide
from orgscope.utils.types import CostTier

logger = logging.getLogger(__name__)

type GroupKeyFn = Callable[[EmployeeRecord], str]
type CostClassifier = Callable[[EmployeeRecord], CostTier]

DAYS_PER_YEAR = 365


@dataclass(frozen=True)
class TenureBand:
    label: str
    min_years: float
    max_years: float | None  # None means open-ended


TENURE_BANDS: tuple[TenureBand, ...] = (
    TenureBand("<1 year", 0, 1),
    TenureBand("1-3 years", 1, 3),
    TenureBand("3-5 years", 3, 5),
    TenureBand("5+ years", 5, None),
)

SPAN_BUCKETS: tuple[tuple[str, int, int | None], ...] = (
    ("1", 1, 1),
    ("2-4", 2, 4),
    ("5-7", 5, 7),
    ("8-10", 8, 10),
    ("11+", 11, None),
)


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def tenure_years(hire_date: date, as_of: date | datetime) -> float:
    """Years between hire and the reference date, on a 365-day year."""
    return (_as_date(as_of) - hire_date).days / DAYS_PER_YEAR


def _records_frame(records: Sequence[EmployeeRecord], as_of: date | datetime | None) -> pd.DataFrame:
    frame = pd.DataFrame(
        {
            "employee_id": [r.employee_id for r in records],
            "flrr": pd.Series([r.flrr for r in records], dtype=float),
            "base_salary": pd.Series([r.base_salary for r in records], dtype=float),
            "bonus": pd.Series([r.bonus for r in records], dtype=float),
        }
    )
    if as_of is None:
        frame["tenure_years"] = 0.0
    else:
        frame["tenure_years"] = pd.Series(
            [tenure_years(r.hire_date, as_of) for r in records], dtype=float
        )
    return frame


def aggregate_layers(
    tree: HierarchyNode | None,
    as_of: date | datetime | None = None,
) -> list[LayerStat]:
    """Roll the tree up by layer, ascending from the root."""
    rows = [
        {
            "layer": node.layer,
            "flrr": node.record.flrr,
            "is_manager": is_manager(node),
            "tenure_years": tenure_years(node.record.hire_date, as_of) if as_of is not None else 0.0,
        }
        for node in walk_tree(tree)
    ]
    if not rows:
        return []

    by_layer = pd.DataFrame(rows).groupby("layer").agg(
        headcount=("flrr", "count"),
        total_flrr=("flrr", "sum"),
        managers=("is_manager", "sum"),
        avg_tenure=("tenure_years", "mean"),
    )

    stats = [
        LayerStat(
            layer=int(layer),
            headcount=int(row.headcount),
            total_flrr=float(row.total_flrr),
            avg_flrr=safe_divide(row.total_flrr, row.headcount),
            managers=int(row.managers),
            ics=int(row.headcount - row.managers),
            avg_tenure=float(row.avg_tenure),
        )
        for layer, row in by_layer.iterrows()
    ]
    logger.info("Aggregated %d layers", len(stats))
    return stats


def aggregate_spans(tree: HierarchyNode | None) -> list[SpanRecord]:
    """One span-of-control record per manager, in tree pre-order."""
    return [
        SpanRecord(
            manager_id=node.employee_id,
            function=node.record.function,
            title=node.record.title,
            direct_reports=node.direct_reports,
            layer=node.layer,
        )
        for node in walk_tree(tree)
        if is_manager(node)
    ]


def aggregate_groups(
    records: Sequence[EmployeeRecord],
    key: str | GroupKeyFn,
    cost_classifier: CostClassifier | None = None,
    as_of: date | datetime | None = None,
) -> list[GroupStat]:
    """Roll records up by a grouping attribute, in order of first appearance.

    ``key`` is either an EmployeeRecord attribute name or a callable. When a
    cost classifier is supplied, best-cost and high-cost headcounts are
    counted per group.
    """
    if not records:
        return []

    key_fn = attrgetter(key) if isinstance(key, str) else key
    frame = _records_frame(records, as_of)
    frame["group"] = [str(key_fn(r)) for r in records]
    tiers = [cost_classifier(r) if cost_classifier else CostTier.UNCLASSIFIED for r in records]
    frame["is_best_cost"] = [t == CostTier.BEST_COST for t in tiers]
    frame["is_high_cost"] = [t == CostTier.HIGH_COST for t in tiers]

    grouped = frame.groupby("group", sort=False).agg(
        headcount=("employee_id", "count"),
        total_flrr=("flrr", "sum"),
        total_base=("base_salary", "sum"),
        total_bonus=("bonus", "sum"),
        best_cost_count=("is_best_cost", "sum"),
        high_cost_count=("is_high_cost", "sum"),
        avg_tenure=("tenure_years", "mean"),
    )

    stats = []
    for group, row in grouped.iterrows():
        total_comp = row.total_base + row.total_bonus
        stats.append(GroupStat(
            key=str(group),
            headcount=int(row.headcount),
            total_flrr=float(row.total_flrr),
            avg_flrr=safe_divide(row.total_flrr, row.headcount),
            best_cost_count=int(row.best_cost_count),
            high_cost_count=int(row.high_cost_count),
            best_cost_percent=safe_divide(row.best_cost_count, row.headcount) * 100,
            total_base=float(row.total_base),
            total_bonus=float(row.total_bonus),
            avg_variable_percent=safe_divide(row.total_bonus, total_comp) * 100,
            avg_tenure=float(row.avg_tenure),
        ))

    logger.info("Aggregated %d records into %d groups", len(records), len(stats))
    return stats


def aggregate_tenure(
    records: Sequence[EmployeeRecord],
    as_of: date | datetime,
    bands: Sequence[TenureBand] = TENURE_BANDS,
) -> list[GroupStat]:
    """Bucket records into tenure cohorts. Every band is emitted, even when empty.

    A hire date after ``as_of`` gives negative tenure and lands in no band.
    """
    frame = _records_frame(records, as_of)
    years = frame["tenure_years"]

    stats = []
    for band in bands:
        in_band = years >= band.min_years
        if band.max_years is not None:
            in_band &= years < band.max_years
        members = frame[in_band]
        headcount = len(members)
        total_flrr = float(members["flrr"].sum())
        stats.append(GroupStat(
            key=band.label,
            headcount=headcount,
            total_flrr=total_flrr,
            avg_flrr=safe_divide(total_flrr, headcount),
            total_base=float(members["base_salary"].sum()),
            total_bonus=float(members["bonus"].sum()),
            avg_tenure=safe_divide(float(members["tenure_years"].sum()), headcount),
            min_years=float(band.min_years),
            max_years=None if band.max_years is None else float(band.max_years),
        ))
    return stats


def aggregate_function_spans(tree: HierarchyNode | None) -> list[FunctionSpanStat]:
    """Per-function manager density, average span and layer depth."""
    rows = [
        {
            "function": node.record.function,
            "layer": node.layer,
            "is_manager": is_manager(node),
            "direct_reports": node.direct_reports,
        }
        for node in walk_tree(tree)
    ]
    if not rows:
        return []

    grouped = pd.DataFrame(rows).groupby("function", sort=False).agg(
        headcount=("layer", "count"),
        manager_count=("is_manager", "sum"),
        total_reports=("direct_reports", "sum"),
        layers=("layer", "nunique"),
    )

    return [
        FunctionSpanStat(
            function=str(function),
            headcount=int(row.headcount),
            manager_count=int(row.manager_count),
            manager_percent=safe_divide(row.manager_count, row.headcount) * 100,
            avg_span=safe_divide(row.total_reports, row.manager_count),
            layers=int(row.layers),
        )
        for function, row in grouped.iterrows()
    ]


def span_distribution(spans: Sequence[SpanRecord]) -> list[SpanBucket]:
    reports = np.array([s.direct_reports for s in spans], dtype=int)
    buckets = []
    for label, low, high in SPAN_BUCKETS:
        in_bucket = reports >= low
        if high is not None:
            in_bucket &= reports <= high
        buckets.append(SpanBucket(label, low, high, int(in_bucket.sum())))
    return buckets


def _year_before(as_of: date | datetime) -> date:
    return (pd.Timestamp(_as_date(as_of)) - pd.DateOffset(years=1)).date()


def recent_joiners(records: Sequence[EmployeeRecord], as_of: date | datetime) -> list[EmployeeRecord]:
    """Records with less than one year of tenure, most expensive first."""
    joiners = [r for r in records if 0 <= tenure_years(r.hire_date, as_of) < 1]
    return sorted(joiners, key=attrgetter("flrr"), reverse=True)


def hiring_by_quarter(
    records: Sequence[EmployeeRecord],
    as_of: date | datetime,
    quarters: int = 20,
) -> list[QuarterHires]:
    """Hires per calendar quarter over the trailing ``quarters`` quarters, oldest first.

    The current quarter of ``as_of`` is the last one. Every quarter is emitted;
    hires dated after ``as_of`` are not counted.
    """
    as_of = _as_date(as_of)
    periods = pd.period_range(end=pd.Period(pd.Timestamp(as_of), freq="Q"), periods=quarters, freq="Q")
    hired = [r for r in records if r.hire_date <= as_of]
    frame = pd.DataFrame(
        {
            "function": pd.Series([r.function for r in hired], dtype=object),
            "quarter": pd.Series(
                pd.to_datetime([r.hire_date for r in hired]), dtype="datetime64[ns]"
            ).dt.to_period("Q"),
        }
    )

    result = []
    for period in periods:
        in_quarter = frame[frame["quarter"] == period]
        counts = in_quarter.groupby("function", sort=False).size()
        result.append(QuarterHires(
            quarter=f"Q{period.quarter} {period.year}",
            start=period.start_time.date(),
            total=len(in_quarter),
            by_function={str(function): int(n) for function, n in counts.items()},
        ))
    return result


def new_hire_concentration(records: Sequence[EmployeeRecord], as_of: date | datetime) -> list[NewHireStat]:
    """Per-function hires within the year up to ``as_of``, most hires first.

    ``percent_of_new_hires`` is the function's share of all new hires;
    ``growth_rate`` is new hires relative to the function's headcount.
    """
    if not records:
        return []

    as_of = _as_date(as_of)
    cutoff = _year_before(as_of)
    frame = pd.DataFrame(
        {
            "function": [r.function for r in records],
            "is_new": [cutoff <= r.hire_date <= as_of for r in records],
        }
    )
    grouped = frame.groupby("function", sort=False).agg(
        headcount=("is_new", "count"),
        new_hires=("is_new", "sum"),
    )
    total_new = int(frame["is_new"].sum())

    stats = [
        NewHireStat(
            function=str(function),
            headcount=int(row.headcount),
            new_hires=int(row.new_hires),
            percent_of_new_hires=safe_divide(row.new_hires, total_new) * 100,
            growth_rate=safe_divide(row.new_hires, row.headcount) * 100,
        )
        for function, row in grouped.iterrows()
    ]
    stats.sort(key=lambda s: s.new_hires, reverse=True)
    return stats
