"""Compare org rollups against a benchmark policy and emit prioritized findings."""

import logging
from collections.abc import Sequence
from operator import attrgetter

import pandas as pd

from orgscope.analysis.models import (
    EmployeeRecord,
    Finding,
    FunctionSpanStat,
    GroupStat,
    LayerStat,
    OffshoringOpportunity,
    SpanRecord,
    StreamliningOpportunity,
)
from orgscope.config import STANDARD_POLICY, BenchmarkPolicy
from orgscope.utils.transforms import safe_divide
from orgscope.utils.types import (
    SEVERITY_ORDER,
    CostTier,
    FindingCategory,
    Severity,
    SpanHealth,
    classify_span,
)

logger = logging.getLogger(__name__)

HIGH_COST_SHARE_THRESHOLD = 50.0
SINGLE_REPORT_HIGH_COUNT = 5
NARROW_SPAN_MIN_COUNT = 3
VARIABLE_PAY_GAP_FACTOR = 0.5

# Streamlining score thresholds
MANAGER_PERCENT_CEILING = 20.0
LAYER_CEILING = 4


def _format_millions(value: float) -> str:
    return f"${value / 1_000_000:.1f}M"


def _offshoring_finding(records: Sequence[EmployeeRecord], policy: BenchmarkPolicy) -> Finding | None:
    high_cost = [r for r in records if policy.cost_tier(r.country) == CostTier.HIGH_COST]
    high_cost_percent = safe_divide(len(high_cost), len(records)) * 100
    if high_cost_percent <= HIGH_COST_SHARE_THRESHOLD:
        return None

    savings = sum(r.flrr for r in high_cost) * policy.best_cost_savings_ratio
    return Finding(
        id="offshoring-1",
        title="High-Cost Location Concentration",
        description=(
            f"{high_cost_percent:.0f}% of headcount ({len(high_cost)} employees) is in "
            f"high-cost locations. Potential FLRR savings of {_format_millions(savings)} "
            f"if shifted to best-cost."
        ),
        severity=Severity.HIGH,
        category=FindingCategory.OFFSHORING,
        metric=f"{_format_millions(savings)} potential savings",
        metric_value=savings,
    )


def _span_findings(spans: Sequence[SpanRecord], policy: BenchmarkPolicy) -> list[Finding]:
    by_health: dict[SpanHealth, list[SpanRecord]] = {health: [] for health in SpanHealth}
    for span in spans:
        by_health[classify_span(span.direct_reports, policy.min_span, policy.max_span)].append(span)

    findings = []
    single = len(by_health[SpanHealth.SINGLE])
    if single > 0:
        findings.append(Finding(
            id="spans-1",
            title="Single-Report Managers",
            description=f"{single} managers have only 1 direct report. Consider consolidating layers.",
            severity=Severity.HIGH if single > SINGLE_REPORT_HIGH_COUNT else Severity.MEDIUM,
            category=FindingCategory.SPANS,
            metric=f"{single} managers",
            metric_value=single,
        ))

    narrow = len(by_health[SpanHealth.NARROW])
    if narrow > NARROW_SPAN_MIN_COUNT:
        findings.append(Finding(
            id="spans-2",
            title="Narrow Spans of Control",
            description=(
                f"{narrow} managers have fewer than {policy.min_span} direct reports. "
                f"Industry benchmark is {policy.min_span}-{policy.max_span}."
            ),
            severity=Severity.MEDIUM,
            category=FindingCategory.SPANS,
            metric=f"{narrow} managers below benchmark",
            metric_value=narrow,
        ))

    wide = len(by_health[SpanHealth.WIDE])
    if wide > 0:
        findings.append(Finding(
            id="spans-3",
            title="Wide Spans of Control",
            description=(
                f"{wide} managers have more than {policy.max_span} direct reports. "
                f"Consider adding team leads to keep coaching capacity."
            ),
            severity=Severity.LOW,
            category=FindingCategory.SPANS,
            metric=f"{wide} managers above benchmark",
            metric_value=wide,
        ))
    return findings


def _layer_finding(layer_stats: Sequence[LayerStat], policy: BenchmarkPolicy) -> Finding | None:
    if not layer_stats:
        return None
    layer_count = max(s.layer for s in layer_stats) + 1
    excess = layer_count - policy.max_layers
    if excess <= 0:
        return None
    return Finding(
        id="structure-1",
        title="Excessive Organizational Layers",
        description=(
            f"Organization has {layer_count} layers. "
            f"Best practice is {policy.max_layers} or fewer."
        ),
        severity=Severity.HIGH,
        category=FindingCategory.STRUCTURE,
        metric=f"{excess} excess layers",
        metric_value=excess,
    )


def _compensation_findings(groups: Sequence[GroupStat], policy: BenchmarkPolicy) -> list[Finding]:
    findings = []
    for group in groups:
        target = policy.target_variable_ratio(group.key)
        if group.avg_variable_percent >= target * VARIABLE_PAY_GAP_FACTOR:
            continue
        gap = target - group.avg_variable_percent
        findings.append(Finding(
            id=f"comp-{group.key}",
            title=f"Low Variable Comp: {group.key}",
            description=(
                f"{group.key} roles average {group.avg_variable_percent:.0f}% variable "
                f"compensation. Target is {target:g}%."
            ),
            severity=Severity.HIGH if group.key in policy.high_leverage_groups else Severity.MEDIUM,
            category=FindingCategory.COMPENSATION,
            metric=f"{gap:.0f}pp gap",
            metric_value=gap,
        ))
    return findings


def evaluate(
    records: Sequence[EmployeeRecord],
    layer_stats: Sequence[LayerStat],
    span_stats: Sequence[SpanRecord],
    group_stats: Sequence[GroupStat],
    policy: BenchmarkPolicy = STANDARD_POLICY,
) -> list[Finding]:
    """Run every benchmark rule and return findings, most severe first.

    ``group_stats`` are the per-function rollups the variable-pay rule checks.
    Findings of equal severity keep the order the rules produced them in.
    Raises BenchmarkConfigError before any rule runs if the policy is unusable.
    """
    policy.validate()

    findings: list[Finding] = []
    if offshoring := _offshoring_finding(records, policy):
        findings.append(offshoring)
    findings.extend(_span_findings(span_stats, policy))
    if layers := _layer_finding(layer_stats, policy):
        findings.append(layers)
    findings.extend(_compensation_findings(group_stats, policy))

    findings.sort(key=lambda f: SEVERITY_ORDER[f.severity])
    logger.info(
        "Generated %d findings (%d high impact)",
        len(findings),
        sum(1 for f in findings if f.severity == Severity.HIGH),
    )
    return findings


def rank_streamlining_opportunities(
    function_spans: Sequence[FunctionSpanStat],
    policy: BenchmarkPolicy = STANDARD_POLICY,
    limit: int = 3,
) -> list[StreamliningOpportunity]:
    """Score functions by narrow spans, manager density and depth; highest first."""
    scored = []
    for stat in function_spans:
        score = 0.0
        if stat.manager_count > 0 and stat.avg_span < policy.min_span:
            score += (policy.min_span - stat.avg_span) * 10
        if stat.manager_percent > MANAGER_PERCENT_CEILING:
            score += stat.manager_percent - MANAGER_PERCENT_CEILING
        if stat.layers > LAYER_CEILING:
            score += (stat.layers - LAYER_CEILING) * 5
        if score > 0:
            scored.append(StreamliningOpportunity(
                function=stat.function,
                score=score,
                avg_span=stat.avg_span,
                manager_percent=stat.manager_percent,
                layers=stat.layers,
            ))

    scored.sort(key=lambda o: o.score, reverse=True)
    return scored[:limit]


def offshoring_opportunities(
    records: Sequence[EmployeeRecord],
    policy: BenchmarkPolicy = STANDARD_POLICY,
    key: str = "function",
) -> list[OffshoringOpportunity]:
    """Potential savings per group from moving high-cost positions to best-cost locations.

    Groups without high-cost headcount are omitted; the rest are ordered by
    savings, largest first.
    """
    if not records:
        return []

    key_fn = attrgetter(key)
    high_cost = [policy.cost_tier(r.country) == CostTier.HIGH_COST for r in records]
    frame = pd.DataFrame(
        {
            "group": [str(key_fn(r)) for r in records],
            "is_high_cost": high_cost,
            "high_cost_flrr": pd.Series(
                [r.flrr if flag else 0.0 for r, flag in zip(records, high_cost)], dtype=float
            ),
        }
    )
    grouped = frame.groupby("group", sort=False).agg(
        headcount=("is_high_cost", "count"),
        high_cost_count=("is_high_cost", "sum"),
        high_cost_flrr=("high_cost_flrr", "sum"),
    )

    opportunities = [
        OffshoringOpportunity(
            key=str(group),
            headcount=int(row.headcount),
            high_cost_count=int(row.high_cost_count),
            high_cost_flrr=float(row.high_cost_flrr),
            potential_savings=float(row.high_cost_flrr) * policy.best_cost_savings_ratio,
        )
        for group, row in grouped.iterrows()
        if row.high_cost_count > 0
    ]
    opportunities.sort(key=lambda o: o.potential_savings, reverse=True)
    return opportunities
