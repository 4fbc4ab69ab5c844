"""Full org analysis: tree, rollups, totals and findings in one snapshot."""

import logging
from collections.abc import Sequence
from dataclasses import asdict, fields, is_dataclass
from datetime import date, datetime
from enum import Enum

from orgscope.analysis.aggregate import (
    aggregate_function_spans,
    aggregate_groups,
    aggregate_layers,
    aggregate_spans,
    aggregate_tenure,
    hiring_by_quarter,
    new_hire_concentration,
    recent_joiners,
    span_distribution,
)
from orgscope.analysis.automation import assess_automation
from orgscope.analysis.benchmarks import (
    evaluate,
    offshoring_opportunities,
    rank_streamlining_opportunities,
)
from orgscope.analysis.hierarchy import (
    build_org_tree,
    excluded_ids,
    is_manager,
    reachable_records,
    walk_tree,
)
from orgscope.analysis.models import (
    AnalysisSnapshot,
    EmployeeRecord,
    HierarchyNode,
    OrgTotals,
    SpanRecord,
)
from orgscope.config import STANDARD_POLICY, BenchmarkPolicy
from orgscope.utils.transforms import mean_or_zero, safe_divide
from orgscope.utils.types import CostTier

logger = logging.getLogger(__name__)

type SnapshotDict = dict[str, object]


def compute_totals(
    tree: HierarchyNode | None,
    span_stats: Sequence[SpanRecord],
    policy: BenchmarkPolicy = STANDARD_POLICY,
    excluded_count: int = 0,
) -> OrgTotals:
    """Organization-wide totals over the positions reachable from the root.

    Managers are classified with the same rule the span rollup uses, so
    ``total_managers`` always equals the number of span records.
    """
    nodes = list(walk_tree(tree))
    if not nodes:
        return OrgTotals(excluded_count=excluded_count)

    headcount = len(nodes)
    managers = sum(1 for node in nodes if is_manager(node))
    ics = headcount - managers
    total_flrr = sum(node.record.flrr for node in nodes)
    total_base = sum(node.record.base_salary for node in nodes)
    total_bonus = sum(node.record.bonus for node in nodes)
    best_cost = sum(1 for node in nodes if policy.cost_tier(node.record.country) == CostTier.BEST_COST)

    return OrgTotals(
        headcount=headcount,
        total_flrr=float(total_flrr),
        avg_flrr=safe_divide(total_flrr, headcount),
        layers=max(node.layer for node in nodes) + 1,
        avg_span=mean_or_zero([s.direct_reports for s in span_stats]),
        total_managers=managers,
        total_ics=ics,
        manager_to_ic_ratio=safe_divide(managers, ics),
        manager_percent=safe_divide(managers, headcount) * 100,
        root_direct_reports=tree.direct_reports,
        best_cost_percent=safe_divide(best_cost, headcount) * 100,
        avg_variable_percent=safe_divide(total_bonus, total_base + total_bonus) * 100,
        excluded_count=excluded_count,
    )


def analyze(
    records: Sequence[EmployeeRecord],
    policy: BenchmarkPolicy = STANDARD_POLICY,
    as_of: date | datetime | None = None,
) -> AnalysisSnapshot:
    """Run the complete analysis over one roster snapshot.

    Positions that are not reachable from the chosen root (extra root
    candidates, their reports, manager cycles) are left out of every
    statistic and listed in ``excluded_ids``. ``as_of`` is the reference date
    for tenure and defaults to today.
    """
    policy.validate()
    if as_of is None:
        as_of = date.today()
    elif isinstance(as_of, datetime):
        as_of = as_of.date()

    tree = build_org_tree(records)
    members = reachable_records(tree)
    excluded = excluded_ids(records, tree)

    def classify(record: EmployeeRecord) -> CostTier:
        return policy.cost_tier(record.country)

    layer_stats = aggregate_layers(tree, as_of)
    span_stats = aggregate_spans(tree)
    function_stats = aggregate_groups(members, "function", classify, as_of)
    function_spans = aggregate_function_spans(tree)
    findings = evaluate(members, layer_stats, span_stats, function_stats, policy)

    snapshot = AnalysisSnapshot(
        as_of=as_of,
        tree=tree,
        layer_stats=tuple(layer_stats),
        span_stats=tuple(span_stats),
        function_stats=tuple(function_stats),
        country_stats=tuple(aggregate_groups(members, "country", classify, as_of)),
        business_unit_stats=tuple(aggregate_groups(members, "business_unit", classify, as_of)),
        tenure_stats=tuple(aggregate_tenure(members, as_of)),
        function_span_stats=tuple(function_spans),
        span_distribution=tuple(span_distribution(span_stats)),
        streamlining=tuple(rank_streamlining_opportunities(function_spans, policy)),
        findings=tuple(findings),
        offshoring_opportunities=tuple(offshoring_opportunities(members, policy)),
        automation=tuple(assess_automation(members)),
        recent_joiners=tuple(recent_joiners(members, as_of)),
        hiring_by_quarter=tuple(hiring_by_quarter(members, as_of)),
        new_hire_stats=tuple(new_hire_concentration(members, as_of)),
        totals=compute_totals(tree, span_stats, policy, excluded_count=len(excluded)),
        excluded_ids=tuple(excluded),
    )
    logger.info(
        "Analyzed %d of %d records: %d layers, %d managers, %d findings",
        snapshot.totals.headcount,
        len(records),
        snapshot.totals.layers,
        snapshot.totals.total_managers,
        len(snapshot.findings),
    )
    return snapshot


def _plain(value: object) -> object:
    match value:
        case Enum():
            return value.value
        case date():
            return value.isoformat()
        case dict():
            return {k: _plain(v) for k, v in value.items()}
        case list() | tuple():
            return [_plain(v) for v in value]
        case _:
            return value


def _tree_to_dict(root: HierarchyNode | None) -> SnapshotDict | None:
    if root is None:
        return None

    def shell(node: HierarchyNode) -> SnapshotDict:
        return {
            **_plain(asdict(node.record)),
            "layer": node.layer,
            "direct_reports": node.direct_reports,
            "children": [],
        }

    payload = shell(root)
    stack = [(root, payload)]
    while stack:
        node, node_payload = stack.pop()
        for child in node.children:
            child_payload = shell(child)
            node_payload["children"].append(child_payload)
            stack.append((child, child_payload))
    return payload


def snapshot_to_dict(snapshot: AnalysisSnapshot) -> SnapshotDict:
    """Convert a snapshot to plain JSON-compatible data."""
    result: SnapshotDict = {}
    for f in fields(snapshot):
        value = getattr(snapshot, f.name)
        match f.name, value:
            case "tree", _:
                result[f.name] = _tree_to_dict(value)
            case _, tuple():
                result[f.name] = [_plain(asdict(item)) if is_dataclass(item) else item for item in value]
            case _, _ if is_dataclass(value):
                result[f.name] = _plain(asdict(value))
            case _:
                result[f.name] = _plain(value)
    return result
