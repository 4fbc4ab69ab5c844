"""Org structure analytics.

Rebuilds the reporting tree from a flat roster, rolls it up by layer,
manager, function, geography and tenure, and benchmarks the result to
produce prioritized quick wins.
"""

from datetime import date
from pathlib import Path

from orgscope.analysis.ingest import load_roster
from orgscope.analysis.hierarchy import build_org_tree, walk_tree
from orgscope.analysis.aggregate import (
    aggregate_groups,
    aggregate_layers,
    aggregate_spans,
    aggregate_tenure,
    hiring_by_quarter,
    new_hire_concentration,
    recent_joiners,
)
from orgscope.analysis.automation import assess_automation, score_title, summarize_automation
from orgscope.analysis.benchmarks import evaluate, offshoring_opportunities
from orgscope.analysis.snapshot import analyze, snapshot_to_dict
from orgscope.analysis.models import AnalysisSnapshot, EmployeeRecord
from orgscope.config import BenchmarkPolicy, load_policy


def run(
    roster_path: str | Path,
    policy: BenchmarkPolicy | None = None,
    as_of: date | None = None,
) -> tuple[AnalysisSnapshot, list[str]]:
    """Load a roster file and analyze it, returning the snapshot and ingest warnings."""
    records, warnings = load_roster(roster_path)
    snapshot = analyze(records, policy or load_policy(), as_of=as_of)
    return snapshot, warnings
