"""Tests for the end-to-end analysis snapshot."""

import json
from datetime import date, datetime

import pytest

from conftest import employee
from orgscope.analysis.snapshot import analyze, compute_totals, snapshot_to_dict
from orgscope.config import BenchmarkConfigError, BenchmarkPolicy


class TestAnalyze:
    def test_scenario(self, scenario_records, as_of) -> None:
        snapshot = analyze(scenario_records, as_of=as_of)
        assert snapshot.tree.employee_id == "A"
        assert [(s.layer, s.headcount) for s in snapshot.layer_stats] == [(0, 1), (1, 2)]
        assert [(s.manager_id, s.direct_reports) for s in snapshot.span_stats] == [("A", 2)]
        assert snapshot.excluded_ids == ("D",)

    def test_totals_are_consistent(self, sample_org, as_of) -> None:
        snapshot = analyze(sample_org, as_of=as_of)
        totals = snapshot.totals
        assert totals.headcount == 6
        assert totals.headcount == sum(s.headcount for s in snapshot.layer_stats)
        assert totals.total_managers == len(snapshot.span_stats) == 3
        assert totals.total_ics == 3
        assert totals.layers == 3
        assert totals.root_direct_reports == 2
        assert totals.avg_span == pytest.approx(5 / 3)
        assert totals.manager_to_ic_ratio == pytest.approx(1.0)
        assert totals.best_cost_percent == pytest.approx(2 / 6 * 100)
        assert totals.total_flrr == pytest.approx(1_960_000)

    def test_unreachable_records_are_left_out_of_every_rollup(self, scenario_records, as_of) -> None:
        snapshot = analyze(scenario_records, as_of=as_of)
        assert snapshot.totals.headcount == 3
        assert snapshot.totals.excluded_count == 1
        assert sum(s.headcount for s in snapshot.function_stats) == 3
        assert sum(s.headcount for s in snapshot.country_stats) == 3
        assert sum(s.headcount for s in snapshot.tenure_stats) == 3

    def test_rollups_by_dimension(self, sample_org, as_of) -> None:
        snapshot = analyze(sample_org, as_of=as_of)
        assert [s.key for s in snapshot.function_stats] == ["Executive", "Sales", "Engineering"]
        assert [s.key for s in snapshot.country_stats] == ["United States", "India"]
        assert [s.key for s in snapshot.business_unit_stats] == ["Unknown"]
        assert len(snapshot.tenure_stats) == 4
        assert [b.count for b in snapshot.span_distribution] == [1, 2, 0, 0, 0]

    def test_findings_use_reachable_members_only(self, as_of) -> None:
        # Three high-cost orphans would tip the offshoring rule if they were counted
        records = [
            employee("A", country="India"),
            employee("B", "A", country="India"),
            employee("X", "missing", country="United States"),
            employee("Y", "missing", country="United States"),
            employee("Z", "missing", country="United States"),
        ]
        snapshot = analyze(records, as_of=as_of)
        assert all(f.id != "offshoring-1" for f in snapshot.findings)

    def test_workforce_trends(self, sample_org, as_of) -> None:
        snapshot = analyze(sample_org, as_of=as_of)
        assert [o.key for o in snapshot.offshoring_opportunities] == ["Executive", "Sales"]
        assert [(o.title, o.headcount) for o in snapshot.automation] == [("Unknown", 6)]
        assert [r.employee_id for r in snapshot.recent_joiners] == ["S1"]
        assert len(snapshot.hiring_by_quarter) == 20
        assert snapshot.new_hire_stats[0].function == "Sales"

    def test_trends_skip_unreachable_records(self, scenario_records, as_of) -> None:
        snapshot = analyze(scenario_records, as_of=as_of)
        assert snapshot.automation[0].headcount == 3
        assert sum(s.headcount for s in snapshot.new_hire_stats) == 3

    def test_empty_roster(self, as_of) -> None:
        snapshot = analyze([], as_of=as_of)
        assert snapshot.tree is None
        assert snapshot.layer_stats == ()
        assert snapshot.span_stats == ()
        assert snapshot.findings == ()
        assert snapshot.totals.headcount == 0
        assert snapshot.totals.layers == 0

    def test_datetime_reference_date_is_truncated(self, sample_org) -> None:
        snapshot = analyze(sample_org, as_of=datetime(2024, 6, 30, 17, 45))
        assert snapshot.as_of == date(2024, 6, 30)

    def test_defaults_to_today(self, scenario_records) -> None:
        assert analyze(scenario_records).as_of == date.today()

    def test_invalid_policy_is_rejected(self, sample_org, as_of) -> None:
        policy = BenchmarkPolicy(target_variable_ratio_by_group={"Sales": 40})
        with pytest.raises(BenchmarkConfigError):
            analyze(sample_org, policy=policy, as_of=as_of)

    def test_idempotent(self, sample_org, as_of) -> None:
        first = json.dumps(snapshot_to_dict(analyze(sample_org, as_of=as_of)), sort_keys=True)
        second = json.dumps(snapshot_to_dict(analyze(sample_org, as_of=as_of)), sort_keys=True)
        assert first == second


class TestComputeTotals:
    def test_no_tree(self) -> None:
        totals = compute_totals(None, [], excluded_count=4)
        assert totals.headcount == 0
        assert totals.excluded_count == 4

    def test_lone_employee(self, as_of) -> None:
        snapshot = analyze([employee("A")], as_of=as_of)
        assert snapshot.totals.total_managers == 0
        assert snapshot.totals.total_ics == 1
        assert snapshot.totals.layers == 1
        assert snapshot.totals.avg_span == 0.0


class TestSnapshotToDict:
    def test_json_compatible(self, sample_org, as_of) -> None:
        data = snapshot_to_dict(analyze(sample_org, as_of=as_of))
        json.dumps(data)
        assert data["as_of"] == "2024-06-30"
        assert data["totals"]["headcount"] == 6
        assert data["hiring_by_quarter"][-1]["start"] == "2024-04-01"
        assert data["automation"][0]["level"] == "medium"

    def test_tree_is_nested(self, sample_org, as_of) -> None:
        tree = snapshot_to_dict(analyze(sample_org, as_of=as_of))["tree"]
        assert tree["employee_id"] == "CEO"
        assert tree["hire_date"] == "2015-01-10"
        assert [child["employee_id"] for child in tree["children"]] == ["VPS", "VPE"]
        assert tree["children"][0]["children"][0]["layer"] == 2

    def test_enums_become_plain_strings(self, as_of) -> None:
        records = [employee("A"), employee("B", "A")]
        finding = snapshot_to_dict(analyze(records, as_of=as_of))["findings"][0]
        assert finding["severity"] == "medium"
        assert finding["category"] == "spans"
