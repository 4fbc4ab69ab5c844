"""Tests for layer, span, group and tenure rollups."""

from datetime import date

import pytest

from conftest import employee
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
    tenure_years,
)
from orgscope.analysis.hierarchy import build_org_tree, walk_tree
from orgscope.config import STANDARD_POLICY
from orgscope.utils.types import CostTier


def _classify(record):
    return STANDARD_POLICY.cost_tier(record.country)


class TestAggregateLayers:
    def test_scenario_layers(self, scenario_records, as_of) -> None:
        stats = aggregate_layers(build_org_tree(scenario_records), as_of)
        assert [(s.layer, s.headcount) for s in stats] == [(0, 1), (1, 2)]

    def test_headcount_sums_to_reachable_nodes(self, scenario_records, as_of) -> None:
        tree = build_org_tree(scenario_records)
        stats = aggregate_layers(tree, as_of)
        assert sum(s.headcount for s in stats) == len(list(walk_tree(tree)))

    def test_managers_and_ics_per_layer(self, sample_org, as_of) -> None:
        stats = aggregate_layers(build_org_tree(sample_org), as_of)
        assert [(s.layer, s.managers, s.ics) for s in stats] == [(0, 1, 0), (1, 2, 0), (2, 0, 3)]

    def test_cost_and_tenure_averages(self, sample_org, as_of) -> None:
        stats = aggregate_layers(build_org_tree(sample_org), as_of)
        layer_one = stats[1]
        assert layer_one.total_flrr == pytest.approx(650_000)
        assert layer_one.avg_flrr == pytest.approx(325_000)
        expected_tenure = (tenure_years(date(2019, 3, 1), as_of) + tenure_years(date(2021, 9, 15), as_of)) / 2
        assert layer_one.avg_tenure == pytest.approx(expected_tenure)

    def test_layers_are_ascending(self) -> None:
        records = [employee("C", "B"), employee("B", "A"), employee("A")]
        stats = aggregate_layers(build_org_tree(records))
        assert [s.layer for s in stats] == [0, 1, 2]

    def test_empty_tree(self, as_of) -> None:
        assert aggregate_layers(None, as_of) == []


class TestAggregateSpans:
    def test_scenario_span(self, scenario_records) -> None:
        spans = aggregate_spans(build_org_tree(scenario_records))
        assert len(spans) == 1
        assert spans[0].manager_id == "A"
        assert spans[0].direct_reports == 2
        assert spans[0].layer == 0

    def test_one_record_per_manager_in_preorder(self, sample_org) -> None:
        spans = aggregate_spans(build_org_tree(sample_org))
        assert [(s.manager_id, s.direct_reports, s.function) for s in spans] == [
            ("CEO", 2, "Executive"),
            ("VPS", 2, "Sales"),
            ("VPE", 1, "Engineering"),
        ]

    def test_orphaned_manager_has_no_span(self) -> None:
        records = [employee("A"), employee("X", "missing"), employee("Y", "X")]
        spans = aggregate_spans(build_org_tree(records))
        assert spans == []


class TestAggregateGroups:
    def test_groups_in_first_appearance_order(self, sample_org) -> None:
        stats = aggregate_groups(sample_org, "function")
        assert [s.key for s in stats] == ["Executive", "Sales", "Engineering"]
        assert [s.headcount for s in stats] == [1, 3, 2]

    def test_cost_and_variable_pay(self, sample_org) -> None:
        sales = {s.key: s for s in aggregate_groups(sample_org, "function")}["Sales"]
        assert sales.total_flrr == pytest.approx(750_000)
        assert sales.avg_flrr == pytest.approx(250_000)
        assert sales.total_base == pytest.approx(395_000)
        assert sales.total_bonus == pytest.approx(265_000)
        assert sales.avg_variable_percent == pytest.approx(265_000 / 660_000 * 100)

    def test_cost_classification_counts(self, sample_org) -> None:
        by_country = {s.key: s for s in aggregate_groups(sample_org, "country", _classify)}
        assert by_country["India"].best_cost_count == 2
        assert by_country["India"].best_cost_percent == pytest.approx(100.0)
        assert by_country["United States"].high_cost_count == 4
        assert by_country["United States"].best_cost_count == 0

    def test_callable_key(self, sample_org) -> None:
        stats = aggregate_groups(sample_org, lambda r: "lead" if r.manager_id in (None, "CEO") else "team")
        assert [(s.key, s.headcount) for s in stats] == [("lead", 3), ("team", 3)]

    def test_zero_compensation_yields_zero_variable_percent(self) -> None:
        stats = aggregate_groups([employee("A", base_salary=0, bonus=0)], "function")
        assert stats[0].avg_variable_percent == 0.0

    def test_empty_records(self) -> None:
        assert aggregate_groups([], "function") == []

    def test_stable_for_identical_input(self, sample_org) -> None:
        assert aggregate_groups(sample_org, "function", _classify) == aggregate_groups(
            sample_org, "function", _classify
        )


class TestAggregateTenure:
    def test_every_band_is_reported(self, sample_org, as_of) -> None:
        stats = aggregate_tenure(sample_org, as_of)
        assert [(s.key, s.headcount) for s in stats] == [
            ("<1 year", 1),
            ("1-3 years", 2),
            ("3-5 years", 1),
            ("5+ years", 2),
        ]

    def test_band_boundaries_use_365_day_years(self, as_of) -> None:
        records = [
            employee("exactly-one", hire_date=date.fromordinal(as_of.toordinal() - 365)),
            employee("just-under", hire_date=date.fromordinal(as_of.toordinal() - 364)),
        ]
        stats = {s.key: s.headcount for s in aggregate_tenure(records, as_of)}
        assert stats["<1 year"] == 1
        assert stats["1-3 years"] == 1

    def test_future_hire_falls_in_no_band(self, as_of) -> None:
        stats = aggregate_tenure([employee("new", hire_date=date(2025, 1, 1))], as_of)
        assert sum(s.headcount for s in stats) == 0

    def test_empty_band_averages_are_zero(self, as_of) -> None:
        stats = aggregate_tenure([], as_of)
        assert all(s.headcount == 0 and s.avg_flrr == 0.0 for s in stats)
        assert stats[-1].max_years is None


class TestFunctionSpans:
    def test_manager_density_by_function(self, sample_org) -> None:
        stats = {s.function: s for s in aggregate_function_spans(build_org_tree(sample_org))}
        sales = stats["Sales"]
        assert sales.headcount == 3
        assert sales.manager_count == 1
        assert sales.avg_span == pytest.approx(2.0)
        assert sales.layers == 2
        assert stats["Executive"].manager_percent == pytest.approx(100.0)

    def test_function_without_managers_has_zero_span(self) -> None:
        records = [employee("A", function="Ops"), employee("B", "A", function="Legal")]
        stats = {s.function: s for s in aggregate_function_spans(build_org_tree(records))}
        assert stats["Legal"].avg_span == 0.0
        assert stats["Legal"].manager_percent == 0.0


class TestSpanDistribution:
    def test_buckets(self, sample_org) -> None:
        buckets = span_distribution(aggregate_spans(build_org_tree(sample_org)))
        assert [(b.label, b.count) for b in buckets] == [
            ("1", 1),
            ("2-4", 2),
            ("5-7", 0),
            ("8-10", 0),
            ("11+", 0),
        ]

    def test_empty(self) -> None:
        assert all(b.count == 0 for b in span_distribution([]))


def test_cost_tier_classifier_handles_unknown_country() -> None:
    assert _classify(employee("A")) == CostTier.UNCLASSIFIED


class TestTenureTrends:
    def test_recent_joiners(self, sample_org, as_of) -> None:
        assert [r.employee_id for r in recent_joiners(sample_org, as_of)] == ["S1"]

    def test_recent_joiners_most_expensive_first(self, as_of) -> None:
        records = [
            employee("A", flrr=90_000, hire_date=date(2024, 1, 2)),
            employee("B", "A", flrr=120_000, hire_date=date(2024, 3, 4)),
            employee("C", "A", flrr=200_000, hire_date=date(2024, 9, 1)),
        ]
        assert [r.employee_id for r in recent_joiners(records, as_of)] == ["B", "A"]

    def test_hiring_by_quarter_covers_trailing_window(self, sample_org, as_of) -> None:
        quarters = hiring_by_quarter(sample_org, as_of)
        assert len(quarters) == 20
        assert quarters[0].quarter == "Q3 2019"
        assert quarters[0].start == date(2019, 7, 1)
        assert quarters[-1].quarter == "Q2 2024"
        assert sum(q.total for q in quarters) == 4

    def test_hiring_by_quarter_counts_by_function(self, sample_org, as_of) -> None:
        by_label = {q.quarter: q for q in hiring_by_quarter(sample_org, as_of)}
        assert by_label["Q4 2023"].by_function == {"Sales": 1}
        assert by_label["Q3 2021"].by_function == {"Engineering": 1}
        assert by_label["Q1 2024"].total == 0
        assert by_label["Q1 2024"].by_function == {}

    def test_future_hires_are_not_counted(self, as_of) -> None:
        records = [employee("A", hire_date=date(2024, 5, 1)), employee("B", "A", hire_date=date(2024, 7, 1))]
        quarters = hiring_by_quarter(records, as_of, quarters=2)
        assert [(q.quarter, q.total) for q in quarters] == [("Q1 2024", 0), ("Q2 2024", 1)]

    def test_hiring_by_quarter_without_records(self, as_of) -> None:
        quarters = hiring_by_quarter([], as_of, quarters=4)
        assert [q.total for q in quarters] == [0, 0, 0, 0]

    def test_new_hire_concentration(self, sample_org, as_of) -> None:
        stats = new_hire_concentration(sample_org, as_of)
        assert [(s.function, s.new_hires) for s in stats] == [("Sales", 1), ("Executive", 0), ("Engineering", 0)]
        sales = stats[0]
        assert sales.headcount == 3
        assert sales.percent_of_new_hires == pytest.approx(100.0)
        assert sales.growth_rate == pytest.approx(100 / 3)

    def test_new_hire_window_includes_cutoff_day(self, as_of) -> None:
        records = [employee("A", hire_date=date(2023, 6, 30)), employee("B", "A", hire_date=date(2023, 6, 29))]
        stats = new_hire_concentration(records, as_of)
        assert stats[0].new_hires == 1
        assert stats[0].percent_of_new_hires == pytest.approx(100.0)

    def test_new_hire_concentration_empty(self, as_of) -> None:
        assert new_hire_concentration([], as_of) == []
