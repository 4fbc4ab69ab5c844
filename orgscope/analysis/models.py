"""Record types and pandera schemas for org analytics."""

import math
from dataclasses import dataclass
from datetime import date

import pandera as pa
from pandera import Check, Column

from orgscope.utils.types import (
    UNKNOWN,
    EmployeeID,
    FindingCategory,
    GroupKey,
    MetricValue,
    OpportunityLevel,
    Severity,
)

DEFAULT_HIRE_DATE = date(2020, 1, 1)


@dataclass(frozen=True)
class EmployeeRecord:
    employee_id: EmployeeID
    manager_id: EmployeeID | None = None
    function: str = UNKNOWN
    title: str = UNKNOWN
    location: str = UNKNOWN
    country: str = UNKNOWN
    business_unit: str = UNKNOWN
    hire_date: date = DEFAULT_HIRE_DATE
    flrr: float = 0.0
    base_salary: float = 0.0
    bonus: float = 0.0

    def __post_init__(self) -> None:
        for name in ("flrr", "base_salary", "bonus"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(
                    f"{name} for employee {self.employee_id!r} must be a non-negative "
                    f"finite number, got {value!r}"
                )


@dataclass
class HierarchyNode:
    """One position in the reconstructed reporting tree.

    The hierarchy builder sets ``children`` and ``layer`` exactly once while
    linking; ``children`` is a tuple so the finished tree cannot gain or lose
    edges. Treat ``layer`` as read-only once the tree is returned.
    """

    record: EmployeeRecord
    children: tuple["HierarchyNode", ...] = ()
    layer: int = 0

    @property
    def employee_id(self) -> str:
        return self.record.employee_id

    @property
    def direct_reports(self) -> int:
        return len(self.children)


@dataclass(frozen=True)
class LayerStat:
    layer: int
    headcount: int
    total_flrr: float
    avg_flrr: float
    managers: int
    ics: int
    avg_tenure: float


@dataclass(frozen=True)
class SpanRecord:
    manager_id: EmployeeID
    function: str
    title: str
    direct_reports: int
    layer: int


@dataclass(frozen=True)
class GroupStat:
    key: GroupKey
    headcount: int
    total_flrr: float
    avg_flrr: float
    best_cost_count: int = 0
    high_cost_count: int = 0
    best_cost_percent: float = 0.0
    total_base: float = 0.0
    total_bonus: float = 0.0
    avg_variable_percent: float = 0.0
    avg_tenure: float = 0.0
    min_years: float | None = None
    max_years: float | None = None


@dataclass(frozen=True)
class FunctionSpanStat:
    function: str
    headcount: int
    manager_count: int
    manager_percent: float
    avg_span: float
    layers: int


@dataclass(frozen=True)
class SpanBucket:
    label: str
    min_reports: int
    max_reports: int | None
    count: int


@dataclass(frozen=True)
class StreamliningOpportunity:
    function: str
    score: float
    avg_span: float
    manager_percent: float
    layers: int


@dataclass(frozen=True)
class OffshoringOpportunity:
    key: GroupKey
    headcount: int
    high_cost_count: int
    high_cost_flrr: float
    potential_savings: float


@dataclass(frozen=True)
class AutomationOpportunity:
    """Roster positions sharing one title, scored for automation potential (0-100)."""

    title: str
    headcount: int
    total_flrr: float
    score: int
    level: OpportunityLevel
    rationale: str


@dataclass(frozen=True)
class QuarterHires:
    quarter: str  # "Q3 2024"
    start: date
    total: int
    by_function: dict[str, int]


@dataclass(frozen=True)
class NewHireStat:
    function: str
    headcount: int
    new_hires: int
    percent_of_new_hires: float
    growth_rate: float  # new hires as a percent of the function's headcount


@dataclass(frozen=True)
class Finding:
    id: str
    title: str
    description: str
    severity: Severity
    category: FindingCategory
    metric: str | None = None
    metric_value: MetricValue = None


@dataclass(frozen=True)
class OrgTotals:
    headcount: int = 0
    total_flrr: float = 0.0
    avg_flrr: float = 0.0
    layers: int = 0
    avg_span: float = 0.0
    total_managers: int = 0
    total_ics: int = 0
    manager_to_ic_ratio: float = 0.0
    manager_percent: float = 0.0
    root_direct_reports: int = 0
    best_cost_percent: float = 0.0
    avg_variable_percent: float = 0.0
    excluded_count: int = 0


@dataclass(frozen=True)
class AnalysisSnapshot:
    as_of: date
    tree: HierarchyNode | None
    layer_stats: tuple[LayerStat, ...]
    span_stats: tuple[SpanRecord, ...]
    function_stats: tuple[GroupStat, ...]
    country_stats: tuple[GroupStat, ...]
    business_unit_stats: tuple[GroupStat, ...]
    tenure_stats: tuple[GroupStat, ...]
    function_span_stats: tuple[FunctionSpanStat, ...]
    span_distribution: tuple[SpanBucket, ...]
    streamlining: tuple[StreamliningOpportunity, ...]
    findings: tuple[Finding, ...]
    offshoring_opportunities: tuple[OffshoringOpportunity, ...]
    automation: tuple[AutomationOpportunity, ...]
    recent_joiners: tuple[EmployeeRecord, ...]
    hiring_by_quarter: tuple[QuarterHires, ...]
    new_hire_stats: tuple[NewHireStat, ...]
    totals: OrgTotals
    excluded_ids: tuple[str, ...] = ()


roster_schema = pa.DataFrameSchema(
    {
        "employee_id": Column(str, Check.str_length(min_value=1), nullable=False),
        "manager_id": Column(object, nullable=True),
        "function": Column(str, Check.str_length(min_value=1)),
        "title": Column(str, Check.str_length(min_value=1)),
        "location": Column(str, Check.str_length(min_value=1)),
        "country": Column(str, Check.str_length(min_value=1)),
        "business_unit": Column(str, Check.str_length(min_value=1)),
        "hire_date": Column(pa.DateTime, nullable=False),
        "flrr": Column(float, Check.greater_than_or_equal_to(0)),
        "base_salary": Column(float, Check.greater_than_or_equal_to(0)),
        "bonus": Column(float, Check.greater_than_or_equal_to(0)),
    },
    strict=False,
    coerce=False,
)
