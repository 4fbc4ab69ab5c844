"""Shared type definitions for org analytics."""

from enum import StrEnum


UNKNOWN = "Unknown"

type EmployeeID = str
type GroupKey = str
type MetricValue = int | float | None


class Severity(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FindingCategory(StrEnum):
    SPANS = "spans"
    STRUCTURE = "structure"
    COMPENSATION = "compensation"
    OFFSHORING = "offshoring"


class CostTier(StrEnum):
    BEST_COST = "Best-cost"
    HIGH_COST = "High-cost"
    UNCLASSIFIED = "Unclassified"


class SpanHealth(StrEnum):
    SINGLE = "single"
    NARROW = "narrow"
    WITHIN = "within"
    WIDE = "wide"


# Findings render top-to-bottom in this order
SEVERITY_ORDER: dict[Severity, int] = {
    Severity.HIGH: 0,
    Severity.MEDIUM: 1,
    Severity.LOW: 2,
}


def classify_span(direct_reports: int, min_span: int, max_span: int) -> SpanHealth:
    match direct_reports:
        case 1:
            return SpanHealth.SINGLE
        case n if 1 < n < min_span:
            return SpanHealth.NARROW
        case n if n > max_span:
            return SpanHealth.WIDE
        case _:
            return SpanHealth.WITHIN


class OpportunityLevel(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def classify_automation_score(score: int) -> OpportunityLevel:
    match score:
        case s if s >= 60:
            return OpportunityLevel.HIGH
        case s if s >= 35:
            return OpportunityLevel.MEDIUM
        case _:
            return OpportunityLevel.LOW
