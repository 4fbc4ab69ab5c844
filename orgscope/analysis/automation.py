"""Title-based automation opportunity scoring."""

import logging
import re
from collections.abc import Sequence

import pandas as pd

from orgscope.analysis.models import AutomationOpportunity, EmployeeRecord
from orgscope.utils.types import UNKNOWN, OpportunityLevel, classify_automation_score

logger = logging.getLogger(__name__)

type TitlePattern = tuple[re.Pattern[str], int, str]

DEFAULT_SCORE = 35
DEFAULT_RATIONALE = "Role requires further analysis"


def _patterns(*entries: tuple[str, int, str]) -> tuple[TitlePattern, ...]:
    return tuple((re.compile(pattern, re.IGNORECASE), score, rationale) for pattern, score, rationale in entries)


# Checked in order: routine roles first, then partially automatable, then judgment-heavy
ROUTINE_TITLES = _patterns(
    (r"data\s*entry", 95, "Highly repetitive data input tasks"),
    (r"clerk", 85, "Administrative processing roles"),
    (r"bookkeep", 90, "Routine financial record-keeping"),
    (r"payroll", 80, "Standardized payroll processing"),
    (r"accounts\s*(payable|receivable)", 85, "Transaction processing tasks"),
    (r"receptionist", 75, "Scheduling and routing tasks"),
    (r"transcription", 95, "Audio-to-text conversion"),
    (r"filing", 90, "Document organization tasks"),
    (r"scheduler", 70, "Calendar and appointment management"),
    (r"customer\s*service\s*rep", 65, "Tier-1 support queries"),
    (r"call\s*center", 70, "Routine customer inquiries"),
    (r"telemarket", 75, "Scripted outbound calls"),
    (r"proofreader", 80, "Text review and correction"),
    (r"invoice", 75, "Invoice processing tasks"),
    (r"processor", 70, "Routine processing tasks"),
    (r"typist", 90, "Text input tasks"),
    (r"secretary", 60, "Administrative scheduling tasks"),
    (r"administrative\s*assistant", 55, "Routine admin tasks"),
    (r"analyst.*junior|junior.*analyst", 50, "Basic analytical tasks"),
    (r"quality\s*assurance.*tester", 60, "Routine testing procedures"),
    (r"warehouse", 65, "Inventory management tasks"),
    (r"assembly", 70, "Repetitive assembly tasks"),
    (r"cashier", 85, "Transaction processing"),
    (r"order\s*(entry|processing)", 80, "Order management tasks"),
)

PARTIAL_TITLES = _patterns(
    (r"accountant", 45, "Some accounting tasks automatable"),
    (r"auditor", 40, "Audit procedures becoming automated"),
    (r"paralegal", 50, "Document review automation"),
    (r"research\s*assistant", 45, "Information gathering tasks"),
    (r"support\s*specialist", 50, "Tiered support automation"),
    (r"coordinator", 40, "Scheduling and coordination tasks"),
    (r"recruiter", 45, "Resume screening automation"),
    (r"loan\s*officer", 55, "Credit decision automation"),
    (r"underwriter", 50, "Risk assessment automation"),
    (r"technical\s*writer", 45, "Documentation generation"),
    (r"translator", 60, "Language translation automation"),
    (r"report", 40, "Report generation tasks"),
)

JUDGMENT_TITLES = _patterns(
    (r"director", 15, "Strategic leadership role"),
    (r"manager", 20, "People management required"),
    (r"vice\s*president|vp\b", 10, "Executive decision-making"),
    (r"chief", 5, "C-suite strategic role"),
    (r"president", 5, "Executive leadership"),
    (r"engineer", 25, "Creative problem-solving required"),
    (r"architect", 20, "Complex design decisions"),
    (r"scientist", 20, "Research and innovation"),
    (r"therapist", 15, "Human empathy required"),
    (r"nurse", 20, "Patient care and judgment"),
    (r"doctor|physician", 15, "Complex medical decisions"),
    (r"creative", 20, "Creative thinking required"),
    (r"designer", 25, "Creative design work"),
    (r"strategist", 15, "Strategic planning"),
    (r"consultant", 25, "Client relationship and judgment"),
    (r"sales.*senior|senior.*sales", 25, "Complex relationship selling"),
)


def score_title(title: str) -> tuple[int, str]:
    """Return the automation score and rationale of the first matching title pattern."""
    normalized = title.strip()
    for pattern, score, rationale in (*ROUTINE_TITLES, *PARTIAL_TITLES, *JUDGMENT_TITLES):
        if pattern.search(normalized):
            return score, rationale
    return DEFAULT_SCORE, DEFAULT_RATIONALE


def assess_automation(records: Sequence[EmployeeRecord]) -> list[AutomationOpportunity]:
    """Group records by title and score each title, highest score first.

    Titles with equal scores keep their order of first appearance.
    """
    if not records:
        return []

    frame = pd.DataFrame(
        {
            "title": [r.title or UNKNOWN for r in records],
            "flrr": pd.Series([r.flrr for r in records], dtype=float),
        }
    )
    by_title = frame.groupby("title", sort=False).agg(
        headcount=("flrr", "count"),
        total_flrr=("flrr", "sum"),
    )

    opportunities = []
    for title, row in by_title.iterrows():
        score, rationale = score_title(str(title))
        opportunities.append(AutomationOpportunity(
            title=str(title),
            headcount=int(row.headcount),
            total_flrr=float(row.total_flrr),
            score=score,
            level=classify_automation_score(score),
            rationale=rationale,
        ))

    opportunities.sort(key=lambda o: o.score, reverse=True)
    logger.info(
        "Scored %d titles for automation (%d high opportunity)",
        len(opportunities),
        sum(1 for o in opportunities if o.level == OpportunityLevel.HIGH),
    )
    return opportunities


def summarize_automation(
    opportunities: Sequence[AutomationOpportunity],
) -> dict[OpportunityLevel, dict[str, float]]:
    """Titles, headcount and FLRR per opportunity level; every level is present."""
    summary = {level: {"titles": 0, "headcount": 0, "total_flrr": 0.0} for level in OpportunityLevel}
    for opportunity in opportunities:
        bucket = summary[opportunity.level]
        bucket["titles"] += 1
        bucket["headcount"] += opportunity.headcount
        bucket["total_flrr"] += opportunity.total_flrr
    return summary
