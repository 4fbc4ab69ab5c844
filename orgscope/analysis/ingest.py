"""Ingest roster exports (HRIS CSV or Excel downloads)."""

import logging
from pathlib import Path

from orgscope.analysis.transform import RosterResult, normalize_roster
from orgscope.utils.io import read_roster_file
from orgscope.utils.transforms import ColumnMapping, normalize_columns

logger = logging.getLogger(__name__)


def load_roster(
    path: str | Path,
    column_mapping: ColumnMapping | None = None,
    sheet_name: str | int = 0,
) -> RosterResult:
    """Load a roster file and return normalized records plus data-quality warnings.

    Headers are snake_cased first; ``column_mapping`` then renames any that do
    not already match the canonical field names (``employee_id``,
    ``manager_id``, ``function``, ``title``, ``location``, ``country``,
    ``business_unit``, ``hire_date``, ``flrr``, ``base_salary``, ``bonus``).
    """
    path = Path(path)
    raw = read_roster_file(path, sheet_name=sheet_name)
    logger.info("Reading roster export: %s (%d rows)", path.name, len(raw))
    return normalize_roster(normalize_columns(raw, column_mapping))
