"""Shared utilities for org analytics."""

from orgscope.utils.io import read_roster_file, write_output
from orgscope.utils.transforms import normalize_columns, safe_divide
from orgscope.utils.validators import validate_dataframe, validate_unique
from orgscope.utils.types import CostTier, FindingCategory, Severity
