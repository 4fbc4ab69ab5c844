"""Benchmark policy and configuration loading."""

import logging
import math
import tomllib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

from orgscope.utils.types import UNKNOWN, CostTier

logger = logging.getLogger(__name__)

type ConfigDict = dict[str, str | int | float | bool | list[str] | dict[str, float]]

PROJECT_ROOT = Path(__file__).parent.parent
LOCAL_CONFIG = Path("orgscope.yaml")

DEFAULT_VARIABLE_TARGETS: dict[str, float] = {
    "Sales": 40,
    "Executive": 30,
    "Engineering": 15,
    "Operations": 10,
    "Support": 10,
    "Finance": 15,
    "Marketing": 20,
    "HR": 10,
    "default": 15,
}

BEST_COST_COUNTRIES = frozenset({
    "india",
    "philippines",
    "mexico",
    "poland",
    "romania",
    "bulgaria",
    "hungary",
    "czech republic",
    "costa rica",
    "colombia",
    "argentina",
    "brazil",
    "vietnam",
    "malaysia",
    "egypt",
    "south africa",
    "china",
})


class BenchmarkConfigError(ValueError):
    """A benchmark policy is missing required entries or holds invalid values."""


@dataclass(frozen=True)
class BenchmarkPolicy:
    """Thresholds the benchmark engine compares an organization against.

    ``target_variable_ratio_by_group`` maps a function name to its target
    variable-pay percentage and must carry a ``"default"`` entry used for
    every function without its own target.
    """

    min_span: int = 4
    max_span: int = 10
    max_layers: int = 6
    target_variable_ratio_by_group: Mapping[str, float] = field(
        default_factory=lambda: dict(DEFAULT_VARIABLE_TARGETS)
    )
    best_cost_savings_ratio: float = 0.4
    high_leverage_groups: frozenset[str] = frozenset({"Sales"})
    best_cost_countries: frozenset[str] = BEST_COST_COUNTRIES

    def validate(self) -> None:
        """Raise BenchmarkConfigError unless every threshold is usable."""
        for name in ("min_span", "max_span", "max_layers"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise BenchmarkConfigError(f"{name} must be an integer, got {value!r}")
        targets = self.target_variable_ratio_by_group
        if not isinstance(targets, Mapping):
            raise BenchmarkConfigError("target_variable_ratio_by_group must be a table")
        if "default" not in targets:
            raise BenchmarkConfigError(
                "target_variable_ratio_by_group must define a 'default' target"
            )
        for group, target in targets.items():
            if not _is_number(target) or target < 0:
                raise BenchmarkConfigError(
                    f"Variable pay target for {group!r} must be a non-negative number, got {target!r}"
                )
        if self.min_span < 1:
            raise BenchmarkConfigError(f"min_span must be at least 1, got {self.min_span}")
        if self.min_span > self.max_span:
            raise BenchmarkConfigError(
                f"min_span ({self.min_span}) exceeds max_span ({self.max_span})"
            )
        if self.max_layers < 1:
            raise BenchmarkConfigError(f"max_layers must be positive, got {self.max_layers}")
        if not _is_number(self.best_cost_savings_ratio) or not 0 <= self.best_cost_savings_ratio <= 1:
            raise BenchmarkConfigError(
                f"best_cost_savings_ratio must be within 0-1, got {self.best_cost_savings_ratio!r}"
            )

    def target_variable_ratio(self, group: str) -> float:
        target = self.target_variable_ratio_by_group.get(group)
        if target is None:
            target = self.target_variable_ratio_by_group["default"]
        return float(target)

    def cost_tier(self, country: str) -> CostTier:
        normalized = country.strip().lower()
        if not normalized or normalized == UNKNOWN.lower():
            return CostTier.UNCLASSIFIED
        if normalized in {c.lower() for c in self.best_cost_countries}:
            return CostTier.BEST_COST
        return CostTier.HIGH_COST


STANDARD_POLICY = BenchmarkPolicy()


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def policy_from_mapping(data: Mapping[str, object]) -> BenchmarkPolicy:
    """Build a validated policy from a config table, keeping defaults for absent keys."""
    if not isinstance(data, Mapping):
        raise BenchmarkConfigError(f"Benchmark settings must be a table, got {type(data).__name__}")
    known = {f.name for f in fields(BenchmarkPolicy)}
    unknown = sorted(str(key) for key in set(data) - known)
    if unknown:
        raise BenchmarkConfigError(f"Unknown benchmark settings: {', '.join(unknown)}")

    overrides = dict(data)
    if "target_variable_ratio_by_group" in overrides:
        targets = overrides["target_variable_ratio_by_group"]
        if not isinstance(targets, Mapping):
            raise BenchmarkConfigError("target_variable_ratio_by_group must be a table")
        overrides["target_variable_ratio_by_group"] = dict(targets)
    for name in ("high_leverage_groups", "best_cost_countries"):
        value = overrides.get(name)
        if name in overrides and (isinstance(value, str) or not isinstance(value, Iterable)):
            raise BenchmarkConfigError(f"{name} must be a list of names, got {value!r}")
    if "high_leverage_groups" in overrides:
        overrides["high_leverage_groups"] = frozenset(str(g) for g in overrides["high_leverage_groups"])
    if "best_cost_countries" in overrides:
        overrides["best_cost_countries"] = frozenset(
            str(c).strip().lower() for c in overrides["best_cost_countries"]
        )

    policy = BenchmarkPolicy(**overrides)
    policy.validate()
    return policy


def _read_config_file(path: Path) -> ConfigDict:
    try:
        match path.suffix.lower():
            case ".yaml" | ".yml":
                with open(path) as f:
                    data = yaml.safe_load(f) or {}
            case ".toml":
                with open(path, "rb") as f:
                    data = tomllib.load(f)
            case other:
                raise BenchmarkConfigError(f"Unsupported policy file format: {other}")
    except (yaml.YAMLError, tomllib.TOMLDecodeError) as exc:
        raise BenchmarkConfigError(f"Could not parse policy file {path}: {exc}") from exc

    if not isinstance(data, Mapping):
        raise BenchmarkConfigError(f"Policy file {path} must hold a table of settings")

    # Accept either a bare table or one nested under tool.orgscope / benchmarks
    tool = data.get("tool")
    if isinstance(tool, Mapping) and isinstance(tool.get("orgscope"), Mapping):
        data = tool["orgscope"]
    return data.get("benchmarks", data)


def load_policy(path: str | Path | None = None) -> BenchmarkPolicy:
    """Load the benchmark policy.

    Without an explicit path, a project-local ``orgscope.yaml`` wins, then the
    ``[tool.orgscope.benchmarks]`` table of pyproject.toml, then the standard
    policy.
    """
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Policy file not found: {path}")
        logger.info("Loading benchmark policy from %s", path)
        return policy_from_mapping(_read_config_file(path))

    if LOCAL_CONFIG.exists():
        logger.info("Loading benchmark policy from %s", LOCAL_CONFIG)
        return policy_from_mapping(_read_config_file(LOCAL_CONFIG))

    pyproject = PROJECT_ROOT / "pyproject.toml"
    if pyproject.exists():
        with open(pyproject, "rb") as f:
            table = tomllib.load(f).get("tool", {}).get("orgscope", {}).get("benchmarks")
        if table:
            logger.info("Loading benchmark policy from %s", pyproject)
            return policy_from_mapping(table)

    return STANDARD_POLICY
