"""Grading settings with JSON serialization.

JSON format::

    {
      "notation": "cambridge",
      "system": "cambridge",
      "time_budget": 5.0,
      "term_limit": 2,
      "domain_size": 3,
      "database_dir": "data/equivalents",
      "penalties": {"high": 0.2, "medium": 0.15, "low": 0.1},
      "partial_credit": {"buildup_threshold": 0.5, ...}
    }

Every key is optional; missing keys take the defaults below.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

from logicgrade.checker import SEVERITIES, SEVERITY_PENALTIES
from logicgrade.equivalence import (
    DEFAULT_DOMAIN_SIZE,
    DEFAULT_TERM_LIMIT,
    DEFAULT_TIME_BUDGET,
    EquivalenceProver,
)
from logicgrade.equivdb import JSONEquivalenceDatabase
from logicgrade.notation import get_notation
from logicgrade.rules import available_systems
from logicgrade.syntax import ParseContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PartialCreditPolicy:
    """Tuning values for partial credit.

    Attributes:
        buildup_threshold: Below this checker portion, completed steps
            earn credit on their own.
        per_step: Credit per completed step in that case.
        buildup_cap: Most credit completed steps can earn that way.
        incomplete_ratio: A proof with less than this share of the
            reference answer's progress is scaled down by that share.
        ill_formed_cap: Most credit for an ill-formed translation.
        free_variable_penalty: Credit lost for stray variables or terms.
        inequivalence_penalty: Credit lost for a non-equivalent translation.
    """

    buildup_threshold: float = 0.5
    per_step: float = 0.1
    buildup_cap: float = 0.5
    incomplete_ratio: float = 0.8
    ill_formed_cap: float = 0.8
    free_variable_penalty: float = 0.1
    inequivalence_penalty: float = 0.8

    @classmethod
    def from_dict(cls, data: dict) -> PartialCreditPolicy:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown partial credit settings: {', '.join(sorted(unknown))}")
        return cls(**{k: float(v) for k, v in data.items()})


@dataclass(frozen=True)
class GradingSettings:
    """Settings shared by the graders and the CLI."""

    notation: str = "cambridge"
    system: str = "cambridge"
    time_budget: float = DEFAULT_TIME_BUDGET
    term_limit: int = DEFAULT_TERM_LIMIT
    domain_size: int = DEFAULT_DOMAIN_SIZE
    database_dir: str | None = None
    penalties: dict[str, float] = field(default_factory=lambda: dict(SEVERITY_PENALTIES))
    partial_credit: PartialCreditPolicy = field(default_factory=PartialCreditPolicy)

    def __post_init__(self) -> None:
        if self.system not in available_systems():
            raise ValueError(
                f"Unknown deduction system {self.system!r}. Available: {', '.join(available_systems())}"
            )
        get_notation(self.notation)
        missing = set(SEVERITIES) - set(self.penalties)
        if missing:
            raise ValueError(f"Penalties missing for severities: {', '.join(sorted(missing))}")

    def context(self) -> ParseContext:
        return ParseContext(self.notation)

    def database(self) -> JSONEquivalenceDatabase | None:
        return JSONEquivalenceDatabase(self.database_dir) if self.database_dir else None

    def prover(self, context: ParseContext | None = None) -> EquivalenceProver:
        return EquivalenceProver(
            context if context is not None else self.context(),
            database=self.database(),
            time_budget=self.time_budget,
            term_limit=self.term_limit,
            domain_size=self.domain_size,
        )

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        d = asdict(self)
        d["partial_credit"] = asdict(self.partial_credit)
        return d

    @classmethod
    def from_dict(cls, data: dict) -> GradingSettings:
        """Deserialize from a dict (as produced by ``to_dict``)."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        kwargs = dict(data)
        if "penalties" in kwargs:
            kwargs["penalties"] = {k: float(v) for k, v in kwargs["penalties"].items()}
        if "partial_credit" in kwargs:
            kwargs["partial_credit"] = PartialCreditPolicy.from_dict(kwargs["partial_credit"])
        return cls(**kwargs)

    def to_file(self, path: str | Path) -> None:
        """Write the settings to a JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        logger.debug("Saved settings to %s", path)

    @classmethod
    def from_file(cls, path: str | Path) -> GradingSettings:
        """Load settings from a JSON file."""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must hold a JSON object")
        logger.debug("Loaded settings from %s", path)
        return cls.from_dict(data)
