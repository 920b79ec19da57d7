"""Rule schemas for natural-deduction systems.

Rules are data, not code: a :class:`RuleSchema` is a name, a few flags and
a tuple of :class:`Form` alternatives.  A form lists schematic premises, a
schematic conclusion and any subderivations the rule needs; the
matcher (:mod:`logicgrade.matcher`) unifies those templates against a
proof line.

Form fields::

    premises           schematic formulas the cited lines must match
    conclusion         schematic formula the line itself must match
    subderivations     obligations for cited subderivations
    substitutions      {variable: name}, e.g. {"x": "a"} for ∀E
    not_in_hypotheses  names that may not occur in premises/assumptions
    must_be_new        names that must be new at the line
    cannot_be_in       {name: [schemas]} the name must not occur in
    differs_at_most_by (to, from, new, old) for identity elimination
    replaces           (a, b) for replacement rules
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from logicgrade.notation import OPERATOR_KINDS, Notation, get_notation
from logicgrade.rulesets import FORALLX_COMMON, FORALLX_EXTRAS, SHOW_LINE_SYSTEMS

logger = logging.getLogger(__name__)

# How a system decides which rule applications count as progress
PROGRESS_ELIMINATION = "elimination"
PROGRESS_SHOW_LINES = "show-lines"


@dataclass(frozen=True)
class SubderivationObligation:
    """What a cited subderivation must contain.

    Attributes:
        needs: Schemas that must each be matched by a top-level line.
        allows: Schema the subderivation's hypothesis may take, if any.
        wants_as_new: Names that must be new where the needed line occurs.
        show_required: The needed lines must be show lines.
    """

    needs: tuple[str, ...]
    allows: str | None = None
    wants_as_new: tuple[str, ...] = ()
    show_required: bool = False

    def to_dict(self) -> dict:
        d: dict = {"needs": list(self.needs)}
        if self.allows is not None:
            d["allows"] = self.allows
        if self.wants_as_new:
            d["wants_as_new"] = list(self.wants_as_new)
        if self.show_required:
            d["show_required"] = True
        return d

    @classmethod
    def from_dict(cls, data: dict) -> SubderivationObligation:
        return cls(
            needs=tuple(data.get("needs", ())),
            allows=data.get("allows"),
            wants_as_new=tuple(data.get("wants_as_new", ())),
            show_required=bool(data.get("show_required", False)),
        )


@dataclass(frozen=True)
class Form:
    """One schematic shape a rule application may take."""

    premises: tuple[str, ...] = ()
    conclusion: str | None = None
    subderivations: tuple[SubderivationObligation, ...] = ()
    substitutions: Mapping[str, str] = field(default_factory=dict)
    not_in_hypotheses: tuple[str, ...] = ()
    must_be_new: tuple[str, ...] = ()
    cannot_be_in: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    differs_at_most_by: tuple[str, str, str, str] | None = None
    replaces: tuple[str, str] | None = None

    def to_dict(self) -> dict:
        d: dict = {}
        if self.replaces is not None:
            d["replaces"] = list(self.replaces)
            return d
        d["premises"] = list(self.premises)
        if self.conclusion is not None:
            d["conclusion"] = self.conclusion
        if self.subderivations:
            d["subderivations"] = [s.to_dict() for s in self.subderivations]
        if self.substitutions:
            d["substitutions"] = dict(self.substitutions)
        if self.not_in_hypotheses:
            d["not_in_hypotheses"] = list(self.not_in_hypotheses)
        if self.must_be_new:
            d["must_be_new"] = list(self.must_be_new)
        if self.cannot_be_in:
            d["cannot_be_in"] = {k: list(v) for k, v in self.cannot_be_in.items()}
        if self.differs_at_most_by is not None:
            d["differs_at_most_by"] = list(self.differs_at_most_by)
        return d

    @classmethod
    def from_dict(cls, data: dict) -> Form:
        dmb = data.get("differs_at_most_by")
        if dmb is not None and len(dmb) != 4:
            raise ValueError(f"differs_at_most_by needs four entries, got {dmb!r}")
        replaces = data.get("replaces")
        if replaces is not None and len(replaces) != 2:
            raise ValueError(f"replaces needs two schemas, got {replaces!r}")
        return cls(
            premises=tuple(data.get("premises", ())),
            conclusion=data.get("conclusion"),
            subderivations=tuple(
                SubderivationObligation.from_dict(s) for s in data.get("subderivations", ())
            ),
            substitutions=dict(data.get("substitutions", {})),
            not_in_hypotheses=tuple(data.get("not_in_hypotheses", ())),
            must_be_new=tuple(data.get("must_be_new", ())),
            cannot_be_in={k: tuple(v) for k, v in data.get("cannot_be_in", {}).items()},
            differs_at_most_by=tuple(dmb) if dmb is not None else None,  # type: ignore[arg-type]
            replaces=tuple(replaces) if replaces is not None else None,  # type: ignore[arg-type]
        )

    def translated(self, change) -> Form:
        """Copy with every schema string passed through *change*."""
        return Form(
            premises=tuple(change(p) for p in self.premises),
            conclusion=change(self.conclusion) if self.conclusion is not None else None,
            subderivations=tuple(
                SubderivationObligation(
                    needs=tuple(change(n) for n in s.needs),
                    allows=change(s.allows) if s.allows is not None else None,
                    wants_as_new=s.wants_as_new,
                    show_required=s.show_required,
                )
                for s in self.subderivations
            ),
            substitutions=self.substitutions,
            not_in_hypotheses=self.not_in_hypotheses,
            must_be_new=self.must_be_new,
            cannot_be_in={k: tuple(change(s) for s in v) for k, v in self.cannot_be_in.items()},
            differs_at_most_by=self.differs_at_most_by,
            replaces=(change(self.replaces[0]), change(self.replaces[1])) if self.replaces else None,
        )


_FLAGS = (
    "premise_rule",
    "assumption_rule",
    "show_rule",
    "replacement_rule",
    "predicate_only",
    "hidden",
    "unavailable",
    "derived",
)


@dataclass(frozen=True)
class RuleSchema:
    """A named inference rule.

    ``unavailable`` rules exist only to give a hint: citing one is treated
    exactly like citing a rule that does not exist.
    """

    name: str
    forms: tuple[Form, ...] = ()
    premise_rule: bool = False
    assumption_rule: bool = False
    show_rule: bool = False
    replacement_rule: bool = False
    predicate_only: bool = False
    hidden: bool = False
    unavailable: bool = False
    derived: bool = False
    hint: str | None = None

    def to_dict(self) -> dict:
        d: dict = {flag: True for flag in _FLAGS if getattr(self, flag)}
        if self.forms:
            d["forms"] = [f.to_dict() for f in self.forms]
        if self.hint is not None:
            d["hint"] = self.hint
        return d

    @classmethod
    def from_dict(cls, name: str, data: dict) -> RuleSchema:
        unknown = set(data) - set(_FLAGS) - {"forms", "hint"}
        if unknown:
            raise ValueError(f"Rule {name!r} has unknown keys: {', '.join(sorted(unknown))}")
        return cls(
            name=name,
            forms=tuple(Form.from_dict(f) for f in data.get("forms", ())),
            hint=data.get("hint"),
            **{flag: bool(data.get(flag, False)) for flag in _FLAGS},
        )


class RuleSet(Mapping[str, RuleSchema]):
    """Read-only mapping of rule name to :class:`RuleSchema` for one system.

    Args:
        name: System name.
        notation: Notation the schemas are written in.
        rules: Rule name to schema.
        numbered_show_lines: Show lines are numbered lines of the proof
            (Kalish–Montague style) rather than absent (Fitch style).
        progress_style: PROGRESS_ELIMINATION or PROGRESS_SHOW_LINES.
    """

    def __init__(
        self,
        name: str,
        notation: Notation,
        rules: Mapping[str, RuleSchema],
        *,
        numbered_show_lines: bool = False,
        progress_style: str = PROGRESS_ELIMINATION,
    ) -> None:
        if progress_style not in (PROGRESS_ELIMINATION, PROGRESS_SHOW_LINES):
            raise ValueError(f"Unknown progress style {progress_style!r}")
        self.name = name
        self.notation = notation
        self._rules = dict(rules)
        self.numbered_show_lines = numbered_show_lines
        self.progress_style = progress_style
        logger.debug("RuleSet %s created with %d rules", name, len(self._rules))

    def __getitem__(self, key: str) -> RuleSchema:
        return self._rules[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleSet({self.name!r}, notation={self.notation.name!r}, rules={len(self)})"

    def resolve(self, name: str | None) -> RuleSchema | None:
        """The cited rule, or None if it does not exist or is unavailable."""
        if name is None:
            return None
        rule = self._rules.get(name)
        if rule is None or rule.unavailable:
            return None
        return rule

    def counts_as_progress(self, name: str) -> bool:
        """Whether an error-free application of *name* counts toward completion.

        Introduction rules are not counted in elimination-style systems, so
        that stacking up easy introductions earns no credit.
        """
        rule = self.resolve(name)
        if rule is None:
            return False
        if self.progress_style == PROGRESS_SHOW_LINES:
            return rule.assumption_rule or rule.show_rule or "O" in name
        return not (rule.premise_rule or rule.assumption_rule or name.endswith("I"))

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "name": self.name,
            "notation": self.notation.name,
            "numbered_show_lines": self.numbered_show_lines,
            "progress_style": self.progress_style,
            "rules": {name: rule.to_dict() for name, rule in self._rules.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> RuleSet:
        """Deserialize from a dict (as produced by ``to_dict``)."""
        notation = data.get("notation", "cambridge")
        if isinstance(notation, dict):
            notation = Notation.from_dict(notation)
        return cls(
            name=data.get("name", "custom"),
            notation=get_notation(notation),
            rules={name: RuleSchema.from_dict(name, r) for name, r in data.get("rules", {}).items()},
            numbered_show_lines=bool(data.get("numbered_show_lines", False)),
            progress_style=data.get("progress_style", PROGRESS_ELIMINATION),
        )

    def to_file(self, path: str | Path) -> None:
        """Write the rule set to a JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        logger.debug("Saved rule set to %s", path)

    @classmethod
    def from_file(cls, path: str | Path) -> RuleSet:
        """Load a rule set from a JSON file."""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        logger.debug("Loaded rule set from %s", path)
        return cls.from_dict(data)


def substitute_symbols(s: str, source: Notation, target: Notation) -> str:
    """Rewrite operator glyphs of *source* into those of *target*."""
    if source.symbols == target.symbols:
        return s
    # two passes so that swapped glyphs do not collide
    placeholders = {kind: chr(0xE000 + i) for i, kind in enumerate(OPERATOR_KINDS)}
    for kind in OPERATOR_KINDS:
        s = s.replace(source.symbols[kind], placeholders[kind])
    for kind in OPERATOR_KINDS:
        s = s.replace(placeholders[kind], target.symbols[kind])
    return s


def available_systems() -> list[str]:
    return sorted(set(FORALLX_EXTRAS) | set(SHOW_LINE_SYSTEMS))


@lru_cache(maxsize=None)
def get_rules(system: str, notation: str | None = None) -> RuleSet:
    """Build the rule set for *system*, rewritten into *notation*.

    The notation defaults to the one conventionally paired with the system.
    Results are memoised per (system, notation) pair.
    """
    if system in SHOW_LINE_SYSTEMS:
        source = get_notation(system)
        data = SHOW_LINE_SYSTEMS[system]
        numbered, style = True, PROGRESS_SHOW_LINES
    elif system in FORALLX_EXTRAS:
        source = get_notation("cambridge")
        data = {**FORALLX_COMMON, **FORALLX_EXTRAS[system]}
        numbered, style = False, PROGRESS_ELIMINATION
    else:
        raise ValueError(
            f"Unknown deduction system {system!r}. Available: {', '.join(available_systems())}"
        )
    target = get_notation(notation or system)

    def change(s: str) -> str:
        return substitute_symbols(s, source, target)

    rules: dict[str, RuleSchema] = {}
    for name, definition in data.items():
        rule = RuleSchema.from_dict(change(name), definition)
        if source.symbols != target.symbols:
            rule = RuleSchema(
                name=rule.name,
                forms=tuple(f.translated(change) for f in rule.forms),
                hint=rule.hint,
                **{flag: getattr(rule, flag) for flag in _FLAGS},
            )
        rules[rule.name] = rule
    logger.debug("Built rules for %s in %s notation", system, target.name)
    return RuleSet(system, target, rules, numbered_show_lines=numbered, progress_style=style)
