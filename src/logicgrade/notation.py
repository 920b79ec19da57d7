"""Notation tables for symbolic formulas.

A notation fixes the operator glyphs, the character ranges used for
predicate letters, constants and variables, and the surface form of
quantifiers.  Ranges use the compact ``"a-r"`` / ``"x-zs-w"`` syntax:
each ``c-d`` pair is an inclusive span and any other character stands
for itself.

Built-in notations::

    cambridge   ∨ ∧ → ↔ ¬ ∀ ∃ ⊥   constants a-r, variables x-z s-w
    copi        ∨ ∙ ⊃ ≡ ~ Π ∃ ↯   constants a-w, variables x-z, (x) / (∃x)
    hardegree   ∨ & → ↔ ~ ∀ ∃ ✖   constants a-w, variables x-z
    magnus      ∨ & → ↔ ¬ ∀ ∃ ※   constants a-w, variables x-z
    default     ∨ & → ↔ ~ ∀ ∃ ✖   constants a-t, variables u-z
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Operator kinds
OR = "OR"
AND = "AND"
IFTHEN = "IFTHEN"
IFF = "IFF"
NOT = "NOT"
FORALL = "FORALL"
EXISTS = "EXISTS"
FALSUM = "FALSUM"

BINARY_KINDS = frozenset({OR, AND, IFTHEN, IFF})
QUANTIFIER_KINDS = frozenset({FORALL, EXISTS})
MONADIC_KINDS = frozenset({NOT, FORALL, EXISTS})
OPERATOR_KINDS = (NOT, OR, AND, IFF, IFTHEN, FORALL, EXISTS, FALSUM)


def expand_range(ranges: str) -> str:
    """Expand a range string like ``"x-zs-w"`` into ``"xyzstuvw"``."""
    out: list[str] = []
    i = 0
    while i < len(ranges):
        if i + 2 < len(ranges) and ranges[i + 1] == "-":
            start, end = ord(ranges[i]), ord(ranges[i + 2])
            if end < start:
                raise ValueError(f"Invalid character range {ranges[i:i + 3]!r}")
            out.extend(chr(c) for c in range(start, end + 1))
            i += 3
        else:
            out.append(ranges[i])
            i += 1
    return "".join(out)


@dataclass(frozen=True)
class Notation:
    """Immutable symbol table for one notation.

    Attributes:
        name: Notation name.
        symbols: Operator kind (OR, AND, ...) to glyph.
        constants: Range string for individual constants.
        variables: Range string for individual variables.
        predicates: Range string for predicate letters (``=`` included for identity).
        quantifier_form: ``"Qx"``, or Russellian ``"(Qx)"``; a ``?`` after
            the Q means the universal glyph may be omitted, as in ``(x)Fx``.
        use_commas: Separate terms with commas in canonical atomic formulas.
        term_parens: Wrap terms in parentheses in canonical atomic formulas.
    """

    name: str
    symbols: dict[str, str]
    constants: str
    variables: str
    predicates: str = "=A-Z"
    quantifier_form: str = "Qx"
    use_commas: bool = False
    term_parens: bool = False
    _constant_chars: str = field(init=False, repr=False, compare=False)
    _variable_chars: str = field(init=False, repr=False, compare=False)
    _predicate_chars: str = field(init=False, repr=False, compare=False)
    _kinds: dict[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        missing = [k for k in OPERATOR_KINDS if k not in self.symbols]
        if missing:
            raise ValueError(f"Notation {self.name!r} has no symbol for {', '.join(missing)}")
        object.__setattr__(self, "_constant_chars", expand_range(self.constants))
        object.__setattr__(self, "_variable_chars", expand_range(self.variables))
        object.__setattr__(self, "_predicate_chars", expand_range(self.predicates))
        object.__setattr__(self, "_kinds", {g: k for k, g in self.symbols.items()})

    def __hash__(self) -> int:
        return hash((self.name, tuple(sorted(self.symbols.items())), self.constants, self.variables))

    def symbol(self, kind: str) -> str:
        return self.symbols[kind]

    def kind_of(self, ch: str) -> str | None:
        """Return the operator kind for a glyph, or None."""
        return self._kinds.get(ch)

    @staticmethod
    def arity(kind: str) -> int:
        """Arity class used to break main-operator ties: binary 2, monadic 1, falsum 0."""
        if kind in BINARY_KINDS:
            return 2
        if kind in MONADIC_KINDS:
            return 1
        return 0

    def is_variable(self, ch: str) -> bool:
        return len(ch) == 1 and ch in self._variable_chars

    def is_constant(self, ch: str) -> bool:
        return len(ch) == 1 and ch in self._constant_chars

    def is_term(self, ch: str) -> bool:
        return self.is_variable(ch) or self.is_constant(ch)

    def is_predicate(self, ch: str) -> bool:
        return len(ch) == 1 and ch in self._predicate_chars

    @property
    def constant_chars(self) -> str:
        return self._constant_chars

    @property
    def variable_chars(self) -> str:
        return self._variable_chars

    @property
    def russellian(self) -> bool:
        return self.quantifier_form.startswith("(")

    @property
    def suppresses_universal(self) -> bool:
        return "?" in self.quantifier_form

    def fresh_constants(self, exclude: str | set[str] = "") -> list[str]:
        """Constants of this notation, in range order, not in *exclude*."""
        return [c for c in self._constant_chars if c not in exclude]

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "name": self.name,
            "symbols": dict(self.symbols),
            "constants": self.constants,
            "variables": self.variables,
            "predicates": self.predicates,
            "quantifier_form": self.quantifier_form,
            "use_commas": self.use_commas,
            "term_parens": self.term_parens,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Notation:
        """Deserialize from a dict (as produced by ``to_dict``)."""
        try:
            return cls(
                name=data["name"],
                symbols=dict(data["symbols"]),
                constants=data["constants"],
                variables=data["variables"],
                predicates=data.get("predicates", "=A-Z"),
                quantifier_form=data.get("quantifier_form", "Qx"),
                use_commas=bool(data.get("use_commas", False)),
                term_parens=bool(data.get("term_parens", False)),
            )
        except KeyError as e:
            raise ValueError(f"Notation definition is missing {e.args[0]!r}") from None


def _symbols(or_, and_, ifthen, iff, not_, forall, exists, falsum) -> dict[str, str]:
    return {
        OR: or_, AND: and_, IFTHEN: ifthen, IFF: iff,
        NOT: not_, FORALL: forall, EXISTS: exists, FALSUM: falsum,
    }


NOTATIONS: dict[str, Notation] = {
    "cambridge": Notation(
        "cambridge", _symbols("∨", "∧", "→", "↔", "¬", "∀", "∃", "⊥"),
        constants="a-r", variables="x-zs-w",
    ),
    "copi": Notation(
        "copi", _symbols("∨", "∙", "⊃", "≡", "~", "Π", "∃", "↯"),
        constants="a-w", variables="x-z", quantifier_form="(Q?x)",
    ),
    "hardegree": Notation(
        "hardegree", _symbols("∨", "&", "→", "↔", "~", "∀", "∃", "✖"),
        constants="a-w", variables="x-z",
    ),
    "magnus": Notation(
        "magnus", _symbols("∨", "&", "→", "↔", "¬", "∀", "∃", "※"),
        constants="a-w", variables="x-z",
    ),
    "default": Notation(
        "default", _symbols("∨", "&", "→", "↔", "~", "∀", "∃", "✖"),
        constants="a-t", variables="u-z",
    ),
}

# Rule systems whose notation carries another name
NOTATION_ALIASES = {
    "calgary": "cambridge",
    "uconn": "cambridge",
    "adelaide": "cambridge",
    "bristol": "cambridge",
    "pitt": "cambridge",
    "slu": "cambridge",
    "leeds": "magnus",
    "msu": "cambridge",
    "r3": "cambridge",
    "loraincounty": "cambridge",
    "ubc": "cambridge",
}


def get_notation(name: str | Notation) -> Notation:
    """Look up a notation by name (or system alias)."""
    if isinstance(name, Notation):
        return name
    key = NOTATION_ALIASES.get(name, name)
    if key not in NOTATIONS:
        raise ValueError(
            f"Unknown notation {name!r}. Available: {', '.join(sorted(NOTATIONS))}"
        )
    logger.debug("Using notation %s for %s", key, name)
    return NOTATIONS[key]
