"""Symbolic formula parsing under a configurable notation.

Parses formulas built from atomic formulas (a predicate or sentence letter
followed by terms), the monadic operators negation and the quantifiers,
the binary connectives and the falsum constant.  Parenthesization is
optional except where it is needed to decide which of two binary
operators has wider scope.

Grammar (informal)::

    formula  ::= atomic | falsum | monadic | formula BINOP formula | '(' formula ')'
    monadic  ::= NOT formula | QUANT variable formula
    atomic   ::= PLETTER term* | term '=' term

Parsing never raises on malformed input: the returned :class:`Formula` has
``wellformed == False`` and a tuple of human-readable ``syntax_errors``.

The main operator is the operator occurrence at the lowest bracket depth.
At equal depth a binary connective beats a monadic operator, which beats
falsum; two binary connectives at the same minimal depth are reported as
an ambiguity rather than resolved by precedence.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from logicgrade.notation import (
    AND,
    EXISTS,
    FALSUM,
    FORALL,
    IFF,
    IFTHEN,
    NOT,
    OR,
    Notation,
    get_notation,
)

logger = logging.getLogger(__name__)

# Formula type constants
ATOM = "atom"
NEG = "neg"
CONJ = "conj"
DISJ = "disj"
IMPL = "impl"
BICOND = "bicond"
UNIV = "univ"
EXIST = "exist"
BOT = "bot"

BINARY_TYPES = frozenset({CONJ, DISJ, IMPL, BICOND})
QUANTIFIER_TYPES = frozenset({UNIV, EXIST})
MONADIC_TYPES = frozenset({NEG, UNIV, EXIST})

_TYPE_OF_KIND = {
    NOT: NEG,
    AND: CONJ,
    OR: DISJ,
    IFTHEN: IMPL,
    IFF: BICOND,
    FORALL: UNIV,
    EXISTS: EXIST,
    FALSUM: BOT,
}

_SOFT_BRACKETS = str.maketrans("[{]}", "(())")
_BRACKETS = ("{}", "()", "[]")

AMBIGUOUS_SCOPE = (
    "two binary operators occur without enough parentheses to determine "
    "which has wider scope"
)
UNBALANCED = "unbalanced parentheses"


def strip_matching(s: str) -> str:
    """Strip outer parentheses that wrap the entire string, recursively."""
    s = s.strip()
    while s.startswith("(") and s.endswith(")"):
        depth = 0
        for i, c in enumerate(s):
            if c == "(":
                depth += 1
            elif c == ")":
                depth -= 1
            if depth == 0 and i < len(s) - 1:
                return s
        if depth != 0:
            return s
        s = s[1:-1].strip()
    return s


@dataclass(frozen=True, slots=True, eq=False)
class Formula:
    """Immutable parsed formula.

    Attributes:
        text: The cleaned string that was parsed.
        type: One of ATOM, NEG, CONJ, DISJ, IMPL, BICOND, UNIV, EXIST, BOT.
        normal: Canonical normal form; equal normal forms mean equal formulas.
        op: The main operator glyph (None for atomic formulas).
        left: Left operand (binary only).
        right: Right operand (binary and monadic).
        pletter: Predicate or sentence letter (atomic only).
        terms: Term characters of an atomic formula.
        bound_variable: Variable bound by a quantifier main operator.
        free_variables: Free variables, in order of first occurrence.
        names: Every term character occurring anywhere in the formula.
        depth: Binary nesting depth.
        wellformed: False if any syntax error was found.
        syntax_errors: Reasons the formula is not well formed.
    """

    text: str
    type: str
    normal: str
    op: str | None = None
    left: Formula | None = None
    right: Formula | None = None
    pletter: str | None = None
    terms: str = ""
    bound_variable: str | None = None
    free_variables: tuple[str, ...] = ()
    names: frozenset[str] = frozenset()
    depth: int = 0
    wellformed: bool = True
    syntax_errors: tuple[str, ...] = ()
    context: ParseContext | None = field(default=None, repr=False)

    def __str__(self) -> str:
        return self.normal

    @property
    def is_atomic(self) -> bool:
        return self.type == ATOM

    @property
    def is_binary(self) -> bool:
        return self.type in BINARY_TYPES

    @property
    def is_monadic(self) -> bool:
        return self.type in MONADIC_TYPES

    @property
    def is_quantified(self) -> bool:
        return self.type in QUANTIFIER_TYPES

    @property
    def syntax_error_text(self) -> str:
        return "; ".join(self.syntax_errors)

    def wrap(self) -> str:
        """Normal form in brackets chosen by depth."""
        opening, closing = _BRACKETS[self.depth % 3]
        return f"{opening}{self.normal}{closing}"

    def wrap_if_needed(self) -> str:
        """Normal form, bracketed only when the main operator is binary."""
        return self.wrap() if self.is_binary else self.normal

    def instantiate(self, variable: str, term: str) -> Formula:
        """Replace free occurrences of *variable* by *term* and re-parse."""
        if self.context is None:
            raise ValueError("Formula was not created by a ParseContext")
        return self.context.parse(self._instantiated(variable, term))

    def _instantiated(self, variable: str, term: str) -> str:
        if self.is_binary:
            if self.left is None or self.right is None:
                return ""
            return (
                f"{_rewrapped(self.left, self.left._instantiated(variable, term))} "
                f"{self.op} "
                f"{_rewrapped(self.right, self.right._instantiated(variable, term))}"
            )
        if self.is_monadic:
            if self.right is None:
                return ""
            if self.is_quantified and self.bound_variable == variable:
                return self.normal
            return (
                f"{self.op}{self.bound_variable or ''}"
                f"{_rewrapped(self.right, self.right._instantiated(variable, term))}"
            )
        if self.type == BOT:
            return self.normal
        assert self.context is not None
        return _atomic_text(self.context.notation, self.pletter or "", self.terms.replace(variable, term))

    def differs_at_most_by(self, other: Formula, new: str, old: str) -> bool:
        """True if *self* is *other* with zero or more occurrences of *old* replaced by *new*."""
        if self.type != other.type or self.bound_variable != other.bound_variable:
            return False
        if self.is_atomic:
            if self.pletter != other.pletter or len(self.terms) != len(other.terms):
                return False
            return all(
                mine == theirs or (mine == new and theirs == old)
                for mine, theirs in zip(self.terms, other.terms)
            )
        for mine, theirs in ((self.left, other.left), (self.right, other.right)):
            if (mine is None) != (theirs is None):
                return False
            if mine is not None and not mine.differs_at_most_by(theirs, new, old):  # type: ignore[arg-type]
                return False
        return True


def _rewrapped(sub: Formula, text: str) -> str:
    # term substitution never changes the shape, so the bracket choice carries over
    if not sub.is_binary:
        return text
    opening, closing = _BRACKETS[sub.depth % 3]
    return f"{opening}{text}{closing}"


def _atomic_text(notation: Notation, pletter: str, terms: str) -> str:
    if pletter == "=" and len(terms) == 2:
        return f"{terms[0]} = {terms[1]}"
    if notation.use_commas:
        terms = ",".join(terms)
    if terms and notation.term_parens:
        terms = f"({terms})"
    return pletter + terms


def _union(*seqs) -> tuple[str, ...]:
    out: list[str] = []
    for seq in seqs:
        for item in seq:
            if item not in out:
                out.append(item)
    return tuple(out)


class ParseContext:
    """Parser bound to one notation, owning its parse cache.

    The cache maps cleaned input text and canonical normal forms to
    :class:`Formula` values, so equal formulas parse to the same object.
    A context may be shared across requests: entries are never invalidated.
    """

    def __init__(self, notation: Notation | str = "cambridge", *, cache: dict[str, Formula] | None = None) -> None:
        self.notation = get_notation(notation)
        self._cache: dict[str, Formula] = {} if cache is None else cache
        logger.debug("ParseContext created for notation %s", self.notation.name)

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, text: str) -> bool:
        return text in self._cache

    def clean(self, text: str) -> str:
        """Normalize whitespace, brackets and quantifier form."""
        n = self.notation
        s = "".join(text.split()).translate(_SOFT_BRACKETS)
        variables = re.escape(n.variable_chars)
        s = re.sub(
            "\\(([" + re.escape(n.symbols[FORALL] + n.symbols[EXISTS]) + "])([" + variables + "])\\)",
            r"\1\2",
            s,
        )
        if n.suppresses_universal and not n.term_parens:

            def universal(m: re.Match) -> str:
                # F(x) is a term list, not a quantifier
                if m.start() and n.is_predicate(m.string[m.start() - 1]):
                    return m.group(0)
                return n.symbols[FORALL] + m.group(1)

            s = re.sub("\\(([" + variables + "])\\)", universal, s)
        for kind in (OR, AND, IFTHEN, IFF):
            glyph = n.symbols[kind]
            s = s.replace(glyph, f" {glyph} ")
        s = s.replace("=", " = ")
        return strip_matching(s)

    def parse(self, text: str) -> Formula:
        """Parse *text*; malformed input gives a formula with ``wellformed`` False."""
        key = self.clean(text)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        formula = self._build(key)
        if formula.wellformed:
            # equal normal forms share one value
            formula = self._cache.setdefault(formula.normal, formula)
        self._cache[key] = formula
        logger.debug("Parsed %r -> %s (wellformed=%s)", text, formula.normal, formula.wellformed)
        return formula

    def _main_operator(self, s: str, errors: list[str]) -> int:
        n = self.notation
        depth = 0
        spot = -1
        spot_depth = -1
        for i, c in enumerate(s):
            if c == "(":
                depth += 1
                continue
            if c == ")":
                depth -= 1
                if depth < 0 and UNBALANCED not in errors:
                    errors.append(UNBALANCED)
                continue
            kind = n.kind_of(c)
            if kind is None:
                continue
            if spot == -1 or depth < spot_depth:
                spot, spot_depth = i, depth
            elif depth == spot_depth:
                new_cat = n.arity(kind)
                old_cat = n.arity(n.kind_of(s[spot]))  # type: ignore[arg-type]
                if new_cat == 2 and old_cat == 2:
                    if AMBIGUOUS_SCOPE not in errors:
                        errors.append(AMBIGUOUS_SCOPE)
                elif new_cat > old_cat:
                    spot, spot_depth = i, depth
        if (depth != 0 or spot_depth > 0) and UNBALANCED not in errors:
            errors.append(UNBALANCED)
        return spot

    def _build(self, s: str) -> Formula:
        n = self.notation
        errors: list[str] = []
        spot = self._main_operator(s, errors)

        if spot == -1:
            return self._build_atomic(s, errors)

        glyph = s[spot]
        kind = n.kind_of(glyph)
        ftype = _TYPE_OF_KIND[kind]  # type: ignore[index]
        names = frozenset(c for c in s if n.is_term(c))

        if ftype == BOT:
            if s != glyph:
                errors.append(f"unexpected character(s) appear surrounding the symbol {glyph}")
            return Formula(
                text=s, type=BOT, normal=glyph, op=glyph, names=names,
                wellformed=not errors, syntax_errors=tuple(errors), context=self,
            )

        if ftype in BINARY_TYPES:
            left_text = s[:spot].strip()
            right_text = s[spot + 1:].strip()
            if not left_text:
                errors.append(f"nothing to the left of {glyph}")
            if not right_text:
                errors.append(f"nothing to the right of the operator {glyph}")
            left = self.parse(left_text) if left_text else None
            right = self.parse(right_text) if right_text else None
            subs = [f for f in (left, right) if f is not None]
            normal = " ".join(
                [left.wrap_if_needed() if left else "", glyph, right.wrap_if_needed() if right else ""]
            ).strip()
            return Formula(
                text=s,
                type=ftype,
                normal=normal,
                op=glyph,
                left=left,
                right=right,
                free_variables=_union(*(f.free_variables for f in subs)),
                names=names,
                depth=max((f.depth for f in subs), default=0) + 1,
                wellformed=not errors and all(f.wellformed for f in subs) and len(subs) == 2,
                syntax_errors=_union(errors, *(f.syntax_errors for f in subs)),
                context=self,
            )

        # monadic: negation or quantifier
        if spot != 0:
            errors.append(f"unexpected character(s) appear before the operator {glyph}")
        start = spot + 1
        bound = None
        if ftype in QUANTIFIER_TYPES:
            if start < len(s) and n.is_variable(s[start]):
                bound = s[start]
            elif spot == 0:
                errors.append(
                    f"a quantifier is used without a variable in the range {n.variables} following it"
                )
            start += 1
        right_text = s[start:].strip()
        right = None
        if right_text:
            right = self.parse(right_text)
        else:
            errors.append(f"nothing to the right of the operator {glyph}")
        free = right.free_variables if right else ()
        if bound is not None:
            free = tuple(v for v in free if v != bound)
        normal = f"{glyph}{bound or ''}{right.wrap_if_needed() if right else ''}"
        return Formula(
            text=s,
            type=ftype,
            normal=normal,
            op=glyph,
            right=right,
            bound_variable=bound,
            free_variables=free,
            names=names,
            depth=right.depth if right else 0,
            wellformed=not errors and right is not None and right.wellformed,
            syntax_errors=_union(errors, right.syntax_errors if right else ()),
            context=self,
        )

    def _build_atomic(self, s: str, errors: list[str]) -> Formula:
        n = self.notation
        pos = next((i for i, c in enumerate(s) if n.is_predicate(c)), -1)
        pletter = None
        if pos == -1:
            errors.append(
                f"an atomic (sub)formula must use a letter in the range {n.predicates} and this does not"
            )
            remainder = s
        else:
            pletter = s[pos]
            if pletter != "=" and pos != 0:
                errors.append(f"unexpected characters appear before the letter {pletter}")
            if pletter == "=" and pos != 2:
                errors.append("the identity relation symbol = occurs in an unexpected place")
            remainder = (s[:pos] + s[pos + 1:]).strip()
        no_commas = "".join(strip_matching(remainder).replace(",", "").split())
        terms = "".join(c for c in no_commas if n.is_term(c))
        if no_commas != terms:
            errors.append("unexpected symbols occur within an atomic (sub)formula")
        if pletter == "=" and len(terms) != 2:
            errors.append("the identity relation symbol = must occur between two terms")
        normal = _atomic_text(n, pletter or "", terms) if pletter else s
        return Formula(
            text=s,
            type=ATOM,
            normal=normal,
            pletter=pletter,
            terms=terms,
            free_variables=_union([c for c in terms if n.is_variable(c)]),
            names=frozenset(terms),
            wellformed=not errors,
            syntax_errors=tuple(errors),
            context=self,
        )


def parse_formula(text: str, notation: Notation | str = "cambridge") -> Formula:
    """Parse *text* with a throwaway :class:`ParseContext`."""
    return ParseContext(notation).parse(text)
