"""Submitted derivations as a flat arena of lines and subderivations.

The wire format is nested JSON::

    {"parts": [
        {"n": "1", "s": "P → Q", "j": "Pr"},
        {"showline": {"n": "2", "s": "Q", "j": "DD"},     # optional
         "parts": [...]}
    ]}

:meth:`Derivation.from_dict` reads it into two tuples, ``lines`` and
``subderivations``.  Every link between records is an integer index:
a line's ``scope`` is the subderivation that owns it (for a show line,
the subderivation it heads), a subderivation's ``parent`` is the index of
the enclosing one, and ``parts`` are :class:`PartRef` handles.  Index 0 is
always the root.  Nothing in the arena is mutated after construction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

ROOT = 0


@dataclass(frozen=True, slots=True)
class PartRef:
    """Handle to a line or subderivation in the arena."""

    is_subderivation: bool
    index: int


@dataclass(frozen=True, slots=True)
class DerivationLine:
    """One line of a derivation.

    Attributes:
        index: Position in ``Derivation.lines``.
        number: Line number as written (None if missing).
        formula_text: Formula as written.
        justification_text: Justification as written.
        is_show_line: Whether this line heads a subderivation.
        scope: Owning subderivation index.
    """

    index: int
    number: str | None
    formula_text: str
    justification_text: str
    is_show_line: bool
    scope: int

    @property
    def ref(self) -> PartRef:
        return PartRef(False, self.index)


@dataclass(frozen=True, slots=True)
class Subderivation:
    """A scope: ordered parts, an optional show line and a parent."""

    index: int
    parts: tuple[PartRef, ...]
    show_line: int | None
    parent: int | None

    @property
    def ref(self) -> PartRef:
        return PartRef(True, self.index)

    @property
    def is_root(self) -> bool:
        return self.parent is None


class Derivation:
    """Immutable scope tree of a submitted derivation."""

    def __init__(self, lines: tuple[DerivationLine, ...], subderivations: tuple[Subderivation, ...]) -> None:
        if not subderivations:
            raise ValueError("A derivation needs a root subderivation")
        self.lines = lines
        self.subderivations = subderivations

    def __repr__(self) -> str:
        return f"Derivation(lines={len(self.lines)}, subderivations={len(self.subderivations)})"

    @property
    def root(self) -> Subderivation:
        return self.subderivations[ROOT]

    def line(self, index: int) -> DerivationLine:
        return self.lines[index]

    def sub(self, index: int) -> Subderivation:
        return self.subderivations[index]

    def owner(self, ref: PartRef) -> int | None:
        """Index of the subderivation whose parts contain *ref*."""
        if ref.is_subderivation:
            return self.subderivations[ref.index].parent
        return self.lines[ref.index].scope

    def previous_part(self, ref: PartRef) -> PartRef | None:
        """The part just before *ref* in its owner, or None at the top of a scope.

        A show line is not among its subderivation's parts, so it has no
        previous part.
        """
        owner = self.owner(ref)
        if owner is None:
            return None
        parts = self.subderivations[owner].parts
        try:
            position = parts.index(ref)
        except ValueError:
            return None
        return parts[position - 1] if position > 0 else None

    def flattened(self, index: int = ROOT, *, numbered_show_lines: bool = False) -> list[int]:
        """Line indices of a subderivation in reading order, nested ones included."""
        sub = self.subderivations[index]
        out: list[int] = []
        if numbered_show_lines and sub.show_line is not None:
            out.append(sub.show_line)
        for part in sub.parts:
            if part.is_subderivation:
                out.extend(self.flattened(part.index, numbered_show_lines=numbered_show_lines))
            else:
                out.append(part.index)
        return out

    def ancestors(self, index: int) -> list[int]:
        """Indices of enclosing subderivations, innermost first."""
        out = []
        parent = self.subderivations[index].parent
        while parent is not None:
            out.append(parent)
            parent = self.subderivations[parent].parent
        return out

    def to_dict(self, index: int = ROOT) -> dict:
        """Serialize back to the nested wire format."""
        sub = self.subderivations[index]
        d: dict = {}
        if sub.show_line is not None:
            d["showline"] = self._line_dict(self.lines[sub.show_line])
        d["parts"] = [
            self.to_dict(p.index) if p.is_subderivation else self._line_dict(self.lines[p.index])
            for p in sub.parts
        ]
        return d

    @staticmethod
    def _line_dict(line: DerivationLine) -> dict:
        d = {"s": line.formula_text, "j": line.justification_text}
        if line.number is not None:
            d["n"] = line.number
        return d

    @classmethod
    def from_dict(cls, data: dict) -> Derivation:
        """Build the arena from the nested wire format.

        Raises:
            ValueError: If the structure is not a derivation, or a nested
                subderivation has no parts.
        """
        lines: list[DerivationLine] = []
        subs: list[Subderivation | None] = []

        def add_line(d: object, scope: int, is_show: bool) -> int:
            if not isinstance(d, dict):
                raise ValueError(f"Derivation line must be an object, got {d!r}")
            number = d.get("n")
            lines.append(
                DerivationLine(
                    index=len(lines),
                    number=None if number in (None, "") else str(number),
                    formula_text=str(d.get("s", "")),
                    justification_text=str(d.get("j", "")),
                    is_show_line=is_show,
                    scope=scope,
                )
            )
            return len(lines) - 1

        def add_sub(d: object, parent: int | None) -> int:
            if not isinstance(d, dict):
                raise ValueError(f"Subderivation must be an object, got {d!r}")
            parts_data = d.get("parts", [])
            if not isinstance(parts_data, list):
                raise ValueError("Subderivation parts must be a list")
            if parent is not None and not parts_data:
                raise ValueError("A subderivation must contain at least one line")
            index = len(subs)
            subs.append(None)
            show = add_line(d["showline"], index, True) if "showline" in d else None
            parts: list[PartRef] = []
            for part in parts_data:
                if isinstance(part, dict) and "parts" in part:
                    parts.append(PartRef(True, add_sub(part, index)))
                else:
                    parts.append(PartRef(False, add_line(part, index, False)))
            subs[index] = Subderivation(index, tuple(parts), show, parent)
            return index

        add_sub(data, None)
        derivation = cls(tuple(lines), tuple(s for s in subs if s is not None))
        logger.debug("Derivation built: %d lines, %d subderivations", len(lines), len(subs))
        return derivation
