"""Inference rule data for the built-in deduction systems.

Each system is plain data: rule name -> rule definition dict, in the
format read by :meth:`logicgrade.rules.RuleSchema.from_dict`.  Schemas use
``A``, ``B``, ``C`` for formulas, ``x`` for bound variables and ``a``,
``b``, ``c``, ``n`` for names.

The forallx family is written in cambridge notation and rewritten into the
notation actually in use when a rule set is built.  The hardegree system
is written directly in hardegree notation and uses numbered show lines.
"""

from __future__ import annotations

_NO_NEG_OUT = "An elimination rule for negation does not exist in this system."
_NO_NEG_IN = "Although in-rules would be nice, only out-rules exist for negations."


def _prems(*premises: str, conclusion: str) -> dict:
    return {"premises": list(premises), "conclusion": conclusion}


def _sub(needs, allows=None, **extra) -> dict:
    d: dict = {"needs": list(needs)}
    if allows is not None:
        d["allows"] = allows
    d.update(extra)
    return d


_DEM = {
    "derived": True,
    "forms": [
        _prems("¬(A ∧ B)", conclusion="¬A ∨ ¬B"),
        _prems("¬A ∨ ¬B", conclusion="¬(A ∧ B)"),
        _prems("¬(A ∨ B)", conclusion="¬A ∧ ¬B"),
        _prems("¬A ∧ ¬B", conclusion="¬(A ∨ B)"),
    ],
}
_CQ = {
    "predicate_only": True,
    "derived": True,
    "forms": [
        _prems("∀x¬Ax", conclusion="¬∃xAx"),
        _prems("∃x¬Ax", conclusion="¬∀xAx"),
        _prems("¬∀xAx", conclusion="∃x¬Ax"),
        _prems("¬∃xAx", conclusion="∀x¬Ax"),
    ],
}
_DS = {
    "derived": True,
    "forms": [_prems("A ∨ B", "¬A", conclusion="B"), _prems("A ∨ B", "¬B", conclusion="A")],
}
_DNE = {"derived": True, "forms": [_prems("¬¬A", conclusion="A")]}
_EXCLUDED_MIDDLE = {"forms": [{"conclusion": "B", "subderivations": [_sub(["B"], "A"), _sub(["B"], "¬A")]}]}
_DERIVED_EXCLUDED_MIDDLE = dict(_EXCLUDED_MIDDLE, derived=True)
_EXPLOSION = {"forms": [_prems("⊥", conclusion="A")]}
_BOTTOM_IN = {"forms": [_prems("A", "¬A", conclusion="⊥")]}
_CONTRADICTION_NEG_IN = {"forms": [{"conclusion": "¬A", "subderivations": [_sub(["B", "¬B"], "A")]}]}
_CONTRADICTION_NEG_OUT = {"forms": [{"conclusion": "A", "subderivations": [_sub(["B", "¬B"], "¬A")]}]}
_DISJUNCTIVE_SYLLOGISM_OUT = {
    "forms": [_prems("A ∨ B", "¬A", conclusion="B"), _prems("A ∨ B", "¬B", conclusion="A")],
}
_DIL = {"derived": True, "forms": [_prems("A ∨ B", "A → C", "B → C", conclusion="C")]}
_HS = {"derived": True, "forms": [_prems("A → B", "B → C", conclusion="A → C")]}


def _replacement(*pairs: tuple[str, str], predicate_only: bool = False) -> dict:
    d: dict = {
        "replacement_rule": True,
        "derived": True,
        "forms": [{"replaces": [a, b]} for a, b in pairs],
    }
    if predicate_only:
        d["predicate_only"] = True
    return d


_REPLACEMENT_COMMON = {
    "DeM": _replacement(("¬(A ∨ B)", "¬A ∧ ¬B"), ("¬(A ∧ B)", "¬A ∨ ¬B")),
    "DIL": _DIL,
    "HS": _HS,
    "Comm": _replacement(("A ∧ B", "B ∧ A"), ("A ∨ B", "B ∨ A"), ("A ↔ B", "B ↔ A")),
    "DN": _replacement(("A", "¬¬A")),
    "MC": _replacement(("A → B", "¬A ∨ B"), ("A ∨ B", "¬A → B")),
    "↔ex": _replacement(("(A → B) ∧ (B → A)", "A ↔ B")),
    "QN": _replacement(("¬∀xAx", "∃x¬Ax"), ("¬∃xAx", "∀x¬Ax"), predicate_only=True),
}

FORALLX_COMMON: dict[str, dict] = {
    "∨I": {"forms": [_prems("A", conclusion="A ∨ B"), _prems("A", conclusion="B ∨ A")]},
    "∧I": {"forms": [_prems("A", "B", conclusion="A ∧ B")]},
    "→I": {"forms": [{"conclusion": "A → B", "subderivations": [_sub(["B"], "A")]}]},
    "↔I": {"forms": [{"conclusion": "A ↔ B", "subderivations": [_sub(["B"], "A"), _sub(["A"], "B")]}]},
    "¬I": {"forms": [{"conclusion": "¬A", "subderivations": [_sub(["⊥"], "A")]}]},
    "∀I": {
        "predicate_only": True,
        "forms": [
            {
                "premises": ["Aa"],
                "conclusion": "∀xAx",
                "not_in_hypotheses": ["a"],
                "substitutions": {"x": "a"},
            }
        ],
    },
    "∃I": {
        "predicate_only": True,
        "forms": [{"premises": ["Aa"], "conclusion": "∃xAx", "substitutions": {"x": "a"}}],
    },
    "=I": {"predicate_only": True, "forms": [{"premises": [], "conclusion": "c = c"}]},
    "R": {"derived": True, "forms": [_prems("A", conclusion="A")]},
    "∨E": {
        "forms": [
            {
                "conclusion": "C",
                "premises": ["A ∨ B"],
                "subderivations": [_sub(["C"], "A"), _sub(["C"], "B")],
            }
        ]
    },
    "∧E": {"forms": [_prems("A ∧ B", conclusion="A"), _prems("A ∧ B", conclusion="B")]},
    "→E": {"forms": [_prems("A → C", "A", conclusion="C")]},
    "↔E": {"forms": [_prems("A ↔ B", "A", conclusion="B"), _prems("A ↔ B", "B", conclusion="A")]},
    "¬E": {"forms": [_prems("A", "¬A", conclusion="⊥")]},
    "∀E": {
        "predicate_only": True,
        "forms": [{"premises": ["∀xAx"], "conclusion": "Aa", "substitutions": {"x": "a"}}],
    },
    "∃E": {
        "predicate_only": True,
        "forms": [
            {
                "conclusion": "B",
                "premises": ["∃xAx"],
                "not_in_hypotheses": ["n"],
                "cannot_be_in": {"n": ["Ax", "B"]},
                "substitutions": {"x": "n"},
                "subderivations": [_sub(["B"], "An")],
            }
        ],
    },
    "=E": {
        "predicate_only": True,
        "forms": [
            {"premises": ["a = b", "A"], "conclusion": "B", "differs_at_most_by": ["B", "A", "b", "a"]},
            {"premises": ["a = b", "A"], "conclusion": "B", "differs_at_most_by": ["B", "A", "a", "b"]},
        ],
    },
    "MT": {"derived": True, "forms": [_prems("A → B", "¬B", conclusion="¬A")]},
    "Pr": {"premise_rule": True, "hidden": True},
    "Hyp": {"assumption_rule": True, "hidden": True},
}

FORALLX_EXTRAS: dict[str, dict[str, dict]] = {
    "cambridge": {
        "X": _EXPLOSION,
        "TND": _EXCLUDED_MIDDLE,
        "DS": _DS,
        "DNE": _DNE,
        "DeM": _DEM,
        "CQ": _CQ,
    },
    "calgary": {
        "IP": {"forms": [{"conclusion": "A", "subderivations": [_sub(["⊥"], "¬A")]}]},
        "X": _EXPLOSION,
        "DS": _DS,
        "LEM": _DERIVED_EXCLUDED_MIDDLE,
        "DNE": _DNE,
        "DeM": _DEM,
        "CQ": _CQ,
    },
    "adelaide": {
        "¬I": _CONTRADICTION_NEG_IN,
        "¬E": _CONTRADICTION_NEG_OUT,
        "DS": _DS,
        "DNE": _DNE,
        "TND": _EXCLUDED_MIDDLE,
        "DeM": _DEM,
        "=E": {
            "predicate_only": True,
            "forms": [{"premises": ["a = b", "A"], "conclusion": "B", "differs_at_most_by": ["B", "A", "b", "a"]}],
        },
        "=ES": {
            "predicate_only": True,
            "forms": [{"premises": ["a = b", "A"], "conclusion": "B", "differs_at_most_by": ["B", "A", "a", "b"]}],
        },
    },
    "bristol": {
        "¬E": {"unavailable": True, "hint": _NO_NEG_OUT},
        "⊥I": _BOTTOM_IN,
        "⊥E": _EXPLOSION,
        "PbC": {"forms": [{"conclusion": "A", "subderivations": [_sub(["⊥"], "¬A")]}]},
        "DS": _DS,
        "LEM": _DERIVED_EXCLUDED_MIDDLE,
        "DNE": _DNE,
        "DeM": _DEM,
        "CQ": _CQ,
    },
    "pitt": {
        "⊥I": _BOTTOM_IN,
        "¬E": {"forms": [{"conclusion": "A", "subderivations": [_sub(["⊥"], "¬A")]}]},
        "⊥E": _EXPLOSION,
        "DS": _DS,
        "LEM": _DERIVED_EXCLUDED_MIDDLE,
        "DNE": _DNE,
        "DeM": _DEM,
        "CQ": _CQ,
    },
    "slu": {
        "⊥I": _BOTTOM_IN,
        "⊥E": _EXPLOSION,
        "¬E": {"unavailable": True, "hint": _NO_NEG_OUT},
        "TND": _EXCLUDED_MIDDLE,
        "DS": _DS,
        "DNE": _DNE,
        "DeM": _DEM,
        "CQ": _CQ,
    },
    "magnus": {
        "¬I": _CONTRADICTION_NEG_IN,
        "∨E": _DISJUNCTIVE_SYLLOGISM_OUT,
        "¬E": _CONTRADICTION_NEG_OUT,
        **_REPLACEMENT_COMMON,
    },
    "r3": {
        "¬I": _CONTRADICTION_NEG_IN,
        "∨E": _DISJUNCTIVE_SYLLOGISM_OUT,
        "¬E": _CONTRADICTION_NEG_OUT,
        **_REPLACEMENT_COMMON,
        "TAUT": _replacement(("A ∨ A", "A"), ("A ∧ A", "A")),
    },
    "loraincounty": {
        "¬I": _CONTRADICTION_NEG_IN,
        "∨E": _DISJUNCTIVE_SYLLOGISM_OUT,
        "¬E": _CONTRADICTION_NEG_OUT,
        "CD": {"derived": True, "forms": [_prems("A ∨ B", "A → C", "B → C", conclusion="C")]},
        "DD": {"derived": True, "forms": [_prems("A → B", "A → C", "¬B ∨ ¬C", conclusion="¬A")]},
        "HS": _HS,
        "DeM": _REPLACEMENT_COMMON["DeM"],
        "Idem∨": {"derived": True, "forms": [_prems("A ∨ A", conclusion="A")]},
        "Idem∧": {"derived": True, "forms": [_prems("A", conclusion="A ∧ A")]},
        "WK": {"derived": True, "forms": [_prems("A", conclusion="B → A")]},
        "Comm∧": _replacement(("A ∧ B", "B ∧ A")),
        "Comm∨": _replacement(("A ∨ B", "B ∨ A")),
        "Comm↔": _replacement(("A ↔ B", "B ↔ A")),
        "DN": _REPLACEMENT_COMMON["DN"],
        "MC": _REPLACEMENT_COMMON["MC"],
        "ex": _REPLACEMENT_COMMON["↔ex"],
        "Trans": _replacement(("A → B", "¬B → ¬A")),
        "Assoc∧": _replacement(("(A ∧ B) ∧ C", "A ∧ (B ∧ C)")),
        "Assoc∨": _replacement(("(A ∨ B) ∨ C", "A ∨ (B ∨ C)")),
        "Assoc↔": _replacement(("(A ↔ B) ↔ C", "A ↔ (B ↔ C)")),
        "QN": _REPLACEMENT_COMMON["QN"],
    },
    "ubc": {
        "↔I": {"forms": [_prems("A → B", "B → A", conclusion="A ↔ B")]},
        "¬I": _CONTRADICTION_NEG_IN,
        "∨E": _DISJUNCTIVE_SYLLOGISM_OUT,
        "¬E": _CONTRADICTION_NEG_OUT,
        **_REPLACEMENT_COMMON,
    },
    "msu": {
        "↔I": {"forms": [_prems("A → B", "B → A", conclusion="A ↔ B")]},
        "¬I": _CONTRADICTION_NEG_IN,
        "∨E": _DISJUNCTIVE_SYLLOGISM_OUT,
        "¬E": _CONTRADICTION_NEG_OUT,
        "DN": {"forms": [_prems("A", conclusion="¬¬A")]},
        "MT": {"unavailable": True, "hidden": True},
        "PR": {"premise_rule": True, "hidden": True},
        "AS": {"assumption_rule": True, "hidden": True},
    },
}
FORALLX_EXTRAS["leeds"] = FORALLX_EXTRAS["magnus"]
FORALLX_EXTRAS["uconn"] = FORALLX_EXTRAS["calgary"]

HARDEGREE: dict[str, dict] = {
    "→I": {
        "unavailable": True,
        "hint": "To establish a →-statement, use CD in a subderivation for it, "
        "even if you have to write in a SHOW-line yourself.",
    },
    "∨I": {"forms": [_prems("A", conclusion="A ∨ B"), _prems("A", conclusion="B ∨ A")]},
    "&I": {"forms": [_prems("A", "B", conclusion="A & B")]},
    "↔I": {"forms": [_prems("A → B", "B → A", conclusion="A ↔ B")]},
    "✖I": {"forms": [_prems("A", "~A", conclusion="✖")]},
    "∀I": {
        "predicate_only": True,
        "unavailable": True,
        "hint": "To establish a ∀-statement, use UD in a subderivation for it, "
        "even if you have to write in a SHOW-line yourself.",
    },
    "∃I": {
        "predicate_only": True,
        "forms": [{"premises": ["Aa"], "conclusion": "∃xAx", "substitutions": {"x": "a"}}],
    },
    "Ass": {"assumption_rule": True},
    "→O": {"forms": [_prems("A → C", "A", conclusion="C"), _prems("A → C", "~C", conclusion="~A")]},
    "∨O": {"forms": [_prems("A ∨ B", "~A", conclusion="B"), _prems("A ∨ B", "~B", conclusion="A")]},
    "&O": {"forms": [_prems("A & B", conclusion="A"), _prems("A & B", conclusion="B")]},
    "↔O": {"forms": [_prems("A ↔ B", conclusion="A → B"), _prems("A ↔ B", conclusion="B → A")]},
    "✖O": {"forms": [_prems("✖", conclusion="A")]},
    "∀O": {
        "predicate_only": True,
        "forms": [{"premises": ["∀xAx"], "conclusion": "Aa", "substitutions": {"x": "a"}}],
    },
    "∃O": {
        "predicate_only": True,
        "forms": [
            {"premises": ["∃xAx"], "conclusion": "An", "must_be_new": ["n"], "substitutions": {"x": "n"}}
        ],
    },
    "R": {"forms": [_prems("A", conclusion="A")]},
    "~→O": {"forms": [_prems("~(A → B)", conclusion="A & ~B")]},
    "~∨O": {"forms": [_prems("~(A ∨ B)", conclusion="~A"), _prems("~(A ∨ B)", conclusion="~B")]},
    "~&O": {"forms": [_prems("~(A & B)", conclusion="A → ~B")]},
    "~↔O": {"forms": [_prems("~(A ↔ B)", conclusion="~A ↔ B")]},
    "~✖O": {
        "unavailable": True,
        "hint": "There is no rule for negations of ✖. A statement like ~✖ is a trivial "
        "tautology and the only things that follow from it are things you can prove another way.",
    },
    "~∀O": {"predicate_only": True, "forms": [_prems("~∀xAx", conclusion="∃x~Ax")]},
    "~∃O": {"predicate_only": True, "forms": [_prems("~∃xAx", conclusion="∀x~Ax")]},
    "DN": {"forms": [_prems("A", conclusion="~~A"), _prems("~~A", conclusion="A")]},
    "CD": {"show_rule": True, "forms": [{"conclusion": "A → B", "subderivations": [_sub(["B"], "A")]}]},
    "ID": {
        "show_rule": True,
        "forms": [
            {"conclusion": "A", "subderivations": [_sub(["✖"], "~A")]},
            {"conclusion": "~A", "subderivations": [_sub(["✖"], "A")]},
        ],
    },
    "&D": {"show_rule": True, "forms": [{"conclusion": "A & B", "subderivations": [_sub(["A", "B"])]}]},
    "↔D": {
        "show_rule": True,
        "forms": [{"conclusion": "A ↔ B", "subderivations": [_sub(["A → B", "B → A"])]}],
    },
    "DD": {"show_rule": True, "forms": [{"conclusion": "A", "subderivations": [_sub(["A"])]}]},
    "UD": {
        "predicate_only": True,
        "show_rule": True,
        "forms": [
            {
                "conclusion": "∀xAx",
                "substitutions": {"x": "n"},
                "subderivations": [_sub(["An"], wants_as_new=["n"], show_required=True)],
            }
        ],
    },
    "∃D": {
        "predicate_only": True,
        "show_rule": True,
        "forms": [{"conclusion": "∃xAx", "subderivations": [_sub(["✖"], "~∃xAx")]}],
    },
    "~D": {
        "show_rule": True,
        "hidden": True,
        "forms": [{"conclusion": "~A", "subderivations": [_sub(["✖"], "A")]}],
    },
    "∨D": {
        "show_rule": True,
        "hidden": True,
        "forms": [{"conclusion": "A ∨ B", "subderivations": [_sub(["✖"], "~(A ∨ B)")]}],
    },
    "Rep": {"hidden": True, "forms": [_prems("A", conclusion="A")]},
    "Pr": {"premise_rule": True},
    "As": {"assumption_rule": True, "hidden": True},
    "~→I": {"hidden": True, "unavailable": True, "hint": _NO_NEG_IN},
    "~∨I": {"hidden": True, "unavailable": True, "hint": _NO_NEG_IN},
    "~&I": {"hidden": True, "unavailable": True, "hint": _NO_NEG_IN},
    "~↔I": {"hidden": True, "unavailable": True, "hint": _NO_NEG_IN},
    "~✖I": {"hidden": True, "unavailable": True, "hint": _NO_NEG_IN},
    "~∀I": {"predicate_only": True, "hidden": True, "unavailable": True, "hint": _NO_NEG_IN},
    "~∃I": {"predicate_only": True, "hidden": True, "unavailable": True, "hint": _NO_NEG_IN},
}

# Systems built with numbered show lines rather than Fitch-style hypotheses
SHOW_LINE_SYSTEMS = {"hardegree": HARDEGREE}
