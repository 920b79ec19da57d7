"""Shared fixtures for the logicgrade test suite."""

import pytest

from logicgrade import ParseContext, get_rules


@pytest.fixture
def ctx():
    """A fresh parse context for cambridge notation."""
    return ParseContext("cambridge")


@pytest.fixture
def cambridge():
    """The cambridge (forallx) rule set, Fitch style."""
    return get_rules("cambridge")


@pytest.fixture
def modus_ponens():
    """Pr P → Q, P; derive Q by →E."""
    return {
        "prems": ["P → Q", "P"],
        "conc": "Q",
        "derivation": {
            "parts": [
                {"n": "1", "s": "P → Q", "j": "Pr"},
                {"n": "2", "s": "P", "j": "Pr"},
                {"n": "3", "s": "Q", "j": "2,1 →E"},
            ]
        },
    }


@pytest.fixture
def chain():
    """Pr P → Q, Q → R, P; derive R in two →E steps."""
    return {
        "prems": ["P → Q", "Q → R", "P"],
        "conc": "R",
        "derivation": {
            "parts": [
                {"n": "1", "s": "P → Q", "j": "Pr"},
                {"n": "2", "s": "Q → R", "j": "Pr"},
                {"n": "3", "s": "P", "j": "Pr"},
                {"n": "4", "s": "Q", "j": "→E 1,3"},
                {"n": "5", "s": "R", "j": "→E 2,4"},
            ]
        },
    }


@pytest.fixture
def conditional_proof():
    """No premises; derive P → (Q → P) with nested subderivations."""
    return {
        "prems": [],
        "conc": "P → (Q → P)",
        "derivation": {
            "parts": [
                {
                    "parts": [
                        {"n": "1", "s": "P", "j": "Hyp"},
                        {
                            "parts": [
                                {"n": "2", "s": "Q", "j": "Hyp"},
                                {"n": "3", "s": "P", "j": "1 R"},
                            ]
                        },
                        {"n": "4", "s": "Q → P", "j": "2–3 →I"},
                    ]
                },
                {"n": "5", "s": "P → (Q → P)", "j": "1–4 →I"},
            ]
        },
    }
