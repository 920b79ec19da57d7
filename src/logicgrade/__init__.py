"""logicgrade — automated assessment of formal-logic exercises.

Parses first-order formulas in several notations, checks natural-deduction
derivations against rule schemas, and tests formula equivalence with a
time-bounded tableau prover.

Public API::

    from logicgrade import ParseContext, Formula, get_rules
    from logicgrade import check_derivation_structure, EquivalenceProver
    from logicgrade import check_answer, GradingSettings
"""

from logicgrade._version import __version__
from logicgrade.checker import CheckReport, DerivationChecker, ErrorReport, check_derivation_structure
from logicgrade.config import GradingSettings, PartialCreditPolicy
from logicgrade.derivation import Derivation
from logicgrade.equivalence import EquivalenceProver, EquivalenceResult, equivalent
from logicgrade.equivdb import JSONEquivalenceDatabase, MemoryEquivalenceDatabase
from logicgrade.grading import GradeResult, check_answer, check_derivation, check_translation
from logicgrade.justification import parse_justification
from logicgrade.notation import get_notation
from logicgrade.rules import available_systems, get_rules
from logicgrade.syntax import Formula, ParseContext

__all__ = [
    "__version__",
    "CheckReport",
    "Derivation",
    "DerivationChecker",
    "EquivalenceProver",
    "EquivalenceResult",
    "ErrorReport",
    "Formula",
    "GradeResult",
    "GradingSettings",
    "JSONEquivalenceDatabase",
    "MemoryEquivalenceDatabase",
    "ParseContext",
    "PartialCreditPolicy",
    "available_systems",
    "check_answer",
    "check_derivation",
    "check_derivation_structure",
    "check_translation",
    "equivalent",
    "get_notation",
    "get_rules",
    "parse_justification",
]
