"""
RPG Mechanics
=============
Data-driven rule systems for branching stories: authors define stats, checks
and formulas; the engine validates them and resolves checks against a
player's character state.
"""

from rpg_mechanics.errors import EvaluationError
from rpg_mechanics.engine import (
    evaluate,
    validate_template_config,
    evaluate_formula,
    perform_check,
    initialize_character_state,
    evaluate_conditions,
    available_choices,
    apply_effects,
    validate_conditions_and_effects,
)
from rpg_mechanics.models import (
    RuleTemplate,
    CharacterState,
    CheckDefinition,
    FormulaDefinition,
    CheckResult,
    FormulaResult,
    ValidationResult,
)

__all__ = [
    "EvaluationError",
    "evaluate",
    "validate_template_config",
    "evaluate_formula",
    "perform_check",
    "initialize_character_state",
    "evaluate_conditions",
    "available_choices",
    "apply_effects",
    "validate_conditions_and_effects",
    "RuleTemplate",
    "CharacterState",
    "CheckDefinition",
    "FormulaDefinition",
    "CheckResult",
    "FormulaResult",
    "ValidationResult",
]
