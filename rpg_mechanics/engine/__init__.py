"""
Engine Package
==============
The rules engine proper: expression evaluation, template validation,
check/formula resolution and choice conditions/effects.
"""

from rpg_mechanics.engine.formula import (
    evaluate,
    evaluate_condition,
    normalize_operators,
    SAFE_FUNCTIONS,
)

from rpg_mechanics.engine.template_validator import (
    validate_template_config,
    extract_identifiers,
    find_undefined_identifiers,
)

from rpg_mechanics.engine.checks import (
    evaluate_formula,
    perform_check,
    apply_modifier,
    initialize_character_state,
)

from rpg_mechanics.engine.choice_rules import (
    evaluate_conditions,
    available_choices,
    apply_effects,
    validate_conditions_and_effects,
)

__all__ = [
    # Expression evaluation
    "evaluate",
    "evaluate_condition",
    "normalize_operators",
    "SAFE_FUNCTIONS",

    # Template validation
    "validate_template_config",
    "extract_identifiers",
    "find_undefined_identifiers",

    # Checks & formulas
    "evaluate_formula",
    "perform_check",
    "apply_modifier",
    "initialize_character_state",

    # Choice logic
    "evaluate_conditions",
    "available_choices",
    "apply_effects",
    "validate_conditions_and_effects",
]
