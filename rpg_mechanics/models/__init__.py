from rpg_mechanics.models.rule_template import (
    StatDefinition,
    Modifier,
    CheckDefinition,
    FormulaDefinition,
    TemplateMetadata,
    RuleTemplate,
)
from rpg_mechanics.models.character_state import InventoryItem, CharacterState
from rpg_mechanics.models.results import (
    ModifierResult,
    CheckResult,
    FormulaResult,
    ValidationIssue,
    ValidationResult,
)
from rpg_mechanics.models.choice_logic import ChoiceCondition, ChoiceEffect

__all__ = [
    "StatDefinition",
    "Modifier",
    "CheckDefinition",
    "FormulaDefinition",
    "TemplateMetadata",
    "RuleTemplate",
    "InventoryItem",
    "CharacterState",
    "ModifierResult",
    "CheckResult",
    "FormulaResult",
    "ValidationIssue",
    "ValidationResult",
    "ChoiceCondition",
    "ChoiceEffect",
]
