"""
Choice Conditions & Effects
===========================
Availability rules and state effects attached to story choices.

Conditions form a small tree ('and', 'or', 'not' over 'variable' and 'item'
leaves) checked against a character's variables and inventory. Effects
set or adjust variables and add or remove inventory items.

Both operate on copies: the CharacterState passed in is never modified.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Set, Union

from rpg_mechanics.models.character_state import CharacterState, InventoryItem
from rpg_mechanics.models.choice_logic import ChoiceCondition, ChoiceEffect
from rpg_mechanics.models.results import ValidationIssue, ValidationResult

logger = logging.getLogger(__name__)

ConditionInput = Union[ChoiceCondition, Mapping[str, Any], None]
EffectInput = Union[ChoiceEffect, Mapping[str, Any]]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_condition(condition: ConditionInput) -> Optional[ChoiceCondition]:
    if condition is None or isinstance(condition, ChoiceCondition):
        return condition
    return ChoiceCondition.model_validate(condition)


def _as_effect(effect: EffectInput) -> ChoiceEffect:
    if isinstance(effect, ChoiceEffect):
        return effect
    return ChoiceEffect.model_validate(effect)


# =============================================================================
# CONDITIONS
# =============================================================================


def _variable_condition(condition: ChoiceCondition, state: CharacterState) -> bool:
    if not condition.variable_name:
        return True

    current = state.variables.get(condition.variable_name)
    expected = condition.value

    if condition.operator == "equals":
        return current == expected
    if condition.operator == "not_equals":
        return current != expected
    if condition.operator == "greater_than":
        return _is_number(current) and _is_number(expected) and current > expected
    if condition.operator == "less_than":
        return _is_number(current) and _is_number(expected) and current < expected
    if condition.operator == "contains":
        return isinstance(current, list) and expected in current
    return True


def _evaluate_node(condition: ChoiceCondition, state: CharacterState) -> bool:
    if condition.type == "variable":
        return _variable_condition(condition, state)

    if condition.type == "item":
        if not condition.item_id:
            return True
        return state.has_item(condition.item_id)

    if condition.type == "and":
        return all(_evaluate_node(c, state) for c in condition.conditions)

    if condition.type == "or":
        return any(_evaluate_node(c, state) for c in condition.conditions)

    if condition.type == "not":
        if not condition.conditions:
            return True
        return not _evaluate_node(condition.conditions[0], state)

    return True


def evaluate_conditions(condition: ConditionInput, state: CharacterState) -> bool:
    """True when the choice guarded by `condition` is available. No condition means available."""
    condition = _as_condition(condition)
    if condition is None:
        return True
    return _evaluate_node(condition, state)


def _get_conditions(choice: Any) -> ConditionInput:
    if isinstance(choice, Mapping):
        return choice.get("conditions")
    return getattr(choice, "conditions", None)


def available_choices(choices: Iterable[Any], state: CharacterState) -> List[Any]:
    """Filter choice records (dicts or objects with a `conditions` attribute)."""
    return [c for c in choices if evaluate_conditions(_get_conditions(c), state)]


# =============================================================================
# EFFECTS
# =============================================================================


def _modify_variable(effect: ChoiceEffect, state: CharacterState) -> None:
    if not effect.variable_name or effect.amount is None:
        return

    current = state.variables.get(effect.variable_name) or 0
    if not _is_number(current):
        logger.debug(f"Skipping modify on non-numeric variable '{effect.variable_name}'")
        return

    if effect.operator == "add":
        state.variables[effect.variable_name] = current + effect.amount
    elif effect.operator == "subtract":
        state.variables[effect.variable_name] = current - effect.amount
    elif effect.operator == "multiply":
        state.variables[effect.variable_name] = current * effect.amount
    elif effect.operator == "divide" and effect.amount != 0:
        state.variables[effect.variable_name] = current / effect.amount


def _apply_effect(
    effect: ChoiceEffect,
    state: CharacterState,
    known_items: Optional[Set[str]],
) -> None:
    if effect.type == "set_variable":
        if effect.variable_name:
            state.variables[effect.variable_name] = effect.value

    elif effect.type == "modify_variable":
        _modify_variable(effect, state)

    elif effect.type == "add_item":
        if not effect.item_id or state.has_item(effect.item_id):
            return
        if known_items is not None and effect.item_id not in known_items:
            logger.warning(f"Ignoring add_item for unknown item '{effect.item_id}'")
            return
        state.inventory.append(InventoryItem(id=effect.item_id, name=effect.item_id))

    elif effect.type == "remove_item":
        if effect.item_id:
            state.inventory = [i for i in state.inventory if i.id != effect.item_id]


def apply_effects(
    effects: Sequence[EffectInput],
    state: CharacterState,
    known_items: Optional[Iterable[str]] = None,
) -> CharacterState:
    """
    Apply effects in order and return the resulting state.

    Args:
        effects: Effect records
        state: Current character state (left unchanged)
        known_items: Item IDs defined by the story. When given, add_item is
            ignored for anything else.
    """
    new_state = state.model_copy(deep=True)
    items = set(known_items) if known_items is not None else None

    for effect in effects:
        _apply_effect(_as_effect(effect), new_state, items)

    return new_state


# =============================================================================
# VALIDATION
# =============================================================================


def _condition_issues(
    condition: ChoiceCondition,
    variables: Set[str],
    items: Set[str],
    field: str,
) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []

    if condition.type == "variable" and condition.variable_name:
        if condition.variable_name not in variables:
            issues.append(ValidationIssue(
                field=field,
                message=f"Variable '{condition.variable_name}' does not exist in story",
                code="UNKNOWN_VARIABLE",
            ))
    elif condition.type == "item" and condition.item_id:
        if condition.item_id not in items:
            issues.append(ValidationIssue(
                field=field,
                message=f"Item '{condition.item_id}' does not exist in story",
                code="UNKNOWN_ITEM",
            ))
    elif condition.type in ("and", "or"):
        for i, sub in enumerate(condition.conditions):
            issues.extend(_condition_issues(sub, variables, items, f"{field}.conditions[{i}]"))
    elif condition.type == "not" and condition.conditions:
        issues.extend(_condition_issues(condition.conditions[0], variables, items, f"{field}.conditions[0]"))

    return issues


def validate_conditions_and_effects(
    conditions: ConditionInput,
    effects: Sequence[EffectInput],
    variable_names: Iterable[str],
    item_ids: Iterable[str],
) -> ValidationResult:
    """Report references to variables or items the story does not define."""
    variables = set(variable_names)
    items = set(item_ids)
    errors: List[ValidationIssue] = []

    condition = _as_condition(conditions)
    if condition is not None:
        errors.extend(_condition_issues(condition, variables, items, "conditions"))

    for index, raw in enumerate(effects):
        effect = _as_effect(raw)
        field = f"effects[{index}]"
        if effect.type in ("set_variable", "modify_variable") and effect.variable_name:
            if effect.variable_name not in variables:
                errors.append(ValidationIssue(
                    field=field,
                    message=f"Variable '{effect.variable_name}' does not exist in story",
                    code="UNKNOWN_VARIABLE",
                ))
        elif effect.type in ("add_item", "remove_item") and effect.item_id:
            if effect.item_id not in items:
                errors.append(ValidationIssue(
                    field=field,
                    message=f"Item '{effect.item_id}' does not exist in story",
                    code="UNKNOWN_ITEM",
                ))

    return ValidationResult.from_issues(errors)
