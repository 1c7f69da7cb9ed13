"""
Check & Formula Runner
======================
Resolves skill checks and named formulas against a character's stats, and
seeds fresh character state from a rule template.

Check pipeline:
1.  **Roll:** Evaluate the check formula as an unnamed numeric formula.
2.  **Modifiers:** In list order, gate each modifier on its condition and fold
    additive/multiplicative values into the total. Every modifier is reported.
3.  **Threshold:** success = total >= successThreshold (inclusive).
4.  **Critical:** total >= criticalSuccess or total <= criticalFailure.

Nothing here mutates the character state passed in; the caller persists
whatever it derives from the results.

Usage:
    state = initialize_character_state("tpl-1", template)
    result = perform_check(template.get_check("attack"), state)
"""

import copy
import logging
import math
import sys
from typing import Any, Dict, Mapping, Type, TypeVar, Union

from pydantic import BaseModel

from rpg_mechanics.engine.formula import evaluate, evaluate_condition
from rpg_mechanics.errors import EvaluationError
from rpg_mechanics.models.character_state import CharacterState
from rpg_mechanics.models.results import CheckResult, FormulaResult, ModifierResult
from rpg_mechanics.models.rule_template import (
    CheckDefinition,
    FormulaDefinition,
    Modifier,
    RuleTemplate,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _as_model(model_cls: Type[ModelT], value: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    if isinstance(value, model_cls):
        return value
    return model_cls.model_validate(value)


# =============================================================================
# RESULT COERCION
# =============================================================================


def _to_number(value: Any) -> Union[int, float]:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        # Past the double range an int saturates to +/-inf.
        if abs(value) > sys.float_info.max:
            return math.copysign(math.inf, value)
        return value
    if isinstance(value, float):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return _to_number(int(text))
        except ValueError:
            return float(text)
    raise TypeError(f"Expected a numeric result, got {type(value).__name__}")


def _to_string(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def coerce_result(value: Any, return_type: str) -> Any:
    """Convert a raw evaluator result to the formula's declared return type."""
    if return_type == "boolean":
        return bool(value)
    if return_type == "string":
        return _to_string(value)
    return _to_number(value)


# =============================================================================
# FORMULAS
# =============================================================================


def evaluate_formula(
    formula: Union[FormulaDefinition, Mapping[str, Any]],
    state: Union[CharacterState, Mapping[str, Any]],
) -> FormulaResult:
    """
    Evaluate a named formula with the character's stats as bindings.

    Raises:
        EvaluationError: tagged with the formula ID when the expression cannot
            be evaluated or its result does not fit the return type.
    """
    formula = _as_model(FormulaDefinition, formula)
    state = _as_model(CharacterState, state)

    try:
        raw = evaluate(formula.expression, state.stats)
        result = coerce_result(raw, formula.return_type)
    except (EvaluationError, TypeError, ValueError) as e:
        logger.warning(f"Formula '{formula.id}' failed: {e}")
        raise EvaluationError(
            f"Failed to evaluate formula {formula.id}: {e}",
            source_id=formula.id,
            cause=e,
        ) from e

    return FormulaResult(
        formula_id=formula.id,
        result=result,
        variables=copy.deepcopy(state.stats),
        expression=formula.expression,
    )


# =============================================================================
# MODIFIERS
# =============================================================================


def parse_modifier_value(value: Any) -> Union[int, float]:
    """Numbers pass through; numeric strings such as '5' or '1.5' are parsed."""
    if isinstance(value, bool):
        raise ValueError(f"Modifier value must be numeric, got {value!r}")
    return _to_number(value)


def apply_modifier(modifier: Modifier, stats: Dict[str, Any]) -> ModifierResult:
    """
    Decide whether a modifier applies. A condition that cannot be evaluated
    counts as not met; it never fails the surrounding check.
    """
    try:
        value = parse_modifier_value(modifier.value)
    except (TypeError, ValueError):
        return ModifierResult(
            modifier_id=modifier.id,
            value=0,
            applied=False,
            reason=f"Invalid modifier value: {modifier.value!r}",
        )

    if modifier.condition:
        try:
            met = evaluate_condition(modifier.condition, stats)
        except EvaluationError as e:
            logger.debug(f"Modifier '{modifier.id}' condition failed: {e}")
            return ModifierResult(
                modifier_id=modifier.id,
                value=0,
                applied=False,
                reason=f"Condition could not be evaluated: {e}",
            )
        if not met:
            return ModifierResult(
                modifier_id=modifier.id,
                value=0,
                applied=False,
                reason="Condition not met",
            )

    return ModifierResult(
        modifier_id=modifier.id,
        value=value,
        applied=True,
        reason="Condition met",
    )


# =============================================================================
# CHECKS
# =============================================================================


def perform_check(
    check: Union[CheckDefinition, Mapping[str, Any]],
    state: Union[CharacterState, Mapping[str, Any]],
) -> CheckResult:
    """
    Resolve a check against the character's stats.

    Raises:
        EvaluationError: tagged with the check ID when the roll formula fails.
            Failing modifier conditions are reported per modifier instead.
    """
    check = _as_model(CheckDefinition, check)
    state = _as_model(CharacterState, state)

    roll_formula = FormulaDefinition(
        id=check.id,
        name=check.name,
        expression=check.formula,
        variables=[],
        return_type="number",
    )
    try:
        roll = evaluate_formula(roll_formula, state).result
    except EvaluationError as e:
        raise EvaluationError(
            f"Failed to perform check {check.id}: {e}",
            source_id=check.id,
            cause=e,
        ) from e

    total = roll
    modifier_results = []
    for modifier in check.modifiers:
        modifier_result = apply_modifier(modifier, state.stats)
        if modifier_result.applied:
            try:
                if modifier.type == "additive":
                    total = _to_number(total + modifier_result.value)
                elif modifier.type == "multiplicative":
                    total = _to_number(total * modifier_result.value)
            except OverflowError as e:
                raise EvaluationError(
                    f"Failed to perform check {check.id}: modifier {modifier.id}: {e}",
                    source_id=check.id,
                    cause=e,
                ) from e
        modifier_results.append(modifier_result)

    success = total >= check.success_threshold
    # Both thresholds are tested independently; overlapping ones can both fire.
    critical = (
        check.critical_success is not None and total >= check.critical_success
    ) or (
        check.critical_failure is not None and total <= check.critical_failure
    )

    logger.debug(
        f"Check '{check.id}': roll={roll} total={total} threshold={check.success_threshold} "
        f"success={success} critical={critical}"
    )

    return CheckResult(
        check_id=check.id,
        roll=roll,
        threshold=check.success_threshold,
        success=success,
        critical=critical,
        modifiers=modifier_results,
        total=total,
    )


# =============================================================================
# CHARACTER STATE
# =============================================================================


def initialize_character_state(
    template_id: str,
    config: Union[RuleTemplate, Mapping[str, Any]],
) -> CharacterState:
    """Fresh state with every stat at its default value."""
    config = _as_model(RuleTemplate, config)

    stats = {stat.id: copy.deepcopy(stat.default_value) for stat in config.stats}

    return CharacterState(
        template_id=template_id,
        stats=stats,
        flags={},
        variables={},
        inventory=[],
        achievements=[],
    )
