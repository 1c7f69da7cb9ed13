"""
Rule Template Validation
========================
Static checks run on an author-supplied rule template before it can be
attached to a story.

Validation problems are returned as data (a ValidationResult with one
ValidationIssue per violation), never raised. The input is treated as
untrusted JSON: any field may be missing or of the wrong type.

Expression checks are lexical only. Identifiers are pulled out with a
word-boundary regex and compared against the declared stat IDs, so unknown
names are caught but syntax errors such as '((strength' are not. Math
members are matched by their own word, so 'Math.floor' passes while
'Math.PI' and 'Math.E' are reported as undefined 'PI' and 'E'.
"""

import logging
import re
from typing import Any, List, Mapping, Sequence, Set, Union

from pydantic import BaseModel

from rpg_mechanics.models.results import ValidationIssue, ValidationResult

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")
IDENTIFIER_PATTERN = re.compile(r"\b\w+\b")
DIGITS_PATTERN = re.compile(r"^\d+$")

STAT_TYPES = ("number", "string", "boolean", "array")
RETURN_TYPES = ("number", "boolean", "string")

LITERAL_WORDS = {"true", "false", "null"}
MATH_WORDS = {
    "Math",
    "min",
    "max",
    "floor",
    "ceil",
    "round",
    "abs",
    "sqrt",
    "pow",
    "sin",
    "cos",
    "tan",
}
# Keyword operators the evaluator accepts alongside &&, || and !
KEYWORD_OPERATORS = {"and", "or", "not"}


# =============================================================================
# HELPERS
# =============================================================================


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def extract_identifiers(expression: str) -> List[str]:
    """Word-boundary tokens of an expression, in order of appearance."""
    return IDENTIFIER_PATTERN.findall(expression)


def find_undefined_identifiers(expression: str, stat_ids: Set[str]) -> List[str]:
    """
    Identifiers in `expression` that are not stats, literals, math names,
    keyword operators or digit runs. Each name is reported once.
    """
    undefined: List[str] = []
    for word in extract_identifiers(expression):
        if word in stat_ids or word in LITERAL_WORDS:
            continue
        if word in MATH_WORDS or word in KEYWORD_OPERATORS:
            continue
        if DIGITS_PATTERN.match(word):
            continue
        if word not in undefined:
            undefined.append(word)
    return undefined


def _expression_issues(expression: str, field: str, stat_ids: Set[str]) -> List[ValidationIssue]:
    undefined = find_undefined_identifiers(expression, stat_ids)
    if not undefined:
        return []
    return [
        ValidationIssue(
            field=field,
            message=f"Undefined variables in expression: {', '.join(undefined)}",
            code="UNDEFINED_VARIABLES",
        )
    ]


# =============================================================================
# SECTION VALIDATORS
# =============================================================================


def validate_stat_definition(stat: Any, index: int) -> List[ValidationIssue]:
    errors: List[ValidationIssue] = []
    stat = _as_mapping(stat)
    field = f"stats[{index}]"

    if not _is_non_empty_string(stat.get("id")):
        errors.append(ValidationIssue(
            field=f"{field}.id",
            message="Stat ID must be a non-empty string",
            code="INVALID_STAT_ID",
        ))

    if not _is_non_empty_string(stat.get("name")):
        errors.append(ValidationIssue(
            field=f"{field}.name",
            message="Stat name must be a non-empty string",
            code="INVALID_STAT_NAME",
        ))

    stat_type = stat.get("type")
    if not isinstance(stat_type, str) or stat_type not in STAT_TYPES:
        errors.append(ValidationIssue(
            field=f"{field}.type",
            message="Stat type must be one of: number, string, boolean, array",
            code="INVALID_STAT_TYPE",
        ))

    if stat_type == "number":
        if not _is_number(stat.get("defaultValue")):
            errors.append(ValidationIssue(
                field=f"{field}.defaultValue",
                message="Default value must be a number for number type stats",
                code="INVALID_DEFAULT_VALUE",
            ))

        min_value = stat.get("minValue")
        max_value = stat.get("maxValue")
        if _is_number(min_value) and _is_number(max_value) and min_value > max_value:
            errors.append(ValidationIssue(
                field=f"{field}.minValue",
                message="Minimum value cannot be greater than maximum value",
                code="INVALID_MIN_MAX",
            ))

    return errors


def find_duplicate_stat_ids(stats: Sequence[Any]) -> List[str]:
    seen: Set[str] = set()
    duplicates: List[str] = []
    for stat in stats:
        stat_id = _as_mapping(stat).get("id")
        if not isinstance(stat_id, str):
            continue
        if stat_id in seen and stat_id not in duplicates:
            duplicates.append(stat_id)
        seen.add(stat_id)
    return duplicates


def validate_check_definition(check: Any, index: int, stat_ids: Set[str]) -> List[ValidationIssue]:
    errors: List[ValidationIssue] = []
    check = _as_mapping(check)
    field = f"checks[{index}]"

    if not _is_non_empty_string(check.get("id")):
        errors.append(ValidationIssue(
            field=f"{field}.id",
            message="Check ID must be a non-empty string",
            code="INVALID_CHECK_ID",
        ))

    formula = check.get("formula")
    if not _is_non_empty_string(formula):
        errors.append(ValidationIssue(
            field=f"{field}.formula",
            message="Check formula must be a non-empty string",
            code="INVALID_CHECK_FORMULA",
        ))
    else:
        errors.extend(_expression_issues(formula, f"{field}.formula", stat_ids))

    if not _is_number(check.get("successThreshold")):
        errors.append(ValidationIssue(
            field=f"{field}.successThreshold",
            message="Success threshold must be a number",
            code="INVALID_SUCCESS_THRESHOLD",
        ))

    return errors


def validate_formula_definition(formula: Any, index: int, stat_ids: Set[str]) -> List[ValidationIssue]:
    errors: List[ValidationIssue] = []
    formula = _as_mapping(formula)
    field = f"formulas[{index}]"

    if not _is_non_empty_string(formula.get("id")):
        errors.append(ValidationIssue(
            field=f"{field}.id",
            message="Formula ID must be a non-empty string",
            code="INVALID_FORMULA_ID",
        ))

    expression = formula.get("expression")
    if not _is_non_empty_string(expression):
        errors.append(ValidationIssue(
            field=f"{field}.expression",
            message="Formula expression must be a non-empty string",
            code="INVALID_FORMULA_EXPRESSION",
        ))
    else:
        errors.extend(_expression_issues(expression, f"{field}.expression", stat_ids))

    return_type = formula.get("returnType")
    if not isinstance(return_type, str) or return_type not in RETURN_TYPES:
        errors.append(ValidationIssue(
            field=f"{field}.returnType",
            message="Return type must be one of: number, boolean, string",
            code="INVALID_RETURN_TYPE",
        ))

    return errors


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================


def validate_template_config(config: Union[Mapping[str, Any], BaseModel, Any]) -> ValidationResult:
    """
    Validate a rule template.

    Args:
        config: The template as authored JSON (camelCase keys) or a RuleTemplate.

    Returns:
        ValidationResult with `valid` set when no errors were found. `warnings`
        is always present.
    """
    if isinstance(config, BaseModel):
        config = config.model_dump(by_alias=True)
    config = _as_mapping(config)

    errors: List[ValidationIssue] = []
    warnings: List[str] = []

    version = config.get("version")
    if not isinstance(version, str) or not VERSION_PATTERN.fullmatch(version):
        errors.append(ValidationIssue(
            field="version",
            message="Version must be in semantic versioning format (e.g., 1.0.0)",
            code="INVALID_VERSION",
        ))

    stats = config.get("stats")
    stat_ids: Set[str] = set()
    if not isinstance(stats, list):
        errors.append(ValidationIssue(
            field="stats",
            message="Stats must be an array",
            code="INVALID_STATS",
        ))
    else:
        for index, stat in enumerate(stats):
            errors.extend(validate_stat_definition(stat, index))

        duplicates = find_duplicate_stat_ids(stats)
        if duplicates:
            errors.append(ValidationIssue(
                field="stats",
                message=f"Duplicate stat IDs found: {', '.join(duplicates)}",
                code="DUPLICATE_STAT_IDS",
            ))

        stat_ids = {
            stat_id
            for stat_id in (_as_mapping(s).get("id") for s in stats)
            if isinstance(stat_id, str)
        }

    checks = config.get("checks")
    if not isinstance(checks, list):
        errors.append(ValidationIssue(
            field="checks",
            message="Checks must be an array",
            code="INVALID_CHECKS",
        ))
    else:
        for index, check in enumerate(checks):
            errors.extend(validate_check_definition(check, index, stat_ids))

    formulas = config.get("formulas")
    if not isinstance(formulas, list):
        errors.append(ValidationIssue(
            field="formulas",
            message="Formulas must be an array",
            code="INVALID_FORMULAS",
        ))
    else:
        for index, formula in enumerate(formulas):
            errors.extend(validate_formula_definition(formula, index, stat_ids))

    logger.debug(f"Template validation finished with {len(errors)} error(s)")
    return ValidationResult.from_issues(errors, warnings)
