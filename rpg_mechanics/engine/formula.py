"""
Expression Evaluation Engine
============================
Sandboxed evaluation of author-written expressions against character stats.
Uses simpleeval, which walks the parsed AST and only understands an
allow-listed subset of Python expressions.

Supports:
- Arithmetic: +, -, *, /, //, %, **
- Comparison: <, <=, >, >=, ==, !=
- Boolean: and, or, not (also authored as &&, ||, !)
- Functions: floor(), ceil(), round(), abs(), sqrt(), pow(), min(), max(),
  sin(), cos(), tan(), and the same under Math (Math.floor(x), Math.PI)
- Literals: numbers, quoted strings, true/false/null

Identifiers are resolved against the bindings during evaluation. Nothing is
substituted into the expression text, and there is no access to builtins,
loops, lambdas or comprehensions. The only attribute access allowed is on
Math, so bound values are read-only: 'tags.append(1)' is rejected.

Bindings named after Python keywords ('def', 'class', 'in') are renamed to
aliases before parsing. 'and', 'or' and 'not' always stay operators.

'!' binds like a unary minus, as authored: '!a + 1' is '(!a) + 1'. Python's
'not' keeps its own lower precedence: 'not a == b' is 'not (a == b)'. A
literal '~' is read the same way as '!'.
"""

import ast
import keyword
import logging
import math
import operator
import re
from types import SimpleNamespace
from typing import Any, Dict, Mapping, Optional

from simpleeval import (
    DEFAULT_OPERATORS,
    FeatureNotAvailable,
    InvalidExpression,
    NameNotDefined,
    SimpleEval,
    safe_power,
)

from rpg_mechanics.config import get_max_expression_length
from rpg_mechanics.errors import EvaluationError

logger = logging.getLogger(__name__)


# =============================================================================
# SAFE FUNCTIONS FOR EXPRESSIONS
# =============================================================================


def _round_half_up(x):
    return math.floor(x + 0.5)


def _sqrt(x):
    if x < 0:
        return math.nan
    return math.sqrt(x)


SAFE_FUNCTIONS = {
    "floor": math.floor,
    "ceil": math.ceil,
    "round": _round_half_up,
    "abs": abs,
    "sqrt": _sqrt,
    "pow": safe_power,
    "min": min,
    "max": max,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
}

MATH_NAMESPACE = SimpleNamespace(PI=math.pi, E=math.e, **SAFE_FUNCTIONS)

LITERAL_NAMES = {
    "true": True,
    "false": False,
    "null": None,
}


# =============================================================================
# IEEE-754 STYLE OPERATORS
# =============================================================================


def _divide(a, b):
    """True division that yields inf/nan on a zero divisor instead of raising."""
    try:
        return a / b
    except ZeroDivisionError:
        if a == 0 or a != a:
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def _remainder(a, b):
    """Truncated remainder (sign follows the dividend)."""
    if b == 0:
        return math.nan
    result = math.fmod(a, b)
    if isinstance(a, int) and isinstance(b, int):
        return int(result)
    return result


OPERATORS = dict(DEFAULT_OPERATORS)
OPERATORS.update({
    ast.Div: _divide,
    ast.Mod: _remainder,
    ast.Pow: safe_power,
    # Authored "!" is rewritten to "~" so it binds as tightly as a unary minus.
    ast.Invert: operator.not_,
})


# =============================================================================
# OPERATOR NORMALIZATION
# =============================================================================

_STRING_LITERAL = re.compile(r"""("(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')""")

# Order matters: '!==' before '!', '===' before '=='.
_OPERATOR_REWRITES = [
    (re.compile(r"!=="), "!="),
    (re.compile(r"==="), "=="),
    (re.compile(r"&&"), " and "),
    (re.compile(r"\|\|"), " or "),
    (re.compile(r"!(?!=)"), "~"),
]


def normalize_operators(expression: str) -> str:
    """
    Rewrite authored operator spellings (&&, ||, !, ===, !==) to their
    Python forms. Quoted string literals are left untouched.
    """
    parts = _STRING_LITERAL.split(expression)
    for i in range(0, len(parts), 2):
        segment = parts[i]
        for pattern, replacement in _OPERATOR_REWRITES:
            segment = pattern.sub(replacement, segment)
        parts[i] = segment
    return "".join(parts)


# =============================================================================
# EVALUATION
# =============================================================================


MATH_NAME = "Math"
MATH_ATTRIBUTES = frozenset(vars(MATH_NAMESPACE))


def _is_math_attribute(node) -> bool:
    return (
        isinstance(node, ast.Attribute)
        and isinstance(node.value, ast.Name)
        and node.value.id == MATH_NAME
        and node.attr in MATH_ATTRIBUTES
    )


class StatEvaluator(SimpleEval):
    """
    SimpleEval restricted to read-only access: the only attributes are the
    Math namespace members and the only callables are the safe math functions.
    Methods of bound values (list.append, dict.pop, str.format...) are never
    reachable.
    """

    def _eval_attribute(self, node):
        if not _is_math_attribute(node):
            raise FeatureNotAvailable(
                f"Attribute access is only available on {MATH_NAME} (got '.{node.attr}')"
            )
        return super()._eval_attribute(node)

    def _eval_call(self, node):
        if isinstance(node.func, ast.Attribute) and not _is_math_attribute(node.func):
            raise FeatureNotAvailable(
                f"Only math functions can be called (got '.{node.func.attr}()')"
            )
        return super()._eval_call(node)


# Keywords that keep their operator meaning even when a stat shares the name.
_OPERATOR_KEYWORDS = {"and", "or", "not"}


def _keyword_aliases(bindings: Mapping[str, Any]) -> Dict[str, str]:
    """Map binding names that are Python keywords ('def', 'class', 'in') to parseable aliases."""
    aliases: Dict[str, str] = {}
    for name in bindings:
        if not isinstance(name, str) or name in _OPERATOR_KEYWORDS or not keyword.iskeyword(name):
            continue
        alias = f"{name}_"
        while alias in bindings or alias in aliases.values():
            alias += "_"
        aliases[name] = alias
    return aliases


def _rename_keywords(expression: str, aliases: Mapping[str, str]) -> str:
    if not aliases:
        return expression
    pattern = re.compile(r"(?<![\w.])(" + "|".join(map(re.escape, aliases)) + r")(?!\w)")
    parts = _STRING_LITERAL.split(expression)
    for i in range(0, len(parts), 2):
        parts[i] = pattern.sub(lambda m: aliases[m.group(1)], parts[i])
    return "".join(parts)


def _build_names(bindings: Mapping[str, Any], aliases: Mapping[str, str]) -> Dict[str, Any]:
    names: Dict[str, Any] = dict(bindings)
    for name, alias in aliases.items():
        names[alias] = bindings[name]
    names[MATH_NAME] = MATH_NAMESPACE
    names.update(LITERAL_NAMES)
    return names


def evaluate(expression: str, bindings: Optional[Mapping[str, Any]] = None) -> Any:
    """
    Evaluate an expression against a flat map of bindings.

    Args:
        expression: The expression text (e.g. "Math.floor(strength / 3)")
        bindings: Identifier -> value map, usually a character's stats.
            Never modified.

    Returns:
        The resulting number, bool or string.

    Raises:
        EvaluationError: on empty or over-long input, syntax errors, unknown
            identifiers or functions, disallowed constructs, or runtime errors.

    Examples:
        >>> evaluate("strength + 5", {"strength": 10})
        15

        >>> evaluate("strength >= 10 && agility < 3", {"strength": 12, "agility": 2})
        True
    """
    if not isinstance(expression, str) or not expression.strip():
        raise EvaluationError("Expression is empty")

    limit = get_max_expression_length()
    if len(expression) > limit:
        raise EvaluationError(f"Expression exceeds the maximum length of {limit} characters")

    bindings = bindings or {}
    aliases = _keyword_aliases(bindings)
    prepared = _rename_keywords(normalize_operators(expression), aliases).strip()

    # One evaluator per call: SimpleEval keeps per-expression state on the instance.
    evaluator = StatEvaluator(
        operators=OPERATORS,
        functions=dict(SAFE_FUNCTIONS),
        names=_build_names(bindings, aliases),
    )

    try:
        result = evaluator.eval(prepared)
    except SyntaxError as e:
        raise EvaluationError(f"Invalid expression syntax: {e.msg}", cause=e) from e
    except NameNotDefined as e:
        raise EvaluationError(f"Undefined variable in expression: {e.name}", cause=e) from e
    except InvalidExpression as e:
        raise EvaluationError(str(e), cause=e) from e
    except Exception as e:
        raise EvaluationError(f"{type(e).__name__}: {e}", cause=e) from e

    if callable(result) or isinstance(result, SimpleNamespace):
        raise EvaluationError(f"Expression '{expression}' does not produce a value")

    logger.debug(f"Evaluated '{expression}' -> {result!r}")
    return result


def evaluate_condition(expression: str, bindings: Optional[Mapping[str, Any]] = None) -> bool:
    """Evaluate an expression and reduce it to its truthiness."""
    return bool(evaluate(expression, bindings))
