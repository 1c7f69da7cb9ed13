"""
Result records returned by the engine.
"""

from typing import Any, Dict, List, Union

from pydantic import Field

from rpg_mechanics.models.base import CamelModel

Number = Union[int, float]


class ModifierResult(CamelModel):
    modifier_id: str
    value: Number = Field(0, description="Contribution actually applied (0 when not applied).")
    applied: bool
    reason: str


class CheckResult(CamelModel):
    check_id: str
    roll: Number = Field(..., description="Raw formula output, before modifiers.")
    threshold: Number
    success: bool
    critical: bool
    modifiers: List[ModifierResult] = Field(default_factory=list)
    total: Number = Field(..., description="Roll after modifiers.")


class FormulaResult(CamelModel):
    formula_id: str
    result: Any
    variables: Dict[str, Any] = Field(
        default_factory=dict, description="Snapshot of the stat bindings used."
    )
    expression: str


class ValidationIssue(CamelModel):
    field: str
    message: str
    code: str


class ValidationResult(CamelModel):
    valid: bool
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @classmethod
    def from_issues(cls, errors: List[ValidationIssue], warnings: List[str] = None) -> "ValidationResult":
        return cls(valid=not errors, errors=errors, warnings=warnings or [])

    def codes(self) -> List[str]:
        return [e.code for e in self.errors]
