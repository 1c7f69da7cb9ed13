"""
Models for author-defined rule templates.
A template bundles the stats, checks and formulas of a custom RPG system.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import Field

from rpg_mechanics.models.base import CamelModel

StatType = Literal["number", "string", "boolean", "array"]
ModifierType = Literal["additive", "multiplicative", "conditional"]
ReturnType = Literal["number", "boolean", "string"]
Number = Union[int, float]


class StatDefinition(CamelModel):
    id: str = Field(..., description="Unique key referenced by formulas (e.g. 'strength').")
    name: str = Field(..., description="Display name.")
    description: Optional[str] = None
    type: StatType = Field("number", description="The data type of the stat.")
    default_value: Any = Field(
        None, description="Initial value when a character state is created."
    )
    min_value: Optional[Number] = None
    max_value: Optional[Number] = None
    display_format: Optional[str] = None
    category: Optional[str] = None


class Modifier(CamelModel):
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    type: ModifierType = "additive"
    value: Union[int, float, str] = Field(
        0, description="Numeric contribution, or a numeric string such as '5'."
    )
    condition: Optional[str] = Field(
        None,
        description="Expression over character stats; the modifier applies only if it is truthy.",
    )


class CheckDefinition(CamelModel):
    id: str
    name: str = ""
    description: Optional[str] = None
    formula: str = Field(..., description="Expression producing the roll, e.g. 'strength + agility / 2'.")
    success_threshold: Number = Field(..., description="Total needed to succeed (inclusive).")
    critical_success: Optional[Number] = None
    critical_failure: Optional[Number] = None
    modifiers: List[Modifier] = Field(default_factory=list)


class FormulaDefinition(CamelModel):
    id: str
    name: str = ""
    expression: str = Field(..., description="Expression, e.g. 'strength * 2 + agility'.")
    variables: List[str] = Field(
        default_factory=list, description="Stat IDs used by the expression (informational)."
    )
    return_type: ReturnType = "number"


class TemplateMetadata(CamelModel):
    name: str = "Untitled"
    description: Optional[str] = None
    author: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class RuleTemplate(CamelModel):
    """Root configuration of a custom rule system."""

    version: str = Field(..., description="Semantic version, MAJOR.MINOR.PATCH.")
    stats: List[StatDefinition] = Field(default_factory=list)
    checks: List[CheckDefinition] = Field(default_factory=list)
    formulas: List[FormulaDefinition] = Field(default_factory=list)
    metadata: TemplateMetadata = Field(default_factory=TemplateMetadata)

    def get_stat(self, stat_id: str) -> Optional[StatDefinition]:
        for stat in self.stats:
            if stat.id == stat_id:
                return stat
        return None

    def get_check(self, check_id: str) -> Optional[CheckDefinition]:
        for check in self.checks:
            if check.id == check_id:
                return check
        return None

    def get_formula(self, formula_id: str) -> Optional[FormulaDefinition]:
        for formula in self.formulas:
            if formula.id == formula_id:
                return formula
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RuleTemplate":
        return cls.model_validate(data)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> "RuleTemplate":
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def from_file(cls, path: Path) -> "RuleTemplate":
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))
