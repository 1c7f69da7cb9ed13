"""
Conditions and effects attached to story choices.
"""

from typing import Any, List, Literal, Optional, Union

from pydantic import Field

from rpg_mechanics.models.base import CamelModel

ConditionType = Literal["variable", "item", "and", "or", "not"]
ConditionOperator = Literal["equals", "not_equals", "greater_than", "less_than", "contains"]
EffectType = Literal["set_variable", "add_item", "remove_item", "modify_variable"]
EffectOperator = Literal["add", "subtract", "multiply", "divide"]


class ChoiceCondition(CamelModel):
    """A node in a choice's availability tree."""

    type: ConditionType
    variable_name: Optional[str] = None
    operator: ConditionOperator = "equals"
    value: Any = None
    item_id: Optional[str] = None
    conditions: List["ChoiceCondition"] = Field(default_factory=list)


class ChoiceEffect(CamelModel):
    type: EffectType
    variable_name: Optional[str] = None
    value: Any = None
    item_id: Optional[str] = None
    operator: Optional[EffectOperator] = None
    amount: Optional[Union[int, float]] = None


ChoiceCondition.model_rebuild()
