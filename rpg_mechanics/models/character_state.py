from typing import Any, Dict, List, Optional

from pydantic import Field

from rpg_mechanics.models.base import CamelModel


class InventoryItem(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    quantity: int = 1
    properties: Dict[str, Any] = Field(default_factory=dict)


class CharacterState(CamelModel):
    """
    Per-session record of a player's stats, flags, inventory and achievements.
    Owned and persisted by the play session; the engine only reads it.
    """

    template_id: str
    stats: Dict[str, Any] = Field(default_factory=dict)
    flags: Dict[str, bool] = Field(default_factory=dict)
    variables: Dict[str, Any] = Field(default_factory=dict)
    inventory: List[InventoryItem] = Field(default_factory=list)
    achievements: List[str] = Field(default_factory=list)

    def has_item(self, item_id: str) -> bool:
        return any(item.id == item_id for item in self.inventory)
