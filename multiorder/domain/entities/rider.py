"""Rider (courier) entity as seen by the orchestration core."""
from dataclasses import dataclass
from typing import Optional

from ..enums import ActorRole


@dataclass
class Rider:
    """A delivery account from the Rider Directory."""
    id: str
    name: str
    role: ActorRole = ActorRole.RIDER
    is_online: bool = False
    current_assignment: Optional[str] = None
    completed_orders: int = 0

    @property
    def is_available(self) -> bool:
        """Online delivery-role account."""
        return self.role == ActorRole.RIDER and self.is_online
