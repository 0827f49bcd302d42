"""Acting user value object."""
from dataclasses import dataclass, field
from typing import FrozenSet

from ..enums import ActorRole


@dataclass(frozen=True)
class Actor:
    """
    The authenticated user performing an operation.

    ``role`` may be given as any spelling ActorRole.parse understands; it is
    normalised on construction. ``restaurant_ids`` lists the restaurants a
    restaurant-role actor manages.
    """
    id: str
    role: ActorRole
    restaurant_ids: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if not self.id:
            raise ValueError("Actor id cannot be empty")
        object.__setattr__(self, "role", ActorRole.parse(self.role))
        object.__setattr__(self, "restaurant_ids", frozenset(self.restaurant_ids))

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN
