"""Actor roles, resolved once at the boundary."""
from enum import Enum


class ActorRole(str, Enum):
    """Who is acting on a multi-order."""

    CUSTOMER = "customer"
    RESTAURANT = "restaurant"
    RIDER = "rider"
    ADMIN = "admin"

    @classmethod
    def parse(cls, raw: "str | ActorRole") -> "ActorRole":
        """
        Resolve a role string into an ActorRole.

        Accepts the canonical values plus the spellings used by the
        account service (``delivery_staff``, ``restaurant_admin``, ...).

        Raises:
            ValueError: If the role is not recognised
        """
        if isinstance(raw, ActorRole):
            return raw
        key = (raw or "").strip().lower()
        try:
            return _ROLE_ALIASES[key]
        except KeyError:
            raise ValueError(f"Unknown actor role: {raw!r}") from None


_ROLE_ALIASES = {
    "customer": ActorRole.CUSTOMER,
    "user": ActorRole.CUSTOMER,
    "restaurant": ActorRole.RESTAURANT,
    "restaurant_admin": ActorRole.RESTAURANT,
    "restaurant_staff": ActorRole.RESTAURANT,
    "rider": ActorRole.RIDER,
    "delivery": ActorRole.RIDER,
    "delivery_staff": ActorRole.RIDER,
    "admin": ActorRole.ADMIN,
    "super_admin": ActorRole.ADMIN,
}
