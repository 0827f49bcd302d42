"""Domain value objects - pure Python immutable types."""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional


CENT = Decimal("0.01")


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class Pricing:
    """
    Immutable price breakdown of an order.

    CRITICAL: Always use Decimal, never float!
    """
    subtotal: Decimal
    delivery_fee: Decimal = Decimal("0")
    service_fee: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    total: Optional[Decimal] = None

    def __post_init__(self):
        for name in ("subtotal", "delivery_fee", "service_fee", "discount"):
            object.__setattr__(self, name, _to_decimal(getattr(self, name)))
        if self.total is None:
            computed = self.subtotal + self.delivery_fee + self.service_fee - self.discount
            object.__setattr__(self, "total", computed)
        else:
            object.__setattr__(self, "total", _to_decimal(self.total))
        if self.subtotal < 0 or self.total < 0:
            raise ValueError(f"Pricing amounts cannot be negative: {self}")

    def __add__(self, other: "Pricing") -> "Pricing":
        return Pricing(
            subtotal=self.subtotal + other.subtotal,
            delivery_fee=self.delivery_fee + other.delivery_fee,
            service_fee=self.service_fee + other.service_fee,
            discount=self.discount + other.discount,
            total=self.total + other.total,
        )

    @classmethod
    def zero(cls) -> "Pricing":
        return cls(subtotal=Decimal("0"), total=Decimal("0"))

    @classmethod
    def combine(cls, parts: Iterable["Pricing"]) -> "Pricing":
        """Field-wise sum of several price breakdowns."""
        result = cls.zero()
        for part in parts:
            result = result + part
        return result

    def share_of(self, part: Decimal) -> Decimal:
        """Percentage of this total represented by ``part`` (2 places)."""
        if self.total == 0:
            return Decimal("0.00")
        return (part / self.total * 100).quantize(CENT, rounding=ROUND_HALF_UP)

    def to_dict(self) -> dict:
        return {
            "subtotal": str(self.subtotal),
            "delivery_fee": str(self.delivery_fee),
            "service_fee": str(self.service_fee),
            "discount": str(self.discount),
            "total": str(self.total),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Pricing":
        return cls(
            subtotal=Decimal(data["subtotal"]),
            delivery_fee=Decimal(data.get("delivery_fee", "0")),
            service_fee=Decimal(data.get("service_fee", "0")),
            discount=Decimal(data.get("discount", "0")),
            total=Decimal(data["total"]),
        )


@dataclass(frozen=True)
class DeliveryAddress:
    """Drop-off address shared by every sub-order of a multi-order."""
    address_line1: str
    city: str
    label: Optional[str] = None
    address_line2: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "lat": self.lat,
            "lng": self.lng,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DeliveryAddress":
        return cls(**data)
