"""Multi-order number value object."""
from dataclasses import dataclass
import re


_PATTERN = re.compile(r"^(?P<prefix>[A-Z]{2,4})-(?P<year>\d{4})-(?P<sequence>\d{4,})$")


@dataclass(frozen=True)
class OrderNumber:
    """
    Customer-facing order identifier.

    Format: <PREFIX>-<YYYY>-<NNNN> (sequence zero-padded to 4 digits)
    Examples:
    - MO-2024-0007  (multi-order)
    - KS-2024-0112  (restaurant sub-order)
    """
    value: str

    def __post_init__(self):
        if not self.value:
            raise ValueError("Order number cannot be empty")
        if not _PATTERN.match(self.value):
            raise ValueError(
                f"Invalid order number format (expected PREFIX-YYYY-NNNN): {self.value}"
            )

    @classmethod
    def generate(cls, prefix: str, year: int, sequence: int) -> "OrderNumber":
        """Build an order number from its parts."""
        if sequence < 1:
            raise ValueError(f"Order sequence must be positive: {sequence}")
        return cls(f"{prefix}-{year:04d}-{sequence:04d}")

    @property
    def prefix(self) -> str:
        return _PATTERN.match(self.value).group("prefix")

    @property
    def year(self) -> int:
        return int(_PATTERN.match(self.value).group("year"))

    @property
    def sequence(self) -> int:
        return int(_PATTERN.match(self.value).group("sequence"))

    def __str__(self) -> str:
        return self.value
