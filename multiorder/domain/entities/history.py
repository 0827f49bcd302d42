"""Append-only log records shared by orders and riders."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...utils.datetime import parse_datetime


@dataclass(frozen=True)
class StatusHistoryEntry:
    """One observed status transition."""
    status: str
    timestamp: datetime
    note: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StatusHistoryEntry":
        return cls(
            status=data["status"],
            timestamp=parse_datetime(data["timestamp"]),
            note=data.get("note"),
        )


@dataclass(frozen=True)
class LocationPoint:
    """One rider position report."""
    lat: float
    lng: float
    timestamp: datetime

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: dict) -> "LocationPoint":
        return cls(lat=data["lat"], lng=data["lng"], timestamp=parse_datetime(data["timestamp"]))
