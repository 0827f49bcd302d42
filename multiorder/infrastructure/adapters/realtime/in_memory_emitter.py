"""In-memory realtime emitter for tests and demos."""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from multiorder.application.interfaces import RealtimeEventEmitter


@dataclass(frozen=True)
class EmittedEvent:
    target_id: str
    event_name: str
    payload: Dict[str, Any]


class InMemoryEventEmitter(RealtimeEventEmitter):
    """Records every broadcast in order."""

    def __init__(self):
        self.events: List[EmittedEvent] = []

    async def emit_order_event(self, target_id: str, event_name: str, payload: Dict[str, Any]) -> None:
        self.events.append(EmittedEvent(target_id, event_name, dict(payload)))

    def names_for(self, target_id: Optional[str] = None) -> List[str]:
        return [e.event_name for e in self.events if target_id is None or e.target_id == target_id]

    def clear(self) -> None:
        self.events.clear()
