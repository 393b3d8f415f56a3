from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence


@dataclass
class LifecycleEvent:
    kind: str
    phase: str
    cursor: int
    race_id: Optional[int] = None
    detail: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[[LifecycleEvent], None]


class TelemetryCollector:
    """Records controller lifecycle events and fans them out to listeners."""

    def __init__(self) -> None:
        self.events: List[LifecycleEvent] = []
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def record(self, event: LifecycleEvent) -> None:
        self.events.append(event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                # A broken observer must not stall the race loop
                print(f"[Telemetry] Listener failed on '{event.kind}': {e}")
                traceback.print_exc()

    def export(self) -> Sequence[LifecycleEvent]:
        return tuple(self.events)

    def kinds(self) -> List[str]:
        return [event.kind for event in self.events]

    def clear(self) -> None:
        self.events.clear()
