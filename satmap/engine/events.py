# satmap/engine/events.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

HANDSHAKE = "handshake"
LINK_LOST = "link_lost"
BLACKOUT_START = "blackout_start"
BLACKOUT_END = "blackout_end"
PROPAGATION_FAILED = "propagation_failed"
LINK_OCCULTED = "link_occulted"
HORIZON_CONES_UNAVAILABLE = "horizon_cones_unavailable"

# transitions worth INFO; the rest is per-step noise
_INFO_KINDS = {HANDSHAKE, BLACKOUT_START, BLACKOUT_END}
_WARNING_KINDS = {PROPAGATION_FAILED, HORIZON_CONES_UNAVAILABLE}


@dataclass(frozen=True)
class SimulationEvent:
    kind: str
    timestamp: int                      # ms
    satellite_id: Optional[str] = None
    detail: str = ""


EventSink = Callable[[SimulationEvent], None]


class LoggingEventSink:
    """Forward engine events to a logger."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logging.getLogger("satmap.events")

    def __call__(self, event: SimulationEvent) -> None:
        if event.kind in _WARNING_KINDS:
            level = logging.WARNING
        elif event.kind in _INFO_KINDS:
            level = logging.INFO
        else:
            level = logging.DEBUG
        self.log.log(level, "[%s] t=%d sat=%s %s", event.kind, event.timestamp, event.satellite_id or "-", event.detail)


class RecordingEventSink:
    """Keeps every event in memory (tests, post-run inspection)."""

    def __init__(self):
        self.events: List[SimulationEvent] = []

    def __call__(self, event: SimulationEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: str) -> List[SimulationEvent]:
        return [e for e in self.events if e.kind == kind]
