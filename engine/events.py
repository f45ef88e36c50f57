"""
PlagueBoard - engine/events.py
Event Bus: canonical event keys, typed envelopes, pub-sub.
==========================================================
Version:     0.2  (Phase 2 - settlement events)
Stack:       Python 3.12+ | Pydantic v2 | bespoke pub-sub
Status:      Production-ready.

Architecture notes
------------------
- All events are SimEvent envelopes (Pydantic v2 BaseModel).
- Blocks never emit; the loop and the action layer emit on their behalf.
- Chronicle receives every event via wildcard subscription ("*").

Event emission sequence per round
----------------------------------
  1. round.started
  2. block.generation_shifted   - per block whose cohorts advanced
  3. block.quarantine_lifted    - per block leaving quarantine
  4. round.ended                - board totals after commit
"""

from __future__ import annotations

import sys
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

# ============================================================
# CANONICAL EVENT KEYS
# Never use raw strings. Add new keys here only.
# ============================================================

EVT_ROUND_STARTED           = "round.started"
EVT_ROUND_ENDED             = "round.ended"
EVT_GENERATION_SHIFTED      = "block.generation_shifted"
EVT_QUARANTINE_STARTED      = "block.quarantined"
EVT_QUARANTINE_LIFTED       = "block.quarantine_lifted"
EVT_WORK_STARTED            = "block.work_started"
EVT_WORK_STOPPED            = "block.work_stopped"
EVT_TAXED                   = "block.taxed"
EVT_AIDED                   = "block.aided"
EVT_ACTION_REJECTED         = "action.rejected"

EVT_SESSION_OPENED          = "chronicle.session_opened"
EVT_SESSION_CLOSED          = "chronicle.session_closed"


# ============================================================
# EVENT MODEL
# data dict must remain flat + JSON-serializable.
# ============================================================

class SimEvent(BaseModel):
    """Base envelope. Chronicle receives these directly."""
    event_key: str
    source: str
    target: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


# ============================================================
# EVENT BUS
# ============================================================

HandlerFn = Callable[[SimEvent], None]


class EventBus:
    """
    Bespoke pub-sub. Pass instance at construction - no global singleton.

    Wildcard key "*" receives every emitted event (used by Chronicle).
    Per-handler errors are caught and reported to stderr so emission
    always continues.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[HandlerFn]] = {}

    def subscribe(self, event_key: str, handler: HandlerFn) -> None:
        self._subscribers.setdefault(event_key, []).append(handler)

    def unsubscribe(self, event_key: str, handler: HandlerFn) -> None:
        if event_key in self._subscribers:
            self._subscribers[event_key] = [
                h for h in self._subscribers[event_key] if h != handler
            ]

    def emit(self, event: SimEvent) -> None:
        targets = (
            self._subscribers.get(event.event_key, [])
            + self._subscribers.get("*", [])
        )
        for handler in targets:
            try:
                handler(event)
            except Exception as exc:  # noqa: BLE001
                print(
                    f"[EventBus] Handler error on '{event.event_key}': {exc}",
                    file=sys.stderr,
                )
