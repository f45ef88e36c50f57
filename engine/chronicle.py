"""
PlagueBoard - engine/chronicle.py
Chronicle System: Append-only journal of simulation events.
===========================================================
Version:     0.2  (Phase 2 - settlement events)
Stack:       Python 3.12+ | stdlib json | bespoke EventBus
Status:      Production-ready. No simulation logic here.

Architecture notes
------------------
- Chronicle is a PASSIVE wildcard subscriber. It never emits events.
- Append-only JSONL. Inscribed entries are immutable after write.
- Significance gate (int 1-5): events below CHRONICLE_SIGNIFICANCE_MIN
  are discarded silently. Default threshold = 2.
- Game time (scenario/turn) is injected via GameTimestamp. Chronicle
  never reads the system clock.

Significance Scoring Reference (CHRONICLE_SIGNIFICANCE_MIN = 2)
----------------------------------------------------------------
  1 - ambient (round.started)
  2 - routine (round.ended, block.work_started, block.work_stopped,
      action.rejected)
  3 - notable (block.generation_shifted, block.taxed,
      block.quarantine_lifted)
  4 - significant (block.quarantined, block.aided)

Session Markers
---------------
  "chronicle.session_opened" and "chronicle.session_closed" are inscribed
  unconditionally (no significance gate) via open_session() / close_session().
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, List, Optional

from engine.events import (
    SimEvent,
    EventBus,
    EVT_ROUND_STARTED,
    EVT_ROUND_ENDED,
    EVT_GENERATION_SHIFTED,
    EVT_QUARANTINE_STARTED,
    EVT_QUARANTINE_LIFTED,
    EVT_WORK_STARTED,
    EVT_WORK_STOPPED,
    EVT_TAXED,
    EVT_AIDED,
    EVT_ACTION_REJECTED,
    EVT_SESSION_OPENED,
    EVT_SESSION_CLOSED,
)


# ============================================================
# DESIGN VARIABLE DEFAULTS
# ============================================================

CHRONICLE_SIGNIFICANCE_MIN: int = 2
OUTBREAK_INFECTION_THRESHOLD: int = 100  # new infections per round that raise round.ended to 3


_SIGNIFICANCE_TABLE: Dict[str, int] = {
    EVT_ROUND_STARTED:        1,

    EVT_ROUND_ENDED:          2,
    EVT_WORK_STARTED:         2,
    EVT_WORK_STOPPED:         2,
    EVT_ACTION_REJECTED:      2,

    EVT_GENERATION_SHIFTED:   3,
    EVT_TAXED:                3,
    EVT_QUARANTINE_LIFTED:    3,

    EVT_QUARANTINE_STARTED:   4,
    EVT_AIDED:                4,
}


# ============================================================
# GAME CLOCK
# ============================================================

@dataclass
class GameTimestamp:
    """
    scenario: board id the session is playing
    turn:     completed rounds (0 before the first round)
    """
    scenario: str = "custom"
    turn: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"scenario": self.scenario, "turn": self.turn}

    def advance_turn(self) -> GameTimestamp:
        """Return a new timestamp with turn incremented by 1."""
        return GameTimestamp(scenario=self.scenario, turn=self.turn + 1)


# ============================================================
# CHRONICLE ENTRY  (immutable after construction)
# ============================================================

@dataclass(frozen=True)
class ChronicleEntry:
    event_id: str                       # UUID4 string
    timestamp: Dict[str, Any]           # {scenario, turn}
    actor_handle: str                   # block name, or "board"/"system"
    payload: Dict[str, Any]             # {event_type, verb, object, detail}
    significance: int                   # 1-5

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id":     self.event_id,
            "timestamp":    self.timestamp,
            "actor_handle": self.actor_handle,
            "payload":      self.payload,
            "significance": self.significance,
        }


# ============================================================
# PAYLOAD BUILDER
# ============================================================

_VERBS: Dict[str, str] = {
    EVT_ROUND_STARTED:      "round_began",
    EVT_ROUND_ENDED:        "round_settled",
    EVT_GENERATION_SHIFTED: "cohorts_advanced",
    EVT_QUARANTINE_STARTED: "sealed_off",
    EVT_QUARANTINE_LIFTED:  "reopened",
    EVT_WORK_STARTED:       "started_work",
    EVT_WORK_STOPPED:       "stopped_work",
    EVT_TAXED:              "was_taxed",
    EVT_AIDED:              "was_evacuated",
    EVT_ACTION_REJECTED:    "refused_action",
}


def build_payload(event: SimEvent) -> Dict[str, Any]:
    """
    Normalise a SimEvent into {event_type, verb, object, detail}.
    Raw event data is kept under 'detail'.
    """
    return {
        "event_type": event.event_key,
        "verb": _VERBS.get(event.event_key, "occurred"),
        "object": event.target or event.source,
        "detail": dict(event.data),
    }


def score_significance(event: SimEvent) -> int:
    """
    Return significance (1-5). A round with a large wave of new
    infections is raised to 3.
    """
    base = _SIGNIFICANCE_TABLE.get(event.event_key, 1)
    if event.event_key == EVT_ROUND_ENDED:
        new_infections = event.data.get("new_infections", 0)
        if isinstance(new_infections, int) and new_infections >= OUTBREAK_INFECTION_THRESHOLD:
            base = max(base, 3)
    return base


# ============================================================
# CHRONICLE INSCRIBER SYSTEM
# ============================================================

class ChronicleInscriber:
    """
    Passive wildcard subscriber that inscribes qualifying events to an
    append-only JSONL file.

    Usage:
        bus = EventBus()
        inscriber = ChronicleInscriber(bus, Path("sessions/chronicle.jsonl"),
                                       GameTimestamp("river_town"))
        inscriber.open_session()
        # ... rounds ...
        inscriber.close_session()
    """

    def __init__(
        self,
        bus: EventBus,
        chronicle_path: Path,
        clock: GameTimestamp,
        significance_min: int = CHRONICLE_SIGNIFICANCE_MIN,
    ) -> None:
        self.bus = bus
        self.chronicle_path = chronicle_path
        self.clock = clock
        self.significance_min = significance_min

        self.chronicle_path.parent.mkdir(parents=True, exist_ok=True)
        bus.subscribe("*", self._on_event)

    def open_session(self) -> None:
        marker = SimEvent(
            event_key=EVT_SESSION_OPENED,
            source="system",
            data={"clock": self.clock.to_dict()},
        )
        self._inscribe(marker, significance=5)

    def close_session(self) -> None:
        marker = SimEvent(
            event_key=EVT_SESSION_CLOSED,
            source="system",
            data={"clock": self.clock.to_dict()},
        )
        self._inscribe(marker, significance=5)

    def _on_event(self, event: SimEvent) -> None:
        significance = score_significance(event)
        if significance < self.significance_min:
            return
        self._inscribe(event, significance=significance)

    def _inscribe(self, event: SimEvent, significance: int) -> ChronicleEntry:
        entry = ChronicleEntry(
            event_id=str(uuid.uuid4()),
            timestamp=self.clock.to_dict(),
            actor_handle=event.source,
            payload=build_payload(event),
            significance=significance,
        )
        with open(self.chronicle_path, "a", encoding="utf-8") as fh:
            fh.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")
        return entry


# ============================================================
# CHRONICLE READER  (query interface - read-only)
# ============================================================

class ChronicleReader:
    """Read-only queries over a chronicle.jsonl file."""

    def __init__(self, chronicle_path: Path) -> None:
        self.chronicle_path = chronicle_path

    def all_entries(self) -> List[Dict[str, Any]]:
        """Return all inscribed entries in insertion order."""
        if not self.chronicle_path.exists():
            return []
        entries = []
        with open(self.chronicle_path, "r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if line:
                    entries.append(json.loads(line))
        return entries

    def by_event_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [
            e for e in self.all_entries()
            if e.get("payload", {}).get("event_type") == event_type
        ]

    def by_actor(self, actor_handle: str) -> List[Dict[str, Any]]:
        return [
            e for e in self.all_entries()
            if e.get("actor_handle") == actor_handle
        ]

    def by_turn(self, turn: int) -> List[Dict[str, Any]]:
        return [
            e for e in self.all_entries()
            if e.get("timestamp", {}).get("turn") == turn
        ]

    def session_markers(self) -> List[Dict[str, Any]]:
        return [
            e for e in self.all_entries()
            if e.get("payload", {}).get("event_type", "").startswith("chronicle.session")
        ]
