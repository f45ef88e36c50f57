"""
PlagueBoard - engine/loop.py
Main Simulation Loop: wires Board, EventBus, Chronicle, and actions.
====================================================================
Version:     0.2  (Phase 3 - scenario integration)
Stack:       Python 3.12+ | Pydantic v2 | bespoke EventBus
Status:      Integration entry point.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from engine.actions import ActionResult, ActionType, apply_action
from engine.block import DEFAULT_QUARANTINE_PERIOD
from engine.board import Board, BlockRef
from engine.census import BoardTotals, board_totals
from engine.chronicle import ChronicleInscriber, GameTimestamp
from engine.data_loader import get_board_def
from engine.events import (
    EventBus,
    SimEvent,
    EVT_GENERATION_SHIFTED,
    EVT_QUARANTINE_LIFTED,
    EVT_ROUND_ENDED,
    EVT_ROUND_STARTED,
)
from engine.systems import RoundReport
from world.scenario import build_board

DEFAULT_BOARD_ID: str = "river_town"


class SimulationLoop:
    """
    Turn driver for one game.

    Either pass a prepared Board, or a board_id naming a scenario under
    data/boards. `seed` overrides the scenario's own seed.
    """

    def __init__(self, board: Optional[Board] = None,
                 board_id: Optional[str] = None,
                 chronicle_path: Optional[Path] = None,
                 seed: Optional[int] = None) -> None:
        if chronicle_path is None:
            chronicle_path = Path("sessions/chronicle.jsonl")

        scenario = "custom"
        if board is None:
            board_def = get_board_def(board_id or DEFAULT_BOARD_ID)
            board = build_board(board_def, seed=seed)
            scenario = board_def.id

        self.board = board
        self.bus = EventBus()
        self.clock = GameTimestamp(scenario=scenario, turn=0)
        self.inscriber = ChronicleInscriber(
            bus=self.bus,
            chronicle_path=chronicle_path,
            clock=self.clock,
        )

    def open_session(self) -> None:
        self.inscriber.open_session()

    def close_session(self) -> None:
        self.inscriber.close_session()

    @property
    def turn(self) -> int:
        return self.clock.turn

    def totals(self) -> BoardTotals:
        return board_totals(self.board)

    def tick(self) -> RoundReport:
        """Advance the simulation by one round."""
        self.clock = self.clock.advance_turn()
        self.inscriber.clock = self.clock

        self.bus.emit(SimEvent(
            event_key=EVT_ROUND_STARTED,
            source="board",
            data={"turn": self.clock.turn},
        ))

        report = self.board.run_round()

        for index in report.generation_shifts:
            block = self.board[index]
            self.bus.emit(SimEvent(
                event_key=EVT_GENERATION_SHIFTED,
                source=block.name,
                data={
                    "healthy": block.healthy,
                    "infected_current": block.infected_current,
                    "infected_next": block.infected_next,
                },
            ))
        for index in report.quarantines_lifted:
            block = self.board[index]
            self.bus.emit(SimEvent(
                event_key=EVT_QUARANTINE_LIFTED,
                source=block.name,
                data={"period": block.quarantine_period},
            ))

        totals = self.totals()
        self.bus.emit(SimEvent(
            event_key=EVT_ROUND_ENDED,
            source="board",
            data={
                "turn": self.clock.turn,
                "new_infections": report.new_infections,
                "deaths": report.deaths,
                "healthy": totals.healthy,
                "infected": totals.infected,
                "material": totals.material,
                "isolated_blocks": len(report.isolated),
            },
        ))
        return report

    def run(self, rounds: int) -> None:
        for _ in range(rounds):
            self.tick()

    def apply_action(self, ref: BlockRef, action: ActionType,
                     period: int = DEFAULT_QUARANTINE_PERIOD) -> ActionResult:
        """Apply a rules-layer action between rounds."""
        return apply_action(self.board, ref, action, bus=self.bus, period=period)
