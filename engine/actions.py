"""
PlagueBoard - engine/actions.py
Action Dispatch: externally triggered, single-block operations.
===============================================================
Version:     0.2  (Phase 2 - rules hooks)
Stack:       Python 3.12+ | Pydantic v2 | bespoke EventBus
Status:      Production-ready.

The rules layer (cards, scripted events) calls apply_action between
rounds. Each action maps to one Block method, returns an ActionResult,
and emits one event. A refused action is a result, not an exception.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from engine.block import DEFAULT_QUARANTINE_PERIOD, Block
from engine.board import Board, BlockRef
from engine.events import (
    EventBus,
    SimEvent,
    EVT_ACTION_REJECTED,
    EVT_AIDED,
    EVT_QUARANTINE_STARTED,
    EVT_TAXED,
    EVT_WORK_STARTED,
    EVT_WORK_STOPPED,
)


class ActionType(str, Enum):
    QUARANTINE = "quarantine"
    STOP_WORKING = "stop_working"
    START_WORKING = "start_working"
    SPECIAL_AID = "special_aid"
    TAXING = "taxing"


class ActionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: ActionType
    block_index: int
    ok: bool
    reason: Optional[str] = None
    amount: int = 0  # material collected by TAXING


def _emit(bus: Optional[EventBus], key: str, block: Block, data: dict) -> None:
    if bus is None:
        return
    bus.emit(SimEvent(event_key=key, source=block.name, data=data))


def apply_action(board: Board, ref: BlockRef, action: ActionType,
                 bus: Optional[EventBus] = None,
                 period: int = DEFAULT_QUARANTINE_PERIOD) -> ActionResult:
    """
    Apply `action` to one block. `period` is used by QUARANTINE only.
    """
    block = board.resolve(ref)

    if action == ActionType.STOP_WORKING:
        block.stop_working()
        _emit(bus, EVT_WORK_STOPPED, block, {"block_type": block.block_type.value})
        return ActionResult(action=action, block_index=block.index, ok=True)

    if action == ActionType.START_WORKING:
        if not block.start_working():
            _emit(bus, EVT_ACTION_REJECTED, block, {
                "action": action.value,
                "reason": "not_applicable",
                "block_type": block.block_type.value,
            })
            return ActionResult(action=action, block_index=block.index,
                                ok=False, reason="not_applicable")
        _emit(bus, EVT_WORK_STARTED, block, {"block_type": block.block_type.value})
        return ActionResult(action=action, block_index=block.index, ok=True)

    if action == ActionType.TAXING:
        amount = block.taxed()
        _emit(bus, EVT_TAXED, block, {"amount": amount, "material_remaining": block.material})
        return ActionResult(action=action, block_index=block.index, ok=True, amount=amount)

    if action == ActionType.QUARANTINE:
        block.quarantined(period)
        _emit(bus, EVT_QUARANTINE_STARTED, block, {"period": period})
        return ActionResult(action=action, block_index=block.index, ok=True)

    if action == ActionType.SPECIAL_AID:
        removed = block.healthy + block.infected_current + block.infected_next
        block.aided()
        _emit(bus, EVT_AIDED, block, {"population_removed": removed})
        return ActionResult(action=action, block_index=block.index, ok=True)

    raise ValueError(f"Unknown action: {action!r}")
