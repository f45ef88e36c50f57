"""
PlagueBoard - world/scenario.py
Scenario Builder: turns a BoardDef into a wired Board.
======================================================
Version:     0.1  (Phase 3 - scenario boards)
Stack:       Python 3.12+ | Pydantic v2

Blocks are created in file order, then edges are wired in file order,
so link order (and therefore allocation rounding) matches the TOML.
"""

from __future__ import annotations

from typing import Optional, Tuple

from engine.board import Board
from engine.data_loader import BoardDef, StageTableDef

# Healthy population for blocks that do not state one, as [low, high).
RANDOM_POPULATION_RANGE: Tuple[int, int] = (400, 600)


def build_board(board_def: BoardDef, seed: Optional[int] = None,
                stage_table: Optional[StageTableDef] = None) -> Board:
    """
    Build a Board from a definition. `seed` overrides board_def.seed and
    drives both random starting populations and death sampling.
    """
    board = Board(seed=seed if seed is not None else board_def.seed,
                  stage_table=stage_table)

    low, high = RANDOM_POPULATION_RANGE
    for bdef in board_def.blocks:
        healthy = bdef.healthy
        if healthy is None:
            healthy = board.rng.randrange(low, high)
        board.new_block(
            bdef.type,
            healthy=healthy,
            infected=bdef.infected,
            material=bdef.material,
            name=bdef.id,
        )

    for bdef in board_def.blocks:
        for target_id in bdef.out:
            try:
                target = board.index_of(target_id)
            except KeyError:
                raise KeyError(
                    f"Board '{board_def.id}': block '{bdef.id}' links to unknown block '{target_id}'"
                ) from None
            board.connect_blocks(board.index_of(bdef.id), target)

    return board
