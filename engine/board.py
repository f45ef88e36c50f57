"""
PlagueBoard - engine/board.py
Board: arena of Blocks addressed by stable integer index.
=========================================================
Version:     0.2  (Phase 2 - arena)
Stack:       Python 3.12+ | stdlib random
Status:      Production-ready.

The board is static once a game starts: blocks are appended during
setup and never removed, so an index stays valid for the whole game.
"""

from __future__ import annotations

import random
from typing import Dict, Iterator, List, Optional, Union

from engine.block import Block, BlockSnapshot
from engine.data_loader import BlockType, StageTableDef, get_block_profile
from engine.systems import RoundReport, run_round

BlockRef = Union[int, Block]


class Board:
    def __init__(self, seed: Optional[int] = None,
                 stage_table: Optional[StageTableDef] = None) -> None:
        self.seed = seed
        self.rng = random.Random(seed)
        self.stage_table = stage_table
        self.blocks: List[Block] = []
        self._by_name: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self.blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks)

    def __getitem__(self, index: int) -> Block:
        return self.blocks[index]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    # ----------------------------------------------------------
    # Construction
    # ----------------------------------------------------------

    def new_block(self, block_type: BlockType, healthy: int, infected: int = 0,
                  material: int = 0, name: Optional[str] = None) -> Block:
        index = len(self.blocks)
        name = name or f"{block_type.value}-{index}"
        if name in self._by_name:
            raise ValueError(f"Duplicate block name: {name!r}")
        block = Block(
            get_block_profile(block_type),
            healthy=healthy,
            infected=infected,
            material=material,
            index=index,
            name=name,
            stage_table=self.stage_table,
        )
        self.blocks.append(block)
        self._by_name[block.name] = index
        return block

    def resolve(self, ref: BlockRef) -> Block:
        """Accepts an arena index or a Block that belongs to this board."""
        if isinstance(ref, Block):
            if ref.index >= len(self.blocks) or self.blocks[ref.index] is not ref:
                raise IndexError(f"{ref!r} is not on this board")
            return ref
        if not 0 <= ref < len(self.blocks):
            raise IndexError(f"No block at index {ref}")
        return self.blocks[ref]

    def connect_blocks(self, source: BlockRef, target: BlockRef) -> None:
        """Adds a directed edge source -> target."""
        self.resolve(source).add_out_block(self.resolve(target))

    def index_of(self, name: str) -> int:
        return self._by_name[name]

    def by_name(self, name: str) -> Block:
        return self.blocks[self._by_name[name]]

    # ----------------------------------------------------------
    # Turn driver
    # ----------------------------------------------------------

    def run_round(self) -> RoundReport:
        return run_round(self.blocks, self.rng)

    # ----------------------------------------------------------
    # Queries
    # ----------------------------------------------------------

    def neighbours(self, ref: BlockRef) -> List[Block]:
        return [self.blocks[i] for i in self.resolve(ref).out_blocks]

    def snapshots(self) -> List[BlockSnapshot]:
        return [block.snapshot() for block in self.blocks]

    def blocks_of_type(self, block_type: BlockType) -> List[Block]:
        return [b for b in self.blocks if b.block_type == block_type]
