"""
PlagueBoard - engine/census.py
Census: read-only display derivations over blocks and boards.
=============================================================
Version:     0.1  (Phase 2 - canonical implementation)
Stack:       Python 3.12+
Status:      Production-ready.

Players normally cannot tell incubating people from healthy ones, so
the default view folds the next generation into the healthy count.
"God view" shows the true split.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

from engine.block import Block


@dataclass(frozen=True)
class BoardTotals:
    healthy: int
    infected_current: int
    infected_next: int
    material: int
    quarantined_blocks: int

    @property
    def population(self) -> int:
        return self.healthy + self.infected_current + self.infected_next

    @property
    def infected(self) -> int:
        return self.infected_current + self.infected_next


def visible_counts(block: Block, god_view: bool = False) -> Tuple[int, int]:
    """
    Return (healthy, infected) as a player would see them.
    """
    if god_view:
        return block.healthy, block.infected_current + block.infected_next
    return block.healthy + block.infected_next, block.infected_current


def health_bar_fractions(block: Block, god_view: bool = False) -> Tuple[float, float]:
    """
    Fill fractions (0.0-1.0) of the healthy and infected bars, relative to
    the block type's population volume.
    """
    volume = block.profile.population_volume
    if volume <= 0:
        return 0.0, 0.0
    healthy, infected = visible_counts(block, god_view)
    return min(healthy, volume) / volume, min(infected, volume) / volume


def infection_ratio(block: Block) -> float:
    """Share of the block's population that is infected (0.0 when empty)."""
    total = block.healthy + block.infected_current + block.infected_next
    if total <= 0:
        return 0.0
    return (block.infected_current + block.infected_next) / total


def board_totals(blocks: Iterable[Block]) -> BoardTotals:
    healthy = cip = nip = material = quarantined = 0
    for block in blocks:
        healthy += block.healthy
        cip += block.infected_current
        nip += block.infected_next
        material += block.material
        quarantined += int(block.is_quarantined)
    return BoardTotals(
        healthy=healthy,
        infected_current=cip,
        infected_next=nip,
        material=material,
        quarantined_blocks=quarantined,
    )
