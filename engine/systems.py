"""
PlagueBoard - engine/systems.py
Settlement Systems: pure functions over an ordered block sequence.
==================================================================
Version:     0.3  (Phase 2 - round driver)
Stack:       Python 3.12+
Status:      Production-ready.

Architecture notes
------------------
- Systems are pure functions operating on a sequence of Blocks.
- Dispatch order is authoritative: run_round finishes each phase on
  every block before the next phase starts on any block.
- Block order is the caller's order (board insertion order). Allocation
  rounding depends on it, so never sort or shuffle here.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from engine.block import Block, PropagationReport, SettlementReport

# ============================================================
# ROUND REPORT
# ============================================================

@dataclass
class RoundReport:
    """What happened during one round, keyed by block index."""
    settlement: Dict[int, SettlementReport] = field(default_factory=dict)
    propagation: Dict[int, PropagationReport] = field(default_factory=dict)

    @property
    def generation_shifts(self) -> List[int]:
        return [i for i, r in self.settlement.items() if r.generation_shifted]

    @property
    def quarantines_lifted(self) -> List[int]:
        return [i for i, r in self.propagation.items() if r.quarantine_lifted]

    @property
    def isolated(self) -> List[int]:
        return [i for i, r in self.propagation.items() if r.isolated]

    @property
    def new_infections(self) -> int:
        return sum(r.new_infections for r in self.settlement.values())

    @property
    def deaths(self) -> int:
        return sum(r.deaths for r in self.settlement.values())


# ============================================================
# PHASE SYSTEMS
# ============================================================

def settlement_system(blocks: Sequence[Block],
                      rng: Optional[random.Random] = None) -> Dict[int, SettlementReport]:
    """Phase 1: local settlement on every block."""
    return {block.index: block.end_in_block(rng) for block in blocks}


def propagation_system(blocks: Sequence[Block]) -> Dict[int, PropagationReport]:
    """Phase 2: cross-block broadcasts into buffers."""
    return {block.index: block.end_round() for block in blocks}


def commit_system(blocks: Sequence[Block]) -> None:
    """Phase 3: commit every block's buffers."""
    for block in blocks:
        block.commit()


def run_round(blocks: Sequence[Block],
              rng: Optional[random.Random] = None) -> RoundReport:
    """
    Advance the whole board by one round.

    This is the only entry point a turn driver needs. Calling the phase
    methods on individual blocks outside of it can expose half-updated
    neighbours.
    """
    report = RoundReport()
    report.settlement = settlement_system(blocks, rng)
    report.propagation = propagation_system(blocks)
    commit_system(blocks)
    return report
