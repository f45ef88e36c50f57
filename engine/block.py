"""
PlagueBoard - engine/block.py
Block: one board tile and its per-round settlement.
===================================================
Version:     0.3  (Phase 2 - actions and reports)
Stack:       Python 3.12+ | Pydantic v2
Status:      Production-ready.

Architecture notes
------------------
- A round is three barriers, owned by engine/systems.run_round:
    1. end_in_block()  every block, local only (direct writes)
    2. end_round()     every block, broadcasts into neighbours' buffers
    3. commit()        every block
- Phase 1 writes `data` directly, which also resets the buffer. Phase 2
  only ever touches buffers, so neighbours keep reading committed values.
- Actions (taxed, aided, ...) are called between rounds and write
  directly, so they are visible at once.
- out_blocks holds arena indices (see engine/board.py). The broadcast
  links are references to the neighbour's Variables.

Design Variables (all values configurable - do not hardcode)
-------------------------------------------------------------
  HEALTHY_BROADCAST_RATIO        0.5
  INFECTED_CURR_BROADCAST_RATIO  0.9
  INFECTED_NEXT_BROADCAST_RATIO  0.5
  MATERIAL_BROADCAST_RATIO       0.5
  DEFAULT_QUARANTINE_PERIOD      10
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from engine.data_loader import (
    BlockType,
    BlockTypeProfile,
    StageTableDef,
    get_stage_table,
)
from engine.infection import InfectedStage, StageTimer, adapted_random_number
from engine.variable import BroadcastValue, VarType

# ============================================================
# DESIGN VARIABLE DEFAULTS
# ============================================================

HEALTHY_BROADCAST_RATIO: float = 0.5
INFECTED_CURR_BROADCAST_RATIO: float = 0.9
INFECTED_NEXT_BROADCAST_RATIO: float = 0.5
MATERIAL_BROADCAST_RATIO: float = 0.5
DEFAULT_QUARANTINE_PERIOD: int = 10


# ============================================================
# REPORTS
# ============================================================

@dataclass
class SettlementReport:
    """Phase 1 outcome for one block."""
    generation_shifted: bool = False
    new_infections: int = 0
    deaths: int = 0
    material_delta: int = 0


@dataclass
class PropagationReport:
    """Phase 2 outcome for one block."""
    isolated: bool = False
    quarantine_lifted: bool = False
    sent: Dict[VarType, int] = field(default_factory=dict)


class BlockSnapshot(BaseModel):
    """Read-only view of a block's committed state, for display layers."""
    model_config = ConfigDict(frozen=True)

    index: int
    name: str
    block_type: BlockType
    healthy: int
    infected_current: int
    infected_next: int
    material: int
    is_working: bool
    is_quarantined: bool


# ============================================================
# BLOCK
# ============================================================

class Block:
    """
    Aggregate node of the board graph.

    hp_count   healthy population
    cip_count  current generation of infected
    nip_count  next generation of infected (incubating)
    material_count
    """

    def __init__(self, profile: BlockTypeProfile, healthy: int = 0,
                 infected: int = 0, material: int = 0,
                 index: int = 0, name: str = "",
                 stage_table: Optional[StageTableDef] = None) -> None:
        self.profile = profile
        self.index = index
        self.name = name or f"block-{index}"
        self.out_blocks: List[int] = []

        table = stage_table if stage_table is not None else get_stage_table()
        self.c_timer = StageTimer(
            table.period,
            [InfectedStage.from_def(s) for s in table.stages_for(table.current_generation)],
        )
        self.n_timer = StageTimer(
            table.period,
            [InfectedStage.from_def(s) for s in table.stages_for(table.next_generation)],
        )

        # Newly seeded infections start out incubating.
        self.hp_count = BroadcastValue(healthy, VarType.HEALTHY_POP)
        self.cip_count = BroadcastValue(0, VarType.INFECTED_POP_CURR_GEN)
        self.nip_count = BroadcastValue(infected, VarType.INFECTED_POP_NEXT_GEN)
        self.material_count = BroadcastValue(material, VarType.MATERIAL)
        self.cip_count.priority = profile.infected_priority

        self.is_working: bool = profile.can_work
        self.is_quarantined: bool = False
        self.quarantine_counter: int = 0
        self.quarantine_period: int = DEFAULT_QUARANTINE_PERIOD

    def __repr__(self) -> str:
        return (
            f"Block({self.index}, {self.name!r}, {self.block_type.value}, "
            f"hp={self.healthy}, cip={self.infected_current}, "
            f"nip={self.infected_next}, mat={self.material})"
        )

    # ----------------------------------------------------------
    # Wiring
    # ----------------------------------------------------------

    @property
    def variables(self) -> List[BroadcastValue]:
        return [self.hp_count, self.cip_count, self.nip_count, self.material_count]

    def add_out_block(self, target: Block) -> None:
        """Register target as a downstream neighbour and link each value."""
        self.out_blocks.append(target.index)
        self.hp_count.add_out_variable(target.hp_count)
        self.cip_count.add_out_variable(target.cip_count)
        self.nip_count.add_out_variable(target.nip_count)
        self.material_count.add_out_variable(target.material_count)

    # ----------------------------------------------------------
    # Profile-derived rates
    # ----------------------------------------------------------

    @property
    def block_type(self) -> BlockType:
        return self.profile.block_type

    @property
    def mc_rate(self) -> float:
        if self.is_working:
            return self.profile.working_material_rate
        return self.profile.material_rate

    @property
    def resource_min(self) -> int:
        return self.profile.resource_min

    @property
    def tax_rate(self) -> float:
        return self.profile.tax_rate

    @property
    def cr0(self) -> float:
        return self.profile.r0 * self.c_timer.reproduction

    @property
    def nr0(self) -> float:
        return self.profile.r0 * self.n_timer.reproduction

    @property
    def cdr(self) -> float:
        return self.profile.death_rate * self.c_timer.death_rate

    @property
    def ndr(self) -> float:
        return self.profile.death_rate * self.n_timer.death_rate

    # ----------------------------------------------------------
    # Queries (committed values only)
    # ----------------------------------------------------------

    @property
    def healthy(self) -> int:
        return self.hp_count.data

    @property
    def infected_current(self) -> int:
        return self.cip_count.data

    @property
    def infected_next(self) -> int:
        return self.nip_count.data

    @property
    def material(self) -> int:
        return self.material_count.data

    def snapshot(self) -> BlockSnapshot:
        return BlockSnapshot(
            index=self.index,
            name=self.name,
            block_type=self.block_type,
            healthy=self.healthy,
            infected_current=self.infected_current,
            infected_next=self.infected_next,
            material=self.material,
            is_working=self.is_working,
            is_quarantined=self.is_quarantined,
        )

    # ----------------------------------------------------------
    # Actions (between rounds, immediate)
    # ----------------------------------------------------------

    def stop_working(self) -> bool:
        self.is_working = False
        return True

    def start_working(self) -> bool:
        """Returns False when this block type cannot work."""
        if not self.profile.can_work:
            return False
        self.is_working = True
        return True

    def taxed(self) -> int:
        taxed = math.floor(self.material_count.data * self.tax_rate)
        self.material_count.data -= taxed
        return taxed

    def quarantined(self, period: int = DEFAULT_QUARANTINE_PERIOD) -> bool:
        self.is_quarantined = True
        self.quarantine_period = period
        self.quarantine_counter = 0
        return True

    def aided(self) -> bool:
        self.hp_count.data = 0
        self.cip_count.data = 0
        self.nip_count.data = 0
        return True

    # ----------------------------------------------------------
    # Settlement
    # ----------------------------------------------------------

    def end_in_block(self, rng: Optional[random.Random] = None) -> SettlementReport:
        """Phase 1: local settlement. Reads and writes this block only."""
        report = SettlementReport()

        # Both timers must tick every round.
        develop = self.c_timer.tick() + self.n_timer.tick()
        if develop > 0:
            self.hp_count.data += self.cip_count.data
            self.cip_count.data = self.nip_count.data
            self.nip_count.data = 0
            report.generation_shifted = True

        inf = int(self.cip_count.data * self.cr0 + self.nip_count.data * self.nr0)
        if inf > self.hp_count.data:
            inf = self.hp_count.data
        inf = max(0, inf)
        self.nip_count.data += inf
        self.hp_count.data -= inf
        report.new_infections = inf

        death = min(adapted_random_number(self.cdr, self.cip_count.data, rng), self.cip_count.data)
        self.cip_count.data -= death
        report.deaths += death
        death = min(adapted_random_number(self.ndr, self.nip_count.data, rng), self.nip_count.data)
        self.nip_count.data -= death
        report.deaths += death

        before = self.material_count.data
        self.material_count.data += math.floor(
            self.mc_rate * (self.hp_count.data + self.cip_count.data)
        )
        if self.material_count.data < self.resource_min:
            self.material_count.data = self.resource_min
        report.material_delta = self.material_count.data - before
        return report

    def end_round(self) -> PropagationReport:
        """Phase 2: push shares of every value into the neighbours' buffers."""
        report = PropagationReport()
        if self.is_quarantined:
            report.isolated = True
            self.quarantine_counter += 1
            if self.quarantine_counter >= self.quarantine_period:
                self.is_quarantined = False
                report.quarantine_lifted = True
            return report

        report.sent[VarType.HEALTHY_POP] = self.hp_count.broadcast(HEALTHY_BROADCAST_RATIO)
        report.sent[VarType.INFECTED_POP_CURR_GEN] = self.cip_count.broadcast(
            INFECTED_CURR_BROADCAST_RATIO, self.profile.infected_offset
        )
        report.sent[VarType.INFECTED_POP_NEXT_GEN] = self.nip_count.broadcast(
            INFECTED_NEXT_BROADCAST_RATIO
        )
        report.sent[VarType.MATERIAL] = self.material_count.broadcast(
            MATERIAL_BROADCAST_RATIO, reserve=self.resource_min
        )
        return report

    def commit(self) -> None:
        """Phase 3: make every staged write visible."""
        self.hp_count.commit()
        self.cip_count.commit()
        self.nip_count.commit()
        self.material_count.commit()
