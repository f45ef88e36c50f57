"""
PlagueBoard - engine/infection.py
Infection stages, the stage timer, and death sampling.
======================================================
Version:     0.2  (Phase 1 - settlement core)
Stack:       Python 3.12+ | stdlib random
Status:      Production-ready.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, List, Optional

from engine.data_loader import InfectedStageDef

# ============================================================
# DESIGN VARIABLE DEFAULTS
# ============================================================

STAGE_PERIOD: int = 3  # rounds per stage when the stage table is silent


@dataclass(frozen=True)
class InfectedStage:
    reproduction: float  # multiplier on the block's R0
    death_rate: float    # multiplier on the block's DR

    @classmethod
    def from_def(cls, stage_def: InfectedStageDef) -> InfectedStage:
        return cls(reproduction=stage_def.reproduction, death_rate=stage_def.death_rate)


class StageTimer:
    """
    Cyclic counter walking an ordered list of InfectedStages.

    tick() returns 1 when the stage pointer wraps back to 0, i.e. the
    cohort tracked by this timer has lived through every stage.
    """

    def __init__(self, period: int = STAGE_PERIOD,
                 stages: Optional[Iterable[InfectedStage]] = None) -> None:
        self.period = period
        self.timer = 0
        self.stage_pointer = 0
        self.stages: List[InfectedStage] = list(stages) if stages else []

    def add_stage(self, stage: InfectedStage) -> None:
        self.stages.append(stage)

    def tick(self) -> int:
        if not self.stages:
            return 0
        self.timer += 1
        if self.timer >= self.period:
            self.timer = 0
            self.stage_pointer = (self.stage_pointer + 1) % len(self.stages)
            if self.stage_pointer == 0:
                return 1
        return 0

    @property
    def reproduction(self) -> float:
        if not self.stages:
            return 0.0
        return self.stages[self.stage_pointer].reproduction

    @property
    def death_rate(self) -> float:
        if not self.stages:
            return 0.0
        return self.stages[self.stage_pointer].death_rate


def adapted_random_number(ratio: float, total: int,
                          rng: Optional[random.Random] = None) -> int:
    """
    Sample a part of `total` no larger than `ratio * total`.
    Used for deaths: each cohort loses uniform(0, ratio) of its members.
    """
    if ratio <= 0.0 or total <= 0:
        return 0
    source = rng if rng is not None else random
    return int(source.uniform(0.0, ratio) * total)
