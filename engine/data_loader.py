"""
PlagueBoard - engine/data_loader.py
JIT Data Loaders for TOML seed data powered by Pydantic.
=========================================================
Version:     0.3  (Phase 3 - scenario boards)
Stack:       Python 3.12+ | Pydantic v2 | tomllib
Status:      Core data validation and loading layer.

Every definition is a frozen model. Loaded tables are cached on first
use so all blocks of a type share one profile instance.
"""

import tomllib
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ConfigDict, model_validator

# ================================================================================
# SCHEMAS
# ================================================================================

class BlockType(str, Enum):
    ERROR = "error"
    FACTORY = "factory"
    HOUSING = "housing"
    HOSPITAL = "hospital"
    QUARANTINE = "quarantine"


class BlockTypeProfile(BaseModel):
    """Per-type constants. Rates are per round."""
    model_config = ConfigDict(frozen=True)

    block_type: BlockType
    r0: float = 2.0
    death_rate: float = 1.0
    material_rate: float = -0.01          # idle material count rate
    working_material_rate: float = 1.0    # material count rate while working
    resource_min: int = 0
    tax_rate: float = 0.05
    population_volume: int = 1000         # display capacity for health bars
    can_work: bool = False
    infected_priority: float = 0.0        # weight as a broadcast target
    infected_offset: float = 0.0          # eligibility offset when sending infected


class BlockProfileCollectionDef(BaseModel):
    model_config = ConfigDict(frozen=True)
    profiles: List[BlockTypeProfile]


class InfectedStageDef(BaseModel):
    model_config = ConfigDict(frozen=True)
    id: str
    reproduction: float
    death_rate: float


class StageTableDef(BaseModel):
    model_config = ConfigDict(frozen=True)
    period: int = Field(default=3, ge=1)
    stages: List[InfectedStageDef]
    current_generation: List[str] = Field(default_factory=list)
    next_generation: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_generations(self) -> "StageTableDef":
        known = {s.id for s in self.stages}
        for sid in self.current_generation + self.next_generation:
            if sid not in known:
                raise ValueError(f"Unknown infection stage: {sid!r}")
        return self

    def stages_for(self, stage_ids: List[str]) -> List[InfectedStageDef]:
        by_id = {s.id: s for s in self.stages}
        return [by_id[sid] for sid in stage_ids]


class BlockDef(BaseModel):
    model_config = ConfigDict(frozen=True)
    id: str
    type: BlockType
    healthy: Optional[int] = Field(default=None, ge=0)  # None = drawn at random
    infected: int = Field(default=0, ge=0)
    material: int = Field(default=0, ge=0)
    out: List[str] = Field(default_factory=list)


class BoardDef(BaseModel):
    model_config = ConfigDict(frozen=True)
    id: str
    name: str
    description: str = ""
    seed: Optional[int] = None
    blocks: List[BlockDef]

# ================================================================================
# LOADERS & CACHE (JIT)
# ================================================================================

_PROFILE_CACHE: Dict[BlockType, BlockTypeProfile] = {}
_STAGE_TABLE_CACHE: Optional[StageTableDef] = None
_BOARD_CACHE: Dict[str, BoardDef] = {}


DATA_DIR = Path(__file__).parent.parent / "data"


def get_block_profiles() -> Dict[BlockType, BlockTypeProfile]:
    """Loads every block type profile from TOML. Cached globally."""
    if _PROFILE_CACHE:
        return _PROFILE_CACHE

    path = DATA_DIR / "block_types.toml"
    if not path.exists():
        raise FileNotFoundError(f"Block type table not found: {path}")

    with open(path, "rb") as f:
        data = tomllib.load(f)

    collection = BlockProfileCollectionDef(**data)
    for profile in collection.profiles:
        _PROFILE_CACHE[profile.block_type] = profile
    return _PROFILE_CACHE


def get_block_profile(block_type: BlockType) -> BlockTypeProfile:
    """
    Returns the shared profile for a block type.
    Types missing from the table fall back to the ERROR profile.
    """
    profiles = get_block_profiles()
    if block_type in profiles:
        return profiles[block_type]
    return profiles[BlockType.ERROR]


def get_stage_table() -> StageTableDef:
    """Loads the infection stage table. Cached globally."""
    global _STAGE_TABLE_CACHE
    if _STAGE_TABLE_CACHE is not None:
        return _STAGE_TABLE_CACHE

    path = DATA_DIR / "infection_stages.toml"
    if not path.exists():
        raise FileNotFoundError(f"Infection stage table not found: {path}")

    with open(path, "rb") as f:
        data = tomllib.load(f)

    _STAGE_TABLE_CACHE = StageTableDef(**data)
    return _STAGE_TABLE_CACHE


def get_board_def(board_id: str) -> BoardDef:
    """JIT loads a scenario board definition from TOML."""
    if board_id in _BOARD_CACHE:
        return _BOARD_CACHE[board_id]

    path = DATA_DIR / "boards" / f"{board_id}.toml"
    if not path.exists():
        raise FileNotFoundError(f"Board definition not found: {path}")

    with open(path, "rb") as f:
        data = tomllib.load(f)

    board = BoardDef(**data)
    _BOARD_CACHE[board_id] = board
    return board


def get_board_ids() -> List[str]:
    """Lists the scenario boards shipped under data/boards."""
    path = DATA_DIR / "boards"
    if not path.exists():
        return []
    return sorted(file.stem for file in path.glob("*.toml"))
