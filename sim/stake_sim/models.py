"""
Claim Stake Simulator - Data Models
=====================================
All dataclasses for the simulation engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from stake_sim.constants import DEFAULT_SPEED, FUEL_PER_TIER


# ---------------------------------------------------------------------------
# Game data catalog (read-only)
# ---------------------------------------------------------------------------

@dataclass
class BuildingDef:
    id: str
    name: str
    resource_rate: Dict[str, float] = field(default_factory=dict)             # signed, per second
    resource_extraction_rate: Dict[str, float] = field(default_factory=dict)  # scaled by richness
    required_tags: List[str] = field(default_factory=list)
    added_tags: List[str] = field(default_factory=list)
    construction_cost: Dict[str, float] = field(default_factory=dict)
    construction_time: float = 0.0  # seconds
    power: float = 0.0              # positive = generation, negative = consumption
    crew_slots: int = 0
    needed_crew: int = 0
    storage: float = 0.0
    slots: int = 0
    tier: int = 1
    capability_tags: List[str] = field(default_factory=list)  # e.g. tag-starter-hub


@dataclass
class ClaimStakeDef:
    id: str
    name: str
    tier: int = 1
    slots: int = 0
    rent_multiplier: float = 1.0
    placement_fee_multiplier: float = 1.0
    added_tags: List[str] = field(default_factory=list)
    required_tags: List[str] = field(default_factory=list)


@dataclass
class PlanetArchetype:
    id: str
    name: str = ""
    tags: List[str] = field(default_factory=list)
    richness: Dict[str, float] = field(default_factory=dict)


@dataclass
class Planet:
    id: str
    name: str
    planet_archetype: str


@dataclass
class GameCatalog:
    claim_stake_definitions: Dict[str, ClaimStakeDef] = field(default_factory=dict)
    buildings: Dict[str, BuildingDef] = field(default_factory=dict)
    planet_archetypes: Dict[str, PlanetArchetype] = field(default_factory=dict)
    planets: Dict[str, Planet] = field(default_factory=dict)
    starter_hub_id: Optional[str] = None  # resolved once at load time

    def archetype_for(self, planet_id: str) -> Optional[PlanetArchetype]:
        planet = self.planets.get(planet_id)
        if planet is None:
            return None
        return self.planet_archetypes.get(planet.planet_archetype)


# ---------------------------------------------------------------------------
# Errors returned by engine operations
# ---------------------------------------------------------------------------

class ErrorKind(Enum):
    NOT_FOUND = "not_found"
    PREREQUISITE_NOT_MET = "prerequisite_not_met"
    INSUFFICIENT_RESOURCES = "insufficient_resources"
    INVALID_STATE = "invalid_state"


@dataclass
class EngineError:
    kind: ErrorKind
    message: str
    missing_tags: List[str] = field(default_factory=list)
    shortfall: Dict[str, float] = field(default_factory=dict)  # resource -> amount missing

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


# ---------------------------------------------------------------------------
# Claim stake aggregates
# ---------------------------------------------------------------------------

@dataclass
class StorageStats:
    used: float = 0.0
    capacity: float = 0.0


@dataclass
class CrewStats:
    used: int = 0
    capacity: int = 0

    @property
    def available(self) -> int:
        return self.capacity - self.used


@dataclass
class PowerStats:
    generation: float = 0.0
    consumption: float = 0.0

    @property
    def net(self) -> float:
        return self.generation - self.consumption


# ---------------------------------------------------------------------------
# Runtime simulation entities
# ---------------------------------------------------------------------------

@dataclass
class ClaimStakeInstance:
    id: str
    definition_id: str
    planet_instance_id: str
    name: str = ""
    tier: int = 1

    tags: List[str] = field(default_factory=list)           # sorted, unique
    buildings: Dict[str, int] = field(default_factory=dict)  # building id -> installed count
    resources: Dict[str, float] = field(default_factory=dict)
    resource_rates: Dict[str, float] = field(default_factory=dict)  # derived every tick

    storage: StorageStats = field(default_factory=StorageStats)
    crew: CrewStats = field(default_factory=CrewStats)
    power: PowerStats = field(default_factory=PowerStats)

    # construction id -> construction id; the global queue owns the item
    buildings_under_construction: Dict[str, str] = field(default_factory=dict)

    operational: bool = True

    @property
    def fuel_capacity(self) -> float:
        return float(FUEL_PER_TIER * self.tier)

    @property
    def building_count(self) -> int:
        return sum(self.buildings.values())


class ConstructionStatus(Enum):
    PENDING = "pending"
    COMPLETE = "complete"


@dataclass
class ConstructionQueueItem:
    id: str
    claim_stake_id: str
    building_id: str
    time_remaining: float
    total_time: float
    status: ConstructionStatus = ConstructionStatus.PENDING

    @property
    def progress(self) -> float:
        if self.total_time <= 0:
            return 1.0
        return min(1.0, max(0.0, 1.0 - self.time_remaining / self.total_time))


@dataclass
class ResourceRequirement:
    resource_id: str
    required: float
    available: float

    @property
    def sufficient(self) -> bool:
        return self.available >= self.required


@dataclass
class ConstructionCheck:
    """Prerequisite preview for one building on one stake."""
    can_construct: bool = True
    issues: List[str] = field(default_factory=list)
    missing_tags: List[str] = field(default_factory=list)
    resource_requirements: List[ResourceRequirement] = field(default_factory=list)
    crew_requirement: int = 0
    crew_available: int = 0
    power_requirement: float = 0.0
    power_available: float = 0.0


# ---------------------------------------------------------------------------
# Game state
# ---------------------------------------------------------------------------

@dataclass
class GameState:
    owned_claim_stakes: Dict[str, ClaimStakeInstance] = field(default_factory=dict)
    construction_queue: Dict[str, ConstructionQueueItem] = field(default_factory=dict)

    resources: Dict[str, float] = field(default_factory=dict)       # global pool
    resource_rates: Dict[str, float] = field(default_factory=dict)  # sum over stakes

    elapsed_time: float = 0.0
    speed_multiplier: float = DEFAULT_SPEED
    is_paused: bool = False
    last_saved: Optional[str] = None

    achievements: Dict[str, dict] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Scenario definitions
# ---------------------------------------------------------------------------

@dataclass
class SimConfig:
    speed_multiplier: float = DEFAULT_SPEED
    start_paused: bool = False
    auto_resupply: bool = False  # scenario runner refuels stakes that shut down
    initial_resources: Dict[str, float] = field(default_factory=dict)


@dataclass
class StakePlan:
    definition_id: str
    planet_instance_id: str
    build_queue: List[str] = field(default_factory=list)


@dataclass
class Scenario:
    name: str
    description: str = ""
    catalog_path: Optional[str] = None
    config: SimConfig = field(default_factory=SimConfig)
    stakes: List[StakePlan] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Simulation results
# ---------------------------------------------------------------------------

@dataclass
class Milestone:
    time: float
    event: str
    description: str


@dataclass
class Snapshot:
    time: float
    resources: Dict[str, float] = field(default_factory=dict)
    resource_rates: Dict[str, float] = field(default_factory=dict)
    building_count: int = 0
    queue_length: int = 0
    operational_stakes: int = 0


@dataclass
class SimResult:
    scenario_name: str = ""
    duration: float = 0.0

    milestones: List[Milestone] = field(default_factory=list)
    completion_log: List[Tuple[float, str, str]] = field(default_factory=list)  # (time, building, stake)
    rejections: List[Tuple[float, str, str]] = field(default_factory=list)      # (time, building, reason)
    snapshots: List[Snapshot] = field(default_factory=list)

    peak_rates: Dict[str, float] = field(default_factory=dict)
    final_resources: Dict[str, float] = field(default_factory=dict)
    unlocked_achievements: List[Tuple[float, str]] = field(default_factory=list)
    final_state: Optional[GameState] = None
