"""
Claim Stake Simulator - Achievements
======================================
Tiered achievements evaluated against the game state after ticks.
Progress lives on GameState.achievements as plain data so it saves and
loads with the rest of the state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union

from stake_sim.constants import STAKE_SCOPED_RESOURCES
from stake_sim.models import GameCatalog, GameState


# ---------------------------------------------------------------------------
# Achievement types
# ---------------------------------------------------------------------------

class AchievementType(Enum):
    RESOURCE_COLLECTION = "resource_collection"      # largest single amount in the global pool
    PRODUCTION_RATE = "production_rate"              # largest positive global rate
    RESOURCE_DIVERSITY = "resource_diversity"        # resources with a positive rate
    BUILDINGS_CONSTRUCTED = "buildings_constructed"  # installed buildings, all stakes
    CLAIM_STAKES_OWNED = "claim_stakes_owned"
    PLANET_DIVERSITY = "planet_diversity"            # distinct planet archetypes


ALL = "all"  # target resolved against the catalog


@dataclass(frozen=True)
class AchievementDef:
    id: str
    name: str
    category: str
    tier: str
    achievement_type: AchievementType
    target: Union[int, float, str]
    description: str = ""


def _a(id, name, category, tier, atype, target, desc):
    return AchievementDef(id, name, category, tier, atype, target, desc)


RES = "resource_mastery"
IND = "industrial_development"
TER = "territorial_expansion"

ACHIEVEMENTS: List[AchievementDef] = [
    _a("first-steps", "First Steps", RES, "Bronze",
       AchievementType.RESOURCE_COLLECTION, 1000, "Collect 1,000 of any resource"),
    _a("resource-hoarder", "Resource Hoarder", RES, "Silver",
       AchievementType.RESOURCE_COLLECTION, 100000, "Collect 100,000 of any resource"),
    _a("industrial-stockpile", "Industrial Stockpile", RES, "Gold",
       AchievementType.RESOURCE_COLLECTION, 1000000, "Collect 1,000,000 of any resource"),

    _a("steady-production", "Steady Production", RES, "Bronze",
       AchievementType.PRODUCTION_RATE, 10, "Reach 10/s production of any resource"),
    _a("industrial-scale", "Industrial Scale", RES, "Silver",
       AchievementType.PRODUCTION_RATE, 100, "Reach 100/s production of any resource"),
    _a("mass-production", "Mass Production", RES, "Gold",
       AchievementType.PRODUCTION_RATE, 1000, "Reach 1,000/s production of any resource"),

    _a("resource-explorer", "Resource Explorer", RES, "Bronze",
       AchievementType.RESOURCE_DIVERSITY, 10, "Produce 10 different resources"),
    _a("material-scientist", "Material Scientist", RES, "Silver",
       AchievementType.RESOURCE_DIVERSITY, 25, "Produce 25 different resources"),
    _a("resource-master", "Resource Master", RES, "Gold",
       AchievementType.RESOURCE_DIVERSITY, ALL, "Produce every resource in the catalog"),

    _a("first-builder", "First Builder", IND, "Bronze",
       AchievementType.BUILDINGS_CONSTRUCTED, 5, "Have 5 buildings installed"),
    _a("industrial-developer", "Industrial Developer", IND, "Silver",
       AchievementType.BUILDINGS_CONSTRUCTED, 25, "Have 25 buildings installed"),
    _a("mega-constructor", "Mega Constructor", IND, "Gold",
       AchievementType.BUILDINGS_CONSTRUCTED, 100, "Have 100 buildings installed"),

    _a("first-claim", "First Claim", TER, "Bronze",
       AchievementType.CLAIM_STAKES_OWNED, 1, "Own a claim stake"),
    _a("expanding-empire", "Expanding Empire", TER, "Silver",
       AchievementType.CLAIM_STAKES_OWNED, 5, "Own 5 claim stakes"),
    _a("territorial-control", "Territorial Control", TER, "Gold",
       AchievementType.CLAIM_STAKES_OWNED, 15, "Own 15 claim stakes"),

    _a("planet-explorer", "Planet Explorer", TER, "Bronze",
       AchievementType.PLANET_DIVERSITY, 3, "Own stakes on 3 planet types"),
    _a("cosmic-colonizer", "Cosmic Colonizer", TER, "Silver",
       AchievementType.PLANET_DIVERSITY, 5, "Own stakes on 5 planet types"),
    _a("universal-presence", "Universal Presence", TER, "Gold",
       AchievementType.PLANET_DIVERSITY, ALL, "Own stakes on every planet type"),
]

ACHIEVEMENTS_BY_ID: Dict[str, AchievementDef] = {a.id: a for a in ACHIEVEMENTS}


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

def _measure(atype: AchievementType, state: GameState, catalog: GameCatalog) -> float:
    if atype == AchievementType.RESOURCE_COLLECTION:
        return max(state.resources.values(), default=0.0)

    if atype == AchievementType.PRODUCTION_RATE:
        return max((r for r in state.resource_rates.values() if r > 0), default=0.0)

    if atype == AchievementType.RESOURCE_DIVERSITY:
        return float(sum(1 for rid, r in state.resource_rates.items()
                         if r > 0 and rid not in STAKE_SCOPED_RESOURCES))

    if atype == AchievementType.BUILDINGS_CONSTRUCTED:
        return float(sum(s.building_count for s in state.owned_claim_stakes.values()))

    if atype == AchievementType.CLAIM_STAKES_OWNED:
        return float(len(state.owned_claim_stakes))

    if atype == AchievementType.PLANET_DIVERSITY:
        archetypes = set()
        for stake in state.owned_claim_stakes.values():
            planet = catalog.planets.get(stake.planet_instance_id)
            if planet is not None:
                archetypes.add(planet.planet_archetype)
        return float(len(archetypes))

    return 0.0


def _resolve_target(achievement: AchievementDef, catalog: GameCatalog) -> float:
    if achievement.target != ALL:
        return float(achievement.target)

    if achievement.achievement_type == AchievementType.PLANET_DIVERSITY:
        return float(len(catalog.planet_archetypes))

    produced = set()
    for building in catalog.buildings.values():
        for rates in (building.resource_rate, building.resource_extraction_rate):
            produced.update(rid for rid, r in rates.items()
                            if r > 0 and rid not in STAKE_SCOPED_RESOURCES)
    return float(len(produced))


def achievement_progress(achievement: AchievementDef, state: GameState,
                         catalog: GameCatalog) -> float:
    """Percentage towards the target, capped at 100."""
    target = _resolve_target(achievement, catalog)
    if target <= 0:
        return 0.0
    value = _measure(achievement.achievement_type, state, catalog)
    return min(100.0, value / target * 100.0)


def update_achievements(state: GameState, catalog: GameCatalog) -> List[dict]:
    """Refresh progress on state.achievements.

    Returns the achievements unlocked by this call. Once completed an
    achievement stays completed even if the measured value drops later.
    """
    unlocked = []
    for achievement in ACHIEVEMENTS:
        entry = state.achievements.get(achievement.id)
        if entry is None:
            entry = {"progress": 0.0, "completed": False, "completed_at": None}
            state.achievements[achievement.id] = entry
        if entry["completed"]:
            continue

        progress = achievement_progress(achievement, state, catalog)
        entry["progress"] = progress
        if progress >= 100.0:
            entry["completed"] = True
            entry["completed_at"] = state.elapsed_time
            unlocked.append({
                "id": achievement.id,
                "name": achievement.name,
                "tier": achievement.tier,
                "category": achievement.category,
            })
    return unlocked


def completion_stats(state: GameState) -> Dict[str, dict]:
    """Completed/total per category."""
    stats: Dict[str, dict] = {}
    for achievement in ACHIEVEMENTS:
        row = stats.setdefault(achievement.category, {"completed": 0, "total": 0})
        row["total"] += 1
        entry = state.achievements.get(achievement.id)
        if entry and entry.get("completed"):
            row["completed"] += 1
    for row in stats.values():
        row["percentage"] = row["completed"] / row["total"] * 100.0
    return stats


def get_achievement(achievement_id: str) -> Optional[AchievementDef]:
    return ACHIEVEMENTS_BY_ID.get(achievement_id)
