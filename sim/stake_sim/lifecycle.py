"""
Claim Stake Simulator - Claim Stake Lifecycle
===============================================
Creating claim stakes on purchase, looking them up, and resupplying fuel.
"""

import logging
import uuid
from typing import Union

from stake_sim.constants import FUEL_PER_TIER, FUEL_RESOURCE
from stake_sim.models import (
    ClaimStakeInstance, CrewStats, EngineError, ErrorKind, GameCatalog,
    GameState, PowerStats, StorageStats,
)

logger = logging.getLogger(__name__)


def create_claim_stake_instance(
    definition_id: str,
    planet_instance_id: str,
    catalog: GameCatalog,
) -> Union[ClaimStakeInstance, EngineError]:
    """New stake with exactly one starter hub installed.

    The hub was not built through the construction queue, so its tags, storage,
    crew and power are copied straight from its definition instead of going
    through the completion path.
    """
    definition = catalog.claim_stake_definitions.get(definition_id)
    if definition is None:
        return EngineError(ErrorKind.NOT_FOUND,
                           f"Unknown claim stake definition: {definition_id}")

    planet = catalog.planets.get(planet_instance_id)
    if planet is None:
        return EngineError(ErrorKind.NOT_FOUND,
                           f"Unknown planet instance: {planet_instance_id}")

    archetype = catalog.planet_archetypes.get(planet.planet_archetype)
    if archetype is None:
        return EngineError(ErrorKind.NOT_FOUND,
                           f"Unknown planet archetype: {planet.planet_archetype}")

    hub = catalog.buildings.get(catalog.starter_hub_id) if catalog.starter_hub_id else None
    if hub is None:
        return EngineError(ErrorKind.NOT_FOUND, "Catalog has no starter hub building")

    tags = sorted(set(archetype.tags) | set(definition.added_tags) | set(hub.added_tags))

    stake = ClaimStakeInstance(
        id=f"claimStakeInstance-{uuid.uuid4().hex[:12]}",
        definition_id=definition_id,
        planet_instance_id=planet_instance_id,
        name=f"{planet.name} {definition.name}",
        tier=definition.tier,
        tags=tags,
        buildings={hub.id: 1},
        resources={FUEL_RESOURCE: float(FUEL_PER_TIER * definition.tier)},
        storage=StorageStats(used=0.0, capacity=hub.storage),
        crew=CrewStats(used=hub.needed_crew, capacity=hub.crew_slots),
        power=PowerStats(
            generation=max(0.0, hub.power),
            consumption=abs(min(0.0, hub.power)),
        ),
    )
    return stake


def purchase_claim_stake(
    state: GameState,
    definition_id: str,
    planet_instance_id: str,
    catalog: GameCatalog,
) -> Union[ClaimStakeInstance, EngineError]:
    stake = create_claim_stake_instance(definition_id, planet_instance_id, catalog)
    if isinstance(stake, EngineError):
        logger.info("Purchase rejected: %s", stake)
        return stake
    state.owned_claim_stakes[stake.id] = stake
    logger.info("Purchased %s (%s)", stake.name, stake.id)
    return stake


def get_claim_stake(state: GameState, claim_stake_id: str) -> Union[ClaimStakeInstance, EngineError]:
    stake = state.owned_claim_stakes.get(claim_stake_id)
    if stake is None:
        return EngineError(ErrorKind.INVALID_STATE,
                           f"No owned claim stake with id {claim_stake_id}")
    return stake


def resupply_fuel(state: GameState, claim_stake_id: str) -> Union[ClaimStakeInstance, EngineError]:
    """Fill the stake's tank to its tier capacity."""
    stake = get_claim_stake(state, claim_stake_id)
    if isinstance(stake, EngineError):
        return stake
    stake.resources[FUEL_RESOURCE] = stake.fuel_capacity
    stake.operational = stake.fuel_capacity > 0
    logger.info("Resupplied %s to %.0f fuel", stake.id, stake.fuel_capacity)
    return stake
