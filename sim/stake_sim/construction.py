"""
Claim Stake Simulator - Construction Queue
============================================
Starting, advancing, completing and cancelling building construction.

The global queue on GameState owns every item. A stake only keeps the
construction ids in buildings_under_construction so the two never diverge.
"""

import logging
import uuid
from typing import List, Optional, Union

from stake_sim import fuel
from stake_sim.constants import EPSILON
from stake_sim.models import (
    ConstructionCheck, ConstructionQueueItem, ConstructionStatus,
    EngineError, ErrorKind, GameCatalog, GameState, ResourceRequirement,
)
from stake_sim.rates import compute_resource_rates

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _validate(state: GameState, claim_stake_id: str, building_id: str,
              catalog: GameCatalog) -> Optional[EngineError]:
    """Ordered precondition checks; the first failure wins."""
    stake = state.owned_claim_stakes.get(claim_stake_id)
    if stake is None:
        return EngineError(ErrorKind.INVALID_STATE,
                           f"No owned claim stake with id {claim_stake_id}")

    building = catalog.buildings.get(building_id)
    if building is None:
        return EngineError(ErrorKind.NOT_FOUND, f"Unknown building: {building_id}")

    if not fuel.is_operational(stake, compute_resource_rates(stake, catalog)):
        return EngineError(ErrorKind.INVALID_STATE,
                           f"{stake.name or stake.id} is shut down (out of fuel)")

    missing = [tag for tag in building.required_tags if tag not in stake.tags]
    if missing:
        return EngineError(ErrorKind.PREREQUISITE_NOT_MET,
                           f"Missing required tags: {', '.join(missing)}",
                           missing_tags=missing)

    shortfall = {}
    for resource_id, amount in building.construction_cost.items():
        available = state.resources.get(resource_id, 0.0)
        if available < amount:
            shortfall[resource_id] = amount - available
    if shortfall:
        return EngineError(ErrorKind.INSUFFICIENT_RESOURCES,
                           "Insufficient " + ", ".join(
                               f"{r} (short {v:g})" for r, v in shortfall.items()),
                           shortfall=shortfall)
    return None


def check_construction(state: GameState, claim_stake_id: str, building_id: str,
                       catalog: GameCatalog) -> ConstructionCheck:
    """Full prerequisite preview for the UI. Reports every issue, mutates nothing.

    Crew and power lines are informational; they do not block construction.
    """
    check = ConstructionCheck()
    stake = state.owned_claim_stakes.get(claim_stake_id)
    building = catalog.buildings.get(building_id)
    if stake is None or building is None:
        check.can_construct = False
        check.issues.append("Missing claim stake or building definition")
        return check

    if not fuel.is_operational(stake, compute_resource_rates(stake, catalog)):
        check.can_construct = False
        check.issues.append("Claim stake is shut down (out of fuel)")

    check.missing_tags = [t for t in building.required_tags if t not in stake.tags]
    if check.missing_tags:
        check.can_construct = False
        check.issues.append(f"Missing required tags: {', '.join(check.missing_tags)}")

    for resource_id, cost in building.construction_cost.items():
        req = ResourceRequirement(resource_id, cost, state.resources.get(resource_id, 0.0))
        check.resource_requirements.append(req)
        if not req.sufficient:
            check.can_construct = False
            check.issues.append(f"Insufficient {resource_id}: need {cost:g}, have {req.available:g}")

    check.crew_requirement = building.needed_crew
    check.crew_available = stake.crew.available
    check.power_requirement = abs(min(0.0, building.power))
    check.power_available = stake.power.net
    return check


# ---------------------------------------------------------------------------
# Start / cancel
# ---------------------------------------------------------------------------

def start_construction(state: GameState, claim_stake_id: str, building_id: str,
                       catalog: GameCatalog) -> Union[GameState, EngineError]:
    """Validate, pay the full cost up front, and enqueue.

    On failure nothing is mutated and the error is returned.
    """
    error = _validate(state, claim_stake_id, building_id, catalog)
    if error is not None:
        logger.info("Construction of %s on %s rejected: %s", building_id, claim_stake_id, error)
        return error

    building = catalog.buildings[building_id]
    stake = state.owned_claim_stakes[claim_stake_id]

    for resource_id, amount in building.construction_cost.items():
        state.resources[resource_id] = max(0.0, state.resources.get(resource_id, 0.0) - amount)

    item = ConstructionQueueItem(
        id=f"construction-{uuid.uuid4().hex[:12]}",
        claim_stake_id=claim_stake_id,
        building_id=building_id,
        time_remaining=building.construction_time,
        total_time=building.construction_time,
    )
    state.construction_queue[item.id] = item
    stake.buildings_under_construction[item.id] = item.id
    logger.debug("Started %s on %s (%.0fs)", building_id, claim_stake_id, item.total_time)
    return state


def cancel_construction(state: GameState, construction_id: str,
                        catalog: GameCatalog) -> Union[GameState, EngineError]:
    """Remove a pending item and refund its full cost to the global pool."""
    item = state.construction_queue.get(construction_id)
    if item is None:
        return EngineError(ErrorKind.NOT_FOUND, f"No construction with id {construction_id}")

    building = catalog.buildings.get(item.building_id)
    if building is None:
        logger.warning("Cancelling %s: building %s missing from catalog, nothing refunded",
                       construction_id, item.building_id)
    else:
        for resource_id, amount in building.construction_cost.items():
            state.resources[resource_id] = state.resources.get(resource_id, 0.0) + amount

    del state.construction_queue[construction_id]
    stake = state.owned_claim_stakes.get(item.claim_stake_id)
    if stake is not None:
        stake.buildings_under_construction.pop(construction_id, None)
    return state


# ---------------------------------------------------------------------------
# Advance / complete
# ---------------------------------------------------------------------------

def next_completion_in(state: GameState) -> Optional[float]:
    """Simulated seconds until the earliest pending item finishes."""
    if not state.construction_queue:
        return None
    return max(0.0, min(item.time_remaining for item in state.construction_queue.values()))


def advance_construction(state: GameState, delta: float,
                         catalog: GameCatalog) -> List[ConstructionQueueItem]:
    """Count every timer down by ``delta`` and complete the ones that cross zero.

    Items already at zero (zero construction time) complete even when
    ``delta`` is 0; the tick only calls this for positive time segments.
    """
    completed = []
    for item in list(state.construction_queue.values()):
        item.time_remaining -= delta
        if item.time_remaining <= EPSILON:
            complete_construction(state, item, catalog)
            completed.append(item)
    return completed


def complete_construction(state: GameState, item: ConstructionQueueItem,
                          catalog: GameCatalog):
    """Apply a finished item to its stake and drop it from the queue, as one unit."""
    stake = state.owned_claim_stakes.get(item.claim_stake_id)
    state.construction_queue.pop(item.id, None)
    item.time_remaining = 0.0
    item.status = ConstructionStatus.COMPLETE

    if stake is None:
        logger.warning("Construction %s finished for unknown stake %s; discarded",
                       item.id, item.claim_stake_id)
        return

    stake.buildings_under_construction.pop(item.id, None)
    stake.buildings[item.building_id] = stake.buildings.get(item.building_id, 0) + 1

    building = catalog.buildings.get(item.building_id)
    if building is None:
        logger.warning("Completed %s on %s has no catalog entry; stats unchanged",
                       item.building_id, stake.id)
        return

    stake.storage.capacity += building.storage
    stake.crew.capacity += building.crew_slots
    stake.crew.used += building.needed_crew
    if building.power > 0:
        stake.power.generation += building.power
    else:
        stake.power.consumption += abs(building.power)
    if building.added_tags:
        stake.tags = sorted(set(stake.tags) | set(building.added_tags))

    logger.debug("Completed %s on %s", item.building_id, stake.id)


def queue_for_stake(state: GameState, claim_stake_id: str) -> List[ConstructionQueueItem]:
    stake = state.owned_claim_stakes.get(claim_stake_id)
    if stake is None:
        return []
    return [state.construction_queue[cid] for cid in stake.buildings_under_construction
            if cid in state.construction_queue]
