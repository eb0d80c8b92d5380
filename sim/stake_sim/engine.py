"""
Claim Stake Simulator - Simulation Engine
===========================================
Variable-delta tick over a GameState, plus a fixed-step runner for
scenario files.

Within one tick the adjusted delta is cut into segments at every
construction completion and every fuel exhaustion that falls inside it.
Each segment recomputes rates, applies them to the ledgers, then advances
the construction queue, so one large tick gives the same result as many
small ones.
"""

import logging
from typing import Dict, List, Optional

from stake_sim import fuel
from stake_sim.achievements import update_achievements
from stake_sim.constants import EPSILON, SNAPSHOT_INTERVAL, STAKE_SCOPED_RESOURCES
from stake_sim.construction import (
    advance_construction, next_completion_in, start_construction,
)
from stake_sim.lifecycle import purchase_claim_stake, resupply_fuel
from stake_sim.models import (
    ConstructionQueueItem, EngineError, ErrorKind, GameCatalog, GameState,
    Milestone, Scenario, SimResult, Snapshot,
)
from stake_sim.rates import compute_resource_rates, sum_rates

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tick
# ---------------------------------------------------------------------------

def tick(state: GameState, delta_seconds: float, catalog: GameCatalog) -> GameState:
    """Advance the simulation by ``delta_seconds`` of real time.

    Mutates and returns ``state``. Paused state, or a speed multiplier of 0,
    leaves everything untouched.
    """
    advance(state, delta_seconds, catalog)
    return state


def advance(state: GameState, delta_seconds: float,
            catalog: GameCatalog) -> List[ConstructionQueueItem]:
    """Same as tick, but returns the construction items completed on the way."""
    if state.is_paused or state.speed_multiplier <= 0:
        return []

    adjusted = delta_seconds * state.speed_multiplier
    if adjusted <= 0:
        refresh_rates(state, catalog)
        return []

    state.elapsed_time += adjusted
    completed: List[ConstructionQueueItem] = []
    remaining = adjusted

    while True:
        full_rates = refresh_rates(state, catalog)
        step = _segment_length(state, full_rates, remaining)
        _apply_resources(state, step)
        completed.extend(advance_construction(state, step, catalog))
        remaining -= step
        if remaining <= EPSILON:
            break

    refresh_rates(state, catalog)
    return completed


def refresh_rates(state: GameState, catalog: GameCatalog) -> Dict[str, Dict[str, float]]:
    """Recompute every stake's rates and the global sum.

    Stakes store their effective rates (empty while shut down); the full
    computed rates are returned keyed by stake id.
    """
    full = {}
    for stake_id, stake in state.owned_claim_stakes.items():
        rates = compute_resource_rates(stake, catalog)
        full[stake_id] = rates
        was_operational = stake.operational
        stake.operational = fuel.is_operational(stake, rates)
        if was_operational and not stake.operational:
            logger.info("%s ran out of fuel and shut down", stake.id)
        stake.resource_rates = fuel.effective_rates(stake, rates)
    state.resource_rates = sum_rates(s.resource_rates for s in state.owned_claim_stakes.values())
    return full


def _segment_length(state: GameState, full_rates: Dict[str, Dict[str, float]],
                    remaining: float) -> float:
    step = remaining
    next_done = next_completion_in(state)
    if next_done is not None:
        step = min(step, next_done)
    for stake_id, stake in state.owned_claim_stakes.items():
        if not stake.operational:
            continue
        empty_in = fuel.time_to_empty(stake, full_rates[stake_id])
        if empty_in is not None:
            step = min(step, empty_in)
    return step


def _apply_resources(state: GameState, dt: float):
    if dt <= 0:
        return
    for stake in state.owned_claim_stakes.values():
        for resource_id, rate in stake.resource_rates.items():
            stake.resources[resource_id] = _clamp(stake.resources.get(resource_id, 0.0) + rate * dt)
        stake.storage.used = sum(amount for rid, amount in stake.resources.items()
                                 if rid not in STAKE_SCOPED_RESOURCES)

    for resource_id, rate in state.resource_rates.items():
        if resource_id in STAKE_SCOPED_RESOURCES:
            continue
        state.resources[resource_id] = _clamp(state.resources.get(resource_id, 0.0) + rate * dt)


def _clamp(amount: float) -> float:
    # No resource debt; float dust at the bottom snaps to zero.
    return amount if amount > EPSILON else 0.0


# ---------------------------------------------------------------------------
# Scenario runner
# ---------------------------------------------------------------------------

class SimulationEngine:
    def __init__(self, scenario: Scenario, catalog: GameCatalog,
                 duration: float = 3600.0, step: float = 1.0):
        self.scenario = scenario
        self.catalog = catalog
        self.duration = duration
        self.step = step
        self.state = GameState(
            resources=dict(scenario.config.initial_resources),
            speed_multiplier=scenario.config.speed_multiplier,
            is_paused=scenario.config.start_paused,
        )
        self.result = SimResult(scenario_name=scenario.name, duration=duration)
        self._plans: Dict[str, List[str]] = {}   # stake id -> remaining build queue
        self._next_snapshot = 0.0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self) -> SimResult:
        self._initialize()
        if self.state.is_paused:
            logger.warning("Scenario starts paused; only purchases are applied")
        elif self.state.speed_multiplier <= 0:
            logger.warning("Speed multiplier is %s; nothing to simulate",
                           self.state.speed_multiplier)

        while (not self.state.is_paused and self.state.speed_multiplier > 0
               and self.state.elapsed_time + EPSILON < self.duration):
            self._start_queued_builds()
            left = (self.duration - self.state.elapsed_time) / self.state.speed_multiplier
            completed = advance(self.state, min(self.step, left), self.catalog)
            for item in completed:
                self._on_complete(item)
            self._after_step()

        self._finalize()
        return self.result

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def _initialize(self):
        for plan in self.scenario.stakes:
            stake = purchase_claim_stake(self.state, plan.definition_id,
                                         plan.planet_instance_id, self.catalog)
            if isinstance(stake, EngineError):
                self.result.rejections.append((0.0, plan.definition_id, str(stake)))
                continue
            self._plans[stake.id] = list(plan.build_queue)
            self._milestone(f"purchase:{stake.id}", f"{stake.name} purchased")
        refresh_rates(self.state, self.catalog)
        self._record_snapshot()
        self._next_snapshot = SNAPSHOT_INTERVAL

    # ------------------------------------------------------------------
    # Per-step bookkeeping
    # ------------------------------------------------------------------

    def _start_queued_builds(self):
        for stake_id, queue in self._plans.items():
            while queue:
                building_id = queue[0]
                outcome = start_construction(self.state, stake_id, building_id, self.catalog)
                if not isinstance(outcome, EngineError):
                    queue.pop(0)
                    continue
                if self._should_wait(stake_id, outcome):
                    break
                queue.pop(0)
                self.result.rejections.append((self.state.elapsed_time, building_id, str(outcome)))

    def _should_wait(self, stake_id: str, error: EngineError) -> bool:
        if error.kind in (ErrorKind.INSUFFICIENT_RESOURCES, ErrorKind.INVALID_STATE):
            return True
        if error.kind == ErrorKind.PREREQUISITE_NOT_MET:
            # A building still under construction may add the missing tag.
            stake = self.state.owned_claim_stakes.get(stake_id)
            return bool(stake and stake.buildings_under_construction)
        return False

    def _on_complete(self, item: ConstructionQueueItem):
        self.result.completion_log.append(
            (self.state.elapsed_time, item.building_id, item.claim_stake_id))
        building = self.catalog.buildings.get(item.building_id)
        name = building.name if building else item.building_id
        self._milestone(f"first:{item.building_id}", f"{name} online")

    def _after_step(self):
        s = self.state
        for stake in s.owned_claim_stakes.values():
            if not stake.operational:
                self._milestone(f"shutdown:{stake.id}", f"{stake.name} out of fuel")
                if self.scenario.config.auto_resupply:
                    resupply_fuel(s, stake.id)

        for resource_id, rate in s.resource_rates.items():
            if rate > self.result.peak_rates.get(resource_id, 0.0):
                self.result.peak_rates[resource_id] = rate

        for achievement in update_achievements(s, self.catalog):
            self.result.unlocked_achievements.append((s.elapsed_time, achievement["name"]))

        while s.elapsed_time + EPSILON >= self._next_snapshot:
            self._record_snapshot()
            self._next_snapshot += SNAPSHOT_INTERVAL

    # ------------------------------------------------------------------
    # Milestones & snapshots
    # ------------------------------------------------------------------

    def _milestone(self, event: str, desc: str):
        if any(m.event == event for m in self.result.milestones):
            return
        self.result.milestones.append(Milestone(
            time=self.state.elapsed_time, event=event, description=desc))

    def _record_snapshot(self):
        s = self.state
        self.result.snapshots.append(Snapshot(
            time=s.elapsed_time,
            resources=dict(s.resources),
            resource_rates=dict(s.resource_rates),
            building_count=sum(st.building_count for st in s.owned_claim_stakes.values()),
            queue_length=len(s.construction_queue),
            operational_stakes=sum(1 for st in s.owned_claim_stakes.values() if st.operational),
        ))

    def _finalize(self):
        last = self.result.snapshots[-1] if self.result.snapshots else None
        if last is None or last.time + EPSILON < self.state.elapsed_time:
            self._record_snapshot()
        self.result.final_resources = dict(self.state.resources)
        self.result.final_state = self.state
