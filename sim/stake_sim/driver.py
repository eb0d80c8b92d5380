"""
Claim Stake Simulator - Real-Time Driver
==========================================
Owns one GameState and feeds it real elapsed time. Every mutation goes
through the driver's lock, so ticks and player commands never interleave.
"""

import logging
import threading
import time
from typing import Callable, List, Optional, Union

from stake_sim.achievements import update_achievements
from stake_sim.construction import cancel_construction, start_construction
from stake_sim.engine import advance
from stake_sim.lifecycle import purchase_claim_stake, resupply_fuel
from stake_sim.models import ClaimStakeInstance, EngineError, GameCatalog, GameState

logger = logging.getLogger(__name__)

Callback = Callable[[GameState], None]


class SimulationDriver:
    def __init__(self, state: GameState, catalog: GameCatalog,
                 clock: Callable[[], float] = time.monotonic):
        self.state = state
        self.catalog = catalog
        self._clock = clock
        self._last = clock()
        self._lock = threading.RLock()
        self._callbacks: List[Callback] = []
        self._unlocked: List[dict] = []

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def update(self) -> GameState:
        """Tick by the real time elapsed since the previous update."""
        with self._lock:
            now = self._clock()
            delta = max(0.0, now - self._last)
            self._last = now
            if self.state.is_paused:
                return self.state
            advance(self.state, delta, self.catalog)
            self._unlocked.extend(update_achievements(self.state, self.catalog))
        self._notify()
        return self.state

    def step(self, seconds: float) -> GameState:
        """Manual tick by ``seconds`` on top of the real-time clock."""
        with self._lock:
            self._catch_up()
            advance(self.state, seconds, self.catalog)
            self._unlocked.extend(update_achievements(self.state, self.catalog))
        self._notify()
        return self.state

    def run(self, stop: threading.Event, interval: float = 1.0):
        """Update every ``interval`` seconds until ``stop`` is set."""
        while not stop.wait(interval):
            self.update()

    def set_speed(self, multiplier: float):
        with self._lock:
            self._catch_up()
            self.state.speed_multiplier = max(0.0, float(multiplier))
        self._notify()

    def set_paused(self, paused: bool):
        with self._lock:
            if paused == self.state.is_paused:
                return
            if paused:
                self._catch_up()
            self.state.is_paused = paused
            # Time spent paused is never applied.
            self._last = self._clock()
        self._notify()

    def pop_unlocked(self) -> List[dict]:
        """Achievements unlocked since the previous call."""
        with self._lock:
            unlocked, self._unlocked = self._unlocked, []
        return unlocked

    def _catch_up(self):
        # Apply time accrued under the old settings before they change.
        now = self._clock()
        if not self.state.is_paused:
            advance(self.state, max(0.0, now - self._last), self.catalog)
        self._last = now

    # ------------------------------------------------------------------
    # Player commands
    # ------------------------------------------------------------------

    def purchase(self, definition_id: str, planet_id: str) -> Union[ClaimStakeInstance, EngineError]:
        with self._lock:
            outcome = purchase_claim_stake(self.state, definition_id, planet_id, self.catalog)
        self._notify()
        return outcome

    def build(self, claim_stake_id: str, building_id: str) -> Optional[EngineError]:
        with self._lock:
            outcome = start_construction(self.state, claim_stake_id, building_id, self.catalog)
        self._notify()
        return outcome if isinstance(outcome, EngineError) else None

    def cancel(self, construction_id: str) -> Optional[EngineError]:
        with self._lock:
            outcome = cancel_construction(self.state, construction_id, self.catalog)
        self._notify()
        return outcome if isinstance(outcome, EngineError) else None

    def resupply(self, claim_stake_id: str) -> Optional[EngineError]:
        with self._lock:
            outcome = resupply_fuel(self.state, claim_stake_id)
        self._notify()
        return outcome if isinstance(outcome, EngineError) else None

    def replace_state(self, state: GameState):
        """Swap in a loaded save."""
        with self._lock:
            self.state = state
            self._last = self._clock()
        self._notify()

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def subscribe(self, callback: Callback):
        self._callbacks.append(callback)

    def unsubscribe(self, callback: Callback):
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify(self):
        for cb in list(self._callbacks):
            try:
                cb(self.state)
            except Exception:
                logger.exception("Simulation callback %r failed", cb)
