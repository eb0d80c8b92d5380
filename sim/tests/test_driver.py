"""Tests for the real-time driver."""

import logging

import pytest

from stake_sim.driver import SimulationDriver
from stake_sim.models import ErrorKind

from conftest import EXTRACTOR, PLANET, STAKE_DEF


@pytest.fixture
def driver(state, stake, catalog, clock):
    stake.buildings[EXTRACTOR] = 1
    return SimulationDriver(state, catalog, clock=clock)


def test_update_applies_real_elapsed_time(driver, clock):
    clock.advance(10)
    driver.update()
    assert driver.state.elapsed_time == pytest.approx(10.0)
    assert driver.state.resources["cargo-iron"] == pytest.approx(20.0)


def test_paused_time_is_never_applied(driver, clock):
    driver.set_paused(True)
    clock.advance(500)
    driver.update()
    assert driver.state.elapsed_time == 0

    driver.set_paused(False)
    clock.advance(1)
    driver.update()
    assert driver.state.elapsed_time == pytest.approx(1.0)


def test_set_speed_keeps_earlier_time_at_old_speed(driver, clock):
    clock.advance(5)
    driver.set_speed(3)
    clock.advance(5)
    driver.update()
    assert driver.state.elapsed_time == pytest.approx(20.0)


def test_manual_step(driver):
    driver.step(30)
    assert driver.state.elapsed_time == pytest.approx(30.0)


def test_commands_go_through_engine(driver):
    stake = driver.purchase(STAKE_DEF, PLANET)
    assert stake.id in driver.state.owned_claim_stakes

    error = driver.build(stake.id, EXTRACTOR)
    assert error.kind == ErrorKind.INSUFFICIENT_RESOURCES
    assert driver.cancel("construction-nope").kind == ErrorKind.NOT_FOUND
    assert driver.resupply(stake.id) is None


def test_callbacks_are_notified(driver, clock):
    seen = []
    driver.subscribe(lambda s: seen.append(s.elapsed_time))
    clock.advance(2)
    driver.update()
    assert seen == [pytest.approx(2.0)]


def test_failing_callback_is_logged(driver, clock, caplog):
    def broken(_state):
        raise RuntimeError("boom")

    seen = []
    driver.subscribe(broken)
    driver.subscribe(lambda s: seen.append(True))
    clock.advance(1)
    with caplog.at_level(logging.ERROR):
        driver.update()
    assert "callback" in caplog.text
    assert seen == [True]

    driver.unsubscribe(broken)
    driver.update()
    assert seen == [True, True]


def test_unlocked_achievements_drain_on_read(driver, clock):
    clock.advance(1)
    driver.update()
    assert "first-claim" in [a["id"] for a in driver.pop_unlocked()]
    assert driver.pop_unlocked() == []


def test_resuming_a_running_driver_keeps_elapsed_time(driver, clock):
    clock.advance(10)
    driver.set_paused(False)
    driver.update()
    assert driver.state.elapsed_time == pytest.approx(10.0)


def test_pausing_twice_keeps_pause_start(driver, clock):
    clock.advance(4)
    driver.set_paused(True)
    clock.advance(6)
    driver.set_paused(True)
    driver.set_paused(False)
    assert driver.state.elapsed_time == pytest.approx(4.0)
