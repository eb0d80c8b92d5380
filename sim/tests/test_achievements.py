"""Tests for achievement tracking."""

import pytest

from stake_sim.achievements import (
    ACHIEVEMENTS, achievement_progress, completion_stats, get_achievement, update_achievements,
)
from stake_sim.engine import tick
from stake_sim.lifecycle import purchase_claim_stake

from conftest import EXTRACTOR, PLANET, STAKE_DEF


def test_first_claim_unlocks_once(state, stake, catalog):
    unlocked = update_achievements(state, catalog)
    assert "first-claim" in [a["id"] for a in unlocked]
    assert state.achievements["first-claim"]["completed"]

    assert update_achievements(state, catalog) == []


def test_progress_is_a_percentage(state, stake, catalog):
    stake.buildings[EXTRACTOR] = 1
    tick(state, 250, catalog)
    update_achievements(state, catalog)
    # 500 iron towards 1,000
    assert state.achievements["first-steps"]["progress"] == pytest.approx(50.0)
    assert not state.achievements["first-steps"]["completed"]


def test_completed_stays_completed(state, stake, catalog):
    state.resources["cargo-iron"] = 5000
    update_achievements(state, catalog)
    state.resources["cargo-iron"] = 0
    update_achievements(state, catalog)
    assert state.achievements["first-steps"]["completed"]


def test_planet_diversity_counts_archetypes(state, catalog):
    purchase_claim_stake(state, STAKE_DEF, PLANET, catalog)
    purchase_claim_stake(state, STAKE_DEF, PLANET, catalog)
    purchase_claim_stake(state, STAKE_DEF, "planet-b", catalog)
    # Catalog has two archetypes and both are covered.
    assert achievement_progress(get_achievement("universal-presence"), state, catalog) == 100.0
    assert achievement_progress(get_achievement("planet-explorer"), state, catalog) == \
        pytest.approx(200.0 / 3)


def test_completion_stats(state, stake, catalog):
    update_achievements(state, catalog)
    stats = completion_stats(state)
    assert sum(row["total"] for row in stats.values()) == len(ACHIEVEMENTS)
    assert stats["territorial_expansion"]["completed"] == 1
