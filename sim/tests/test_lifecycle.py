"""Tests for claim stake creation, purchase and resupply."""

from stake_sim.catalog import catalog_from_dict
from stake_sim.lifecycle import (
    create_claim_stake_instance, get_claim_stake, purchase_claim_stake, resupply_fuel,
)
from stake_sim.models import ClaimStakeInstance, ErrorKind

from conftest import HUB, PLANET, STAKE_DEF


def test_new_stake_has_only_the_hub(catalog):
    stake = create_claim_stake_instance(STAKE_DEF, PLANET, catalog)
    assert isinstance(stake, ClaimStakeInstance)
    assert stake.id.startswith("claimStakeInstance-")
    assert stake.buildings == {HUB: 1}
    assert stake.buildings_under_construction == {}
    assert stake.operational


def test_new_stake_tags_are_sorted_union(catalog):
    stake = create_claim_stake_instance(STAKE_DEF, PLANET, catalog)
    assert stake.tags == ["tag-central-hub", "terrestrial", "tier-1"]


def test_new_stake_copies_hub_stats(catalog):
    stake = create_claim_stake_instance(STAKE_DEF, PLANET, catalog)
    assert stake.storage.capacity == 1000
    assert stake.crew.capacity == 10
    assert stake.power.generation == 100
    assert stake.power.consumption == 0


def test_fuel_starts_full_for_tier(catalog):
    t1 = create_claim_stake_instance(STAKE_DEF, PLANET, catalog)
    t2 = create_claim_stake_instance("csd-t2", PLANET, catalog)
    assert t1.resources["cargo-fuel"] == 1000
    assert t2.resources["cargo-fuel"] == 2000
    assert t2.fuel_capacity == 2000


def test_unknown_definition_or_planet(catalog):
    assert create_claim_stake_instance("csd-nope", PLANET, catalog).kind == ErrorKind.NOT_FOUND
    assert create_claim_stake_instance(STAKE_DEF, "planet-nope", catalog).kind == ErrorKind.NOT_FOUND


def test_missing_starter_hub(catalog_data):
    del catalog_data["claimStakeBuildings"][HUB]
    catalog = catalog_from_dict(catalog_data)
    result = create_claim_stake_instance(STAKE_DEF, PLANET, catalog)
    assert result.kind == ErrorKind.NOT_FOUND


def test_purchase_registers_stake(state, catalog):
    stake = purchase_claim_stake(state, STAKE_DEF, PLANET, catalog)
    assert state.owned_claim_stakes == {stake.id: stake}
    assert get_claim_stake(state, stake.id) is stake


def test_failed_purchase_changes_nothing(state, catalog):
    purchase_claim_stake(state, "csd-nope", PLANET, catalog)
    assert state.owned_claim_stakes == {}


def test_get_unknown_stake_is_invalid_state(state):
    assert get_claim_stake(state, "claimStakeInstance-nope").kind == ErrorKind.INVALID_STATE


def test_resupply_fills_to_capacity(state, stake):
    stake.resources["cargo-fuel"] = 0
    stake.operational = False
    resupply_fuel(state, stake.id)
    assert stake.resources["cargo-fuel"] == 1000
    assert stake.operational


def test_resupply_unknown_stake(state):
    assert resupply_fuel(state, "claimStakeInstance-nope").kind == ErrorKind.INVALID_STATE
