"""Shared test fixtures for the claim stake simulator test suite."""

import copy
import sys
from pathlib import Path

import pytest

# Ensure sim/ is on the path so `stake_sim` imports work
SIM_ROOT = Path(__file__).parent.parent
if str(SIM_ROOT) not in sys.path:
    sys.path.insert(0, str(SIM_ROOT))

from stake_sim.catalog import catalog_from_dict
from stake_sim.lifecycle import purchase_claim_stake
from stake_sim.models import GameState

HUB = "cs-central-hub-t1"
EXTRACTOR = "bld-iron-extractor"
SMELTER = "bld-smelter"
PROCESSING_HUB = "bld-processing-hub"
INSTANT = "bld-instant"

STAKE_DEF = "csd-t1"
PLANET = "planet-a"


CATALOG_DATA = {
    "claimStakeDefinitions": {
        STAKE_DEF: {"name": "Claim Stake T1", "tier": 1, "slots": 10, "addedTags": ["tier-1"]},
        "csd-t2": {"name": "Claim Stake T2", "tier": 2, "slots": 20, "addedTags": ["tier-1", "tier-2"]},
    },
    "claimStakeBuildings": {
        HUB: {
            "name": "Central Hub T1",
            "tags": ["tag-starter-hub"],
            "addedTags": ["tag-central-hub"],
            "power": 100,
            "crewSlots": 10,
            "storage": 1000,
        },
        EXTRACTOR: {
            "name": "Iron Extractor",
            "requiredTags": ["tag-central-hub"],
            "addedTags": ["tag-iron"],
            "resourceExtractionRate": {"cargo-iron": 2},
            "constructionCost": {"cargo-iron": 50},
            "constructionTime": 5,
            "power": -10,
            "neededCrew": 2,
        },
        PROCESSING_HUB: {
            "name": "Processing Hub",
            "addedTags": ["tag-processing-hub"],
            "constructionCost": {"cargo-iron": 20},
            "constructionTime": 5,
            "power": -20,
            "crewSlots": 5,
            "neededCrew": 1,
            "storage": 500,
        },
        SMELTER: {
            "name": "Smelter",
            "requiredTags": ["tag-processing-hub"],
            "resourceRate": {"cargo-iron": -3, "cargo-steel": 1},
            "constructionCost": {"cargo-iron": 10},
            "constructionTime": 10,
        },
        INSTANT: {
            "name": "Beacon",
            "constructionTime": 0,
        },
    },
    "planetArchetypes": {
        "arch-rocky": {"name": "Rocky", "tags": ["terrestrial"], "richness": {"cargo-iron": 1.0}},
        "arch-rich": {"name": "Rich", "tags": ["terrestrial", "rich"], "richness": {"cargo-iron": 2.5}},
    },
    "planets": {
        PLANET: {"name": "Alpha", "planetArchetype": "arch-rocky"},
        "planet-b": {"name": "Beta", "planetArchetype": "arch-rich"},
    },
}


@pytest.fixture
def catalog_data():
    """A fresh copy of the in-memory catalog document."""
    return copy.deepcopy(CATALOG_DATA)


@pytest.fixture
def catalog(catalog_data):
    """Catalog with fuel normalization: the hub burns 0.1 fuel/s."""
    return catalog_from_dict(catalog_data)


@pytest.fixture
def fuel_free_catalog(catalog_data):
    """Same catalog without any fuel drain."""
    return catalog_from_dict(catalog_data, normalize_fuel=False)


@pytest.fixture
def state():
    return GameState()


@pytest.fixture
def stake(state, catalog):
    """A tier-1 stake on planet-a, owned by `state`."""
    return purchase_claim_stake(state, STAKE_DEF, PLANET, catalog)


@pytest.fixture
def sample_catalog_path():
    return SIM_ROOT / "data" / "catalogs" / "sample_catalog.json"


@pytest.fixture
def sample_scenario_path():
    return SIM_ROOT / "data" / "scenarios" / "iron_start.yaml"


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
