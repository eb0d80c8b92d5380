"""Tests for scenario YAML, state serialization and the save directory."""

import sys
import tempfile
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from stake_sim.construction import start_construction
from stake_sim.engine import tick
from stake_sim.io import (
    delete_save, list_saves, load_game, load_scenario, save_game, save_preview,
    save_scenario, snapshot_state, state_from_dict, state_to_dict,
)
from stake_sim.models import Scenario, SimConfig, StakePlan

from conftest import EXTRACTOR, PLANET, STAKE_DEF


def test_load_iron_start(sample_scenario_path):
    sc = load_scenario(str(sample_scenario_path))
    assert sc.name == "Iron Start"
    assert sc.config.initial_resources == {"cargo-iron-ore": 100.0}
    assert len(sc.stakes) == 1
    assert sc.stakes[0].build_queue[0] == "cs-iron-extractor-t1"
    # Relative catalog paths resolve against the scenario file.
    assert Path(sc.catalog_path).is_absolute()
    assert Path(sc.catalog_path).exists()


def test_save_and_reload_scenario():
    sc = Scenario(
        name="Round Trip Test",
        config=SimConfig(speed_multiplier=4, auto_resupply=True,
                         initial_resources={"cargo-iron": 25}),
        stakes=[StakePlan(STAKE_DEF, PLANET, [EXTRACTOR, EXTRACTOR])],
    )

    with tempfile.NamedTemporaryFile(suffix=".yaml", delete=False, mode="w") as f:
        tmppath = f.name

    try:
        save_scenario(sc, tmppath)
        loaded = load_scenario(tmppath)
        assert loaded.name == "Round Trip Test"
        assert loaded.config.speed_multiplier == 4
        assert loaded.config.auto_resupply
        assert loaded.config.initial_resources == {"cargo-iron": 25.0}
        assert loaded.stakes[0].build_queue == [EXTRACTOR, EXTRACTOR]
    finally:
        Path(tmppath).unlink(missing_ok=True)


def test_state_survives_serialization(state, stake, catalog):
    state.resources["cargo-iron"] = 80
    start_construction(state, stake.id, EXTRACTOR, catalog)
    tick(state, 2, catalog)
    state.achievements["first-claim"] = {"progress": 100.0, "completed": True, "completed_at": 1.0}

    restored = state_from_dict(state_to_dict(state))

    assert restored.resources == state.resources
    assert restored.elapsed_time == state.elapsed_time
    assert restored.owned_claim_stakes[stake.id].tags == stake.tags
    assert restored.owned_claim_stakes[stake.id].buildings_under_construction == \
        stake.buildings_under_construction
    item_id = next(iter(state.construction_queue))
    assert restored.construction_queue[item_id].time_remaining == pytest.approx(3.0)
    assert restored.achievements == state.achievements


def test_stale_construction_reference_dropped(state, stake):
    data = state_to_dict(state)
    data["ownedClaimStakes"][stake.id]["buildingsUnderConstruction"] = ["construction-gone"]
    restored = state_from_dict(data)
    assert restored.owned_claim_stakes[stake.id].buildings_under_construction == {}


def test_snapshot_is_independent(state, stake):
    copy = snapshot_state(state)
    copy.owned_claim_stakes[stake.id].buildings["x"] = 1
    assert "x" not in stake.buildings


def test_save_preview(state, stake, catalog):
    state.elapsed_time = 3725
    preview = save_preview(state)
    assert preview == {"claimStakes": {"T1": 1}, "buildingCount": 1, "elapsedTime": "01:02:05"}


def test_save_load_list_delete(tmp_path, state, stake):
    state.resources["cargo-iron"] = 12
    save_id = save_game(state, str(tmp_path), "first")

    assert (tmp_path / f"save_{save_id}.json").exists()
    assert state.last_saved is not None

    saves = list_saves(str(tmp_path))
    assert [s["name"] for s in saves] == ["first"]
    assert saves[0]["preview"]["buildingCount"] == 1

    loaded = load_game(str(tmp_path), save_id)
    assert loaded.resources == {"cargo-iron": 12.0}
    assert stake.id in loaded.owned_claim_stakes

    assert delete_save(str(tmp_path), save_id)
    assert list_saves(str(tmp_path)) == []
    assert not (tmp_path / f"save_{save_id}.json").exists()


def test_missing_saves(tmp_path):
    assert load_game(str(tmp_path), "nope") is None
    assert not delete_save(str(tmp_path), "nope")
    assert list_saves(str(tmp_path / "absent")) == []
