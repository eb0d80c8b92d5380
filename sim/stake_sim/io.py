"""
Claim Stake Simulator - I/O
=============================
Scenario YAML files, game state serialization and the save directory.
"""

import copy
import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from stake_sim.models import (
    ClaimStakeInstance, ConstructionQueueItem, ConstructionStatus, CrewStats,
    GameState, PowerStats, Scenario, SimConfig, StakePlan, StorageStats,
)

logger = logging.getLogger(__name__)

SAVE_INDEX = "saves_index.json"


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

def load_scenario(filepath: str) -> Scenario:
    with open(filepath, "r") as f:
        data = yaml.safe_load(f) or {}

    catalog_path = data.get("catalog")
    if catalog_path and not Path(catalog_path).is_absolute():
        catalog_path = str((Path(filepath).parent / catalog_path).resolve())

    config = SimConfig(
        speed_multiplier=float(data.get("speed", 1.0)),
        start_paused=bool(data.get("paused", False)),
        auto_resupply=bool(data.get("auto_resupply", False)),
        initial_resources={k: float(v) for k, v in (data.get("resources") or {}).items()},
    )

    sc = Scenario(
        name=data.get("name", Path(filepath).stem),
        description=data.get("description", ""),
        catalog_path=catalog_path,
        config=config,
    )

    for item in data.get("stakes", []):
        sc.stakes.append(StakePlan(
            definition_id=item["definition"],
            planet_instance_id=item["planet"],
            build_queue=list(item.get("build", [])),
        ))
    return sc


def save_scenario(sc: Scenario, filepath: str):
    data = {
        "name": sc.name,
        "description": sc.description,
    }
    if sc.catalog_path:
        data["catalog"] = sc.catalog_path
    data["speed"] = sc.config.speed_multiplier
    if sc.config.start_paused:
        data["paused"] = True
    if sc.config.auto_resupply:
        data["auto_resupply"] = True
    data["resources"] = dict(sc.config.initial_resources)
    data["stakes"] = [
        {"definition": p.definition_id, "planet": p.planet_instance_id, "build": list(p.build_queue)}
        for p in sc.stakes
    ]

    with open(filepath, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# ---------------------------------------------------------------------------
# Game state <-> plain data
# ---------------------------------------------------------------------------

def _stake_to_dict(stake: ClaimStakeInstance) -> dict:
    return {
        "id": stake.id,
        "definitionId": stake.definition_id,
        "planetInstanceId": stake.planet_instance_id,
        "name": stake.name,
        "tier": stake.tier,
        "tags": list(stake.tags),
        "buildings": dict(stake.buildings),
        "resources": dict(stake.resources),
        "resourceRates": dict(stake.resource_rates),
        "storage": {"used": stake.storage.used, "capacity": stake.storage.capacity},
        "crew": {"used": stake.crew.used, "capacity": stake.crew.capacity},
        "power": {"generation": stake.power.generation, "consumption": stake.power.consumption},
        "buildingsUnderConstruction": list(stake.buildings_under_construction),
        "operational": stake.operational,
    }


def _stake_from_dict(d: dict) -> ClaimStakeInstance:
    storage = d.get("storage", {})
    crew = d.get("crew", {})
    power = d.get("power", {})
    return ClaimStakeInstance(
        id=d["id"],
        definition_id=d["definitionId"],
        planet_instance_id=d["planetInstanceId"],
        name=d.get("name", ""),
        tier=int(d.get("tier", 1)),
        tags=sorted(set(d.get("tags", []))),
        buildings={k: int(v) for k, v in d.get("buildings", {}).items()},
        resources={k: float(v) for k, v in d.get("resources", {}).items()},
        resource_rates={k: float(v) for k, v in d.get("resourceRates", {}).items()},
        storage=StorageStats(float(storage.get("used", 0.0)), float(storage.get("capacity", 0.0))),
        crew=CrewStats(int(crew.get("used", 0)), int(crew.get("capacity", 0))),
        power=PowerStats(float(power.get("generation", 0.0)), float(power.get("consumption", 0.0))),
        buildings_under_construction={cid: cid for cid in d.get("buildingsUnderConstruction", [])},
        operational=bool(d.get("operational", True)),
    )


def state_to_dict(state: GameState) -> dict:
    return {
        "ownedClaimStakes": {sid: _stake_to_dict(s) for sid, s in state.owned_claim_stakes.items()},
        "constructionQueue": {
            cid: {
                "id": item.id,
                "claimStakeId": item.claim_stake_id,
                "buildingId": item.building_id,
                "timeRemaining": item.time_remaining,
                "totalTime": item.total_time,
                "status": item.status.value,
            }
            for cid, item in state.construction_queue.items()
        },
        "resources": dict(state.resources),
        "resourceRates": dict(state.resource_rates),
        "elapsedTime": state.elapsed_time,
        "speedMultiplier": state.speed_multiplier,
        "isPaused": state.is_paused,
        "lastSaved": state.last_saved,
        "achievements": copy.deepcopy(state.achievements),
    }


def state_from_dict(data: dict) -> GameState:
    state = GameState(
        resources={k: float(v) for k, v in data.get("resources", {}).items()},
        resource_rates={k: float(v) for k, v in data.get("resourceRates", {}).items()},
        elapsed_time=float(data.get("elapsedTime", 0.0)),
        speed_multiplier=float(data.get("speedMultiplier", 1.0)),
        is_paused=bool(data.get("isPaused", False)),
        last_saved=data.get("lastSaved"),
        achievements=copy.deepcopy(data.get("achievements", {})),
    )
    for sid, sd in data.get("ownedClaimStakes", {}).items():
        state.owned_claim_stakes[sid] = _stake_from_dict(sd)

    for cid, qd in data.get("constructionQueue", {}).items():
        state.construction_queue[cid] = ConstructionQueueItem(
            id=qd.get("id", cid),
            claim_stake_id=qd["claimStakeId"],
            building_id=qd["buildingId"],
            time_remaining=float(qd["timeRemaining"]),
            total_time=float(qd.get("totalTime", qd["timeRemaining"])),
            status=ConstructionStatus(qd.get("status", "pending")),
        )

    # Back-references must point at live queue items.
    for stake in state.owned_claim_stakes.values():
        stale = [cid for cid in stake.buildings_under_construction
                 if cid not in state.construction_queue]
        for cid in stale:
            logger.warning("Dropping stale construction reference %s on %s", cid, stake.id)
            del stake.buildings_under_construction[cid]
    return state


def snapshot_state(state: GameState) -> GameState:
    """Independent copy, used for undo."""
    return copy.deepcopy(state)


# ---------------------------------------------------------------------------
# Save directory
# ---------------------------------------------------------------------------

def _fmt_elapsed(seconds: float) -> str:
    seconds = int(seconds)
    return f"{seconds // 3600:02d}:{seconds % 3600 // 60:02d}:{seconds % 60:02d}"


def save_preview(state: GameState) -> dict:
    by_tier: Dict[str, int] = {}
    for stake in state.owned_claim_stakes.values():
        key = f"T{stake.tier}"
        by_tier[key] = by_tier.get(key, 0) + 1
    return {
        "claimStakes": by_tier,
        "buildingCount": sum(s.building_count for s in state.owned_claim_stakes.values()),
        "elapsedTime": _fmt_elapsed(state.elapsed_time),
    }


def _read_index(save_dir: Path) -> Dict[str, dict]:
    path = save_dir / SAVE_INDEX
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return json.load(f)


def _write_index(save_dir: Path, index: Dict[str, dict]):
    with open(save_dir / SAVE_INDEX, "w") as f:
        json.dump(index, f, indent=2)


def save_game(state: GameState, save_dir: str, name: str = "") -> str:
    """Write the state and update the index. Returns the new save id."""
    directory = Path(save_dir)
    directory.mkdir(parents=True, exist_ok=True)

    save_id = uuid.uuid4().hex
    timestamp = datetime.now(timezone.utc).isoformat()
    state.last_saved = timestamp
    name = name or f"Save {timestamp[:19].replace('T', ' ')}"

    with open(directory / f"save_{save_id}.json", "w") as f:
        json.dump({
            "id": save_id,
            "name": name,
            "timestamp": timestamp,
            "gameState": state_to_dict(state),
        }, f, indent=2)

    index = _read_index(directory)
    index[save_id] = {
        "id": save_id,
        "name": name,
        "timestamp": timestamp,
        "preview": save_preview(state),
    }
    _write_index(directory, index)
    logger.info("Saved game %s (%s)", save_id, name)
    return save_id


def load_game(save_dir: str, save_id: str) -> Optional[GameState]:
    path = Path(save_dir) / f"save_{save_id}.json"
    if not path.exists():
        logger.info("Save %s not found in %s", save_id, save_dir)
        return None
    with open(path, "r") as f:
        data = json.load(f)
    return state_from_dict(data["gameState"])


def list_saves(save_dir: str) -> List[dict]:
    """Index entries, newest first."""
    directory = Path(save_dir)
    if not directory.exists():
        return []
    return sorted(_read_index(directory).values(),
                  key=lambda e: e.get("timestamp", ""), reverse=True)


def delete_save(save_dir: str, save_id: str) -> bool:
    directory = Path(save_dir)
    index = _read_index(directory) if directory.exists() else {}
    if save_id not in index:
        return False
    del index[save_id]
    (directory / f"save_{save_id}.json").unlink(missing_ok=True)
    _write_index(directory, index)
    return True
