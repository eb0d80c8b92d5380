"""
Claim Stake Simulator - Web API
=================================
FastAPI server over one live game session. The session is a
SimulationDriver, so every request first catches the game up with the
real time that passed since the previous one.

Usage:
    python cli.py web [--port 8080] [--catalog FILE]
"""

from dataclasses import replace
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
import uvicorn

from stake_sim.achievements import ACHIEVEMENTS, completion_stats
from stake_sim.catalog import CATALOGS_DIR, catalog_summary, load_catalog
from stake_sim.construction import check_construction, queue_for_stake
from stake_sim.driver import SimulationDriver
from stake_sim.fuel import fuel_report
from stake_sim.io import delete_save, list_saves, load_game, save_game, state_to_dict
from stake_sim.models import EngineError, ErrorKind, GameCatalog, GameState
from stake_sim.rates import compute_resource_rates

DATA_DIR = Path(__file__).parent.parent / "data"
SAVES_DIR = DATA_DIR / "saves"
DEFAULT_CATALOG = CATALOGS_DIR / "sample_catalog.json"

app = FastAPI(title="Claim Stake Simulator")

_session = {"driver": None, "save_dir": str(SAVES_DIR)}


# ---------------------------------------------------------------------------
# Pydantic models for request/response
# ---------------------------------------------------------------------------

class PurchaseRequest(BaseModel):
    definition_id: str
    planet_id: str


class BuildRequest(BaseModel):
    claim_stake_id: str
    building_id: str


class TickRequest(BaseModel):
    seconds: float = 1.0


class SpeedRequest(BaseModel):
    multiplier: float


class PauseRequest(BaseModel):
    paused: bool


class SaveRequest(BaseModel):
    name: str = ""


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

def configure(catalog: GameCatalog, save_dir: Optional[str] = None,
              clock: Optional[Callable[[], float]] = None,
              state: Optional[GameState] = None) -> SimulationDriver:
    """Start a fresh session on ``catalog``."""
    kwargs = {"clock": clock} if clock is not None else {}
    driver = SimulationDriver(state or GameState(), catalog, **kwargs)
    _session["driver"] = driver
    if save_dir is not None:
        _session["save_dir"] = save_dir
    return driver


def _driver() -> SimulationDriver:
    if _session["driver"] is None:
        configure(load_catalog(DEFAULT_CATALOG))
    return _session["driver"]


def _raise_for(error: EngineError):
    status = 404 if error.kind == ErrorKind.NOT_FOUND else 400
    raise HTTPException(status, {
        "kind": error.kind.value,
        "message": error.message,
        "missing_tags": error.missing_tags,
        "shortfall": error.shortfall,
    })


def _state_payload(driver: SimulationDriver) -> dict:
    data = state_to_dict(driver.state)
    data["fuel"] = {
        sid: fuel_report(stake, compute_resource_rates(stake, driver.catalog))
        for sid, stake in driver.state.owned_claim_stakes.items()
    }
    return data


# ---------------------------------------------------------------------------
# Catalog & state
# ---------------------------------------------------------------------------

@app.get("/api/catalog")
def api_catalog():
    catalog = _driver().catalog
    return {
        "summary": catalog_summary(catalog),
        "starter_hub": catalog.starter_hub_id,
        "claim_stakes": [
            {"id": d.id, "name": d.name, "tier": d.tier, "slots": d.slots}
            for d in catalog.claim_stake_definitions.values()
        ],
        "buildings": [
            {"id": b.id, "name": b.name, "construction_time": b.construction_time,
             "construction_cost": b.construction_cost, "required_tags": b.required_tags}
            for b in catalog.buildings.values()
        ],
        "planets": [
            {"id": p.id, "name": p.name, "archetype": p.planet_archetype}
            for p in catalog.planets.values()
        ],
    }


@app.get("/api/state")
def api_state():
    driver = _driver()
    driver.update()
    return _state_payload(driver)


@app.get("/api/achievements")
def api_achievements():
    driver = _driver()
    state = driver.update()
    return {
        "unlocked": driver.pop_unlocked(),
        "achievements": [
            {"id": a.id, "name": a.name, "tier": a.tier, "category": a.category,
             **state.achievements.get(a.id, {"progress": 0.0, "completed": False})}
            for a in ACHIEVEMENTS
        ],
        "stats": completion_stats(state),
    }


# ---------------------------------------------------------------------------
# Claim stakes
# ---------------------------------------------------------------------------

@app.post("/api/stakes")
def api_purchase(req: PurchaseRequest):
    driver = _driver()
    driver.update()
    stake = driver.purchase(req.definition_id, req.planet_id)
    if isinstance(stake, EngineError):
        _raise_for(stake)
    return {"id": stake.id, "name": stake.name}


@app.post("/api/stakes/{claim_stake_id}/resupply")
def api_resupply(claim_stake_id: str):
    driver = _driver()
    driver.update()
    error = driver.resupply(claim_stake_id)
    if error is not None:
        _raise_for(error)
    return _state_payload(driver)


@app.get("/api/stakes/{claim_stake_id}/rates")
def api_rates(claim_stake_id: str, building_id: Optional[str] = None):
    """Current rates, and the rates after one more ``building_id`` if given."""
    driver = _driver()
    stake = driver.state.owned_claim_stakes.get(claim_stake_id)
    if stake is None:
        raise HTTPException(404, f"Claim stake not found: {claim_stake_id}")
    current = compute_resource_rates(stake, driver.catalog)
    out = {"current": current}
    if building_id:
        if building_id not in driver.catalog.buildings:
            raise HTTPException(404, f"Building not found: {building_id}")
        preview = replace(stake, buildings=dict(stake.buildings))
        preview.buildings[building_id] = preview.buildings.get(building_id, 0) + 1
        out["preview"] = compute_resource_rates(preview, driver.catalog)
    return out


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

@app.get("/api/construction/check")
def api_check(claim_stake_id: str, building_id: str):
    driver = _driver()
    driver.update()
    result = check_construction(driver.state, claim_stake_id, building_id, driver.catalog)
    return {
        "can_construct": result.can_construct,
        "issues": result.issues,
        "missing_tags": result.missing_tags,
        "resources": [
            {"resource": r.resource_id, "required": r.required,
             "available": r.available, "sufficient": r.sufficient}
            for r in result.resource_requirements
        ],
        "crew": {"required": result.crew_requirement, "available": result.crew_available},
        "power": {"required": result.power_requirement, "available": result.power_available},
    }


@app.post("/api/construction")
def api_build(req: BuildRequest):
    driver = _driver()
    driver.update()
    error = driver.build(req.claim_stake_id, req.building_id)
    if error is not None:
        _raise_for(error)
    queue = queue_for_stake(driver.state, req.claim_stake_id)
    return {"queue": [{"id": i.id, "building_id": i.building_id,
                       "time_remaining": i.time_remaining} for i in queue]}


@app.delete("/api/construction/{construction_id}")
def api_cancel(construction_id: str):
    driver = _driver()
    driver.update()
    error = driver.cancel(construction_id)
    if error is not None:
        _raise_for(error)
    return _state_payload(driver)


# ---------------------------------------------------------------------------
# Time controls
# ---------------------------------------------------------------------------

@app.post("/api/tick")
def api_tick(req: TickRequest):
    if req.seconds < 0:
        raise HTTPException(400, "seconds must be >= 0")
    driver = _driver()
    driver.step(req.seconds)
    return _state_payload(driver)


@app.post("/api/speed")
def api_speed(req: SpeedRequest):
    if req.multiplier < 0:
        raise HTTPException(400, "multiplier must be >= 0")
    driver = _driver()
    driver.set_speed(req.multiplier)
    return {"speed_multiplier": driver.state.speed_multiplier}


@app.post("/api/pause")
def api_pause(req: PauseRequest):
    driver = _driver()
    driver.set_paused(req.paused)
    return {"is_paused": driver.state.is_paused}


# ---------------------------------------------------------------------------
# Saves
# ---------------------------------------------------------------------------

@app.get("/api/saves")
def api_saves():
    return list_saves(_session["save_dir"])


@app.post("/api/saves")
def api_save(req: SaveRequest):
    driver = _driver()
    driver.update()
    save_id = save_game(driver.state, _session["save_dir"], req.name)
    return {"id": save_id}


@app.post("/api/saves/{save_id}/load")
def api_load(save_id: str):
    state = load_game(_session["save_dir"], save_id)
    if state is None:
        raise HTTPException(404, f"Save not found: {save_id}")
    driver = _driver()
    driver.replace_state(state)
    return _state_payload(driver)


@app.delete("/api/saves/{save_id}")
def api_delete_save(save_id: str):
    if not delete_save(_session["save_dir"], save_id):
        raise HTTPException(404, f"Save not found: {save_id}")
    return {"deleted": save_id}


def start_server(port: int = 8080, catalog: Optional[GameCatalog] = None):
    """Start the uvicorn server."""
    if catalog is not None:
        configure(catalog)
    print(f"Starting Claim Stake Simulator at http://localhost:{port}")
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
