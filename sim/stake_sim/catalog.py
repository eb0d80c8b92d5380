"""
Claim Stake Simulator - Game Data Catalog
===========================================
Loads the static game data document (JSON or YAML) into read-only
catalog dataclasses. Starter hub lookup and fuel-rate normalization
happen here, once, so the engine never has to match names at runtime.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from stake_sim.constants import (
    FUEL_RESOURCE, FUEL_ROLE_DRAIN, LEGACY_STARTER_HUB_NAME,
    REQUIRED_SECTIONS, STARTER_HUB_TAG,
)
from stake_sim.models import (
    BuildingDef, ClaimStakeDef, GameCatalog, Planet, PlanetArchetype,
)

logger = logging.getLogger(__name__)

CATALOGS_DIR = Path(__file__).parent.parent / "data" / "catalogs"


class CatalogError(ValueError):
    """Raised when a game data document is structurally unusable."""


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_catalog(filepath, normalize_fuel: bool = True) -> GameCatalog:
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Catalog not found: {path}")

    with open(path, "r") as f:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if not isinstance(data, dict):
        raise CatalogError(f"{path.name}: top level must be a mapping")

    catalog = catalog_from_dict(data, normalize_fuel=normalize_fuel)
    logger.info("Loaded catalog %s: %s", path.name, catalog_summary(catalog))
    return catalog


def catalog_from_dict(data: dict, normalize_fuel: bool = True) -> GameCatalog:
    """Build a GameCatalog from a parsed document.

    Accepts the flat layout and the exported layout that nests every table
    under a top-level ``data`` key.
    """
    actual = data.get("data", data) if isinstance(data.get("data"), dict) else data

    missing = [s for s in REQUIRED_SECTIONS if not isinstance(actual.get(s), dict)]
    if missing:
        raise CatalogError(f"Missing required sections: {', '.join(missing)}")

    for section in REQUIRED_SECTIONS:
        if not actual[section]:
            logger.warning("Catalog section '%s' is empty", section)

    catalog = GameCatalog(
        claim_stake_definitions={
            key: _parse_claim_stake_def(key, raw)
            for key, raw in actual["claimStakeDefinitions"].items()
        },
        buildings={
            key: _parse_building(key, raw)
            for key, raw in actual["claimStakeBuildings"].items()
        },
        planet_archetypes={
            key: _parse_archetype(key, raw)
            for key, raw in actual["planetArchetypes"].items()
        },
        planets={
            key: Planet(
                id=key,
                name=raw.get("name", key),
                planet_archetype=raw.get("planetArchetype", ""),
            )
            for key, raw in actual["planets"].items()
        },
    )

    catalog.starter_hub_id = resolve_starter_hub(catalog.buildings)
    if catalog.starter_hub_id is None:
        logger.warning("Catalog defines no starter hub; claim stakes cannot be created")

    if normalize_fuel:
        normalized = normalize_fuel_rates(catalog)
        if normalized:
            logger.info("Injected fuel drain into %d building(s): %s",
                        len(normalized), ", ".join(normalized))

    return catalog


def _parse_building(key: str, raw: dict) -> BuildingDef:
    return BuildingDef(
        id=key,
        name=raw.get("name", key),
        resource_rate=_float_map(raw.get("resourceRate")),
        resource_extraction_rate=_float_map(raw.get("resourceExtractionRate")),
        required_tags=list(raw.get("requiredTags") or []),
        added_tags=list(raw.get("addedTags") or []),
        construction_cost=_float_map(raw.get("constructionCost")),
        construction_time=float(raw.get("constructionTime") or 0),
        power=float(raw.get("power") or 0),
        crew_slots=int(raw.get("crewSlots") or 0),
        needed_crew=int(raw.get("neededCrew") or 0),
        storage=float(raw.get("storage") or 0),
        slots=int(raw.get("slots") or 0),
        tier=int(raw.get("tier") or 1),
        capability_tags=list(raw.get("tags") or []),
    )


def _parse_claim_stake_def(key: str, raw: dict) -> ClaimStakeDef:
    return ClaimStakeDef(
        id=key,
        name=raw.get("name", key),
        tier=int(raw.get("tier") or 1),
        slots=int(raw.get("slots") or 0),
        rent_multiplier=float(raw.get("rentMultiplier") or 1.0),
        placement_fee_multiplier=float(raw.get("placementFeeMultiplier") or 1.0),
        added_tags=list(raw.get("addedTags") or []),
        required_tags=list(raw.get("requiredTags") or []),
    )


def _parse_archetype(key: str, raw: dict) -> PlanetArchetype:
    return PlanetArchetype(
        id=key,
        name=raw.get("name", key),
        tags=list(raw.get("tags") or []),
        richness=_float_map(raw.get("richness")),
    )


def _float_map(raw: Optional[dict]) -> Dict[str, float]:
    if not raw:
        return {}
    return {str(k): float(v) for k, v in raw.items()}


# ---------------------------------------------------------------------------
# Load-time resolution
# ---------------------------------------------------------------------------

def resolve_starter_hub(buildings: Dict[str, BuildingDef]) -> Optional[str]:
    """Find the building every new claim stake starts with.

    The capability tag wins; the legacy display name is only a fallback for
    older data exports that predate the tag.
    """
    for key in sorted(buildings):
        if STARTER_HUB_TAG in buildings[key].capability_tags:
            return key

    for key in sorted(buildings):
        if buildings[key].name == LEGACY_STARTER_HUB_NAME:
            logger.warning("Starter hub resolved by name '%s'; tag the building with %s",
                           LEGACY_STARTER_HUB_NAME, STARTER_HUB_TAG)
            return key
    return None


def normalize_fuel_rates(catalog: GameCatalog) -> List[str]:
    """Declare fuel drain on fuel-burning roles that do not declare it.

    Fuel then flows through resourceRate like every other resource.
    Returns the ids of the buildings that were changed.
    """
    changed = []
    for key in sorted(catalog.buildings):
        building = catalog.buildings[key]
        if FUEL_RESOURCE in building.resource_rate:
            continue
        for role, drain in FUEL_ROLE_DRAIN.items():
            if role in key:
                building.resource_rate[FUEL_RESOURCE] = -drain
                changed.append(key)
                break
    return changed


# ---------------------------------------------------------------------------
# Info
# ---------------------------------------------------------------------------

def catalog_summary(catalog: GameCatalog) -> Dict[str, int]:
    return {
        "claimStakeDefinitions": len(catalog.claim_stake_definitions),
        "claimStakeBuildings": len(catalog.buildings),
        "planetArchetypes": len(catalog.planet_archetypes),
        "planets": len(catalog.planets),
    }


def list_catalogs() -> List[str]:
    if not CATALOGS_DIR.exists():
        return []
    return sorted(p.name for p in CATALOGS_DIR.iterdir()
                  if p.suffix in (".json", ".yaml", ".yml"))
