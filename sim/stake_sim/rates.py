"""
Claim Stake Simulator - Resource Rate Calculator
==================================================
Net per-resource rates for a claim stake from its installed buildings.
"""

import logging
from typing import Dict, Iterable

from stake_sim.models import ClaimStakeInstance, GameCatalog

logger = logging.getLogger(__name__)

_reported_missing = set()


def compute_resource_rates(claim_stake: ClaimStakeInstance,
                           catalog: GameCatalog) -> Dict[str, float]:
    """Signed per-second rates for every resource the stake touches.

    resourceRate entries are added as-is (production positive, consumption
    negative). resourceExtractionRate entries are scaled by the planet
    archetype's richness for that resource, 1.0 when the archetype has no
    entry. Buildings missing from the catalog are skipped.

    Pure: never mutates the stake or the catalog.
    """
    archetype = catalog.archetype_for(claim_stake.planet_instance_id)
    if archetype is None:
        _report_missing(f"archetype for planet {claim_stake.planet_instance_id}")
        richness = {}
    else:
        richness = archetype.richness

    rates: Dict[str, float] = {}
    for building_id, count in claim_stake.buildings.items():
        if count <= 0:
            continue
        building = catalog.buildings.get(building_id)
        if building is None:
            _report_missing(f"building {building_id}")
            continue

        for resource_id, rate in building.resource_rate.items():
            rates[resource_id] = rates.get(resource_id, 0.0) + rate * count

        for resource_id, rate in building.resource_extraction_rate.items():
            factor = richness.get(resource_id, 1.0)
            rates[resource_id] = rates.get(resource_id, 0.0) + rate * factor * count

    return rates


def sum_rates(rate_maps: Iterable[Dict[str, float]]) -> Dict[str, float]:
    total: Dict[str, float] = {}
    for rates in rate_maps:
        for resource_id, rate in rates.items():
            total[resource_id] = total.get(resource_id, 0.0) + rate
    return total


def _report_missing(what: str):
    # Warn once per missing id.
    if what in _reported_missing:
        return
    _reported_missing.add(what)
    logger.warning("Catalog has no %s; skipping it in rate calculation", what)
