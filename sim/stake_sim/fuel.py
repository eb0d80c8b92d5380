"""
Claim Stake Simulator - Fuel / Power Subsystem
================================================
Fuel is an ordinary resource on the stake ledger, drained through the
same resourceRate path as everything else and advanced only by the tick.
This module derives the stake's operational status from it.

A stake whose buildings burn fuel and whose tank is empty shuts down:
none of its buildings produce or consume until it is resupplied.
"""

from typing import Dict, Optional

from stake_sim.constants import EPSILON, FUEL_RESOURCE
from stake_sim.models import ClaimStakeInstance


def fuel_rate(rates: Dict[str, float]) -> float:
    return rates.get(FUEL_RESOURCE, 0.0)


def fuel_amount(stake: ClaimStakeInstance) -> float:
    return stake.resources.get(FUEL_RESOURCE, 0.0)


def fuel_status(stake: ClaimStakeInstance) -> float:
    """Tank level as a percentage of the tier capacity (0-100)."""
    capacity = stake.fuel_capacity
    if capacity <= 0:
        return 0.0
    return min(100.0, max(0.0, fuel_amount(stake) / capacity * 100.0))


def is_operational(stake: ClaimStakeInstance, rates: Dict[str, float]) -> bool:
    """False when the stake burns fuel and has none left.

    ``rates`` are the stake's full computed rates, not the effective ones.
    """
    return not (fuel_rate(rates) < 0 and fuel_amount(stake) <= EPSILON)


def effective_rates(stake: ClaimStakeInstance, rates: Dict[str, float]) -> Dict[str, float]:
    if is_operational(stake, rates):
        return dict(rates)
    return {}


def time_to_empty(stake: ClaimStakeInstance, rates: Dict[str, float]) -> Optional[float]:
    """Simulated seconds until the tank runs dry at the current rates.

    None when the stake is not burning fuel or is already shut down.
    """
    rate = fuel_rate(rates)
    amount = fuel_amount(stake)
    if rate >= 0 or amount <= EPSILON:
        return None
    return amount / -rate


def fuel_report(stake: ClaimStakeInstance, rates: Dict[str, float]) -> dict:
    return {
        "fuel": fuel_amount(stake),
        "capacity": stake.fuel_capacity,
        "status": fuel_status(stake),
        "rate": fuel_rate(rates),
        "seconds_remaining": time_to_empty(stake, rates),
        "operational": is_operational(stake, rates),
    }
