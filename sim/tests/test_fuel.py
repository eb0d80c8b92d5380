"""Tests for fuel status and operational gating."""

import pytest

from stake_sim.fuel import (
    effective_rates, fuel_report, fuel_status, is_operational, time_to_empty,
)
from stake_sim.rates import compute_resource_rates


def test_fuel_status_percentage(stake):
    stake.resources["cargo-fuel"] = 250
    assert fuel_status(stake) == pytest.approx(25.0)


def test_time_to_empty(stake, catalog):
    rates = compute_resource_rates(stake, catalog)
    assert time_to_empty(stake, rates) == pytest.approx(10000.0)


def test_time_to_empty_without_burn(stake, fuel_free_catalog):
    rates = compute_resource_rates(stake, fuel_free_catalog)
    assert time_to_empty(stake, rates) is None


def test_empty_tank_shuts_down_burners(stake, catalog):
    stake.resources["cargo-fuel"] = 0
    rates = compute_resource_rates(stake, catalog)
    assert not is_operational(stake, rates)
    assert effective_rates(stake, rates) == {}


def test_empty_tank_is_fine_without_burners(stake, fuel_free_catalog):
    stake.resources["cargo-fuel"] = 0
    rates = compute_resource_rates(stake, fuel_free_catalog)
    assert is_operational(stake, rates)


def test_fuel_report(stake, catalog):
    report = fuel_report(stake, compute_resource_rates(stake, catalog))
    assert report["capacity"] == 1000
    assert report["status"] == pytest.approx(100.0)
    assert report["rate"] == pytest.approx(-0.1)
    assert report["operational"] is True
