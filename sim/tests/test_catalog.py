"""Tests for the game data catalog loader."""

import json
import logging

import pytest
import yaml

from stake_sim.catalog import (
    CatalogError, catalog_from_dict, catalog_summary, list_catalogs, load_catalog,
)

from conftest import EXTRACTOR, HUB


def test_load_sample_catalog(sample_catalog_path):
    catalog = load_catalog(sample_catalog_path)
    assert catalog.starter_hub_id == "cs-central-hub-t1"
    assert catalog_summary(catalog)["claimStakeBuildings"] >= 5
    assert "sample_catalog.json" in list_catalogs()


def test_sample_catalog_fuel_roles(sample_catalog_path):
    catalog = load_catalog(sample_catalog_path)
    assert catalog.buildings["cs-central-hub-t1"].resource_rate["cargo-fuel"] == -0.1
    assert catalog.buildings["cs-power-plant-t1"].resource_rate["cargo-fuel"] == -0.1
    # Declared rates are left alone.
    assert catalog.buildings["cs-iron-extractor-t1"].resource_rate["cargo-fuel"] == -0.05


def test_flat_and_nested_documents_match(catalog_data):
    flat = catalog_from_dict(catalog_data)
    nested = catalog_from_dict({"data": catalog_data})
    assert flat == nested


def test_camel_case_fields_parsed(catalog):
    b = catalog.buildings[EXTRACTOR]
    assert b.resource_extraction_rate == {"cargo-iron": 2.0}
    assert b.required_tags == ["tag-central-hub"]
    assert b.construction_cost == {"cargo-iron": 50.0}
    assert b.needed_crew == 2
    assert b.power == -10


def test_missing_section_raises(catalog_data):
    del catalog_data["planets"]
    with pytest.raises(CatalogError, match="planets"):
        catalog_from_dict(catalog_data)


def test_empty_section_warns(catalog_data, caplog):
    catalog_data["planets"] = {}
    with caplog.at_level(logging.WARNING):
        catalog_from_dict(catalog_data)
    assert "planets" in caplog.text


def test_starter_hub_by_legacy_name(catalog_data, caplog):
    catalog_data["claimStakeBuildings"][HUB]["tags"] = []
    with caplog.at_level(logging.WARNING):
        catalog = catalog_from_dict(catalog_data)
    assert catalog.starter_hub_id == HUB
    assert "tag-starter-hub" in caplog.text


def test_starter_hub_tag_wins_over_name(catalog_data):
    catalog_data["claimStakeBuildings"]["bld-new-hub"] = {
        "name": "Command Center", "tags": ["tag-starter-hub"],
    }
    catalog_data["claimStakeBuildings"][HUB]["tags"] = []
    catalog = catalog_from_dict(catalog_data)
    assert catalog.starter_hub_id == "bld-new-hub"


def test_no_fuel_normalization(fuel_free_catalog):
    assert fuel_free_catalog.buildings[HUB].resource_rate == {}


def test_yaml_catalog(tmp_path, catalog_data):
    path = tmp_path / "catalog.yaml"
    path.write_text(yaml.safe_dump(catalog_data))
    catalog = load_catalog(path)
    assert catalog.starter_hub_id == HUB


def test_bad_documents(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_catalog(tmp_path / "missing.json")

    path = tmp_path / "list.json"
    path.write_text(json.dumps([1, 2, 3]))
    with pytest.raises(CatalogError):
        load_catalog(path)
