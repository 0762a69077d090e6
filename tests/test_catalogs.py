import json

import pytest

from floodsim.errors import ReferenceDataError
from floodsim.reference.catalogs import (
    CostCatalog,
    load_reference_data,
    parse_costs,
    parse_features,
    parse_projections,
)
from floodsim.schemas.contracts import CostItem, FeatureCategory


def test_shipped_reference_data_loads():
    ref = load_reference_data()
    assert len(ref.projections) > 0
    for category in FeatureCategory:
        assert ref.features.names(category), category
    assert ref.costs.find("Baseline Damage") is not None
    assert ref.costs.find("Sump Pump").upfront_midpoint == 3000


def test_duplicate_projection_year_is_rejected():
    rows = [
        {"year": 2030, "scenario": "S", "projectedRelativeSeaLevelRiseInches": 9},
        {"year": 2030, "scenario": "S", "projectedRelativeSeaLevelRiseInches": 10},
    ]
    with pytest.raises(ReferenceDataError, match="duplicate"):
        parse_projections(rows)


def test_schema_violations_are_rejected():
    with pytest.raises(ReferenceDataError):
        parse_features([{"featureName": "Roof", "category": "Roof", "scoreImpact": 3}])
    with pytest.raises(ReferenceDataError):
        parse_costs([{"item": "Vents", "upfrontCostMin": -1, "upfrontCostMax": 5}])
    with pytest.raises(ReferenceDataError):
        parse_projections([{"year": 2030, "scenario": "S"}])


def test_missing_or_broken_files_fail_loading(tmp_path):
    with pytest.raises(ReferenceDataError, match="not found"):
        load_reference_data(tmp_path)

    (tmp_path / "climate_projections.json").write_text("[", encoding="utf-8")
    with pytest.raises(ReferenceDataError):
        load_reference_data(tmp_path)


def test_custom_data_dir(tmp_path):
    (tmp_path / "climate_projections.json").write_text(json.dumps(
        [{"year": 2025, "scenario": "Low", "projectedRelativeSeaLevelRiseInches": 3}]), encoding="utf-8")
    (tmp_path / "resilience_features.json").write_text(json.dumps(
        [{"featureName": "Slab", "category": "Foundation", "scoreImpact": -20}]), encoding="utf-8")
    (tmp_path / "cost_data.json").write_text(json.dumps(
        [{"item": "Sump Pump", "upfrontCostMin": 1, "upfrontCostMax": 3}]), encoding="utf-8")
    ref = load_reference_data(tmp_path)
    assert ref.source_dir == tmp_path
    assert ref.projections[0].flood_frequency_multiplier == 1.0
    assert ref.features.find("Slab", FeatureCategory.FOUNDATION).score_impact == -20
    assert ref.features.find("Slab", FeatureCategory.MATERIALS) is None


def test_cost_find_tries_needles_in_order():
    costs = CostCatalog([
        CostItem("House Elevation (Slab to Piers/Columns)", 1, 3),
        CostItem("House Elevation (Adding 2-4 ft)", 5, 7),
    ])
    assert costs.find("adding", "house elevation").item.startswith("House Elevation (Adding")
    assert costs.find("nothing", "HOUSE ELEVATION").upfront_midpoint == 2
    assert costs.find("nothing") is None


def test_feature_first_entry_wins():
    features = parse_features([
        {"featureName": "Slab", "category": "Foundation", "scoreImpact": -20},
        {"featureName": "Slab", "category": "Foundation", "scoreImpact": 99},
    ])
    assert features.find("Slab", FeatureCategory.FOUNDATION).score_impact == -20
