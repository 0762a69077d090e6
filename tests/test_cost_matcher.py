import pytest

from floodsim.pricing.cost_matcher import (
    INSURANCE_REDUCTION_CAP,
    NO_COST_MESSAGE,
    RecommendationCostMatcher,
    normalize_text,
)
from floodsim.pricing.cost_rules import ACKNOWLEDGED, CATALOG, ESTIMATE, FLAT_ESTIMATES, MISSING, UNMATCHED
from floodsim.reference.catalogs import parse_costs
from floodsim.schemas.contracts import TimelineEntry

COST_ROWS = [
    {"item": "House Elevation (Slab to Piers/Columns, 8-12 ft)", "upfrontCostMin": 100000, "upfrontCostMax": 200000,
     "annualInsuranceReductionPctMin": 0.40, "annualInsuranceReductionPctMax": 0.60},
    {"item": "House Elevation (Adding 2-4 ft to Existing Raised Foundation)", "upfrontCostMin": 40000,
     "upfrontCostMax": 90000, "annualInsuranceReductionPctMin": 0.20, "annualInsuranceReductionPctMax": 0.35},
    {"item": "Pilings Foundation (New Construction, 10+ ft)", "upfrontCostMin": 60000, "upfrontCostMax": 120000,
     "annualInsuranceReductionPctMin": 0.45, "annualInsuranceReductionPctMax": 0.65},
    {"item": "Add Flood Vents (per vent)", "upfrontCostMin": 300, "upfrontCostMax": 600,
     "annualInsuranceReductionPctMin": 0.05, "annualInsuranceReductionPctMax": 0.15},
    {"item": "Elevated Electrical Panel/HVAC", "upfrontCostMin": 3000, "upfrontCostMax": 8000,
     "annualInsuranceReductionPctMin": 0.02, "annualInsuranceReductionPctMax": 0.05},
    {"item": "Use Flood-Resistant Drywall (per sq ft)", "upfrontCostMin": 2, "upfrontCostMax": 4},
    {"item": "Use Closed-Cell Spray Foam Insulation (per sq ft)", "upfrontCostMin": 1.5, "upfrontCostMax": 3.5},
    {"item": "Backflow Valve Installation", "upfrontCostMin": 1000, "upfrontCostMax": 2500},
    {"item": "Sump Pump with Battery Backup", "upfrontCostMin": 2000, "upfrontCostMax": 4000},
    {"item": "Stainless Steel/Galvanized Connectors Upgrade", "upfrontCostMin": 1500, "upfrontCostMax": 4000},
    {"item": "Standard Slab-on-Grade (Baseline Damage)", "upfrontCostMin": 0, "upfrontCostMax": 0,
     "avoidedDamagePerEventMin": 25000, "avoidedDamagePerEventMax": 75000},
]


def _matcher(rows=COST_ROWS):
    return RecommendationCostMatcher(parse_costs(rows))


def _timeline(depths):
    return [TimelineEntry(2025 + 5 * i, 1.0, 50, d) for i, d in enumerate(depths)]


def test_sump_pump_priced_at_midpoint():
    report = _matcher().analyze(["Install a sump pump"], _timeline([0]), 2055, current_year=2025)
    assert report.upfront_cost_estimate == 3000
    assert len(report.upfront_cost_breakdown) == 1
    assert "Sump pump" in report.upfront_cost_breakdown[0]
    assert "$3,000" in report.upfront_cost_breakdown[0]


def test_flood_vents_use_fixed_quantity():
    out = _matcher().classify("Add **flood vents** to the crawlspace walls")
    assert out.status == CATALOG
    assert out.cost == 6 * 450
    assert "6 vents" in out.detail


def test_drywall_uses_fixed_area():
    out = _matcher().classify("Replace standard drywall with flood-resistant drywall")
    assert out.cost == 500 * 3


@pytest.mark.parametrize("text,item", [
    ("Elevate the house on pilings", "Pilings Foundation"),
    ("Raise the house onto piers", "Slab to Piers"),
    ("Increase your building's elevation height by 3 feet", "Adding 2-4 ft"),
    ("Elevate HVAC unit to 13 feet by 2035.", "Electrical Panel/HVAC"),
])
def test_elevation_variants(text, item):
    out = _matcher().classify(text)
    assert out.status == CATALOG
    assert item in out.detail


def test_first_matching_rule_wins():
    out = _matcher().classify("Install flood vents and a sump pump")
    assert out.rule == "flood_vents"
    assert out.cost == 2700


def test_planning_items_are_acknowledged_at_zero():
    for text in ("Inspect flood vents annually", "Regularly review the evacuation plan"):
        out = _matcher().classify(text)
        assert out.status == ACKNOWLEDGED
        assert out.cost == 0


def test_flat_estimates_when_catalog_has_no_entry():
    barrier = _matcher().classify("Install deployable flood barriers at entry points")
    assert (barrier.status, barrier.cost) == (ESTIMATE, 5000)
    roof = _matcher().classify("Reinforce roof with hurricane straps")
    assert (roof.status, roof.cost) == (ESTIMATE, 12000)
    # catalog price wins over the flat estimate when present
    conn = _matcher().classify("Use stainless steel connectors")
    assert (conn.status, conn.cost) == (CATALOG, 2750)


def test_missing_catalog_entry_is_reported():
    rows = [r for r in COST_ROWS if "Backflow" not in r["item"]]
    out = _matcher(rows).classify("Install a backflow valve on the sewer line")
    assert out.status == MISSING
    assert out.cost == 0
    assert "no catalog entry" in out.detail


def test_unmatched_recommendation_costs_nothing():
    out = _matcher().classify("Paint the fence blue")
    assert out.status == UNMATCHED
    report = _matcher().analyze(["Paint the fence blue"], _timeline([0]), 2055, current_year=2025)
    assert report.upfront_cost_estimate == 0
    assert report.upfront_cost_breakdown == ['"Paint the fence blue" -> no match ($0)']
    assert report.roi_description == NO_COST_MESSAGE


def test_insurance_reduction_is_capped():
    recs = ["Elevate the house on pilings", "Raise the house onto piers", "Install a sump pump"]
    savings, applied, lines = _matcher().insurance_savings(recs, 10)
    assert applied == INSURANCE_REDUCTION_CAP
    assert savings == pytest.approx(3000 * 0.5 * 10)
    assert len(lines) == len(recs) + 1
    assert "no insurance credit" in lines[2]
    assert "capped at 50%" in lines[-1]


def test_insurance_horizon_never_negative():
    savings, _, _ = _matcher().insurance_savings(["Elevate the house on pilings"], -5)
    assert savings == 0


def test_avoided_damage_caps_event_count():
    amount, line = _matcher().avoided_damage(_timeline([0, 2, 4, 6, 8, 10, 12]))
    assert amount == 5 * 50000
    assert "capped at 5" in line
    assert _matcher().avoided_damage(_timeline([0, 0]))[0] == 0


def test_avoided_damage_without_baseline_entry():
    rows = [r for r in COST_ROWS if "Baseline" not in r["item"]]
    amount, line = _matcher(rows).avoided_damage(_timeline([3, 6]))
    assert amount == 0
    assert "no baseline damage entry" in line


def test_roi_descriptions():
    assert RecommendationCostMatcher.roi_description(0, 5000, 2055) == NO_COST_MESSAGE
    gain = RecommendationCostMatcher.roi_description(1000, 4000, 2055)
    assert "net benefit of $3,000" in gain
    loss = RecommendationCostMatcher.roi_description(3000, 0, 2055)
    assert "net cost of $3,000" in loss


def test_analyze_report_shape():
    recs = ["Elevate the house on pilings", "Paint the fence blue"]
    report = _matcher().analyze(recs, _timeline([0, 6, 12]), 2055, current_year=2025)
    assert report.upfront_cost_estimate == 90000
    # 2 flooded points x $50k; pilings 55% capped at 50% x $3,000 x 30 yr
    assert report.long_term_savings_estimate == 100000 + 45000
    assert len(report.upfront_cost_breakdown) == 2
    assert len(report.long_term_savings_breakdown) == 1 + len(recs) + 1
    assert "net benefit of $55,000" in report.roi_description


def test_normalize_text_strips_markup():
    assert normalize_text("<b>Add</b>  **flood   vents**") == "Add flood vents"


LANDSCAPE_ROW = {"item": "Graded Landscape / French Drain System", "upfrontCostMin": 5000, "upfrontCostMax": 15000}


@pytest.mark.parametrize("text,item", [
    ("Elevate the house onto piers and add flood vents to the enclosure below", "Slab to Piers"),
    ("Raise the home 4 feet and relocate the HVAC above the new floor", "Adding 2-4 ft"),
])
def test_structure_elevation_outranks_fixtures_in_same_sentence(text, item):
    m = _matcher()
    out = m.classify(text)
    assert out.rule == "structure_elevation"
    assert item in out.detail
    assert m.insurance_match(text).rule == "structure_elevation"


def test_mechanical_elevation_is_not_a_house_elevation():
    for text in (
        "Elevate the HVAC above the first floor",
        "Elevate HVAC units above the home's base flood elevation",
        "Update the electrical panel by elevating it above the 2055 flood level",
    ):
        out = _matcher().classify(text)
        assert (out.rule, out.cost) == ("mechanical_elevation", 5500), text


@pytest.mark.parametrize("text,rule,cost", [
    ("Establish a French drain system around the foundation", "landscape_drainage", 10000),
    ("Develop a landscape regrading with swales to direct water away from the house", "landscape_drainage", 10000),
    ("Create an emergency plan and install a backflow valve", "backflow_valve", 1750),
    ("Test and install a sump pump with battery backup", "sump_pump", 3000),
])
def test_capital_work_phrased_as_directive_is_priced(text, rule, cost):
    out = _matcher(COST_ROWS + [LANDSCAPE_ROW]).classify(text)
    assert (out.rule, out.cost) == (rule, cost)


@pytest.mark.parametrize("text,rule", [
    ("Use galvanized fasteners on all framing", "corrosion_resistant"),
    ("Regrade the yard with swales", "landscape_drainage"),
    ("Install deployable flood barriers at entry points", "deployable_barrier"),
    ("Add watertight seals to exterior doors", "window_door_seals"),
    ("Reinforce roof with hurricane straps", "roof_reinforcement"),
    ("Install smart water sensors in the basement", "smart_monitoring"),
    ("Install a standby generator", "backup_power"),
])
def test_flat_estimate_per_category(text, rule):
    out = _matcher([]).classify(text)
    assert out.rule == rule
    assert (out.status, out.cost) == (ESTIMATE, FLAT_ESTIMATES[rule])


def test_flat_estimate_constants():
    assert FLAT_ESTIMATES == {
        "corrosion_resistant": 2500,
        "landscape_drainage": 8000,
        "deployable_barrier": 5000,
        "window_door_seals": 1500,
        "roof_reinforcement": 12000,
        "smart_monitoring": 800,
        "backup_power": 6000,
    }


@pytest.mark.parametrize("text", [
    "Annual maintenance of vents is recommended",
    "Prepare a family evacuation plan",
])
def test_planning_keywords_catch_all(text):
    out = _matcher().classify(text)
    assert (out.rule, out.status, out.cost) == ("planning_keywords", ACKNOWLEDGED, 0)


def test_membrane_barriers_are_not_flood_barriers():
    for text in ("Install a vapor barrier beneath the slab", "Add a moisture barrier behind the siding"):
        assert _matcher().classify(text).rule != "deployable_barrier"


def test_unit_price_keeps_cents_in_audit_line():
    out = _matcher().classify("Spray closed-cell foam insulation in the crawlspace")
    assert out.cost == 1250
    assert out.detail.endswith("500 sq ft x $2.50 = $1,250")
    vents = _matcher().classify("Add flood vents to the garage")
    assert "6 vents x $450 = $2,700" in vents.detail
