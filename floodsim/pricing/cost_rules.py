# floodsim/pricing/cost_rules.py
"""
Ordered keyword rules that map free-text recommendations onto the cost catalog.

Both tables are evaluated first-match-wins, so order is part of the contract:
maintenance directives first, whole-structure elevation next (it outranks any
fixture named in the same sentence), then fixtures and materials, and the
catch-all planning keywords last.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple
import re

from floodsim.reference.catalogs import CostCatalog

# --- outcome ------------------------------------------------------------------

CATALOG = "catalog"            # priced from a catalog midpoint
ESTIMATE = "estimate"          # flat manual estimate, no catalog entry
ACKNOWLEDGED = "acknowledged"  # planning / maintenance, no capital cost
MISSING = "missing"            # rule matched but its catalog entry is absent
UNMATCHED = "unmatched"


@dataclass(frozen=True)
class RuleOutcome:
    rule: str
    label: str
    status: str
    cost: float = 0.0
    detail: str = ""


def usd(amount: float) -> str:
    return f"${amount:,.0f}"


def unit_price(amount: float) -> str:
    """Like usd(), but keeps cents on fractional unit prices ($2.50 per sq ft)."""
    return usd(amount) if float(amount).is_integer() else f"${amount:,.2f}"


# --- keyword sets ---------------------------------------------------------------

def _rx(*patterns: str) -> Tuple[re.Pattern, ...]:
    return tuple(re.compile(p, re.I) for p in patterns)


PLANNING_DIRECTIVE = _rx(
    r"^(?:(?:regularly|periodically|annually|routinely|continue to)\s+)?"
    r"(?:inspect|monitor|review|schedule|maintain|coordinate)\b",
)
MECHANICAL = _rx(
    r"\bhvac\b",
    r"\bmechanicals?\b",
    r"\belectrical\s+(?:panels?|systems?|service|equipment)\b",
    r"\bwater\s+heaters?\b",
    r"\b(?:furnaces?|air\s+handlers?|condensers?|utilit(?:y|ies)|appliances)\b",
)
FLOOD_VENTS = _rx(
    r"\b(?:flood|foundation|engineered|automatic|hydrostatic)\s+vents?\b",
    r"\bflood\s+openings?\b",
)
BREAKAWAY_WALLS = _rx(r"\bbreak-?away\s+(?:walls?|panels?|enclosures?)\b")
PILINGS = _rx(r"\bpilings?\b", r"\bpile\s+foundations?\b")
AMPHIBIOUS = _rx(r"\bamphibious\b", r"\bbuoyant\s+foundations?\b")
PIERS = _rx(r"\bpiers?\b", r"\bcolumns?\b", r"\bstilts\b")
_MECHANICAL_OBJECT = (
    r"(?:(?:the|all|your|its|any)\s+)?"
    r"(?:hvac|mechanical|electrical|water\s+heater|furnace|air\s+handler|condenser|utilit|appliance|outlet)"
)
STRUCTURE_ELEVATION = _rx(
    # "elevate the HVAC above the first floor" is a mechanical job
    r"\b(?:elevat\w*|rais(?:e|es|ing))\b(?!\s+" + _MECHANICAL_OBJECT + r")"
    r"[^.]*?\b(?:building|house|home|structure|foundation|first\s+floor"
    r"|lowest\s+floor|finished\s+floor|living\s+space|residence|slab|piers?|columns?|stilts)\b",
    r"\b(?:building|house|home|structure|foundation|floor)(?:'s)?\s+(?:\w+\s+){0,2}?(?<!flood\s)elevation\b",
    r"\bfreeboard\b",
)
BACKFLOW = _rx(r"\bback-?flow\b", r"\bcheck\s+valves?\b", r"\bsewer\s+(?:backup\s+)?valves?\b")
SUMP_PUMP = _rx(r"\bsump(?:\s+pumps?)?\b")
DRYWALL = _rx(
    r"\bdry-?wall\b", r"\bgypsum\b", r"\bcladding\b", r"\bsiding\b",
    r"\bwall\s?board\b", r"\bpaneling\b", r"\bcement\s+board\b",
)
INSULATION = _rx(r"\binsulation\b", r"\bspray[- ]foam\b", r"\bclosed-cell\b")
CORROSION = _rx(
    r"\bcorrosion\b", r"\bstainless\b", r"\bgalvani[sz]ed\b",
    r"\brust-?(?:proof|resistant)\b", r"\bmarine-grade\b",
)
LANDSCAPE = _rx(
    r"\blandscap\w*\b", r"\bre-?grad\w*\b", r"\bgrading\b", r"\bfrench\s+drains?\b",
    r"\b(?:bio)?swales?\b", r"\brain\s+gardens?\b", r"\bpermeable\b", r"\bdrainage\b",
    r"\bretention\b", r"\bgreen\s+roofs?\b",
)
BARRIERS = _rx(
    r"\b(?:flood|deployable|removable|temporary|portable|inflatable|water)\s+(?:flood\s+)?barriers?\b",
    r"\bflood\s?walls?\b", r"\bflood\s+(?:shields?|gates?|panels?)\b",
    r"\bsandbags?\b", r"\bdry\s+flood-?proof\w*\b", r"\blevees?\b",
)
SEALS = _rx(
    r"\bseal\w*\b", r"\bgaskets?\b", r"\bwatertight\s+(?:doors?|windows?)\b",
    r"\bwindows?\b", r"\bdoors?\b", r"\bshutters?\b",
)
ROOF = _rx(r"\broof\w*\b", r"\bhurricane\s+(?:straps?|clips?|ties?)\b", r"\btie-?downs?\b")
SMART_MONITORING = _rx(
    r"\bsmart\b", r"\bsensors?\b", r"\bleak\s+detect\w*\b", r"\bwater\s+(?:alarms?|detectors?)\b",
    r"\bflood\s+alarms?\b", r"\biot\b", r"\bremote\s+monitoring\b", r"\bautomatic\s+shut-?off\b",
)
BACKUP_POWER = _rx(
    r"\bgenerators?\b", r"\bbackup\s+power\b", r"\bstandby\s+power\b",
    r"\bbattery\s+(?:storage|bank)\b", r"\bsolar\b",
)
PLANNING_KEYWORDS = _rx(
    r"\binspect\w*\b", r"\bmonitor\w*\b", r"\bmaint(?:ain|enance)\w*\b", r"\breview\w*\b",
    r"\bplan(?:s|ning)?\b", r"\bcoordinat\w*\b", r"\bseasonal\w*\b", r"\bevacuat\w*\b",
)


def _any(patterns: Sequence[re.Pattern], text: str) -> bool:
    return any(p.search(text) for p in patterns)


# --- fixed assumptions ---------------------------------------------------------

FLOOD_VENT_QUANTITY = 6        # vents for a typical enclosed crawlspace/garage
MATERIAL_AREA_SQFT = 500       # flood-exposed wall area assumed for material swaps

FLAT_ESTIMATES = {
    "corrosion_resistant": 2_500,
    "landscape_drainage": 8_000,
    "deployable_barrier": 5_000,
    "window_door_seals": 1_500,
    "roof_reinforcement": 12_000,
    "smart_monitoring": 800,
    "backup_power": 6_000,
}


# --- handlers -------------------------------------------------------------------

Handler = Callable[["CostRule", str, CostCatalog], RuleOutcome]


def catalog_item(*needles: str, quantity: int = 1, units: str = "units") -> Handler:
    """Price from the first catalog entry matching `needles`, times a fixed quantity."""

    def handle(rule: "CostRule", text: str, costs: CostCatalog) -> RuleOutcome:
        entry = costs.find(*needles)
        if entry is None:
            return RuleOutcome(rule.name, rule.label, MISSING, 0.0, f"no catalog entry for '{needles[0]}'; {usd(0)}")
        mid = entry.upfront_midpoint
        if quantity > 1:
            cost = mid * quantity
            detail = f"{entry.item}: {quantity} {units} x {unit_price(mid)} = {usd(cost)}"
        else:
            cost = mid
            detail = f"{entry.item}: {usd(cost)}"
        return RuleOutcome(rule.name, rule.label, CATALOG, cost, detail)

    return handle


def catalog_or_flat(flat_cost: float, *needles: str) -> Handler:
    """Catalog midpoint when an entry exists, else a documented flat estimate."""
    priced = catalog_item(*needles) if needles else None

    def handle(rule: "CostRule", text: str, costs: CostCatalog) -> RuleOutcome:
        if priced is not None:
            outcome = priced(rule, text, costs)
            if outcome.status == CATALOG:
                return outcome
        return RuleOutcome(rule.name, rule.label, ESTIMATE, float(flat_cost), f"manual estimate {usd(flat_cost)}")

    return handle


def acknowledge(rule: "CostRule", text: str, costs: CostCatalog) -> RuleOutcome:
    return RuleOutcome(rule.name, rule.label, ACKNOWLEDGED, 0.0, f"planning/maintenance item, no capital cost ({usd(0)})")


# Sub-selection inside the elevation rule, most specific first
ELEVATION_VARIANTS: Tuple[Tuple[Tuple[re.Pattern, ...], Tuple[str, ...]], ...] = (
    (PILINGS, ("Pilings",)),
    (AMPHIBIOUS, ("Amphibious",)),
    (PIERS, ("Slab to Piers", "Piers/Columns")),
)
GENERIC_ELEVATION = ("House Elevation (Adding", "House Elevation")


def elevation_needles(text: str) -> Tuple[str, ...]:
    for patterns, needles in ELEVATION_VARIANTS:
        if _any(patterns, text):
            return needles
    return GENERIC_ELEVATION


def elevation(rule: "CostRule", text: str, costs: CostCatalog) -> RuleOutcome:
    return catalog_item(*elevation_needles(text))(rule, text, costs)


# --- tables ------------------------------------------------------------------

@dataclass(frozen=True)
class CostRule:
    name: str
    label: str
    patterns: Tuple[re.Pattern, ...]
    handler: Handler

    def matches(self, text: str) -> bool:
        return _any(self.patterns, text)

    def apply(self, text: str, costs: CostCatalog) -> RuleOutcome:
        return self.handler(self, text, costs)


COST_RULES: Tuple[CostRule, ...] = (
    CostRule("planning_directive", "Planning & maintenance", PLANNING_DIRECTIVE, acknowledge),
    CostRule("structure_elevation", "Elevation / foundation", PILINGS + AMPHIBIOUS + STRUCTURE_ELEVATION, elevation),
    CostRule("mechanical_elevation", "Elevate mechanical systems", MECHANICAL,
             catalog_item("Electrical Panel/HVAC", "HVAC")),
    CostRule("flood_vents", "Flood vents", FLOOD_VENTS,
             catalog_item("Flood Vents", quantity=FLOOD_VENT_QUANTITY, units="vents")),
    CostRule("breakaway_walls", "Breakaway walls", BREAKAWAY_WALLS, catalog_item("Breakaway Walls")),
    CostRule("backflow_valve", "Backflow valve", BACKFLOW, catalog_item("Backflow Valve")),
    CostRule("sump_pump", "Sump pump", SUMP_PUMP, catalog_item("Sump Pump")),
    CostRule("drywall_cladding", "Flood-resistant drywall/cladding", DRYWALL,
             catalog_item("Flood-Resistant Drywall", quantity=MATERIAL_AREA_SQFT, units="sq ft")),
    CostRule("insulation", "Closed-cell insulation", INSULATION,
             catalog_item("Closed-Cell Spray Foam", quantity=MATERIAL_AREA_SQFT, units="sq ft")),
    CostRule("corrosion_resistant", "Corrosion-resistant materials", CORROSION,
             catalog_or_flat(FLAT_ESTIMATES["corrosion_resistant"], "Connectors")),
    CostRule("landscape_drainage", "Landscape & site drainage", LANDSCAPE,
             catalog_or_flat(FLAT_ESTIMATES["landscape_drainage"], "French Drain", "Graded Landscape")),
    CostRule("deployable_barrier", "Deployable flood barriers", BARRIERS,
             catalog_or_flat(FLAT_ESTIMATES["deployable_barrier"], "Flood Barrier")),
    CostRule("window_door_seals", "Window/door seals", SEALS,
             catalog_or_flat(FLAT_ESTIMATES["window_door_seals"], "Door Seal", "Window Seal")),
    CostRule("roof_reinforcement", "Roof reinforcement", ROOF,
             catalog_or_flat(FLAT_ESTIMATES["roof_reinforcement"], "Roof")),
    CostRule("smart_monitoring", "Smart flood monitoring", SMART_MONITORING,
             catalog_or_flat(FLAT_ESTIMATES["smart_monitoring"], "Flood Sensor", "Monitoring")),
    CostRule("backup_power", "Backup power", BACKUP_POWER,
             catalog_or_flat(FLAT_ESTIMATES["backup_power"], "Generator", "Backup Power")),
    CostRule("planning_keywords", "Planning & maintenance", PLANNING_KEYWORDS, acknowledge),
)


@dataclass(frozen=True)
class InsuranceRule:
    """Keyword set -> catalog entry whose premium-reduction range applies. No needles = no credit."""
    name: str
    patterns: Tuple[re.Pattern, ...]
    needles: Tuple[str, ...] = ()
    resolve: Optional[Callable[[str], Tuple[str, ...]]] = None

    def matches(self, text: str) -> bool:
        return _any(self.patterns, text)

    def targets(self, text: str) -> Tuple[str, ...]:
        return self.resolve(text) if self.resolve else self.needles


INSURANCE_RULES: Tuple[InsuranceRule, ...] = (
    InsuranceRule("planning_directive", PLANNING_DIRECTIVE),
    InsuranceRule("structure_elevation", PILINGS + AMPHIBIOUS + STRUCTURE_ELEVATION, resolve=elevation_needles),
    InsuranceRule("mechanical_elevation", MECHANICAL, ("Electrical Panel/HVAC", "HVAC")),
    InsuranceRule("flood_vents", FLOOD_VENTS, ("Flood Vents",)),
    InsuranceRule("breakaway_walls", BREAKAWAY_WALLS, ("Breakaway Walls",)),
)
