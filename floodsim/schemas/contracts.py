# floodsim/schemas/contracts.py
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, Dict, Any, List, Tuple, Iterable
from datetime import datetime, timezone


# --- Reference catalogs -------------------------------------------------------

class FeatureCategory(str, Enum):
    FOUNDATION = "Foundation"
    MATERIALS = "Materials"
    MITIGATION = "Mitigation"
    SITE_DRAINAGE = "Site Drainage"


@dataclass(frozen=True)
class ClimateProjection:
    year: int
    scenario: str
    projected_rise_inches: float          # relative sea-level rise incl. subsidence
    flood_frequency_multiplier: float = 1.0
    notes: str = ""


@dataclass(frozen=True)
class ResilienceFeature:
    feature_name: str                     # catalog key, matched exactly
    category: FeatureCategory
    score_impact: int                     # signed points


@dataclass(frozen=True)
class CostItem:
    item: str                             # description doubles as lookup key
    upfront_cost_min: float = 0.0
    upfront_cost_max: float = 0.0
    annual_insurance_reduction_pct_min: float = 0.0   # fraction, 0.30 == 30%
    annual_insurance_reduction_pct_max: float = 0.0
    avoided_damage_per_event_min: float = 0.0
    avoided_damage_per_event_max: float = 0.0
    unit: Optional[str] = None

    @property
    def upfront_midpoint(self) -> float:
        return (self.upfront_cost_min + self.upfront_cost_max) / 2

    @property
    def insurance_reduction_midpoint(self) -> float:
        return (self.annual_insurance_reduction_pct_min + self.annual_insurance_reduction_pct_max) / 2

    @property
    def avoided_damage_midpoint(self) -> float:
        return (self.avoided_damage_per_event_min + self.avoided_damage_per_event_max) / 2

    @property
    def carries_insurance_reduction(self) -> bool:
        return self.annual_insurance_reduction_pct_max > 0


# --- Per-run values -----------------------------------------------------------

def _unique(values: Iterable[str]) -> Tuple[str, ...]:
    seen = set()
    out = []
    for v in values:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return tuple(out)


@dataclass(frozen=True)
class BuildingDesign:
    """
    A validated design. `materials` and `mitigation_features` are sets of catalog
    keys; duplicates collapse, first-seen order is kept for readable output.
    The last three fields are filled by the orchestrator from config.
    """
    foundation_type: str
    elevation_height: float               # lowest floor, feet above datum
    materials: Tuple[str, ...]
    mitigation_features: Tuple[str, ...]
    target_year: Optional[int] = None
    climate_scenario: Optional[str] = None
    building_type: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "materials", _unique(self.materials))
        object.__setattr__(self, "mitigation_features", _unique(self.mitigation_features))

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["materials"] = list(self.materials)
        d["mitigation_features"] = list(self.mitigation_features)
        return d


@dataclass(frozen=True)
class TimelineEntry:
    year: int
    projected_flood_level_feet: float     # rounded to 2 dp
    resilience_score: int                 # 0..100
    flood_depth_inches: float             # rounded to 2 dp, >= 0


@dataclass
class CostBenefitReport:
    upfront_cost_estimate: float
    long_term_savings_estimate: float
    roi_description: str
    upfront_cost_breakdown: List[str] = field(default_factory=list)
    long_term_savings_breakdown: List[str] = field(default_factory=list)


@dataclass
class SimulationResult:
    id: str
    building_design: BuildingDesign
    overall_resilience_score: int
    performance_timeline: List[TimelineEntry]
    adaptive_recommendations: List[str]
    cost_benefit_analysis: CostBenefitReport
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready mapping (timestamp as ISO-8601 UTC with 'Z')."""
        ts = self.timestamp.astimezone(timezone.utc).replace(tzinfo=None)
        return {
            "id": self.id,
            "building_design": self.building_design.to_dict(),
            "overall_resilience_score": self.overall_resilience_score,
            "performance_timeline": [asdict(e) for e in self.performance_timeline],
            "adaptive_recommendations": list(self.adaptive_recommendations),
            "cost_benefit_analysis": asdict(self.cost_benefit_analysis),
            "timestamp": ts.isoformat() + "Z",
        }
