# floodsim/scoring/resilience.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from floodsim.reference.catalogs import FeatureCatalog
from floodsim.schemas.contracts import BuildingDesign, FeatureCategory

SCORE_MIN = 0
SCORE_MAX = 100

# (minimum elevation difference in ft, points), evaluated top-down
ELEVATION_TIERS: Tuple[Tuple[float, int], ...] = (
    (3.0, 40),
    (1.0, 20),
    (0.0, 0),
    (-3.0, -20),
)
ELEVATION_FLOOR_PENALTY = -50

WET_MATERIAL_MULTIPLIER = 2


def elevation_bonus(elevation_difference: float) -> int:
    """Non-decreasing step function of (lowest floor - flood level)."""
    for threshold, points in ELEVATION_TIERS:
        if elevation_difference >= threshold:
            return points
    return ELEVATION_FLOOR_PENALTY


@dataclass
class ScoreResult:
    score: int
    flood_depth_inches: float
    # (step, key, points) for every contribution, misses recorded with 0
    contributions: List[Tuple[str, str, float]] = field(default_factory=list)
    raw_total: float = 0.0

    def by_step(self) -> Dict[str, float]:
        out: Dict[str, float] = {}
        for step, _key, pts in self.contributions:
            out[step] = out.get(step, 0.0) + pts
        return out


class ResilienceScorer:
    """Pure scoring of one design against one flood level."""

    def __init__(self, features: FeatureCatalog):
        self.features = features

    def score(self, design: BuildingDesign, flood_level_feet: float) -> ScoreResult:
        contributions: List[Tuple[str, str, float]] = []
        total = 0.0

        # 1) Foundation
        foundation = self.features.find(design.foundation_type, FeatureCategory.FOUNDATION)
        pts = foundation.score_impact if foundation else 0
        total += pts
        contributions.append(("foundation", design.foundation_type, pts))

        # 2) Elevation tier
        elevation_difference = design.elevation_height - flood_level_feet
        pts = elevation_bonus(elevation_difference)
        total += pts
        contributions.append(("elevation", f"{elevation_difference:+.2f} ft", pts))

        # 3-4) Depth and material weighting
        flood_depth_inches = abs(elevation_difference) * 12 if elevation_difference < 0 else 0.0
        multiplier = WET_MATERIAL_MULTIPLIER if flood_depth_inches > 0 else 1

        # 5) Materials
        for name in design.materials:
            f = self.features.find(name, FeatureCategory.MATERIALS)
            pts = f.score_impact * multiplier if f else 0
            total += pts
            contributions.append(("materials", name, pts))

        # 6) Mitigation
        for name in design.mitigation_features:
            f = self.features.find(name, FeatureCategory.MITIGATION)
            pts = f.score_impact if f else 0
            total += pts
            contributions.append(("mitigation", name, pts))

        # 7) Site drainage: one credit only, first catalog match
        drainage = self.features.first_selected(design.mitigation_features, FeatureCategory.SITE_DRAINAGE)
        if drainage:
            total += drainage.score_impact
            contributions.append(("site_drainage", drainage.feature_name, drainage.score_impact))

        # 8) Clamp
        score = int(max(SCORE_MIN, min(SCORE_MAX, total)))
        return ScoreResult(
            score=score,
            flood_depth_inches=float(flood_depth_inches),
            contributions=contributions,
            raw_total=total,
        )
