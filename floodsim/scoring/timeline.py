# floodsim/scoring/timeline.py
from __future__ import annotations
from datetime import datetime
from typing import List, Optional, Sequence

from floodsim.climate.projection import ClimateProjectionResolver
from floodsim.config import TIMELINE_STEP_YEARS
from floodsim.schemas.contracts import BuildingDesign, TimelineEntry
from floodsim.scoring.resilience import ResilienceScorer


def timeline_years(current_year: int, target_year: int, *, include_target_year: bool = True) -> List[int]:
    years = list(range(current_year, target_year + 1, TIMELINE_STEP_YEARS))
    if include_target_year and current_year <= target_year and years[-1] != target_year:
        years.append(target_year)
    return years


def overall_score(timeline: Sequence[TimelineEntry], target_year: int) -> int:
    """Score at exactly `target_year`; 0 when the timeline never visits it."""
    for entry in timeline:
        if entry.year == target_year:
            return entry.resilience_score
    print(f"[TIMELINE] no entry for target year {target_year}; overall score defaults to 0")
    return 0


class TimelineGenerator:
    def __init__(
        self,
        resolver: ClimateProjectionResolver,
        scorer: ResilienceScorer,
        *,
        include_target_year: bool = True,
    ):
        self.resolver = resolver
        self.scorer = scorer
        self.include_target_year = include_target_year

    def generate(
        self,
        design: BuildingDesign,
        target_year: int,
        scenario: str,
        current_year: Optional[int] = None,
    ) -> List[TimelineEntry]:
        start = current_year if current_year is not None else datetime.now().year
        out: List[TimelineEntry] = []
        for year in timeline_years(start, target_year, include_target_year=self.include_target_year):
            flood_level = self.resolver.resolve(year, scenario)
            result = self.scorer.score(design, flood_level)
            out.append(TimelineEntry(
                year=year,
                projected_flood_level_feet=round(flood_level, 2),
                resilience_score=result.score,
                flood_depth_inches=round(result.flood_depth_inches, 2),
            ))
        return out
