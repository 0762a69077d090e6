# floodsim/simulation/orchestrator.py
from __future__ import annotations
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import uuid

from floodsim.climate.projection import ClimateProjectionResolver
from floodsim.config import get_config
from floodsim.errors import RecommendationGeneratorError
from floodsim.pricing.cost_matcher import RecommendationCostMatcher
from floodsim.recommendations.generator import OpenAIRecommendationGenerator, RecommendationGenerator
from floodsim.reference.catalogs import ReferenceData, get_reference_data
from floodsim.schemas.contracts import BuildingDesign, SimulationResult
from floodsim.scoring.resilience import ResilienceScorer
from floodsim.scoring.timeline import TimelineGenerator, overall_score

FAILED_RECOMMENDATIONS_PREFIX = "Failed to generate AI recommendations"


def _failure_reason(e: Exception) -> str:
    # Provider messages can contain catalog keywords ("plan", "window"...), so only
    # our own error text is echoed; everything else is reduced to its type.
    if isinstance(e, RecommendationGeneratorError):
        return str(e) or type(e).__name__
    return type(e).__name__


def sanitize_recommendations(raw: Any) -> List[str]:
    """Tolerate None, a bare string, non-string items and blank lines."""
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = [raw]
    try:
        items = list(raw)
    except TypeError:
        items = [raw]
    out: List[str] = []
    for it in items:
        if it is None:
            continue
        s = str(it).strip()
        if s:
            out.append(s)
    return out


class SimulationOrchestrator:
    """Runs one design through timeline -> recommendations -> cost-benefit."""

    def __init__(
        self,
        reference: Optional[ReferenceData] = None,
        generator: Optional[RecommendationGenerator] = None,
        config: Optional[Dict[str, Any]] = None,
        current_year: Optional[int] = None,
    ):
        self.config = {**get_config(), **(config or {})}
        self.reference = reference if reference is not None else get_reference_data(self.config.get("data_dir"))
        self.generator = generator if generator is not None else OpenAIRecommendationGenerator(
            model=self.config.get("recommendation_model", "gpt-4o"),
            timeout_s=float(self.config.get("llm_timeout_s", 30.0)),
        )
        self.current_year = current_year

        self.resolver = ClimateProjectionResolver(self.reference.projections)
        self.scorer = ResilienceScorer(self.reference.features)
        self.timeline = TimelineGenerator(
            self.resolver,
            self.scorer,
            include_target_year=bool(self.config.get("include_target_year", True)),
        )
        self.matcher = RecommendationCostMatcher(self.reference.costs)

    def augment(self, design: BuildingDesign) -> BuildingDesign:
        return replace(
            design,
            target_year=int(self.config["target_year"]),
            climate_scenario=str(self.config["climate_scenario"]),
            building_type=str(self.config["building_type"]),
        )

    def _recommendations(self, design, timeline, target_year, scenario) -> List[str]:
        try:
            return sanitize_recommendations(self.generator(design, timeline, target_year, scenario))
        except Exception as e:
            print(f"[SIM] recommendation generator failed, continuing without AI output: {e!r}")
            return [f"{FAILED_RECOMMENDATIONS_PREFIX} ({_failure_reason(e)})."]

    def run(self, design: BuildingDesign) -> SimulationResult:
        run_id = str(uuid.uuid4())
        current_year = self.current_year if self.current_year is not None else datetime.now().year
        complete = self.augment(design)
        target_year = complete.target_year
        scenario = complete.climate_scenario

        timeline = self.timeline.generate(complete, target_year, scenario, current_year=current_year)
        recommendations = self._recommendations(complete, timeline, target_year, scenario)
        report = self.matcher.analyze(recommendations, timeline, target_year, current_year=current_year)

        return SimulationResult(
            id=run_id,
            building_design=complete,
            overall_resilience_score=overall_score(timeline, target_year),
            performance_timeline=timeline,
            adaptive_recommendations=recommendations,
            cost_benefit_analysis=report,
            timestamp=datetime.now(timezone.utc),
        )


def run_simulation(design: BuildingDesign, **kwargs) -> SimulationResult:
    return SimulationOrchestrator(**kwargs).run(design)
