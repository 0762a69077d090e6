# floodsim/pricing/cost_matcher.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple
import re

from floodsim.pricing.cost_rules import (
    COST_RULES,
    INSURANCE_RULES,
    UNMATCHED,
    CostRule,
    InsuranceRule,
    RuleOutcome,
    usd,
)
from floodsim.reference.catalogs import CostCatalog
from floodsim.schemas.contracts import CostBenefitReport, TimelineEntry

BASELINE_DAMAGE_NEEDLE = "Baseline Damage"
MAX_AVOIDED_EVENTS = 5               # coarse 5-year timeline; don't extrapolate further
INSURANCE_REDUCTION_CAP = 0.50
BASELINE_ANNUAL_PREMIUM = 3000.0     # USD, New Orleans flood policy estimate

NO_COST_MESSAGE = "No significant additional upfront costs estimated for current design with these recommendations."

_MARKUP_RE = re.compile(r"<[^>]+>|\*\*|__|`")
_WS_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Strip HTML/markdown emphasis and collapse whitespace before keyword matching."""
    s = _MARKUP_RE.sub(" ", str(text or ""))
    return _WS_RE.sub(" ", s).strip()


def excerpt(text: str, limit: int = 80) -> str:
    s = normalize_text(text)
    return s if len(s) <= limit else s[: limit - 3].rstrip() + "..."


@dataclass(frozen=True)
class InsuranceMatch:
    rule: Optional[str]
    item: Optional[str]
    fraction: float


class RecommendationCostMatcher:
    """
    Turns free-text recommendations into an upfront cost estimate and a
    long-term savings estimate, with one audit line per contributing item.
    """

    def __init__(
        self,
        costs: CostCatalog,
        rules: Sequence[CostRule] = COST_RULES,
        insurance_rules: Sequence[InsuranceRule] = INSURANCE_RULES,
    ):
        self.costs = costs
        self.rules = tuple(rules)
        self.insurance_rules = tuple(insurance_rules)

    # --------------- classification ----------------

    def classify(self, recommendation: str) -> RuleOutcome:
        text = normalize_text(recommendation)
        for rule in self.rules:
            if rule.matches(text):
                return rule.apply(text, self.costs)
        return RuleOutcome("unmatched", "Unmatched", UNMATCHED, 0.0, f"no match ({usd(0)})")

    def insurance_match(self, recommendation: str) -> InsuranceMatch:
        text = normalize_text(recommendation)
        for rule in self.insurance_rules:
            if not rule.matches(text):
                continue
            targets = rule.targets(text)
            entry = self.costs.find(*targets) if targets else None
            if entry is None or not entry.carries_insurance_reduction:
                return InsuranceMatch(rule.name, None, 0.0)
            return InsuranceMatch(rule.name, entry.item, entry.insurance_reduction_midpoint)
        return InsuranceMatch(None, None, 0.0)

    # --------------- savings ----------------

    def avoided_damage(self, timeline: Sequence[TimelineEntry]) -> Tuple[float, str]:
        flood_events = sum(1 for e in timeline if e.flood_depth_inches > 0)
        if flood_events == 0:
            return 0.0, f"Avoided flood damage: no flooding projected in the timeline ({usd(0)})"
        baseline = self.costs.find(BASELINE_DAMAGE_NEEDLE)
        if baseline is None:
            print("[COST] baseline damage entry missing from cost catalog; avoided damage = 0")
            return 0.0, (
                f"Avoided flood damage: {flood_events} flooded timeline point(s), but no baseline "
                f"damage entry in the cost catalog ({usd(0)})"
            )
        counted = min(flood_events, MAX_AVOIDED_EVENTS)
        per_event = baseline.avoided_damage_midpoint
        total = per_event * counted
        return total, (
            f"Avoided flood damage: {counted} event(s) x {usd(per_event)} = {usd(total)} "
            f"({flood_events} flooded timeline point(s), capped at {MAX_AVOIDED_EVENTS})"
        )

    def insurance_savings(
        self, recommendations: Sequence[str], horizon_years: int
    ) -> Tuple[float, float, List[str]]:
        """Returns (savings, applied_fraction, breakdown_lines)."""
        lines: List[str] = []
        summed = 0.0
        for rec in recommendations:
            m = self.insurance_match(rec)
            summed += m.fraction
            if m.item:
                lines.append(f'"{excerpt(rec)}" -> {m.item}: {m.fraction:.1%} premium reduction')
            else:
                lines.append(f'"{excerpt(rec)}" -> no insurance credit (0.0%)')

        applied = min(summed, INSURANCE_REDUCTION_CAP)
        years = max(0, horizon_years)
        savings = BASELINE_ANNUAL_PREMIUM * applied * years
        summary = (
            f"Insurance savings: {applied:.1%} of {usd(BASELINE_ANNUAL_PREMIUM)}/yr premium "
            f"x {years} yr = {usd(savings)}"
        )
        if summed > INSURANCE_REDUCTION_CAP:
            summary += f" (capped at {INSURANCE_REDUCTION_CAP:.0%}; recommendations summed to {summed:.1%})"
        lines.append(summary)
        return savings, applied, lines

    # --------------- report ----------------

    @staticmethod
    def roi_description(upfront: float, savings: float, target_year: int) -> str:
        if upfront == 0:
            return NO_COST_MESSAGE
        net = savings - upfront
        if net > 0:
            return (
                f"Investing approximately {usd(upfront)} in recommended measures could lead to estimated "
                f"long-term savings of {usd(savings)} by {target_year}, resulting in a net benefit of {usd(net)}."
            )
        return (
            f"The estimated upfront cost is {usd(upfront)}. While long-term savings are projected at "
            f"{usd(savings)} by {target_year}, the initial investment is higher, resulting in a net cost "
            f"of {usd(abs(net))}."
        )

    def analyze(
        self,
        recommendations: Sequence[str],
        timeline: Sequence[TimelineEntry],
        target_year: int,
        current_year: Optional[int] = None,
    ) -> CostBenefitReport:
        current_year = current_year if current_year is not None else datetime.now().year

        upfront = 0.0
        upfront_lines: List[str] = []
        unmatched = 0
        for rec in recommendations:
            outcome = self.classify(rec)
            upfront += outcome.cost
            if outcome.status == UNMATCHED:
                unmatched += 1
                upfront_lines.append(f'"{excerpt(rec)}" -> no match ({usd(0)})')
            else:
                upfront_lines.append(f'"{excerpt(rec)}" -> {outcome.label}: {outcome.detail}')

        damage, damage_line = self.avoided_damage(timeline)
        insurance, _applied, insurance_lines = self.insurance_savings(
            recommendations, target_year - current_year
        )
        savings = damage + insurance

        print(
            f"[COST] {len(recommendations)} recommendation(s), {unmatched} unmatched; "
            f"upfront {usd(upfront)}, savings {usd(savings)}"
        )

        upfront_r = float(round(upfront))
        savings_r = float(round(savings))
        return CostBenefitReport(
            upfront_cost_estimate=upfront_r,
            long_term_savings_estimate=savings_r,
            roi_description=self.roi_description(upfront_r, savings_r, target_year),
            upfront_cost_breakdown=upfront_lines,
            long_term_savings_breakdown=[damage_line] + insurance_lines,
        )
