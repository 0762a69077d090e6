# floodsim/recommendations/generator.py
from __future__ import annotations
from typing import Any, Callable, List, Optional, Sequence
import os
import re

from floodsim.errors import RecommendationGeneratorError
from floodsim.schemas.contracts import BuildingDesign, TimelineEntry
from floodsim.utils.llm_status import record_llm_call_end, record_llm_call_start

# (design, timeline, target_year, scenario) -> recommendations; may raise
RecommendationGenerator = Callable[[BuildingDesign, Sequence[TimelineEntry], int, str], List[str]]

SYSTEM = (
    "You are an expert architect specializing in flood-resilient design. "
    "Provide concise, actionable recommendations."
)

USER_PROMPT = """You are an expert architect specializing in climate-adaptive and flood-resilient design for coastal areas like New Orleans.
A client has provided details for a building design and a simulation of its flood resilience performance through {target_year} under an '{scenario}' climate scenario.

Here are the details of the initial building design:
Foundation Type: {foundation}
Elevation (Lowest Floor): {elevation} feet above datum
Materials (relevant to flood zone): {materials}
Flood Mitigation Features: {mitigation}

Here is the simulated performance timeline:
{timeline}

Based on this information, provide specific, actionable, and practical recommendations to improve the building's flood resilience and "future-proof" it through {target_year}. Focus on architectural and material interventions. Provide recommendations as a concise bulleted list.
Example recommendation: "- Elevate HVAC unit to 13 feet by 2035."
"""

# "- x", "* x", "• x", "1. x", "2) x"; a leading "**bold**" is not a bullet
_BULLET_RE = re.compile(r"^(?:[-•]\s*|\*(?!\*)\s*|\d+[.)]\s*)")


def build_prompt(design: BuildingDesign, timeline: Sequence[TimelineEntry], target_year: int, scenario: str) -> str:
    summary = "\n".join(
        f"By {e.year}: Resilience Score: {e.resilience_score}%, Projected Flood Level: "
        f"{e.projected_flood_level_feet}ft, Flood Depth Above Lowest Floor: {e.flood_depth_inches} inches."
        for e in timeline
    )
    return USER_PROMPT.format(
        target_year=target_year,
        scenario=scenario,
        foundation=design.foundation_type,
        elevation=design.elevation_height,
        materials=", ".join(design.materials) or "N/A",
        mitigation=", ".join(design.mitigation_features) or "N/A",
        timeline=summary or "(no timeline entries)",
    )


def parse_bullets(content: Optional[str]) -> List[str]:
    """Keep only bullet / numbered lines, with their markers removed."""
    out: List[str] = []
    for raw in (content or "").splitlines():
        line = raw.strip()
        if not _BULLET_RE.match(line):
            continue
        item = _BULLET_RE.sub("", line, count=1).strip()
        if item:
            out.append(item)
    return out


class OpenAIRecommendationGenerator:
    """
    Chat-completions backed generator. Raises on a missing key or an API
    failure; the orchestrator turns that into a placeholder recommendation.
    """

    def __init__(
        self,
        model: str = "gpt-4o",
        timeout_s: float = 30.0,
        api_key: Optional[str] = None,
        client: Any = None,
        max_tokens: int = 500,
        temperature: float = 0.7,
    ):
        self.model = model
        self.timeout_s = timeout_s
        self.api_key = api_key
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client

    def _get_client(self):
        if self._client is not None:
            return self._client
        api_key = self.api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise RecommendationGeneratorError("OPENAI_API_KEY is not set")
        from openai import OpenAI

        self._client = OpenAI(api_key=api_key, timeout=self.timeout_s, max_retries=1)
        return self._client

    def __call__(
        self,
        design: BuildingDesign,
        timeline: Sequence[TimelineEntry],
        target_year: int,
        scenario: str,
    ) -> List[str]:
        client = self._get_client()
        prompt = build_prompt(design, timeline, target_year, scenario)

        record_llm_call_start(self.model)
        try:
            resp = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
            choices = getattr(resp, "choices", None) or []
            if not choices:
                raise RecommendationGeneratorError("empty completion from model")
            content = choices[0].message.content
        except Exception as e:
            record_llm_call_end(False, repr(e))
            raise
        record_llm_call_end(True)

        items = parse_bullets(content)
        print(f"[LLM] {self.model} returned {len(items)} recommendation(s)")
        return items


class StaticRecommendationGenerator:
    """Returns a fixed list; for offline runs and tests."""

    def __init__(self, recommendations: Sequence[str]):
        self.recommendations = list(recommendations)

    def __call__(self, design, timeline, target_year, scenario) -> List[str]:
        return list(self.recommendations)
