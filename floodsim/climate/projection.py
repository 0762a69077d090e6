# floodsim/climate/projection.py
from __future__ import annotations
from typing import Dict, Iterable, Tuple

import numpy as np

from floodsim.schemas.contracts import ClimateProjection

INCHES_PER_FOOT = 12.0


class ClimateProjectionResolver:
    """
    Resolves (year, scenario) to a projected flood level in feet above datum.

    Between two records the rise is interpolated linearly in inches, then
    converted. Outside a scenario's range the nearest record is used as-is.
    An unknown scenario yields 0.0 ("no data").
    """

    def __init__(self, projections: Iterable[ClimateProjection]):
        by_scenario: Dict[str, list] = {}
        for p in projections:
            by_scenario.setdefault(p.scenario, []).append(p)

        # sorted (years, inches) arrays per scenario, built once
        self._series: Dict[str, Tuple[np.ndarray, np.ndarray]] = {}
        for scenario, rows in by_scenario.items():
            rows = sorted(rows, key=lambda r: r.year)
            self._series[scenario] = (
                np.array([r.year for r in rows], dtype=float),
                np.array([r.projected_rise_inches for r in rows], dtype=float),
            )

    @property
    def scenarios(self) -> Tuple[str, ...]:
        return tuple(self._series)

    def rise_inches(self, year: int, scenario: str) -> float:
        series = self._series.get(scenario)
        if series is None:
            print(f"[CLIMATE] no projections for scenario {scenario!r}; using 0 ft")
            return 0.0
        years, inches = series
        # np.interp: exact hit returns the record, beyond the ends it holds the edge value
        return float(np.interp(float(year), years, inches))

    def resolve(self, year: int, scenario: str) -> float:
        return self.rise_inches(year, scenario) / INCHES_PER_FOOT
