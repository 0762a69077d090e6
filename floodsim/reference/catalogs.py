# floodsim/reference/catalogs.py
from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple
import json

from jsonschema import Draft7Validator

from floodsim.errors import ReferenceDataError
from floodsim.schemas.contracts import (
    ClimateProjection,
    CostItem,
    FeatureCategory,
    ResilienceFeature,
)

DEFAULT_DATA_DIR = Path(__file__).resolve().parents[1] / "data"

CLIMATE_FILE = "climate_projections.json"
FEATURES_FILE = "resilience_features.json"
COST_FILE = "cost_data.json"

_NUM = {"type": "number"}
_NON_NEG = {"type": "number", "minimum": 0}
_PCT = {"type": "number", "minimum": 0, "maximum": 1}

CLIMATE_SCHEMA: Dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["year", "scenario", "projectedRelativeSeaLevelRiseInches"],
        "properties": {
            "year": {"type": "integer"},
            "scenario": {"type": "string", "minLength": 1},
            "projectedRelativeSeaLevelRiseInches": _NUM,
            "floodFrequencyMultiplier": _NON_NEG,
            "notes": {"type": "string"},
        },
    },
}

FEATURES_SCHEMA: Dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["featureName", "category", "scoreImpact"],
        "properties": {
            "featureName": {"type": "string", "minLength": 1},
            "category": {"enum": [c.value for c in FeatureCategory]},
            "scoreImpact": {"type": "integer"},
        },
    },
}

COST_SCHEMA: Dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["item", "upfrontCostMin", "upfrontCostMax"],
        "properties": {
            "item": {"type": "string", "minLength": 1},
            "unit": {"type": "string"},
            "upfrontCostMin": _NON_NEG,
            "upfrontCostMax": _NON_NEG,
            "annualInsuranceReductionPctMin": _PCT,
            "annualInsuranceReductionPctMax": _PCT,
            "avoidedDamagePerEventMin": _NON_NEG,
            "avoidedDamagePerEventMax": _NON_NEG,
        },
    },
}


# --- catalogs ------------------------------------------------------------------

class FeatureCatalog:
    """Read-only view over the resilience feature scoring matrix."""

    def __init__(self, features: Iterable[ResilienceFeature]):
        self._features: Tuple[ResilienceFeature, ...] = tuple(features)
        index: Dict[Tuple[FeatureCategory, str], ResilienceFeature] = {}
        for f in self._features:
            # first entry wins, same as a linear scan
            index.setdefault((f.category, f.feature_name), f)
        self._index = index

    def __iter__(self):
        return iter(self._features)

    def __len__(self) -> int:
        return len(self._features)

    def find(self, name: str, category: FeatureCategory) -> Optional[ResilienceFeature]:
        return self._index.get((category, name))

    def names(self, category: FeatureCategory) -> List[str]:
        return [f.feature_name for f in self._features if f.category == category]

    def first_selected(self, selected: Iterable[str], category: FeatureCategory) -> Optional[ResilienceFeature]:
        """First catalog entry (catalog order) of `category` whose name is in `selected`."""
        chosen = set(selected)
        for f in self._features:
            if f.category == category and f.feature_name in chosen:
                return f
        return None


class CostCatalog:
    """Read-only view over the comparative cost table."""

    def __init__(self, items: Iterable[CostItem]):
        self._items: Tuple[CostItem, ...] = tuple(items)

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def find(self, *needles: str) -> Optional[CostItem]:
        """Needles are tried in order; the first item containing one (case-insensitive) wins."""
        for needle in needles:
            n = needle.lower()
            for c in self._items:
                if n in c.item.lower():
                    return c
        return None


@dataclass(frozen=True)
class ReferenceData:
    projections: Tuple[ClimateProjection, ...]
    features: FeatureCatalog
    costs: CostCatalog
    source_dir: Optional[Path] = None


# --- loading -------------------------------------------------------------------

def _read_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ReferenceDataError(f"reference file not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise ReferenceDataError(f"could not read {path.name}: {e}") from e


def _validate(name: str, schema: Dict[str, Any], data: Any) -> None:
    validator = Draft7Validator(schema)
    errs = [
        f"{'.'.join([str(p) for p in e.path]) or '$'}: {e.message}"
        for e in validator.iter_errors(data)
    ]
    if errs:
        raise ReferenceDataError(f"{name} failed schema validation: " + "; ".join(errs[:5]))


def parse_projections(rows: List[Dict[str, Any]]) -> Tuple[ClimateProjection, ...]:
    _validate(CLIMATE_FILE, CLIMATE_SCHEMA, rows)
    seen = set()
    out: List[ClimateProjection] = []
    for r in rows:
        key = (r["scenario"], int(r["year"]))
        if key in seen:
            raise ReferenceDataError(f"duplicate climate projection for scenario={key[0]!r} year={key[1]}")
        seen.add(key)
        out.append(ClimateProjection(
            year=int(r["year"]),
            scenario=r["scenario"],
            projected_rise_inches=float(r["projectedRelativeSeaLevelRiseInches"]),
            flood_frequency_multiplier=float(r.get("floodFrequencyMultiplier", 1.0)),
            notes=r.get("notes") or "",
        ))
    return tuple(out)


def parse_features(rows: List[Dict[str, Any]]) -> FeatureCatalog:
    _validate(FEATURES_FILE, FEATURES_SCHEMA, rows)
    return FeatureCatalog(
        ResilienceFeature(
            feature_name=r["featureName"],
            category=FeatureCategory(r["category"]),
            score_impact=int(r["scoreImpact"]),
        )
        for r in rows
    )


def parse_costs(rows: List[Dict[str, Any]]) -> CostCatalog:
    _validate(COST_FILE, COST_SCHEMA, rows)
    return CostCatalog(
        CostItem(
            item=r["item"],
            upfront_cost_min=float(r["upfrontCostMin"]),
            upfront_cost_max=float(r["upfrontCostMax"]),
            annual_insurance_reduction_pct_min=float(r.get("annualInsuranceReductionPctMin", 0) or 0),
            annual_insurance_reduction_pct_max=float(r.get("annualInsuranceReductionPctMax", 0) or 0),
            avoided_damage_per_event_min=float(r.get("avoidedDamagePerEventMin", 0) or 0),
            avoided_damage_per_event_max=float(r.get("avoidedDamagePerEventMax", 0) or 0),
            unit=r.get("unit"),
        )
        for r in rows
    )


def load_reference_data(data_dir: str | Path | None = None) -> ReferenceData:
    """Read and validate all three catalogs. Raises ReferenceDataError on any problem."""
    base = Path(data_dir) if data_dir else DEFAULT_DATA_DIR
    return ReferenceData(
        projections=parse_projections(_read_json(base / CLIMATE_FILE)),
        features=parse_features(_read_json(base / FEATURES_FILE)),
        costs=parse_costs(_read_json(base / COST_FILE)),
        source_dir=base,
    )


@lru_cache(maxsize=None)
def get_reference_data(data_dir: str | None = None) -> ReferenceData:
    """Process-wide, load-once catalogs shared read-only by every run."""
    return load_reference_data(data_dir)
