# floodsim/config.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv

# load .env in local dev
load_dotenv()


# --- Constants ---
TIMELINE_STEP_YEARS: int = 5


def _load_yaml(path: str | Path) -> dict:
    """Best-effort YAML loader; returns {} if the file is missing or unreadable."""
    p = Path(path)
    if not p.exists():
        return {}
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError) as e:
        print(f"[config] ignoring unreadable {p}: {e}")
        return {}


def _getenv_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return str(v).strip().lower() in ("1", "true", "yes", "on")


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or not str(v).strip():
        return default
    try:
        return int(str(v).strip())
    except ValueError:
        print(f"[config] ignoring non-integer {name}={v!r}")
        return default


def _getenv_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or not str(v).strip():
        return default
    try:
        return float(str(v).strip())
    except ValueError:
        print(f"[config] ignoring non-numeric {name}={v!r}")
        return default


def get_config() -> Dict[str, Any]:
    """
    Central place for simulation/runtime config.
    Merges (in order): defaults <- YAML (if present) <- ENV.
    Returns only keys the simulator actually uses.
    """
    cfg = {}
    for candidate in ("floodsim/config.yaml", "config.yaml"):
        cfg.update(_load_yaml(candidate))

    # Process-wide simulation defaults; never taken from user input
    defaults = {
        "target_year": 2055,
        "climate_scenario": "Intermediate-High",
        "building_type": "residential",
        "recommendation_model": "gpt-4o",
        "llm_timeout_s": 30.0,
        "include_target_year": True,
        "data_dir": None,
    }

    merged = {**defaults, **cfg}

    # ENV overrides
    merged["target_year"] = _getenv_int("FLOODSIM_TARGET_YEAR", int(merged["target_year"]))
    merged["climate_scenario"] = os.getenv("FLOODSIM_CLIMATE_SCENARIO", merged["climate_scenario"])
    merged["building_type"] = os.getenv("FLOODSIM_BUILDING_TYPE", merged["building_type"])
    merged["recommendation_model"] = os.getenv("FLOODSIM_RECOMMENDATION_MODEL", merged["recommendation_model"])
    merged["llm_timeout_s"] = _getenv_float("FLOODSIM_LLM_TIMEOUT_S", float(merged["llm_timeout_s"]))
    merged["include_target_year"] = _getenv_bool("FLOODSIM_INCLUDE_TARGET_YEAR", bool(merged["include_target_year"]))
    merged["data_dir"] = os.getenv("FLOODSIM_DATA_DIR", merged["data_dir"])

    return {k: merged[k] for k in defaults}
