# floodsim/utils/llm_status.py
from __future__ import annotations
import os
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass
class _LastCall:
    model: Optional[str] = None
    started: Optional[float] = None       # epoch seconds
    duration_s: Optional[float] = None
    success: Optional[bool] = None        # None while a call is in flight / before the first
    error: Optional[str] = None


# process-local; the Streamlit sidebar reads it after each run
_last = _LastCall()


def record_llm_call_start(model_name: str) -> None:
    global _last
    _last = _LastCall(model=model_name, started=time.time())


def record_llm_call_end(success: bool, error: Optional[str] = None) -> None:
    if _last.started:
        _last.duration_s = time.time() - _last.started
    _last.success = bool(success)
    _last.error = error


def get_llm_status() -> Dict[str, Any]:
    """Status of the most recent recommendation call, for the sidebar."""
    started = None
    if _last.started:
        started = datetime.fromtimestamp(_last.started, tz=timezone.utc).isoformat(timespec="seconds")
    return {
        "api_key_set": bool(os.environ.get("OPENAI_API_KEY")),
        "model": _last.model or os.environ.get("FLOODSIM_RECOMMENDATION_MODEL") or "gpt-4o",
        "last_call": started,
        "last_duration": None if _last.duration_s is None else round(_last.duration_s, 2),
        "last_success": _last.success,
        "last_error": _last.error,
    }
