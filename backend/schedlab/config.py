import os
from typing import Any, Dict, List, Mapping, Optional

from schedlab.engine import DEFAULT_MAX_TICKS

ENV_PREFIX = "SCHEDLAB_"

DEFAULT_SETTINGS: Dict[str, Any] = {
    "max_ticks": DEFAULT_MAX_TICKS,
    "rr_quantum": 2,
    "mlfq_quantums": [2, 4, 8],
    "mlfq_allotment": 20,
    "cors_origins": ["http://localhost:3000"],
    "log_level": "INFO",
}


def _safe_int(value: Any, default: int) -> int:
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return int(default)
        try:
            return int(text, 10)
        except ValueError:
            return int(default)
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(default)


def _int_list(value: Any, default: List[int]) -> List[int]:
    if value is None:
        return list(default)
    parts = value.split(",") if isinstance(value, str) else list(value)
    out = [_safe_int(p, 0) for p in parts]
    if not out or any(q <= 0 for q in out):
        return list(default)
    return out


def _str_list(value: Any, default: List[str]) -> List[str]:
    if value is None:
        return list(default)
    items = [s.strip() for s in str(value).split(",") if s.strip()]
    return items or list(default)


def load_settings(env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Build service settings from the defaults plus SCHEDLAB_* overrides.

    Bad override values fall back to the default instead of failing startup.
    """
    source = os.environ if env is None else env
    d = DEFAULT_SETTINGS

    def raw(key: str) -> Optional[str]:
        return source.get(ENV_PREFIX + key.upper())

    level = str(raw("log_level") or d["log_level"]).strip().upper()
    if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        level = d["log_level"]

    return {
        "max_ticks": max(1, _safe_int(raw("max_ticks"), d["max_ticks"])),
        "rr_quantum": max(1, _safe_int(raw("rr_quantum"), d["rr_quantum"])),
        "mlfq_quantums": _int_list(raw("mlfq_quantums"), d["mlfq_quantums"]),
        "mlfq_allotment": max(1, _safe_int(raw("mlfq_allotment"), d["mlfq_allotment"])),
        "cors_origins": _str_list(raw("cors_origins"), d["cors_origins"]),
        "log_level": level,
    }


settings: Dict[str, Any] = load_settings()
