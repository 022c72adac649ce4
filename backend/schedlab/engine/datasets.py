import json
import os
from typing import Any, Dict, List

from .errors import ValidationError
from .models import IoWindow, ProcessSpec
from .validation import parse_process_specs


def _script_dir() -> str:
    return os.path.dirname(os.path.abspath(__file__))


# bundled workload, shipped next to this module
DEFAULT_DATASET = "processes.json"


# ------------------------------
# Dataset loaders: presets + JSON
# ------------------------------
PRESETS: Dict[int, Dict[str, Any]] = {
    1: {
        "name": "Textbook trio",
        "processes": [
            ProcessSpec(arrival_time=0, burst_time=5),
            ProcessSpec(arrival_time=1, burst_time=3),
            ProcessSpec(arrival_time=2, burst_time=2),
        ],
    },
    2: {
        "name": "Idle gaps",
        "processes": [
            ProcessSpec(arrival_time=0, burst_time=3),
            ProcessSpec(arrival_time=6, burst_time=2),
            ProcessSpec(arrival_time=8, burst_time=4),
            ProcessSpec(arrival_time=12, burst_time=2),
        ],
    },
    3: {
        "name": "Short job arrives late",
        "processes": [
            ProcessSpec(arrival_time=0, burst_time=8),
            ProcessSpec(arrival_time=1, burst_time=4),
            ProcessSpec(arrival_time=2, burst_time=9),
            ProcessSpec(arrival_time=3, burst_time=1),
        ],
    },
    4: {
        "name": "Simultaneous arrivals",
        "processes": [
            ProcessSpec(arrival_time=0, burst_time=6),
            ProcessSpec(arrival_time=0, burst_time=5),
            ProcessSpec(arrival_time=0, burst_time=4),
            ProcessSpec(arrival_time=0, burst_time=3),
        ],
    },
    5: {
        "name": "I/O bound vs CPU bound",
        "processes": [
            ProcessSpec(arrival_time=0, burst_time=12),
            ProcessSpec(arrival_time=1, burst_time=6, io=[IoWindow(start=2, duration=3), IoWindow(start=4, duration=2)]),
            ProcessSpec(arrival_time=2, burst_time=10),
            ProcessSpec(arrival_time=3, burst_time=4, io=[IoWindow(start=1, duration=2)]),
        ],
    },
}


def load_preset(preset_id: int) -> List[ProcessSpec]:
    if preset_id not in PRESETS:
        raise ValidationError(f"Unknown preset {preset_id}. Available presets: {sorted(PRESETS)}")
    return list(PRESETS[preset_id]["processes"])


def preset_name(preset_id: int) -> str:
    load_preset(preset_id)
    return PRESETS[preset_id]["name"]


def load_processes_json(path: str) -> List[ProcessSpec]:
    # Relative paths resolve against this package, not the working directory
    if not os.path.isabs(path):
        path = os.path.join(_script_dir(), path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("processes")
    return parse_process_specs(data)


def load_default_dataset() -> List[ProcessSpec]:
    return load_processes_json(DEFAULT_DATASET)


def specs_to_payload(specs: List[ProcessSpec]) -> List[Dict[str, Any]]:
    return [
        {
            "arrivalTime": s.arrival_time,
            "burstTime": s.burst_time,
            "io": [{"start": w.start, "duration": w.duration} for w in s.io],
        }
        for s in specs
    ]
