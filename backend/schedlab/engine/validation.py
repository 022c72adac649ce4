from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ValidationError
from .models import IoWindow, ProcessSpec

SUPPORTED_ALGOS = ("FCFS", "SJF", "STCF", "RR", "MLFQ")


@dataclass(frozen=True)
class SimulationParams:
    algorithm: str
    quantum: Optional[int] = None
    queues: Optional[int] = None
    quantums: List[int] = field(default_factory=list)
    allotment: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"algorithm": self.algorithm}
        if self.algorithm == "RR":
            out["quantum"] = self.quantum
        if self.algorithm == "MLFQ":
            out["queues"] = self.queues
            out["quantums"] = list(self.quantums)
            out["allotment"] = self.allotment
        return out


def _pick(item: Dict[str, Any], *names: str) -> Any:
    for name in names:
        if name in item:
            return item[name]
    return None


def _require_int(value: Any, label: str) -> int:
    # bool is an int subclass; a checkbox value is never a tick count
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{label} must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValidationError(f"{label} must be a whole number")


def parse_io(raw: Any, label: str) -> List[IoWindow]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError(f"{label}: io must be an array")
    windows: List[IoWindow] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"{label}, IO {idx + 1}: must be an object with start and duration")
        start = _require_int(item.get("start"), f"{label}, IO {idx + 1}: start")
        duration = _require_int(item.get("duration"), f"{label}, IO {idx + 1}: duration")
        windows.append(IoWindow(start=start, duration=duration))
    return windows


def parse_process_specs(raw: Any) -> List[ProcessSpec]:
    """Turn a JSON-style process list into ProcessSpec objects.

    Accepts camelCase (``arrivalTime``) and snake_case (``arrival_time``)
    keys. Only structure and types are checked here; range checks happen in
    ``PCBTable.register_processes``.
    """
    if not isinstance(raw, list) or not raw:
        raise ValidationError("Processes array is required and must not be empty")

    specs: List[ProcessSpec] = []
    for idx, item in enumerate(raw):
        label = f"Process {idx + 1}"
        if not isinstance(item, dict):
            raise ValidationError(f"{label}: must be an object")
        arrival = _require_int(_pick(item, "arrivalTime", "arrival_time"), f"{label}: arrivalTime")
        burst = _require_int(_pick(item, "burstTime", "burst_time"), f"{label}: burstTime")
        io = parse_io(item.get("io"), label)
        specs.append(ProcessSpec(arrival_time=arrival, burst_time=burst, io=io))
    return specs


def validate_specs(specs: List[ProcessSpec]) -> None:
    if not specs:
        raise ValidationError("Processes array is required and must not be empty")

    for idx, spec in enumerate(specs):
        label = f"Process {idx + 1}"
        if spec.arrival_time < 0:
            raise ValidationError(f"{label}: arrivalTime must be a non-negative number")
        if spec.burst_time <= 0:
            raise ValidationError(f"{label}: burstTime must be a positive number")

        prev_start = -1
        for j, window in enumerate(spec.io):
            io_label = f"{label}, IO {j + 1}"
            if window.start < 0:
                raise ValidationError(f"{io_label}: start must be a non-negative number")
            if window.duration <= 0:
                raise ValidationError(f"{io_label}: duration must be a positive number")
            if window.start >= spec.burst_time:
                raise ValidationError(
                    f"{io_label}: start time ({window.start}) must be less than burst time ({spec.burst_time})"
                )
            if window.start <= prev_start:
                raise ValidationError(f"{io_label}: io windows must be sorted by start and must not overlap")
            prev_start = window.start


def normalize_algorithm(value: Any) -> str:
    algo = str(value or "").strip().upper()
    if algo not in SUPPORTED_ALGOS:
        supported = ", ".join(SUPPORTED_ALGOS)
        raise ValidationError(f"Unsupported algorithm: {value}. Supported algorithms: {supported}")
    return algo


def parse_params(algorithm: Any, payload: Optional[Dict[str, Any]] = None) -> SimulationParams:
    """Validate the algorithm identifier and its parameters."""
    data = payload or {}
    algo = normalize_algorithm(algorithm)

    if algo == "RR":
        quantum = data.get("quantum")
        if quantum is None:
            raise ValidationError("Round Robin algorithm requires a positive quantum value")
        quantum = _require_int(quantum, "quantum")
        if quantum <= 0:
            raise ValidationError("Round Robin algorithm requires a positive quantum value")
        return SimulationParams(algorithm=algo, quantum=quantum)

    if algo == "MLFQ":
        queues = data.get("queues")
        if queues is None:
            raise ValidationError("MLFQ algorithm requires a positive number of queues")
        queues = _require_int(queues, "queues")
        if queues <= 0:
            raise ValidationError("MLFQ algorithm requires a positive number of queues")

        quantums_raw = data.get("quantums")
        if not isinstance(quantums_raw, list) or len(quantums_raw) != queues:
            raise ValidationError("MLFQ algorithm requires quantums array with length equal to number of queues")
        quantums: List[int] = []
        for idx, value in enumerate(quantums_raw):
            q = _require_int(value, f"MLFQ quantum at index {idx}")
            if q <= 0:
                raise ValidationError(f"MLFQ quantum at index {idx} must be a positive number")
            quantums.append(q)

        allotment = data.get("allotment")
        if allotment is None:
            raise ValidationError("MLFQ algorithm requires a positive allotment value")
        allotment = _require_int(allotment, "allotment")
        if allotment <= 0:
            raise ValidationError("MLFQ algorithm requires a positive allotment value")
        return SimulationParams(algorithm=algo, queues=queues, quantums=quantums, allotment=allotment)

    return SimulationParams(algorithm=algo)
