from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .errors import SimulationError

IDLE = -1


@dataclass(frozen=True)
class TraceEvent:
    kind: str
    pid: int
    message: str
    level: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"kind": self.kind, "pid": self.pid, "message": self.message}
        if self.level is not None:
            out["level"] = self.level
        return out


@dataclass(frozen=True)
class TraceStep:
    tick: int
    running_pid: int
    events: List[TraceEvent] = field(default_factory=list)
    ready_queues: List[List[int]] = field(default_factory=list)
    waiting: List[int] = field(default_factory=list)
    new_arrivals: List[int] = field(default_factory=list)
    states: Dict[int, str] = field(default_factory=dict)


class ExecutionTrace:
    """Append-only per-tick log of a run."""

    def __init__(self):
        self._steps: List[TraceStep] = []
        self._closed = False

    def append(self, step: TraceStep) -> None:
        if self._closed:
            raise SimulationError("trace is closed; a finished run cannot be extended")
        if self._steps and step.tick <= self._steps[-1].tick:
            raise SimulationError(f"trace ticks must increase (got {step.tick} after {self._steps[-1].tick})")
        self._steps.append(step)

    def close(self) -> None:
        self._closed = True

    @property
    def steps(self) -> Tuple[TraceStep, ...]:
        return tuple(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def timeline(self) -> List[int]:
        return [s.running_pid for s in self._steps]

    def gantt(self) -> List[Dict[str, int]]:
        return [{"pid": pid, "start": start, "end": end} for pid, start, end in compress_gantt(self.timeline())]

    def dispatch_order(self) -> List[int]:
        return [e.pid for s in self._steps for e in s.events if e.kind == "dispatch"]


def compress_gantt(timeline: List[int]) -> List[Tuple[int, int, int]]:
    """Collapse a per-tick pid list into (pid, start, end) runs, dropping idle time."""
    segs = []
    if not timeline:
        return segs
    cur = timeline[0]
    start = 0
    for i in range(1, len(timeline)):
        if timeline[i] != cur:
            if cur != IDLE:
                segs.append((cur, start, i))
            cur = timeline[i]
            start = i
    if cur != IDLE:
        segs.append((cur, start, len(timeline)))
    return segs
