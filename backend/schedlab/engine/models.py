from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ProcessState(str, Enum):
    """Lifecycle states of a simulated process."""
    NEW = "NEW"
    READY = "READY"
    RUNNING = "RUNNING"
    WAITING_IO = "WAITING_IO"
    DONE = "DONE"


# Legal transitions; DONE is terminal.
TRANSITIONS = {
    ProcessState.NEW: {ProcessState.READY},
    ProcessState.READY: {ProcessState.RUNNING},
    ProcessState.RUNNING: {ProcessState.READY, ProcessState.WAITING_IO, ProcessState.DONE},
    ProcessState.WAITING_IO: {ProcessState.READY},
    ProcessState.DONE: set(),
}


@dataclass(frozen=True)
class IoWindow:
    # start is measured in CPU progress: the window opens once the process
    # has consumed `start` ticks of its burst.
    start: int
    duration: int


@dataclass(frozen=True)
class ProcessSpec:
    arrival_time: int
    burst_time: int
    io: List[IoWindow] = field(default_factory=list)


@dataclass
class ProcessRecord:
    pid: int
    arrival_time: int
    burst_time: int
    io_windows: List[IoWindow] = field(default_factory=list)

    # Runtime state
    cpu_time_consumed: int = 0
    state: ProcessState = ProcessState.NEW
    priority_level: int = 0
    quantum_remaining: int = -1
    scheduled_time: int = -1
    completion_time: int = -1

    # I/O bookkeeping: next unserved window and ticks left in the active one
    io_index: int = 0
    io_remaining: int = 0

    @property
    def remaining_time(self) -> int:
        return self.burst_time - self.cpu_time_consumed

    @property
    def next_io(self) -> Optional[IoWindow]:
        if self.io_index < len(self.io_windows):
            return self.io_windows[self.io_index]
        return None

    def io_due(self) -> bool:
        window = self.next_io
        return window is not None and window.start == self.cpu_time_consumed

    @property
    def turnaround_time(self) -> Optional[int]:
        if self.completion_time < 0:
            return None
        return self.completion_time - self.arrival_time

    @property
    def waiting_time(self) -> Optional[int]:
        tat = self.turnaround_time
        return None if tat is None else tat - self.burst_time

    @property
    def response_time(self) -> Optional[int]:
        if self.scheduled_time < 0:
            return None
        return self.scheduled_time - self.arrival_time
