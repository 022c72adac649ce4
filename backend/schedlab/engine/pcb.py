from typing import Dict, Iterable, List, Optional

from .errors import SimulationError
from .models import TRANSITIONS, ProcessRecord, ProcessSpec, ProcessState
from .validation import validate_specs


class PCBTable:
    """Process control blocks for one simulation run, keyed by pid."""

    def __init__(self):
        self._records: Dict[int, ProcessRecord] = {}

    def register_processes(self, specs: Iterable[ProcessSpec]) -> List[int]:
        specs = list(specs)
        # Validate everything first so a bad spec leaves the table untouched.
        validate_specs(specs)
        if self._records:
            raise SimulationError("processes are already registered for this run")

        pids: List[int] = []
        for idx, spec in enumerate(specs):
            pid = idx + 1
            self._records[pid] = ProcessRecord(
                pid=pid,
                arrival_time=spec.arrival_time,
                burst_time=spec.burst_time,
                io_windows=list(spec.io),
            )
            pids.append(pid)
        return pids

    def __len__(self) -> int:
        return len(self._records)

    def records(self) -> List[ProcessRecord]:
        return [self._records[pid] for pid in sorted(self._records)]

    def get_record(self, pid: int) -> ProcessRecord:
        try:
            return self._records[pid]
        except KeyError:
            raise SimulationError(f"unknown pid {pid}") from None

    # -------- Arrivals --------
    def next_arrival(self, tick: int) -> Optional[int]:
        best: Optional[ProcessRecord] = None
        for rec in self._records.values():
            if rec.state != ProcessState.NEW or rec.arrival_time > tick:
                continue
            if best is None or (rec.arrival_time, rec.pid) < (best.arrival_time, best.pid):
                best = rec
        return best.pid if best is not None else None

    def has_next_arrival(self, tick: int) -> bool:
        return self.next_arrival(tick) is not None

    def pids_in_state(self, state: ProcessState) -> List[int]:
        return [pid for pid in sorted(self._records) if self._records[pid].state == state]

    # -------- Mutators --------
    def _mutable(self, pid: int) -> ProcessRecord:
        rec = self.get_record(pid)
        if rec.state == ProcessState.DONE:
            raise SimulationError(f"process {pid} is DONE and can no longer change")
        return rec

    def set_state(self, pid: int, state: ProcessState) -> ProcessState:
        rec = self._mutable(pid)
        old = rec.state
        if state not in TRANSITIONS[old]:
            raise SimulationError(f"illegal transition for process {pid}: {old.value} -> {state.value}")
        rec.state = state
        return old

    def set_priority(self, pid: int, level: int) -> None:
        self._mutable(pid).priority_level = level

    def tick_cpu_time(self, pid: int) -> None:
        rec = self._mutable(pid)
        if rec.cpu_time_consumed >= rec.burst_time:
            raise SimulationError(f"process {pid} has no CPU time left to consume")
        rec.cpu_time_consumed += 1

    def tick_quantum(self, pid: int) -> None:
        rec = self._mutable(pid)
        # -1 means unbounded; nothing to count down
        if rec.quantum_remaining > 0:
            rec.quantum_remaining -= 1

    def set_quantum_left(self, pid: int, quantum: int) -> None:
        self._mutable(pid).quantum_remaining = quantum

    def set_scheduled_time(self, pid: int, tick: int) -> bool:
        rec = self._mutable(pid)
        if rec.scheduled_time >= 0:
            return False
        rec.scheduled_time = tick
        return True

    def set_completion_time(self, pid: int, tick: int) -> None:
        self._mutable(pid).completion_time = tick

    def start_io(self, pid: int) -> int:
        rec = self._mutable(pid)
        window = rec.next_io
        if window is None:
            raise SimulationError(f"process {pid} has no pending I/O window")
        rec.io_index += 1
        rec.io_remaining = window.duration
        return window.duration

    # -------- Queries --------
    def is_process_finished(self, pid: int) -> bool:
        rec = self.get_record(pid)
        return rec.cpu_time_consumed == rec.burst_time

    def is_all_finished(self) -> bool:
        if not self._records:
            return False
        return all(rec.state == ProcessState.DONE for rec in self._records.values())

    def handle_io_tick(self) -> List[int]:
        """Advance every process in I/O by one tick.

        Returns the pids whose I/O just completed, in increasing pid order.
        The WAITING_IO -> READY transition is left to the caller.
        """
        completed: List[int] = []
        for pid in sorted(self._records):
            rec = self._records[pid]
            if rec.state != ProcessState.WAITING_IO or rec.io_remaining <= 0:
                continue
            rec.io_remaining -= 1
            if rec.io_remaining == 0:
                completed.append(pid)
        return completed
