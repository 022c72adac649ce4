from typing import Dict, List, NamedTuple, Optional, Tuple, Type

from .models import ProcessState
from .pcb import PCBTable
from .queues import UNBOUNDED, ReadyQueueSet
from .validation import SimulationParams


class Requeue(NamedTuple):
    level: int
    preempt_running: bool = False


class BoostResult(NamedTuple):
    moved: List[Tuple[int, int]]      # (pid, originating level), in enqueue order
    preempted: Optional[int]


class SchedulingPolicy:
    """Dispatch and preemption rules for one algorithm.

    A policy is built once per run, bound to that run's PCB table through
    ``initialize_queues`` and never shared. It only decides; the driver
    applies state transitions and writes the trace.
    """

    name = ""
    preempts_on_timeout = False

    def __init__(self, params: SimulationParams):
        self.params = params
        self.pcb: Optional[PCBTable] = None
        self.queues: Optional[ReadyQueueSet] = None

    def _build_queues(self) -> ReadyQueueSet:
        return ReadyQueueSet([UNBOUNDED])

    def initialize_queues(self, pcb: PCBTable) -> ReadyQueueSet:
        self.pcb = pcb
        self.queues = self._build_queues()
        return self.queues

    def entry_level(self, pid: int) -> int:
        return 0

    def select_candidate(self) -> Optional[int]:
        head = self.queues.head()
        return head[1] if head else None

    def admit_new_arrival(self, pid: int, running: Optional[int]) -> bool:
        return False

    def should_preempt_running(self, running: int) -> bool:
        return False

    def on_quantum_expiry(self, pid: int) -> Requeue:
        return Requeue(level=self.pcb.get_record(pid).priority_level, preempt_running=True)

    def on_io_return(self, pid: int, running: Optional[int]) -> Requeue:
        return Requeue(level=0)

    def check_boost(self, tick: int) -> bool:
        return False

    def boost(self, running: Optional[int]) -> BoostResult:
        return BoostResult(moved=[], preempted=None)


class FCFSPolicy(SchedulingPolicy):
    name = "FCFS"


class SJFPolicy(SchedulingPolicy):
    name = "SJF"

    def _key(self, pid: int):
        rec = self.pcb.get_record(pid)
        return rec.burst_time, rec.arrival_time, rec.pid

    def select_candidate(self) -> Optional[int]:
        ready = self.queues.queue_at(0)
        if not ready:
            return None
        return min(ready, key=self._key)


class STCFPolicy(SJFPolicy):
    name = "STCF"

    def _key(self, pid: int):
        rec = self.pcb.get_record(pid)
        return rec.remaining_time, rec.arrival_time, rec.pid

    def _beats(self, challenger: int, incumbent: int) -> bool:
        # Strictly shorter remaining time only; ties keep the incumbent.
        return self.pcb.get_record(challenger).remaining_time < self.pcb.get_record(incumbent).remaining_time

    def admit_new_arrival(self, pid: int, running: Optional[int]) -> bool:
        return running is not None and self._beats(pid, running)

    def should_preempt_running(self, running: int) -> bool:
        best = self.select_candidate()
        return best is not None and self._beats(best, running)

    def on_io_return(self, pid: int, running: Optional[int]) -> Requeue:
        return Requeue(level=0, preempt_running=running is not None and self._beats(pid, running))


class RRPolicy(SchedulingPolicy):
    name = "RR"
    preempts_on_timeout = True

    def _build_queues(self) -> ReadyQueueSet:
        return ReadyQueueSet([self.params.quantum])


class MLFQPolicy(SchedulingPolicy):
    name = "MLFQ"
    preempts_on_timeout = True

    def __init__(self, params: SimulationParams):
        super().__init__(params)
        self.last_boost_tick = 0

    def _build_queues(self) -> ReadyQueueSet:
        return ReadyQueueSet(self.params.quantums, allotment=self.params.allotment)

    def _running_level(self, running: Optional[int]) -> int:
        if running is None:
            return 0
        return self.pcb.get_record(running).priority_level

    def admit_new_arrival(self, pid: int, running: Optional[int]) -> bool:
        self.pcb.set_priority(pid, 0)
        return self._running_level(running) > 0

    def on_quantum_expiry(self, pid: int) -> Requeue:
        level = min(self.pcb.get_record(pid).priority_level + 1, len(self.queues) - 1)
        self.pcb.set_priority(pid, level)
        return Requeue(level=level, preempt_running=True)

    def on_io_return(self, pid: int, running: Optional[int]) -> Requeue:
        self.pcb.set_priority(pid, 0)
        return Requeue(level=0, preempt_running=self._running_level(running) > 0)

    def check_boost(self, tick: int) -> bool:
        allotment = self.queues.allotment
        if allotment == UNBOUNDED or tick <= 0 or tick % allotment != 0:
            return False
        if tick == self.last_boost_tick:
            return False
        self.last_boost_tick = tick
        return True

    def boost(self, running: Optional[int]) -> BoostResult:
        """Reset every live process to level 0.

        Drained processes land in queue 0 by ascending originating level;
        the preempted incumbent goes last so the boost gives it no head start.
        """
        preempted = None
        if running is not None and not self.pcb.is_process_finished(running):
            preempted = running
        if running is not None:
            self.pcb.set_priority(running, 0)

        moved: List[Tuple[int, int]] = []
        for level in range(1, len(self.queues)):
            for pid in self.queues.dequeue_all(level):
                self.pcb.set_priority(pid, 0)
                moved.append((pid, level))
        for pid, _ in moved:
            self.queues.enqueue(0, pid)

        # Blocked processes come back at level 0 anyway; keep their level honest.
        for pid in self.pcb.pids_in_state(ProcessState.WAITING_IO):
            self.pcb.set_priority(pid, 0)

        if preempted is not None:
            self.queues.enqueue(0, preempted)
        return BoostResult(moved=moved, preempted=preempted)


POLICIES: Dict[str, Type[SchedulingPolicy]] = {
    "FCFS": FCFSPolicy,
    "SJF": SJFPolicy,
    "STCF": STCFPolicy,
    "RR": RRPolicy,
    "MLFQ": MLFQPolicy,
}


def build_policy(params: SimulationParams) -> SchedulingPolicy:
    return POLICIES[params.algorithm](params)
