import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .errors import RunawaySimulationError, SimulationError
from .metrics import compute_metrics
from .models import ProcessSpec, ProcessState
from .pcb import PCBTable
from .policies import build_policy
from .trace import IDLE, ExecutionTrace, TraceEvent, TraceStep
from .validation import SimulationParams, parse_params, parse_process_specs

logger = logging.getLogger(__name__)

DEFAULT_MAX_TICKS = 10000


@dataclass
class SimulationResult:
    params: SimulationParams
    trace: ExecutionTrace
    processes: List[Dict[str, int]]
    metrics: Dict[str, float]

    @property
    def algorithm(self) -> str:
        return self.params.algorithm

    @property
    def gantt(self) -> List[Dict[str, int]]:
        return self.trace.gantt()


class SimulationDriver:
    """
    Runs one scheduling scenario tick by tick.

    Supported algorithms:
      - FCFS (non-preemptive, arrival order)
      - SJF  (non-preemptive, shortest total burst first)
      - STCF (preemptive, shortest remaining time; ties keep the incumbent)
      - RR   (Round Robin; time quantum)
      - MLFQ (N levels with per-level quantum, periodic priority boost)

    A driver owns its PCB table, ready queues, clock and trace. Build a new
    one for every run; nothing is shared between instances.
    """

    def __init__(self, specs: Sequence[ProcessSpec], params: SimulationParams, max_ticks: int = DEFAULT_MAX_TICKS):
        self.params = params
        self.max_ticks = int(max_ticks)

        # register_processes validates; nothing else is built if it raises
        self.pcb = PCBTable()
        self.pcb.register_processes(specs)

        self.policy = build_policy(params)
        self.queues = self.policy.initialize_queues(self.pcb)

        self.time = 0
        self.running: Optional[int] = None
        self.trace = ExecutionTrace()
        self._events: List[TraceEvent] = []
        self._executed: Optional[int] = None
        self._started = False

    @classmethod
    def from_payload(
        cls,
        algorithm: Any,
        processes: Any,
        options: Optional[Dict[str, Any]] = None,
        max_ticks: int = DEFAULT_MAX_TICKS,
    ) -> "SimulationDriver":
        specs = parse_process_specs(processes)
        params = parse_params(algorithm, options)
        return cls(specs, params, max_ticks=max_ticks)

    # -------- Run loop --------
    def run(self) -> SimulationResult:
        if self._started:
            raise SimulationError("a simulation driver can only run once")
        self._started = True

        logger.info(
            "starting %s run with %d processes (%s)",
            self.params.algorithm,
            len(self.pcb),
            self.params.as_dict(),
        )
        while not self.pcb.is_all_finished():
            if self.time >= self.max_ticks:
                logger.error("%s run hit the safety ceiling at tick %d", self.params.algorithm, self.time)
                raise RunawaySimulationError(self.max_ticks, self.params.algorithm)
            self.tick()
        self.trace.close()

        rows, summary = compute_metrics(self.pcb.records())
        logger.info(
            "%s run finished: makespan=%s avg_wt=%.2f avg_tat=%.2f",
            self.params.algorithm,
            summary["makespan"],
            summary["average_waiting_time"],
            summary["average_turnaround_time"],
        )
        return SimulationResult(params=self.params, trace=self.trace, processes=rows, metrics=summary)

    def tick(self):
        self._executed = None
        self._admit_arrivals()
        self._check_timeout()
        self._dispatch()
        self._finish_check()
        self._check_boost()
        self._execute()
        self._advance_io()
        self._record_step()
        self.time += 1

    # -------- Trace helpers --------
    def _log_event(self, kind: str, pid: int, msg: str, level: Optional[int] = None):
        self._events.append(TraceEvent(kind=kind, pid=pid, message=msg, level=level))
        logger.debug("t=%d: %s", self.time, msg)

    def _set_state(self, pid: int, new_state: ProcessState):
        old = self.pcb.set_state(pid, new_state)
        logger.debug("t=%d: P%d %s -> %s", self.time, pid, old.value, new_state.value)

    def _record_step(self):
        step = TraceStep(
            tick=self.time,
            running_pid=self._executed if self._executed is not None else IDLE,
            events=list(self._events),
            ready_queues=self.queues.snapshot(),
            waiting=self.pcb.pids_in_state(ProcessState.WAITING_IO),
            new_arrivals=self.pcb.pids_in_state(ProcessState.NEW),
            states={rec.pid: rec.state.value for rec in self.pcb.records()},
        )
        self.trace.append(step)
        self._events = []

    def _running_finished(self) -> bool:
        return self.running is not None and self.pcb.is_process_finished(self.running)

    def _preempt(self, reason: str):
        pid = self.running
        level = self.pcb.get_record(pid).priority_level
        self._set_state(pid, ProcessState.READY)
        self.queues.enqueue(level, pid)
        self.running = None
        self._log_event("preempt", pid, f"Process {pid} {reason}, returned to ready queue {level}.", level)

    # -------- Per-tick steps --------
    def _admit_arrivals(self):
        preempt = False
        while self.pcb.has_next_arrival(self.time):
            pid = self.pcb.next_arrival(self.time)
            level = self.policy.entry_level(pid)
            if self.policy.admit_new_arrival(pid, self.running):
                preempt = True
            self._set_state(pid, ProcessState.READY)
            self.queues.enqueue(level, pid)
            self._log_event("arrival", pid, f"Process {pid} arrived and joined ready queue {level}.", level)

        if preempt and self.running is not None and not self._running_finished():
            self._preempt("was preempted by a new arrival")

    def _check_timeout(self):
        pid = self.running
        if pid is None or self._running_finished():
            return

        rec = self.pcb.get_record(pid)
        if self.policy.preempts_on_timeout and rec.quantum_remaining == 0:
            old_level = rec.priority_level
            action = self.policy.on_quantum_expiry(pid)
            self._set_state(pid, ProcessState.READY)
            self.queues.enqueue(action.level, pid)
            self.running = None
            if action.level != old_level:
                msg = f"Process {pid} used up its quantum and was demoted to ready queue {action.level}."
            else:
                msg = f"Process {pid} used up its quantum and moved to the tail of ready queue {action.level}."
            self._log_event("timeout", pid, msg, action.level)
        elif self.policy.should_preempt_running(pid):
            self._preempt("was preempted by a process with a shorter remaining time")

    def _check_boost(self):
        if not self.policy.check_boost(self.time):
            return

        result = self.policy.boost(self.running)
        self._log_event(
            "boost",
            IDLE,
            f"Allotment expired at time {self.time}; every process moves back to ready queue 0.",
            0,
        )
        for pid, from_level in result.moved:
            self._log_event("promote", pid, f"Process {pid} moved from ready queue {from_level} to ready queue 0.", 0)
        if result.preempted is not None:
            pid = result.preempted
            self._set_state(pid, ProcessState.READY)
            self.running = None
            self._log_event("preempt", pid, f"Process {pid} was preempted by the priority boost and requeued last.", 0)
        # the boosted queue 0 head takes the CPU in this same tick
        self._dispatch()

    def _dispatch(self):
        if self.running is not None:
            return

        pid = self.policy.select_candidate()
        if pid is None:
            return

        self.queues.remove_everywhere(pid)
        rec = self.pcb.get_record(pid)
        level = rec.priority_level
        self._set_state(pid, ProcessState.RUNNING)
        self.pcb.set_scheduled_time(pid, self.time)
        self.pcb.set_quantum_left(pid, self.queues.quantum(level))
        self.running = pid
        self._log_event("dispatch", pid, f"Process {pid} was scheduled from ready queue {level}.", level)

    def _finish_check(self):
        if not self._running_finished():
            return

        pid = self.running
        self.pcb.set_completion_time(pid, self.time)
        self._set_state(pid, ProcessState.DONE)
        self.running = None
        self._log_event("finish", pid, f"Process {pid} finished at time {self.time}.")
        # the CPU is free again this tick
        self._dispatch()

    def _execute(self):
        pid = self.running
        if pid is None:
            return

        rec = self.pcb.get_record(pid)
        if rec.io_due():
            duration = self.pcb.start_io(pid)
            self._set_state(pid, ProcessState.WAITING_IO)
            self.running = None
            self._log_event("io_start", pid, f"Process {pid} started I/O for {duration} units.")
            return

        self.pcb.tick_cpu_time(pid)
        self.pcb.tick_quantum(pid)
        self._executed = pid

    def _advance_io(self):
        completed = self.pcb.handle_io_tick()
        preempt = False
        for pid in completed:
            action = self.policy.on_io_return(pid, self.running)
            self._set_state(pid, ProcessState.READY)
            self.queues.enqueue(action.level, pid)
            self._log_event(
                "io_done",
                pid,
                f"Process {pid} finished I/O at time {self.time + 1}, added to ready queue {action.level}.",
                action.level,
            )
            preempt = preempt or action.preempt_running

        if preempt and self.running is not None and not self._running_finished():
            self._preempt("was preempted by a process returning from I/O")


def run_simulation(
    algorithm: Any,
    processes: Any,
    options: Optional[Dict[str, Any]] = None,
    max_ticks: int = DEFAULT_MAX_TICKS,
) -> SimulationResult:
    """Validate raw input, run it on a fresh driver and return the result."""
    return SimulationDriver.from_payload(algorithm, processes, options, max_ticks=max_ticks).run()
