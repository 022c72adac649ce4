from .compare import compare_all_algorithms, run_algorithm_once
from .datasets import load_default_dataset, load_preset, load_processes_json, specs_to_payload
from .errors import RunawaySimulationError, SchedulerError, SimulationError, ValidationError
from .metrics import compute_metrics
from .models import IoWindow, ProcessRecord, ProcessSpec, ProcessState
from .pcb import PCBTable
from .policies import POLICIES, SchedulingPolicy, build_policy
from .queues import ReadyQueueSet
from .scheduler import DEFAULT_MAX_TICKS, SimulationDriver, SimulationResult, run_simulation
from .trace import ExecutionTrace, TraceEvent, TraceStep
from .validation import SUPPORTED_ALGOS, SimulationParams, parse_params, parse_process_specs

__all__ = [
    "IoWindow",
    "ProcessSpec",
    "ProcessRecord",
    "ProcessState",
    "PCBTable",
    "ReadyQueueSet",
    "SchedulingPolicy",
    "POLICIES",
    "build_policy",
    "ExecutionTrace",
    "TraceEvent",
    "TraceStep",
    "SimulationDriver",
    "SimulationResult",
    "SimulationParams",
    "DEFAULT_MAX_TICKS",
    "SUPPORTED_ALGOS",
    "run_simulation",
    "parse_params",
    "parse_process_specs",
    "compute_metrics",
    "load_preset",
    "load_processes_json",
    "load_default_dataset",
    "specs_to_payload",
    "run_algorithm_once",
    "compare_all_algorithms",
    "SchedulerError",
    "ValidationError",
    "SimulationError",
    "RunawaySimulationError",
]
