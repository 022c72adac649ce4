from typing import Any, Dict, List, Optional, Sequence

from .models import ProcessSpec
from .scheduler import DEFAULT_MAX_TICKS, SimulationDriver
from .validation import SUPPORTED_ALGOS, parse_params


def run_algorithm_once(
    specs: Sequence[ProcessSpec],
    algorithm: str,
    options: Optional[Dict[str, Any]] = None,
    max_ticks: int = DEFAULT_MAX_TICKS,
) -> Dict[str, Any]:
    """Run a full simulation for one algorithm on `specs` and return summary metrics."""
    params = parse_params(algorithm, options)
    result = SimulationDriver(specs, params, max_ticks=max_ticks).run()

    return {
        "algorithm": params.algorithm,
        "params": params.as_dict(),
        "avg_wt": result.metrics["average_waiting_time"],
        "avg_tat": result.metrics["average_turnaround_time"],
        "avg_rt": result.metrics["average_response_time"],
        "cpu_util": result.metrics["cpu_utilization"],
        "makespan": result.metrics["makespan"],
        "throughput": result.metrics["throughput"],
        "_rows": result.processes,
    }


def compare_all_algorithms(
    specs: Sequence[ProcessSpec],
    rr_quantum: int,
    mlfq_quantums: List[int],
    mlfq_allotment: int,
    max_ticks: int = DEFAULT_MAX_TICKS,
) -> List[Dict[str, Any]]:
    """Return a list of result dicts for all supported algorithms."""
    options = {
        "RR": {"quantum": rr_quantum},
        "MLFQ": {"queues": len(mlfq_quantums), "quantums": list(mlfq_quantums), "allotment": mlfq_allotment},
    }
    out = []
    for a in SUPPORTED_ALGOS:
        out.append(run_algorithm_once(specs, a, options.get(a), max_ticks=max_ticks))
    return out
