from typing import Any, Dict, List

from schedlab.engine import SimulationResult, TraceStep


def serialize_step(step: TraceStep) -> Dict[str, Any]:
    return {
        "tick": step.tick,
        "runningPid": step.running_pid,
        "events": [e.as_dict() for e in step.events],
        "explanation": [e.message for e in step.events],
        "readyQueues": [list(q) for q in step.ready_queues],
        "waiting": list(step.waiting),
        "newArrivals": list(step.new_arrivals),
        # JSON object keys are strings; keep pid order stable
        "states": {str(pid): state for pid, state in sorted(step.states.items())},
    }


def serialize_process_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "pid": row["pid"],
        "arrivalTime": row["arrival_time"],
        "burstTime": row["burst_time"],
        "scheduledTime": row["scheduled_time"],
        "waitingTime": row["waiting_time"],
        "turnaroundTime": row["turnaround_time"],
        "completionTime": row["completion_time"],
        "responseTime": row["response_time"],
    }


def serialize_metrics(summary: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "averageWaitingTime": summary["average_waiting_time"],
        "averageTurnaroundTime": summary["average_turnaround_time"],
        "averageResponseTime": summary["average_response_time"],
        "cpuUtilization": summary["cpu_utilization"],
        "throughput": summary["throughput"],
        "makespan": summary["makespan"],
    }


def serialize_result(result: SimulationResult) -> Dict[str, Any]:
    """Engine result -> JSON document, relayed to clients unchanged."""
    return {
        "algorithm": result.algorithm,
        "params": result.params.as_dict(),
        "processes": [serialize_process_row(r) for r in result.processes],
        "metrics": serialize_metrics(result.metrics),
        "gantt": result.gantt,
        "trace": [serialize_step(s) for s in result.trace.steps],
    }


def serialize_compare_row(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "algorithm": raw["algorithm"],
        "params": raw["params"],
        "avg_wt": float(raw["avg_wt"]),
        "avg_tat": float(raw["avg_tat"]),
        "avg_rt": float(raw["avg_rt"]),
        "cpu_util": float(raw["cpu_util"]),
        "makespan": int(raw["makespan"]),
        "throughput": float(raw["throughput"]),
        "per_process": [serialize_process_row(r) for r in raw.get("_rows") or []],
    }


def serialize_compare(results: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [serialize_compare_row(r) for r in results]
