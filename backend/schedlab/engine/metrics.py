from typing import Any, Dict, List, Tuple

from .models import ProcessRecord


def compute_metrics(records: List[ProcessRecord]) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
    """Return per-process timing rows plus the aggregate summary.

    - Rows come back in pid order, one per process.
    - Averages cover completed processes only (after a full run that is all of them).
    - makespan is the tick at which the last process completed.
    """
    rows: List[Dict[str, Any]] = []
    done: List[Dict[str, Any]] = []

    for p in sorted(records, key=lambda x: x.pid):
        row = {
            "pid": p.pid,
            "arrival_time": p.arrival_time,
            "burst_time": p.burst_time,
            "scheduled_time": p.scheduled_time,
            "completion_time": p.completion_time,
            "turnaround_time": p.turnaround_time,
            "waiting_time": p.waiting_time,
            "response_time": p.response_time,
        }
        rows.append(row)
        if p.completion_time >= 0:
            done.append(row)

    if done:
        n = len(done)
        avg_wt = sum(r["waiting_time"] for r in done) / n
        avg_tat = sum(r["turnaround_time"] for r in done) / n
        avg_rt = sum(r["response_time"] for r in done) / n
        makespan = max(r["completion_time"] for r in done)
    else:
        avg_wt = avg_tat = avg_rt = 0.0
        makespan = 0

    total_burst = sum(r["burst_time"] for r in done)
    cpu_util = (total_burst / makespan * 100.0) if makespan > 0 else 0.0
    throughput = (len(done) / makespan) if makespan > 0 else 0.0

    summary = {
        "average_waiting_time": float(avg_wt),
        "average_turnaround_time": float(avg_tat),
        "average_response_time": float(avg_rt),
        "cpu_utilization": float(cpu_util),
        "throughput": float(throughput),
        "makespan": int(makespan),
    }
    return rows, summary
