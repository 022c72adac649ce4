import logging
from typing import Any, Dict, List, Optional

from schedlab.engine import DEFAULT_MAX_TICKS, ValidationError, run_simulation
from schedlab.serializers import serialize_metrics, serialize_process_row

logger = logging.getLogger(__name__)

GRADED_FIELDS = ("completionTime", "waitingTime", "turnaroundTime")
OPTIONAL_FIELDS = ("scheduledTime",)
AVERAGE_FIELDS = ("averageWaitingTime", "averageTurnaroundTime")
AVERAGE_TOLERANCE = 0.01

PARAM_KEYS = ("quantum", "queues", "quantums", "allotment")


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _check(expected: Any, actual: Any, tolerance: float = 0.0) -> Dict[str, Any]:
    got = _as_number(actual)
    correct = got is not None and abs(got - float(expected)) <= tolerance
    return {"expected": expected, "actual": actual, "correct": correct}


def _index_answer(answer: Dict[str, Any]) -> Dict[int, Dict[str, Any]]:
    rows = answer.get("processes")
    if not isinstance(rows, list):
        raise ValidationError("answer.processes must be an array")
    out: Dict[int, Dict[str, Any]] = {}
    for idx, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ValidationError(f"answer row {idx + 1} must be an object")
        pid = row.get("pid", idx + 1)
        if isinstance(pid, bool) or not isinstance(pid, int):
            raise ValidationError(f"answer row {idx + 1}: pid must be an integer")
        out[pid] = row
    return out


def grade_answer(
    question: Dict[str, Any],
    answer: Dict[str, Any],
    max_ticks: int = DEFAULT_MAX_TICKS,
) -> Dict[str, Any]:
    """Compare a learner's computed timings with the engine's own run.

    Per-process integer timings must match exactly; averages (when the
    learner supplies them) within AVERAGE_TOLERANCE.
    """
    if not isinstance(question, dict):
        raise ValidationError("question must be an object")
    if not isinstance(answer, dict):
        raise ValidationError("answer must be an object")

    options = {k: question[k] for k in PARAM_KEYS if question.get(k) is not None}
    result = run_simulation(question.get("algorithm"), question.get("processes"), options, max_ticks=max_ticks)
    expected_rows = [serialize_process_row(r) for r in result.processes]
    expected_metrics = serialize_metrics(result.metrics)
    given = _index_answer(answer)

    per_process: List[Dict[str, Any]] = []
    checked = correct = 0
    for row in expected_rows:
        submitted = given.get(row["pid"], {})
        entry: Dict[str, Any] = {"pid": row["pid"]}
        fields = list(GRADED_FIELDS) + [f for f in OPTIONAL_FIELDS if f in submitted]
        for name in fields:
            verdict = _check(row[name], submitted.get(name))
            entry[name] = verdict
            checked += 1
            correct += int(verdict["correct"])
        per_process.append(entry)

    averages: Dict[str, Any] = {}
    for name in AVERAGE_FIELDS:
        if name in answer:
            verdict = _check(expected_metrics[name], answer.get(name), AVERAGE_TOLERANCE)
            averages[name] = verdict
            checked += 1
            correct += int(verdict["correct"])

    score = (correct / checked) if checked else 0.0
    is_correct = checked > 0 and correct == checked
    logger.info("graded %s answer: %d/%d fields correct", result.algorithm, correct, checked)

    return {
        "isCorrect": is_correct,
        "score": score,
        "perProcess": per_process,
        "averages": averages,
        "expected": {"processes": expected_rows, "metrics": expected_metrics},
    }
