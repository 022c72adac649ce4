import random
from typing import Any, Dict, List, Optional

from schedlab.engine import SUPPORTED_ALGOS, ValidationError, parse_params
from schedlab.engine.validation import normalize_algorithm

DIFFICULTIES = ("easy", "medium", "hard")
MAX_QUESTIONS = 20

ALGORITHM_NAMES = {
    "FCFS": "First Come First Served",
    "SJF": "Shortest Job First",
    "STCF": "Shortest Time to Completion First",
    "RR": "Round Robin",
    "MLFQ": "Multi-Level Feedback Queue",
}

# difficulty -> (process count range, max I/O windows, burst range, arrival spread)
_DIFFICULTY = {
    "easy": ((2, 3), 0, (3, 8), 3),
    "medium": ((4, 6), 1, (5, 12), 5),
    "hard": ((6, 10), 4, (10, 25), 8),
}


def _check_difficulty(difficulty: str) -> str:
    value = str(difficulty or "").strip().lower()
    if value not in DIFFICULTIES:
        raise ValidationError(f"Invalid difficulty. Must be one of: {', '.join(DIFFICULTIES)}")
    return value


def _io_windows(rng: random.Random, burst: int, max_io: int) -> List[Dict[str, int]]:
    if max_io == 0 or burst < 3:
        return []
    starts: List[int] = []
    for _ in range(rng.randint(0, max_io)):
        start = rng.randint(1, burst - 2)
        # keep windows at least two CPU ticks apart
        if all(abs(start - s) >= 2 for s in starts):
            starts.append(start)
    return [{"start": s, "duration": rng.randint(1, 3)} for s in sorted(starts)]


def _renumber(processes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # stable sort keeps generation order among equal arrivals
    ordered = sorted(processes, key=lambda p: p["arrivalTime"])
    return [dict(p, id=idx + 1) for idx, p in enumerate(ordered)]


def generate_processes(rng: random.Random, difficulty: str) -> List[Dict[str, Any]]:
    (lo, hi), max_io, (bmin, bmax), spread = _DIFFICULTY[difficulty]
    processes = []
    for i in range(rng.randint(lo, hi)):
        burst = rng.randint(bmin, bmax)
        arrival = 0 if i == 0 else rng.randint(0, spread)
        processes.append({"arrivalTime": arrival, "burstTime": burst, "io": _io_windows(rng, burst, max_io)})
    return _renumber(processes)


def generate_mlfq_hard_processes(rng: random.Random, count: int) -> List[Dict[str, Any]]:
    """Mix of CPU hogs, I/O-heavy jobs and in-between jobs so demotion and boosting both show up."""
    processes = []
    for i in range(count):
        if i < 2:
            burst = rng.randint(20, 30)
            io: List[Dict[str, int]] = []
        elif i < 4:
            burst = rng.randint(15, 25)
            io = [
                {"start": rng.randint(3, 8), "duration": rng.randint(2, 4)},
                {"start": rng.randint(12, 14), "duration": rng.randint(1, 3)},
            ]
        else:
            burst = rng.randint(12, 20)
            io = [{"start": rng.randint(5, 10), "duration": rng.randint(1, 2)}] if rng.random() > 0.5 else []
        arrival = 0 if i == 0 else rng.randint(0, 6)
        processes.append({"arrivalTime": arrival, "burstTime": burst, "io": io})
    return _renumber(processes)


def generate_quantum(rng: random.Random, difficulty: str) -> int:
    lo, hi = {"easy": (2, 4), "medium": (2, 5), "hard": (1, 4)}[difficulty]
    return rng.randint(lo, hi)


def generate_mlfq_config(rng: random.Random, difficulty: str) -> Dict[str, Any]:
    if difficulty == "easy":
        return {"queues": 2, "quantums": [2, 4], "allotment": 15}
    if difficulty == "medium":
        return {"queues": 3, "quantums": [2, 4, 8], "allotment": rng.randint(12, 18)}
    queues = rng.randint(3, 4)
    quantums = [1, 3, 6] if queues == 3 else [1, 2, 4, 8]
    return {"queues": queues, "quantums": quantums, "allotment": rng.randint(8, 15)}


def describe(algorithm: str, processes: List[Dict[str, Any]], params: Dict[str, Any]) -> str:
    name = ALGORITHM_NAMES[algorithm]
    lines = [f"{len(processes)} processes are scheduled with {name} ({algorithm})."]
    if algorithm == "RR":
        lines.append(f"The time quantum is {params['quantum']} units.")
    if algorithm == "MLFQ":
        levels = ", ".join(f"queue {i}: {q}" for i, q in enumerate(params["quantums"]))
        lines.append(
            f"There are {params['queues']} ready queues (queue 0 is the highest priority) with quantums {levels}. "
            f"Every {params['allotment']} time units all processes are boosted back to queue 0. "
            "New processes and processes returning from I/O enter queue 0; "
            "a process that uses up its quantum drops one level."
        )
    if any(p["io"] for p in processes):
        lines.append("I/O start times are measured in CPU time already consumed by the process.")
    lines.append("Compute the completion, waiting and turnaround time of every process.")
    return " ".join(lines)


def generate_question(
    difficulty: str = "medium",
    algorithm: Optional[str] = None,
    seed: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    difficulty = _check_difficulty(difficulty)
    rng = rng or random.Random(seed)
    algo = normalize_algorithm(algorithm) if algorithm else rng.choice(SUPPORTED_ALGOS)

    if algo == "MLFQ" and difficulty == "hard":
        processes = generate_mlfq_hard_processes(rng, rng.randint(6, 10))
    else:
        processes = generate_processes(rng, difficulty)

    params: Dict[str, Any] = {}
    if algo == "RR":
        params["quantum"] = generate_quantum(rng, difficulty)
    if algo == "MLFQ":
        params.update(generate_mlfq_config(rng, difficulty))
    # generated parameters must always be runnable
    parse_params(algo, params)

    return {
        "type": "scheduling",
        "difficulty": difficulty,
        "algorithm": algo,
        **params,
        "processes": processes,
        "description": describe(algo, processes, params),
    }


def generate_questions(count: int, difficulty: str = "medium", seed: Optional[int] = None) -> List[Dict[str, Any]]:
    if isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= MAX_QUESTIONS:
        raise ValidationError(f"Count must be between 1 and {MAX_QUESTIONS}")
    rng = random.Random(seed)
    return [generate_question(difficulty, rng=rng) for _ in range(count)]
