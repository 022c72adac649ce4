import random

import pytest

from schedlab.engine import ValidationError, run_simulation
from schedlab.questions import (
    DIFFICULTIES,
    MAX_QUESTIONS,
    generate_mlfq_hard_processes,
    generate_question,
    generate_questions,
)

PARAM_KEYS = ("quantum", "queues", "quantums", "allotment")


@pytest.mark.parametrize("difficulty", DIFFICULTIES)
@pytest.mark.parametrize("algorithm", ["FCFS", "SJF", "STCF", "RR", "MLFQ"])
def test_generated_questions_are_runnable(difficulty, algorithm):
    for seed in range(5):
        q = generate_question(difficulty, algorithm, seed=seed)
        assert q["type"] == "scheduling"
        assert q["algorithm"] == algorithm
        arrivals = [p["arrivalTime"] for p in q["processes"]]
        assert arrivals == sorted(arrivals)
        assert [p["id"] for p in q["processes"]] == list(range(1, len(arrivals) + 1))

        options = {k: q[k] for k in PARAM_KEYS if k in q}
        result = run_simulation(q["algorithm"], q["processes"], options)
        assert len(result.processes) == len(q["processes"])


def test_same_seed_same_question():
    assert generate_question("hard", seed=99) == generate_question("hard", seed=99)


def test_easy_questions_have_no_io():
    for seed in range(10):
        q = generate_question("easy", seed=seed)
        assert all(p["io"] == [] for p in q["processes"])
        assert 2 <= len(q["processes"]) <= 3


def test_mlfq_hard_mix_contains_cpu_hogs():
    processes = generate_mlfq_hard_processes(random.Random(1), 6)
    assert len(processes) == 6
    assert max(p["burstTime"] for p in processes) >= 20


def test_description_mentions_parameters():
    q = generate_question("medium", "MLFQ", seed=4)
    assert "Multi-Level Feedback Queue" in q["description"]
    assert str(q["allotment"]) in q["description"]


def test_generate_questions_bounds():
    assert len(generate_questions(MAX_QUESTIONS, seed=1)) == MAX_QUESTIONS
    for bad in (0, MAX_QUESTIONS + 1, "3", True):
        with pytest.raises(ValidationError):
            generate_questions(bad)


def test_unknown_difficulty_and_algorithm():
    with pytest.raises(ValidationError):
        generate_question("impossible")
    with pytest.raises(ValidationError):
        generate_question("easy", "LOTTERY")
