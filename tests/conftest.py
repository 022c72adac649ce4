import pytest

from schedlab.engine import IoWindow, ProcessSpec


@pytest.fixture
def trio():
    """arrivals [0, 1, 2], bursts [5, 3, 2]"""
    return [
        ProcessSpec(arrival_time=0, burst_time=5),
        ProcessSpec(arrival_time=1, burst_time=3),
        ProcessSpec(arrival_time=2, burst_time=2),
    ]


@pytest.fixture
def trio_payload():
    return [
        {"arrivalTime": 0, "burstTime": 5, "io": []},
        {"arrivalTime": 1, "burstTime": 3, "io": []},
        {"arrivalTime": 2, "burstTime": 2, "io": []},
    ]


@pytest.fixture
def mixed_workload():
    return [
        ProcessSpec(arrival_time=0, burst_time=12),
        ProcessSpec(arrival_time=1, burst_time=6, io=[IoWindow(2, 3), IoWindow(4, 2)]),
        ProcessSpec(arrival_time=2, burst_time=10),
        ProcessSpec(arrival_time=3, burst_time=4, io=[IoWindow(1, 2)]),
        ProcessSpec(arrival_time=9, burst_time=3, io=[IoWindow(0, 1)]),
    ]


ALL_PARAMS = [
    ("FCFS", None),
    ("SJF", None),
    ("STCF", None),
    ("RR", {"quantum": 2}),
    ("MLFQ", {"queues": 3, "quantums": [2, 4, 8], "allotment": 10}),
]


@pytest.fixture(params=ALL_PARAMS, ids=[a for a, _ in ALL_PARAMS])
def algo_options(request):
    return request.param
