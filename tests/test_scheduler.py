import json

import pytest

from schedlab.engine import (
    IoWindow,
    ProcessSpec,
    ProcessState,
    RunawaySimulationError,
    SimulationDriver,
    SimulationError,
    ValidationError,
    parse_params,
    run_simulation,
)
from schedlab.engine.trace import IDLE
from schedlab.serializers import serialize_result

MLFQ_2x = {"queues": 2, "quantums": [2, 4], "allotment": 6}


def _run(algorithm, specs, options=None, **kw):
    return SimulationDriver(specs, parse_params(algorithm, options), **kw).run()


def _column(result, key):
    return [row[key] for row in result.processes]


# ---------------- Reference runs ----------------
def test_fcfs_textbook_trio(trio):
    result = _run("FCFS", trio)
    assert _column(result, "completion_time") == [5, 8, 10]
    assert _column(result, "waiting_time") == [0, 4, 6]
    assert _column(result, "turnaround_time") == [5, 7, 8]
    assert _column(result, "scheduled_time") == [0, 5, 8]
    assert result.metrics["average_waiting_time"] == pytest.approx(10 / 3)
    assert result.metrics["makespan"] == 10
    assert result.metrics["cpu_utilization"] == pytest.approx(100.0)
    assert result.gantt == [
        {"pid": 1, "start": 0, "end": 5},
        {"pid": 2, "start": 5, "end": 8},
        {"pid": 3, "start": 8, "end": 10},
    ]
    # one step per tick including the tick that observes the last completion
    assert len(result.trace) == 11
    assert result.trace.steps[-1].running_pid == IDLE


def test_round_robin_quantum_two(trio):
    result = _run("RR", trio, {"quantum": 2})
    assert _column(result, "completion_time") == [10, 9, 6]
    assert _column(result, "waiting_time") == [5, 5, 2]
    assert _column(result, "scheduled_time") == [0, 2, 4]
    assert result.metrics["average_waiting_time"] == pytest.approx(4.0)
    assert result.trace.dispatch_order() == [1, 2, 3, 1, 2, 1]
    assert result.trace.timeline() == [1, 1, 2, 2, 3, 3, 1, 1, 2, 1, IDLE]


def test_sjf_picks_shortest_burst_when_cpu_frees():
    specs = [ProcessSpec(0, 7), ProcessSpec(2, 4), ProcessSpec(4, 1), ProcessSpec(5, 4)]
    result = _run("SJF", specs)
    assert _column(result, "completion_time") == [7, 12, 8, 16]
    assert result.trace.dispatch_order() == [1, 3, 2, 4]


def test_stcf_preempts_for_shorter_remaining_time():
    specs = [ProcessSpec(0, 8), ProcessSpec(1, 4), ProcessSpec(2, 9), ProcessSpec(3, 5)]
    result = _run("STCF", specs)
    assert _column(result, "completion_time") == [17, 5, 26, 10]
    assert _column(result, "waiting_time") == [9, 0, 15, 2]
    assert result.metrics["average_waiting_time"] == pytest.approx(6.5)
    step = result.trace.steps[1]
    assert [e.kind for e in step.events] == ["arrival", "preempt", "dispatch"]


def test_stcf_tie_keeps_incumbent():
    result = _run("STCF", [ProcessSpec(0, 4), ProcessSpec(1, 3)])
    assert _column(result, "completion_time") == [4, 7]
    assert result.trace.dispatch_order() == [1, 2]


def test_mlfq_single_process_runs_to_completion():
    result = _run("MLFQ", [ProcessSpec(0, 10)], MLFQ_2x)
    assert _column(result, "completion_time") == [10]
    assert result.metrics["cpu_utilization"] == pytest.approx(100.0)


def test_mlfq_demotion_after_level_zero_quantum():
    driver = SimulationDriver([ProcessSpec(0, 10)], parse_params("MLFQ", MLFQ_2x))
    for _ in range(3):
        driver.tick()
    rec = driver.pcb.get_record(1)
    assert rec.priority_level == 1
    assert rec.state == ProcessState.RUNNING
    assert rec.quantum_remaining == 3


def test_mlfq_boost_preempts_incumbent_mid_quantum():
    driver = SimulationDriver([ProcessSpec(0, 10), ProcessSpec(0, 10)], parse_params("MLFQ", MLFQ_2x))
    for _ in range(6):
        driver.tick()
    assert driver.running == 1
    assert driver.pcb.get_record(1).priority_level == 1
    assert driver.queues.snapshot() == [[], [2]]

    driver.tick()
    step = driver.trace.steps[-1]
    assert step.tick == 6
    assert [e.kind for e in step.events] == ["boost", "promote", "preempt", "dispatch"]
    # the boost tick is not lost: the newly dispatched process executes in it
    assert step.running_pid == 2
    assert driver.queues.snapshot() == [[1], []]
    assert [r.priority_level for r in driver.pcb.records()] == [0, 0]


def test_mlfq_two_cpu_hogs_alternate_through_boosts():
    result = _run("MLFQ", [ProcessSpec(0, 10), ProcessSpec(0, 10)], MLFQ_2x)
    assert _column(result, "completion_time") == [18, 20]
    assert _column(result, "waiting_time") == [8, 10]
    assert _column(result, "scheduled_time") == [0, 2]
    # at tick 18 P2 is dispatched from level 1, boosted, then dispatched again from level 0
    assert result.trace.dispatch_order() == [1, 2] * 5 + [2]
    assert IDLE not in result.trace.timeline()[:20]
    assert result.metrics["makespan"] == 20
    boosts = [s.tick for s in result.trace.steps for e in s.events if e.kind == "boost"]
    assert boosts == [6, 12, 18]


def test_mlfq_process_finishing_on_boost_tick_is_completed_not_requeued():
    result = _run("MLFQ", [ProcessSpec(0, 10), ProcessSpec(0, 10)], MLFQ_2x)
    step = result.trace.steps[18]
    assert [(e.kind, e.pid) for e in step.events] == [
        ("finish", 1),
        ("dispatch", 2),
        ("boost", IDLE),
        ("preempt", 2),
        ("dispatch", 2),
    ]
    assert step.running_pid == 2
    assert step.ready_queues == [[], []]


def test_mlfq_boost_on_idle_cpu_dispatches_lower_queue_head_first():
    # P1 times out at tick 6 leaving level 1 as [P2, P1]; P2 is dispatched,
    # then the boost preempts it and requeues it behind P1.
    options = {"queues": 2, "quantums": [2, 2], "allotment": 6}
    driver = SimulationDriver([ProcessSpec(0, 20), ProcessSpec(0, 20)], parse_params("MLFQ", options))
    for _ in range(7):
        driver.tick()

    step = driver.trace.steps[-1]
    assert step.tick == 6
    assert [(e.kind, e.pid) for e in step.events] == [
        ("timeout", 1),
        ("dispatch", 2),
        ("boost", IDLE),
        ("promote", 1),
        ("preempt", 2),
        ("dispatch", 1),
    ]
    assert step.running_pid == 1
    assert step.ready_queues == [[2], []]
    assert [r.priority_level for r in driver.pcb.records()] == [0, 0]


# ---------------- I/O ----------------
def test_fcfs_single_process_no_io():
    result = _run("FCFS", [ProcessSpec(0, 2)])
    assert _column(result, "completion_time") == [2]
    assert _column(result, "scheduled_time") == [0]


def test_fcfs_io_at_start_of_burst():
    result = _run("FCFS", [ProcessSpec(0, 2, io=[IoWindow(0, 2)])])
    assert _column(result, "completion_time") == [4]
    assert _column(result, "scheduled_time") == [0]
    assert _column(result, "waiting_time") == [2]
    assert _column(result, "response_time") == [0]
    assert result.trace.steps[0].running_pid == IDLE
    assert result.trace.steps[0].waiting == [1]


def test_fcfs_two_simultaneous_arrivals():
    result = _run("FCFS", [ProcessSpec(0, 2), ProcessSpec(0, 4)])
    assert _column(result, "completion_time") == [2, 6]
    assert _column(result, "scheduled_time") == [0, 2]


def test_fcfs_io_lets_second_process_run():
    result = _run("FCFS", [ProcessSpec(0, 2, io=[IoWindow(1, 2)]), ProcessSpec(0, 4)])
    assert _column(result, "completion_time") == [7, 6]
    assert _column(result, "scheduled_time") == [0, 2]


def test_fcfs_back_to_back_io_windows_and_late_arrival():
    specs = [
        ProcessSpec(0, 2, io=[IoWindow(0, 1), IoWindow(1, 2)]),
        ProcessSpec(0, 4),
        ProcessSpec(5, 2),
    ]
    result = _run("FCFS", specs)
    assert _column(result, "completion_time") == [10, 5, 9]
    assert _column(result, "scheduled_time") == [0, 1, 7]


def test_idle_cpu_between_arrivals():
    result = _run("FCFS", [ProcessSpec(0, 2), ProcessSpec(5, 1)])
    assert _column(result, "completion_time") == [2, 6]
    assert result.trace.timeline()[2:5] == [IDLE, IDLE, IDLE]
    assert result.metrics["cpu_utilization"] == pytest.approx(50.0)


# ---------------- Invariants ----------------
def test_turnaround_is_waiting_plus_burst(mixed_workload, algo_options):
    algorithm, options = algo_options
    result = _run(algorithm, mixed_workload, options)
    for row in result.processes:
        assert row["completion_time"] >= row["arrival_time"] + row["burst_time"]
        assert row["turnaround_time"] == row["waiting_time"] + row["burst_time"]
        assert row["response_time"] == row["scheduled_time"] - row["arrival_time"]
    assert result.metrics["makespan"] == max(_column(result, "completion_time"))


def test_runs_are_deterministic(mixed_workload, algo_options):
    algorithm, options = algo_options
    first = json.dumps(serialize_result(_run(algorithm, mixed_workload, options)), sort_keys=True)
    second = json.dumps(serialize_result(_run(algorithm, mixed_workload, options)), sort_keys=True)
    assert first == second


def test_at_most_one_running_and_queue_membership(mixed_workload, algo_options):
    algorithm, options = algo_options
    result = _run(algorithm, mixed_workload, options)
    for step in result.trace.steps:
        running = [pid for pid, state in step.states.items() if state == "RUNNING"]
        assert len(running) <= 1
        queued = [pid for q in step.ready_queues for pid in q]
        assert len(queued) == len(set(queued))
        ready = sorted(pid for pid, state in step.states.items() if state == "READY")
        assert sorted(queued) == ready


def test_rr_never_runs_longer_than_quantum(mixed_workload):
    quantum = 3
    result = _run("RR", mixed_workload, {"quantum": quantum})
    run_len = 0
    current = None
    for step in result.trace.steps:
        if any(e.kind == "dispatch" for e in step.events):
            run_len = 0
        if step.running_pid == IDLE:
            current = None
            continue
        if step.running_pid != current:
            current = step.running_pid
            run_len = 0
        run_len += 1
        assert run_len <= quantum


def test_stcf_running_process_is_never_beaten_by_ready_one(mixed_workload):
    driver = SimulationDriver(mixed_workload, parse_params("STCF"))
    while not driver.pcb.is_all_finished():
        driver.tick()
        if driver.running is None:
            continue
        running = driver.pcb.get_record(driver.running)
        for pid in driver.queues.all_ready():
            assert driver.pcb.get_record(pid).remaining_time >= running.remaining_time


def test_mlfq_everyone_back_at_top_after_each_boost(mixed_workload):
    options = {"queues": 3, "quantums": [1, 2, 4], "allotment": 5}
    driver = SimulationDriver(mixed_workload, parse_params("MLFQ", options))
    while not driver.pcb.is_all_finished():
        driver.tick()
        boosted = driver.time - 1
        if boosted > 0 and boosted % 5 == 0:
            for rec in driver.pcb.records():
                if rec.state != ProcessState.DONE:
                    assert rec.priority_level == 0


# ---------------- Driver lifecycle and errors ----------------
def test_driver_runs_only_once(trio):
    driver = SimulationDriver(trio, parse_params("FCFS"))
    driver.run()
    with pytest.raises(SimulationError):
        driver.run()


def test_runaway_simulation_raises():
    with pytest.raises(RunawaySimulationError) as info:
        _run("FCFS", [ProcessSpec(0, 10)], max_ticks=3)
    assert info.value.max_ticks == 3
    assert info.value.algorithm == "FCFS"


def test_invalid_specs_fail_before_any_tick():
    with pytest.raises(ValidationError):
        SimulationDriver([ProcessSpec(0, 3, io=[IoWindow(5, 1)])], parse_params("FCFS"))


def test_run_simulation_from_raw_payload(trio_payload):
    result = run_simulation("rr", trio_payload, {"quantum": 2})
    assert result.algorithm == "RR"
    assert _column(result, "completion_time") == [10, 9, 6]


def test_trace_cannot_grow_after_run(trio):
    result = _run("FCFS", trio)
    with pytest.raises(SimulationError):
        result.trace.append(result.trace.steps[-1])


def test_fcfs_dispatches_in_arrival_order_ties_by_pid():
    specs = [ProcessSpec(3, 2), ProcessSpec(0, 4), ProcessSpec(3, 1), ProcessSpec(1, 2)]
    result = _run("FCFS", specs)
    assert result.trace.dispatch_order() == [2, 4, 1, 3]
