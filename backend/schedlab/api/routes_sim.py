import logging
from math import sqrt
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException

from schedlab.config import settings
from schedlab.engine import (
    ProcessSpec,
    SimulationError,
    compare_all_algorithms,
    load_default_dataset,
    load_preset,
    parse_process_specs,
    run_simulation,
    specs_to_payload,
)
from schedlab.engine.datasets import DEFAULT_DATASET, preset_name
from schedlab.grading import grade_answer
from schedlab.questions import generate_question, generate_questions
from schedlab.serializers import serialize_compare, serialize_result

logger = logging.getLogger(__name__)

router = APIRouter()

PARAM_KEYS = ("quantum", "queues", "quantums", "allotment")


def _options(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: payload[k] for k in PARAM_KEYS if k in payload}


def _engine_failure(exc: SimulationError) -> HTTPException:
    logger.error("engine failure: %s", exc)
    return HTTPException(status_code=500, detail={"engine_error": str(exc)})


def _compute_workload(specs: List[ProcessSpec]) -> Dict[str, float]:
    bursts = [s.burst_time for s in specs]
    arrivals = [s.arrival_time for s in specs]
    total_io = sum(w.duration for s in specs for w in s.io)

    total_cpu = sum(bursts)
    n_procs = len(specs)
    avg_cpu = (total_cpu / n_procs) if n_procs else 0.0
    var_cpu = (sum((b - avg_cpu) ** 2 for b in bursts) / n_procs) if n_procs else 0.0
    std_cpu = sqrt(var_cpu) if var_cpu > 0 else 0.0
    arrival_spread = (max(arrivals) - min(arrivals)) if arrivals else 0

    return {
        "total_cpu": float(total_cpu),
        "total_io": float(total_io),
        "io_ratio": float(total_io / max(total_cpu, 1)),
        "avg_cpu_burst": float(avg_cpu),
        "std_cpu_burst": float(std_cpu),
        "burst_variance": float(std_cpu / max(avg_cpu, 1.0)),
        "n_procs": float(n_procs),
        "arrival_spread": float(arrival_spread),
    }


@router.get("/health")
def health() -> Dict[str, bool]:
    return {"ok": True}


@router.post("/sim/run")
def sim_run(payload: Dict[str, Any] = Body(default_factory=dict)) -> Dict[str, Any]:
    try:
        result = run_simulation(
            payload.get("algorithm"),
            payload.get("processes"),
            _options(payload),
            max_ticks=settings["max_ticks"],
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except SimulationError as exc:
        raise _engine_failure(exc)
    return serialize_result(result)


@router.post("/sim/compare")
def sim_compare(payload: Dict[str, Any] = Body(default_factory=dict)) -> Dict[str, Any]:
    try:
        if payload.get("processes") is not None:
            specs = parse_process_specs(payload.get("processes"))
        elif payload.get("dataset"):
            specs = load_default_dataset()
        else:
            specs = load_preset(int(payload.get("preset", 1)))
        quantums: Optional[List[int]] = payload.get("mlfq_quantums") or settings["mlfq_quantums"]
        results = compare_all_algorithms(
            specs,
            rr_quantum=payload.get("rr_quantum", settings["rr_quantum"]),
            mlfq_quantums=quantums,
            mlfq_allotment=payload.get("mlfq_allotment", settings["mlfq_allotment"]),
            max_ticks=settings["max_ticks"],
        )
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except SimulationError as exc:
        raise _engine_failure(exc)

    return {
        "results": serialize_compare(results),
        "workload": _compute_workload(specs),
    }


@router.get("/sim/presets/{preset_id}")
def sim_preset(preset_id: int) -> Dict[str, Any]:
    try:
        specs = load_preset(preset_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return {"id": preset_id, "name": preset_name(preset_id), "processes": specs_to_payload(specs)}


@router.get("/sim/dataset")
def sim_dataset() -> Dict[str, Any]:
    specs = load_default_dataset()
    return {"name": DEFAULT_DATASET, "processes": specs_to_payload(specs)}


@router.post("/test/generate")
def test_generate(payload: Dict[str, Any] = Body(default_factory=dict)) -> Dict[str, Any]:
    difficulty = payload.get("difficulty", "medium")
    seed = payload.get("seed")
    try:
        if "count" in payload:
            questions = generate_questions(payload.get("count"), difficulty, seed=seed)
            return {"questions": questions, "count": len(questions)}
        return {"question": generate_question(difficulty, payload.get("algorithm"), seed=seed)}
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@router.post("/test/check")
def test_check(payload: Dict[str, Any] = Body(default_factory=dict)) -> Dict[str, Any]:
    question = payload.get("question")
    answer = payload.get("answer")
    if not question:
        raise HTTPException(status_code=422, detail="question is required")
    if not answer:
        raise HTTPException(status_code=422, detail="answer is required")
    try:
        return grade_answer(question, answer, max_ticks=settings["max_ticks"])
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except SimulationError as exc:
        raise _engine_failure(exc)
