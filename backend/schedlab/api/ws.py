import logging
from typing import Any, Dict

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from schedlab.config import settings
from schedlab.engine import SimulationError, run_simulation
from schedlab.serializers import serialize_result

logger = logging.getLogger(__name__)

router = APIRouter()


async def _send_run(ws: WebSocket, msg: Dict[str, Any]) -> None:
    # Every message gets its own driver; nothing carries over between runs.
    options = {k: msg[k] for k in ("quantum", "queues", "quantums", "allotment") if k in msg}
    try:
        result = run_simulation(msg.get("algorithm"), msg.get("processes"), options, max_ticks=settings["max_ticks"])
    except ValueError as exc:
        await ws.send_json({"type": "error", "kind": "validation", "message": str(exc)})
        return
    except SimulationError as exc:
        logger.error("engine failure over websocket: %s", exc)
        await ws.send_json({"type": "error", "kind": "engine", "message": str(exc)})
        return

    doc = serialize_result(result)
    for step in doc.pop("trace"):
        await ws.send_json({"type": "step", "data": step})
    await ws.send_json({"type": "result", "data": doc})


@router.websocket("/ws/sim")
async def ws_sim(websocket: WebSocket) -> None:
    await websocket.accept()

    try:
        while True:
            msg: Dict[str, Any] = await websocket.receive_json()
            mtype = str(msg.get("type", "")).lower()

            if mtype == "run":
                await _send_run(websocket, msg)
            elif mtype == "ping":
                await websocket.send_json({"type": "pong"})
            else:
                await websocket.send_json({"type": "error", "kind": "protocol", "message": f"unknown message type: {mtype}"})
    except WebSocketDisconnect:
        return
