import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schedlab.api.routes_sim import router as sim_router
from schedlab.api.ws import router as ws_router
from schedlab.config import settings

logging.basicConfig(
    level=getattr(logging, settings["log_level"]),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="CPU Scheduling Simulator API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings["cors_origins"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sim_router)
app.include_router(ws_router)


@app.get("/")
def root():
    return {"ok": True, "hint": "Use /health, /docs, /sim/run or /sim/compare"}
