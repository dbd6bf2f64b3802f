"""Stem Coach — FastAPI application entry point.

All routers are mounted here. No dead-code routers allowed — if a router
module exists, it must be mounted in this file.
"""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stem_coach.routers import stems, system
from stem_coach.services.shared.config import get_config
from stem_coach.services.shared.logging import setup_logging_from_config

_config = get_config()
setup_logging_from_config(_config)

app = FastAPI(
    title="Stem Coach",
    version=system.VERSION,
    description="Per-stem loudness, spectral balance and role analysis for mix coaching.",
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=_config.get("api.cors_origins", ["http://localhost:5173"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(stems.router,  prefix="/api/stems",  tags=["Stems"])
app.include_router(system.router, prefix="/api/system", tags=["System"])
