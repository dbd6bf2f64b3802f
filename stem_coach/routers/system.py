"""System router — health and engine configuration."""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter

from stem_coach.services.shared.config import get_config

logger = logging.getLogger("stem_coach.routers.system")
router = APIRouter()

VERSION = "1.0.0"


@router.get("/health")
async def health_check() -> Dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": VERSION}


@router.get("/config")
async def analysis_config() -> Dict[str, Any]:
    """Return the active analysis settings."""
    cfg = get_config()
    return {
        "settings_path": str(cfg.path),
        "analysis": cfg.section("analysis"),
    }
