"""Stems router — upload a song's stems and get the analysis report back."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, File, HTTPException, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from stem_coach.services.audio.analyzer import StemAnalyzer
from stem_coach.services.audio.pipeline import StemUpload, run_stem_analysis
from stem_coach.services.audio.roles import guess_role
from stem_coach.services.audio.types import BANDS
from stem_coach.services.shared.config import get_config

logger = logging.getLogger("stem_coach.routers.stems")
router = APIRouter()

_DEFAULT_SUFFIXES = {".wav", ".aif", ".aiff", ".flac", ".mp3", ".ogg", ".m4a"}

# ── Request / response models ─────────────────────────────────────────────────


class BandInfo(BaseModel):
    name: str
    low_hz: float
    high_hz: float


class BandsResponse(BaseModel):
    bands: List[BandInfo]


class RoleResponse(BaseModel):
    name: str
    role_guess: str


class RoleBatchRequest(BaseModel):
    names: List[str] = Field(..., min_length=1)


class RoleBatchResponse(BaseModel):
    roles: List[RoleResponse]


# ── Module-level singletons (lazy init) ───────────────────────────────────────
_analyzer: Optional[StemAnalyzer] = None


def _get_analyzer() -> StemAnalyzer:
    global _analyzer
    if _analyzer is None:
        _analyzer = StemAnalyzer.from_config(get_config())
    return _analyzer


def _allowed_suffixes() -> set:
    configured = get_config().get("api.allowed_suffixes")
    return {s.lower() for s in configured} if configured else _DEFAULT_SUFFIXES


# ── Endpoints ─────────────────────────────────────────────────────────────────


@router.post("/analyze")
async def analyze_stems(files: List[UploadFile] = File(...)) -> Dict[str, Any]:
    """Analyse every uploaded stem and summarise the song.

    Files are analysed in upload order.  A file that cannot be decoded is
    listed under ``skipped`` instead of failing the request.
    """
    allowed = _allowed_suffixes()
    uploads: List[StemUpload] = []
    for f in files:
        filename = f.filename or "upload"
        suffix = Path(filename).suffix.lower()
        if suffix not in allowed:
            raise HTTPException(
                status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
                detail=f"Unsupported file type '{suffix}'. Allowed: {sorted(allowed)}",
            )
        uploads.append(StemUpload(
            filename=filename,
            data=await f.read(),
            content_type=f.content_type or "",
        ))

    logger.info("Analysing %d uploaded stems", len(uploads))
    # Decoding and FFT work is CPU-bound; keep it off the event loop
    report = await run_in_threadpool(run_stem_analysis, uploads, _get_analyzer())
    return report.as_dict()


@router.get("/bands", response_model=BandsResponse)
async def list_bands() -> BandsResponse:
    """Return the frequency band table used for band percentages."""
    return BandsResponse(bands=[
        BandInfo(name=name, low_hz=lo, high_hz=hi) for name, lo, hi in BANDS
    ])


@router.get("/roles", response_model=RoleResponse)
async def role_for_name(name: str = Query(..., min_length=1)) -> RoleResponse:
    """Return the role tag guessed from a file name."""
    return RoleResponse(name=name, role_guess=guess_role(name))


@router.post("/roles", response_model=RoleBatchResponse)
async def roles_for_names(req: RoleBatchRequest) -> RoleBatchResponse:
    """Guess roles for several file names at once, in request order."""
    return RoleBatchResponse(roles=[
        RoleResponse(name=n, role_guess=guess_role(n)) for n in req.names
    ])
