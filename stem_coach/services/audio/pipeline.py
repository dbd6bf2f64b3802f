"""Batch pipeline — decode uploaded stems, analyse the survivors, summarise.

One stem failing to decode (or carrying an unusable buffer) never aborts the
batch: it is logged, recorded in ``AnalysisReport.skipped`` and the rest of
the stems are analysed in their original order.
"""
from __future__ import annotations

import io
import logging
import mimetypes
from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple, Union

import numpy as np

from stem_coach.services.audio.analyzer import StemAnalyzer, StemInput
from stem_coach.services.audio.types import (
    AnalysisReport,
    AudioBuffer,
    DecodeError,
    InvalidInputError,
    SkippedStem,
)

logger = logging.getLogger("stem_coach.audio.pipeline")

AudioSource = Union[bytes, str]
Decoder = Callable[[AudioSource, str], AudioBuffer]


@dataclass(frozen=True)
class StemUpload:
    """Raw (still encoded) stem as received from a client."""
    filename: str
    data: bytes
    content_type: str = ""


# ── decoding ──────────────────────────────────────────────────────────────────

def _librosa_load(source: AudioSource) -> Tuple[np.ndarray, float]:
    """Wrap librosa.load at the native rate; separated for easy mocking."""
    import librosa
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    return librosa.load(source, sr=None, mono=False)


def decode_audio(source: AudioSource, filename: str) -> AudioBuffer:
    """Decode encoded audio bytes (or a path) into an AudioBuffer.

    Raises:
        DecodeError: If the decoder fails or produces no samples.
    """
    try:
        y, sr = _librosa_load(source)
    except Exception as exc:
        raise DecodeError(filename, str(exc) or type(exc).__name__) from exc

    y = np.asarray(y, dtype=np.float64)
    if y.ndim == 1:
        y = y[np.newaxis, :]
    if y.ndim != 2 or y.shape[-1] == 0:
        raise DecodeError(filename, f"decoder returned no audio (shape={y.shape})")
    return AudioBuffer(samples=y, sample_rate=float(sr))


def guess_mime_type(filename: str, declared: str = "") -> str:
    """Prefer the client's declared type; fall back to the file extension."""
    if declared and declared != "application/octet-stream":
        return declared
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or declared or ""


# ── batch ─────────────────────────────────────────────────────────────────────

def run_stem_analysis(
    uploads: Sequence[StemUpload],
    analyzer: StemAnalyzer,
    decoder: Decoder = decode_audio,
) -> AnalysisReport:
    """Decode and analyse every upload, skipping the ones that fail."""
    inputs: List[StemInput] = []
    skipped: List[SkippedStem] = []

    for upload in uploads:
        try:
            buffer = decoder(upload.data, upload.filename)
            buffer.validate(upload.filename)
        except (DecodeError, InvalidInputError) as exc:
            logger.warning("Skipping stem %r: %s", upload.filename, exc.reason)
            skipped.append(SkippedStem(name=upload.filename, reason=exc.reason))
            continue
        inputs.append(StemInput(
            buffer=buffer,
            name=upload.filename,
            mime_type=guess_mime_type(upload.filename, upload.content_type),
        ))

    records = analyzer.analyze_stems(inputs)
    return analyzer.build_report(records, skipped=skipped)
