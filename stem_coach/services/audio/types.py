"""Data types for the Stem Coach analysis engine."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

# (name, low_hz, high_hz): half-open [low, high), checked in this order
BANDS: Tuple[Tuple[str, float, float], ...] = (
    ("sub_20_60",        20.0,    60.0),
    ("low_60_200",       60.0,   200.0),
    ("lowmid_200_500",  200.0,   500.0),
    ("mid_500_2k",      500.0,  2000.0),
    ("highmid_2k_5k",  2000.0,  5000.0),
    ("presence_5k_10k", 5000.0, 10000.0),
    ("air_10k_18k",   10000.0, 18000.0),
)

BAND_NAMES: Tuple[str, ...] = tuple(name for name, _, _ in BANDS)

# Ordered band name → percent of total spectral energy
BandPercentages = Dict[str, float]


class AnalysisError(Exception):
    """Base exception for stem analysis errors."""


class InvalidInputError(AnalysisError):
    """A stem's buffer violates a structural precondition."""

    def __init__(self, stem_name: str, reason: str):
        self.stem_name = stem_name
        self.reason = reason
        super().__init__(f"Invalid input for stem {stem_name!r}: {reason}")


class DecodeError(AnalysisError):
    """An uploaded file could not be decoded into an AudioBuffer."""

    def __init__(self, stem_name: str, reason: str):
        self.stem_name = stem_name
        self.reason = reason
        super().__init__(f"Could not decode {stem_name!r}: {reason}")


@dataclass(frozen=True)
class AudioBuffer:
    """Decoded PCM audio: one row per channel, shape (channels, frames)."""
    samples: np.ndarray
    sample_rate: float

    @classmethod
    def from_channels(
        cls,
        channels: Sequence[Sequence[float]],
        sample_rate: float,
        name: str = "<buffer>",
    ) -> "AudioBuffer":
        """Build a buffer from per-channel sample sequences.

        Raises:
            InvalidInputError: If there are no channels or their lengths differ.
        """
        if len(channels) == 0:
            raise InvalidInputError(name, "channel count is zero")
        lengths = {len(ch) for ch in channels}
        if len(lengths) > 1:
            raise InvalidInputError(name, f"channels have unequal lengths {sorted(lengths)}")
        samples = np.asarray([np.asarray(ch, dtype=np.float64) for ch in channels])
        return cls(samples=samples, sample_rate=sample_rate)

    @property
    def number_of_channels(self) -> int:
        return int(self.samples.shape[0]) if self.samples.ndim == 2 else 0

    @property
    def length(self) -> int:
        return int(self.samples.shape[-1]) if self.samples.ndim == 2 else 0

    def validate(self, name: str) -> None:
        """Raise InvalidInputError if this buffer cannot be analysed."""
        if self.samples.ndim != 2:
            raise InvalidInputError(
                name, f"samples must be 2-D (channels, frames), got ndim={self.samples.ndim}"
            )
        if self.number_of_channels == 0:
            raise InvalidInputError(name, "channel count is zero")
        if self.length == 0:
            raise InvalidInputError(name, "sample sequence is empty")
        try:
            sr = float(self.sample_rate)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(
                name, f"sample rate {self.sample_rate!r} is not a number"
            ) from exc
        if not math.isfinite(sr) or sr <= 0:
            raise InvalidInputError(name, f"sample rate {self.sample_rate!r} is not finite and positive")


@dataclass(frozen=True)
class SignalMetrics:
    """Whole-signal loudness and dynamics."""
    rms_db: float      # dBFS, one decimal
    peak_db: float     # dBFS, one decimal
    crest: float       # linear peak/rms ratio, two decimals


@dataclass(frozen=True)
class StemRecord:
    """Analysis of a single stem file."""
    name: str
    role_guess: str
    type: str                  # declared MIME type, e.g. "audio/wav"
    duration_s: float
    sample_rate: Union[int, float]   # as decoded; int when whole
    channels: int
    metrics: SignalMetrics
    band_pct: BandPercentages

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "role_guess": self.role_guess,
            "type": self.type,
            "duration_s": self.duration_s,
            "sample_rate": self.sample_rate,
            "channels": self.channels,
            "metrics": {
                "rms_db": self.metrics.rms_db,
                "peak_db": self.metrics.peak_db,
                "crest": self.metrics.crest,
                "band_pct": dict(self.band_pct),
            },
        }


@dataclass(frozen=True)
class SongSummary:
    """Aggregate view across every analysed stem of one song."""
    avg_band_pct: BandPercentages
    stem_count: int
    vocal_stem_count: int
    loudest_stem: Optional[str]
    quietest_stem: Optional[str]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "avg_band_pct": dict(self.avg_band_pct),
            "stem_count": self.stem_count,
            "vocal_stem_count": self.vocal_stem_count,
            "loudest_stem": self.loudest_stem,
            "quietest_stem": self.quietest_stem,
        }


@dataclass(frozen=True)
class SkippedStem:
    """A stem dropped from a batch, with the reason it was dropped."""
    name: str
    reason: str


@dataclass(frozen=True)
class AnalysisReport:
    """Complete result of one analysis request."""
    analyzed_at: str               # UTC ISO-8601
    stems: List[StemRecord]
    song_summary: Optional[SongSummary]
    notes: str = ""
    skipped: List[SkippedStem] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "analyzed_at": self.analyzed_at,
            "stems": [s.as_dict() for s in self.stems],
            "song_summary": self.song_summary.as_dict() if self.song_summary else None,
            "notes": self.notes,
            "skipped": [{"name": s.name, "reason": s.reason} for s in self.skipped],
        }
