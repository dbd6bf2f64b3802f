"""StemAnalyzer — per-stem reports and song-level summary.

Pipeline per stem::

    AudioBuffer ─► downmix ─► metrics ┐
                          └► bands  ──┼─► StemRecord
    file name ─────────────► role ────┘

    [StemRecord, ...] ─► summarize_song ─► SongSummary

Everything here is pure computation over in-memory buffers; decoding and
uploads live in ``pipeline.py``.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, List, NamedTuple, Optional, Sequence, Union

from stem_coach.services.audio.analysis import (
    HOP_SIZE,
    MAX_FREQ_HZ,
    MAX_SECONDS,
    MIN_FREQ_HZ,
    WINDOW_SIZE,
    compute_band_percentages,
    compute_signal_metrics,
    downmix,
)
from stem_coach.services.audio.roles import guess_role, is_vocal_role
from stem_coach.services.audio.types import (
    AnalysisReport,
    AudioBuffer,
    SkippedStem,
    SongSummary,
    StemRecord,
)

logger = logging.getLogger("stem_coach.audio.analyzer")

DEFAULT_NOTES = "Dynamics + spectral balance analysis for mixing guidance."


def _plain_rate(sample_rate: float) -> Union[int, float]:
    """The decoder's rate unchanged, as an int when it is a whole number."""
    rate = float(sample_rate)
    return int(rate) if rate.is_integer() else rate


class StemInput(NamedTuple):
    """One decoded stem plus the metadata the caller knows about it."""
    buffer: AudioBuffer
    name: str
    mime_type: str = ""


# ── song summary ──────────────────────────────────────────────────────────────

def summarize_song(stems: Sequence[StemRecord]) -> Optional[SongSummary]:
    """Aggregate stem records into a SongSummary.

    Returns None for an empty list.
    """
    if not stems:
        return None

    count = len(stems)
    avg_band_pct = {
        band: round(sum(s.band_pct.get(band, 0.0) for s in stems) / count, 1)
        for band in stems[0].band_pct
    }

    # sorted() is stable: ties keep input order
    by_loudness = sorted(stems, key=lambda s: s.metrics.rms_db, reverse=True)

    return SongSummary(
        avg_band_pct=avg_band_pct,
        stem_count=count,
        vocal_stem_count=sum(1 for s in stems if is_vocal_role(s.role_guess)),
        loudest_stem=by_loudness[0].name,
        quietest_stem=by_loudness[-1].name,
    )


# ── main class ────────────────────────────────────────────────────────────────

class StemAnalyzer:
    """Stem analysis engine.

    Usage::

        az = StemAnalyzer()
        record = az.analyze_stem(buffer, "Lead_Vocal.wav", "audio/wav")
        report = az.build_report([record])
    """

    def __init__(
        self,
        window_size: int = WINDOW_SIZE,
        hop_size: int = HOP_SIZE,
        max_seconds: float = MAX_SECONDS,
        min_freq_hz: float = MIN_FREQ_HZ,
        max_freq_hz: float = MAX_FREQ_HZ,
        max_workers: int = 1,
    ):
        if window_size < 4 or window_size % 2:
            raise ValueError(f"window_size must be an even integer >= 4, got {window_size}")
        if hop_size <= 0:
            raise ValueError(f"hop_size must be positive, got {hop_size}")
        if max_seconds <= 0:
            raise ValueError(f"max_seconds must be positive, got {max_seconds}")
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.window_size = window_size
        self.hop_size = hop_size
        self.max_seconds = max_seconds
        self.min_freq_hz = min_freq_hz
        self.max_freq_hz = max_freq_hz
        self.max_workers = max_workers

    @classmethod
    def from_config(cls, config: Any, **overrides: Any) -> "StemAnalyzer":
        """Build an analyzer from the ``analysis.*`` section of a Config.

        Keyword overrides (e.g. from a CLI) replace individual settings;
        None means "use the config value".  Everything goes through
        ``__init__`` validation.
        """
        settings = {
            "window_size": int(config.get("analysis.window_size", WINDOW_SIZE)),
            "hop_size": int(config.get("analysis.hop_size", HOP_SIZE)),
            "max_seconds": float(config.get("analysis.max_seconds", MAX_SECONDS)),
            "min_freq_hz": float(config.get("analysis.min_freq_hz", MIN_FREQ_HZ)),
            "max_freq_hz": float(config.get("analysis.max_freq_hz", MAX_FREQ_HZ)),
            "max_workers": int(config.get("analysis.max_workers", 1)),
        }
        unknown = set(overrides) - set(settings)
        if unknown:
            raise TypeError(f"Unknown analyzer settings: {sorted(unknown)}")
        settings.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**settings)

    # ── public: single stem ──────────────────────────────────────────────────

    def analyze_stem(
        self,
        buffer: AudioBuffer,
        name: str,
        mime_type: str = "",
    ) -> StemRecord:
        """Build the StemRecord for one decoded stem.

        Raises:
            InvalidInputError: If the buffer is structurally invalid.
        """
        buffer.validate(name)

        mono = downmix(buffer)
        metrics = compute_signal_metrics(mono, name=name)
        band_pct = compute_band_percentages(
            mono,
            buffer.sample_rate,
            window_size=self.window_size,
            hop_size=self.hop_size,
            max_seconds=self.max_seconds,
            min_freq=self.min_freq_hz,
            max_freq=self.max_freq_hz,
        )
        role = guess_role(name)

        logger.debug(
            "Stem %r: role=%s rms=%.1f dB peak=%.1f dB",
            name, role, metrics.rms_db, metrics.peak_db,
        )
        return StemRecord(
            name=name,
            role_guess=role,
            type=mime_type,
            duration_s=round(buffer.length / float(buffer.sample_rate), 1),
            sample_rate=_plain_rate(buffer.sample_rate),
            channels=buffer.number_of_channels,
            metrics=metrics,
            band_pct=band_pct,
        )

    # ── public: batches ──────────────────────────────────────────────────────

    def analyze_stems(self, stems: Sequence[StemInput]) -> List[StemRecord]:
        """Analyse every stem; output order always matches input order.

        Fails fast on the first invalid stem.  Callers that need
        skip-and-continue use ``pipeline.run_stem_analysis``.
        """
        if self.max_workers == 1 or len(stems) <= 1:
            return [self.analyze_stem(s.buffer, s.name, s.mime_type) for s in stems]

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            # map() yields results in submission order
            return list(pool.map(
                lambda s: self.analyze_stem(s.buffer, s.name, s.mime_type), stems
            ))

    def summarize(self, stems: Sequence[StemRecord]) -> Optional[SongSummary]:
        return summarize_song(stems)

    def build_report(
        self,
        stems: Sequence[StemRecord],
        skipped: Sequence[SkippedStem] = (),
        notes: str = DEFAULT_NOTES,
    ) -> AnalysisReport:
        """Wrap stem records and their summary into an AnalysisReport."""
        report = AnalysisReport(
            analyzed_at=datetime.now(timezone.utc).isoformat(),
            stems=list(stems),
            song_summary=summarize_song(stems),
            notes=notes,
            skipped=list(skipped),
        )
        logger.info(
            "Report built: %d stems analysed, %d skipped",
            len(report.stems), len(report.skipped),
        )
        return report
