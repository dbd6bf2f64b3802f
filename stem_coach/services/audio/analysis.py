"""Audio signal analysis — downmix, loudness metrics, 7-band energy profile.

All functions are pure: numpy arrays in, plain values out.
"""
from __future__ import annotations

import logging

import numpy as np

from stem_coach.services.audio.types import (
    BANDS,
    AudioBuffer,
    BandPercentages,
    InvalidInputError,
    SignalMetrics,
)

logger = logging.getLogger("stem_coach.audio.analysis")

EPSILON = 1e-12           # amplitude floor before log / division → −240 dB

WINDOW_SIZE = 1024
HOP_SIZE = 2048           # > WINDOW_SIZE: half of each analysed region is skipped
MAX_SECONDS = 20.0
MIN_FREQ_HZ = 20.0
MAX_FREQ_HZ = 18000.0


def downmix(buffer: AudioBuffer) -> np.ndarray:
    """Average all channels sample-for-sample into one mono signal."""
    samples = np.asarray(buffer.samples, dtype=np.float64)
    if samples.shape[0] == 1:
        return samples[0].copy()
    return samples.mean(axis=0)


def amplitude_to_db(amplitude: float) -> float:
    """20·log10 with an epsilon floor, rounded to one decimal."""
    return round(float(20.0 * np.log10(max(amplitude, EPSILON))), 1)


def compute_signal_metrics(mono: np.ndarray, name: str = "<signal>") -> SignalMetrics:
    """Return peak/RMS in dBFS and the linear crest factor.

    Raises:
        InvalidInputError: If ``mono`` is empty.
    """
    y = np.asarray(mono, dtype=np.float64)
    if y.size == 0:
        raise InvalidInputError(name, "sample sequence is empty")

    peak = float(np.max(np.abs(y)))
    rms = float(np.sqrt(np.mean(np.square(y))))
    crest = peak / max(rms, EPSILON)

    return SignalMetrics(
        rms_db=amplitude_to_db(rms),
        peak_db=amplitude_to_db(peak),
        crest=round(crest, 2),
    )


def _bin_band_index(
    sample_rate: float,
    window_size: int,
    min_freq: float,
    max_freq: float,
) -> np.ndarray:
    """Map each rfft bin to a band index, or -1 when the bin is not counted.

    DC (k=0) and Nyquist (k=W/2) are never counted.
    """
    n_bins = window_size // 2 + 1
    freqs = np.arange(n_bins) * sample_rate / window_size
    index = np.full(n_bins, -1, dtype=np.int64)

    for k in range(1, window_size // 2):
        freq = freqs[k]
        if freq < min_freq or freq > max_freq:
            continue
        for b, (_, lo, hi) in enumerate(BANDS):
            if lo <= freq < hi:
                index[k] = b
                break
    return index


def band_energies(
    mono: np.ndarray,
    sample_rate: float,
    window_size: int = WINDOW_SIZE,
    hop_size: int = HOP_SIZE,
    max_seconds: float = MAX_SECONDS,
    min_freq: float = MIN_FREQ_HZ,
    max_freq: float = MAX_FREQ_HZ,
) -> np.ndarray:
    """Accumulated DFT magnitude per band over the first ``max_seconds``.

    Windows are rectangular (no taper) and start every ``hop_size`` samples.
    Returns an array of len(BANDS) raw energies.
    """
    y = np.asarray(mono, dtype=np.float64)
    max_samples = min(len(y), int(sample_rate * max_seconds))
    energies = np.zeros(len(BANDS), dtype=np.float64)

    starts = range(0, max_samples - window_size + 1, hop_size)
    if len(starts) == 0:
        return energies

    frames = np.stack([y[s:s + window_size] for s in starts])
    magnitudes = np.abs(np.fft.rfft(frames, axis=1)).sum(axis=0)

    index = _bin_band_index(sample_rate, window_size, min_freq, max_freq)
    for b in range(len(BANDS)):
        energies[b] = float(magnitudes[index == b].sum())

    logger.debug("Accumulated %d windows over %d samples", len(starts), max_samples)
    return energies


def compute_band_percentages(
    mono: np.ndarray,
    sample_rate: float,
    window_size: int = WINDOW_SIZE,
    hop_size: int = HOP_SIZE,
    max_seconds: float = MAX_SECONDS,
    min_freq: float = MIN_FREQ_HZ,
    max_freq: float = MAX_FREQ_HZ,
) -> BandPercentages:
    """Each band's share of total spectral energy, in percent (one decimal).

    Zero total energy (silence, or a signal shorter than one window) gives
    0.0 for every band.
    """
    energies = band_energies(
        mono, sample_rate,
        window_size=window_size,
        hop_size=hop_size,
        max_seconds=max_seconds,
        min_freq=min_freq,
        max_freq=max_freq,
    )
    total = float(energies.sum()) or 1.0
    return {
        name: round(100.0 * float(energy) / total, 1)
        for (name, _, _), energy in zip(BANDS, energies)
    }
