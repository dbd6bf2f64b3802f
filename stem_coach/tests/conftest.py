"""Shared test fixtures for Stem Coach."""
import io
import shutil
import struct
import tempfile
from pathlib import Path
from typing import Generator, Sequence

import numpy as np
import pytest
import yaml

from stem_coach.services.audio.types import AudioBuffer


@pytest.fixture(scope="session")
def project_root() -> Path:
    return Path(__file__).parent.parent.parent


@pytest.fixture
def tmp_dir() -> Generator[Path, None, None]:
    d = Path(tempfile.mkdtemp())
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def sample_settings(tmp_dir: Path) -> Path:
    """Write a minimal settings.yaml to a temp dir and return its path."""
    settings = {
        "analysis": {
            "window_size": 1024,
            "hop_size": 512,
            "max_seconds": 10,
            "min_freq_hz": 20,
            "max_freq_hz": 18000,
            "max_workers": 2,
        },
        "api": {
            "allowed_suffixes": [".wav", ".flac"],
            "cors_origins": ["http://localhost:5173"],
        },
        "logging": {"level": "DEBUG", "file": str(tmp_dir / "test.log")},
    }
    cfg_path = tmp_dir / "settings.yaml"
    cfg_path.write_text(yaml.dump(settings))
    return cfg_path


# ─────────────────────────────────────────────────────────────────────────────
# Audio helpers
# ─────────────────────────────────────────────────────────────────────────────

SAMPLE_RATE = 44100
WINDOW = 1024


def bin_centred_freq(k: int, sr: int = SAMPLE_RATE, window: int = WINDOW) -> float:
    """Frequency of FFT bin k — a whole number of cycles per window."""
    return k * sr / window


def sine(freq: float, seconds: float = 1.0, sr: int = SAMPLE_RATE, amp: float = 0.5) -> np.ndarray:
    t = np.arange(int(seconds * sr)) / sr
    return amp * np.sin(2.0 * np.pi * freq * t)


def make_buffer(*channels: Sequence[float], sr: int = SAMPLE_RATE) -> AudioBuffer:
    return AudioBuffer(samples=np.vstack([np.asarray(c, dtype=np.float64) for c in channels]),
                       sample_rate=sr)


def wav_bytes(samples: np.ndarray, sr: int = SAMPLE_RATE) -> bytes:
    """Encode mono or (channels, frames) float audio as 16-bit PCM WAV bytes."""
    data = np.atleast_2d(samples)
    num_channels, num_frames = data.shape
    pcm = (np.clip(data.T, -1.0, 1.0) * 32767).astype("<i2").tobytes()
    bits_per_sample = 16
    block_align = num_channels * bits_per_sample // 8
    byte_rate = sr * block_align

    buf = io.BytesIO()
    buf.write(b"RIFF")
    buf.write(struct.pack("<I", 36 + len(pcm)))
    buf.write(b"WAVE")
    buf.write(b"fmt ")
    buf.write(struct.pack("<I", 16))
    buf.write(struct.pack("<H", 1))            # PCM
    buf.write(struct.pack("<H", num_channels))
    buf.write(struct.pack("<I", sr))
    buf.write(struct.pack("<I", byte_rate))
    buf.write(struct.pack("<H", block_align))
    buf.write(struct.pack("<H", bits_per_sample))
    buf.write(b"data")
    buf.write(struct.pack("<I", len(pcm)))
    buf.write(pcm)
    return buf.getvalue()


@pytest.fixture
def tone_buffer() -> AudioBuffer:
    """One second of a bin-centred ~990 Hz stereo tone."""
    y = sine(bin_centred_freq(23))
    return make_buffer(y, y)


@pytest.fixture
def silent_buffer() -> AudioBuffer:
    return make_buffer(np.zeros(SAMPLE_RATE))


@pytest.fixture
def tone_wav_bytes() -> bytes:
    return wav_bytes(sine(bin_centred_freq(23), seconds=0.5))
