"""Integration tests for the Stem Coach FastAPI backend.

Uses FastAPI TestClient to exercise every router end-to-end with real
HTTP requests through the ASGI stack.  Uploads are synthetic WAV files built
in memory; decoding goes through librosa.
"""
from __future__ import annotations

import io

import numpy as np
import pytest
from fastapi.testclient import TestClient

from conftest import bin_centred_freq, sine, wav_bytes
from stem_coach.main import app
from stem_coach.services.shared.config import reset_config


@pytest.fixture(scope="module")
def client() -> TestClient:
    """Synchronous TestClient wrapping the Stem Coach FastAPI app."""
    reset_config()
    with TestClient(app) as c:
        yield c


def _file(name: str, data: bytes, content_type: str = "audio/wav"):
    return ("files", (name, io.BytesIO(data), content_type))


# ═════════════════════════════════════════════════════════════════════════════
# System router  /api/system
# ═════════════════════════════════════════════════════════════════════════════


class TestSystemRouter:
    def test_health_check_returns_ok(self, client: TestClient):
        resp = client.get("/api/system/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "version": "1.0.0"}

    def test_config_exposes_analysis_settings(self, client: TestClient):
        body = client.get("/api/system/config").json()
        assert body["analysis"]["window_size"] == 1024
        assert body["analysis"]["hop_size"] == 2048


# ═════════════════════════════════════════════════════════════════════════════
# Stems router  /api/stems
# ═════════════════════════════════════════════════════════════════════════════


class TestStemsLookups:
    def test_bands_table(self, client: TestClient):
        bands = client.get("/api/stems/bands").json()["bands"]
        assert [b["name"] for b in bands] == [
            "sub_20_60", "low_60_200", "lowmid_200_500", "mid_500_2k",
            "highmid_2k_5k", "presence_5k_10k", "air_10k_18k",
        ]
        assert bands[0]["low_hz"] == 20.0
        assert bands[-1]["high_hz"] == 18000.0

    def test_role_lookup(self, client: TestClient):
        body = client.get("/api/stems/roles", params={"name": "BGV_harmony.wav"}).json()
        assert body == {"name": "BGV_harmony.wav", "role_guess": "vocals_bgv"}

    def test_role_lookup_requires_name(self, client: TestClient):
        assert client.get("/api/stems/roles").status_code == 422

    def test_batch_role_lookup_keeps_order(self, client: TestClient):
        names = ["Kick_In.wav", "Lead Vox.wav", "808.wav", "mystery.wav"]
        body = client.post("/api/stems/roles", json={"names": names}).json()
        assert [r["name"] for r in body["roles"]] == names
        assert [r["role_guess"] for r in body["roles"]] == [
            "kick", "vocals_lead", "bass_808", "unknown",
        ]

    def test_batch_role_lookup_rejects_empty_list(self, client: TestClient):
        assert client.post("/api/stems/roles", json={"names": []}).status_code == 422


class TestStemsAnalyze:
    def test_unsupported_suffix_rejected(self, client: TestClient):
        resp = client.post("/api/stems/analyze", files=[_file("notes.txt", b"hello", "text/plain")])
        assert resp.status_code == 415

    def test_no_files_is_validation_error(self, client: TestClient):
        assert client.post("/api/stems/analyze").status_code == 422

    def test_full_report(self, client: TestClient):
        pytest.importorskip("librosa")
        tone = sine(bin_centred_freq(23), seconds=0.5)
        files = [
            _file("Lead_Vocal_01.wav", wav_bytes(tone * 0.2)),
            _file("Kick_In.wav", wav_bytes(np.vstack([tone * 0.8, tone * 0.8]))),
            _file("Synth_Pad.wav", wav_bytes(tone * 0.5)),
        ]
        resp = client.post("/api/stems/analyze", files=files)
        assert resp.status_code == 200
        body = resp.json()

        assert [s["name"] for s in body["stems"]] == [
            "Lead_Vocal_01.wav", "Kick_In.wav", "Synth_Pad.wav",
        ]
        assert [s["role_guess"] for s in body["stems"]] == ["vocals_lead", "kick", "synth"]
        assert body["stems"][1]["channels"] == 2
        assert body["stems"][0]["duration_s"] == 0.5
        assert body["stems"][0]["metrics"]["band_pct"]["mid_500_2k"] >= 90.0

        summary = body["song_summary"]
        assert summary["stem_count"] == 3
        assert summary["vocal_stem_count"] == 1
        assert summary["loudest_stem"] == "Kick_In.wav"
        assert summary["quietest_stem"] == "Lead_Vocal_01.wav"
        assert body["skipped"] == []
        assert body["analyzed_at"]
        assert body["notes"]

    def test_corrupt_file_is_skipped_not_fatal(self, client: TestClient):
        pytest.importorskip("librosa")
        files = [
            _file("Bass.wav", wav_bytes(sine(100.0, seconds=0.5))),
            _file("Broken.wav", b"RIFF" + b"\x00" * 64),
        ]
        resp = client.post("/api/stems/analyze", files=files)
        assert resp.status_code == 200
        body = resp.json()
        assert [s["name"] for s in body["stems"]] == ["Bass.wav"]
        assert [s["name"] for s in body["skipped"]] == ["Broken.wav"]
        assert body["song_summary"]["stem_count"] == 1
