"""Tests for file-name role classification."""
import pytest

from stem_coach.services.audio.roles import guess_role, is_vocal_role


class TestGuessRoleExamples:
    @pytest.mark.parametrize("name,expected", [
        ("Lead_Vocal_01.wav", "vocals_lead"),
        ("BGV_harmony.wav", "vocals_bgv"),
        ("Kick_In.wav", "kick"),
        ("synth_pad_wide.wav", "synth"),
    ])
    def test_reference_names(self, name, expected):
        assert guess_role(name) == expected


class TestVocalSubRoles:
    @pytest.mark.parametrize("name,expected", [
        ("Choir_Stack.wav", "vocals_bgv"),
        ("vox_adlibs.wav", "vocals_adlibs"),
        ("Vocal Ad-Lib 2.wav", "vocals_adlibs"),
        ("vox_dbl_L.wav", "vocals_doubles"),
        ("Vocal Double.aif", "vocals_doubles"),
        ("main vox.wav", "vocals_lead"),
        ("LeadVox.wav", "vocals_lead"),
        ("hookvox.wav", "vocals"),
        ("Vocals.wav", "vocals"),
    ])
    def test_sub_classification(self, name, expected):
        assert guess_role(name) == expected

    def test_backing_beats_lead(self):
        assert guess_role("lead_vocal_harmony.wav") == "vocals_bgv"

    def test_double_beats_lead(self):
        assert guess_role("lead_vocal_double.wav") == "vocals_doubles"

    def test_adlib_beats_double(self):
        assert guess_role("vox_adlib_stack.wav") == "vocals_adlibs"

    def test_backing_without_bgv_keyword_is_plain_vocals(self):
        assert guess_role("Backing Vocal.wav") == "vocals"


class TestInstrumentRoles:
    @pytest.mark.parametrize("name,expected", [
        ("Snare_Top.wav", "snare"),
        ("HiHat_Open.wav", "hihat"),
        ("Tom_Floor.wav", "toms"),
        ("clap_layer.wav", "clap"),
        ("Perc Loop.wav", "percussion"),
        ("Drums_Bus.wav", "drums"),
        ("808.wav", "bass_808"),
        ("Bass_DI.wav", "bass"),
        ("Acoustic Guitar.wav", "guitar"),
        ("Piano.wav", "keys"),
        ("Keys_Rhodes.wav", "keys"),
        ("Key_Rhodes.wav", "keys"),
        ("Synth Lead.wav", "synth"),
        ("Pad_Warm.wav", "pad"),
        ("Strings_Hi.wav", "strings"),
        ("String_Section.wav", "strings"),
        ("Horn Section.wav", "brass"),
        ("Brass.wav", "brass"),
        ("SFX_Riser.wav", "fx"),
        ("impact_01.wav", "fx"),
        ("Mix_Print.wav", "unknown"),
        ("Cymbal_Crash.wav", "unknown"),
        ("", "unknown"),
    ])
    def test_instrument_classification(self, name, expected):
        assert guess_role(name) == expected


class TestPrecedence:
    def test_vocal_beats_fx(self):
        assert guess_role("vocal_fx_throw.wav") == "vocals"

    def test_kick_beats_808(self):
        assert guess_role("808_kick.wav") == "kick"

    def test_drums_beat_bass(self):
        assert guess_role("drum_bass_bus.wav") == "drums"

    def test_bass_beats_synth(self):
        assert guess_role("synth_bass.wav") == "bass"


class TestCaseAndDeterminism:
    def test_case_insensitive(self):
        assert guess_role("KICK_IN.WAV") == guess_role("kick_in.wav") == "kick"

    def test_deterministic(self):
        assert {guess_role("Lead_Vocal_01.wav") for _ in range(20)} == {"vocals_lead"}


class TestIsVocalRole:
    @pytest.mark.parametrize("role", ["vocals", "vocals_lead", "vocals_bgv"])
    def test_vocal_prefix(self, role):
        assert is_vocal_role(role)

    @pytest.mark.parametrize("role", ["kick", "bass", "unknown", "fx"])
    def test_non_vocal(self, role):
        assert not is_vocal_role(role)
