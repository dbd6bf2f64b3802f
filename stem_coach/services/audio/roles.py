"""Guess a stem's musical role from its file name.

Rules are (keywords, tag) pairs evaluated top to bottom; the first rule with
any keyword contained in the lower-cased name wins.
"""
from __future__ import annotations

from typing import Tuple

Rule = Tuple[Tuple[str, ...], str]

VOCAL_KEYWORDS: Tuple[str, ...] = (
    "vocal", "vox", "leadvox", "voxlead", "bgv", "bvg", "harmony", "harm",
    "adlib", "ad-lib", "dbl", "double", "stack", "choir", "chorusvox", "hookvox",
)

# Only consulted once the name has passed the vocal gate
VOCAL_RULES: Tuple[Rule, ...] = (
    (("bgv", "bvg", "harmony", "harm", "choir"),            "vocals_bgv"),
    (("adlib", "ad-lib"),                                   "vocals_adlibs"),
    (("dbl", "double", "stack"),                            "vocals_doubles"),
    (("lead", "main"),                                      "vocals_lead"),
)

INSTRUMENT_RULES: Tuple[Rule, ...] = (
    # drums / rhythm
    (("kick",),                                     "kick"),
    (("snare",),                                    "snare"),
    (("hat", "hihat", "hi-hat"),                    "hihat"),
    (("tom",),                                      "toms"),
    (("clap",),                                     "clap"),
    (("perc",),                                     "percussion"),
    (("drum",),                                     "drums"),
    # bass
    (("808",),                                      "bass_808"),
    (("bass",),                                     "bass"),
    # melodic / harmonic
    (("guitar", "gtr"),                             "guitar"),
    (("piano", "keys", "key"),                      "keys"),
    (("synth",),                                    "synth"),
    (("pad",),                                      "pad"),
    (("string", "strings"),                         "strings"),
    (("brass", "horn"),                             "brass"),
    # effects
    (("fx", "sfx", "riser", "risr", "impact"),      "fx"),
)

VOCAL_ROLE_PREFIX = "vocals"
UNKNOWN_ROLE = "unknown"


def _first_match(name: str, rules: Tuple[Rule, ...]) -> str:
    for keywords, tag in rules:
        if any(k in name for k in keywords):
            return tag
    return ""


def guess_role(file_name: str) -> str:
    """Return the role tag for ``file_name`` (case-insensitive)."""
    name = (file_name or "").lower()

    if any(k in name for k in VOCAL_KEYWORDS):
        return _first_match(name, VOCAL_RULES) or VOCAL_ROLE_PREFIX

    return _first_match(name, INSTRUMENT_RULES) or UNKNOWN_ROLE


def is_vocal_role(role: str) -> bool:
    return role.startswith(VOCAL_ROLE_PREFIX)
