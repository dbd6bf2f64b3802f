#!/usr/bin/env python3
"""Stem Coach — Environment Setup Checker

Validates that the Python packages, audio codecs and settings needed by the
analysis service are present.

Usage:
    python scripts/setup_check.py            # full check
    python scripts/setup_check.py --quick    # essential packages only
"""
from __future__ import annotations

import argparse
import importlib
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

try:
    import yaml
except ImportError:
    print("ERROR: PyYAML not installed.  Run: pip install pyyaml")
    sys.exit(1)

# ── Paths ─────────────────────────────────────────────────────────────────────
REPO_ROOT = Path(__file__).parent.parent
SETTINGS_YAML = REPO_ROOT / "stem_coach" / "config" / "settings.yaml"

# ── ANSI colours ──────────────────────────────────────────────────────────────
GREEN  = "\033[92m"
YELLOW = "\033[93m"
RED    = "\033[91m"
BLUE   = "\033[94m"
RESET  = "\033[0m"
BOLD   = "\033[1m"


def ok(msg: str) -> str:
    return f"  {GREEN}✓{RESET}  {msg}"


def warn(msg: str) -> str:
    return f"  {YELLOW}⚠{RESET}  {msg}"


def err(msg: str) -> str:
    return f"  {RED}✗{RESET}  {msg}"


def section(title: str) -> None:
    print(f"\n{BOLD}{BLUE}━━ {title} ━━{RESET}")


# ── Result accumulator ────────────────────────────────────────────────────────
@dataclass
class CheckResult:
    passed: int = 0
    warned: int = 0
    failed: int = 0
    messages: List[Tuple[str, str]] = field(default_factory=list)

    def add(self, level: str, msg: str) -> None:
        self.messages.append((level, msg))
        if level == "ok":
            self.passed += 1
        elif level == "warn":
            self.warned += 1
        else:
            self.failed += 1

    def print_summary(self) -> None:
        section("Summary")
        total = self.passed + self.warned + self.failed
        print(f"  {GREEN}{self.passed}{RESET} passed  "
              f"{YELLOW}{self.warned}{RESET} warnings  "
              f"{RED}{self.failed}{RESET} failed  "
              f"({total} checks)")

    @property
    def exit_code(self) -> int:
        return 0 if self.failed == 0 else 1


# ── Individual checks ─────────────────────────────────────────────────────────


def check_python_version(result: CheckResult) -> None:
    section("Python")
    major, minor = sys.version_info[:2]
    ver = f"{major}.{minor}"
    if (major, minor) >= (3, 9):
        print(ok(f"Python {ver}"))
        result.add("ok", f"Python {ver}")
    else:
        print(err(f"Python {ver} — need 3.9+"))
        result.add("fail", f"Python {ver} — need 3.9+")


def check_python_packages(result: CheckResult, quick: bool) -> None:
    section("Python packages")

    required = [
        "numpy", "librosa", "soundfile",
        "fastapi", "uvicorn", "pydantic", "multipart", "yaml", "dotenv",
        "pytest",
    ]
    if quick:
        required = ["numpy", "librosa", "fastapi"]
        print(warn("Quick mode — checking essential packages only"))
        result.add("warn", "Package check in quick mode")

    for pkg in required:
        try:
            importlib.import_module(pkg)
            print(ok(pkg))
            result.add("ok", f"Package: {pkg}")
        except ImportError:
            print(err(f"{pkg} not installed"))
            result.add("fail", f"Package missing: {pkg}")


def check_codecs(result: CheckResult) -> None:
    section("Audio codecs (libsndfile)")
    try:
        import soundfile as sf
    except ImportError:
        print(err("soundfile not installed — cannot decode uploads"))
        result.add("fail", "soundfile missing")
        return

    formats = sf.available_formats()
    for fmt in ("WAV", "AIFF", "FLAC", "OGG", "MP3"):
        if fmt in formats:
            print(ok(f"{fmt}: {formats[fmt]}"))
            result.add("ok", f"Codec: {fmt}")
        else:
            print(warn(f"{fmt}: not supported by this libsndfile build"))
            result.add("warn", f"Codec missing: {fmt}")


def check_settings(result: CheckResult) -> None:
    section("Settings")
    if not SETTINGS_YAML.exists():
        print(err(f"settings.yaml not found at {SETTINGS_YAML}"))
        result.add("fail", "settings.yaml missing")
        return

    with open(SETTINGS_YAML) as f:
        data = yaml.safe_load(f) or {}
    analysis = data.get("analysis", {})

    window = analysis.get("window_size")
    hop = analysis.get("hop_size")
    print(ok(f"window_size={window} hop_size={hop} max_seconds={analysis.get('max_seconds')}"))
    result.add("ok", "settings.yaml loaded")

    if window and hop and hop > window:
        print(warn(f"hop_size ({hop}) > window_size ({window}) — part of every "
                   "analysed region is skipped"))
        result.add("warn", "Spectral windows do not cover the whole signal")


# ── Main ──────────────────────────────────────────────────────────────────────


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Stem Coach environment setup checker")
    parser.add_argument("--quick", action="store_true", help="Skip codec and settings checks")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    result = CheckResult()

    print(f"\n{BOLD}Stem Coach — Setup Checker{RESET}")
    print(f"Repo root: {REPO_ROOT}")

    check_python_version(result)
    check_python_packages(result, quick=args.quick)
    if not args.quick:
        check_codecs(result)
        check_settings(result)

    result.print_summary()
    print()

    if result.failed == 0 and result.warned == 0:
        print(f"{GREEN}{BOLD}✓ All checks passed — Stem Coach is ready!{RESET}\n")
    elif result.failed == 0:
        print(f"{YELLOW}{BOLD}⚠ Setup complete with warnings.{RESET}\n")
    else:
        print(f"{RED}{BOLD}✗ {result.failed} check(s) failed — resolve errors before "
              f"running Stem Coach.{RESET}\n")

    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
