"""Utility functions for kvm-control."""

from __future__ import annotations

import subprocess
import uuid
from typing import Iterable, List, Sequence, Tuple

from kvm_control.constants import _LOG_VERBOSE

_verbose = _LOG_VERBOSE


def set_verbose(enabled: bool) -> None:
    """Toggle DEBUG output for the rest of the run."""
    global _verbose
    _verbose = enabled


def log(level: str, message: str) -> None:
    """Lightweight structured logging with coloured level prefixes."""
    if level == "DEBUG" and not _verbose:
        return
    colours = {
        "INFO": "\033[0;34m",
        "WARN": "\033[1;33m",
        "ERROR": "\033[0;31m",
        "SUCCESS": "\033[0;32m",
        "DEBUG": "\033[0;90m",
    }
    colour = colours.get(level, "")
    reset = "\033[0m" if colour else ""
    print(f"{colour}[{level}]{reset} {message}", flush=True)


def run_command(command: Sequence[object]) -> Tuple[str, bool]:
    """Run a command to completion and return its stdout and success flag.

    Every token is coerced to ``str``. A non-zero exit status and a missing
    binary are both reported as ``success=False``.
    """
    cmd: List[str] = [str(token) for token in command]
    log("DEBUG", f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, check=False, text=True, capture_output=True)
    except OSError as exc:
        log("DEBUG", f"Could not execute {cmd[0]}: {exc}")
        return "", False
    if result.returncode != 0 and result.stderr:
        log("DEBUG", f"{cmd[0]} exited with {result.returncode}: {result.stderr.strip()}")
    return result.stdout or "", result.returncode == 0


def generate_disk_serial() -> str:
    """Generate a new serial for a disk."""
    return str(uuid.uuid4())


def join_attributes(pairs: Iterable[Tuple[str, object]]) -> str:
    """Render ``key=value`` pairs as a comma separated descriptor string."""
    return ",".join(f"{key}={value}" for key, value in pairs)
