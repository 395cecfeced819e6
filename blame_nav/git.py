"""
Process execution and blame fetching.

``run_process`` is the only place that spawns external programs. It never
raises: a missing executable or a timeout comes back as a failed
``ProcessResult`` so callers can tell "the tool failed" apart from "the
tool succeeded with empty output".
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass

from .config import Settings, get_settings
from .models import LineRecord
from .porcelain import parse_blame_porcelain

logger = logging.getLogger(__name__)

EXIT_NOT_FOUND = 127
EXIT_TIMEOUT = 124


@dataclass(frozen=True)
class ProcessResult:
    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace")


def run_process(
    command: str,
    args: list[str] | tuple[str, ...] = (),
    *,
    cwd: str | None = None,
    timeout: float | None = None,
    input: str | None = None,
) -> ProcessResult:
    """Run *command* with *args* and capture its output.

    Output is read as bytes and decoded as UTF-8 with undecodable bytes
    replaced, so line endings (including a bare ``\\r``) come through as-is.
    """
    argv = [command, *args]
    logger.debug("run %s (cwd=%s)", argv, cwd)
    try:
        result = subprocess.run(
            argv,
            capture_output=True, cwd=cwd, timeout=timeout,
            input=input.encode("utf-8") if input is not None else None,
        )
    except FileNotFoundError:
        return ProcessResult(EXIT_NOT_FOUND, "", f"{command}: command not found")
    except subprocess.TimeoutExpired:
        return ProcessResult(EXIT_TIMEOUT, "", f"{command}: timed out after {timeout}s")
    except OSError as e:
        return ProcessResult(EXIT_NOT_FOUND, "", f"{command}: {e}")
    return ProcessResult(result.returncode, _decode(result.stdout), _decode(result.stderr))


# ===================================================================
# Git helpers
# ===================================================================

def _git(*args: str, cwd: str | None = None, settings: Settings | None = None) -> str | None:
    """Run a git command and return stripped stdout, or None on failure."""
    if settings is None:
        settings = get_settings(cwd)
    result = run_process(settings.git, args, cwd=cwd, timeout=settings.timeout)
    if result.ok:
        return result.stdout.strip()
    return None


def find_repo_root(path: str) -> str | None:
    """Top-level directory of the work tree containing *path*, or None."""
    directory = path if os.path.isdir(path) else os.path.dirname(os.path.abspath(path))
    if not os.path.isdir(directory):
        return None
    return _git("rev-parse", "--show-toplevel", cwd=directory)


def blame_args(file_name: str, ref: str | None = None) -> list[str]:
    args = ["blame", "--porcelain"]
    if ref:
        args.append(ref)
    args.extend(["--", file_name])
    return args


def fetch_blame(
    file_path: str,
    ref: str | None = None,
    *,
    now: int | float | None = None,
    settings: Settings | None = None,
) -> tuple[list[LineRecord] | None, str | None]:
    """Run ``git blame --porcelain [ref] -- <file>`` and parse the output.

    Git runs in the file's directory with the bare file name, so the path
    is resolved against whichever work tree contains the file.

    Returns ``(records, None)`` on success, where ``records`` may be empty
    for an empty file, and ``(None, error_text)`` when git failed.
    """
    abs_path = os.path.abspath(file_path)
    cwd = os.path.dirname(abs_path)
    if not os.path.isdir(cwd):
        return None, f"no such directory: {cwd}"
    if settings is None:
        settings = get_settings(find_repo_root(cwd) or cwd)

    result = run_process(
        settings.git,
        blame_args(os.path.basename(abs_path), ref),
        cwd=cwd,
        timeout=settings.timeout,
    )
    if not result.ok:
        error = result.stderr.strip() or f"git exited with status {result.exit_code}"
        logger.debug("git blame failed for %s at %s: %s", abs_path, ref or "HEAD", error)
        return None, error

    records = parse_blame_porcelain(result.stdout, now=now)
    logger.debug("git blame %s at %s: %d lines", abs_path, ref or "HEAD", len(records))
    return records, None
