"""
Copy a commit hash to the system clipboard.

Helpers are run with an argument list and the text on stdin; nothing is
ever spliced into a shell command line.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import sys

from .config import Settings
from .git import run_process

logger = logging.getLogger(__name__)

_FULL_HASH_RE = re.compile(r"^[0-9a-f]{40}$")


def is_full_hash(value: str) -> bool:
    return bool(_FULL_HASH_RE.match(value))


def clipboard_commands(settings: Settings | None = None) -> list[list[str]]:
    """Clipboard helpers to try, in order."""
    if settings is not None and settings.clipboard:
        return [list(cmd) for cmd in settings.clipboard]
    if sys.platform == "darwin":
        return [["pbcopy"]]
    if os.name == "nt":
        return [["clip"]]
    return [
        ["wl-copy"],
        ["xclip", "-selection", "clipboard"],
        ["xsel", "--clipboard", "--input"],
    ]


def copy_to_clipboard(commit_hash: str, settings: Settings | None = None) -> bool:
    """Copy *commit_hash* to the clipboard.  Returns True on success.

    Anything that is not a full 40-character lowercase hex hash is refused
    before a process is started.
    """
    if not is_full_hash(commit_hash):
        logger.debug("refusing to copy %r: not a commit hash", commit_hash)
        return False

    timeout = settings.timeout if settings is not None else None
    for command in clipboard_commands(settings):
        if shutil.which(command[0]) is None:
            continue
        result = run_process(command[0], command[1:], input=commit_hash, timeout=timeout)
        if result.ok:
            return True
        logger.debug("%s failed (%d): %s", command[0], result.exit_code, result.stderr.strip())
    return False
