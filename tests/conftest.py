import shutil
import subprocess

import pytest

from blame_nav.host import BlameHost
from blame_nav.models import NOT_COMMITTED

NOW = 1_700_000_000

HASH_A = "abc123d" + "e" * 33
HASH_B = "1234567" + "0" * 32 + "f"
HASH_C = "fedcba9" + "8" * 33


def porcelain(lines, commits, now=NOW):
    """Build ``git blame --porcelain`` text.

    *lines* is a list of ``(sha, orig_line, final_line, content)``;
    *commits* maps sha -> dict(author, time, summary).  Metadata is only
    written the first time a commit appears, as git does.
    """
    out = []
    seen = set()
    for sha, orig, final, content in lines:
        out.append(f"{sha} {orig} {final} 1")
        if sha not in seen:
            seen.add(sha)
            meta = commits[sha]
            out.append(f"author {meta['author']}")
            out.append(f"author-mail <{meta['author'].lower()}@example.com>")
            out.append(f"author-time {meta['time']}")
            out.append("author-tz +0000")
            out.append(f"committer {meta['author']}")
            out.append(f"committer-time {meta['time']}")
            out.append(f"summary {meta['summary']}")
            out.append("filename src/app.py")
        else:
            out.append("filename src/app.py")
        out.append(f"\t{content}")
    return "\n".join(out) + "\n"


@pytest.fixture
def commits():
    return {
        HASH_A: {"author": "Alice", "time": NOW - 3 * 86400, "summary": "Fix bug"},
        HASH_B: {"author": "Bob", "time": NOW - 2 * 3600, "summary": "Add feature"},
        HASH_C: {"author": "Carol", "time": NOW - 400 * 86400, "summary": "Initial import"},
        NOT_COMMITTED: {"author": "Not Committed Yet", "time": NOW, "summary": "Version of src/app.py from src/app.py"},
    }


@pytest.fixture
def two_commit_output(commits):
    return porcelain([
        (HASH_A, 1, 1, "def main():"),
        (HASH_A, 2, 2, "    run()"),
        (HASH_B, 5, 3, "    return 0"),
    ], commits)


class FakeHost(BlameHost):
    """In-memory host that records every call."""

    def __init__(self, file_path="/repo/src/app.py"):
        self.file_path = file_path
        self.panels = {}
        self.layers = {}
        self.cursor = {}
        self.statuses = []
        self.closed = []
        self.commands = {}
        self.modes = {}
        self.fail_open = False
        self._next = 1

    @property
    def status(self):
        return self.statuses[-1] if self.statuses else None

    def active_file(self):
        return self.file_path

    def active_slot(self):
        return "split-1"

    def open_panel(self, slot, name, mode, entries):
        if self.fail_open:
            return None
        panel = self._next
        self._next += 1
        self.panels[panel] = list(entries)
        self.cursor[panel] = 0
        return panel

    def set_panel_content(self, panel, entries):
        self.panels[panel] = list(entries)

    def close_panel(self, panel, slot):
        self.closed.append((panel, slot))
        self.panels.pop(panel, None)

    def clear_layer(self, panel, layer):
        self.layers[(panel, layer)] = []

    def add_span(self, panel, layer, span):
        self.layers.setdefault((panel, layer), []).append(span)

    def metadata_at_cursor(self, panel):
        entries = self.panels.get(panel, [])
        idx = self.cursor.get(panel, 0)
        if 0 <= idx < len(entries):
            return entries[idx].metadata
        return None

    def set_status(self, message):
        self.statuses.append(message)

    def define_mode(self, name, bindings, read_only):
        self.modes[name] = (bindings, read_only)

    def register_command(self, name, description, callback):
        self.commands[name] = callback

    def move_to_line(self, panel, line_number):
        """Put the cursor on the content entry for *line_number*."""
        for idx, entry in enumerate(self.panels[panel]):
            if entry.metadata.get("lineNumber") == line_number:
                self.cursor[panel] = idx
                return
        raise AssertionError(f"no content entry for line {line_number}")


@pytest.fixture
def host():
    return FakeHost()


def _git(cwd, *args, env=None):
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, env=env)


@pytest.fixture
def git_repo(tmp_path, monkeypatch):
    """Repository with three commits to ``notes.txt``.

    Returns ``(repo_path, [sha1, sha2, sha3])`` oldest first.
    """
    if shutil.which("git") is None:
        pytest.skip("git is required")

    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")
    _git(repo, "config", "user.email", "tests@example.com")
    _git(repo, "config", "user.name", "Tests")
    _git(repo, "config", "commit.gpgsign", "false")

    notes = repo / "notes.txt"
    shas = []
    for content, message in [
        ("one\ntwo\n", "first"),
        ("one\ntwo\nthree\n", "second"),
        ("ONE\ntwo\nthree\n", "third"),
    ]:
        notes.write_text(content)
        _git(repo, "add", "notes.txt")
        _git(repo, "commit", "-q", "-m", message)
        out = subprocess.run(
            ["git", "rev-parse", "HEAD"], cwd=repo, check=True, capture_output=True, text=True,
        )
        shas.append(out.stdout.strip())
    return repo, shas
