"""
Configuration management for blame-nav.

Global config:  ~/.blame-nav/config.json
Project config: .blame-nav/config.json   (in the repository root)

Keys:
    git        git executable (default: "git")
    timeout    seconds to wait for a git invocation (default: 30)
    color      colour output in the terminal (default: true)
    clipboard  list of argv lists tried in order to copy text

Environment overrides: BLAME_NAV_GIT, BLAME_NAV_TIMEOUT, NO_COLOR.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Load .env from the global config directory (if present)
# -------------------------------------------------------------------

def _load_dotenv(env_path: Path) -> None:
    """Read key=value pairs into os.environ without overriding real env vars."""
    if not env_path.is_file():
        return
    try:
        for line in env_path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            os.environ.setdefault(key.strip(), value.strip().strip("'\""))
    except OSError as e:
        logger.debug("could not read %s: %s", env_path, e)


# -------------------------------------------------------------------
# Paths
# -------------------------------------------------------------------

GLOBAL_CONFIG_DIR = Path.home() / ".blame-nav"
GLOBAL_CONFIG_FILE = GLOBAL_CONFIG_DIR / "config.json"

PROJECT_CONFIG_DIR_NAME = ".blame-nav"
PROJECT_CONFIG_FILE_NAME = "config.json"

DEFAULT_GIT = "git"
DEFAULT_TIMEOUT = 30.0

KNOWN_KEYS = ("git", "timeout", "color", "clipboard")


@dataclass
class Settings:
    git: str = DEFAULT_GIT
    timeout: float | None = DEFAULT_TIMEOUT
    color: bool = True
    clipboard: list[list[str]] | None = None
    sources: list[str] = field(default_factory=list)


# -------------------------------------------------------------------
# Global config
# -------------------------------------------------------------------

def _read_json(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("ignoring unreadable config %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring config %s: expected a JSON object", path)
        return {}
    return data


def get_global_config() -> dict:
    """Load ~/.blame-nav/config.json (returns {} if missing)."""
    return _read_json(GLOBAL_CONFIG_FILE)


def save_global_config(config: dict) -> None:
    """Write ~/.blame-nav/config.json."""
    GLOBAL_CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    GLOBAL_CONFIG_FILE.write_text(json.dumps(config, indent=2) + "\n")


# -------------------------------------------------------------------
# Project config
# -------------------------------------------------------------------

def _project_config_path(project_dir: str | None = None) -> Path:
    if project_dir is None:
        project_dir = os.getcwd()
    return Path(project_dir) / PROJECT_CONFIG_DIR_NAME / PROJECT_CONFIG_FILE_NAME


def get_project_config(project_dir: str | None = None) -> dict:
    """Load .blame-nav/config.json from *project_dir* (returns {} if missing)."""
    return _read_json(_project_config_path(project_dir))


def save_project_config(config: dict, project_dir: str | None = None) -> None:
    path = _project_config_path(project_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config, indent=2) + "\n")


# -------------------------------------------------------------------
# Value coercion
# -------------------------------------------------------------------

def parse_value(key: str, raw: str):
    """Convert a command-line string into the stored type for *key*."""
    if key not in KNOWN_KEYS:
        raise ValueError(f"unknown config key: {key} (expected one of {', '.join(KNOWN_KEYS)})")
    if key == "timeout":
        if raw.lower() in ("none", "off", "0"):
            return None
        try:
            value = float(raw)
        except ValueError:
            raise ValueError(f"timeout must be a number of seconds, got {raw!r}") from None
        if value < 0:
            raise ValueError("timeout must not be negative")
        return value
    if key == "color":
        lowered = raw.lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"color must be true or false, got {raw!r}")
    if key == "clipboard":
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            raise ValueError("clipboard must be a JSON list of argv lists") from None
        if not _is_argv_list(value):
            raise ValueError("clipboard must be a JSON list of argv lists")
        return value
    return raw


def _is_argv_list(value) -> bool:
    return isinstance(value, list) and all(
        isinstance(cmd, list) and cmd and all(isinstance(a, str) for a in cmd)
        for cmd in value
    )


def _apply(settings: Settings, config: dict, source: str) -> None:
    applied = False
    if isinstance(config.get("git"), str) and config["git"]:
        settings.git = config["git"]
        applied = True
    if "timeout" in config:
        timeout = config["timeout"]
        if timeout is None or (isinstance(timeout, (int, float)) and timeout > 0):
            settings.timeout = float(timeout) if timeout is not None else None
            applied = True
        else:
            logger.warning("%s: ignoring invalid timeout %r", source, timeout)
    if isinstance(config.get("color"), bool):
        settings.color = config["color"]
        applied = True
    if "clipboard" in config:
        if _is_argv_list(config["clipboard"]):
            settings.clipboard = config["clipboard"]
            applied = True
        else:
            logger.warning("%s: ignoring invalid clipboard setting", source)
    if applied:
        settings.sources.append(source)


# -------------------------------------------------------------------
# Resolution
# -------------------------------------------------------------------

def get_settings(project_dir: str | None = None) -> Settings:
    """
    Resolve settings.  Priority (highest last):
      1. Defaults
      2. Global config  (~/.blame-nav/config.json)
      3. Project config (.blame-nav/config.json)
      4. BLAME_NAV_GIT / BLAME_NAV_TIMEOUT / NO_COLOR env vars (or ~/.blame-nav/.env)
    """
    _load_dotenv(GLOBAL_CONFIG_DIR / ".env")

    settings = Settings()
    _apply(settings, get_global_config(), str(GLOBAL_CONFIG_FILE))
    _apply(settings, get_project_config(project_dir), str(_project_config_path(project_dir)))

    env_git = os.environ.get("BLAME_NAV_GIT")
    if env_git:
        settings.git = env_git
        settings.sources.append("BLAME_NAV_GIT")

    env_timeout = os.environ.get("BLAME_NAV_TIMEOUT")
    if env_timeout:
        try:
            settings.timeout = parse_value("timeout", env_timeout)
            settings.sources.append("BLAME_NAV_TIMEOUT")
        except ValueError as e:
            logger.warning("BLAME_NAV_TIMEOUT: %s", e)

    if os.environ.get("NO_COLOR"):
        settings.color = False
        settings.sources.append("NO_COLOR")

    return settings
