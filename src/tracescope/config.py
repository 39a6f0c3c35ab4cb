"""tracescope configuration management.

Handles:
- .env file loading with precedence: CLI > .env > env vars
- Viewer defaults (initial time window, runline flags, axis markers)
- Logging level for the CLI
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

ENV_PREFIX = "TRACESCOPE_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass
class Config:
    """tracescope runtime configuration."""

    log_level: str = "WARNING"
    window_start: float = 0.0
    window_end: float = 100.0
    timeline_markers: int = 3
    palette_size: int = 6
    show_runline_x: bool = True
    show_runline_y: bool = False
    env_file_path: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the settings as JSON-friendly values."""
        result = asdict(self)
        result["env_file_path"] = str(self.env_file_path) if self.env_file_path else None
        return result


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_env_file(env_file: Path) -> dict[str, str]:
    """Read ``KEY=value`` pairs from a .env file.

    Blank lines, ``#`` comments and lines without ``=`` are skipped. A leading
    ``export`` is allowed and one level of matching quotes is stripped. A
    missing file yields an empty dict.
    """
    if not env_file.exists():
        return {}

    values: dict[str, str] = {}
    for raw in env_file.read_text(encoding="utf-8").splitlines():
        entry = raw.strip()
        if entry.startswith("#") or "=" not in entry:
            continue
        entry = entry.removeprefix("export ")
        name, _, value = entry.partition("=")
        values[name.strip()] = _unquote(value.strip())
    return values


def _find_env_file(start: Path | None = None) -> Path | None:
    """Return the nearest ``.env`` at or above ``start`` (default: cwd).

    The search ends at the first directory holding ``.git``, at the user's
    home directory or at the filesystem root, whichever comes first.
    """
    directory = (start or Path.cwd()).resolve()
    try:
        home: Path | None = Path.home()
    except RuntimeError:
        home = None

    while True:
        candidate = directory / ".env"
        if candidate.exists():
            return candidate
        if (directory / ".git").exists() or directory == home:
            return None
        if directory.parent == directory:
            return None
        directory = directory.parent


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{key} must be a boolean (true/false), got {value!r}")


def _parse_number(key: str, value: str, kind: type) -> Any:
    try:
        return kind(value)
    except ValueError as e:
        label = "an integer" if kind is int else "a number"
        raise ValueError(f"{key} must be {label}, got {value!r}") from e


def load_config(
    env_file: str | Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> Config:
    """Resolve settings from CLI overrides, then .env, then os.environ.

    Args:
        env_file: Path to .env file to load (auto-discovered when omitted)
        cli_overrides: Config field overrides; None values are ignored

    Returns:
        Loaded Config instance

    Raises:
        ValueError: If a configured value cannot be parsed
    """
    cli_overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    env_vars = dict(os.environ)

    env_file_path = Path(env_file) if env_file else _find_env_file()
    if env_file_path and env_file_path.exists():
        env_vars.update(parse_env_file(env_file_path))
    else:
        env_file_path = None

    def get(name: str) -> str | None:
        value = env_vars.get(ENV_PREFIX + name)
        return value if value not in (None, "") else None

    config = Config(env_file_path=env_file_path)

    if (level := get("LOG_LEVEL")) is not None:
        config.log_level = level.strip().upper()
        if config.log_level not in _LOG_LEVELS:
            raise ValueError(
                f"{ENV_PREFIX}LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}, got {level!r}"
            )
    if (start := get("WINDOW_START")) is not None:
        config.window_start = _parse_number(ENV_PREFIX + "WINDOW_START", start, float)
    if (end := get("WINDOW_END")) is not None:
        config.window_end = _parse_number(ENV_PREFIX + "WINDOW_END", end, float)
    if (markers := get("TIMELINE_MARKERS")) is not None:
        config.timeline_markers = _parse_number(ENV_PREFIX + "TIMELINE_MARKERS", markers, int)
    if (palette := get("PALETTE_SIZE")) is not None:
        config.palette_size = _parse_number(ENV_PREFIX + "PALETTE_SIZE", palette, int)
    if (runline_x := get("SHOW_RUNLINE_X")) is not None:
        config.show_runline_x = _parse_bool(ENV_PREFIX + "SHOW_RUNLINE_X", runline_x)
    if (runline_y := get("SHOW_RUNLINE_Y")) is not None:
        config.show_runline_y = _parse_bool(ENV_PREFIX + "SHOW_RUNLINE_Y", runline_y)

    for key, value in cli_overrides.items():
        if not hasattr(config, key):
            raise ValueError(f"Unknown config option: {key}")
        setattr(config, key, value)

    return config
