"""Environment-variable helpers."""

import os
from pathlib import Path

from .config import ENV_FILE


def load_env_file(path: Path = ENV_FILE) -> list[str]:
    """Load KEY=VALUE pairs from a .env file and return the names it set.

    Variables already exported in the shell win over the file. Lines may
    carry a leading ``export`` so the same file can be sourced by a shell.
    """
    if not path.is_file():
        return []

    loaded: list[str] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = (part.strip() for part in line.split("=", 1))
        if not key or key in os.environ:
            continue
        os.environ[key] = value.strip("'\"")
        loaded.append(key)
    return loaded


def get_required_env(name: str) -> str:
    """Fetch a required environment variable or raise a clear error."""
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def get_optional_env(name: str, default: str | None = None) -> str | None:
    """Fetch an environment variable, treating empty values as unset."""
    return os.getenv(name) or default


def get_env_float(name: str, default: float) -> float:
    value = get_optional_env(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be a number, got {value!r}") from None
