"""
Project root and `.env` handling.

SurfScore runs from uvicorn, the `surfscore` CLI and pytest, each possibly from a
different working directory. Relative settings such as `spots.path` or `cache.dir`
resolve against the project root found here, and `.env` (store backend, cache dir,
log level) is read from that same root.

Root lookup order:
1) `SURFSCORE_PROJECT_ROOT`
2) the directory of `SURFSCORE_ENV_FILE`
3) the nearest parent of the working directory, then of this module, that holds
   `.env`, `.git`, or both `src/` and `data/`
4) the working directory
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


def _is_root(path: Path) -> bool:
    if (path / ".env").is_file() or (path / ".git").exists():
        return True
    return (path / "src").is_dir() and (path / "data").is_dir()


def _find_root(start: Path) -> Path | None:
    start = start.resolve()
    for candidate in (start, *start.parents):
        if _is_root(candidate):
            return candidate
    return None


@lru_cache
def get_project_root() -> Path:
    override = os.getenv("SURFSCORE_PROJECT_ROOT")
    if override:
        return Path(override).expanduser().resolve()

    env_file = os.getenv("SURFSCORE_ENV_FILE")
    if env_file:
        return Path(env_file).expanduser().resolve().parent

    return _find_root(Path.cwd()) or _find_root(Path(__file__).parent) or Path.cwd().resolve()


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load the project's `.env` once; variables already set in the process win."""
    explicit = os.getenv("SURFSCORE_ENV_FILE")
    env_path = Path(explicit).expanduser().resolve() if explicit else get_project_root() / ".env"
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def resolve_project_path(path: str | Path) -> Path:
    """Absolute paths pass through; relative ones resolve against the project root."""
    p = Path(path).expanduser()
    if p.is_absolute():
        return p
    return (get_project_root() / p).resolve()
