"""Packaged prompt text for the chat server.

The legal-guidance instructions ship as system.txt beside this module.
A deployment can replace them by pointing LEXA_PROMPTS_DIR at a
directory holding its own system.txt.
"""

import os
from functools import lru_cache
from pathlib import Path

PROMPTS_DIR_ENV = "LEXA_PROMPTS_DIR"

_PACKAGE_DIR = Path(__file__).parent


def _candidates(name: str) -> list[Path]:
    filename = f"{name}.txt"
    override = os.getenv(PROMPTS_DIR_ENV)
    paths = [Path(override) / filename] if override else []
    paths.append(_PACKAGE_DIR / filename)
    return paths


@lru_cache(maxsize=8)
def load_prompt(name: str) -> str:
    """Read a prompt, preferring the LEXA_PROMPTS_DIR override.

    Raises:
        FileNotFoundError: If no candidate file exists
    """
    paths = _candidates(name)
    for path in paths:
        if path.is_file():
            return path.read_text(encoding="utf-8").strip()

    searched = "\n".join(f"  - {path}" for path in paths)
    raise FileNotFoundError(f"Prompt '{name}' not found. Searched:\n{searched}")


def get_system_prompt() -> str:
    """Instructions placed first in every upstream prompt."""
    return load_prompt("system")


def clear_cache() -> None:
    load_prompt.cache_clear()


__all__ = [
    "PROMPTS_DIR_ENV",
    "clear_cache",
    "get_system_prompt",
    "load_prompt",
]
