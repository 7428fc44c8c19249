"""Root logger setup for the bookshelf client.

``configure_root`` is called once at start-up with the ``debug_logging``
setting and again after settings are loaded; it is idempotent. An explicit
``BOOKSHELF_LOG_LEVEL`` always wins over the setting.
"""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

_DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DEFAULT_DATEFMT = "%H:%M:%S"
LEVEL_ENV_VAR = "BOOKSHELF_LOG_LEVEL"

# Transport libraries log one INFO line per request
_NOISY_LOGGERS = ("httpx", "httpcore")


def parse_level(text: Optional[str]) -> Optional[int]:
    """Level number for ``"debug"``, ``"WARNING"``, ``"15"``...; ``None`` if unknown."""
    value = (text or "").strip()
    if not value:
        return None
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else None


def env_level(environ: Optional[Mapping[str, str]] = None) -> Optional[int]:
    env = os.environ if environ is None else environ
    return parse_level(env.get(LEVEL_ENV_VAR))


def configure_root(debug: bool = False, *, environ: Optional[Mapping[str, str]] = None) -> int:
    """Install the compact console handler and set levels.

    Returns the effective root level.
    """
    level = env_level(environ)
    if level is None:
        level = logging.DEBUG if debug else logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=_DEFAULT_FORMAT, datefmt=_DEFAULT_DATEFMT)
    root.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return level


__all__ = ["LEVEL_ENV_VAR", "configure_root", "env_level", "parse_level"]
