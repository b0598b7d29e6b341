# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Idempotent ``.env`` loading for credential settings.

Reads environment variables from two locations, in order:

1. ``~/.config/ossign/.env`` (XDG config directory)
2. ``.env`` in the current working directory

Variables set by the first file are not overwritten by the second
(``python-dotenv`` keeps existing variables by default).
"""

import logging
from pathlib import Path

from dotenv import load_dotenv


logger = logging.getLogger(__name__)

_dotenv_loaded = False


def load_dotenv_once() -> None:
    """Load ``.env`` files once; later calls do nothing."""
    global _dotenv_loaded
    if _dotenv_loaded:
        return

    from ossign.settings import get_dotenv_path

    xdg_env = get_dotenv_path()
    if xdg_env.exists():
        load_dotenv(xdg_env)
        logger.debug("Loaded .env from %s", xdg_env)

    cwd_env = Path.cwd() / ".env"
    if cwd_env.exists():
        load_dotenv(cwd_env)
        logger.debug("Loaded .env from %s", cwd_env)

    _dotenv_loaded = True


def reset_dotenv_state() -> None:
    """Reset the loaded state. For testing only."""
    global _dotenv_loaded
    _dotenv_loaded = False
