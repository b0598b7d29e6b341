# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Logging configuration with secret redaction.

Signing modules log canonical strings and finished artifacts at DEBUG.
Neither contains a secret key, but access key secrets loaded through
``ossign.settings`` are registered here anyway so that a stray message
(an exception text, a config dump) can never print one.

Usage:
    # In entry points
    from ossign.logging import configure_logging
    configure_logging(level=logging.DEBUG)

    # In library modules
    import logging
    logger = logging.getLogger(__name__)
    logger.debug("String to sign: %r", string_to_sign)
"""

import logging
import re
from typing import ClassVar


REDACTED = "[REDACTED]"


class SecretFilter(logging.Filter):
    """Logging filter that redacts registered secrets from log output.

    Secrets are registered at runtime with ``register_secret()`` and
    replaced with ``[REDACTED]`` wherever they appear in a message or in
    a string argument.

    Example:
        SecretFilter.register_secret("my-access-key-secret")
        logger.info("Loaded secret my-access-key-secret")
        # Output: "Loaded secret [REDACTED]"
    """

    _secrets: ClassVar[set[str]] = set()
    _pattern: ClassVar[re.Pattern[str] | None] = None

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact registered secrets from *record*.

        Returns:
            Always True (records are modified, never suppressed).
        """
        if self._pattern is not None:
            record.msg = self._pattern.sub(REDACTED, str(record.msg))
            if record.args:
                record.args = tuple(
                    self._pattern.sub(REDACTED, str(arg))
                    if isinstance(arg, str)
                    else arg
                    for arg in record.args
                )
        return True

    @classmethod
    def register_secret(cls, secret: str) -> None:
        """Register a secret to be redacted. Empty strings are ignored."""
        if secret:
            cls._secrets.add(secret)
            cls._rebuild_pattern()

    @classmethod
    def clear_secrets(cls) -> None:
        """Clear all registered secrets. Primarily for testing."""
        cls._secrets.clear()
        cls._pattern = None

    @classmethod
    def _rebuild_pattern(cls) -> None:
        if not cls._secrets:
            cls._pattern = None
            return
        # Longest first so a secret containing another is redacted whole.
        escaped = [
            re.escape(s) for s in sorted(cls._secrets, key=len, reverse=True)
        ]
        cls._pattern = re.compile("|".join(escaped))


def configure_logging(
    level: int = logging.INFO,
    format_string: str | None = None,
    add_secret_filter: bool = True,
) -> None:
    """Configure the root logger with a stderr handler.

    Args:
        level: Logging level, e.g. ``logging.DEBUG``.
        format_string: Custom format string. If None, uses default format.
        add_secret_filter: Whether to attach ``SecretFilter`` to the handler.
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format_string))

    if add_secret_filter:
        handler.addFilter(SecretFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for existing_handler in root_logger.handlers[:]:
        root_logger.removeHandler(existing_handler)

    root_logger.addHandler(handler)
