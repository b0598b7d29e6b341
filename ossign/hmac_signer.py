# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""HMAC-SHA1 signing for OSS signature version 1."""

from __future__ import annotations

import base64
import hashlib
import hmac

from ossign.errors import InvalidCredential, SigningFailure


class HmacSigner:
    """Produce base64 HMAC-SHA1 signatures with a fixed secret key.

    Stateless apart from the key; one instance may be shared across
    threads. The key never appears in ``repr`` or log output.
    """

    __slots__ = ("_key",)

    def __init__(self, secret: str | bytes) -> None:
        if not secret:
            raise InvalidCredential("Signing key is empty")
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        self._key = secret

    def __repr__(self) -> str:
        return "HmacSigner(key=<redacted>)"

    def sign(self, msg: str | bytes) -> str:
        """Sign *msg* and return the base64-encoded digest.

        Args:
            msg: String to sign (UTF-8 encoded when ``str``).

        Returns:
            Base64-encoded HMAC-SHA1 digest.

        Raises:
            SigningFailure: If the digest cannot be computed.
        """
        try:
            if isinstance(msg, str):
                msg = msg.encode("utf-8")
            digest = hmac.new(self._key, msg, hashlib.sha1).digest()
        except (TypeError, ValueError) as e:
            raise SigningFailure(f"HMAC computation failed: {e}") from e
        return base64.b64encode(digest).decode("ascii")
