# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Account credential used by every signing operation."""

from __future__ import annotations

from dataclasses import dataclass, field

from ossign.errors import InvalidCredential


_SCHEMES = ("https://", "http://")

_REQUIRED_FIELDS = ("access_key_id", "access_key_secret", "endpoint", "bucket")


@dataclass(frozen=True)
class Credential:
    """Access key pair plus the endpoint and bucket it is used against.

    The secret is kept out of ``repr`` so a credential can be logged or
    shown in a traceback without leaking it.

    Attributes:
        access_key_id: Public access key id, embedded in signed artifacts.
        access_key_secret: Secret key used for HMAC signing.
        endpoint: Region endpoint, e.g. ``oss-cn-shanghai.aliyuncs.com``.
            May carry an ``http://`` or ``https://`` prefix.
        bucket: Bucket name.
    """

    access_key_id: str
    access_key_secret: str = field(repr=False)
    endpoint: str
    bucket: str

    def validate(self) -> None:
        """Check that every field is populated.

        Raises:
            InvalidCredential: Naming the first empty field.
        """
        for name in _REQUIRED_FIELDS:
            if not getattr(self, name):
                raise InvalidCredential(f"Credential {name} is empty")
        if not self.host:
            raise InvalidCredential(
                f"Credential endpoint has no host: {self.endpoint!r}"
            )

    @property
    def host(self) -> str:
        """Endpoint host without scheme or trailing slash."""
        endpoint = self.endpoint.strip()
        for prefix in _SCHEMES:
            if endpoint.lower().startswith(prefix):
                endpoint = endpoint[len(prefix) :]
                break
        return endpoint.rstrip("/")

    @property
    def endpoint_scheme(self) -> str | None:
        """Scheme given on the endpoint, or None if it is bare."""
        endpoint = self.endpoint.strip().lower()
        for prefix in _SCHEMES:
            if endpoint.startswith(prefix):
                return prefix[: -len("://")]
        return None
