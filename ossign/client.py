# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Top-level signing facade.

``OssSigner`` owns the credential and the clock and hands out every kind
of signed artifact::

    credential = Credential(
        "AK", "SK", "oss-cn-shanghai.aliyuncs.com", "mybucket"
    )
    signer = OssSigner(credential)
    url = signer.sign_download_url("/hello.txt", SigningConfig())

It holds no mutable state and may be shared between threads.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from ossign.canonical import Verb
from ossign.credential import Credential
from ossign.errors import InvalidConfig
from ossign.header_signer import HeaderSigner
from ossign.hmac_signer import HmacSigner
from ossign.policy_signer import PolicySigner, UploadPolicy
from ossign.signing_config import SigningConfig
from ossign.url_signer import SignedUrl, UrlSigner


#: Zero-argument callable returning the current, timezone-aware time.
Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _verb(verb: Verb | str) -> Verb:
    if isinstance(verb, Verb):
        return verb
    try:
        return Verb(verb.upper())
    except ValueError as e:
        raise InvalidConfig(f"Unsupported HTTP verb: {verb!r}") from e


class OssSigner:
    """Sign URLs, upload policies and request headers for one credential.

    Args:
        credential: Account credential. Checked before every signing call.
        clock: Time source, read once per call. Defaults to the system
            clock in UTC.
    """

    def __init__(self, credential: Credential, clock: Clock | None = None):
        self._credential = credential
        self._clock = clock or _utc_now

    @property
    def credential(self) -> Credential:
        return self._credential

    def _hmac(self) -> HmacSigner:
        self._credential.validate()
        return HmacSigner(self._credential.access_key_secret)

    def sign_download_url(
        self, object_path: str, config: SigningConfig | None = None
    ) -> SignedUrl:
        """Sign a GET URL; see ``UrlSigner.sign_download_url``."""
        signer = UrlSigner(self._credential, self._hmac())
        return signer.sign_download_url(
            object_path, config or SigningConfig(), self._clock()
        )

    def sign_upload_url(
        self, object_path: str, config: SigningConfig | None = None
    ) -> SignedUrl:
        """Sign a PUT URL; see ``UrlSigner.sign_upload_url``."""
        signer = UrlSigner(self._credential, self._hmac())
        return signer.sign_upload_url(
            object_path, config or SigningConfig(), self._clock()
        )

    def get_upload_object_policy(
        self, config: SigningConfig | None = None
    ) -> UploadPolicy:
        """Sign a form upload policy; see ``PolicySigner``."""
        signer = PolicySigner(self._credential, self._hmac())
        return signer.get_upload_object_policy(
            config or SigningConfig(), self._clock()
        )

    def sign_headers(
        self,
        verb: Verb | str,
        object_path: str,
        config: SigningConfig | None = None,
    ) -> dict[str, str]:
        """Sign request headers; see ``HeaderSigner.sign_headers``."""
        signer = HeaderSigner(self._credential, self._hmac())
        return signer.sign_headers(
            _verb(verb),
            object_path,
            config or SigningConfig(),
            self._clock(),
        )

    def request_url(
        self, object_path: str, config: SigningConfig | None = None
    ) -> str:
        """Return the unsigned URL a header-signed request targets."""
        return HeaderSigner(self._credential).request_url(
            object_path, config or SigningConfig()
        )
