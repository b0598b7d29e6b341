# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Signed download and upload URLs.

A signed URL carries its own authorization in the query string::

    https://bucket.endpoint/key?OSSAccessKeyId=...&Expires=...&Signature=...

The signature covers the canonical request described in
``ossign.canonical``, with the expiry timestamp standing in for the Date
header. Whatever reaches the service must match what was signed: an upload
URL signed with a Content-Type is only accepted when the PUT carries that
same Content-Type header.
"""

from __future__ import annotations

import logging
import urllib.parse
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from ossign.canonical import CanonicalRequest, Verb, encode_key, normalize_key
from ossign.credential import Credential
from ossign.errors import InvalidDomain
from ossign.hmac_signer import HmacSigner
from ossign.signing_config import SOURCE_IP_PARAM, SigningConfig


logger = logging.getLogger(__name__)

_DOMAIN_SCHEMES = frozenset({"http", "https"})

# Signed but never sent: the service reads the client address itself.
_UNSENT_PARAMETERS = frozenset({SOURCE_IP_PARAM})


@dataclass(frozen=True)
class SignedUrl:
    """A ready-to-use signed URL."""

    url: str

    def __str__(self) -> str:
        return self.url


def query_string(pairs: Iterable[tuple[str, str]]) -> str:
    """Render *pairs* as a query string, percent-encoding each value."""
    return "&".join(
        f"{name}={urllib.parse.quote(value, safe='')}" for name, value in pairs
    )


def _custom_base_url(domain: str) -> str:
    """Validate a custom domain and return it as ``scheme://authority``.

    Raises:
        InvalidDomain: If *domain* is not ``http(s)://host[:port][/]``.
    """
    try:
        parts = urllib.parse.urlsplit(domain.strip())
        port = parts.port
    except ValueError as e:
        raise InvalidDomain(f"Malformed custom domain {domain!r}: {e}") from e
    if (
        parts.scheme.lower() not in _DOMAIN_SCHEMES
        or not parts.hostname
        or parts.username is not None
        or parts.path not in ("", "/")
        or parts.query
        or parts.fragment
        or port == 0
    ):
        raise InvalidDomain(
            f"Custom domain must look like scheme://host[:port], "
            f"got {domain!r}"
        )
    return f"{parts.scheme.lower()}://{parts.netloc}"


def base_url(credential: Credential, config: SigningConfig) -> str:
    """Return ``scheme://authority`` that artifacts are addressed to.

    The custom domain wins when set. Otherwise the authority is the
    virtual-hosted bucket endpoint, ``bucket.endpoint``, using the scheme
    given on the endpoint or, failing that, the config's ``https`` flag.
    """
    if config.custom_domain is not None:
        return _custom_base_url(config.custom_domain)
    scheme = credential.endpoint_scheme or ("https" if config.https else "http")
    return f"{scheme}://{credential.bucket}.{credential.host}"


def object_url(
    credential: Credential, object_path: str, config: SigningConfig
) -> str:
    """Return the plain, unsigned URL of *object_path*."""
    key = normalize_key(object_path)
    return base_url(credential, config) + encode_key(key)


class UrlSigner:
    """Sign download (GET) and upload (PUT) URLs for one credential."""

    def __init__(
        self, credential: Credential, signer: HmacSigner | None = None
    ) -> None:
        self._credential = credential
        self._signer = signer

    def sign_download_url(
        self, object_path: str, config: SigningConfig, now: datetime
    ) -> SignedUrl:
        """Sign a GET URL for *object_path*, valid until ``now + expiry``.

        Args:
            object_path: Object key, with or without a leading ``/``.
            config: Signing options.
            now: Signing time.

        Returns:
            The signed URL.

        Raises:
            InvalidCredential: If the credential is incomplete.
            InvalidResource: If the object key is empty.
            InvalidDomain: If the custom domain is malformed.
            SigningFailure: If the digest cannot be computed.
        """
        return self._sign(Verb.GET, object_path, config, now)

    def sign_upload_url(
        self, object_path: str, config: SigningConfig, now: datetime
    ) -> SignedUrl:
        """Sign a PUT URL for *object_path*.

        Content-Type and Content-MD5 from *config* are signed but not put in
        the URL; the uploader must send them as headers, unchanged.
        """
        return self._sign(Verb.PUT, object_path, config, now)

    def _sign(
        self,
        verb: Verb,
        object_path: str,
        config: SigningConfig,
        now: datetime,
    ) -> SignedUrl:
        self._credential.validate()
        url = object_url(self._credential, object_path, config)

        expires = int(now.timestamp()) + config.expire_seconds
        canonical = CanonicalRequest.for_object(
            verb, self._credential.bucket, object_path, config, str(expires)
        )
        string_to_sign = canonical.string_to_sign()
        logger.debug("String to sign: %r", string_to_sign)
        signer = self._signer or HmacSigner(self._credential.access_key_secret)
        signature = signer.sign(string_to_sign)

        query = [
            ("OSSAccessKeyId", self._credential.access_key_id),
            ("Expires", str(expires)),
            ("Signature", signature),
        ]
        query.extend(
            (name, value)
            for name, value in config.query_parameters
            if name not in _UNSENT_PARAMETERS
        )
        signed = SignedUrl(url + "?" + query_string(query))
        logger.debug("Signed %s URL: %s", verb.value, signed)
        return signed
