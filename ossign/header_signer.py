# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""``Authorization`` headers for requests sent by an HTTP transport.

Header signing uses the same canonical request as URL signing, with the
request's ``Date`` header in place of the expiry timestamp. The transport
must send every returned header unchanged, to the URL from ``request_url``.
"""

from __future__ import annotations

import email.utils
import logging
from datetime import UTC, datetime

from ossign.canonical import CanonicalRequest, Verb
from ossign.credential import Credential
from ossign.hmac_signer import HmacSigner
from ossign.signing_config import SigningConfig
from ossign.url_signer import object_url, query_string


logger = logging.getLogger(__name__)


def http_date(now: datetime) -> str:
    """Format *now* as an RFC 1123 GMT date, e.g. ``Tue, 14 Nov 2023 ...``."""
    return email.utils.format_datetime(now.astimezone(UTC), usegmt=True)


class HeaderSigner:
    """Sign request headers for one credential."""

    def __init__(
        self, credential: Credential, signer: HmacSigner | None = None
    ) -> None:
        self._credential = credential
        self._signer = signer

    def request_url(self, object_path: str, config: SigningConfig) -> str:
        """Return the URL the signed request must be sent to."""
        self._credential.validate()
        url = object_url(self._credential, object_path, config)
        if config.query_parameters:
            url += "?" + query_string(config.query_parameters)
        return url

    def sign_headers(
        self,
        verb: Verb,
        object_path: str,
        config: SigningConfig,
        now: datetime,
    ) -> dict[str, str]:
        """Build the signed header set for one request.

        Args:
            verb: HTTP verb of the request.
            object_path: Object key, with or without a leading ``/``.
            config: Signing options; content type, content MD5 and vendor
                headers are signed and returned.
            now: Request time, sent as ``Date``.

        Returns:
            Headers to send: ``Date``, ``Authorization`` and any signed
            content or vendor headers.
        """
        self._credential.validate()
        date = http_date(now)
        canonical = CanonicalRequest.for_object(
            verb, self._credential.bucket, object_path, config, date
        )
        string_to_sign = canonical.string_to_sign()
        logger.debug("String to sign: %r", string_to_sign)

        signer = self._signer or HmacSigner(self._credential.access_key_secret)
        signature = signer.sign(string_to_sign)

        headers = {"Date": date}
        if config.content_type:
            headers["Content-Type"] = config.content_type
        if config.content_md5:
            headers["Content-MD5"] = config.content_md5
        headers.update(config.oss_headers)
        headers["Authorization"] = (
            f"OSS {self._credential.access_key_id}:{signature}"
        )
        return headers
