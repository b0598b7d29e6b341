# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Signed POST policies for browser form uploads.

The policy is handed to an untrusted client (browser, mobile app) which
posts a ``multipart/form-data`` request straight to the bucket with these
fields, followed by the ``file`` field last:

- ``OSSAccessKeyId``
- ``policy`` (base64 JSON document)
- ``Signature`` (base64 HMAC of the ``policy`` field)
- ``success_action_status``
- ``key`` (target object key, must satisfy the policy's conditions)

The secret key never leaves the server.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from ossign.canonical import encode_policy, policy_document
from ossign.credential import Credential
from ossign.hmac_signer import HmacSigner
from ossign.signing_config import SigningConfig
from ossign.url_signer import base_url


logger = logging.getLogger(__name__)

SUCCESS_ACTION_STATUS = 200


@dataclass(frozen=True)
class UploadPolicy:
    """Everything a client needs to build a signed form upload.

    Attributes:
        policy_base64: Base64 policy document.
        signature_base64: Base64 signature over ``policy_base64``.
        access_key_id: Access key id the signature was made with.
        expire_unix_timestamp: Moment the policy stops being accepted.
        host: URL the form must be posted to.
        success_action_status: Status the service answers a success with.
    """

    policy_base64: str
    signature_base64: str
    access_key_id: str
    expire_unix_timestamp: int
    host: str
    success_action_status: int = SUCCESS_ACTION_STATUS

    def form_fields(self, key: str) -> dict[str, str]:
        """Return the form fields for uploading to object *key*."""
        return {
            "OSSAccessKeyId": self.access_key_id,
            "policy": self.policy_base64,
            "Signature": self.signature_base64,
            "success_action_status": str(self.success_action_status),
            "key": key,
        }

    def to_dict(self) -> dict[str, str | int]:
        """Return the policy as a JSON-serializable mapping."""
        return {
            "OSSAccessKeyId": self.access_key_id,
            "policy": self.policy_base64,
            "signature": self.signature_base64,
            "expire": self.expire_unix_timestamp,
            "host": self.host,
            "success_action_status": self.success_action_status,
        }


class PolicySigner:
    """Sign upload policies for one credential."""

    def __init__(
        self, credential: Credential, signer: HmacSigner | None = None
    ) -> None:
        self._credential = credential
        self._signer = signer

    def get_upload_object_policy(
        self, config: SigningConfig, now: datetime
    ) -> UploadPolicy:
        """Build and sign a form upload policy.

        The expiry is computed once, from *now* and ``config.expire_seconds``,
        and used for both the document's ``expiration`` and the returned
        ``expire_unix_timestamp``.

        Args:
            config: Signing options; ``upload_dir_prefix``,
                ``max_upload_size_bytes`` and ``content_type`` become
                policy conditions.
            now: Signing time.

        Returns:
            The signed policy.

        Raises:
            InvalidCredential: If the credential is incomplete.
            InvalidDomain: If the custom domain is malformed.
            SigningFailure: If the digest cannot be computed.
        """
        self._credential.validate()
        host = base_url(self._credential, config)

        expires = int(now.timestamp()) + config.expire_seconds
        document = policy_document(self._credential.bucket, config, expires)
        logger.debug("Policy document: %s", document)
        policy = encode_policy(document)

        signer = self._signer or HmacSigner(self._credential.access_key_secret)
        return UploadPolicy(
            policy_base64=policy,
            signature_base64=signer.sign(policy),
            access_key_id=self._credential.access_key_id,
            expire_unix_timestamp=expires,
            host=host,
        )
