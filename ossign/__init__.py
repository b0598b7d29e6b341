# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Client-side signing for OSS-style object storage.

Produces time-limited signed download/upload URLs, browser form upload
policies and ``Authorization`` headers, so untrusted clients can act on
private storage without ever holding the account's secret key.
"""

from ossign.canonical import CanonicalRequest, Verb
from ossign.client import Clock, OssSigner
from ossign.credential import Credential
from ossign.errors import (
    InvalidConfig,
    InvalidCredential,
    InvalidDomain,
    InvalidResource,
    SigningError,
    SigningFailure,
)
from ossign.header_signer import HeaderSigner
from ossign.hmac_signer import HmacSigner
from ossign.policy_signer import PolicySigner, UploadPolicy
from ossign.signing_config import SigningConfig
from ossign.url_signer import SignedUrl, UrlSigner


__all__ = [
    # client
    "Clock",
    "OssSigner",
    # values
    "CanonicalRequest",
    "Credential",
    "SignedUrl",
    "SigningConfig",
    "UploadPolicy",
    "Verb",
    # signers
    "HeaderSigner",
    "HmacSigner",
    "PolicySigner",
    "UrlSigner",
    # errors
    "InvalidConfig",
    "InvalidCredential",
    "InvalidDomain",
    "InvalidResource",
    "SigningError",
    "SigningFailure",
]
