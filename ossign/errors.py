# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Exceptions raised by the signing layer.

Every failure is detected synchronously, before any artifact is returned.
None of them is transient, so nothing in this package retries on them.
"""


class SigningError(Exception):
    """Base exception for all signing errors."""


class InvalidConfig(SigningError):
    """A signing option has an unacceptable value (expiry, size, speed)."""


class InvalidDomain(SigningError):
    """A custom domain is not of the form ``scheme://host[:port]``."""


class InvalidResource(SigningError):
    """The object path is empty or malformed."""


class InvalidCredential(SigningError):
    """The access key id, secret, endpoint or bucket is missing."""


class SigningFailure(SigningError):
    """The keyed-hash computation itself failed."""
