# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Canonical strings for OSS signature version 1.

Two shapes are produced:

- **Header-based** (signed URLs and ``Authorization`` headers)::

    VERB \\n
    Content-MD5 \\n
    Content-Type \\n
    Date-or-Expires \\n
    x-oss-name:value \\n      (one line per vendor header, sorted)
    /bucket/key?sub=value&... (canonical resource)

- **Policy-based** (browser form uploads): the base64 of a compact JSON
  document holding ``expiration`` and an ordered list of ``conditions``.

Rendering is deterministic: identical logical inputs always produce
byte-identical output, whatever order options were added in.
"""

from __future__ import annotations

import base64
import json
import urllib.parse
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from ossign.errors import InvalidResource
from ossign.signing_config import SigningConfig


class Verb(Enum):
    """HTTP verbs a request can be signed for."""

    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    DELETE = "DELETE"
    HEAD = "HEAD"


# Query parameters that the service folds into the canonical resource.
# Anything else is carried in the query string but left unsigned.
SIGNED_SUBRESOURCES = frozenset(
    {
        "acl",
        "append",
        "bucketInfo",
        "cors",
        "delete",
        "lifecycle",
        "location",
        "logging",
        "objectMeta",
        "partNumber",
        "position",
        "referer",
        "response-cache-control",
        "response-content-disposition",
        "response-content-encoding",
        "response-content-language",
        "response-content-type",
        "response-expires",
        "restore",
        "security-token",
        "stat",
        "symlink",
        "tagging",
        "uploadId",
        "uploads",
        "versionId",
        "versioning",
        "website",
        "x-oss-ac-forwarded-for",
        "x-oss-ac-source-ip",
        "x-oss-ac-subnet-mask",
        "x-oss-ac-vpc-id",
        "x-oss-process",
        "x-oss-request-payer",
        "x-oss-traffic-limit",
    }
)


# ---------------------------------------------------------------------------
# Object keys and resources
# ---------------------------------------------------------------------------


def normalize_key(object_path: str) -> str:
    """Return *object_path* with exactly one leading ``/`` guaranteed.

    Raises:
        InvalidResource: If the path is not a string or names no object.
    """
    if not isinstance(object_path, str):
        raise InvalidResource(
            f"Object path must be a string, got {type(object_path).__name__}"
        )
    if not object_path.strip("/"):
        raise InvalidResource(f"Object key is empty: {object_path!r}")
    if not object_path.startswith("/"):
        return "/" + object_path
    return object_path


def encode_key(key: str) -> str:
    """Percent-encode each path segment of *key*, keeping the slashes."""
    parts = key.split("/")
    return "/".join(urllib.parse.quote(part, safe="") for part in parts)


def signed_parameters(
    parameters: tuple[tuple[str, str], ...],
) -> list[tuple[str, str]]:
    """Select the sub-resource parameters that enter the signature."""
    return sorted((k, v) for k, v in parameters if k in SIGNED_SUBRESOURCES)


def canonical_resource(
    bucket: str, key: str, parameters: tuple[tuple[str, str], ...] = ()
) -> str:
    """Build the canonical resource ``/bucket/key[?sub=value&...]``.

    The key and parameter values are used raw, not percent-encoded.

    Args:
        bucket: Bucket name.
        key: Normalized object key (leading ``/``).
        parameters: Query parameters; only sub-resources are included.

    Returns:
        Canonical resource string.
    """
    resource = f"/{bucket}{key}"
    signed = signed_parameters(parameters)
    if signed:
        resource += "?" + "&".join(
            f"{name}={value}" if value else name for name, value in signed
        )
    return resource


def canonical_oss_headers(oss_headers: tuple[tuple[str, str], ...]) -> str:
    """Render vendor headers, one ``name:value`` line each, sorted by name."""
    lowered = {name.lower(): value.strip() for name, value in oss_headers}
    return "".join(f"{name}:{lowered[name]}\n" for name in sorted(lowered))


# ---------------------------------------------------------------------------
# Header-based canonical request
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CanonicalRequest:
    """The signed parts of one request.

    Attributes:
        verb: HTTP verb.
        content_md5: Content-MD5 header value, or empty.
        content_type: Content-Type header value, or empty.
        date: Expiry Unix timestamp (signed URLs) or RFC 1123 date
            (``Authorization`` header).
        oss_headers: Vendor ``x-oss-*`` headers.
        resource: Canonical resource.
    """

    verb: Verb
    content_md5: str
    content_type: str
    date: str
    oss_headers: tuple[tuple[str, str], ...]
    resource: str

    @classmethod
    def for_object(
        cls,
        verb: Verb,
        bucket: str,
        object_path: str,
        config: SigningConfig,
        date: str,
    ) -> CanonicalRequest:
        """Build the canonical request for *object_path* in *bucket*."""
        key = normalize_key(object_path)
        return cls(
            verb=verb,
            content_md5=config.content_md5 or "",
            content_type=config.content_type or "",
            date=date,
            oss_headers=config.oss_headers,
            resource=canonical_resource(bucket, key, config.query_parameters),
        )

    def string_to_sign(self) -> str:
        """Render the exact string that gets signed."""
        return (
            "\n".join(
                [
                    self.verb.value,
                    self.content_md5,
                    self.content_type,
                    self.date,
                ]
            )
            + "\n"
            + canonical_oss_headers(self.oss_headers)
            + self.resource
        )


# ---------------------------------------------------------------------------
# Policy-based canonical document
# ---------------------------------------------------------------------------


def policy_expiration(expires_at: int) -> str:
    """Format a Unix timestamp as the policy's ISO-8601 UTC expiration."""
    moment = datetime.fromtimestamp(expires_at, UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def policy_conditions(bucket: str, config: SigningConfig) -> list[Any]:
    """Build the ordered condition list for a form upload policy.

    Order is fixed: bucket, key prefix, content length, content type.
    Unset constraints are omitted rather than rendered as wildcards.
    """
    conditions: list[Any] = [{"bucket": bucket}]
    if config.upload_dir_prefix is not None:
        conditions.append(["starts-with", "$key", config.upload_dir_prefix])
    if config.max_upload_size_bytes is not None:
        conditions.append(
            ["content-length-range", 0, config.max_upload_size_bytes]
        )
    if config.content_type is not None:
        conditions.append(["eq", "$content-type", config.content_type])
    return conditions


def policy_document(
    bucket: str, config: SigningConfig, expires_at: int
) -> dict[str, Any]:
    """Build the policy document for an upload expiring at *expires_at*."""
    return {
        "expiration": policy_expiration(expires_at),
        "conditions": policy_conditions(bucket, config),
    }


def encode_policy(document: dict[str, Any]) -> str:
    """Serialize *document* compactly and base64-encode it."""
    raw = json.dumps(document, separators=(",", ":"), ensure_ascii=False)
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")
