# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Immutable builder for signing options.

Every ``with_*`` method returns a new ``SigningConfig``; the receiver is
never modified, so one config may be shared freely between threads and
extended independently by each holder::

    base = SigningConfig().with_expire(300)
    download = base.with_download_speed_limit(100)
    upload = base.with_content_type("text/plain")

Values that can be checked in isolation (expiry, upload size, speed limit,
vendor header names) are checked as soon as they are supplied. A custom
domain is stored verbatim and only checked when a URL is built from it.

Custom-domain signing and IP restriction (``with_source_ip``) should not be
combined: requests arriving through a CDN carry the CDN's address, not the
client's. This is a deployment constraint and is not enforced here.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from ossign.errors import InvalidConfig


DEFAULT_EXPIRE_SECONDS = 60

#: Accepted ``x-oss-traffic-limit`` range, in KB/s (245760..838860800 bit/s).
MIN_SPEED_LIMIT_KBPS = 30
MAX_SPEED_LIMIT_KBPS = 100 * 1024

TRAFFIC_LIMIT_PARAM = "x-oss-traffic-limit"
SOURCE_IP_PARAM = "x-oss-ac-source-ip"
SUBNET_MASK_PARAM = "x-oss-ac-subnet-mask"
FORWARDED_FOR_PARAM = "x-oss-ac-forwarded-for"

_OSS_HEADER_PREFIX = "x-oss-"


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _put(
    pairs: tuple[tuple[str, str], ...], name: str, value: str
) -> tuple[tuple[str, str], ...]:
    """Return *pairs* with *name* set to *value*, sorted by name."""
    merged = dict(pairs)
    merged[name] = value
    return tuple(sorted(merged.items()))


@dataclass(frozen=True)
class SigningConfig:
    """Options for one signing operation.

    Attributes:
        expire_seconds: Lifetime of the artifact, counted from signing time.
        content_type: Content-Type bound into the signature.
        content_md5: Content-MD5 bound into the signature.
        custom_domain: ``scheme://host[:port]`` used instead of the bucket
            endpoint when building URLs. Never part of the signed string.
        https: Scheme for the bucket endpoint when it carries none.
        download_speed_limit_kbps: Download speed cap in KB/s.
        oss_headers: Vendor ``x-oss-*`` headers, lower-cased, sorted by name.
        parameters: Extra query parameters, sorted by name.
        upload_dir_prefix: Key prefix a policy upload must start with.
        max_upload_size_bytes: Largest body a policy upload may carry.
    """

    expire_seconds: int = DEFAULT_EXPIRE_SECONDS
    content_type: str | None = None
    content_md5: str | None = None
    custom_domain: str | None = None
    https: bool = True
    download_speed_limit_kbps: int | None = None
    oss_headers: tuple[tuple[str, str], ...] = ()
    parameters: tuple[tuple[str, str], ...] = ()
    upload_dir_prefix: str | None = None
    max_upload_size_bytes: int | None = None

    def __post_init__(self) -> None:
        if not _is_int(self.expire_seconds) or self.expire_seconds <= 0:
            raise InvalidConfig(
                f"expire_seconds must be a positive integer, "
                f"got {self.expire_seconds!r}"
            )
        if self.max_upload_size_bytes is not None and (
            not _is_int(self.max_upload_size_bytes)
            or self.max_upload_size_bytes <= 0
        ):
            raise InvalidConfig(
                f"max_upload_size_bytes must be a positive integer, "
                f"got {self.max_upload_size_bytes!r}"
            )
        speed = self.download_speed_limit_kbps
        if speed is not None and (
            not _is_int(speed)
            or not MIN_SPEED_LIMIT_KBPS <= speed <= MAX_SPEED_LIMIT_KBPS
        ):
            raise InvalidConfig(
                f"download speed limit must be between "
                f"{MIN_SPEED_LIMIT_KBPS} and {MAX_SPEED_LIMIT_KBPS} KB/s, "
                f"got {speed!r}"
            )
        for name, _ in self.oss_headers:
            if not name.startswith(_OSS_HEADER_PREFIX) or name != name.lower():
                raise InvalidConfig(
                    f"Vendor header must be lower-case and start with "
                    f"'{_OSS_HEADER_PREFIX}', got {name!r}"
                )

    def with_expire(self, seconds: int) -> SigningConfig:
        """Set the artifact lifetime in seconds (must be positive)."""
        return replace(self, expire_seconds=seconds)

    def with_content_type(self, content_type: str) -> SigningConfig:
        """Bind a Content-Type into the signature."""
        return replace(self, content_type=content_type)

    def with_content_md5(self, content_md5: str) -> SigningConfig:
        """Bind a base64 Content-MD5 into the signature."""
        return replace(self, content_md5=content_md5)

    def with_cdn(self, domain: str) -> SigningConfig:
        """Serve URLs from *domain* (``scheme://host[:port]``)."""
        return replace(self, custom_domain=domain)

    with_custom_domain = with_cdn

    def with_http(self) -> SigningConfig:
        """Use plain http for the bucket endpoint."""
        return replace(self, https=False)

    def with_download_speed_limit(self, kbps: int) -> SigningConfig:
        """Cap download speed at *kbps* KB/s."""
        return replace(self, download_speed_limit_kbps=kbps)

    def with_parameter(self, name: str, value: str) -> SigningConfig:
        """Add a query parameter; sub-resources also enter the signature."""
        return replace(self, parameters=_put(self.parameters, name, value))

    def with_response_content_disposition(
        self, filename: str
    ) -> SigningConfig:
        """Ask the service to serve the object as a named attachment."""
        return self.with_parameter(
            "response-content-disposition", f"attachment;filename={filename}"
        )

    def with_response_content_encoding(self, encoding: str) -> SigningConfig:
        """Override the Content-Encoding of the response."""
        return self.with_parameter("response-content-encoding", encoding)

    def with_source_ip(self, ip: str, subnet_mask: int) -> SigningConfig:
        """Restrict the URL to clients inside ``ip/subnet_mask``."""
        if not _is_int(subnet_mask) or not 0 <= subnet_mask <= 32:
            raise InvalidConfig(
                f"subnet mask must be between 0 and 32, got {subnet_mask!r}"
            )
        return self.with_parameter(SOURCE_IP_PARAM, ip).with_parameter(
            SUBNET_MASK_PARAM, str(subnet_mask)
        )

    def with_forwarded_for(self) -> SigningConfig:
        """Match the IP restriction against X-Forwarded-For."""
        return self.with_parameter(FORWARDED_FOR_PARAM, "true")

    def with_oss_header(self, name: str, value: str) -> SigningConfig:
        """Add an ``x-oss-*`` header that the request will carry."""
        return replace(
            self, oss_headers=_put(self.oss_headers, name.lower(), value)
        )

    def with_upload_dir(self, prefix: str) -> SigningConfig:
        """Require uploaded keys to start with *prefix*."""
        return replace(self, upload_dir_prefix=prefix)

    def with_max_upload_size(self, size: int) -> SigningConfig:
        """Limit uploads to *size* bytes."""
        return replace(self, max_upload_size_bytes=size)

    @property
    def query_parameters(self) -> tuple[tuple[str, str], ...]:
        """All query parameters, including the speed limit, sorted by name."""
        params = self.parameters
        if self.download_speed_limit_kbps is not None:
            bits_per_second = self.download_speed_limit_kbps * 1024 * 8
            params = _put(params, TRAFFIC_LIMIT_PARAM, str(bits_per_second))
        return params
