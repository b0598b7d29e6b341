# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""ossign CLI: print signed URLs and upload policies.

Subcommands:

* ``download-url PATH``: signed GET URL
* ``upload-url PATH``: signed PUT URL
* ``policy``: form upload policy, as JSON

The credential and default options come from ``ossign.settings``;
command-line options override the defaults for one invocation.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from ossign.client import OssSigner
from ossign.errors import SigningError
from ossign.logging import configure_logging
from ossign.settings import ConfigError, load_settings
from ossign.signing_config import SigningConfig


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_SIGNING_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ossign",
        description="Sign object storage URLs and upload policies",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help=(
            "Path to ossign.yaml config file"
            " (default: ~/.config/ossign/ossign.yaml, then OSS_* env vars)"
        ),
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--expire",
        type=int,
        default=None,
        metavar="SECONDS",
        help="Lifetime of the signed artifact",
    )
    parser.add_argument(
        "--content-type",
        default=None,
        help="Content-Type to bind into the signature",
    )
    parser.add_argument(
        "--cdn",
        default=None,
        metavar="URL",
        help="Custom domain, e.g. https://cdn.example.com",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    download = subparsers.add_parser("download-url", help="Sign a GET URL")
    download.add_argument("path", help="Object key")
    download.add_argument(
        "--speed-limit",
        type=int,
        default=None,
        metavar="KBPS",
        help="Download speed limit in KB/s",
    )
    download.add_argument(
        "--filename",
        default=None,
        help="Serve the object as an attachment with this name",
    )

    upload = subparsers.add_parser("upload-url", help="Sign a PUT URL")
    upload.add_argument("path", help="Object key")

    policy = subparsers.add_parser(
        "policy", help="Sign a browser form upload policy"
    )
    policy.add_argument(
        "--upload-dir",
        default=None,
        metavar="PREFIX",
        help="Key prefix uploads must start with",
    )
    policy.add_argument(
        "--max-size",
        type=int,
        default=None,
        metavar="BYTES",
        help="Largest accepted upload",
    )
    return parser


def _apply_overrides(
    config: SigningConfig, args: argparse.Namespace
) -> SigningConfig:
    """Layer command-line options over the configured defaults."""
    if args.expire is not None:
        config = config.with_expire(args.expire)
    if args.content_type is not None:
        config = config.with_content_type(args.content_type)
    if args.cdn is not None:
        config = config.with_cdn(args.cdn)
    if getattr(args, "speed_limit", None) is not None:
        config = config.with_download_speed_limit(args.speed_limit)
    if getattr(args, "filename", None) is not None:
        config = config.with_response_content_disposition(args.filename)
    if getattr(args, "upload_dir", None) is not None:
        config = config.with_upload_dir(args.upload_dir)
    if getattr(args, "max_size", None) is not None:
        config = config.with_max_upload_size(args.max_size)
    return config


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Exit code (0=success, 1=config error, 2=signing error).
    """
    args = _build_parser().parse_args(argv)

    configure_logging(
        level=logging.DEBUG if args.debug else logging.WARNING,
        add_secret_filter=True,
    )

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return EXIT_CONFIG_ERROR

    signer = OssSigner(settings.credential)
    try:
        config = _apply_overrides(settings.signing, args)
        if args.command == "download-url":
            print(signer.sign_download_url(args.path, config))
        elif args.command == "upload-url":
            print(signer.sign_upload_url(args.path, config))
        else:
            policy = signer.get_upload_object_policy(config)
            print(json.dumps(policy.to_dict(), indent=2))
    except SigningError as e:
        logger.error("Signing failed: %s", e)
        return EXIT_SIGNING_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
