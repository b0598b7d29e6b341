# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for the ossign command line."""

import json
import logging
import urllib.parse
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from ossign.cli import (
    EXIT_CONFIG_ERROR,
    EXIT_OK,
    EXIT_SIGNING_ERROR,
    main,
)
from ossign.settings import ConfigError, Settings
from ossign.signing_config import SigningConfig
from tests.vectors import CREDENTIAL


@pytest.fixture
def mock_logging() -> Iterator[MagicMock]:
    with patch("ossign.cli.configure_logging") as mock:
        yield mock


@pytest.fixture
def mock_settings(mock_logging: MagicMock) -> Iterator[MagicMock]:
    settings = Settings(credential=CREDENTIAL)
    with patch("ossign.cli.load_settings", return_value=settings) as mock:
        yield mock


def _query(url: str) -> dict[str, str]:
    return dict(urllib.parse.parse_qsl(urllib.parse.urlsplit(url).query))


class TestMain:
    """Tests for main()."""

    def test_download_url(
        self, mock_settings: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """download-url prints a signed GET URL."""
        assert main(["download-url", "/hello.txt"]) == EXIT_OK
        url = capsys.readouterr().out.strip()
        assert url.startswith(
            "https://mybucket.oss-cn-shanghai.aliyuncs.com/hello.txt?"
        )
        assert _query(url)["OSSAccessKeyId"] == "AK"
        mock_settings.assert_called_once_with(None)

    def test_download_options(
        self, mock_settings: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Download options end up in the URL."""
        rc = main(
            [
                "--cdn",
                "https://cdn.example.com",
                "download-url",
                "a.bin",
                "--speed-limit",
                "100",
                "--filename",
                "b.bin",
            ]
        )
        assert rc == EXIT_OK
        url = capsys.readouterr().out.strip()
        assert url.startswith("https://cdn.example.com/a.bin?")
        query = _query(url)
        assert query["x-oss-traffic-limit"] == str(100 * 1024 * 8)
        assert query["response-content-disposition"] == (
            "attachment;filename=b.bin"
        )

    def test_upload_url(
        self, mock_settings: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """upload-url prints a signed PUT URL."""
        rc = main(["--content-type", "text/plain", "upload-url", "a.txt"])
        assert rc == EXIT_OK
        assert "/a.txt?OSSAccessKeyId=AK" in capsys.readouterr().out

    def test_policy(
        self, mock_settings: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """policy prints the policy as JSON."""
        rc = main(
            [
                "--expire",
                "3600",
                "policy",
                "--upload-dir",
                "upload/",
                "--max-size",
                "1024",
            ]
        )
        assert rc == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["OSSAccessKeyId"] == "AK"
        assert data["host"] == "https://mybucket.oss-cn-shanghai.aliyuncs.com"
        assert data["success_action_status"] == 200
        assert set(data) == {
            "OSSAccessKeyId",
            "policy",
            "signature",
            "expire",
            "host",
            "success_action_status",
        }

    def test_configured_defaults_used(
        self, mock_logging: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Signing defaults from settings apply unless overridden."""
        settings = Settings(
            credential=CREDENTIAL,
            signing=SigningConfig().with_cdn("https://cdn.example.com"),
        )
        with patch("ossign.cli.load_settings", return_value=settings):
            assert main(["download-url", "k"]) == EXIT_OK
        assert capsys.readouterr().out.startswith("https://cdn.example.com/k?")

    def test_config_path_passed(self, mock_settings: MagicMock) -> None:
        """--config is handed to load_settings."""
        main(["--config", "/tmp/x.yaml", "download-url", "k"])
        mock_settings.assert_called_once_with(Path("/tmp/x.yaml"))

    def test_debug_level(
        self, mock_settings: MagicMock, mock_logging: MagicMock
    ) -> None:
        """--debug turns on debug logging."""
        main(["--debug", "download-url", "k"])
        assert mock_logging.call_args.kwargs["level"] == logging.DEBUG

    def test_default_level(
        self, mock_settings: MagicMock, mock_logging: MagicMock
    ) -> None:
        """Without --debug only warnings are logged."""
        main(["download-url", "k"])
        assert mock_logging.call_args.kwargs["level"] == logging.WARNING

    def test_config_error(self, mock_logging: MagicMock) -> None:
        """Configuration problems exit with EXIT_CONFIG_ERROR."""
        with patch(
            "ossign.cli.load_settings", side_effect=ConfigError("boom")
        ):
            assert main(["download-url", "k"]) == EXIT_CONFIG_ERROR

    def test_signing_error(
        self, mock_settings: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Signing problems exit with EXIT_SIGNING_ERROR."""
        assert main(["download-url", "/"]) == EXIT_SIGNING_ERROR
        assert capsys.readouterr().out == ""

    def test_invalid_option(self, mock_settings: MagicMock) -> None:
        """Rejected option values are signing errors."""
        rc = main(["download-url", "k", "--speed-limit", "1"])
        assert rc == EXIT_SIGNING_ERROR

    def test_bad_custom_domain(self, mock_settings: MagicMock) -> None:
        """A malformed --cdn fails when the URL is built."""
        rc = main(["--cdn", "cdn.example.com", "download-url", "k"])
        assert rc == EXIT_SIGNING_ERROR

    def test_command_required(self, mock_logging: MagicMock) -> None:
        """A subcommand must be given."""
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2
