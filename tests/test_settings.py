# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for settings loading."""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from ossign.logging import SecretFilter
from ossign.settings import (
    ConfigError,
    Settings,
    credential_from_env,
    get_config_path,
    get_dotenv_path,
    load_settings,
)


CREDENTIAL_YAML = """\
credential:
  access_key_id: AK
  access_key_secret: SK
  endpoint: oss-cn-shanghai.aliyuncs.com
  bucket: mybucket
"""

ENV = {
    "OSS_KEY_ID": "env-id",
    "OSS_KEY_SECRET": "env-secret",
    "OSS_ENDPOINT": "oss-cn-hangzhou.aliyuncs.com",
    "OSS_BUCKET": "envbucket",
}


@pytest.fixture(autouse=True)
def no_dotenv() -> Iterator[None]:
    """Keep real .env files out of these tests."""
    with patch("ossign.settings.load_dotenv_once"):
        yield


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "ossign.yaml"
    path.write_text(content)
    return path


class TestPaths:
    """Tests for XDG path helpers."""

    def test_config_path(self) -> None:
        """Config file lives in the ossign config directory."""
        path = get_config_path()
        assert path.name == "ossign.yaml"
        assert path.parent.name == "ossign"

    def test_dotenv_path(self) -> None:
        """.env sits next to the config file."""
        assert get_dotenv_path().parent == get_config_path().parent
        assert get_dotenv_path().name == ".env"


class TestFromYaml:
    """Tests for Settings.from_yaml."""

    def test_literal_values(self, tmp_path: Path) -> None:
        """Plain values load into the credential; signing keeps defaults."""
        settings = Settings.from_yaml(_write(tmp_path, CREDENTIAL_YAML))
        assert settings.credential.access_key_id == "AK"
        assert settings.credential.access_key_secret == "SK"
        assert settings.credential.endpoint == "oss-cn-shanghai.aliyuncs.com"
        assert settings.credential.bucket == "mybucket"
        assert settings.signing.expire_seconds == 60

    def test_env_tags(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """!env tags resolve from the environment."""
        monkeypatch.setenv("TEST_OSS_ID", "id-from-env")
        monkeypatch.setenv("TEST_OSS_SECRET", "secret-from-env")
        path = _write(
            tmp_path,
            "credential:\n"
            "  access_key_id: !env TEST_OSS_ID\n"
            "  access_key_secret: !env TEST_OSS_SECRET\n"
            "  endpoint: e.example.com\n"
            "  bucket: b\n",
        )
        settings = Settings.from_yaml(path)
        assert settings.credential.access_key_id == "id-from-env"
        assert settings.credential.access_key_secret == "secret-from-env"

    def test_unset_env_tag(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A required !env value that is unset names the variable."""
        monkeypatch.delenv("TEST_OSS_MISSING", raising=False)
        path = _write(
            tmp_path,
            CREDENTIAL_YAML.replace("SK", "!env TEST_OSS_MISSING"),
        )
        with pytest.raises(ConfigError, match="TEST_OSS_MISSING"):
            Settings.from_yaml(path)

    def test_empty_required_value(self, tmp_path: Path) -> None:
        """An empty string counts as missing."""
        path = _write(tmp_path, CREDENTIAL_YAML.replace("AK", '""'))
        with pytest.raises(ConfigError, match="access_key_id"):
            Settings.from_yaml(path)

    def test_numeric_bucket_stringified(self, tmp_path: Path) -> None:
        """Values YAML parses as numbers are turned back into strings."""
        path = _write(tmp_path, CREDENTIAL_YAML.replace("mybucket", "123"))
        assert Settings.from_yaml(path).credential.bucket == "123"

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            Settings.from_yaml(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Unparseable YAML raises ConfigError."""
        with pytest.raises(ConfigError, match="Invalid YAML"):
            Settings.from_yaml(_write(tmp_path, "credential: [\n"))

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        """A top-level list raises ConfigError."""
        with pytest.raises(ConfigError, match="mapping"):
            Settings.from_yaml(_write(tmp_path, "- a\n- b\n"))

    def test_missing_credential_section(self, tmp_path: Path) -> None:
        """The credential section is required."""
        with pytest.raises(ConfigError, match="credential"):
            Settings.from_yaml(_write(tmp_path, "signing:\n  expire: 5\n"))

    def test_secret_registered(self, tmp_path: Path) -> None:
        """Loaded secrets are registered for log redaction."""
        Settings.from_yaml(_write(tmp_path, CREDENTIAL_YAML))
        assert "SK" in SecretFilter._secrets

    def test_dotenv_loaded_first(self, tmp_path: Path) -> None:
        """.env files are loaded before the YAML is read."""
        with patch("ossign.settings.load_dotenv_once") as mock_load:
            Settings.from_yaml(_write(tmp_path, CREDENTIAL_YAML))
        mock_load.assert_called_once_with()


class TestSigningSection:
    """Tests for the signing section."""

    def test_all_options(self, tmp_path: Path) -> None:
        """Every supported option is applied."""
        path = _write(
            tmp_path,
            CREDENTIAL_YAML
            + "signing:\n"
            "  expire: 300\n"
            "  content_type: text/plain\n"
            "  custom_domain: https://cdn.example.com\n"
            "  https: false\n"
            "  download_speed_limit: 100\n"
            "  upload_dir: upload/\n"
            "  max_upload_size: 1048576\n",
        )
        signing = Settings.from_yaml(path).signing
        assert signing.expire_seconds == 300
        assert signing.content_type == "text/plain"
        assert signing.custom_domain == "https://cdn.example.com"
        assert signing.https is False
        assert signing.download_speed_limit_kbps == 100
        assert signing.upload_dir_prefix == "upload/"
        assert signing.max_upload_size_bytes == 1048576

    def test_env_tagged_int(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """!env values are coerced to the option's type."""
        monkeypatch.setenv("TEST_OSS_EXPIRE", "900")
        path = _write(
            tmp_path,
            CREDENTIAL_YAML + "signing:\n  expire: !env TEST_OSS_EXPIRE\n",
        )
        assert Settings.from_yaml(path).signing.expire_seconds == 900

    def test_invalid_option_value(self, tmp_path: Path) -> None:
        """Values the builder rejects become ConfigError."""
        path = _write(tmp_path, CREDENTIAL_YAML + "signing:\n  expire: 0\n")
        with pytest.raises(ConfigError, match="Invalid signing config"):
            Settings.from_yaml(path)

    def test_uncoercible_int(self, tmp_path: Path) -> None:
        """Non-numeric integers raise ConfigError."""
        path = _write(
            tmp_path, CREDENTIAL_YAML + "signing:\n  expire: soon\n"
        )
        with pytest.raises(ConfigError, match="Cannot convert"):
            Settings.from_yaml(path)

    def test_uncoercible_bool(self, tmp_path: Path) -> None:
        """Unknown boolean spellings raise ConfigError."""
        path = _write(
            tmp_path, CREDENTIAL_YAML + "signing:\n  https: maybe\n"
        )
        with pytest.raises(ConfigError, match="bool"):
            Settings.from_yaml(path)

    def test_section_not_a_mapping(self, tmp_path: Path) -> None:
        """A scalar signing section raises ConfigError."""
        path = _write(tmp_path, CREDENTIAL_YAML + "signing: 5\n")
        with pytest.raises(ConfigError, match="signing"):
            Settings.from_yaml(path)


class TestCredentialFromEnv:
    """Tests for credential_from_env."""

    def test_all_set(self) -> None:
        """All four variables build a credential."""
        credential = credential_from_env(ENV)
        assert credential.access_key_id == "env-id"
        assert credential.bucket == "envbucket"

    def test_missing_listed(self) -> None:
        """Every missing or empty variable is named."""
        env = dict(ENV, OSS_KEY_SECRET="")
        del env["OSS_BUCKET"]
        with pytest.raises(
            ConfigError, match="OSS_KEY_SECRET, OSS_BUCKET"
        ):
            credential_from_env(env)

    def test_reads_os_environ(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Defaults to the process environment."""
        for name, value in ENV.items():
            monkeypatch.setenv(name, value)
        assert credential_from_env().endpoint == "oss-cn-hangzhou.aliyuncs.com"


class TestLoadSettings:
    """Tests for load_settings."""

    def test_explicit_path(self, tmp_path: Path) -> None:
        """An explicit path is loaded."""
        settings = load_settings(_write(tmp_path, CREDENTIAL_YAML))
        assert settings.credential.bucket == "mybucket"

    def test_explicit_path_must_exist(self, tmp_path: Path) -> None:
        """An explicit path that does not exist is an error."""
        with pytest.raises(ConfigError):
            load_settings(tmp_path / "missing.yaml")

    def test_default_file(self, tmp_path: Path) -> None:
        """The default XDG file is used when present."""
        path = _write(tmp_path, CREDENTIAL_YAML)
        with patch("ossign.settings.get_config_path", return_value=path):
            settings = load_settings()
        assert settings.credential.access_key_id == "AK"

    def test_environment_fallback(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Without a config file the environment supplies the credential."""
        for name, value in ENV.items():
            monkeypatch.setenv(name, value)
        with patch(
            "ossign.settings.get_config_path",
            return_value=tmp_path / "missing.yaml",
        ):
            settings = load_settings()
        assert settings.credential.access_key_id == "env-id"
        assert settings.signing.expire_seconds == 60
        assert "env-secret" in SecretFilter._secrets
