# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Credential and default signing options loaded from YAML or environment.

This is the credential source that feeds the signing core; the core itself
never reads files or environment variables. The default config location
follows the XDG Base Directory Specification:

    ``$XDG_CONFIG_HOME/ossign/ossign.yaml``
    (typically ``~/.config/ossign/ossign.yaml``)

``!env`` tags resolve values from environment variables::

    credential:
      access_key_id: !env OSS_KEY_ID
      access_key_secret: !env OSS_KEY_SECRET
      endpoint: oss-cn-shanghai.aliyuncs.com
      bucket: mybucket
    signing:
      expire: 300
      custom_domain: https://cdn.example.com

Without a config file, the credential is read from ``OSS_KEY_ID``,
``OSS_KEY_SECRET``, ``OSS_ENDPOINT`` and ``OSS_BUCKET``. A ``.env`` file
is loaded first in both cases.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar, overload

import yaml
from platformdirs import user_config_path

from ossign.credential import Credential
from ossign.dotenv_loader import load_dotenv_once
from ossign.errors import InvalidConfig
from ossign.logging import SecretFilter
from ossign.signing_config import SigningConfig


logger = logging.getLogger(__name__)

#: Application name for XDG path resolution.
_APP_NAME = "ossign"

ENV_KEY_ID = "OSS_KEY_ID"
ENV_KEY_SECRET = "OSS_KEY_SECRET"
ENV_ENDPOINT = "OSS_ENDPOINT"
ENV_BUCKET = "OSS_BUCKET"

_BOOL_TRUTHY = frozenset({"true", "1", "yes", "on"})
_BOOL_FALSY = frozenset({"false", "0", "no", "off"})


def get_config_path() -> Path:
    """Return the default config path, ``~/.config/ossign/ossign.yaml``."""
    return user_config_path(_APP_NAME) / "ossign.yaml"


def get_dotenv_path() -> Path:
    """Return the ``.env`` path inside the XDG config directory."""
    return user_config_path(_APP_NAME) / ".env"


class ConfigError(Exception):
    """Base exception for configuration errors."""


# ---------------------------------------------------------------------------
# YAML tag placeholders
# ---------------------------------------------------------------------------


class _EnvVar:
    """Placeholder for an unresolved ``!env VAR_NAME`` tag."""

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name


def _env_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> _EnvVar:
    """Handle ``!env VAR_NAME`` in YAML."""
    value = loader.construct_scalar(node)
    return _EnvVar(str(value))


def _make_loader() -> type[yaml.SafeLoader]:
    """Create a YAML loader that understands ``!env``."""

    class EnvLoader(yaml.SafeLoader):
        pass

    EnvLoader.add_constructor("!env", _env_constructor)
    return EnvLoader


# ---------------------------------------------------------------------------
# Value resolution
# ---------------------------------------------------------------------------


def _coerce_bool(value: object) -> bool:
    """Coerce a value to bool, handling string representations."""
    if isinstance(value, bool):
        return value
    s = str(value).lower().strip()
    if s in _BOOL_TRUTHY:
        return True
    if s in _BOOL_FALSY:
        return False
    raise ConfigError(f"Cannot convert {value!r} to bool")


def _raw_resolve(value: object) -> str | None:
    """Resolve an ``_EnvVar`` to its string value, or stringify literals.

    Returns None if the value is None or the env var is not set.
    """
    if isinstance(value, _EnvVar):
        return os.environ.get(value.var_name)
    if value is None:
        return None
    return str(value)


_MISSING = object()

T = TypeVar("T")


@overload
def _resolve(value: object, coerce: type[T], *, default: T) -> T: ...


@overload
def _resolve(
    value: object,
    coerce: type[T],
    *,
    required: str,
) -> T: ...


@overload
def _resolve(value: object, coerce: type[T]) -> T | None: ...


def _resolve(
    value: object,
    coerce: type[Any],
    *,
    default: object = _MISSING,
    required: str = "",
) -> Any:
    """Resolve a YAML value, handling ``!env`` tags and type coercion.

    Args:
        value: Raw value from YAML (may be ``_EnvVar``, None, or a
            literal already parsed by PyYAML).
        coerce: Target type (``str``, ``int``, ``bool``).
        default: Default when value is absent.
        required: Human-readable field name. When set, raises
            ``ConfigError`` if the value is absent or empty.

    Returns:
        The resolved, coerced value, or None when optional and absent.
    """
    if not isinstance(value, _EnvVar) and value is not None and value != "":
        if coerce is bool:
            return _coerce_bool(value)
        if isinstance(value, coerce) and not isinstance(value, bool):
            return value

    resolved = _raw_resolve(value)

    if resolved is None or (required and not resolved):
        if required:
            if isinstance(value, _EnvVar):
                raise ConfigError(
                    f"Required config '{required}': environment variable "
                    f"'{value.var_name}' is not set"
                )
            raise ConfigError(f"Required config '{required}' is missing")
        if default is not _MISSING:
            return default
        return None

    if coerce is bool:
        return _coerce_bool(resolved)
    try:
        return coerce(resolved)
    except ValueError as e:
        raise ConfigError(
            f"Cannot convert {resolved!r} to {coerce.__name__}"
        ) from e


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Settings:
    """Credential plus default signing options.

    Attributes:
        credential: Account credential.
        signing: Default signing options; callers extend it per request.
    """

    credential: Credential
    signing: SigningConfig = field(default_factory=SigningConfig)

    def __post_init__(self) -> None:
        SecretFilter.register_secret(self.credential.access_key_secret)

    @classmethod
    def from_yaml(cls, config_path: Path | None = None) -> "Settings":
        """Load settings from a YAML file.

        Values tagged with ``!env VAR_NAME`` are resolved from the
        environment at load time. A ``.env`` file is loaded first if
        present.

        Args:
            config_path: Path to the YAML file. Defaults to
                ``~/.config/ossign/ossign.yaml`` (XDG).

        Raises:
            ConfigError: If the file is missing or malformed, or required
                values are absent.
        """
        load_dotenv_once()

        if config_path is None:
            config_path = get_config_path()

        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            with open(config_path) as f:
                raw = yaml.load(f, Loader=_make_loader())
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigError(
                f"Config file must be a YAML mapping: {config_path}"
            )

        logger.debug("Loaded settings from %s", config_path)
        return cls._from_raw(raw)

    @classmethod
    def _from_raw(cls, raw: dict) -> "Settings":
        """Build settings from a parsed (but unresolved) YAML dict."""
        cred = raw.get("credential")
        if not isinstance(cred, dict):
            raise ConfigError("'credential' must be a YAML mapping")
        signing = raw.get("signing") or {}
        if not isinstance(signing, dict):
            raise ConfigError("'signing' must be a YAML mapping")

        credential = Credential(
            access_key_id=_resolve(
                cred.get("access_key_id"),
                str,
                required="credential.access_key_id",
            ),
            access_key_secret=_resolve(
                cred.get("access_key_secret"),
                str,
                required="credential.access_key_secret",
            ),
            endpoint=_resolve(
                cred.get("endpoint"), str, required="credential.endpoint"
            ),
            bucket=_resolve(
                cred.get("bucket"), str, required="credential.bucket"
            ),
        )
        return cls(credential=credential, signing=_parse_signing(signing))


def _parse_signing(raw: dict) -> SigningConfig:
    """Build the default ``SigningConfig`` from the ``signing`` section."""
    config = SigningConfig()
    try:
        expire = _resolve(raw.get("expire"), int)
        if expire is not None:
            config = config.with_expire(expire)
        content_type = _resolve(raw.get("content_type"), str)
        if content_type:
            config = config.with_content_type(content_type)
        custom_domain = _resolve(raw.get("custom_domain"), str)
        if custom_domain:
            config = config.with_cdn(custom_domain)
        if not _resolve(raw.get("https"), bool, default=True):
            config = config.with_http()
        speed = _resolve(raw.get("download_speed_limit"), int)
        if speed is not None:
            config = config.with_download_speed_limit(speed)
        upload_dir = _resolve(raw.get("upload_dir"), str)
        if upload_dir is not None:
            config = config.with_upload_dir(upload_dir)
        max_size = _resolve(raw.get("max_upload_size"), int)
        if max_size is not None:
            config = config.with_max_upload_size(max_size)
    except InvalidConfig as e:
        raise ConfigError(f"Invalid signing config: {e}") from e
    return config


def credential_from_env(
    environ: Mapping[str, str] | None = None,
) -> Credential:
    """Build a credential from ``OSS_*`` environment variables.

    Args:
        environ: Mapping to read from. Defaults to ``os.environ``.

    Raises:
        ConfigError: Listing every variable that is unset or empty.
    """
    env = os.environ if environ is None else environ
    names = (ENV_KEY_ID, ENV_KEY_SECRET, ENV_ENDPOINT, ENV_BUCKET)
    missing = [name for name in names if not env.get(name)]
    if missing:
        raise ConfigError(
            f"Missing environment variables: {', '.join(missing)}"
        )
    return Credential(
        access_key_id=env[ENV_KEY_ID],
        access_key_secret=env[ENV_KEY_SECRET],
        endpoint=env[ENV_ENDPOINT],
        bucket=env[ENV_BUCKET],
    )


def load_settings(config_path: Path | None = None) -> Settings:
    """Load settings from *config_path*, the default file, or the environment.

    An explicit *config_path* must exist. Without one, the default XDG file
    is used when present, otherwise the credential comes from ``OSS_*``
    environment variables and signing options keep their defaults.
    """
    if config_path is not None:
        return Settings.from_yaml(config_path)

    default_path = get_config_path()
    if default_path.exists():
        return Settings.from_yaml(default_path)

    load_dotenv_once()
    logger.debug("No config file at %s, using environment", default_path)
    return Settings(credential=credential_from_env())
