"""Runtime configuration model for filerelay.

This module owns all environment variable and config-file parsing.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
import os
from pathlib import Path
import re
from typing import Mapping

from core.config_file import load_config_file
from core.constants import (
    DEFAULT_BUCKET,
    DEFAULT_CATALOG_PATH,
    DEFAULT_FILE_PATTERN,
    DEFAULT_INBOUND_DIR,
    DEFAULT_LOCAL_STORE_ROOT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_READ_ATTEMPTS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_S3_ACCESS_KEY_ID,
    DEFAULT_S3_ENDPOINT,
    DEFAULT_S3_REGION,
    DEFAULT_S3_SECRET_ACCESS_KEY,
    DELETE_AFTER_DISPATCH,
    ENV_PREFIX,
    OBJECT_STORE_S3,
    SUPPORTED_DELETE_POLICIES,
    SUPPORTED_LOG_LEVELS,
    SUPPORTED_OBJECT_STORE_BACKENDS,
)
from core.errors import ConfigurationError

_BUCKET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.\-]{1,61}[a-z0-9]$")
_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class RelayConfig:
    """Validated runtime configuration.

    Attributes:
        inbound_dir: Watched directory.
        file_pattern: Glob pattern matched against entry names.
        poll_interval_seconds: Fixed delay between polling cycles.
        require_stable_size: Emit a file only once its size stops changing.
        auto_create_inbound_dir: Create the watched directory when missing.
        max_read_attempts: Consecutive read failures before a file is parked.
        delete_policy: When the source is deleted relative to dispatch.
        parallel_sinks: Deliver to sinks concurrently.
        object_store_backend: ``s3`` or ``local``.
        s3_endpoint: Endpoint override; None uses the AWS default.
        s3_region: Region for the S3 session.
        s3_access_key_id: Static access key; None uses the default chain.
        s3_secret_access_key: Static secret key paired with the access key.
        bucket: Destination bucket for file content.
        key_prefix: Prefix prepended to object keys.
        local_store_root: Root directory of the local object store backend.
        catalog_path: Sqlite database file of the metadata catalog.
        log_level: Minimum structured log level.
    """

    inbound_dir: Path = DEFAULT_INBOUND_DIR
    file_pattern: str = DEFAULT_FILE_PATTERN
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    require_stable_size: bool = True
    auto_create_inbound_dir: bool = True
    max_read_attempts: int = DEFAULT_MAX_READ_ATTEMPTS
    delete_policy: str = DELETE_AFTER_DISPATCH
    parallel_sinks: bool = True
    object_store_backend: str = OBJECT_STORE_S3
    s3_endpoint: str | None = DEFAULT_S3_ENDPOINT
    s3_region: str = DEFAULT_S3_REGION
    s3_access_key_id: str | None = DEFAULT_S3_ACCESS_KEY_ID
    s3_secret_access_key: str | None = DEFAULT_S3_SECRET_ACCESS_KEY
    bucket: str = DEFAULT_BUCKET
    key_prefix: str = ""
    local_store_root: Path = DEFAULT_LOCAL_STORE_ROOT
    catalog_path: Path = DEFAULT_CATALOG_PATH
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(config_field.name for config_field in fields(cls))

    @classmethod
    def from_env(cls) -> "RelayConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ConfigurationError: If environment values are invalid.
        """
        return cls.from_sources({}, os.environ)

    @classmethod
    def from_sources(
        cls,
        file_values: Mapping[str, object],
        environ: Mapping[str, str],
    ) -> "RelayConfig":
        """Build config from config-file values overlaid by environment values.

        Args:
            file_values: Raw values loaded from a YAML config file.
            environ: Environment mapping; ``RELAY_<FIELD>`` keys override file values.

        Returns:
            A validated config object.

        Raises:
            ConfigurationError: If any value is invalid.
        """
        raw_values: dict[str, object] = dict(file_values)
        for name in cls.field_names():
            env_name = f"{ENV_PREFIX}{name.upper()}"
            if env_name in environ:
                raw_values[name] = environ[env_name]
        config = cls(
            inbound_dir=_parse_path(raw_values, "inbound_dir", DEFAULT_INBOUND_DIR),
            file_pattern=_parse_string(raw_values, "file_pattern", DEFAULT_FILE_PATTERN),
            poll_interval_seconds=_parse_positive_float(
                raw_values, "poll_interval_seconds", DEFAULT_POLL_INTERVAL_SECONDS
            ),
            require_stable_size=_parse_bool(raw_values, "require_stable_size", True),
            auto_create_inbound_dir=_parse_bool(raw_values, "auto_create_inbound_dir", True),
            max_read_attempts=_parse_positive_int(
                raw_values, "max_read_attempts", DEFAULT_MAX_READ_ATTEMPTS
            ),
            delete_policy=_parse_choice(
                raw_values, "delete_policy", DELETE_AFTER_DISPATCH, SUPPORTED_DELETE_POLICIES
            ),
            parallel_sinks=_parse_bool(raw_values, "parallel_sinks", True),
            object_store_backend=_parse_choice(
                raw_values,
                "object_store_backend",
                OBJECT_STORE_S3,
                SUPPORTED_OBJECT_STORE_BACKENDS,
            ),
            s3_endpoint=_parse_optional_string(raw_values, "s3_endpoint", DEFAULT_S3_ENDPOINT),
            s3_region=_parse_string(raw_values, "s3_region", DEFAULT_S3_REGION),
            s3_access_key_id=_parse_optional_string(
                raw_values, "s3_access_key_id", DEFAULT_S3_ACCESS_KEY_ID
            ),
            s3_secret_access_key=_parse_optional_string(
                raw_values, "s3_secret_access_key", DEFAULT_S3_SECRET_ACCESS_KEY
            ),
            bucket=_parse_string(raw_values, "bucket", DEFAULT_BUCKET),
            key_prefix=_parse_optional_string(raw_values, "key_prefix", "") or "",
            local_store_root=_parse_path(raw_values, "local_store_root", DEFAULT_LOCAL_STORE_ROOT),
            catalog_path=_parse_path(raw_values, "catalog_path", DEFAULT_CATALOG_PATH),
            log_level=_parse_choice(
                raw_values, "log_level", DEFAULT_LOG_LEVEL, SUPPORTED_LOG_LEVELS, upper=True
            ),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Check cross-field constraints.

        Raises:
            ConfigurationError: If credentials, bucket, endpoint, or pattern are malformed.
        """
        if bool(self.s3_access_key_id) != bool(self.s3_secret_access_key):
            raise ConfigurationError(
                "Invalid S3 credentials: RELAY_S3_ACCESS_KEY_ID and "
                "RELAY_S3_SECRET_ACCESS_KEY must be set together or both left empty."
            )
        if not _BUCKET_NAME_PATTERN.match(self.bucket):
            raise ConfigurationError(
                f"Invalid bucket name '{self.bucket}': expected 3-63 lowercase letters, "
                "digits, dots, or hyphens."
            )
        if self.s3_endpoint and not self.s3_endpoint.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"Invalid S3 endpoint '{self.s3_endpoint}': expected an http:// or https:// URL."
            )
        if not self.file_pattern or "/" in self.file_pattern:
            raise ConfigurationError(
                f"Invalid file pattern '{self.file_pattern}': expected a non-empty name glob "
                "such as '*.txt' without path separators."
            )
        if self.poll_interval_seconds <= 0:
            raise ConfigurationError(
                f"Invalid poll interval {self.poll_interval_seconds}: expected a positive number."
            )


def load_relay_config(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> RelayConfig:
    """Load config from an optional YAML file and the environment.

    Args:
        config_path: Optional YAML config file path.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        A validated config object.

    Raises:
        ConfigurationError: If the file or any value is invalid.
    """
    file_values: dict[str, object] = {}
    if config_path is not None:
        file_values = load_config_file(config_path, RelayConfig.field_names())
    return RelayConfig.from_sources(file_values, os.environ if environ is None else environ)


def _parse_string(raw_values: Mapping[str, object], name: str, default: str) -> str:
    raw_value = raw_values.get(name)
    if raw_value is None:
        return default
    if not isinstance(raw_value, str):
        raise ConfigurationError(
            f"Invalid {name}: expected a string, got {type(raw_value).__name__}."
        )
    normalized_value = raw_value.strip()
    if not normalized_value:
        raise ConfigurationError(f"Invalid {name}: value must not be empty.")
    return normalized_value


def _parse_optional_string(
    raw_values: Mapping[str, object],
    name: str,
    default: str | None,
) -> str | None:
    if name not in raw_values:
        return default
    raw_value = raw_values[name]
    if raw_value is None:
        return None
    if not isinstance(raw_value, str):
        raise ConfigurationError(
            f"Invalid {name}: expected a string, got {type(raw_value).__name__}."
        )
    normalized_value = raw_value.strip()
    return normalized_value if normalized_value else None


def _parse_path(raw_values: Mapping[str, object], name: str, default: Path) -> Path:
    raw_value = _parse_string(raw_values, name, str(default))
    return Path(raw_value).expanduser()


def _parse_bool(raw_values: Mapping[str, object], name: str, default: bool) -> bool:
    raw_value = raw_values.get(name)
    if raw_value is None:
        return default
    if isinstance(raw_value, bool):
        return raw_value
    if isinstance(raw_value, str):
        normalized_value = raw_value.strip().lower()
        if normalized_value in _TRUE_VALUES:
            return True
        if normalized_value in _FALSE_VALUES:
            return False
    raise ConfigurationError(
        f"Invalid {name} value '{raw_value}': expected one of "
        f"{', '.join(_TRUE_VALUES + _FALSE_VALUES)}."
    )


def _parse_positive_float(raw_values: Mapping[str, object], name: str, default: float) -> float:
    raw_value = raw_values.get(name)
    if raw_value is None:
        return default
    if isinstance(raw_value, bool):
        raise ConfigurationError(f"Invalid {name}: expected a number, got a boolean.")
    try:
        parsed_value = float(str(raw_value))
    except ValueError as error:
        raise ConfigurationError(
            f"Invalid {name} value: expected a number, got '{raw_value}'."
        ) from error
    if parsed_value <= 0:
        raise ConfigurationError(f"Invalid {name} value {parsed_value}: expected > 0.")
    return parsed_value


def _parse_positive_int(raw_values: Mapping[str, object], name: str, default: int) -> int:
    raw_value = raw_values.get(name)
    if raw_value is None:
        return default
    if isinstance(raw_value, bool):
        raise ConfigurationError(f"Invalid {name}: expected an integer, got a boolean.")
    try:
        parsed_value = int(str(raw_value))
    except ValueError as error:
        raise ConfigurationError(
            f"Invalid {name} value: expected integer, got '{raw_value}'. "
            f"Set {ENV_PREFIX}{name.upper()} to a numeric value."
        ) from error
    if parsed_value < 1:
        raise ConfigurationError(f"Invalid {name} value {parsed_value}: expected >= 1.")
    return parsed_value


def _parse_choice(
    raw_values: Mapping[str, object],
    name: str,
    default: str,
    choices: tuple[str, ...],
    upper: bool = False,
) -> str:
    raw_value = _parse_string(raw_values, name, default)
    normalized_value = raw_value.upper() if upper else raw_value.lower()
    if normalized_value not in choices:
        raise ConfigurationError(
            f"Unsupported {name} '{raw_value}'. Use one of: {', '.join(choices)}."
        )
    return normalized_value
