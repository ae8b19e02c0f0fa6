#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import configparser
import logging
import os
from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path
from typing import Any, ClassVar, Literal

from amz_core.classifier import RetryPolicy
from amz_core.exceptions import ConfigurationError, MissingCredentialsError
from amz_core.retries import FixedAttemptStrategy
from amz_http.interfaces import HTTPClientConfiguration
from amz_signers import Credentials

logger = logging.getLogger(__name__)

SOURCE_CONSTRUCTOR = "constructor"
SOURCE_ENVIRONMENT = "environment"
SOURCE_CREDENTIALS_FILE = "credentials_file"
SOURCE_CONFIG_FILE = "config_file"
SOURCE_DEFAULT = "default"
SOURCE_IN_CODE_UPDATE = "in_code_update"

SourceType = Literal[
    "constructor",
    "environment",
    "credentials_file",
    "config_file",
    "default",
    "in_code_update",
]

_TEXT_SOURCES = (SOURCE_ENVIRONMENT, SOURCE_CONFIG_FILE, SOURCE_CREDENTIALS_FILE)

type Loader = Callable[[], Awaitable[Mapping[str, Any]]]


class ConfigValue:
    """Configuration value with metadata about its source"""

    def __init__(self, value: Any, source: SourceType):
        self.value = value
        self.source = source

    def __repr__(self) -> str:
        return f"ConfigValue(source={self.source!r})"


class ClientConfig:
    """
    Client configuration with precedence-based resolution.

    Each field is taken from the first source that sets it: constructor argument,
    environment variable, shared config file, shared credentials file, default.
    Values read from the environment or files are text and are converted with the
    field's ``parser`` before validation.

    The constructor uses the Ellipsis sentinel (...) to tell "not provided" apart
    from "explicitly set to None".

    Secret values are never logged.
    """

    CONFIG_FIELDS: ClassVar[dict[str, dict[str, Any]]] = {
        "aws_access_key_id": {
            "env_var": "AWS_ACCESS_KEY_ID",
            "config_key": "aws_access_key_id",
            "default": None,
            "type": str | None,
        },
        "aws_secret_access_key": {
            "env_var": "AWS_SECRET_ACCESS_KEY",
            "config_key": "aws_secret_access_key",
            "default": None,
            "type": str | None,
        },
        "aws_session_token": {
            "env_var": "AWS_SESSION_TOKEN",
            "config_key": "aws_session_token",
            "default": None,
            "type": str | None,
        },
        "region": {
            "config_key": "region",
            "default": "us-east-1",
            "type": str,
        },
        "endpoint_url": {
            "env_var": "AWS_ENDPOINT_URL",
            "config_key": "endpoint_url",
            "default": None,
            "validator": "_validate_endpoint_url",
        },
        "retry_policy": {
            "env_var": "AMZ_RETRY_POLICY",
            "config_key": "retry_policy",
            "default": RetryPolicy.PERMISSIVE,
            "type": RetryPolicy,
            "parser": lambda v: RetryPolicy(v.strip().lower()),
        },
        "attempt_total": {
            "env_var": "AMZ_ATTEMPT_TOTAL",
            "config_key": "attempt_total",
            "default": 5.0,
            "type": float | int,
            "parser": float,
            "validator": "_validate_non_negative",
        },
        "attempt_delay": {
            "env_var": "AMZ_ATTEMPT_DELAY",
            "config_key": "attempt_delay",
            "default": 0.2,
            "type": float | int,
            "parser": float,
            "validator": "_validate_non_negative",
        },
        "attempt_min": {
            "env_var": "AMZ_ATTEMPT_MIN",
            "config_key": "attempt_min",
            "default": 5,
            "type": int,
            "parser": int,
            "validator": "_validate_non_negative",
        },
        "connect_timeout": {
            "env_var": "AMZ_CONNECT_TIMEOUT",
            "config_key": "connect_timeout",
            "default": 10.0,
            "type": float | int | None,
            "parser": float,
            "validator": "_validate_non_negative",
        },
        "read_timeout": {
            "env_var": "AMZ_READ_TIMEOUT",
            "config_key": "read_timeout",
            "default": None,
            "type": float | int | None,
            "parser": float,
            "validator": "_validate_non_negative",
        },
        "write_timeout": {
            "env_var": "AMZ_WRITE_TIMEOUT",
            "config_key": "write_timeout",
            "default": None,
            "type": float | int | None,
            "parser": float,
            "validator": "_validate_non_negative",
        },
        "request_timeout": {
            "env_var": "AMZ_REQUEST_TIMEOUT",
            "config_key": "request_timeout",
            "default": None,
            "type": float | int | None,
            "parser": float,
            "validator": "_validate_non_negative",
        },
    }

    def __init__(
        self,
        *,
        aws_access_key_id: str | None = ...,  # type: ignore[assignment]
        aws_secret_access_key: str | None = ...,  # type: ignore[assignment]
        aws_session_token: str | None = ...,  # type: ignore[assignment]
        region: str = ...,  # type: ignore[assignment]
        endpoint_url: str | None = ...,  # type: ignore[assignment]
        retry_policy: RetryPolicy = ...,  # type: ignore[assignment]
        attempt_total: float = ...,  # type: ignore[assignment]
        attempt_delay: float = ...,  # type: ignore[assignment]
        attempt_min: int = ...,  # type: ignore[assignment]
        connect_timeout: float | None = ...,  # type: ignore[assignment]
        read_timeout: float | None = ...,  # type: ignore[assignment]
        write_timeout: float | None = ...,  # type: ignore[assignment]
        request_timeout: float | None = ...,  # type: ignore[assignment]
    ):
        self._constructor_values = {
            k: v for k, v in locals().items() if k != "self" and v is not ...
        }
        self._resolved = False

    async def resolve(
        self,
        *,
        environment_loader: Loader | None = None,
        config_file_loader: Loader | None = None,
        credentials_file_loader: Loader | None = None,
    ) -> None:
        """Resolve configuration from all sources

        Args:
            environment_loader: Custom environment loader function
            config_file_loader: Custom config file loader function
            credentials_file_loader: Custom credentials file loader function
        """
        if self._resolved:
            raise RuntimeError(
                "Config has already been resolved. Multiple calls to resolve() are "
                "not allowed."
            )

        env_values, config_file_values, credentials_file_values = await asyncio.gather(
            (environment_loader or self._load_environment_values)(),
            (config_file_loader or self._load_config_file_values)(),
            (credentials_file_loader or self._load_credentials_file_values)(),
        )

        for field_name in self.CONFIG_FIELDS:
            resolved_value = await self._resolve_field(
                field_name,
                self._constructor_values,
                env_values,
                config_file_values,
                credentials_file_values,
            )
            setattr(self, f"_{field_name}", resolved_value)
            logger.debug("Resolved %s from %s", field_name, resolved_value.source)

        self._resolved = True

    async def _load_environment_values(self) -> Mapping[str, str]:
        return os.environ

    async def _load_config_file_values(self) -> dict[str, Any]:
        def _read_config() -> dict[str, str]:
            config_path = Path(
                os.environ.get("AWS_CONFIG_FILE", Path.home() / ".aws" / "config")
            )
            if not config_path.exists():
                return {}

            parser = configparser.ConfigParser()
            parser.read(config_path)

            profile = os.environ.get("AWS_PROFILE", "default")
            section_name = f"profile {profile}" if profile != "default" else "default"

            if section_name not in parser:
                return {}

            return dict(parser[section_name])

        return await asyncio.to_thread(_read_config)

    async def _load_credentials_file_values(self) -> dict[str, Any]:
        def _read_credentials() -> dict[str, str]:
            credentials_path = Path(
                os.environ.get(
                    "AWS_SHARED_CREDENTIALS_FILE", Path.home() / ".aws" / "credentials"
                )
            )
            if not credentials_path.exists():
                return {}

            parser = configparser.ConfigParser()
            parser.read(credentials_path)

            profile = os.environ.get("AWS_PROFILE", "default")

            if profile not in parser:
                return {}

            return dict(parser[profile])

        return await asyncio.to_thread(_read_credentials)

    async def _resolve_field(
        self,
        field_name: str,
        constructor_values: dict[str, Any],
        env_values: Mapping[str, Any],
        config_file_values: Mapping[str, Any],
        credentials_file_values: Mapping[str, Any],
    ) -> ConfigValue:
        field_config = self.CONFIG_FIELDS[field_name]
        custom_resolver = getattr(self, f"_resolve_{field_name}", None)
        if custom_resolver:
            value, source = await custom_resolver(
                constructor_values,
                env_values,
                config_file_values,
                credentials_file_values,
            )
        else:
            value, source = self._select(
                field_name,
                constructor_values,
                env_values,
                config_file_values,
                credentials_file_values,
            )

        if source in _TEXT_SOURCES and (parser := field_config.get("parser")):
            try:
                value = parser(value)
            except ValueError as e:
                raise ConfigurationError(
                    f"{field_name} from {source} is not valid: {value!r}"
                ) from e

        expected_type = field_config.get("type")
        if expected_type is not None and not isinstance(value, expected_type):
            actual_name = type(value).__name__
            expected_name = getattr(expected_type, "__name__", str(expected_type))
            raise TypeError(f"{field_name} must be {expected_name}, got {actual_name}")
        if validator := field_config.get("validator"):
            getattr(self, validator)(value, field_name)

        return ConfigValue(value, source)

    def _select(
        self,
        field_name: str,
        constructor_values: Mapping[str, Any],
        env_values: Mapping[str, Any],
        config_file_values: Mapping[str, Any],
        credentials_file_values: Mapping[str, Any],
    ) -> tuple[Any, SourceType]:
        field_config = self.CONFIG_FIELDS[field_name]
        env_var = field_config.get("env_var")
        config_key = field_config.get("config_key")

        if field_name in constructor_values:
            return constructor_values[field_name], SOURCE_CONSTRUCTOR
        elif env_var and env_var in env_values:
            return env_values[env_var], SOURCE_ENVIRONMENT
        elif config_key and config_key in config_file_values:
            return config_file_values[config_key], SOURCE_CONFIG_FILE
        elif config_key and config_key in credentials_file_values:
            return credentials_file_values[config_key], SOURCE_CREDENTIALS_FILE
        return field_config["default"], SOURCE_DEFAULT

    async def _resolve_region(
        self,
        constructor_values: Mapping[str, Any],
        env_values: Mapping[str, Any],
        config_file_values: Mapping[str, Any],
        credentials_file_values: Mapping[str, Any],
    ) -> tuple[Any, SourceType]:
        # AWS_DEFAULT_REGION is consulted when AWS_REGION is not set.
        if "region" not in constructor_values:
            for env_var in ("AWS_REGION", "AWS_DEFAULT_REGION"):
                if env_values.get(env_var):
                    return env_values[env_var], SOURCE_ENVIRONMENT
        return self._select(
            "region",
            constructor_values,
            env_values,
            config_file_values,
            credentials_file_values,
        )

    def _validate_endpoint_url(self, value: Any, field_name: str) -> None:
        if value is None:
            return
        if not isinstance(value, str):
            raise TypeError(f"{field_name} must be a string")
        if not value.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"{field_name} must be an http or https URL, got {value!r}"
            )

    def _validate_non_negative(self, value: Any, field_name: str) -> None:
        if value is not None and value < 0:
            raise ConfigurationError(f"{field_name} must not be negative, got {value}")

    def get_config_value_object(self, field_name: str) -> ConfigValue:
        """Get the raw ConfigValue object for a field"""
        if not self._resolved:
            raise RuntimeError("Config must be resolved before accessing values")
        return getattr(self, f"_{field_name}")

    def credentials(self) -> Credentials:
        """Build credentials from the resolved key pair and session token.

        :raises MissingCredentialsError: If either half of the key pair is missing.
        """
        if not (self.aws_access_key_id and self.aws_secret_access_key):
            raise MissingCredentialsError(
                "No access key found. Set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY, "
                "use a shared credentials file, or pass them to the client config."
            )
        return Credentials(
            access_key_id=self.aws_access_key_id,
            secret_access_key=self.aws_secret_access_key,
            session_token=self.aws_session_token or None,
        )

    def attempt_strategy(self) -> FixedAttemptStrategy:
        return FixedAttemptStrategy(
            total=float(self.attempt_total),
            delay=float(self.attempt_delay),
            min=self.attempt_min,
        )

    def http_client_config(self) -> HTTPClientConfiguration:
        return HTTPClientConfiguration(
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
            write_timeout=self.write_timeout,
            request_timeout=self.request_timeout,
        )

    @property
    def aws_access_key_id(self) -> str | None:
        return self._aws_access_key_id.value

    @aws_access_key_id.setter
    def aws_access_key_id(self, value: str | None) -> None:
        self._aws_access_key_id = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def aws_secret_access_key(self) -> str | None:
        return self._aws_secret_access_key.value

    @aws_secret_access_key.setter
    def aws_secret_access_key(self, value: str | None) -> None:
        self._aws_secret_access_key = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def aws_session_token(self) -> str | None:
        return self._aws_session_token.value

    @aws_session_token.setter
    def aws_session_token(self, value: str | None) -> None:
        self._aws_session_token = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def region(self) -> str:
        return self._region.value

    @region.setter
    def region(self, value: str) -> None:
        self._region = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def endpoint_url(self) -> str | None:
        return self._endpoint_url.value

    @endpoint_url.setter
    def endpoint_url(self, value: str | None) -> None:
        self._endpoint_url = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy.value

    @retry_policy.setter
    def retry_policy(self, value: RetryPolicy) -> None:
        self._retry_policy = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def attempt_total(self) -> float:
        return self._attempt_total.value

    @attempt_total.setter
    def attempt_total(self, value: float) -> None:
        self._attempt_total = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def attempt_delay(self) -> float:
        return self._attempt_delay.value

    @attempt_delay.setter
    def attempt_delay(self, value: float) -> None:
        self._attempt_delay = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def attempt_min(self) -> int:
        return self._attempt_min.value

    @attempt_min.setter
    def attempt_min(self, value: int) -> None:
        self._attempt_min = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def connect_timeout(self) -> float | None:
        return self._connect_timeout.value

    @connect_timeout.setter
    def connect_timeout(self, value: float | None) -> None:
        self._connect_timeout = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def read_timeout(self) -> float | None:
        return self._read_timeout.value

    @read_timeout.setter
    def read_timeout(self, value: float | None) -> None:
        self._read_timeout = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def write_timeout(self) -> float | None:
        return self._write_timeout.value

    @write_timeout.setter
    def write_timeout(self, value: float | None) -> None:
        self._write_timeout = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def request_timeout(self) -> float | None:
        return self._request_timeout.value

    @request_timeout.setter
    def request_timeout(self, value: float | None) -> None:
        self._request_timeout = ConfigValue(value, SOURCE_IN_CODE_UPDATE)
