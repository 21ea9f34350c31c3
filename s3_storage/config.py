# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import os
from collections.abc import Mapping
from typing import Any, ClassVar, Literal

from .drivers import S3Driver
from .exceptions import ConfigurationError
from .interfaces.http import HTTPClient
from .path_builder import DEFAULT_TEMPLATE

SOURCE_CONSTRUCTOR = "constructor"
SOURCE_ENVIRONMENT = "environment"
SOURCE_DEFAULT = "default"
SOURCE_IN_CODE_UPDATE = "in_code_update"

SourceType = Literal["constructor", "environment", "default", "in_code_update"]


class ConfigValue:
    """Configuration value with metadata about its source"""

    def __init__(self, value: Any, source: SourceType):
        self.value = value
        self.source = source

    def __repr__(self) -> str:
        return f"ConfigValue(source={self.source!r})"


class S3DriverConfig:
    """
    S3 driver configuration with precedence-based resolution.

    Each field is resolved from, in order: the constructor argument, the
    environment variable named in ``CONFIG_FIELDS``, the default. The sentinel
    value (...) distinguishes "not provided" from "explicitly set to None".
    """

    CONFIG_FIELDS: ClassVar[dict[str, dict[str, Any]]] = {
        "bucket": {"env_var": "S3_BUCKET", "default": None, "required": True},
        "host": {"env_var": "S3_HOST", "default": "s3.amazonaws.com"},
        "access_key": {
            "env_var": "AWS_ACCESS_KEY_ID",
            "default": None,
            "required": True,
        },
        "secret_key": {
            "env_var": "AWS_SECRET_ACCESS_KEY",
            "default": None,
            "required": True,
        },
        "region": {"env_var": "AWS_REGION", "default": "eu-west-1"},
        "path_template": {"env_var": "S3_PATH_TEMPLATE", "default": DEFAULT_TEMPLATE},
    }

    def __init__(
        self,
        *,
        bucket: str | None = ...,  # type: ignore[assignment]
        host: str | None = ...,  # type: ignore[assignment]
        access_key: str | None = ...,  # type: ignore[assignment]
        secret_key: str | None = ...,  # type: ignore[assignment]
        region: str | None = ...,  # type: ignore[assignment]
        path_template: str | None = ...,  # type: ignore[assignment]
        environ: Mapping[str, str] | None = None,
    ):
        """
        :param environ: Mapping to read environment variables from. Defaults to
            ``os.environ``.
        """
        constructor_values = {
            "bucket": bucket,
            "host": host,
            "access_key": access_key,
            "secret_key": secret_key,
            "region": region,
            "path_template": path_template,
        }
        env = os.environ if environ is None else environ
        self._values: dict[str, ConfigValue] = {
            name: self._resolve(name, constructor_values[name], env)
            for name in self.CONFIG_FIELDS
        }

    def _resolve(self, name: str, value: Any, env: Mapping[str, str]) -> ConfigValue:
        field_def = self.CONFIG_FIELDS[name]
        if value is not ...:
            return ConfigValue(value, SOURCE_CONSTRUCTOR)
        env_value = env.get(field_def["env_var"])
        if env_value:
            return ConfigValue(env_value, SOURCE_ENVIRONMENT)
        return ConfigValue(field_def["default"], SOURCE_DEFAULT)

    def get_source(self, name: str) -> SourceType:
        """Report where the value of ``name`` came from."""
        return self._values[name].source

    def set(self, name: str, value: Any) -> None:
        if name not in self.CONFIG_FIELDS:
            raise AttributeError(f"Unknown configuration field: {name}")
        self._values[name] = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or name not in self.CONFIG_FIELDS:
            raise AttributeError(name)
        return self._values[name].value

    def validate(self) -> None:
        missing = [
            f"{name} ({field_def['env_var']})"
            for name, field_def in self.CONFIG_FIELDS.items()
            if field_def.get("required") and not self._values[name].value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required S3 configuration: {', '.join(missing)}"
            )

    def create_driver(self, *, http_client: HTTPClient | None = None) -> S3Driver:
        """Validate the configuration and build an :py:class:`S3Driver` from it."""
        self.validate()
        return S3Driver(
            bucket=self.bucket,
            host=self.host or self.CONFIG_FIELDS["host"]["default"],
            access_key=self.access_key,
            secret_key=self.secret_key,
            region=self.region or self.CONFIG_FIELDS["region"]["default"],
            path_template=self.path_template or DEFAULT_TEMPLATE,
            http_client=http_client,
        )
