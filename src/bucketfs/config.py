"""Configuration loading with environment variable substitution."""

import os
import re
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import yaml
from pydantic import BaseModel, Field

from bucketfs.exceptions import ConfigError

ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")

R2_ENDPOINT_TEMPLATE = "https://{account_id}.r2.cloudflarestorage.com"


def substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR_NAME} patterns with environment variables."""
    if isinstance(value, str):
        def replace(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable {var_name} is not set")
            return env_value

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]
    return value


def normalize_endpoint(endpoint: str, bucket: str) -> str:
    """Strip a bucket name baked into an endpoint URL.

    The bucket is removed when it is the first host label
    (``bucket.account.r2...``) or the last path segment (``.../bucket``).
    A missing scheme defaults to https and trailing slashes are dropped.
    """
    if "://" not in endpoint:
        endpoint = f"https://{endpoint}"

    parts = urlsplit(endpoint)
    netloc = parts.netloc
    path = parts.path.rstrip("/")

    if bucket:
        if netloc.startswith(f"{bucket}.") and netloc.count(".") > 1:
            netloc = netloc[len(bucket) + 1:]
        segments = path.split("/")
        if segments[-1] == bucket:
            path = "/".join(segments[:-1])

    return urlunsplit((parts.scheme, netloc, path.rstrip("/"), "", ""))


class CacheConfig(BaseModel):
    """Metadata cache settings."""

    max_entries: int | None = None  # None keeps every key seen this session
    revalidate: bool = False  # Always ask the store in exists/stat


class FileSystemOptions(BaseModel):
    """Connection and namespace settings for a bucket filesystem."""

    account_id: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    bucket: str = ""
    region: str = "auto"
    prefix: str = ""
    endpoint: str | None = None  # Derived from account_id if not provided

    backend: str = "s3"  # s3 | memory | local
    backend_options: dict[str, Any] = Field(default_factory=dict)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    request_timeout_seconds: float = 30.0
    max_attempts: int = 3

    def validate_required(self) -> None:
        """Raise ConfigError if identity, credentials or bucket are missing."""
        for name in ("account_id", "access_key_id", "secret_access_key", "bucket"):
            if not getattr(self, name):
                raise ConfigError(f"{name} is required")

    def resolved_endpoint(self) -> str:
        """Get the endpoint URL the store client should talk to."""
        if self.endpoint:
            return normalize_endpoint(self.endpoint, self.bucket)
        return R2_ENDPOINT_TEMPLATE.format(account_id=self.account_id)


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    format: str = "json"  # json | text


class Config(BaseModel):
    """Main configuration for bucketfs."""

    filesystem: FileSystemOptions = Field(default_factory=FileSystemOptions)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: str | Path) -> "Config":
        """Load configuration from a YAML or JSON file."""
        path = Path(path)
        with path.open() as f:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                import json
                data = json.load(f)

        # Substitute environment variables
        data = substitute_env_vars(data or {})
        return cls.model_validate(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Load configuration from a dictionary."""
        data = substitute_env_vars(data)
        return cls.model_validate(data)
