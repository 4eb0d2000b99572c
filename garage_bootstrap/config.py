"""
Bootstrap Configuration

Loads the operator configuration from environment variables or from a
YAML/JSON file. Admin and metrics tokens are generated when absent; the
access key identity and the bucket list must be supplied.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

import yaml

from .models import BucketConfig, BucketPolicy, is_valid_bucket_name
from .randomness import random_base64

logger = logging.getLogger(__name__)

DEFAULT_SERVER_BINARY = "/garage"
DEFAULT_SERVER_CONFIG_PATH = "/etc/garage.toml"
DEFAULT_ADMIN_ENDPOINT = "http://127.0.0.1:3903"
DEFAULT_METADATA_DB_PATH = "/var/lib/garage/meta/db.sqlite"
DEFAULT_S3_ENDPOINT = "http://127.0.0.1:3900"
DEFAULT_S3_REGION = "garage"

TOKEN_BYTES = 32


class ConfigError(ValueError):
    """Base class for configuration errors."""


class MissingVariableError(ConfigError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"missing environment variable {name}")


class EmptyVariableError(ConfigError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"environment variable {name} is empty")


class InvalidBucketEntryError(ConfigError):
    def __init__(self, entry: str):
        self.entry = entry
        super().__init__(f"invalid bucket entry {entry!r}")


class InvalidBucketNameError(ConfigError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"invalid bucket name {name!r}")


class InvalidBucketPolicyError(ConfigError):
    def __init__(self, bucket: str, value: str):
        self.bucket = bucket
        self.value = value
        super().__init__(f"invalid bucket policy {value!r} for bucket {bucket!r}")


@dataclass
class Config:
    """Complete bootstrap configuration."""

    admin_token: str
    metrics_token: str
    access_key_id: str
    secret_access_key: str
    buckets: List[BucketConfig] = field(default_factory=list)
    server_binary: str = DEFAULT_SERVER_BINARY
    server_config_path: str = DEFAULT_SERVER_CONFIG_PATH
    admin_endpoint: str = DEFAULT_ADMIN_ENDPOINT
    metadata_db_path: str = DEFAULT_METADATA_DB_PATH
    purge_keys: bool = True
    s3_endpoint: str = DEFAULT_S3_ENDPOINT
    s3_region: str = DEFAULT_S3_REGION
    verify_buckets: bool = False

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        config_file: Optional[str] = None,
    ) -> "Config":
        """
        Load configuration from environment variables.

        Environment variables:
            GARAGE_BOOTSTRAP_CONFIG: Path to a YAML/JSON file with credentials
                and buckets (optional, replaces the variables below)
            GARAGE_ADMIN_TOKEN: Admin API token (optional, generated if unset)
            GARAGE_METRICS_TOKEN: Metrics token (optional, generated if unset)
            GARAGE_ACCESS_KEY_ID: Access key id to import
            GARAGE_SECRET_ACCESS_KEY: Secret of the access key
            GARAGE_BUCKETS: Comma-separated ``name[:policy]`` entries

        Runtime settings (GARAGE_BINARY, GARAGE_CONFIG_PATH,
        GARAGE_ADMIN_ENDPOINT, GARAGE_METADATA_DB, GARAGE_PURGE_KEYS,
        GARAGE_S3_ENDPOINT, GARAGE_S3_REGION, GARAGE_VERIFY_BUCKETS) fall back
        to the container defaults.

        Args:
            environ: Mapping to read from, defaults to ``os.environ``
            config_file: Configuration file taking precedence over
                GARAGE_BOOTSTRAP_CONFIG

        Returns:
            Parsed Config object

        Raises:
            ConfigError: If a variable is missing or invalid
        """
        env = os.environ if environ is None else environ

        config_file = config_file or env.get("GARAGE_BOOTSTRAP_CONFIG", "").strip()
        if config_file:
            config = load_config_from_file(config_file)
        else:
            config = cls(
                admin_token=read_env_default(env, "GARAGE_ADMIN_TOKEN", _generate_token),
                metrics_token=read_env_default(env, "GARAGE_METRICS_TOKEN", _generate_token),
                access_key_id=read_env(env, "GARAGE_ACCESS_KEY_ID"),
                secret_access_key=read_env(env, "GARAGE_SECRET_ACCESS_KEY"),
                buckets=parse_buckets(read_env(env, "GARAGE_BUCKETS")),
            )

        config.server_binary = env.get("GARAGE_BINARY", "").strip() or DEFAULT_SERVER_BINARY
        config.server_config_path = (
            env.get("GARAGE_CONFIG_PATH", "").strip() or DEFAULT_SERVER_CONFIG_PATH
        )
        config.admin_endpoint = (
            env.get("GARAGE_ADMIN_ENDPOINT", "").strip() or DEFAULT_ADMIN_ENDPOINT
        )
        config.metadata_db_path = (
            env.get("GARAGE_METADATA_DB", "").strip() or DEFAULT_METADATA_DB_PATH
        )
        config.purge_keys = _parse_flag(env.get("GARAGE_PURGE_KEYS"), default=True)
        config.s3_endpoint = env.get("GARAGE_S3_ENDPOINT", "").strip() or DEFAULT_S3_ENDPOINT
        config.s3_region = env.get("GARAGE_S3_REGION", "").strip() or DEFAULT_S3_REGION
        config.verify_buckets = _parse_flag(env.get("GARAGE_VERIFY_BUCKETS"), default=False)
        return config


def read_env(env: Mapping[str, str], name: str) -> str:
    """Read a required variable, trimming surrounding whitespace."""
    if name not in env:
        raise MissingVariableError(name)
    value = env[name].strip()
    if not value:
        raise EmptyVariableError(name)
    return value


def read_env_default(
    env: Mapping[str, str], name: str, default: Callable[[], str]
) -> str:
    """Read a variable, falling back to ``default()`` when it is missing or blank."""
    try:
        return read_env(env, name)
    except (MissingVariableError, EmptyVariableError):
        logger.info(f"{name} not set, generating a random value")
        return default()


def parse_buckets(raw: str) -> List[BucketConfig]:
    """
    Parse a comma-separated bucket list.

    Each entry is ``name`` or ``name:policy`` where policy is ``private``
    (the default) or ``public``, case-insensitive.

    Args:
        raw: The raw bucket list

    Returns:
        Bucket configurations in declaration order

    Raises:
        ConfigError: If an entry, name or policy is invalid
    """
    buckets = []
    for raw_entry in raw.split(","):
        entry = raw_entry.strip()
        if not entry:
            raise InvalidBucketEntryError(raw_entry)
        name, sep, policy = entry.partition(":")
        buckets.append(parse_bucket(name.strip(), policy if sep else None))
    return buckets


def parse_bucket(name: str, policy: Optional[str] = None) -> BucketConfig:
    """Validate a single bucket name and policy."""
    if not isinstance(name, str) or not is_valid_bucket_name(name):
        raise InvalidBucketNameError(str(name))
    if policy is None:
        return BucketConfig(name=name)
    if not isinstance(policy, str):
        raise InvalidBucketPolicyError(name, str(policy))
    try:
        return BucketConfig(name=name, policy=BucketPolicy.parse(policy))
    except ValueError:
        raise InvalidBucketPolicyError(name, policy) from None


def load_config_from_file(config_path: str) -> Config:
    """
    Load credentials and buckets from a YAML or JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Parsed Config object
    """
    with open(config_path, "r") as f:
        if config_path.endswith((".yml", ".yaml")):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    return parse_config({} if data is None else data)


def parse_config(data: Dict[str, Any]) -> Config:
    """
    Parse a configuration dictionary into a Config object.

    Buckets may be given as ``"name:policy"`` strings or as mappings with
    ``name`` and an optional ``policy``.

    Raises:
        ConfigError: If the document or one of its buckets is malformed
    """
    if not isinstance(data, dict):
        raise ConfigError(f"configuration must be a mapping, got {type(data).__name__}")

    bucket_entries = data.get("buckets")
    if bucket_entries is None:
        bucket_entries = []
    if not isinstance(bucket_entries, list):
        raise ConfigError(f"buckets must be a list, got {type(bucket_entries).__name__}")

    buckets = []
    for bucket_data in bucket_entries:
        if isinstance(bucket_data, str):
            buckets.extend(parse_buckets(bucket_data))
        elif isinstance(bucket_data, dict):
            buckets.append(parse_bucket(bucket_data.get("name", ""), bucket_data.get("policy")))
        else:
            raise InvalidBucketEntryError(str(bucket_data))

    return Config(
        admin_token=_value_or_default(data, "adminToken", _generate_token),
        metrics_token=_value_or_default(data, "metricsToken", _generate_token),
        access_key_id=_required_value(data, "accessKeyId"),
        secret_access_key=_required_value(data, "secretAccessKey"),
        buckets=buckets,
    )


def _required_value(data: Dict[str, Any], key: str) -> str:
    if key not in data:
        raise MissingVariableError(key)
    value = str(data[key]).strip()
    if not value:
        raise EmptyVariableError(key)
    return value


def _value_or_default(data: Dict[str, Any], key: str, default: Callable[[], str]) -> str:
    value = str(data.get(key) or "").strip()
    return value or default()


def _generate_token() -> str:
    return random_base64(TOKEN_BYTES)


def _parse_flag(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")
