"""Configuration loading from an optional YAML file, env vars, and CLI args."""

import argparse
import logging
import os
from dataclasses import dataclass, fields
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SinkConfig:
    customer_id: str = ""
    shared_key: str = ""
    log_type_prefix: str = "APP"
    flush_interval: float = 60.0
    request_timeout: float = 10.0
    queue_size: int = 0
    endpoint: Optional[str] = None
    api_version: str = "2016-04-01"
    time_generated_field: str = "time_generated"

    @property
    def plain_log_type(self) -> str:
        return f"{self.log_type_prefix}_LOGS"

    @property
    def http_log_type(self) -> str:
        return f"{self.log_type_prefix}_HTTP"

    @property
    def log_types(self) -> tuple[str, str]:
        return self.plain_log_type, self.http_log_type

    def validate(self) -> "SinkConfig":
        """Raise ValueError if the config cannot be used to ship logs."""
        if not self.customer_id:
            raise ValueError("customer_id (OMS_CUSTOMER_ID) is required")
        if not self.shared_key:
            raise ValueError("shared_key (OMS_SHARED_KEY) is required")
        if not self.log_type_prefix:
            raise ValueError("log_type_prefix must not be empty")
        if self.flush_interval <= 0:
            raise ValueError("flush_interval must be positive")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.queue_size < 0:
            raise ValueError("queue_size must be >= 0")
        return self


_ENV_VARS = {
    "customer_id": "OMS_CUSTOMER_ID",
    "shared_key": "OMS_SHARED_KEY",
    "log_type_prefix": "OMS_LOG_TYPE",
    "flush_interval": "FLUSH_INTERVAL",
    "request_timeout": "REQUEST_TIMEOUT",
    "queue_size": "QUEUE_SIZE",
    "endpoint": "OMS_ENDPOINT",
    "api_version": "OMS_API_VERSION",
}

_CASTS = {
    "flush_interval": float,
    "request_timeout": float,
    "queue_size": int,
}


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded YAML config from %s", path)
        return data
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ship log lines to Azure Log Analytics")
    parser.add_argument("--config", type=str, default=None)
    parser.add_argument("--customer-id", dest="customer_id", type=str, default=None)
    parser.add_argument("--log-type", dest="log_type_prefix", type=str, default=None)
    parser.add_argument("--flush-interval", dest="flush_interval", type=float, default=None)
    parser.add_argument("--request-timeout", dest="request_timeout", type=float, default=None)
    parser.add_argument("--queue-size", dest="queue_size", type=int, default=None)
    parser.add_argument("--endpoint", type=str, default=None)
    return parser


def load_config(argv: list[str] | None = None) -> SinkConfig:
    """Build SinkConfig from defaults <- YAML file <- env vars <- CLI args.

    The YAML path comes from ``--config`` or ``CONFIG_PATH``. The shared key
    is only read from the YAML file or the environment.
    Pass argv for testability; when None, argparse reads sys.argv.
    """
    args = _build_parser().parse_args(argv)
    known = {f.name for f in fields(SinkConfig)}

    yaml_data = load_yaml_config(args.config or os.environ.get("CONFIG_PATH"))
    kwargs: dict = {}
    for key, value in yaml_data.items():
        if key in known:
            kwargs[key] = value
        else:
            logger.warning("Ignoring unknown config key %r", key)

    for name, env_var in _ENV_VARS.items():
        if env_var in os.environ:
            kwargs[name] = os.environ[env_var]

    for name in known:
        value = getattr(args, name, None)
        if value is not None:
            kwargs[name] = value

    for name, cast in _CASTS.items():
        if name in kwargs:
            kwargs[name] = cast(kwargs[name])

    return SinkConfig(**kwargs)
