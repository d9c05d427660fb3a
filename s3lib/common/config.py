from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from s3lib.common.errors import InvalidConfigError

ENV_FILE = Path(".env")

REQUIRED_FIELDS: tuple[str, ...] = ("region", "access_key", "secret_key")


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_timeout(value: str | None) -> timedelta | None:
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError as exc:
        raise InvalidConfigError(
            "invalid configuration: S3LIB_TIMEOUT_SECONDS must be a number"
        ) from exc
    if seconds < 0:
        raise InvalidConfigError(
            "invalid configuration: S3LIB_TIMEOUT_SECONDS must not be negative"
        )
    return timedelta(seconds=seconds)


def _first_env(*names: str) -> str:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return ""


@dataclass
class Config:
    region: str = ""
    access_key: str = ""
    secret_key: str = field(default="", repr=False)
    timeout: timedelta | None = None
    # S3-compatible services (MinIO, LocalStack); switches to path-style URLs
    endpoint: str | None = None
    use_ssl: bool = True
    # traces go to the s3lib logger at DEBUG; see setup_logging(debug=True)
    debug: bool = False

    def validate(self) -> None:
        for name in REQUIRED_FIELDS:
            if not getattr(self, name):
                raise InvalidConfigError(f"invalid configuration: {name} is required")

    @property
    def timeout_seconds(self) -> float | None:
        if self.timeout is None:
            return None
        return self.timeout.total_seconds()

    @classmethod
    def from_environment(cls) -> "Config":
        _load_env_file()
        return cls(
            region=_first_env("S3LIB_REGION", "AWS_REGION", "AWS_DEFAULT_REGION"),
            access_key=_first_env("S3LIB_ACCESS_KEY", "AWS_ACCESS_KEY_ID"),
            secret_key=_first_env("S3LIB_SECRET_KEY", "AWS_SECRET_ACCESS_KEY"),
            timeout=_as_timeout(os.environ.get("S3LIB_TIMEOUT_SECONDS")),
            endpoint=os.environ.get("S3LIB_ENDPOINT") or None,
            use_ssl=_as_bool(os.environ.get("S3LIB_USE_SSL"), cls.use_ssl),
            debug=_as_bool(os.environ.get("S3LIB_DEBUG"), cls.debug),
        )


@lru_cache(maxsize=1)
def get_config() -> Config:
    return Config.from_environment()
