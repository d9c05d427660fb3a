from __future__ import annotations

import logging

import pytest

from s3lib.common import config as config_module
from s3lib.common.config import Config, get_config

ENV_VARS = (
    "S3LIB_REGION",
    "S3LIB_ACCESS_KEY",
    "S3LIB_SECRET_KEY",
    "S3LIB_TIMEOUT_SECONDS",
    "S3LIB_ENDPOINT",
    "S3LIB_USE_SSL",
    "S3LIB_DEBUG",
    "AWS_REGION",
    "AWS_DEFAULT_REGION",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep the developer's shell and .env file out of every test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "ENV_FILE", tmp_path / ".env")
    get_config.cache_clear()  # type: ignore[attr-defined]
    yield
    get_config.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture
def aws_config() -> Config:
    return Config(
        region="us-west-2",
        access_key="test-key",
        secret_key="test-secret",
    )


@pytest.fixture
def endpoint_config() -> Config:
    return Config(
        region="us-east-1",
        access_key="test-key",
        secret_key="test-secret",
        endpoint="http://localhost:4566",
        use_ssl=False,
    )


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo dictConfig changes made by setup_logging during a test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name in ("s3lib", "s3lib.cli"):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
