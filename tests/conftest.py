import os
import tempfile
from pathlib import Path

import pytest

from ggprov_core.config import get_config

_TEST_CONTROL_ROOT: str | None = None


@pytest.fixture(autouse=True)
def _default_env(monkeypatch: pytest.MonkeyPatch):
    def set_default(name: str, value: str) -> None:
        if not os.getenv(name):
            monkeypatch.setenv(name, value)

    set_default("STORAGE_BACKEND", "local")
    set_default("LOCAL_CONTROL_ROOT", _ensure_test_control_root())
    set_default("CONTROL_PREFIX", "ggprov")
    set_default("ENV", "test")
    set_default("LOG_LEVEL", "INFO")
    set_default("AWS_REGION", "us-east-1")
    set_default("DEVICE_ASSOCIATION_TOPIC", "projects/test/topics/device-associations")
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def _ensure_test_control_root() -> str:
    global _TEST_CONTROL_ROOT
    if _TEST_CONTROL_ROOT and Path(_TEST_CONTROL_ROOT).exists():
        return _TEST_CONTROL_ROOT

    _TEST_CONTROL_ROOT = tempfile.mkdtemp(prefix="ggprov_test_control_")
    return _TEST_CONTROL_ROOT
