from __future__ import annotations

import pytest

from ggprov_core.config import Config


@pytest.mark.core
def test_local_config_defaults(monkeypatch, tmp_path):
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("LOCAL_CONTROL_ROOT", tmp_path.as_posix())
    monkeypatch.delenv("ARTIFACTS_URI", raising=False)
    monkeypatch.delenv("GG_LOOKUP_TIMEOUT_SECONDS", raising=False)
    monkeypatch.delenv("PUBSUB_PUBLISH_TIMEOUT_SECONDS", raising=False)

    config = Config.from_env()

    assert config.control_root_uri() == tmp_path.as_posix()
    assert config.artifacts_root_uri() == (tmp_path / "artifacts").as_posix()
    assert config.gg_lookup_timeout_seconds == 30.0
    assert config.control_plane_store == "json"
    assert config.pubsub_publish_timeout_seconds == 30.0


@pytest.mark.core
def test_remote_config_requires_bucket(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "s3")
    monkeypatch.delenv("CONTROL_BUCKET", raising=False)

    with pytest.raises(ValueError, match="CONTROL_BUCKET"):
        Config.from_env()

    monkeypatch.setenv("CONTROL_BUCKET", "ggprov-control")
    monkeypatch.setenv("CONTROL_PREFIX", "/prod/")
    config = Config.from_env()
    assert config.control_root_uri() == "s3://ggprov-control/prod"
    assert config.artifacts_root_uri() == "s3://ggprov-control/prod/artifacts"


@pytest.mark.core
def test_invalid_values_are_rejected(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "ftp")
    with pytest.raises(ValueError):
        Config.from_env()

    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("GG_LOOKUP_TIMEOUT_SECONDS", "-1")
    with pytest.raises(ValueError, match="GG_LOOKUP_TIMEOUT_SECONDS"):
        Config.from_env()
