from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import discovery_query.config as app_config
import pytest

SETTINGS_ENV_KEYS = [
    "DISCOVERY_QUERY_LOG_LEVEL",
    "DISCOVERY_QUERY_LOG_FORMAT",
    "DISCOVERY_QUERY_LOG_DESTINATION",
    "DISCOVERY_QUERY_DATE_FIELD",
]


@pytest.fixture(autouse=True)
def isolated_config_sources(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Keep the developer's own .env, config.toml and environment out of tests."""
    for key in SETTINGS_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv(app_config.ENV_FILE_ENV_VAR, str(tmp_path / "absent.env"))
    monkeypatch.setenv(app_config.CONFIG_FILE_ENV_VAR, str(tmp_path / "absent.toml"))
    monkeypatch.setattr(app_config, "_CONFIG_CACHE", None)
    yield
