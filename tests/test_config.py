"""Tests for streaks.yaml configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from streaks.config import DEFAULT_CONFIG, configure_logging, load_config, resolve_log_dir
from streaks.errors import ConfigError
from streaks.logging import get_sink


class TestLoadConfig:
    def test_defaults_without_root(self) -> None:
        assert load_config() == DEFAULT_CONFIG

    def test_defaults_without_file(self, tmp_path: Path) -> None:
        assert load_config(tmp_path) == DEFAULT_CONFIG

    def test_user_values_override(self, tmp_path: Path) -> None:
        (tmp_path / "streaks.yaml").write_text("inference_sample_rows: 5\ncache_sheet_data: false\n")
        config = load_config(tmp_path)
        assert config["inference_sample_rows"] == 5
        assert config["cache_sheet_data"] is False
        assert config["max_workers"] == DEFAULT_CONFIG["max_workers"]

    def test_empty_file(self, tmp_path: Path) -> None:
        (tmp_path / "streaks.yaml").write_text("")
        assert load_config(tmp_path) == DEFAULT_CONFIG

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "streaks.yaml").write_text("a: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        (tmp_path / "streaks.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(tmp_path)


class TestLogDir:
    def test_relative_log_dir(self, tmp_path: Path) -> None:
        assert resolve_log_dir(tmp_path, {"log_dir": "out/logs"}) == tmp_path / "out" / "logs"

    def test_absolute_log_dir(self, tmp_path: Path) -> None:
        target = tmp_path / "elsewhere"
        assert resolve_log_dir(Path("/unused"), {"log_dir": str(target)}) == target

    def test_configure_logging_installs_sink(self, tmp_path: Path) -> None:
        log_dir = configure_logging(tmp_path, load_config(tmp_path))
        assert log_dir == tmp_path / "logs"
        assert log_dir.is_dir()
        assert get_sink() is not None
