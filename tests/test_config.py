"""Tests for config loading and the project store registry."""

from __future__ import annotations

from pathlib import Path

import pytest

from wind_task.config import config_path, is_valid_project_name, load_config, parse_config
from wind_task.constants import DEFAULT_MAX_CONTENT_BYTES, DEFAULT_MAX_LOG_MESSAGE_LENGTH
from wind_task.errors import NotFoundError, ValidationError
from wind_task.registry import StoreRegistry


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        cfg, err = load_config(tmp_path / "absent.yaml")
        assert err is None
        assert cfg.projects == {}
        assert cfg.max_log_message_length == DEFAULT_MAX_LOG_MESSAGE_LENGTH
        assert cfg.max_content_bytes == DEFAULT_MAX_CONTENT_BYTES
        assert cfg.log_level == "INFO"

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        cfg, err = load_config(path)
        assert err is None
        assert cfg.projects == {}

    def test_yaml_values(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "\n".join(
                [
                    "default_base_dir: " + str(tmp_path / "default"),
                    "max_log_message_length: 10",
                    "max_content_bytes: 20",
                    "log_level: debug",
                    "projects:",
                    "  alpha: " + str(tmp_path / "alpha"),
                    "  'bad name': " + str(tmp_path / "bad"),
                    "  empty: ''",
                ]
            ),
            encoding="utf-8",
        )
        cfg, err = load_config(path)
        assert err is None
        assert cfg.default_base_dir == (tmp_path / "default").resolve()
        assert cfg.projects == {"alpha": (tmp_path / "alpha").resolve()}
        assert cfg.max_log_message_length == 10
        assert cfg.max_content_bytes == 20
        assert cfg.log_level == "DEBUG"

    def test_malformed_yaml_reports_error(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("projects: [unclosed", encoding="utf-8")
        cfg, err = load_config(path)
        assert err is not None
        assert "YAMLError" in err
        assert cfg.projects == {}

    def test_non_mapping_reports_error(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        _, err = load_config(path)
        assert err is not None

    def test_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WIND_TASK_CONFIG", str(tmp_path / "custom.yaml"))
        assert config_path() == tmp_path / "custom.yaml"

    def test_invalid_limits_fall_back(self) -> None:
        cfg = parse_config({"max_log_message_length": "lots", "max_content_bytes": -5})
        assert cfg.max_log_message_length == DEFAULT_MAX_LOG_MESSAGE_LENGTH
        assert cfg.max_content_bytes == DEFAULT_MAX_CONTENT_BYTES


@pytest.mark.parametrize("name, ok", [("alpha", True), ("my.proj-1_x", True), ("", False), ("a/b", False), ("a b", False)])
def test_project_names(name: str, ok: bool) -> None:
    assert is_valid_project_name(name) is ok


class TestStoreRegistry:
    def _registry(self, tmp_path: Path) -> StoreRegistry:
        cfg = parse_config(
            {
                "default_base_dir": str(tmp_path / "default"),
                "projects": {"alpha": str(tmp_path / "alpha")},
                "max_log_message_length": 5,
            }
        )
        return StoreRegistry(cfg)

    def test_default_and_named(self, tmp_path: Path) -> None:
        registry = self._registry(tmp_path)
        assert registry.get().base_dir == (tmp_path / "default").resolve()
        assert registry.get("default") is registry.get(None)
        assert registry.get("alpha").base_dir == (tmp_path / "alpha").resolve()
        assert (tmp_path / "alpha").is_dir()
        assert registry.project_names() == ["default", "alpha"]

    def test_limits_propagate(self, tmp_path: Path) -> None:
        store = self._registry(tmp_path).get()
        assert store.max_log_message_length == 5

    def test_projects_are_isolated(self, tmp_path: Path) -> None:
        registry = self._registry(tmp_path)
        task = registry.get("alpha").create_task("Alpha only", actor="agent:a")
        assert registry.get().list_tasks() == []
        with pytest.raises(NotFoundError):
            registry.get().get_task(task.id)

    def test_unknown_project(self, tmp_path: Path) -> None:
        with pytest.raises(NotFoundError):
            self._registry(tmp_path).get("beta")

    def test_invalid_project_name(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            self._registry(tmp_path).get("../escape")
