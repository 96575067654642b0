"""Tests for core/config.py."""

from __future__ import annotations

from pathlib import Path

from saa.core.config import deep_merge, get_catalogue_dir, get_effective_config, load_config_file


class TestDeepMerge:
    def test_simple_merge(self):
        base = {"a": 1, "b": 2}
        override = {"b": 3, "c": 4}
        result = deep_merge(base, override)
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self):
        base = {"output": {"format": "table", "show_tailoring_notes": True}}
        override = {"output": {"format": "json"}}
        result = deep_merge(base, override)
        assert result["output"]["format"] == "json"
        assert result["output"]["show_tailoring_notes"] is True

    def test_arrays_replaced(self):
        base = {"technologies": ["entra-id", "mfa"]}
        override = {"technologies": ["aws"]}
        result = deep_merge(base, override)
        assert result["technologies"] == ["aws"]

    def test_base_not_mutated(self):
        base = {"a": {"b": 1}}
        override = {"a": {"b": 2}}
        deep_merge(base, override)
        assert base["a"]["b"] == 1


class TestLoadConfigFile:
    def test_loads_yaml(self, tmp_path: Path):
        path = tmp_path / "saa.yaml"
        path.write_text("output:\n  format: markdown\n", encoding="utf-8")
        assert load_config_file(path) == {"output": {"format": "markdown"}}

    def test_missing_returns_empty(self, tmp_path: Path):
        assert load_config_file(tmp_path / "nope.yaml") == {}

    def test_empty_returns_empty(self, tmp_path: Path):
        path = tmp_path / "saa.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config_file(path) == {}

    def test_invalid_yaml_ignored(self, tmp_path: Path):
        path = tmp_path / "saa.yaml"
        path.write_text("output: [broken\n", encoding="utf-8")
        assert load_config_file(path) == {}

    def test_non_mapping_ignored(self, tmp_path: Path):
        path = tmp_path / "saa.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        assert load_config_file(path) == {}


class TestGetEffectiveConfig:
    def test_defaults_applied(self, tmp_path: Path):
        config = get_effective_config(search_dir=tmp_path)
        assert config["output"]["format"] == "table"
        assert config["logging"]["level"] == "WARNING"
        assert "_config_path" not in config

    def test_file_overrides_defaults(self, tmp_path: Path):
        (tmp_path / "saa.yaml").write_text("output:\n  format: json\n", encoding="utf-8")
        config = get_effective_config(search_dir=tmp_path)
        assert config["output"]["format"] == "json"
        assert config["output"]["show_tailoring_notes"] is True
        assert config["_config_path"] == str(tmp_path / "saa.yaml")

    def test_cli_overrides_file(self, tmp_path: Path):
        path = tmp_path / "custom.yaml"
        path.write_text("logging:\n  level: INFO\n", encoding="utf-8")
        config = get_effective_config(config_path=path, cli_overrides={"logging": {"level": "DEBUG"}})
        assert config["logging"]["level"] == "DEBUG"


class TestGetCatalogueDir:
    def test_unset(self, tmp_path: Path):
        assert get_catalogue_dir(get_effective_config(search_dir=tmp_path)) is None

    def test_relative_to_config_file(self, tmp_path: Path):
        (tmp_path / "saa.yaml").write_text("catalogue:\n  path: my-catalogue\n", encoding="utf-8")
        config = get_effective_config(search_dir=tmp_path)
        assert get_catalogue_dir(config) == tmp_path / "my-catalogue"

    def test_absolute(self, tmp_path: Path):
        config = get_effective_config(search_dir=tmp_path, cli_overrides={"catalogue": {"path": str(tmp_path)}})
        assert get_catalogue_dir(config) == tmp_path
