"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from quire.config import QuireConfig, load_config, load_yaml_file, merge_configs


class TestMergeConfigs:
    """Tests for merge_configs function."""

    def test_nested_merge(self) -> None:
        """Test nested sections are merged key by key."""
        base = {"backend": {"bucket": "a", "table": "t"}, "throttle": {"window_seconds": 3}}
        override = {"backend": {"bucket": "b"}}

        assert merge_configs(base, override) == {
            "backend": {"bucket": "b", "table": "t"},
            "throttle": {"window_seconds": 3},
        }

    def test_base_not_mutated(self) -> None:
        """Test merging leaves the inputs unchanged."""
        base = {"backend": {"bucket": "a"}}
        merge_configs(base, {"backend": {"bucket": "b"}})

        assert base == {"backend": {"bucket": "a"}}


class TestLoadYamlFile:
    """Tests for load_yaml_file function."""

    def test_load_valid_file(self, sample_yaml_file: Path) -> None:
        """Test loading a valid YAML file."""
        content = load_yaml_file(sample_yaml_file)
        assert content["backend"]["bucket"] == "pilot"

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_yaml_file(tmp_path / "missing.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test empty files load as an empty mapping."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}

    def test_non_mapping(self, tmp_path: Path) -> None:
        """Test top-level lists are rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(yaml.YAMLError):
            load_yaml_file(path)

    def test_malformed(self, tmp_path: Path) -> None:
        """Test malformed YAML raises YAMLError."""
        path = tmp_path / "bad.yaml"
        path.write_text("backend: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_yaml_file(path)


class TestLoadConfig:
    """Tests for load_config function."""

    def test_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test loading with no sources gives the defaults."""
        assert load_config() == QuireConfig()

    def test_yaml_file(self, sample_yaml_file: Path, clean_env: pytest.MonkeyPatch) -> None:
        """Test YAML values override defaults."""
        config = load_config(sample_yaml_file)

        assert config.backend.backend == "supabase"
        assert config.backend.bucket == "pilot"
        assert config.backend.table == "revisit"
        assert config.throttle.window_seconds == 1.5
        assert config.logging.level == "DEBUG"

    def test_env_overrides_yaml(
        self, sample_yaml_file: Path, clean_env: pytest.MonkeyPatch
    ) -> None:
        """Test environment variables override the YAML file."""
        clean_env.setenv("QUIRE_BACKEND__BUCKET", "from-env")

        assert load_config(sample_yaml_file).backend.bucket == "from-env"

    def test_env_ignored_when_disabled(
        self, sample_yaml_file: Path, clean_env: pytest.MonkeyPatch
    ) -> None:
        """Test use_env=False skips the environment."""
        clean_env.setenv("QUIRE_BACKEND__BUCKET", "from-env")

        assert load_config(sample_yaml_file, use_env=False).backend.bucket == "pilot"

    def test_keyword_overrides_win(
        self, sample_yaml_file: Path, clean_env: pytest.MonkeyPatch
    ) -> None:
        """Test keyword overrides take precedence over every other source."""
        clean_env.setenv("QUIRE_BACKEND__BUCKET", "from-env")

        config = load_config(sample_yaml_file, backend__bucket="from-kwargs")
        assert config.backend.bucket == "from-kwargs"

    def test_invalid_value(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test invalid values raise ValidationError."""
        with pytest.raises(ValidationError):
            load_config(allocation__policy="random")

    def test_negative_window(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test the throttle window must be non-negative."""
        with pytest.raises(ValidationError):
            load_config(throttle__window_seconds=-1)
