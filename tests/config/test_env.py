"""Tests for environment variable configuration support."""

from __future__ import annotations

import pytest

from quire.config.env import env_to_nested_dict, load_from_env, parse_env_value


class TestParseEnvValue:
    """Tests for parse_env_value function."""

    @pytest.mark.parametrize("raw", ["true", "TRUE", "Yes", "on"])
    def test_parse_true(self, raw: str) -> None:
        """Test boolean true spellings."""
        assert parse_env_value(raw) is True

    @pytest.mark.parametrize("raw", ["false", "No", "OFF"])
    def test_parse_false(self, raw: str) -> None:
        """Test boolean false spellings."""
        assert parse_env_value(raw) is False

    def test_parse_integer(self) -> None:
        """Test parsing integer values."""
        assert parse_env_value("42") == 42

    def test_parse_float(self) -> None:
        """Test parsing float values."""
        assert parse_env_value("0.25") == 0.25

    def test_parse_string(self) -> None:
        """Test other values stay strings."""
        assert parse_env_value("https://example.supabase.co") == (
            "https://example.supabase.co"
        )


class TestEnvToNestedDict:
    """Tests for env_to_nested_dict function."""

    def test_nests_sections(self) -> None:
        """Test double underscores separate sections from fields."""
        result = env_to_nested_dict(
            {
                "QUIRE_BACKEND__URL": "https://example.supabase.co",
                "QUIRE_THROTTLE__WINDOW_SECONDS": "1.5",
            }
        )
        assert result == {
            "backend": {"url": "https://example.supabase.co"},
            "throttle": {"window_seconds": 1.5},
        }

    def test_ignores_other_variables(self) -> None:
        """Test variables without the prefix are skipped."""
        assert env_to_nested_dict({"HOME": "/root", "QUIRE_": "x"}) == {}

    def test_custom_prefix(self) -> None:
        """Test a different prefix can be used."""
        assert env_to_nested_dict({"APP_LOGGING__LEVEL": "DEBUG"}, prefix="APP_") == {
            "logging": {"level": "DEBUG"}
        }


class TestLoadFromEnv:
    """Tests for load_from_env function."""

    def test_reads_process_environment(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test QUIRE_ variables are read from os.environ."""
        clean_env.setenv("QUIRE_IDENTITY__BACKEND", "memory")

        assert load_from_env() == {"identity": {"backend": "memory"}}

    def test_empty_environment(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test no variables produce no overrides."""
        assert load_from_env() == {}
