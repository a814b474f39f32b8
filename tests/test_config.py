"""
Tests for intelx_mcp/utils/config.py

## Test Perspectives Table

| Case ID | Input / Precondition | Perspective (Equivalence / Boundary) | Expected Result | Notes |
|---------|---------------------|---------------------------------------|-----------------|-------|
| TC-N-01 | Repository config/settings.yaml | Equivalence - normal | Documented defaults | - |
| TC-N-02 | INTELX_SECTION__KEY overrides | Equivalence - env | Typed values applied | - |
| TC-N-03 | local.yaml settings section | Equivalence - merge | Deep-merged over settings.yaml | - |
| TC-B-01 | Numeric-looking API key | Boundary - type | Kept as string | - |
| TC-B-02 | Empty config directory | Boundary - missing files | Model defaults | - |
| TC-B-03 | Boolean env value | Boundary - type | Parsed as bool | - |
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from intelx_mcp.utils.config import _deep_merge, get_settings


class TestSettings:
    """Tests for get_settings()."""

    def test_repository_defaults(self) -> None:
        """
        TC-N-01: The shipped settings.yaml yields the documented values.

        // Given: INTELX_CONFIG_DIR pointing at the repository config/
        // When: Loading settings
        // Then: Service roots and limits match settings.yaml
        """
        settings = get_settings()

        assert settings.api.main_root == "https://2.intelx.io"
        assert settings.api.identity_root == "https://3.intelx.io"
        assert settings.polling.handle_min_length == 3
        assert settings.postprocess.line_max_chars == 128

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """
        TC-N-02: Nested environment overrides are applied with types.

        // Given: Overrides for a float, an int and a string
        // When: Loading settings
        // Then: Each value is typed accordingly
        """
        monkeypatch.setenv("INTELX_POLLING__INTERVAL_SECONDS", "2.5")
        monkeypatch.setenv("INTELX_POSTPROCESS__LINE_MAX_CHARS", "64")
        monkeypatch.setenv("INTELX_GENERAL__LOG_LEVEL", "DEBUG")
        get_settings.cache_clear()

        settings = get_settings()

        assert settings.polling.interval_seconds == 2.5
        assert settings.postprocess.line_max_chars == 64
        assert settings.general.log_level == "DEBUG"

    def test_numeric_api_key_stays_string(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """TC-B-01: A digits-only API key is not converted to int."""
        monkeypatch.setenv("INTELX_API_KEY", "0123456789")
        get_settings.cache_clear()

        assert get_settings().api_key == "0123456789"

    def test_bool_env_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """TC-B-03: "true"/"false" are parsed as booleans, so a str field rejects them."""
        monkeypatch.setenv("INTELX_GENERAL__LOG_LEVEL", "false")
        get_settings.cache_clear()

        with pytest.raises(ValidationError):
            get_settings()

    def test_local_yaml_merge(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """
        TC-N-03: local.yaml overrides only the keys it names.

        // Given: settings.yaml with api roots and local.yaml overriding main_root
        // When: Loading settings
        // Then: main_root from local.yaml, identity_root from settings.yaml
        """
        (tmp_path / "settings.yaml").write_text(
            "api:\n  main_root: https://a.test\n  identity_root: https://b.test\n",
            encoding="utf-8",
        )
        (tmp_path / "local.yaml").write_text(
            "settings:\n  api:\n    main_root: https://local.test\n",
            encoding="utf-8",
        )
        monkeypatch.setenv("INTELX_CONFIG_DIR", str(tmp_path))
        get_settings.cache_clear()

        settings = get_settings()

        assert settings.api.main_root == "https://local.test"
        assert settings.api.identity_root == "https://b.test"

    def test_empty_config_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """TC-B-02: Missing YAML files fall back to model defaults."""
        monkeypatch.setenv("INTELX_CONFIG_DIR", str(tmp_path))
        get_settings.cache_clear()

        settings = get_settings()

        assert settings.api.user_agent == "IntelX-MCP/1.0"
        assert settings.api.timeout_seconds == 30.0

    def test_cached(self) -> None:
        assert get_settings() is get_settings()


class TestHelpers:
    """Tests for module helpers."""

    def test_deep_merge(self) -> None:
        base = {"a": {"x": 1, "y": 2}, "b": 1}

        merged = _deep_merge(base, {"a": {"y": 3}, "c": 4})

        assert merged == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}
        assert base == {"a": {"x": 1, "y": 2}, "b": 1}

    def test_config_dir_relative_to_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A relative INTELX_CONFIG_DIR is resolved against the working directory."""
        (tmp_path / "conf").mkdir()
        (tmp_path / "conf" / "settings.yaml").write_text(
            "api:\n  user_agent: Relative/1.0\n", encoding="utf-8"
        )
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("INTELX_CONFIG_DIR", "conf")
        get_settings.cache_clear()

        assert get_settings().api.user_agent == "Relative/1.0"
