"""Tests for TOML config loader."""

import tempfile
from pathlib import Path

import pytest

from src.domain.errors import ConfigError
from src.infrastructure.config.toml_loader import _apply_env_overrides, load_config


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_config(self):
        """Loads the shipped default configuration."""
        config = load_config()

        assert config.server.port == 8080
        assert config.rag.collection_name == "default"
        assert config.rag.limit == 5
        assert config.rag.score_threshold == 0.4
        assert config.rag.chunk_capacity == 100
        assert config.rag.policy == "system-message"
        assert [p.name for p in config.web_search.providers] == ["google"]

    def test_loads_from_custom_dir(self):
        """Loads config from custom directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "default.toml").write_text("""
[llm]
provider = "lm_studio"

[server]
port = 9999

[[web_search.providers]]
name = "searx"
kind = "searxng"
endpoint = "http://searx.local"
""")
            config = load_config(Path(tmpdir))

            assert config.llm.provider == "lm_studio"
            assert config.server.port == 9999
            assert config.web_search.providers[0].kind == "searxng"

    def test_merges_development_config(self):
        """Merges development.toml over default.toml per section."""
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "default.toml").write_text("""
[rag]
limit = 5
score_threshold = 0.4
""")
            (Path(tmpdir) / "development.toml").write_text("""
[rag]
limit = 8
""")
            config = load_config(Path(tmpdir))

            assert config.rag.limit == 8
            assert config.rag.score_threshold == 0.4

    def test_empty_dir_uses_model_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config = load_config(Path(tmpdir))
        assert config.web_search.providers == []
        assert config.llm.prompt_template == "llama-3-chat"

    def test_invalid_toml_is_config_error(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "default.toml").write_text("[rag\nlimit = ")
            with pytest.raises(ConfigError, match="Invalid TOML"):
                load_config(Path(tmpdir))

    def test_invalid_values_are_config_error(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "default.toml").write_text("[rag]\nscore_threshold = 3.0\n")
            with pytest.raises(ConfigError, match="Invalid configuration"):
                load_config(Path(tmpdir))

    def test_config_is_frozen(self):
        config = load_config()
        with pytest.raises(Exception):
            config.log_level = "DEBUG"


class TestEnvOverrides:
    """Tests for _apply_env_overrides."""

    def test_rag_overrides(self, monkeypatch):
        monkeypatch.setenv("RAG_POLICY", "last-user-message")
        monkeypatch.setenv("RAG_LIMIT", "3")
        monkeypatch.setenv("RAG_SCORE_THRESHOLD", "0.25")
        monkeypatch.setenv("ENABLE_RAG", "false")

        result = _apply_env_overrides({})

        assert result["rag"] == {
            "policy": "last-user-message",
            "limit": 3,
            "score_threshold": 0.25,
            "enabled": False,
        }

    def test_invalid_number_is_ignored(self, monkeypatch):
        monkeypatch.setenv("PORT", "not-a-port")
        assert "server" not in _apply_env_overrides({})

    def test_search_server_url_points_local_providers(self, monkeypatch):
        monkeypatch.setenv("SEARCH_SERVER_URL", "http://search:3000/search")
        config = {
            "web_search": {
                "providers": [
                    {"name": "g", "kind": "local", "endpoint": "http://localhost:3000/search"},
                    {"name": "b", "kind": "brave"},
                ]
            }
        }
        result = _apply_env_overrides(config)
        providers = result["web_search"]["providers"]
        assert providers[0]["endpoint"] == "http://search:3000/search"
        assert "endpoint" not in providers[1]

    def test_cors_origins_split(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "http://a, http://b")
        assert _apply_env_overrides({})["security"]["cors_origins"] == ["http://a", "http://b"]
