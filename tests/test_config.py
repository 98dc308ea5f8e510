"""Tests for configuration loading."""
import logging

import pytest

from clippy.config import AppConfig, apply_env_overrides, load_config


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_uses_defaults(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            config = load_config(tmp_path / "missing.yaml", environ={})

        assert config.history_limit == 10
        assert config.bubble.max_chars_per_line == 40
        assert config.llm.gigachat.model == "GigaChat:latest"
        assert "Config file not found" in caplog.text

    def test_partial_yaml_overrides_nested_sections(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "history_limit: 4\n"
            "bubble:\n"
            "  prefer_left: false\n"
            "llm:\n"
            "  gigachat:\n"
            "    max_tokens: 64\n",
            encoding="utf-8",
        )

        config = load_config(path, environ={})

        assert config.history_limit == 4
        assert config.bubble.prefer_left is False
        assert config.bubble.gap == 20.0
        assert config.llm.gigachat.max_tokens == 64
        assert config.llm.openai.max_tokens == 200

    def test_unknown_keys_are_reported(self, tmp_path, caplog):
        path = tmp_path / "config.yaml"
        path.write_text("bubble:\n  colour: red\n", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            load_config(path, environ={})

        assert "colour" in caplog.text

    def test_invalid_history_limit(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("history_limit: 0\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path, environ={})

    def test_default_system_prompt_uses_name(self):
        config = AppConfig(assistant_name="Клиппи")
        assert "Клиппи" in config.system_prompt


class TestEnvOverrides:
    """Tests for environment variable overrides."""

    def test_credentials_from_environment(self):
        config = apply_env_overrides(AppConfig(), {
            "GIGACHAT_API_KEY": "giga-key",
            "GIGACHAT_MODEL": "GigaChat-Pro",
            "GIGACHAT_TEMPERATURE": "0.3",
            "GIGACHAT_MAX_TOKENS": "128",
            "GOOGLE_CLOUD_API_KEY": "g-key",
            "GOOGLE_CLOUD_PROJECT_ID": "proj",
        })

        giga = config.llm.gigachat
        assert giga.api_key == "giga-key"
        assert giga.model == "GigaChat-Pro"
        assert giga.temperature == 0.3
        assert giga.max_tokens == 128
        assert config.tts.google_api_key == "g-key"
        assert config.tts.google_project_id == "proj"

    @pytest.mark.parametrize("env,expected", [
        ({"USE_OPENAI": "true", "OPENAI_API_KEY": "k"}, True),
        ({"USE_OPENAI": "1", "OPENAI_API_KEY": "k"}, True),
        ({"USE_OPENAI": "true"}, False),
        ({"USE_OPENAI": "false", "OPENAI_API_KEY": "k"}, False),
        ({"OPENAI_API_KEY": "k"}, False),
    ])
    def test_openai_needs_flag_and_key(self, env, expected):
        config = apply_env_overrides(AppConfig(), env)
        assert config.llm.use_openai is expected

    def test_invalid_number_is_ignored(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = apply_env_overrides(AppConfig(), {"GIGACHAT_TEMPERATURE": "warm"})
        assert config.llm.gigachat.temperature == 0.7
        assert "Ignoring invalid GigaChat setting" in caplog.text
