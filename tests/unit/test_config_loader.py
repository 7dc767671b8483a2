"""Unit tests for Settings and the layered LLM configuration loader."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from examguru.config.loader import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL_NAME,
    DEFAULT_TEMPERATURE,
    load_config,
)
from examguru.config.settings import Settings


def _settings(config_dir: Path, **overrides: str) -> Settings:
    """Settings with every LLM field pinned, so the host environment cannot leak in."""
    values = {
        "llm_provider": "",
        "llm_model_name": "",
        "llm_api_key": "",
        "llm_api_endpoint": "",
        "llm_temperature": "",
        "llm_max_tokens": "",
        "llm_config_dir": str(config_dir),
        "openai_api_key": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _write_json(config_dir: Path, name: str, data: object) -> None:
    (config_dir / f"{name}.json").write_text(json.dumps(data), encoding="utf-8")


class TestDefaults:
    def test_nothing_configured_uses_builtin_defaults(self, tmp_path: Path) -> None:
        config = load_config(_settings(tmp_path))

        assert config.provider == "openai"
        assert config.model_name == DEFAULT_MODEL_NAME == "gpt-4o"
        assert config.temperature == DEFAULT_TEMPERATURE == 0.7
        assert config.max_tokens == DEFAULT_MAX_TOKENS == 2000
        assert config.api_key is None
        assert config.api_endpoint is None

    def test_missing_config_dir_is_not_an_error(self, tmp_path: Path) -> None:
        config = load_config(_settings(tmp_path / "does-not-exist"))
        assert config.model_name == "gpt-4o"

    def test_config_is_frozen(self, tmp_path: Path) -> None:
        config = load_config(_settings(tmp_path))
        with pytest.raises(ValidationError):
            config.provider = "llama"  # type: ignore[misc]


class TestPrecedence:
    def test_file_values_override_defaults(self, tmp_path: Path) -> None:
        _write_json(
            tmp_path,
            "openai",
            {"modelName": "gpt-4o-mini", "options": {"temperature": 0.5, "maxTokens": 1000}},
        )

        config = load_config(_settings(tmp_path))

        assert config.model_name == "gpt-4o-mini"
        assert config.temperature == 0.5
        assert config.max_tokens == 1000
        assert "maxTokens" not in config.options

    def test_environment_overrides_file(self, tmp_path: Path) -> None:
        _write_json(tmp_path, "openai", {"options": {"temperature": 0.5}})

        config = load_config(_settings(tmp_path, llm_temperature="0.9", llm_model_name="gpt-4.1"))

        assert config.temperature == 0.9
        assert config.model_name == "gpt-4.1"

    def test_unparseable_env_number_falls_through_to_file(self, tmp_path: Path) -> None:
        _write_json(tmp_path, "openai", {"options": {"temperature": 0.5, "maxTokens": 800}})

        config = load_config(_settings(tmp_path, llm_temperature="warm", llm_max_tokens="lots"))

        assert config.temperature == 0.5
        assert config.max_tokens == 800

    def test_unparseable_env_number_falls_through_to_default(self, tmp_path: Path) -> None:
        config = load_config(_settings(tmp_path, llm_temperature="warm"))
        assert config.temperature == 0.7

    def test_top_level_file_sampling_keys_are_options(self, tmp_path: Path) -> None:
        _write_json(tmp_path, "openai", {"temperature": 0.2, "maxTokens": 300})

        config = load_config(_settings(tmp_path))

        assert config.temperature == 0.2
        assert config.max_tokens == 300

    def test_api_key_falls_back_to_openai_key(self, tmp_path: Path) -> None:
        config = load_config(_settings(tmp_path, openai_api_key="sk-legacy"))
        assert config.api_key == "sk-legacy"

    def test_llm_api_key_wins_over_openai_key(self, tmp_path: Path) -> None:
        config = load_config(_settings(tmp_path, llm_api_key="sk-new", openai_api_key="sk-legacy"))
        assert config.api_key == "sk-new"


class TestProviderFile:
    def test_file_is_located_by_provider_name(self, tmp_path: Path) -> None:
        _write_json(tmp_path, "openai", {"modelName": "wrong"})
        _write_json(tmp_path, "llama", {"modelName": "llama-3", "apiEndpoint": "http://gpu:8000/v1/chat"})

        config = load_config(_settings(tmp_path, llm_provider="llama"))

        assert config.provider == "llama"
        assert config.model_name == "llama-3"
        assert config.api_endpoint == "http://gpu:8000/v1/chat"

    def test_yaml_file_is_used_when_no_json(self, tmp_path: Path) -> None:
        (tmp_path / "llama.yaml").write_text(
            "modelName: llama-3-8b\noptions:\n  temperature: 0.4\n  timeout: 120\n",
            encoding="utf-8",
        )

        config = load_config(_settings(tmp_path, llm_provider="llama"))

        assert config.model_name == "llama-3-8b"
        assert config.temperature == 0.4
        assert config.options["timeout"] == 120

    def test_malformed_file_is_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "openai.json").write_text("{not json", encoding="utf-8")

        config = load_config(_settings(tmp_path))

        assert config.model_name == "gpt-4o"
        assert config.temperature == 0.7

    def test_non_mapping_file_is_ignored(self, tmp_path: Path) -> None:
        _write_json(tmp_path, "openai", ["not", "a", "mapping"])
        config = load_config(_settings(tmp_path))
        assert config.max_tokens == 2000

    def test_system_prompts_resolve_by_context(self, tmp_path: Path) -> None:
        _write_json(
            tmp_path,
            "openai",
            {"systemPrompts": {"default": "Be helpful.", "tutoring": "Be a patient tutor."}},
        )

        prompts = load_config(_settings(tmp_path)).system_prompts

        assert prompts.for_context("tutoring") == "Be a patient tutor."
        assert prompts.for_context("questionGeneration") == "Be helpful."
        assert prompts.for_context(None) == "Be helpful."
