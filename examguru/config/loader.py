"""Layered LLM configuration loader.

Configuration is resolved in layers, highest priority first:

  1. Environment variables (``LLM_*``, read through :class:`Settings`)
  2. ``<LLM_CONFIG_DIR>/<provider>.json`` (or ``.yaml``), located by provider name
  3. Built-in defaults

A missing, unreadable or malformed provider file is logged and ignored.
Numeric environment values that do not parse are treated as absent and
fall through to the next layer.  :func:`load_config` never raises for
either condition.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from examguru.config.settings import Settings
from examguru.models.llm import LLMConfig, SystemPrompts
from examguru.utils.logging import get_logger

_logger = get_logger(__name__)

DEFAULT_PROVIDER = "openai"
DEFAULT_MODEL_NAME = "gpt-4o"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000

# camelCase keys accepted in provider files -> canonical snake_case
_OPTION_ALIASES = {"maxTokens": "max_tokens"}


def load_config(settings: Settings | None = None) -> LLMConfig:
    """Build one :class:`LLMConfig` from environment, provider file and defaults.

    Args:
        settings: Pre-built settings, mainly for tests.  A fresh
            :class:`Settings` is read from the environment when omitted.

    Returns:
        A fully resolved, immutable configuration.
    """
    s = settings or Settings()

    provider = s.llm_provider.strip() or DEFAULT_PROVIDER
    file_config = _read_provider_file(Path(s.llm_config_dir), provider)

    file_options = _normalise_options(file_config.get("options") or {})
    # Top-level temperature/maxTokens in the file are honoured as options.
    for key in ("temperature", "maxTokens", "max_tokens"):
        if key in file_config:
            file_options.setdefault(_OPTION_ALIASES.get(key, key), file_config[key])

    temperature = _first_number(
        (_parse_float(s.llm_temperature), _coerce_float(file_options.get("temperature"))),
        DEFAULT_TEMPERATURE,
    )
    max_tokens = _first_number(
        (_parse_int(s.llm_max_tokens), _coerce_int(file_options.get("max_tokens"))),
        DEFAULT_MAX_TOKENS,
    )

    options = {**file_options, "temperature": temperature, "max_tokens": max_tokens}

    config = LLMConfig(
        provider=provider,
        api_key=s.llm_api_key or _file_value(file_config, "apiKey", "api_key") or s.openai_api_key or None,
        api_endpoint=s.llm_api_endpoint
        or _file_value(file_config, "apiEndpoint", "api_endpoint")
        or None,
        model_name=s.llm_model_name
        or _file_value(file_config, "modelName", "model_name")
        or DEFAULT_MODEL_NAME,
        system_prompts=SystemPrompts.model_validate(
            _file_value(file_config, "systemPrompts", "system_prompts") or {}
        ),
        options=options,
    )

    _logger.info(
        "llm_config_loaded",
        provider=config.provider,
        model=config.model_name,
        has_api_key=bool(config.api_key),
        endpoint=config.api_endpoint,
        from_file=bool(file_config),
    )
    return config


# ---------------------------------------------------------------------------
# Provider file
# ---------------------------------------------------------------------------


def _read_provider_file(config_dir: Path, provider: str) -> dict[str, Any]:
    """Read ``<provider>.json`` (or ``.yaml``/``.yml``); ``{}`` when unusable."""
    for suffix in (".json", ".yaml", ".yml"):
        path = config_dir / f"{provider}{suffix}"
        if not path.is_file():
            continue
        try:
            text = path.read_text(encoding="utf-8")
            data = json.loads(text) if suffix == ".json" else yaml.safe_load(text)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
            _logger.warning("config_file_unreadable", path=str(path), error=str(exc))
            return {}
        if not isinstance(data, dict):
            _logger.warning("config_file_not_a_mapping", path=str(path))
            return {}
        _logger.debug("config_file_loaded", path=str(path))
        return data

    _logger.debug("config_file_missing", directory=str(config_dir), provider=provider)
    return {}


def _file_value(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key):
            return data[key]
    return None


def _normalise_options(options: Any) -> dict[str, Any]:
    if not isinstance(options, dict):
        return {}
    return {_OPTION_ALIASES.get(k, k): v for k, v in options.items()}


# ---------------------------------------------------------------------------
# Tolerant number parsing
# ---------------------------------------------------------------------------


def _parse_float(raw: str) -> float | None:
    try:
        return float(raw) if raw.strip() else None
    except ValueError:
        return None


def _parse_int(raw: str) -> int | None:
    try:
        return int(raw) if raw.strip() else None
    except ValueError:
        return None


def _coerce_float(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return _parse_float(value)
    return None


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return _parse_int(value)
    return None


def _first_number(
    candidates: tuple[float | int | None, ...], default: float | int
) -> float | int:
    for value in candidates:
        if value is not None:
            return value
    return default
