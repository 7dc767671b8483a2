"""Application settings loaded from environment variables via pydantic-settings.

Two sources are read, highest priority first:

  1. Environment variables, e.g. ``LLM_PROVIDER=openai``
  2. A ``.env`` file in the working directory (local development)

Field ``llm_provider`` maps to env var ``LLM_PROVIDER`` and so on.

``llm_temperature`` and ``llm_max_tokens`` are kept as raw strings: a value
that does not parse as a number must fall through to the next configuration
layer instead of failing validation at startup.  See
:func:`examguru.config.loader.load_config`.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """ExamGuru application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === LLM ===
    # Empty string means "not set" so the provider config file and the
    # built-in defaults get a chance to supply the value.
    llm_provider: str = ""
    llm_model_name: str = ""
    llm_api_key: str = ""
    llm_api_endpoint: str = ""
    llm_temperature: str = ""
    llm_max_tokens: str = ""
    llm_config_dir: str = "config/llm"
    openai_api_key: str = ""  # legacy fallback for LLM_API_KEY

    # === Sharing ===
    share_ttl_seconds: int = 7 * 24 * 60 * 60
    share_max_entries: int = 10000

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 5000
    app_env: str = "development"
    log_level: str = "INFO"
