"""Configuration module: exports Settings and the layered LLM config loader."""

from examguru.config.loader import load_config
from examguru.config.settings import Settings

__all__ = ["Settings", "load_config"]
