"""LLM provider adapters, registry and runtime.

Concrete implementations of ILLMProvider (examguru/interfaces/llm_provider.py):
    - OpenAILLMProvider: chat completions + image generation (OpenAI or compatible)
    - LlamaLLMProvider: completion-only, self-hosted chat-completions endpoint

The registry/runtime in ``factory.py`` turns a configured provider name into
a shared instance; ``main.py`` builds one runtime per application and injects
its default provider into the services.
"""

from examguru.providers.llm.factory import LLMRuntime, ProviderRegistry, discover_providers, validate_provider
from examguru.providers.llm.llama_provider import LlamaLLMProvider
from examguru.providers.llm.openai_provider import OpenAILLMProvider

__all__ = [
    "LLMRuntime",
    "LlamaLLMProvider",
    "OpenAILLMProvider",
    "ProviderRegistry",
    "discover_providers",
    "validate_provider",
]
