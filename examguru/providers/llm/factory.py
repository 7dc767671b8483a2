"""Provider registry and the process-level LLM runtime.

:class:`ProviderRegistry` maps a provider name (``"openai"``, ``"llama"``)
to a factory callable ``(LLMConfig) -> ILLMProvider``.  Registration is
last-writer-wins, so tests can inject a stub under a real name.

:class:`LLMRuntime` is the small application-context object the rest of the
app receives by injection.  It owns the registry, the resolved
:class:`LLMConfig` and the shared default provider instance.  ``initialize()``
is idempotent; concurrent callers await the same in-flight task, so
discovery and construction happen exactly once.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from examguru.config.loader import load_config
from examguru.config.settings import Settings
from examguru.interfaces.llm_provider import ILLMProvider
from examguru.models.llm import CompletionRequest, LLMConfig
from examguru.providers.llm.openai_provider import OpenAILLMProvider
from examguru.utils.errors import (
    ExamGuruError,
    LLMNotInitializedError,
    ProviderInitializationError,
    ProviderNotRegisteredError,
)
from examguru.utils.logging import get_logger

_logger = get_logger(__name__)

ProviderFactory = Callable[[LLMConfig], ILLMProvider]

_BUILTIN_PROVIDERS: dict[str, ProviderFactory] = {"openai": OpenAILLMProvider}


class ProviderRegistry:
    """Name -> factory mapping for LLM provider implementations.

    Parameters
    ----------
    config_loader:
        Callable used by :meth:`create` when no config is passed.
        Defaults to :func:`examguru.config.loader.load_config`.
    """

    def __init__(self, config_loader: Callable[[], LLMConfig] | None = None) -> None:
        self._factories: dict[str, ProviderFactory] = {}
        self._config_loader = config_loader or load_config

    def register(self, name: str, factory: ProviderFactory) -> None:
        """Record *factory* under *name*, replacing any earlier registration."""
        if name in self._factories:
            _logger.debug("provider_registration_replaced", provider=name)
        self._factories[name] = factory

    def is_registered(self, name: str) -> bool:
        return name in self._factories

    def list_providers(self) -> list[str]:
        """Return registered provider names, in registration order."""
        return list(self._factories)

    def create(self, config: LLMConfig | None = None) -> ILLMProvider:
        """Instantiate the provider named by ``config.provider``.

        Raises
        ------
        ProviderNotRegisteredError
            If no factory is registered under that name.
        ProviderInitializationError
            If the factory raises (e.g. missing credentials).
        """
        resolved = config or self._config_loader()
        factory = self._factories.get(resolved.provider)
        if factory is None:
            raise ProviderNotRegisteredError(resolved.provider)

        try:
            provider = factory(resolved)
        except Exception as exc:
            reason = exc.message if isinstance(exc, ExamGuruError) else str(exc)
            raise ProviderInitializationError(resolved.provider, reason) from exc

        _logger.info("provider_created", provider=resolved.provider, model=resolved.model_name)
        return provider

    def __len__(self) -> int:
        return len(self._factories)


def discover_providers(registry: ProviderRegistry) -> None:
    """Register the built-in, auto-discovered provider implementations.

    A name that is already registered keeps its explicit factory.  The
    self-hosted ``llama`` adapter is not discovered; whoever wires the
    application registers it explicitly.
    """
    for name, factory in _BUILTIN_PROVIDERS.items():
        if not registry.is_registered(name):
            registry.register(name, factory)


async def validate_provider(provider: ILLMProvider) -> bool:
    """Send a short test completion; ``True`` when the provider answers."""
    request = CompletionRequest(
        messages=[{"role": "user", "content": "Test message for provider validation"}],
        temperature=0.7,
        max_tokens=50,
    )
    try:
        response = await provider.complete(request)
    except ExamGuruError as exc:
        _logger.error("provider_validation_failed", provider=provider.get_provider_name(), error=str(exc))
        return False

    if not response.content:
        _logger.error(
            "provider_validation_failed",
            provider=provider.get_provider_name(),
            error="Provider returned empty content",
        )
        return False

    _logger.info("provider_validation_succeeded", provider=provider.get_provider_name())
    return True


class LLMRuntime:
    """Owns the provider registry, resolved config and default provider.

    Parameters
    ----------
    registry:
        Registry to populate and create from.  A fresh one is built when
        omitted.
    settings:
        Settings used to resolve configuration during :meth:`initialize`.
    config:
        Explicit configuration; skips :func:`load_config` entirely.
    """

    def __init__(
        self,
        registry: ProviderRegistry | None = None,
        settings: Settings | None = None,
        config: LLMConfig | None = None,
    ) -> None:
        self._settings = settings
        self._registry = registry or ProviderRegistry(config_loader=self._load_config)
        self._config = config
        self._default: ILLMProvider | None = None
        self._initialized = False
        self._init_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Discover providers and build the default instance, exactly once.

        A second caller arriving while the first is still running awaits the
        same task.  If initialization fails the marker is cleared, so a
        later call may retry.
        """
        if self._initialized:
            return
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
        task = self._init_task
        try:
            await asyncio.shield(task)
        except Exception:
            if task.done() and self._init_task is task and not self._initialized:
                self._init_task = None
            raise

    async def _initialize(self) -> None:
        _logger.info("llm_initializing")
        discover_providers(self._registry)

        if self._config is None:
            self._config = await asyncio.to_thread(self._load_config)

        self._default = self._registry.create(self._config)
        self._initialized = True
        _logger.info(
            "llm_initialized",
            provider=self._config.provider,
            registered=self._registry.list_providers(),
        )

    def _load_config(self) -> LLMConfig:
        return load_config(self._settings)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def config(self) -> LLMConfig:
        if self._config is None:
            raise LLMNotInitializedError()
        return self._config

    @property
    def default_provider(self) -> ILLMProvider:
        """Return the shared provider instance.

        Raises
        ------
        LLMNotInitializedError
            If :meth:`initialize` has not completed.
        """
        if not self._initialized or self._config is None:
            raise LLMNotInitializedError()
        if self._default is None:
            _logger.warning("default_provider_recreated", provider=self._config.provider)
            self._default = self._registry.create(self._config)
        return self._default

    def reset_default_provider(self) -> None:
        """Drop the cached instance; the next access rebuilds it."""
        self._default = None

    def create_provider(self, config: LLMConfig | None = None) -> ILLMProvider:
        """Build a new provider, using *config* as an explicit override."""
        return self._registry.create(config or self._config)

    def list_providers(self) -> list[str]:
        return self._registry.list_providers()
