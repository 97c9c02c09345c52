"""
Provider Registry
=================

Registration of provider batch callbacks and their argument models.
A registry is mutable while it is being assembled; graph building works on an
immutable snapshot so that one registry can serve several templates.
"""

from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar
import re

from templater.config.logging import get_logger
from templater.core.errors import PlaceholderProviderError, RegistrationError
from templater.core.providers.argument_model import ArgumentModelInput, normalize_argument_model
from templater.models.schemas import ProviderSpec

logger = get_logger(__name__)

REGEXP_PROVIDER_NAME = re.compile(r"^[A-Z][A-Za-z0-9]*$")
REGEXP_ARGUMENT_NAME = re.compile(r"^[a-z][a-z_]*$")

# Reserved provider whose outputs are injected through runtime overrides
ARGUMENTS_PROVIDER = "Arguments"
SYSTEM_PROVIDERS = frozenset({ARGUMENTS_PROVIDER})

BatchCallback = Callable[[List[Dict[str, Any]]], Any]
F = TypeVar("F", bound=BatchCallback)


def is_system_provider(name: str) -> bool:
    return name in SYSTEM_PROVIDERS


async def _placeholder_callback(batch: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    raise PlaceholderProviderError(ARGUMENTS_PROVIDER)


def _system_providers() -> Dict[str, ProviderSpec]:
    return {
        ARGUMENTS_PROVIDER: ProviderSpec(
            name=ARGUMENTS_PROVIDER, callback=_placeholder_callback, reserved=True
        )
    }


class ProviderRegistry:
    """Named provider callbacks available to templates."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(component="registry")  # structlog.BoundLoggerBase
        self._providers: Dict[str, ProviderSpec] = {}

    def register(
        self,
        name: str,
        callback: BatchCallback,
        argument_model: Optional[ArgumentModelInput] = None,
    ) -> ProviderSpec:
        """
        Register a provider.

        Args:
            name: Provider name referenced by service instances
            callback: Batch callback, coroutine function or plain function
            argument_model: Optional mapping of argument name to allowed kinds

        Returns:
            The registered ProviderSpec

        Raises:
            RegistrationError: If the name is reserved or invalid, or the
                argument model is malformed
        """
        if is_system_provider(name):
            raise RegistrationError(f'provider "{name}" is a system provider and cannot be registered')
        if not REGEXP_PROVIDER_NAME.match(name):
            raise RegistrationError(f'invalid provider name "{name}"')
        if not callable(callback):
            raise RegistrationError(f'callback for provider "{name}" is not callable')

        try:
            model = normalize_argument_model(argument_model or {})
        except ValueError as e:
            raise RegistrationError(f'invalid argument model for provider "{name}": {e}') from e

        for argument in model:
            if not REGEXP_ARGUMENT_NAME.match(argument):
                raise RegistrationError(f'invalid argument name "{argument}" for provider "{name}"')

        if name in self._providers:
            self.logger.warning("Replacing registered provider", provider=name)

        spec = ProviderSpec(name=name, callback=callback, argument_model=model)
        self._providers[name] = spec
        self.logger.debug("Provider registered", provider=name, arguments=sorted(model))
        return spec

    def provider(
        self, name: str, argument_model: Optional[ArgumentModelInput] = None
    ) -> Callable[[F], F]:
        """Decorator form of :meth:`register`."""

        def decorator(callback: F) -> F:
            self.register(name, callback, argument_model)
            return callback

        return decorator

    def get(self, name: str) -> Optional[ProviderSpec]:
        if name in self._providers:
            return self._providers[name]
        return _system_providers().get(name)

    def snapshot(self) -> Mapping[str, ProviderSpec]:
        """Return an immutable view of registered and system providers."""
        providers = _system_providers()
        providers.update(self._providers)
        return MappingProxyType(providers)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and (name in self._providers or is_system_provider(name))

    def __len__(self) -> int:
        return len(self._providers)
