"""
Templater Errors
================

Exception hierarchy shared by the parser, graph builder, executor and renderer.
"""

from typing import Any, Dict, Iterable, Optional


class TemplaterError(Exception):
    """Base class for all templater errors."""

    pass


class TemplateSyntaxError(TemplaterError):
    """Exception raised when template text violates the DSL grammar."""

    def __init__(self, message: str, line: Optional[int] = None) -> None:
        self.message = message
        self.line = line
        super().__init__(f"{message} (line {line})" if line is not None else message)


class RegistrationError(TemplaterError):
    """Exception raised when a provider cannot be registered."""

    pass


# Wiring errors (graph-build time)
class WiringError(TemplaterError):
    """Exception raised when a resolution context cannot be compiled into a plan."""

    pass


class UnknownProviderError(WiringError):
    """A service instance names a provider that is not registered."""

    def __init__(self, service: str, provider: str) -> None:
        self.service = service
        self.provider = provider
        super().__init__(f'service "@{service}" uses provider "{provider}" which has no implementation')


class UnknownServiceError(WiringError):
    """A reference variable names a service instance that is not declared."""

    def __init__(self, variable: str, service: str) -> None:
        self.variable = variable
        self.service = service
        super().__init__(f'variable "${variable}" references undeclared service "@{service}"')


class MissingWiringError(WiringError):
    """A provider argument is declared but never supplied."""

    def __init__(self, provider: str, argument: str) -> None:
        self.provider = provider
        self.argument = argument
        super().__init__(
            f'argument "{argument}" of provider "{provider}" is not supplied by any service instance'
        )


class CyclicDependencyError(WiringError):
    """Service instances depend on each other in a cycle."""

    def __init__(self, services: Iterable[str]) -> None:
        self.services = sorted(services)
        names = ", ".join(f"@{name}" for name in self.services)
        super().__init__(f"dependency cycle detected among services: {names}")


# Execution errors
class ArgumentTypingError(TemplaterError):
    """A resolved argument does not match its provider's argument model."""

    def __init__(self, provider: str, service: str, errors: Dict[str, Any]) -> None:
        self.provider = provider
        self.service = service
        self.errors = errors
        details = "; ".join(f"{argument}: {error}" for argument, error in sorted(errors.items()))
        super().__init__(
            f'arguments of service "@{service}" do not match provider "{provider}" - {details}'
        )


class ProviderError(TemplaterError):
    """A provider batch call produced an unusable result."""

    pass


class BatchSizeMismatchError(ProviderError):
    """A provider returned a batch whose length differs from its input."""

    def __init__(self, provider: str, expected: int, actual: int) -> None:
        self.provider = provider
        self.expected = expected
        self.actual = actual
        super().__init__(
            f'provider "{provider}" returned {actual} records for a batch of {expected}'
        )


class PlaceholderProviderError(TemplaterError):
    """A reserved provider was invoked; its outputs only come from overrides."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f'provider "{provider}" is satisfied only by runtime overrides')


# Rendering errors
class RenderError(TemplaterError):
    """Exception raised when a view cannot be rendered."""

    pass


class UnknownViewError(RenderError):
    """A requested view is not defined by the template."""

    def __init__(self, view: str) -> None:
        self.view = view
        super().__init__(f'view "{view}" is not defined')
