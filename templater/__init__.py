"""
Templater
=========

Compiles a small declarative template language into a data-dependency graph,
resolves it by calling batched asynchronous providers level by level and
substitutes the resolved values into named views.

This package provides:
- A DSL parser producing variables, service instances and views
- A graph builder validating provider wiring and computing execution levels
- A leveled executor with batched provider calls and partial-failure handling
- A Jinja2-based view renderer
"""

from templater.core.dsl.parser import check_template, parse_template, validate_template_syntax
from templater.core.errors import (
    ArgumentTypingError,
    CyclicDependencyError,
    MissingWiringError,
    PlaceholderProviderError,
    RegistrationError,
    TemplateSyntaxError,
    TemplaterError,
    UnknownProviderError,
    WiringError,
)
from templater.core.graph.builder import build_plan
from templater.core.graph.executor import LeveledExecutor, execute
from templater.core.providers.registry import ProviderRegistry
from templater.core.rendering.view_renderer import ViewRenderer, render_view, render_views
from templater.pipeline import CompiledTemplate, compile_template

__version__ = "1.0.0"

__all__ = [
    "ArgumentTypingError",
    "CompiledTemplate",
    "CyclicDependencyError",
    "LeveledExecutor",
    "MissingWiringError",
    "PlaceholderProviderError",
    "ProviderRegistry",
    "RegistrationError",
    "TemplateSyntaxError",
    "TemplaterError",
    "UnknownProviderError",
    "ViewRenderer",
    "WiringError",
    "build_plan",
    "check_template",
    "compile_template",
    "execute",
    "parse_template",
    "render_view",
    "render_views",
    "validate_template_syntax",
]
