"""
Template Pipeline
=================

Wires the parser, graph builder, executor and renderer together: a template
is compiled once against a provider registry and then resolved or rendered
any number of times with different runtime overrides.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from templater.config.logging import get_logger
from templater.core.dsl.parser import parse_template
from templater.core.graph.builder import Providers, build_plan
from templater.core.graph.executor import LeveledExecutor
from templater.core.rendering.view_renderer import RenderFunction, render_views
from templater.models.schemas import (
    ExecutionPlan,
    ExecutionPolicy,
    ExecutionResult,
    ParsedTemplate,
    ValueRecord,
)

logger = get_logger(__name__)


class CompiledTemplate:
    """A parsed template bound to an execution plan."""

    def __init__(self, template: ParsedTemplate, plan: ExecutionPlan) -> None:
        self.template = template
        self.plan = plan
        self._executor = LeveledExecutor(plan)

    @property
    def view_names(self) -> List[str]:
        return list(self.template.views)

    async def run(self, overrides: Optional[Mapping[str, Any]] = None) -> ExecutionResult:
        return await self._executor.run(overrides)

    async def resolve(self, overrides: Optional[Mapping[str, Any]] = None) -> ValueRecord:
        """Resolve the value record for one set of overrides."""
        result = await self._executor.run(overrides)
        return result.values

    async def render(
        self,
        overrides: Optional[Mapping[str, Any]] = None,
        views: Optional[Union[str, Iterable[str]]] = None,
        renderer: Optional[RenderFunction] = None,
    ) -> Dict[str, str]:
        """
        Resolve values and render views.

        Args:
            overrides: Variable values injected by the caller
            views: View name or names to render, all views when omitted
            renderer: Optional replacement render function

        Returns:
            Mapping of view name to rendered text
        """
        if isinstance(views, str):
            views = [views]
        values = await self.resolve(overrides)
        return render_views(self.template, values, names=views, renderer=renderer)


def compile_template(
    text: str, providers: Providers, policy: Optional[ExecutionPolicy] = None
) -> CompiledTemplate:
    """
    Parse template text and build its execution plan.

    Args:
        text: Raw template text
        providers: Provider registry or a snapshot of it
        policy: Scheduling policy, defaults to the configured settings

    Returns:
        CompiledTemplate
    """
    template = parse_template(text)
    plan = build_plan(template.context, providers, policy)
    logger.info("Template compiled", views=list(template.views), levels=len(plan.levels))
    return CompiledTemplate(template, plan)
