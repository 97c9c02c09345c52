"""
Graph Builder
=============

Statically validates a resolution context against a provider registry and
compiles it into a level-ordered execution plan.
"""

from collections import deque
from typing import Dict, List, Mapping, Optional, Set, Tuple, Union
import time

from templater.config.logging import get_logger
from templater.config.settings import get_settings
from templater.core.errors import (
    CyclicDependencyError,
    MissingWiringError,
    UnknownProviderError,
    UnknownServiceError,
)
from templater.core.providers.registry import ProviderRegistry
from templater.models.schemas import (
    ExecutionLevel,
    ExecutionPlan,
    ExecutionPolicy,
    LevelStrategy,
    ProviderGroup,
    ProviderSpec,
    ResolutionContext,
    ServiceInstance,
)

logger = get_logger(__name__)

Providers = Union[ProviderRegistry, Mapping[str, ProviderSpec]]


class GraphBuilder:
    """Compiles one resolution context into an ExecutionPlan."""

    def __init__(
        self,
        context: ResolutionContext,
        providers: Providers,
        policy: Optional[ExecutionPolicy] = None,
    ) -> None:
        self.logger = logger.bind(component="graph_builder")
        self.context = context
        self.providers: Mapping[str, ProviderSpec] = (
            providers.snapshot() if isinstance(providers, ProviderRegistry) else providers
        )
        self.policy = policy or ExecutionPolicy.from_settings(get_settings())

    def build(self) -> ExecutionPlan:
        """
        Validate the context and compute the execution plan.

        Returns:
            ExecutionPlan

        Raises:
            UnknownProviderError: If a service uses an unregistered provider
            UnknownServiceError: If a reference names an undeclared service
            MissingWiringError: If a declared provider argument is never supplied
            CyclicDependencyError: If service instances depend on each other cyclically
        """
        start_time = time.time()

        self._validate_providers()
        self._validate_references()
        self._validate_wiring()

        parents = self._calculate_parents()
        children = self._calculate_children(parents)
        roots = [name for name, service_parents in parents.items() if not service_parents]
        ranks = self._calculate_ranks(parents, children, roots)

        if self.policy.level_strategy == LevelStrategy.SINGLE_HOP:
            levels = self._calculate_levels_single_hop(roots, children)
        else:
            levels = self._calculate_levels_longest_path(ranks)

        plan = ExecutionPlan(
            levels=tuple(self._group_level(index, names) for index, names in enumerate(levels)),
            constants=self.context.constants(),
            field_mappings=self._calculate_field_mappings(),
            children={name: tuple(service_children) for name, service_children in children.items()},
            providers=dict(self.providers),
            policy=self.policy,
        )

        self.logger.info(
            "Execution plan built",
            services=len(self.context.services),
            roots=len(roots),
            levels=len(plan.levels),
            strategy=self.policy.level_strategy.value,
            build_time=time.time() - start_time,
        )
        return plan

    # Validation

    def _validate_providers(self) -> None:
        for service in self.context.services.values():
            if service.provider not in self.providers:
                raise UnknownProviderError(service.name, service.provider)

    def _validate_references(self) -> None:
        for name, variable in self.context.reference_variables().items():
            if variable.service not in self.context.services:
                raise UnknownServiceError(name, variable.service)

    def _validate_wiring(self) -> None:
        """Every argument of a provider model must be supplied by some instance of that provider."""
        supplied: Dict[str, Set[str]] = {}
        for service in self.context.services.values():
            arguments = supplied.setdefault(service.provider, set())
            arguments.update(dependency.argument for dependency in service.dependencies)

        if self.policy.check_unused_providers:
            checked = [name for name, spec in self.providers.items() if not spec.reserved]
        else:
            checked = list(supplied)

        for provider_name in checked:
            arguments = supplied.get(provider_name, set())
            for argument in self.providers[provider_name].argument_model:
                if argument not in arguments:
                    raise MissingWiringError(provider_name, argument)

    # Graph

    def _calculate_parents(self) -> Dict[str, List[str]]:
        """Map every service to the services producing its reference arguments."""
        references = self.context.reference_variables()
        parents: Dict[str, List[str]] = {}
        for name, service in self.context.services.items():
            service_parents: List[str] = []
            for dependency in service.dependencies:
                variable = references.get(dependency.variable)
                if variable is not None and variable.service not in service_parents:
                    service_parents.append(variable.service)
            parents[name] = service_parents
        return parents

    def _calculate_children(self, parents: Dict[str, List[str]]) -> Dict[str, List[str]]:
        children: Dict[str, List[str]] = {name: [] for name in self.context.services}
        for name, service_parents in parents.items():
            for parent in service_parents:
                children[parent].append(name)
        return children

    def _calculate_ranks(
        self,
        parents: Dict[str, List[str]],
        children: Dict[str, List[str]],
        roots: List[str],
    ) -> Dict[str, int]:
        """Longest-path rank of every service, detecting cycles on the way."""
        pending = {name: len(service_parents) for name, service_parents in parents.items()}
        ranks = {name: 0 for name in roots}
        queue = deque(roots)

        while queue:
            name = queue.popleft()
            for child in children[name]:
                ranks[child] = max(ranks.get(child, 0), ranks[name] + 1)
                pending[child] -= 1
                if pending[child] == 0:
                    queue.append(child)

        unresolved = [name for name, count in pending.items() if count > 0]
        if unresolved:
            raise CyclicDependencyError(unresolved)
        return ranks

    def _calculate_levels_longest_path(self, ranks: Dict[str, int]) -> List[List[str]]:
        levels: List[List[str]] = [[] for _ in range(max(ranks.values(), default=-1) + 1)]
        # Declaration order within each level
        for name in self.context.services:
            levels[ranks[name]].append(name)
        return levels

    def _calculate_levels_single_hop(
        self, roots: List[str], children: Dict[str, List[str]]
    ) -> List[List[str]]:
        """Breadth-first levels: each level holds the children of the previous one."""
        levels: List[List[str]] = []
        frontier = roots
        while frontier:
            levels.append(frontier)
            next_frontier: List[str] = []
            for name in frontier:
                for child in children[name]:
                    if child not in next_frontier:
                        next_frontier.append(child)
            order = list(self.context.services)
            frontier = sorted(next_frontier, key=order.index)
        return levels

    def _group_level(self, index: int, names: List[str]) -> ExecutionLevel:
        grouped: Dict[str, List[ServiceInstance]] = {}
        for name in names:
            service = self.context.services[name]
            grouped.setdefault(service.provider, []).append(service)
        return ExecutionLevel(
            index=index,
            groups=tuple(
                ProviderGroup(provider=provider, services=tuple(services))
                for provider, services in grouped.items()
            ),
        )

    def _calculate_field_mappings(self) -> Dict[str, Dict[str, Tuple[str, ...]]]:
        """Map service -> output field -> variables populated from that field."""
        mappings: Dict[str, Dict[str, List[str]]] = {}
        for name, variable in self.context.reference_variables().items():
            fields = mappings.setdefault(variable.service, {})
            fields.setdefault(variable.field_key, []).append(name)
        return {
            service: {field_key: tuple(names) for field_key, names in fields.items()}
            for service, fields in mappings.items()
        }


def build_plan(
    context: ResolutionContext,
    providers: Providers,
    policy: Optional[ExecutionPolicy] = None,
) -> ExecutionPlan:
    """
    Build an execution plan.

    Args:
        context: Resolution context produced by the parser
        providers: Provider registry or a snapshot of it
        policy: Scheduling policy, defaults to the configured settings

    Returns:
        ExecutionPlan
    """
    return GraphBuilder(context, providers, policy).build()
