"""
Leveled Executor
================

Resolves an execution plan level by level. Every provider group of a level
is issued as one batched call and all groups of a level run concurrently;
the value record is updated only once a level has settled.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set
import asyncio
import inspect
import time

from templater.config.logging import get_logger
from templater.core.errors import (
    ArgumentTypingError,
    BatchSizeMismatchError,
    PlaceholderProviderError,
    ProviderError,
)
from templater.core.providers.argument_model import ArgumentModelValidator
from templater.models.schemas import (
    ExecutionPlan,
    ExecutionResult,
    FailureCascade,
    ProviderGroup,
    ProviderSpec,
    ServiceInstance,
    ValueRecord,
)

logger = get_logger(__name__)


class GroupStatus(str, Enum):
    """Outcome of one provider group call."""
    RESOLVED = "resolved"
    PLACEHOLDER = "placeholder"
    FAILED = "failed"


@dataclass
class GroupOutcome:
    status: GroupStatus
    updates: Dict[str, Any] = field(default_factory=dict)
    error: Optional[BaseException] = None


class LeveledExecutor:
    """Executes one ExecutionPlan; reusable across runs."""

    def __init__(self, plan: ExecutionPlan) -> None:
        self.logger: Any = logger.bind(component="executor")  # structlog.BoundLoggerBase
        self.plan = plan
        self._validators: Dict[str, ArgumentModelValidator] = {
            name: ArgumentModelValidator(spec.argument_model)
            for name, spec in plan.providers.items()
            if spec.argument_model
        }

    async def run(self, overrides: Optional[Mapping[str, Any]] = None) -> ExecutionResult:
        """
        Resolve all service instances of the plan.

        Args:
            overrides: Variable values that take precedence over constants
                and provider outputs

        Returns:
            ExecutionResult with the value record and per-service outcomes

        Raises:
            ArgumentTypingError: If an argument record does not match its
                provider's argument model
        """
        start_time = time.time()
        overrides = dict(overrides or {})

        values: Dict[str, Any] = dict(self.plan.constants)
        values.update(overrides)

        pruned: Set[str] = set()
        failed: List[str] = []
        skipped: List[str] = []
        levels_executed = 0

        for level in self.plan.levels:
            groups = self._candidate_groups(level.groups, pruned, skipped)
            if not groups:
                self.logger.debug("No candidates left, stopping", level=level.index)
                break

            levels_executed += 1
            outcomes = await self._run_level(level.index, groups, dict(values))

            for group, outcome in zip(groups, outcomes):
                names = [service.name for service in group.services]
                if outcome.status == GroupStatus.RESOLVED:
                    for name, value in outcome.updates.items():
                        if name not in overrides:
                            values[name] = value
                elif outcome.status == GroupStatus.PLACEHOLDER:
                    skipped.extend(names)
                else:
                    failed.extend(names)
                    pruned.update(self._dependents(names))

        result = ExecutionResult(
            values=values,
            failed_services=list(dict.fromkeys(failed)),
            skipped_services=list(dict.fromkeys(skipped)),
            levels_executed=levels_executed,
            processing_time=time.time() - start_time,
        )
        self.logger.info(
            "Execution completed",
            levels=levels_executed,
            failed=result.failed_services,
            skipped=result.skipped_services,
            processing_time=result.processing_time,
        )
        return result

    def _candidate_groups(
        self, groups: Iterable[ProviderGroup], pruned: Set[str], skipped: List[str]
    ) -> List[ProviderGroup]:
        candidates: List[ProviderGroup] = []
        for group in groups:
            services = []
            for service in group.services:
                if service.name in pruned:
                    skipped.append(service.name)
                else:
                    services.append(service)
            if services:
                candidates.append(ProviderGroup(provider=group.provider, services=tuple(services)))
        return candidates

    def _dependents(self, names: Iterable[str]) -> Set[str]:
        """Services pruned after ``names`` failed, according to the plan's cascade policy."""
        children = self.plan.children
        dependents: Set[str] = set()
        frontier = [child for name in names for child in children.get(name, ())]
        transitive = self.plan.policy.failure_cascade == FailureCascade.TRANSITIVE

        while frontier:
            name = frontier.pop()
            if name in dependents:
                continue
            dependents.add(name)
            if transitive:
                frontier.extend(children.get(name, ()))
        return dependents

    async def _run_level(
        self, index: int, groups: List[ProviderGroup], snapshot: ValueRecord
    ) -> List[GroupOutcome]:
        self.logger.debug(
            "Executing level",
            level=index,
            groups={group.provider: len(group.services) for group in groups},
        )
        tasks = [asyncio.ensure_future(self._run_group(group, snapshot)) for group in groups]
        try:
            return list(await asyncio.gather(*tasks))
        except ArgumentTypingError:
            # Sibling results are discarded once the run is aborted
            for task in tasks:
                task.cancel()
            raise

    async def _run_group(self, group: ProviderGroup, snapshot: ValueRecord) -> GroupOutcome:
        spec = self.plan.providers[group.provider]
        batch = [self._build_arguments(service, snapshot) for service in group.services]

        validator = self._validators.get(group.provider)
        if validator is not None:
            for service, arguments in zip(group.services, batch):
                errors = validator.validate(arguments)
                if errors:
                    self.logger.error(
                        "Argument typing failed",
                        provider=group.provider,
                        service=service.name,
                        errors=errors,
                    )
                    raise ArgumentTypingError(group.provider, service.name, errors)

        try:
            records = await self._invoke(spec, batch)
        except ArgumentTypingError:
            raise
        except PlaceholderProviderError:
            self.logger.debug(
                "Placeholder provider skipped",
                provider=group.provider,
                services=[service.name for service in group.services],
            )
            return GroupOutcome(status=GroupStatus.PLACEHOLDER)
        except Exception as e:
            self.logger.warning(
                "Provider group failed",
                provider=group.provider,
                services=[service.name for service in group.services],
                error=str(e),
                error_type=type(e).__name__,
            )
            return GroupOutcome(status=GroupStatus.FAILED, error=e)

        return GroupOutcome(
            status=GroupStatus.RESOLVED, updates=self._map_outputs(group.services, records)
        )

    @staticmethod
    def _build_arguments(service: ServiceInstance, snapshot: ValueRecord) -> Dict[str, Any]:
        return {
            dependency.argument: snapshot.get(dependency.variable)
            for dependency in service.dependencies
        }

    async def _invoke(
        self, spec: ProviderSpec, batch: List[Dict[str, Any]]
    ) -> Sequence[Mapping[str, Any]]:
        """Call a provider once for the whole batch and check the shape of its result."""
        result = spec.callback(batch)
        if inspect.isawaitable(result):
            result = await result

        if isinstance(result, (str, bytes)) or not isinstance(result, Sequence):
            raise ProviderError(
                f'provider "{spec.name}" returned {type(result).__name__}, expected a sequence of records'
            )
        if len(result) != len(batch):
            raise BatchSizeMismatchError(spec.name, len(batch), len(result))
        for record in result:
            if not isinstance(record, Mapping):
                raise ProviderError(
                    f'provider "{spec.name}" returned a {type(record).__name__} record, expected a mapping'
                )
        return result

    def _map_outputs(
        self, services: Sequence[ServiceInstance], records: Sequence[Mapping[str, Any]]
    ) -> Dict[str, Any]:
        updates: Dict[str, Any] = {}
        for service, record in zip(services, records):
            for field_key, names in self.plan.field_mappings.get(service.name, {}).items():
                value = record.get(field_key)
                for name in names:
                    updates[name] = value
        return updates


async def execute(plan: ExecutionPlan, overrides: Optional[Mapping[str, Any]] = None) -> ValueRecord:
    """
    Execute a plan and return its value record.

    Args:
        plan: Execution plan built by the graph builder
        overrides: Variable values injected by the caller

    Returns:
        Mapping of variable name to resolved value
    """
    result = await LeveledExecutor(plan).run(overrides)
    return result.values
