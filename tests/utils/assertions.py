"""
Test Assertions
===============

Custom assertion helpers for parse and plan results.
"""

from typing import Any, Dict, List, Mapping

from templater.models.schemas import (
    ConstantVariable,
    ExecutionPlan,
    ParsedTemplate,
    ReferenceVariable,
)


def assert_constant(template: ParsedTemplate, name: str, value: str) -> None:
    """Assert that a variable is a constant with the given value."""
    variable = template.context.variables[name]
    assert isinstance(variable, ConstantVariable), f"${name} is not a constant"
    assert variable.value == value


def assert_reference(template: ParsedTemplate, name: str, service: str, field_key: str) -> None:
    """Assert that a variable references a service output field."""
    variable = template.context.variables[name]
    assert isinstance(variable, ReferenceVariable), f"${name} is not a reference"
    assert variable.service == service
    assert variable.field_key == field_key


def plan_levels(plan: ExecutionPlan) -> List[List[str]]:
    """Service names per level, in batch order."""
    return [level.service_names for level in plan.levels]


def plan_groups(plan: ExecutionPlan) -> List[Dict[str, List[str]]]:
    """Provider name to service names, per level."""
    return [
        {group.provider: [service.name for service in group.services] for group in level.groups}
        for level in plan.levels
    ]


def assert_values(values: Mapping[str, Any], **expected: Any) -> None:
    """Assert that a value record contains the expected entries."""
    for name, value in expected.items():
        assert name in values, f"${name} missing from value record"
        assert values[name] == value, f"${name} is {values[name]!r}, expected {value!r}"


def assert_unresolved(values: Mapping[str, Any], *names: str) -> None:
    """Assert that variables were never resolved."""
    for name in names:
        assert values.get(name) is None, f"${name} unexpectedly resolved to {values[name]!r}"
