"""
Argument Models
===============

Structural validation of provider argument records. Each value kind maps to
one Cerberus rule; an argument model allows one or more kinds per argument.
"""

from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Union

from cerberus import Validator  # type: ignore[import-untyped]

from templater.models.schemas import ValueKind

ArgumentModel = Dict[str, FrozenSet[ValueKind]]
ArgumentModelInput = Mapping[str, Union[str, ValueKind, Iterable[Union[str, ValueKind]]]]

KIND_RULES: Dict[ValueKind, Dict[str, Any]] = {
    ValueKind.STRING: {"type": "string"},
    ValueKind.STRING_ARRAY: {"type": "list", "schema": {"type": "string"}},
}


def normalize_argument_model(model: ArgumentModelInput) -> ArgumentModel:
    """
    Normalize a user supplied argument model.

    Args:
        model: Mapping of argument name to a kind or an iterable of kinds

    Returns:
        Mapping of argument name to a frozen set of ValueKind

    Raises:
        ValueError: If a kind is unknown or an argument allows no kind
    """
    normalized: ArgumentModel = {}
    for argument, kinds in model.items():
        if isinstance(kinds, (str, ValueKind)):
            kinds = [kinds]
        allowed = frozenset(ValueKind(kind) for kind in kinds)
        if not allowed:
            raise ValueError(f'argument "{argument}" must allow at least one value kind')
        normalized[argument] = allowed
    return normalized


def kind_rule(kinds: FrozenSet[ValueKind]) -> Dict[str, Any]:
    """Build the Cerberus rule for an argument accepting ``kinds``."""
    # Sorted so that error messages are stable
    ordered = sorted(kinds, key=lambda kind: kind.value)
    rule: Dict[str, Any] = {"required": True, "nullable": False}
    if len(ordered) == 1:
        rule.update(KIND_RULES[ordered[0]])
    else:
        rule["anyof"] = [KIND_RULES[kind] for kind in ordered]
    return rule


class ArgumentModelValidator:
    """Validates argument records against a provider argument model."""

    def __init__(self, model: ArgumentModel) -> None:
        self.model = model
        self.schema = {argument: kind_rule(kinds) for argument, kinds in model.items()}
        self._validator = Validator(self.schema)  # type: ignore[misc]
        # Arguments outside the model are passed through
        self._validator.allow_unknown = True  # type: ignore[attr-defined]

    def validate(self, record: Mapping[str, Any]) -> Dict[str, List[Any]]:
        """
        Validate one argument record.

        Args:
            record: Argument name to resolved value

        Returns:
            Cerberus error map, empty when the record is valid
        """
        if not self.model:
            return {}
        if self._validator.validate(dict(record)):  # type: ignore[misc]
            return {}
        return dict(self._validator.errors)  # type: ignore[attr-defined]
