"""
Pydantic Models and Schemas
===========================

Core data models for parsed templates, provider specifications, execution
plans and execution results. Models produced at parse or build time are frozen.
"""

from typing import Annotated, Any, Callable, Dict, FrozenSet, List, Literal, Optional, Tuple, Union
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# Resolved values: a string, an array of strings, or None when never resolved
Value = Optional[Union[str, List[str]]]
ValueRecord = Dict[str, Value]


# Enums
class RenderMode(str, Enum):
    """How a view's text is rendered."""
    HTML = "html"
    TEXT = "text"


class ValueKind(str, Enum):
    """Value kinds accepted by provider argument models."""
    STRING = "string"
    STRING_ARRAY = "string[]"


class LevelStrategy(str, Enum):
    """Level assignment algorithm used by the graph builder."""
    LONGEST_PATH = "longest_path"
    SINGLE_HOP = "single_hop"


class FailureCascade(str, Enum):
    """Dependents pruned after an isolated provider failure."""
    DIRECT = "direct"
    TRANSITIVE = "transitive"


# Template Models
class ConstantVariable(BaseModel):
    """Variable bound to a string literal."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["const"] = "const"
    value: str = Field(..., description="Literal value")


class ReferenceVariable(BaseModel):
    """Variable bound to an output field of a service instance."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["ref"] = "ref"
    service: str = Field(..., description="Name of the producing service instance")
    field_key: str = Field(..., description="Output field extracted from the provider result")


Variable = Annotated[Union[ConstantVariable, ReferenceVariable], Field(discriminator="kind")]


class Dependency(BaseModel):
    """Provider argument fed from a template variable."""
    model_config = ConfigDict(frozen=True)

    argument: str = Field(..., description="Argument name passed to the provider")
    variable: str = Field(..., description="Variable supplying the argument value")


class ServiceInstance(BaseModel):
    """Named node invoking a provider with variable-sourced arguments."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Service instance name, without the @ sigil")
    provider: str = Field(..., description="Registered provider name")
    dependencies: Tuple[Dependency, ...] = Field(default_factory=tuple)


class ResolutionContext(BaseModel):
    """Variable and service instance tables produced by the parser."""
    model_config = ConfigDict(frozen=True)

    variables: Dict[str, Variable] = Field(default_factory=dict)
    services: Dict[str, ServiceInstance] = Field(default_factory=dict)

    def reference_variables(self) -> Dict[str, ReferenceVariable]:
        """Return the Reference-typed variables keyed by name."""
        return {
            name: variable
            for name, variable in self.variables.items()
            if isinstance(variable, ReferenceVariable)
        }

    def constants(self) -> Dict[str, str]:
        """Return the Constant-typed variable values keyed by name."""
        return {
            name: variable.value
            for name, variable in self.variables.items()
            if isinstance(variable, ConstantVariable)
        }


class ViewTemplate(BaseModel):
    """A named view region and its raw text."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="View name")
    mode: RenderMode = Field(RenderMode.HTML, description="Render mode")
    text: str = Field("", description="Raw view text")
    line: int = Field(0, ge=0, description="Physical line of the view header")


class ParsedTemplate(BaseModel):
    """Parser output: views plus the resolution context."""
    model_config = ConfigDict(frozen=True)

    views: Dict[str, ViewTemplate] = Field(default_factory=dict)
    context: ResolutionContext = Field(default_factory=ResolutionContext)


# Parsing Results
class ParseResult(BaseModel):
    """Result of a non-raising template check."""
    success: bool = Field(..., description="Whether parsing succeeded")
    template: Optional[ParsedTemplate] = Field(None, description="Parsed template")
    errors: List[str] = Field(default_factory=list, description="Parsing errors")
    processing_time: Optional[float] = Field(None, description="Parsing time in seconds")


# Provider Models
class ProviderSpec(BaseModel):
    """A registered provider: batch callback plus argument model."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., description="Provider name")
    callback: Callable[..., Any] = Field(..., description="Batch callback")
    argument_model: Dict[str, FrozenSet[ValueKind]] = Field(default_factory=dict)
    reserved: bool = Field(False, description="System provider satisfied only by overrides")


# Execution Models
class ExecutionPolicy(BaseModel):
    """Scheduling choices an execution plan is built with."""
    model_config = ConfigDict(frozen=True)

    level_strategy: LevelStrategy = LevelStrategy.LONGEST_PATH
    failure_cascade: FailureCascade = FailureCascade.TRANSITIVE
    # Also check the argument models of registered providers no service uses
    check_unused_providers: bool = True

    @classmethod
    def from_settings(cls, settings: Any) -> "ExecutionPolicy":
        """Build a policy from templater settings."""
        return cls(
            level_strategy=settings.level_strategy,
            failure_cascade=settings.failure_cascade,
            check_unused_providers=settings.check_unused_providers,
        )


class ProviderGroup(BaseModel):
    """Service instances of one provider resolved by a single batch call."""
    model_config = ConfigDict(frozen=True)

    provider: str
    services: Tuple[ServiceInstance, ...]


class ExecutionLevel(BaseModel):
    """Provider groups that run concurrently."""
    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0)
    groups: Tuple[ProviderGroup, ...]

    @property
    def service_names(self) -> List[str]:
        return [service.name for group in self.groups for service in group.services]


class ExecutionPlan(BaseModel):
    """Level-ordered plan built once per template and provider registry."""
    model_config = ConfigDict(frozen=True)

    levels: Tuple[ExecutionLevel, ...] = Field(default_factory=tuple)
    constants: Dict[str, str] = Field(default_factory=dict)
    field_mappings: Dict[str, Dict[str, Tuple[str, ...]]] = Field(default_factory=dict)
    children: Dict[str, Tuple[str, ...]] = Field(default_factory=dict)
    providers: Dict[str, ProviderSpec] = Field(default_factory=dict)
    policy: ExecutionPolicy = Field(default_factory=ExecutionPolicy)


class ExecutionResult(BaseModel):
    """Outcome of one plan execution."""
    values: Dict[str, Any] = Field(default_factory=dict, description="Resolved value record")
    failed_services: List[str] = Field(default_factory=list, description="Services whose group failed")
    skipped_services: List[str] = Field(
        default_factory=list, description="Services pruned or left to overrides"
    )
    levels_executed: int = Field(0, ge=0, description="Number of levels that issued calls")
    processing_time: float = Field(0.0, description="Execution time in seconds")
