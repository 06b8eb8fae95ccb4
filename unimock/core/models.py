"""Domain models for the unimock mock-object framework.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any

# Keys used for argument mappings of operations without an inspectable
# signature (builtins, C extensions).
VAR_ARGS_KEY = "*args"
VAR_KWARGS_KEY = "**kwargs"


class OperationKind(Enum):
    """How an operation is invoked on the substitute."""

    METHOD = "method"
    ASYNC_METHOD = "async_method"
    PROPERTY = "property"


class Binding(Enum):
    """What the original member was bound to."""

    INSTANCE = "instance"
    CLASS = "class"
    STATIC = "static"


class ActionKind(Enum):
    """What a configured behavior does when it applies."""

    RETURN_VALUE = "returns"
    RAISE = "raises"
    PERFORM = "performs"


class ConsumptionPolicy(Enum):
    """Whether a behavior survives after it has been applied.

    - STICKY: applies to every matching call until replaced
    - ONE_SHOT: removed the first time it applies
    """

    STICKY = "sticky"
    ONE_SHOT = "one_shot"


class MatchTier(IntEnum):
    """Specificity of a pattern; lower values win during resolution."""

    EXACT = 1
    MATCHERS = 2
    OPERATION = 3


@dataclass(frozen=True)
class Operation:
    """One capability member of a described type."""

    name: str
    kind: OperationKind
    binding: Binding
    signature: inspect.Signature | None  # without self/cls
    return_annotation: Any
    owner: type  # the class in the MRO defining the member
    function: Callable[..., Any] | None = None

    @property
    def is_async(self) -> bool:
        return self.kind is OperationKind.ASYNC_METHOD

    @property
    def qualified_name(self) -> str:
        return f"{self.owner.__qualname__}.{self.name}"

    def bind(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> dict[str, Any]:
        """Bind call arguments to parameter names, defaults applied.

        Raises:
            TypeError: If the arguments do not fit the signature.
        """
        if self.kind is OperationKind.PROPERTY:
            if args or kwargs:
                raise TypeError(f"property '{self.name}' takes no arguments")
            return {}
        if self.signature is None:
            return {VAR_ARGS_KEY: tuple(args), VAR_KWARGS_KEY: dict(kwargs)}
        bound = self.signature.bind(*args, **kwargs)
        bound.apply_defaults()
        return dict(bound.arguments)

    def parameter_kind(self, name: str) -> Any:
        if self.signature is not None and name in self.signature.parameters:
            return self.signature.parameters[name].kind
        if name == VAR_ARGS_KEY:
            return inspect.Parameter.VAR_POSITIONAL
        if name == VAR_KWARGS_KEY:
            return inspect.Parameter.VAR_KEYWORD
        return inspect.Parameter.KEYWORD_ONLY

    def format_call(
        self, arguments: Mapping[str, Any], render: Callable[[Any], str] = repr
    ) -> str:
        """Render a call of this operation as ``name(arg, kw=arg)``."""
        if self.kind is OperationKind.PROPERTY:
            return self.name

        parts: list[str] = []
        for name, value in arguments.items():
            kind = self.parameter_kind(name)
            if kind is inspect.Parameter.VAR_POSITIONAL and isinstance(value, tuple):
                parts.extend(render(item) for item in value)
            elif kind is inspect.Parameter.VAR_KEYWORD and isinstance(value, Mapping):
                parts.extend(f"{key}={render(item)}" for key, item in value.items())
            elif kind is inspect.Parameter.KEYWORD_ONLY:
                parts.append(f"{name}={render(value)}")
            else:
                text = render(value)
                if text:
                    parts.append(text)
        return f"{self.name}({', '.join(parts)})"


@dataclass(frozen=True)
class Opaque:
    """Placeholder for an argument whose value could not be snapshotted.

    Matching falls back to the original reference.
    """

    reference: Any

    def __repr__(self) -> str:
        return f"<unresolved {type(self.reference).__name__}>"


@dataclass(frozen=True)
class Outcome:
    """What an intercepted call produced."""

    value: Any = None
    error: BaseException | None = None

    def render(self) -> str:
        if self.error is not None:
            return f"raised {self.error!r}"
        return f"-> {self.value!r}"


@dataclass(eq=False)
class Invocation:
    """A single intercepted call on a mock.

    Note: only ``outcome`` and ``verified`` change after the invocation
    has been appended to the log.
    """

    sequence_id: int
    mock_name: str
    operation: Operation
    arguments: Mapping[str, Any]  # snapshots, parameter order
    originals: Mapping[str, Any]  # references as passed by the caller
    outcome: Outcome | None = None
    verified: bool = False

    def __post_init__(self) -> None:
        """Freeze argument mappings."""
        if isinstance(self.arguments, dict):
            self.arguments = MappingProxyType(self.arguments)
        if isinstance(self.originals, dict):
            self.originals = MappingProxyType(self.originals)

    def value_of(self, name: str) -> Any:
        """Value of a parameter as seen at call time."""
        value = self.arguments[name]
        if isinstance(value, Opaque):
            return self.originals[name]
        return value

    def render(self) -> str:
        call = f"#{self.sequence_id} {self.mock_name}.{self.operation.format_call(self.arguments)}"
        if self.outcome is None:
            return call
        return f"{call} {self.outcome.render()}"


@dataclass(frozen=True)
class AssertionResult:
    """Result of one verification query."""

    passed: bool
    query: str
    expected: str  # rendered pattern
    history: str  # rendered invocation log of the mock
    matched: tuple[Invocation, ...] = field(default_factory=tuple)
    reason: str = ""

    @property
    def message(self) -> str:
        if self.passed:
            return f"{self.query} {self.expected}: passed"
        return f"{self.reason}\n\n{self.history}"


__all__ = [
    "ActionKind",
    "AssertionResult",
    "Binding",
    "ConsumptionPolicy",
    "Invocation",
    "MatchTier",
    "Opaque",
    "Operation",
    "OperationKind",
    "Outcome",
    "VAR_ARGS_KEY",
    "VAR_KWARGS_KEY",
]
