"""Invocation patterns and behavior selection.

Given an incoming call, the engine selects the single behavior that
applies, evaluated from most to least specific:

1. EXACT: patterns listing only concrete argument values
2. MATCHERS: patterns using at least one argument matcher
3. OPERATION: patterns matching on the operation alone

The first tier with at least one applicable entry wins. Within a tier,
one-shot entries that have not fired yet win, oldest first; otherwise
the most recently registered entry wins.
"""

import inspect
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from .errors import ConfigurationError
from .matchers import ANY_ARGS, ArgumentMatcher, Elements, Keywords, as_matcher
from .models import ConsumptionPolicy, Invocation, MatchTier, Operation

if TYPE_CHECKING:
    from .behavior import BehaviorEntry


class InvocationPattern:
    """An operation plus matchers for its bound arguments.

    ``arguments`` is None for patterns matching on operation identity
    alone.
    """

    def __init__(
        self, operation: Operation, arguments: Mapping[str, ArgumentMatcher] | None
    ):
        self.operation = operation
        self.arguments = dict(arguments) if arguments is not None else None

    @classmethod
    def for_operation(cls, operation: Operation) -> "InvocationPattern":
        return cls(operation, None)

    @classmethod
    def from_call(
        cls, operation: Operation, args: tuple[Any, ...], kwargs: Mapping[str, Any]
    ) -> "InvocationPattern":
        """Build a pattern from the arguments of a configuration call.

        A single ``ANY_ARGS`` argument yields an operation-only pattern.

        Raises:
            ConfigurationError: If the arguments do not fit the signature.
        """
        if len(args) == 1 and args[0] is ANY_ARGS and not kwargs:
            return cls.for_operation(operation)
        try:
            bound = operation.bind(args, kwargs)
        except TypeError as e:
            raise ConfigurationError(
                f"Invalid pattern for {operation.qualified_name}: {e}"
            ) from e
        matchers = {
            name: _to_matcher(operation.parameter_kind(name), value)
            for name, value in bound.items()
        }
        return cls(operation, matchers)

    @property
    def tier(self) -> MatchTier:
        if self.arguments is None:
            return MatchTier.OPERATION
        if all(matcher.is_exact for matcher in self.arguments.values()):
            return MatchTier.EXACT
        return MatchTier.MATCHERS

    def matches(self, invocation: Invocation) -> bool:
        if invocation.operation.name != self.operation.name:
            return False
        if self.arguments is None:
            return True
        if set(self.arguments) != set(invocation.arguments):
            return False
        return all(
            matcher.matches(invocation.value_of(name), invocation.originals[name])
            for name, matcher in self.arguments.items()
        )

    def render(self, mock_name: str | None = None) -> str:
        if self.arguments is None:
            call = f"{self.operation.name}(ANY_ARGS)"
        else:
            call = self.operation.format_call(
                self.arguments, render=lambda matcher: matcher.describe()
            )
        if mock_name is None:
            return call
        return f"{mock_name}.{call}"

    def __repr__(self) -> str:
        return f"InvocationPattern({self.render()})"


def _to_matcher(kind: Any, value: Any) -> ArgumentMatcher:
    if kind is inspect.Parameter.VAR_POSITIONAL and isinstance(value, tuple):
        return Elements(tuple(as_matcher(item) for item in value))
    if kind is inspect.Parameter.VAR_KEYWORD and isinstance(value, Mapping):
        return Keywords({key: as_matcher(item) for key, item in value.items()})
    return as_matcher(value)


class MatchEngine:
    """Selects the behavior entry applying to an invocation.

    Pure decision logic: consuming one-shot entries is left to the
    behavior registry.
    """

    @staticmethod
    def select(
        entries: Iterable["BehaviorEntry"], invocation: Invocation
    ) -> "BehaviorEntry | None":
        applicable = [
            entry
            for entry in entries
            if not entry.fired and entry.pattern.matches(invocation)
        ]
        if not applicable:
            return None

        best_tier = min(entry.pattern.tier for entry in applicable)
        candidates = [entry for entry in applicable if entry.pattern.tier is best_tier]

        pending_one_shots = [
            entry
            for entry in candidates
            if entry.policy is ConsumptionPolicy.ONE_SHOT
        ]
        if pending_one_shots:
            return min(pending_one_shots, key=lambda entry: entry.order)
        return max(candidates, key=lambda entry: entry.order)


__all__ = ["InvocationPattern", "MatchEngine"]
