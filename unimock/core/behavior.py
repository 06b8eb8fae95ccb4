"""Behavior registry for mocks.

Behaviors are configured by calling an operation on the mock handle,
which records a pattern and returns a BehaviorBuilder; exactly one
directive is then chained onto the builder:

    deleter.execute(connection, data_set).returns(42)
    deleter.execute(connection, data_set).once_raises(TimeoutError)
    deleter.execute.performs(lambda connection, data_set: ...)
"""

import itertools
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from .errors import ConfigurationError
from .matching import InvocationPattern, MatchEngine
from .models import ActionKind, ConsumptionPolicy, Invocation, Operation

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class BehaviorEntry:
    """A configured response keyed by a pattern and a consumption policy."""

    pattern: InvocationPattern
    action: ActionKind
    payload: Any
    policy: ConsumptionPolicy
    order: int  # registration order, tiebreak within a tier
    fired: bool = False

    def perform(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> Any:
        """Apply the action to the arguments of a real call.

        Raises:
            BaseException: The configured error for RAISE entries, or
                whatever the delegate raises for PERFORM entries.
        """
        if self.action is ActionKind.RAISE:
            error = self.payload() if isinstance(self.payload, type) else self.payload
            raise error
        if self.action is ActionKind.PERFORM:
            return self.payload(*args, **kwargs)
        return self.payload

    def describe(self) -> str:
        once = "once_" if self.policy is ConsumptionPolicy.ONE_SHOT else ""
        return f"{self.pattern.render()}.{once}{self.action.value}({self.payload!r})"


class BehaviorRegistry:
    """Configured behaviors of one mock."""

    def __init__(self, engine: MatchEngine | None = None):
        self.engine = engine or MatchEngine()
        self._entries: list[BehaviorEntry] = []
        self._order = itertools.count(1)

    @property
    def entries(self) -> tuple[BehaviorEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def register(
        self,
        pattern: InvocationPattern,
        action: ActionKind,
        payload: Any,
        policy: ConsumptionPolicy = ConsumptionPolicy.STICKY,
    ) -> BehaviorEntry:
        """Add a behavior entry.

        Raises:
            ConfigurationError: If the payload does not fit the action.
        """
        _validate(pattern.operation, action, payload)
        entry = BehaviorEntry(
            pattern=pattern,
            action=action,
            payload=payload,
            policy=policy,
            order=next(self._order),
        )
        self._entries.append(entry)
        logger.debug(f"Registered behavior {entry.describe()} [{pattern.tier.name}]")
        return entry

    def resolve(self, invocation: Invocation) -> BehaviorEntry | None:
        """Select the entry applying to an invocation, consuming one-shots."""
        entry = self.engine.select(self._entries, invocation)
        if entry is not None and entry.policy is ConsumptionPolicy.ONE_SHOT:
            entry.fired = True
            self._entries.remove(entry)
        return entry

    def clear(self) -> None:
        self._entries.clear()


def _validate(operation: Operation, action: ActionKind, payload: Any) -> None:
    if action is ActionKind.RAISE:
        is_error_class = isinstance(payload, type) and issubclass(payload, BaseException)
        if not (is_error_class or isinstance(payload, BaseException)):
            raise ConfigurationError(
                f"raises() for {operation.qualified_name} needs an exception "
                f"instance or class, got {payload!r}"
            )
    elif action is ActionKind.PERFORM and not callable(payload):
        raise ConfigurationError(
            f"performs() for {operation.qualified_name} needs a callable, got {payload!r}"
        )


class BehaviorBuilder:
    """Receives the single directive for a recorded pattern."""

    def __init__(self, registry: BehaviorRegistry, pattern: InvocationPattern):
        self._registry = registry
        self._pattern = pattern
        self._entry: BehaviorEntry | None = None

    @property
    def pattern(self) -> InvocationPattern:
        return self._pattern

    def returns(self, value: Any) -> BehaviorEntry:
        return self._apply(ActionKind.RETURN_VALUE, value, ConsumptionPolicy.STICKY)

    def raises(self, error: BaseException | type[BaseException]) -> BehaviorEntry:
        return self._apply(ActionKind.RAISE, error, ConsumptionPolicy.STICKY)

    def performs(self, function: Callable[..., Any]) -> BehaviorEntry:
        return self._apply(ActionKind.PERFORM, function, ConsumptionPolicy.STICKY)

    def once_returns(self, value: Any) -> BehaviorEntry:
        return self._apply(ActionKind.RETURN_VALUE, value, ConsumptionPolicy.ONE_SHOT)

    def once_raises(self, error: BaseException | type[BaseException]) -> BehaviorEntry:
        return self._apply(ActionKind.RAISE, error, ConsumptionPolicy.ONE_SHOT)

    def once_performs(self, function: Callable[..., Any]) -> BehaviorEntry:
        return self._apply(ActionKind.PERFORM, function, ConsumptionPolicy.ONE_SHOT)

    def _apply(
        self, action: ActionKind, payload: Any, policy: ConsumptionPolicy
    ) -> BehaviorEntry:
        if self._entry is not None:
            raise ConfigurationError(
                f"A behavior was already configured for {self._pattern.render()}: "
                f"{self._entry.describe()}. Record the call again to add another one."
            )
        self._entry = self._registry.register(self._pattern, action, payload, policy)
        return self._entry

    def __repr__(self) -> str:
        return f"BehaviorBuilder({self._pattern.render()})"


__all__ = ["BehaviorBuilder", "BehaviorEntry", "BehaviorRegistry"]
