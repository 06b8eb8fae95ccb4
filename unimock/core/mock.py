"""Mock handles: the user-facing side of a mock.

A handle owns one substitute (``handle.proxy``), its invocation log and
its behavior registry. The substitute goes to the code under test; the
handle stays with the test for configuration and verification:

    delete_all = registry.mock(DeleteAllOperation)
    delete_all.execute(connection, data_set).raises(TimeoutError)

    loader = CleanInsertLoader(delete_all.proxy, insert.proxy)
    ...
    delete_all.assert_invoked().execute(connection, data_set)

Operations are reached through attribute access on the handle. When an
operation name collides with a handle attribute (``name``, ``proxy``,
...), use ``handle.when.<operation>`` instead.
"""

import inspect
import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Generic, TypeVar, cast

from .behavior import BehaviorBuilder, BehaviorEntry, BehaviorRegistry
from .capabilities import describe
from .dummy import populate_fields
from .errors import AssertionFailure, ConfigurationError
from .matching import InvocationPattern
from .models import (
    ActionKind,
    AssertionResult,
    Invocation,
    Operation,
    OperationKind,
    Outcome,
)
from .ports import InterceptionHook
from .recorder import InvocationRecorder

if TYPE_CHECKING:
    from ..registry import MockRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


def default_mock_name(described: type) -> str:
    name = described.__name__
    return name[:1].lower() + name[1:]


class OperationStub:
    """Configuration entry point for one operation of a mock.

    Calling it records an argument pattern; using a directive directly
    configures the operation regardless of its arguments.
    """

    def __init__(self, behaviors: BehaviorRegistry, operation: Operation):
        self._behaviors = behaviors
        self._operation = operation

    def __call__(self, *args: Any, **kwargs: Any) -> BehaviorBuilder:
        return BehaviorBuilder(
            self._behaviors, InvocationPattern.from_call(self._operation, args, kwargs)
        )

    def _any_arguments(self) -> BehaviorBuilder:
        return BehaviorBuilder(self._behaviors, InvocationPattern.for_operation(self._operation))

    def returns(self, value: Any) -> BehaviorEntry:
        return self._any_arguments().returns(value)

    def raises(self, error: BaseException | type[BaseException]) -> BehaviorEntry:
        return self._any_arguments().raises(error)

    def performs(self, function: Callable[..., Any]) -> BehaviorEntry:
        return self._any_arguments().performs(function)

    def once_returns(self, value: Any) -> BehaviorEntry:
        return self._any_arguments().once_returns(value)

    def once_raises(self, error: BaseException | type[BaseException]) -> BehaviorEntry:
        return self._any_arguments().once_raises(error)

    def once_performs(self, function: Callable[..., Any]) -> BehaviorEntry:
        return self._any_arguments().once_performs(function)

    def __repr__(self) -> str:
        return f"OperationStub({self._operation.qualified_name})"


class StubbingRecorder:
    """Attribute-style access to the operations of a mock for configuration."""

    def __init__(self, mock: "Mock[Any]"):
        self._mock = mock

    def __getattr__(self, name: str) -> Any:
        operation = self._mock._operation(name)
        behaviors = self._mock._behaviors
        if operation.kind is OperationKind.PROPERTY:
            return BehaviorBuilder(behaviors, InvocationPattern.from_call(operation, (), {}))
        return OperationStub(behaviors, operation)


class AssertionRecorder:
    """Turns the next operation call into a verification query."""

    def __init__(
        self, mock: "Mock[Any]", check: Callable[[InvocationPattern], AssertionResult]
    ):
        self._mock = mock
        self._check = check

    def __getattr__(self, name: str) -> Any:
        operation = self._mock._operation(name)
        if operation.kind is OperationKind.PROPERTY:
            return self._verify(InvocationPattern.from_call(operation, (), {}))

        def verify(*args: Any, **kwargs: Any) -> AssertionResult:
            return self._verify(InvocationPattern.from_call(operation, args, kwargs))

        verify.__name__ = name
        return verify

    def _verify(self, pattern: InvocationPattern) -> AssertionResult:
        result = self._check(pattern)
        if not result.passed:
            raise AssertionFailure(result)
        return result


class _RecordingHook(InterceptionHook):
    """Records every call on the substitute and resolves its behavior."""

    def __init__(self, mock: "Mock[Any]"):
        self._mock = mock
        self._lock = threading.RLock()

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise ConfigurationError(
                f"Mock '{self._mock.name}' was invoked concurrently from several "
                f"threads; concurrent use of one mock is not supported"
            )
        try:
            yield
        finally:
            self._lock.release()

    def intercept(
        self,
        operation: Operation,
        instance: Any,
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any],
    ) -> Any:
        with self._exclusive():
            invocation, entry = self._record(operation, args, kwargs)
            return self._respond(invocation, entry, instance, args, kwargs)

    async def intercept_async(
        self,
        operation: Operation,
        instance: Any,
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any],
    ) -> Any:
        with self._exclusive():
            invocation, entry = self._record(operation, args, kwargs)
            result = self._respond(invocation, entry, instance, args, kwargs)

        if entry is not None and entry.action is ActionKind.PERFORM and inspect.isawaitable(result):
            try:
                result = await result
            except BaseException as e:
                invocation.outcome = Outcome(error=e)
                raise
            invocation.outcome = Outcome(value=result)
        return result

    def _record(
        self, operation: Operation, args: tuple[Any, ...], kwargs: Mapping[str, Any]
    ) -> tuple[Invocation, BehaviorEntry | None]:
        mock = self._mock
        mock._ensure_open()
        invocation = mock._recorder.record(operation, args, kwargs)
        entry = mock._behaviors.resolve(invocation)
        if entry is None:
            logger.debug(f"No behavior for #{invocation.sequence_id}, answering with default")
        else:
            logger.debug(f"#{invocation.sequence_id} resolved to {entry.describe()}")
        return invocation, entry

    def _respond(
        self,
        invocation: Invocation,
        entry: BehaviorEntry | None,
        instance: Any,
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any],
    ) -> Any:
        try:
            if entry is None:
                value = self._mock._registry.dummies.default_result(
                    invocation.operation, instance
                )
            else:
                value = entry.perform(args, kwargs)
        except BaseException as e:
            invocation.outcome = Outcome(error=e)
            raise
        invocation.outcome = Outcome(value=value)
        return value


class Mock(Generic[T]):
    """Handle on a mock substituting a described type.

    Also usable as a test-class annotation, ``delete_all: Mock[DeleteAll]``,
    for automatic injection by the pytest plugin.
    """

    def __init__(self, described: type[T], registry: "MockRegistry", name: str | None = None):
        self._capabilities = describe(described)
        self._described = described
        self._name = name or default_mock_name(described)
        self._registry = registry
        self._closed = False
        self._behaviors = BehaviorRegistry()
        self._recorder = InvocationRecorder(
            self._name,
            registry.next_sequence_id,
            snapshot_arguments=registry.settings.snapshot_arguments,
        )
        self._hook = _RecordingHook(self)
        self._proxy: T = registry.proxies.create(
            self._capabilities, self._hook, f"mock {self._name}"
        )
        populate_fields(
            self._proxy, self._capabilities.fields, registry.dummies.defaults.for_annotation
        )

    # ------------------------------------------------------------------
    # Substitute and state
    # ------------------------------------------------------------------

    @property
    def proxy(self) -> T:
        """The substitute handed to the code under test."""
        self._ensure_open()
        return self._proxy

    def get_mock(self) -> T:
        return self.proxy

    @property
    def name(self) -> str:
        return self._name

    @property
    def described(self) -> type[T]:
        return self._described

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def invocations(self) -> tuple[Invocation, ...]:
        return self._recorder.invocations

    @property
    def behaviors(self) -> tuple[BehaviorEntry, ...]:
        return self._behaviors.entries

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def when(self) -> Any:
        """Configuration access that never collides with handle attributes."""
        self._ensure_open()
        return StubbingRecorder(self)

    def reset_behavior(self) -> None:
        """Drop every configured behavior; recorded invocations are kept."""
        self._ensure_open()
        self._behaviors.clear()

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self.when, name)

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def assert_invoked(self) -> T:
        """Next operation call checks the call happened at least once."""
        return self._assertion(
            lambda pattern: self._registry.assertions.invoked(*self._view(), pattern)
        )

    def assert_invoked_in_sequence(self) -> T:
        """Next operation call checks the call happened after the last
        sequence assertion of any mock in the same test."""
        return self._assertion(
            lambda pattern: self._registry.assertions.invoked_in_sequence(
                *self._view(), pattern
            )
        )

    def assert_not_invoked(self) -> T:
        return self._assertion(
            lambda pattern: self._registry.assertions.not_invoked(*self._view(), pattern)
        )

    def assert_invoked_exactly(self, count: int) -> T:
        if count < 0:
            raise ConfigurationError(f"invocation count must be non-negative, got {count}")
        return self._assertion(
            lambda pattern: self._registry.assertions.invoked_exactly(
                count, *self._view(), pattern
            )
        )

    def assert_no_more_invocations(self) -> AssertionResult:
        """Check every recorded call was matched by an earlier assertion."""
        self._ensure_open()
        result = self._registry.assertions.no_more_invocations(*self._view())
        if not result.passed:
            raise AssertionFailure(result)
        return result

    def _assertion(self, check: Callable[[InvocationPattern], AssertionResult]) -> T:
        self._ensure_open()
        return cast(T, AssertionRecorder(self, check))

    def _view(self) -> tuple[str, str, tuple[Invocation, ...]]:
        return self._name, self._capabilities.type_name, self._recorder.invocations

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _operation(self, name: str) -> Operation:
        self._ensure_open()
        return self._capabilities.require(name)

    def _ensure_open(self) -> None:
        if self._closed:
            raise ConfigurationError(
                f"Mock '{self._name}' belongs to a finished test and can no longer be used"
            )

    def _close(self) -> None:
        self._recorder.clear()
        self._behaviors.clear()
        self._closed = True

    def __repr__(self) -> str:
        state = " (closed)" if self._closed else ""
        return f"<Mock {self._name}: {self._capabilities.type_name}{state}>"


__all__ = [
    "AssertionRecorder",
    "Mock",
    "OperationStub",
    "StubbingRecorder",
    "default_mock_name",
]
