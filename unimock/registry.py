"""Test-scoped mock registry.

The registry owns everything whose lifetime is one test: the sequence
counter shared by all mocks, the cursor of sequence assertions, the
dummy factory and every mock handle. Closing it discards the handles,
so no state leaks from one test into the next.

The active registry is held in a context variable: threads and asyncio
tasks running tests in parallel each see their own.
"""

import itertools
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, TypeVar

from .config import Settings, load_settings
from .core.assertions import AssertionEngine, SequenceCursor
from .core.dummy import DummyFactory
from .core.errors import AssertionFailure, ConfigurationError
from .core.mock import Mock
from .core.models import Invocation
from .core.proxy import ProxyFactory

logger = logging.getLogger(__name__)

T = TypeVar("T")

_current_registry: ContextVar["MockRegistry | None"] = ContextVar(
    "unimock_current_registry", default=None
)


class MockRegistry:
    """Owns the mocks and dummies of one test."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings if settings is not None else load_settings()
        self.proxies = ProxyFactory()
        self.dummies = DummyFactory(
            max_depth=self.settings.dummy_max_depth, proxies=self.proxies
        )
        self.cursor = SequenceCursor()
        self.assertions = AssertionEngine(self.cursor)
        self._sequence = itertools.count(1)
        self._mocks: list[Mock[Any]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def mocks(self) -> tuple[Mock[Any], ...]:
        return tuple(self._mocks)

    def next_sequence_id(self) -> int:
        return next(self._sequence)

    def mock(self, described: type[T], name: str | None = None) -> Mock[T]:
        """Create a mock of a described type.

        Raises:
            ConfigurationError: If the type cannot be intercepted or the
                registry is closed.
        """
        self._ensure_open()
        handle = Mock(described, self, name=name)
        self._mocks.append(handle)
        logger.debug(f"Created {handle!r}")
        return handle

    def dummy(self, described: type[T]) -> T:
        """Create an inert instance of a described type.

        Raises:
            ConfigurationError: If the type cannot be dummied.
        """
        self._ensure_open()
        return self.dummies.create(described)

    def invocations(self) -> list[Invocation]:
        """All invocations of all mocks, in call order."""
        merged = [invocation for handle in self._mocks for invocation in handle.invocations]
        return sorted(merged, key=lambda invocation: invocation.sequence_id)

    def scenario_report(self) -> str:
        """Render every invocation of the test, across mocks."""
        invocations = self.invocations()
        lines = [f"Observed scenario ({len(invocations)} invocations):"]
        if not invocations:
            lines.append("  (none)")
        for invocation in invocations:
            marker = "" if invocation.verified else "  [unverified]"
            lines.append(f"  {invocation.render()}{marker}")
        return "\n".join(lines)

    def assert_no_more_invocations(self) -> None:
        """Check every call on every mock was matched by an assertion.

        Raises:
            AssertionFailure: For the first mock with unverified calls.
        """
        self._ensure_open()
        for handle in self._mocks:
            result = self.assertions.no_more_invocations(
                handle.name, handle.described.__qualname__, handle.invocations
            )
            if not result.passed:
                raise AssertionFailure(result)

    def close(self) -> None:
        """Discard every handle and its log. Idempotent."""
        if self._closed:
            return
        if self.settings.scenario_report_on_teardown and logger.isEnabledFor(logging.DEBUG):
            logger.debug(self.scenario_report())
        for handle in self._mocks:
            handle._close()
        self._mocks.clear()
        self.cursor.reset()
        self._closed = True

    def activate(self) -> Token["MockRegistry | None"]:
        """Make this registry the current one for the running context."""
        self._ensure_open()
        return _current_registry.set(self)

    @staticmethod
    def deactivate(token: Token["MockRegistry | None"]) -> None:
        _current_registry.reset(token)

    def _ensure_open(self) -> None:
        if self._closed:
            raise ConfigurationError("The mock registry of a finished test can no longer be used")

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"{len(self._mocks)} mocks"
        return f"<MockRegistry {state}>"


def current_registry() -> MockRegistry:
    """The registry of the running test.

    Raises:
        ConfigurationError: If no registry is active.
    """
    registry = _current_registry.get()
    if registry is None:
        raise ConfigurationError(
            "No active mock registry. Use the mock_registry fixture or "
            "`with mock_scope():` to create one."
        )
    return registry


@contextmanager
def mock_scope(settings: Settings | None = None) -> Iterator[MockRegistry]:
    """Run a block with a fresh registry, closed when the block exits."""
    registry = MockRegistry(settings)
    token = registry.activate()
    try:
        yield registry
    finally:
        MockRegistry.deactivate(token)
        registry.close()


def mock(described: type[T], name: str | None = None) -> Mock[T]:
    """Create a mock in the current registry."""
    return current_registry().mock(described, name=name)


def dummy(described: type[T]) -> T:
    """Create a dummy in the current registry."""
    return current_registry().dummy(described)


__all__ = [
    "MockRegistry",
    "current_registry",
    "dummy",
    "mock",
    "mock_scope",
]
