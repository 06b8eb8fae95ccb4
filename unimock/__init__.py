"""unimock: behavior-recording mock objects for Python tests.

Typical use inside a test:

    with mock_scope():
        insert = mock(InsertOperation)
        insert.execute(any_(), data_set).once_raises(TimeoutError)
        insert.execute(any_(), data_set).returns(42)

        loader = CleanInsertLoader(dummy(DeleteAllOperation), insert.proxy)
        loader.load(connection, data_set)

        insert.assert_invoked_exactly(2).execute(connection, data_set)

With pytest, the ``mock_registry`` fixture provides the scope and test
classes can declare ``Mock[T]`` and ``Dummy[T]`` attributes.
"""

from .adapters.injection import Dummy, inject_mocks, injection_points
from .config import Settings, load_settings
from .core.errors import (
    AssertionFailure,
    ConfigurationError,
    RecordingDegradation,
    UnimockError,
    UnknownOperationError,
)
from .core.matchers import (
    ANY_ARGS,
    ArgumentMatcher,
    any_,
    contains,
    eq,
    instance_of,
    is_none,
    len_eq,
    not_none,
    predicate,
    ref_eq,
    regex,
    same,
)
from .core.mock import Mock
from .core.models import Invocation
from .logging_config import configure_logging
from .registry import MockRegistry, current_registry, dummy, mock, mock_scope

__all__ = [
    "ANY_ARGS",
    "ArgumentMatcher",
    "AssertionFailure",
    "ConfigurationError",
    "Dummy",
    "Invocation",
    "Mock",
    "MockRegistry",
    "RecordingDegradation",
    "Settings",
    "UnimockError",
    "UnknownOperationError",
    "any_",
    "configure_logging",
    "contains",
    "current_registry",
    "dummy",
    "eq",
    "inject_mocks",
    "injection_points",
    "instance_of",
    "is_none",
    "len_eq",
    "load_settings",
    "mock",
    "mock_scope",
    "not_none",
    "predicate",
    "ref_eq",
    "regex",
    "same",
]
