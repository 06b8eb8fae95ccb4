"""pytest integration for the unimock framework.

Registered through the ``pytest11`` entry point, so installing the
package is enough. It provides:

- ``mock_registry``: a fresh, active registry per test, closed at teardown
- automatic injection of ``Mock[T]`` / ``Dummy[T]`` attributes declared
  on test classes
- logging setup for the ``unimock`` logger from the environment
"""

import logging
from collections.abc import Iterator

import pytest

from unimock.adapters.injection import inject_mocks, injection_points
from unimock.config import Settings, load_settings
from unimock.logging_config import configure_logging
from unimock.registry import MockRegistry, mock_scope

logger = logging.getLogger(__name__)

settings_key = pytest.StashKey[Settings]()


def pytest_configure(config: pytest.Config) -> None:
    """Load settings once per session and configure logging from them."""
    settings = load_settings()
    config.stash[settings_key] = settings
    configure_logging(settings.log_level, settings.log_format, stream=settings.log_to_stream)
    logger.debug(f"unimock configured: dummy_max_depth={settings.dummy_max_depth}")


@pytest.fixture
def mock_registry(request: pytest.FixtureRequest) -> Iterator[MockRegistry]:
    """Registry of the running test; module-level mock() and dummy() use it."""
    settings = request.config.stash.get(settings_key, None)
    with mock_scope(settings) as registry:
        yield registry


@pytest.fixture(autouse=True)
def _unimock_inject(request: pytest.FixtureRequest) -> None:
    """Fill Mock[T] / Dummy[T] attributes of the test class instance."""
    instance = request.instance
    if instance is None or not injection_points(type(instance)):
        return
    registry: MockRegistry = request.getfixturevalue("mock_registry")
    inject_mocks(instance, registry)
