"""End-to-end workflows: mocks driving real code under test.

These tests use the framework the way a test suite would: mocks from the
plugin's registry replace the database operations of CleanInsertLoader,
behaviors are configured on the handles, and the observed calls are
verified afterwards, across mocks where order matters.
"""

import pytest

from unimock import (
    ANY_ARGS,
    AssertionFailure,
    Mock,
    MockRegistry,
    any_,
    dummy,
    instance_of,
    mock,
    same,
)
from unimock.tests.fakes import (
    CleanInsertLoader,
    DatabaseConnection,
    DataSet,
    DeleteAllOperation,
    InsertOperation,
    LoadError,
    Order,
    OrderRepository,
)


class Failure(Exception):
    pass


# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def connection(mock_registry: MockRegistry) -> DatabaseConnection:
    """Create a dummy connection; the loader only passes it through."""
    return dummy(DatabaseConnection)


@pytest.fixture
def data_set() -> DataSet:
    """Create a sample data set for testing."""
    data_set = DataSet(name="users")
    data_set.add_row("users", id=1, name="ann")
    data_set.add_row("users", id=2, name="bob")
    return data_set


@pytest.fixture
def delete_all(mock_registry: MockRegistry) -> Mock[DeleteAllOperation]:
    return mock(DeleteAllOperation, name="deleteAll")


@pytest.fixture
def insert(mock_registry: MockRegistry) -> Mock[InsertOperation]:
    return mock(InsertOperation, name="insert")


@pytest.fixture
def loader(
    delete_all: Mock[DeleteAllOperation], insert: Mock[InsertOperation]
) -> CleanInsertLoader:
    return CleanInsertLoader(delete_all.proxy, insert.proxy)


# ============================================================================
# Default behavior and plain verification
# ============================================================================


class TestUnconfiguredMock:
    def test_default_result_and_verification(
        self,
        delete_all: Mock[DeleteAllOperation],
        connection: DatabaseConnection,
        data_set: DataSet,
    ) -> None:
        """Without behavior the call answers with a default and is recorded."""
        other = DataSet(name="orders")

        assert delete_all.proxy.execute(connection, data_set) == 0

        delete_all.assert_invoked().execute(connection, data_set)
        with pytest.raises(AssertionFailure) as exc_info:
            delete_all.assert_invoked().execute(connection, other)
        assert "deleteAll.execute(" in str(exc_info.value)
        assert "Invocations recorded on deleteAll (DeleteAllOperation):" in str(exc_info.value)


# ============================================================================
# Configured behaviors
# ============================================================================


class TestConfiguredBehavior:
    def test_raises_then_returns_after_reconfiguration(
        self,
        insert: Mock[InsertOperation],
        connection: DatabaseConnection,
        data_set: DataSet,
    ) -> None:
        insert.execute(connection, data_set).raises(Failure("boom"))

        with pytest.raises(Failure, match="boom"):
            insert.proxy.execute(connection, data_set)

        insert.execute(connection, data_set).returns(42)

        assert insert.proxy.execute(connection, data_set) == 42

    def test_returns_is_identity_preserving(
        self, insert: Mock[InsertOperation], connection: DatabaseConnection, data_set: DataSet
    ) -> None:
        marker = object()
        insert.execute(connection, data_set).returns(marker)

        assert insert.proxy.execute(connection, data_set) is marker

    def test_one_shot_falls_through_to_less_specific_entry(
        self, insert: Mock[InsertOperation], connection: DatabaseConnection, data_set: DataSet
    ) -> None:
        insert.execute(connection, data_set).once_returns(1)
        insert.execute(any_(), instance_of(DataSet)).returns(2)

        assert insert.proxy.execute(connection, data_set) == 1
        assert insert.proxy.execute(connection, data_set) == 2
        assert insert.proxy.execute(connection, DataSet(name="other")) == 2

    def test_one_shot_falls_through_to_default(
        self, insert: Mock[InsertOperation], connection: DatabaseConnection, data_set: DataSet
    ) -> None:
        insert.execute(ANY_ARGS).once_returns(5)

        assert insert.proxy.execute(connection, data_set) == 5
        assert insert.proxy.execute(connection, data_set) == 0


# ============================================================================
# Code under test
# ============================================================================


class TestCleanInsertLoader:
    """The loader deletes, then inserts, and reports failures of either step."""

    def test_load(
        self,
        loader: CleanInsertLoader,
        delete_all: Mock[DeleteAllOperation],
        insert: Mock[InsertOperation],
        connection: DatabaseConnection,
        data_set: DataSet,
        mock_registry: MockRegistry,
    ) -> None:
        insert.execute(same(connection), data_set).returns(2)

        assert loader.load(connection, data_set) == 2

        delete_all.assert_invoked_in_sequence().execute(connection, data_set)
        insert.assert_invoked_in_sequence().execute(connection, data_set)
        mock_registry.assert_no_more_invocations()

    def test_reversed_sequence_fails(
        self,
        loader: CleanInsertLoader,
        delete_all: Mock[DeleteAllOperation],
        insert: Mock[InsertOperation],
        connection: DatabaseConnection,
        data_set: DataSet,
    ) -> None:
        """The shared cursor has moved past deleteAll once insert is verified."""
        loader.load(connection, data_set)

        insert.assert_invoked_in_sequence().execute(connection, data_set)
        with pytest.raises(AssertionFailure) as exc_info:
            delete_all.assert_invoked_in_sequence().execute(connection, data_set)

        message = str(exc_info.value)
        assert "after #2 insert.execute" in message
        assert "only occurred earlier: #1." in message

    def test_delete_all_fails(
        self,
        loader: CleanInsertLoader,
        delete_all: Mock[DeleteAllOperation],
        insert: Mock[InsertOperation],
        connection: DatabaseConnection,
        data_set: DataSet,
    ) -> None:
        delete_all.execute(connection, data_set).raises(Failure("table locked"))

        with pytest.raises(LoadError) as exc_info:
            loader.load(connection, data_set)

        assert str(exc_info.value) == (
            "Unable to clean insert data set.\nReason: Failure: table locked"
        )
        insert.assert_not_invoked().execute(any_(), any_())

    def test_insert_fails(
        self,
        loader: CleanInsertLoader,
        delete_all: Mock[DeleteAllOperation],
        insert: Mock[InsertOperation],
        connection: DatabaseConnection,
        data_set: DataSet,
    ) -> None:
        insert.execute.raises(TimeoutError)

        with pytest.raises(LoadError, match="Reason: TimeoutError"):
            loader.load(connection, data_set)

        delete_all.assert_invoked_exactly(1).execute(connection, data_set)
        insert.assert_invoked_exactly(1).execute(connection, data_set)

    def test_retry_after_transient_failure(
        self,
        loader: CleanInsertLoader,
        insert: Mock[InsertOperation],
        connection: DatabaseConnection,
        data_set: DataSet,
    ) -> None:
        insert.execute(connection, data_set).once_raises(TimeoutError("first attempt"))
        insert.execute(connection, data_set).returns(2)

        with pytest.raises(LoadError):
            loader.load(connection, data_set)
        assert loader.load(connection, data_set) == 2

        insert.assert_invoked_exactly(2).execute(connection, data_set)


# ============================================================================
# Async dependencies
# ============================================================================


@pytest.mark.asyncio
async def test_async_repository_workflow(mock_registry: MockRegistry) -> None:
    """Async operations are configured and verified like sync ones."""
    repository = mock_registry.mock(OrderRepository, name="orders")
    order = mock_registry.dummy(Order)
    repository.find("o-1").returns(order)
    repository.save(same(order)).returns(True)

    found = await repository.proxy.find("o-1")
    saved = await repository.proxy.save(found)

    assert found is order
    assert saved is True
    repository.assert_invoked_in_sequence().find("o-1")
    repository.assert_invoked_in_sequence().save(same(order))
    repository.assert_not_invoked().count()
