"""Unit tests for mock handles: configuration, recording and lifecycle."""

import threading
from collections.abc import Iterator

import pytest

from unimock.config import Settings
from unimock.core.errors import AssertionFailure, ConfigurationError, UnknownOperationError
from unimock.core.matchers import ANY_ARGS, any_, predicate
from unimock.core.mock import Mock, default_mock_name
from unimock.core.models import ConsumptionPolicy
from unimock.registry import MockRegistry
from unimock.tests.fakes import (
    Account,
    Address,
    Clock,
    Customer,
    Inventory,
    Order,
    OrderRepository,
    Sink,
    Tier,
)


class Registrar:
    """Has operations colliding with handle attributes."""

    def name(self) -> str:
        raise NotImplementedError

    def proxy(self, target: str) -> bool:
        raise NotImplementedError


@pytest.fixture
def registry() -> Iterator[MockRegistry]:
    registry = MockRegistry(Settings())
    yield registry
    registry.close()


@pytest.fixture
def sink(registry: MockRegistry) -> Mock[Sink]:
    return registry.mock(Sink)


# ============================================================================
# Creation
# ============================================================================


class TestMockCreation:
    def test_proxy_is_instance_of_described_type(self, sink: Mock[Sink]) -> None:
        assert isinstance(sink.proxy, Sink)
        assert sink.get_mock() is sink.proxy
        assert sink.described is Sink

    def test_default_and_explicit_names(self, registry: MockRegistry) -> None:
        assert registry.mock(OrderRepository).name == "orderRepository"
        assert registry.mock(Sink, name="audit").name == "audit"
        assert default_mock_name(Clock) == "clock"

    def test_fields_are_populated(self, registry: MockRegistry) -> None:
        assert registry.mock(Account).proxy.owner == ""

    def test_repr(self, sink: Mock[Sink]) -> None:
        assert repr(sink) == "<Mock sink: Sink>"
        assert repr(sink.proxy) == "<mock sink of Sink>"


# ============================================================================
# Configuration
# ============================================================================


class TestConfiguration:
    """Tests for the configuration syntax on the handle."""

    def test_unconfigured_call_returns_default(self, sink: Mock[Sink]) -> None:
        assert sink.proxy.accept_many(["a"]) == 0

    def test_returns_for_pattern(self, sink: Mock[Sink]) -> None:
        sink.accept_many(["a"]).returns(1)

        assert sink.proxy.accept_many(["a"]) == 1
        assert sink.proxy.accept_many(["b"]) == 0

    def test_returns_preserves_identity(self, registry: MockRegistry) -> None:
        clock = registry.mock(Clock)
        zoned = registry.dummy(Clock)
        clock.in_zone("UTC").returns(zoned)

        assert clock.proxy.in_zone("UTC") is zoned

    def test_operation_identity_shortcut(self, sink: Mock[Sink]) -> None:
        sink.accept_many.returns(7)

        assert sink.proxy.accept_many([]) == 7
        assert sink.proxy.accept_many(["x"]) == 7

    def test_any_args(self, sink: Mock[Sink]) -> None:
        entry = sink.accept_many(ANY_ARGS).once_returns(3)

        assert entry.policy is ConsumptionPolicy.ONE_SHOT
        assert sink.proxy.accept_many(["x"]) == 3
        assert sink.proxy.accept_many(["x"]) == 0

    def test_raises(self, sink: Mock[Sink]) -> None:
        sink.accept(1).raises(TimeoutError("slow"))

        with pytest.raises(TimeoutError, match="slow"):
            sink.proxy.accept(1)
        assert isinstance(sink.invocations[0].outcome.error, TimeoutError)

    def test_performs_with_call_arguments(self, sink: Mock[Sink]) -> None:
        sink.accept_many(any_()).performs(lambda items: len(items))

        assert sink.proxy.accept_many(["a", "b"]) == 2
        assert sink.invocations[0].outcome.value == 2

    def test_raising_predicate_falls_back_to_default(self, sink: Mock[Sink]) -> None:
        """A predicate failing on an argument means the pattern does not apply."""
        sink.accept_many(predicate(lambda items: items.startswith("a"))).returns(7)

        assert sink.proxy.accept_many(5) == 0
        assert sink.proxy.accept_many("abc") == 7

    def test_raising_predicate_fails_verification(self, sink: Mock[Sink]) -> None:
        sink.proxy.accept_many(5)

        with pytest.raises(AssertionFailure):
            sink.assert_invoked().accept_many(predicate(lambda items: items.startswith("a")))

    def test_properties(self, registry: MockRegistry) -> None:
        account = registry.mock(Account)
        account.balance.returns(100)

        assert account.proxy.balance == 100

    def test_static_and_class_methods(self, registry: MockRegistry) -> None:
        clock = registry.mock(Clock)
        clock.now.returns(1.5)

        assert clock.proxy.now() == 1.5
        assert isinstance(clock.proxy.in_zone("UTC"), Clock)

    def test_protocol_dunders(self, registry: MockRegistry) -> None:
        inventory = registry.mock(Inventory)
        inventory.when.__len__.returns(3)
        inventory.when.__getitem__("sku-1").returns(5)

        assert len(inventory.proxy) == 3
        assert inventory.proxy["sku-1"] == 5
        with inventory.proxy as entered:
            assert entered is inventory.proxy

    def test_when_avoids_attribute_collisions(self, registry: MockRegistry) -> None:
        registrar = registry.mock(Registrar)
        registrar.when.name.returns("acme")
        registrar.when.proxy("x").returns(True)

        assert registrar.name == "registrar"
        assert registrar.proxy.name() == "acme"
        assert registrar.proxy.proxy("x") is True

    def test_unknown_operation(self, sink: Mock[Sink]) -> None:
        with pytest.raises(UnknownOperationError):
            sink.reject(1)
        assert not hasattr(sink, "reject")
        assert not hasattr(sink, "_hidden")

    def test_unbindable_pattern(self, sink: Mock[Sink]) -> None:
        with pytest.raises(ConfigurationError, match="Invalid pattern"):
            sink.accept(1, 2)

    def test_unbindable_call_raises_type_error(self, sink: Mock[Sink]) -> None:
        """The substitute rejects bad arguments like the real dependency would."""
        with pytest.raises(TypeError):
            sink.proxy.accept()
        assert sink.invocations == ()

    def test_reset_behavior(self, sink: Mock[Sink]) -> None:
        sink.accept_many.returns(1)
        sink.proxy.accept_many([])

        sink.reset_behavior()

        assert sink.behaviors == ()
        assert sink.proxy.accept_many([]) == 0
        assert len(sink.invocations) == 2

    def test_snapshot_matching_sees_call_time_value(self, sink: Mock[Sink]) -> None:
        items = ["a"]
        sink.proxy.accept_many(items)
        items.append("b")

        sink.assert_invoked().accept_many(["a"])


class TestNestedDefaults:
    def test_nested_capability_defaults(self, registry: MockRegistry) -> None:
        """Results of nested types are dummies with populated fields."""
        order = registry.dummy(Order)

        assert isinstance(order.customer, Customer)
        assert isinstance(order.customer.address, Address)
        assert order.customer.tier is Tier.BRONZE
        assert registry.mock(OrderRepository).proxy.describe() == ""


# ============================================================================
# Async operations
# ============================================================================


class TestAsyncOperations:
    @pytest.mark.asyncio
    async def test_returns(self, registry: MockRegistry) -> None:
        repository = registry.mock(OrderRepository)
        repository.count().returns(5)

        assert await repository.proxy.count() == 5
        assert await repository.proxy.find("o-1") is None

    @pytest.mark.asyncio
    async def test_awaitable_delegate_is_awaited(self, registry: MockRegistry) -> None:
        repository = registry.mock(OrderRepository)

        async def lookup(order_id: str) -> str:
            return f"found {order_id}"

        repository.find(any_()).performs(lookup)

        assert await repository.proxy.find("o-1") == "found o-1"
        assert repository.invocations[0].outcome.value == "found o-1"

    @pytest.mark.asyncio
    async def test_raises(self, registry: MockRegistry) -> None:
        repository = registry.mock(OrderRepository)
        repository.save.raises(ConnectionError)

        with pytest.raises(ConnectionError):
            await repository.proxy.save(None)

        repository.assert_invoked().save(None)


# ============================================================================
# Concurrency and lifecycle
# ============================================================================


class TestConcurrentUse:
    def test_concurrent_call_is_rejected(self, sink: Mock[Sink]) -> None:
        """A second thread entering the same mock fails instead of interleaving."""
        entered = threading.Event()
        release = threading.Event()

        def slow(item: object) -> None:
            entered.set()
            release.wait(timeout=5)

        sink.accept(1).performs(slow)
        worker = threading.Thread(target=sink.proxy.accept, args=(1,))
        worker.start()
        try:
            assert entered.wait(timeout=5)
            with pytest.raises(ConfigurationError, match="concurrently"):
                sink.proxy.accept(2)
        finally:
            release.set()
            worker.join(timeout=5)

        assert [invocation.value_of("item") for invocation in sink.invocations] == [1]

    def test_reentrant_call_from_delegate(self, sink: Mock[Sink]) -> None:
        sink.accept(1).performs(lambda item: sink.proxy.accept(2))

        sink.proxy.accept(1)

        assert [invocation.value_of("item") for invocation in sink.invocations] == [1, 2]


class TestClosedHandles:
    def test_handle_unusable_after_close(self, registry: MockRegistry) -> None:
        sink = registry.mock(Sink)
        proxy = sink.proxy

        registry.close()

        assert sink.closed
        assert repr(sink) == "<Mock sink: Sink (closed)>"
        with pytest.raises(ConfigurationError, match="finished test"):
            _ = sink.proxy
        with pytest.raises(ConfigurationError, match="finished test"):
            proxy.accept(1)
        with pytest.raises(ConfigurationError, match="finished test"):
            sink.accept(1)
