import pytest

from fhe_costs import DEFAULT_COSTS, UINT256_MAX, CostRegistry, OperationCost
from fhe_errors import InvalidParameter, UnknownOperation
from fhe_events import EventBus


class TestDefaultCosts:
    """Tests for the seeded cost table."""

    @pytest.mark.parametrize(
        "name,base_cost,per_byte_cost",
        [
            ("add", 5000, 10),
            ("sub", 5000, 10),
            ("mul", 15000, 20),
            ("div", 20000, 25),
            ("gt", 8000, 15),
            ("lt", 8000, 15),
            ("eq", 7000, 12),
            ("ne", 7000, 12),
            ("and", 6000, 10),
            ("or", 6000, 10),
            ("not", 4000, 8),
            ("cast", 3000, 5),
        ],
    )
    def test_default_entry(self, name, base_cost, per_byte_cost):
        cost = CostRegistry().get_cost(name)
        assert cost == OperationCost(name, base_cost, per_byte_cost)

    def test_registry_seeds_every_default(self):
        registry = CostRegistry()
        assert len(registry) == len(DEFAULT_COSTS) == 12
        assert [c.name for c in registry.operations()] == list(DEFAULT_COSTS)

    def test_unseeded_registry_is_empty(self):
        registry = CostRegistry(seed_defaults=False)
        assert len(registry) == 0
        with pytest.raises(UnknownOperation):
            registry.get_cost("add")

    def test_registries_are_independent(self):
        first = CostRegistry()
        second = CostRegistry()
        first.set_cost("add", 1, 1)
        assert second.get_cost("add").base_cost == 5000


class TestSetCost:
    """Tests for creating and replacing cost entries."""

    def test_creates_new_operation(self):
        registry = CostRegistry()
        registry.set_cost("bootstrap", 100_000, 50)
        assert registry.get_cost("bootstrap") == OperationCost("bootstrap", 100_000, 50)
        assert "bootstrap" in registry

    def test_replaces_both_fields(self):
        registry = CostRegistry()
        registry.set_cost("mul", 12_000, 0)
        cost = registry.get_cost("mul")
        assert cost.base_cost == 12_000
        assert cost.per_byte_cost == 0

    def test_zero_base_cost_unregisters(self):
        registry = CostRegistry()
        registry.set_cost("mul", 0, 0)
        assert "mul" not in registry
        with pytest.raises(UnknownOperation) as exc_info:
            registry.get_cost("mul")
        assert exc_info.value.operation == "mul"

    def test_zero_base_cost_with_per_byte_is_still_unknown(self):
        registry = CostRegistry()
        registry.set_cost("mul", 0, 20)
        with pytest.raises(UnknownOperation):
            registry.get_cost("mul")

    def test_unregistered_can_be_registered_again(self):
        registry = CostRegistry()
        registry.set_cost("mul", 0, 0)
        registry.set_cost("mul", 15_000, 20)
        assert registry.get_cost("mul").base_cost == 15_000

    def test_accepts_uint256_max(self):
        registry = CostRegistry()
        registry.set_cost("huge", UINT256_MAX, UINT256_MAX)
        assert registry.get_cost("huge").base_cost == UINT256_MAX

    @pytest.mark.parametrize(
        "base_cost,per_byte_cost",
        [
            (-1, 0),
            (1, -1),
            (1.5, 0),
            ("100", 0),
            (True, 0),
            (None, 0),
            (UINT256_MAX + 1, 0),
        ],
    )
    def test_rejects_invalid_costs(self, base_cost, per_byte_cost):
        registry = CostRegistry()
        with pytest.raises(InvalidParameter):
            registry.set_cost("add", base_cost, per_byte_cost)
        assert registry.get_cost("add").base_cost == 5000

    @pytest.mark.parametrize("name", ["", None, 42])
    def test_rejects_invalid_name(self, name):
        with pytest.raises(InvalidParameter):
            CostRegistry().set_cost(name, 1, 1)

    def test_emits_cost_updated_event(self):
        events = EventBus()
        received = []
        events.subscribe(received.append, "cost_updated")
        CostRegistry(events=events).set_cost("bootstrap", 90_000, 40)
        assert received == [
            {"type": "cost_updated", "data": {"operation": "bootstrap", "base_cost": 90_000, "per_byte_cost": 40}}
        ]

    def test_rejected_update_emits_nothing(self):
        events = EventBus()
        received = []
        events.subscribe(received.append)
        with pytest.raises(InvalidParameter):
            CostRegistry(events=events).set_cost("add", -5, 0)
        assert received == []


class TestOperationCost:
    """Tests for the OperationCost value type."""

    def test_gas_for(self):
        assert OperationCost("mul", 15_000, 20).gas_for(32) == 15_640

    def test_is_frozen(self):
        cost = OperationCost("add", 5000, 10)
        with pytest.raises(Exception):
            cost.base_cost = 1

    def test_to_dict(self):
        assert OperationCost("not", 4000, 8).to_dict() == {"name": "not", "base_cost": 4000, "per_byte_cost": 8}
