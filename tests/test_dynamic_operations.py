"""Tests for the runtime-managed calculator and random-number operations."""

import json

import pytest

from dingdong.events import ChangeKind
from dingdong.registry.operations.dynamic_operations import (
    UPDATED_CALCULATOR_DESCRIPTION,
    DynamicOperationManager,
    calculator_handler,
    random_number_handler,
    register_dynamic_operations,
)


class TestCalculator:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation, expected", [
        ("add", 8),
        ("subtract", 4),
        ("multiply", 12),
        ("divide", 3),
    ])
    async def test_operations(self, operation, expected):
        result = await calculator_handler({"operation": operation, "a": 6, "b": 2})
        assert result["result"] == expected

    @pytest.mark.asyncio
    async def test_divide_by_zero(self):
        with pytest.raises(ZeroDivisionError, match="Division by zero is not allowed"):
            await calculator_handler({"operation": "divide", "a": 1, "b": 0})

    @pytest.mark.asyncio
    async def test_describes_operation(self):
        result = await calculator_handler({"operation": "add", "a": 1, "b": 2})
        assert result["operation"] == "1 + 2"


class TestRandomNumber:

    @pytest.mark.asyncio
    async def test_within_range(self):
        for _ in range(20):
            result = await random_number_handler({"min": 5, "max": 7})
            assert 5 <= result["result"] <= 7
        assert result["range"] == "5 to 7"

    @pytest.mark.asyncio
    async def test_integral_bounds_give_integers(self):
        result = await random_number_handler({"min": 1.0, "max": 3})
        assert isinstance(result["result"], int)

    @pytest.mark.asyncio
    async def test_fractional_bounds_stay_in_range(self):
        for _ in range(20):
            result = await random_number_handler({"min": 0.5, "max": 0.7})
            assert 0.5 <= result["result"] <= 0.7

    @pytest.mark.asyncio
    async def test_defaults(self):
        result = await random_number_handler({})
        assert 0 <= result["result"] <= 100

    @pytest.mark.asyncio
    async def test_min_greater_than_max(self):
        with pytest.raises(ValueError, match="Minimum value cannot be greater than maximum value"):
            await random_number_handler({"min": 10, "max": 1})


class TestDynamicOperationManager:

    @pytest.fixture
    def records(self, bus):
        received = []
        bus.subscribe(received.append)
        return received

    def test_add_update_remove_emit_changes(self, registry, records):
        manager = DynamicOperationManager(registry)

        manager.add_calculator()
        manager.update_calculator_description()
        manager.remove_calculator()

        assert [(r.kind, r.name) for r in records] == [
            (ChangeKind.ADDED, "calculator"),
            (ChangeKind.UPDATED, "calculator"),
            (ChangeKind.REMOVED, "calculator"),
        ]
        assert records[1].metadata.description == UPDATED_CALCULATOR_DESCRIPTION

    def test_random_number_lifecycle(self, registry):
        manager = DynamicOperationManager(registry)

        manager.add_random_number()
        assert manager.operation_count() == 1

        assert manager.remove_random_number() is True
        assert manager.remove_random_number() is False
        assert manager.operation_count() == 0

    def test_available_operations(self, registry):
        assert DynamicOperationManager(registry).available_operations() == ["calculator", "random-number"]

    def test_register_dynamic_operations(self, registry):
        manager = register_dynamic_operations(registry)

        assert registry.names() == ["calculator", "random-number"]
        assert manager.operation_count() == 2


class TestThroughRouter:

    @pytest.mark.asyncio
    async def test_divide_by_zero_is_execution_failure(self, router, populated_registry):
        DynamicOperationManager(populated_registry).add_calculator()

        response = await router.handle({
            "jsonrpc": "2.0",
            "id": 9,
            "method": "operations/call",
            "params": {"name": "calculator", "arguments": {"operation": "divide", "a": 1, "b": 0}},
        })

        assert response["error"]["code"] == -32603
        assert response["error"]["message"] == "Tool execution failed: Division by zero is not allowed"

    @pytest.mark.asyncio
    async def test_random_number_defaults_applied(self, router, populated_registry):
        DynamicOperationManager(populated_registry).add_random_number()

        response = await router.handle({
            "jsonrpc": "2.0",
            "id": 10,
            "method": "operations/call",
            "params": {"name": "random-number", "arguments": {}},
        })
        body = json.loads(response["result"]["content"][0]["text"])

        assert body["range"] == "0 to 100"
