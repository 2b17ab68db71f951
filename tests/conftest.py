from __future__ import annotations

from typing import Any

import pytest

from vmc.controller import VendingController
from vmc.exceptions import DeliveryError
from vmc.registry import ConnectionRegistry

# Short enough to keep the suite fast, long enough to observe the vending state.
TEST_VEND_DURATION_MS = 50


class FakeObserver:
    """Records everything sent to it; optionally behaves like a dead socket."""

    def __init__(self, observer_id: str, broken: bool = False) -> None:
        self.id = observer_id
        self.broken = broken
        self.messages: list[dict[str, Any]] = []

    async def send(self, message: dict) -> None:
        if self.broken:
            raise DeliveryError("connection closed", observer_id=self.id)
        self.messages.append(message)

    def of_type(self, kind: str) -> list[dict[str, Any]]:
        return [m for m in self.messages if m["type"] == kind]


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def controller(registry: ConnectionRegistry) -> VendingController:
    return VendingController(registry, vend_duration_ms=TEST_VEND_DURATION_MS, service_name="VMC Test")


@pytest.fixture
def make_observer():
    def _make(observer_id: str, broken: bool = False) -> FakeObserver:
        return FakeObserver(observer_id, broken=broken)

    return _make
