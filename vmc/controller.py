import asyncio
import logging
from typing import List, Optional, Union

from .config import VEND_DURATION_MS, getenv
from .exceptions import BusyError, Item, ItemsValidationError, MalformedPayloadError
from .helpers import elapsed_ms, iso_timestamp, utcnow
from .messages import HealthCommand, StatusCommand, VendCommand, parse_command, validate_items
from .registry import ConnectionRegistry, Observer
from .state import VendingState, VendStatus

_logger = logging.getLogger(__name__)

class VendingController:
    """Owns the vending state machine and notifies observers of its transitions.

    Every command handler and the completion callback run under ``_lock``, so
    a second vend can never see a half-applied transition.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        state: Optional[VendingState] = None,
        vend_duration_ms: int = VEND_DURATION_MS,
        service_name: str = None,
    ) -> None:
        self.registry = registry
        self.state = state or VendingState()
        self.vend_duration_ms = vend_duration_ms
        self.service_name = service_name or getenv("SERVICE_NAME")
        self._lock = asyncio.Lock()

    async def connect(self, observer: Observer) -> None:
        async with self._lock:
            snapshot = {
                "type": "status",
                "status": self.state.status.value,
                "items": list(self.state.current_items),
            }
            await self.registry.register(observer, snapshot)

    async def disconnect(self, observer: Observer) -> None:
        await self.registry.unregister(observer)

    async def handle_message(self, observer: Observer, raw: Union[str, bytes]) -> None:
        try:
            command = parse_command(raw)
        except MalformedPayloadError as e:
            _logger.info("Rejected payload from %s: %s", observer.id, e)
            await self.registry.send(observer, {"type": "error", "message": str(e)})
            return
        except ItemsValidationError as e:
            _logger.info("Rejected vend from %s: %s", observer.id, e)
            await self.registry.send(observer, vend_failure(str(e)))
            return

        if isinstance(command, VendCommand):
            try:
                await self.vend(command.items, requester=observer)
            except BusyError as e:
                await self.registry.send(observer, vend_failure(str(e), current_items=e.current_items))
        elif isinstance(command, StatusCommand):
            await self.registry.send(observer, await self.status())
        elif isinstance(command, HealthCommand):
            await self.registry.send(observer, self.health())

    async def vend(self, items, requester: Optional[Observer] = None) -> dict:
        """Start dispensing ``items``.

        Sends the acknowledgement to ``requester`` (when given) before the
        state change is broadcast to every observer, and returns it.
        Raises ItemsValidationError or BusyError without touching state.
        """
        items = validate_items(items)
        async with self._lock:
            if not self.state.is_idle:
                _logger.info("Busy, rejected vend of %s", items)
                raise BusyError("Vending machine is currently busy", self.state.current_items)

            completion = asyncio.create_task(self._complete_after(self.vend_duration_ms / 1000))
            self.state.start(items, utcnow(), completion)
            _logger.info("Vending started for items: %s", ", ".join(str(i) for i in items))

            ack = {
                "type": "vend-response",
                "success": True,
                "message": "Vending started",
                "items": list(items),
                "estimatedTime": self.vend_duration_ms,
            }
            if requester is not None:
                await self.registry.send(requester, ack)
            await self.registry.broadcast(
                {
                    "type": "status",
                    "status": VendStatus.VENDING.value,
                    "items": list(items),
                    "message": "Vending started",
                }
            )
            return ack

    async def _complete_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        async with self._lock:
            vended = self.state.finish()
            _logger.info("Vending completed for items: %s", ", ".join(str(i) for i in vended))
            await self.registry.broadcast(
                {
                    "type": "vend-complete",
                    "status": VendStatus.IDLE.value,
                    "message": "Vending completed successfully",
                    "vendedItems": vended,
                    "timestamp": iso_timestamp(),
                }
            )

    async def status(self) -> dict:
        async with self._lock:
            response = {
                "type": "status",
                "status": self.state.status.value,
                "timestamp": iso_timestamp(),
            }
            if self.state.is_idle:
                response["message"] = "Machine is idle"
            else:
                response["items"] = list(self.state.current_items)
                response["elapsedTime"] = elapsed_ms(self.state.start_time)
                response["message"] = "Vending in progress"
            return response

    def health(self) -> dict:
        return {
            "type": "health",
            "status": "healthy",
            "service": self.service_name,
            "timestamp": iso_timestamp(),
        }

    async def shutdown(self) -> None:
        task = self.state.pending_completion
        if task is None or task.done():
            return
        _logger.info("Cancelling pending vend of %s", self.state.current_items)
        task.cancel()
        await asyncio.wait([task])

def vend_failure(message: str, current_items: List[Item] = None) -> dict:
    response = {"type": "vend-response", "success": False, "message": message}
    if current_items is not None:
        response["currentItems"] = list(current_items)
    return response
