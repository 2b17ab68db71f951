import asyncio
import logging
from typing import Dict, List, Protocol
from uuid import uuid4

from fastapi import WebSocket, WebSocketDisconnect

from .exceptions import DeliveryError

_logger = logging.getLogger(__name__)

class Observer(Protocol):
    id: str

    async def send(self, message: dict) -> None:
        ...

class WebSocketObserver:
    def __init__(self, ws: WebSocket, observer_id: str = None) -> None:
        self.ws = ws
        self.id = observer_id or f"obs_{uuid4().hex[:8]}"

    async def send(self, message: dict) -> None:
        try:
            await self.ws.send_json(message)
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            raise DeliveryError(f"send to {self.id} failed: {e}", observer_id=self.id) from e

    def __repr__(self) -> str:
        return f"WebSocketObserver({self.id})"

class ConnectionRegistry:
    """Live observers plus fan-out delivery.

    Membership changes take the lock; broadcast sends to a copy of the
    membership so observers may come and go while a message is in flight.
    """

    def __init__(self) -> None:
        self._observers: Dict[str, Observer] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._observers)

    def __contains__(self, observer: Observer) -> bool:
        return self._observers.get(observer.id) is observer

    async def observers(self) -> List[Observer]:
        async with self._lock:
            return list(self._observers.values())

    async def register(self, observer: Observer, snapshot: dict) -> None:
        async with self._lock:
            self._observers[observer.id] = observer
        _logger.info("Observer %s connected (%d live)", observer.id, len(self._observers))
        await self.send(observer, snapshot)

    async def unregister(self, observer: Observer) -> bool:
        async with self._lock:
            if self._observers.get(observer.id) is not observer:
                return False
            del self._observers[observer.id]
        _logger.info("Observer %s disconnected (%d live)", observer.id, len(self._observers))
        return True

    async def send(self, observer: Observer, message: dict) -> bool:
        try:
            await observer.send(message)
        except DeliveryError as e:
            _logger.warning("Dropping observer %s: %s", observer.id, e)
            await self.unregister(observer)
            return False
        return True

    async def broadcast(self, message: dict) -> int:
        targets = await self.observers()
        if not targets:
            return 0
        results = await asyncio.gather(*(self.send(o, message) for o in targets))
        return sum(1 for ok in results if ok)
