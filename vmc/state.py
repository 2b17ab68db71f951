import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from .exceptions import Item

class VendStatus(str, Enum):
    IDLE = "idle"
    VENDING = "vending"

@dataclass
class VendingState:
    """In-memory machine state. Mutated only by VendingController."""

    status: VendStatus = VendStatus.IDLE
    current_items: List[Item] = field(default_factory=list)
    start_time: Optional[datetime] = None
    pending_completion: Optional[asyncio.Task] = None

    @property
    def is_idle(self) -> bool:
        return self.status is VendStatus.IDLE

    def start(self, items: List[Item], now: datetime, completion: asyncio.Task) -> None:
        self.status = VendStatus.VENDING
        self.current_items = list(items)
        self.start_time = now
        self.pending_completion = completion

    def finish(self) -> List[Item]:
        vended = list(self.current_items)
        self.status = VendStatus.IDLE
        self.current_items = []
        self.start_time = None
        self.pending_completion = None
        return vended
