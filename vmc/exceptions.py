from typing import List, Union

Item = Union[int, str]

class VmcError(Exception):
    """Base exception for the vending machine controller."""

class MalformedPayloadError(VmcError):
    """Inbound payload could not be decoded into a command."""

class ItemsValidationError(VmcError):
    """A vend command carried something other than a non-empty list of items."""

class BusyError(VmcError):
    """A vend was requested while another one is still dispensing."""

    def __init__(self, message: str, current_items: List[Item]) -> None:
        self.current_items = list(current_items)
        super().__init__(message)

class DeliveryError(VmcError):
    """Sending to a single observer failed."""

    def __init__(self, message: str, observer_id: str = "") -> None:
        self.observer_id = observer_id
        super().__init__(message)
