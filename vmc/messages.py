import json
from typing import List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from .exceptions import Item, ItemsValidationError, MalformedPayloadError

INVALID_ITEMS_MESSAGE = "Invalid items array. Expected non-empty array of item numbers."

class _Command(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

class VendCommand(_Command):
    type: Literal["vend"] = "vend"
    items: List[Union[StrictInt, StrictStr]] = Field(min_length=1)

class StatusCommand(_Command):
    type: Literal["status"] = "status"

class HealthCommand(_Command):
    type: Literal["health"] = "health"

Command = Union[VendCommand, StatusCommand, HealthCommand]

_QUERY_COMMANDS = {"status": StatusCommand, "health": HealthCommand}
_COMMAND_TYPES = ("vend", *_QUERY_COMMANDS)

def validate_items(items) -> List[Item]:
    try:
        return list(VendCommand(items=items).items)
    except ValidationError as e:
        raise ItemsValidationError(INVALID_ITEMS_MESSAGE) from e

def parse_command(raw: Union[str, bytes]) -> Command:
    """Decode a raw WebSocket frame into one of the known commands.

    Raises MalformedPayloadError for anything that is not a JSON object with a
    known ``type``, and ItemsValidationError for a vend without usable items.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError, RecursionError) as e:
        raise MalformedPayloadError("Invalid JSON") from e

    if not isinstance(data, dict):
        raise MalformedPayloadError("Invalid message format")

    kind = data.get("type")
    if kind not in _COMMAND_TYPES:
        raise MalformedPayloadError(f"Unknown message type: {kind}")

    if kind == "vend":
        return VendCommand(items=validate_items(data.get("items")))
    return _QUERY_COMMANDS[kind]()
