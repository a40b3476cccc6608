# Wire codec: one JSON document per framed buffer
import json

from pydantic import BaseModel, TypeAdapter, ValidationError

from shared.models import Message

_adapter = TypeAdapter(Message)


class DecodeError(ValueError):
    """Raised when a buffer is malformed or carries an unknown message type."""


def encode(message: BaseModel) -> bytes:
    """Serialize a protocol message into a single buffer."""
    return json.dumps(message.model_dump(mode="json"), separators=(",", ":")).encode("utf-8")


def decode(data: bytes) -> BaseModel:
    """
    Parse a buffer back into its protocol message variant.

    Raises:
        DecodeError: If the buffer is not valid JSON, lacks a known ``type``
            or fails field validation
    """
    try:
        return _adapter.validate_json(data)
    except (ValidationError, ValueError) as e:
        raise DecodeError(f"Could not decode message: {e}") from e
