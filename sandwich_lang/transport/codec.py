"""
Wire Codec — one Message per fixed-size frame.

A frame is the JSON encoding of a Message, padded with zero bytes to the
frame size. Receivers trim the padding before decoding.
"""

from pydantic import ValidationError

from sandwich_lang.models.message import Message

FRAME_SIZE = 4096


class TransportError(Exception):
    """A frame couldn't be sent, received or decoded."""
    pass


class FrameTooLarge(TransportError):
    pass


def encode_frame(message: Message, frame_size: int = FRAME_SIZE) -> bytes:
    """
    Serialize a message into exactly frame_size bytes.

    Raises:
        FrameTooLarge: if the JSON doesn't fit in one frame.
    """
    data = message.model_dump_json(exclude_none=True).encode("utf-8")
    if len(data) > frame_size:
        raise FrameTooLarge(f"Message is {len(data)} bytes, frame holds {frame_size}")
    return data.ljust(frame_size, b"\0")


def decode_frame(frame: bytes) -> Message:
    """
    Deserialize a received frame.

    Raises:
        TransportError: if the frame isn't a valid Message.
    """
    data = frame.rstrip(b"\0")
    if not data:
        raise TransportError("Empty frame")
    try:
        return Message.model_validate_json(data)
    except ValidationError as e:
        raise TransportError(f"Malformed frame: {e}") from e

