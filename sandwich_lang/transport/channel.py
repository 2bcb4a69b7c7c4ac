"""
Channels — the duplex pipe a negotiation session talks over.

StreamChannel wraps an asyncio TCP stream; MemoryChannel pairs two ends
through queues for in-process negotiations. Both carry whole frames, so
every message goes through the codec either way.
"""

import asyncio
from typing import Optional, Protocol, Tuple

from sandwich_lang.models.message import Message
from sandwich_lang.transport.codec import (
    FRAME_SIZE,
    TransportError,
    decode_frame,
    encode_frame,
)


class Channel(Protocol):
    async def send(self, message: Message) -> None: ...

    async def recv(self, timeout: Optional[float] = None) -> Message: ...

    async def close(self) -> None: ...


class StreamChannel:
    """A frame-per-message channel over an asyncio stream pair."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        frame_size: int = FRAME_SIZE,
    ):
        self.reader = reader
        self.writer = writer
        self.frame_size = frame_size

    async def send(self, message: Message) -> None:
        self.writer.write(encode_frame(message, self.frame_size))
        try:
            await self.writer.drain()
        except ConnectionError as e:
            raise TransportError(f"Send failed: {e}") from e

    async def recv(self, timeout: Optional[float] = None) -> Message:
        try:
            frame = await asyncio.wait_for(
                self.reader.readexactly(self.frame_size), timeout
            )
        except asyncio.TimeoutError as e:
            raise TransportError("Timed out waiting for peer") from e
        except (asyncio.IncompleteReadError, ConnectionError) as e:
            raise TransportError(f"Peer went away: {e}") from e
        return decode_frame(frame)

    async def close(self) -> None:
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except ConnectionError:
            pass


class MemoryChannel:
    """One end of an in-process channel pair."""

    def __init__(
        self,
        inbox: "asyncio.Queue[bytes]",
        outbox: "asyncio.Queue[bytes]",
        frame_size: int = FRAME_SIZE,
    ):
        self.inbox = inbox
        self.outbox = outbox
        self.frame_size = frame_size

    @classmethod
    def pair(cls, frame_size: int = FRAME_SIZE) -> Tuple["MemoryChannel", "MemoryChannel"]:
        a: asyncio.Queue = asyncio.Queue()
        b: asyncio.Queue = asyncio.Queue()
        return cls(a, b, frame_size), cls(b, a, frame_size)

    async def send(self, message: Message) -> None:
        await self.outbox.put(encode_frame(message, self.frame_size))

    async def recv(self, timeout: Optional[float] = None) -> Message:
        try:
            frame = await asyncio.wait_for(self.inbox.get(), timeout)
        except asyncio.TimeoutError as e:
            raise TransportError("Timed out waiting for peer") from e
        return decode_frame(frame)

    async def close(self) -> None:
        # An empty frame tells the other end we hung up.
        await self.outbox.put(b"")
