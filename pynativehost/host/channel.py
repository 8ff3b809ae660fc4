"""
pynativehost Stdio Channel

Binds the frame codec to the process's standard input and output. Blocking
pipe I/O is pushed onto aiofiles' thread pool so the asyncio loop suspends
instead of blocking while it waits for the browser.

Nothing else in the process may write to stdout while a channel owns it;
a stray print corrupts the framing.
"""

import asyncio
from typing import Any, Optional

import aiofiles

from pynativehost.host.codec import (
    MAX_FROM_BROWSER,
    MAX_TO_BROWSER,
    decode_message,
    encode_message,
)
from pynativehost.utils.errors import FrameIOError
from pynativehost.utils.logging import get_logger

logger = get_logger(__name__)


class StdioChannel:
    """
    One framed, bidirectional channel with per-direction size caps.

    By default it reads ``sys.stdin.buffer`` and writes ``sys.stdout.buffer``
    through aiofiles. Any reader with an awaitable ``read(n)`` and any
    writer with awaitable ``write``/``flush`` can be injected instead.
    """

    def __init__(
        self,
        reader: Optional[Any] = None,
        writer: Optional[Any] = None,
        inbound_cap: int = MAX_FROM_BROWSER,
        outbound_cap: int = MAX_TO_BROWSER,
    ):
        self.reader = reader if reader is not None else aiofiles.stdin_bytes
        self.writer = writer if writer is not None else aiofiles.stdout_bytes
        self.inbound_cap = inbound_cap
        self.outbound_cap = outbound_cap
        self._write_lock = asyncio.Lock()

    async def get_message(self) -> str:
        """Read exactly one frame and return its payload text."""
        message = await decode_message(self.reader, self.inbound_cap)
        logger.debug(f"Received message ({len(message)} chars)")
        return message

    async def send_message(self, value: Any) -> None:
        """
        Encode ``value`` and write it as one frame.

        The frame is flushed before this returns. Oversized or
        unserializable values fail before any byte is written.
        """
        frame = encode_message(value, self.outbound_cap)
        await self.send_frame(frame)

    async def send_frame(self, frame: bytes) -> None:
        """Write an already encoded frame and flush it."""
        async with self._write_lock:
            try:
                await self.writer.write(frame)
                await self.writer.flush()
            except OSError as e:
                raise FrameIOError(
                    f"write failed: {e}", details={'errno': e.errno}
                ) from e
        logger.debug(f"Sent frame ({len(frame)} bytes)")


class Sender:
    """Reply capability handed to message handlers."""

    def __init__(self, channel: StdioChannel):
        self._channel = channel

    async def send(self, value: Any) -> None:
        """Send any JSON-serializable value to the browser."""
        await self._channel.send_message(value)


_default_channel: Optional[StdioChannel] = None


def default_channel() -> StdioChannel:
    """Process-wide channel over stdin/stdout."""
    global _default_channel
    if _default_channel is None:
        _default_channel = StdioChannel()
    return _default_channel


async def get_message() -> str:
    """Read one message from stdin."""
    return await default_channel().get_message()


async def send_message(value: Any) -> None:
    """Write one message to stdout."""
    await default_channel().send_message(value)
