"""
pynativehost Event Loop

Reads one frame at a time, hands it to a caller-supplied handler and
optionally writes the handler's reply. The next frame is not read until
the handler has finished, so there is never more than one request in
flight on a channel.
"""

import asyncio
import inspect
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from pynativehost.host.channel import Sender, StdioChannel, default_channel
from pynativehost.utils.errors import (
    DisconnectedError,
    FramingError,
    HandlerError,
    NativeMessagingError,
)
from pynativehost.utils.logging import get_logger

logger = get_logger(__name__)

Handler = Callable[[str, Sender], Union[Any, Awaitable[Any]]]


class LoopState(Enum):
    """Event loop states."""
    RUNNING = "running"
    STOPPED = "stopped"


class EventLoop:
    """
    Read/dispatch/reply loop over a :class:`StdioChannel`.

    The handler receives the raw message text and a :class:`Sender`. It may
    be a plain function or a coroutine function. A non-``None`` return value
    is sent back as the reply; the handler may also send any number of
    messages itself through the sender.
    """

    def __init__(self, handler: Handler, channel: Optional[StdioChannel] = None):
        if not callable(handler):
            raise ValueError("handler must be callable")

        self.handler = handler
        self.channel = channel if channel is not None else default_channel()
        self.sender = Sender(self.channel)
        # None until run() starts; STOPPED is terminal
        self.state: Optional[LoopState] = None
        self.processed = 0

    @property
    def is_running(self) -> bool:
        return self.state is LoopState.RUNNING

    async def run(self) -> None:
        """
        Run until input closes or a fatal error occurs.

        Returns normally when the browser disconnects. Any other framing
        error is re-raised unchanged. Library errors raised by the handler
        (for example an oversized reply, which carries
        ``direction="outgoing"``) keep their kind; other handler failures are
        raised as :class:`HandlerError`.

        A loop runs once. Calling ``run()`` again after it stopped raises
        ``RuntimeError``; build a new :class:`EventLoop` instead.
        """
        if self.is_running:
            raise RuntimeError("event loop already running")
        if self.state is LoopState.STOPPED:
            raise RuntimeError("event loop already stopped")

        self.state = LoopState.RUNNING
        logger.debug("Event loop started")

        try:
            while True:
                try:
                    message = await self.channel.get_message()
                except DisconnectedError:
                    logger.info("Browser disconnected, stopping event loop")
                    return
                except FramingError as e:
                    logger.error(f"Fatal framing error: {e}")
                    raise

                reply = await self._dispatch(message)
                if reply is not None:
                    await self.channel.send_message(reply)
                self.processed += 1

        except asyncio.CancelledError:
            logger.debug("Event loop cancelled")
            raise
        finally:
            self.state = LoopState.STOPPED
            logger.debug(f"Event loop stopped after {self.processed} message(s)")

    async def _dispatch(self, message: str) -> Any:
        """Call the handler (sync or async) and translate its failures."""
        try:
            result = self.handler(message, self.sender)
            if inspect.isawaitable(result):
                result = await result
            return result
        except asyncio.CancelledError:
            raise
        except NativeMessagingError:
            # Already carries its own kind (e.g. an oversized reply)
            raise
        except Exception as e:
            logger.error(f"Message handler failed: {e}")
            raise HandlerError(
                f"message handler raised {type(e).__name__}: {e}",
                details={'original_exception': type(e).__name__}
            ) from e


async def event_loop(handler: Handler, channel: Optional[StdioChannel] = None) -> None:
    """Run an :class:`EventLoop` over stdin/stdout (or ``channel``)."""
    await EventLoop(handler, channel).run()
