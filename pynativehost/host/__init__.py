"""
pynativehost host side

This package provides the native messaging wire codec, the stdio channel
and the async read/reply event loop.
"""

from .codec import (
    MAX_FROM_BROWSER,
    MAX_TO_BROWSER,
    decode_message,
    encode_message,
    parse_message,
    read_frame,
    recv_json,
    send_json,
    write_frame,
)
from .channel import Sender, StdioChannel, get_message, send_message
from .loop import EventLoop, LoopState, event_loop

__all__ = [
    'MAX_FROM_BROWSER',
    'MAX_TO_BROWSER',
    'encode_message',
    'decode_message',
    'parse_message',
    'read_frame',
    'write_frame',
    'recv_json',
    'send_json',
    'StdioChannel',
    'Sender',
    'get_message',
    'send_message',
    'EventLoop',
    'LoopState',
    'event_loop',
]
