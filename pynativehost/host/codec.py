"""
pynativehost Frame Codec

Native messaging frames are a 4-byte length in host byte order followed by
that many bytes of UTF-8 JSON. The browser and the host always run on the
same machine, so the protocol never fixes endianness.

The codec is independent of any concrete channel: the async decoder works
on anything with an awaitable ``read(n)`` and the blocking helpers work on
binary file objects.
"""

import json
import struct
from typing import Any, BinaryIO

from pynativehost.utils.errors import (
    DeserializeJsonError,
    DisconnectedError,
    FrameIOError,
    InvalidUtf8Error,
    MessageTooLargeError,
    SerializeJsonError,
)
from pynativehost.utils.logging import get_logger

logger = get_logger(__name__)

# 1 MiB (host -> browser)
MAX_TO_BROWSER = 1_048_576

# 64 MiB (browser -> host)
MAX_FROM_BROWSER = 64 * 1_048_576

HEADER = struct.Struct('=I')
HEADER_SIZE = HEADER.size


def encode_message(value: Any, max_size: int = MAX_TO_BROWSER) -> bytes:
    """
    Encode a JSON-serializable value into a complete frame.

    Args:
        value: Any value ``json.dumps`` accepts
        max_size: Payload cap, outbound browser limit by default

    Returns:
        bytes: length prefix + UTF-8 JSON payload

    Raises:
        SerializeJsonError: value is not JSON serializable
        MessageTooLargeError: payload exceeds ``max_size``
    """
    try:
        payload = json.dumps(
            value, ensure_ascii=False, separators=(',', ':'), allow_nan=False
        ).encode('utf-8')
    except (TypeError, ValueError) as e:
        raise SerializeJsonError(
            f"failed to serialize JSON: {e}",
            details={'value_type': type(value).__name__}
        ) from e

    if len(payload) > max_size:
        raise MessageTooLargeError(len(payload), max_size, direction="outgoing")

    return HEADER.pack(len(payload)) + payload


def parse_message(text: str) -> Any:
    """Parse decoded message text, keeping JSON failures apart from framing."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise DeserializeJsonError(
            f"failed to deserialize JSON: {e}",
            details={'position': e.pos}
        ) from e


def _effective_cap(max_size: int) -> int:
    return min(max_size, MAX_FROM_BROWSER)


def _unpack_length(header: bytes, max_size: int) -> int:
    (length,) = HEADER.unpack(header)
    cap = _effective_cap(max_size)
    if length > cap:
        raise MessageTooLargeError(length, cap, direction="incoming")
    return length


def _decode_payload(payload: bytes) -> str:
    try:
        return payload.decode('utf-8')
    except UnicodeDecodeError as e:
        raise InvalidUtf8Error(
            f"incoming native message is not valid UTF-8: {e}",
            details={'start': e.start, 'end': e.end}
        ) from e


async def _read_exactly(source: Any, size: int) -> bytes:
    """Read up to ``size`` bytes, returning short only at end of input."""
    buf = bytearray()
    while len(buf) < size:
        try:
            chunk = await source.read(size - len(buf))
        except OSError as e:
            raise FrameIOError(f"read failed: {e}", details={'errno': e.errno}) from e
        if not chunk:
            break
        buf.extend(chunk)
    return bytes(buf)


async def decode_message(source: Any, max_size: int = MAX_FROM_BROWSER) -> str:
    """
    Read exactly one frame from an async byte source.

    Args:
        source: Object with an awaitable ``read(n)`` returning bytes
            (empty bytes at end of input)
        max_size: Payload cap, clamped to the inbound browser limit

    Returns:
        str: The payload text (JSON validity is left to the caller)

    Raises:
        DisconnectedError: input ended before a full header or body
        MessageTooLargeError: claimed length exceeds the cap; no body is read
        FrameIOError: transport failure
        InvalidUtf8Error: payload is not UTF-8
    """
    header = await _read_exactly(source, HEADER_SIZE)
    if len(header) < HEADER_SIZE:
        raise DisconnectedError(details={'header_bytes': len(header)})

    length = _unpack_length(header, max_size)

    payload = await _read_exactly(source, length)
    if len(payload) < length:
        raise DisconnectedError(
            "native messaging disconnected mid-frame",
            details={'expected': length, 'received': len(payload)}
        )

    return _decode_payload(payload)


def _read_exactly_sync(reader: BinaryIO, size: int) -> bytes:
    buf = bytearray()
    while len(buf) < size:
        try:
            chunk = reader.read(size - len(buf))
        except OSError as e:
            raise FrameIOError(f"read failed: {e}", details={'errno': e.errno}) from e
        if not chunk:
            break
        buf.extend(chunk)
    return bytes(buf)


def read_frame(reader: BinaryIO, max_size: int = MAX_FROM_BROWSER) -> str:
    """Blocking counterpart of :func:`decode_message` for binary file objects."""
    header = _read_exactly_sync(reader, HEADER_SIZE)
    if len(header) < HEADER_SIZE:
        raise DisconnectedError(details={'header_bytes': len(header)})

    length = _unpack_length(header, max_size)

    payload = _read_exactly_sync(reader, length)
    if len(payload) < length:
        raise DisconnectedError(
            "native messaging disconnected mid-frame",
            details={'expected': length, 'received': len(payload)}
        )

    return _decode_payload(payload)


def write_frame(writer: BinaryIO, frame: bytes) -> None:
    """Write an already encoded frame and flush it."""
    try:
        writer.write(frame)
        writer.flush()
    except OSError as e:
        raise FrameIOError(f"write failed: {e}", details={'errno': e.errno}) from e


def recv_json(reader: BinaryIO, max_size: int = MAX_FROM_BROWSER) -> Any:
    """Read one frame and parse it."""
    return parse_message(read_frame(reader, max_size))


def send_json(writer: BinaryIO, value: Any) -> None:
    """Encode a value and write it as one frame."""
    write_frame(writer, encode_message(value))
