"""
pynativehost exception classes

This module defines all custom exceptions used throughout pynativehost.
Framing errors, JSON value errors, handler failures and installer errors
live in separate branches so callers can tell a broken stream from a
recoverable per-message problem.
"""

from functools import wraps
from typing import Optional


class NativeMessagingError(Exception):
    """Base exception for all pynativehost errors"""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class FramingError(NativeMessagingError):
    """Errors related to the length-prefixed wire framing"""
    pass


class DisconnectedError(FramingError):
    """Input closed before a complete frame was read (normal shutdown)"""

    def __init__(self, message: str = "native messaging disconnected (stdin closed)",
                 details: Optional[dict] = None):
        super().__init__(message, details)


class MessageTooLargeError(FramingError):
    """Frame payload exceeds the direction-specific size cap"""

    def __init__(self, length: int, max_size: int, direction: str = "incoming"):
        if direction == "outgoing":
            hint = "reduce size (chunk/compress) before sending"
        else:
            hint = "extension must send smaller messages (chunk/compress)"
        super().__init__(
            f"{direction} native message is {length} bytes (max {max_size}); {hint}",
            details={'length': length, 'max_size': max_size, 'direction': direction}
        )
        self.length = length
        self.max_size = max_size
        self.direction = direction


class FrameIOError(FramingError):
    """Underlying transport failure while reading or writing a frame"""
    pass


class InvalidUtf8Error(FramingError):
    """Incoming payload is not valid UTF-8"""
    pass


class JsonError(NativeMessagingError):
    """Errors converting between JSON text and Python values"""
    pass


class SerializeJsonError(JsonError):
    """Value could not be serialized to JSON"""
    pass


class DeserializeJsonError(JsonError):
    """Message text could not be parsed as JSON"""
    pass


class HandlerError(NativeMessagingError):
    """A message handler raised while the event loop was running"""
    pass


class InstallError(NativeMessagingError):
    """Errors related to manifest installation, verification and removal"""
    pass


class PathNotAbsoluteError(InstallError):
    """Host executable path is relative on a POSIX target"""
    pass


class ExecutableNotFoundError(InstallError):
    """Host executable does not exist"""
    pass


class UnknownBrowserError(InstallError):
    """Browser key is not present in the catalogue"""
    pass


class UnknownFamilyError(InstallError):
    """Catalogue entry names a browser family we cannot build manifests for"""
    pass


class RegistryError(InstallError):
    """Windows registry read/write/delete failed"""
    pass


class ManifestWriteError(InstallError):
    """Manifest file could not be written or removed"""
    pass


class ConfigError(NativeMessagingError):
    """Errors related to the browser catalogue configuration"""
    pass


class PlatformError(NativeMessagingError):
    """Errors related to platform compatibility"""
    pass


def handle_exception(func):
    """
    Decorator to handle exceptions and convert them to pynativehost exceptions
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except NativeMessagingError:
            # Re-raise library exceptions as-is
            raise
        except Exception as e:
            raise NativeMessagingError(
                f"Unexpected error in {func.__name__}: {str(e)}",
                details={'original_exception': type(e).__name__}
            ) from e
    return wrapper
