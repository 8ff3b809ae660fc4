"""
pynativehost - native messaging hosts for browser extensions

pynativehost lets a local Python process act as a WebExtensions native
messaging host: it installs, verifies and removes the host manifests
(and Windows registry pointers) browsers use to find and trust the host,
and it speaks the length-prefixed JSON protocol over stdin/stdout.
"""

__version__ = "0.1.0"
__author__ = "pynativehost Team"
__email__ = "team@pynativehost.dev"
__license__ = "MIT"

# Host-side protocol
from pynativehost.host import (
    MAX_FROM_BROWSER,
    MAX_TO_BROWSER,
    EventLoop,
    Sender,
    StdioChannel,
    decode_message,
    encode_message,
    event_loop,
    get_message,
    send_message,
)

# Manifest installation
from pynativehost.install import (
    Family,
    HostIdentity,
    InstallReport,
    Scope,
    install,
    remove,
    verify_installed,
)

# Utility imports
from pynativehost.utils.errors import (
    NativeMessagingError,
    DisconnectedError,
    MessageTooLargeError,
    FrameIOError,
    InvalidUtf8Error,
    SerializeJsonError,
    DeserializeJsonError,
    HandlerError,
    PathNotAbsoluteError,
    ExecutableNotFoundError,
    UnknownBrowserError,
    UnknownFamilyError,
    RegistryError,
    ManifestWriteError,
    ConfigError,
)
from pynativehost.utils.platform import PlatformUtils

# Version info
VERSION_INFO = tuple(int(part) for part in __version__.split('.') if part.isdigit())

__all__ = [
    # Host
    "MAX_FROM_BROWSER",
    "MAX_TO_BROWSER",
    "encode_message",
    "decode_message",
    "get_message",
    "send_message",
    "StdioChannel",
    "Sender",
    "EventLoop",
    "event_loop",

    # Install
    "Family",
    "Scope",
    "HostIdentity",
    "InstallReport",
    "install",
    "remove",
    "verify_installed",

    # Exceptions
    "NativeMessagingError",
    "DisconnectedError",
    "MessageTooLargeError",
    "FrameIOError",
    "InvalidUtf8Error",
    "SerializeJsonError",
    "DeserializeJsonError",
    "HandlerError",
    "PathNotAbsoluteError",
    "ExecutableNotFoundError",
    "UnknownBrowserError",
    "UnknownFamilyError",
    "RegistryError",
    "ManifestWriteError",
    "ConfigError",

    # Version info
    "__version__",
    "VERSION_INFO",
]

_platform_utils = PlatformUtils()


def get_platform_info():
    """Get platform details relevant to manifest discovery"""
    return _platform_utils.get_platform_info()
