"""
Utility modules

This package provides error types, stderr-only logging and
platform helpers shared by the host and install packages.
"""

from pynativehost.utils.errors import (
    NativeMessagingError,
    FramingError,
    JsonError,
    InstallError,
    ConfigError,
    PlatformError,
)
from pynativehost.utils.logging import get_logger
from pynativehost.utils.platform import PlatformUtils, current_os, expand_template

__all__ = [
    # Exceptions
    "NativeMessagingError",
    "FramingError",
    "JsonError",
    "InstallError",
    "ConfigError",
    "PlatformError",

    # Utilities
    "get_logger",
    "PlatformUtils",
    "current_os",
    "expand_template",
]
