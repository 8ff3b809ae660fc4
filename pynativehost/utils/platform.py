"""
pynativehost Platform Utilities

This module provides OS detection, directory template expansion and
registry availability checks used by the manifest installer.
"""

import os
import platform
import sys
from typing import Any, Dict, Mapping, Optional

from pynativehost.utils.errors import ConfigError, PlatformError
from pynativehost.utils.logging import get_logger

logger = get_logger(__name__)

LINUX = 'linux'
MACOS = 'macos'
WINDOWS = 'windows'

SUPPORTED_OS = (LINUX, MACOS, WINDOWS)

# Placeholder -> environment variable
TEMPLATE_VARIABLES = {
    '{HOME}': 'HOME',
    '{LOCALAPPDATA}': 'LOCALAPPDATA',
    '{APPDATA}': 'APPDATA',
    '{PROGRAMDATA}': 'PROGRAMDATA',
}

_SYSTEM_NAMES = {
    'Linux': LINUX,
    'Darwin': MACOS,
    'Windows': WINDOWS,
}


def current_os() -> str:
    """
    Return the catalogue name of the running OS.

    Raises:
        PlatformError: if the OS has no manifest discovery convention
    """
    system = platform.system()
    try:
        return _SYSTEM_NAMES[system]
    except KeyError:
        raise PlatformError(
            f"Unsupported platform for native messaging: {system}",
            details={'system': system}
        ) from None


def is_posix(os_name: str) -> bool:
    """Manifest `path` must be absolute on these targets."""
    return os_name in (LINUX, MACOS)


def expand_template(template: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Substitute `{HOME}`-style placeholders from the environment.

    Only referenced placeholders are looked up; a referenced but unset
    variable is a configuration error.
    """
    env = os.environ if environ is None else environ
    result = template
    for token, var in TEMPLATE_VARIABLES.items():
        if token not in result:
            continue
        value = env.get(var)
        if not value and var == 'HOME':
            value = os.path.expanduser('~') if environ is None else None
        if not value:
            raise ConfigError(
                f"env var {var} not set (needed for {token})",
                details={'template': template, 'variable': var}
            )
        result = result.replace(token, value)
    return result


class PlatformUtils:
    """Platform details relevant to manifest discovery."""

    def __init__(self):
        self._platform_info: Optional[Dict[str, Any]] = None

    def get_platform_info(self) -> Dict[str, Any]:
        """
        Get platform information.

        Returns:
            Dict containing platform details
        """
        if self._platform_info is None:
            self._platform_info = self._detect_platform()

        return self._platform_info.copy()

    def _detect_platform(self) -> Dict[str, Any]:
        """Detect current platform and capabilities."""
        system = platform.system()

        info = {
            'system': system,
            'os_name': _SYSTEM_NAMES.get(system),
            'release': platform.release(),
            'machine': platform.machine(),
            'python_version': sys.version,
            'python_implementation': platform.python_implementation(),
            'byteorder': sys.byteorder,
        }
        info['supported'] = info['os_name'] is not None
        info['registry_available'] = self._check_registry() if system == 'Windows' else False

        return info

    def _check_registry(self) -> bool:
        """Check that the winreg module can be imported."""
        try:
            import winreg  # noqa: F401
            return True
        except ImportError as e:
            logger.warning(f"winreg unavailable: {e}")
            return False
