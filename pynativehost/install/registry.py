"""
pynativehost registry capability

On Windows, Chromium and Gecko browsers find host manifests through a
registry key whose default value is the manifest's absolute path. Other
platforms have no registry step. The installer only ever talks to a
:class:`RegistryCapability`, so its own logic stays platform-agnostic.
"""

from typing import Any, Optional

from pynativehost.install.catalogue import Scope
from pynativehost.utils.errors import RegistryError
from pynativehost.utils.logging import get_logger
from pynativehost.utils.platform import WINDOWS, current_os

logger = get_logger(__name__)


class RegistryCapability:
    """Registry operations the installer needs."""

    available = False

    def write(self, scope: Scope, key_path: str, manifest_path: str) -> None:
        raise NotImplementedError

    def read(self, scope: Scope, key_path: str) -> Optional[str]:
        raise NotImplementedError

    def delete(self, scope: Scope, key_path: str) -> None:
        raise NotImplementedError


class NoRegistry(RegistryCapability):
    """Platforms that discover manifests by directory only."""

    def write(self, scope: Scope, key_path: str, manifest_path: str) -> None:
        pass

    def read(self, scope: Scope, key_path: str) -> Optional[str]:
        return None

    def delete(self, scope: Scope, key_path: str) -> None:
        pass


class WindowsRegistry(RegistryCapability):
    """
    Registry pointers via the stdlib ``winreg`` module.

    ``Scope.USER`` maps to HKEY_CURRENT_USER, ``Scope.SYSTEM`` to
    HKEY_LOCAL_MACHINE (needs elevation).
    """

    available = True

    def __init__(self, winreg_module: Optional[Any] = None):
        self._module = winreg_module

    @property
    def winreg(self) -> Any:
        if self._module is None:
            try:
                import winreg
            except ImportError as e:
                raise RegistryError(f"winreg unavailable: {e}") from e
            self._module = winreg
        return self._module

    def _hive(self, scope: Scope) -> Any:
        if scope is Scope.SYSTEM:
            return self.winreg.HKEY_LOCAL_MACHINE
        return self.winreg.HKEY_CURRENT_USER

    @staticmethod
    def _hive_name(scope: Scope) -> str:
        return "HKLM" if scope is Scope.SYSTEM else "HKCU"

    def write(self, scope: Scope, key_path: str, manifest_path: str) -> None:
        """Create/overwrite the key's default value with the manifest path."""
        winreg = self.winreg
        try:
            with winreg.CreateKey(self._hive(scope), key_path) as handle:
                winreg.SetValueEx(handle, "", 0, winreg.REG_SZ, str(manifest_path))
        except OSError as e:
            raise RegistryError(
                f"registry write failed for {self._hive_name(scope)}\\{key_path}: {e}",
                details={'scope': scope.value, 'key': key_path}
            ) from e
        logger.debug(f"Wrote {self._hive_name(scope)}\\{key_path} -> {manifest_path}")

    def read(self, scope: Scope, key_path: str) -> Optional[str]:
        """Manifest path stored under the key, or None if the key is absent."""
        winreg = self.winreg
        try:
            with winreg.OpenKey(self._hive(scope), key_path) as handle:
                value, _ = winreg.QueryValueEx(handle, "")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise RegistryError(
                f"registry read failed for {self._hive_name(scope)}\\{key_path}: {e}",
                details={'scope': scope.value, 'key': key_path}
            ) from e
        return str(value) if value else None

    def delete(self, scope: Scope, key_path: str) -> None:
        """Delete the key; a missing key is not an error."""
        winreg = self.winreg
        try:
            winreg.DeleteKey(self._hive(scope), key_path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise RegistryError(
                f"registry delete failed for {self._hive_name(scope)}\\{key_path}: {e}",
                details={'scope': scope.value, 'key': key_path}
            ) from e
        logger.debug(f"Deleted {self._hive_name(scope)}\\{key_path}")


def registry_for_platform(os_name: Optional[str] = None) -> RegistryCapability:
    """Pick the registry variant for ``os_name`` (defaults to the running OS)."""
    if (os_name or current_os()) == WINDOWS:
        return WindowsRegistry()
    return NoRegistry()
