"""
pynativehost Installer / Verifier / Remover

Writes, checks and deletes host manifests (and Windows registry pointers)
for the browsers named in the catalogue. Everything here is synchronous
and blocking; callers inside an asyncio program should offload these
calls (e.g. ``asyncio.to_thread``).

No locking guards two installs of the same (name, browser, scope) running
at once; callers serialise those themselves.
"""

import json
import os
import posixpath
from dataclasses import dataclass, field
from pathlib import Path, PureWindowsPath
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pynativehost.install.catalogue import (
    BrowserCatalogue,
    BrowserDescriptor,
    Family,
    Scope,
    get_catalogue,
)
from pynativehost.install.manifest import HostIdentity, build_manifest, validate_manifest
from pynativehost.install.registry import RegistryCapability, registry_for_platform
from pynativehost.utils.errors import (
    ConfigError,
    ExecutableNotFoundError,
    InstallError,
    ManifestWriteError,
    PathNotAbsoluteError,
    handle_exception,
)
from pynativehost.utils.logging import get_logger
from pynativehost.utils.platform import WINDOWS, current_os, is_posix

logger = get_logger(__name__)


@dataclass
class InstallReport:
    """What an install wrote, in order."""

    manifests: List[str] = field(default_factory=list)
    registry_keys: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.manifests)


@dataclass
class _Context:
    catalogue: BrowserCatalogue
    os_name: str
    registry: RegistryCapability
    environ: Optional[Mapping]


def _context(
    catalogue: Optional[BrowserCatalogue],
    os_name: Optional[str],
    registry: Optional[RegistryCapability],
    environ: Optional[Mapping],
) -> _Context:
    os_name = os_name or current_os()
    return _Context(
        catalogue=catalogue if catalogue is not None else get_catalogue(),
        os_name=os_name,
        registry=registry if registry is not None else registry_for_platform(os_name),
        environ=environ,
    )


def _coerce_scope(scope: Union[Scope, str]) -> Scope:
    if isinstance(scope, Scope):
        return scope
    try:
        return Scope(str(scope).lower())
    except ValueError:
        raise InstallError(
            f"invalid scope: {scope}",
            details={'scope': str(scope), 'valid': [s.value for s in Scope]}
        ) from None


def _hive_label(scope: Scope) -> str:
    return "HKLM" if scope is Scope.SYSTEM else "HKCU"


def _check_executable(exe_path: Union[str, Path], os_name: str) -> None:
    """Reject relative paths on POSIX and executables known to be missing."""
    exe = str(exe_path)
    if is_posix(os_name) and not posixpath.isabs(exe):
        raise PathNotAbsoluteError(
            "Manifest `path` must be absolute on macOS/Linux",
            details={'path': exe}
        )

    # Best effort: the browser launches the host later, so this can still race
    try:
        os.stat(exe)
    except FileNotFoundError:
        raise ExecutableNotFoundError(
            f"host executable not found: {exe}",
            details={'path': exe}
        ) from None
    except OSError as e:
        logger.warning(f"Cannot confirm host executable {exe}: {e}")


def _write_manifest(path: Path, manifest: Dict[str, Any], os_name: str) -> None:
    """Write the manifest through a temp file and an atomic rename."""
    temp_file = path.with_suffix('.tmp')
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(temp_file, 'w', encoding='utf-8') as f:
            f.write(json.dumps(manifest, indent=2) + "\n")
        if os_name != WINDOWS:
            temp_file.chmod(0o644)
        temp_file.replace(path)
    except OSError as e:
        try:
            temp_file.unlink()
        except OSError:
            pass
        raise ManifestWriteError(
            f"Failed to write manifest {path}: {e}",
            details={'path': str(path), 'error': str(e)}
        ) from e


def _same_path(registered: str, expected: Path, os_name: str) -> bool:
    if os_name == WINDOWS:
        return PureWindowsPath(registered) == PureWindowsPath(str(expected))
    return os.path.normpath(registered) == os.path.normpath(str(expected))


@handle_exception
def install(
    name: str,
    description: str,
    exe_path: Union[str, Path],
    chromium_list: Sequence[str],
    gecko_list: Sequence[str],
    browser_keys: Sequence[str],
    scope: Union[Scope, str] = Scope.USER,
    *,
    catalogue: Optional[BrowserCatalogue] = None,
    os_name: Optional[str] = None,
    registry: Optional[RegistryCapability] = None,
    environ: Optional[Mapping] = None,
) -> InstallReport:
    """
    Install host manifests for the given browsers.

    Args:
        name: Host name (e.g. ``com.example.host``)
        description: Human readable description
        exe_path: Host executable; must be absolute on macOS/Linux
        chromium_list: ``allowed_origins`` for Chromium-family browsers
        gecko_list: ``allowed_extensions`` for Gecko-family browsers
        browser_keys: Catalogue keys, processed in order
        scope: ``Scope.USER`` or ``Scope.SYSTEM``

    Returns:
        InstallReport: manifest paths and registry keys written

    The first failure aborts the remaining browsers. Manifests already
    written for earlier browsers stay in place.
    """
    ctx = _context(catalogue, os_name, registry, environ)
    scope = _coerce_scope(scope)
    _check_executable(exe_path, ctx.os_name)

    identity = HostIdentity(name=name, description=description, executable_path=exe_path)
    report = InstallReport()

    for key in browser_keys:
        descriptor = ctx.catalogue.lookup(key)
        manifest = build_manifest(descriptor, identity, chromium_list, gecko_list)
        allowed = chromium_list if descriptor.family is Family.CHROMIUM else gecko_list
        if not allowed:
            logger.warning(f"Installing {name} for {key} with an empty allow-list; no extension can connect")

        manifest_path = descriptor.manifest_path(ctx.os_name, scope, name, ctx.environ)
        _write_manifest(manifest_path, manifest, ctx.os_name)
        report.manifests.append(str(manifest_path))
        logger.info(f"Installed {name} manifest for {key}: {manifest_path}")

        if descriptor.requires_registry and ctx.registry.available:
            key_path = descriptor.registry_key(scope, name)
            ctx.registry.write(scope, key_path, str(manifest_path))
            report.registry_keys.append(f"{_hive_label(scope)}\\{key_path}")

    return report


def _verify_one(
    descriptor: BrowserDescriptor,
    name: str,
    scope: Scope,
    ctx: _Context,
) -> bool:
    if not descriptor.supports(ctx.os_name):
        return False

    try:
        expected = descriptor.manifest_path(ctx.os_name, scope, name, ctx.environ)
    except ConfigError as e:
        logger.debug(f"Skipping {descriptor.key}: {e}")
        return False

    if descriptor.requires_registry and ctx.registry.available:
        registered = ctx.registry.read(scope, descriptor.registry_key(scope, name))
        if registered is None or not _same_path(registered, expected, ctx.os_name):
            return False

    if not expected.is_file():
        return False

    try:
        data = json.loads(expected.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        logger.warning(f"Unreadable manifest {expected}: {e}")
        return False

    return validate_manifest(data, descriptor.family, name, ctx.os_name)


@handle_exception
def verify_installed(
    name: str,
    browser_keys: Optional[Sequence[str]] = None,
    scope: Union[Scope, str] = Scope.USER,
    *,
    catalogue: Optional[BrowserCatalogue] = None,
    os_name: Optional[str] = None,
    registry: Optional[RegistryCapability] = None,
    environ: Optional[Mapping] = None,
) -> bool:
    """
    True if at least one targeted browser has a usable manifest.

    ``browser_keys=None`` checks every catalogued browser. On Windows a
    registry-backed browser also needs a registry value pointing at the
    expected manifest path; a manifest without it does not count.
    """
    ctx = _context(catalogue, os_name, registry, environ)
    scope = _coerce_scope(scope)
    keys = list(ctx.catalogue) if browser_keys is None else list(browser_keys)

    for key in keys:
        descriptor = ctx.catalogue.lookup(key)
        if _verify_one(descriptor, name, scope, ctx):
            logger.debug(f"{name} is installed for {key}")
            return True
    return False


def _keys_sharing_path(
    ctx: _Context,
    descriptor: BrowserDescriptor,
    scope: Scope,
    name: str,
    manifest_path: Path,
) -> List[str]:
    """Other catalogue keys whose manifest resolves to ``manifest_path``."""
    shared = []
    for other in ctx.catalogue.values():
        if other.key == descriptor.key or not other.supports(ctx.os_name):
            continue
        try:
            other_path = other.manifest_path(ctx.os_name, scope, name, ctx.environ)
        except ConfigError:
            continue
        if other_path == manifest_path:
            shared.append(other.key)
    return shared


@handle_exception
def remove(
    name: str,
    browser_keys: Sequence[str],
    scope: Union[Scope, str] = Scope.USER,
    *,
    catalogue: Optional[BrowserCatalogue] = None,
    os_name: Optional[str] = None,
    registry: Optional[RegistryCapability] = None,
    environ: Optional[Mapping] = None,
) -> None:
    """
    Delete manifests and registry pointers for the given browsers.

    Missing files and keys are ignored, so removing twice is harmless.
    Some browsers share a system manifest directory (Brave and the Chrome
    channels read Chrome's on Linux and macOS); removing one of them removes
    the file the others read, and a warning names the affected keys.
    """
    ctx = _context(catalogue, os_name, registry, environ)
    scope = _coerce_scope(scope)

    for key in browser_keys:
        descriptor = ctx.catalogue.lookup(key)
        if not descriptor.supports(ctx.os_name):
            continue

        manifest_path = descriptor.manifest_path(ctx.os_name, scope, name, ctx.environ)
        try:
            manifest_path.unlink()
            logger.info(f"Removed {name} manifest for {key}: {manifest_path}")
            shared = _keys_sharing_path(ctx, descriptor, scope, name, manifest_path)
            if shared:
                logger.warning(
                    f"{manifest_path} is also the {name} manifest for {', '.join(shared)}; "
                    f"removed for those browsers too"
                )
        except FileNotFoundError:
            pass
        except OSError as e:
            raise ManifestWriteError(
                f"Failed to remove manifest {manifest_path}: {e}",
                details={'path': str(manifest_path), 'error': str(e)}
            ) from e

        if descriptor.requires_registry and ctx.registry.available:
            ctx.registry.delete(scope, descriptor.registry_key(scope, name))
