"""
pynativehost install side

This package makes a host discoverable by browsers: a config-driven
browser catalogue, the manifest builder, the Windows registry capability
and the install / verify / remove operations.
"""

from .catalogue import (
    BrowserCatalogue,
    BrowserDescriptor,
    Family,
    Scope,
    get_catalogue,
    load_catalogue,
)
from .manifest import HostIdentity, build_manifest, validate_manifest
from .registry import NoRegistry, RegistryCapability, WindowsRegistry, registry_for_platform
from .installer import InstallReport, install, remove, verify_installed

__all__ = [
    'BrowserCatalogue',
    'BrowserDescriptor',
    'Family',
    'Scope',
    'get_catalogue',
    'load_catalogue',
    'HostIdentity',
    'build_manifest',
    'validate_manifest',
    'RegistryCapability',
    'NoRegistry',
    'WindowsRegistry',
    'registry_for_platform',
    'InstallReport',
    'install',
    'remove',
    'verify_installed',
]
