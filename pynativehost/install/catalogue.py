"""
pynativehost Browser Catalogue

The set of supported browsers is data, not code: each browser's family,
manifest directories per OS and scope, and Windows registry key templates
come from a JSON document shipped with the package. Set
``NATIVE_MESSAGING_BROWSERS_CONFIG`` to load a different document.

The catalogue is loaded once and never modified afterwards.

Directories need not be unique per key: Brave and the Chrome channels use
Chrome's system directories on Linux and macOS, because that is where those
browsers look.
"""

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, Optional, Union

from pynativehost.utils.errors import ConfigError, UnknownBrowserError, UnknownFamilyError
from pynativehost.utils.logging import get_logger
from pynativehost.utils.platform import SUPPORTED_OS, expand_template

logger = get_logger(__name__)

CONFIG_ENV = "NATIVE_MESSAGING_BROWSERS_CONFIG"
SCHEMA_VERSION = 1
DEFAULT_RESOURCE = "browsers.json"


class Family(Enum):
    """Browser families sharing manifest shape and allow-list key."""
    CHROMIUM = "chromium"
    GECKO = "gecko"

    @classmethod
    def parse(cls, raw: Any, browser_key: str) -> "Family":
        aliases = {'firefox': 'gecko'}
        value = str(raw or '').strip().lower()
        try:
            return cls(aliases.get(value, value))
        except ValueError:
            raise UnknownFamilyError(
                f"unknown browser family '{raw}' for browser '{browser_key}'",
                details={'browser': browser_key, 'family': raw}
            ) from None


class Scope(Enum):
    """Whether a manifest applies to the current user or the whole machine."""
    USER = "user"
    SYSTEM = "system"


@dataclass(frozen=True)
class BrowserDescriptor:
    """One catalogue entry."""

    key: str
    family: Family
    paths: Mapping = field(default_factory=dict)
    requires_registry: bool = False
    registry_keys: Mapping = field(default_factory=dict)

    def manifest_dir(
        self,
        os_name: str,
        scope: Scope,
        environ: Optional[Mapping] = None,
    ) -> Path:
        """Resolve the manifest directory for an OS and scope."""
        scopes = self.paths.get(os_name)
        if not scopes:
            raise ConfigError(
                f"browser '{self.key}' is not configured for {os_name}",
                details={'browser': self.key, 'os': os_name}
            )
        template = scopes.get(scope.value)
        if not template:
            raise ConfigError(
                f"browser '{self.key}' has no {scope.value} scope on {os_name}",
                details={'browser': self.key, 'os': os_name, 'scope': scope.value}
            )
        return Path(expand_template(template, environ))

    def manifest_path(
        self,
        os_name: str,
        scope: Scope,
        host_name: str,
        environ: Optional[Mapping] = None,
    ) -> Path:
        """Full path of ``<host_name>.json`` for this browser."""
        return self.manifest_dir(os_name, scope, environ) / f"{host_name}.json"

    def registry_key(self, scope: Scope, host_name: str) -> str:
        """Registry key path (relative to the scope's hive) for a host."""
        if not self.requires_registry:
            raise ConfigError(
                f"registry not enabled for browser '{self.key}'",
                details={'browser': self.key}
            )
        template = self.registry_keys.get(scope.value)
        if not template:
            raise ConfigError(
                f"missing {scope.value} registry template for browser '{self.key}'",
                details={'browser': self.key, 'scope': scope.value}
            )
        return template.replace('{name}', host_name)

    def supports(self, os_name: str) -> bool:
        return bool(self.paths.get(os_name))


class BrowserCatalogue(Mapping):
    """Read-only mapping of browser key to :class:`BrowserDescriptor`."""

    def __init__(self, descriptors: Dict[str, BrowserDescriptor], source: str = "<memory>"):
        self._descriptors = MappingProxyType(dict(descriptors))
        self.source = source

    def __getitem__(self, key: str) -> BrowserDescriptor:
        return self._descriptors[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def lookup(self, key: str) -> BrowserDescriptor:
        """Get a descriptor, raising :class:`UnknownBrowserError` if missing."""
        try:
            return self._descriptors[key]
        except KeyError:
            raise UnknownBrowserError(
                f"unknown browser: {key}",
                details={'browser': key, 'known': sorted(self._descriptors)}
            ) from None

    def __repr__(self) -> str:
        return f"BrowserCatalogue(source='{self.source}', browsers={sorted(self._descriptors)})"


def _freeze_paths(key: str, raw: Any) -> Mapping:
    if not isinstance(raw, dict):
        raise ConfigError(
            f"browser '{key}' has no 'paths' table",
            details={'browser': key}
        )
    frozen = {}
    for os_name, scopes in raw.items():
        if os_name not in SUPPORTED_OS:
            logger.warning(f"Ignoring unknown OS '{os_name}' for browser '{key}'")
            continue
        if not isinstance(scopes, dict):
            raise ConfigError(
                f"browser '{key}' paths for {os_name} must be an object",
                details={'browser': key, 'os': os_name}
            )
        frozen[os_name] = MappingProxyType({
            scope: str(template) for scope, template in scopes.items()
            if scope in (Scope.USER.value, Scope.SYSTEM.value) and template
        })
    return MappingProxyType(frozen)


def _parse_descriptor(key: str, raw: Any) -> BrowserDescriptor:
    if not isinstance(raw, dict):
        raise ConfigError(
            f"browser '{key}' entry must be an object",
            details={'browser': key}
        )

    requires_registry = bool(raw.get('requires_registry', raw.get('windows_registry', False)))
    registry = raw.get('registry') or {}
    if not isinstance(registry, dict):
        raise ConfigError(
            f"browser '{key}' registry entry must be an object",
            details={'browser': key}
        )

    return BrowserDescriptor(
        key=key,
        family=Family.parse(raw.get('family'), key),
        paths=_freeze_paths(key, raw.get('paths')),
        requires_registry=requires_registry,
        registry_keys=MappingProxyType({k: str(v) for k, v in registry.items() if v}),
    )


def parse_catalogue(data: Any, source: str = "<memory>") -> BrowserCatalogue:
    """Build a catalogue from an already decoded JSON document."""
    if not isinstance(data, dict):
        raise ConfigError("browser catalogue must be a JSON object", details={'source': source})

    version = data.get('schema_version')
    if version != SCHEMA_VERSION:
        raise ConfigError(
            f"unsupported schema_version {version} (expected {SCHEMA_VERSION})",
            details={'source': source}
        )

    browsers = data.get('browsers')
    if not isinstance(browsers, dict) or not browsers:
        raise ConfigError("browser catalogue has no browsers", details={'source': source})

    descriptors = {key: _parse_descriptor(key, raw) for key, raw in browsers.items()}
    return BrowserCatalogue(descriptors, source=source)


def _read_embedded() -> str:
    return resources.files(__package__).joinpath(DEFAULT_RESOURCE).read_text(encoding='utf-8')


def load_catalogue(path: Optional[Union[str, Path]] = None) -> BrowserCatalogue:
    """
    Load a fresh catalogue.

    Args:
        path: Explicit JSON file. When omitted, ``$NATIVE_MESSAGING_BROWSERS_CONFIG``
            is tried and the embedded document is the fallback.

    Returns:
        BrowserCatalogue
    """
    if path is not None:
        source = str(path)
        try:
            raw = Path(path).read_text(encoding='utf-8')
        except OSError as e:
            raise ConfigError(
                f"Failed to read browser catalogue {source}: {e}",
                details={'source': source}
            ) from e
    else:
        raw = None
        override = os.environ.get(CONFIG_ENV)
        if override:
            try:
                raw = Path(override).read_text(encoding='utf-8')
                source = override
            except OSError as e:
                logger.warning(f"Cannot read {CONFIG_ENV}={override} ({e}); using embedded catalogue")
        if raw is None:
            raw = _read_embedded()
            source = f"{__package__}/{DEFAULT_RESOURCE}"

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(
            f"Invalid browser catalogue {source}: {e}",
            details={'source': source}
        ) from e

    catalogue = parse_catalogue(data, source=source)
    logger.debug(f"Loaded {len(catalogue)} browsers from {source}")
    return catalogue


_catalogue: Optional[BrowserCatalogue] = None


def get_catalogue() -> BrowserCatalogue:
    """The process-wide catalogue, loaded on first use."""
    global _catalogue
    if _catalogue is None:
        _catalogue = load_catalogue()
    return _catalogue
