"""
Unit tests for the pynativehost browser catalogue

Tests loading the embedded and overridden catalogue documents, path and
registry key resolution, and rejection of malformed entries.
"""

import dataclasses
import json
from pathlib import Path

import pytest

from pynativehost.install import catalogue as catalogue_module
from pynativehost.install.catalogue import (
    BrowserDescriptor,
    Family,
    Scope,
    get_catalogue,
    load_catalogue,
    parse_catalogue,
)
from pynativehost.utils.errors import ConfigError, UnknownBrowserError, UnknownFamilyError
from pynativehost.utils.platform import LINUX, MACOS, WINDOWS


def minimal_document(**browser):
    entry = {
        "family": "chromium",
        "paths": {"linux": {"user": "{HOME}/.config/test/NativeMessagingHosts"}},
    }
    entry.update(browser)
    return {"schema_version": 1, "browsers": {"test": entry}}


class TestEmbeddedCatalogue:
    """Test the catalogue shipped with the package."""

    def test_known_browsers(self, sandbox_env):
        """Test that the embedded document lists the supported browsers."""
        catalogue = load_catalogue()

        for key in [
            "chrome", "chrome-beta", "chrome-dev", "chrome-canary",
            "chromium", "edge", "brave", "vivaldi", "firefox", "librewolf",
        ]:
            assert key in catalogue

    def test_chrome_channels_have_own_user_directories(self, sandbox_env):
        """Test that Chrome Beta/Dev/Canary do not share Chrome's user directory."""
        catalogue = load_catalogue()
        keys = ["chrome", "chrome-beta", "chrome-dev", "chrome-canary"]

        for os_name in (LINUX, MACOS, WINDOWS):
            paths = {catalogue[key].manifest_path(os_name, Scope.USER, "h") for key in keys}
            assert len(paths) == len(keys)

        assert all(catalogue[key].family is Family.CHROMIUM for key in keys)
        assert catalogue["chrome-dev"].manifest_dir(LINUX, Scope.USER) == (
            sandbox_env / "home" / ".config" / "google-chrome-unstable" / "NativeMessagingHosts"
        )
        assert catalogue["chrome-canary"].registry_key(Scope.USER, "h") == (
            r"Software\Google\Chrome SxS\NativeMessagingHosts\h"
        )

    def test_families(self, sandbox_env):
        """Test family assignment for representative browsers."""
        catalogue = load_catalogue()

        assert catalogue["chrome"].family is Family.CHROMIUM
        assert catalogue["edge"].family is Family.CHROMIUM
        assert catalogue["firefox"].family is Family.GECKO
        assert catalogue["librewolf"].family is Family.GECKO

    def test_every_browser_resolves_user_paths(self, sandbox_env):
        """Test that user-scope paths resolve on every OS for every browser."""
        catalogue = load_catalogue()

        for descriptor in catalogue.values():
            for os_name in (LINUX, MACOS, WINDOWS):
                path = descriptor.manifest_path(os_name, Scope.USER, "com.example.host")
                assert path.name == "com.example.host.json"
                assert str(sandbox_env) in str(path)

    def test_catalogue_is_read_only(self, sandbox_env):
        """Test that neither the mapping nor its entries can be modified."""
        catalogue = load_catalogue()

        with pytest.raises(TypeError):
            catalogue["chrome"] = None
        with pytest.raises(dataclasses.FrozenInstanceError):
            catalogue["chrome"].requires_registry = False
        with pytest.raises(TypeError):
            catalogue["chrome"].paths["linux"] = {}

    def test_get_catalogue_is_cached(self, sandbox_env):
        """Test that the process-wide catalogue is loaded once."""
        assert get_catalogue() is get_catalogue()

    def test_lookup_unknown_browser(self, sandbox_env):
        """Test that unknown keys raise UnknownBrowserError."""
        with pytest.raises(UnknownBrowserError) as exc_info:
            load_catalogue().lookup("netscape")

        assert "netscape" in str(exc_info.value)
        assert "chrome" in exc_info.value.details["known"]


class TestBrowserDescriptor:
    """Test path and registry key resolution."""

    def test_linux_chrome_user_path(self, sandbox_env):
        """Test the Chrome user manifest location on Linux."""
        chrome = load_catalogue()["chrome"]

        path = chrome.manifest_path(LINUX, Scope.USER, "com.example.host")

        assert path == sandbox_env / "home" / ".config" / "google-chrome" / "NativeMessagingHosts" / "com.example.host.json"

    def test_linux_chrome_system_path(self, sandbox_env):
        """Test the Chrome system manifest location on Linux."""
        chrome = load_catalogue()["chrome"]

        path = chrome.manifest_path(LINUX, Scope.SYSTEM, "com.example.host")

        assert path == Path("/etc/opt/chrome/native-messaging-hosts/com.example.host.json")

    def test_windows_firefox_uses_appdata(self, sandbox_env):
        """Test that Firefox on Windows lives under APPDATA."""
        firefox = load_catalogue()["firefox"]

        path = firefox.manifest_path(WINDOWS, Scope.USER, "com.example.host")

        assert str(path).startswith(str(sandbox_env / "appdata_roaming"))

    def test_missing_environment_variable(self, sandbox_env):
        """Test that an unset template variable is a configuration error."""
        chrome = load_catalogue()["chrome"]

        with pytest.raises(ConfigError) as exc_info:
            chrome.manifest_path(WINDOWS, Scope.USER, "com.example.host", environ={})

        assert exc_info.value.details["variable"] == "LOCALAPPDATA"

    def test_unconfigured_os(self):
        """Test that an OS without paths is reported."""
        descriptor = parse_catalogue(minimal_document())["test"]

        assert not descriptor.supports(MACOS)
        with pytest.raises(ConfigError):
            descriptor.manifest_path(MACOS, Scope.USER, "h")

    def test_unconfigured_scope(self):
        """Test that a missing scope is reported."""
        descriptor = parse_catalogue(minimal_document())["test"]

        with pytest.raises(ConfigError):
            descriptor.manifest_path(LINUX, Scope.SYSTEM, "h", environ={"HOME": "/home/u"})

    def test_registry_key(self, sandbox_env):
        """Test registry key templating."""
        chrome = load_catalogue()["chrome"]

        key = chrome.registry_key(Scope.USER, "com.example.host")

        assert key == r"Software\Google\Chrome\NativeMessagingHosts\com.example.host"

    def test_registry_key_without_registry(self):
        """Test that asking a registry-less browser for a key fails."""
        descriptor = parse_catalogue(minimal_document())["test"]

        with pytest.raises(ConfigError):
            descriptor.registry_key(Scope.USER, "h")


class TestCatalogueParsing:
    """Test catalogue document validation."""

    def test_firefox_family_alias(self):
        """Test that 'firefox' is accepted as the Gecko family name."""
        catalogue = parse_catalogue(minimal_document(family="firefox"))

        assert catalogue["test"].family is Family.GECKO

    def test_unknown_family(self):
        """Test that an unknown family is rejected."""
        with pytest.raises(UnknownFamilyError):
            parse_catalogue(minimal_document(family="presto"))

    def test_wrong_schema_version(self):
        """Test that other schema versions are rejected."""
        document = minimal_document()
        document["schema_version"] = 2

        with pytest.raises(ConfigError) as exc_info:
            parse_catalogue(document)

        assert "schema_version" in str(exc_info.value)

    def test_no_browsers(self):
        """Test that an empty catalogue is rejected."""
        with pytest.raises(ConfigError):
            parse_catalogue({"schema_version": 1, "browsers": {}})

    def test_missing_paths(self):
        """Test that an entry without paths is rejected."""
        document = minimal_document()
        del document["browsers"]["test"]["paths"]

        with pytest.raises(ConfigError):
            parse_catalogue(document)

    def test_legacy_windows_registry_flag(self):
        """Test that 'windows_registry' is read as requires_registry."""
        catalogue = parse_catalogue(minimal_document(windows_registry=True))

        assert catalogue["test"].requires_registry


class TestCatalogueOverride:
    """Test loading the catalogue from another file."""

    def test_environment_override(self, sandbox_env, monkeypatch):
        """Test NATIVE_MESSAGING_BROWSERS_CONFIG."""
        config = sandbox_env / "browsers.json"
        config.write_text(json.dumps(minimal_document()))
        monkeypatch.setenv(catalogue_module.CONFIG_ENV, str(config))

        catalogue = load_catalogue()

        assert list(catalogue) == ["test"]
        assert catalogue.source == str(config)

    def test_unreadable_override_falls_back(self, sandbox_env, monkeypatch):
        """Test that a missing override file falls back to the embedded copy."""
        monkeypatch.setenv(catalogue_module.CONFIG_ENV, str(sandbox_env / "missing.json"))

        catalogue = load_catalogue()

        assert "chrome" in catalogue

    def test_explicit_path(self, temp_dir):
        """Test loading from an explicit path."""
        config = temp_dir / "browsers.json"
        config.write_text(json.dumps(minimal_document(family="gecko")))

        assert load_catalogue(config)["test"].family is Family.GECKO

    def test_explicit_path_missing(self, temp_dir):
        """Test that an explicit missing path is an error."""
        with pytest.raises(ConfigError):
            load_catalogue(temp_dir / "nope.json")

    def test_invalid_json(self, temp_dir):
        """Test that a malformed document is a configuration error."""
        config = temp_dir / "browsers.json"
        config.write_text("{schema_version: 1")

        with pytest.raises(ConfigError):
            load_catalogue(config)

    def test_descriptor_direct_construction(self):
        """Test that descriptors can be built without a document."""
        descriptor = BrowserDescriptor(
            key="custom",
            family=Family.CHROMIUM,
            paths={"linux": {"user": "/opt/custom/hosts"}},
        )

        assert descriptor.manifest_path(LINUX, Scope.USER, "h") == Path("/opt/custom/hosts/h.json")
