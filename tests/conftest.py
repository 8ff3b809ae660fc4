"""
pynativehost test configuration and fixtures

This module provides shared test fixtures: a sandboxed home directory so
manifest installs never touch the real browser profiles, in-memory byte
streams for the frame codec, and a fake ``winreg`` module.
"""

import io
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from pynativehost.host.codec import HEADER
from pynativehost.install import catalogue as catalogue_module
from pynativehost.utils.logging import get_logger


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_dir = Path(tempfile.mkdtemp(prefix="pynativehost_test_"))
    try:
        yield temp_dir
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def sandbox_env(temp_dir: Path, monkeypatch) -> Path:
    """Point HOME/APPDATA/LOCALAPPDATA/PROGRAMDATA into the temp dir."""
    dirs = {
        "HOME": temp_dir / "home",
        "APPDATA": temp_dir / "appdata_roaming",
        "LOCALAPPDATA": temp_dir / "appdata_local",
        "PROGRAMDATA": temp_dir / "programdata",
    }
    for var, path in dirs.items():
        path.mkdir(parents=True, exist_ok=True)
        monkeypatch.setenv(var, str(path))
    monkeypatch.delenv("NATIVE_MESSAGING_BROWSERS_CONFIG", raising=False)
    monkeypatch.setattr(catalogue_module, "_catalogue", None)
    return temp_dir


@pytest.fixture
def host_exe(temp_dir: Path) -> Path:
    """An existing, absolute host executable path."""
    exe = temp_dir / "bin" / "native-host"
    exe.parent.mkdir(parents=True, exist_ok=True)
    exe.write_text("#!/bin/sh\nexit 0\n")
    exe.chmod(0o755)
    return exe


@pytest.fixture
def logger():
    """Get a test logger instance."""
    return get_logger("test", level="DEBUG")


class BytesSource:
    """Async byte source over an in-memory buffer."""

    def __init__(self, data: bytes = b"", chunk_size: int = 0):
        self._buffer = io.BytesIO(data)
        self.chunk_size = chunk_size
        self.reads = 0

    async def read(self, n: int = -1) -> bytes:
        self.reads += 1
        if self.chunk_size and n > self.chunk_size:
            n = self.chunk_size
        return self._buffer.read(n)

    def tell(self) -> int:
        return self._buffer.tell()


class FailingSource:
    """Async byte source whose transport is broken."""

    async def read(self, n: int = -1) -> bytes:
        raise OSError(5, "Input/output error")


class BytesSink:
    """Async byte sink recording writes and flushes."""

    def __init__(self):
        self.buffer = io.BytesIO()
        self.flushes = 0

    async def write(self, data: bytes) -> int:
        return self.buffer.write(data)

    async def flush(self) -> None:
        self.flushes += 1

    def getvalue(self) -> bytes:
        return self.buffer.getvalue()


class BrokenSink(BytesSink):
    """Async byte sink whose reader went away."""

    async def write(self, data: bytes) -> int:
        raise BrokenPipeError(32, "Broken pipe")


def frame(payload: bytes) -> bytes:
    """Build a raw frame around an arbitrary payload."""
    return HEADER.pack(len(payload)) + payload


class FakeWinreg:
    """Just enough of ``winreg`` for the installer."""

    HKEY_CURRENT_USER = "HKCU"
    HKEY_LOCAL_MACHINE = "HKLM"
    REG_SZ = 1

    class _Handle:
        def __init__(self, hive, path):
            self.hive = hive
            self.path = path

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

    def __init__(self):
        self.values = {}
        self.fail_on = None

    def _check(self, op):
        if self.fail_on == op:
            raise PermissionError(13, "Access is denied")

    def CreateKey(self, hive, path):
        self._check("create")
        self.values.setdefault((hive, path), None)
        return self._Handle(hive, path)

    def SetValueEx(self, handle, name, reserved, value_type, value):
        self._check("set")
        self.values[(handle.hive, handle.path)] = value

    def OpenKey(self, hive, path):
        self._check("open")
        if (hive, path) not in self.values:
            raise FileNotFoundError(2, "The system cannot find the file specified")
        return self._Handle(hive, path)

    def QueryValueEx(self, handle, name):
        return self.values[(handle.hive, handle.path)], self.REG_SZ

    def DeleteKey(self, hive, path):
        self._check("delete")
        if (hive, path) not in self.values:
            raise FileNotFoundError(2, "The system cannot find the file specified")
        del self.values[(hive, path)]


@pytest.fixture
def fake_winreg() -> FakeWinreg:
    """In-memory registry."""
    return FakeWinreg()


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "platform: mark test as platform-specific")


def pytest_collection_modifyitems(config, items):
    """Mark tests that simulate another OS."""
    for item in items:
        if "windows" in item.name.lower():
            item.add_marker(pytest.mark.platform)


def assert_json_file_contains(path: Path, key: str, expected_value, message: str = ""):
    """Assert that a JSON file contains a specific key-value pair."""
    import json
    assert path.exists(), f"File does not exist: {path} {message}"

    with open(path) as f:
        data = json.load(f)

    assert key in data, f"JSON file missing key '{key}': {path} {message}"
    assert data[key] == expected_value, f"JSON key '{key}' has wrong value: {path} {message}"


pytest.assert_json_file_contains = assert_json_file_contains
