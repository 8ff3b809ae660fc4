"""
pynativehost Test Suite

This package contains tests for pynativehost including:
- Unit tests for the frame codec, stdio channel and event loop
- Unit tests for the browser catalogue, manifests and installer
"""
