"""
pynativehost Manifest Builder

Host manifests are plain JSON records. Chromium-family browsers authorise
callers through ``allowed_origins`` (``chrome-extension://<id>/``), Gecko
browsers through ``allowed_extensions`` (add-on ids). A manifest carries
exactly one of the two keys.
"""

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Sequence, Union

from pynativehost.install.catalogue import BrowserDescriptor, Family
from pynativehost.utils.errors import UnknownFamilyError
from pynativehost.utils.platform import is_posix

MANIFEST_TYPE = "stdio"

ALLOW_LIST_KEYS = {
    Family.CHROMIUM: "allowed_origins",
    Family.GECKO: "allowed_extensions",
}


@dataclass
class HostIdentity:
    """Who the host is and where its executable lives."""

    name: str
    description: str
    executable_path: Union[str, Path]


def allow_list_key(family: Any) -> str:
    """Manifest key carrying the allow-list for ``family``."""
    try:
        return ALLOW_LIST_KEYS[family]
    except (KeyError, TypeError):
        raise UnknownFamilyError(
            f"unknown browser family '{family}'",
            details={'family': str(family)}
        ) from None


def build_manifest(
    descriptor: BrowserDescriptor,
    identity: HostIdentity,
    chromium_list: Sequence[str],
    gecko_list: Sequence[str],
) -> Dict[str, Any]:
    """
    Build the manifest record for one browser.

    The allow-list is chosen by ``descriptor.family``: two browsers of the
    same family get structurally identical manifests.
    """
    key = allow_list_key(descriptor.family)
    allowed = chromium_list if descriptor.family is Family.CHROMIUM else gecko_list

    return {
        'name': identity.name,
        'description': identity.description,
        'path': str(identity.executable_path),
        'type': MANIFEST_TYPE,
        key: list(allowed),
    }


def validate_manifest(data: Any, family: Family, expected_name: str, os_name: str) -> bool:
    """
    Check an on-disk manifest for the keys a browser needs.

    Returns:
        bool: True if the record is usable by a browser of ``family``
    """
    if not isinstance(data, dict):
        return False
    if data.get('name') != expected_name:
        return False
    if data.get('type') != MANIFEST_TYPE:
        return False

    exe = data.get('path')
    if not isinstance(exe, str) or not exe:
        return False
    if is_posix(os_name) and not PurePosixPath(exe).is_absolute():
        return False

    try:
        wanted = allow_list_key(family)
    except UnknownFamilyError:
        return False
    others: List[str] = [k for k in ALLOW_LIST_KEYS.values() if k != wanted]

    if not isinstance(data.get(wanted), list):
        return False
    return not any(other in data for other in others)
