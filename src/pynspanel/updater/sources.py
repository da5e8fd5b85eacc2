"""Extraction of the latest published versions from their sources."""

from __future__ import annotations

from typing import Any

from pynspanel import _constants as const
from pynspanel.models.versions import VersionInfo


def parse_tasmota_release(data: Any) -> VersionInfo | None:
    """Read ``tag_name`` from GitHub release metadata, e.g. ``v13.2.0`` -> ``13.2.0``."""
    tag = data.get("tag_name") if isinstance(data, dict) else None
    if not isinstance(tag, str) or not tag:
        return None
    version = tag[1:] if tag[0] in ("v", "V") else tag
    return VersionInfo(version=version)


def parse_berry_driver_source(text: str) -> VersionInfo | None:
    """Find ``version_of_this_script = <n>`` in the driver's ``autoexec.be``."""
    match = const.BERRY_DRIVER_VERSION_RE.search(text)
    if match is None:
        return None
    return VersionInfo(version=match.group("version"))


def parse_nlui_source(text: str) -> VersionInfo | None:
    """Find the desired display firmware and release version in the backend source."""
    match = const.NLUI_HMI_VERSION_RE.search(text)
    if match is None or not match.group("version") or not match.group("internal_version"):
        return None
    return VersionInfo(
        version=match.group("version"),
        internal_version=match.group("internal_version"),
    )
