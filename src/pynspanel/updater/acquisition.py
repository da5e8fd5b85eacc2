"""Discovery of current and latest firmware versions.

One acquisition round fans out to six sources at once:

* three command channel requests that make the panel report its current
  Tasmota, berry driver and HMI versions (the answers come back as
  decoded events and are fed in through the ``set_*_version`` methods)
* three HTTP fetches of the latest published versions

Each completion sets one ``*_known`` flag. A single poll loop checks the
flags once per interval and resolves as soon as all six are set, or
gives up after ``max_polls`` intervals.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import re
from collections.abc import Awaitable, Callable

from pynspanel import _constants as const
from pynspanel._http import VersionSource
from pynspanel.channel import CommandChannel
from pynspanel.config import PanelConfig
from pynspanel.exceptions import PanelTransportError, VersionAcquisitionError
from pynspanel.models.versions import (
    AcquisitionFlags,
    FirmwareKind,
    PanelVersions,
    VersionInfo,
    VersionSnapshot,
)
from pynspanel.updater.sources import parse_berry_driver_source, parse_nlui_source, parse_tasmota_release

_logger = logging.getLogger(__name__)

_SEMVER_CORE_RE = re.compile(r"^\s*[vV]?(\d+(?:\.\d+)*)")


def _semver_key(version: str | None) -> tuple[int, ...] | None:
    if not version:
        return None
    match = _SEMVER_CORE_RE.match(version)
    if match is None:
        return None
    return tuple(int(part) for part in match.group(1).split("."))


def semver_greater(latest: str | None, current: str | None) -> bool:
    """Dotted-numeric comparison, ``"13.10.0" > "13.9.1"``."""
    latest_key = _semver_key(latest)
    current_key = _semver_key(current)
    if latest_key is None or current_key is None:
        return False
    width = max(len(latest_key), len(current_key))
    latest_key += (0,) * (width - len(latest_key))
    current_key += (0,) * (width - len(current_key))
    return latest_key > current_key


def lexical_greater(latest: str | None, current: str | None) -> bool:
    """Plain string comparison of opaque version tokens.

    Only correct while both tokens have the same number of digits
    (``"9" > "10"`` is ``True``).
    """
    if latest is None or current is None:
        return False
    return latest > current


def strip_tasmota_build(version: str) -> str:
    """``"13.1.0(tasmota32)"`` -> ``"13.1.0"``."""
    index = version.find("(")
    return version[:index] if index > 0 else version


@dataclasses.dataclass(slots=True)
class _AcquisitionRound:
    flags: AcquisitionFlags = dataclasses.field(default_factory=AcquisitionFlags)
    current: dict[FirmwareKind, VersionInfo] = dataclasses.field(default_factory=dict)
    latest: dict[FirmwareKind, VersionInfo] = dataclasses.field(default_factory=dict)

    def versions(self, which: dict[FirmwareKind, VersionInfo]) -> PanelVersions:
        return PanelVersions(
            tasmota=which.get(FirmwareKind.TASMOTA),
            berry_driver=which.get(FirmwareKind.BERRY_DRIVER),
            hmi=which.get(FirmwareKind.HMI),
        )


class VersionAcquisitionCoordinator:
    """Collects a :class:`VersionSnapshot` from the panel and the version sources."""

    def __init__(
        self,
        *,
        config: PanelConfig,
        channel: CommandChannel,
        source: VersionSource,
    ) -> None:
        self._config = config
        self._channel = channel
        self._source = source
        self._poll_interval = config.acquisition_poll_interval
        self._max_polls = config.acquisition_max_polls
        self._round = _AcquisitionRound()
        self._lock = asyncio.Lock()
        self._fetch_tasks: set[asyncio.Task[None]] = set()

    @property
    def flags(self) -> AcquisitionFlags:
        """Copy of the flags of the current (or last) round."""
        return self._round.flags.copy()

    @property
    def current_versions(self) -> PanelVersions:
        """Versions reported by the panel in the current (or last) round."""
        return self._round.versions(self._round.current)

    # ------------------------------------------------------------------
    # Current versions reported by the panel
    # ------------------------------------------------------------------

    def set_tasmota_version(self, version: str | None) -> None:
        if version is None:
            return
        self._round.current[FirmwareKind.TASMOTA] = VersionInfo(version=strip_tasmota_build(version))
        self._round.flags.tasmota_current_known = True

    def set_berry_driver_version(self, version: str | None) -> None:
        if version is None:
            return
        self._round.current[FirmwareKind.BERRY_DRIVER] = VersionInfo(version=version)
        self._round.flags.berry_current_known = True

    def set_hmi_version(self, version: VersionInfo | None) -> None:
        if version is None:
            return
        self._round.current[FirmwareKind.HMI] = version
        self._round.flags.hmi_current_known = True

    def _request_current_versions(self) -> None:
        self._channel.send(const.CMD_STATUS, const.PARAM_STATUS_FIRMWARE)
        self._channel.send(const.CMD_GET_DRIVER_VERSION, const.PARAM_GET_DRIVER_VERSION)
        self._channel.send_raw(const.LUI_CMD_ACTIVATE_STARTUP_PAGE)

    # ------------------------------------------------------------------
    # Latest published versions
    # ------------------------------------------------------------------

    async def _fetch_tasmota_latest(self, round_: _AcquisitionRound) -> None:
        info = parse_tasmota_release(await self._source.fetch_json(self._config.tasmota_release_url))
        if info is None:
            _logger.warning("Tasmota release metadata has no tag_name")
            return
        round_.latest[FirmwareKind.TASMOTA] = info
        round_.flags.tasmota_latest_known = True

    async def _fetch_berry_driver_latest(self, round_: _AcquisitionRound) -> None:
        info = parse_berry_driver_source(await self._source.fetch_text(self._config.berry_driver_url))
        if info is None:
            _logger.warning("Berry driver source has no version_of_this_script")
            return
        round_.latest[FirmwareKind.BERRY_DRIVER] = info
        round_.flags.berry_latest_known = True

    async def _fetch_hmi_latest(self, round_: _AcquisitionRound) -> None:
        info = parse_nlui_source(await self._source.fetch_text(self._config.nlui_source_url))
        if info is None:
            _logger.warning("Backend source has no desired_display_firmware_version")
            return
        round_.latest[FirmwareKind.HMI] = info
        round_.flags.hmi_latest_known = True

    async def _guarded(self, name: str, fetch: Awaitable[None]) -> None:
        try:
            await fetch
        except PanelTransportError as exc:
            _logger.warning("Fetching latest %s version failed: %s", name, exc)

    def _start_fetches(self, round_: _AcquisitionRound) -> None:
        fetches: list[tuple[str, Callable[[_AcquisitionRound], Awaitable[None]]]] = [
            ("tasmota", self._fetch_tasmota_latest),
            ("berry driver", self._fetch_berry_driver_latest),
            ("hmi", self._fetch_hmi_latest),
        ]
        for name, fetch in fetches:
            task = asyncio.create_task(self._guarded(name, fetch(round_)))
            self._fetch_tasks.add(task)
            task.add_done_callback(self._fetch_tasks.discard)

    # ------------------------------------------------------------------
    # Acquisition
    # ------------------------------------------------------------------

    def _resolve(self, round_: _AcquisitionRound) -> VersionSnapshot:
        current = round_.current
        latest = round_.latest
        flags = round_.flags

        flags.tasmota_update_available = semver_greater(
            latest[FirmwareKind.TASMOTA].version,
            current[FirmwareKind.TASMOTA].version,
        )
        flags.berry_update_available = lexical_greater(
            latest[FirmwareKind.BERRY_DRIVER].version,
            current[FirmwareKind.BERRY_DRIVER].version,
        )
        flags.hmi_update_available = lexical_greater(
            latest[FirmwareKind.HMI].internal_version,
            current[FirmwareKind.HMI].internal_version,
        )

        return VersionSnapshot(
            current=round_.versions(current),
            latest=round_.versions(latest),
            flags=flags.copy(),
        )

    async def acquire(self) -> VersionSnapshot:
        """Run one acquisition round.

        Raises
        ------
        VersionAcquisitionError
            When not every ``*_known`` flag is set after ``max_polls`` polls.
            In-flight requests are not cancelled; whatever they deliver later
            lands in the abandoned round.
        """
        async with self._lock:
            round_ = _AcquisitionRound()
            self._round = round_
            self._request_current_versions()
            self._start_fetches(round_)

            for polls in range(1, self._max_polls + 1):
                await asyncio.sleep(self._poll_interval)
                if round_.flags.all_known:
                    snapshot = self._resolve(round_)
                    _logger.debug(
                        "Versions acquired after %d polls current=%s latest=%s",
                        polls,
                        snapshot.current.model_dump(exclude_none=True),
                        snapshot.latest.model_dump(exclude_none=True),
                    )
                    return snapshot

            flags = round_.flags.copy()
            raise VersionAcquisitionError(
                f"Version acquisition timed out after {self._max_polls} polls, missing {flags.missing()}",
                flags=flags,
                polls=self._max_polls,
            )

    async def aclose(self) -> None:
        """Cancel version fetches that are still in flight."""
        tasks = list(self._fetch_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

