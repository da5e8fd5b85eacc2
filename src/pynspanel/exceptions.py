"""Custom exception hierarchy for pynspanel."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pynspanel.models.versions import AcquisitionFlags


class PanelError(Exception):
    """Base exception for all pynspanel errors."""


class PanelConfigError(PanelError):
    """Invalid or missing configuration."""


class PanelTransportError(PanelError):
    """HTTP-level failure while fetching a version source (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class VersionAcquisitionError(PanelError):
    """Version discovery did not complete within the poll budget.

    ``flags`` is a copy of the acquisition flags at the moment the
    coordinator gave up, so callers can tell which sources stayed silent.
    """

    def __init__(self, message: str, *, flags: AcquisitionFlags, polls: int) -> None:
        self.flags = flags
        self.polls = polls
        super().__init__(message)
