"""Firmware version discovery and update orchestration."""

from pynspanel.updater.acquisition import VersionAcquisitionCoordinator
from pynspanel.updater.orchestrator import UpdateOrchestrator

__all__ = ["UpdateOrchestrator", "VersionAcquisitionCoordinator"]
