"""HTTP access to the published version sources."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp

from pynspanel.exceptions import PanelTransportError

_logger = logging.getLogger(__name__)


class VersionSource(Protocol):
    """Structural interface used by the acquisition coordinator.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpVersionSource`) concrete.
    """

    async def fetch_json(self, url: str) -> Any:
        ...

    async def fetch_text(self, url: str) -> str:
        ...


class HttpVersionSource:
    """Plain GET requests against GitHub release metadata and raw source files."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        user_agent: str,
        timeout: float = 10.0,
    ) -> None:
        self._http = http_session
        self._headers = {"user-agent": user_agent}
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def fetch_text(self, url: str) -> str:
        _logger.debug("GET %s", url)
        try:
            async with self._http.get(url, headers=self._headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise PanelTransportError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        url=url,
                    )
        except PanelTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise PanelTransportError(f"Request to {url} failed: {exc}", url=url) from exc
        except (UnicodeDecodeError, LookupError) as exc:
            raise PanelTransportError(f"Undecodable response body from {url}: {exc}", url=url) from exc
        return text

    async def fetch_json(self, url: str) -> Any:
        text = await self.fetch_text(url)
        try:
            return json.loads(text)
        except (json.JSONDecodeError, RecursionError) as exc:
            raise PanelTransportError(f"Invalid JSON from {url}: {text[:200]}", url=url) from exc
