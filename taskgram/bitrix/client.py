"""Bitrix24 REST client over an incoming webhook.

Calls are POSTed as JSON to ``{domain}/rest/{user}/{token}/{method}``.
Responses below HTTP 500 carry a JSON body; an ``error`` key in it means
the call failed.
"""

import asyncio
from typing import Any, Dict, Optional

import aiohttp
import structlog

from taskgram.config.settings import Settings
from taskgram.exceptions import BitrixApiError, BitrixTimeoutError, MissingConfigError
from taskgram.markup.lookups import FileRecord

logger = structlog.get_logger()

NOT_FOUND_CODES = frozenset({"ERROR_NOT_FOUND", "NOT_FOUND"})


class BitrixMethod:
    """REST method names used by the bot."""

    GET_FILE = "disk.file.get"


class BitrixClient:
    """Minimal async client for the Bitrix24 REST API."""

    def __init__(
        self,
        settings: Settings,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        base_url = settings.bitrix_rest_url
        if not base_url:
            raise MissingConfigError(
                "BX24_DOMAIN, BX24_INCOMING_USER and BX24_INCOMING_TOKEN are required"
            )
        self.base_url = base_url
        self.timeout = aiohttp.ClientTimeout(total=settings.bitrix_timeout_seconds)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "BitrixClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def call(
        self, method: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Invoke a REST method and return the decoded response body."""
        session = self._get_session()
        url = f"{self.base_url}{method}"
        logger.debug("Bitrix request", method=method)

        try:
            async with session.post(url, json=params or {}) as resp:
                status = resp.status
                try:
                    data = await resp.json(content_type=None)
                except ValueError:
                    data = None
        except asyncio.TimeoutError as e:
            logger.error("Bitrix request timed out", method=method)
            raise BitrixTimeoutError(f"Bitrix call {method} timed out") from e
        except aiohttp.ClientError as e:
            logger.error("Bitrix network error", method=method, error=str(e))
            raise BitrixApiError(
                f"Network error calling {method}: {e}", method=method
            ) from e

        if status >= 500 or not isinstance(data, dict):
            logger.error("Bitrix error response", method=method, status=status)
            raise BitrixApiError(
                f"Bitrix call {method} failed with HTTP {status}",
                status=status,
                method=method,
            )

        if "error" in data:
            code = str(data["error"])
            description = data.get("error_description", "")
            logger.error(
                "Bitrix returned an error",
                method=method,
                status=status,
                code=code,
                description=description,
            )
            raise BitrixApiError(
                f"Bitrix call {method} failed: {code} {description}".strip(),
                status=status,
                method=method,
                code=code,
            )

        timing = data.get("time") or {}
        logger.debug(
            "Bitrix response",
            method=method,
            status=status,
            duration=timing.get("duration"),
            processing=timing.get("processing"),
        )
        return data

    async def get_file(self, file_id: int) -> Optional[FileRecord]:
        """Fetch disk file metadata, or None if the file does not exist."""
        try:
            data = await self.call(BitrixMethod.GET_FILE, {"id": file_id})
        except BitrixApiError as e:
            if e.code in NOT_FOUND_CODES:
                return None
            raise

        result = data.get("result")
        if not result:
            return None

        try:
            return FileRecord(
                file_id=int(result["ID"]),
                name=str(result["NAME"]),
                download_url=str(result["DOWNLOAD_URL"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise BitrixApiError(
                f"Malformed disk.file.get result for file {file_id}",
                method=BitrixMethod.GET_FILE,
            ) from e
