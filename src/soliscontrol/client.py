"""SolisCloud device control API client.

This module provides an async client for the SolisCloud device control
API (v2). Every call is authenticated independently with the signed-header
scheme implemented in :mod:`soliscontrol.signing`; there is no session or
login step.

Key Features:
- Async/await support with aiohttp
- Support for injected aiohttp.ClientSession
- Bounded per-call timeout, reported as a connection error
- No automatic retries: a repeated write reaches the inverter twice
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import aiohttp
from aiohttp import ClientTimeout

from .config import Credentials
from .constants import DEFAULT_API_TIMEOUT, DEFAULT_BASE_URL
from .endpoints import ControlEndpoints
from .exceptions import (
    SolisConnectionError,
    SolisMalformedResponseError,
    SolisRemoteRejectedError,
)
from .signing import sign_request

_LOGGER = logging.getLogger(__name__)


class SolisCloudClient:
    """SolisCloud device control API client.

    Example:
        ```python
        credentials = Credentials(key_id, key_secret, inverter_id)
        async with SolisCloudClient(credentials) as client:
            soc = await client.control.read(158)
            await client.control.write(158, "25")
        ```
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_API_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the SolisCloud API client.

        Args:
            credentials: API key pair and inverter id
            base_url: Base URL for the API (default: SolisCloud endpoint)
            timeout: Total timeout per request in seconds (default: 30)
            session: Optional aiohttp ClientSession for session injection
        """
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self.timeout = ClientTimeout(total=timeout)

        self._session: aiohttp.ClientSession | None = session
        self._owns_session: bool = session is None
        self._control_endpoints: ControlEndpoints | None = None

    async def __aenter__(self) -> SolisCloudClient:
        """Async context manager entry."""
        await self._get_session()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session.

        Returns:
            aiohttp.ClientSession: The session to use for requests.
        """
        if self._session is not None and not self._owns_session:
            return self._session

        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True

        return self._session

    async def close(self) -> None:
        """Close the session if we own it.

        Only closes the session if it was created by this client,
        not if it was injected.
        """
        if self._session and not self._session.closed and self._owns_session:
            await self._session.close()

    @property
    def control(self) -> ControlEndpoints:
        """Access register read and write endpoints."""
        if self._control_endpoints is None:
            self._control_endpoints = ControlEndpoints(self)
        return self._control_endpoints

    async def _request(self, resource: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a signed JSON body to the API.

        The body is serialised once; the signed digest covers exactly the
        bytes that are sent.

        Args:
            resource: Canonical resource path (joined with base_url)
            payload: JSON body

        Returns:
            dict: Decoded response envelope

        Raises:
            SolisConnectionError: If the API cannot be reached or times out
            SolisRemoteRejectedError: If the API answers with an HTTP error status
            SolisMalformedResponseError: If the body is not a JSON object
        """
        body = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        signed = sign_request(self.credentials, resource, body)
        session = await self._get_session()
        url = f"{self.base_url}{resource}"

        _LOGGER.debug("POST %s %s", resource, payload)
        try:
            async with session.post(
                url, data=body, headers=signed.headers, timeout=self.timeout
            ) as response:
                response.raise_for_status()
                text = await response.text()
        except aiohttp.ClientResponseError as err:
            raise SolisRemoteRejectedError(
                f"HTTP {err.status}: {err.message}", code=err.status
            ) from err
        except aiohttp.ClientError as err:
            raise SolisConnectionError(f"Connection error: {err}") from err
        except asyncio.TimeoutError as err:
            raise SolisConnectionError(
                f"Request to {resource} timed out after {self.timeout.total}s"
            ) from err

        _LOGGER.debug("Response from %s: %s", resource, text)
        try:
            data = json.loads(text)
        except ValueError as err:
            raise SolisMalformedResponseError(
                f"Response from {resource} is not JSON: {text[:200]!r}"
            ) from err
        if not isinstance(data, dict):
            raise SolisMalformedResponseError(
                f"Response from {resource} is not a JSON object: {text[:200]!r}"
            )
        return data
