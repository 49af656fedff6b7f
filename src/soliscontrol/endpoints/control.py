"""Register read and write endpoints.

Both endpoints share the signed envelope but differ in payload and in how
the response code is judged:

- ``/v2/api/atRead``: ``{"inverterId", "cid"}``; success is ``code == "0"``
  and the value is at ``data.msg``.
- ``/v2/api/control``: ``{"inverterId", "cid", "value"}``; the code must be
  numeric and ``0`` means success.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from soliscontrol.constants import ENDPOINT_CONTROL, ENDPOINT_READ
from soliscontrol.endpoints.base import BaseEndpoint
from soliscontrol.exceptions import (
    SolisMalformedResponseError,
    SolisRemoteRejectedError,
)
from soliscontrol.models import ApiResponse

_LOGGER = logging.getLogger(__name__)


def _parse_envelope(raw: dict[str, Any], action: str) -> ApiResponse:
    try:
        return ApiResponse.model_validate(raw)
    except ValidationError as err:
        raise SolisMalformedResponseError(
            f"{action}: unexpected envelope {raw}", response=raw
        ) from err


def _describe(response: ApiResponse) -> str:
    if response.msg:
        return f"code {response.code_text}: {response.msg}"
    return f"code {response.code_text}"


class ControlEndpoints(BaseEndpoint):
    """Signed register access for the configured inverter."""

    async def read(self, cid: int) -> str:
        """Read the current value of a register.

        Args:
            cid: Register id, e.g. 158 for the over-discharge SOC

        Returns:
            The value reported at ``data.msg``, as text

        Raises:
            SolisRemoteRejectedError: If the code is not ``"0"``
            SolisMalformedResponseError: If a successful response has no value
            SolisConnectionError: If the API cannot be reached

        Example:
            >>> await client.control.read(158)
            '20'
        """
        action = f"Read of cid {cid}"
        payload = {"inverterId": self.inverter_id, "cid": str(cid)}
        raw = await self.client._request(ENDPOINT_READ, payload)
        response = _parse_envelope(raw, action)

        if response.code_text != "0":
            raise SolisRemoteRejectedError(
                f"{action} failed, {_describe(response)}",
                code=response.code,
                response=raw,
            )

        value = response.data_msg
        if value is None:
            raise SolisMalformedResponseError(f"{action}: no data.msg in {raw}", response=raw)

        _LOGGER.debug("cid %d reads %s", cid, value)
        return value

    async def write(self, cid: int, value: str) -> ApiResponse:
        """Write a register value.

        WARNING: This changes device configuration! Calls are not
        idempotent and are never retried.

        Args:
            cid: Register id
            value: Value to write (as string)

        Returns:
            ApiResponse: The success envelope

        Raises:
            SolisMalformedResponseError: If the code is missing or not numeric
            SolisRemoteRejectedError: If the numeric code is not 0
            SolisConnectionError: If the API cannot be reached
        """
        action = f"Write of cid {cid}"
        payload = {"inverterId": self.inverter_id, "cid": str(cid), "value": str(value)}
        raw = await self.client._request(ENDPOINT_CONTROL, payload)
        response = _parse_envelope(raw, action)

        if not response.has_numeric_code:
            raise SolisMalformedResponseError(
                f"{action}: failed to parse code from {raw}",
                code=response.code,
                response=raw,
            )

        if int(response.code_text or "0") != 0:
            raise SolisRemoteRejectedError(
                f"{action} failed, {_describe(response)}",
                code=response.code,
                response=raw,
            )

        _LOGGER.debug("cid %d written with %s", cid, value)
        return response
