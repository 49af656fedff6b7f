"""Data models for solis-control.

Pydantic models for the SolisCloud response envelope and structured
command payloads.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ApiResponse(BaseModel):
    """Envelope returned by every SolisCloud control endpoint.

    Example success from ``/v2/api/atRead``::

        {"success": true, "code": "0", "msg": "success",
         "data": {"msg": "20", "yuanzhi": "20"}}
    """

    model_config = ConfigDict(extra="allow")

    success: bool | None = None
    code: str | int | None = None
    msg: str | None = None
    data: Any = None

    @property
    def code_text(self) -> str | None:
        """The code as a stripped string, or None when absent."""
        if self.code is None:
            return None
        return str(self.code).strip()

    @property
    def has_numeric_code(self) -> bool:
        code = self.code_text
        return code is not None and code.isdigit()

    @property
    def data_msg(self) -> str | None:
        """Value carried at ``data.msg`` by read responses."""
        if isinstance(self.data, dict):
            value = self.data.get("msg")
            return None if value is None else str(value)
        return None


class ChargeDischargeSchedule(BaseModel):
    """Self-use charge/discharge currents and time windows (cid 4643)."""

    model_config = ConfigDict(frozen=True)

    charge_current: int = Field(ge=0)
    discharge_current: int = Field(ge=0)
    charge_start: str
    charge_end: str
    discharge_start: str
    discharge_end: str

    def to_value(self) -> str:
        """Format as the comma separated value the control API expects."""
        return (
            f"{self.charge_current},{self.discharge_current},"
            f"{self.charge_start}-{self.charge_end},"
            f"{self.discharge_start}-{self.discharge_end}"
        )


__all__ = ["ApiResponse", "ChargeDischargeSchedule"]
