"""Unit tests for response and payload models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from soliscontrol.models import ApiResponse, ChargeDischargeSchedule


class TestApiResponse:
    """Test the response envelope."""

    def test_read_envelope(self) -> None:
        response = ApiResponse.model_validate(
            {"success": True, "code": "0", "msg": "success", "data": {"msg": "20", "yuanzhi": "20"}}
        )

        assert response.code_text == "0"
        assert response.data_msg == "20"

    def test_numeric_value_as_text(self) -> None:
        response = ApiResponse.model_validate({"code": "0", "data": {"msg": 3000}})
        assert response.data_msg == "3000"

    @pytest.mark.parametrize("code,numeric", [("0", True), (0, True), ("1", True), ("B0218", False), (None, False)])
    def test_numeric_code(self, code: str | int | None, numeric: bool) -> None:
        assert ApiResponse(code=code).has_numeric_code is numeric

    def test_extra_fields_kept(self) -> None:
        response = ApiResponse.model_validate({"code": "0", "requestId": "abc"})
        assert response.model_extra == {"requestId": "abc"}

    def test_missing_data(self) -> None:
        assert ApiResponse(code="0", data=None).data_msg is None
        assert ApiResponse(code="0", data="text").data_msg is None


class TestChargeDischargeSchedule:
    def test_negative_current_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChargeDischargeSchedule(
                charge_current=-1,
                discharge_current=0,
                charge_start="00:00",
                charge_end="01:00",
                discharge_start="02:00",
                discharge_end="03:00",
            )
