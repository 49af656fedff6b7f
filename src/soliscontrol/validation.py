"""Command payload validation.

Every inbound payload is checked against its parameter's domain before any
network call is made. Validation is pure: functions either return the
normalised value or raise :class:`~soliscontrol.exceptions.SolisInvalidPayloadError`.

Domains:

1. **Percentage**: a plain non-negative integer of at most six digits, no
   larger than the parameter's upper bound. The lower bound 0 is implicit.

2. **Switch**: exactly ``"0"`` or ``"1"``.

3. **Schedule**: charge/discharge currents plus four ``HH:MM`` fields,
   given as ``<charge A>,<discharge A>,<HH:MM>-<HH:MM>,<HH:MM>-<HH:MM>``.
   All fields are checked before a schedule is returned.
"""

from __future__ import annotations

import re

from .constants import (
    FORCECHARGE_SOC_MAX,
    SWITCH_PAYLOAD_OFF,
    SWITCH_PAYLOAD_ON,
    ControlParameter,
    ParameterDomain,
)
from .exceptions import SolisInvalidPayloadError
from .models import ChargeDischargeSchedule

# Longest integer accepted in a payload or read-back
MAX_INTEGER_DIGITS = 6

_INTEGER_RE = re.compile(r"[0-9]{1,%d}" % MAX_INTEGER_DIGITS)
_TIME_RE = re.compile(r"([01][0-9]|2[0-3]):[0-5][0-9]")

SWITCH_VALUES = (SWITCH_PAYLOAD_OFF, SWITCH_PAYLOAD_ON)

SCHEDULE_TIME_FIELDS: tuple[str, ...] = (
    "charge_start",
    "charge_end",
    "discharge_start",
    "discharge_end",
)


def is_integer_text(text: str) -> bool:
    """Whether ``text`` is a plain non-negative integer of at most six digits."""
    return _INTEGER_RE.fullmatch(text) is not None


def validate_percentage(payload: str, upper: int, *, name: str = "value") -> int:
    """Validate an integer payload in ``0..upper``.

    Args:
        payload: Raw MQTT payload
        upper: Inclusive upper bound
        name: Parameter name for error messages

    Returns:
        The parsed integer
    """
    if not is_integer_text(payload):
        raise SolisInvalidPayloadError(
            f"{name} must be a number between 0 and {upper}, received {payload!r}",
            field=name,
        )
    value = int(payload)
    if value > upper:
        raise SolisInvalidPayloadError(
            f"{name} must be a number between 0 and {upper}, received {payload!r}",
            field=name,
        )
    return value


def validate_switch(payload: str, *, name: str = "value") -> str:
    """Validate a boolean payload; only ``"0"`` and ``"1"`` are accepted."""
    if payload not in SWITCH_VALUES:
        raise SolisInvalidPayloadError(
            f"{name} must be 0 or 1, received {payload!r}", field=name
        )
    return payload


def validate_time(payload: str, *, field: str = "time") -> str:
    """Validate a 24 hour ``HH:MM`` time."""
    if not _TIME_RE.fullmatch(payload):
        raise SolisInvalidPayloadError(
            f"Invalid time for {field}: {payload!r}", field=field
        )
    return payload


def _split_window(window: str, start_field: str, end_field: str) -> tuple[str, str]:
    start, sep, end = window.partition("-")
    if not sep:
        raise SolisInvalidPayloadError(
            f"Expected HH:MM-HH:MM for {start_field}/{end_field}, received {window!r}",
            field=start_field,
        )
    return start, end


def validate_charge_discharge(payload: str) -> ChargeDischargeSchedule:
    """Validate a self-use charge/discharge schedule.

    Example:
        >>> validate_charge_discharge("50,50,02:00-05:00,17:00-23:59").to_value()
        '50,50,02:00-05:00,17:00-23:59'
    """
    parts = payload.split(",")
    if len(parts) != 4:
        raise SolisInvalidPayloadError(
            "ChargeAndDischarge must be "
            f"'<charge A>,<discharge A>,HH:MM-HH:MM,HH:MM-HH:MM', received {payload!r}"
        )

    charge_current, discharge_current, charge_window, discharge_window = parts
    currents: dict[str, int] = {}
    for field, text in (
        ("charge_current", charge_current),
        ("discharge_current", discharge_current),
    ):
        if not is_integer_text(text):
            raise SolisInvalidPayloadError(
                f"{field} must be a non-negative integer, received {text!r}", field=field
            )
        currents[field] = int(text)

    times = dict(
        zip(
            SCHEDULE_TIME_FIELDS,
            (
                *_split_window(charge_window, "charge_start", "charge_end"),
                *_split_window(discharge_window, "discharge_start", "discharge_end"),
            ),
        )
    )
    for field, text in times.items():
        validate_time(text, field=field)

    return ChargeDischargeSchedule(**currents, **times)


def forcecharge_upper_bound(overdischarge_soc: int | None) -> int:
    """Effective upper bound for the force-charge SOC.

    The force-charge SOC may never exceed the over-discharge SOC. When the
    latter is unknown the static maximum applies.
    """
    if overdischarge_soc is None:
        return FORCECHARGE_SOC_MAX
    return min(FORCECHARGE_SOC_MAX, overdischarge_soc)


def validate_command(
    parameter: ControlParameter,
    payload: str,
    *,
    upper: int | None = None,
) -> int | str | ChargeDischargeSchedule:
    """Validate ``payload`` against ``parameter``'s domain.

    Args:
        parameter: Target parameter
        payload: Raw MQTT payload
        upper: Override for the parameter's static upper bound

    Raises:
        SolisInvalidPayloadError: If validation fails or the parameter is read-only
    """
    domain = parameter.domain
    if domain == ParameterDomain.PERCENTAGE:
        bound = upper if upper is not None else parameter.upper
        assert bound is not None
        return validate_percentage(payload, bound, name=parameter.label)
    if domain == ParameterDomain.SWITCH:
        return validate_switch(payload, name=parameter.label)
    if domain == ParameterDomain.SCHEDULE:
        return validate_charge_discharge(payload)
    raise SolisInvalidPayloadError(f"{parameter.label} is read-only", field=parameter.label)
