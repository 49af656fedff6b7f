"""Unit tests for Home Assistant discovery payloads."""

from __future__ import annotations

import json

from soliscontrol.discovery import (
    allow_grid_charging_config,
    forcecharge_soc_config,
    number_config,
    object_id_for,
    overdischarge_soc_config,
)


class TestObjectId:
    def test_slashes_replaced(self) -> None:
        assert object_id_for("solar/battery/OverdischargeSoc") == "solar_battery_OverdischargeSoc"


class TestNumberConfig:
    """Test number entities."""

    def test_overdischarge_soc(self) -> None:
        message = overdischarge_soc_config("solar/")

        assert message.topic == (
            "homeassistant/number/solar_battery_OverdischargeSoc/number/config"
        )
        assert message.payload == {
            "command_topic": "solar/battery/OverdischargeSoc/set",
            "name": "solar/battery/OverdischargeSoc",
            "object_id": "solar_battery_OverdischargeSoc",
            "state_topic": "solar/battery/OverdischargeSoc",
            "unit_of_measurement": "%",
            "device_class": "battery",
            "min": 10,
            "max": 40,
            "step": 1,
            "mode": "box",
        }

    def test_forcecharge_soc_tracks_bound(self) -> None:
        message = forcecharge_soc_config("solar/", 15)

        assert message.payload["min"] == 4
        assert message.payload["max"] == 15

    def test_forcecharge_soc_min_never_above_max(self) -> None:
        message = forcecharge_soc_config("solar/", 2)

        assert message.payload["min"] == 2
        assert message.payload["max"] == 2

    def test_custom_discovery_prefix(self) -> None:
        message = number_config("home/x", 0, 5, discovery_prefix="ha/")

        assert message.topic == "ha/number/home_x/number/config"

    def test_encode_is_compact_json(self) -> None:
        message = forcecharge_soc_config("solar/", 20)
        encoded = message.encode()

        assert json.loads(encoded) == message.payload
        assert ", " not in encoded


class TestSwitchConfig:
    def test_allow_grid_charging(self) -> None:
        message = allow_grid_charging_config("solar/")

        assert message.topic == (
            "homeassistant/switch/solar_selfuse_AllowGridCharging/switch/config"
        )
        assert message.payload["payload_on"] == "1"
        assert message.payload["payload_off"] == "0"
        assert message.payload["command_topic"] == "solar/selfuse/AllowGridCharging/set"
