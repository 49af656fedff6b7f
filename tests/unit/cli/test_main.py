"""Tests for the solis-control command line."""

from __future__ import annotations

import logging
from collections.abc import Generator
from typing import Any

import pytest
from aioresponses import aioresponses
from conftest import BASE_URL, INVERTER_ID, KEY_ID, KEY_SECRET, read_response

from soliscontrol import __version__
from soliscontrol.cli import main as cli
from soliscontrol.config import BridgeConfig, BridgeMode
from soliscontrol.constants import ControlParameter

REQUIRED = [
    "--solis-inverter",
    INVERTER_ID,
    "--solis-keyid",
    KEY_ID,
    "--solis-secret",
    KEY_SECRET,
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real credentials in the environment out of parser defaults."""
    for name in ("SOLIS_INVERTER_ID", "SOLIS_KEY_ID", "SOLIS_KEY_SECRET", "MQTT_PASSWORD"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def root_logger() -> Generator[logging.Logger, None, None]:
    """Restore root logger handlers and level after configure_logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParser:
    """Tests for argument parsing and config building."""

    def test_defaults(self) -> None:
        """Test default option values."""
        args = cli.create_parser().parse_args(REQUIRED)
        config = cli.build_config(args)

        assert config.mqtt.host == "localhost"
        assert config.mqtt.port == 1883
        assert config.topic_prefix == "solar/"
        assert config.publish_discovery is True
        assert config.mode == BridgeMode.CONFIRM
        assert config.experimental_grid_charging is False
        assert config.api_base_url == BASE_URL

    def test_all_options(self) -> None:
        """Test that every option reaches the config."""
        args = cli.create_parser().parse_args(
            [
                *REQUIRED,
                "--mqtt-host", "broker.local",
                "--mqtt-port", "8883",
                "--mqtt-user", "solis",
                "--mqtt-password", "pw",
                "--mqtt-prefix", "home/solis/",
                "--mqtt-publish-ha", "false",
                "--ha-discovery-prefix", "ha",
                "--legacy",
                "--experimental-grid-charging",
                "--api-timeout", "5",
            ]
        )  # fmt: skip
        config = cli.build_config(args)

        assert config.mqtt.host == "broker.local"
        assert config.mqtt.port == 8883
        assert config.mqtt.username == "solis"
        assert config.mqtt.password == "pw"
        assert config.topic_prefix == "home/solis/"
        assert config.publish_discovery is False
        assert config.discovery_prefix == "ha"
        assert config.mode == BridgeMode.LEGACY
        assert config.experimental_grid_charging is True
        assert config.api_timeout == 5.0

    def test_environment_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test credentials taken from the environment."""
        monkeypatch.setenv("SOLIS_INVERTER_ID", INVERTER_ID)
        monkeypatch.setenv("SOLIS_KEY_ID", KEY_ID)
        monkeypatch.setenv("SOLIS_KEY_SECRET", KEY_SECRET)
        monkeypatch.setenv("MQTT_PASSWORD", "envpw")

        config = cli.build_config(cli.create_parser().parse_args(["--mqtt-user", "solis"]))

        assert config.credentials.key_secret == KEY_SECRET
        assert config.mqtt.password == "envpw"

    @pytest.mark.parametrize("value", ["maybe", "2"])
    def test_bad_boolean(self, value: str) -> None:
        """Test --mqtt-publish-ha rejects non-boolean values."""
        with pytest.raises(SystemExit) as exc_info:
            cli.create_parser().parse_args([*REQUIRED, "--mqtt-publish-ha", value])
        assert exc_info.value.code == 2

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test --version output."""
        with pytest.raises(SystemExit):
            cli.create_parser().parse_args(["--version"])
        assert __version__ in capsys.readouterr().out


class TestMain:
    """Tests for the main entry point."""

    def test_missing_credentials(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that missing credentials exit with a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--solis-inverter", INVERTER_ID])

        assert exc_info.value.code == 2
        assert "key id, key secret" in capsys.readouterr().err

    def test_user_without_password(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that an MQTT user without a password is a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main([*REQUIRED, "--mqtt-user", "solis"])

        assert exc_info.value.code == 2
        assert "MQTT password" in capsys.readouterr().err

    def test_unknown_read_parameter(self) -> None:
        """Test --read with an unknown name."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main([*REQUIRED, "--read", "Bogus"])
        assert exc_info.value.code == 2

    def test_dispatch_to_bridge(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that main runs the bridge with the built config."""
        seen: list[BridgeConfig] = []

        async def fake_run_bridge(config: BridgeConfig) -> int:
            seen.append(config)
            return 0

        monkeypatch.setattr(cli, "run_bridge", fake_run_bridge)
        monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)

        assert cli.main([*REQUIRED, "--legacy"]) == 0
        assert seen[0].mode == BridgeMode.LEGACY

    def test_dispatch_to_read(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that --read runs a one-shot read."""
        seen: list[ControlParameter] = []

        async def fake_read(config: BridgeConfig, parameter: ControlParameter) -> int:
            seen.append(parameter)
            return 0

        monkeypatch.setattr(cli, "read_parameter", fake_read)
        monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)

        assert cli.main([*REQUIRED, "--read", "MaxGridPower"]) == 0
        assert seen == [ControlParameter.MAX_GRID_POWER]


class TestReadParameter:
    """Tests for the one-shot read."""

    @pytest.mark.asyncio
    async def test_prints_value(
        self,
        mocked_api: aioresponses,
        config: BridgeConfig,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        mocked_api.post(f"{BASE_URL}/v2/api/atRead", payload=read_response("3000"))

        result = await cli.read_parameter(config, ControlParameter.MAX_GRID_POWER)

        assert result == 0
        assert capsys.readouterr().out.strip() == "3000"

    @pytest.mark.asyncio
    async def test_failure_returns_one(
        self,
        mocked_api: aioresponses,
        config: BridgeConfig,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        mocked_api.post(
            f"{BASE_URL}/v2/api/atRead",
            payload={"success": False, "code": "1", "msg": "no permission"},
        )

        result = await cli.read_parameter(config, ControlParameter.MAX_GRID_POWER)

        assert result == 1
        assert "Failed to read MaxGridPower" in caplog.text


class TestRunBridge:
    """Tests for the bridge runner."""

    @pytest.mark.asyncio
    async def test_runs_bridge(
        self, monkeypatch: pytest.MonkeyPatch, config: BridgeConfig
    ) -> None:
        created: list[Any] = []

        class FakeBridge:
            def __init__(self, config: BridgeConfig, client: Any) -> None:
                self.ran = False
                created.append(self)

            def stop(self) -> None:
                pass

            async def run(self) -> None:
                self.ran = True

        monkeypatch.setattr(cli, "SolisBridge", FakeBridge)

        assert await cli.run_bridge(config) == 0
        assert created[0].ran


class TestConfigureLogging:
    """Tests for the stdout/stderr split."""

    def test_split_streams(
        self, root_logger: logging.Logger, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test info goes to stdout and warnings to stderr."""
        cli.configure_logging()
        log = logging.getLogger("soliscontrol.test")

        log.info("progress message")
        log.warning("problem message")

        captured = capsys.readouterr()
        assert "progress message" in captured.out
        assert "problem message" not in captured.out
        assert "problem message" in captured.err
        assert "progress message" not in captured.err

    def test_silent(
        self, root_logger: logging.Logger, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test silent mode keeps only warnings and errors."""
        cli.configure_logging(silent=True)
        log = logging.getLogger("soliscontrol.test")

        log.info("progress message")
        log.error("problem message")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "problem message" in captured.err

    def test_verbose(self, root_logger: logging.Logger) -> None:
        """Test verbose mode enables debug output."""
        cli.configure_logging(verbose=True)
        assert root_logger.level == logging.DEBUG
