#!/usr/bin/env python3
"""solis-control command line entry point.

Bridges MQTT command topics to the SolisCloud device control API.

Usage:
    solis-control --solis-inverter <id> --solis-keyid <key> --solis-secret <secret>
    solis-control ... --mqtt-host broker.local --mqtt-user solis --mqtt-password pw
    solis-control ... --read MaxGridPower
    solis-control --help
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import os
import signal
import sys
from collections.abc import Sequence

from soliscontrol import __version__
from soliscontrol.bridge import SolisBridge
from soliscontrol.client import SolisCloudClient
from soliscontrol.config import BridgeConfig, BridgeMode, Credentials, MqttSettings
from soliscontrol.constants import (
    DEFAULT_API_TIMEOUT,
    DEFAULT_BASE_URL,
    DEFAULT_DISCOVERY_PREFIX,
    DEFAULT_MQTT_CLIENT_ID,
    DEFAULT_MQTT_HOST,
    DEFAULT_MQTT_PORT,
    DEFAULT_TOPIC_PREFIX,
    ControlParameter,
)
from soliscontrol.exceptions import SolisConfigError, SolisError

_LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _BelowLevelFilter(logging.Filter):
    """Pass only records below ``level``."""

    def __init__(self, level: int) -> None:
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def configure_logging(*, silent: bool = False, verbose: bool = False) -> None:
    """Send progress to stdout and problems to stderr.

    ``silent`` drops the stdout stream entirely; warnings and errors are
    always written to stderr.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    errors = logging.StreamHandler(sys.stderr)
    errors.setLevel(logging.WARNING)
    errors.setFormatter(formatter)
    root.addHandler(errors)

    if not silent:
        progress = logging.StreamHandler(sys.stdout)
        progress.addFilter(_BelowLevelFilter(logging.WARNING))
        progress.setFormatter(formatter)
        root.addHandler(progress)


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got {value!r}")


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="solis-control",
        description="Bridge MQTT command topics to the SolisCloud device control API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  solis-control --solis-inverter 1308675217944611 --solis-keyid 1300386381676 \\
      --solis-secret SECRET --mqtt-host broker.local --mqtt-user solis --mqtt-password pw
      Run the bridge with Home Assistant discovery

  solis-control ... --legacy
      Write-only mode: no discovery, no startup read, no read-back

  solis-control ... --read MaxGridPower
      Read one register and exit

Credentials may also be given as SOLIS_INVERTER_ID, SOLIS_KEY_ID,
SOLIS_KEY_SECRET and MQTT_PASSWORD environment variables.
""",
    )

    solis_group = parser.add_argument_group("SolisCloud Options")
    solis_group.add_argument(
        "--solis-inverter",
        default=os.environ.get("SOLIS_INVERTER_ID"),
        help="Inverter ID",
    )
    solis_group.add_argument(
        "--solis-keyid",
        default=os.environ.get("SOLIS_KEY_ID"),
        help="API key ID",
    )
    solis_group.add_argument(
        "--solis-secret",
        default=os.environ.get("SOLIS_KEY_SECRET"),
        help="API key secret",
    )
    solis_group.add_argument(
        "--api-url",
        default=DEFAULT_BASE_URL,
        help="API base URL (default: %(default)s)",
    )
    solis_group.add_argument(
        "--api-timeout",
        type=float,
        default=DEFAULT_API_TIMEOUT,
        help="Timeout per API call in seconds (default: %(default)s)",
    )

    mqtt_group = parser.add_argument_group("MQTT Options")
    mqtt_group.add_argument(
        "--mqtt-host",
        default=DEFAULT_MQTT_HOST,
        help="MQTT host (default: %(default)s)",
    )
    mqtt_group.add_argument(
        "--mqtt-port",
        type=int,
        default=DEFAULT_MQTT_PORT,
        help="MQTT port (default: %(default)s)",
    )
    mqtt_group.add_argument("--mqtt-user", help="MQTT user")
    mqtt_group.add_argument(
        "--mqtt-password",
        default=os.environ.get("MQTT_PASSWORD"),
        help="MQTT password (required with --mqtt-user)",
    )
    mqtt_group.add_argument(
        "--mqtt-client-id",
        default=DEFAULT_MQTT_CLIENT_ID,
        help="MQTT client id (default: %(default)s)",
    )
    mqtt_group.add_argument(
        "--mqtt-prefix",
        default=DEFAULT_TOPIC_PREFIX,
        help="Topic prefix (default: %(default)s)",
    )
    mqtt_group.add_argument(
        "--mqtt-publish-ha",
        type=_parse_bool,
        default=True,
        metavar="<true|false>",
        help="Publish Home Assistant discovery (default: true)",
    )
    mqtt_group.add_argument(
        "--ha-discovery-prefix",
        default=DEFAULT_DISCOVERY_PREFIX,
        help="Home Assistant discovery prefix (default: %(default)s)",
    )

    behaviour_group = parser.add_argument_group("Behaviour Options")
    behaviour_group.add_argument(
        "--legacy",
        action="store_true",
        help="Write without read-back; skip discovery and the startup read",
    )
    behaviour_group.add_argument(
        "--experimental-grid-charging",
        action="store_true",
        help="Attempt AllowGridCharging writes (the API may reject them)",
    )
    behaviour_group.add_argument(
        "--read",
        metavar="PARAMETER",
        help=(
            "Read one parameter, print its value and exit "
            f"({', '.join(p.label for p in ControlParameter)})"
        ),
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--silent",
        action="store_true",
        help="Silent mode: only warnings and errors are written (to stderr)",
    )
    output_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def build_config(args: argparse.Namespace) -> BridgeConfig:
    """Build and validate the configuration from parsed arguments.

    Raises:
        SolisConfigError: If required settings are missing
    """
    config = BridgeConfig(
        credentials=Credentials(
            key_id=args.solis_keyid or "",
            key_secret=args.solis_secret or "",
            inverter_id=args.solis_inverter or "",
        ),
        mqtt=MqttSettings(
            host=args.mqtt_host,
            port=args.mqtt_port,
            username=args.mqtt_user,
            password=args.mqtt_password,
            client_id=args.mqtt_client_id,
        ),
        topic_prefix=args.mqtt_prefix,
        publish_discovery=args.mqtt_publish_ha,
        discovery_prefix=args.ha_discovery_prefix,
        mode=BridgeMode.LEGACY if args.legacy else BridgeMode.CONFIRM,
        experimental_grid_charging=args.experimental_grid_charging,
        api_base_url=args.api_url,
        api_timeout=args.api_timeout,
    )
    config.validate()
    return config


async def read_parameter(config: BridgeConfig, parameter: ControlParameter) -> int:
    """Read one parameter and print its value."""
    async with SolisCloudClient(
        config.credentials, base_url=config.api_base_url, timeout=config.api_timeout
    ) as client:
        try:
            value = await client.control.read(parameter.cid)
        except SolisError as err:
            _LOGGER.error("Failed to read %s: %s", parameter.label, err)
            return 1
    print(value)
    return 0


async def run_bridge(config: BridgeConfig) -> int:
    """Run the bridge until SIGINT or SIGTERM."""
    async with SolisCloudClient(
        config.credentials, base_url=config.api_base_url, timeout=config.api_timeout
    ) as client:
        bridge = SolisBridge(config, client)
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(signum, bridge.stop)
        await bridge.run()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    parameter: ControlParameter | None = None
    if args.read is not None:
        try:
            parameter = ControlParameter.from_name(args.read)
        except ValueError as err:
            parser.error(str(err))

    try:
        config = build_config(args)
    except SolisConfigError as err:
        parser.error(str(err))

    configure_logging(silent=args.silent, verbose=args.verbose)
    _LOGGER.debug("Configuration: %s", config.to_dict())

    if parameter is not None:
        return asyncio.run(read_parameter(config, parameter))
    return asyncio.run(run_bridge(config))


if __name__ == "__main__":
    sys.exit(main())
