"""Base class for API endpoint groups."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from soliscontrol.client import SolisCloudClient


class BaseEndpoint:
    """Endpoint group bound to a client."""

    def __init__(self, client: SolisCloudClient) -> None:
        """Initialize with the client used for signed requests.

        Args:
            client: The SolisCloudClient instance
        """
        self.client = client

    @property
    def inverter_id(self) -> str:
        return self.client.credentials.inverter_id
