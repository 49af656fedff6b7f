"""SolisCloud API endpoint groups."""

from __future__ import annotations

from .base import BaseEndpoint
from .control import ControlEndpoints

__all__ = [
    "BaseEndpoint",
    "ControlEndpoints",
]
