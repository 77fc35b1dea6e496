"""Run configuration."""

from .loader import ConfigLoader
from .models import FleetCheckConfig

__all__ = ["ConfigLoader", "FleetCheckConfig"]
