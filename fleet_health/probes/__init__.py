"""Per-instance probes."""

from .base import BaseProbe, safe_probe
from .health_probe import HealthProbe
from .metrics_probe import MetricsProbe

__all__ = ["BaseProbe", "safe_probe", "HealthProbe", "MetricsProbe"]
