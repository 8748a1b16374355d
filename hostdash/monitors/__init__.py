"""
Metric and container collaborators used by the broadcaster and the routes.
"""
from .system import SystemStatsMonitor, NetworkRateTracker  # noqa: F401
from .docker import ContainerClient  # noqa: F401

__all__ = [
    'SystemStatsMonitor',
    'NetworkRateTracker',
    'ContainerClient'
]
