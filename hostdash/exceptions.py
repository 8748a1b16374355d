"""Exceptions raised by hostdash collaborators."""
from typing import Optional


class HostDashError(Exception):
    """Base exception for dashboard operations."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DockerUnavailableError(HostDashError):
    """The container runtime could not be reached."""


class ContainerNotFoundError(HostDashError):
    """No container matches the requested id."""


class CommandError(HostDashError):
    """A shell command could not be executed."""


class CommandTimeoutError(CommandError):
    """A shell command exceeded its time limit."""


class WidgetError(HostDashError):
    """A third-party widget API failed or is not configured."""
