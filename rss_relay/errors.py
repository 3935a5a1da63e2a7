"""Error taxonomy for rss_relay."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for rss_relay errors."""


class ConfigurationError(RelayError, ValueError):
    """Startup parameters or configuration files are missing or invalid."""


class FetchError(RelayError):
    """A single feed could not be downloaded or parsed."""

    def __init__(self, source_title: str, cause: object) -> None:
        super().__init__(f"Failed to fetch feed '{source_title}': {cause}")
        self.source_title = source_title
        self.cause = cause


class DeliveryError(RelayError):
    """A message could not be sent to its destination."""

    def __init__(self, destination: object, cause: object) -> None:
        super().__init__(f"Failed to deliver message to {destination}: {cause}")
        self.destination = destination
        self.cause = cause
