"""
Error taxonomy shared by the gateway client, the history store and the UI.

Background tasks catch VisiontermError and turn it into a status line; only
ConfigError and StorageError raised while starting up end the process.
"""


class VisiontermError(Exception):
    """Base class for every error this application raises on purpose."""


class ConfigError(VisiontermError):
    """No usable API key or an unreadable config file."""


class TransportError(VisiontermError):
    """The gateway could not be reached or the connection broke."""


class GatewayTimeout(TransportError):
    """A single request exceeded the configured timeout."""


class APIError(VisiontermError):
    """The gateway answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"API request failed with status {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class DecodeError(VisiontermError):
    """A response body was not the JSON document the endpoint promises."""


class StorageError(VisiontermError):
    """The local history database could not be opened, read or written."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class ValidationError(VisiontermError):
    """User input rejected before any work is scheduled."""
