"""
Exceptions raised by the Pirsch client and tool layer.

Everything derives from PirschError so the tool boundary can turn any
failure into an error envelope with a single except clause.
"""


class PirschError(Exception):
    """Base class for all Pirsch errors."""
    pass


class ConfigurationError(PirschError):
    """Raised when required configuration (credentials) is missing or invalid."""
    pass


class AuthenticationError(PirschError):
    """Raised when the token endpoint rejects the client credentials."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Pirsch auth failed ({status}): {body}")


class UpstreamRequestError(PirschError):
    """Raised for a non-retryable, non-2xx response from a data endpoint."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Pirsch API error ({status}): {body}")


class RetryExhaustedError(PirschError):
    """Raised when 401/429 responses persist past the retry limit."""

    def __init__(self, status: int, attempts: int):
        self.status = status
        self.attempts = attempts
        super().__init__(f"Max retries exceeded ({attempts} attempts, last status {status})")


class InvalidArgumentsError(PirschError, ValueError):
    """Raised when tool arguments are missing or malformed."""
    pass


class UnknownToolError(InvalidArgumentsError):
    """Raised when a tool name is not part of the catalogue."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")
