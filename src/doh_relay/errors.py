"""Exception types raised by the relays."""


class ConfigError(ValueError):
    """Raised when the environment does not describe a usable relay."""


class RelayError(Exception):
    """Base class for errors raised while relaying a request."""


class ClientInputError(RelayError):
    """The caller sent a request the relay refuses before any outbound call."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class UpstreamTransportError(RelayError):
    """The next hop could not be reached (connect, DNS, TLS or timeout failure)."""

    def __init__(self, url: str, cause: Exception):
        super().__init__(str(cause))
        self.url = url
        self.cause = cause
