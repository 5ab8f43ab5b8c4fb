"""Errors raised by the connpass client.

Transport failures are not wrapped: they surface as the
``requests.RequestException`` raised by the session.
"""


class ConnpassError(Exception):
    """Base class for errors raised by this library."""


class ConfigurationError(ConnpassError, ValueError):
    """A base URL or request URL is malformed."""


class SerializationError(ConnpassError, ValueError):
    """A value could not be converted to or from JSON."""


class RequestEncodeError(SerializationError):
    """The request body could not be serialized."""


class ResponseDecodeError(SerializationError):
    """The response body is not JSON or does not match the expected shape."""
