"""Exception types shared by the client modules."""
from __future__ import annotations

__all__ = [
    "ClientError",
    "InvalidNotation",
    "MalformedPayload",
    "NotConnectedError",
    "ProtocolError",
    "UnrecognizedMessageType",
]


class ClientError(Exception):
    """Base class for every error raised by the client package."""


class InvalidNotation(ClientError, ValueError):
    """Raised when a move token is not a letter A-I followed by a digit 1-9."""


class ProtocolError(ClientError):
    """An inbound frame could not be turned into a protocol message."""

    def __init__(self, message: str, raw: str) -> None:
        super().__init__(message)
        self.raw = raw


class UnrecognizedMessageType(ProtocolError):
    """The envelope's ``type`` is not one of the supported variants."""


class MalformedPayload(ProtocolError):
    """The frame is not a valid envelope or its payload has the wrong shape."""


class NotConnectedError(ClientError):
    """Raised by the transport when sending without an open connection."""
