"""Everything that can go wrong between the upstream provider and a caller.

Transport exceptions never leave `larder`; they are mapped onto one of the
`LarderError` subclasses by `from_transport`.
"""
from enum import Enum
import json

import httpx


class ErrorKind(Enum):
    connectivity = "connectivity"
    timeout = "timeout"
    server_status = "server_status"
    malformed_response = "malformed_response"
    not_found = "not_found"
    empty_result = "empty_result"
    storage_unavailable = "storage_unavailable"
    unknown = "unknown"


class LarderError(Exception):
    kind = ErrorKind.unknown
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        self.message = self.default_message if message is None else message
        super().__init__(self.message)

    def describe(self) -> str:
        return self.default_message


class ConnectivityError(LarderError):
    kind = ErrorKind.connectivity
    default_message = (
        "No internet connection. Please check your network and try again."
    )


class RequestTimeout(LarderError):
    kind = ErrorKind.timeout
    default_message = "Request timed out. Please try again."


class ServerStatusError(LarderError):
    kind = ErrorKind.server_status

    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        if message is None:
            message = f"HTTP error with status code: {status_code}"
        super().__init__(message)

    def describe(self) -> str:
        if self.status_code == 429:
            return "Too many requests. Please wait a moment before trying again."
        if 500 <= self.status_code <= 599:
            return (
                f"Server error ({self.status_code}). "
                "The server is experiencing issues. Please try again later."
            )
        return f"Server error ({self.status_code}). Please try again later."


class MalformedResponse(LarderError):
    kind = ErrorKind.malformed_response
    default_message = "Unable to process server response. Please try again."


class RecipeNotFound(LarderError):
    kind = ErrorKind.not_found
    default_message = "This recipe could not be found. It may have been removed."


class EmptyResult(LarderError):
    kind = ErrorKind.empty_result
    default_message = "No recipes found. Please try again later."


class StorageUnavailable(LarderError):
    kind = ErrorKind.storage_unavailable
    default_message = "Saved recipes are unavailable right now. Please try again."


class UnknownError(LarderError):
    pass


def from_transport(exc: Exception) -> LarderError:
    if isinstance(exc, LarderError):
        return exc
    # Timeouts are transport errors too, check them first.
    if isinstance(exc, httpx.TimeoutException):
        return RequestTimeout(str(exc) or None)
    if isinstance(exc, httpx.HTTPStatusError):
        return ServerStatusError(exc.response.status_code)
    if isinstance(exc, httpx.TransportError):
        return ConnectivityError(str(exc) or None)
    if isinstance(exc, json.JSONDecodeError):
        return MalformedResponse(f"Response is not JSON: {exc}")
    return UnknownError(f"{type(exc).__name__}: {exc}")
