"""Shelly Cloud API client and its error hierarchy."""

from typing import Any, Dict, Iterator, List, Optional


class APIException(Exception):
    """Base exception for errors returned by the Shelly Cloud API.

    The decoded JSON error payload is kept in ``body``; individual keys
    can be read with item access, e.g. ``exc["state"]``.
    """

    def __init__(
        self,
        body: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        request_id: Optional[str] = None,
    ) -> None:
        self.body = body or {}
        self.status_code = status_code
        self.request_id = request_id
        super().__init__(self.message or f"API request failed with status {status_code}")

    def __getitem__(self, key: str) -> Any:
        return self.body.get(key)

    @property
    def message(self) -> Optional[str]:
        return self.body.get("message")


class UnauthorizedException(APIException):
    """Raised on 401: missing or wrong credentials."""
    pass


class ForbiddenException(APIException):
    """Raised on 403: the user may not perform the action."""
    pass


class NotFoundException(APIException):
    """Raised on 404."""

    @property
    def resource(self) -> Optional[str]:
        """Kind of the missing resource, e.g. ``cloud``, ``config``, ``log``."""
        return self.body.get("resource")

    @property
    def id(self) -> Optional[str]:
        return self.body.get("id")


class ConflictException(APIException):
    """Raised on 409: the cloud is in a state that forbids the action."""
    pass


class GemVersionException(APIException):
    """Raised on 412: the API requires a newer client."""

    @property
    def required_version(self) -> Optional[str]:
        return self.body.get("required_version")


class ValidationException(APIException):
    """Raised on 422: the request payload was rejected."""

    @property
    def errors(self) -> List[List[str]]:
        return self.body.get("errors") or []

    def each_error(self) -> Iterator[str]:
        """Yield human readable messages, e.g. ``Code name has already been taken``."""
        for field, message in self.errors:
            yield f"{field.replace('_', ' ').capitalize()} {message}"


class ConnectionFailedException(APIException):
    """Raised when the API cannot be reached at all."""

    def __init__(self, reason: str) -> None:
        super().__init__({"message": reason})


STATUS_EXCEPTIONS = {
    401: UnauthorizedException,
    403: ForbiddenException,
    404: NotFoundException,
    409: ConflictException,
    412: GemVersionException,
    422: ValidationException,
}
