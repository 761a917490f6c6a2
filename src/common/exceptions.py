# src/common/exceptions.py

from fastapi import status


class DiscussionError(Exception):
    """
    Base class for domain failures raised by the service layer.

    Every failure carries a machine-checkable ``kind`` and a human-readable
    message; the HTTP layer maps ``status_code`` onto the response.
    """
    kind: str = "internal"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgumentError(DiscussionError):
    kind = "invalid_argument"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(DiscussionError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(DiscussionError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(DiscussionError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT
