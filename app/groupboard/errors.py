from __future__ import annotations


class GroupboardError(Exception):
    """Base for errors that map onto an HTTP status and a JSON error payload."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(GroupboardError):
    status_code = 400


class ForbiddenError(GroupboardError):
    status_code = 403


class NotFoundError(GroupboardError):
    status_code = 404


class ConflictError(GroupboardError):
    status_code = 409


class PayloadTooLargeError(GroupboardError):
    status_code = 413


class StorageError(GroupboardError):
    status_code = 500
