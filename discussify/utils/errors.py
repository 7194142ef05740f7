# discussify/utils/errors.py
"""
Error taxonomy for the API.

Each class is an HTTPException so controllers and services can raise it
directly; the app's handler renders every one of them as
{"success": false, "message": ...}. Anything else escaping a request is
treated as unexpected and rendered opaquely with a 500.
"""
from fastapi import HTTPException, status


class DiscussifyError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(status_code=self.status_code, detail=message)

    @property
    def message(self) -> str:
        return self.detail


class NotFound(DiscussifyError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(DiscussifyError):
    status_code = status.HTTP_409_CONFLICT


class Forbidden(DiscussifyError):
    status_code = status.HTTP_403_FORBIDDEN


class ValidationFailed(DiscussifyError):
    status_code = status.HTTP_400_BAD_REQUEST


DUPLICATE_COMMUNITY_MESSAGE = "A community with this name already exists."
