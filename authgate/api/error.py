from fastapi import status

from authgate.app import errors
from authgate.libs.result import Error


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(
        self,
        base_error: Error,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    ):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


def to_http_error(error: Error) -> Exception:
    """
    Map a use-case error to the exception the app handlers render.

    Secret mismatches and undecodable refresh tokens are rendered exactly
    like an invalid session so callers cannot tell the cases apart.
    """
    if error.code in errors.MASKED_AS_SESSION_INVALID:
        error = errors.session_invalid()

    status_code = error.status or status.HTTP_400_BAD_REQUEST
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        return ServerError(error, status_code=status_code)
    return ClientError(error, status_code=status_code)
