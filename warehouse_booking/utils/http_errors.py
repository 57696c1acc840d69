from fastapi import HTTPException, status

from ..services.results import ErrorKind, ServiceError, ServiceResult

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.STATE: status.HTTP_409_CONFLICT,
    ErrorKind.TRANSIENT_STORE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(error: ServiceError) -> HTTPException:
    headers = {"Retry-After": "1"} if error.retryable else None
    return HTTPException(
        status_code=STATUS_BY_KIND[error.kind],
        detail=error.message,
        headers=headers,
    )


def unwrap(result: ServiceResult):
    """Return the result value or raise the matching HTTPException"""
    if not result.ok:
        raise to_http_exception(result.error)
    return result.value
