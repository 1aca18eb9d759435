from fastapi import HTTPException, status

from metierflow.store.errors import EntityNotFoundError, StoreError, UnknownEntityError
from metierflow.utils.validation import EntityValidationError


def to_http_exception(error: Exception) -> HTTPException:
    """Map store and validation failures onto HTTP status codes."""
    if isinstance(error, (EntityNotFoundError, UnknownEntityError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, EntityValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, StoreError):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Unexpected error: {str(error)}",
    )
