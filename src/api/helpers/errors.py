"""Mapping of service exceptions to HTTP errors."""
from fastapi import HTTPException

from services.exceptions import EditConflictError, NotFoundError, RestoreExpiredError


def api_error(status_code: int, error_code: str, message: str) -> HTTPException:
    """HTTPException whose detail is {"error": CODE, "message": text}."""
    return HTTPException(
        status_code=status_code,
        detail={"error": error_code, "message": message},
    )


def lifecycle_error(
    exc: NotFoundError | EditConflictError | RestoreExpiredError,
    code_prefix: str,
) -> HTTPException:
    """
    Translate a lifecycle failure into its HTTP form.

    NotFoundError -> 404 <PREFIX>_NOT_FOUND, EditConflictError -> 409
    <PREFIX>_EDIT_ONLY_LATEST, RestoreExpiredError -> 410 <PREFIX>_RESTORE_EXPIRED.
    """
    if isinstance(exc, EditConflictError):
        return api_error(409, f"{code_prefix}_EDIT_ONLY_LATEST", str(exc))
    if isinstance(exc, RestoreExpiredError):
        return api_error(410, f"{code_prefix}_RESTORE_EXPIRED", str(exc))
    return api_error(404, f"{code_prefix}_NOT_FOUND", str(exc))
