# complihr_api/common/errors.py
from flask import Blueprint, current_app
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import IntegrityError
from complihr_api.common.http import fail

bp_errors = Blueprint("errors", __name__)


class APIError(Exception):
    """Base error carrying an error code and HTTP status for the fail() envelope."""
    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message, code=None, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload


class NotFound(APIError):
    """Organization, settings row or category lookup came back empty."""
    status_code = 404
    code = "NOT_FOUND"


class InvalidArgument(APIError):
    """Unknown category, malformed pattern or out-of-range setting."""
    status_code = 422
    code = "INVALID_ARGUMENT"


class StorageUnavailable(APIError):
    """Counter store unreachable, or the increment could not be completed."""
    status_code = 503
    code = "STORAGE_UNAVAILABLE"


@bp_errors.app_errorhandler(APIError)
def _api_error(e: APIError):
    return fail(message=e.message, status=e.status_code, code=e.code, detail=e.payload)

@bp_errors.app_errorhandler(HTTPException)
def _http(e: HTTPException):
    return fail(message=e.description or e.name, status=e.code or 400)

@bp_errors.app_errorhandler(IntegrityError)
def _integrity(e: IntegrityError):
    # 409 for unique/FK violations
    return fail(message="Conflict / integrity error", status=409, code="CONSTRAINT_ERROR",
                detail=str(e.orig) if getattr(e, "orig", None) else str(e))

@bp_errors.app_errorhandler(Exception)
def _unhandled(e: Exception):
    current_app.logger.exception(e)
    return fail(message="Internal Server Error", status=500)
