# roster_api/common/errors.py
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException
from roster_api.common.http import fail


class APIError(Exception):
    """Custom API Error class."""
    def __init__(self, code, message, status_code=400, payload=None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.payload = payload


class NotFoundError(APIError):
    """No draft for the month, unknown staff, unknown history entry..."""
    def __init__(self, message, payload=None):
        super().__init__("NOT_FOUND", message, 404, payload)


class ConflictError(APIError):
    """Overlapping maternity period, duplicate staff id, double cancel."""
    def __init__(self, message, payload=None):
        super().__init__("CONFLICT", message, 409, payload)


class ValidationError(APIError):
    def __init__(self, message, payload=None):
        super().__init__("VALIDATION_ERROR", message, 422, payload)


class PersistenceFailure(APIError):
    """A transaction was aborted and rolled back; ``cause`` is the original error."""
    def __init__(self, message, cause=None):
        super().__init__("PERSISTENCE_FAILURE", message, 500, str(cause) if cause else None)
        self.cause = cause


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def _api_error(e: APIError):
        if e.status_code >= 500:
            app.logger.error("%s: %s (%s)", e.code, e.message, e.payload)
        return fail(message=e.message, status=e.status_code, code=e.code, detail=e.payload)

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        return fail(e.description or e.name, status=e.code or 500)

    @app.errorhandler(IntegrityError)
    def _integrity(e: IntegrityError):
        # 409 for unique/FK violations
        return fail(message="Conflict / integrity error", status=409, code="CONSTRAINT_ERROR",
                    detail=str(e.orig) if getattr(e, "orig", None) else str(e))

    @app.errorhandler(Exception)
    def _500(e: Exception):
        app.logger.exception(e)
        return fail("Internal server error", status=500)
