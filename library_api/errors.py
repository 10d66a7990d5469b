import logging
import traceback

from flask import current_app, jsonify, request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from library_api.responses import error_response
from models import storage
from services.exceptions import DuplicateISBN, DuplicateName, LibraryError, PersistenceFailure

logger = logging.getLogger(__name__)

# Unique constraints that back the application-level duplicate checks
UNIQUE_BACKSTOPS = (
    (("books.isbn", "ix_books_isbn"), DuplicateISBN, "isbn"),
    (("categories.name", "ix_categories_name"), DuplicateName, "name"),
)


def _diagnostics(err: Exception) -> dict:
    if not current_app.config.get("EXPOSE_ERROR_DETAILS"):
        return {}
    return {
        "error": f"{err.__class__.__name__}: {err}",
        "stack": "".join(traceback.format_exception(type(err), err, err.__traceback__)),
    }


def _submitted(field: str):
    body = request.get_json(force=True, silent=True)
    return body.get(field) if isinstance(body, dict) else None


def register_error_handlers(app):
    @app.errorhandler(LibraryError)
    def handle_library_error(err: LibraryError):
        if err.status >= 500:
            logger.exception("%s on %s %s", err.kind, request.method, request.path, exc_info=err)
        else:
            logger.debug("%s on %s %s: %s", err.kind, request.method, request.path, err.message)
        return jsonify(err.to_dict()), err.status

    # A concurrent write slipped past the duplicate check; the unique index caught it
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        storage.rollback()
        message = str(getattr(err, "orig", err)).lower()
        if "unique" in message or "duplicate" in message:
            for markers, exc_class, field in UNIQUE_BACKSTOPS:
                if any(marker in message for marker in markers):
                    return handle_library_error(exc_class(field=field, value=_submitted(field)))
        return handle_sqlalchemy_error(err)

    @app.errorhandler(SQLAlchemyError)
    def handle_sqlalchemy_error(err: SQLAlchemyError):
        storage.rollback()
        logger.exception("Database failure on %s %s", request.method, request.path, exc_info=err)
        failure = PersistenceFailure(extra=_diagnostics(err))
        return jsonify(failure.to_dict()), failure.status

    @app.errorhandler(404)
    def route_not_found(e):
        return error_response(f"Route not found: {request.path}", 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return error_response(f"Method {request.method} not allowed on {request.path}", 405)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response(err.description or err.name, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.path, exc_info=err)
        return error_response("Internal server error", 500, **_diagnostics(err))
