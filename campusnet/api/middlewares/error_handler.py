# campusnet/api/middlewares/error_handler.py
import logging

from flask import Flask, jsonify
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException

from campusnet.config.settings import Settings
from campusnet.core.exceptions import AppError, RateLimitedError

logger = logging.getLogger(__name__)


def _fail(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def _pydantic_message(err: PydanticValidationError) -> str:
    first = err.errors()[0] if err.errors() else None
    if not first:
        return "Invalid request"
    loc = ".".join(str(p) for p in first.get("loc", ()))
    return f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))


def register_error_handlers(app: Flask, settings: Settings) -> None:
    @app.errorhandler(RateLimitedError)
    def handle_rate_limited(err: RateLimitedError):
        resp, status = _fail(str(err), err.status_code)
        resp.headers["Retry-After"] = str(err.retry_after)
        return resp, status

    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        if err.status_code >= 500:
            logger.warning("%s: %s", type(err).__name__, err)
        return _fail(str(err), err.status_code)

    @app.errorhandler(PydanticValidationError)
    def handle_validation_error(err: PydanticValidationError):
        return _fail(_pydantic_message(err), 400)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        if err.code == 404:
            return _fail("API route not found", 404)
        return _fail(err.description or err.name, err.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        logger.exception("Unhandled server error")

        if settings.debug and not settings.is_production:
            return _fail(str(err) or "Internal Server Error", 500)  # ✅ mostra a msg em dev

        return _fail("Internal Server Error", 500)
