import logging
from flask import Blueprint, request
from flask_limiter.errors import RateLimitExceeded
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException
from quickbuy.utils.responses import error

errors_bp = Blueprint("errors_bp", __name__)


@errors_bp.app_errorhandler(RateLimitExceeded)
def handle_rate_limit(e):
    # Retry-After and X-RateLimit-* are added by the limiter itself
    logging.warning("Rate limit hit on %s %s", request.method, request.path)
    return error(e.description or "Too many requests", status=429)


@errors_bp.app_errorhandler(HTTPException)
def handle_http_exception(e):
    msg = e.description or getattr(e, "name", "HTTP Error")
    return error(msg, status=e.code)


@errors_bp.app_errorhandler(OperationalError)
def handle_database_unavailable(e):
    logging.error("Database unavailable: %s", e.orig)
    return error("The service is temporarily unavailable. Please try again shortly.", status=503)


@errors_bp.app_errorhandler(Exception)
def handle_unexpected_exception(e):
    logging.exception("Unhandled exception on %s %s", request.method, request.path)
    return error("An unexpected error occurred. Please try again later.", status=500)
