from functools import wraps
from flask import request
from pydantic import ValidationError
from .responses import validation_error_response


def request_payload() -> dict:
    """JSON body if present, otherwise the submitted form fields."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def validate_schema(schema):
    """Decorator to validate the request payload against a Pydantic schema."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                obj = schema(**request_payload())
            except ValidationError as ve:
                return validation_error_response(ve.errors())
            request.validated_data = obj
            return fn(*args, **kwargs)
        return wrapper

    return decorator
