"""
Payload Module - Request body parsing shared by the blueprints
"""

from flask import request
from .errors import ValidationError


def get_json_body(allow_form=False):
    """
    Return the request body as a mapping

    A missing or unparsable JSON body yields the submitted form when
    allow_form is set, else an empty dict. Any JSON value other than an
    object is rejected.
    """
    body = request.get_json(silent=True)
    if body is None:
        return request.form if allow_form else {}
    if not isinstance(body, dict):
        raise ValidationError('Request body must be a JSON object')
    return body


def optional_string(body, name):
    """Value of a string field, None when absent"""
    value = body.get(name)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"'{name}' must be a string")
    return value


__all__ = ['get_json_body', 'optional_string']
