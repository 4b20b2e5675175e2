"""
Decorators Module - Authentication and authorization decorators
"""

from functools import wraps
from flask import session, jsonify
from .security import get_current_identity, is_admin


def login_required(f):
    """Decorator to require a logged-in session"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'admin_logged_in' not in session:
            return jsonify({'error': 'Unauthorized'}), 401
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Decorator to require admin role"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_admin(get_current_identity()):
            return jsonify({'error': 'Unauthorized'}), 401
        return f(*args, **kwargs)
    return decorated_function
