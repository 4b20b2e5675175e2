"""
Settings Blueprint - Site settings and public profile
"""

from flask import Blueprint

settings_bp = Blueprint('settings', __name__, url_prefix='/api')

from . import routes
