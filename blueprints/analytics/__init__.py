"""
Analytics Blueprint - Page view counters
"""

from flask import Blueprint

analytics_bp = Blueprint('analytics', __name__, url_prefix='/api')

from . import routes
