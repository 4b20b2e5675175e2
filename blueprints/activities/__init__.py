"""
Activities Blueprint - Activity ledger API
Handles: Recording activities, recent feed, admin listing and statistics
"""

from flask import Blueprint

activities_bp = Blueprint('activities', __name__, url_prefix='/api')

from . import routes
