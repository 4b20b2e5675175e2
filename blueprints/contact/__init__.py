"""
Contact Blueprint - Contact form and message workflow
Handles: Public submissions, admin inbox, read/reply/archive/delete, tags and priority
"""

from flask import Blueprint

contact_bp = Blueprint('contact', __name__, url_prefix='/api/contact')

from . import routes
