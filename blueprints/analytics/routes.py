"""
Analytics Routes - Page view counters
"""

from flask import request, jsonify
from utils.page_views import increment, get_count, normalize_path
from utils.payload import get_json_body
from . import analytics_bp


@analytics_bp.route('/page-views')
def page_view_count():
    path = normalize_path(request.args.get('path'))
    return jsonify({'count': get_count(path), 'path': path})


@analytics_bp.route('/page-views', methods=['POST'])
def track_page_view():
    body = get_json_body()
    path = normalize_path(body.get('path'))
    return jsonify({'success': True, 'count': increment(path), 'path': path})
