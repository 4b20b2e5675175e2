"""
Auth Routes - Authentication and authorization
"""

from flask import session, request, jsonify, current_app
from werkzeug.security import check_password_hash
from utils.security import get_admin_credentials, get_client_ip, get_current_identity, ADMIN_ROLE
from utils.decorators import login_required
from utils.activity import log_activity
from utils.payload import get_json_body, optional_string
from . import auth_bp


@auth_bp.route('/login', methods=['POST'])
def login():
    """Admin login"""
    ADMIN_CREDENTIALS = get_admin_credentials()
    payload = get_json_body(allow_form=True)
    username = optional_string(payload, 'username')
    password = optional_string(payload, 'password')
    client_ip = get_client_ip()

    if not username or not password:
        return jsonify({'error': 'Username and password are required'}), 400

    if username == ADMIN_CREDENTIALS.get('username') and ADMIN_CREDENTIALS.get('username'):
        if check_password_hash(ADMIN_CREDENTIALS['password_hash'], password):
            display_name = current_app.config.get('ADMIN_DISPLAY_NAME') or username
            session.clear()
            session['admin_logged_in'] = True
            session['username'] = username
            session['display_name'] = display_name
            session['role'] = ADMIN_ROLE
            session.permanent = True

            current_app.logger.info(f"Admin login: {username} from {client_ip}")
            log_activity('system', f"Admin login: {display_name}", 'login',
                         details=f"IP: {client_ip}", user=display_name)
            return jsonify({'success': True, 'user': get_current_identity()})

    current_app.logger.warning(f"Failed login for '{username}' from {client_ip}")
    return jsonify({'error': 'Invalid credentials'}), 401


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """Logout current user"""
    username = session.get('username')
    session.clear()
    current_app.logger.info(f"Logout: {username}")
    return jsonify({'success': True})


@auth_bp.route('/session')
def current_session():
    """Current identity, or null when anonymous"""
    return jsonify({'user': get_current_identity()})
