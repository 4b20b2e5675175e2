"""
Security Module - Session identity, admin credentials and rate limiting
"""

import time
from flask import request, session, current_app
from werkzeug.security import generate_password_hash, check_password_hash


ADMIN_ROLE = 'ADMIN'

# Rate Limiting
RATE_LIMIT_REQUESTS = {}  # {ip: [(timestamp, endpoint), ...]}


def get_client_ip():
    """Get the client IP address

    X-Forwarded-For is honoured only through ProxyFix, which create_app
    installs when PROXY_FIX_X_FOR names the number of trusted proxies.
    """
    return request.remote_addr or 'unknown'


def check_rate_limit(endpoint='contact'):
    """Check if IP is within rate limit"""
    max_requests = current_app.config.get('CONTACT_RATE_LIMIT', 10)
    window = current_app.config.get('CONTACT_RATE_WINDOW', 60)
    client_ip = get_client_ip()
    current_time = time.time()

    # Clean old requests outside the window, forgetting idle IPs
    for ip in list(RATE_LIMIT_REQUESTS):
        recent = [(ts, ep) for ts, ep in RATE_LIMIT_REQUESTS[ip] if current_time - ts < window]
        if recent:
            RATE_LIMIT_REQUESTS[ip] = recent
        else:
            del RATE_LIMIT_REQUESTS[ip]

    requests_seen = RATE_LIMIT_REQUESTS.get(client_ip, [])

    # Check if limit exceeded
    endpoint_requests = [ep for ts, ep in requests_seen if ep == endpoint]
    if len(endpoint_requests) >= max_requests:
        return False

    # Add current request
    RATE_LIMIT_REQUESTS[client_ip] = requests_seen + [(current_time, endpoint)]
    return True


def get_admin_credentials():
    """Load admin credentials from configuration safely"""
    username = current_app.config.get('ADMIN_USERNAME')
    password = current_app.config.get('ADMIN_PASSWORD')
    if not username or not password:
        return {'username': None, 'password_hash': None}
    return {
        'username': username,
        'password_hash': generate_password_hash(password)
    }


def verify_password(password, password_hash):
    """Verify password against hash"""
    return check_password_hash(password_hash, password or '')


def get_current_identity():
    """
    Resolve the caller's identity from the session

    Returns:
        dict: {'name': display name, 'role': role} or None when anonymous
    """
    if not session.get('admin_logged_in'):
        return None
    return {
        'name': session.get('display_name') or session.get('username'),
        'role': session.get('role', '')
    }


def is_admin(identity):
    """Check an identity for the ADMIN role marker"""
    return bool(identity) and str(identity.get('role') or '').upper() == ADMIN_ROLE


__all__ = [
    'ADMIN_ROLE',
    'get_client_ip',
    'check_rate_limit',
    'get_admin_credentials',
    'verify_password',
    'get_current_identity',
    'is_admin'
]
