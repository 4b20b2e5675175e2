"""
Utils Package - Centralized utility modules initialization
"""

from .errors import (
    PortfolioError,
    ConfigurationError,
    ValidationError,
    AuthorizationError,
    NotFoundError,
    PersistenceError
)
from .decorators import login_required, admin_required
from .security import (
    get_client_ip,
    check_rate_limit,
    get_admin_credentials,
    verify_password,
    get_current_identity,
    is_admin
)
from .store import (
    init_store,
    get_database,
    find_many,
    find_one,
    count,
    count_by,
    insert_one,
    update_one,
    delete_one,
    add_to_set,
    upsert_increment
)
from .notifications import send_admin_notification

__all__ = [
    # Errors
    'PortfolioError',
    'ConfigurationError',
    'ValidationError',
    'AuthorizationError',
    'NotFoundError',
    'PersistenceError',

    # Decorators
    'login_required',
    'admin_required',

    # Security
    'get_client_ip',
    'check_rate_limit',
    'get_admin_credentials',
    'verify_password',
    'get_current_identity',
    'is_admin',

    # Store
    'init_store',
    'get_database',
    'find_many',
    'find_one',
    'count',
    'count_by',
    'insert_one',
    'update_one',
    'delete_one',
    'add_to_set',
    'upsert_increment',

    # Notifications
    'send_admin_notification'
]
