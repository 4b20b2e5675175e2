import os
from datetime import timedelta


def resolve_database_url():
    """Resolve the database connection string from the environment.

    Returns None when nothing is configured; the store layer turns that
    into a ConfigurationError.
    """
    database_url = os.environ.get('DATABASE_URL')
    if not database_url:
        # Fall back to the individual PG* variables some hosts provide
        pg_user = os.environ.get('PGUSER')
        pg_pass = os.environ.get('PGPASSWORD')
        pg_host = os.environ.get('PGHOST')
        pg_port = os.environ.get('PGPORT')
        pg_db = os.environ.get('PGDATABASE')
        if all([pg_user, pg_pass, pg_host, pg_port, pg_db]):
            database_url = f"postgresql://{pg_user}:{pg_pass}@{pg_host}:{pg_port}/{pg_db}"

    if database_url and database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)

    return database_url


class Config:
    """Base configuration"""

    # Flask Settings
    SECRET_KEY = os.environ.get('SESSION_SECRET', 'CHANGE-THIS-SECRET-KEY-IN-PRODUCTION')
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)
    SESSION_COOKIE_SECURE = False
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Database Settings (resolved at app creation, see utils.store.init_store)
    SQLALCHEMY_DATABASE_URI = None
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 10,
        'pool_recycle': 3600,
        'pool_pre_ping': True,
    }
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JSON Settings
    JSON_AS_ASCII = False

    # Admin Settings
    ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME')
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD')
    ADMIN_DISPLAY_NAME = os.environ.get('ADMIN_DISPLAY_NAME')

    # Activity Ledger Settings
    ADMIN_PATH_MARKER = os.environ.get('ADMIN_PATH_MARKER', '/admin/')
    ACTIVITY_DEFAULT_PAGE_SIZE = 50
    ACTIVITY_MAX_PAGE_SIZE = 100

    # Profile cache TTL in seconds
    PROFILE_CACHE_TTL = int(os.environ.get('PROFILE_CACHE_TTL', '60'))

    # Contact form rate limiting
    CONTACT_RATE_LIMIT = 10  # Max 10 submissions
    CONTACT_RATE_WINDOW = 60  # Per 60 seconds

    # Number of reverse proxies whose X-Forwarded-For is trusted (0 = none)
    PROXY_FIX_X_FOR = int(os.environ.get('PROXY_FIX_X_FOR', '0'))

    # Admin Notification Settings
    ADMIN_TELEGRAM_BOT_TOKEN = os.environ.get('ADMIN_TELEGRAM_BOT_TOKEN')
    ADMIN_TELEGRAM_CHAT_ID = os.environ.get('ADMIN_TELEGRAM_CHAT_ID')
    ADMIN_SMTP_HOST = os.environ.get('ADMIN_SMTP_HOST')
    ADMIN_SMTP_PORT = os.environ.get('ADMIN_SMTP_PORT', '587')
    ADMIN_SMTP_EMAIL = os.environ.get('ADMIN_SMTP_EMAIL')
    ADMIN_SMTP_PASSWORD = os.environ.get('ADMIN_SMTP_PASSWORD')
    ADMIN_RECIPIENT_EMAIL = os.environ.get('ADMIN_RECIPIENT_EMAIL')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True
    TESTING = True
    SECRET_KEY = 'testing-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    # For in-memory SQLite during tests, keep engine options empty to avoid
    # passing invalid pool settings like pool_size to SQLite's StaticPool.
    SQLALCHEMY_ENGINE_OPTIONS = {}
    ADMIN_USERNAME = 'admin'
    ADMIN_PASSWORD = 'admin-password'
    ADMIN_DISPLAY_NAME = 'Site Owner'
    ADMIN_TELEGRAM_BOT_TOKEN = None
    ADMIN_TELEGRAM_CHAT_ID = None
    ADMIN_SMTP_HOST = None
    ADMIN_SMTP_EMAIL = None
    ADMIN_SMTP_PASSWORD = None
    CONTACT_RATE_LIMIT = 1000


# Select configuration based on environment
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}

def get_config(config_name=None):
    """Get configuration by name, or based on FLASK_ENV"""
    env = config_name or os.environ.get('FLASK_ENV', 'development')
    return config.get(env, config['default'])
