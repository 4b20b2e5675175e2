"""
Portfolio CMS - Main Application Entry Point
Application Factory Pattern for modular architecture

This module initializes the Flask application with all necessary extensions,
configurations, and middleware. All actual route handling is delegated to blueprints.
"""

import os
from flask import Flask, jsonify
from werkzeug.middleware.proxy_fix import ProxyFix
from sqlalchemy.exc import SQLAlchemyError
from config import get_config
from utils.errors import PortfolioError
from utils.store import init_store
from utils.settings import TTLCache

# Import all blueprints
from blueprints.auth import auth_bp
from blueprints.activities import activities_bp
from blueprints.contact import contact_bp
from blueprints.analytics import analytics_bp
from blueprints.settings import settings_bp


def create_app(config_name=None, profile_cache=None):
    """
    Application Factory Pattern
    Creates and configures Flask application instance

    Args:
        config_name (str): Configuration environment name (optional)
        profile_cache (TTLCache): Cache for the derived profile (optional)

    Returns:
        Flask: Configured Flask application instance

    Raises:
        ConfigurationError: No database connection string is configured
    """

    app = Flask(__name__)

    # Load configuration
    conf = get_config(config_name)
    app.config.from_object(conf)

    # Trust forwarded client addresses only behind configured proxies
    if app.config.get('PROXY_FIX_X_FOR'):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=app.config['PROXY_FIX_X_FOR'])

    # Initialize extensions with app
    initialize_extensions(app, profile_cache)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register request/response hooks
    register_hooks(app)

    # Health check route
    @app.route('/health')
    def health_check():
        return {'status': 'ok', 'message': 'Portfolio CMS is running'}, 200

    return app


def initialize_extensions(app, profile_cache=None):
    """Initialize Flask extensions with the app instance"""
    init_store(app)
    app.extensions['profile_cache'] = profile_cache or TTLCache()


def register_blueprints(app):
    """Register all application blueprints"""
    app.register_blueprint(auth_bp)
    app.register_blueprint(activities_bp)
    app.register_blueprint(contact_bp)
    app.register_blueprint(analytics_bp)
    app.register_blueprint(settings_bp)


def register_error_handlers(app):
    """Register custom error handlers"""

    @app.errorhandler(PortfolioError)
    def portfolio_error(e):
        if e.status_code >= 500:
            app.logger.error(f"{e.__class__.__name__}: {e.message}")
        return jsonify({'error': e.message}), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def database_error(e):
        app.logger.error(f"Database Error: {str(e)}")
        return jsonify({'error': 'Internal server error'}), 500

    @app.errorhandler(400)
    def bad_request(e):
        return jsonify({'error': 'Bad request'}), 400

    @app.errorhandler(404)
    def page_not_found(e):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_server_error(e):
        app.logger.error(f"Server Error: {str(e)}")
        return jsonify({'error': 'Internal server error'}), 500


def register_hooks(app):
    """Register request/response hooks"""

    @app.after_request
    def add_security_headers(response):
        """Add security headers to all responses"""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        if not app.debug:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response


if __name__ == '__main__':
    # Get environment
    env = os.environ.get('FLASK_ENV', 'development')

    # Create app
    app = create_app(env)

    # Run development server
    app.run(
        host='0.0.0.0',
        port=int(os.environ.get('PORT', 5000)),
        debug=(env == 'development')
    )
