"""
Errors Module - Application error taxonomy

Every error carries the HTTP status the API boundary answers with.
"""


class PortfolioError(Exception):
    """Base class for application errors"""
    status_code = 500

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class ConfigurationError(PortfolioError):
    """Required configuration is missing"""
    status_code = 500


class ValidationError(PortfolioError):
    """Invalid or missing input"""
    status_code = 400


class AuthorizationError(PortfolioError):
    """Unauthorized"""
    status_code = 401


class NotFoundError(PortfolioError):
    """Not found"""
    status_code = 404


class PersistenceError(PortfolioError):
    """Database operation failed"""
    status_code = 500


__all__ = [
    'PortfolioError',
    'ConfigurationError',
    'ValidationError',
    'AuthorizationError',
    'NotFoundError',
    'PersistenceError'
]
