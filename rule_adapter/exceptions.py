"""
Exceptions raised by the rule adapter and its storage.
"""


class PersistenceException(Exception):
    """Base exception for the rule persistence layer"""

    pass


class ConfigError(PersistenceException):
    """Raised when the adapter configuration is missing or malformed"""

    pass


class ConnectionError(PersistenceException):
    """Raised when connection to storage fails"""

    pass


class MigrationError(PersistenceException):
    """Raised when migration fails"""

    pass


class QueryError(PersistenceException):
    """Raised when a storage query fails"""

    pass


class RecordNotFoundError(PersistenceException):
    """Raised when a rule expected in storage doesn't exist"""

    pass


class InvalidFilterTypeError(PersistenceException):
    """Raised when a filtered load receives a filter of unknown shape"""

    pass
