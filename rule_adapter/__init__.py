"""
Casbin rule adapter.

This package persists Casbin policy rules in a `casbin_rule` table and loads
them back into an enforcer's model, with batch, filtered and update support.
"""

from .adapter import PolicyAdapter
from .base import BaseRuleStorage
from .exceptions import (
    ConfigError,
    ConnectionError,
    InvalidFilterTypeError,
    MigrationError,
    PersistenceException,
    QueryError,
    RecordNotFoundError,
)
from .schemas import (
    FIELD_COLUMNS,
    MAX_FIELDS,
    CasbinRule,
    EqualityFilter,
    FieldListFilter,
    PolicyFilter,
    PredicateFilter,
    RuleQuery,
)
from .sqlite import SQLiteRuleStorage

__all__ = [
    "PolicyAdapter",
    "BaseRuleStorage",
    "SQLiteRuleStorage",
    "CasbinRule",
    "RuleQuery",
    "EqualityFilter",
    "FieldListFilter",
    "PredicateFilter",
    "PolicyFilter",
    "FIELD_COLUMNS",
    "MAX_FIELDS",
    "PersistenceException",
    "ConfigError",
    "ConnectionError",
    "MigrationError",
    "QueryError",
    "RecordNotFoundError",
    "InvalidFilterTypeError",
]
