"""
SQLite rule storage.

File-based storage for `casbin_rule` rows, suitable for development,
testing, and small deployments.
"""

from .storage import SQLiteRuleStorage

__all__ = ["SQLiteRuleStorage"]
