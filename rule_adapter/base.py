"""
Base rule storage interface.

The policy adapter uses this interface; storage implementations own
connections, SQL generation and migrations.
"""
from abc import ABC, abstractmethod
from typing import Any

from .schemas import CasbinRule, RuleQuery


class BaseRuleStorage(ABC):
    """
    Base storage for `casbin_rule` rows.

    Implementations handle:
    - Schema translation (CasbinRule → native storage)
    - Migrations
    - Query translation (RuleQuery → WHERE clause)
    - Connection management

    Every failing operation raises QueryError with the driver error chained.
    """

    def __init__(self, config_path: str):
        """Initialize storage with config"""
        self.config_path = config_path
        self.config: dict[str, Any] | None = None

    # ============================================
    # CONNECTION LIFECYCLE
    # ============================================

    @abstractmethod
    def connect(self) -> None:
        """Establish connection and run migrations if needed"""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Close connection"""
        pass

    @abstractmethod
    def health_check(self) -> dict:
        """Check storage health"""
        pass

    # ============================================
    # WRITES
    # ============================================

    @abstractmethod
    def insert(self, row: CasbinRule) -> int:
        """
        Insert one row.
        Returns: new row ID
        """
        pass

    @abstractmethod
    def insert_many(self, rows: list[CasbinRule]) -> int:
        """
        Insert rows in one batch.
        Returns: number of rows inserted
        """
        pass

    @abstractmethod
    def delete(self, query: RuleQuery) -> int:
        """
        Delete every row matching the query.
        Returns: number of rows deleted
        """
        pass

    @abstractmethod
    def delete_ids(self, ids: list[int]) -> int:
        """
        Delete rows by ID in one batch.
        Returns: number of rows deleted
        """
        pass

    @abstractmethod
    def update(self, row_id: int, values: dict[str, str]) -> int:
        """
        Overwrite the given columns of one row.
        Returns: number of rows updated
        """
        pass

    # ============================================
    # READS
    # ============================================

    @abstractmethod
    def select(self, query: RuleQuery | None = None) -> list[CasbinRule]:
        """Rows matching the query (all rows when None), ordered by ID"""
        pass

    @abstractmethod
    def first(self, query: RuleQuery) -> CasbinRule | None:
        """Lowest-ID row matching the query"""
        pass

    @abstractmethod
    def count(self, query: RuleQuery | None = None) -> int:
        """Number of rows matching the query"""
        pass
