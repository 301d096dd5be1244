"""
Storage-agnostic schemas for the rule adapter.

The row model mirrors the `casbin_rule` table. Queries and filters are
described here and translated to SQL by the storage implementation.
"""
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator

# Positional value columns; a rule can carry at most this many fields.
FIELD_COLUMNS: tuple[str, ...] = ("v0", "v1", "v2", "v3", "v4", "v5")
MAX_FIELDS = len(FIELD_COLUMNS)

# Columns a query may constrain.
RULE_COLUMNS: tuple[str, ...] = ("id", "ptype", *FIELD_COLUMNS)


# ============================================
# ROW SCHEMA
# ============================================


class CasbinRule(BaseModel):
    """One persisted policy rule"""

    id: int | None = Field(None, description="Storage-assigned identifier")
    ptype: str = Field(..., description="Policy type (p, g, g2, ...)")
    v0: str | None = None
    v1: str | None = None
    v2: str | None = None
    v3: str | None = None
    v4: str | None = None
    v5: str | None = None

    # Storage-managed metadata, never written by the adapter
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def field_values(self) -> list[str | None]:
        """Values of v0..v5 in column order"""
        return [getattr(self, column) for column in FIELD_COLUMNS]

    def column_values(self) -> dict[str, str | None]:
        """ptype and v0..v5 keyed by column name, ready for an insert"""
        values: dict[str, str | None] = {"ptype": self.ptype}
        for column in FIELD_COLUMNS:
            values[column] = getattr(self, column)
        return values


# ============================================
# QUERY SCHEMA
# ============================================


class RuleQuery(BaseModel):
    """
    Conjunctive constraint set over the rule table.

    Equalities are checked against known columns by storage. Predicates are
    opaque callables; storage hands each one a fresh query to fill in and
    ANDs the result as a group.
    """

    equals: list[tuple[str, str | None]] = Field(default_factory=list)
    raw: list[tuple[str, list[Any]]] = Field(default_factory=list)
    predicates: list[Callable[..., Any]] = Field(default_factory=list)

    def where(self, column: str, value: str | None) -> "RuleQuery":
        self.equals.append((column, value))
        return self

    def where_raw(self, clause: str, params: list[Any] | None = None) -> "RuleQuery":
        """Add a raw SQL fragment with positional `?` parameters"""
        self.raw.append((clause, list(params or [])))
        return self

    def where_predicate(self, predicate: Callable[..., Any]) -> "RuleQuery":
        self.predicates.append(predicate)
        return self

    def is_empty(self) -> bool:
        return not (self.equals or self.raw or self.predicates)


# ============================================
# FILTERS
# ============================================


class EqualityFilter(BaseModel):
    """Single `field = value` constraint"""

    field: str
    value: str


class FieldListFilter(BaseModel):
    """Parallel field-name / value lists, one equality per pair"""

    field_names: list[str] = Field(default_factory=list)
    field_values: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_lengths(self) -> "FieldListFilter":
        if len(self.field_names) != len(self.field_values):
            raise ValueError(
                f"field_names and field_values must have the same length "
                f"({len(self.field_names)} != {len(self.field_values)})"
            )
        return self


class PredicateFilter(BaseModel):
    """Opaque constraint passed through to storage"""

    predicate: Callable[[RuleQuery], Any]


PolicyFilter = EqualityFilter | FieldListFilter | PredicateFilter
