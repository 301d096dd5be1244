"""
Filter resolver for filtered policy loads.

Accepted shapes:
- "field=value" strings, e.g. "v0=alice" or "ptype = g"
- EqualityFilter / FieldListFilter / PredicateFilter instances
- plain callables, treated as predicates
"""
import logging
from typing import Any

from .exceptions import InvalidFilterTypeError
from .schemas import (
    EqualityFilter,
    FieldListFilter,
    PolicyFilter,
    PredicateFilter,
    RuleQuery,
)

logger = logging.getLogger(__name__)


def parse_equality(text: str) -> EqualityFilter:
    """Parse "field=value"; spaces are removed and the split happens once"""
    compact = text.replace(" ", "")
    field, sep, value = compact.partition("=")
    if not sep:
        raise InvalidFilterTypeError(f"invalid filter type: '{text}' is not field=value")
    return EqualityFilter(field=field, value=value)


def resolve_filter(raw: Any) -> PolicyFilter:
    """Normalize a filter argument into one of the three filter cases"""
    if isinstance(raw, (EqualityFilter, FieldListFilter, PredicateFilter)):
        return raw
    if isinstance(raw, str):
        return parse_equality(raw)
    if callable(raw):
        return PredicateFilter(predicate=raw)
    raise InvalidFilterTypeError(f"invalid filter type: {type(raw).__name__}")


def apply_filter(query: RuleQuery, policy_filter: PolicyFilter) -> RuleQuery:
    """Translate a resolved filter into query constraints"""
    if isinstance(policy_filter, EqualityFilter):
        return query.where(policy_filter.field, policy_filter.value)
    if isinstance(policy_filter, FieldListFilter):
        for field, value in zip(policy_filter.field_names, policy_filter.field_values):
            query.where(field, value)
        return query
    if isinstance(policy_filter, PredicateFilter):
        return query.where_predicate(policy_filter.predicate)
    raise InvalidFilterTypeError(f"invalid filter type: {type(policy_filter).__name__}")


def build_query(raw: Any) -> RuleQuery:
    """Resolve `raw` and return the query it describes"""
    policy_filter = resolve_filter(raw)
    logger.debug(f"Resolved filter to {type(policy_filter).__name__}")
    return apply_filter(RuleQuery(), policy_filter)
