"""
Row codec: policy rules to `casbin_rule` rows and rows back to policy lines.
"""
import logging
from collections.abc import Iterable, Sequence

from .schemas import FIELD_COLUMNS, MAX_FIELDS, CasbinRule

logger = logging.getLogger(__name__)

LINE_SEPARATOR = ", "


def encode(ptype: str, rule: Sequence[str]) -> CasbinRule:
    """
    Map `rule[i]` onto column `vi`.

    Columns past the end of the rule stay None. Fields beyond v5 have no
    column and are dropped.
    """
    if len(rule) > MAX_FIELDS:
        logger.debug(
            f"Rule for ptype '{ptype}' has {len(rule)} fields, "
            f"keeping the first {MAX_FIELDS}"
        )
    columns = dict(zip(FIELD_COLUMNS, rule))
    return CasbinRule(ptype=ptype, **columns)


def drop_empty_fields(values: Iterable[str | None]) -> list[str]:
    """
    Remove None and empty-string values, keeping the order of the rest.

    An empty interior value is removed too, so every later value moves one
    position left when the line is parsed again.
    """
    return [value for value in values if value is not None and value != ""]


def decode(row: CasbinRule) -> str:
    """Render a row as a policy line: `ptype, v0, v1, ...`"""
    return join_line([row.ptype, *row.field_values()])


def join_line(values: Iterable[str | None]) -> str:
    return LINE_SEPARATOR.join(drop_empty_fields(values)).strip()


def field_updates(rule: Sequence[str]) -> dict[str, str]:
    """Column values for the positions present in `rule`"""
    return dict(zip(FIELD_COLUMNS, rule))
