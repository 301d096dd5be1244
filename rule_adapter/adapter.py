"""
Casbin policy adapter backed by rule storage.

Loads stored rules into a Casbin model and persists the mutations the
enforcer makes at runtime (auto-save), including the batch, filtered and
update variants of the adapter interface.
"""
import logging
from collections.abc import Callable, Sequence
from typing import Any

from casbin import persist

from . import codec
from .base import BaseRuleStorage
from .exceptions import RecordNotFoundError
from .filters import build_query
from .schemas import FIELD_COLUMNS, RuleQuery
from .sqlite import SQLiteRuleStorage

logger = logging.getLogger(__name__)

# Model sections persisted by save_policy
SAVED_SECTIONS = ("p", "g")


class PolicyAdapter(
    persist.FilteredAdapter,
    persist.BatchAdapter,
    persist.UpdateAdapter,
    persist.Adapter,
):
    """
    Adapter between a Casbin model and a `casbin_rule` table.

    Declares the filtered, batch and update capabilities so enforcers that
    check them with isinstance find them.

    Storage errors (QueryError) propagate unchanged; no operation retries,
    deduplicates or wraps several statements in one transaction.
    """

    def __init__(
        self,
        storage: BaseRuleStorage,
        line_loader: Callable[[str, Any], None] = persist.load_policy_line,
    ):
        """
        Args:
            storage: Connected rule storage
            line_loader: Parser that appends one policy line to a model
        """
        self.storage = storage
        self.line_loader = line_loader
        self._filtered = False
        self._owns_storage = False

    @classmethod
    def from_config(cls, config_path: str) -> "PolicyAdapter":
        """Connect SQLite storage from a YAML config and wrap it"""
        storage = SQLiteRuleStorage(config_path)
        storage.connect()
        adapter = cls(storage)
        adapter._owns_storage = True
        return adapter

    def close(self) -> None:
        """Disconnect storage if this adapter opened it"""
        if self._owns_storage:
            self.storage.disconnect()

    # ============================================
    # LOAD / SAVE
    # ============================================

    def load_policy(self, model) -> None:
        """Load every stored rule into the model"""
        rows = self.storage.select()
        for row in rows:
            self.line_loader(codec.decode(row), model)
        logger.info(f"Loaded {len(rows)} policy rules")

    def save_policy(self, model) -> None:
        """
        Insert every rule of the p and g sections, one row per rule.

        Existing rows are kept, so saving twice stores duplicates. A failure
        midway leaves the rules inserted so far in storage.
        """
        saved = 0
        for sec in SAVED_SECTIONS:
            for ptype, assertion in model.model.get(sec, {}).items():
                for rule in assertion.policy:
                    self.storage.insert(codec.encode(ptype, rule))
                    saved += 1
        logger.info(f"Saved {saved} policy rules")

    # ============================================
    # AUTO-SAVE
    # ============================================

    def add_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> None:
        """Insert one rule; no existence check"""
        self.storage.insert(codec.encode(ptype, rule))

    def remove_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> None:
        """Delete every row whose ptype and provided fields match exactly"""
        deleted = self.storage.delete(self._exact_match(ptype, rule))
        logger.debug(f"remove_policy {ptype} {list(rule)}: {deleted} rows deleted")

    def remove_filtered_policy(
        self, sec: str, ptype: str, field_index: int, *field_values: str
    ) -> None:
        """
        Delete rows matching `field_values` from column `v{field_index}` on.

        Empty values are wildcards. Without any field values only ptype is
        constrained, so every row of that ptype is deleted.
        """
        query = RuleQuery().where("ptype", ptype)
        for position, column in enumerate(FIELD_COLUMNS):
            offset = position - field_index
            if 0 <= offset < len(field_values) and field_values[offset] not in (None, ""):
                query.where(column, field_values[offset])

        deleted = self.storage.delete(query)
        logger.debug(
            f"remove_filtered_policy {ptype} index={field_index} "
            f"values={list(field_values)}: {deleted} rows deleted"
        )

    def update_policy(
        self, sec: str, ptype: str, old_rule: Sequence[str], new_rule: Sequence[str]
    ) -> None:
        """
        Overwrite the first row matching `old_rule` with `new_rule`.

        Only the positions present in `new_rule` are written; columns past
        its end keep their stored values.

        Raises:
            RecordNotFoundError: No row matches `old_rule`
        """
        matches = self.storage.select(self._exact_match(ptype, old_rule))
        if not matches:
            raise RecordNotFoundError(
                f"No {ptype} rule matches {list(old_rule)}, nothing to update"
            )
        if len(matches) > 1:
            logger.warning(
                f"update_policy {ptype} {list(old_rule)} matched {len(matches)} rows, "
                f"updating id {matches[0].id} only"
            )

        target = matches[0]
        assert target.id is not None, "Stored rule without id"
        self.storage.update(target.id, codec.field_updates(new_rule))

    def update_policies(
        self,
        sec: str,
        ptype: str,
        old_rules: Sequence[Sequence[str]],
        new_rules: Sequence[Sequence[str]],
    ) -> None:
        """Apply update_policy pairwise; stops at the first failure"""
        if len(old_rules) != len(new_rules):
            raise ValueError(
                f"old_rules and new_rules must have the same length "
                f"({len(old_rules)} != {len(new_rules)})"
            )
        for old_rule, new_rule in zip(old_rules, new_rules):
            self.update_policy(sec, ptype, old_rule, new_rule)

    # ============================================
    # BATCH
    # ============================================

    def add_policies(self, sec: str, ptype: str, rules: Sequence[Sequence[str]]) -> None:
        """Insert all rules in one batch"""
        inserted = self.storage.insert_many([codec.encode(ptype, rule) for rule in rules])
        logger.debug(f"add_policies {ptype}: {inserted} rows inserted")

    def remove_policies(self, sec: str, ptype: str, rules: Sequence[Sequence[str]]) -> None:
        """
        Delete the first exact match of each rule in one batch.

        Rules with no stored match are skipped without error.
        """
        ids: list[int] = []
        for rule in rules:
            row = self.storage.first(self._exact_match(ptype, rule))
            if row is not None and row.id is not None:
                ids.append(row.id)

        deleted = self.storage.delete_ids(ids)
        logger.debug(
            f"remove_policies {ptype}: {len(ids)} of {len(rules)} rules found, "
            f"{deleted} rows deleted"
        )

    # ============================================
    # FILTERED LOAD
    # ============================================

    def load_filtered_policy(self, model, filter: Any) -> None:
        """
        Load only the rules matching `filter`.

        `filter` may be a "field=value" string, an EqualityFilter, a
        FieldListFilter, a PredicateFilter or a callable predicate.

        Raises:
            InvalidFilterTypeError: Unrecognized filter, before any query
        """
        query = build_query(filter)
        rows = self.storage.select(query)
        for row in rows:
            self.line_loader(codec.decode(row), model)

        self.set_filtered(True)
        logger.info(f"Loaded {len(rows)} filtered policy rules")

    def is_filtered(self) -> bool:
        """True once a filtered load has succeeded"""
        return self._filtered

    def set_filtered(self, filtered: bool) -> None:
        self._filtered = filtered

    # ============================================
    # HELPERS
    # ============================================

    def _exact_match(self, ptype: str, rule: Sequence[str]) -> RuleQuery:
        """ptype plus one equality per provided field position"""
        query = RuleQuery().where("ptype", ptype)
        for column, value in zip(FIELD_COLUMNS, rule):
            query.where(column, value)
        return query
