"""
Ledger operations: create, fetch, list, update, delete, balances, groups.
"""
from __future__ import annotations
from datetime import date
from typing import Any, Optional
from loguru import logger
from ..builder import build_delete_xml, build_group_xml, build_ledger_xml, build_tdl_collection_request
from ..errors import TallyValidationError
from ..models import Action, Group, ImportResult, Ledger, LedgerBalance, LedgerRecord
from ..parsers import (
    parse_ledger_balance,
    parse_ledger_detail,
    parse_ledger_list,
    parse_ledger_transactions,
)
from ..validators import require, validate_group, validate_ledger
from .base import HISTORY_START, DateLike, TallyService, as_date, merge_model


class LedgerService(TallyService):
    """Ledger masters in the configured company."""

    def create_ledger(self, ledger: Ledger) -> ImportResult:
        """
        Create a ledger.

        Raises TallyValidationError (nothing is sent) when the name or
        parent group is missing.
        """
        validate_ledger(ledger)
        result = self.import_payload("create ledger", build_ledger_xml(ledger, Action.CREATE))
        logger.info(f"Ledger '{ledger.name}' created")
        return result

    def fetch_ledger(
        self,
        name: str,
        from_date: DateLike = None,
        to_date: DateLike = None,
    ) -> LedgerRecord:
        require(name, "Ledger name is required")
        filters: dict[str, Any] = {"LEDGERNAME": name}
        if from_date:
            filters["FROMDATE"] = as_date(from_date, "from_date")
        if to_date:
            filters["TODATE"] = as_date(to_date, "to_date")
        return self.export("fetch ledger", "Ledger Details", filters, parse_ledger_detail)

    def list_ledgers(
        self,
        group: Optional[str] = None,
        active_only: bool = False,
        name_contains: Optional[str] = None,
    ) -> list[LedgerRecord]:
        """
        List ledgers through a TDL collection.

        Filtering by group, activity and name substring happens client-side
        (case-insensitive).
        """
        xml = build_tdl_collection_request(
            "Ledger List", "Ledger", ["NAME", "PARENT"], company=self.company
        )
        ledgers = self.send("fetch ledger list", xml, parse_ledger_list)

        if group:
            ledgers = [x for x in ledgers if x.parent.lower() == group.lower()]
        if active_only:
            ledgers = [x for x in ledgers if x.is_active]
        if name_contains:
            term = name_contains.lower()
            ledgers = [x for x in ledgers if term in x.name.lower()]
        return ledgers

    def update_ledger(self, name: str, **updates: Any) -> ImportResult:
        """
        Alter a ledger.

        The current ledger is fetched and ``updates`` (parent, alias,
        opening_balance) are merged over it; None values keep the current
        value.
        """
        require(name, "Ledger name is required")
        current = self.fetch_ledger(name).to_ledger()
        current.name = name
        ledger = merge_model(Ledger, current, updates, "ledger")
        validate_ledger(ledger)
        result = self.import_payload("update ledger", build_ledger_xml(ledger, Action.ALTER))
        logger.info(f"Ledger '{name}' updated")
        return result

    def delete_ledger(self, name: str, force: bool = False) -> ImportResult:
        """
        Delete a ledger.

        Refuses (TallyValidationError) when the ledger has transactions,
        unless ``force`` is set.
        """
        require(name, "Ledger name is required")
        if not force and self.has_transactions(name):
            logger.warning(f"Refusing to delete ledger '{name}': it has transactions")
            raise TallyValidationError(
                f"Cannot delete ledger '{name}' with existing transactions. "
                "Use force=True to override."
            )
        result = self.import_payload("delete ledger", build_delete_xml("LEDGER", name))
        logger.info(f"Ledger '{name}' deleted")
        return result

    def get_ledger_balance(
        self,
        name: str,
        from_date: DateLike = None,
        to_date: DateLike = None,
    ) -> LedgerBalance:
        require(name, "Ledger name is required")
        start, end = self.period(from_date, to_date)
        filters = {"LEDGERNAME": name, "FROMDATE": start, "TODATE": end}
        return self.export("get ledger balance", "Ledger Balance", filters, parse_ledger_balance)

    def has_transactions(self, name: str) -> bool:
        """True when any voucher since HISTORY_START touches the ledger."""
        filters = {"LEDGERNAME": name, "FROMDATE": HISTORY_START, "TODATE": date.today()}
        transactions = self.export(
            "check ledger transactions", "Ledger Transactions", filters, parse_ledger_transactions
        )
        return len(transactions) > 0

    def create_group(self, name: str, parent: str) -> ImportResult:
        group = Group(name=name, parent=parent)
        validate_group(group)
        result = self.import_payload("create group", build_group_xml(group, Action.CREATE))
        logger.info(f"Group '{name}' created under '{parent}'")
        return result
