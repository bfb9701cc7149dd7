"""
Stock item operations: masters, balances, summaries and movements.
"""
from __future__ import annotations
from datetime import date
from typing import Any, Optional
from loguru import logger
from ..builder import build_delete_xml, build_stock_item_xml, build_tdl_collection_request
from ..errors import TallyValidationError
from ..models import (
    Action,
    ImportResult,
    StockBalance,
    StockItem,
    StockItemRecord,
    StockMovement,
    StockSummary,
)
from ..parsers import (
    parse_stock_balance,
    parse_stock_item_detail,
    parse_stock_item_list,
    parse_stock_movements,
    parse_stock_summary,
)
from ..validators import require, validate_stock_item
from .base import HISTORY_START, DateLike, TallyService, as_date, merge_model

LIST_FIELDS = ("NAME", "PARENT", "BASEUNITS", "CLOSINGBALANCE", "CLOSINGVALUE")


class StockItemService(TallyService):
    """Inventory masters and stock reports."""

    def create_stock_item(self, stock_item: StockItem) -> ImportResult:
        validate_stock_item(stock_item)
        result = self.import_payload(
            "create stock item", build_stock_item_xml(stock_item, Action.CREATE)
        )
        logger.info(f"Stock item '{stock_item.name}' created")
        return result

    def fetch_stock_item(self, name: str, as_on: DateLike = None) -> StockItemRecord:
        require(name, "Stock item name is required")
        filters: dict[str, Any] = {"STOCKITEMNAME": name}
        if as_on:
            filters["ASON"] = as_date(as_on, "as_on")
        return self.export("fetch stock item", "Stock Item Details", filters, parse_stock_item_detail)

    def list_stock_items(
        self,
        group: Optional[str] = None,
        active_only: bool = False,
        name_contains: Optional[str] = None,
        with_balance: bool = False,
    ) -> list[StockItemRecord]:
        """
        List stock items through a TDL collection.

        ``with_balance`` keeps only items with a positive closing quantity.
        """
        xml = build_tdl_collection_request(
            "Stock Item List", "Stock Item", LIST_FIELDS, company=self.company
        )
        items = self.send("fetch stock item list", xml, parse_stock_item_list)

        if group:
            items = [i for i in items if i.parent.lower() == group.lower()]
        if active_only:
            items = [i for i in items if i.is_active]
        if name_contains:
            term = name_contains.lower()
            items = [i for i in items if term in i.name.lower()]
        if with_balance:
            items = [i for i in items if i.closing_quantity > 0]
        return items

    def update_stock_item(self, name: str, **updates: Any) -> ImportResult:
        """Merge ``updates`` (parent, base_units, alias, opening_balance) and alter."""
        require(name, "Stock item name is required")
        current = self.fetch_stock_item(name).to_stock_item()
        current.name = name
        stock_item = merge_model(StockItem, current, updates, "stock item")
        validate_stock_item(stock_item)
        result = self.import_payload(
            "update stock item", build_stock_item_xml(stock_item, Action.ALTER)
        )
        logger.info(f"Stock item '{name}' updated")
        return result

    def delete_stock_item(self, name: str, force: bool = False) -> ImportResult:
        require(name, "Stock item name is required")
        if not force and self.has_transactions(name):
            logger.warning(f"Refusing to delete stock item '{name}': it has transactions")
            raise TallyValidationError(
                f"Cannot delete stock item '{name}' with existing transactions. "
                "Use force=True to override."
            )
        result = self.import_payload("delete stock item", build_delete_xml("STOCKITEM", name))
        logger.info(f"Stock item '{name}' deleted")
        return result

    def get_stock_balance(
        self,
        name: str,
        as_on: DateLike = None,
        godown: Optional[str] = None,
    ) -> StockBalance:
        require(name, "Stock item name is required")
        filters: dict[str, Any] = {
            "STOCKITEMNAME": name,
            "ASON": as_date(as_on, "as_on") or date.today(),
        }
        if godown:
            filters["GODOWN"] = godown
        return self.export("get stock balance", "Stock Balance", filters, parse_stock_balance)

    def get_stock_summary(
        self,
        as_on: DateLike = None,
        group: Optional[str] = None,
        godown: Optional[str] = None,
        include_zero_balance: Optional[bool] = None,
    ) -> StockSummary:
        filters: dict[str, Any] = {"ASON": as_date(as_on, "as_on") or date.today()}
        if group:
            filters["STOCKGROUP"] = group
        if godown:
            filters["GODOWN"] = godown
        if include_zero_balance is not None:
            filters["INCLUDEZEROBALANCE"] = include_zero_balance
        return self.export("get stock summary", "Stock Summary", filters, parse_stock_summary)

    def get_stock_movements(
        self,
        name: str,
        from_date: DateLike = None,
        to_date: DateLike = None,
        voucher_type: Optional[str] = None,
        godown: Optional[str] = None,
    ) -> list[StockMovement]:
        require(name, "Stock item name is required")
        start, end = self.period(from_date, to_date)
        filters: dict[str, Any] = {"STOCKITEMNAME": name, "FROMDATE": start, "TODATE": end}
        if voucher_type:
            filters["VOUCHERTYPE"] = voucher_type
        if godown:
            filters["GODOWN"] = godown
        return self.export("get stock movements", "Stock Movements", filters, parse_stock_movements)

    def has_transactions(self, name: str) -> bool:
        filters = {"STOCKITEMNAME": name, "FROMDATE": HISTORY_START, "TODATE": date.today()}
        movements = self.export(
            "check stock transactions", "Stock Transactions", filters, parse_stock_movements
        )
        return len(movements) > 0
