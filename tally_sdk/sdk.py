"""
TallySDK: one object bundling the client and the entity services.

    with TallySDK() as tally:
        tally.create_ledger("ABC Corporation", "Sundry Debtors", opening_balance=15000)
        for ledger in tally.ledgers.list_ledgers(group="Sundry Debtors"):
            print(ledger.name)
"""
from __future__ import annotations
from typing import Any, Iterable, Mapping, Optional, Union
from .builder import build_function_request
from .client import TallyClient
from .config import TallyConfig
from .models import (
    ImportResult,
    Ledger,
    LedgerEntry,
    LedgerOpeningBalance,
    StockItem,
    StockOpeningBalance,
    Voucher,
)
from .services import CompanyService, LedgerService, StockItemService, VoucherService
from .services.base import DateLike, as_date


class TallySDK:
    """Entry point to the Tally XML API."""

    def __init__(self, config: Optional[TallyConfig] = None, client: Optional[TallyClient] = None):
        self.client = client or TallyClient(config)
        self.config = self.client.config
        self.ledgers = LedgerService(self.client)
        self.vouchers = VoucherService(self.client)
        self.stock = StockItemService(self.client)
        self.companies = CompanyService(self.client)

    def test_connection(self) -> dict:
        return self.client.test_connection()

    def connection_info(self) -> dict:
        return {
            "url": self.client.base_url,
            "company": self.client.company,
            "timeout": self.config.request_timeout,
            "retry_attempts": self.config.retry_attempts,
        }

    def execute_raw(self, xml: str) -> dict:
        """Send an arbitrary request; returns the parsed response tree."""
        return self.client.send_request(xml)

    def execute_function(self, function_name: str, parameters: Optional[Mapping[str, Any]] = None) -> dict:
        """Run a TDL function through an "Execute Function" request."""
        return self.client.send_request(build_function_request(function_name, parameters))

    # Shortcuts

    def create_ledger(
        self,
        name: str,
        parent: str,
        alias: Optional[str] = None,
        opening_balance: Union[float, LedgerOpeningBalance, None] = None,
    ) -> ImportResult:
        if isinstance(opening_balance, (int, float)):
            opening_balance = LedgerOpeningBalance(amount=opening_balance)
        ledger = Ledger(name=name, parent=parent, alias=alias, opening_balance=opening_balance)
        return self.ledgers.create_ledger(ledger)

    def create_voucher(
        self,
        voucher_type: str,
        date: DateLike,
        entries: Iterable[Union[LedgerEntry, Mapping[str, Any]]],
        voucher_number: Optional[str] = None,
        narration: Optional[str] = None,
    ) -> ImportResult:
        voucher = Voucher(
            voucher_type=voucher_type,
            date=as_date(date),
            voucher_number=voucher_number,
            narration=narration,
            ledger_entries=[
                e if isinstance(e, LedgerEntry) else LedgerEntry(**e) for e in entries
            ],
        )
        return self.vouchers.create_voucher(voucher)

    def create_stock_item(
        self,
        name: str,
        parent: str,
        base_units: str,
        alias: Optional[str] = None,
        opening_balance: Optional[StockOpeningBalance] = None,
    ) -> ImportResult:
        stock_item = StockItem(
            name=name,
            parent=parent,
            base_units=base_units,
            alias=alias,
            opening_balance=opening_balance,
        )
        return self.stock.create_stock_item(stock_item)

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
