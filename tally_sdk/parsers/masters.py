"""
Interpreters for Tally master data: ledgers, stock items, companies.

Each function takes the response (XML text or a parsed tree), raises
TallyResponseError if Tally reported an error, and returns typed records.
A single record and a list of one record interpret identically.
"""
from __future__ import annotations
from loguru import logger
from ..models import CompanyRecord, LedgerRecord, StockItemRecord
from .base import Source, extract, load_tree, payload_nodes, raise_for_error


def _records(source: Source, tag: str) -> list[dict]:
    tree = raise_for_error(load_tree(source))
    return payload_nodes(tree, tag)


def _first(nodes: list[dict]) -> dict:
    return nodes[0] if nodes else {}


def parse_ledger_detail(source: Source) -> LedgerRecord:
    """Parse a "Ledger Details" export into one LedgerRecord."""
    return extract(LedgerRecord, _first(_records(source, "LEDGER")))


def parse_ledger_list(source: Source) -> list[LedgerRecord]:
    """
    Parse a ledger list (named report or TDL collection).

    Records without a name are dropped.
    """
    ledgers = [extract(LedgerRecord, node) for node in _records(source, "LEDGER")]
    ledgers = [ledger for ledger in ledgers if ledger.name]
    logger.debug(f"Parsed {len(ledgers)} ledgers")
    return ledgers


def parse_stock_item_detail(source: Source) -> StockItemRecord:
    return extract(StockItemRecord, _first(_records(source, "STOCKITEM")))


def parse_stock_item_list(source: Source) -> list[StockItemRecord]:
    items = [extract(StockItemRecord, node) for node in _records(source, "STOCKITEM")]
    items = [item for item in items if item.name]
    logger.debug(f"Parsed {len(items)} stock items")
    return items


def parse_company_detail(source: Source) -> CompanyRecord:
    return extract(CompanyRecord, _first(_records(source, "COMPANY")))


def parse_company_list(source: Source) -> list[CompanyRecord]:
    companies = [extract(CompanyRecord, node) for node in _records(source, "COMPANY")]
    return [company for company in companies if company.name]
