"""
Interpreters for Tally transaction data: vouchers and movements.

Voucher entries come back with AMOUNT as an absolute value and the sign in
ISDEEMEDPOSITIVE; VoucherEntryRecord turns that into a signed amount
(positive = debit, negative = credit).
"""
from __future__ import annotations
from typing import Any
from loguru import logger
from ..models import StockMovement, VoucherRecord
from .base import Source, extract, load_tree, payload_nodes, raise_for_error


def parse_voucher_detail(source: Source) -> VoucherRecord:
    tree = raise_for_error(load_tree(source))
    nodes = payload_nodes(tree, "VOUCHER")
    return extract(VoucherRecord, nodes[0] if nodes else {})


def parse_voucher_list(source: Source) -> list[VoucherRecord]:
    """
    Parse a voucher collection or "Ledger Vouchers" export.

    Each record's ``amount`` is the total of its debit side.
    """
    tree = raise_for_error(load_tree(source))
    vouchers = [extract(VoucherRecord, node) for node in payload_nodes(tree, "VOUCHER")]
    logger.debug(f"Parsed {len(vouchers)} vouchers")
    return vouchers


def parse_stock_movements(source: Source) -> list[StockMovement]:
    tree = raise_for_error(load_tree(source))
    return [extract(StockMovement, node) for node in payload_nodes(tree)]


def parse_ledger_transactions(source: Source) -> list[dict[str, Any]]:
    """
    Return the raw transaction nodes of a "Ledger Transactions" export.

    The report layout varies between Tally releases, so the nodes are
    passed through untyped; callers mostly need the count.
    """
    tree = raise_for_error(load_tree(source))
    return payload_nodes(tree, "VOUCHER")
