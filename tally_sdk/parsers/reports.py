"""
Interpreters for Tally report exports: balances, summaries, company info.

Summaries are computed from the normalised items. Aggregate tags Tally
may include alongside the items (TOTALVALUE, TOTALCOUNT, ...) are ignored.
"""
from __future__ import annotations
from loguru import logger
from ..models import (
    CompanyStatistics,
    FinancialYear,
    LedgerBalance,
    StockBalance,
    StockSummary,
    StockSummaryItem,
    VoucherSummary,
    VoucherTypeTotal,
)
from .base import Source, ensure_list, extract, load_tree, payload_nodes, raise_for_error
from .transactions import parse_voucher_list


def _single(source: Source, tag: str | None = None) -> dict:
    tree = raise_for_error(load_tree(source))
    nodes = payload_nodes(tree, tag)
    return nodes[0] if nodes else {}


def parse_ledger_balance(source: Source) -> LedgerBalance:
    return extract(LedgerBalance, _single(source))


def parse_stock_balance(source: Source) -> StockBalance:
    return extract(StockBalance, _single(source))


def parse_financial_year(source: Source) -> FinancialYear:
    return extract(FinancialYear, _single(source))


def parse_company_statistics(source: Source) -> CompanyStatistics:
    return extract(CompanyStatistics, _single(source))


def _stock_summary_nodes(containers: list[dict]) -> list[dict]:
    nodes: list[dict] = []
    for container in containers:
        if "STOCKITEMS" in container:
            for group in ensure_list(container["STOCKITEMS"]):
                if isinstance(group, dict) and "STOCKITEM" in group:
                    nodes.extend(ensure_list(group["STOCKITEM"]))
                else:
                    nodes.append(group)
        elif "STOCKITEM" in container:
            nodes.extend(ensure_list(container["STOCKITEM"]))
        else:
            nodes.append(container)
    return [node for node in nodes if isinstance(node, dict)]


def parse_stock_summary(source: Source) -> StockSummary:
    """
    Parse a "Stock Summary" export.

    Items may sit directly in the payload or under a STOCKITEMS wrapper.
    Nameless nodes (report totals) are skipped.
    """
    tree = raise_for_error(load_tree(source))
    items = [
        extract(StockSummaryItem, node)
        for node in _stock_summary_nodes(payload_nodes(tree))
    ]
    items = [item for item in items if item.name]

    return StockSummary(
        items=items,
        total_items=len(items),
        total_value=round(sum(item.closing_value for item in items), 2),
        positive_stock=sum(1 for item in items if item.closing_quantity > 0),
        negative_stock=sum(1 for item in items if item.closing_quantity < 0),
        zero_stock=sum(1 for item in items if item.closing_quantity == 0),
    )


def parse_voucher_summary(source: Source) -> VoucherSummary:
    """Count and total the vouchers of a period, overall and per voucher type."""
    vouchers = parse_voucher_list(source)

    by_type: dict[str, VoucherTypeTotal] = {}
    for voucher in vouchers:
        bucket = by_type.setdefault(voucher.voucher_type or "Unknown", VoucherTypeTotal())
        bucket.count += 1
        bucket.amount = round(bucket.amount + voucher.amount, 2)

    total_amount = round(sum(voucher.amount for voucher in vouchers), 2)
    count = len(vouchers)
    summary = VoucherSummary(
        total_count=count,
        total_amount=total_amount,
        average_amount=round(total_amount / count, 2) if count else 0.0,
        by_type=by_type,
    )
    logger.debug(f"Voucher summary: {count} vouchers, total {total_amount}")
    return summary
