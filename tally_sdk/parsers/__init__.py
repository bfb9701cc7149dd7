"""
Response interpreters for Tally XML.

- base: XML-to-tree parsing, error detection, payload location
- masters: ledgers, stock items, companies
- transactions: vouchers, stock movements, ledger transactions
- reports: balances, summaries, company information
"""

from .base import (
    ensure_list,
    extract,
    find_error,
    load_tree,
    parse_import_result,
    parse_xml,
    payload_nodes,
    raise_for_error,
    sanitize_xml,
    unwrap_body,
)
from .masters import (
    parse_company_detail,
    parse_company_list,
    parse_ledger_detail,
    parse_ledger_list,
    parse_stock_item_detail,
    parse_stock_item_list,
)
from .transactions import (
    parse_ledger_transactions,
    parse_stock_movements,
    parse_voucher_detail,
    parse_voucher_list,
)
from .reports import (
    parse_company_statistics,
    parse_financial_year,
    parse_ledger_balance,
    parse_stock_balance,
    parse_stock_summary,
    parse_voucher_summary,
)

__all__ = [
    # Base
    "parse_xml",
    "sanitize_xml",
    "load_tree",
    "ensure_list",
    "unwrap_body",
    "find_error",
    "raise_for_error",
    "payload_nodes",
    "extract",
    "parse_import_result",
    # Masters
    "parse_ledger_detail",
    "parse_ledger_list",
    "parse_stock_item_detail",
    "parse_stock_item_list",
    "parse_company_detail",
    "parse_company_list",
    # Transactions
    "parse_voucher_detail",
    "parse_voucher_list",
    "parse_stock_movements",
    "parse_ledger_transactions",
    # Reports
    "parse_ledger_balance",
    "parse_stock_balance",
    "parse_stock_summary",
    "parse_voucher_summary",
    "parse_financial_year",
    "parse_company_statistics",
]
