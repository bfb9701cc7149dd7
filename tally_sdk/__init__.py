"""
Tally SDK - CRUD access to TallyPrime over its XML-over-HTTP interface.

Request XML is rendered from typed models (builder), sent by TallyClient,
and the response is parsed into a tree and interpreted back into typed
records (parsers). The entity services tie the three together.

Key Features:
- Ledgers, vouchers, stock items and companies: create, fetch, list, alter, delete
- Voucher debit/credit balancing checked before anything is sent
- Reports: balances, stock and voucher summaries, company information
- Distinct errors for validation, Tally-reported, transport and parse failures

Usage:
    from tally_sdk import TallySDK

    with TallySDK() as tally:
        tally.create_ledger("ABC Corporation", "Sundry Debtors", opening_balance=15000)

    # Command line
    python -m tally_sdk test-connection
"""

__version__ = "1.0.0"

from .client import TallyClient
from .config import TallyConfig, configure_logging
from .errors import (
    TallyConnectionError,
    TallyError,
    TallyHTTPStatusError,
    TallyNoResponseError,
    TallyParseError,
    TallyResponseError,
    TallyTimeoutError,
    TallyValidationError,
)
from .models import Action, Company, Group, Ledger, LedgerEntry, StockItem, Voucher
from .sdk import TallySDK

__all__ = [
    "TallySDK",
    "TallyClient",
    "TallyConfig",
    "configure_logging",
    "Action",
    "Company",
    "Group",
    "Ledger",
    "LedgerEntry",
    "StockItem",
    "Voucher",
    "TallyError",
    "TallyValidationError",
    "TallyResponseError",
    "TallyConnectionError",
    "TallyTimeoutError",
    "TallyNoResponseError",
    "TallyHTTPStatusError",
    "TallyParseError",
    "__version__",
]
