"""
Entity services built on TallyClient.

Each service validates its input, builds the request, sends it and
interprets the response into typed records.
"""

from .base import TallyService, failing_as
from .companies import CompanyService
from .ledgers import LedgerService
from .stock_items import StockItemService
from .vouchers import VoucherService

__all__ = [
    "TallyService",
    "failing_as",
    "LedgerService",
    "VoucherService",
    "StockItemService",
    "CompanyService",
]
