"""
Local validation of domain objects.

Runs before any XML is built, so a rejected object never produces a
partial request.
"""
from __future__ import annotations
import math
from .errors import TallyValidationError
from .models import BILL_TYPES, Company, Group, Ledger, StockItem, Voucher

# Debits and credits may differ by rounding noise up to this amount.
BALANCE_TOLERANCE = 0.01


def require(value, message: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise TallyValidationError(message)


def validate_ledger(ledger: Ledger) -> None:
    require(ledger.name, "Ledger name is required")
    require(ledger.parent, "Parent group is required")


def validate_group(group: Group) -> None:
    require(group.name, "Group name is required")
    require(group.parent, "Parent group is required")


def validate_stock_item(stock_item: StockItem) -> None:
    require(stock_item.name, "Stock item name is required")
    require(stock_item.parent, "Parent group is required")
    require(stock_item.base_units, "Base units are required")


def validate_company(company: Company) -> None:
    require(company.name, "Company name is required")


def validate_voucher(voucher: Voucher) -> None:
    """
    Check a voucher before it is built.

    Raises TallyValidationError when the type or date is missing, there are
    fewer than two entries, an entry has no ledger or a zero or non-finite
    amount, a bill type is unknown, or debits and credits do not balance within
    BALANCE_TOLERANCE.
    """
    require(voucher.voucher_type, "Voucher type is required")
    require(voucher.date, "Voucher date is required")

    entries = voucher.ledger_entries
    if len(entries) < 2:
        raise TallyValidationError("At least two ledger entries are required for a voucher")

    for index, entry in enumerate(entries, start=1):
        require(entry.ledger_name, f"Ledger entry {index} must have a ledger name")
        if not math.isfinite(entry.amount):
            raise TallyValidationError(f"Ledger entry {index} ({entry.ledger_name}) has a non-finite amount")
        if entry.amount == 0:
            raise TallyValidationError(f"Ledger entry {index} ({entry.ledger_name}) must have a non-zero amount")
        if entry.bill_type and entry.bill_type not in BILL_TYPES:
            raise TallyValidationError(
                f"Ledger entry {index} has invalid bill type {entry.bill_type!r}; "
                f"expected one of {', '.join(BILL_TYPES)}"
            )

    total = voucher.total
    if not abs(total) <= BALANCE_TOLERANCE:
        raise TallyValidationError(
            f"Voucher debits and credits must balance (difference {total:.2f})"
        )
