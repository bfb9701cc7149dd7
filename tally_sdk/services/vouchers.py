"""
Voucher operations: create, fetch, list, update, delete, summaries.
"""
from __future__ import annotations
from typing import Any, Optional
from loguru import logger
from ..builder import build_voucher_delete_xml, build_voucher_xml
from ..models import Action, ImportResult, Voucher, VoucherRecord, VoucherSummary
from ..parsers import parse_voucher_detail, parse_voucher_list, parse_voucher_summary
from ..validators import require, validate_voucher
from .base import DateLike, TallyService, as_date, merge_model

VOUCHER_REPORT = "Vouchers"


class VoucherService(TallyService):
    """Accounting vouchers in the configured company."""

    def create_voucher(self, voucher: Voucher) -> ImportResult:
        """
        Create a voucher.

        The voucher is validated first: an unbalanced voucher, or one with
        fewer than two entries, raises TallyValidationError and nothing is
        sent to Tally.
        """
        validate_voucher(voucher)
        result = self.import_payload(
            "create voucher", build_voucher_xml(voucher, Action.CREATE), VOUCHER_REPORT
        )
        logger.info(
            f"{voucher.voucher_type} voucher created "
            f"({len(voucher.ledger_entries)} entries, last id {result.last_vch_id})"
        )
        return result

    def fetch_voucher(
        self,
        voucher_number: str,
        voucher_type: str,
        date: DateLike = None,
    ) -> VoucherRecord:
        require(voucher_number, "Voucher number and type are required")
        require(voucher_type, "Voucher number and type are required")
        filters: dict[str, Any] = {"VOUCHERNUMBER": voucher_number, "VOUCHERTYPE": voucher_type}
        if date:
            filters["DATE"] = as_date(date)
        return self.export("fetch voucher", "Voucher Details", filters, parse_voucher_detail)

    def list_vouchers(
        self,
        voucher_type: Optional[str] = None,
        from_date: DateLike = None,
        to_date: DateLike = None,
        ledger_name: Optional[str] = None,
        amount_range: Optional[tuple[float, float]] = None,
        limit: Optional[int] = None,
    ) -> list[VoucherRecord]:
        """
        List vouchers.

        Type, period and ledger filters go to Tally; ``amount_range``
        (inclusive min, max on the voucher amount) and ``limit`` are applied
        to the result.
        """
        filters: dict[str, Any] = {}
        if voucher_type:
            filters["VOUCHERTYPE"] = voucher_type
        if from_date:
            filters["FROMDATE"] = as_date(from_date, "from_date")
        if to_date:
            filters["TODATE"] = as_date(to_date, "to_date")
        if ledger_name:
            filters["LEDGERNAME"] = ledger_name

        vouchers = self.collection("fetch voucher list", "Voucher", filters, parse_voucher_list)

        if amount_range:
            low, high = amount_range
            vouchers = [v for v in vouchers if low <= abs(v.amount) <= high]
        if limit:
            vouchers = vouchers[:limit]
        return vouchers

    def update_voucher(self, voucher_number: str, voucher_type: str, **updates: Any) -> ImportResult:
        """
        Alter a voucher.

        ``updates`` (date, narration, ledger_entries) are merged over the
        voucher as Tally currently holds it; the result is validated like a
        new voucher.
        """
        require(voucher_number, "Voucher number and type are required")
        require(voucher_type, "Voucher number and type are required")
        current = self.fetch_voucher(voucher_number, voucher_type).to_voucher()
        current.voucher_number = voucher_number
        current.voucher_type = voucher_type
        voucher = merge_model(Voucher, current, updates, "voucher")
        validate_voucher(voucher)
        result = self.import_payload(
            "update voucher", build_voucher_xml(voucher, Action.ALTER), VOUCHER_REPORT
        )
        logger.info(f"Voucher '{voucher_number}' updated")
        return result

    def delete_voucher(
        self,
        voucher_number: str,
        voucher_type: str,
        date: DateLike = None,
    ) -> ImportResult:
        require(voucher_number, "Voucher number and type are required")
        require(voucher_type, "Voucher number and type are required")
        payload = build_voucher_delete_xml(voucher_number, voucher_type, as_date(date))
        result = self.import_payload("delete voucher", payload, VOUCHER_REPORT)
        logger.info(f"Voucher '{voucher_number}' deleted")
        return result

    def get_voucher_summary(
        self,
        from_date: DateLike = None,
        to_date: DateLike = None,
        voucher_type: Optional[str] = None,
    ) -> VoucherSummary:
        start, end = self.period(from_date, to_date)
        filters: dict[str, Any] = {"FROMDATE": start, "TODATE": end}
        if voucher_type:
            filters["VOUCHERTYPE"] = voucher_type
        return self.export("get voucher summary", "Voucher Summary", filters, parse_voucher_summary)

    def get_vouchers_by_ledger(
        self,
        ledger_name: str,
        from_date: DateLike = None,
        to_date: DateLike = None,
        voucher_type: Optional[str] = None,
    ) -> list[VoucherRecord]:
        require(ledger_name, "Ledger name is required")
        start, end = self.period(from_date, to_date)
        filters: dict[str, Any] = {"LEDGERNAME": ledger_name, "FROMDATE": start, "TODATE": end}
        if voucher_type:
            filters["VOUCHERTYPE"] = voucher_type
        return self.export(
            "fetch vouchers for ledger", "Ledger Vouchers", filters, parse_voucher_list
        )
