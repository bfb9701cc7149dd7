"""
Company operations: listing, details, loading, creation, statistics, backup.
"""
from __future__ import annotations
from typing import Any, Optional
from loguru import logger
from ..builder import (
    build_backup_company_request,
    build_company_xml,
    build_load_company_request,
)
from ..errors import TallyResponseError
from ..models import (
    Action,
    Company,
    CompanyRecord,
    CompanyStatistics,
    FinancialYear,
    ImportResult,
)
from ..parsers import (
    parse_company_detail,
    parse_company_list,
    parse_company_statistics,
    parse_financial_year,
    parse_ledger_list,
    parse_stock_item_list,
    parse_voucher_list,
)
from ..validators import require, validate_company
from .base import TallyService


def _company_filter(name: Optional[str]) -> dict[str, Any]:
    return {"COMPANYNAME": name} if name else {}


class CompanyService(TallyService):
    """Companies known to the Tally instance."""

    def list_companies(
        self,
        active_only: bool = False,
        include_details: bool = False,
    ) -> list[CompanyRecord]:
        """
        List companies.

        With ``include_details`` each company is re-read through
        get_company_info; a company whose details Tally refuses keeps its
        list entry.
        """
        filters = {"ACTIVEONLY": True} if active_only else {}
        companies = self.collection("get company list", "Companies", filters, parse_company_list)
        if not include_details:
            return companies

        detailed = []
        for company in companies:
            try:
                info = self.get_company_info(company.name)
            except TallyResponseError as e:
                logger.warning(f"Could not read details of company '{company.name}': {e.detail}")
                detailed.append(company)
                continue
            detailed.append(info if info.name else company)
        return detailed

    def get_company_info(self, name: str) -> CompanyRecord:
        require(name, "Company name is required")
        return self.export(
            "get company info", "Company Details", {"COMPANYNAME": name}, parse_company_detail
        )

    def get_current_company(self) -> CompanyRecord:
        return self.export(
            "get current company info", "Current Company Info", {}, parse_company_detail
        )

    def load_company(self, name: str) -> dict:
        """Ask Tally to open a company; returns the raw response tree."""
        require(name, "Company name is required")
        tree = self.send("load company", build_load_company_request(name), lambda t: t)
        logger.info(f"Company '{name}' loaded")
        return tree

    def create_company(self, company: Company) -> ImportResult:
        validate_company(company)
        result = self.import_payload("create company", build_company_xml(company, Action.CREATE))
        logger.info(f"Company '{company.name}' created")
        return result

    def get_financial_year(self, name: Optional[str] = None) -> FinancialYear:
        return self.export(
            "get financial year info", "Financial Year Info", _company_filter(name), parse_financial_year
        )

    def get_company_statistics(
        self,
        name: Optional[str] = None,
        include_ledger_count: bool = False,
        include_voucher_count: bool = False,
        include_stock_count: bool = False,
    ) -> CompanyStatistics:
        """
        Read the "Company Statistics" report.

        The include_* flags add master and voucher counts, each fetched
        with its own collection request.
        """
        filters = _company_filter(name)
        stats = self.export(
            "get company statistics", "Company Statistics", filters, parse_company_statistics
        )
        if include_ledger_count:
            ledgers = self.collection("get company statistics", "Ledger", filters, parse_ledger_list)
            stats.ledger_count = len(ledgers)
        if include_voucher_count:
            vouchers = self.collection("get company statistics", "Voucher", filters, parse_voucher_list)
            stats.voucher_count = len(vouchers)
        if include_stock_count:
            items = self.collection("get company statistics", "Stock Item", filters, parse_stock_item_list)
            stats.stock_item_count = len(items)
        return stats

    def backup_company(
        self,
        name: str,
        backup_path: Optional[str] = None,
        include_images: bool = False,
    ) -> dict:
        require(name, "Company name is required")
        xml = build_backup_company_request(name, backup_path, include_images)
        tree = self.send("backup company", xml, lambda t: t)
        logger.info(f"Backup of company '{name}' initiated")
        return tree
