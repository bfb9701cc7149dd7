"""
Message Builder: renders Tally XML requests from domain objects.

Every function here is pure. Nothing reads configuration or the
environment; the company a request is scoped to is always passed in.

Masters and vouchers take an ``action`` (Create, Alter or Delete) so that
create and update requests come from the same serializer.
"""
from __future__ import annotations
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Optional
from .models import (
    Action,
    Company,
    Group,
    Ledger,
    LedgerOpeningBalance,
    StockItem,
    StockOpeningBalance,
    Voucher,
)
from .requests import render
from .xml_utils import format_date, yes_no


class RequestKind(str, Enum):
    """Value of HEADER/TALLYREQUEST."""
    EXPORT = "Export Data"
    IMPORT = "Import Data"
    EXECUTE = "Execute Function"
    LOAD_COMPANY = "Load Company"
    BACKUP_COMPANY = "Backup Company"


# Flags Tally expects on a complete voucher definition; all rendered as "No".
VOUCHER_FLAGS = (
    "DIFFACTUALQTY", "ISMSTFROMSYNC", "ASORIGINAL", "AUDITED", "FORJOBCOSTING",
    "ISOPTIONAL", "USEFOREXCISE", "ISFORJOBWORKIN", "ALLOWCONSUMPTION",
    "USEFORINTEREST", "USEFORGAINLOSS", "USEFORGODOWNTRANSFER", "USEFORCOMPOUND",
    "USEFORSERVICETAX", "ISEXCISEVOUCHER", "EXCISETAXOVERRIDE",
    "USEFORTAXUNITTRANSFER", "IGNOREPOSVALIDATION", "EXCISEOPENING",
    "USEFORFINALPRODUCTION", "ISTDSOVERRIDDEN", "ISTCSOVERRIDDEN",
    "ISTDSTCSCASHVCH", "INCLUDEADVPYMTVCH", "ISSUBWORKSCONTRACT",
    "ISVATOVERRIDDEN", "IGNOREORIGVCHDATE", "ISVATPAIDATCUSTOMS",
    "ISDECLAREDTOCUSTOMS", "ISSERVICETAXOVERRIDDEN", "ISISDVOUCHER",
    "ISEXCISEOVERRIDDEN", "ISEXCISESUPPLYVCH", "ISGSTOVERRIDDEN",
    "GSTNOTEXPORTED", "IGNOREGSTINVALIDATION", "ISVATPRINCIPALACCOUNT",
    "VCHSTATUSISVCHNUMUSED", "ISDELETED", "ISSECURITYONWHENENTERED",
    "ISCOMMONPARTY",
)

STOCK_ITEM_FLAGS = (
    "ISCOSTCENTRESON", "ISENTRYTAXAPPLICABLE", "ISCOSTTRACKINGON",
    "ISUPDATINGTARGETID", "IGNOREPHYSICALDIFFERENCE", "IGNORENEGATIVESTOCK",
    "TREATSALESASMANUFACTURED", "TREATPURCHASESASCONSUMED",
    "TREATRECEIPTSASREVENUE", "HASMFGDATE", "ALLOWUSEOFEXPIREDITEMS",
    "IGNOREBATCHES", "IGNOREGODOWNS", "CALCONMRP", "EXCLUDEJRNLFORVALUATION",
    "ISMAINTAINEDINNATIONALCURRENCY", "AUDITED", "FORPURCHASETAX",
    "FORSERVICETAX", "FORVAT", "FORROYALTY", "FOREXCISE", "FORTDS", "FORTCS",
)

COMPANY_FLAGS = (
    "ENABLEADVTAX", "SEPARATELYVIEWEDADVTAX", "USEFOREXCISE", "USEFORSERVICETAX",
    "USEFORPURCHASETAX", "USETRACKINGNUMBER", "USEFORPAYROLL", "USEFORESI",
    "USEFORPF", "USEFORTDS", "USEFORTCS", "USEFORVAT", "USEFORBILLWISERES",
    "USEFORCOST", "USEFORBILLWISE", "USEFORGST", "ENABLEGSTCOMPLIANCE",
    "VATAPPLICABLE",
)


def _action(action: Action | str) -> str:
    return Action(action).value


def _request_kind(kind: RequestKind | str) -> str:
    return kind.value if isinstance(kind, RequestKind) else str(kind)


def _scalar(value: Any) -> Any:
    """Render a filter/parameter value: dates in Tally format, bools as Yes/No."""
    if isinstance(value, (date, datetime)):
        return format_date(value)
    if isinstance(value, bool):
        return yes_no(value)
    return value


def _pairs(mapping: Optional[Mapping[str, Any]]) -> list[tuple[str, Any]]:
    return [(tag, _scalar(value)) for tag, value in (mapping or {}).items()]


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------

def build_envelope(request_kind: RequestKind | str, body_xml: str) -> str:
    """Wrap body content in ENVELOPE/HEADER/BODY. Never validates."""
    return render("envelope", request_kind=_request_kind(request_kind), body=body_xml)


def build_export_request(report_name: str, filters: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build a read request for a named report.

    Each filter becomes one child tag of REQUESTDESC, in mapping order.
    """
    body = render("export", report_name=report_name, filters=_pairs(filters))
    return build_envelope(RequestKind.EXPORT, body)


def build_import_request(
    payload_xml: str,
    report_name: str = "All Masters",
    company: Optional[str] = None,
) -> str:
    """
    Build a write request around a TALLYMESSAGE payload.

    SVCURRENTCOMPANY is emitted only when ``company`` is given; otherwise
    Tally imports into whichever company is active.
    """
    body = render("import", report_name=report_name, company=company, payload=payload_xml)
    return build_envelope(RequestKind.IMPORT, body)


def build_collection_request(collection: str, filters: Optional[Mapping[str, Any]] = None) -> str:
    """Build a "List of <collection>" export with XML output format."""
    body = render("collection", collection=collection, filters=_pairs(filters))
    return build_envelope(RequestKind.EXPORT, body)


def build_tdl_collection_request(
    collection_name: str,
    object_type: str,
    fetch_fields: Iterable[str] = (),
    company: Optional[str] = None,
) -> str:
    """
    Build an inline TDL collection export.

    Works across Tally editions where the named "List of ..." reports differ.
    """
    return render(
        "tdl_collection",
        collection_name=collection_name,
        object_type=object_type,
        fetch_fields=list(fetch_fields),
        company=company,
    )


def build_function_request(function_name: str, parameters: Optional[Mapping[str, Any]] = None) -> str:
    body = render("function", function_name=function_name, parameters=_pairs(parameters))
    return build_envelope(RequestKind.EXECUTE, body)


def build_load_company_request(company_name: str) -> str:
    body = render("load_company", company_name=company_name)
    return build_envelope(RequestKind.LOAD_COMPANY, body)


def build_backup_company_request(
    company_name: str,
    backup_path: Optional[str] = None,
    include_images: bool = False,
) -> str:
    body = render(
        "backup_company",
        company_name=company_name,
        backup_path=backup_path,
        include_images=include_images,
    )
    return build_envelope(RequestKind.BACKUP_COMPANY, body)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

def build_delete_xml(object_type: str, name: str) -> str:
    """Minimal TALLYMESSAGE deleting a master (LEDGER, STOCKITEM, GROUP, ...) by name."""
    return render("delete", object_type=object_type.upper(), master_name=name)


def build_voucher_delete_xml(
    voucher_number: str,
    voucher_type: str,
    date: Optional[date | str] = None,
) -> str:
    return render(
        "voucher_delete",
        voucher_number=voucher_number,
        voucher_type=voucher_type,
        date=date,
    )


def build_ledger_xml(ledger: Ledger, action: Action | str = Action.CREATE) -> str:
    """
    Render a ledger master.

    ISBILLWISEON, ISCOSTCENTRESON and OPENINGBALANCE are always present;
    they take their values from the opening balance when one is given.
    """
    action = _action(action)
    if action == Action.DELETE.value:
        return build_delete_xml("LEDGER", ledger.name)
    opening = ledger.opening_balance or LedgerOpeningBalance()
    return render("ledger", ledger=ledger, opening=opening, action=action)


def build_group_xml(group: Group, action: Action | str = Action.CREATE) -> str:
    action = _action(action)
    if action == Action.DELETE.value:
        return build_delete_xml("GROUP", group.name)
    return render("group", group=group, action=action)


def build_voucher_xml(voucher: Voucher, action: Action | str = Action.CREATE) -> str:
    """
    Render an accounting voucher.

    Each entry's AMOUNT is the absolute value; ISDEEMEDPOSITIVE carries the
    sign (Yes for debits). Every entry gets one BILLALLOCATIONS.LIST, with
    the bill type defaulting to "New Ref".
    """
    action = _action(action)
    if action == Action.DELETE.value:
        return build_voucher_delete_xml(
            voucher.voucher_number or "", voucher.voucher_type, voucher.date
        )
    return render("voucher", voucher=voucher, flags=VOUCHER_FLAGS, action=action)


def build_stock_item_xml(stock_item: StockItem, action: Action | str = Action.CREATE) -> str:
    action = _action(action)
    if action == Action.DELETE.value:
        return build_delete_xml("STOCKITEM", stock_item.name)
    opening = stock_item.opening_balance or StockOpeningBalance()
    return render(
        "stock_item",
        item=stock_item,
        opening=opening,
        flags=STOCK_ITEM_FLAGS,
        action=action,
    )


def build_company_xml(company: Company, action: Action | str = Action.CREATE) -> str:
    action = _action(action)
    if action == Action.DELETE.value:
        return build_delete_xml("COMPANY", company.name)
    return render(
        "company",
        company=company,
        books_begin_from=company.financial_year_from,
        flags=COMPANY_FLAGS,
        action=action,
    )
