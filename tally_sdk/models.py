"""
Domain models and typed response records.

Input models (Ledger, Voucher, StockItem, Company, Group) describe what the
caller sends to Tally. Required-field rules live in validators.py so that a
partially filled object can still be merged during an update.

Response records mirror Tally's tag names through field aliases. Every
field has a typed default, and the annotated types below coerce whatever
the parsed tree holds (text, attribute dicts, repeated nodes) without ever
raising on a missing or malformed value.
"""
from __future__ import annotations
from datetime import date
from enum import Enum
from typing import Annotated, Any, Optional
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from .xml_utils import (
    current_financial_year_start,
    node_text,
    parse_bool,
    parse_float,
    parse_int,
    parse_tally_date,
)


class Action(str, Enum):
    """Value of the ACTION attribute on a Tally master or voucher."""
    CREATE = "Create"
    ALTER = "Alter"
    DELETE = "Delete"


BILL_TYPES = ("New Ref", "Against Ref", "Advance")


def _lines(node: Any) -> str:
    if isinstance(node, list):
        return "\n".join(node_text(n) for n in node if node_text(n))
    if isinstance(node, dict) and "_" not in node:
        # ADDRESS.LIST style wrapper: attributes first, the repeated child last
        children = [v for v in node.values() if isinstance(v, (list, dict))]
        if not children:
            children = list(node.values())[-1:]
        return _lines(children[0]) if children else ""
    return node_text(node)


def _active(node: Any) -> bool:
    return node_text(node).strip() != "No"


Text = Annotated[str, BeforeValidator(node_text)]
Lines = Annotated[str, BeforeValidator(_lines)]
Number = Annotated[float, BeforeValidator(parse_float)]
Integer = Annotated[int, BeforeValidator(parse_int)]
Flag = Annotated[bool, BeforeValidator(parse_bool)]
Active = Annotated[bool, BeforeValidator(_active)]
TallyDate = Annotated[Optional[date], BeforeValidator(parse_tally_date)]


def _input_date(value: Any) -> Any:
    if value is None or isinstance(value, date):
        return value
    parsed = parse_tally_date(value)
    if parsed is None:
        raise ValueError(f"Unrecognised date: {value!r}")
    return parsed


InputDate = Annotated[Optional[date], BeforeValidator(_input_date)]


# ---------------------------------------------------------------------------
# Input models
# ---------------------------------------------------------------------------

class LedgerOpeningBalance(BaseModel):
    amount: float = 0.0
    is_bill_wise: bool = False
    is_cost_centre: bool = False


class Ledger(BaseModel):
    name: str = ""
    parent: str = ""
    alias: Optional[str] = None
    opening_balance: Optional[LedgerOpeningBalance] = None


class LedgerEntry(BaseModel):
    ledger_name: str = ""
    amount: float = 0.0              # positive = debit, negative = credit
    bill_name: Optional[str] = None
    bill_type: Optional[str] = None  # one of BILL_TYPES, "New Ref" when unset

    @property
    def is_deemed_positive(self) -> bool:
        return self.amount > 0


class Voucher(BaseModel):
    voucher_type: str = ""
    date: InputDate = None
    voucher_number: Optional[str] = None
    narration: Optional[str] = None
    ledger_entries: list[LedgerEntry] = Field(default_factory=list)

    @property
    def total(self) -> float:
        """Signed sum of all entries; zero for a balanced voucher."""
        return sum(entry.amount for entry in self.ledger_entries)


class StockOpeningBalance(BaseModel):
    quantity: float = 0.0
    rate: float = 0.0
    value: float = 0.0


class StockItem(BaseModel):
    name: str = ""
    parent: str = ""
    base_units: str = ""
    alias: Optional[str] = None
    opening_balance: Optional[StockOpeningBalance] = None


class Company(BaseModel):
    name: str = ""
    mailing_name: Optional[str] = None
    address: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    pincode: Optional[str] = None
    currency_symbol: str = "Rs."
    financial_year_from: InputDate = Field(default_factory=current_financial_year_start)

    @model_validator(mode="after")
    def _default_mailing_name(self) -> "Company":
        if not self.mailing_name:
            self.mailing_name = self.name
        return self


class Group(BaseModel):
    name: str = ""
    parent: str = ""


# ---------------------------------------------------------------------------
# Response records
# ---------------------------------------------------------------------------

class TallyRecord(BaseModel):
    """Base for records read from Tally: tag aliases, unknown tags ignored."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LedgerRecord(TallyRecord):
    name: Text = Field("", alias="NAME")
    parent: Text = Field("", alias="PARENT")
    alias: Text = Field("", alias="ALIAS")
    opening_balance: Number = Field(0.0, alias="OPENINGBALANCE")
    closing_balance: Number = Field(0.0, alias="CLOSINGBALANCE")
    is_bill_wise: Flag = Field(False, alias="ISBILLWISEON")
    is_cost_centre: Flag = Field(False, alias="ISCOSTCENTRESON")
    is_active: Active = Field(True, alias="ISACTIVE")

    @model_validator(mode="before")
    @classmethod
    def _fallback_names(cls, data: Any) -> Any:
        # TDL collection dumps sometimes use mixed-case field names.
        if isinstance(data, dict):
            data = dict(data)
            for tag, fallbacks in (("NAME", ("LedgerName", "$NAME")),
                                   ("PARENT", ("Parent",)),
                                   ("ALIAS", ("Alias",))):
                if not node_text(data.get(tag)):
                    for key in fallbacks:
                        if node_text(data.get(key)):
                            data[tag] = data[key]
                            break
        return data

    def to_ledger(self) -> Ledger:
        return Ledger(
            name=self.name,
            parent=self.parent,
            alias=self.alias or None,
            opening_balance=LedgerOpeningBalance(
                amount=self.opening_balance,
                is_bill_wise=self.is_bill_wise,
                is_cost_centre=self.is_cost_centre,
            ),
        )


class LedgerBalance(TallyRecord):
    opening_balance: Number = Field(0.0, alias="OPENINGBALANCE")
    closing_balance: Number = Field(0.0, alias="CLOSINGBALANCE")
    debit_total: Number = Field(0.0, alias="DEBITTOTAL")
    credit_total: Number = Field(0.0, alias="CREDITTOTAL")


def _first(node: Any) -> Any:
    if isinstance(node, list):
        return node[0] if node else None
    return node


class VoucherEntryRecord(TallyRecord):
    ledger_name: Text = Field("", alias="LEDGERNAME")
    amount: float = 0.0
    bill_name: str = ""
    bill_type: str = ""

    @model_validator(mode="before")
    @classmethod
    def _signed_amount_and_bill(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return {}
        data = dict(data)
        if "AMOUNT" in data:
            # AMOUNT holds the absolute value; the sign lives in ISDEEMEDPOSITIVE.
            amount = abs(parse_float(data["AMOUNT"]))
            if node_text(data.get("ISDEEMEDPOSITIVE")).strip() == "No":
                amount = -amount
            data["amount"] = amount

        bill = _first(data.get("BILLALLOCATIONS.LIST"))
        if isinstance(bill, dict):
            data["bill_name"] = node_text(bill.get("NAME"))
            data["bill_type"] = node_text(bill.get("BILLTYPE"))
        return data

    def to_entry(self) -> LedgerEntry:
        return LedgerEntry(
            ledger_name=self.ledger_name,
            amount=self.amount,
            bill_name=self.bill_name or None,
            bill_type=self.bill_type or None,
        )


class VoucherRecord(TallyRecord):
    voucher_number: Text = Field("", alias="VOUCHERNUMBER")
    voucher_type: Text = Field("", alias="VOUCHERTYPENAME")
    date: TallyDate = Field(None, alias="DATE")
    narration: Text = Field("", alias="NARRATION")
    ledger_entries: list[VoucherEntryRecord] = Field(
        default_factory=list, alias="LEDGERENTRIES.LIST"
    )

    @model_validator(mode="before")
    @classmethod
    def _normalise(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return {}
        data = dict(data)
        if not node_text(data.get("VOUCHERTYPENAME")) and data.get("VCHTYPE"):
            data["VOUCHERTYPENAME"] = data["VCHTYPE"]
        if "ledger_entries" in data:
            return data
        entries = data.get("LEDGERENTRIES.LIST")
        if entries is None:
            entries = data.get("ALLLEDGERENTRIES.LIST")
        if entries is None:
            entries = []
        elif not isinstance(entries, list):
            entries = [entries]
        data["LEDGERENTRIES.LIST"] = [e for e in entries if isinstance(e, dict)]
        return data

    @computed_field
    @property
    def amount(self) -> float:
        """Voucher value: the total of the debit side."""
        return round(sum(e.amount for e in self.ledger_entries if e.amount > 0), 2)

    def to_voucher(self) -> Voucher:
        return Voucher(
            voucher_type=self.voucher_type,
            date=self.date,
            voucher_number=self.voucher_number or None,
            narration=self.narration or None,
            ledger_entries=[e.to_entry() for e in self.ledger_entries],
        )


class VoucherTypeTotal(BaseModel):
    count: int = 0
    amount: float = 0.0


class VoucherSummary(BaseModel):
    total_count: int = 0
    total_amount: float = 0.0
    average_amount: float = 0.0
    by_type: dict[str, VoucherTypeTotal] = Field(default_factory=dict)


class StockQuantity(BaseModel):
    quantity: float = 0.0
    rate: float = 0.0
    value: float = 0.0


class StockItemRecord(TallyRecord):
    name: Text = Field("", alias="NAME")
    parent: Text = Field("", alias="PARENT")
    alias: Text = Field("", alias="ALIAS")
    base_units: Text = Field("", alias="BASEUNITS")
    opening_quantity: Number = Field(0.0, alias="OPENINGBALANCE")
    opening_rate: Number = Field(0.0, alias="OPENINGRATE")
    opening_value: Number = Field(0.0, alias="OPENINGVALUE")
    closing_quantity: Number = Field(0.0, alias="CLOSINGBALANCE")
    closing_rate: Number = Field(0.0, alias="CLOSINGRATE")
    closing_value: Number = Field(0.0, alias="CLOSINGVALUE")
    is_active: Active = Field(True, alias="ISACTIVE")

    @property
    def opening_balance(self) -> StockQuantity:
        return StockQuantity(
            quantity=self.opening_quantity, rate=self.opening_rate, value=self.opening_value
        )

    @property
    def closing_balance(self) -> StockQuantity:
        return StockQuantity(
            quantity=self.closing_quantity, rate=self.closing_rate, value=self.closing_value
        )

    def to_stock_item(self) -> StockItem:
        return StockItem(
            name=self.name,
            parent=self.parent,
            base_units=self.base_units,
            alias=self.alias or None,
            opening_balance=StockOpeningBalance(
                quantity=self.opening_quantity,
                rate=self.opening_rate,
                value=self.opening_value,
            ),
        )


class StockBalance(TallyRecord):
    opening_quantity: Number = Field(0.0, alias="OPENINGBALANCE")
    opening_rate: Number = Field(0.0, alias="OPENINGRATE")
    opening_value: Number = Field(0.0, alias="OPENINGVALUE")
    inward_quantity: Number = Field(0.0, alias="INWARDQUANTITY")
    outward_quantity: Number = Field(0.0, alias="OUTWARDQUANTITY")
    closing_quantity: Number = Field(0.0, alias="CLOSINGBALANCE")
    closing_rate: Number = Field(0.0, alias="CLOSINGRATE")
    closing_value: Number = Field(0.0, alias="CLOSINGVALUE")


class StockSummaryItem(TallyRecord):
    name: Text = Field("", alias="NAME")
    group: Text = Field("", alias="PARENT")
    closing_quantity: Number = Field(0.0, alias="CLOSINGBALANCE")
    closing_value: Number = Field(0.0, alias="CLOSINGVALUE")
    rate: Number = Field(0.0, alias="RATE")
    base_units: Text = Field("", alias="BASEUNITS")


class StockSummary(BaseModel):
    items: list[StockSummaryItem] = Field(default_factory=list)
    total_items: int = 0
    total_value: float = 0.0
    positive_stock: int = 0
    negative_stock: int = 0
    zero_stock: int = 0


class StockMovement(TallyRecord):
    date: TallyDate = Field(None, alias="DATE")
    voucher_type: Text = Field("", alias="VOUCHERTYPENAME")
    voucher_number: Text = Field("", alias="VOUCHERNUMBER")
    inward_quantity: Number = Field(0.0, alias="INWARDQUANTITY")
    outward_quantity: Number = Field(0.0, alias="OUTWARDQUANTITY")
    rate: Number = Field(0.0, alias="RATE")
    amount: Number = Field(0.0, alias="AMOUNT")
    godown: Text = Field("", alias="GODOWNNAME")


class CompanyRecord(TallyRecord):
    name: Text = Field("", alias="NAME")
    mailing_name: Text = Field("", alias="MAILINGNAME")
    address: Lines = Field("", alias="ADDRESS")
    state: Text = Field("", alias="STATE")
    country: Text = Field("", alias="COUNTRY")
    pincode: Text = Field("", alias="PINCODE")
    currency_symbol: Text = Field("", alias="CURRENCYSYMBOL")
    financial_year_from: TallyDate = Field(None, alias="BOOKSBEGINFROM")
    is_active: Active = Field(True, alias="ISACTIVE")
    last_modified: Text = Field("", alias="LASTMODIFIED")

    @model_validator(mode="before")
    @classmethod
    def _address_list(cls, data: Any) -> Any:
        if isinstance(data, dict) and "ADDRESS" not in data and "ADDRESS.LIST" in data:
            data = dict(data)
            data["ADDRESS"] = data["ADDRESS.LIST"]
        return data


class FinancialYear(TallyRecord):
    start_date: TallyDate = Field(None, alias="STARTDATE")
    end_date: TallyDate = Field(None, alias="ENDDATE")
    books_begin_from: TallyDate = Field(None, alias="BOOKSBEGINFROM")
    accounting_basis: Text = Field("", alias="ACCOUNTINGBASIS")
    is_locked: Flag = Field(False, alias="ISLOCKED")


class CompanyStatistics(TallyRecord):
    last_backup_date: Text = Field("", alias="LASTBACKUPDATE")
    database_size: Number = Field(0.0, alias="DATABASESIZE")
    created_date: Text = Field("", alias="CREATEDDATE")
    total_transactions: Integer = Field(0, alias="TOTALTRANSACTIONS")
    ledger_count: Optional[int] = None
    voucher_count: Optional[int] = None
    stock_item_count: Optional[int] = None


class ImportResult(TallyRecord):
    created: Integer = Field(0, alias="CREATED")
    altered: Integer = Field(0, alias="ALTERED")
    deleted: Integer = Field(0, alias="DELETED")
    last_vch_id: Integer = Field(0, alias="LASTVCHID")
    combined: Integer = Field(0, alias="COMBINED")
    ignored: Integer = Field(0, alias="IGNORED")
    errors: Integer = Field(0, alias="ERRORS")
    cancelled: Integer = Field(0, alias="CANCELLED")
    exceptions: Integer = Field(0, alias="EXCEPTIONS")
    line_error: Text = Field("", alias="LINEERROR")

    @field_validator("line_error")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()
