"""
Tests for request XML rendering.
"""
import pytest
from datetime import date
from lxml import etree
from tally_sdk.builder import (
    RequestKind,
    build_backup_company_request,
    build_collection_request,
    build_company_xml,
    build_delete_xml,
    build_envelope,
    build_export_request,
    build_function_request,
    build_group_xml,
    build_import_request,
    build_ledger_xml,
    build_load_company_request,
    build_stock_item_xml,
    build_tdl_collection_request,
    build_voucher_delete_xml,
    build_voucher_xml,
)
from tally_sdk.parsers import parse_ledger_detail
from tally_sdk.models import (
    Action,
    Company,
    Group,
    Ledger,
    LedgerEntry,
    LedgerOpeningBalance,
    StockItem,
    StockOpeningBalance,
    Voucher,
)


def parse(xml: str) -> etree._Element:
    return etree.fromstring(xml.encode("utf-8"))


@pytest.fixture
def ledger():
    return Ledger(
        name="ABC Corporation",
        parent="Sundry Debtors",
        opening_balance=LedgerOpeningBalance(amount=15000, is_bill_wise=True),
    )


@pytest.fixture
def sales_voucher():
    return Voucher(
        voucher_type="Sales",
        date=date(2024, 4, 15),
        voucher_number="S-101",
        narration="Invoice for April",
        ledger_entries=[
            LedgerEntry(ledger_name="ABC Corporation", amount=11800, bill_name="INV-1"),
            LedgerEntry(ledger_name="Sales Account", amount=-10000),
            LedgerEntry(ledger_name="CGST", amount=-900),
            LedgerEntry(ledger_name="SGST", amount=-900),
        ],
    )


class TestEnvelope:

    def test_envelope_wraps_body(self):
        xml = build_envelope(RequestKind.EXPORT, "<EXPORTDATA/>")
        root = parse(xml)
        assert root.tag == "ENVELOPE"
        assert root.findtext("HEADER/TALLYREQUEST") == "Export Data"
        assert root.find("BODY/EXPORTDATA") is not None

    def test_envelope_accepts_plain_string_kind(self):
        xml = build_envelope("Execute Function", "")
        assert "<TALLYREQUEST>Execute Function</TALLYREQUEST>" in xml

    def test_export_filters_in_order_and_escaped(self):
        xml = build_export_request(
            "Ledger Balance",
            {"LEDGERNAME": "A & B", "FROMDATE": date(2024, 4, 1), "TODATE": date(2024, 9, 5)},
        )
        root = parse(xml)
        desc = root.find("BODY/EXPORTDATA/REQUESTDESC")
        assert [child.tag for child in desc] == ["REPORTNAME", "LEDGERNAME", "FROMDATE", "TODATE"]
        assert desc.findtext("LEDGERNAME") == "A & B"
        assert "<LEDGERNAME>A &amp; B</LEDGERNAME>" in xml
        assert desc.findtext("FROMDATE") == "01-Apr-2024"
        assert desc.findtext("TODATE") == "05-Sep-2024"

    def test_export_bool_filter_renders_yes_no(self):
        xml = build_export_request("Stock Summary", {"INCLUDEZEROBALANCE": False})
        assert "<INCLUDEZEROBALANCE>No</INCLUDEZEROBALANCE>" in xml

    def test_import_without_company_has_no_static_variables(self):
        xml = build_import_request("<TALLYMESSAGE/>")
        root = parse(xml)
        assert root.findtext("HEADER/TALLYREQUEST") == "Import Data"
        assert root.findtext("BODY/IMPORTDATA/REQUESTDESC/REPORTNAME") == "All Masters"
        assert "SVCURRENTCOMPANY" not in xml

    def test_import_with_company_is_scoped(self):
        xml = build_import_request("<TALLYMESSAGE/>", report_name="Vouchers", company="Demo & Sons")
        root = parse(xml)
        assert root.findtext("BODY/IMPORTDATA/REQUESTDESC/REPORTNAME") == "Vouchers"
        assert root.findtext(
            "BODY/IMPORTDATA/REQUESTDESC/STATICVARIABLES/SVCURRENTCOMPANY"
        ) == "Demo & Sons"
        assert root.find("BODY/IMPORTDATA/REQUESTDATA/TALLYMESSAGE") is not None

    def test_collection_request(self):
        xml = build_collection_request("Voucher", {"VOUCHERTYPE": "Sales"})
        root = parse(xml)
        desc = root.find("BODY/EXPORTDATA/REQUESTDESC")
        assert desc.findtext("REPORTNAME") == "List of Voucher"
        assert desc.findtext("STATICVARIABLES/SVEXPORTFORMAT") == "$$SysName:XML"
        assert desc.findtext("STATICVARIABLES/VOUCHERTYPE") == "Sales"

    def test_tdl_collection_request(self):
        xml = build_tdl_collection_request("Ledger List", "Ledger", ["NAME", "PARENT"], company="Demo")
        root = parse(xml)
        assert root.findtext("HEADER/TYPE") == "Collection"
        assert root.findtext("HEADER/ID") == "Ledger List"
        collection = root.find("BODY/DESC/TDL/TDLMESSAGE/COLLECTION")
        assert collection.get("NAME") == "Ledger List"
        assert collection.findtext("TYPE") == "Ledger"
        assert collection.findtext("FETCH") == "NAME,PARENT"
        assert root.findtext("BODY/DESC/STATICVARIABLES/SVCURRENTCOMPANY") == "Demo"

    def test_function_request(self):
        xml = build_function_request("$$CmpUserName", {"Company": "Demo", "Year": 2024})
        root = parse(xml)
        assert root.findtext("HEADER/TALLYREQUEST") == "Execute Function"
        params = root.findall("BODY/FUNCTION/PARAMETERS/PARAMETER")
        assert [(p.findtext("NAME"), p.findtext("VALUE")) for p in params] == [
            ("Company", "Demo"),
            ("Year", "2024"),
        ]

    def test_company_commands(self):
        load = parse(build_load_company_request("Demo"))
        assert load.findtext("HEADER/TALLYREQUEST") == "Load Company"
        assert load.findtext("BODY/LOADCOMPANY/COMPANYNAME") == "Demo"

        backup = parse(build_backup_company_request("Demo", backup_path="D:\\Backups"))
        assert backup.findtext("HEADER/TALLYREQUEST") == "Backup Company"
        assert backup.findtext("BODY/BACKUPCOMPANY/BACKUPPATH") == "D:\\Backups"
        assert backup.findtext("BODY/BACKUPCOMPANY/INCLUDEIMAGES") == "No"

        no_path = build_backup_company_request("Demo")
        assert "BACKUPPATH" not in no_path


class TestLedgerXml:

    def test_ledger_create(self, ledger):
        xml = build_ledger_xml(ledger)
        assert "<PARENT>Sundry Debtors</PARENT>" in xml
        assert "<OPENINGBALANCE>15000</OPENINGBALANCE>" in xml

        node = parse(xml).find("LEDGER")
        assert node.get("NAME") == "ABC Corporation"
        assert node.get("ACTION") == "Create"
        assert node.findtext("ISBILLWISEON") == "Yes"
        assert node.findtext("ISCOSTCENTRESON") == "No"
        assert node.findtext("ALIAS") == ""

    def test_ledger_without_opening_balance_still_emits_zero(self):
        xml = build_ledger_xml(Ledger(name="Cash", parent="Cash-in-Hand"))
        assert "<OPENINGBALANCE>0</OPENINGBALANCE>" in xml
        assert "<ISBILLWISEON>No</ISBILLWISEON>" in xml

    def test_ledger_alter_action(self, ledger):
        node = parse(build_ledger_xml(ledger, Action.ALTER)).find("LEDGER")
        assert node.get("ACTION") == "Alter"

    def test_action_accepts_plain_string(self, ledger):
        node = parse(build_ledger_xml(ledger, "Alter")).find("LEDGER")
        assert node.get("ACTION") == "Alter"

    def test_ledger_delete_is_minimal(self, ledger):
        node = parse(build_ledger_xml(ledger, Action.DELETE)).find("LEDGER")
        assert node.get("ACTION") == "Delete"
        assert node.get("NAME") == "ABC Corporation"
        assert len(node) == 0

    def test_names_are_escaped(self):
        xml = build_ledger_xml(Ledger(name='R&D "Labs"', parent="Indirect Expenses"))
        node = parse(xml).find("LEDGER")
        assert node.get("NAME") == 'R&D "Labs"'
        assert node.findtext("NAME") == 'R&D "Labs"'

    def test_ledger_reads_back_through_detail_parser(self):
        ledger = Ledger(name="Smith & Sons <Pune>", parent="Sundry Creditors", alias="S&S")
        envelope = (
            "<ENVELOPE><BODY><EXPORTDATA><REQUESTDATA>"
            f"{build_ledger_xml(ledger)}"
            "</REQUESTDATA></EXPORTDATA></BODY></ENVELOPE>"
        )
        record = parse_ledger_detail(envelope)
        assert record.name == "Smith & Sons <Pune>"
        assert record.parent == "Sundry Creditors"
        assert record.alias == "S&S"

    def test_group(self):
        node = parse(build_group_xml(Group(name="Online Debtors", parent="Sundry Debtors"))).find("GROUP")
        assert node.get("ACTION") == "Create"
        assert node.findtext("NAME.LIST/NAME") == "Online Debtors"
        assert node.findtext("PARENT") == "Sundry Debtors"

    def test_delete_xml_uppercases_type(self):
        node = parse(build_delete_xml("stockitem", "Widget")).find("STOCKITEM")
        assert node.get("NAME") == "Widget"
        assert node.get("ACTION") == "Delete"

    @pytest.mark.parametrize("build, master, tag", [
        (build_group_xml, Group(name="Debtors North", parent="Sundry Debtors"), "GROUP"),
        (build_stock_item_xml, StockItem(name="Widget", parent="Hardware", base_units="Nos"), "STOCKITEM"),
        (build_company_xml, Company(name="Demo Co"), "COMPANY"),
    ])
    def test_every_master_can_be_deleted(self, build, master, tag):
        node = parse(build(master, Action.DELETE)).find(tag)
        assert node.get("NAME") == master.name
        assert node.get("ACTION") == "Delete"


class TestVoucherXml:

    def test_voucher_entries(self, sales_voucher):
        node = parse(build_voucher_xml(sales_voucher)).find("VOUCHER")
        assert node.get("VCHTYPE") == "Sales"
        assert node.get("ACTION") == "Create"
        assert node.findtext("DATE") == "15-Apr-2024"
        assert node.findtext("VOUCHERNUMBER") == "S-101"
        assert node.findtext("NARRATION") == "Invoice for April"

        entries = node.findall("LEDGERENTRIES.LIST")
        assert [e.findtext("LEDGERNAME") for e in entries] == [
            "ABC Corporation", "Sales Account", "CGST", "SGST",
        ]
        assert [e.findtext("ISDEEMEDPOSITIVE") for e in entries] == ["Yes", "No", "No", "No"]
        assert [e.findtext("AMOUNT") for e in entries] == ["11800", "10000", "900", "900"]

    def test_every_entry_has_one_bill_allocation(self, sales_voucher):
        entries = parse(build_voucher_xml(sales_voucher)).findall("VOUCHER/LEDGERENTRIES.LIST")
        for entry in entries:
            assert len(entry.findall("BILLALLOCATIONS.LIST")) == 1
        first = entries[0].find("BILLALLOCATIONS.LIST")
        assert first.findtext("NAME") == "INV-1"
        assert first.findtext("BILLTYPE") == "New Ref"
        assert first.findtext("AMOUNT") == "11800"

    def test_explicit_bill_type(self):
        voucher = Voucher(
            voucher_type="Receipt",
            date=date(2024, 4, 20),
            ledger_entries=[
                LedgerEntry(ledger_name="Bank", amount=5000),
                LedgerEntry(ledger_name="ABC Corporation", amount=-5000,
                            bill_name="INV-1", bill_type="Against Ref"),
            ],
        )
        entries = parse(build_voucher_xml(voucher)).findall("VOUCHER/LEDGERENTRIES.LIST")
        assert entries[1].findtext("BILLALLOCATIONS.LIST/BILLTYPE") == "Against Ref"

    def test_boolean_flags_default_no(self, sales_voucher):
        node = parse(build_voucher_xml(sales_voucher)).find("VOUCHER")
        assert node.findtext("ISOPTIONAL") == "No"
        assert node.findtext("ISDELETED") == "No"
        assert len(node.findall("ASORIGINAL")) == 1

    def test_voucher_alter(self, sales_voucher):
        node = parse(build_voucher_xml(sales_voucher, Action.ALTER)).find("VOUCHER")
        assert node.get("ACTION") == "Alter"

    def test_voucher_delete(self, sales_voucher):
        node = parse(build_voucher_xml(sales_voucher, Action.DELETE)).find("VOUCHER")
        assert node.get("VOUCHERNUMBER") == "S-101"
        assert node.get("VCHTYPE") == "Sales"
        assert node.get("ACTION") == "Delete"
        assert node.findtext("DATE") == "15-Apr-2024"

    def test_voucher_delete_without_date(self):
        node = parse(build_voucher_delete_xml("R-7", "Receipt")).find("VOUCHER")
        assert node.find("DATE") is None

    def test_missing_optional_fields_do_not_raise(self):
        xml = build_voucher_xml(Voucher(voucher_type="Journal"))
        node = parse(xml).find("VOUCHER")
        assert node.findtext("DATE") == ""
        assert node.findtext("VOUCHERNUMBER") == ""


class TestStockAndCompanyXml:

    def test_stock_item(self):
        item = StockItem(
            name="Widget",
            parent="Hardware",
            base_units="Nos",
            opening_balance=StockOpeningBalance(quantity=10, rate=12.5, value=125),
        )
        node = parse(build_stock_item_xml(item)).find("STOCKITEM")
        assert node.get("NAME") == "Widget"
        assert node.findtext("BASEUNITS") == "Nos"
        assert node.findtext("ASORIGINAL") == "Yes"
        assert node.findtext("IGNORENEGATIVESTOCK") == "No"
        assert node.findtext("OPENINGBALANCE") == "10"
        assert node.findtext("OPENINGRATE") == "12.5"
        assert node.findtext("OPENINGVALUE") == "125"

    def test_stock_item_without_opening_balance(self):
        node = parse(build_stock_item_xml(
            StockItem(name="Bolt", parent="Fasteners", base_units="Pcs")
        )).find("STOCKITEM")
        assert node.findtext("OPENINGBALANCE") == "0"
        assert node.findtext("OPENINGVALUE") == "0"

    def test_company(self):
        company = Company(name="Demo Traders", financial_year_from=date(2024, 4, 1))
        node = parse(build_company_xml(company)).find("COMPANY")
        assert node.get("ACTION") == "Create"
        assert node.findtext("MAILINGNAME") == "Demo Traders"
        assert node.findtext("CURRENCYSYMBOL") == "Rs."
        assert node.findtext("BOOKSBEGINFROM") == "01-Apr-2024"
        assert node.findtext("ACCOUNTINGBASIS") == "Accrual"
        assert node.findtext("USEFORCOMPANY") == "Yes"
        assert node.findtext("MULTITASKSUPPORT") == "Yes"
        assert node.findtext("USEFORGST") == "No"
