"""
Tests for escaping, formatting and value coercion helpers.
"""
import pytest
from datetime import date, datetime
from tally_sdk.xml_utils import (
    current_financial_year_start,
    escape_xml,
    format_amount,
    format_date,
    node_text,
    parse_bool,
    parse_float,
    parse_int,
    parse_tally_date,
    unescape_xml,
    yes_no,
)


class TestEscaping:

    def test_escape_all_reserved_characters(self):
        assert escape_xml("A & B <Co> \"x\" 'y'") == (
            "A &amp; B &lt;Co&gt; &quot;x&quot; &apos;y&apos;"
        )

    def test_ampersand_is_not_double_escaped(self):
        """Entities produced for < and > must not be re-escaped."""
        assert escape_xml("<") == "&lt;"
        assert escape_xml("&lt;") == "&amp;lt;"

    def test_non_strings_pass_through(self):
        assert escape_xml(15000) == 15000
        assert escape_xml(None) is None
        assert escape_xml(True) is True

    @pytest.mark.parametrize("text", ["Tom & Jerry's <Shop>", 'say "hi"', "&amp; literal", ""])
    def test_unescape_inverts_escape(self, text):
        assert unescape_xml(escape_xml(text)) == text


class TestFormatting:

    def test_format_date_zero_pads_day(self):
        assert format_date(date(2023, 9, 5)) == "05-Sep-2023"

    def test_format_date_accepts_datetime(self):
        assert format_date(datetime(2024, 4, 1, 15, 30)) == "01-Apr-2024"

    @pytest.mark.parametrize("text", ["2024-04-01", "20240401", "01-Apr-2024"])
    def test_format_date_accepts_strings(self, text):
        assert format_date(text) == "01-Apr-2024"

    def test_format_date_rejects_garbage(self):
        with pytest.raises(ValueError):
            format_date("next tuesday")

    def test_format_date_distinct_within_a_year(self):
        days = [date(2024, 1, 1).replace(month=m, day=d) for m in range(1, 13) for d in (1, 9, 28)]
        assert len({format_date(d) for d in days}) == len(days)

    def test_format_amount(self):
        assert format_amount(15000.0) == "15000"
        assert format_amount(1234.5) == "1234.5"
        assert format_amount(0.125) == "0.125"
        assert format_amount(None) == "0"
        assert format_amount(-900) == "-900"

    def test_yes_no(self):
        assert yes_no(True) == "Yes"
        assert yes_no(False) == "No"
        assert yes_no(None) == "No"

    def test_current_financial_year_start(self):
        assert current_financial_year_start(date(2024, 3, 31)) == date(2023, 4, 1)
        assert current_financial_year_start(date(2024, 4, 1)) == date(2024, 4, 1)
        assert current_financial_year_start(date(2024, 12, 25)) == date(2024, 4, 1)


class TestCoercion:

    def test_node_text_shapes(self):
        assert node_text(None) == ""
        assert node_text("Cash") == "Cash"
        assert node_text({"TYPE": "String", "_": "Cash-in-Hand"}) == "Cash-in-Hand"
        assert node_text(["first", "second"]) == "first"
        assert node_text([]) == ""

    def test_parse_tally_date_formats(self):
        assert parse_tally_date("20240401") == date(2024, 4, 1)
        assert parse_tally_date("2024-04-01") == date(2024, 4, 1)
        assert parse_tally_date("1-Apr-24") == date(2024, 4, 1)
        assert parse_tally_date("") is None
        assert parse_tally_date("not a date") is None

    def test_parse_float_tally_styles(self):
        assert parse_float("1,234.56") == 1234.56
        assert parse_float("(1234.56)") == -1234.56
        assert parse_float("500.00 Dr") == 500.0
        assert parse_float("500.00 Cr") == -500.0
        assert parse_float("10 Nos") == 10.0
        assert parse_float("100.00/Nos") == 100.0
        assert parse_float("₹ 2,500") == 2500.0
        assert parse_float("") == 0.0
        assert parse_float("n/a") == 0.0

    def test_parse_int(self):
        assert parse_int("1,024") == 1024
        assert parse_int("12.0") == 12
        assert parse_int("") == 0
        assert parse_int("many") == 0

    def test_parse_bool(self):
        assert parse_bool("Yes") is True
        assert parse_bool("No") is False
        assert parse_bool("") is False
        assert parse_bool(None) is False
        assert parse_bool("maybe", default=True) is True
