"""
Shared helpers for moving values in and out of Tally XML.

Rendering side:
- escape_xml / unescape_xml
- format_date (DD-Mon-YYYY), format_amount, yes_no

Reading side (used by the response records in models.py):
- node_text: flatten a parsed-tree node to its text
- parse_tally_date, parse_float, parse_int, parse_bool
"""
from __future__ import annotations
import re
from datetime import date, datetime
from typing import Any, Optional
from loguru import logger

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
          "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# Order matters: "&" must go first so later entities are not escaped twice.
_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)

_LEADING_NUMBER = re.compile(r"^[-+]?(\d+\.?\d*|\.\d+)")


def escape_xml(value: Any) -> Any:
    """
    Escape the five reserved XML characters.

    Non-string values (numbers, booleans, None) are returned unchanged.
    """
    if not isinstance(value, str):
        return value
    for char, entity in _ESCAPES:
        value = value.replace(char, entity)
    return value


def unescape_xml(value: Any) -> Any:
    """Inverse of escape_xml; "&amp;" is resolved last."""
    if not isinstance(value, str):
        return value
    for char, entity in reversed(_ESCAPES):
        value = value.replace(entity, char)
    return value


def format_date(value: date | datetime | str) -> str:
    """
    Format a date the way Tally prints it: DD-Mon-YYYY (e.g. 05-Sep-2023).

    Strings are parsed first with parse_tally_date.
    """
    if isinstance(value, str):
        parsed = parse_tally_date(value)
        if parsed is None:
            raise ValueError(f"Unrecognised date: {value!r}")
        value = parsed
    if isinstance(value, datetime):
        value = value.date()
    return f"{value.day:02d}-{MONTHS[value.month - 1]}-{value.year:04d}"


def format_amount(value: Any) -> str:
    """
    Render a number for Tally: integral values without a decimal point,
    fractional values without trailing zeros.
    """
    if value is None or value == "":
        return "0"
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return f"{number:.6f}".rstrip("0").rstrip(".")


def yes_no(flag: Any) -> str:
    """Render a truthy value as Tally's Yes/No."""
    return "Yes" if flag else "No"


def current_financial_year_start(today: Optional[date] = None) -> date:
    """1 April of the financial year that contains ``today``."""
    today = today or date.today()
    year = today.year if today.month >= 4 else today.year - 1
    return date(year, 4, 1)


def node_text(node: Any) -> str:
    """
    Flatten a parsed-tree node to text.

    Elements that carried attributes arrive as dicts with their text under
    "_"; repeated elements arrive as lists, of which the first wins.
    """
    if node is None:
        return ""
    if isinstance(node, str):
        return node
    if isinstance(node, dict):
        return node_text(node.get("_"))
    if isinstance(node, list):
        return node_text(node[0]) if node else ""
    return str(node)


def parse_tally_date(s: Any) -> Optional[date]:
    """
    Parse Tally date string to Python date.

    Tally uses multiple date formats:
    - YYYYMMDD (most common)
    - YYYY-MM-DD
    - DD-MMM-YYYY (e.g., "01-Apr-2024")

    Returns None for empty or unparseable strings.
    """
    if isinstance(s, datetime):
        return s.date()
    if isinstance(s, date):
        return s

    s = node_text(s).strip()
    if not s or s.lower() in ("null", "none"):
        return None

    formats = [
        "%Y%m%d",      # 20240401
        "%Y-%m-%d",    # 2024-04-01
        "%d-%b-%Y",    # 01-Apr-2024
        "%d-%b-%y",    # 1-Apr-24
        "%d/%m/%Y",    # 01/04/2024
        "%d-%m-%Y",    # 01-04-2024
    ]

    for fmt in formats:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue

    logger.warning(f"Could not parse date: {s}")
    return None


def parse_float(s: Any, default: float = 0.0) -> float:
    """
    Parse Tally numeric string to float.

    Handles:
    - Comma separators (1,234.56)
    - Parentheses for negatives ((1234.56))
    - Currency symbols
    - Trailing units and rate suffixes ("10 Nos", "12.50/Nos")
    - Dr/Cr suffixes (Cr is negative)
    - Empty strings
    """
    if isinstance(s, bool):
        return float(s)
    if isinstance(s, (int, float)):
        return float(s)

    s = node_text(s).strip()
    if not s or s.lower() in ("null", "none"):
        return default

    # Check for parentheses (negative)
    is_negative = s.startswith("(") and s.endswith(")")
    if is_negative:
        s = s[1:-1]

    # Handle Dr/Cr suffixes
    if s.endswith("Dr"):
        s = s[:-2]
    elif s.endswith("Cr"):
        s = s[:-2]
        is_negative = not is_negative

    # Remove common non-numeric characters
    s = re.sub(r"[,₹$€£¥\s]", "", s)
    if s.startswith("Rs."):
        s = s[3:]

    match = _LEADING_NUMBER.match(s)
    if not match:
        logger.warning(f"Could not parse float: {s}")
        return default

    val = float(match.group(0))
    return -val if is_negative else val


def parse_int(s: Any, default: int = 0) -> int:
    """Parse Tally integer string."""
    if isinstance(s, (int, float)) and not isinstance(s, bool):
        return int(s)

    s = node_text(s).strip().replace(",", "").replace(" ", "")
    if not s or s.lower() in ("null", "none"):
        return default

    try:
        return int(float(s))  # Handle "123.0" style
    except ValueError:
        logger.warning(f"Could not parse int: {s}")
        return default


def parse_bool(s: Any, default: bool = False) -> bool:
    """
    Parse Tally boolean string.

    Tally uses various representations:
    - Yes/No
    - True/False
    - 1/0
    """
    if isinstance(s, bool):
        return s
    if s is None:
        return default

    s = node_text(s).strip().lower()
    if s in ("yes", "true", "1", "y"):
        return True
    elif s in ("no", "false", "0", "n", ""):
        return False

    return default
