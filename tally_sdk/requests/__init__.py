"""
XML request templates for the Tally API.

Templates are Jinja2 files that render XML requests for the Tally HTTP API.
All of them are rendered through one Environment that knows the Tally
filters:

- ``xml``: escape a value (None renders as an empty string)
- ``tally_date``: DD-Mon-YYYY
- ``amount``: plain number without trailing zeros
- ``yesno``: Yes/No
"""
from pathlib import Path
from typing import Any
from jinja2 import Environment, FileSystemLoader, StrictUndefined
from ..xml_utils import escape_xml, format_amount, format_date, yes_no

# Template directory
TEMPLATE_DIR = Path(__file__).parent

# Available templates
TEMPLATES = {
    "envelope": "envelope.xml.j2",
    "export": "export.xml.j2",
    "import": "import.xml.j2",
    "collection": "collection.xml.j2",
    "tdl_collection": "tdl_collection.xml.j2",
    "function": "function.xml.j2",
    "load_company": "load_company.xml.j2",
    "backup_company": "backup_company.xml.j2",
    "ledger": "ledger.xml.j2",
    "group": "group.xml.j2",
    "voucher": "voucher.xml.j2",
    "stock_item": "stock_item.xml.j2",
    "company": "company.xml.j2",
    "delete": "delete.xml.j2",
    "voucher_delete": "voucher_delete.xml.j2",
}


def _xml_filter(value: Any) -> Any:
    if value is None:
        return ""
    return escape_xml(value)


def _date_filter(value: Any) -> str:
    if value is None or value == "":
        return ""
    return format_date(value)


environment = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    undefined=StrictUndefined,
)
environment.filters["xml"] = _xml_filter
environment.filters["tally_date"] = _date_filter
environment.filters["amount"] = format_amount
environment.filters["yesno"] = yes_no


def get_template_path(name: str) -> Path:
    """Get path to a template file."""
    if name not in TEMPLATES:
        raise ValueError(f"Unknown template: {name}. Valid: {list(TEMPLATES.keys())}")
    return TEMPLATE_DIR / TEMPLATES[name]


def render(template: str, /, **context: Any) -> str:
    """Render a named template with the given context."""
    get_template_path(template)
    return environment.get_template(TEMPLATES[template]).render(**context)
