"""
Shared plumbing for the entity services.

Provides:
- TallyService: client/company wiring, export and import round trips
- failing_as: prefixes Tally's error text with the failing operation
- Date handling for report periods
"""
from __future__ import annotations
from contextlib import contextmanager
from datetime import date
from typing import Any, Callable, Generator, Mapping, Optional, TypeVar, Union
from pydantic import BaseModel, ValidationError
from ..builder import build_collection_request, build_export_request, build_import_request
from ..client import TallyClient
from ..errors import TallyResponseError, TallyValidationError
from ..models import ImportResult
from ..parsers.base import parse_import_result
from ..xml_utils import current_financial_year_start, parse_tally_date

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)
DateLike = Union[date, str, None]

# Earliest date used when scanning a master's whole history.
HISTORY_START = date(1990, 4, 1)


@contextmanager
def failing_as(operation: str) -> Generator:
    """
    Re-raise TallyResponseError as "Failed to <operation>: <tally text>".

    Transport and parse errors pass through untouched.
    """
    try:
        yield
    except TallyResponseError as e:
        if e.operation:
            raise
        raise e.for_operation(operation) from e


def as_date(value: DateLike, field: str = "date") -> Optional[date]:
    """Accept a date or any format parse_tally_date understands."""
    if value is None or value == "":
        return None
    parsed = parse_tally_date(value)
    if parsed is None:
        raise TallyValidationError(f"Invalid {field}: {value!r}")
    return parsed


def merge_model(model_cls: type[M], current: M, updates: Mapping[str, Any], label: str) -> M:
    """
    Overlay non-None ``updates`` on ``current``.

    Unknown field names and values of the wrong shape raise
    TallyValidationError.
    """
    unknown = set(updates) - set(model_cls.model_fields)
    if unknown:
        raise TallyValidationError(f"Unknown {label} field(s): {', '.join(sorted(unknown))}")
    data = current.model_dump()
    data.update({key: value for key, value in updates.items() if value is not None})
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise TallyValidationError(f"Invalid {label} update: {e}") from e


class TallyService:
    """
    Base class for entity services.

    ``company`` scopes import requests; it defaults to the client's
    configured company. None lets Tally use the active company.
    """

    def __init__(self, client: TallyClient, company: Optional[str] = None):
        self.client = client
        self.config = client.config
        self.company = company if company is not None else client.company

    def period(self, from_date: DateLike = None, to_date: DateLike = None) -> tuple[date, date]:
        """
        Resolve a report period.

        from_date falls back to the configured books-from date, then to the
        start of the current financial year; to_date falls back to today.
        """
        start = (
            as_date(from_date, "from_date")
            or self.config.books_from
            or current_financial_year_start()
        )
        end = as_date(to_date, "to_date") or date.today()
        return start, end

    def export(
        self,
        operation: str,
        report_name: str,
        filters: Mapping[str, Any],
        interpret: Callable[[dict], T],
    ) -> T:
        """Run a named-report export and interpret the response."""
        xml = build_export_request(report_name, filters)
        with failing_as(operation):
            return interpret(self.client.send_request(xml))

    def collection(
        self,
        operation: str,
        collection: str,
        filters: Mapping[str, Any],
        interpret: Callable[[dict], T],
    ) -> T:
        xml = build_collection_request(collection, filters)
        with failing_as(operation):
            return interpret(self.client.send_request(xml))

    def send(self, operation: str, xml: str, interpret: Callable[[dict], T]) -> T:
        """Send a prebuilt request (TDL collection, company commands)."""
        with failing_as(operation):
            return interpret(self.client.send_request(xml))

    def import_payload(
        self,
        operation: str,
        payload_xml: str,
        report_name: str = "All Masters",
    ) -> ImportResult:
        """Wrap a TALLYMESSAGE payload in an import envelope and send it."""
        xml = build_import_request(payload_xml, report_name=report_name, company=self.company)
        with failing_as(operation):
            return parse_import_result(self.client.send_request(xml))
