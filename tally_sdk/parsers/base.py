"""
Base utilities for reading Tally XML responses.

Provides:
- XML sanitization
- parse_xml: lxml-backed conversion of a response into a plain tree
- Envelope unwrapping and payload location
- Error detection (ERROR / LINEERROR / STATUS)
- extract: typed record extraction with defaults

Tree shape produced by parse_xml:
- attributes are merged into their element as same-named keys
- an element with neither attributes nor children becomes its text
- a child that occurs once is a single value, repeated siblings a list
- text mixed with children or attributes is kept under "_"
"""
from __future__ import annotations
import re
from typing import Any, Optional, Type, TypeVar, Union
from lxml import etree
from loguru import logger
from ..errors import TallyParseError, TallyResponseError
from ..models import ImportResult, TallyRecord
from ..xml_utils import node_text, parse_bool, parse_float, parse_int, parse_tally_date

__all__ = [
    "sanitize_xml",
    "parse_xml",
    "ensure_list",
    "unwrap_body",
    "find_error",
    "raise_for_error",
    "payload_nodes",
    "extract",
    "load_tree",
    "parse_import_result",
    "parse_tally_date",
    "parse_float",
    "parse_int",
    "parse_bool",
    "node_text",
]

R = TypeVar("R", bound=TallyRecord)
Tree = dict
Source = Union[str, bytes, dict]

ERROR_TAGS = ("LINEERROR", "ERROR", "ERRORMSG")

# Containers that hold the payload of an export response, most specific first.
PAYLOAD_PATHS = (
    ("EXPORTDATA", "REQUESTDATA", "TALLYMESSAGE"),
    ("IMPORTDATA", "REQUESTDATA", "TALLYMESSAGE"),
    ("DATA", "TALLYMESSAGE"),
    ("DATA", "COLLECTION"),
    ("DESC",),
    ("COLLECTION",),
    ("TALLYMESSAGE",),
)


def sanitize_xml(xml_text: str) -> str:
    """
    Remove invalid XML characters and fix common issues.

    Tally sometimes produces XML with control characters or invalid sequences.
    This function cleans those up for safe parsing.
    """
    if not xml_text:
        return xml_text

    # Remove null bytes
    xml_text = xml_text.replace("\x00", "")

    # Remove numeric character references for control chars (except tab, newline, CR)
    # Tally outputs &#4; and similar invalid references
    xml_text = re.sub(r'&#([0-8]|1[1-2]|1[4-9]|2[0-9]|3[01]);', '', xml_text)
    xml_text = re.sub(r'&#x([0-8bBcCeEfF]|1[0-9a-fA-F]);', '', xml_text)

    # Remove raw control characters (XML 1.0 allows only tab, newline, CR below 0x20)
    xml_text = re.sub(r'[\x01-\x08\x0B\x0C\x0E-\x1F]', '', xml_text)

    # Replace unescaped ampersands (but not valid entities)
    xml_text = re.sub(r"&(?!(amp|lt|gt|apos|quot|#\d+|#x[\da-fA-F]+);)", "&amp;", xml_text)

    return xml_text


def _local_name(tag: str) -> str:
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _element_to_node(element: etree._Element) -> Any:
    children = [child for child in element if isinstance(child.tag, str)]
    attributes = {_local_name(k): v for k, v in element.attrib.items()}

    if not children and not attributes:
        return element.text or ""

    node: dict[str, Any] = dict(attributes)
    repeated: set[str] = set()
    text_parts = [element.text or ""]

    for child in children:
        key = _local_name(child.tag)
        value = _element_to_node(child)
        if key in repeated:
            node[key].append(value)
        elif key in node:
            node[key] = [node[key], value]
            repeated.add(key)
        else:
            node[key] = value
        text_parts.append(child.tail or "")

    text = "".join(text_parts).strip()
    if text:
        node["_"] = text
    return node


def parse_xml(xml_text: Union[str, bytes]) -> Tree:
    """
    Parse a Tally response into a plain tree: {ROOTTAG: node}.

    Raises TallyParseError when the response is not XML.
    """
    if isinstance(xml_text, bytes):
        xml_text = xml_text.decode("utf-8", errors="replace")
    if not xml_text or not xml_text.strip():
        raise TallyParseError("XML parsing error: empty response")

    data = sanitize_xml(xml_text).strip().encode("utf-8")
    try:
        root = etree.fromstring(data)
    except etree.XMLSyntaxError as e:
        # Tally emits UDF: prefixed tags without declaring the namespace.
        if "Namespace prefix" not in str(e):
            raise TallyParseError(f"XML parsing error: {e}") from e
        logger.debug(f"Retrying parse in recover mode: {e}")
        root = etree.fromstring(data, parser=etree.XMLParser(recover=True))
        if root is None:
            raise TallyParseError(f"XML parsing error: {e}") from e

    return {_local_name(root.tag): _element_to_node(root)}


def load_tree(source: Source) -> Tree:
    """Accept raw XML or an already-parsed tree."""
    if isinstance(source, (str, bytes)):
        return parse_xml(source)
    if isinstance(source, dict):
        return source
    raise TypeError(f"Expected XML text or parsed tree, got {type(source).__name__}")


def ensure_list(node: Any) -> list:
    """Wrap a lone node in a list; None becomes an empty list."""
    if node is None:
        return []
    if isinstance(node, list):
        return node
    return [node]


def _envelope(tree: Tree) -> dict:
    node = tree.get("ENVELOPE", tree) if isinstance(tree, dict) else {}
    return node if isinstance(node, dict) else {}


def unwrap_body(tree: Tree) -> dict:
    """Descend through ENVELOPE and BODY; either level may be missing."""
    envelope = _envelope(tree)
    body = envelope.get("BODY", envelope)
    return body if isinstance(body, dict) else {}


def _descend(node: Any, path: tuple[str, ...]) -> Any:
    for key in path:
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def find_error(tree: Tree) -> Optional[str]:
    """Return Tally's error text if the response carries one."""
    envelope = _envelope(tree)
    body = unwrap_body(tree)
    candidates = [
        body,
        _descend(body, ("DATA",)),
        _descend(body, ("DATA", "IMPORTRESULT")),
        _descend(body, ("IMPORTDATA",)),
        envelope.get("RESPONSE"),
        tree.get("RESPONSE") if isinstance(tree, dict) else None,
    ]
    for node in candidates:
        if not isinstance(node, dict):
            continue
        for tag in ERROR_TAGS:
            if tag in node:
                message = node_text(node[tag]).strip()
                if message:
                    return message

    status = node_text(_descend(envelope, ("HEADER", "STATUS"))).strip()
    if status and status != "1":
        return f"Tally returned STATUS={status}"
    return None


def raise_for_error(tree: Tree) -> Tree:
    """Raise TallyResponseError carrying Tally's text; return the tree otherwise."""
    message = find_error(tree)
    if message:
        raise TallyResponseError(message)
    return tree


def payload_nodes(tree: Tree, tag: Optional[str] = None) -> list[dict]:
    """
    Locate the payload records of an export response.

    Looks through the known containers (EXPORTDATA/REQUESTDATA/TALLYMESSAGE,
    DATA/COLLECTION, ...). When ``tag`` is given and some container holds
    that tag, only the tagged children are returned and other messages (such
    as a trailing COMPANY) are skipped. When no container holds it, each
    container is itself a record. The result is always a list.
    """
    body = unwrap_body(tree)
    for path in PAYLOAD_PATHS:
        containers = [n for n in ensure_list(_descend(body, path)) if isinstance(n, dict)]
        if not containers:
            continue
        if tag and any(tag in container for container in containers):
            return [
                node
                for container in containers
                for node in ensure_list(container.get(tag))
                if isinstance(node, dict)
            ]
        return containers
    return []


def extract(record_cls: Type[R], node: Any) -> R:
    """Map one tree node onto a typed record; missing tags take defaults."""
    return record_cls.model_validate(node if isinstance(node, dict) else {})


def parse_import_result(source: Source) -> ImportResult:
    """
    Read the CREATED/ALTERED/... counters of an import response.

    Raises TallyResponseError on a LINEERROR, or when Tally counts errors
    without explaining them.
    """
    tree = raise_for_error(load_tree(source))
    body = unwrap_body(tree)
    node = (
        _descend(body, ("DATA", "IMPORTRESULT"))
        or _descend(body, ("IMPORTRESULT",))
        or tree.get("RESPONSE")
        or _envelope(tree).get("RESPONSE")
        or body
    )
    result = extract(ImportResult, node)
    if result.errors > 0:
        raise TallyResponseError(f"Tally reported {result.errors} import error(s)")
    logger.debug(
        f"Import result: created={result.created} altered={result.altered} "
        f"deleted={result.deleted} ignored={result.ignored}"
    )
    return result
