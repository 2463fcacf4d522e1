"""
Envelope serialization and response decoding.

The response body is scanned with a small state machine fed by lxml
iterparse events, so a document/literal body holding more than one
element is rejected before any content is decoded.
"""

import copy
import enum
import io
import logging
from typing import Any, Optional, TypeVar

from lxml import etree
from pydantic_xml import BaseXmlModel

from soapwire.errors import DecodeError, EncodeError, Fault
from soapwire.models.envelope import (
    SOAP_ENV_NS,
    SOAP_ENV_PREFIX,
    ContentBody,
    EmptyBody,
    Envelope,
    FaultBody,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseXmlModel)

FAULT_TAG = f"{{{SOAP_ENV_NS}}}Fault"
MULTIPLE_ELEMENTS = "Found multiple elements inside SOAP body; not wrapped-document/literal WS-I compliant"

_FAULT_FIELDS = (("faultcode", "code"), ("faultstring", "string"), ("faultactor", "actor"), ("detail", "detail"))


# --- Serialization ---

def _to_element(value: Any) -> etree._Element:
    if isinstance(value, BaseXmlModel):
        try:
            return value.to_xml_tree()
        except Exception as e:
            raise EncodeError(f"Failed to encode {type(value).__name__}: {e}") from e
    if etree.iselement(value):
        return copy.deepcopy(value)
    raise EncodeError(f"Unsupported payload type {type(value).__name__}; expected a pydantic-xml model or lxml element")


def fault_to_element(fault: Fault, namespace: str = SOAP_ENV_NS) -> etree._Element:
    """Render a Fault; empty fields are omitted."""
    element = etree.Element(f"{{{namespace}}}Fault")
    for tag, attr in _FAULT_FIELDS:
        value = getattr(fault, attr)
        if value:
            etree.SubElement(element, tag).text = value
    return element


def serialize_envelope(envelope: Envelope[Any]) -> bytes:
    """Render an envelope to UTF-8 wire bytes."""
    ns = envelope.namespace
    try:
        root = etree.Element(f"{{{ns}}}Envelope", nsmap=dict(envelope.attributes))
    except (ValueError, TypeError) as e:
        raise EncodeError(f"Invalid envelope attributes: {e}") from e

    if envelope.header:
        header = etree.SubElement(root, f"{{{ns}}}Header")
        for item in envelope.header:
            header.append(_to_element(item))

    body = etree.SubElement(root, f"{{{ns}}}Body")
    if isinstance(envelope.body, FaultBody):
        body.append(fault_to_element(envelope.body.fault, ns))
    elif isinstance(envelope.body, ContentBody):
        body.append(_to_element(envelope.body.content))

    return etree.tostring(root, xml_declaration=True, encoding="utf-8")


def format_xml(data: bytes) -> str:
    """Pretty-print XML for debug output. Unparseable input is returned as text."""
    try:
        parser = etree.XMLParser(remove_blank_text=True, resolve_entities=False, no_network=True)
        return etree.tostring(etree.fromstring(data, parser), pretty_print=True, encoding="unicode")
    except (etree.XMLSyntaxError, ValueError):
        return data.decode("utf-8", errors="replace")


# --- Decoding ---

class BodyState(enum.Enum):
    SCANNING = "scanning"
    ONE_CONSUMED = "one_consumed"
    DONE = "done"


class BodyScanner:
    """State machine over the direct children of a SOAP Body."""

    def __init__(self) -> None:
        self.state = BodyState.SCANNING
        self.element: Optional[etree._Element] = None

    def child_start(self, element: etree._Element) -> None:
        if self.state is not BodyState.SCANNING:
            raise DecodeError(MULTIPLE_ELEMENTS)
        self.state = BodyState.ONE_CONSUMED

    def child_end(self, element: etree._Element) -> None:
        self.element = element

    def body_end(self) -> None:
        self.state = BodyState.DONE

    @property
    def is_fault(self) -> bool:
        return self.element is not None and self.element.tag == FAULT_TAG


def _local(element: etree._Element) -> str:
    return etree.QName(element).localname


def fault_from_element(element: etree._Element) -> Fault:
    fields = {attr: "" for _, attr in _FAULT_FIELDS}
    names = dict(_FAULT_FIELDS)
    for child in element:
        if not isinstance(child.tag, str):
            continue
        attr = names.get(_local(child))
        if attr:
            fields[attr] = "".join(child.itertext()).strip()
    return Fault(**fields)


def _scan(data: bytes) -> tuple[dict[str, str], Optional[list[etree._Element]], BodyScanner]:
    attributes: dict[str, str] = {}
    header: Optional[list[etree._Element]] = None
    scanner = BodyScanner()
    depth = 0
    in_body = False

    with io.BytesIO(data) as stream:
        events = etree.iterparse(stream, events=("start", "end"), resolve_entities=False, no_network=True)
        try:
            for event, element in events:
                if event == "start":
                    depth += 1
                    if depth == 1:
                        if _local(element) != "Envelope":
                            raise DecodeError(f"Expected element <Envelope>, got <{_local(element)}>")
                        attributes = {k: v for k, v in element.nsmap.items() if k}
                    elif depth == 2 and _local(element) == "Body":
                        in_body = True
                    elif depth == 3 and in_body:
                        scanner.child_start(element)
                    continue

                if depth == 3 and in_body:
                    scanner.child_end(element)
                elif depth == 2 and in_body:
                    scanner.body_end()
                    break
                elif depth == 2 and _local(element) == "Header":
                    header = list(element)
                depth -= 1
        except (etree.XMLSyntaxError, ValueError) as e:
            raise DecodeError(f"Malformed SOAP response: {e}") from e

    return attributes, header, scanner


def _check_content_type(content_type: Any) -> None:
    if not (isinstance(content_type, type) and issubclass(content_type, BaseXmlModel)):
        raise DecodeError(f"content_type must be a pydantic-xml model class, got {content_type!r}")


def decode_envelope(data: bytes, content_type: type[T]) -> Envelope[T]:
    """Decode a response into an Envelope whose body is a fault, content or empty."""
    _check_content_type(content_type)
    if not data or not data.strip():
        return Envelope()

    attributes, header, scanner = _scan(data)

    if scanner.element is None:
        body: Any = EmptyBody()
    elif scanner.is_fault:
        body = FaultBody(fault=fault_from_element(scanner.element))
    else:
        try:
            content = content_type.from_xml_tree(scanner.element)
        except Exception as e:
            raise DecodeError(f"Failed to decode {content_type.__name__}: {e}") from e
        body = ContentBody(content=content)

    return Envelope(attributes=attributes or {SOAP_ENV_PREFIX: SOAP_ENV_NS}, header=header, body=body)


def parse(data: bytes, content_type: type[T]) -> Optional[T]:
    """Decode a response body. Raises Fault when the body carries one.

    Returns None for an empty response or an empty Body element.
    """
    envelope = decode_envelope(data, content_type)
    if envelope.fault is not None:
        logger.info("SOAP fault received: %s", envelope.fault)
        raise envelope.fault
    return envelope.content
