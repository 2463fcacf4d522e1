"""Response decoding: fault priority, single-element body, empty input."""

import pytest
from lxml import etree

from soapwire import (
    DecodeError,
    EmptyBody,
    Fault,
    FaultBody,
    decode_envelope,
    new_request,
    parse,
    serialize_envelope,
)
from soapwire.models.envelope import Envelope
from soapwire.transport.envelope import BodyScanner, BodyState, format_xml
from payloads import AuthHeader, GetPrice, GetPriceResponse, TraceHeader

ENV_OPEN = '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/">'
ENV_CLOSE = "</soapenv:Envelope>"


def envelope(body: str, header: str = "") -> bytes:
    return f"{ENV_OPEN}{header}<soapenv:Body>{body}</soapenv:Body>{ENV_CLOSE}".encode()


FAULT = (
    "<soapenv:Fault>"
    "<faultcode>Server.Error</faultcode>"
    "<faultstring>boom</faultstring>"
    "<faultactor>svc</faultactor>"
    "</soapenv:Fault>"
)
PRICE = "<GetPriceResponse><Price>1.5</Price></GetPriceResponse>"


class TestParse:
    def test_content(self):
        assert parse(envelope(PRICE), GetPriceResponse) == GetPriceResponse(price=1.5)

    def test_round_trip(self):
        request = new_request(
            "/stock", GetPrice(item="apple"), header=[AuthHeader(token="t"), TraceHeader(trace_id="42")],
        )
        data = serialize_envelope(request)
        assert parse(data, GetPrice) == GetPrice(item="apple")

        decoded = decode_envelope(data, GetPrice)
        assert [h.tag for h in decoded.header] == ["Auth", "Trace"]
        assert AuthHeader.from_xml_tree(decoded.header[0]) == AuthHeader(token="t")

    def test_fault_raised(self):
        with pytest.raises(Fault) as exc_info:
            parse(envelope(FAULT), GetPriceResponse)
        fault = exc_info.value
        assert str(fault) == "Soap Fault: Server.Error: [svc] boom"
        assert fault.code == "Server.Error"
        assert fault.actor == "svc"
        assert fault.string == "boom"
        assert fault.detail == ""

    def test_fault_does_not_resolve_content(self):
        env = decode_envelope(envelope(FAULT), GetPriceResponse)
        assert isinstance(env.body, FaultBody)
        assert env.content is None
        assert env.fault == Fault("Server.Error", "boom", "svc")

    def test_fault_detail_text(self):
        fault_xml = (
            "<soapenv:Fault><faultcode>Client</faultcode>"
            "<detail><reason>missing item</reason></detail></soapenv:Fault>"
        )
        with pytest.raises(Fault) as exc_info:
            parse(envelope(fault_xml), GetPriceResponse)
        assert exc_info.value.detail == "missing item"
        assert str(exc_info.value) == "Soap Fault: Client: [] "

    def test_fault_round_trip(self):
        data = serialize_envelope(Envelope(body=FaultBody(fault=Fault("Server", "down", "db", "retry later"))))
        with pytest.raises(Fault) as exc_info:
            parse(data, GetPriceResponse)
        assert exc_info.value == Fault("Server", "down", "db", "retry later")

    def test_fault_in_other_namespace_is_content(self):
        body = '<x:Fault xmlns:x="urn:other"><faultcode>X</faultcode></x:Fault>'
        with pytest.raises(DecodeError):
            # not a SOAP fault, so it is decoded as content and fails validation
            parse(envelope(body), GetPriceResponse)

    def test_multiple_elements_rejected(self):
        with pytest.raises(DecodeError, match="multiple elements"):
            parse(envelope(PRICE + PRICE), GetPriceResponse)

    def test_content_then_fault_rejected(self):
        with pytest.raises(DecodeError, match="multiple elements"):
            parse(envelope(PRICE + FAULT), GetPriceResponse)

    def test_fault_then_content_rejected(self):
        with pytest.raises(DecodeError, match="multiple elements"):
            parse(envelope(FAULT + PRICE), GetPriceResponse)

    def test_empty_input(self):
        assert parse(b"", GetPriceResponse) is None
        assert parse(b"  \n", GetPriceResponse) is None

    def test_empty_body_element(self):
        assert parse(envelope(""), GetPriceResponse) is None
        assert isinstance(decode_envelope(envelope(""), GetPriceResponse).body, EmptyBody)

    def test_missing_body(self):
        assert parse(f"{ENV_OPEN}{ENV_CLOSE}".encode(), GetPriceResponse) is None

    def test_non_element_tokens_ignored(self):
        body = f"\n  <!-- price follows -->\n  {PRICE}\n  <?pi data?>\n"
        assert parse(envelope(body), GetPriceResponse) == GetPriceResponse(price=1.5)

    def test_scanning_stops_after_body(self):
        data = f"{ENV_OPEN}<soapenv:Body>{PRICE}</soapenv:Body><Trailer/>{ENV_CLOSE}".encode()
        assert parse(data, GetPriceResponse) == GetPriceResponse(price=1.5)

    def test_header_kept_opaque(self):
        header = "<soapenv:Header><a:Session xmlns:a='urn:a'><Anything/></a:Session></soapenv:Header>"
        env = decode_envelope(envelope(PRICE, header), GetPriceResponse)
        assert len(env.header) == 1
        assert env.header[0].tag == "{urn:a}Session"
        assert env.content == GetPriceResponse(price=1.5)

    def test_root_namespaces_exposed(self):
        env = decode_envelope(envelope(PRICE), GetPriceResponse)
        assert env.attributes == {"soapenv": "http://schemas.xmlsoap.org/soap/envelope/"}
        assert env.header is None

    def test_malformed_xml(self):
        with pytest.raises(DecodeError, match="Malformed"):
            parse(b"<soapenv:Envelope", GetPriceResponse)

    @pytest.mark.parametrize("data", [
        b"<soapenv:Envelope><soapenv:Body/></soapenv:Envelope>",
        b"<soapenv:Envelope><soapenv:Body><GetPriceResponse/></soapenv:Body></soapenv:Envelope>",
    ])
    def test_undeclared_prefix(self, data):
        with pytest.raises(DecodeError, match="Malformed"):
            parse(data, GetPriceResponse)

    def test_format_xml_keeps_unparseable_text(self):
        assert format_xml(b"<soapenv:Envelope><soapenv:Body/></soapenv:Envelope>") == (
            "<soapenv:Envelope><soapenv:Body/></soapenv:Envelope>"
        )

    def test_wrong_root(self):
        with pytest.raises(DecodeError, match="Envelope"):
            parse(b"<html><body>Service Unavailable</body></html>", GetPriceResponse)

    def test_invalid_content(self):
        with pytest.raises(DecodeError):
            parse(envelope("<GetPriceResponse><Price>cheap</Price></GetPriceResponse>"), GetPriceResponse)

    @pytest.mark.parametrize("content_type", [None, dict, GetPriceResponse(price=1.0)])
    def test_content_type_required(self, content_type):
        with pytest.raises(DecodeError, match="content_type"):
            parse(b"", content_type)


class TestBodyScanner:
    def test_transitions(self):
        scanner = BodyScanner()
        assert scanner.state is BodyState.SCANNING
        scanner.child_start(etree.Element("GetPriceResponse"))
        assert scanner.state is BodyState.ONE_CONSUMED
        scanner.child_end(etree.Element("GetPriceResponse"))
        scanner.body_end()
        assert scanner.state is BodyState.DONE
        assert scanner.element.tag == "GetPriceResponse"
        assert not scanner.is_fault

    def test_fault_child(self):
        scanner = BodyScanner()
        fault = etree.Element("{http://schemas.xmlsoap.org/soap/envelope/}Fault")
        scanner.child_start(fault)
        scanner.child_end(fault)
        assert scanner.is_fault

    def test_second_child_fails(self):
        scanner = BodyScanner()
        scanner.child_start(etree.Element("GetPriceResponse"))
        scanner.child_end(etree.Element("GetPriceResponse"))
        with pytest.raises(DecodeError):
            scanner.child_start(etree.Element("GetPriceResponse"))
