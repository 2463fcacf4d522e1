"""
soapwire — SOAP 1.1 envelope model and client for Python.

Builds document/literal request envelopes, sends them over httpx and
decodes replies into pydantic-xml models or raises SOAP faults.
"""

from soapwire.client import SoapClient, AsyncSoapClient
from soapwire.errors import SoapError, EncodeError, DecodeError, Fault
from soapwire.models.envelope import (
    SOAP_ENV_NS,
    ContentBody,
    EmptyBody,
    Envelope,
    FaultBody,
    new_request,
)
from soapwire.models.options import ClientOptions, RequestOptions
from soapwire.transport.envelope import decode_envelope, parse, serialize_envelope

__version__ = "0.1.0"
__all__ = [
    "SoapClient",
    "AsyncSoapClient",
    "SoapError",
    "EncodeError",
    "DecodeError",
    "Fault",
    "SOAP_ENV_NS",
    "Envelope",
    "FaultBody",
    "ContentBody",
    "EmptyBody",
    "new_request",
    "ClientOptions",
    "RequestOptions",
    "decode_envelope",
    "parse",
    "serialize_envelope",
]
