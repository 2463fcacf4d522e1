"""
soapwire error types.
"""

from typing import Any, Optional


class SoapError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class EncodeError(SoapError):
    def __init__(self, message: str, code: str = "encode_error"):
        super().__init__(code, message)


class DecodeError(SoapError):
    def __init__(self, message: str, code: str = "decode_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class Fault(SoapError):
    """SOAP 1.1 Fault returned by the remote side.

    The HTTP exchange itself succeeded; only the application outcome failed.
    """

    def __init__(self, code: str = "", string: str = "", actor: str = "", detail: str = ""):
        super().__init__(
            code,
            f"Soap Fault: {code}: [{actor}] {string}",
            {"faultcode": code, "faultstring": string, "faultactor": actor, "detail": detail},
        )
        self.string = string
        self.actor = actor
        self.detail = detail

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fault):
            return NotImplemented
        return self.details == other.details

    __hash__ = Exception.__hash__
