"""Yadis discovery error taxonomy.

Every failure raised by discovery, XRI resolution, or XRDS validation is a
subclass of YadisError. Transport failures are wrapped exactly once, at the
point of the HTTP call, and keep the original message and code.
"""

from typing import Optional, Union


class YadisError(Exception):
    """Base exception for all Yadis discovery errors.

    Attributes:
        message: Human-readable error message
        code: Optional code carried over from a wrapped error (HTTP status,
            parser error code)
    """

    def __init__(self, message: str, code: Optional[Union[int, str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class InvalidInputError(YadisError):
    """Raised for a malformed identifier or URI supplied by the caller."""


class InvalidConfigError(YadisError):
    """Raised for bad configuration, such as an invalid XRI proxy."""


class InvalidDocumentError(YadisError):
    """Raised when an XRDS document fails namespace or structure validation."""


class ProtocolError(YadisError):
    """Raised when the discovery protocol cannot locate a valid XRDS document.

    Covers transport failures, responses with no discovery signal, a second
    indirection, invalid location URIs, and non-XRDS canonical ID responses.
    """


class ResolutionError(YadisError):
    """Raised when an XRI cannot be translated to a URI or Canonical ID."""


class InvalidStateError(YadisError):
    """Raised when an operation is invoked before its required setup."""
