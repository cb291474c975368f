"""
Yadis Service Discovery

This package implements Yadis 1.0 service discovery: resolving an identifier
(a URL or an XRI i-name) into the ordered list of services published in its
XRDS document.

Key Components:
- discovery.py: Discovery engine and response classification
- xri.py: XRI to URI translation and Canonical ID resolution
- xrds.py: XRDS document validation and service extraction
- service.py: Service model parsed from xrd:Service elements
- priority.py: Priority ordering with random tie-breaks
- namespace.py: XPath namespace registry
- uri.py: URI validation
- __main__.py: CLI interface for discovery

The discovery flow follows these steps:
1. Validate the identifier as a URI, or translate an XRI through a proxy
2. Request the URI asking for application/xrds+xml
3. Follow at most one X-XRDS-Location header or <meta http-equiv> pointer
4. Validate the XRDS document and order its services by priority
"""

from social.graze.yadis.discovery import Yadis, discover
from social.graze.yadis.errors import (
    InvalidConfigError,
    InvalidDocumentError,
    InvalidInputError,
    InvalidStateError,
    ProtocolError,
    ResolutionError,
    YadisError,
)
from social.graze.yadis.namespace import XrdsNamespace
from social.graze.yadis.service import Service
from social.graze.yadis.uri import UriValidationOptions, validate_uri
from social.graze.yadis.xri import XriResolver

__all__ = [
    "InvalidConfigError",
    "InvalidDocumentError",
    "InvalidInputError",
    "InvalidStateError",
    "ProtocolError",
    "ResolutionError",
    "Service",
    "UriValidationOptions",
    "XriResolver",
    "XrdsNamespace",
    "Yadis",
    "YadisError",
    "discover",
    "validate_uri",
]
