"""Yadis 1.0 service discovery.

Discovery starts from an identifier (a URL or an XRI i-name) and locates
the XRDS document describing its services:

1. GET the identifier URL with "Accept: application/xrds+xml".
2. Classify the response. In order of precedence:
   - Content-Type application/xrds+xml: the body is the XRDS document
   - X-XRDS-Location or X-Yadis-Location header: fetch that URL instead
   - an HTML document with a <meta http-equiv="X-XRDS-Location"> element in
     its head: fetch the content URL instead
3. Only one redirection is allowed. The response to a followed location must
   be the XRDS document itself.

XRI identifiers skip this loop: the XRI proxy answers with the XRDS
document directly.
"""

from enum import IntEnum
import logging
from typing import List, Mapping, Optional

from aiohttp import ClientSession
from pydantic import BaseModel

from social.graze.yadis.config import Settings
from social.graze.yadis.document import Document, parse_html
from social.graze.yadis.errors import (
    InvalidInputError,
    InvalidStateError,
    ProtocolError,
    YadisError,
)
from social.graze.yadis.namespace import XrdsNamespace
from social.graze.yadis.service import Service
from social.graze.yadis.transport import XRDS_CONTENT_TYPE, HttpResponse, fetch
from social.graze.yadis.uri import validate_uri
from social.graze.yadis.xrds import Xrds
from social.graze.yadis.xri import XriResolver, is_xri, starts_with_xri_identifier

logger = logging.getLogger(__name__)


LOCATION_HEADERS = ("x-xrds-location", "x-yadis-location")

HTML_CONTENT_TYPES = (
    "text/html",
    "application/xhtml+xml",
    "application/xml",
    "text/xml",
)
"""Content types that may carry a <meta http-equiv> pointer, HTML first."""


class ResponseSignal(IntEnum):
    """How a discovery response points at the XRDS document."""

    none = 0
    meta_http_equiv = 2
    location_header = 4
    content_type = 8


class Classification(BaseModel):
    """A classified discovery response.

    location is set for the location_header and meta_http_equiv signals.
    """

    signal: ResponseSignal
    location: Optional[str] = None


def is_xrds_content_type(response: HttpResponse) -> bool:
    return XRDS_CONTENT_TYPE in response.content_type.lower()


def find_location_header(response: HttpResponse) -> Optional[str]:
    """Return the XRDS location advertised in the response headers.

    Raises:
        ProtocolError: If the advertised location is not a valid URI
    """
    location = None
    for name in LOCATION_HEADERS:
        location = response.header(name)
        if location:
            break
    if not location:
        return None
    location = location.strip()
    if not validate_uri(location):
        raise ProtocolError(
            f"Invalid URI found during Discovery for location of XRDS document: {location}"
        )
    return location


def _media_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


def find_meta_http_equiv(response: HttpResponse) -> Optional[str]:
    """Return the XRDS location from an HTML <meta http-equiv> element.

    Only <meta> elements inside <head> are considered; when several match,
    the last one wins.

    Raises:
        ProtocolError: If the content attribute is not a valid URI
    """
    if _media_type(response.content_type) not in HTML_CONTENT_TYPES:
        return None

    root = parse_html(response.body)
    if root is None:
        return None

    heads = root.findall(".//head")
    if not heads:
        return None

    location = None
    for meta in heads[0].iter("meta"):
        equiv = (meta.get("http-equiv") or "").strip().lower()
        if equiv in LOCATION_HEADERS:
            location = (meta.get("content") or "").strip()

    if location is None:
        return None
    if not validate_uri(location):
        raise ProtocolError(
            "The URI parsed from the HTML Alias document appears to be invalid, "
            f"or could not be found: {location}"
        )
    return location


def classify_response(response: HttpResponse) -> Classification:
    """Classify a discovery response by the first signal that matches.

    Raises:
        ProtocolError: If a location signal carries an invalid URI
    """
    if is_xrds_content_type(response):
        return Classification(signal=ResponseSignal.content_type)

    location = find_location_header(response)
    if location is not None:
        return Classification(signal=ResponseSignal.location_header, location=location)

    location = find_meta_http_equiv(response)
    if location is not None:
        return Classification(signal=ResponseSignal.meta_http_equiv, location=location)

    return Classification(signal=ResponseSignal.none)


class Yadis:
    """Service discovery for a single identifier.

    Example:
        yadis = Yadis("https://example.org/", {"openid": "http://openid.net/xmlns/1.0"})
        async with aiohttp.ClientSession() as session:
            for service in await yadis.discover(session):
                print(service.types, service.uris)
    """

    def __init__(
        self,
        identifier: Optional[str] = None,
        namespaces: Optional[Mapping[str, str]] = None,
        settings: Optional[Settings] = None,
        xri: Optional[XriResolver] = None,
    ) -> None:
        self.settings = settings if settings is not None else Settings()
        self.namespace = XrdsNamespace(namespaces)
        self.xri = xri if xri is not None else XriResolver(settings=self.settings)
        self._identifier: Optional[str] = None
        self._uri: Optional[str] = None
        self._http_response: Optional[HttpResponse] = None

        if identifier is not None:
            self.set_identifier(identifier)

    def set_identifier(self, identifier: str) -> "Yadis":
        """Set the identifier and derive the URI discovery starts from.

        Raises:
            InvalidInputError: If the identifier is neither a valid URI nor
                an XRI
        """
        if not identifier:
            raise InvalidInputError("An empty identifier cannot be discovered")

        if validate_uri(identifier):
            uri = identifier
        elif is_xri(identifier):
            uri = self.xri.set_namespace(self.namespace).to_uri(identifier)
        else:
            # IRIs would need Punycode normalization first, which is not done.
            raise InvalidInputError(
                "Unable to validate a Yadis ID as a URI, "
                "or to transform a Yadis ID into a valid URI."
            )

        self._identifier = identifier
        self._uri = uri
        return self

    @property
    def identifier(self) -> str:
        if self._identifier is None:
            raise InvalidStateError("No Yadis ID has been set on this object yet")
        return self._identifier

    @property
    def uri(self) -> str:
        if self._uri is None:
            raise InvalidStateError("No Yadis ID/URL has been set on this object yet")
        return self._uri

    @property
    def http_response(self) -> Optional[HttpResponse]:
        """The final response received during discovery."""
        return self._http_response

    def add_namespace(self, prefix: str, uri: str) -> "Yadis":
        self.namespace.add_namespace(prefix, uri)
        return self

    def add_namespaces(self, namespaces: Mapping[str, str]) -> "Yadis":
        self.namespace.add_namespaces(namespaces)
        return self

    def get_namespace(self, prefix: str) -> Optional[str]:
        return self.namespace.get_namespace(prefix)

    def get_namespaces(self):
        return self.namespace.get_namespaces()

    async def _get(self, session: ClientSession, url: str) -> HttpResponse:
        self._http_response = await fetch(
            session,
            url,
            headers=self.settings.request_headers(),
            timeout=self.settings.client_timeout(),
        )
        return self._http_response

    async def discover_xrds(self, session: ClientSession) -> Xrds:
        """Locate and validate the XRDS document for the identifier.

        Raises:
            InvalidStateError: If no identifier has been set
            ProtocolError: If no valid XRDS document could be located
        """
        identifier = self.identifier

        if starts_with_xri_identifier(identifier):
            self.xri.set_namespace(self.namespace)
            document = await self.xri.to_canonical_id(session, identifier)
            self._http_response = self.xri.http_response
            return Xrds(document, self.namespace)

        current_uri = self.uri
        redirected = False
        body: Optional[bytes] = None

        while body is None:
            response = await self._get(session, current_uri)
            classification = classify_response(response)
            logger.debug("Discovery response from %s: %s", current_uri, classification.signal.name)

            if redirected and classification.signal != ResponseSignal.content_type:
                raise ProtocolError("Yadis protocol could not locate a valid XRD document")

            if classification.signal in (
                ResponseSignal.location_header,
                ResponseSignal.meta_http_equiv,
            ):
                redirected = True
                current_uri = classification.location
            elif classification.signal == ResponseSignal.content_type:
                body = response.body
            else:
                raise ProtocolError("Yadis protocol could not locate a valid XRD document")

        try:
            return Xrds(Document.parse(body), self.namespace)
        except YadisError as e:
            raise ProtocolError(
                f"XRD Document could not be parsed with the following message: {e.message}",
                code=e.code,
            ) from e

    async def discover(self, session: ClientSession) -> List[Service]:
        """Perform discovery and return the services ordered by priority.

        Services sharing a priority are returned in random order.
        """
        xrds = await self.discover_xrds(session)
        services = xrds.services()
        logger.debug("Discovered %d services for %s", len(services), self._identifier)
        return services


async def discover(
    session: ClientSession,
    identifier: str,
    namespaces: Optional[Mapping[str, str]] = None,
    settings: Optional[Settings] = None,
) -> List[Service]:
    """Discover the services of an identifier.

    Args:
        session: HTTP client session
        identifier: URL or XRI to discover
        namespaces: Extra XPath prefixes, for example {"openid": "http://openid.net/xmlns/1.0"}
        settings: Discovery settings, loaded from the environment if omitted

    Returns:
        Services ordered by priority
    """
    return await Yadis(identifier, namespaces, settings).discover(session)
