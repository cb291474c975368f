"""XRI to URI translation and Canonical ID resolution.

An XRI i-name (for example "=example" or "xri://@example*org") is not
directly fetchable. It is translated into an HTTP URI by appending it to an
XRI proxy resolver, which answers with an XRDS document carrying the
i-name's Canonical ID.
"""

import logging
from typing import Optional

from aiohttp import ClientSession

from social.graze.yadis.config import Settings
from social.graze.yadis.document import Document
from social.graze.yadis.errors import (
    InvalidConfigError,
    InvalidInputError,
    InvalidStateError,
    ProtocolError,
    ResolutionError,
)
from social.graze.yadis.namespace import XrdsNamespace
from social.graze.yadis.transport import XRDS_CONTENT_TYPE, HttpResponse, fetch
from social.graze.yadis.uri import validate_uri

logger = logging.getLogger(__name__)


XRI_IDENTIFIERS = ("=", "$", "!", "@", "+")
"""Characters that mark an identifier as an XRI when found at index 0."""

XRI_PREFIXES = ("xri://$dns*", "xri://$ip*", "xri://")
"""Prefix markers stripped before appending to the proxy, longest first."""


def starts_with_xri_identifier(value: str) -> bool:
    return bool(value) and value[0] in XRI_IDENTIFIERS


def is_xri(value: str) -> bool:
    """Check if value looks like an XRI.

    Returns:
        True if value has an xri:// prefix or starts with an XRI identifier
        character
    """
    if not value:
        return False
    return value.lower().startswith("xri://") or starts_with_xri_identifier(value)


def strip_xri_prefix(xri: str) -> str:
    """Remove exactly one leading XRI prefix marker."""
    lowered = xri.lower()
    for prefix in XRI_PREFIXES:
        if lowered.startswith(prefix.lower()):
            return xri[len(prefix):]
    return xri


class XriResolver:
    """Translates XRIs into proxy URIs and resolves their Canonical IDs.

    A resolver holds the state of the last translation: the XRI, the URI it
    was translated to, and the Canonical ID once resolved. Share one
    instance to share proxy configuration, but do not run concurrent
    resolutions through it.
    """

    def __init__(
        self,
        namespace: Optional[XrdsNamespace] = None,
        settings: Optional[Settings] = None,
        proxy: Optional[str] = None,
    ) -> None:
        self.settings = settings if settings is not None else Settings()
        self.namespace = namespace if namespace is not None else XrdsNamespace()
        self._proxy: str = self.settings.xri_proxy
        self._xri: Optional[str] = None
        self._uri: Optional[str] = None
        self._canonical_id: Optional[str] = None
        self._service_type: Optional[str] = None
        self._http_response: Optional[HttpResponse] = None

        if proxy is not None:
            self.set_proxy(proxy)

    def set_namespace(self, namespace: XrdsNamespace) -> "XriResolver":
        self.namespace = namespace
        return self

    def set_proxy(self, proxy: str) -> "XriResolver":
        if not validate_uri(proxy):
            raise InvalidConfigError(f"Invalid URI; unable to set as an XRI proxy: {proxy}")
        self._proxy = proxy
        return self

    @property
    def proxy(self) -> str:
        return self._proxy

    def set_xri(self, xri: str) -> "XriResolver":
        if not is_xri(xri):
            raise InvalidInputError(f"Invalid XRI string submitted: {xri}")
        if xri != self._xri:
            self._canonical_id = None
        self._xri = xri
        return self

    @property
    def xri(self) -> Optional[str]:
        return self._xri

    @property
    def uri(self) -> Optional[str]:
        return self._uri

    @property
    def service_type(self) -> Optional[str]:
        return self._service_type

    @property
    def http_response(self) -> Optional[HttpResponse]:
        """The most recent response received while resolving."""
        return self._http_response

    def to_uri(self, xri: Optional[str] = None, service_type: Optional[str] = None) -> str:
        """Translate an XRI into a URI on the configured proxy.

        Args:
            xri: XRI to translate, the stored XRI is used if omitted
            service_type: Service type to request when resolving the
                Canonical ID

        Returns:
            The proxy URI for the XRI

        Raises:
            InvalidInputError: If xri is not an XRI
            InvalidStateError: If no XRI was given or stored
            ResolutionError: If the translated URI is invalid
        """
        if service_type is not None:
            self._service_type = str(service_type)
        if xri is not None:
            self.set_xri(xri)
        if self._xri is None:
            raise InvalidStateError("No XRI has been set to translate into a URI")

        uri = self._proxy + strip_xri_prefix(self._xri)

        if not validate_uri(uri):
            raise ResolutionError(
                f"Unable to translate XRI to a valid URI using proxy: {self._proxy}"
            )

        logger.debug("Translated XRI %s to %s", self._xri, uri)
        self._uri = uri
        return uri

    def _query_params(self):
        if self._service_type:
            return {"_xrd_r": XRDS_CONTENT_TYPE, "_xrd_t": self._service_type}
        return {"_xrd_r": f"{XRDS_CONTENT_TYPE};sep=false"}

    async def to_canonical_id(
        self, session: ClientSession, xri: Optional[str] = None
    ) -> Document:
        """Fetch the XRDS document for an XRI and extract its Canonical ID.

        The last CanonicalID element wins; later elements in a resolution
        chain supersede earlier ones.

        Args:
            session: HTTP client session
            xri: XRI to resolve, the URI from a prior to_uri is used if omitted

        Returns:
            The parsed XRDS document with namespaces registered

        Raises:
            InvalidStateError: If neither xri nor a prior to_uri supplied a URI
            ProtocolError: If the request fails or the response is not XRDS
            ResolutionError: If no Canonical ID was found
        """
        if xri is None and self._uri is None:
            raise InvalidStateError(
                "No XRI passed as parameter as required unless called after to_uri"
            )
        uri = self.to_uri(xri) if xri is not None else self._uri

        self._http_response = await fetch(
            session,
            uri,
            headers=self.settings.request_headers(),
            params=self._query_params(),
            timeout=self.settings.client_timeout(),
        )

        if XRDS_CONTENT_TYPE not in self._http_response.content_type.lower():
            raise ProtocolError(
                "The response header indicates the response body is not an XRDS document"
            )

        document = Document.parse(self._http_response.body)
        self.namespace.register_onto(document)

        nodes = document.xpath("//xrd:CanonicalID")
        canonical_id = (nodes[-1].text or "").strip() if nodes else ""
        if not canonical_id:
            raise ResolutionError("Unable to determine canonicalID")

        logger.debug("Resolved XRI %s to Canonical ID %s", self._xri, canonical_id)
        self._canonical_id = canonical_id
        return document

    async def get_canonical_id(self, session: ClientSession) -> str:
        """Return the Canonical ID, resolving it from the stored XRI if needed.

        Raises:
            InvalidStateError: If no XRI has been set
        """
        if self._canonical_id is not None:
            return self._canonical_id
        if self._xri is None:
            raise InvalidStateError(
                "Unable to get a Canonical Id since no XRI value has been set"
            )

        await self.to_canonical_id(session, self._xri)
        return self._canonical_id
