"""XRDS namespace registry.

Providers are free to choose any prefix for the XRDS and XRD namespaces, so
XPath expressions are always written against our own prefixes and the
registry binds them onto each parsed document before it is queried.
"""

from typing import Dict, Mapping, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from social.graze.yadis.document import Document


XRDS_NAMESPACE = "xri://$xrds"
XRD_NAMESPACE = "xri://$xrd*($v*2.0)"


class XrdsNamespace:
    """Mutable mapping of XPath prefix to namespace URI.

    Always seeded with the xrds and xrd bindings. add_namespace and
    add_namespaces upsert, so an explicit xrds or xrd entry replaces the seed.
    """

    def __init__(self, namespaces: Optional[Mapping[str, str]] = None) -> None:
        self._namespaces: Dict[str, str] = {
            "xrds": XRDS_NAMESPACE,
            "xrd": XRD_NAMESPACE,
        }
        if namespaces:
            self.add_namespaces(namespaces)

    def add_namespace(self, prefix: str, uri: str) -> "XrdsNamespace":
        self._namespaces[prefix] = uri
        return self

    def add_namespaces(self, namespaces: Mapping[str, str]) -> "XrdsNamespace":
        for prefix, uri in namespaces.items():
            self.add_namespace(prefix, uri)
        return self

    def get_namespace(self, prefix: str) -> Optional[str]:
        """Return the URI bound to prefix, or None when it is not registered."""
        return self._namespaces.get(prefix)

    def get_namespaces(self) -> Dict[str, str]:
        return dict(self._namespaces)

    def register_onto(self, document: "Document") -> "Document":
        """Bind every registered prefix for XPath evaluation against document."""
        for prefix, uri in self._namespaces.items():
            document.register_namespace(prefix, uri)
        return document

    def __contains__(self, prefix: object) -> bool:
        return prefix in self._namespaces

    def __repr__(self) -> str:
        return f"XrdsNamespace({self._namespaces!r})"
