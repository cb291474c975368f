"""XML and HTML document wrappers backed by lxml.

Document keeps its own prefix bindings for XPath evaluation, independent of
whatever prefixes the source document declares.
"""

from typing import Any, Dict, List, Optional

from lxml import etree
from lxml import html as lxml_html

from social.graze.yadis.errors import InvalidDocumentError


def _xml_parser() -> etree.XMLParser:
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
    )


class Document:
    """A parsed XML document with caller-controlled XPath prefixes."""

    def __init__(self, root: etree._Element) -> None:
        self.root = root
        self._namespaces: Dict[str, str] = {}

    @classmethod
    def parse(cls, body: bytes) -> "Document":
        """Parse an XML body.

        Raises:
            InvalidDocumentError: If the body is not well-formed XML
        """
        if isinstance(body, str):
            body = body.encode("utf-8")
        if not body or not body.strip():
            raise InvalidDocumentError("XRDS document is empty")
        try:
            root = etree.fromstring(body, parser=_xml_parser())
        except etree.XMLSyntaxError as e:
            raise InvalidDocumentError(str(e), code=e.code) from e
        if root is None:
            raise InvalidDocumentError("XRDS document has no root element")
        return cls(root)

    def register_namespace(self, prefix: str, uri: str) -> None:
        self._namespaces[prefix] = uri

    @property
    def namespaces(self) -> Dict[str, str]:
        """Prefixes currently bound for XPath evaluation."""
        return dict(self._namespaces)

    def xpath(self, expression: str, node: Optional[etree._Element] = None) -> List[Any]:
        """Evaluate expression against the document, or relative to node."""
        context = self.root.getroottree() if node is None else node
        result = context.xpath(expression, namespaces=self._namespaces)
        if isinstance(result, list):
            return result
        return [result]

    def declared_namespaces(self) -> Dict[str, str]:
        """Namespaces declared on the root element.

        The default namespace is reported under the empty string.
        """
        return {
            ("" if prefix is None else prefix): uri
            for prefix, uri in self.root.nsmap.items()
        }


def parse_html(body: bytes) -> Optional[etree._Element]:
    """Parse an HTML body leniently.

    Returns the root element, or None when nothing parseable was found.
    """
    if not body or not body.strip():
        return None
    try:
        return lxml_html.document_fromstring(body)
    except (etree.ParserError, ValueError):
        return None
