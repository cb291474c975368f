"""XRDS service directory validation and extraction.

An Xrds instance only exists for a document that passed validation: the
root must be xrds:XRDS, the XRD namespace must be the XRD 2.0 URI, and at
least one xrd:XRD element must be present.
"""

import logging
from typing import Dict, List, Mapping, Optional

from lxml import etree

from social.graze.yadis.document import Document
from social.graze.yadis.errors import InvalidDocumentError
from social.graze.yadis.namespace import XRD_NAMESPACE, XrdsNamespace
from social.graze.yadis.priority import group_by_priority, sort_by_priority
from social.graze.yadis.service import Service, node_priority, parse_service

logger = logging.getLogger(__name__)


def _local_name(node: etree._Element) -> str:
    return etree.QName(node).localname


def _child_declares_xrd_namespace(root: etree._Element) -> bool:
    # Some parsers only report a default namespace on the XRD element that
    # declares it, never on the document root.
    for child in root:
        if not isinstance(child.tag, str) or _local_name(child) != "XRD":
            continue
        if child.nsmap.get(None) == XRD_NAMESPACE:
            return True
    return False


def find_xrd_nodes(document: Document, namespace: XrdsNamespace) -> List[etree._Element]:
    """Validate an XRDS document and return its XRD elements.

    Raises:
        InvalidDocumentError: If the document fails namespace or structure
            validation
    """
    namespace.register_onto(document)

    root = document.xpath("/xrds:XRDS[1]")
    if not root:
        raise InvalidDocumentError("The XRD document was found to be invalid: no XRDS root")

    declared = document.declared_namespaces()

    if "xrd" in declared and declared["xrd"] != XRD_NAMESPACE:
        raise InvalidDocumentError(
            f"The XRD document was found to be invalid: unexpected xrd namespace {declared['xrd']}"
        )

    if "" in declared and declared[""] != XRD_NAMESPACE:
        if not _child_declares_xrd_namespace(root[0]):
            raise InvalidDocumentError(
                f"The XRD document was found to be invalid: unexpected default namespace {declared['']}"
            )
        logger.debug("Accepted XRD namespace declared on a child XRD element")

    nodes = document.xpath("/xrds:XRDS[1]/xrd:XRD")
    if not nodes:
        raise InvalidDocumentError("The XRD document was found to be invalid: no XRD elements")

    return nodes


class Xrds:
    """A validated XRDS service directory."""

    def __init__(self, document: Document, namespace: Optional[XrdsNamespace] = None) -> None:
        self.namespace = namespace if namespace is not None else XrdsNamespace()
        self.xrd_nodes = find_xrd_nodes(document, self.namespace)
        self.document = document

    @classmethod
    def from_bytes(cls, body: bytes, namespace: Optional[XrdsNamespace] = None) -> "Xrds":
        return cls(Document.parse(body), namespace)

    def services(self) -> List[Service]:
        """Return the services of the final XRD ordered by priority.

        Only the last XRD element describes the identifier; earlier ones are
        steps of the resolution chain that produced it.
        """
        xrd = self.xrd_nodes[-1]
        nodes = self.document.xpath("xrd:Service", xrd)
        ordered = sort_by_priority(group_by_priority(nodes, node_priority))
        return [parse_service(self.document, node) for node in ordered]

    def canonical_id(self) -> Optional[str]:
        nodes = self.document.xpath("//xrd:CanonicalID")
        if not nodes:
            return None
        return (nodes[-1].text or "").strip() or None

    def add_namespace(self, prefix: str, uri: str) -> "Xrds":
        self.namespace.add_namespace(prefix, uri)
        self.namespace.register_onto(self.document)
        return self

    def add_namespaces(self, namespaces: Mapping[str, str]) -> "Xrds":
        self.namespace.add_namespaces(namespaces)
        self.namespace.register_onto(self.document)
        return self

    def get_namespace(self, prefix: str) -> Optional[str]:
        return self.namespace.get_namespace(prefix)

    def get_namespaces(self) -> Dict[str, str]:
        return self.namespace.get_namespaces()

    def __len__(self) -> int:
        return len(self.xrd_nodes)
