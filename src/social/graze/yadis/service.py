"""Service entries parsed from an XRD element.

Each xrd:Service element describes one service endpoint: the types it
implements, the URIs it is reachable at, and its priority relative to the
other services of the same XRD.
"""

import re
from typing import List, Optional, TYPE_CHECKING

from lxml import etree
from pydantic import BaseModel, Field

from social.graze.yadis.priority import group_by_priority, sort_by_priority

if TYPE_CHECKING:
    from social.graze.yadis.document import Document


PRIORITY_PATTERN = re.compile(r"[0-9]+")


class Service(BaseModel):
    """A discovered service.

    A priority of None means the element carried no usable priority; such
    services sort after every numbered one. Lower numbers take precedence.
    """

    priority: Optional[int] = Field(default=None, ge=0)
    types: List[str] = Field(default_factory=list)
    uris: List[str] = Field(default_factory=list)
    local_ids: List[str] = Field(default_factory=list)

    def has_type(self, service_type: str) -> bool:
        return service_type in self.types


def parse_priority(value: Optional[str]) -> Optional[int]:
    """Parse an XRD priority attribute.

    Returns None for a missing or malformed value.
    """
    if value is None:
        return None
    value = value.strip()
    if PRIORITY_PATTERN.fullmatch(value) is None:
        return None
    return int(value)


def node_priority(node: etree._Element) -> Optional[int]:
    return parse_priority(node.get("priority"))


def _text(node: etree._Element) -> str:
    return (node.text or "").strip()


def parse_service(document: "Document", node: etree._Element) -> Service:
    """Build a Service from an xrd:Service element.

    URIs are ordered by their own priority attribute with the same rules
    as services.
    """
    types = [_text(t) for t in document.xpath("xrd:Type", node) if _text(t)]
    uri_nodes = [u for u in document.xpath("xrd:URI", node) if _text(u)]
    uris = [_text(u) for u in sort_by_priority(group_by_priority(uri_nodes, node_priority))]
    local_ids = [
        _text(n)
        for n in document.xpath("xrd:LocalID | *[local-name()='Delegate']", node)
        if _text(n)
    ]

    return Service(
        priority=node_priority(node),
        types=types,
        uris=uris,
        local_ids=local_ids,
    )
