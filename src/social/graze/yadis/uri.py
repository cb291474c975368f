"""URI validation for identifiers, proxies, and discovered XRDS locations.

Every externally supplied URI passes through validate_uri before discovery
trusts it. The check is stricter than RFC 3986: reserved characters that
appear unescaped in the query or fragment are rejected.
"""

from dataclasses import dataclass
import logging
import re
from typing import Callable, FrozenSet, Optional

from aiodns import DNSResolver
from aiodns.error import DNSError

logger = logging.getLogger(__name__)


URI_PATTERN = re.compile(
    r"""
    ^(?:([a-z][-+.a-z0-9]*):)?                                      # 1. scheme
    (?://                                                           # authority
      (?:((?:%[0-9a-f]{2}|[-a-z0-9_.!~*'();:&=+$,])*)@)?            # 2. userinfo
      (?:((?:[a-z0-9](?:[-a-z0-9]*[a-z0-9])?\.)*[a-z](?:[a-z0-9]+)?\.?)  # 3. hostname
      |([0-9]{1,3}(?:\.[0-9]{1,3}){3}))                             # 4. ipv4
      (?::([0-9]*))?)                                               # 5. port
    ((?:/(?:%[0-9a-f]{2}|[-a-z0-9_.!~*'():@&=+$,;])*)*/?)?          # 6. path
    (?:\?([^\#]*))?                                                 # 7. query
    (?:\#((?:%[0-9a-f]{2}|[-a-z0-9_.!~*'();/?:@&=+$,])*))?          # 8. fragment
    \Z
    """,
    re.IGNORECASE | re.VERBOSE,
)

STRICT_PATTERN = re.compile(r"[;/?:@$,]")
"""Reserved characters that may not appear unescaped in a query or fragment."""


@dataclass(frozen=True)
class UriValidationOptions:
    """Options for validate_uri.

    allowed_schemes restricts the scheme when set. domain_check requires the
    host to have an A record.
    """

    allowed_schemes: Optional[FrozenSet[str]] = None
    domain_check: bool = False


DEFAULT_OPTIONS = UriValidationOptions()


def _match_uri(uri: str, options: UriValidationOptions) -> Optional[re.Match]:
    """Apply every check that does not need the network.

    Returns the pattern match when the URI is acceptable, otherwise None.
    """
    if uri is None:
        return None

    match = URI_PATTERN.match(uri)
    if match is None:
        return None

    scheme = match.group(1) or ""
    if options.allowed_schemes is not None and scheme not in options.allowed_schemes:
        return None

    ipv4 = match.group(4)
    if ipv4:
        if any(int(octet) > 255 for octet in ipv4.split(".")):
            return None

    query = match.group(7)
    fragment = match.group(8)
    if query and STRICT_PATTERN.search(query):
        return None
    if fragment and STRICT_PATTERN.search(fragment):
        return None

    return match


def validate_uri(
    uri: str,
    options: Optional[UriValidationOptions] = None,
    has_address: Optional[Callable[[str], bool]] = None,
) -> bool:
    """Check that a string is an acceptable absolute URI.

    Never raises. When options.domain_check is set, the hostname is checked
    with has_address; without that callable the check is skipped. Use
    validate_uri_async to query DNS directly.

    Args:
        uri: The URI to validate
        options: Scheme restriction and domain check options
        has_address: Callable reporting whether a hostname has an A record

    Returns:
        True if the URI passes every check
    """
    options = options or DEFAULT_OPTIONS
    match = _match_uri(uri, options)
    if match is None:
        return False

    hostname = match.group(3)
    if options.domain_check and hostname and has_address is not None:
        return bool(has_address(hostname))

    return True


async def validate_uri_async(
    uri: str,
    options: Optional[UriValidationOptions] = None,
    resolver: Optional[DNSResolver] = None,
) -> bool:
    """Check a URI, querying DNS for an A record when domain_check is set.

    Args:
        uri: The URI to validate
        options: Scheme restriction and domain check options
        resolver: DNS resolver to use, a new one is created if omitted

    Returns:
        True if the URI passes every check
    """
    options = options or DEFAULT_OPTIONS
    match = _match_uri(uri, options)
    if match is None:
        return False

    hostname = match.group(3)
    if not options.domain_check or not hostname:
        return True

    if resolver is None:
        resolver = DNSResolver()
    try:
        results = await resolver.query(hostname.rstrip("."), "A")
    except DNSError:
        logger.debug("No A record for %s", hostname)
        return False
    return len(results or []) > 0
