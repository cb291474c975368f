"""HTTP transport for Yadis discovery.

fetch is the single place where transport exceptions are caught; they are
re-raised as ProtocolError with the original message and code.
"""

import asyncio
from dataclasses import dataclass, field
import logging
from typing import Any, Dict, Mapping, Optional

from aiohttp import ClientError, ClientResponseError, ClientSession, ClientTimeout, hdrs
from multidict import CIMultiDict, CIMultiDictProxy

from social.graze.yadis.errors import ProtocolError

logger = logging.getLogger(__name__)

XRDS_CONTENT_TYPE = "application/xrds+xml"

DEFAULT_HEADERS = {"Accept": XRDS_CONTENT_TYPE}


@dataclass
class HttpResponse:
    """A fully read HTTP response."""

    url: str
    status: int
    headers: CIMultiDictProxy = field(default_factory=lambda: CIMultiDictProxy(CIMultiDict()))
    body: bytes = b""

    @property
    def content_type(self) -> str:
        return self.headers.get(hdrs.CONTENT_TYPE, "")

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name)


async def fetch(
    session: ClientSession,
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    params: Optional[Mapping[str, str]] = None,
    timeout: Optional[ClientTimeout] = None,
) -> HttpResponse:
    """Issue a GET and read the whole response.

    Args:
        session: HTTP client session
        url: Request URL
        headers: Extra request headers, merged over the XRDS Accept header
        params: Query parameters
        timeout: Request timeout, the session default is used if omitted

    Returns:
        HttpResponse with the body fully read

    Raises:
        ProtocolError: On any transport failure, including timeouts
    """
    request_headers: Dict[str, str] = dict(DEFAULT_HEADERS)
    if headers:
        request_headers.update(headers)

    kwargs: Dict[str, Any] = {"headers": request_headers}
    if params:
        kwargs["params"] = dict(params)
    if timeout is not None:
        kwargs["timeout"] = timeout

    logger.debug("GET %s", url)
    try:
        async with session.get(url, **kwargs) as resp:
            body = await resp.read()
            return HttpResponse(
                url=url,
                status=resp.status,
                headers=CIMultiDictProxy(CIMultiDict(resp.headers or {})),
                body=body or b"",
            )
    except ClientResponseError as e:
        raise ProtocolError(
            f"Invalid response to Yadis protocol received: {e.message}", code=e.status
        ) from e
    except asyncio.TimeoutError as e:
        raise ProtocolError(
            f"Invalid response to Yadis protocol received: timed out requesting {url}"
        ) from e
    except ClientError as e:
        raise ProtocolError(f"Invalid response to Yadis protocol received: {e}") from e
