"""
Shared test configuration and fixtures for Yadis discovery tests.

Provides XRDS and HTML documents plus helpers that build mocked aiohttp
sessions returning canned responses.
"""

from typing import Dict, Optional
from unittest.mock import AsyncMock

import pytest
from aiohttp import ClientResponse, ClientSession
from multidict import CIMultiDict, CIMultiDictProxy

from social.graze.yadis.config import Settings


XRDS_BODY = b"""<?xml version="1.0" encoding="UTF-8"?>
<xrds:XRDS xmlns:xrds="xri://$xrds" xmlns="xri://$xrd*($v*2.0)"
    xmlns:openid="http://openid.net/xmlns/1.0">
  <XRD>
    <Service priority="10">
      <Type>http://openid.net/signon/1.0</Type>
      <URI>http://www.myopenid.com/server</URI>
      <openid:Delegate>http://smoker.myopenid.com/</openid:Delegate>
    </Service>
    <Service priority="0">
      <Type>http://specs.openid.net/auth/2.0/server</Type>
      <URI priority="20">http://backup.example.com/server</URI>
      <URI priority="10">http://www.myopenid.com/server</URI>
    </Service>
  </XRD>
</xrds:XRDS>
"""

CANONICAL_XRDS_BODY = b"""<?xml version="1.0" encoding="UTF-8"?>
<xrds:XRDS xmlns:xrds="xri://$xrds" xmlns="xri://$xrd*($v*2.0)">
  <XRD>
    <Query>*example</Query>
    <CanonicalID>=!1000</CanonicalID>
  </XRD>
  <XRD>
    <Query>*user</Query>
    <CanonicalID>=!1000.A</CanonicalID>
    <Service priority="0">
      <Type>http://openid.net/signon/1.0</Type>
      <URI>https://example.net/openid</URI>
      <LocalID>=!1000.A</LocalID>
    </Service>
  </XRD>
</xrds:XRDS>
"""

HTML_META_BODY = b"""<!DOCTYPE html>
<html>
  <head>
    <title>Example</title>
    <meta http-equiv="X-XRDS-Location" content="https://example.org/xrds">
  </head>
  <body><p>Hello</p></body>
</html>
"""

XRDS_URL = "https://example.org/xrds"


def make_response(
    status: int = 200,
    headers: Optional[Dict[str, str]] = None,
    body: bytes = b"",
) -> AsyncMock:
    response = AsyncMock(spec=ClientResponse)
    response.status = status
    response.headers = CIMultiDictProxy(CIMultiDict(headers or {}))
    response.read.return_value = body
    return response


def make_session(*responses) -> AsyncMock:
    """Build a session whose successive GETs return responses in order."""
    session = AsyncMock(spec=ClientSession)
    session.get.return_value.__aenter__.side_effect = list(responses)
    return session


def xrds_response(body: bytes = XRDS_BODY) -> AsyncMock:
    return make_response(headers={"Content-Type": "application/xrds+xml"}, body=body)


@pytest.fixture
def settings():
    return Settings(xri_proxy="http://xri.net/", debug=False, sentry_dsn=None)
