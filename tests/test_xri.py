"""
Unit tests for XRI resolution in social.graze.yadis.xri

Tests cover XRI detection, prefix stripping, proxy translation, and
Canonical ID resolution against a mocked proxy resolver.
"""

import pytest
from aiohttp import ClientConnectionError

from social.graze.yadis.errors import (
    InvalidConfigError,
    InvalidDocumentError,
    InvalidInputError,
    InvalidStateError,
    ProtocolError,
    ResolutionError,
)
from social.graze.yadis.namespace import XrdsNamespace
from social.graze.yadis.xri import XriResolver, is_xri, strip_xri_prefix

from tests.conftest import (
    CANONICAL_XRDS_BODY,
    XRDS_BODY,
    make_response,
    make_session,
    xrds_response,
)


class TestIsXri:
    @pytest.mark.parametrize("value", ["=example", "@example", "!1000", "+tag", "$dns", "xri://=example", "XRI://@example"])
    def test_xri(self, value):
        assert is_xri(value) is True

    @pytest.mark.parametrize("value", ["", "example", "https://example.org/"])
    def test_not_xri(self, value):
        assert is_xri(value) is False


class TestStripXriPrefix:
    @pytest.mark.parametrize(
        "xri,expected",
        [
            ("xri://=example", "=example"),
            ("xri://$ip*127.0.0.1", "127.0.0.1"),
            ("xri://$dns*example.org", "example.org"),
            ("XRI://$DNS*example.org", "example.org"),
            ("=example", "=example"),
        ],
    )
    def test_strip(self, xri, expected):
        assert strip_xri_prefix(xri) == expected

    def test_strips_only_once(self):
        assert strip_xri_prefix("xri://xri://=example") == "xri://=example"


class TestXriResolver:
    """Test suite for XRI to URI translation."""

    def test_default_proxy(self, settings):
        assert XriResolver(settings=settings).proxy == "http://xri.net/"

    def test_set_proxy(self, settings):
        resolver = XriResolver(settings=settings)
        resolver.set_proxy("https://proxy.example.org/")
        assert resolver.proxy == "https://proxy.example.org/"

    def test_set_proxy_invalid(self, settings):
        with pytest.raises(InvalidConfigError):
            XriResolver(settings=settings).set_proxy("not a uri")

    def test_constructor_proxy_invalid(self, settings):
        with pytest.raises(InvalidConfigError):
            XriResolver(settings=settings, proxy="not a uri")

    def test_set_xri_invalid(self, settings):
        with pytest.raises(InvalidInputError):
            XriResolver(settings=settings).set_xri("example")

    def test_to_uri(self, settings):
        resolver = XriResolver(settings=settings)
        assert resolver.to_uri("=example") == "http://xri.net/=example"
        assert resolver.uri == "http://xri.net/=example"
        assert resolver.xri == "=example"

    @pytest.mark.parametrize(
        "xri,expected",
        [
            ("xri://=example", "http://xri.net/=example"),
            ("xri://$ip*127.0.0.1", "http://xri.net/127.0.0.1"),
            ("xri://$dns*example.org", "http://xri.net/example.org"),
            ("@example*org", "http://xri.net/@example*org"),
        ],
    )
    def test_to_uri_prefixes(self, settings, xri, expected):
        assert XriResolver(settings=settings).to_uri(xri) == expected

    def test_to_uri_uses_stored_xri(self, settings):
        resolver = XriResolver(settings=settings)
        resolver.set_xri("=example")
        assert resolver.to_uri() == "http://xri.net/=example"

    def test_to_uri_without_xri(self, settings):
        with pytest.raises(InvalidStateError):
            XriResolver(settings=settings).to_uri()

    def test_to_uri_invalid_result(self, settings):
        """Test a translation that yields an invalid URI fails."""
        with pytest.raises(ResolutionError):
            XriResolver(settings=settings).to_uri("=exa mple")

    def test_to_uri_service_type(self, settings):
        resolver = XriResolver(settings=settings)
        resolver.to_uri("=example", service_type="http://openid.net/signon/1.0")
        assert resolver.service_type == "http://openid.net/signon/1.0"


class TestToCanonicalId:
    """Test suite for Canonical ID resolution."""

    @pytest.mark.asyncio
    async def test_success(self, settings):
        session = make_session(xrds_response(CANONICAL_XRDS_BODY))
        resolver = XriResolver(settings=settings)

        document = await resolver.to_canonical_id(session, "=example")

        assert document.xpath("/xrds:XRDS")
        assert await resolver.get_canonical_id(session) == "=!1000.A"
        assert session.get.call_count == 1

        call = session.get.call_args
        assert call.args[0] == "http://xri.net/=example"
        assert call.kwargs["params"] == {"_xrd_r": "application/xrds+xml;sep=false"}
        assert call.kwargs["headers"]["Accept"] == "application/xrds+xml"
        assert resolver.http_response.status == 200

    @pytest.mark.asyncio
    async def test_service_type_params(self, settings):
        """Test a service type adds the _xrd_t query parameter."""
        session = make_session(xrds_response(CANONICAL_XRDS_BODY))
        resolver = XriResolver(settings=settings)
        resolver.to_uri("=example", service_type="http://openid.net/signon/1.0")

        await resolver.to_canonical_id(session)

        assert session.get.call_args.kwargs["params"] == {
            "_xrd_r": "application/xrds+xml",
            "_xrd_t": "http://openid.net/signon/1.0",
        }

    @pytest.mark.asyncio
    async def test_shared_namespace(self, settings):
        namespace = XrdsNamespace({"openid": "http://openid.net/xmlns/1.0"})
        session = make_session(xrds_response(CANONICAL_XRDS_BODY))
        resolver = XriResolver(namespace=namespace, settings=settings)

        document = await resolver.to_canonical_id(session, "=example")

        assert document.namespaces["openid"] == "http://openid.net/xmlns/1.0"

    @pytest.mark.asyncio
    async def test_without_uri(self, settings):
        session = make_session()
        with pytest.raises(InvalidStateError):
            await XriResolver(settings=settings).to_canonical_id(session)
        session.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_not_xrds_content_type(self, settings):
        session = make_session(
            make_response(headers={"Content-Type": "text/html"}, body=b"<html/>")
        )
        with pytest.raises(ProtocolError):
            await XriResolver(settings=settings).to_canonical_id(session, "=example")

    @pytest.mark.asyncio
    async def test_missing_canonical_id(self, settings):
        session = make_session(xrds_response(XRDS_BODY))
        with pytest.raises(ResolutionError):
            await XriResolver(settings=settings).to_canonical_id(session, "=example")

    @pytest.mark.asyncio
    async def test_empty_canonical_id(self, settings):
        body = b"""<xrds:XRDS xmlns:xrds="xri://$xrds" xmlns="xri://$xrd*($v*2.0)">
          <XRD><CanonicalID>=!1</CanonicalID></XRD>
          <XRD><CanonicalID>  </CanonicalID></XRD>
        </xrds:XRDS>"""
        session = make_session(xrds_response(body))
        with pytest.raises(ResolutionError):
            await XriResolver(settings=settings).to_canonical_id(session, "=example")

    @pytest.mark.asyncio
    async def test_malformed_body(self, settings):
        session = make_session(xrds_response(b"<xrds:XRDS"))
        with pytest.raises(InvalidDocumentError):
            await XriResolver(settings=settings).to_canonical_id(session, "=example")

    @pytest.mark.asyncio
    async def test_transport_error(self, settings):
        session = make_session()
        session.get.side_effect = ClientConnectionError("proxy unreachable")

        with pytest.raises(ProtocolError, match="proxy unreachable"):
            await XriResolver(settings=settings).to_canonical_id(session, "=example")


class TestGetCanonicalId:
    @pytest.mark.asyncio
    async def test_without_xri(self, settings):
        with pytest.raises(InvalidStateError):
            await XriResolver(settings=settings).get_canonical_id(make_session())

    @pytest.mark.asyncio
    async def test_resolves_stored_xri(self, settings):
        """Test the stored XRI is resolved once and then cached."""
        session = make_session(xrds_response(CANONICAL_XRDS_BODY))
        resolver = XriResolver(settings=settings)
        resolver.set_xri("=example")

        assert await resolver.get_canonical_id(session) == "=!1000.A"
        assert await resolver.get_canonical_id(session) == "=!1000.A"
        assert session.get.call_count == 1

    @pytest.mark.asyncio
    async def test_new_xri_clears_cache(self, settings):
        session = make_session(
            xrds_response(CANONICAL_XRDS_BODY),
            xrds_response(CANONICAL_XRDS_BODY),
        )
        resolver = XriResolver(settings=settings)
        await resolver.to_canonical_id(session, "=example")
        resolver.set_xri("=other")

        await resolver.get_canonical_id(session)

        assert session.get.call_count == 2
        assert session.get.call_args.args[0] == "http://xri.net/=other"
