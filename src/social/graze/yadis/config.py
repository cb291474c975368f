"""
Configuration Module for Yadis Discovery

Settings are loaded from environment variables through Pydantic, with defaults
suitable for discovery against the public XRI proxy.

Key configuration areas include:
- Debugging and error reporting
- XRI proxy used to translate i-names into HTTP URIs
- HTTP client behaviour (timeout, user agent)
"""

import logging
from typing import Optional

from aiohttp import ClientTimeout
from pydantic import field_validator
from pydantic_settings import BaseSettings

from social.graze.yadis.uri import validate_uri


logger = logging.getLogger(__name__)


DEFAULT_XRI_PROXY = "http://xri.net/"


class Settings(BaseSettings):
    """
    Settings for Yadis discovery.

    Environment variables are mapped to fields by name, for example the XRI
    proxy is set with the XRI_PROXY environment variable.
    """

    debug: bool = False
    """
    Enable debug logging.
    Set with DEBUG=true environment variable.
    """

    xri_proxy: str = DEFAULT_XRI_PROXY
    """
    Proxy resolver that XRI i-names are appended to when forming a URI.
    Set with XRI_PROXY environment variable.
    Default: http://xri.net/
    """

    request_timeout: float = 10.0
    """
    Total timeout in seconds for each discovery request.
    Set with REQUEST_TIMEOUT environment variable.
    """

    user_agent: str = "graze-yadis"
    """
    User-Agent header sent with discovery requests.
    Set with USER_AGENT environment variable.
    """

    sentry_dsn: Optional[str] = None
    """
    Sentry DSN for error reporting. Optional, no error reporting if not set.
    Set with SENTRY_DSN environment variable.
    """

    @field_validator("xri_proxy")
    @classmethod
    def validate_xri_proxy(cls, v: str) -> str:
        if not validate_uri(v):
            raise ValueError(f"xri_proxy must be a valid URI: {v}")
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_request_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    def client_timeout(self) -> ClientTimeout:
        return ClientTimeout(total=self.request_timeout)

    def request_headers(self) -> dict:
        return {"User-Agent": self.user_agent}
