from typing import Dict, List
import argparse
import asyncio
import json
import logging
import os
from logging.config import dictConfig

import aiohttp
import sentry_sdk

from social.graze.yadis.config import Settings
from social.graze.yadis.discovery import Yadis
from social.graze.yadis.errors import YadisError

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    logging_config_file = os.getenv("LOGGING_CONFIG_FILE", "")

    if len(logging_config_file) > 0:
        with open(logging_config_file) as fl:
            dictConfig(json.load(fl))
        return

    logging.basicConfig()
    logging.getLogger().setLevel(logging.DEBUG if debug else logging.INFO)


def parse_namespaces(values: List[str]) -> Dict[str, str]:
    namespaces: Dict[str, str] = {}
    for value in values:
        prefix, sep, uri = value.partition("=")
        if not sep or not prefix or not uri:
            raise argparse.ArgumentTypeError(f"Invalid namespace {value}, expected prefix=uri")
        namespaces[prefix] = uri
    return namespaces


async def realMain() -> None:
    parser = argparse.ArgumentParser(prog="yadis", description="Discover Yadis services")
    parser.add_argument("identifier", nargs="+", help="The URL(s) or XRI(s) to discover.")
    parser.add_argument(
        "--namespace",
        action="append",
        default=[],
        help="Additional XPath namespace as prefix=uri, may be repeated.",
    )
    parser.add_argument("--xri-proxy", default=None, help="The XRI proxy resolver to use.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")

    args = vars(parser.parse_args())

    overrides = {}
    if args.get("xri_proxy"):
        overrides["xri_proxy"] = args.get("xri_proxy")
    if args.get("debug"):
        overrides["debug"] = True
    settings = Settings(**overrides)

    configure_logging(settings.debug)
    if settings.sentry_dsn:
        sentry_sdk.init(dsn=settings.sentry_dsn)

    namespaces = parse_namespaces(args.get("namespace", []))
    identifiers: List[str] = args.get("identifier", [])

    async with aiohttp.ClientSession() as session:
        for identifier in identifiers:
            try:
                services = await Yadis(identifier, namespaces, settings).discover(session)
            except YadisError:
                logging.exception("Exception discovering identifier %s", identifier)
                continue
            except Exception as e:
                sentry_sdk.capture_exception(e)
                logging.exception("Exception discovering identifier %s", identifier)
                continue
            print(f"identifier {identifier}")
            for service in services:
                print(f"  priority={service.priority} types={service.types} uris={service.uris}")


def main() -> None:
    asyncio.run(realMain())


if __name__ == "__main__":
    main()
