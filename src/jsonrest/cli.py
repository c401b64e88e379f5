"""Command line front end: send one JSON request and print the response."""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

import yaml
from dotenv import load_dotenv

from .clients.errors import JsonRestError
from .clients.http import Client
from .config.config import ConfigurationError, load_config

log = logging.getLogger("jsonrest")

METHODS = ("GET", "POST", "PUT", "DELETE")


def _parse_header(raw: str) -> tuple:
    key, sep, value = raw.partition(":")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"header must look like 'Key: Value', got {raw!r}")
    return key.strip(), value.strip()


def _parse_body(raw: str):
    try:
        return json.loads(raw)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"body is not valid JSON: {e}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jsonrest", description=__doc__)
    parser.add_argument("method", type=str.upper, choices=METHODS)
    parser.add_argument("url")
    parser.add_argument("-H", "--header", action="append", type=_parse_header, default=[], dest="headers")
    parser.add_argument("-d", "--data", type=_parse_body, default=None, help="JSON request body")
    parser.add_argument("--config", default=None, help="YAML configuration file")
    parser.add_argument("--attempts", type=int, default=None, help="total attempts per request")
    parser.add_argument("--delay", type=float, default=None, help="seconds between attempts")
    parser.add_argument("--timeout", type=float, default=None, help="seconds per attempt, 0 for none")
    parser.add_argument("--insecure", action="store_true", help="skip TLS certificate verification")
    parser.add_argument("--log", action="store_true", help="log requests and responses")
    parser.add_argument("--no-body", action="store_true", help="do not decode or print the response body")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        if args.attempts is not None:
            config.retry_max_attempts = args.attempts
        if args.delay is not None:
            config.retry_delay = args.delay
        if args.timeout is not None:
            config.timeout = args.timeout
        if args.insecure:
            config.verify_tls = False
        if args.log:
            config.log_enabled = True
        config.validate()
    except (ConfigurationError, OSError, yaml.YAMLError) as e:
        print(f"jsonrest: {e}", file=sys.stderr)
        return 2

    received: list = []
    with Client.from_config(config) as client:
        builder = client.request().set_body(args.data).set_result(None if args.no_body else received.append)
        for key, value in args.headers:
            builder.add_header(key, value)
        try:
            dispatch = getattr(builder, args.method.lower())
            dispatch(args.url)
        except JsonRestError as e:
            log.debug("Request failed", exc_info=True)
            print(f"jsonrest: {e}", file=sys.stderr)
            return 1

    if received:
        print(json.dumps(received[0], indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
