"""Command line entry point: ``python -m basin_gateway.apigateway``."""
from __future__ import annotations
import argparse
import logging
import socket
import sys
from typing import Dict, List, Optional, Tuple

import uvicorn
from pydantic import ValidationError

from ..objectstore import Network
from .app import create_app
from .settings import GatewaySettings, split_listen

log = logging.getLogger("apigateway")

_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="basin-gateway", description="HTTP gateway for an on-chain object store.")
    p.add_argument(
        "-p",
        "--private-key",
        help="Wallet private key (ECDSA, secp256k1) for signing transactions [env: BASIN_PRIVATE_KEY]",
    )
    p.add_argument("--listen", help="Listening address, host:port [env: BASIN_LISTEN] (default 127.0.0.1:8081)")
    p.add_argument("-o", "--os-address", help="Object store address [env: BASIN_OS_ADDRESS]")
    p.add_argument(
        "-n",
        "--network",
        choices=[n.value for n in Network],
        help="Network presets for subnet and RPC URLs [env: BASIN_NETWORK] (default testnet)",
    )
    p.add_argument("--rpc-url", help="EVM JSON-RPC endpoint, overrides the network preset [env: BASIN_RPC_URL]")
    p.add_argument("--object-api-url", help="Object API endpoint, overrides the network preset [env: BASIN_OBJECT_API_URL]")
    p.add_argument("-v", "--verbosity", action="count", default=0, help="Increase logging verbosity (repeatable)")
    p.add_argument("-q", "--quiet", action="store_true", help="Silence all logging")
    return p


def resolve_listen(value: str) -> Tuple[str, int]:
    host, port = split_listen(value)
    try:
        socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise ValueError(f"failed to convert to any socket address: {value}") from e
    return host, port


def configure_logging(verbosity: int, quiet: bool) -> None:
    if quiet:
        logging.disable(logging.CRITICAL)
        return
    logging.basicConfig(
        level=_LEVELS[min(verbosity, len(_LEVELS) - 1)],
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def load_settings(args: argparse.Namespace) -> GatewaySettings:
    overrides: Dict[str, object] = {
        "private_key": args.private_key,
        "listen": args.listen,
        "os_address": args.os_address,
        "network": args.network,
        "rpc_url": args.rpc_url,
        "object_api_url": args.object_api_url,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if args.verbosity:
        overrides["verbosity"] = args.verbosity
    if args.quiet:
        overrides["quiet"] = True
    return GatewaySettings(**overrides)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = load_settings(args)
        host, port = resolve_listen(settings.listen)
    except (ValidationError, ValueError) as e:
        parser.error(str(e))

    configure_logging(settings.verbosity, settings.quiet)
    try:
        app = create_app(settings)
    except RuntimeError as e:
        parser.error(str(e))
    log.info("Starting server at %s", settings.listen)
    uvicorn.run(app, host=host, port=port, log_config=None, access_log=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())
