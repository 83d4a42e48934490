"""
Command-line interface for arktx.

Builds and signs transactions with local passphrases and prints the
resulting records as JSON. Nothing is broadcast.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import structlog

from arktx import __version__
from arktx.config import ArkTxConfig, NetworkType, get_config, set_config
from arktx.core.errors import InsufficientFunds, TransactionError
from arktx.core.request import BatchItem, LocalSigning, TransactionRequest
from arktx.core.service import TransactionBuilderService
from arktx.core.transaction import TransactionType
from arktx.crypto.ark import ArkCrypto, address_from_public_key, get_keys
from arktx.node.ark_api import ArkNodeClient
from arktx.node.interface import NodeConnectionError


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    import logging
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--network",
        choices=[n.value for n in NetworkType],
        default="mainnet",
        help="ARK network (default: mainnet)",
    )
    parser.add_argument(
        "--node-url",
        help="ARK node API URL (default: local node for the network)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )


def _add_signing_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--from",
        dest="from_address",
        required=True,
        help="Sender address",
    )
    parser.add_argument(
        "--passphrase-file",
        required=True,
        help="File holding the master passphrase",
    )
    parser.add_argument(
        "--second-passphrase-file",
        help="File holding the second passphrase",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="arktx",
        description="Build and sign ARK transactions",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Fees command
    fees_parser = subparsers.add_parser("fees", help="Show the current fee schedule")
    _add_common_arguments(fees_parser)

    # Address command
    address_parser = subparsers.add_parser("address", help="Derive the address of a passphrase")
    address_parser.add_argument(
        "--passphrase-file",
        required=True,
        help="File holding the passphrase",
    )
    _add_common_arguments(address_parser)

    # Send command
    send_parser = subparsers.add_parser("send", help="Build a signed send transaction")
    _add_signing_arguments(send_parser)
    send_parser.add_argument(
        "--to",
        required=True,
        help="Recipient address",
    )
    send_parser.add_argument(
        "--amount",
        type=int,
        required=True,
        help="Amount in arktoshi",
    )
    send_parser.add_argument(
        "--memo",
        help="Vendor field (max 64 bytes)",
    )
    _add_common_arguments(send_parser)

    # Batch command
    batch_parser = subparsers.add_parser("batch", help="Build signed sends for many recipients")
    _add_signing_arguments(batch_parser)
    batch_parser.add_argument(
        "--items",
        required=True,
        help='JSON file with a list of {"address", "amount", "memo"} objects',
    )
    _add_common_arguments(batch_parser)

    return parser


def _read_secret(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    return Path(path).read_text(encoding="utf-8").strip()


def _build_config(args: argparse.Namespace) -> ArkTxConfig:
    config = ArkTxConfig(
        network=NetworkType(args.network),
        node_base_url=args.node_url,
        log_level=args.log_level,
        log_json=args.log_json,
    )
    set_config(config)
    return config


def format_error(error: Exception, config: ArkTxConfig) -> str:
    """Render a pipeline error for the terminal."""
    if isinstance(error, InsufficientFunds):
        return (
            f"Not enough {config.token_symbol} on your account {error.address}: "
            f"{error.required / 1e8:.8f} needed, {error.available / 1e8:.8f} available"
        )
    return str(error)


async def show_fees(args: argparse.Namespace) -> None:
    """Print the node's current fee schedule."""
    config = _build_config(args)
    async with ArkNodeClient(config) as node:
        fees = await node.get_fees()

    print(json.dumps({
        "send": fees.send,
        "secondsignature": fees.secondsignature,
        "delegate": fees.delegate,
        "vote": fees.vote,
    }, indent=2))


def show_address(args: argparse.Namespace) -> None:
    """Print the address and public key of a passphrase."""
    config = _build_config(args)
    keys = get_keys(_read_secret(args.passphrase_file))
    print(json.dumps({
        "address": address_from_public_key(keys.public_key, config.network_version),
        "publicKey": keys.public_key,
    }, indent=2))


async def build_send(args: argparse.Namespace) -> None:
    """Build a single signed send."""
    config = _build_config(args)
    signer = LocalSigning(
        _read_secret(args.passphrase_file),
        _read_secret(args.second_passphrase_file),
    )
    request = TransactionRequest(
        kind=TransactionType.SEND,
        from_address=args.from_address,
        signer=signer,
        recipient=args.to,
        amount=args.amount,
        memo=args.memo,
    )

    async with ArkNodeClient(config) as node:
        service = TransactionBuilderService(node, node, ArkCrypto(), config=config)
        transaction = await service.create_send_transaction(request)

    print(json.dumps(transaction.to_dict(), indent=2))


async def build_batch(args: argparse.Namespace) -> None:
    """Build signed sends for every item of a JSON file."""
    config = _build_config(args)
    signer = LocalSigning(
        _read_secret(args.passphrase_file),
        _read_secret(args.second_passphrase_file),
    )
    raw_items = json.loads(Path(args.items).read_text(encoding="utf-8"))
    items = [BatchItem.from_dict(item) for item in raw_items]

    async with ArkNodeClient(config) as node:
        service = TransactionBuilderService(node, node, ArkCrypto(), config=config)
        result = await service.create_multiple_send_transactions(args.from_address, items, signer)

    print(json.dumps(result.to_dict(), indent=2))


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Setup logging
    setup_logging(args.log_level, args.log_json)

    try:
        if args.command == "fees":
            asyncio.run(show_fees(args))
        elif args.command == "address":
            show_address(args)
        elif args.command == "send":
            asyncio.run(build_send(args))
        elif args.command == "batch":
            asyncio.run(build_batch(args))
    except (TransactionError, NodeConnectionError, ValueError, OSError) as e:
        print(f"Error: {format_error(e, get_config())}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
