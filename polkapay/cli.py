"""
polkapay CLI - address, amount and payment verification helpers.

Usage:
    polkapay validate ADDRESS [--format N]
    polkapay format ADDRESS --format N
    polkapay shorten ADDRESS [--chars N]
    polkapay same ADDRESS ADDRESS
    polkapay to-display AMOUNT
    polkapay to-chain AMOUNT
    polkapay verify HASH --from ADDR --to ADDR --amount PLANCK [--json]
    polkapay explorer HASH
    polkapay balance ADDRESS

All commands accept --network (polkadot, kusama, westend).
"""

import argparse
import asyncio
import json
import logging
import sys

from .address import format_address, is_same_address, is_valid_address, shorten_address
from .amounts import to_chain, to_display
from .config import get_settings
from .errors import PolkapayError
from .networks import NETWORKS, get_network
from .node import NodeClient
from .verifier import PaymentVerifier

logger = logging.getLogger(__name__)


def cmd_validate(args) -> int:
    ss58_format = args.format if args.format is not None else get_network(args.network).ss58_format
    valid = is_valid_address(args.address, ss58_format)
    print("valid" if valid else "invalid")
    return 0 if valid else 1


def cmd_format(args) -> int:
    formatted = format_address(args.address, args.format)
    if formatted is None:
        print("invalid address", file=sys.stderr)
        return 1
    print(formatted)
    return 0


def cmd_shorten(args) -> int:
    print(shorten_address(args.address, args.chars))
    return 0


def cmd_same(args) -> int:
    same = is_same_address(args.first, args.second)
    print("same account" if same else "different accounts")
    return 0 if same else 1


def cmd_to_display(args) -> int:
    print(to_display(args.amount, args.network))
    return 0


def cmd_to_chain(args) -> int:
    print(to_chain(args.amount, args.network))
    return 0


def cmd_verify(args) -> int:
    settings = get_settings()
    verifier = PaymentVerifier(
        args.network,
        api_key=settings.subscan_api_key,
        verify_amount=args.check_amount or settings.verify_transfer_amount,
        timeout=settings.indexer_timeout,
    )
    result = asyncio.run(
        verifier.verify_payment(args.hash, args.sender, args.recipient, args.amount)
    )

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    elif result.verified:
        details = result.details
        print(f"Confirmed in block {details.block_number}")
        print(f"  fee:      {to_display(details.fee, verifier.network)}")
        if details.amount_verified:
            print(f"  amount:   {to_display(details.observed_amount, verifier.network)}")
        else:
            print(f"  expected: {to_display(details.expected_amount, verifier.network)} (not checked)")
        print(f"  explorer: {verifier.explorer_url(args.hash)}")
    else:
        print(f"Not verified [{result.error_kind.value}]: {result.error}")
    return 0 if result.verified else 1


def cmd_balance(args) -> int:
    balance = asyncio.run(NodeClient(args.network).get_balance(args.address))
    for field in ("free", "reserved", "frozen"):
        print(f"{field + ':':<10}{to_display(balance[field], args.network)}")
    return 0


def cmd_explorer(args) -> int:
    print(get_network(args.network).extrinsic_url(args.hash))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="polkapay",
        description="Polkadot payment verification and address/amount tools",
    )
    parser.add_argument(
        "--network",
        choices=sorted(NETWORKS),
        default=None,
        help="Network (default: $POLKADOT_NETWORK or polkadot)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p = subparsers.add_parser("validate", help="Check an SS58 address")
    p.add_argument("address")
    p.add_argument("--format", type=int, help="SS58 format (default: network's)")
    p.set_defaults(func=cmd_validate)

    p = subparsers.add_parser("format", help="Re-encode an address")
    p.add_argument("address")
    p.add_argument("--format", type=int, required=True, help="Target SS58 format")
    p.set_defaults(func=cmd_format)

    p = subparsers.add_parser("shorten", help="Shorten an address for display")
    p.add_argument("address")
    p.add_argument("--chars", type=int, default=6)
    p.set_defaults(func=cmd_shorten)

    p = subparsers.add_parser("same", help="Compare two addresses by account")
    p.add_argument("first")
    p.add_argument("second")
    p.set_defaults(func=cmd_same)

    p = subparsers.add_parser("to-display", help="Chain units to display amount")
    p.add_argument("amount")
    p.set_defaults(func=cmd_to_display)

    p = subparsers.add_parser("to-chain", help="Display amount to chain units")
    p.add_argument("amount")
    p.set_defaults(func=cmd_to_chain)

    p = subparsers.add_parser("verify", help="Verify a payment extrinsic")
    p.add_argument("hash")
    p.add_argument("--from", dest="sender", required=True)
    p.add_argument("--to", dest="recipient", required=True)
    p.add_argument("--amount", required=True, help="Expected amount in chain units")
    p.add_argument("--check-amount", action="store_true", help="Match the transfer event too")
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_verify)

    p = subparsers.add_parser("balance", help="Account balance from a node")
    p.add_argument("address")
    p.set_defaults(func=cmd_balance)

    p = subparsers.add_parser("explorer", help="Explorer URL for an extrinsic")
    p.add_argument("hash")
    p.set_defaults(func=cmd_explorer)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    if args.network is None:
        args.network = get_settings().polkadot_network

    try:
        return args.func(args)
    except PolkapayError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
