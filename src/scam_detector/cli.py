import argparse
import json
import sys
from typing import List, Optional

from .config import get_settings
from .logging_conf import init_logging
from .sdk import assess_transaction, collect_wallet_transactions


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="scam-detector",
        description="Reconstruct DEX trades and flag scam-like patterns.",
    )
    output = argparse.ArgumentParser(add_help=False)
    output.add_argument("--indent", type=int, default=2, help="JSON indent (default: 2).")

    sub = parser.add_subparsers(dest="command", required=True)

    collect = sub.add_parser(
        "collect", parents=[output], help="Analyze a wallet's transaction history."
    )
    collect.add_argument("--chain", required=True, help="Chain name, e.g. eth-mainnet.")
    collect.add_argument("--address", required=True, help="Wallet address to analyze.")

    assess = sub.add_parser(
        "assess", parents=[output], help="Run the multi-tool risk workflow on one transaction."
    )
    assess.add_argument("--chain", required=True, help="Chain name, e.g. eth-mainnet.")
    assess.add_argument("--hash", required=True, dest="tx_hash", help="Transaction hash.")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    # stdout carries the JSON report
    init_logging(settings.log_level, stream=sys.stderr)

    if args.command == "collect":
        result = collect_wallet_transactions(args.chain, args.address, settings=settings)
    else:
        result = assess_transaction(args.chain, args.tx_hash, settings=settings)

    json.dump(result, sys.stdout, indent=args.indent, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0 if result.get("success") else 1


if __name__ == "__main__":
    sys.exit(main())
