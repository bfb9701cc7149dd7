"""
Command line access to a Tally server.

Usage:
    python -m tally_sdk test-connection
    python -m tally_sdk ledgers --group "Sundry Debtors" --contains corp
    python -m tally_sdk ledger "ABC Corporation"
    python -m tally_sdk stock-summary --as-on 2024-03-31
    python -m tally_sdk vouchers --type Sales --from-date 2024-04-01
    python -m tally_sdk companies
    python -m tally_sdk raw request.xml
"""
from __future__ import annotations
import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence
from loguru import logger
from .config import TallyConfig, configure_logging
from .errors import TallyError
from .sdk import TallySDK


def _print_rows(rows: list[dict]) -> None:
    for row in rows:
        print("  ".join(f"{key}={value}" for key, value in row.items()))
    print(f"({len(rows)} rows)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tally_sdk",
        description="TallyPrime XML API client",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command")

    subparsers.add_parser("test-connection", help="Test Tally connection")

    ledgers_parser = subparsers.add_parser("ledgers", help="List ledgers")
    ledgers_parser.add_argument("--group", help="Parent group")
    ledgers_parser.add_argument("--contains", help="Name substring")

    ledger_parser = subparsers.add_parser("ledger", help="Show one ledger")
    ledger_parser.add_argument("name", help="Ledger name")

    stock_parser = subparsers.add_parser("stock-summary", help="Stock summary")
    stock_parser.add_argument("--as-on", help="Date (YYYY-MM-DD or DD-Mon-YYYY)")

    vouchers_parser = subparsers.add_parser("vouchers", help="List vouchers")
    vouchers_parser.add_argument("--type", dest="voucher_type", help="Voucher type")
    vouchers_parser.add_argument("--from-date")
    vouchers_parser.add_argument("--to-date")

    subparsers.add_parser("companies", help="List companies")

    raw_parser = subparsers.add_parser("raw", help="Send a request file, print the response")
    raw_parser.add_argument("file", type=Path, help="XML request file")

    return parser


def run(args: argparse.Namespace, sdk: TallySDK) -> int:
    if args.command == "test-connection":
        result = sdk.test_connection()
        print("\n=== Tally Connection Test ===")
        print(f"Status: {result['status']}")
        print(f"URL: {result.get('url', 'N/A')}")
        if result["status"] == "connected":
            print(f"Company: {result.get('company') or '(active company)'}")
            print(f"Response size: {result.get('response_length', 0)} bytes")
        else:
            print(f"Error: {result.get('error', 'Unknown')}")
        return 0 if result["status"] == "connected" else 1

    if args.command == "ledgers":
        ledgers = sdk.ledgers.list_ledgers(group=args.group, name_contains=args.contains)
        _print_rows([{"name": x.name, "parent": x.parent} for x in ledgers])

    elif args.command == "ledger":
        ledger = sdk.ledgers.fetch_ledger(args.name)
        print(json.dumps(ledger.model_dump(mode="json"), indent=2))

    elif args.command == "stock-summary":
        summary = sdk.stock.get_stock_summary(as_on=args.as_on)
        _print_rows([
            {"name": i.name, "quantity": i.closing_quantity, "value": i.closing_value}
            for i in summary.items
        ])
        print(f"Total value: {summary.total_value:.2f}")

    elif args.command == "vouchers":
        vouchers = sdk.vouchers.list_vouchers(
            voucher_type=args.voucher_type, from_date=args.from_date, to_date=args.to_date
        )
        _print_rows([
            {"number": v.voucher_number, "type": v.voucher_type, "date": v.date, "amount": v.amount}
            for v in vouchers
        ])

    elif args.command == "companies":
        companies = sdk.companies.list_companies()
        _print_rows([{"name": c.name, "active": c.is_active} for c in companies])

    elif args.command == "raw":
        tree = sdk.execute_raw(args.file.read_text(encoding="utf-8"))
        print(json.dumps(tree, indent=2))

    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = TallyConfig.from_env()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    configure_logging(config, level="DEBUG" if args.verbose else None)

    problems = config.validate()
    if problems:
        for problem in problems:
            logger.error(f"Configuration error: {problem}")
        return 1

    try:
        with TallySDK(config) as sdk:
            return run(args, sdk)
    except TallyError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
