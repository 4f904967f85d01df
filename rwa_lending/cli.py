"""Command-line interface for the RWA borrowing engine."""
from __future__ import annotations

import argparse
import asyncio
import sys

from . import reporting
from .config import AppConfig, load_config
from .errors import LendingError
from .logging_setup import configure_logging
from .models import AssetClass, CollateralAsset, ReadResult, TokenizationStatus
from .services import BorrowingEngine

TERM_CHOICES = (30, 90, 180, 365)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="rwa-lending",
        description="Borrow against tokenized real-world assets",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("collateral", help="List assets eligible as collateral")
    p.add_argument("wallet", help="Borrower wallet address")

    p = sub.add_parser("add-asset", help="Record a pledged asset")
    p.add_argument("wallet", help="Owner wallet address")
    p.add_argument("name", help="Asset display name")
    p.add_argument(
        "asset_class",
        choices=[c.value for c in AssetClass],
        metavar="CLASS",
        help="Asset class, e.g. 'Trade Finance'",
    )
    p.add_argument("value", type=float, help="Declared value in USD")
    p.add_argument(
        "--status",
        default=TokenizationStatus.PENDING.value,
        choices=[s.value for s in TokenizationStatus],
        help="Tokenization status (default: pending)",
    )
    p.add_argument("--token", default="", help="Token contract address")

    p = sub.add_parser("quote", help="Loan analysis without borrowing")
    p.add_argument("wallet", help="Borrower wallet address")
    p.add_argument("asset", help="Collateral asset id")
    p.add_argument("amount", type=float, help="Amount to borrow (USD)")

    p = sub.add_parser("borrow", help="Borrow against a tokenized asset")
    p.add_argument("wallet", help="Borrower wallet address")
    p.add_argument("asset", help="Collateral asset id")
    p.add_argument("amount", type=float, help="Amount to borrow (USD)")
    p.add_argument("--pool", required=True, help="Liquidity pool id")
    p.add_argument(
        "--term",
        type=int,
        default=90,
        choices=TERM_CHOICES,
        help="Loan term in days (default: 90)",
    )
    p.add_argument("--tx", default="", help="Settlement transaction reference")

    p = sub.add_parser("repay", help="Repay a loan in full")
    p.add_argument("wallet", help="Borrower wallet address")
    p.add_argument("position", help="Position id")

    p = sub.add_parser("positions", help="List borrowing positions")
    p.add_argument("wallet", help="Borrower wallet address")

    p = sub.add_parser("risk", help="Positions at liquidation risk (alerts if no wallet)")
    p.add_argument(
        "wallet",
        nargs="?",
        default=None,
        help="Borrower wallet address (default: all configured wallets)",
    )

    p = sub.add_parser("portfolio", help="Portfolio summary")
    p.add_argument("wallet", help="Borrower wallet address")

    sub.add_parser("pools", help="List liquidity pools")
    sub.add_parser("init-db", help="Create database tables (postgres backend)")

    watch_parser = sub.add_parser("watch", help="Continuous liquidation-risk monitoring")
    watch_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Check interval in minutes (overrides config)",
    )

    return parser


def _print_result(result: ReadResult, text: str) -> None:
    if result.degraded:
        print(reporting.degraded_banner(result.warning))
    print(text)


async def _dispatch(engine: BorrowingEngine, args: argparse.Namespace) -> int:
    """Run one command against an open engine; returns the exit status."""
    if args.command == "collateral":
        result = await engine.eligible_collateral(args.wallet)
        _print_result(result, reporting.format_collateral(result.items))

    elif args.command == "add-asset":
        asset = await engine.register_asset(
            CollateralAsset(
                id="",
                owner_id=args.wallet,
                name=args.name,
                asset_class=AssetClass.parse(args.asset_class),
                value_usd=args.value,
                tokenization_status=TokenizationStatus(args.status),
                token_address=args.token,
            )
        )
        print(f"✅ Asset recorded: {asset.id}")

    elif args.command == "quote":
        quote = await engine.quote(args.wallet, args.asset, args.amount)
        print(reporting.format_quote(quote))

    elif args.command == "borrow":
        position = await engine.borrow(
            args.wallet, args.asset, args.amount, args.pool, args.term, args.tx
        )
        print("✅ Borrowing completed successfully!")
        print(reporting.format_position(position))

    elif args.command == "repay":
        receipt = await engine.repay(args.wallet, args.position)
        print(reporting.format_receipt(receipt))

    elif args.command == "positions":
        result = await engine.positions(args.wallet)
        _print_result(result, reporting.format_positions(result.items))

    elif args.command == "risk":
        if args.wallet:
            result = await engine.at_risk(args.wallet)
            _print_result(result, reporting.format_flagged(result.items))
        else:
            flagged = await engine.check_and_alert()
            print(reporting.format_flagged(flagged))

    elif args.command == "portfolio":
        summary = await engine.portfolio(args.wallet)
        print(reporting.format_summary(summary))

    elif args.command == "pools":
        print(reporting.format_pools(engine.pools()))

    elif args.command == "init-db":
        init_schema = getattr(engine.store, "init_schema", None)
        if init_schema is None:
            print("Nothing to initialise for this store backend.")
        else:
            await init_schema()
            print("✅ Database schema ready")

    elif args.command == "watch":
        await engine.monitor.run_continuous(args.interval)

    return 0


async def _run(args: argparse.Namespace, config: AppConfig | None = None) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = config or load_config(args.config)

    if args.command == "risk" and not args.wallet and not config.wallets:
        print("❌ No wallet given and none configured", file=sys.stderr)
        return 1

    try:
        async with BorrowingEngine(config) as engine:
            return await _dispatch(engine, args)
    except LendingError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))

