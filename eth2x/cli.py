"""Command-line interface for the leveraged vault keeper."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import AppConfig, load_config
from .fixed_point import format_fixed, parse_fixed
from .interfaces.notifier import Notifier
from .logging_setup import configure_logging
from .notifications import TelegramNotifier
from .services import Keeper, build_paper_vault, seed_paper_vault, simulate_price_path


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="eth2x",
        description="2x leveraged ETH vault keeper (paper trading)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("check", help="Single keeper pass: rebalance if out of band")
    sub.add_parser("report", help="Send a vault position report")

    keep_parser = sub.add_parser("keep", help="Continuous keeper loop")
    keep_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Check interval in minutes (overrides config)",
    )

    sim_parser = sub.add_parser("simulate", help="Replay a price path on a paper vault")
    sim_parser.add_argument(
        "prices",
        nargs="+",
        help="Reference asset prices in USD, e.g. 2000 2100 1850",
    )

    return parser


def _build_notifiers(config: AppConfig) -> list[Notifier]:
    notifiers: list[Notifier] = []
    if config.notifications.telegram.enabled:
        notifiers.append(TelegramNotifier(config.notifications.telegram))
    return notifiers


async def _simulate(config: AppConfig, raw_prices: list[str]) -> None:
    decimals = config.price_oracle.static.decimals
    prices = [parse_fixed(p, decimals) for p in raw_prices]
    points = await simulate_price_path(config, prices)
    base = config.lending_market.base_currency_decimals

    print(f"{'Price':>12} {'Before':>10} {'After':>10} {'Net value':>16}  Rebalanced")
    for point in points:
        print(
            f"{format_fixed(point.price, decimals, 2):>12} "
            f"{format_fixed(point.ratio_before):>10} "
            f"{format_fixed(point.ratio_after):>10} "
            f"{format_fixed(point.net_value, base, 2):>16}  "
            f"{'yes' if point.rebalanced else 'no'}"
        )


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "simulate":
        await _simulate(config, args.prices)
        return

    paper = build_paper_vault(config)
    await seed_paper_vault(paper, config)
    keeper = Keeper(paper.vault, config.keeper, _build_notifiers(config))

    if args.command == "check":
        await keeper.check_and_rebalance()
    elif args.command == "report":
        print(await keeper.generate_report())
    elif args.command == "keep":
        await keeper.run_continuous(args.interval)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
