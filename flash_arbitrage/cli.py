#!/usr/bin/env python3
"""
Flash arbitrage command line.

Simulates a flash loan arbitrage on the paper chain described by a config
file, and validates config files.

Usage:
    flash-arb simulate --config configs/paper_fixed_fee.yaml --target WBTC --amount 1000
    flash-arb simulate --config configs/paper_path.yaml --target DAI --amount 500 --json
    flash-arb validate-config configs/*.yaml
"""

import argparse
import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from prometheus_client import CollectorRegistry
from tabulate import tabulate

from . import logging_config
from .config_loader import engine_config_from_settings, load_simulation_config
from .constants import FEE_TIER_MEDIUM, StrategyVariant
from .exceptions import FlashArbitrageError
from .metrics import initialize_metrics
from .paper import build_paper_environment
from .utils import format_token_amount, safe_json_dump, timestamp_to_iso, to_raw_amount
from .version import get_version

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE_SECONDS = 300


def _decimal(value: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: {value}")
    if amount <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return amount


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flash-arb",
        description="Flash loan arbitrage engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Borrow 1000 of the base asset and arbitrage it against WBTC
  flash-arb simulate --config configs/paper_fixed_fee.yaml --target WBTC --amount 1000

  # Validate every config in a directory
  flash-arb validate-config configs/*.yaml --json
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    simulate = subparsers.add_parser(
        "simulate", help="Run one flash loan arbitrage on the paper chain"
    )
    simulate.add_argument("--config", required=True, help="Path to config YAML file")
    simulate.add_argument("--target", required=True, help="Target token symbol")
    simulate.add_argument(
        "--amount", required=True, type=_decimal, help="Loan amount in whole base units"
    )
    simulate.add_argument(
        "--min-out-buy",
        type=Decimal,
        default=Decimal(0),
        help="Minimum target tokens from the buy leg, in whole units (default: 0)",
    )
    simulate.add_argument(
        "--fee-tier",
        type=int,
        default=FEE_TIER_MEDIUM,
        help=f"Pool fee tier for the fixed_fee variant (default: {FEE_TIER_MEDIUM})",
    )
    simulate.add_argument(
        "--deadline-seconds",
        type=int,
        default=DEFAULT_DEADLINE_SECONDS,
        help="Deadline offset from the current block for the path_slippage variant",
    )
    simulate.add_argument(
        "--withdraw",
        action="store_true",
        help="Sweep the base asset profit to the owner after a successful run",
    )
    simulate.add_argument("--json", action="store_true", help="Output results as JSON")
    simulate.add_argument("--metrics-out", help="Write Prometheus metrics to this file")

    validate = subparsers.add_parser("validate-config", help="Validate config files")
    validate.add_argument("configs", nargs="+", help="Config YAML files")
    validate.add_argument("--json", action="store_true", help="Output results as JSON")

    return parser


def run_simulation(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Deploy the configured paper chain and request one flash loan.

    Returns:
        Result dictionary; ``status`` is ``executed`` or ``reverted``

    Raises:
        FlashArbitrageError: If the config cannot be loaded or deployed
    """
    config = load_simulation_config(args.config)
    metrics = initialize_metrics(CollectorRegistry())
    env = build_paper_environment(config, metrics=metrics)

    arbitrageur = env.arbitrageur
    engine_config = env.engine_config
    base = env.chain.token(engine_config.base_asset_address)
    target = env.token(args.target)

    amount = to_raw_amount(args.amount, base.decimals())
    min_out_buy = to_raw_amount(args.min_out_buy, target.decimals())
    deadline = None
    if engine_config.variant is StrategyVariant.PATH_SLIPPAGE:
        deadline = env.chain.block_timestamp() + args.deadline_seconds

    before = env.balances(arbitrageur.address)
    result: Dict[str, Any] = {
        "name": config.name,
        "variant": engine_config.variant.value,
        "base_asset": base.symbol,
        "target": target.symbol,
        "amount": amount,
        "premium": env.lending_pool.premium_for(amount),
        "block_time": timestamp_to_iso(env.chain.block_timestamp()),
        "status": "executed",
        "error": None,
        "withdrawn": None,
    }

    try:
        with env.chain.transaction():
            arbitrageur.request_loan(
                engine_config.owner,
                target.address,
                amount,
                min_out_buy=min_out_buy,
                fee_tier=args.fee_tier,
                deadline=deadline,
            )
    except FlashArbitrageError as e:
        result["status"] = "reverted"
        result["error"] = f"{type(e).__name__}: {e}"
        logger.warning(f"Flash loan reverted: {result['error']}")

    after = env.balances(arbitrageur.address)
    result["profit"] = after[base.symbol] - before[base.symbol]

    if args.withdraw and result["status"] == "executed":
        with env.chain.transaction():
            result["withdrawn"] = arbitrageur.withdraw(engine_config.owner, base.address)
        after = env.balances(arbitrageur.address)

    result["balances"] = [
        {
            "token": symbol,
            "before": before[symbol],
            "after": after[symbol],
            "delta": after[symbol] - before[symbol],
            "decimals": env.tokens[symbol].decimals(),
        }
        for symbol in sorted(before)
    ]
    result["metrics"] = metrics.get_metrics_summary()

    if args.metrics_out:
        Path(args.metrics_out).write_bytes(metrics.render())

    return result


def print_simulation(result: Dict[str, Any]) -> None:
    print(
        f"\n{result['name']} [{result['variant']}]: borrow {result['amount']} "
        f"{result['base_asset']}, premium {result['premium']}, target {result['target']} "
        f"at {result['block_time']}"
    )
    rows = [
        [
            row["token"],
            format_token_amount(row["before"], row["decimals"]),
            format_token_amount(row["after"], row["decimals"]),
            format_token_amount(row["delta"], row["decimals"]),
        ]
        for row in result["balances"]
    ]
    print(tabulate(rows, headers=["Token", "Before", "After", "Delta"], tablefmt="simple"))

    if result["status"] == "executed":
        print(f"\n✅ Executed, profit {result['profit']} raw {result['base_asset']}")
        if result["withdrawn"] is not None:
            print(f"   Withdrawn to owner: {result['withdrawn']}")
    else:
        print(f"\n❌ Reverted: {result['error']}")


def validate_configs(paths: List[str]) -> List[Dict[str, Any]]:
    results = []
    for path in paths:
        result = {"file": path, "valid": False, "errors": []}
        try:
            config = load_simulation_config(path)
            # Resolves owner_key_env the same way simulate does
            engine_config = engine_config_from_settings(config.engine)
            result["valid"] = True
            result["name"] = config.name
            result["variant"] = config.engine.variant
            result["owner"] = engine_config.owner
        except FlashArbitrageError as e:
            result["errors"].append(str(e))
        results.append(result)
    return results


def print_validation(results: List[Dict[str, Any]]) -> None:
    rows = [
        [r["file"], "✅ valid" if r["valid"] else "❌ invalid", "; ".join(r["errors"])]
        for r in results
    ]
    print(tabulate(rows, headers=["File", "Status", "Errors"], tablefmt="simple"))
    valid = sum(1 for r in results if r["valid"])
    print(f"\n{valid}/{len(results)} configuration files valid")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error or reverted simulation)
    """
    args = build_parser().parse_args(argv)
    # JSON output owns stdout
    stream = sys.stderr if getattr(args, "json", False) else sys.stdout
    logging_config.setup(level=getattr(logging, args.log_level), stream=stream)
    load_dotenv()

    if args.command == "validate-config":
        results = validate_configs(args.configs)
        if args.json:
            print(safe_json_dump(results))
        else:
            print_validation(results)
        return 0 if all(r["valid"] for r in results) else 1

    try:
        result = run_simulation(args)
    except FlashArbitrageError as e:
        print(f"❌ {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result, indent=2))
    else:
        print_simulation(result)
    return 0 if result["status"] == "executed" else 1


if __name__ == "__main__":
    sys.exit(main())
