"""CLI entry point for option ROI scenario projection."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

import numpy as np

from option_sim.research.visualizations import plot_roi_projection, table_frame
from option_sim.strategy.projector import project, sort_contracts, theoretical_cost
from option_sim.utils.config import (
    contracts_from_config,
    get_config_hash,
    get_default_config,
    load_config,
    market_config_from_dict,
    merge_configs,
    projection_settings,
)
from option_sim.utils.logging import log_assumption, setup_logger


def _fmt_money(value: float) -> str:
    """Format numeric value as USD string."""
    if value is None or (isinstance(value, float) and not np.isfinite(value)):
        return "N/A"
    return f"${value:,.2f}"


def _fmt_vol(value: float) -> str:
    if value is None:
        return "-"
    return f"{value * 100:.1f}%"


def _print_header(config_hash: str) -> None:
    """Print CLI banner."""
    print("\n" + "═" * 59)
    print("  OPTION ROI SIMULATOR")
    print(f"  Black-Scholes projection | config {config_hash}")
    print("═" * 59)


def _print_market(market) -> None:
    print("\n🔧 PARAMETERS")
    print(
        f"   Current: {_fmt_money(market.current_price)} | Target: {_fmt_money(market.target_price)} | "
        f"Rate: {market.risk_free_rate:.2%} | DTE: {market.days_to_expiry}"
    )


def _print_contracts(market, contracts, crush_threshold: float) -> None:
    print("\n💵 OPTION CONTRACTS")
    print(f"   {'Contract':24} {'Strike':>9} {'Ask':>10} {'Model':>10} {'IV':>8} {'Tgt IV':>8} {'Delta':>7}")
    for c in contracts:
        delta = f"{c.delta:.4f}" if c.delta is not None else "-"
        flag = "  ⚠️" if c.has_volatility_crush(crush_threshold) else ""
        print(
            f"   {c.label:24} {c.strike:>9.2f} {_fmt_money(c.premium_paid):>10} "
            f"{_fmt_money(theoretical_cost(market, c)):>10} {_fmt_vol(c.implied_volatility):>8} "
            f"{_fmt_vol(c.target_implied_volatility):>8} {delta:>7}{flag}"
        )


def _print_table(grouped_table: List[Dict[str, Any]]) -> None:
    print("\n📈 ROI BY SCENARIO (price at target)")
    if not grouped_table:
        print("   No scenario offsets fall before expiry.")
        return
    for group in grouped_table:
        print(f"   {group['offset_label']}")
        for d in group["details"]:
            print(f"      {d['label']:24} ${d['strike']:<9g} ROI {d['roi']:>9}%   P/L {d['profit']:>9}")


def _apply_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    market = {}
    if args.target_price is not None:
        market["target_price"] = args.target_price
    if args.days_to_expiry is not None:
        market["days_to_expiry"] = args.days_to_expiry
    if market:
        config = merge_configs(config, {"market": market})

    for item in args.target_iv or []:
        label, sep, value = item.partition("=")
        if not sep:
            raise ValueError(f"--target-iv expects LABEL=VALUE, got {item!r}")
        entries = config.get("contracts")
        if not isinstance(entries, list):
            raise ValueError("config must contain a 'contracts' list")
        matched = [c for c in entries if isinstance(c, dict) and c.get("label") == label]
        if not matched:
            raise ValueError(f"--target-iv: no contract labelled {label!r}")
        for entry in matched:
            entry["target_iv"] = value
    return config


def main() -> int:
    """Run ROI projection CLI workflow."""
    parser = argparse.ArgumentParser(
        description="Option ROI scenario simulator",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", type=str, default="configs/default.yaml")
    parser.add_argument("--target-price", type=float, default=None, help="Override target price")
    parser.add_argument("--days-to-expiry", type=int, default=None, help="Override days to expiry")
    parser.add_argument(
        "--target-iv",
        action="append",
        metavar="LABEL=VALUE",
        help="Set target IV for a contract label (empty VALUE clears it); repeatable",
    )
    parser.add_argument("--plot", action="store_true", help="Save ROI area chart")
    parser.add_argument("--csv", action="store_true", help="Save long-format ROI table as CSV")
    parser.add_argument("--output-dir", type=str, default="outputs/roi_projection")
    parser.add_argument("--log-level", type=str, default="INFO")
    args = parser.parse_args()

    logger = setup_logger("option_sim", level=getattr(logging, args.log_level.upper(), logging.INFO))

    try:
        config_path = Path(args.config)
        if config_path.exists():
            config = load_config(str(config_path))
        else:
            logger.warning(f"Config {config_path} not found, using built-in defaults")
            config = get_default_config()
        config = _apply_overrides(config, args)

        market = market_config_from_dict(config.get("market") or {})
        contracts = contracts_from_config(config)
        settings = projection_settings(config)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    log_assumption(logger, "Underlying reaches target immediately and holds", _fmt_money(market.target_price))

    chart_series, grouped_table, crush = project(market, contracts, **settings)

    _print_header(get_config_hash(config))
    _print_market(market)
    _print_contracts(market, sort_contracts(contracts), settings["crush_threshold"])
    _print_table(grouped_table)

    if crush:
        print("\n⚠️  VOLATILITY CRUSH: target IV is well below current IV for at least one contract.")
        print("   Option value may fall even if the price target is hit.")

    if args.plot:
        path = plot_roi_projection(chart_series, args.output_dir, volatility_crush=crush)
        logger.info(f"Saved chart: {path}")
    if args.csv:
        out = Path(args.output_dir)
        out.mkdir(parents=True, exist_ok=True)
        csv_path = out / "roi_projection.csv"
        table_frame(grouped_table).to_csv(csv_path, index=False)
        logger.info(f"Saved table: {csv_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
