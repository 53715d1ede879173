"""
Scenario projection of option ROI when the underlying reaches a target price.

The simulated path is deterministic: the underlying jumps to the target price
and holds, and each contract is repriced with Black-Scholes at a ladder of
forward day offsets. Everything is recomputed from the inputs on each call.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, NamedTuple, Sequence, Tuple

from ..data.schema import ContractDetail, MarketConfig, OffsetGroup, OptionContract
from ..pricing.black_scholes import call_price

LOGGER = logging.getLogger(__name__)

DEFAULT_SCENARIO_OFFSETS: Tuple[int, ...] = tuple(range(30, 361, 30))
DAYS_PER_YEAR = 365.0
# Keeps near-expiry offsets on the continuous-time branch of the pricer
MIN_YEARS_REMAINING = 0.0001
VOLATILITY_CRUSH_THRESHOLD = 0.10


class Projection(NamedTuple):
    chart_series: List[Dict[str, Any]]
    grouped_table: List[Dict[str, Any]]
    volatility_crush: bool


def sort_contracts(contracts: Iterable[OptionContract]) -> List[OptionContract]:
    """Stable ascending sort by strike."""
    return sorted(contracts, key=lambda c: c.strike)


def scenario_offsets(
    days_to_expiry: int,
    offsets: Iterable[int] = DEFAULT_SCENARIO_OFFSETS,
) -> List[int]:
    """Ascending, unique offsets that fall on or before expiry."""
    return sorted({int(d) for d in offsets if d <= days_to_expiry})


def detect_volatility_crush(
    contracts: Iterable[OptionContract],
    threshold: float = VOLATILITY_CRUSH_THRESHOLD,
) -> bool:
    return any(c.has_volatility_crush(threshold) for c in contracts)


def years_remaining(
    days_to_expiry: int,
    offset_days: int,
    min_years: float = MIN_YEARS_REMAINING,
) -> float:
    days_left = max(days_to_expiry - offset_days, 0)
    return max(days_left / DAYS_PER_YEAR, min_years)


def compute_roi(estimated_price: float, premium_paid: float) -> Tuple[float, float]:
    """Return (profit, roi_pct). ROI is 0 when nothing was paid."""
    profit = estimated_price - premium_paid
    roi = (profit / premium_paid) * 100.0 if premium_paid > 0 else 0.0
    return profit, roi


def theoretical_cost(config: MarketConfig, contract: OptionContract) -> float:
    """Model value today: current spot, full time to expiry, current IV."""
    return call_price(
        config.current_price,
        contract.strike,
        config.days_to_expiry / DAYS_PER_YEAR,
        config.risk_free_rate,
        contract.implied_volatility,
    )


def offset_label(offset_days: int) -> str:
    return f"Day {offset_days}"


def project(
    config: MarketConfig,
    contracts: Sequence[OptionContract],
    offsets: Iterable[int] = DEFAULT_SCENARIO_OFFSETS,
    min_years_remaining: float = MIN_YEARS_REMAINING,
    crush_threshold: float = VOLATILITY_CRUSH_THRESHOLD,
) -> Projection:
    """
    Project ROI for each contract at each scenario offset.

    Returns:
        Projection(chart_series, grouped_table, volatility_crush) where
        chart_series has one point per offset keyed by contract series_key,
        and grouped_table has one record per offset with per-contract details.
        Both list contracts in ascending strike order.
    """
    ordered = sort_contracts(contracts)
    LOGGER.debug("Sorted contracts: %s", [f"{c.label} ({c.strike})" for c in ordered])

    crush = detect_volatility_crush(ordered, crush_threshold)
    if crush:
        LOGGER.info("Volatility crush detected (target IV > %.0f pts below current)", crush_threshold * 100)

    days = scenario_offsets(config.days_to_expiry, offsets)
    LOGGER.debug("Projecting %d contracts over %d offsets", len(ordered), len(days))

    chart_series: List[Dict[str, Any]] = []
    grouped_table: List[Dict[str, Any]] = []
    simulated_price = config.target_price

    for day in days:
        T = years_remaining(config.days_to_expiry, day, min_years_remaining)
        label = offset_label(day)

        point: Dict[str, Any] = {"offset_label": label, "price": simulated_price}
        group = OffsetGroup(offset_days=day, offset_label=label)

        for contract in ordered:
            estimated = call_price(
                simulated_price,
                contract.strike,
                T,
                config.risk_free_rate,
                contract.effective_volatility,
            )
            profit, roi = compute_roi(estimated, contract.premium_paid)

            point[contract.series_key] = round(roi, 2)
            group.details.append(
                ContractDetail(
                    label=contract.label,
                    strike=contract.strike,
                    roi=f"{roi:.2f}",
                    profit=f"{profit:.2f}",
                    estimated_price=f"{estimated:.2f}",
                )
            )

        chart_series.append(point)
        grouped_table.append(group.to_dict())

    return Projection(chart_series, grouped_table, crush)
