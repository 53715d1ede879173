"""Closed-form Black-Scholes call pricing on an approximate normal CDF."""

from __future__ import annotations

import numpy as np

# Abramowitz & Stegun formula 7.1.26
ERF_P = 0.3275911
ERF_A1 = 0.254829592
ERF_A2 = -0.284496736
ERF_A3 = 1.421413741
ERF_A4 = -1.453152027
ERF_A5 = 1.061405429


def _as_output(values: np.ndarray):
    """Return a plain float for 0-d input, the array otherwise."""
    if values.ndim == 0:
        return float(values)
    return values


def erf(x):
    """
    Error function via A&S 7.1.26 (absolute error ~1.5e-7).

    Evaluated on |x| and mirrored for negative inputs, so erf(-x) == -erf(x).
    Accepts scalars or arrays.
    """
    x = np.asarray(x, dtype=float)
    sign = np.where(x >= 0, 1.0, -1.0)
    ax = np.abs(x)

    t = 1.0 / (1.0 + ERF_P * ax)
    poly = ((((ERF_A5 * t + ERF_A4) * t + ERF_A3) * t + ERF_A2) * t + ERF_A1) * t
    y = 1.0 - poly * np.exp(-ax * ax)
    return _as_output(sign * y)


def norm_cdf(x):
    """Standard normal CDF, (1 + erf(x / sqrt(2))) / 2."""
    x = np.asarray(x, dtype=float)
    return _as_output((1.0 + np.asarray(erf(x / np.sqrt(2.0)))) / 2.0)


def intrinsic_value(spot: float, strike: float) -> float:
    """Immediate exercise value of a call."""
    return max(0.0, spot - strike)


def call_price(
    spot: float,
    strike: float,
    years_to_expiry: float,
    risk_free_rate: float,
    volatility: float,
) -> float:
    """
    Black-Scholes price for a European call.

    Notes:
    - If years_to_expiry <= 0, returns intrinsic value.
    - Inputs are not validated. Zero volatility or a non-positive strike
      propagate as inf/nan rather than raising.
    """
    if years_to_expiry <= 0:
        return intrinsic_value(spot, strike)

    S = np.float64(spot)
    K = np.float64(strike)
    T = np.float64(years_to_expiry)
    r = np.float64(risk_free_rate)
    sigma = np.float64(volatility)

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        vol_term = sigma * np.sqrt(T)
        d1 = (np.log(S / K) + (r + 0.5 * sigma * sigma) * T) / vol_term
        d2 = d1 - vol_term
        price = S * norm_cdf(d1) - K * np.exp(-r * T) * norm_cdf(d2)
    return float(price)
