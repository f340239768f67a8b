"""
Base option pricing models.

Implements:
- Bachelier (normal) model for rates options
- Black'76 model, optionally shifted for negative rates

Prices and Greeks are per unit annuity (undiscounted); the swaption pricer
scales them by the underlying PVBP. Theta is -dPrice/dT, the decay per year
of remaining expiry.
"""

from enum import Enum
from typing import Dict
import numpy as np
from scipy.stats import norm


# Standard normal CDF and PDF
N = norm.cdf
n = norm.pdf


class PutCall(Enum):
    """Option type on the forward rate."""
    CALL = "Call"
    PUT = "Put"

    @property
    def is_call(self) -> bool:
        return self is PutCall.CALL


def _intrinsic_greeks(F: float, K: float, put_call: PutCall) -> Dict[str, float]:
    if put_call.is_call:
        delta = 1.0 if F > K else 0.0
    else:
        delta = -1.0 if F < K else 0.0
    return {'delta': delta, 'gamma': 0.0, 'vega': 0.0, 'theta': 0.0}


def _intrinsic(F: float, K: float, put_call: PutCall) -> float:
    return max(F - K, 0.0) if put_call.is_call else max(K - F, 0.0)


def bachelier_price(F: float, K: float, T: float, sigma_n: float, put_call: PutCall) -> float:
    """
    Bachelier (normal) model option price.

    Assumes forward follows arithmetic Brownian motion:
    dF = sigma_n * dW

    Args:
        F: Forward rate
        K: Strike
        T: Time to expiry (years)
        sigma_n: Normal volatility
        put_call: Call or put on the forward

    Returns:
        Option price per unit annuity
    """
    if T <= 0 or sigma_n <= 0:
        return _intrinsic(F, K, put_call)

    sqrt_t = np.sqrt(T)
    d = (F - K) / (sigma_n * sqrt_t)

    if put_call.is_call:
        return float((F - K) * N(d) + sigma_n * sqrt_t * n(d))
    return float((K - F) * N(-d) + sigma_n * sqrt_t * n(d))


def bachelier_greeks(F: float, K: float, T: float, sigma_n: float, put_call: PutCall) -> Dict[str, float]:
    """
    Compute Greeks for Bachelier model.

    Returns:
        Dict with delta, gamma, vega, theta
    """
    if T <= 0 or sigma_n <= 0:
        return _intrinsic_greeks(F, K, put_call)

    sqrt_t = np.sqrt(T)
    d = (F - K) / (sigma_n * sqrt_t)

    delta = N(d) if put_call.is_call else -N(-d)

    return {
        'delta': float(delta),
        'gamma': float(n(d) / (sigma_n * sqrt_t)),
        'vega': float(sqrt_t * n(d)),
        'theta': float(-sigma_n * n(d) / (2 * sqrt_t)),
    }


def _shifted(F: float, K: float, shift: float):
    F_shifted = F + shift
    K_shifted = K + shift
    if F_shifted <= 0 or K_shifted <= 0:
        raise ValueError(f"Shifted forward ({F_shifted}) and strike ({K_shifted}) must be positive")
    return F_shifted, K_shifted


def black76_price(
    F: float,
    K: float,
    T: float,
    sigma_b: float,
    put_call: PutCall,
    shift: float = 0.0,
) -> float:
    """
    Black'76 model option price, shifted when shift > 0.

    Assumes d(F + shift) = sigma_b * (F + shift) * dW

    Args:
        F: Forward rate
        K: Strike
        T: Time to expiry
        sigma_b: Black (lognormal) volatility
        put_call: Call or put on the forward
        shift: Shift parameter

    Returns:
        Option price per unit annuity
    """
    F, K = _shifted(F, K, shift)
    if T <= 0 or sigma_b <= 0:
        return _intrinsic(F, K, put_call)

    sqrt_t = np.sqrt(T)
    d1 = (np.log(F / K) + 0.5 * sigma_b**2 * T) / (sigma_b * sqrt_t)
    d2 = d1 - sigma_b * sqrt_t

    if put_call.is_call:
        return float(F * N(d1) - K * N(d2))
    return float(K * N(-d2) - F * N(-d1))


def black76_greeks(
    F: float,
    K: float,
    T: float,
    sigma_b: float,
    put_call: PutCall,
    shift: float = 0.0,
) -> Dict[str, float]:
    """
    Compute Greeks for (shifted) Black'76 model.

    Returns:
        Dict with delta, gamma, vega, theta
    """
    F, K = _shifted(F, K, shift)
    if T <= 0 or sigma_b <= 0:
        return _intrinsic_greeks(F, K, put_call)

    sqrt_t = np.sqrt(T)
    d1 = (np.log(F / K) + 0.5 * sigma_b**2 * T) / (sigma_b * sqrt_t)

    delta = N(d1) if put_call.is_call else -N(-d1)

    return {
        'delta': float(delta),
        'gamma': float(n(d1) / (F * sigma_b * sqrt_t)),
        'vega': float(F * sqrt_t * n(d1)),
        'theta': float(-F * sigma_b * n(d1) / (2 * sqrt_t)),
    }


__all__ = [
    "PutCall",
    "bachelier_price",
    "bachelier_greeks",
    "black76_price",
    "black76_greeks",
]
