"""
Closed forms for a truncated power-law storage transit-time distribution.

Water entering the storage zone stays there for a transit time tau drawn from

    f(tau) = tau^-alpha / Z,    tau_min <= tau <= tau_max

    Z = integral_{tau_min}^{tau_max} tau^-alpha dtau

Solute carried by that water decays at first order once it has been stored
longer than tau_rxn. The surviving fraction of water leaving storage is

    R = integral f(tau) exp(-k * max(tau - tau_rxn, 0)) dtau

which is evaluated exactly with the upper incomplete gamma function:

    integral_lo^hi tau^-alpha exp(-k tau) dtau
        = k^(alpha - 1) * [Gamma(1 - alpha, k lo) - Gamma(1 - alpha, k hi)]

Gamma(s, x) for negative s follows from the recurrence
Gamma(s, x) = (Gamma(s + 1, x) - x^s e^-x) / s, and for large x from its
asymptotic series, carried with an exp(k tau_rxn) scaling so the delay factor
cannot overflow.

tau_max may be math.inf. The distribution is then normalizable only for
alpha > 1 and has a finite mean only for alpha > 2.
"""

import math
from typing import Tuple

import numpy as np
from scipy import special

from ..errors import NumericDomainError

# |s| below this is treated as the s -> 0 limit of the power integrals.
_SMALL_ORDER = 1e-9
# Gamma(s, x) switches to the asymptotic series above this argument.
_ASYMPTOTIC_ARGUMENT = 500.0
_ASYMPTOTIC_TERMS = 16


def check_power_law(alpha: float, tau_min: float, tau_max: float) -> None:
    """Raise NumericDomainError unless (alpha, tau_min, tau_max) is usable."""
    if not math.isfinite(alpha) or alpha <= 0:
        raise NumericDomainError("alpha", alpha, "must be a positive finite number")
    if alpha in (1.0, 2.0):
        raise NumericDomainError("alpha", alpha, "lies on a singularity of the closed form; use a nearby value")
    if not math.isfinite(tau_min) or tau_min <= 0:
        raise NumericDomainError("tau_min", tau_min, "must be a positive finite number")
    if math.isnan(tau_max) or tau_max <= tau_min:
        raise NumericDomainError("tau_max", tau_max, f"must exceed tau_min={tau_min!r}")
    if math.isinf(tau_max) and alpha <= 1:
        raise NumericDomainError("tau_max", tau_max, f"is unbounded, which needs alpha > 1 (alpha={alpha!r})")


def power_integral(s: float, a: float, b: float) -> float:
    """Integral of tau^(s - 1) from a to b, for 0 < a and b possibly infinite."""
    if b <= a:
        return 0.0
    if math.isinf(b):
        if s >= 0:
            return math.inf
        return a**s / -s
    log_ratio = math.log(b / a)
    if abs(s) < _SMALL_ORDER:
        return a**s * log_ratio * (1.0 + 0.5 * s * log_ratio)
    return a**s * math.expm1(s * log_ratio) / s


def upper_gamma_scaled(s: float, x: float, shift: float = 0.0) -> float:
    """exp(shift) * Gamma(s, x) for x > 0 and any real order s."""
    if math.isinf(x):
        return 0.0
    if x > _ASYMPTOTIC_ARGUMENT:
        term = 1.0
        total = 1.0
        for n in range(1, _ASYMPTOTIC_TERMS):
            term *= (s - n) / x
            total += term
        return math.exp((s - 1.0) * math.log(x) + shift - x) * total

    if abs(s) < _SMALL_ORDER:
        return math.exp(shift) * float(special.exp1(x))

    steps = int(math.ceil(-s)) if s < 0 else 0
    base = s + steps
    if base < _SMALL_ORDER:
        value = float(special.exp1(x))
    else:
        value = float(special.gammaincc(base, x) * special.gamma(base))
    # Walk the recurrence back down to the requested order.
    for j in range(steps - 1, -1, -1):
        order = s + j
        if abs(order) < _SMALL_ORDER:
            # Gamma(order, x) -> E1(x) as the order passes through zero.
            value = float(special.exp1(x))
        else:
            value = (value - x**order * math.exp(-x)) / order
    return math.exp(shift) * value


def normalization(alpha: float, tau_min: float, tau_max: float) -> float:
    check_power_law(alpha, tau_min, tau_max)
    return power_integral(1.0 - alpha, tau_min, tau_max)


def transit_time_density(tau, alpha: float, tau_min: float, tau_max: float):
    """f(tau), zero outside [tau_min, tau_max]; accepts scalars or arrays."""
    z = normalization(alpha, tau_min, tau_max)
    tau = np.asarray(tau, dtype=float)
    inside = (tau >= tau_min) & (tau <= tau_max)
    safe = np.where(inside, tau, 1.0)
    density = np.where(inside, safe ** (-alpha) / z, 0.0)
    if density.ndim == 0:
        return float(density)
    return density


def mean_transit_time(alpha: float, tau_min: float, tau_max: float) -> float:
    z = normalization(alpha, tau_min, tau_max)
    if math.isinf(tau_max) and alpha <= 2:
        raise NumericDomainError(
            "tau_max",
            tau_max,
            f"is unbounded, so the mean transit time diverges for alpha <= 2 (alpha={alpha!r})",
        )
    return power_integral(2.0 - alpha, tau_min, tau_max) / z


def storage_exchange_flux(vol_water_in_storage: float, alpha: float, tau_min: float, tau_max: float) -> float:
    """Exchange flux between channel and storage that keeps the storage volume full.

    Storage volume = flux * mean transit time.
    """
    if not math.isfinite(vol_water_in_storage) or vol_water_in_storage < 0:
        raise NumericDomainError("vol_water_in_storage", vol_water_in_storage, "must be a non-negative finite number")
    return vol_water_in_storage / mean_transit_time(alpha, tau_min, tau_max)


def fraction_remaining_storage(
    alpha: float,
    k: float,
    tau_min: float,
    tau_max: float,
    tau_rxn: float = 0.0,
) -> float:
    """Fraction of solute entering storage that leaves it unreacted."""
    check_power_law(alpha, tau_min, tau_max)
    if not math.isfinite(k) or k < 0:
        raise NumericDomainError("k", k, "must be a non-negative finite rate constant")
    if not math.isfinite(tau_rxn) or tau_rxn < 0:
        raise NumericDomainError("tau_rxn", tau_rxn, "must be a non-negative finite delay")
    if k == 0:
        return 1.0

    s = 1.0 - alpha
    z = power_integral(s, tau_min, tau_max)

    # Water released before the reaction starts.
    unreacted = power_integral(s, tau_min, min(tau_max, tau_rxn)) if tau_rxn > tau_min else 0.0

    reacted = 0.0
    lo = max(tau_min, tau_rxn)
    if lo < tau_max:
        shift = k * tau_rxn
        upper = upper_gamma_scaled(s, k * lo, shift) - upper_gamma_scaled(s, k * tau_max, shift)
        reacted = k ** (alpha - 1.0) * upper

    remaining = (unreacted + reacted) / z
    return min(1.0, max(0.0, remaining))


def damkohler_from_remaining(remaining: float) -> float:
    """Effective Damkohler number: -ln of the unreacted fraction."""
    if remaining <= 0:
        return math.inf
    if remaining >= 1:
        return 0.0
    return -math.log(remaining)


def fractions_from_damkohler(damkohler: float) -> Tuple[float, float]:
    """(removed, remaining) for a reactor with effective Damkohler number ``damkohler``."""
    if math.isinf(damkohler):
        return 1.0, 0.0
    remaining = math.exp(-damkohler)
    removed = -math.expm1(-damkohler)
    return removed, remaining
