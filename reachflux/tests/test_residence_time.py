import math
import unittest

import numpy as np
from scipy import integrate

from reachflux.errors import NumericDomainError
from reachflux.models.residence_time import (
    damkohler_from_remaining,
    fraction_remaining_storage,
    fractions_from_damkohler,
    mean_transit_time,
    normalization,
    power_integral,
    storage_exchange_flux,
    transit_time_density,
)


def _quad_log(func, tau_lo, tau_hi):
    """Integrate func(tau) dtau over [tau_lo, tau_hi] in log-tau space."""
    value, _ = integrate.quad(
        lambda u: func(math.exp(u)) * math.exp(u),
        math.log(tau_lo),
        math.log(tau_hi),
        limit=400,
        epsabs=1e-14,
        epsrel=1e-10,
    )
    return value


def _direct_remaining(alpha, k, tau_min, tau_max, tau_rxn, z=None):
    if z is None:
        z = _quad_log(lambda t: t ** (-alpha), tau_min, tau_max)
    survive = 0.0
    if tau_rxn > tau_min:
        survive += _quad_log(lambda t: t ** (-alpha), tau_min, min(tau_rxn, tau_max))
    lo = max(tau_min, tau_rxn)
    survive += _quad_log(lambda t: t ** (-alpha) * math.exp(-k * (t - tau_rxn)), lo, tau_max)
    return survive / z


class PowerIntegralTests(unittest.TestCase):
    def test_matches_quadrature(self):
        for s in (-0.8, -0.3, 0.4, 1.7):
            expected = _quad_log(lambda t: t ** (s - 1.0), 2.0, 500.0)
            self.assertAlmostEqual(power_integral(s, 2.0, 500.0), expected, delta=1e-9 * abs(expected))

    def test_log_limit_near_zero_order(self):
        expected = math.log(500.0 / 2.0)
        self.assertAlmostEqual(power_integral(1e-12, 2.0, 500.0), expected, places=9)
        self.assertAlmostEqual(power_integral(-1e-7, 2.0, 500.0), expected, places=5)
        self.assertAlmostEqual(power_integral(1e-7, 2.0, 500.0), expected, places=5)

    def test_unbounded_upper_limit(self):
        self.assertAlmostEqual(power_integral(-0.5, 4.0, math.inf), 4.0**-0.5 / 0.5)
        self.assertEqual(power_integral(0.5, 4.0, math.inf), math.inf)


class DistributionTests(unittest.TestCase):
    def test_density_integrates_to_one(self):
        total = _quad_log(lambda t: transit_time_density(t, 1.5, 1.0, 1000.0), 1.0, 1000.0)
        self.assertAlmostEqual(total, 1.0, places=9)

    def test_density_zero_outside_support(self):
        values = transit_time_density(np.array([0.5, 2.0, 2000.0]), 1.5, 1.0, 1000.0)
        self.assertEqual(values[0], 0.0)
        self.assertGreater(values[1], 0.0)
        self.assertEqual(values[2], 0.0)

    def test_mean_transit_time_matches_quadrature(self):
        z = normalization(1.4, 1.0, 1000.0)
        expected = _quad_log(lambda t: t * t**-1.4 / z, 1.0, 1000.0)
        self.assertAlmostEqual(mean_transit_time(1.4, 1.0, 1000.0), expected, places=7)

    def test_mean_transit_time_unbounded(self):
        # alpha = 3, tau_min = 2: mean = tau_min (alpha - 1) / (alpha - 2) = 4
        self.assertAlmostEqual(mean_transit_time(3.0, 2.0, math.inf), 4.0, places=12)
        with self.assertRaises(NumericDomainError) as ctx:
            mean_transit_time(1.5, 2.0, math.inf)
        self.assertEqual(ctx.exception.parameter, "tau_max")

    def test_storage_exchange_flux(self):
        mean = mean_transit_time(1.6, 60.0, 3.1536e7)
        self.assertAlmostEqual(storage_exchange_flux(50.0, 1.6, 60.0, 3.1536e7), 50.0 / mean)
        self.assertEqual(storage_exchange_flux(0.0, 1.6, 60.0, 3.1536e7), 0.0)


class FractionRemainingTests(unittest.TestCase):
    def test_matches_direct_quadrature(self):
        cases = [
            (1.5, 0.01, 1.0, 1000.0, 0.0),
            (1.5, 0.01, 1.0, 1000.0, 5.0),
            (1.2, 0.2, 1.0, 500.0, 0.0),
            (1.8, 0.05, 2.0, 800.0, 30.0),
            (0.6, 0.01, 1.0, 1000.0, 0.0),
            (2.5, 0.1, 1.0, 1000.0, 0.0),
        ]
        for alpha, k, tau_min, tau_max, tau_rxn in cases:
            with self.subTest(alpha=alpha, k=k, tau_rxn=tau_rxn):
                expected = _direct_remaining(alpha, k, tau_min, tau_max, tau_rxn)
                actual = fraction_remaining_storage(alpha, k, tau_min, tau_max, tau_rxn)
                self.assertAlmostEqual(actual, expected, places=8)

    def test_zero_rate_is_exactly_unreacted(self):
        self.assertEqual(fraction_remaining_storage(1.5, 0.0, 60.0, 3.1536e7), 1.0)
        removed, remaining = fractions_from_damkohler(damkohler_from_remaining(1.0))
        self.assertEqual(removed, 0.0)
        self.assertEqual(remaining, 1.0)

    def test_small_rate_removes_almost_nothing(self):
        previous = 1.0
        for k in (1e-3, 1e-5, 1e-7, 1e-9):
            removed = 1.0 - fraction_remaining_storage(1.5, k, 60.0, 3.1536e7)
            self.assertLess(removed, previous)
            previous = removed
        self.assertLess(previous, 1e-4)

    def test_unbounded_tau_max_closed_form_limit(self):
        alpha, k, tau_min = 1.5, 0.01, 1.0
        closed = fraction_remaining_storage(alpha, k, tau_min, math.inf)
        # exp(-k tau) is below 1e-40 past tau = 1e4; the normalization keeps its full tail.
        z = tau_min ** (1.0 - alpha) / (alpha - 1.0)
        direct = _direct_remaining(alpha, k, tau_min, 1e4, 0.0, z=z)
        self.assertAlmostEqual(closed, direct, places=8)
        gaps = [abs(fraction_remaining_storage(alpha, k, tau_min, t) - closed) for t in (1e6, 1e9, 1e14)]
        self.assertLess(gaps[1], gaps[0])
        self.assertLess(gaps[2], gaps[1])
        self.assertLess(gaps[2], 1e-6)

    def test_reaction_delay_longer_than_all_transit_times(self):
        self.assertEqual(fraction_remaining_storage(1.5, 0.5, 1.0, 100.0, tau_rxn=200.0), 1.0)

    def test_large_delay_does_not_overflow(self):
        value = fraction_remaining_storage(1.5, 1.0, 1.0, 1e6, tau_rxn=5000.0)
        self.assertTrue(math.isfinite(value))
        self.assertGreater(value, 0.0)
        self.assertLessEqual(value, 1.0)

    def test_continuous_across_alpha_one(self):
        below = fraction_remaining_storage(1.0 - 1e-7, 0.01, 1.0, 1000.0)
        above = fraction_remaining_storage(1.0 + 1e-7, 0.01, 1.0, 1000.0)
        limit = _direct_remaining(1.0, 0.01, 1.0, 1000.0, 0.0)
        self.assertAlmostEqual(below, limit, places=6)
        self.assertAlmostEqual(above, limit, places=6)

    def test_continuous_across_alpha_two(self):
        below = fraction_remaining_storage(2.0 - 1e-7, 0.01, 1.0, 1000.0)
        above = fraction_remaining_storage(2.0 + 1e-7, 0.01, 1.0, 1000.0)
        limit = _direct_remaining(2.0, 0.01, 1.0, 1000.0, 0.0)
        self.assertAlmostEqual(below, limit, places=6)
        self.assertAlmostEqual(above, limit, places=6)
        tight_below = fraction_remaining_storage(2.0 - 1e-12, 0.01, 1.0, 1000.0)
        tight_above = fraction_remaining_storage(2.0 + 1e-12, 0.01, 1.0, 1000.0)
        self.assertAlmostEqual(tight_below, limit, places=9)
        self.assertAlmostEqual(tight_above, limit, places=9)
        mean_below = mean_transit_time(2.0 - 1e-7, 1.0, 1000.0)
        mean_above = mean_transit_time(2.0 + 1e-7, 1.0, 1000.0)
        self.assertAlmostEqual(mean_below, mean_above, places=5)


class DomainTests(unittest.TestCase):
    def test_singular_alpha_rejected(self):
        for alpha in (1.0, 2.0):
            with self.assertRaises(NumericDomainError) as ctx:
                fraction_remaining_storage(alpha, 0.01, 1.0, 100.0)
            self.assertEqual(ctx.exception.parameter, "alpha")

    def test_bad_parameters_rejected(self):
        with self.assertRaises(NumericDomainError) as ctx:
            fraction_remaining_storage(1.5, -0.1, 1.0, 100.0)
        self.assertEqual(ctx.exception.parameter, "k")
        with self.assertRaises(NumericDomainError) as ctx:
            fraction_remaining_storage(1.5, 0.1, 100.0, 10.0)
        self.assertEqual(ctx.exception.parameter, "tau_max")
        with self.assertRaises(NumericDomainError) as ctx:
            fraction_remaining_storage(1.5, 0.1, 0.0, 10.0)
        self.assertEqual(ctx.exception.parameter, "tau_min")
        with self.assertRaises(NumericDomainError) as ctx:
            fraction_remaining_storage(1.5, 0.1, 1.0, 10.0, tau_rxn=-1.0)
        self.assertEqual(ctx.exception.parameter, "tau_rxn")

    def test_unbounded_tau_max_needs_alpha_above_one(self):
        with self.assertRaises(NumericDomainError):
            normalization(0.8, 1.0, math.inf)


class DamkohlerTests(unittest.TestCase):
    def test_fractions_sum_to_one(self):
        for da in (0.0, 1e-12, 1e-4, 0.3, 2.0, 40.0, math.inf):
            removed, remaining = fractions_from_damkohler(da)
            self.assertAlmostEqual(removed + remaining, 1.0, places=14)

    def test_round_trip_through_remaining(self):
        self.assertAlmostEqual(damkohler_from_remaining(math.exp(-0.7)), 0.7, places=12)
        self.assertEqual(damkohler_from_remaining(0.0), math.inf)


if __name__ == "__main__":
    unittest.main()
