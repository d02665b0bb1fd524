import math
import unittest

from reachflux.errors import ConfigurationError, NegativeMassError, NumericDomainError
from reachflux.models.cells import SoluteCell, WaterCell
from reachflux.models.reaction import PowerLawReaction
from reachflux.models.transport import SoluteTransport, WaterTransport


def _channel(water=52.5, solute=52.5 * 19.3):
    water_cell = WaterCell(1, water)
    solute_cell = SoluteCell(2, "NO3", solute, linked_cell=1)
    solute_cell.bind(water_cell)
    return {1: water_cell, 2: solute_cell}


class WaterTransportTests(unittest.TestCase):
    def test_moves_discharge_times_step(self):
        cells = _channel()
        boundary = WaterTransport(2, upstream=1, downstream=None, discharge=0.069)
        deltas = boundary.compute_deltas(cells, 60.0)
        self.assertEqual(len(deltas), 1)
        self.assertEqual(deltas[0][0], 1)
        self.assertAlmostEqual(deltas[0][1], -0.069 * 60.0)
        self.assertAlmostEqual(boundary.quantity_moved, 0.069 * 60.0)
        self.assertEqual(boundary.rate, 0.069)

    def test_flux_larger_than_cell_raises(self):
        cells = _channel(water=1.0)
        boundary = WaterTransport(2, upstream=1, downstream=None, discharge=0.069)
        with self.assertRaises(NegativeMassError) as ctx:
            boundary.compute_deltas(cells, 60.0)
        self.assertEqual(ctx.exception.boundary, 2)
        self.assertIn("time step", str(ctx.exception))
        self.assertEqual(boundary.quantity_moved, 0.0)

    def test_invalid_definitions(self):
        with self.assertRaises(ConfigurationError):
            WaterTransport(1, upstream=None, downstream=None, discharge=1.0)
        with self.assertRaises(ConfigurationError):
            WaterTransport(1, upstream=3, downstream=3, discharge=1.0)
        with self.assertRaises(ConfigurationError):
            WaterTransport(1, upstream=None, downstream=3, discharge=-1.0)


class SoluteTransportTests(unittest.TestCase):
    def test_outflow_carries_upstream_concentration(self):
        cells = _channel(water=50.0, solute=100.0)
        water = WaterTransport(2, upstream=1, downstream=None, discharge=0.5)
        solute = SoluteTransport(4, "NO3", upstream=2, downstream=None, water_boundary=2)
        solute.bind(water)
        deltas = solute.compute_deltas(cells, 10.0)
        self.assertEqual(deltas, [(2, -10.0)])
        self.assertEqual(solute.load, 1.0)
        self.assertEqual(solute.discharge, 0.5)

    def test_inflow_by_load_or_concentration(self):
        cells = _channel()
        water = WaterTransport(1, upstream=None, downstream=1, discharge=0.069)
        by_load = SoluteTransport(3, "NO3", upstream=None, downstream=2, water_boundary=1, load=1.3317)
        by_conc = SoluteTransport(5, "NO3", upstream=None, downstream=2, water_boundary=1, concentration=19.3)
        by_load.bind(water)
        by_conc.bind(water)
        self.assertAlmostEqual(by_load.compute_deltas(cells, 60.0)[0][1], 1.3317 * 60.0)
        self.assertAlmostEqual(by_conc.compute_deltas(cells, 60.0)[0][1], 1.3317 * 60.0)

    def test_definition_problems_are_collected(self):
        with self.assertRaises(ConfigurationError) as ctx:
            SoluteTransport(3, "NO3", upstream=None, downstream=2, load=-1.0, concentration=-2.0)
        self.assertGreaterEqual(len(ctx.exception.problems), 2)
        with self.assertRaises(ConfigurationError):
            SoluteTransport(4, "NO3", upstream=2, downstream=None)


class PowerLawReactionTests(unittest.TestCase):
    def _reaction(self, **overrides):
        params = dict(
            index=5,
            cell=2,
            alpha=1.6,
            k=1e-5,
            vol_water_in_storage=50.0,
            tau_min=60.0,
            tau_max=365 * 86400.0,
        )
        params.update(overrides)
        return PowerLawReaction(**params)

    def test_fractions_are_complementary(self):
        cells = _channel()
        reaction = self._reaction()
        reaction.bind(cells[2])
        reaction.compute_deltas(cells, 60.0)
        self.assertAlmostEqual(reaction.fraction_removed + reaction.fraction_remaining, 1.0, places=14)
        self.assertAlmostEqual(
            reaction.fraction_removed_storage + reaction.fraction_remaining_storage, 1.0, places=14
        )
        self.assertAlmostEqual(reaction.fraction_remaining, math.exp(-reaction.damkohler_num), places=14)
        self.assertEqual(reaction.currency, "NO3")

    def test_amounts(self):
        cells = _channel()
        reaction = self._reaction()
        reaction.bind(cells[2])
        starting = cells[2].amount
        deltas = reaction.compute_deltas(cells, 60.0)
        self.assertEqual(reaction.starting_amount, starting)
        self.assertGreater(reaction.amount_to_remove, 0.0)
        self.assertAlmostEqual(reaction.amount_to_remove + reaction.amount_to_remain, starting)
        self.assertEqual(deltas, [(2, -reaction.amount_to_remove)])
        expected = reaction.q_storage * 60.0 / 52.5 * reaction.fraction_removed_storage
        self.assertAlmostEqual(reaction.fraction_removed, expected, places=12)

    def test_zero_rate_removes_nothing(self):
        cells = _channel()
        reaction = self._reaction(k=0.0)
        reaction.compute_deltas(cells, 60.0)
        self.assertEqual(reaction.damkohler_num_storage, 0.0)
        self.assertEqual(reaction.amount_to_remove, 0.0)
        self.assertEqual(reaction.fraction_remaining, 1.0)

    def test_no_water_no_removal(self):
        cells = _channel(water=0.0, solute=3.0)
        reaction = self._reaction()
        reaction.compute_deltas(cells, 60.0)
        self.assertEqual(reaction.amount_to_remove, 0.0)

    def test_exchange_above_one_channel_volume_raises(self):
        cells = _channel()
        reaction = self._reaction(vol_water_in_storage=1e7)
        with self.assertRaises(NegativeMassError) as ctx:
            reaction.compute_deltas(cells, 60.0)
        self.assertEqual(ctx.exception.boundary, 5)

    def test_domain_errors_name_the_boundary(self):
        with self.assertRaises(NumericDomainError) as ctx:
            self._reaction(alpha=2.0)
        self.assertEqual(ctx.exception.boundary, 5)
        self.assertEqual(ctx.exception.parameter, "alpha")
        with self.assertRaises(NumericDomainError) as ctx:
            self._reaction(tau_max=math.inf)
        self.assertEqual(ctx.exception.parameter, "tau_max")

    def test_bind_rejects_water_cell(self):
        cells = _channel()
        with self.assertRaises(ConfigurationError):
            self._reaction().bind(cells[1])


if __name__ == "__main__":
    unittest.main()
