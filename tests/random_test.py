import unittest

from gridsim.utils.random_class import GridSimRandom


class RandomTests(unittest.TestCase):

    def test_real(self):
        self.assertAlmostEqual(GridSimRandom.real(100, 0.2, 0.3, 0.0), 80)
        self.assertAlmostEqual(GridSimRandom.real(100, 0.2, 0.3, 1.0), 130)
        self.assertAlmostEqual(GridSimRandom.real(100, 0.2, 0.3, 0.5), 105)

    def test_invalid_factors(self):
        with self.assertRaises(ValueError):
            GridSimRandom.real(100, 1.0, 0.3, 0.5)
        with self.assertRaises(ValueError):
            GridSimRandom.real(100, 0.2, 1.5, 0.5)
        with self.assertRaises(ValueError):
            GridSimRandom.real(-1, 0.2, 0.3, 0.5)
        with self.assertRaises(ValueError):
            GridSimRandom(less_factor_io=-0.1)

    def test_seeded_samples(self):
        a = GridSimRandom(seed=11, less_factor_exec=0.1, more_factor_exec=0.2)
        b = GridSimRandom(seed=11, less_factor_exec=0.1, more_factor_exec=0.2)
        samples = [a.real_exec(1000) for _ in range(20)]
        self.assertEqual(samples, [b.real_exec(1000) for _ in range(20)])
        self.assertTrue(all(900 <= s <= 1200 for s in samples))
        self.assertAlmostEqual(a.factor_exec, 0.05)
        self.assertTrue(0 <= a.int_sample(10) < 10)
        self.assertTrue(0 <= a.double_sample() < 1)

    def test_expected(self):
        self.assertAlmostEqual(GridSimRandom.expected(100, 0.2, 0.4), 110)
        rand = GridSimRandom(less_factor_io=0.2, more_factor_io=0.4)
        self.assertAlmostEqual(rand.factor_io, 0.1)


if __name__ == '__main__':
    unittest.main()
