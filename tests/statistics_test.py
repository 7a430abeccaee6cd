import unittest
from math import isnan

from gridsim.base.statistics_class import Accumulator, Stat


class AccumulatorTests(unittest.TestCase):

    def test_empty(self):
        acc = Accumulator()
        self.assertEqual(acc.count, 0)
        self.assertTrue(isnan(acc.mean))
        self.assertTrue(isnan(acc.variance))
        self.assertTrue(isnan(acc.sum))

    def test_single_value(self):
        acc = Accumulator()
        acc.add(4.0)
        self.assertEqual(acc.mean, 4.0)
        self.assertEqual(acc.variance, 0.0)
        self.assertEqual(acc.sum, 4.0)

    def test_values(self):
        acc = Accumulator()
        for value in (2, 4, 4, 4, 5, 5, 7, 9):
            acc.add(value)
        self.assertEqual(acc.count, 8)
        self.assertAlmostEqual(acc.mean, 5.0)
        self.assertAlmostEqual(acc.variance, 4.0)
        self.assertAlmostEqual(acc.standard_deviation, 2.0)
        self.assertEqual((acc.min, acc.max, acc.last), (2, 9, 9))
        self.assertAlmostEqual(acc.sum, 40.0)

    def test_repeated_value(self):
        acc = Accumulator()
        acc.add(1.0)
        acc.add(3.0, times=3)
        acc.add(100.0, times=0)
        self.assertEqual(acc.count, 4)
        self.assertAlmostEqual(acc.mean, 2.5)


class StatTests(unittest.TestCase):

    def test_numeric(self):
        self.assertEqual(Stat(0, 'c', 'n', 3).numeric(), 3.0)
        self.assertEqual(Stat(0, 'c', 'n', '2.5').numeric(), 2.5)
        self.assertEqual(Stat(0, 'c', 'n', True).numeric(), 1.0)
        self.assertIsNone(Stat(0, 'c', 'n', 'text').numeric())
        self.assertIsNone(Stat(0, 'c', 'n', None).numeric())

    def test_str(self):
        self.assertEqual(str(Stat(1.5, 'USER.Cost', 'User_0', 10)), '1.5;USER.Cost;User_0;10')


if __name__ == '__main__':
    unittest.main()
