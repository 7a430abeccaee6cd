import os
import unittest

from gridsim.base.resource_class import PE, Machine, MachineList, ResourceCharacteristics, ResourceError, \
    build_machine_list
from gridsim.utils.misc import load_config

DATA_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data')


class ResourceTests(unittest.TestCase):

    def init_characteristics(self, policy=ResourceCharacteristics.SPACE_SHARED):
        config = load_config(os.path.join(DATA_PATH, 'system.config'))
        machine_list = build_machine_list(config['groups'], config['resources'])
        return ResourceCharacteristics(config['architecture'], config['os'], machine_list, policy,
                                       config['time_zone'], config['cost_per_sec'])

    def test_build_machine_list(self):
        characteristics = self.init_characteristics()
        machine_list = characteristics.machine_list
        self.assertEqual(len(machine_list), 3)
        self.assertEqual([m.id for m in machine_list], [0, 1, 2])
        self.assertEqual(machine_list.num_pe, 10)
        self.assertEqual(machine_list.mips_rating, 2 * 4 * 377 + 2 * 100)
        self.assertEqual(machine_list.get_machine(2).num_pe, 2)

    def test_undefined_group(self):
        with self.assertRaises(AssertionError):
            build_machine_list({'quad': {'pe': 4, 'mips': 377}}, {'octo': 1})

    def test_ratings(self):
        space_shared = self.init_characteristics()
        time_shared = self.init_characteristics(ResourceCharacteristics.TIME_SHARED)
        self.assertEqual(space_shared.mips_rating_of_one_pe, 377)
        self.assertEqual(space_shared.mips_rating, 3216)
        self.assertEqual(time_shared.mips_rating, 3770)
        self.assertAlmostEqual(space_shared.cost_per_mi, 3.0 / 377)

    def test_cpu_time(self):
        space_shared = self.init_characteristics()
        time_shared = self.init_characteristics(ResourceCharacteristics.TIME_SHARED)
        self.assertEqual(space_shared.cpu_time(377, 0.5), 0.0)
        self.assertAlmostEqual(time_shared.cpu_time(377, 0.5), 2.0)

    def test_time_zone(self):
        characteristics = self.init_characteristics()
        self.assertEqual(characteristics.time_zone, 9.0)
        characteristics = ResourceCharacteristics('x86', 'Linux', MachineList([Machine(0, [PE(0, 10)])]),
                                                  ResourceCharacteristics.TIME_SHARED, 20, 1.0)
        self.assertEqual(characteristics.time_zone, 0)

    def test_without_pe(self):
        with self.assertRaises(ResourceError):
            ResourceCharacteristics('x86', 'Linux', MachineList(), ResourceCharacteristics.SPACE_SHARED, 0, 1.0)

    def test_free_pe(self):
        characteristics = self.init_characteristics()
        machine_list = characteristics.machine_list
        self.assertEqual(machine_list.get_free_pe(), (0, 0))
        machine_list.set_status_pe(PE.BUSY, 0, 0)
        self.assertEqual(machine_list.get_free_pe(), (0, 1))
        self.assertEqual(characteristics.num_busy_pe, 1)
        self.assertEqual(characteristics.num_free_pe, 9)

    def test_failed_machine(self):
        characteristics = self.init_characteristics()
        machine_list = characteristics.machine_list
        self.assertTrue(characteristics.is_working())
        for machine in machine_list[:2]:
            machine.set_failed(True)
        self.assertFalse(characteristics.is_working())
        self.assertEqual(characteristics.num_failed_machines, 2)
        self.assertEqual(characteristics.num_free_pe, 2)
        self.assertEqual(machine_list.get_free_pe(), (2, 0))
        machine_list[0].set_failed(False)
        self.assertEqual(machine_list.get_free_pe(), (0, 0))


if __name__ == '__main__':
    unittest.main()
