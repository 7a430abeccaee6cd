import os
import shutil
import tempfile
import unittest

from itertools import chain, repeat
from unittest import mock

from gridsim.base.event_class import EntityError, SimEntity
from gridsim.base.failure_class import FailureGenerator
from gridsim.base.grid_resource_class import GridResource, ARGridResource
from gridsim.base.gridlet_class import Gridlet
from gridsim.base.resource_class import PE, Machine, MachineList, ResourceCharacteristics
from gridsim.base.simulator_class import Simulator, SimulationError
from gridsim.base.tags import GridletStatus
from gridsim.base.user_class import GridUser
from gridsim.utils.misc import CONSTANT

DATA_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data')


class ScriptedUser(GridUser):
    """

    User that runs a script (a generator function receiving the user) and then shuts down.

    """

    def __init__(self, name, simulator, script):
        GridUser.__init__(self, name, simulator)
        self.script = script
        self.results = {}

    def body(self):
        yield from self.script(self)
        self.shutdown_user()


class Messenger(SimEntity):
    """

    Sends a single I/O event to its peer, or waits for it when it has no peer.

    """

    def __init__(self, name, simulator, baud_rate=None, peer=None):
        SimEntity.__init__(self, name, simulator, baud_rate)
        self.peer = peer
        self.received = None

    def body(self):
        if self.peer is not None:
            self.send_io(self.peer, 2, 9001, 'payload', 100)
        else:
            self.received = yield from self.receive(lambda ev: ev.tag == 9001)


def create_characteristics(num_machines=1, num_pe=1, mips=100, policy=ResourceCharacteristics.SPACE_SHARED,
                           cost_per_sec=1.0):
    machine_list = MachineList(Machine(i, [PE(j, mips) for j in range(num_pe)]) for i in range(num_machines))
    return ResourceCharacteristics('x86', 'Linux', machine_list, policy, 0.0, cost_per_sec)


class SimulationTests(unittest.TestCase):

    def setUp(self):
        CONSTANT().clean_constants()
        self.results_path = tempfile.mkdtemp()

    def tearDown(self):
        CONSTANT().clean_constants()
        shutil.rmtree(self.results_path, ignore_errors=True)

    def create_simulator(self, num_user=1, **kwargs):
        kwargs.setdefault('gridlet_output', False)
        kwargs.setdefault('statistics_output', False)
        return Simulator(num_user, RESULTS_FOLDER_PATH=self.results_path, show_statistics=False,
                         LOG_LEVEL='WARNING', **kwargs)

    def run_user(self, script, resources=({},), **kwargs):
        """

        Creates the resources (one per dict of characteristics parameters), a single scripted user and runs the
        simulation.

        :return: A tuple (simulator, resources, user)

        """
        sim = self.create_simulator(**kwargs)
        _resources = [GridResource('Resource_{}'.format(i), sim, create_characteristics(**params))
                      for i, params in enumerate(resources)]
        user = ScriptedUser('User_0', sim, script)
        sim.start_simulation()
        return sim, _resources, user

    def test_space_shared_fcfs(self):
        def script(user):
            resource_id = (yield from user.get_resource_list())[0]
            gridlets = [Gridlet(i, 1000, 100, 100) for i in range(2)]
            for gridlet in gridlets:
                yield from user.gridlet_submit(gridlet, resource_id)
            for _ in gridlets:
                gridlet = yield from user.gridlet_receive()
                user.results[gridlet.id] = gridlet

        sim, resources, user = self.run_user(script)
        first, second = user.results[0], user.results[1]
        self.assertEqual(first.status, GridletStatus.SUCCESS)
        self.assertEqual(second.status, GridletStatus.SUCCESS)
        self.assertAlmostEqual(first.finish_time, 10)
        self.assertAlmostEqual(second.finish_time, 20)
        self.assertAlmostEqual(second.exec_start_time, 10)
        self.assertAlmostEqual(second.waiting_time, 10)
        self.assertAlmostEqual(second.wall_clock_time, 20)
        self.assertAlmostEqual(second.actual_cpu_time, 10)
        self.assertAlmostEqual(second.processing_cost, 10)
        self.assertEqual(second.resource_id, resources[0].id)
        self.assertEqual(sim.returned_gridlets, 2)
        self.assertEqual(sim.successful_gridlets, 2)

    def test_time_shared(self):
        def script(user):
            resource_id = (yield from user.get_resource_list())[0]
            for i in range(2):
                yield from user.gridlet_submit(Gridlet(i, 1000, 100, 100), resource_id)
            for _ in range(2):
                gridlet = yield from user.gridlet_receive()
                user.results[gridlet.id] = gridlet

        _, _, user = self.run_user(script, ({'policy': ResourceCharacteristics.TIME_SHARED},))
        for gridlet in user.results.values():
            self.assertEqual(gridlet.status, GridletStatus.SUCCESS)
            self.assertAlmostEqual(gridlet.finish_time, 20)
            self.assertAlmostEqual(gridlet.actual_cpu_time, 20)

    def test_parallel_gridlet(self):
        def script(user):
            resource_id = (yield from user.get_resource_list())[0]
            user.results['accepted'] = yield from user.gridlet_submit(Gridlet(0, 1000, 100, 100, num_pe=2), resource_id, ack=True)
            user.results['rejected'] = yield from user.gridlet_submit(Gridlet(1, 1000, 100, 100, num_pe=3), resource_id, ack=True)
            for _ in range(2):
                gridlet = yield from user.gridlet_receive()
                user.results[gridlet.id] = gridlet

        _, _, user = self.run_user(script, ({'num_pe': 2},))
        self.assertTrue(user.results['accepted'])
        self.assertFalse(user.results['rejected'])
        self.assertAlmostEqual(user.results[0].finish_time, 5)
        self.assertEqual(user.results[1].status, GridletStatus.FAILED)

    def test_resource_queries(self):
        def script(user):
            resource_id = (yield from user.get_resource_list())[0]
            user.results['ar'] = yield from user.get_ar_resource_list()
            user.results['num_pe'] = yield from user.get_num_pe(resource_id)
            characteristics = yield from user.get_resource_characteristics(resource_id)
            user.results['os'] = characteristics.os
            yield from user.gridlet_submit(Gridlet(0, 1000, 100, 100), resource_id)
            yield from user.hold(1)
            user.results['free_pe'] = yield from user.get_num_free_pe(resource_id)
            user.results['poll'] = yield from user.poll_resource(resource_id)
            user.results['invalid'] = yield from user.get_num_pe(999)
            yield from user.gridlet_receive()

        _, resources, user = self.run_user(script, ({'num_machines': 2, 'num_pe': 2},))
        self.assertEqual(user.results['ar'], [])
        self.assertEqual(user.results['num_pe'], 4)
        self.assertEqual(user.results['os'], 'Linux')
        self.assertEqual(user.results['free_pe'], 3)
        self.assertTrue(user.results['poll'].available)
        self.assertEqual(user.results['poll'].res_id, resources[0].id)
        self.assertEqual(user.results['invalid'], -1)

    def test_gridlet_status(self):
        def script(user):
            resource_id = (yield from user.get_resource_list())[0]
            user.results['ack'] = yield from user.gridlet_submit(Gridlet(0, 1000, 100, 100), resource_id, ack=True)
            yield from user.gridlet_submit(Gridlet(1, 1000, 100, 100), resource_id, ack=True)
            yield from user.hold(5)
            user.results['running'] = yield from user.gridlet_status(0, resource_id)
            user.results['queued'] = yield from user.gridlet_status(1, resource_id)
            user.results['unknown'] = yield from user.gridlet_status(7, resource_id)
            for _ in range(2):
                yield from user.gridlet_receive()

        _, _, user = self.run_user(script)
        self.assertTrue(user.results['ack'])
        self.assertEqual(user.results['running'], GridletStatus.INEXEC)
        self.assertEqual(user.results['queued'], GridletStatus.QUEUED)
        self.assertEqual(user.results['unknown'], -1)

    def test_invalid_submission(self):
        def script(user):
            gis_id = user.simulator.gis.id
            user.results['missing'] = yield from user.gridlet_submit(Gridlet(0, 1000, 100, 100), 999)
            user.results['not_resource'] = yield from user.gridlet_submit(Gridlet(1, 1000, 100, 100), gis_id)
            user.results['status'] = yield from user.gridlet_status(0, gis_id)

        _, _, user = self.run_user(script)
        self.assertFalse(user.results['missing'])
        self.assertFalse(user.results['not_resource'])
        self.assertEqual(user.results['status'], -1)

    def test_cancel(self):
        def script(user):
            resource_id = (yield from user.get_resource_list())[0]
            yield from user.gridlet_submit(Gridlet(0, 1000, 100, 100), resource_id)
            yield from user.gridlet_submit(Gridlet(1, 1000, 100, 100), resource_id)
            yield from user.hold(4)
            user.results['running'] = yield from user.gridlet_cancel(0, resource_id)
            user.results['unknown'] = yield from user.gridlet_cancel(9, resource_id)
            user.results['returned'] = yield from user.gridlet_receive()

        _, _, user = self.run_user(script)
        cancelled = user.results['running']
        self.assertEqual(cancelled.status, GridletStatus.CANCELED)
        self.assertAlmostEqual(cancelled.finished_so_far, 400)
        self.assertAlmostEqual(cancelled.actual_cpu_time, 4)
        self.assertIsNone(user.results['unknown'])
        # The queued gridlet starts when the cancelled one releases the PE
        returned = user.results['returned']
        self.assertEqual(returned.id, 1)
        self.assertAlmostEqual(returned.exec_start_time, 4)
        self.assertAlmostEqual(returned.finish_time, 14)

    def test_pause_resume(self):
        def script(user):
            resource_id = (yield from user.get_resource_list())[0]
            yield from user.gridlet_submit(Gridlet(0, 1000, 100, 100), resource_id)
            yield from user.hold(2)
            user.results['pause'] = yield from user.gridlet_pause(0, resource_id)
            user.results['paused'] = yield from user.gridlet_status(0, resource_id)
            yield from user.hold(3)
            user.results['resume'] = yield from user.gridlet_resume(0, resource_id)
            user.results['resume_again'] = yield from user.gridlet_resume(0, resource_id)
            user.results['gridlet'] = yield from user.gridlet_receive(0)

        _, _, user = self.run_user(script)
        self.assertTrue(user.results['pause'])
        self.assertEqual(user.results['paused'], GridletStatus.PAUSED)
        self.assertTrue(user.results['resume'])
        self.assertFalse(user.results['resume_again'])
        gridlet = user.results['gridlet']
        self.assertEqual(gridlet.status, GridletStatus.SUCCESS)
        self.assertAlmostEqual(gridlet.finish_time, 13)
        self.assertAlmostEqual(gridlet.actual_cpu_time, 10)
        self.assertAlmostEqual(gridlet.wall_clock_time, 13)

    def test_move(self):
        def script(user):
            source, destination = yield from user.get_resource_list()
            yield from user.gridlet_submit(Gridlet(0, 1000, 100, 100), source)
            yield from user.hold(5)
            user.results['moved'] = yield from user.gridlet_move(0, source, destination)
            user.results['missing'] = yield from user.gridlet_move(5, source, destination)
            user.results['gridlet'] = yield from user.gridlet_receive(0, destination)

        _, resources, user = self.run_user(script, ({}, {'mips': 200}))
        self.assertTrue(user.results['moved'])
        self.assertFalse(user.results['missing'])
        gridlet = user.results['gridlet']
        self.assertEqual(gridlet.status, GridletStatus.SUCCESS)
        self.assertEqual(gridlet.resource_ids, [resources[0].id, resources[1].id])
        self.assertAlmostEqual(gridlet.get_finished_so_far(resources[0].id), 500)
        self.assertAlmostEqual(gridlet.finish_time, 10)

    def test_machine_failure(self):
        sim = self.create_simulator()
        resource = GridResource('Resource_0', sim, create_characteristics(num_machines=2))
        resource.schedule_failure(4, num_machines=1)

        def script(user):
            for i in range(2):
                yield from user.gridlet_submit(Gridlet(i, 1000, 100, 100), resource.id)
            for _ in range(2):
                gridlet = yield from user.gridlet_receive()
                user.results[gridlet.id] = gridlet
            user.results['resources'] = yield from user.get_resource_list()

        user = ScriptedUser('User_0', sim, script)
        sim.start_simulation()
        failed, finished = user.results[0], user.results[1]
        self.assertEqual(failed.status, GridletStatus.FAILED_RESOURCE_UNAVAILABLE)
        self.assertAlmostEqual(failed.finished_so_far, 400)
        self.assertEqual(finished.status, GridletStatus.SUCCESS)
        self.assertAlmostEqual(finished.finish_time, 10)
        self.assertEqual(user.results['resources'], [resource.id])
        self.assertEqual(resource.characteristics.num_failed_machines, 1)

    def test_resource_failure_and_recovery(self):
        sim = self.create_simulator()
        resource = GridResource('Resource_0', sim, create_characteristics())
        resource.schedule_failure(2, duration=5)

        def script(user):
            user.results['before'] = yield from user.get_resource_list()
            yield from user.gridlet_submit(Gridlet(0, 1000, 100, 100), resource.id)
            user.results[0] = yield from user.gridlet_receive(0)
            yield from user.hold(1)
            user.results['down'] = yield from user.get_resource_list()
            user.results['poll_down'] = yield from user.poll_resource(resource.id)
            user.results['ack_down'] = yield from user.gridlet_submit(Gridlet(1, 1000, 100, 100), resource.id, ack=True)
            user.results[1] = yield from user.gridlet_receive(1)
            yield from user.hold(6)
            user.results['after'] = yield from user.get_resource_list()
            user.results['poll_up'] = yield from user.poll_resource(resource.id)
            yield from user.gridlet_submit(Gridlet(2, 1000, 100, 100), resource.id)
            user.results[2] = yield from user.gridlet_receive(2)

        user = ScriptedUser('User_0', sim, script)
        sim.start_simulation()
        self.assertEqual(user.results['before'], [resource.id])
        self.assertEqual(user.results[0].status, GridletStatus.FAILED_RESOURCE_UNAVAILABLE)
        self.assertAlmostEqual(user.results[0].finished_so_far, 200)
        self.assertEqual(user.results['down'], [])
        self.assertFalse(user.results['poll_down'].available)
        self.assertFalse(user.results['ack_down'])
        self.assertEqual(user.results[1].status, GridletStatus.FAILED_RESOURCE_UNAVAILABLE)
        self.assertEqual(user.results['after'], [resource.id])
        self.assertTrue(user.results['poll_up'].available)
        self.assertEqual(user.results[2].status, GridletStatus.SUCCESS)
        self.assertAlmostEqual(user.results[2].finish_time, 19)

    def test_ar_resource_list(self):
        sim = self.create_simulator()
        plain = GridResource('Resource_0', sim, create_characteristics())
        ar_resource = ARGridResource('Resource_1', sim,
                                     create_characteristics(policy=ResourceCharacteristics.ADVANCE_RESERVATION))

        def script(user):
            user.results['all'] = yield from user.get_resource_list()
            user.results['ar'] = yield from user.get_ar_resource_list()

        user = ScriptedUser('User_0', sim, script)
        sim.start_simulation()
        self.assertEqual(sorted(user.results['all']), [plain.id, ar_resource.id])
        self.assertEqual(user.results['ar'], [ar_resource.id])

    def test_statistics(self):
        def script(user):
            user.record_statistics('USER.Cost', 5)
            user.record_statistics('USER.Cost', 7)
            user.record_statistics('IGNORED.Value', 1)
            user.results['stats'] = yield from user.get_stat_list()
            user.results['acc'] = yield from user.get_accumulated_statistics('USER.Cost')

        _, _, user = self.run_user(script, (), exclude_from_processing=['IGNORED.*'])
        self.assertEqual(len(user.results['stats']), 2)
        self.assertEqual(user.results['acc'].count, 2)
        self.assertAlmostEqual(user.results['acc'].mean, 6)

    def test_output_files(self):
        def script(user):
            resource_id = (yield from user.get_resource_list())[0]
            for i in range(2):
                yield from user.gridlet_submit(Gridlet(i, 1000, 100, 100), resource_id)
            for _ in range(2):
                yield from user.gridlet_receive()

        sim = self.create_simulator(gridlet_output=True, statistics_output=True, benchmark_output=True)
        GridResource('Resource_0', sim, create_characteristics())
        ScriptedUser('User_0', sim, script)
        filepaths = sim.start_simulation()
        self.assertEqual(sorted(filepaths), ['bench-', 'sched-', 'stats-'])
        with open(filepaths['sched-']) as f:
            lines = f.read().splitlines()
        self.assertEqual(len(lines), 2)
        fields = lines[1].split(';')
        self.assertEqual(fields[0], '1')
        self.assertEqual(fields[3], 'Success')
        self.assertEqual(fields[8], '20.00')
        with open(filepaths['stats-']) as f:
            stats = f.read()
        self.assertIn('Returned gridlets: 2', stats)
        self.assertIn('Avg. waiting times: 5.00', stats)
        with open(filepaths['bench-']) as f:
            self.assertGreater(len(f.read().splitlines()), 0)
        # Constants are released at the end of the simulation
        self.assertIsNone(CONSTANT().get('SIMULATION_NAME'))

    def test_simulator_config(self):
        with self.create_simulator(simulator_config=os.path.join(DATA_PATH, 'simulator.config'), AR_COMMIT_PERIOD=60):
            constants = CONSTANT()
            self.assertEqual(constants.SIMULATION_NAME, 'config_test')
            self.assertEqual(constants.EXTRA_PARAMETER, (1, 2))
            self.assertEqual(constants.AR_COMMIT_PERIOD, 60)
            self.assertEqual(constants.SCHED_PREFIX, 'sched-')
        self.assertIsNone(CONSTANT().get('SIMULATION_NAME'))

    def test_entity_registry(self):
        sim = self.create_simulator()
        resource = GridResource('Resource_0', sim, create_characteristics())
        self.assertEqual([sim.gis.id, sim.statistics.id, sim.shutdown.id], [0, 1, 2])
        self.assertIs(sim.get_entity('Resource_0'), resource)
        self.assertIs(sim.get_entity(resource.id), resource)
        self.assertEqual(sim.get_entity_name(resource.id), 'Resource_0')
        with self.assertRaises(EntityError):
            GridResource('Resource_0', sim, create_characteristics())
        with self.assertRaises(EntityError):
            sim.get_entity('Unknown')
        sim.close()
        self.assertTrue(sim.closed)
        with self.assertRaises(SimulationError):
            sim.start_simulation()

    def test_inbox_operations(self):
        def script(user):
            user.send(user, 0, 9001, 'a')
            user.send(user, 0, 9002, 'b')
            user.send(user, 0, 9001, 'c')
            yield from user.hold(1)
            own = lambda ev: ev.tag in (9001, 9002)
            user.results['waiting'] = user.waiting(own)
            user.results['selected'] = user.select(lambda ev: ev.tag == 9002)
            user.results['missing'] = user.select(lambda ev: ev.tag == 9003)
            user.results['cancelled'] = user.cancel(lambda ev: ev.tag == 9001)
            user.results['left'] = user.waiting(own)

        _, _, user = self.run_user(script)
        self.assertEqual(user.results['waiting'], 3)
        self.assertEqual(user.results['selected'].data, 'b')
        self.assertEqual(user.results['selected'].time, 0)
        self.assertIsNone(user.results['missing'])
        self.assertEqual(user.results['cancelled'], 2)
        self.assertEqual(user.results['left'], 0)

    def test_error_propagation(self):
        def script(user):
            yield from user.hold(1)
            raise ValueError('Broken user')

        with self.assertRaises(ValueError):
            self.run_user(script)
        self.assertIsNone(CONSTANT().get('SIMULATION_NAME'))

    def test_run_once(self):
        def script(user):
            yield from user.hold(1)

        sim, _, _ = self.run_user(script)
        self.assertAlmostEqual(sim.env.now, 1)
        with self.assertRaises(SimulationError):
            sim.start_simulation()

    def test_time_shared_uneven_share(self):
        def script(user):
            resource_id = (yield from user.get_resource_list())[0]
            for i in range(3):
                yield from user.gridlet_submit(Gridlet(i, 1000, 100, 100), resource_id)
            for _ in range(3):
                gridlet = yield from user.gridlet_receive()
                user.results[gridlet.id] = gridlet

        _, _, user = self.run_user(script, ({'num_pe': 2, 'policy': ResourceCharacteristics.TIME_SHARED},))
        finish_times = sorted(gridlet.finish_time for gridlet in user.results.values())
        self.assertAlmostEqual(finish_times[0], 10)
        self.assertAlmostEqual(finish_times[1], 15)
        self.assertAlmostEqual(finish_times[2], 15)
        for gridlet in user.results.values():
            self.assertEqual(gridlet.status, GridletStatus.SUCCESS)

    def test_transfer_time(self):
        with self.create_simulator() as sim:
            slow = Messenger('Slow', sim, baud_rate=800)
            fast = Messenger('Fast', sim, baud_rate=1600)
            silent = Messenger('Silent', sim)
            self.assertAlmostEqual(slow.transfer_time(fast, 100), 1.0)
            self.assertAlmostEqual(fast.transfer_time(slow, 100), 1.0)
            self.assertAlmostEqual(silent.transfer_time(fast, 100), 0.5)
            self.assertAlmostEqual(fast.transfer_time(silent, 100), 0.5)
            self.assertEqual(silent.transfer_time(silent, 100), 0.0)
            self.assertEqual(slow.transfer_time(fast, 0), 0.0)

    def test_send_io_delay(self):
        sim = self.create_simulator()
        receiver = Messenger('Receiver', sim, baud_rate=1600)
        Messenger('Sender', sim, baud_rate=800, peer=receiver)

        def script(user):
            yield from user.hold(0)

        ScriptedUser('User_0', sim, script)
        sim.start_simulation()
        self.assertEqual(receiver.received.data, 'payload')
        self.assertAlmostEqual(receiver.received.time, 3.0)

    def test_simulated_time_limit(self):
        sim = self.create_simulator()
        GridResource('Resource_0', sim, create_characteristics())

        def script(user):
            resource_id = (yield from user.get_resource_list())[0]
            yield from user.gridlet_submit(Gridlet(0, 1000, 100, 100), resource_id)
            user.results[0] = yield from user.gridlet_receive(0)

        user = ScriptedUser('User_0', sim, script)
        sim.start_simulation(until=5)
        self.assertLessEqual(sim.env.now, 5)
        self.assertNotIn(0, user.results)
        self.assertTrue(user.is_alive)
        self.assertEqual(sim.returned_gridlets, 0)
        self.assertIsNone(CONSTANT().get('SIMULATION_NAME'))

    def test_negative_time_limit(self):
        with self.create_simulator() as sim:
            with self.assertRaises(SimulationError):
                sim.start_simulation(until=-1)

    def test_wall_clock_timeout(self):
        sim = self.create_simulator(timeout=10)
        self.assertEqual(sim.timeout, 10)

        def script(user):
            for _ in range(1000):
                yield from user.hold(1)

        user = ScriptedUser('User_0', sim, script)
        # The first reading starts the wall clock and every later one is 100 secs after it
        with mock.patch('gridsim.base.simulator_class.time', side_effect=chain([0.0], repeat(100.0))):
            sim.start_simulation()
        self.assertLess(sim.env.now, 1000)
        self.assertTrue(user.is_alive)

    def test_closed_on_construction_error(self):
        with self.assertRaises(FileNotFoundError):
            self.create_simulator(simulator_config=os.path.join(DATA_PATH, 'missing.config'))
        with mock.patch('gridsim.base.simulator_class.GridInformationService', side_effect=RuntimeError('Broken GIS')):
            with self.assertRaises(RuntimeError):
                self.create_simulator()
        self.assertIsNone(CONSTANT().get('SIMULATION_NAME'))
        with self.create_simulator() as sim:
            self.assertFalse(sim.closed)
        self.assertTrue(sim.closed)
        self.assertIsNone(CONSTANT().get('SIMULATION_NAME'))

    def test_oversized_queued_gridlet_fails(self):
        sim = self.create_simulator()
        resource = GridResource('Resource_0', sim, create_characteristics(num_machines=2))
        resource.schedule_failure(1, num_machines=1)

        def script(user):
            for i, num_pe in enumerate((1, 1, 2, 1)):
                yield from user.gridlet_submit(Gridlet(i, 1000, 100, 100, num_pe=num_pe), resource.id)
            for _ in range(4):
                gridlet = yield from user.gridlet_receive()
                user.results[gridlet.id] = gridlet

        user = ScriptedUser('User_0', sim, script)
        sim.start_simulation()
        statuses = sorted(user.results[i].status for i in (0, 1))
        self.assertEqual(statuses, [GridletStatus.SUCCESS, GridletStatus.FAILED_RESOURCE_UNAVAILABLE])
        self.assertEqual(user.results[2].status, GridletStatus.FAILED_RESOURCE_UNAVAILABLE)
        self.assertAlmostEqual(user.results[2].wall_clock_time, 1)
        self.assertEqual(user.results[3].status, GridletStatus.SUCCESS)
        self.assertAlmostEqual(user.results[3].finish_time, 20)

    def test_queued_gridlet_waits_for_recovery(self):
        sim = self.create_simulator()
        resource = GridResource('Resource_0', sim, create_characteristics(num_machines=2))
        resource.schedule_failure(1, num_machines=1, duration=5)

        def script(user):
            for i, num_pe in enumerate((1, 1, 2)):
                yield from user.gridlet_submit(Gridlet(i, 1000, 100, 100, num_pe=num_pe), resource.id)
            for _ in range(3):
                gridlet = yield from user.gridlet_receive()
                user.results[gridlet.id] = gridlet

        user = ScriptedUser('User_0', sim, script)
        sim.start_simulation()
        self.assertEqual(user.results[2].status, GridletStatus.SUCCESS)
        self.assertAlmostEqual(user.results[2].exec_start_time, 10)
        self.assertAlmostEqual(user.results[2].finish_time, 15)
        self.assertFalse(resource.policy.recovery_pending)

    def create_failure_scenario(self, num_res_sampler, time_sampler, length_sampler, seed=3):
        sim = self.create_simulator()
        resources = [GridResource('Resource_{}'.format(i), sim, create_characteristics(num_machines=2))
                     for i in range(2)]
        generator = FailureGenerator('Failures', sim, num_res_sampler, time_sampler, length_sampler, seed=seed)

        def failed_machines():
            return sum(resource.characteristics.num_failed_machines for resource in resources)

        def script(user):
            yield from user.hold(12)
            user.results['failed'] = failed_machines()
            yield from user.hold(13)
            user.results['recovered'] = failed_machines()

        user = ScriptedUser('User_0', sim, script)
        sim.start_simulation()
        return resources, generator, user

    def test_failure_generator(self):
        resources, generator, user = self.create_failure_scenario(lambda r: 1, lambda r: 5, lambda r: 10)
        self.assertEqual(user.results['failed'], 1)
        self.assertEqual(user.results['recovered'], 0)
        self.assertEqual(len(generator.failures), 1)
        time, res_id, num_machines, length = generator.failures[0]
        self.assertAlmostEqual(time, 10)
        self.assertIn(res_id, [resource.id for resource in resources])
        self.assertEqual((num_machines, length), (1, 10))
        self.assertFalse(generator.is_alive)

    def test_failure_generator_without_failures(self):
        _, generator, user = self.create_failure_scenario(lambda r: 0, lambda r: 5, lambda r: 10)
        self.assertEqual(generator.failures, [])
        self.assertEqual(user.results['failed'], 0)
        self.assertFalse(generator.is_alive)

    def test_failure_generator_seed(self):
        def time_sampler(rand):
            return 1 + rand.double_sample() * 8

        failures = []
        for _ in range(2):
            _, generator, _ = self.create_failure_scenario(lambda r: 2, time_sampler, lambda r: -5, seed=7)
            failures.append(generator.failures)
        self.assertEqual(failures[0], failures[1])
        self.assertEqual(len(failures[0]), 2)
        for _, _, num_machines, length in failures[0]:
            self.assertEqual((num_machines, length), (2, 5))


if __name__ == '__main__':
    unittest.main()
