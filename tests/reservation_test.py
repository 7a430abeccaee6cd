import shutil
import tempfile
import unittest

from gridsim.base.allocator_class import SpaceShared
from gridsim.base.ar_allocator_class import ARSimpleSpaceShared
from gridsim.base.filter_class import FilterGridlet
from gridsim.base.grid_resource_class import GridResource, ARGridResource
from gridsim.base.gridlet_class import Gridlet
from gridsim.base.reservation_class import ARObject, AdvanceReservation, ReservationError
from gridsim.base.resource_class import PE, Machine, MachineList, ResourceCharacteristics, ResourceError
from gridsim.base.simulator_class import Simulator
from gridsim.base.tags import GridSimTags, GridletStatus
from gridsim.utils.misc import CONSTANT


class ScriptedARUser(AdvanceReservation):

    def __init__(self, name, simulator, script, time_zone=0.0):
        AdvanceReservation.__init__(self, name, simulator, time_zone=time_zone)
        self.script = script
        self.results = {}

    def body(self):
        yield from self.script(self)
        self.shutdown_user()


def create_characteristics(num_pe=2, policy=ResourceCharacteristics.ADVANCE_RESERVATION, num_machines=1):
    machine_list = MachineList([Machine(m, [PE(i, 100) for i in range(num_pe)]) for m in range(num_machines)])
    return ResourceCharacteristics('x86', 'Linux', machine_list, policy, 0.0, 1.0)


class ARObjectTests(unittest.TestCase):

    def test_booking_id(self):
        ar = ARObject(100, 50, 2, resource_id=3)
        self.assertIsNone(ar.booking_id)
        self.assertEqual(ar.end_time, 150)
        ar.set_reservation(7, 60)
        self.assertEqual(ar.booking_id, '3_7')
        self.assertEqual(ar.expiry_time, 60)
        with self.assertRaises(ReservationError):
            ar.set_reservation(0, 60)

    def test_gridlet_accounting(self):
        ar = ARObject(0, 10, 4)
        ar.add_gridlet(2)
        ar.add_gridlet(1)
        self.assertEqual((ar.total_gridlets, ar.total_pe_used), (2, 3))
        ar.remove_gridlet(2)
        ar.remove_gridlet(1)
        ar.remove_gridlet(1)
        self.assertEqual((ar.total_gridlets, ar.total_pe_used), (0, 0))

    def test_time_zones(self):
        self.assertEqual(ARObject.convert_time_zone(7300, 2.0, 0.0), 100)
        self.assertEqual(ARObject.convert_time_zone(0, -3.5, 0.0), 12600)
        ar = ARObject(100, 10, 1, time_zone=2.0)
        self.assertEqual(ar.local_start_time(), 7300)
        self.assertEqual(ar.local_start_time(0.0), 100)

    def test_copy(self):
        ar = ARObject(100, 10, 1)
        booking = ar.copy()
        booking.start_time = 200
        self.assertEqual(ar.start_time, 100)


class ReservationTests(unittest.TestCase):

    def setUp(self):
        CONSTANT().clean_constants()
        self.results_path = tempfile.mkdtemp()

    def tearDown(self):
        CONSTANT().clean_constants()
        shutil.rmtree(self.results_path, ignore_errors=True)

    def create_simulator(self):
        return Simulator(1, RESULTS_FOLDER_PATH=self.results_path, gridlet_output=False, statistics_output=False,
                         show_statistics=False, LOG_LEVEL='WARNING')

    def run_user(self, script, num_pe=2, policy=None, time_zone=0.0):
        sim = self.create_simulator()
        resource = ARGridResource('ARResource_0', sim, create_characteristics(num_pe), policy=policy)
        user = ScriptedARUser('ARUser_0', sim, script, time_zone)
        sim.start_simulation()
        return resource, user

    def test_commit_and_execute(self):
        def script(user):
            resource_id = (yield from user.get_ar_resource_list())[0]
            booking = yield from user.create_reservation(100, 50, 2, resource_id)
            user.results['booking'] = booking
            gridlets = [Gridlet(i, 1000, 100, 100) for i in range(2)]
            user.results['commit'] = yield from user.commit_reservation(booking, gridlets)
            user.results['not_started'] = yield from user.query_reservation(booking)
            for _ in gridlets:
                gridlet = yield from user.gridlet_receive()
                user.results[gridlet.id] = gridlet
            user.results['active'] = yield from user.query_reservation(booking)
            yield from user.hold(50)
            user.results['completed'] = yield from user.query_reservation(booking)

        resource, user = self.run_user(script)
        booking = user.results['booking']
        self.assertEqual(booking, '{}_1'.format(resource.id))
        self.assertEqual(user.get_booking(booking).expiry_time, 100)
        self.assertEqual(user.results['commit'], GridSimTags.AR_COMMIT_SUCCESS)
        self.assertEqual(user.results['not_started'], GridSimTags.AR_STATUS_NOT_STARTED)
        self.assertEqual(user.results['active'], GridSimTags.AR_STATUS_ACTIVE)
        self.assertEqual(user.results['completed'], GridSimTags.AR_STATUS_COMPLETED)
        self.assertEqual(user.get_booking(booking).status, GridSimTags.AR_STATUS_COMPLETED)
        for i in range(2):
            gridlet = user.results[i]
            self.assertEqual(gridlet.status, GridletStatus.SUCCESS)
            self.assertEqual(gridlet.reservation_id, 1)
            self.assertAlmostEqual(gridlet.exec_start_time, 100)
            self.assertAlmostEqual(gridlet.finish_time, 110)

    def test_create_errors(self):
        def script(user):
            resource_id = (yield from user.get_ar_resource_list())[0]
            user.results['first'] = yield from user.create_reservation(100, 50, 2, resource_id)
            user.results['overlap'] = yield from user.create_reservation(120, 10, 1, resource_id)
            user.results['after'] = yield from user.create_reservation(150, 50, 2, resource_id)
            user.results['too_many'] = yield from user.create_reservation(200, 10, 3, resource_id)
            user.results['no_pe'] = yield from user.create_reservation(200, 10, 0, resource_id)
            user.results['no_duration'] = yield from user.create_reservation(200, 0, 1, resource_id)
            user.results['no_resource'] = yield from user.create_reservation(200, 10, 1, 999)
            yield from user.hold(10)
            user.results['past'] = yield from user.create_reservation(5, 10, 1, resource_id)

        resource, user = self.run_user(script)
        self.assertEqual(user.results['first'], '{}_1'.format(resource.id))
        self.assertEqual(user.results['overlap'], GridSimTags.AR_CREATE_FAIL_RESOURCE_FULL_IN_30_SECS)
        self.assertEqual(user.results['after'], '{}_2'.format(resource.id))
        self.assertEqual(user.results['too_many'], GridSimTags.AR_CREATE_FAIL_RESOURCE_NOT_ENOUGH_PE)
        self.assertEqual(user.results['no_pe'], GridSimTags.AR_CREATE_ERROR_INVALID_NUM_PE)
        self.assertEqual(user.results['no_duration'], GridSimTags.AR_CREATE_ERROR_INVALID_DURATION_TIME)
        self.assertEqual(user.results['no_resource'], GridSimTags.AR_CREATE_ERROR_INVALID_RESOURCE_ID)
        self.assertEqual(user.results['past'], GridSimTags.AR_CREATE_ERROR_INVALID_START_TIME)
        self.assertEqual(len(user.bookings), 2)

    def test_busy_and_free_time(self):
        def script(user):
            resource_id = (yield from user.get_ar_resource_list())[0]
            yield from user.create_reservation(100, 50, 2, resource_id)
            yield from user.create_reservation(150, 50, 1, resource_id)
            user.results['busy'] = yield from user.query_busy_time(0, 300, resource_id)
            user.results['free'] = yield from user.query_free_time(0, 300, resource_id)

        _, user = self.run_user(script)
        self.assertEqual(user.results['busy'], [[100, 50, 2], [150, 50, 1]])
        self.assertEqual(user.results['free'], [[0, 100, 2], [100, 50, 0], [150, 50, 1], [200, 100, 2]])

    def test_expired_booking(self):
        def script(user):
            resource_id = (yield from user.get_ar_resource_list())[0]
            booking = yield from user.create_reservation(100, 50, 1, resource_id)
            user.results['booking'] = booking
            yield from user.hold(20)
            user.results['commit'] = yield from user.commit_reservation(booking, Gridlet(0, 1000, 100, 100))
            user.results['status'] = yield from user.query_reservation(booking)

        _, user = self.run_user(script, policy=ARSimpleSpaceShared(commit_period=10))
        self.assertEqual(user.get_booking(user.results['booking']).expiry_time, 10)
        self.assertEqual(user.results['commit'], GridSimTags.AR_COMMIT_FAIL_EXPIRED)
        self.assertEqual(user.results['status'], GridSimTags.AR_STATUS_EXPIRED)

    def test_cancel_reservation(self):
        def script(user):
            resource_id = (yield from user.get_ar_resource_list())[0]
            booking = yield from user.create_reservation(100, 50, 1, resource_id)
            yield from user.commit_reservation(booking, Gridlet(0, 1000, 100, 100))
            yield from user.hold(1)
            user.results['cancel'] = yield from user.cancel_reservation(booking)
            ev = yield from user.receive(FilterGridlet(0, tag=GridSimTags.GRIDLET_CANCEL))
            user.results['gridlet'] = ev.data
            user.results['status'] = yield from user.query_reservation(booking)
            user.results['invalid'] = yield from user.cancel_reservation('invalid')
            user.results['unknown'] = yield from user.query_reservation('{}_99'.format(resource_id))

        _, user = self.run_user(script)
        self.assertEqual(user.results['cancel'], GridSimTags.AR_CANCEL_SUCCESS)
        self.assertEqual(user.results['gridlet'].status, GridletStatus.CANCELED)
        self.assertEqual(user.results['status'], GridSimTags.AR_STATUS_CANCELED)
        self.assertEqual(user.results['invalid'], GridSimTags.AR_CANCEL_FAIL_INVALID_BOOKING_ID)
        self.assertEqual(user.results['unknown'], GridSimTags.AR_STATUS_RESERVATION_DOESNT_EXIST)

    def test_immediate_reservation(self):
        def script(user):
            resource_id = (yield from user.get_ar_resource_list())[0]
            booking = yield from user.create_immediate_reservation(50, 1, resource_id)
            user.results['booking'] = booking
            user.results['commit'] = yield from user.commit_reservation(booking, Gridlet(0, 1000, 100, 100))
            user.results['gridlet'] = yield from user.gridlet_receive(0)
            user.results['status'] = yield from user.query_reservation(booking)

        _, user = self.run_user(script, num_pe=1)
        ar = user.get_booking(user.results['booking'])
        self.assertEqual(ar.expiry_time, 50)
        self.assertEqual(user.results['commit'], GridSimTags.AR_COMMIT_SUCCESS)
        self.assertAlmostEqual(user.results['gridlet'].finish_time, 10)
        self.assertEqual(user.results['status'], GridSimTags.AR_STATUS_ACTIVE)

    def test_preemption(self):
        def script(user):
            resource_id = (yield from user.get_ar_resource_list())[0]
            yield from user.gridlet_submit(Gridlet(0, 1000, 100, 100), resource_id)
            booking = yield from user.create_reservation(5, 10, 1, resource_id)
            yield from user.commit_reservation(booking, Gridlet(1, 500, 100, 100))
            for _ in range(2):
                gridlet = yield from user.gridlet_receive()
                user.results[gridlet.id] = gridlet

        _, user = self.run_user(script, num_pe=1)
        normal, reserved = user.results[0], user.results[1]
        self.assertAlmostEqual(reserved.exec_start_time, 5)
        self.assertAlmostEqual(reserved.finish_time, 10)
        self.assertEqual(normal.status, GridletStatus.SUCCESS)
        self.assertAlmostEqual(normal.finish_time, 15)
        self.assertAlmostEqual(normal.actual_cpu_time, 10)

    def test_modify_not_supported(self):
        def script(user):
            resource_id = (yield from user.get_ar_resource_list())[0]
            booking = yield from user.create_reservation(100, 50, 1, resource_id)
            user.results['modify'] = yield from user.modify_reservation(booking, 200, 50, 1)
            user.results['invalid'] = yield from user.modify_reservation('invalid', 200, 50, 1)

        _, user = self.run_user(script)
        self.assertEqual(user.results['modify'], GridSimTags.AR_MODIFY_FAIL_RESOURCE_CANT_SUPPORT)
        self.assertEqual(user.results['invalid'], GridSimTags.AR_MODIFY_FAIL_INVALID_BOOKING_ID)

    def test_user_time_zone(self):
        def script(user):
            resource_id = (yield from user.get_ar_resource_list())[0]
            user.results['booking'] = yield from user.create_reservation(7300, 50, 1, resource_id)

        _, user = self.run_user(script, time_zone=2.0)
        ar = user.get_booking(user.results['booking'])
        self.assertEqual(ar.start_time, 100)
        self.assertEqual(ar.local_start_time(), 7300)

    def test_plain_resource(self):
        sim = self.create_simulator()
        resource = GridResource('Resource_0', sim, create_characteristics(1, ResourceCharacteristics.SPACE_SHARED))

        def script(user):
            user.results['create'] = yield from user.create_reservation(100, 10, 1, resource.id)
            user.results['commit'] = yield from user.commit_reservation('{}_1'.format(resource.id))
            user.results['query'] = yield from user.query_reservation('{}_1'.format(resource.id))
            user.results['free'] = yield from user.query_free_time(0, 100, resource.id)

        user = ScriptedARUser('ARUser_0', sim, script)
        sim.start_simulation()
        self.assertEqual(user.results['create'], GridSimTags.AR_CREATE_FAIL_RESOURCE_CANT_SUPPORT)
        self.assertEqual(user.results['commit'], GridSimTags.AR_COMMIT_ERROR_RESOURCE_CANT_SUPPORT)
        self.assertEqual(user.results['query'], GridSimTags.AR_STATUS_ERROR)
        self.assertIsNone(user.results['free'])
        with self.assertRaises(ReservationError):
            user.get_booking('{}_1'.format(resource.id))

    def test_ar_resource_requires_ar_policy(self):
        with self.create_simulator() as sim:
            with self.assertRaises(ResourceError):
                ARGridResource('ARResource_0', sim, create_characteristics(), policy=SpaceShared())
        self.assertIsNone(CONSTANT().get('SIMULATION_NAME'))
        sim = self.create_simulator()
        self.assertFalse(sim.closed)
        sim.close()
        sim.close()
        self.assertTrue(sim.closed)

    def test_free_time_merges_intervals(self):
        def script(user):
            resource_id = (yield from user.get_ar_resource_list())[0]
            yield from user.create_reservation(100, 50, 1, resource_id)
            yield from user.create_reservation(150, 50, 1, resource_id)
            yield from user.create_reservation(120, 40, 2, resource_id)
            user.results['free'] = yield from user.query_free_time(0, 300, resource_id)
            user.results['window'] = yield from user.query_free_time(130, 170, resource_id)

        _, user = self.run_user(script, num_pe=4)
        self.assertEqual(user.results['free'], [[0, 100, 4], [100, 20, 3], [120, 40, 1], [160, 40, 3], [200, 100, 4]])
        self.assertEqual(user.results['window'], [[130, 30, 1], [160, 10, 3]])

    def run_failure(self, script, machines=2, num_pe=1, **failure):
        sim = self.create_simulator()
        resource = ARGridResource('ARResource_0', sim, create_characteristics(num_pe, num_machines=machines))
        resource.schedule_failure(50, **failure)
        user = ScriptedARUser('ARUser_0', sim, script)
        sim.start_simulation()
        return resource, user

    @staticmethod
    def commit_and_wait(start_time, num_pe):
        def script(user):
            resource_id = (yield from user.get_ar_resource_list())[0]
            booking = yield from user.create_reservation(start_time, 50, num_pe, resource_id)
            user.results['commit'] = yield from user.commit_reservation(booking, Gridlet(0, 1000, 100, 100, num_pe=num_pe))
            user.results['gridlet'] = yield from user.gridlet_receive(0)
            user.results['time'] = user.clock()
        return script

    def test_reserved_gridlet_fails_with_resource(self):
        _, user = self.run_failure(self.commit_and_wait(100, 1))
        self.assertEqual(user.results['commit'], GridSimTags.AR_COMMIT_SUCCESS)
        self.assertEqual(user.results['gridlet'].status, GridletStatus.FAILED_RESOURCE_UNAVAILABLE)
        self.assertAlmostEqual(user.results['time'], 50)

    def test_reserved_gridlet_fails_without_enough_pe(self):
        _, user = self.run_failure(self.commit_and_wait(100, 2), num_machines=1)
        self.assertEqual(user.results['gridlet'].status, GridletStatus.FAILED_RESOURCE_UNAVAILABLE)
        self.assertAlmostEqual(user.results['time'], 50)

    def test_reserved_gridlet_waits_for_recovery(self):
        resource, user = self.run_failure(self.commit_and_wait(100, 2), num_machines=1, duration=20)
        self.assertEqual(user.results['gridlet'].status, GridletStatus.SUCCESS)
        self.assertAlmostEqual(user.results['gridlet'].exec_start_time, 100)
        self.assertAlmostEqual(user.results['gridlet'].finish_time, 105)
        self.assertFalse(resource.policy.recovery_pending)

    def test_reservations_refused_while_down(self):
        def script(user):
            resource_id = (yield from user.get_ar_resource_list())[0]
            booking = yield from user.create_reservation(200, 50, 1, resource_id)
            yield from user.hold(60)
            user.results['create'] = yield from user.create_reservation(300, 50, 1, resource_id)
            user.results['immediate'] = yield from user.create_immediate_reservation(50, 1, resource_id)
            user.results['commit'] = yield from user.commit_reservation(booking, Gridlet(0, 1000, 100, 100))

        _, user = self.run_failure(script, machines=1, num_pe=2)
        self.assertEqual(user.results['create'], GridSimTags.AR_CREATE_FAIL_RESOURCE_NOT_ENOUGH_PE)
        self.assertEqual(user.results['immediate'], GridSimTags.AR_CREATE_FAIL_RESOURCE_NOT_ENOUGH_PE)
        self.assertEqual(user.results['commit'], GridSimTags.AR_COMMIT_FAIL)


if __name__ == '__main__':
    unittest.main()
