"""
MIT License

Copyright (c) 2017 cgalleguillosm

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
SOFTWARE.
"""
from gridsim.base.allocator_class import TimeShared, SpaceShared
from gridsim.base.ar_allocator_class import ARSimpleSpaceShared
from gridsim.base.event_class import SimEntity
from gridsim.base.resource_class import ResourceCharacteristics, ResourceError
from gridsim.base.tags import GridSimTags, GridletStatus


class FailureMsg:
    """

    Failure notification sent to a resource.

    """

    def __init__(self, time, res_id, num_machines=None):
        """

        :param time: Duration of the failure in seconds. None or 0 means the resource waits for an explicit recovery.
        :param res_id: Id of the failed resource
        :param num_machines: Number of machines that fail. None for all the machines.

        """
        assert(num_machines is None or num_machines > 0), 'The number of failed machines must be greater than 0'
        self.time = time
        self.res_id = res_id
        self.num_machines = num_machines


class AvailabilityInfo:

    def __init__(self, res_id, src_id, available=True):
        self.res_id = res_id
        self.src_id = src_id
        self.available = available

    def __str__(self):
        return 'AvailabilityInfo(resource={}, available={})'.format(self.res_id, self.available)


class GridResource(SimEntity):
    """

    A grid resource. It registers itself in the information service, answers the inquiries about its
    characteristics and forwards the gridlet requests to its allocation policy.

    """
    REGISTER_TAG = GridSimTags.REGISTER_RESOURCE

    def __init__(self, name, simulator, characteristics, calendar=None, policy=None, baud_rate=None):
        """

        :param name: Name of the resource
        :param simulator: The simulator object
        :param characteristics: A :class:`gridsim.base.resource_class.ResourceCharacteristics` object
        :param calendar: A :class:`gridsim.base.calendar_class.ResourceCalendar` object. None means no local load.
        :param policy: An :class:`gridsim.base.allocator_class.AllocPolicy` object. By default, it is defined by the characteristics.
        :param baud_rate: Communication speed in bits/sec

        """
        assert(isinstance(characteristics, ResourceCharacteristics)), 'Invalid characteristics object'
        SimEntity.__init__(self, name, simulator, baud_rate)
        self.characteristics = characteristics
        characteristics.resource_id = self.id
        characteristics.resource_name = name
        self.calendar = calendar
        if calendar is not None:
            calendar.set_clock(self.clock)
        if policy is None:
            policy = self.default_policy(characteristics.policy)
        self.policy = policy
        self.policy.init(self)
        self._down = False
        self._inquiries = {
            GridSimTags.RESOURCE_CHARACTERISTICS: lambda: self.characteristics,
            GridSimTags.RESOURCE_DYNAMICS: lambda: self.policy.total_load,
            GridSimTags.RESOURCE_NUM_PE: lambda: self.characteristics.num_pe,
            GridSimTags.RESOURCE_NUM_FREE_PE: lambda: self.characteristics.num_free_pe,
            GridSimTags.RESOURCE_NUM_MACHINES: lambda: self.characteristics.num_machines
        }

    def default_policy(self, policy_type):
        if policy_type == ResourceCharacteristics.TIME_SHARED:
            return TimeShared()
        if policy_type == ResourceCharacteristics.SPACE_SHARED:
            return SpaceShared()
        raise ResourceError('{}: The allocation policy {} requires a policy object'.format(self.name, policy_type))

    def register(self):
        gis = self.simulator.gis
        if gis is None:
            self._logger.warning('{}: {} has no information service to register'.format(self.clock(), self.name))
            return
        self.send(gis, GridSimTags.SCHEDULE_NOW, self.REGISTER_TAG, self.id)

    def body(self):
        self.register()
        while True:
            ev = yield from self.receive()
            if ev.tag == GridSimTags.END_OF_SIMULATION:
                self.policy.end_simulation()
                break
            self.process_event(ev)

    def process_event(self, ev):
        if self.policy.is_internal(ev):
            self.policy.internal_event(ev)
        elif ev.tag in self._inquiries:
            self.send(ev.src, GridSimTags.SCHEDULE_NOW, ev.tag, self._inquiries[ev.tag]())
        elif ev.tag in (GridSimTags.GRIDLET_SUBMIT, GridSimTags.GRIDLET_SUBMIT_ACK):
            self.process_gridlet_submit(ev.data, ev.tag == GridSimTags.GRIDLET_SUBMIT_ACK)
        elif ev.tag in (GridSimTags.GRIDLET_CANCEL, GridSimTags.GRIDLET_STATUS, GridSimTags.GRIDLET_PAUSE,
                        GridSimTags.GRIDLET_PAUSE_ACK, GridSimTags.GRIDLET_RESUME, GridSimTags.GRIDLET_RESUME_ACK,
                        GridSimTags.GRIDLET_MOVE, GridSimTags.GRIDLET_MOVE_ACK):
            self.process_gridlet(ev)
        elif ev.tag == GridSimTags.GRIDRESOURCE_FAILURE:
            self.process_failure(ev.data)
        elif ev.tag == GridSimTags.GRIDRESOURCE_RECOVERY:
            self.process_recovery()
        elif ev.tag == GridSimTags.GRIDRESOURCE_POLLING:
            self.send(ev.src, GridSimTags.SCHEDULE_NOW, ev.tag, AvailabilityInfo(self.id, ev.src, not self._down))
        else:
            self.process_other_event(ev)

    def prepare_gridlet(self, gridlet):
        gridlet.set_clock(self.clock)
        gridlet.set_resource_parameter(self.id, self.characteristics.cost_per_sec, self.name)

    def process_gridlet_submit(self, gridlet, ack):
        """

        Sends the gridlet to the policy. Finished gridlets, and any gridlet while every machine is down, are sent back.

        """
        if gridlet.is_finished():
            self._logger.warning('{}: {} received the finished Gridlet #{}'.format(self.clock(), self.name, gridlet.id))
            if ack:
                self.policy.send_ack(GridSimTags.GRIDLET_SUBMIT_ACK, False, gridlet.id, gridlet.user_id)
            self.policy.send_finish_gridlet(gridlet)
            return
        self.prepare_gridlet(gridlet)
        if self._down:
            gridlet.set_status(GridletStatus.FAILED_RESOURCE_UNAVAILABLE)
            if ack:
                self.policy.send_ack(GridSimTags.GRIDLET_SUBMIT_ACK, False, gridlet.id, gridlet.user_id)
            self.policy.send_finish_gridlet(gridlet)
            return
        self.policy.gridlet_submit(gridlet, ack)

    def process_gridlet(self, ev):
        gridlet_id, user_id = ev.data[0], ev.data[1]
        tag = ev.tag
        if tag == GridSimTags.GRIDLET_CANCEL:
            self.policy.gridlet_cancel(gridlet_id, user_id)
        elif tag == GridSimTags.GRIDLET_STATUS:
            status = self.policy.gridlet_status(gridlet_id, user_id)
            self.send(ev.src, GridSimTags.SCHEDULE_NOW, tag, [gridlet_id, status])
        elif tag in (GridSimTags.GRIDLET_PAUSE, GridSimTags.GRIDLET_PAUSE_ACK):
            self.policy.gridlet_pause(gridlet_id, user_id, tag == GridSimTags.GRIDLET_PAUSE_ACK)
        elif tag in (GridSimTags.GRIDLET_RESUME, GridSimTags.GRIDLET_RESUME_ACK):
            self.policy.gridlet_resume(gridlet_id, user_id, tag == GridSimTags.GRIDLET_RESUME_ACK)
        else:
            self.policy.gridlet_move(gridlet_id, user_id, ev.data[2], tag == GridSimTags.GRIDLET_MOVE_ACK)

    def schedule_failure(self, delay, num_machines=None, duration=None):
        """

        Schedules a failure of the resource.

        :param delay: Time until the failure
        :param num_machines: Number of failed machines. None for all the machines.
        :param duration: Time until the recovery. None waits for an explicit GRIDRESOURCE_RECOVERY event.

        """
        self.send(self, delay, GridSimTags.GRIDRESOURCE_FAILURE, FailureMsg(duration, self.id, num_machines))

    def process_failure(self, msg):
        machine_list = self.characteristics.machine_list
        working = [machine.id for machine in machine_list if not machine.failed]
        num_machines = len(working) if msg.num_machines is None else min(msg.num_machines, len(working))
        if msg.time:
            self.policy.recovery_pending = True
        failed = self.policy.fail_machines(working[:num_machines])
        self._logger.info('{}: {} {} machines failed'.format(self.clock(), self.name, len(failed)))
        if machine_list.num_failed_machines == len(machine_list) and not self._down:
            self._down = True
            if self.simulator.gis is not None:
                self.send(self.simulator.gis, GridSimTags.SCHEDULE_NOW, GridSimTags.GRIDRESOURCE_FAILURE_INFO, self.id)
        if msg.time:
            self.send(self, msg.time, GridSimTags.GRIDRESOURCE_RECOVERY)

    def process_recovery(self):
        failed = [machine.id for machine in self.characteristics.machine_list if machine.failed]
        self.policy.recovery_pending = False
        recovered = self.policy.recover_machines(failed)
        self._logger.info('{}: {} {} machines recovered'.format(self.clock(), self.name, len(recovered)))
        if self._down:
            self._down = False
            self.register()

    def process_other_event(self, ev):
        """

        Advance reservation requests are refused with the corresponding "can not support" code.

        """
        replies = {
            GridSimTags.SEND_AR_CREATE: (GridSimTags.RETURN_AR_CREATE, GridSimTags.AR_CREATE_FAIL_RESOURCE_CANT_SUPPORT),
            GridSimTags.SEND_AR_CREATE_IMMEDIATE: (GridSimTags.RETURN_AR_CREATE, GridSimTags.AR_CREATE_FAIL_RESOURCE_CANT_SUPPORT),
            GridSimTags.SEND_AR_COMMIT_ONLY: (GridSimTags.RETURN_AR_COMMIT, GridSimTags.AR_COMMIT_ERROR_RESOURCE_CANT_SUPPORT),
            GridSimTags.SEND_AR_COMMIT_WITH_GRIDLET: (GridSimTags.RETURN_AR_COMMIT, GridSimTags.AR_COMMIT_ERROR_RESOURCE_CANT_SUPPORT),
            GridSimTags.SEND_AR_CANCEL: (GridSimTags.RETURN_AR_CANCEL, GridSimTags.AR_CANCEL_ERROR_RESOURCE_CANT_SUPPORT),
            GridSimTags.SEND_AR_QUERY: (GridSimTags.RETURN_AR_QUERY_STATUS, GridSimTags.AR_STATUS_ERROR),
            GridSimTags.SEND_AR_MODIFY: (GridSimTags.RETURN_AR_MODIFY, GridSimTags.AR_MODIFY_FAIL_RESOURCE_CANT_SUPPORT),
            GridSimTags.SEND_AR_LIST_BUSY_TIME: (GridSimTags.RETURN_AR_QUERY_TIME, None),
            GridSimTags.SEND_AR_LIST_FREE_TIME: (GridSimTags.RETURN_AR_QUERY_TIME, None)
        }
        if ev.tag not in replies:
            self.policy.process_other_event(ev)
            return
        tag, result = replies[ev.tag]
        data = [self.transaction_id(ev.data), result]
        if tag == GridSimTags.RETURN_AR_CREATE:
            data.append(-1)
        self._logger.warning('{}: {} does not support advance reservations'.format(self.clock(), self.name))
        self.send(ev.src, GridSimTags.SCHEDULE_NOW, tag, data)

    @staticmethod
    def transaction_id(data):
        if hasattr(data, 'transaction_id'):
            return data.transaction_id
        return data[0]


class ARGridResource(GridResource):
    """

    A grid resource that supports advance reservations. The reservation requests are handled by an
    :class:`gridsim.base.ar_allocator_class.ARSimpleSpaceShared` policy.

    """
    REGISTER_TAG = GridSimTags.REGISTER_RESOURCE_AR
    REFUSED_WHILE_DOWN = {
        GridSimTags.SEND_AR_CREATE: (GridSimTags.RETURN_AR_CREATE, GridSimTags.AR_CREATE_FAIL_RESOURCE_NOT_ENOUGH_PE),
        GridSimTags.SEND_AR_CREATE_IMMEDIATE: (GridSimTags.RETURN_AR_CREATE, GridSimTags.AR_CREATE_FAIL_RESOURCE_NOT_ENOUGH_PE),
        GridSimTags.SEND_AR_COMMIT_ONLY: (GridSimTags.RETURN_AR_COMMIT, GridSimTags.AR_COMMIT_FAIL),
        GridSimTags.SEND_AR_COMMIT_WITH_GRIDLET: (GridSimTags.RETURN_AR_COMMIT, GridSimTags.AR_COMMIT_FAIL)
    }

    def __init__(self, name, simulator, characteristics, calendar=None, policy=None, baud_rate=None):
        if policy is None:
            policy = ARSimpleSpaceShared()
        if not isinstance(policy, ARSimpleSpaceShared):
            raise ResourceError('{}: an advance reservation resource requires an ARSimpleSpaceShared policy'.format(name))
        GridResource.__init__(self, name, simulator, characteristics, calendar, policy, baud_rate)

    def process_other_event(self, ev):
        tag = ev.tag
        data = ev.data
        if self._down and tag in self.REFUSED_WHILE_DOWN:
            self.refuse_reservation(ev)
        elif tag in (GridSimTags.SEND_AR_CREATE, GridSimTags.SEND_AR_CREATE_IMMEDIATE):
            self.policy.handle_create_reservation(data, ev.src, tag == GridSimTags.SEND_AR_CREATE_IMMEDIATE)
        elif tag == GridSimTags.SEND_AR_COMMIT_ONLY:
            self.policy.handle_commit(data[1], data[0], ev.src)
        elif tag == GridSimTags.SEND_AR_COMMIT_WITH_GRIDLET:
            gridlets = data[2]
            for gridlet in (gridlets if isinstance(gridlets, (list, tuple)) else [gridlets]):
                self.prepare_gridlet(gridlet)
            self.policy.handle_commit(data[1], data[0], ev.src, gridlets)
        elif tag == GridSimTags.SEND_AR_CANCEL:
            self.policy.handle_cancel(data[1], data[0], ev.src, data[2])
        elif tag == GridSimTags.SEND_AR_QUERY:
            self.policy.handle_query(data[1], data[0], ev.src)
        elif tag == GridSimTags.SEND_AR_MODIFY:
            self.policy.handle_modify_reservation(data, ev.src)
        elif tag in (GridSimTags.SEND_AR_LIST_BUSY_TIME, GridSimTags.SEND_AR_LIST_FREE_TIME):
            self.policy.handle_query_time(data[0], ev.src, data[1], data[2], tag == GridSimTags.SEND_AR_LIST_BUSY_TIME)
        else:
            self.policy.process_other_event(ev)

    def refuse_reservation(self, ev):
        """

        Rejects the creation and commit requests received while every machine is down.

        """
        tag, result = self.REFUSED_WHILE_DOWN[ev.tag]
        data = [self.transaction_id(ev.data), result]
        if tag == GridSimTags.RETURN_AR_CREATE:
            data.append(-1)
        self._logger.warning('{}: {} is down and rejects the reservation request from #{}'.format(self.clock(), self.name, ev.src))
        self.send(ev.src, GridSimTags.SCHEDULE_NOW, tag, data)
