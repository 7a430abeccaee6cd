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
import logging

from abc import abstractmethod, ABC
from math import ceil

from gridsim.base.gridlet_class import Gridlet, ResGridlet
from gridsim.base.resource_class import PE
from gridsim.base.statistics_class import Accumulator
from gridsim.base.tags import GridSimTags, GridletStatus


class AllocPolicy(ABC):
    """

    The base abstract interface all the allocation policies must comply to. A policy is owned by a
    :class:`gridsim.base.grid_resource_class.GridResource`, which forwards the gridlet requests to it. The policy
    uses the resource entity to send the replies and its own internal (timer) events.

    """
    ACK_SIZE = 8
    DUMMY_GRIDLET_SIZE = 100
    INTERNAL_EVENT = GridSimTags.INSIGNIFICANT

    def __init__(self):
        self.resource = None
        self.characteristics = None
        self.calendar = None
        self.total_load = Accumulator()
        self.last_update_time = 0.0
        self._next_internal_time = None
        # Set by the resource while a timed recovery is scheduled
        self.recovery_pending = False
        self._logger = logging.getLogger('gridsim')

    def init(self, resource):
        """

        Binds the policy to its resource. It is called by the resource constructor.

        :param resource: A :class:`gridsim.base.grid_resource_class.GridResource` object

        """
        self.resource = resource
        self.characteristics = resource.characteristics
        self.calendar = resource.calendar
        self.total_load.add(self.calculate_total_load(0))

    @abstractmethod
    def gridlet_submit(self, gridlet, ack):
        """

        Abstract method. Must be implemented by the subclass.
        Receives a new gridlet. If ack is True an acknowledgement is sent to the owner.

        """
        raise NotImplementedError('Must be implemented!')

    @abstractmethod
    def gridlet_cancel(self, gridlet_id, user_id):
        raise NotImplementedError('Must be implemented!')

    @abstractmethod
    def gridlet_pause(self, gridlet_id, user_id, ack):
        raise NotImplementedError('Must be implemented!')

    @abstractmethod
    def gridlet_resume(self, gridlet_id, user_id, ack):
        raise NotImplementedError('Must be implemented!')

    @abstractmethod
    def gridlet_status(self, gridlet_id, user_id):
        """

        Abstract method. Must be implemented by the subclass.

        :return: The status of the gridlet or -1 if it is not found.

        """
        raise NotImplementedError('Must be implemented!')

    @abstractmethod
    def gridlet_move(self, gridlet_id, user_id, dest_id, ack):
        raise NotImplementedError('Must be implemented!')

    @abstractmethod
    def internal_event(self, ev):
        """

        Abstract method. Must be implemented by the subclass.
        Handles the events sent by the policy to itself.

        """
        raise NotImplementedError('Must be implemented!')

    @abstractmethod
    def fail_machines(self, machine_ids):
        """

        Abstract method. Must be implemented by the subclass.
        Sets the machines as failed. Every gridlet running on them is returned as FAILED_RESOURCE_UNAVAILABLE.

        :param machine_ids: Ids of the failed machines

        """
        raise NotImplementedError('Must be implemented!')

    @abstractmethod
    def recover_machines(self, machine_ids):
        raise NotImplementedError('Must be implemented!')

    @property
    def internal_tags(self):
        return (self.INTERNAL_EVENT,)

    def is_internal(self, ev):
        return ev.src == self.resource.id and ev.tag in self.internal_tags

    def process_other_event(self, ev):
        if ev is None:
            self._logger.error('{}: {} received an empty event'.format(self.clock(), self.resource.name))
            return
        self._logger.warning('{}: {} can not handle the event tag {}'.format(self.clock(), self.resource.name, ev.tag))

    def end_simulation(self):
        pass

    def clock(self):
        return self.resource.clock()

    @property
    def resource_id(self):
        return self.resource.id

    @property
    def total_pe(self):
        """

        :return: Number of PEs of the working machines

        """
        return sum(machine.num_pe for machine in self.characteristics.machine_list if not machine.failed)

    @property
    def available_pe(self):
        """

        :return: Number of PEs a gridlet can wait for. Every PE of the resource while a recovery is scheduled,
            otherwise only the PEs of the working machines.

        """
        if self.recovery_pending:
            return self.characteristics.num_pe
        return self.total_pe

    @property
    def mips_one_pe(self):
        return self.characteristics.mips_rating_of_one_pe

    @property
    def local_load(self):
        if self.calendar is None:
            return 0.0
        return self.calendar.current_load()

    def calculate_total_load(self, size):
        """

        :param size: Number of gridlets in execution

        :return: Load of the resource considering the local (calendar) load and the gridlets in execution.

        """
        total_pe = self.total_pe
        if total_pe == 0:
            return 1.0
        gridlets_per_pe = ceil((size + 1.0) / total_pe)
        return max(0.0, 1.0 - ((1 - self.local_load) / gridlets_per_pe))

    @staticmethod
    def forecast_finish_time(rating, length):
        """

        :return: Seconds required to process the length with the given rating. At least 1 second.

        """
        return max(length / rating, 1.0)

    @staticmethod
    def find(rgl_list, gridlet_id, user_id):
        for i, rgl in enumerate(rgl_list):
            if rgl.id == gridlet_id and rgl.user_id == user_id:
                return i
        return -1

    def send_ack(self, tag, status, gridlet_id, dest_id):
        """

        Sends an acknowledgement [gridlet id, TRUE|FALSE] to the destination.

        :return: False if the tag is not an acknowledgement tag.

        """
        if tag not in (GridSimTags.GRIDLET_PAUSE_ACK, GridSimTags.GRIDLET_RESUME_ACK, GridSimTags.GRIDLET_SUBMIT_ACK):
            self._logger.error('{}: {} invalid acknowledgement tag {}'.format(self.clock(), self.resource.name, tag))
            return False
        data = [gridlet_id, GridSimTags.TRUE if status else GridSimTags.FALSE]
        self.resource.send_io(dest_id, GridSimTags.SCHEDULE_NOW, tag, data, self.ACK_SIZE)
        return True

    def send_cancel_gridlet(self, gridlet, gridlet_id, dest_id):
        """

        Sends the cancelled gridlet back to its owner. When the gridlet is not found, a failed dummy gridlet is sent.

        """
        if gridlet is None:
            gridlet = Gridlet(gridlet_id, 0, self.DUMMY_GRIDLET_SIZE, self.DUMMY_GRIDLET_SIZE, record=False)
            gridlet.set_clock(self.clock)
            gridlet.set_resource_parameter(self.resource_id, self.characteristics.cost_per_sec, self.resource.name)
            gridlet.set_status(GridletStatus.FAILED)
        self.resource.send_io(dest_id, GridSimTags.SCHEDULE_NOW, GridSimTags.GRIDLET_CANCEL, gridlet,
                              gridlet.output_size)
        return True

    def gridlet_migrate(self, gridlet, dest_id, ack):
        """

        Sends the gridlet to another resource. The destination acknowledges the owner when ack is True.

        """
        if gridlet is None:
            return False
        tag = GridSimTags.GRIDLET_SUBMIT_ACK if ack else GridSimTags.GRIDLET_SUBMIT
        self.resource.send_io(dest_id, GridSimTags.SCHEDULE_NOW, tag, gridlet, gridlet.output_size)
        return True

    def send_finish_gridlet(self, gridlet):
        self.resource.send_io(gridlet.user_id, GridSimTags.SCHEDULE_NOW, GridSimTags.GRIDLET_RETURN, gridlet,
                              gridlet.output_size)
        self.resource.simulator.gridlet_returned(gridlet)
        return True

    def send_internal_event(self, delay, tag=INTERNAL_EVENT):
        """

        Schedules an event to the policy itself. An update event is not scheduled if another one is already pending
        at an earlier time.

        """
        delay = max(delay, 0.0)
        if tag == self.INTERNAL_EVENT:
            now = self.clock()
            at = now + delay
            if self._next_internal_time is not None and now < self._next_internal_time <= at:
                return False
            self._next_internal_time = at
        self.resource.send(self.resource, delay, tag)
        return True

    def _set_machines_failed(self, machine_ids, failed):
        changed = []
        for machine in self.characteristics.machine_list:
            if machine.id in machine_ids and machine.failed != failed:
                machine.set_failed(failed)
                changed.append(machine.id)
        return changed

    def _fail_gridlet(self, rgl):
        rgl.set_status(GridletStatus.FAILED_RESOURCE_UNAVAILABLE)
        rgl.finalize()
        self.send_finish_gridlet(rgl.gridlet)


class TimeShared(AllocPolicy):
    """

    Round robin policy. Every gridlet in execution shares the PEs of the resource, so there is no queue.
    Gridlets requiring more than one PE are executed in one PE with a proportional length.

    """

    def __init__(self):
        AllocPolicy.__init__(self)
        self.exec_list = []
        self.paused_list = []

    def mi_share(self, span, size):
        """

        :param span: Time span
        :param size: Number of gridlets in execution

        :return: A tuple (max, min, max_count). The first max_count gridlets process max MI, the rest min MI.

        """
        total_mi_per_pe = self.mips_one_pe * span * (1 - self.local_load)
        total_pe = self.total_pe
        gl_div_pe, gl_mod_pe = divmod(size, total_pe)
        if gl_div_pe > 0:
            return total_mi_per_pe / gl_div_pe, total_mi_per_pe / (gl_div_pe + 1), (total_pe - gl_mod_pe) * gl_div_pe
        return total_mi_per_pe, total_mi_per_pe, size

    def update_processing(self):
        now = self.clock()
        span = now - self.last_update_time
        if span <= 0.0:
            return
        self.last_update_time = now
        size = len(self.exec_list)
        self.total_load.add(self.calculate_total_load(size))
        if size == 0 or self.total_pe == 0:
            return
        max_share, min_share, max_count = self.mi_share(span, size)
        for i, rgl in enumerate(self.exec_list):
            rgl.update_finished_so_far(max_share if i < max_count else min_share)

    def forecast(self):
        """

        Finishes the completed gridlets and schedules an internal event at the earliest expected completion.

        """
        self._check_completion()
        if not self.exec_list or self.total_pe == 0:
            return
        max_share, min_share, max_count = self.mi_share(1.0, len(self.exec_list))
        now = self.clock()
        smallest = None
        for i, rgl in enumerate(self.exec_list):
            rating = max_share if i < max_count else min_share
            time = self.forecast_finish_time(rating, rgl.remaining_length)
            rgl.set_finish_time(now + int(time + 1))
            if smallest is None or time < smallest:
                smallest = time
        self.send_internal_event(smallest)

    def _check_completion(self):
        for rgl in [rgl for rgl in self.exec_list if rgl.is_finished()]:
            self._finish(rgl, GridletStatus.SUCCESS)

    def _finish(self, rgl, status):
        rgl.set_status(status)
        rgl.finalize()
        self.exec_list.remove(rgl)
        self.send_finish_gridlet(rgl.gridlet)

    def internal_event(self, ev):
        if self.last_update_time == self.clock():
            return
        self.update_processing()
        self.forecast()

    def gridlet_submit(self, gridlet, ack):
        self.update_processing()
        if gridlet.num_pe > 1:
            self._logger.warning('{}: {} Gridlet #{} requires {} PEs. It will be processed in 1 PE only'
                                 .format(self.clock(), self.resource.name, gridlet.id, gridlet.num_pe))
            gridlet.set_length(gridlet.length * gridlet.num_pe)
            gridlet.set_num_pe(1)
        rgl = ResGridlet(gridlet, self.clock)
        rgl.set_status(GridletStatus.INEXEC)
        self.exec_list.append(rgl)
        if ack:
            self.send_ack(GridSimTags.GRIDLET_SUBMIT_ACK, True, gridlet.id, gridlet.user_id)
        self.forecast()

    def gridlet_status(self, gridlet_id, user_id):
        for _list in (self.exec_list, self.paused_list):
            found = self.find(_list, gridlet_id, user_id)
            if found >= 0:
                return _list[found].status
        return -1

    def _cancel(self, gridlet_id, user_id):
        found = self.find(self.exec_list, gridlet_id, user_id)
        if found >= 0:
            self.update_processing()
            rgl = self.exec_list.pop(found)
            rgl.set_status(GridletStatus.SUCCESS if rgl.is_finished() else GridletStatus.CANCELED)
            self.forecast()
            return rgl
        found = self.find(self.paused_list, gridlet_id, user_id)
        if found >= 0:
            rgl = self.paused_list.pop(found)
            rgl.set_status(GridletStatus.CANCELED)
            return rgl
        return None

    def gridlet_cancel(self, gridlet_id, user_id):
        rgl = self._cancel(gridlet_id, user_id)
        if rgl is None:
            self._logger.warning('{}: {} can not find Gridlet #{} for User #{}'.format(self.clock(), self.resource.name, gridlet_id, user_id))
            self.send_cancel_gridlet(None, gridlet_id, user_id)
            return
        rgl.finalize()
        if rgl.status == GridletStatus.SUCCESS:
            self._logger.warning('{}: {} can not cancel Gridlet #{} for User #{} since it has finished'
                                 .format(self.clock(), self.resource.name, gridlet_id, user_id))
        self.send_cancel_gridlet(rgl.gridlet, gridlet_id, user_id)

    def gridlet_pause(self, gridlet_id, user_id, ack):
        status = False
        found = self.find(self.exec_list, gridlet_id, user_id)
        if found >= 0:
            self.update_processing()
            rgl = self.exec_list[found]
            if rgl.is_finished():
                self._logger.warning('{}: {} can not pause Gridlet #{} for User #{} since it has finished'
                                     .format(self.clock(), self.resource.name, gridlet_id, user_id))
                self._finish(rgl, GridletStatus.SUCCESS)
            else:
                status = True
                self.exec_list.pop(found)
                rgl.set_status(GridletStatus.PAUSED)
                self.paused_list.append(rgl)
            self.forecast()
        else:
            self._logger.warning('{}: {} can not find Gridlet #{} for User #{}'.format(self.clock(), self.resource.name, gridlet_id, user_id))
        if ack:
            self.send_ack(GridSimTags.GRIDLET_PAUSE_ACK, status, gridlet_id, user_id)

    def gridlet_resume(self, gridlet_id, user_id, ack):
        status = False
        found = self.find(self.paused_list, gridlet_id, user_id)
        if found >= 0:
            self.update_processing()
            rgl = self.paused_list.pop(found)
            rgl.set_status(GridletStatus.RESUMED)
            self.exec_list.append(rgl)
            self.forecast()
            status = True
        else:
            self._logger.warning('{}: {} can not find Gridlet #{} for User #{}'.format(self.clock(), self.resource.name, gridlet_id, user_id))
        if ack:
            self.send_ack(GridSimTags.GRIDLET_RESUME_ACK, status, gridlet_id, user_id)

    def gridlet_move(self, gridlet_id, user_id, dest_id, ack):
        rgl = self._cancel(gridlet_id, user_id)
        if rgl is None:
            self._logger.warning('{}: {} can not find Gridlet #{} for User #{}'.format(self.clock(), self.resource.name, gridlet_id, user_id))
            if ack:
                self.send_ack(GridSimTags.GRIDLET_SUBMIT_ACK, False, gridlet_id, user_id)
            return
        rgl.finalize()
        if rgl.status == GridletStatus.SUCCESS:
            self._logger.warning('{}: {} can not move Gridlet #{} for User #{} since it has finished'
                                 .format(self.clock(), self.resource.name, gridlet_id, user_id))
            if ack:
                self.send_ack(GridSimTags.GRIDLET_SUBMIT_ACK, False, gridlet_id, user_id)
            self.send_finish_gridlet(rgl.gridlet)
        else:
            self.gridlet_migrate(rgl.gridlet, dest_id, ack)

    def fail_machines(self, machine_ids):
        self.update_processing()
        failed = self._set_machines_failed(machine_ids, True)
        if self.total_pe == 0:
            for rgl in self.exec_list + self.paused_list:
                self._fail_gridlet(rgl)
            self.exec_list = []
            self.paused_list = []
        else:
            self.forecast()
        return failed

    def recover_machines(self, machine_ids):
        self.update_processing()
        recovered = self._set_machines_failed(machine_ids, False)
        self.forecast()
        return recovered

    def end_simulation(self):
        self.exec_list = []
        self.paused_list = []


class SpaceShared(AllocPolicy):
    """

    First come first served policy. Each gridlet uses its PEs in exclusive mode until it finishes. Gridlets that
    do not find enough free PEs wait in a queue.

    """

    def __init__(self):
        AllocPolicy.__init__(self)
        self.exec_list = []
        self.queue_list = []
        self.paused_list = []

    def allocated_rating(self, rgl):
        """

        :return: Sum of the MIPS ratings of the PEs allocated to the gridlet

        """
        machine_list = self.characteristics.machine_list
        return sum(machine_list.get_machine(m).get_pe(p).mips_rating for m, p in rgl.machines_pes)

    def update_processing(self):
        now = self.clock()
        span = now - self.last_update_time
        if span <= 0.0:
            return
        self.last_update_time = now
        self.total_load.add(self.calculate_total_load(len(self.exec_list)))
        load = self.local_load
        for rgl in self.exec_list:
            rgl.update_finished_so_far(self.allocated_rating(rgl) * span * (1 - load))

    def _expected_time(self, rgl):
        return self.forecast_finish_time(self.allocated_rating(rgl) * (1 - self.local_load), rgl.remaining_length)

    def forecast(self):
        if not self.exec_list:
            return
        now = self.clock()
        smallest = None
        for rgl in self.exec_list:
            time = self._expected_time(rgl)
            rgl.set_finish_time(now + time)
            if smallest is None or time < smallest:
                smallest = time
        self.send_internal_event(smallest)

    def allocate(self, rgl):
        """

        Allocates the free PEs required by the gridlet and starts its execution.

        :return: True if the gridlet was started, False if there are not enough free PEs.

        """
        machine_list = self.characteristics.machine_list
        if machine_list.num_free_pe < rgl.num_pe:
            return False
        for _ in range(rgl.num_pe):
            machine_id, pe_id = machine_list.get_free_pe()
            machine_list.set_status_pe(PE.BUSY, machine_id, pe_id)
            rgl.set_machine_and_pe(machine_id, pe_id)
        rgl.set_status(GridletStatus.INEXEC)
        self.exec_list.append(rgl)
        time = self._expected_time(rgl)
        rgl.set_finish_time(self.clock() + time)
        self.send_internal_event(time)
        return True

    def free_pes(self, rgl):
        machine_list = self.characteristics.machine_list
        for machine_id, pe_id in rgl.machines_pes:
            machine = machine_list.get_machine(machine_id)
            if not machine.failed:
                machine.set_status_pe(PE.FREE, pe_id)
        rgl.clear_machines()

    def allocate_queue(self):
        while self.queue_list and self.allocate(self.queue_list[0]):
            self.queue_list.pop(0)

    def _enqueue(self, rgl):
        if self.queue_list or not self.allocate(rgl):
            rgl.set_status(GridletStatus.QUEUED)
            self.queue_list.append(rgl)

    def _check_completion(self):
        for rgl in [rgl for rgl in self.exec_list if rgl.is_finished()]:
            self.exec_list.remove(rgl)
            self._finish(rgl, GridletStatus.SUCCESS)

    def _finish(self, rgl, status):
        self.free_pes(rgl)
        rgl.set_status(status)
        rgl.finalize()
        self.send_finish_gridlet(rgl.gridlet)
        self.allocate_queue()

    def internal_event(self, ev):
        self.update_processing()
        self._check_completion()
        self.forecast()

    def gridlet_submit(self, gridlet, ack):
        self.update_processing()
        rgl = ResGridlet(gridlet, self.clock)
        if gridlet.num_pe > self.available_pe:
            self._logger.warning('{}: {} Gridlet #{} requires {} PEs but the resource has only {}'
                                 .format(self.clock(), self.resource.name, gridlet.id, gridlet.num_pe, self.available_pe))
            rgl.set_status(GridletStatus.FAILED)
            rgl.finalize()
            if ack:
                self.send_ack(GridSimTags.GRIDLET_SUBMIT_ACK, False, gridlet.id, gridlet.user_id)
            self.send_finish_gridlet(gridlet)
            return
        self._enqueue(rgl)
        if ack:
            self.send_ack(GridSimTags.GRIDLET_SUBMIT_ACK, True, gridlet.id, gridlet.user_id)

    def _lists(self):
        return self.exec_list, self.paused_list, self.queue_list

    def _idle_lists(self):
        return self.queue_list, self.paused_list

    def _pausable_lists(self):
        return (self.queue_list,)

    def gridlet_status(self, gridlet_id, user_id):
        for _list in self._lists():
            found = self.find(_list, gridlet_id, user_id)
            if found >= 0:
                return _list[found].status
        return -1

    def _cancel(self, gridlet_id, user_id):
        found = self.find(self.exec_list, gridlet_id, user_id)
        if found >= 0:
            self.update_processing()
            rgl = self.exec_list.pop(found)
            rgl.set_status(GridletStatus.SUCCESS if rgl.is_finished() else GridletStatus.CANCELED)
            self.free_pes(rgl)
            self.allocate_queue()
            return rgl
        for _list in self._idle_lists():
            found = self.find(_list, gridlet_id, user_id)
            if found >= 0:
                rgl = _list.pop(found)
                rgl.set_status(GridletStatus.CANCELED)
                return rgl
        return None

    def gridlet_cancel(self, gridlet_id, user_id):
        rgl = self._cancel(gridlet_id, user_id)
        if rgl is None:
            self._logger.warning('{}: {} can not find Gridlet #{} for User #{}'.format(self.clock(), self.resource.name, gridlet_id, user_id))
            self.send_cancel_gridlet(None, gridlet_id, user_id)
            return
        if rgl.status == GridletStatus.SUCCESS:
            self._logger.warning('{}: {} can not cancel Gridlet #{} for User #{} since it has finished'
                                 .format(self.clock(), self.resource.name, gridlet_id, user_id))
        rgl.finalize()
        self.send_cancel_gridlet(rgl.gridlet, gridlet_id, user_id)

    def gridlet_pause(self, gridlet_id, user_id, ack):
        status = False
        found = self.find(self.exec_list, gridlet_id, user_id)
        if found >= 0:
            self.update_processing()
            rgl = self.exec_list.pop(found)
            if rgl.is_finished():
                self._logger.warning('{}: {} can not pause Gridlet #{} for User #{} since it has finished'
                                     .format(self.clock(), self.resource.name, gridlet_id, user_id))
                self._finish(rgl, GridletStatus.SUCCESS)
            else:
                status = True
                rgl.set_status(GridletStatus.PAUSED)
                self.free_pes(rgl)
                self.paused_list.append(rgl)
                self.allocate_queue()
        else:
            for _list in self._pausable_lists():
                found = self.find(_list, gridlet_id, user_id)
                if found >= 0:
                    status = True
                    rgl = _list.pop(found)
                    rgl.set_status(GridletStatus.PAUSED)
                    self.paused_list.append(rgl)
                    break
            else:
                self._logger.warning('{}: {} can not find Gridlet #{} for User #{}'.format(self.clock(), self.resource.name, gridlet_id, user_id))
        if ack:
            self.send_ack(GridSimTags.GRIDLET_PAUSE_ACK, status, gridlet_id, user_id)

    def gridlet_resume(self, gridlet_id, user_id, ack):
        status = False
        found = self.find(self.paused_list, gridlet_id, user_id)
        if found >= 0:
            self.update_processing()
            rgl = self.paused_list.pop(found)
            rgl.set_status(GridletStatus.RESUMED)
            self._enqueue(rgl)
            status = True
        else:
            self._logger.warning('{}: {} can not find Gridlet #{} for User #{}'.format(self.clock(), self.resource.name, gridlet_id, user_id))
        if ack:
            self.send_ack(GridSimTags.GRIDLET_RESUME_ACK, status, gridlet_id, user_id)

    def gridlet_move(self, gridlet_id, user_id, dest_id, ack):
        rgl = self._cancel(gridlet_id, user_id)
        if rgl is None:
            self._logger.warning('{}: {} can not find Gridlet #{} for User #{}'.format(self.clock(), self.resource.name, gridlet_id, user_id))
            if ack:
                self.send_ack(GridSimTags.GRIDLET_SUBMIT_ACK, False, gridlet_id, user_id)
            return
        if rgl.status == GridletStatus.SUCCESS:
            self._logger.warning('{}: {} can not move Gridlet #{} for User #{} since it has finished'
                                 .format(self.clock(), self.resource.name, gridlet_id, user_id))
            if ack:
                self.send_ack(GridSimTags.GRIDLET_SUBMIT_ACK, False, gridlet_id, user_id)
            rgl.finalize()
            self.send_finish_gridlet(rgl.gridlet)
            return
        rgl.finalize()
        self.gridlet_migrate(rgl.gridlet, dest_id, ack)

    def fail_machines(self, machine_ids):
        self.update_processing()
        failed = self._set_machines_failed(machine_ids, True)
        for rgl in [rgl for rgl in self.exec_list if any(m in failed for m, _ in rgl.machines_pes)]:
            self.exec_list.remove(rgl)
            self.free_pes(rgl)
            self._fail_gridlet(rgl)
        self._fail_stranded(self.queue_list, self.paused_list)
        self.allocate_queue()
        return failed

    def _fail_stranded(self, *rgl_lists):
        """

        Fails the idle gridlets that can not run anymore: all of them when no PE is left, otherwise the ones that
        require more PEs than the available ones.

        """
        available_pe = self.available_pe
        for _list in rgl_lists:
            for rgl in [rgl for rgl in _list if self.total_pe == 0 or rgl.num_pe > available_pe]:
                _list.remove(rgl)
                self._fail_gridlet(rgl)

    def recover_machines(self, machine_ids):
        self.update_processing()
        recovered = self._set_machines_failed(machine_ids, False)
        self.allocate_queue()
        return recovered

    def end_simulation(self):
        self.exec_list = []
        self.queue_list = []
        self.paused_list = []
