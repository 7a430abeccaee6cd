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
from sortedcontainers import SortedKeyList

from gridsim.base.allocator_class import SpaceShared
from gridsim.base.gridlet_class import ResGridlet
from gridsim.base.tags import GridSimTags, GridletStatus
from gridsim.utils.misc import CONSTANT


class ARSimpleSpaceShared(SpaceShared):
    """

    Space shared policy with advance reservation support. A reservation books a number of PEs for a time window.
    A booking must be committed before its expiry time, otherwise it expires. The committed gridlets wait until
    the reservation start time and then they are executed, pre-empting non reserved gridlets when needed.

    Replies are lists starting with the transaction id of the request.

    """
    EXPIRY_TIME = GridSimTags.ARBASE + 90
    PERFORM_RESERVATION = GridSimTags.ARBASE + 91
    NOT_FOUND = -1
    # bytes
    REPLY_SIZE = 12

    def __init__(self, commit_period=None):
        """

        :param commit_period: Seconds a booking waits for its commit before it expires. By default the AR_COMMIT_PERIOD constant.

        """
        SpaceShared.__init__(self)
        if commit_period is None:
            commit_period = CONSTANT().get('AR_COMMIT_PERIOD', 30 * 60)
        assert(commit_period > 0), 'The commit period must be greater than 0. Received: {}'.format(commit_period)
        self.commit_period = commit_period
        self.reservations = SortedKeyList(key=lambda ar: ar.start_time)
        self.expired = []
        self.waiting_list = SortedKeyList(key=lambda rgl: rgl.start_time)
        self._reservation_id = 1

    @property
    def internal_tags(self):
        return self.INTERNAL_EVENT, self.EXPIRY_TIME, self.PERFORM_RESERVATION

    def internal_event(self, ev):
        if ev.tag == self.EXPIRY_TIME:
            self.check_expiry_time()
        elif ev.tag == self.PERFORM_RESERVATION:
            self.perform_reservation()
        else:
            SpaceShared.internal_event(self, ev)
            self.perform_reservation()

    def _reply(self, dest_id, tag, data):
        self.resource.send_io(dest_id, GridSimTags.SCHEDULE_NOW, tag, data, self.REPLY_SIZE)

    def search(self, reservation_id):
        """

        :return: A tuple (reservation, active). The reservation is None if it is not found.

        """
        for ar in self.reservations:
            if ar.reservation_id == reservation_id:
                return ar, True
        for ar in self.expired:
            if ar.reservation_id == reservation_id:
                return ar, False
        return None, False

    def _close(self, ar, status):
        ar.status = status
        self.reservations.remove(ar)
        self.expired.append(ar)

    def reserved_pe(self, start_time, end_time):
        """

        :return: Maximum number of PEs booked at the same time within [start_time, end_time)

        """
        points = []
        for ar in self.reservations:
            if ar.start_time < end_time and ar.end_time > start_time:
                points.append((max(ar.start_time, start_time), ar.num_pe))
                points.append((min(ar.end_time, end_time), -ar.num_pe))
        # Ends are processed before starts at the same time
        points.sort(key=lambda p: (p[0], p[1]))
        current = peak = 0
        for _, num_pe in points:
            current += num_pe
            peak = max(peak, current)
        return peak

    def find_empty_slot(self, start_time, end_time, num_pe):
        """

        :return: 0 if the PEs are available, or a FULL_IN code for the time until the first conflicting booking ends.

        """
        total_pe = self.characteristics.num_pe
        if self.reserved_pe(start_time, end_time) + num_pe <= total_pe:
            return 0
        overlapping = [ar.end_time for ar in self.reservations if ar.start_time < end_time and ar.end_time > start_time]
        return GridSimTags.approx_busy_time(min(overlapping) - start_time)

    def _validate(self, ar, start_time):
        if ar.num_pe < 1:
            return GridSimTags.AR_CREATE_ERROR_INVALID_NUM_PE
        if ar.num_pe > self.characteristics.num_pe:
            return GridSimTags.AR_CREATE_FAIL_RESOURCE_NOT_ENOUGH_PE
        if start_time < self.clock():
            return GridSimTags.AR_CREATE_ERROR_INVALID_START_TIME
        if ar.duration <= 0:
            return GridSimTags.AR_CREATE_ERROR_INVALID_DURATION_TIME
        return 0

    def handle_create_reservation(self, ar, src, immediate=False):
        """

        Books the PEs of a reservation request. It replies [transaction id, reservation id, expiry time], or
        [transaction id, error code, -1] when the booking is rejected.

        :param ar: A :class:`gridsim.base.reservation_class.ARObject` with the request
        :param src: Id of the requester
        :param immediate: The reservation starts now

        """
        now = self.clock()
        start_time = now if immediate else ar.start_time
        result = self._validate(ar, start_time)
        if result == 0:
            result = self.find_empty_slot(start_time, start_time + ar.duration, ar.num_pe)
        if result < 0:
            self._logger.debug('{}: {} rejected a reservation from #{}. Code {}'.format(now, self.resource.name, src, result))
            self._reply(src, GridSimTags.RETURN_AR_CREATE, [ar.transaction_id, result, -1])
            return
        booking = ar.copy()
        booking.start_time = start_time
        booking.resource_id = self.resource_id
        if immediate:
            expiry_time = booking.end_time
        else:
            expiry_time = min(now + self.commit_period, start_time)
        booking.set_reservation(self._reservation_id, expiry_time)
        booking.status = GridSimTags.AR_STATUS_NOT_COMMITTED
        self._reservation_id += 1
        self.reservations.add(booking)
        self._reply(src, GridSimTags.RETURN_AR_CREATE, [ar.transaction_id, booking.reservation_id, expiry_time])
        self.send_internal_event(expiry_time - now, self.EXPIRY_TIME)

    def handle_modify_reservation(self, ar, src):
        self._reply(src, GridSimTags.RETURN_AR_MODIFY, [ar.transaction_id, GridSimTags.AR_MODIFY_FAIL_RESOURCE_CANT_SUPPORT])

    def handle_commit(self, reservation_id, transaction_id, src, gridlets=None):
        result = self.commit_reservation(reservation_id, gridlets)
        self._reply(src, GridSimTags.RETURN_AR_COMMIT, [transaction_id, result])

    def commit_reservation(self, reservation_id, gridlets=None):
        """

        Commits a booking, optionally with one gridlet or a list of gridlets.

        :return: One of the AR_COMMIT_* codes

        """
        ar, active = self.search(reservation_id)
        if ar is None:
            return GridSimTags.AR_COMMIT_FAIL_INVALID_BOOKING_ID
        if not active:
            return GridSimTags.AR_COMMIT_FAIL_EXPIRED if ar.status == GridSimTags.AR_STATUS_EXPIRED else GridSimTags.AR_COMMIT_FAIL
        now = self.clock()
        if (not ar.committed and ar.expiry_time < now) or ar.end_time < now:
            self._close(ar, GridSimTags.AR_STATUS_EXPIRED)
            return GridSimTags.AR_COMMIT_FAIL_EXPIRED
        if gridlets is not None:
            if not isinstance(gridlets, (list, tuple)):
                if ar.total_pe_used + gridlets.num_pe > ar.num_pe:
                    return GridSimTags.AR_COMMIT_FAIL
                gridlets = [gridlets]
            for gridlet in gridlets:
                if ar.total_pe_used + gridlet.num_pe > ar.num_pe:
                    self._logger.warning('{}: {} Gridlet #{} exceeds the PEs of reservation #{}'
                                         .format(now, self.resource.name, gridlet.id, reservation_id))
                    break
                rgl = ResGridlet(gridlet, self.clock, ar.start_time, ar.duration, ar.reservation_id)
                self.waiting_list.add(rgl)
                ar.add_gridlet(gridlet.num_pe)
        start = ar.start_time - now
        if start <= 0:
            ar.status = GridSimTags.AR_STATUS_ACTIVE
            start = 0
        else:
            ar.status = GridSimTags.AR_STATUS_NOT_STARTED
        ar.committed = True
        self.send_internal_event(start, self.PERFORM_RESERVATION)
        self.send_internal_event(ar.end_time - now, self.EXPIRY_TIME)
        return GridSimTags.AR_COMMIT_SUCCESS

    def handle_cancel(self, reservation_id, transaction_id, src, gridlet_ids=None):
        result = self.cancel_reservation(reservation_id, src, gridlet_ids)
        self._reply(src, GridSimTags.RETURN_AR_CANCEL, [transaction_id, result])

    def cancel_reservation(self, reservation_id, user_id, gridlet_ids=None):
        """

        Cancels a whole reservation or some of its gridlets. Cancelled gridlets are sent back to the user.

        :return: One of the AR_CANCEL_* codes

        """
        ar, active = self.search(reservation_id)
        if ar is None:
            return GridSimTags.AR_CANCEL_FAIL_INVALID_BOOKING_ID
        if not active:
            return GridSimTags.AR_CANCEL_SUCCESS
        if gridlet_ids is not None:
            if ar.total_gridlets == 0:
                return GridSimTags.AR_CANCEL_FAIL
            result = GridSimTags.AR_CANCEL_FAIL
            for gridlet_id in gridlet_ids:
                result = self._cancel_gridlet(gridlet_id, user_id)
            return result
        for rgl in self._reserved_gridlets(reservation_id):
            self._remove_reserved(rgl)
            rgl.finalize()
            self.send_cancel_gridlet(rgl.gridlet, rgl.id, user_id)
        self._close(ar, GridSimTags.AR_STATUS_CANCELED)
        return GridSimTags.AR_CANCEL_SUCCESS

    def _cancel_gridlet(self, gridlet_id, user_id):
        rgl = self._cancel(gridlet_id, user_id)
        if rgl is None:
            return GridSimTags.AR_CANCEL_FAIL
        result = GridSimTags.AR_CANCEL_SUCCESS
        if rgl.status == GridletStatus.SUCCESS:
            result = GridSimTags.AR_CANCEL_FAIL_GRIDLET_FINISHED
        rgl.finalize()
        self.send_cancel_gridlet(rgl.gridlet, gridlet_id, user_id)
        return result

    def _cancel(self, gridlet_id, user_id):
        rgl = SpaceShared._cancel(self, gridlet_id, user_id)
        if rgl is not None:
            self._release_reserved(rgl)
        return rgl

    def _reserved_gridlets(self, reservation_id):
        return [rgl for _list in self._lists() for rgl in _list if rgl.reservation_id == reservation_id]

    def _remove_reserved(self, rgl):
        if rgl in self.exec_list:
            self.update_processing()
            self.exec_list.remove(rgl)
            rgl.set_status(GridletStatus.SUCCESS if rgl.is_finished() else GridletStatus.CANCELED)
            self.free_pes(rgl)
            self.allocate_queue()
            return
        for _list in self._idle_lists():
            if rgl in _list:
                _list.remove(rgl)
                rgl.set_status(GridletStatus.CANCELED)
                return

    def _release_reserved(self, rgl):
        if not rgl.has_reserved():
            return
        ar, active = self.search(rgl.reservation_id)
        if ar is not None and active:
            ar.remove_gridlet(rgl.num_pe)

    def handle_query(self, reservation_id, transaction_id, src):
        ar, _ = self.search(reservation_id)
        status = GridSimTags.AR_STATUS_RESERVATION_DOESNT_EXIST if ar is None else ar.status
        self._reply(src, GridSimTags.RETURN_AR_QUERY_STATUS, [transaction_id, status])

    def busy_time(self, from_time, to_time):
        """

        :return: List of [start, duration, num_pe] of the bookings within the window

        """
        return [[ar.start_time, ar.duration, ar.num_pe] for ar in self.reservations
                if ar.start_time < to_time and ar.end_time > from_time]

    def free_time(self, from_time, to_time):
        """

        :return: List of [start, duration, free PEs] covering the window. Contiguous intervals with the same
            number of free PEs are merged.

        """
        total_pe = self.characteristics.num_pe
        points = {from_time, to_time}
        for ar in self.reservations:
            if ar.start_time < to_time and ar.end_time > from_time:
                points.add(max(ar.start_time, from_time))
                points.add(min(ar.end_time, to_time))
        points = sorted(points)
        free = []
        for begin, end in zip(points[:-1], points[1:]):
            free_pe = total_pe - self.reserved_pe(begin, end)
            if free and free[-1][2] == free_pe and free[-1][0] + free[-1][1] == begin:
                free[-1][1] += end - begin
            else:
                free.append([begin, end - begin, free_pe])
        return free

    def handle_query_time(self, transaction_id, src, from_time, to_time, busy):
        times = self.busy_time(from_time, to_time) if busy else self.free_time(from_time, to_time)
        self._reply(src, GridSimTags.RETURN_AR_QUERY_TIME, [transaction_id, times])

    def check_expiry_time(self):
        now = self.clock()
        for ar in list(self.reservations):
            if not ar.committed and ar.expiry_time <= now:
                self._close(ar, GridSimTags.AR_STATUS_EXPIRED)
            elif ar.total_gridlets == 0 and ar.end_time <= now:
                self._close(ar, GridSimTags.AR_STATUS_COMPLETED)

    def perform_reservation(self):
        """

        Moves the reserved gridlets whose reservation started into execution.

        """
        self.update_processing()
        now = self.clock()
        for ar in self.reservations:
            if ar.committed and ar.start_time <= now < ar.end_time:
                ar.status = GridSimTags.AR_STATUS_ACTIVE
        ready = list(self.waiting_list.irange_key(max_key=now))
        for rgl in ready:
            self.waiting_list.remove(rgl)
            if self.total_pe == 0 or rgl.num_pe > self.available_pe:
                self._logger.warning('{}: {} can not start Gridlet #{} of reservation #{}. Not enough working PEs'
                                     .format(now, self.resource.name, rgl.id, rgl.reservation_id))
                self._fail_gridlet(rgl)
                continue
            if self.characteristics.machine_list.num_free_pe < rgl.num_pe:
                self.clear_exec_list(rgl.num_pe)
            if not self.allocate(rgl):
                rgl.set_status(GridletStatus.QUEUED)
                self.queue_list.insert(0, rgl)

    def clear_exec_list(self, num_pe):
        """

        Pre-empts non reserved gridlets back to the head of the queue until num_pe PEs are free.

        :return: Number of freed PEs

        """
        machine_list = self.characteristics.machine_list
        freed = 0
        for rgl in reversed([rgl for rgl in self.exec_list if not rgl.has_reserved()]):
            if machine_list.num_free_pe >= num_pe:
                break
            self.exec_list.remove(rgl)
            freed += rgl.num_pe
            self.free_pes(rgl)
            rgl.set_status(GridletStatus.QUEUED)
            self.queue_list.insert(0, rgl)
            self._logger.debug('{}: {} pre-empted Gridlet #{}'.format(self.clock(), self.resource.name, rgl.id))
        return freed

    def _finish(self, rgl, status):
        SpaceShared._finish(self, rgl, status)
        if not rgl.has_reserved():
            return
        ar, active = self.search(rgl.reservation_id)
        if ar is None or not active:
            return
        ar.remove_gridlet(rgl.num_pe)
        if ar.total_gridlets == 0 and self.clock() >= ar.end_time:
            self._close(ar, GridSimTags.AR_STATUS_COMPLETED)

    def _fail_gridlet(self, rgl):
        SpaceShared._fail_gridlet(self, rgl)
        self._release_reserved(rgl)

    def fail_machines(self, machine_ids):
        failed = SpaceShared.fail_machines(self, machine_ids)
        self._fail_stranded(self.waiting_list)
        return failed

    def _lists(self):
        return self.exec_list, self.paused_list, self.queue_list, self.waiting_list

    def _idle_lists(self):
        return self.queue_list, self.paused_list, self.waiting_list

    def _pausable_lists(self):
        return self.queue_list, self.waiting_list

    def end_simulation(self):
        SpaceShared.end_simulation(self)
        self.waiting_list.clear()
        self.reservations.clear()
