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
from copy import copy

from gridsim.base.filter_class import FilterResult, FilterQueryTimeAR
from gridsim.base.gridlet_class import Gridlet
from gridsim.base.tags import GridSimTags
from gridsim.base.user_class import GridUser


class ARObject:
    """

    Advance reservation record. The start time is expressed in simulation time.

    """
    NOT_FOUND = -1
    SECONDS_PER_HOUR = 3600

    def __init__(self, start_time, duration, num_pe, resource_id=NOT_FOUND, user_id=NOT_FOUND, time_zone=0.0,
                 transaction_id=NOT_FOUND):
        """

        :param start_time: Start time of the reservation
        :param duration: Duration of the reservation in seconds
        :param num_pe: Number of reserved PEs
        :param resource_id: Id of the resource
        :param user_id: Id of the owner
        :param time_zone: Time zone of the owner
        :param transaction_id: Id of the request that carries the record

        """
        self.start_time = start_time
        self.duration = duration
        self.num_pe = num_pe
        self.resource_id = resource_id
        self.user_id = user_id
        self.time_zone = time_zone
        self.transaction_id = transaction_id
        self.status = GridSimTags.AR_STATUS_NOT_COMMITTED
        self.committed = False
        self.reservation_id = self.NOT_FOUND
        self.expiry_time = self.NOT_FOUND
        self.total_gridlets = 0
        self.total_pe_used = 0

    @property
    def end_time(self):
        return self.start_time + self.duration

    @property
    def booking_id(self):
        """

        :return: The booking id "<resource id>_<reservation id>", or None if the reservation was not accepted.

        """
        if self.reservation_id == self.NOT_FOUND:
            return None
        return '{}_{}'.format(self.resource_id, self.reservation_id)

    def local_start_time(self, time_zone=None):
        """

        :param time_zone: Target time zone. By default the time zone of the owner.

        :return: The start time in the target time zone

        """
        return self.convert_time_zone(self.start_time, 0.0, self.time_zone if time_zone is None else time_zone)

    def set_reservation(self, reservation_id, expiry_time):
        if reservation_id < 1:
            raise ReservationError('Invalid reservation id: {}'.format(reservation_id))
        self.reservation_id = reservation_id
        self.expiry_time = expiry_time

    def add_gridlet(self, num_pe):
        self.total_gridlets += 1
        self.total_pe_used += num_pe

    def remove_gridlet(self, num_pe):
        self.total_gridlets = max(self.total_gridlets - 1, 0)
        self.total_pe_used = max(self.total_pe_used - num_pe, 0)

    def copy(self):
        return copy(self)

    @classmethod
    def convert_time_zone(cls, time, from_zone, to_zone):
        """

        Converts a time between two time zones.

        :param time: Time in seconds in the from_zone
        :param from_zone: Source time zone in hours, i.e. -3.5
        :param to_zone: Target time zone in hours

        :return: The same instant in the to_zone

        """
        return time + (to_zone - from_zone) * cls.SECONDS_PER_HOUR

    def __str__(self):
        return 'ARObject(booking={}, start={}, duration={}, num_pe={})'.format(self.booking_id, self.start_time,
                                                                             self.duration, self.num_pe)


class AdvanceReservation(GridUser):
    """

    A user that books resources in advance. Every request carries a new transaction id and the replies are matched
    with it. The accepted bookings are kept locally, indexed by booking id.

    """

    def __init__(self, name, simulator, baud_rate=None, time_zone=0.0):
        """

        :param name: Name of the user
        :param simulator: The simulator object
        :param baud_rate: Communication speed in bits/sec
        :param time_zone: Time zone of the user. The start times of the requests are in this time zone.

        """
        assert(-12 <= time_zone <= 13), 'Invalid time zone: {}'.format(time_zone)
        GridUser.__init__(self, name, simulator, baud_rate)
        self.time_zone = time_zone
        self.bookings = {}
        self._transaction_id = 0

    def _next_transaction(self):
        self._transaction_id += 1
        return self._transaction_id

    def get_booking(self, booking_id):
        """

        :return: The :class:`.ARObject` of an accepted booking

        """
        try:
            return self.bookings[booking_id]
        except KeyError:
            raise ReservationError('Unknown booking id: {}'.format(booking_id))

    def _ar_request(self, resource_id, tag, data, reply_tag, transaction_id, size=GridUser.REQUEST_SIZE):
        self.send_io(resource_id, GridSimTags.SCHEDULE_NOW, tag, data, size)
        ev = yield from self.receive(FilterResult(transaction_id, reply_tag))
        return ev.data

    def _check_request(self, start_time, duration, num_pe, resource_id):
        if num_pe < 1:
            return GridSimTags.AR_CREATE_ERROR_INVALID_NUM_PE
        if duration <= 0:
            return GridSimTags.AR_CREATE_ERROR_INVALID_DURATION_TIME
        if start_time is not None and start_time < self.clock():
            return GridSimTags.AR_CREATE_ERROR_INVALID_START_TIME
        if not self._valid_resource(resource_id, 'create_reservation'):
            return GridSimTags.AR_CREATE_ERROR_INVALID_RESOURCE_ID
        return 0

    def _create(self, start_time, duration, num_pe, resource_id, immediate):
        result = self._check_request(start_time, duration, num_pe, resource_id)
        if result < 0:
            return result
        resource_id = self.simulator.get_entity_id(resource_id)
        ar = ARObject(self.clock() if immediate else start_time, duration, num_pe, resource_id, self.id,
                      self.time_zone, self._next_transaction())
        tag = GridSimTags.SEND_AR_CREATE_IMMEDIATE if immediate else GridSimTags.SEND_AR_CREATE
        data = yield from self._ar_request(resource_id, tag, ar, GridSimTags.RETURN_AR_CREATE, ar.transaction_id)
        _, reservation_id, expiry_time = data
        if reservation_id < 0:
            self._logger.debug('{}: {} reservation rejected by #{} with code {}'.format(self.clock(), self.name, resource_id, reservation_id))
            return reservation_id
        ar.set_reservation(reservation_id, expiry_time)
        self.bookings[ar.booking_id] = ar
        return ar.booking_id

    def create_reservation(self, start_time, duration, num_pe, resource_id):
        """

        Books num_pe PEs of a resource for a time window. The booking must be committed before its expiry time.

        :param start_time: Start time in the time zone of the user
        :param duration: Duration in seconds
        :param num_pe: Number of PEs
        :param resource_id: Id of an AR resource

        :return: The booking id, or a negative AR_CREATE_* code if the request is rejected.

        """
        start_time = ARObject.convert_time_zone(start_time, self.time_zone, 0.0)
        booking_id = yield from self._create(start_time, duration, num_pe, resource_id, False)
        return booking_id

    def create_immediate_reservation(self, duration, num_pe, resource_id):
        """

        Books num_pe PEs starting now. The booking expires at its end time.

        """
        booking_id = yield from self._create(None, duration, num_pe, resource_id, True)
        return booking_id

    def _parse_booking_id(self, booking_id):
        try:
            resource_id, reservation_id = [int(value) for value in booking_id.split('_')]
        except (AttributeError, ValueError):
            raise ReservationError('Invalid booking id: {}'.format(booking_id))
        return resource_id, reservation_id

    def commit_reservation(self, booking_id, gridlets=None):
        """

        Commits a booking. The gridlets are executed when the reservation starts.

        :param booking_id: Booking id returned by the creation
        :param gridlets: None, one gridlet or a list of gridlets

        :return: One of the AR_COMMIT_* codes

        """
        try:
            resource_id, reservation_id = self._parse_booking_id(booking_id)
        except ReservationError as e:
            self._logger.warning('{}: {} {}'.format(self.clock(), self.name, e))
            return GridSimTags.AR_COMMIT_FAIL_INVALID_BOOKING_ID
        transaction_id = self._next_transaction()
        if gridlets is None:
            data = [transaction_id, reservation_id]
            tag = GridSimTags.SEND_AR_COMMIT_ONLY
            size = self.REQUEST_SIZE
        else:
            _gridlets = [gridlets] if isinstance(gridlets, Gridlet) else list(gridlets)
            for gridlet in _gridlets:
                gridlet.set_user_id(self.id, self.name)
                gridlet.set_reservation_id(reservation_id)
            data = [transaction_id, reservation_id, gridlets]
            tag = GridSimTags.SEND_AR_COMMIT_WITH_GRIDLET
            size = self.REQUEST_SIZE + sum(gridlet.file_size for gridlet in _gridlets)
        _, result = yield from self._ar_request(resource_id, tag, data, GridSimTags.RETURN_AR_COMMIT, transaction_id, size)
        ar = self.bookings.get(booking_id)
        if ar is not None and result == GridSimTags.AR_COMMIT_SUCCESS:
            ar.committed = True
            ar.status = GridSimTags.AR_STATUS_NOT_STARTED if ar.start_time > self.clock() else GridSimTags.AR_STATUS_ACTIVE
        elif ar is not None and result == GridSimTags.AR_COMMIT_FAIL_EXPIRED:
            ar.status = GridSimTags.AR_STATUS_EXPIRED
        return result

    def cancel_reservation(self, booking_id, gridlet_ids=None):
        """

        Cancels a booking, or only some of its gridlets. The cancelled gridlets are sent back to the user.

        :param booking_id: Booking id returned by the creation
        :param gridlet_ids: None cancels the whole reservation. A gridlet id or a list of them cancels those gridlets.

        :return: One of the AR_CANCEL_* codes

        """
        try:
            resource_id, reservation_id = self._parse_booking_id(booking_id)
        except ReservationError as e:
            self._logger.warning('{}: {} {}'.format(self.clock(), self.name, e))
            return GridSimTags.AR_CANCEL_FAIL_INVALID_BOOKING_ID
        if isinstance(gridlet_ids, int):
            gridlet_ids = [gridlet_ids]
        transaction_id = self._next_transaction()
        data = [transaction_id, reservation_id, gridlet_ids]
        _, result = yield from self._ar_request(resource_id, GridSimTags.SEND_AR_CANCEL, data,
                                                GridSimTags.RETURN_AR_CANCEL, transaction_id)
        ar = self.bookings.get(booking_id)
        if ar is not None and gridlet_ids is None and result == GridSimTags.AR_CANCEL_SUCCESS:
            ar.status = GridSimTags.AR_STATUS_CANCELED
        return result

    def query_reservation(self, booking_id):
        """

        :return: One of the AR_STATUS_* codes

        """
        try:
            resource_id, reservation_id = self._parse_booking_id(booking_id)
        except ReservationError as e:
            self._logger.warning('{}: {} {}'.format(self.clock(), self.name, e))
            return GridSimTags.AR_STATUS_ERROR_INVALID_BOOKING_ID
        transaction_id = self._next_transaction()
        _, status = yield from self._ar_request(resource_id, GridSimTags.SEND_AR_QUERY, [transaction_id, reservation_id],
                                                GridSimTags.RETURN_AR_QUERY_STATUS, transaction_id)
        ar = self.bookings.get(booking_id)
        if ar is not None and status not in (GridSimTags.AR_STATUS_ERROR, GridSimTags.AR_STATUS_RESERVATION_DOESNT_EXIST):
            ar.status = status
        return status

    def modify_reservation(self, booking_id, start_time, duration, num_pe):
        """

        Requests new parameters for a booking.

        :return: One of the AR_MODIFY_* codes

        """
        try:
            resource_id, reservation_id = self._parse_booking_id(booking_id)
        except ReservationError as e:
            self._logger.warning('{}: {} {}'.format(self.clock(), self.name, e))
            return GridSimTags.AR_MODIFY_FAIL_INVALID_BOOKING_ID
        if num_pe < 1:
            return GridSimTags.AR_MODIFY_FAIL_INVALID_NUM_PE
        start_time = ARObject.convert_time_zone(start_time, self.time_zone, 0.0)
        if start_time < self.clock():
            return GridSimTags.AR_MODIFY_FAIL_INVALID_START_TIME
        if duration <= 0:
            return GridSimTags.AR_MODIFY_FAIL_INVALID_END_TIME
        ar = ARObject(start_time, duration, num_pe, resource_id, self.id, self.time_zone, self._next_transaction())
        ar.reservation_id = reservation_id
        _, result = yield from self._ar_request(resource_id, GridSimTags.SEND_AR_MODIFY, ar,
                                                GridSimTags.RETURN_AR_MODIFY, ar.transaction_id)
        if result == GridSimTags.AR_MODIFY_SUCCESS and booking_id in self.bookings:
            booking = self.bookings[booking_id]
            booking.start_time, booking.duration, booking.num_pe = start_time, duration, num_pe
        return result

    def _query_time(self, from_time, to_time, resource_id, tag):
        if not self._valid_resource(resource_id, 'query_time'):
            return None
        transaction_id = self._next_transaction()
        from_time = ARObject.convert_time_zone(from_time, self.time_zone, 0.0)
        to_time = ARObject.convert_time_zone(to_time, self.time_zone, 0.0)
        self.send_io(resource_id, GridSimTags.SCHEDULE_NOW, tag, [transaction_id, from_time, to_time], self.REQUEST_SIZE)
        ev = yield from self.receive(FilterQueryTimeAR(transaction_id))
        return ev.data[1]

    def query_free_time(self, from_time, to_time, resource_id):
        """

        :return: List of [start, duration, free PEs], or None if the resource does not support reservations.

        """
        times = yield from self._query_time(from_time, to_time, resource_id, GridSimTags.SEND_AR_LIST_FREE_TIME)
        return times

    def query_busy_time(self, from_time, to_time, resource_id):
        """

        :return: List of [start, duration, reserved PEs], or None if the resource does not support reservations.

        """
        times = yield from self._query_time(from_time, to_time, resource_id, GridSimTags.SEND_AR_LIST_BUSY_TIME)
        return times


class ReservationError(Exception):
    pass
