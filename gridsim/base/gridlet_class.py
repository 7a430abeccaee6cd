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
from gridsim.base.tags import GridletStatus


class _ResourceRecord:
    """

    Execution record of a gridlet on a single resource.

    """

    def __init__(self, resource_id, resource_name, cost_per_sec):
        self.resource_id = resource_id
        self.resource_name = resource_name
        self.cost_per_sec = cost_per_sec
        self.submission_time = 0.0
        self.wall_clock_time = 0.0
        self.actual_cpu_time = 0.0
        self.finished_so_far = 0.0


class Gridlet:
    """

    A gridlet is a job that is submitted by a user entity to a grid resource. It keeps the information of the
    job (length in MI, input and output sizes, required PEs) and its execution history on every resource where it
    was processed.

    """
    NOT_FOUND = -1

    def __init__(self, gridlet_id, length, file_size, output_size, num_pe=1, record=True, reservation_id=-1):
        """

        :param gridlet_id: Identification of the gridlet.
        :param length: Length of the job in MI (Million Instructions). Values lower than 1 are set to 1.
        :param file_size: Size of the program plus input data, in bytes. Values lower than 1 are set to 1.
        :param output_size: Size of the output, in bytes. Values lower than 1 are set to 1.
        :param num_pe: Number of PEs required to execute the gridlet.
        :param record: Records a textual history of every change in the gridlet.
        :param reservation_id: Reservation made for this gridlet. -1 if there is no reservation.

        """
        self.id = gridlet_id
        self.length = max(float(length), 1.0)
        self.file_size = max(int(file_size), 1)
        self.output_size = max(int(output_size), 1)
        self.num_pe = max(int(num_pe), 1)
        self.user_id = self.NOT_FOUND
        self.status = GridletStatus.CREATED
        self.exec_start_time = 0.0
        self.finish_time = -1.0
        self.reservation_id = reservation_id if reservation_id > 0 else self.NOT_FOUND
        self.class_type = 0
        self.clock = lambda: 0.0
        self._records = []
        self._record = record
        self._history = None
        if record:
            self._history = ['Time below denotes the simulation time.',
                             'Time (sec)       Description Gridlet #{}'.format(self.id),
                             '------------------------------------------']
            self._write('Creates Gridlet ID #{}'.format(self.id))

    def set_clock(self, clock):
        """

        :param clock: A callable that returns the current simulated time. Used for the history and timestamps.

        """
        self.clock = clock

    def _write(self, message):
        if self._history is not None:
            self._history.append('{:<16.2f} {}'.format(self.clock(), message))

    def _current(self):
        return self._records[-1] if self._records else None

    def _record_of(self, resource_id):
        for record in reversed(self._records):
            if record.resource_id == resource_id:
                return record
        return None

    def set_length(self, length):
        if length <= 0:
            return False
        self.length = float(length)
        return True

    def set_num_pe(self, num_pe):
        if num_pe < 1:
            return False
        self.num_pe = int(num_pe)
        return True

    def set_reservation_id(self, reservation_id):
        if reservation_id <= 0:
            return False
        self.reservation_id = reservation_id
        return True

    def has_reserved(self):
        return self.reservation_id != self.NOT_FOUND

    def set_class_type(self, class_type):
        if class_type <= 0:
            return False
        self.class_type = class_type
        return True

    def set_user_id(self, user_id, user_name=None):
        self.user_id = user_id
        self._write('Assigns the Gridlet to {} (ID #{})'.format(user_name or 'User', user_id))

    def set_resource_parameter(self, resource_id, cost_per_sec, resource_name=None):
        """

        Adds a new execution record. It is called by a resource when the gridlet arrives to it.

        :param resource_id: Id of the resource
        :param cost_per_sec: Cost of the resource per second of CPU time
        :param resource_name: Name of the resource

        """
        record = _ResourceRecord(resource_id, resource_name, cost_per_sec)
        previous = self._current()
        if previous is None:
            self._write('Allocates this Gridlet to {} (ID #{}) with cost = ${}/sec'.format(resource_name, resource_id, cost_per_sec))
        else:
            self._write('Moves Gridlet from {} (ID #{}) to {} (ID #{}) with cost = ${}/sec'
                        .format(previous.resource_name, previous.resource_id, resource_name, resource_id, cost_per_sec))
        self._records.append(record)

    def set_submission_time(self, time):
        record = self._current()
        if time < 0.0 or record is None:
            return
        record.submission_time = time
        self._write('Sets the submission time to {:.2f}'.format(time))

    def set_exec_start_time(self, time):
        self.exec_start_time = time
        self._write('Sets the execution start time to {:.2f}'.format(time))

    def set_exec_param(self, wall_clock_time, actual_cpu_time):
        record = self._current()
        if wall_clock_time < 0.0 or actual_cpu_time < 0.0 or record is None:
            return
        record.wall_clock_time = wall_clock_time
        record.actual_cpu_time = actual_cpu_time
        self._write('Sets the wall clock time to {:.2f} and the actual CPU time to {:.2f}'.format(wall_clock_time, actual_cpu_time))

    def set_finished_so_far(self, length):
        record = self._current()
        if length < 0.0 or record is None:
            return
        record.finished_so_far = length
        self._write('Sets the length\'s finished so far to {}'.format(length))

    def set_status(self, status):
        """

        Changes the status of the gridlet. A SUCCESS status sets the finish time.

        :param status: A :class:`gridsim.base.tags.GridletStatus` value

        """
        try:
            new_status = GridletStatus(status)
        except ValueError:
            raise GridletError('Invalid gridlet status: {}'.format(status))
        if new_status == self.status:
            return
        if new_status == GridletStatus.SUCCESS:
            self.finish_time = self.clock()
        self._write('Sets Gridlet status from {} to {}'.format(self.status.label, new_status.label))
        self.status = new_status

    def is_finished(self):
        record = self._current()
        if record is None:
            return False
        return self.length - record.finished_so_far <= 0.0

    @property
    def status_name(self):
        return self.status.label

    @property
    def resource_id(self):
        record = self._current()
        return record.resource_id if record else self.NOT_FOUND

    @property
    def resource_name(self):
        record = self._current()
        return record.resource_name if record else None

    @property
    def submission_time(self):
        record = self._current()
        return record.submission_time if record else 0.0

    @property
    def wall_clock_time(self):
        record = self._current()
        return record.wall_clock_time if record else 0.0

    @property
    def actual_cpu_time(self):
        record = self._current()
        return record.actual_cpu_time if record else 0.0

    @property
    def cost_per_sec(self):
        record = self._current()
        return record.cost_per_sec if record else 0.0

    @property
    def finished_so_far(self):
        record = self._current()
        if record is None:
            return self.length
        return min(record.finished_so_far, self.length)

    @property
    def processing_cost(self):
        return sum(record.actual_cpu_time * record.cost_per_sec for record in self._records)

    @property
    def waiting_time(self):
        if not self._records:
            return 0.0
        return self.exec_start_time - self._current().submission_time

    @property
    def resource_ids(self):
        return [record.resource_id for record in self._records]

    @property
    def resource_names(self):
        return [record.resource_name for record in self._records]

    def get_actual_cpu_time(self, resource_id):
        record = self._record_of(resource_id)
        return record.actual_cpu_time if record else 0.0

    def get_wall_clock_time(self, resource_id):
        record = self._record_of(resource_id)
        return record.wall_clock_time if record else 0.0

    def get_cost_per_sec(self, resource_id):
        record = self._record_of(resource_id)
        return record.cost_per_sec if record else 0.0

    def get_submission_time(self, resource_id):
        record = self._record_of(resource_id)
        return record.submission_time if record else 0.0

    def get_finished_so_far(self, resource_id):
        record = self._record_of(resource_id)
        return record.finished_so_far if record else 0.0

    def history(self):
        if self._history is None:
            return 'No history is recorded for Gridlet #{}'.format(self.id)
        return '\n'.join(self._history) + '\n'

    def subattr(self, obj, attrs):
        """

        Internal method that reads a description, and extract the value from the object itself and return it. It is used
        for generating the output files.

        :param obj: Object to be analyzed
        :param attrs: Attributes to be extracted from the object

        :return: Value of the object.

        """
        if isinstance(attrs, tuple):
            return [self.subattr(obj, attr) for attr in attrs]
        sp_attr = attrs.split('.')
        if len(sp_attr) > 1:
            tmp = getattr(obj, sp_attr[0])
            return self.subattr(tmp, '.'.join(sp_attr[1:]))
        try:
            if isinstance(obj, dict):
                return obj.get(sp_attr[0], 'NA')
            return getattr(obj, sp_attr[0])
        except AttributeError:
            return 'NA'

    def __str__(self):
        return 'Gridlet_{}'.format(self.id)

    def __repr__(self):
        return 'Gridlet_{}'.format(self.id)


class ResGridlet:
    """

    Resource side wrapper of a gridlet. It keeps track of the execution on a resource: arrival time, time spent in
    execution, the MI already processed and the PEs where it is running.

    """
    NOT_FOUND = -1
    # MI
    FINISHED_TOLERANCE = 1e-6
    _RUNNING = (GridletStatus.INEXEC, GridletStatus.RESUMED)
    _STOPPED = (GridletStatus.QUEUED, GridletStatus.CANCELED, GridletStatus.PAUSED, GridletStatus.SUCCESS,
                GridletStatus.FAILED, GridletStatus.FAILED_RESOURCE_UNAVAILABLE)

    def __init__(self, gridlet, clock, start_time=0.0, duration=0.0, reservation_id=-1):
        """

        :param gridlet: The :class:`.Gridlet` to be wrapped
        :param clock: A callable that returns the current simulated time
        :param start_time: Reservation start time (only for reserved gridlets)
        :param duration: Reservation duration (only for reserved gridlets)
        :param reservation_id: Reservation id, -1 if not reserved

        """
        self.gridlet = gridlet
        self.clock = clock
        self.start_time = start_time
        self.duration = duration
        self.reservation_id = reservation_id
        self.num_pe = gridlet.num_pe
        self.arrival_time = clock()
        gridlet.set_submission_time(self.arrival_time)
        self.finish_time = self.NOT_FOUND
        self.machine_id = self.NOT_FOUND
        self.pe_id = self.NOT_FOUND
        self.machines_pes = []
        self.total_completion_time = 0.0
        self.start_exec_time = 0.0
        self._first_exec_time = None
        self.finished_so_far = gridlet.finished_so_far if gridlet.resource_id != Gridlet.NOT_FOUND else 0.0

    @property
    def id(self):
        return self.gridlet.id

    @property
    def user_id(self):
        return self.gridlet.user_id

    @property
    def length(self):
        return self.gridlet.length

    @property
    def status(self):
        return self.gridlet.status

    def has_reserved(self):
        return self.reservation_id != self.NOT_FOUND

    def set_status(self, status):
        """

        Changes the gridlet status and accounts the execution time.

        :param status: New status

        :return: True if the status changed.

        """
        prev_status = self.gridlet.status
        if prev_status == status:
            return False
        clock = self.clock()
        self.gridlet.set_status(status)
        if prev_status in self._RUNNING and status in self._STOPPED:
            self.total_completion_time += clock - self.start_exec_time
            self.gridlet.set_exec_start_time(self._first_exec_time)
            return True
        if status == GridletStatus.INEXEC or (prev_status == GridletStatus.PAUSED and status == GridletStatus.RESUMED):
            self.start_exec_time = clock
            if self._first_exec_time is None:
                self._first_exec_time = clock
            self.gridlet.set_exec_start_time(self._first_exec_time)
        return True

    def set_machine_and_pe(self, machine_id, pe_id):
        self.machine_id = machine_id
        self.pe_id = pe_id
        self.machines_pes.append((machine_id, pe_id))

    def clear_machines(self):
        self.machine_id = self.NOT_FOUND
        self.pe_id = self.NOT_FOUND
        self.machines_pes = []

    @property
    def remaining_length(self):
        return max(self.gridlet.length - self.finished_so_far, 0.0)

    def is_finished(self):
        return self.remaining_length <= self.FINISHED_TOLERANCE

    def update_finished_so_far(self, mi_length):
        self.finished_so_far += mi_length

    def set_finish_time(self, time):
        if time < 0.0:
            return
        self.finish_time = time

    def finalize(self):
        """

        Writes back the execution parameters to the gridlet.

        """
        wall_clock_time = self.clock() - self.arrival_time
        self.gridlet.set_exec_param(wall_clock_time, self.total_completion_time)
        finished = self.finished_so_far
        if self.gridlet.status == GridletStatus.SUCCESS or finished > self.gridlet.length:
            finished = self.gridlet.length
        self.gridlet.set_finished_so_far(finished)

    def __str__(self):
        return 'ResGridlet_{}'.format(self.gridlet.id)

    def __repr__(self):
        return self.__str__()


class GridletList(list):
    """

    A list of gridlets with some helpers for sorting and searching.

    """

    def sort_by_length(self, reverse=False):
        self.sort(key=lambda gridlet: gridlet.length, reverse=reverse)

    def sort_by_id(self, reverse=False):
        self.sort(key=lambda gridlet: gridlet.id, reverse=reverse)

    def find(self, gridlet_id, user_id=None):
        for gridlet in self:
            if gridlet.id == gridlet_id and (user_id is None or gridlet.user_id == user_id):
                return gridlet
        return None

    def index_of(self, gridlet_id, user_id):
        for i, gridlet in enumerate(self):
            if gridlet.id == gridlet_id and gridlet.user_id == user_id:
                return i
        return -1


class GridletError(Exception):
    pass
