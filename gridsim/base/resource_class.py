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
from gridsim.utils.misc import FrozenDict


class PE:
    """

    Processing element. It represents a CPU core with a MIPS rating.

    """
    FREE = 0
    BUSY = 1
    FAILED = 2

    def __init__(self, pe_id, mips_rating):
        assert(mips_rating > 0), 'The MIPS rating must be greater than 0. Received: {}'.format(mips_rating)
        self.id = pe_id
        self.mips_rating = mips_rating
        self.status = self.FREE

    def set_status(self, status):
        assert(status in (self.FREE, self.BUSY, self.FAILED)), 'Invalid PE status: {}'.format(status)
        self.status = status

    def __str__(self):
        return 'PE_{}'.format(self.id)


class Machine:
    """

    A machine is a group of PEs.

    """

    def __init__(self, machine_id, pe_list):
        """

        :param machine_id: Identification of the machine
        :param pe_list: List of :class:`.PE` objects

        """
        assert(pe_list), 'A machine must have at least one PE'
        self.id = machine_id
        self.pe_list = list(pe_list)
        self.failed = False

    @property
    def num_pe(self):
        return len(self.pe_list)

    @property
    def num_free_pe(self):
        return sum(1 for pe in self.pe_list if pe.status == PE.FREE)

    @property
    def num_busy_pe(self):
        return sum(1 for pe in self.pe_list if pe.status == PE.BUSY)

    @property
    def mips_rating(self):
        return sum(pe.mips_rating for pe in self.pe_list)

    def get_pe(self, pe_id):
        for pe in self.pe_list:
            if pe.id == pe_id:
                return pe
        return None

    def get_free_pe(self):
        for pe in self.pe_list:
            if pe.status == PE.FREE:
                return pe
        return None

    def set_status_pe(self, status, pe_id):
        pe = self.get_pe(pe_id)
        if pe is None:
            return False
        pe.set_status(status)
        return True

    def set_failed(self, failed):
        """

        Sets the machine as failed or working. All its PEs are updated accordingly.

        :param failed: True for failed, False for working

        """
        self.failed = failed
        for pe in self.pe_list:
            pe.set_status(PE.FAILED if failed else PE.FREE)

    def __str__(self):
        return 'Machine_{}'.format(self.id)


class MachineList(list):
    """

    List of machines of a resource.

    """

    def get_machine(self, machine_id):
        for machine in self:
            if machine.id == machine_id:
                return machine
        return None

    def get_free_machine(self):
        for machine in self:
            if not machine.failed and machine.num_free_pe > 0:
                return machine
        return None

    def get_free_pe(self):
        """

        :return: A tuple (machine_id, pe_id) of the first free PE or None.

        """
        machine = self.get_free_machine()
        if machine is None:
            return None
        return machine.id, machine.get_free_pe().id

    def set_status_pe(self, status, machine_id, pe_id):
        machine = self.get_machine(machine_id)
        if machine is None:
            return False
        return machine.set_status_pe(status, pe_id)

    @property
    def num_pe(self):
        return sum(machine.num_pe for machine in self)

    @property
    def num_free_pe(self):
        return sum(machine.num_free_pe for machine in self)

    @property
    def num_busy_pe(self):
        return sum(machine.num_busy_pe for machine in self)

    @property
    def num_failed_machines(self):
        return sum(1 for machine in self if machine.failed)

    @property
    def mips_rating(self):
        return sum(machine.mips_rating for machine in self)

    @property
    def mips_rating_of_one_pe(self):
        if not self:
            return 0
        return self[0].pe_list[0].mips_rating


def build_machine_list(groups, resources):
    """

    Builds a machine list from a system definition.

    :param groups: define the groups of machines. i.e: {'group_0': {'pe': 4, 'mips': 377}, .. }
    :param resources: Number of machines of each group. i.e: {'group_0': 32}, This will create 32 machines of the group_0

    :return: A :class:`.MachineList`

    """
    _groups = {}
    for group_name, group_values in groups.items():
        assert(isinstance(group_values, dict)), 'The group {} must be a dict'.format(group_name)
        assert(group_values.get('pe', 0) > 0), 'The group {} must have at least one PE'.format(group_name)
        assert(group_values.get('mips', 0) > 0), 'The group {} must have a MIPS rating'.format(group_name)
        _groups[group_name] = FrozenDict(**group_values)

    machines = MachineList()
    j = 0
    for group_name, q in resources.items():
        assert(group_name in _groups), 'The group {} is not defined'.format(group_name)
        _group = _groups[group_name]
        for _ in range(q):
            machines.append(Machine(j, [PE(i, _group['mips']) for i in range(_group['pe'])]))
            j += 1
    return machines


class ResourceCharacteristics:
    """

    Static properties of a resource: architecture, operating system, machines, allocation policy, time zone and cost.

    """
    TIME_SHARED = 0
    SPACE_SHARED = 1
    OTHER_POLICY_SAME_RATING = 2
    OTHER_POLICY_DIFFERENT_RATING = 3
    ADVANCE_RESERVATION = 4

    POLICIES = (TIME_SHARED, SPACE_SHARED, OTHER_POLICY_SAME_RATING, OTHER_POLICY_DIFFERENT_RATING,
                ADVANCE_RESERVATION)

    def __init__(self, architecture, os, machine_list, policy, time_zone, cost_per_sec):
        """

        :param architecture: Architecture name. i.e: 'Sun Ultra'
        :param os: Operating system name. i.e: 'Solaris'
        :param machine_list: A :class:`.MachineList`
        :param policy: Allocation policy. One of the POLICIES values.
        :param time_zone: Time zone of the resource. Values outside [-12, 13] are set to 0.
        :param cost_per_sec: Cost of using the resource per second

        """
        assert(policy in self.POLICIES), 'Invalid allocation policy: {}'.format(policy)
        if machine_list is None or machine_list.num_pe == 0:
            raise ResourceError('A resource must have at least one PE')
        self.architecture = architecture
        self.os = os
        self.machine_list = machine_list
        self.policy = policy
        self.time_zone = time_zone if -12 <= time_zone <= 13 else 0
        self.cost_per_sec = cost_per_sec
        self.resource_id = -1
        self.resource_name = None

    @property
    def mips_rating_of_one_pe(self):
        return self.machine_list.mips_rating_of_one_pe

    @property
    def mips_rating(self):
        if self.policy in (self.TIME_SHARED, self.OTHER_POLICY_SAME_RATING):
            return self.mips_rating_of_one_pe * self.machine_list.num_pe
        return self.machine_list.mips_rating

    def cpu_time(self, length, load):
        """

        :param length: Gridlet length in MI
        :param load: Current load of the resource

        :return: Expected CPU time to process the length. Only meaningful for time shared resources.

        """
        if self.policy != self.TIME_SHARED:
            return 0.0
        return length / (self.mips_rating_of_one_pe * (1.0 - load))

    @property
    def cost_per_mi(self):
        return self.cost_per_sec / self.mips_rating_of_one_pe

    def is_working(self):
        return self.machine_list.num_failed_machines == 0

    @property
    def num_machines(self):
        return len(self.machine_list)

    @property
    def num_pe(self):
        return self.machine_list.num_pe

    @property
    def num_free_pe(self):
        return self.machine_list.num_free_pe

    @property
    def num_busy_pe(self):
        return self.machine_list.num_busy_pe

    @property
    def num_failed_machines(self):
        return self.machine_list.num_failed_machines

    def __str__(self):
        return 'ResourceCharacteristics({}, {}, machines={}, pe={})'.format(self.architecture, self.os, self.num_machines, self.num_pe)


class ResourceError(Exception):
    pass
