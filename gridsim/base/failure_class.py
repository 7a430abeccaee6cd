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
from gridsim.base.event_class import SimEntity
from gridsim.base.filter_class import FilterTag
from gridsim.base.grid_resource_class import FailureMsg
from gridsim.base.tags import GridSimTags
from gridsim.utils.random_class import GridSimRandom


class FailureGenerator(SimEntity):
    """

    Injects random machine failures into the resources registered at the information service.

    The generator is driven by three samplers. Each sampler is a callable that receives the
    :class:`gridsim.utils.random_class.GridSimRandom` object of the generator and returns a number:

    - num_res_sampler: How many resources fail. It also gives the number of machines of each failure.
    - time_sampler: Time until the failures are planned, and from there until each failure.
    - length_sampler: Duration of each failure in seconds. The machines recover after it.

    Negative samples are taken as absolute values. Only resources without failed machines are chosen.

    """
    PLAN_FAILURES = GridSimTags.BASE + 40
    GENERATE_FAILURE = GridSimTags.BASE + 41
    # Delay before asking again for the resources when none is registered
    RETRY_DELAY = 120

    notify_shutdown = True

    def __init__(self, name, simulator, num_res_sampler, time_sampler, length_sampler, seed=None):
        """

        :param name: Name of the entity
        :param simulator: The simulator where the failures are injected
        :param num_res_sampler: Sampler of the number of failed resources and machines
        :param time_sampler: Sampler of the time between failures
        :param length_sampler: Sampler of the failure durations
        :param seed: Optional. Seed of the random generator used by the samplers and the resource selection.

        """
        for _name, _sampler in (('num_res_sampler', num_res_sampler), ('time_sampler', time_sampler),
                                ('length_sampler', length_sampler)):
            assert(callable(_sampler)), '{} must be callable'.format(_name)
        SimEntity.__init__(self, name, simulator)
        self.num_res_sampler = num_res_sampler
        self.time_sampler = time_sampler
        self.length_sampler = length_sampler
        self.random = GridSimRandom(seed)
        # (time, resource id, number of machines, length) of each sent failure
        self.failures = []

    def sample(self, sampler):
        return abs(sampler(self.random))

    def body(self):
        tags = (GridSimTags.END_OF_SIMULATION, self.PLAN_FAILURES, self.GENERATE_FAILURE)
        self.send(self, self.sample(self.time_sampler), self.PLAN_FAILURES)
        while True:
            ev = yield from self.receive(lambda e: e.tag in tags)
            if ev.tag == GridSimTags.END_OF_SIMULATION:
                break
            resources = yield from self.get_resource_list()
            if not resources:
                self._logger.debug('{}: {} found no resources. Retrying in {} secs'.format(self.clock(), self.name,
                                                                                          self.RETRY_DELAY))
                self.send(self, self.RETRY_DELAY, ev.tag)
            elif ev.tag == self.PLAN_FAILURES:
                self.plan_failures(resources)
            else:
                self.generate_failure(resources)

    def get_resource_list(self):
        gis = self.simulator.gis
        if gis is None:
            return []
        self.send(gis, GridSimTags.SCHEDULE_NOW, GridSimTags.RESOURCE_LIST)
        ev = yield from self.receive(FilterTag(GridSimTags.RESOURCE_LIST, gis.id))
        return ev.data

    def plan_failures(self, resources):
        num_res = min(int(self.sample(self.num_res_sampler)), len(resources))
        self._logger.debug('{}: {} plans {} failures'.format(self.clock(), self.name, num_res))
        for _ in range(num_res):
            self.send(self, self.sample(self.time_sampler), self.GENERATE_FAILURE)

    def generate_failure(self, resources):
        """

        Sends a failure to one of the resources that have all their machines working.

        :param resources: Ids of the registered resources

        :return: The id of the failed resource or None if no failure was sent.

        """
        length = self.sample(self.length_sampler)
        num_machines = int(self.sample(self.num_res_sampler))
        if length <= 0 or num_machines <= 0:
            return None
        working = [res_id for res_id in resources
                   if self.simulator.get_entity(res_id).characteristics.machine_list.num_failed_machines == 0]
        if not working:
            self._logger.debug('{}: {} found no resource with every machine working'.format(self.clock(), self.name))
            return None
        res_id = working[self.random.int_sample(len(working))]
        self.send(res_id, GridSimTags.SCHEDULE_NOW, GridSimTags.GRIDRESOURCE_FAILURE,
                  FailureMsg(length, res_id, num_machines))
        self.failures.append((self.clock(), res_id, num_machines, length))
        self._logger.info('{}: {} sends a failure of {} machines to the resource #{} for {} secs'.format(
            self.clock(), self.name, num_machines, res_id, length))
        return res_id
