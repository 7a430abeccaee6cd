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
from datetime import datetime, timezone

from gridsim.base.calendar_class import ResourceCalendar
from gridsim.base.grid_resource_class import GridResource, ARGridResource
from gridsim.base.gridlet_class import Gridlet
from gridsim.base.reservation_class import AdvanceReservation
from gridsim.base.resource_class import ResourceCharacteristics, build_machine_list
from gridsim.base.simulator_class import Simulator
from gridsim.base.tags import GridSimTags
from gridsim.base.user_class import GridUser
from gridsim.utils.misc import load_config
from gridsim.utils.random_class import GridSimRandom

sys_cfg = 'config/grid.config'
num_gridlets = 10


class ExampleUser(GridUser):
    """

    Submits gridlets of random length to the available resources in round robin and waits for all of them.

    """

    def __init__(self, name, simulator, random):
        GridUser.__init__(self, name, simulator, baud_rate=1000000)
        self.random = random

    def body(self):
        resources = yield from self.get_resource_list()
        for i in range(num_gridlets):
            length = self.random.real_exec(42000)
            gridlet = Gridlet(i, length, self.random.real_io(300), self.random.real_io(300))
            yield from self.gridlet_submit(gridlet, resources[i % len(resources)], delay=i * 10)
        cost = 0
        for _ in range(num_gridlets):
            gridlet = yield from self.gridlet_receive()
            cost += gridlet.processing_cost
        self.record_statistics('USER.ProcessingCost', cost)
        self.shutdown_user()


class ExampleReservationUser(AdvanceReservation):
    """

    Books 2 PEs for one hour starting in ten minutes, and commits the booking with two gridlets.

    """

    def body(self):
        resource_id = (yield from self.get_ar_resource_list())[0]
        booking = yield from self.create_reservation(self.clock() + 600, 3600, 2, resource_id)
        if isinstance(booking, str):
            gridlets = [Gridlet(100 + i, 100000, 300, 300) for i in range(2)]
            result = yield from self.commit_reservation(booking, gridlets)
            if result == GridSimTags.AR_COMMIT_SUCCESS:
                for _ in gridlets:
                    yield from self.gridlet_receive()
        self.shutdown_user()


def characteristics(config, policy):
    machine_list = build_machine_list(config['groups'], config['resources'])
    return ResourceCharacteristics(config['architecture'], config['os'], machine_list, policy,
                                   config['time_zone'], config['cost_per_sec'])


config = load_config(sys_cfg)
random = GridSimRandom(seed='example', less_factor_io=0.1, more_factor_io=0.1, less_factor_exec=0.2, more_factor_exec=0.2)
simulator = Simulator(2, calendar=datetime(2024, 1, 1, tzinfo=timezone.utc), RESULTS_FOLDER_NAME='results',
                      benchmark_output=True)

calendar = ResourceCalendar(config['time_zone'], 0.3, 0.05, 0.5, weekends=[6, 7], seed='example')
GridResource('Resource_0', simulator, characteristics(config, ResourceCharacteristics.TIME_SHARED), calendar=calendar)
GridResource('Resource_1', simulator, characteristics(config, ResourceCharacteristics.SPACE_SHARED))
ARGridResource('Resource_2', simulator, characteristics(config, ResourceCharacteristics.ADVANCE_RESERVATION))
ExampleUser('User_0', simulator, random)
ExampleReservationUser('User_1', simulator)
simulator.start_simulation()
