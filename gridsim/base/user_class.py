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
from gridsim.base.event_class import SimEntity, EntityError
from gridsim.base.filter_class import FilterGridlet, FilterResult, FilterTag
from gridsim.base.grid_resource_class import GridResource
from gridsim.base.gridlet_class import Gridlet
from gridsim.base.statistics_class import Stat
from gridsim.base.tags import GridSimTags, GridletStatus


class GridUser(SimEntity):
    """

    Base class of the user entities. It offers the operations to find resources and to submit and control gridlets.
    Every blocking operation is a generator, so it must be called from the body of the user with ``yield from``:

    .. code-block:: python

        def body(self):
            resources = yield from self.get_resource_list()
            yield from self.gridlet_submit(gridlet, resources[0])
            gridlet = yield from self.gridlet_receive()
            self.shutdown_user()

    """
    # bytes
    REQUEST_SIZE = 12
    STAT_SIZE = 24

    def __init__(self, name, simulator, baud_rate=None):
        SimEntity.__init__(self, name, simulator, baud_rate)

    def _valid_resource(self, resource_id, operation):
        if resource_id is None or (isinstance(resource_id, int) and resource_id < 0):
            self._logger.warning('{}: {}.{}() invalid resource id {}'.format(self.clock(), self.name, operation, resource_id))
            return False
        try:
            entity = self.simulator.get_entity(resource_id)
        except EntityError:
            self._logger.warning('{}: {}.{}() resource {} does not exist'.format(self.clock(), self.name, operation, resource_id))
            return False
        if not isinstance(entity, GridResource):
            self._logger.warning('{}: {}.{}() {} is not a resource'.format(self.clock(), self.name, operation, entity.name))
            return False
        return True

    def _valid_gridlet(self, gridlet_id, operation):
        if gridlet_id is None or gridlet_id < 0:
            self._logger.warning('{}: {}.{}() invalid gridlet id {}'.format(self.clock(), self.name, operation, gridlet_id))
            return False
        return True

    def _request(self, dest, tag, data, delay=0):
        self.send_io(dest, delay, tag, data, self.REQUEST_SIZE)

    def _query(self, dest, tag, data=None):
        self.send(dest, GridSimTags.SCHEDULE_NOW, tag, data)
        ev = yield from self.receive(FilterTag(tag, self.simulator.get_entity_id(dest)))
        return ev.data

    # ===========================================================================
    # Resource discovery
    # ===========================================================================
    def get_resource_list(self):
        """

        :return: List of the ids of the registered resources

        """
        gis = self.simulator.gis
        if gis is None:
            return []
        resources = yield from self._query(gis, GridSimTags.RESOURCE_LIST)
        return resources

    def get_ar_resource_list(self):
        """

        :return: List of the ids of the registered resources that support advance reservations

        """
        gis = self.simulator.gis
        if gis is None:
            return []
        resources = yield from self._query(gis, GridSimTags.RESOURCE_AR_LIST)
        return resources

    def get_resource_characteristics(self, resource_id):
        if not self._valid_resource(resource_id, 'get_resource_characteristics'):
            return None
        characteristics = yield from self._query(resource_id, GridSimTags.RESOURCE_CHARACTERISTICS)
        return characteristics

    def get_resource_dynamics(self, resource_id):
        """

        :return: An :class:`gridsim.base.statistics_class.Accumulator` with the load of the resource

        """
        if not self._valid_resource(resource_id, 'get_resource_dynamics'):
            return None
        load = yield from self._query(resource_id, GridSimTags.RESOURCE_DYNAMICS)
        return load

    def get_num_pe(self, resource_id):
        if not self._valid_resource(resource_id, 'get_num_pe'):
            return -1
        num_pe = yield from self._query(resource_id, GridSimTags.RESOURCE_NUM_PE)
        return num_pe

    def get_num_free_pe(self, resource_id):
        if not self._valid_resource(resource_id, 'get_num_free_pe'):
            return -1
        num_pe = yield from self._query(resource_id, GridSimTags.RESOURCE_NUM_FREE_PE)
        return num_pe

    def poll_resource(self, resource_id):
        """

        :return: An :class:`gridsim.base.grid_resource_class.AvailabilityInfo` object

        """
        if not self._valid_resource(resource_id, 'poll_resource'):
            return None
        info = yield from self._query(resource_id, GridSimTags.GRIDRESOURCE_POLLING)
        return info

    # ===========================================================================
    # Gridlet operations
    # ===========================================================================
    def gridlet_submit(self, gridlet, resource_id, delay=0, ack=False):
        """

        Sends a gridlet to a resource. The transfer time depends on the file size of the gridlet.

        :param gridlet: A :class:`gridsim.base.gridlet_class.Gridlet` object
        :param resource_id: Id of the destination resource
        :param delay: Time before sending the gridlet
        :param ack: Wait for the acknowledgement of the resource

        :return: True if the gridlet was sent (and accepted when ack is True)

        """
        if not isinstance(gridlet, Gridlet):
            self._logger.warning('{}: {}.gridlet_submit() requires a Gridlet object'.format(self.clock(), self.name))
            return False
        if not self._valid_resource(resource_id, 'gridlet_submit'):
            return False
        if delay < 0:
            self._logger.warning('{}: {}.gridlet_submit() negative delay. Sending now'.format(self.clock(), self.name))
            delay = 0
        gridlet.set_user_id(self.id, self.name)
        tag = GridSimTags.GRIDLET_SUBMIT_ACK if ack else GridSimTags.GRIDLET_SUBMIT
        self.send_io(resource_id, delay, tag, gridlet, gridlet.file_size)
        if not ack:
            return True
        ev = yield from self.receive(FilterResult(gridlet.id, GridSimTags.GRIDLET_SUBMIT_ACK))
        return ev.data[1] == GridSimTags.TRUE

    def gridlet_receive(self, gridlet_id=None, resource_id=None):
        """

        Waits for a finished gridlet.

        :param gridlet_id: Id of the expected gridlet. None receives any gridlet.
        :param resource_id: Id of the resource that executed the gridlet. None accepts any resource.

        :return: The returned gridlet

        """
        ev = yield from self.receive(FilterGridlet(gridlet_id, self.id, resource_id))
        return ev.data

    def gridlet_cancel(self, gridlet_id, resource_id, delay=0):
        """

        :return: The cancelled gridlet, or None if the resource does not have it.

        """
        if not self._valid_gridlet(gridlet_id, 'gridlet_cancel') or not self._valid_resource(resource_id, 'gridlet_cancel'):
            return None
        self._request(resource_id, GridSimTags.GRIDLET_CANCEL, [gridlet_id, self.id], delay)
        ev = yield from self.receive(FilterGridlet(gridlet_id, tag=GridSimTags.GRIDLET_CANCEL))
        gridlet = ev.data
        if gridlet.status == GridletStatus.FAILED:
            return None
        return gridlet

    def gridlet_status(self, gridlet_id, resource_id):
        """

        :return: The :class:`gridsim.base.tags.GridletStatus` of the gridlet, or -1 if the resource does not have it.

        """
        if not self._valid_gridlet(gridlet_id, 'gridlet_status') or not self._valid_resource(resource_id, 'gridlet_status'):
            return -1
        self._request(resource_id, GridSimTags.GRIDLET_STATUS, [gridlet_id, self.id])
        ev = yield from self.receive(FilterResult(gridlet_id, GridSimTags.GRIDLET_STATUS))
        return ev.data[1]

    def _gridlet_control(self, operation, tag, ack_tag, gridlet_id, resource_id, delay, ack):
        if not self._valid_gridlet(gridlet_id, operation) or not self._valid_resource(resource_id, operation):
            return False
        self._request(resource_id, ack_tag if ack else tag, [gridlet_id, self.id], delay)
        if not ack:
            return True
        ev = yield from self.receive(FilterResult(gridlet_id, ack_tag))
        return ev.data[1] == GridSimTags.TRUE

    def gridlet_pause(self, gridlet_id, resource_id, delay=0, ack=True):
        result = yield from self._gridlet_control('gridlet_pause', GridSimTags.GRIDLET_PAUSE,
                                                  GridSimTags.GRIDLET_PAUSE_ACK, gridlet_id, resource_id, delay, ack)
        return result

    def gridlet_resume(self, gridlet_id, resource_id, delay=0, ack=True):
        result = yield from self._gridlet_control('gridlet_resume', GridSimTags.GRIDLET_RESUME,
                                                  GridSimTags.GRIDLET_RESUME_ACK, gridlet_id, resource_id, delay, ack)
        return result

    def gridlet_move(self, gridlet_id, src_resource_id, dest_resource_id, delay=0, ack=True):
        """

        Moves a gridlet from one resource to another. The destination acknowledges the submission.

        :return: True if the gridlet was moved (and accepted by the destination when ack is True)

        """
        if not self._valid_gridlet(gridlet_id, 'gridlet_move'):
            return False
        if not self._valid_resource(src_resource_id, 'gridlet_move') or not self._valid_resource(dest_resource_id, 'gridlet_move'):
            return False
        dest_id = self.simulator.get_entity_id(dest_resource_id)
        tag = GridSimTags.GRIDLET_MOVE_ACK if ack else GridSimTags.GRIDLET_MOVE
        self._request(src_resource_id, tag, [gridlet_id, self.id, dest_id], delay)
        if not ack:
            return True
        ev = yield from self.receive(FilterResult(gridlet_id, GridSimTags.GRIDLET_SUBMIT_ACK))
        return ev.data[1] == GridSimTags.TRUE

    # ===========================================================================
    # Statistics and shutdown
    # ===========================================================================
    def record_statistics(self, category, data, name=None):
        """

        Sends a stat to the statistics entity.

        :param category: Category of the stat
        :param data: Value of the stat
        :param name: Name of the stat. By default the name of the user.

        :return: True if there is a statistics entity

        """
        statistics = self.simulator.statistics
        if statistics is None:
            return False
        stat = Stat(self.clock(), category, name or self.name, data)
        self.send_io(statistics, GridSimTags.SCHEDULE_NOW, GridSimTags.RECORD_STATISTICS, stat, self.STAT_SIZE)
        return True

    def get_stat_list(self):
        statistics = self.simulator.statistics
        if statistics is None:
            return []
        stats = yield from self._query(statistics, GridSimTags.RETURN_STAT_LIST)
        return stats

    def get_accumulated_statistics(self, category):
        statistics = self.simulator.statistics
        if statistics is None:
            return None
        acc = yield from self._query(statistics, GridSimTags.RETURN_ACC_STATISTICS_BY_CATEGORY, category)
        return acc

    def shutdown_user(self):
        """

        Tells the shutdown entity that this user has finished. The simulation ends when every user has finished.

        """
        shutdown = self.simulator.shutdown
        if shutdown is None:
            return False
        self.send(shutdown, GridSimTags.SCHEDULE_NOW, GridSimTags.END_OF_SIMULATION)
        return True
