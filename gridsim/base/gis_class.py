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
from gridsim.base.tags import GridSimTags


class GridInformationService(SimEntity):
    """

    Directory of the available resources. Resources register themselves at start-up and users query the list of
    resource ids. AR capable resources are listed in both lists.

    """

    def __init__(self, name, simulator, baud_rate=None):
        SimEntity.__init__(self, name, simulator, baud_rate)
        self.resources = []
        self.ar_resources = []
        # Every resource that registered at least once
        self._known = set()

    def register(self, resource_id, advance_reservation=False):
        """

        Adds a resource to the lists without duplicates.

        :param resource_id: Id of the resource
        :param advance_reservation: The resource supports advance reservations

        :return: True if the resource was added

        """
        self._known.add(resource_id)
        added = False
        if resource_id not in self.resources:
            self.resources.append(resource_id)
            added = True
        if advance_reservation and resource_id not in self.ar_resources:
            self.ar_resources.append(resource_id)
            added = True
        return added

    def remove(self, resource_id):
        removed = False
        for _list in (self.resources, self.ar_resources):
            if resource_id in _list:
                _list.remove(resource_id)
                removed = True
        return removed

    def body(self):
        while True:
            ev = yield from self.receive()
            if ev.tag == GridSimTags.END_OF_SIMULATION:
                self.notify_resources()
                break
            self.process_event(ev)

    def process_event(self, ev):
        tag = ev.tag
        if tag == GridSimTags.REGISTER_RESOURCE:
            self.register(ev.data)
            self._logger.debug('{}: {} registered the resource #{}'.format(self.clock(), self.name, ev.data))
        elif tag == GridSimTags.REGISTER_RESOURCE_AR:
            self.register(ev.data, True)
            self._logger.debug('{}: {} registered the AR resource #{}'.format(self.clock(), self.name, ev.data))
        elif tag == GridSimTags.RESOURCE_LIST:
            self.send(ev.src, GridSimTags.SCHEDULE_NOW, tag, list(self.resources))
        elif tag == GridSimTags.RESOURCE_AR_LIST:
            self.send(ev.src, GridSimTags.SCHEDULE_NOW, tag, list(self.ar_resources))
        elif tag == GridSimTags.GRIDRESOURCE_FAILURE_INFO:
            if self.remove(ev.data):
                self._logger.info('{}: {} removed the failed resource #{}'.format(self.clock(), self.name, ev.data))
        else:
            self._logger.warning('{}: {} received an unknown event tag {}'.format(self.clock(), self.name, tag))

    def notify_resources(self):
        """

        Forwards the end of the simulation to every resource that has registered, including the failed ones.

        """
        for resource_id in sorted(self._known):
            self.send(resource_id, GridSimTags.SCHEDULE_NOW, GridSimTags.END_OF_SIMULATION)
