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
from gridsim.base.tags import GridSimTags


class Filter:
    """

    Base class of the event predicates used with :func:`gridsim.base.event_class.SimEntity.receive`. A filter is a
    callable that receives a :class:`gridsim.base.event_class.SimEvent` and returns True if the event matches.

    """

    def __call__(self, event):
        return self.match(event)

    def match(self, event):
        raise NotImplementedError('Must be implemented!')

    @staticmethod
    def _first(data):
        if isinstance(data, (list, tuple)) and data:
            return data[0]
        return None


class FilterTag(Filter):

    def __init__(self, tag, src=None):
        """

        :param tag: Tag of the expected event
        :param src: Id of the sender. None accepts any sender.

        """
        self.tag = tag
        self.src = src

    def match(self, event):
        return event.tag == self.tag and (self.src is None or event.src == self.src)


class FilterGridlet(Filter):
    """

    Matches an event carrying a gridlet, by default a returned gridlet.

    """

    def __init__(self, gridlet_id, user_id=None, resource_id=None, tag=GridSimTags.GRIDLET_RETURN):
        self.gridlet_id = gridlet_id
        self.user_id = user_id
        self.resource_id = resource_id
        self.tag = tag

    def match(self, event):
        if event.tag != self.tag:
            return False
        gridlet = event.data
        if not hasattr(gridlet, 'resource_id'):
            return False
        if self.gridlet_id is not None and gridlet.id != self.gridlet_id:
            return False
        if self.user_id is not None and gridlet.user_id != self.user_id:
            return False
        return self.resource_id is None or gridlet.resource_id == self.resource_id


class FilterResult(Filter):
    """

    Matches a reply whose data is a list starting with the expected id (gridlet id or transaction id).

    """

    def __init__(self, transaction_id, tag):
        self.transaction_id = transaction_id
        self.tag = tag

    def match(self, event):
        return event.tag == self.tag and self._first(event.data) == self.transaction_id


class FilterQueryTimeAR(FilterResult):
    """

    Matches the reply of a busy or free time query.

    """

    def __init__(self, transaction_id):
        super().__init__(transaction_id, GridSimTags.RETURN_AR_QUERY_TIME)


class FilterARMessage(Filter):
    """

    Matches an AR reply about a given reservation. The reservation id is the second element of the data.

    """

    def __init__(self, reservation_id, tag):
        self.reservation_id = reservation_id
        self.tag = tag

    def match(self, event):
        data = event.data
        if event.tag != self.tag or not isinstance(data, (list, tuple)) or len(data) < 2:
            return False
        return data[1] == self.reservation_id
