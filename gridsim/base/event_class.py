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

from abc import ABC, abstractmethod
from simpy import FilterStore


class SimEvent:

    def __init__(self, src, dest, tag, data=None, time=None):
        """

        Event exchanged between two entities.

        :param src: Id of the sender entity
        :param dest: Id of the destination entity
        :param tag: Tag of the event. See :class:`gridsim.base.tags.GridSimTags`
        :param data: Payload of the event
        :param time: Simulated time when the event is delivered to the destination

        """
        self.src = src
        self.dest = dest
        self.tag = tag
        self.data = data
        self.time = time

    def __str__(self):
        return 'Event(tag={}, src={}, dest={}, time={})'.format(self.tag, self.src, self.dest, self.time)

    def __repr__(self):
        return self.__str__()


class SimEntity(ABC):
    """

    Base class of every active participant of the simulation (users, resources, GIS, etc.).

    Each entity runs its :func:`body` as a simpy process and owns an inbox where the events sent to it are queued
    in arrival order. Entities communicate only through events: :func:`send` and :func:`send_io` schedule an
    event into the inbox of another entity after a delay, and :func:`receive` blocks the process until a
    matching event is available. Blocking methods are generators and must be called with ``yield from``.

    """
    BITS = 8
    # Receives END_OF_SIMULATION from the shutdown entity
    notify_shutdown = False

    def __init__(self, name, simulator, baud_rate=None):
        """

        :param name: Unique name of the entity. Spaces are not allowed.
        :param simulator: The :class:`gridsim.base.simulator_class.Simulator` object where the entity lives.
        :param baud_rate: Communication speed (bits/sec) used for the I/O delays. None means no I/O delay.

        """
        assert(isinstance(name, str) and name), 'The entity name must be a non empty str'
        assert(' ' not in name), 'The entity name can not contain spaces. Received: \'{}\''.format(name)
        assert(baud_rate is None or baud_rate > 0), 'The baud rate must be greater than 0. Received: {}'.format(baud_rate)
        self.name = name
        self.simulator = simulator
        self.env = simulator.env
        self.baud_rate = baud_rate
        self._inbox = FilterStore(self.env)
        self._process = None
        self._logger = logging.getLogger('gridsim')
        self.id = simulator.register_entity(self)

    @abstractmethod
    def body(self):
        """

        Behaviour of the entity. Must be a generator.

        """
        raise NotImplementedError('Must be implemented!')

    def start(self):
        """

        Starts the entity process. It is called by the simulator.

        """
        if self._process is None:
            self._process = self.env.process(self._run())
        return self._process

    def _run(self):
        yield from self.body()
        self._logger.debug('{}: {} finished its execution'.format(self.clock(), self.name))

    @property
    def is_alive(self):
        return self._process is not None and self._process.is_alive

    def clock(self):
        """

        :return: Current simulated time

        """
        return self.env.now

    def send(self, dest, delay, tag, data=None):
        """

        Sends an event to another entity (or itself).

        :param dest: Destination entity. It can be an id, a name or the entity itself.
        :param delay: Delay before the event reaches the destination. Negative values are considered as 0.
        :param tag: Tag of the event
        :param data: Payload of the event

        :return: The sent event

        """
        dest_entity = self.simulator.get_entity(dest)
        return self._schedule(dest_entity, max(delay, 0.0), tag, data)

    def send_io(self, dest, delay, tag, data, size):
        """

        Sends an event to another entity adding the communication delay of transferring 'size' bytes.
        The transfer uses the slowest baud rate of both entities.

        :param dest: Destination entity. It can be an id, a name or the entity itself.
        :param delay: Delay before sending the data
        :param tag: Tag of the event
        :param data: Payload of the event
        :param size: Size of the payload in bytes

        :return: The sent event

        """
        dest_entity = self.simulator.get_entity(dest)
        delay = max(delay, 0.0) + self.transfer_time(dest_entity, size)
        return self._schedule(dest_entity, delay, tag, data)

    def transfer_time(self, dest, size):
        """

        :param dest: Destination entity
        :param size: Size in bytes

        :return: Communication delay in seconds

        """
        rates = [rate for rate in (self.baud_rate, dest.baud_rate) if rate]
        if not rates or size <= 0:
            return 0.0
        return (size * self.BITS) / min(rates)

    def _schedule(self, dest, delay, tag, data):
        event = SimEvent(self.id, dest.id, tag, data)
        if hasattr(self._logger, 'trace'):
            self._logger.trace('{}: {} -> {} tag {} (delay {})'.format(self.clock(), self.name, dest.name, tag, delay))
        timeout = self.env.timeout(delay)
        timeout.callbacks.append(lambda _: dest._deliver(event))
        return event

    def _deliver(self, event):
        event.time = self.env.now
        self._inbox.put(event)

    def receive(self, predicate=None):
        """

        Waits until an event that satisfies the predicate arrives. Non matching events are kept in the inbox.

        :param predicate: A callable that receives a :class:`.SimEvent` and returns True when it matches. None accepts every event.

        :return: The received event

        """
        if predicate is None:
            event = yield self._inbox.get()
        else:
            event = yield self._inbox.get(predicate)
        return event

    def hold(self, delay):
        """

        Lets the simulated time pass. Events sent meanwhile are kept in the inbox.

        :param delay: Time to wait

        """
        yield self.env.timeout(max(delay, 0.0))

    def select(self, predicate=None):
        """

        Takes the first queued event that satisfies the predicate without waiting.

        :return: The event or None if there is no matching event.

        """
        for event in self._inbox.items:
            if predicate is None or predicate(event):
                self._inbox.items.remove(event)
                return event
        return None

    def waiting(self, predicate=None):
        """

        :return: Number of queued events that satisfy the predicate

        """
        if predicate is None:
            return len(self._inbox.items)
        return sum(1 for event in self._inbox.items if predicate(event))

    def cancel(self, predicate):
        """

        Removes every queued event that satisfies the predicate.

        :return: Number of removed events

        """
        _cancelled = [event for event in self._inbox.items if predicate(event)]
        for event in _cancelled:
            self._inbox.items.remove(event)
        return len(_cancelled)

    def __str__(self):
        return '{}(#{})'.format(self.name, self.id)

    def __repr__(self):
        return self.__str__()


class EntityError(Exception):
    pass
