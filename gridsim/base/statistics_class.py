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
from math import nan, sqrt, isnan
from sortedcontainers import SortedKeyList

from gridsim.base.event_class import SimEntity
from gridsim.base.tags import GridSimTags


class Accumulator:
    """

    Keeps the running statistics of a series of values. Every statistic is NaN until the first value is added.

    """

    def __init__(self):
        self.count = 0
        self.mean = nan
        self.sqr_mean = nan
        self.min = nan
        self.max = nan
        self.last = nan

    def add(self, value, times=1):
        """

        Adds a value to the series.

        :param value: The value
        :param times: Number of times the value is added. Values lower than 1 are ignored.

        """
        if times < 1:
            return
        self.last = value
        if self.count <= 0:
            self.count = times
            self.mean = value
            self.sqr_mean = value * value
            self.min = value
            self.max = value
            return
        prev = self.count
        self.count += times
        self.mean = (prev * self.mean + value * times) / self.count
        self.sqr_mean = (prev * self.sqr_mean + value * value * times) / self.count
        self.min = min(self.min, value)
        self.max = max(self.max, value)

    @property
    def variance(self):
        if self.count == 0:
            return nan
        if self.count == 1:
            return 0.0
        return max(self.sqr_mean - self.mean * self.mean, 0.0)

    @property
    def standard_deviation(self):
        return sqrt(self.variance)

    @property
    def sum(self):
        if self.count == 0:
            return nan
        return self.count * self.mean

    def __str__(self):
        return 'Accumulator(count={}, mean={}, min={}, max={})'.format(self.count, self.mean, self.min, self.max)


class Stat:
    """

    A statistic record sent by an entity to the statistics entity.

    """

    def __init__(self, time, category, name, data):
        """

        :param time: Simulated time when the value was recorded
        :param category: Category of the statistic. i.e: 'USER.GridletCompletionFactor'
        :param name: Name of the entity that recorded it
        :param data: Value of the statistic

        """
        self.time = time
        self.category = category
        self.name = name
        self.data = data

    def numeric(self):
        """

        :return: The data as float or None if it is not numeric.

        """
        if isinstance(self.data, bool):
            return float(self.data)
        try:
            value = float(self.data)
        except (TypeError, ValueError):
            return None
        return None if isnan(value) else value

    def __str__(self):
        return '{};{};{};{}'.format(self.time, self.category, self.name, self.data)


class GridStatistics(SimEntity):
    """

    Entity that collects the statistics recorded by the other entities. The stats are kept sorted by category and
    name, so they can be accumulated by category.

    """
    ALL = '*'

    def __init__(self, name, simulator, exclude_from_processing=None):
        """

        :param name: Name of the entity
        :param simulator: The simulator object
        :param exclude_from_processing: Categories that are not stored. A category ending with '*' excludes every category with that prefix.

        """
        SimEntity.__init__(self, name, simulator)
        self.stats = SortedKeyList(key=lambda stat: (stat.category, stat.name))
        self._exclude = list(exclude_from_processing) if exclude_from_processing else []

    def _excluded(self, category):
        for _ex in self._exclude:
            if _ex.endswith(self.ALL) and category.startswith(_ex[:-1]):
                return True
            if _ex == category:
                return True
        return False

    def record(self, stat):
        if self._excluded(stat.category):
            return False
        self.stats.add(stat)
        return True

    def by_category(self, category):
        """

        :param category: Category of the stats. '*' returns all the stats.

        :return: List of stats of the category

        """
        if category == self.ALL:
            return list(self.stats)
        return [stat for stat in self.stats.irange_key((category, ''), (category, chr(0x10ffff)))]

    def accumulate(self, category):
        """

        :param category: Category of the stats. '*' accumulates all the numeric stats.

        :return: An :class:`.Accumulator` with the numeric data of the category

        """
        acc = Accumulator()
        for stat in self.by_category(category):
            value = stat.numeric()
            if value is not None:
                acc.add(value)
        return acc

    def body(self):
        while True:
            ev = yield from self.receive()
            if ev.tag == GridSimTags.END_OF_SIMULATION:
                break
            if ev.tag == GridSimTags.RECORD_STATISTICS:
                self.record(ev.data)
            elif ev.tag == GridSimTags.RETURN_STAT_LIST:
                self.send(ev.src, GridSimTags.SCHEDULE_NOW, ev.tag, list(self.stats))
            elif ev.tag == GridSimTags.RETURN_ACC_STATISTICS_BY_CATEGORY:
                self.send(ev.src, GridSimTags.SCHEDULE_NOW, ev.tag, self.accumulate(ev.data))
            else:
                self._logger.warning('{}: {} received an unknown event tag {}'.format(self.clock(), self.name, ev.tag))

    def write_out(self, filepath):
        """

        Writes all the stats to a file, one per line.

        :param filepath: Path of the output file

        """
        with open(filepath, 'a') as f:
            for stat in self.stats:
                f.write('{}\n'.format(stat))


class GridSimShutdown(SimEntity):
    """

    Waits until every user has finished and then signals the end of the simulation to the information service and
    the statistics entity. Entities with notify_shutdown set are also notified.

    """

    def __init__(self, name, simulator, num_user):
        assert(num_user > 0), 'The number of users must be greater than 0. Received: {}'.format(num_user)
        SimEntity.__init__(self, name, simulator)
        self.num_user = num_user

    def body(self):
        finished = 0
        while finished < self.num_user:
            yield from self.receive(lambda e: e.tag == GridSimTags.END_OF_SIMULATION)
            finished += 1
            self._logger.debug('{}: {} users finished ({}/{})'.format(self.clock(), self.name, finished, self.num_user))
        gis = self.simulator.gis
        if gis is not None:
            self.send(gis, GridSimTags.SCHEDULE_NOW, GridSimTags.END_OF_SIMULATION)
        statistics = self.simulator.statistics
        if statistics is not None:
            self.send(statistics, GridSimTags.SCHEDULE_NOW, GridSimTags.END_OF_SIMULATION)
        for entity in self.simulator.entities:
            if entity.notify_shutdown:
                self.send(entity, GridSimTags.SCHEDULE_NOW, GridSimTags.END_OF_SIMULATION)
