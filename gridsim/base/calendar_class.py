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
from datetime import datetime, timedelta, timezone
from random import Random

from gridsim.utils.misc import CONSTANT
from gridsim.utils.random_class import GridSimRandom


class ResourceCalendar:
    """

    Background (local) load of a resource along the day. The load depends on the hour of the day and whether the
    day is a weekend or a holiday in the time zone of the resource.

    The calendar date is computed from the START_TIME constant (unix timestamp at simulated time 0) plus the
    simulated clock.

    """
    HOURS = 24
    FULL = 1.0
    MAX_LOAD = 0.95
    FACTOR = 0.1
    REGULAR_LOAD = (0.0, 0.0, 0.0, 0.0, 0.0, 0.0,  # 0 - 6 am
                    0.0, 0.1, 0.2, 0.4, 0.8, 1.0,  # 7 - 11 am
                    1.0, 0.6, 0.6, 0.9, 1.0, 1.0,  # 12 - 5 pm
                    0.5, 0.2, 0.1, 0.0, 0.0, 0.0)  # 6 - 11.59 pm

    def __init__(self, time_zone, peak_load, off_peak_load, relative_holiday_load, weekends=None, holidays=None,
                 seed=None, regular_load=None):
        """

        :param time_zone: Time zone of the resource, in hours from UTC.
        :param peak_load: Load at the busiest hours. Values greater than 1 are set to 1.
        :param off_peak_load: Load at the quietest hours. Values greater than 1 are set to 1.
        :param relative_holiday_load: Load during holidays and weekends, relative to the weekdays.
        :param weekends: List of ISO weekdays (1 = Monday, 7 = Sunday) considered as weekend.
        :param holidays: List of days of the year (1-366) considered as holidays.
        :param seed: Seed for randomizing the hourly loads.
        :param regular_load: Relative load of each hour. By default, the office hours profile. Missing hours are set to 0.

        """
        regular_load = self.REGULAR_LOAD if regular_load is None else tuple(regular_load)
        assert(len(regular_load) <= self.HOURS), 'The regular load can not have more than {} values'.format(self.HOURS)
        self.time_zone = time_zone
        self.weekends = list(weekends) if weekends else []
        self.holidays = list(holidays) if holidays else []
        self.clock = lambda: 0.0

        peak_load = min(peak_load, self.FULL)
        off_peak_load = min(off_peak_load, self.FULL)
        relative_holiday_load = min(relative_holiday_load, self.FULL)

        _random = Random(seed)
        self.weekday_load = [0.0] * self.HOURS
        self.holiday_load = [0.0] * self.HOURS
        for i, regular in enumerate(regular_load):
            value = regular * (peak_load - off_peak_load) + off_peak_load
            self.weekday_load[i] = min(GridSimRandom.real(value, self.FACTOR, self.FACTOR, _random.random()), self.MAX_LOAD)
            self.holiday_load[i] = min(GridSimRandom.real(relative_holiday_load * value, self.FACTOR, self.FACTOR,
                                                          _random.random()), self.MAX_LOAD)

    def set_clock(self, clock):
        self.clock = clock

    def _start_time(self):
        return CONSTANT().get('START_TIME')

    def calendar_at(self, simulation_time):
        """

        :param simulation_time: Simulated time in seconds

        :return: The local datetime of the resource at the given simulated time, or None if the simulation calendar is not set.

        """
        start_time = self._start_time()
        if start_time is None:
            return None
        start = datetime.fromtimestamp(start_time, tz=timezone.utc)
        return start + timedelta(hours=self.time_zone, seconds=int(simulation_time))

    def current_calendar(self):
        return self.calendar_at(self.clock())

    def simulation_time(self, local_time):
        """

        :param local_time: A naive datetime in the resource time zone

        :return: Simulated time corresponding to the local time.

        """
        start_time = self._start_time()
        assert(start_time is not None), 'The simulation calendar is not set'
        start = datetime.fromtimestamp(start_time, tz=timezone.utc).replace(tzinfo=None)
        return (local_time - timedelta(hours=self.time_zone) - start).total_seconds()

    def is_weekend(self, date=None):
        date = date or self.current_calendar()
        return date is not None and date.isoweekday() in self.weekends

    def is_holiday(self, date=None):
        """

        :param date: A datetime. By default, the current local datetime.

        :return: True if the date is a holiday or a weekend.

        """
        date = date or self.current_calendar()
        if date is None:
            return False
        return date.timetuple().tm_yday in self.holidays or self.is_weekend(date)

    def current_load(self):
        """

        :return: Current background load of the resource, in [0, 0.95].

        """
        date = self.current_calendar()
        if date is None:
            return 0.0
        if self.is_holiday(date):
            return self.holiday_load[date.hour]
        return self.weekday_load[date.hour]
