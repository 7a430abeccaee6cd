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
from enum import IntEnum


class GridSimTags:
    """

    Tags of the events exchanged between the grid entities. User defined tags must avoid these values.

    """
    BASE = 0
    ARBASE = 200

    TRUE = 1
    FALSE = 0
    DEFAULT_BAUD_RATE = 9600
    SCHEDULE_NOW = 0

    END_OF_SIMULATION = -1
    INSIGNIFICANT = BASE + 0

    # ===========================================================================
    # GIS and resource inquiries
    # ===========================================================================
    REGISTER_RESOURCE = BASE + 2
    REGISTER_RESOURCE_AR = BASE + 3
    RESOURCE_LIST = BASE + 4
    RESOURCE_AR_LIST = BASE + 5
    RESOURCE_CHARACTERISTICS = BASE + 6
    RESOURCE_DYNAMICS = BASE + 7
    RESOURCE_NUM_PE = BASE + 8
    RESOURCE_NUM_FREE_PE = BASE + 9

    RECORD_STATISTICS = BASE + 10
    RETURN_STAT_LIST = BASE + 11
    RETURN_ACC_STATISTICS_BY_CATEGORY = BASE + 12

    # ===========================================================================
    # Gridlet operations
    # ===========================================================================
    GRIDLET_RETURN = BASE + 20
    GRIDLET_SUBMIT = BASE + 21
    GRIDLET_SUBMIT_ACK = BASE + 22
    GRIDLET_CANCEL = BASE + 23
    GRIDLET_STATUS = BASE + 24
    GRIDLET_PAUSE = BASE + 25
    GRIDLET_PAUSE_ACK = BASE + 26
    GRIDLET_RESUME = BASE + 27
    GRIDLET_RESUME_ACK = BASE + 28
    GRIDLET_MOVE = BASE + 29
    GRIDLET_MOVE_ACK = BASE + 30
    RESOURCE_NUM_MACHINES = BASE + 31

    # ===========================================================================
    # Resource failures
    # ===========================================================================
    GRIDRESOURCE_FAILURE = BASE + 32
    GRIDRESOURCE_RECOVERY = BASE + 33
    GRIDRESOURCE_FAILURE_INFO = BASE + 34
    GRIDRESOURCE_POLLING = BASE + 35

    # ===========================================================================
    # Advance reservation requests
    # ===========================================================================
    SEND_AR_COMMIT_ONLY = ARBASE + 1
    SEND_AR_COMMIT_WITH_GRIDLET = ARBASE + 2
    SEND_AR_CREATE = ARBASE + 3
    SEND_AR_CREATE_IMMEDIATE = ARBASE + 4
    SEND_AR_CANCEL = ARBASE + 5
    SEND_AR_LIST_BUSY_TIME = ARBASE + 6
    SEND_AR_LIST_FREE_TIME = ARBASE + 7
    SEND_AR_QUERY = ARBASE + 8
    SEND_AR_MODIFY = ARBASE + 9

    AR_STATUS_NOT_STARTED = ARBASE + 10
    AR_STATUS_NOT_COMMITTED = ARBASE + 11
    AR_STATUS_TERMINATED = ARBASE + 12
    AR_STATUS_ACTIVE = ARBASE + 13
    AR_STATUS_COMPLETED = ARBASE + 14
    AR_STATUS_CANCELED = ARBASE + 15
    AR_STATUS_EXPIRED = ARBASE + 16
    AR_STATUS_ERROR_INVALID_BOOKING_ID = ARBASE + 17
    AR_STATUS_RESERVATION_DOESNT_EXIST = ARBASE + 18
    AR_STATUS_ERROR = ARBASE + 19

    AR_CANCEL_FAIL = ARBASE + 20
    AR_CANCEL_FAIL_INVALID_BOOKING_ID = ARBASE + 21
    AR_CANCEL_FAIL_GRIDLET_FINISHED = ARBASE + 22
    AR_CANCEL_SUCCESS = ARBASE + 23
    AR_CANCEL_ERROR_RESOURCE_CANT_SUPPORT = ARBASE + 24
    AR_CANCEL_ERROR = ARBASE + 25

    AR_COMMIT_SUCCESS = ARBASE + 30
    AR_COMMIT_FAIL = ARBASE + 31
    AR_COMMIT_FAIL_EXPIRED = ARBASE + 32
    AR_COMMIT_FAIL_INVALID_BOOKING_ID = ARBASE + 33
    AR_COMMIT_ERROR_RESOURCE_CANT_SUPPORT = ARBASE + 34
    AR_COMMIT_ERROR = ARBASE + 35

    AR_MODIFY_FAIL_INVALID_BOOKING_ID = ARBASE + 40
    AR_MODIFY_FAIL_RESERVATION_ACTIVE = ARBASE + 41
    AR_MODIFY_FAIL_INVALID_START_TIME = ARBASE + 42
    AR_MODIFY_FAIL_INVALID_END_TIME = ARBASE + 43
    AR_MODIFY_FAIL_INVALID_NUM_PE = ARBASE + 44
    AR_MODIFY_ERROR = ARBASE + 45
    AR_MODIFY_SUCCESS = ARBASE + 46
    AR_MODIFY_FAIL_RESOURCE_CANT_SUPPORT = ARBASE + 47

    RETURN_AR_COMMIT = ARBASE + 50
    RETURN_AR_QUERY_TIME = ARBASE + 51
    RETURN_AR_QUERY_STATUS = ARBASE + 52
    RETURN_AR_CANCEL = ARBASE + 53
    RETURN_AR_CREATE = ARBASE + 54
    RETURN_AR_MODIFY = ARBASE + 55

    AR_CREATE_ERROR_INVALID_START_TIME = -1
    AR_CREATE_ERROR_INVALID_END_TIME = -2
    AR_CREATE_ERROR_INVALID_DURATION_TIME = -3
    AR_CREATE_ERROR_INVALID_NUM_PE = -4
    AR_CREATE_ERROR_INVALID_RESOURCE_ID = -5
    AR_CREATE_ERROR_INVALID_RESOURCE_NAME = -6
    AR_CREATE_ERROR = -7
    AR_CREATE_FAIL_RESOURCE_CANT_SUPPORT = -8
    AR_CREATE_FAIL_RESOURCE_NOT_ENOUGH_PE = -9
    AR_CREATE_FAIL_RESOURCE_FULL_IN_1_SEC = -11
    AR_CREATE_FAIL_RESOURCE_FULL_IN_5_SECS = -12
    AR_CREATE_FAIL_RESOURCE_FULL_IN_10_SECS = -13
    AR_CREATE_FAIL_RESOURCE_FULL_IN_15_SECS = -14
    AR_CREATE_FAIL_RESOURCE_FULL_IN_30_SECS = -15
    AR_CREATE_FAIL_RESOURCE_FULL_IN_45_SECS = -16
    AR_CREATE_FAIL_RESOURCE_FULL_IN_1_MIN = -17
    AR_CREATE_FAIL_RESOURCE_FULL_IN_5_MINS = -18
    AR_CREATE_FAIL_RESOURCE_FULL_IN_10_MINS = -19
    AR_CREATE_FAIL_RESOURCE_FULL_IN_15_MINS = -20
    AR_CREATE_FAIL_RESOURCE_FULL_IN_30_MINS = -21
    AR_CREATE_FAIL_RESOURCE_FULL_IN_45_MINS = -22
    AR_CREATE_FAIL_RESOURCE_FULL_IN_1_HOUR = -23
    AR_CREATE_FAIL_RESOURCE_FULL_IN_5_HOURS = -24
    AR_CREATE_FAIL_RESOURCE_FULL_IN_10_HOURS = -25
    AR_CREATE_FAIL_RESOURCE_FULL_IN_15_HOURS = -26
    AR_CREATE_FAIL_RESOURCE_FULL_IN_30_HOURS = -27
    AR_CREATE_FAIL_RESOURCE_FULL_IN_45_HOURS = -28

    # Steps (in the unit of the busy time) of the "resource full" codes
    _FULL_IN_STEPS = (1, 5, 10, 15, 30, 45)

    @classmethod
    def approx_busy_time(cls, busy):
        """

        Maps how long a resource stays busy to one of the AR_CREATE_FAIL_RESOURCE_FULL_IN_XXX tags.
        The time is always rounded up, i.e. 6 minutes becomes the 10 minutes tag.

        :param busy: Busy time in seconds

        :return: The corresponding negative tag

        """
        minute = 60
        hour = 60 * minute
        if busy < minute:
            unit, offset = 1, 0
        elif busy < hour:
            unit, offset = minute, len(cls._FULL_IN_STEPS)
        else:
            unit, offset = hour, 2 * len(cls._FULL_IN_STEPS)

        i = 0
        while i < len(cls._FULL_IN_STEPS) - 1 and busy > cls._FULL_IN_STEPS[i] * unit:
            i += 1
        return cls.AR_CREATE_FAIL_RESOURCE_FULL_IN_1_SEC - (i + offset)


class GridletStatus(IntEnum):
    CREATED = 0
    READY = 1
    QUEUED = 2
    INEXEC = 3
    SUCCESS = 4
    FAILED = 5
    CANCELED = 6
    PAUSED = 7
    RESUMED = 8
    FAILED_RESOURCE_UNAVAILABLE = 9

    @property
    def label(self):
        return self.name.replace('_', ' ').title()
