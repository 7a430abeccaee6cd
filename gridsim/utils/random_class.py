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
from random import Random


class GridSimRandom:
    """

    Randomizes simulated values (I/O, execution time, resource load) within a range around the expected value.
    A value is scaled by a factor in [1 - less, 1 + more].

    """
    MIN_VALUE = 0
    MAX_VALUE = 1

    def __init__(self, seed=None, less_factor_io=0.0, more_factor_io=0.0, less_factor_exec=0.0, more_factor_exec=0.0):
        """

        :param seed: Seed of the internal generator. None for a random seed.
        :param less_factor_io: Lower variation factor for I/O values
        :param more_factor_io: Upper variation factor for I/O values
        :param less_factor_exec: Lower variation factor for execution values
        :param more_factor_exec: Upper variation factor for execution values

        """
        self._random = Random(seed)
        self.set_all_factors(less_factor_io, more_factor_io, less_factor_exec, more_factor_exec)

    def set_all_factors(self, less_factor_io, more_factor_io, less_factor_exec, more_factor_exec):
        for _name, _factor in (('less_factor_io', less_factor_io), ('more_factor_io', more_factor_io),
                               ('less_factor_exec', less_factor_exec), ('more_factor_exec', more_factor_exec)):
            if _factor < self.MIN_VALUE:
                raise ValueError('{} must be zero or positive value. Received {}'.format(_name, _factor))
        self.less_factor_io = less_factor_io
        self.more_factor_io = more_factor_io
        self.less_factor_exec = less_factor_exec
        self.more_factor_exec = more_factor_exec

    def seed(self, seed):
        self._random.seed(seed)

    def int_sample(self, _range):
        return self._random.randrange(_range)

    def double_sample(self):
        return self._random.random()

    @property
    def factor_io(self):
        return (self.more_factor_io - self.less_factor_io) / 2

    @property
    def factor_exec(self):
        return (self.more_factor_exec - self.less_factor_exec) / 2

    @classmethod
    def real(cls, value, less_factor, more_factor, rand_double):
        """

        Randomizes a value.

        :param value: Expected value, zero or positive
        :param less_factor: Lower variation factor in [0, 1)
        :param more_factor: Upper variation factor in [0, 1]
        :param rand_double: A random sample in [0, 1]

        :return: value * (1 - less_factor + (less_factor + more_factor) * rand_double)

        """
        if value < cls.MIN_VALUE:
            raise ValueError('value must be zero or positive value. Received {}'.format(value))
        if less_factor < cls.MIN_VALUE or less_factor >= cls.MAX_VALUE:
            raise ValueError('less_factor must be within [0.0, 1.0). Received {}'.format(less_factor))
        if more_factor < cls.MIN_VALUE or more_factor > cls.MAX_VALUE:
            raise ValueError('more_factor must be within [0.0, 1.0]. Received {}'.format(more_factor))
        if rand_double < cls.MIN_VALUE or rand_double > cls.MAX_VALUE:
            raise ValueError('rand_double must be within [0.0, 1.0]. Received {}'.format(rand_double))
        return value * (1 - less_factor + (less_factor + more_factor) * rand_double)

    def real_sample(self, value, less_factor, more_factor):
        return self.real(value, less_factor, more_factor, self._random.random())

    def real_io(self, value):
        return self.real_sample(value, self.less_factor_io, self.more_factor_io)

    def real_exec(self, value):
        return self.real_sample(value, self.less_factor_exec, self.more_factor_exec)

    @staticmethod
    def expected(value, less_factor, more_factor):
        return value * (1 + (more_factor - less_factor) / 2)
