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
from os import path as _path, remove as _remove
from json import load as _load
from collections.abc import Mapping
from gridsim.utils.file import file_exists

# ===============================================================================
# Default and base simulation parameters. The following parameters are loaded into the :class:`.CONSTANT`.
# This constants values can be overridden by passing as kwargs in the :class:`gridsim.base.simulator_class.Simulator` class instantiation.
#
# :Note:
#
#     * RESULTS_FOLDER_NAME: Folder where the output files will be.
#         * "RESULTS_FOLDER_NAME": "results/"
#     * SIMULATION_NAME: Suffix of every output file.
#         * "SIMULATION_NAME": "gridsim"
#     * START_TIME: Unix timestamp of the simulation calendar. Simulated time 0 corresponds to this date.
#         * "START_TIME": 0
#     * GRIDLET_OUTPUT: Format of the gridlet output file. Each attribute is defined by the gridlet attribute(s) and
#       a converter function.
#         * "GRIDLET_OUTPUT": 
#
#         .. code:: 
#
#             {
#                 "format": "{gridlet_id};{user};{resource};{status};{length};{num_pe};{submission_time};{start_time};{finish_time};{wall_clock};{cpu_time};{cost}",
#                 "attributes": {
#                     "gridlet_id": ("id", "int"),
#                     "user": ("user_id", "int"),
#                     "resource": ("resource_id", "int"),
#                     "status": ("status_name", "str"),
#                     "length": ("length", "float"),
#                     "num_pe": ("num_pe", "int"),
#                     "submission_time": ("submission_time", "gridsim.utils.misc.str_float"),
#                     "start_time": ("exec_start_time", "gridsim.utils.misc.str_float"),
#                     "finish_time": ("finish_time", "gridsim.utils.misc.str_float"),
#                     "wall_clock": ("wall_clock_time", "gridsim.utils.misc.str_float"),
#                     "cpu_time": ("actual_cpu_time", "gridsim.utils.misc.str_float"),
#                     "cost": ("processing_cost", "gridsim.utils.misc.str_float")
#                 }
#             }
#
#     * SCHED_PREFIX: Prefix of the gridlet output file.
#         * "SCHED_PREFIX": "sched-"
#     * STATISTICS_PREFIX: Prefix of the statistic file.
#         * "STATISTICS_PREFIX": "stats-"
#     * BENCHMARK_PREFIX: Prefix of the benchmark file.
#         * "BENCHMARK_PREFIX": "bench-"
#     * OUTPUT_EXTENSION: Extension of every output file.
#         * "OUTPUT_EXTENSION": ".txt"
#     * AR_COMMIT_PERIOD: Seconds an uncommitted reservation is kept before it expires.
#         * "AR_COMMIT_PERIOD": 1800
#
# ===============================================================================
DEFAULT_SIMULATION = {
        "RESULTS_FOLDER_NAME": "results/",
        "SIMULATION_NAME": "gridsim",
        "START_TIME": 0,
        "GRIDLET_OUTPUT": {
            "format": "{gridlet_id};{user};{resource};{status};{length};{num_pe};{submission_time};{start_time};{finish_time};{wall_clock};{cpu_time};{cost}",
            "attributes": {
                "gridlet_id": ("id", "int"),
                "user": ("user_id", "int"),
                "resource": ("resource_id", "int"),
                "status": ("status_name", "str"),
                "length": ("length", "float"),
                "num_pe": ("num_pe", "int"),
                "submission_time": ("submission_time", "gridsim.utils.misc.str_float"),
                "start_time": ("exec_start_time", "gridsim.utils.misc.str_float"),
                "finish_time": ("finish_time", "gridsim.utils.misc.str_float"),
                "wall_clock": ("wall_clock_time", "gridsim.utils.misc.str_float"),
                "cpu_time": ("actual_cpu_time", "gridsim.utils.misc.str_float"),
                "cost": ("processing_cost", "gridsim.utils.misc.str_float")
            }
        },
        "SCHED_PREFIX": "sched-",
        "STATISTICS_PREFIX": "stats-",
        "BENCHMARK_PREFIX": "bench-",
        "OUTPUT_EXTENSION": ".txt",
        "AR_COMMIT_PERIOD": 30 * 60
    }


def hinted_tuple_hook(obj):
    """
    
    Decoder for specific object of json files, for preserving the type of the object.
    It's used with the json.load function.
    
    """
    if '__tuple__' in obj:
        return tuple(obj['items'])
    else:
        return obj


def load_config(config_fp):
    """
    
    Loads an specific config file in json format
    
    :param config_fp: Filepath of the config file.
    
    :return: Dictionary with the configuration. 
    
    """
    _dict = None
    with open(file_exists(config_fp, raise_error=True)) as c:
        _dict = _load(c, object_hook=hinted_tuple_hook)
    return _dict


def clean_results(*args):
    r"""

    Removes the filepaths passed as argument

    :param \*args: List of filepaths 

    """
    for fp in args:
        if _path.isfile(fp) and _path.exists(fp):
            _remove(fp)


class Singleton(object):
    """
    
    Singleton class
    
    """
    _instances = {}

    def __new__(class_, *args, **kwargs):
        if class_ not in class_._instances:
            class_._instances[class_] = super(Singleton, class_).__new__(class_, *args, **kwargs)
        return class_._instances[class_]
       

class CONSTANT(Singleton):
    """
    
    This class allows to load all config parameters into a :class:`.Singleton` Object. 
    This object will allow access to all the parameters. The parameters could be accessed as attribute name.
    
    New attrs could be passed as dict (:func:`load_constants`) or simply with (attr, value) (:func:`load_constant`)
    
    :Example:
          
        **Program**:
        
        >>> PATH = '/path/to/'
        >>> c = CONSTANT()
        >>> c.load_constant('PATH', PATH)
        >>> print(c.PATH)
        >>> /path/to/

    :Note:
    
        It's loaded into the simulator and the grid resources by default!
    
    """
    _constants = []

    def load_constants(self, _dict):
        """
        
        Loads an entire dictionary into the singleton.
        
        :param _dict: Dictionary with the new parameters to load. 
        
        """
        for k, v in _dict.items():
            self.load_constant(k, v)

    def load_constant(self, k, v):
        """
        
        Load an specific parameter.
        
        :param k: Name of the parameter
        :param v: Value of the parameter
        
        """
        assert (not hasattr(self, k)), '{} already exists as constant ({}={}). Choose a new name.'.format(k, k,
                                                                                                          getattr(self,
                                                                                                                  k))
        setattr(self, k, v)
        self._constants.append(k)

    def get(self, k, default=None):
        return getattr(self, k, default)

    def clean_constants(self):
        for _constant in self._constants:
            delattr(self, _constant)
        self._constants = []


# ===============================================================================
# Utils Types for the output formats
# ===============================================================================

class str_float:

    def __init__(self, value, decimals=2):
        self.value = value
        self.text = '{0:.{1}f}'.format(float(value), decimals) if value is not None else 'NA'

    def __format__(self, *args):
        return self.text

    def __str__(self):
        return self.text


class FrozenDict(Mapping):
    """

    Inmutable dictionary useful for storing parameters that are dinamycally loaded

    """

    def __init__(self, *args, **kwargs):
        self._d = dict(*args, **kwargs)
        self._hash = None

    def __iter__(self):
        return iter(self._d)

    def __len__(self):
        return len(self._d)

    def __getitem__(self, key):
        return self._d[key]

    def __hash__(self):
        if self._hash is None:
            self._hash = 0
            for pair in self._d.items():
                self._hash ^= hash(pair)
        return self._hash
    
    def __str__(self):
        return str(self._d)
