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
from datetime import datetime
from inspect import stack
from logging import handlers
from math import inf
from os import getpid, path
from pydoc import locate
from queue import Queue
from sys import version_info
from time import perf_counter as clock, time

from psutil import Process
from simpy import Environment

from gridsim.base.event_class import SimEntity, EntityError
from gridsim.base.gis_class import GridInformationService
from gridsim.base.statistics_class import GridStatistics, GridSimShutdown, Accumulator
from gridsim.base.tags import GridletStatus
from gridsim.utils.async_writer import AsyncWriter
from gridsim.utils.file import path_leaf, dir_exists, output_filepath
from gridsim.utils.misc import CONSTANT, DEFAULT_SIMULATION, load_config, clean_results


class SimulatorBase(ABC):

    LOG_LEVEL_INFO = 'INFO'
    LOG_LEVEL_DEBUG = 'DEBUG'
    LOG_LEVEL_TRACE = 'TRACE'

    def __init__(self, config_file=None, **kwargs):
        r"""

        Simulator base constructor

        :param config_file: Path to the config file in json format.
        :param \*\*kwargs: Dictionary of key:value parameters to be used in the simulator. It overwrites the current parameters. All parameters will be available on the constant variable

        """
        self.constants = CONSTANT()
        self.timeout = kwargs.pop('timeout', None)
        self._log_level = kwargs.pop('LOG_LEVEL', self.LOG_LEVEL_INFO)
        self._queue_handler = None
        self._listening = False
        self._closed = False
        self._logger = logging.getLogger('gridsim')
        self._logger_listener = None
        try:
            self.define_default_constants(config_file, **kwargs)
            self._logger, self._logger_listener = self.define_logger()
            self.real_init_time = datetime.now()

            if self.constants.OVERWRITE_PREVIOUS:
                self.remove_previous()
        except Exception:
            self.close()
            raise

    def close(self):
        """

        Releases the constants and the logger handler. A simulator that is built but never started must be closed,
        otherwise the constants remain loaded and no other simulator can be built. It does nothing if the
        simulator is already closed.

        """
        if self._closed:
            return
        self._closed = True
        self._clean_simulator_constants()
        self._release_logger()

    @property
    def closed(self):
        return self._closed

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def define_logger(self):
        self._define_trace_logger()
        FORMAT = '%(asctime)-15s %(module)s-%(levelname)s: %(message)s'

        queue = Queue(-1)
        self._queue_handler = handlers.QueueHandler(queue)
        handler = logging.StreamHandler()
        handler.setLevel(self._log_level)
        listener = handlers.QueueListener(queue, handler)

        logger_name = 'gridsim'
        logger = logging.getLogger(logger_name)
        logger.addHandler(self._queue_handler)
        formatter = logging.Formatter(FORMAT)
        handler.setFormatter(formatter)
        logger.setLevel(getattr(logging, self._log_level))

        self.constants.load_constant('LOGGER_NAME', logger_name)
        return logger, listener

    def _define_trace_logger(self):
        level = logging.TRACE = logging.DEBUG - 5

        def log_logger(self, message, *args, **kwargs):
            if self.isEnabledFor(level):
                self._log(level, message, args, **kwargs)

        logging.getLoggerClass().trace = log_logger

        def log_root(msg, *args, **kwargs):
            logging.log(level, msg, *args, **kwargs)

        logging.addLevelName(level, "TRACE")
        logging.trace = log_root

    def _start_logger(self):
        self._logger_listener.start()
        self._listening = True

    def _release_logger(self):
        if self._listening and self._logger_listener is not None:
            self._logger_listener.stop()
            self._listening = False
        if self._queue_handler is not None:
            self._logger.removeHandler(self._queue_handler)
            self._queue_handler = None

    @abstractmethod
    def start_simulation(self):
        """

        Simulation initialization

        """
        raise NotImplementedError('Must be implemented!')

    def define_filepaths(self, **kwargs):
        """

        Add to the kwargs useful filepaths.

        """
        if 'RESULTS_FOLDER_PATH' not in kwargs:
            filename = stack()[-1].filename
            script_path, script_name = path_leaf(filename)
            rfolder = kwargs.pop('RESULTS_FOLDER_NAME')
            kwargs['RESULTS_FOLDER_PATH'] = path.join(script_path, rfolder)
        dir_exists(kwargs['RESULTS_FOLDER_PATH'], create=True)
        return kwargs

    def define_default_constants(self, config_filepath, **kwargs):
        """

        Defines the default constants of the simulator. The defaults are updated by the config file, and then by the
        given kwargs.

        :param config_filepath: Path to the config file in json format

        """
        config = dict(DEFAULT_SIMULATION)
        if config_filepath:
            config.update(load_config(config_filepath))
        for k, v in config.items():
            if k not in kwargs:
                kwargs[k] = v
        kwargs = self.define_filepaths(**kwargs)
        self.constants.load_constants(kwargs)

    def show_config(self):
        """

        Shows the current simulator config

        """
        self._logger.info('Initializing the simulator')
        self._logger.info('Settings: ')
        self._logger.info('\tSimulation name: {}'.format(self.constants.SIMULATION_NAME))
        self._logger.info('\tResults folder: {}{}.'.format(self.constants.RESULTS_FOLDER_PATH,
                                               ', Overwrite previous files' if self.constants.OVERWRITE_PREVIOUS else ''))
        self._logger.info('\t\t ({}) Gridlet Output. Prefix: {}'.format(self.on_off(self.constants.GRIDLET_OUTPUT_ENABLED),
                                                                     self.constants.SCHED_PREFIX))
        self._logger.info('\t\t ({}) Statistics Output. Prefix: {}'.format(self.on_off(self.constants.STATISTICS_OUTPUT),
                                                               self.constants.STATISTICS_PREFIX))
        self._logger.info('\t\t ({}) Benchmark Output. Prefix: {}'.format(self.on_off(self.constants.BENCHMARK_OUTPUT),
                                                              self.constants.BENCHMARK_PREFIX))
        self._logger.info('Ready to Start')

    def on_off(self, state):
        """

        True: ON, False: OFF
        Just for visualization purposes.

        :param state: State of a constant. True or False

        """
        return 'ON' if state else 'OFF'

    def output_filepath(self, prefix):
        return output_filepath(self.constants.RESULTS_FOLDER_PATH, prefix, self.constants.SIMULATION_NAME,
                               self.constants.OUTPUT_EXTENSION)

    def remove_previous(self):
        """

        To clean the previous results.

        """
        clean_results(*self._generated_filepaths().values())

    def _clean_simulator_constants(self):
        self.constants.clean_constants()

    def _generated_filepaths(self):
        possible_filepaths = [
            (self.constants.STATISTICS_OUTPUT, self.constants.STATISTICS_PREFIX),
            (self.constants.BENCHMARK_OUTPUT, self.constants.BENCHMARK_PREFIX),
            (self.constants.GRIDLET_OUTPUT_ENABLED, self.constants.SCHED_PREFIX)
        ]
        return {_prefix: self.output_filepath(_prefix) for state, _prefix in possible_filepaths if state}


class Simulator(SimulatorBase):
    """

    Default implementation of the SimulatorBase class. It owns the simulation kernel (a simpy environment), the
    registry of entities and the system entities: the information service, the statistics collector and the
    shutdown entity.

    """

    def __init__(self, num_user, calendar=None, simulator_config=None, overwrite_previous=True, gridlet_output=True,
                 statistics_output=True, benchmark_output=False, show_statistics=True, LOG_LEVEL='INFO',
                 exclude_from_processing=None, **kwargs):
        r"""

        Constructor of the grid simulator.

        :param num_user: Number of users. The simulation ends when all of them call shutdown_user().
        :param calendar: Optional. A datetime or a unix timestamp for the simulated time 0. It replaces START_TIME.
        :param simulator_config: Optional. Filepath to the simulator config. For replacing the misc.DEFAULT_SIMULATION parameters.
        :param overwrite_previous: Default True. Overwrite previous results.
        :param gridlet_output: Default True. One line per returned gridlet. Format modificable in DEFAULT_SIMULATION
        :param statistics_output: Default True. Statistic of the simulation.
        :param benchmark_output: Default False. Measurement of the simulator performance.
        :param show_statistics: Default True. Show Statistic after finishing the simulation.
        :param LOG_LEVEL: Default 'INFO'. Level of the gridsim logger. 'TRACE' shows every sent event.
        :param exclude_from_processing: Optional. Stat categories that the statistics entity does not store.
        :param \*\*kwargs: Optional parameters to be included in the Constants.

        """
        assert(version_info >= (3, 5,)), 'Unsupported python version. Try with 3.5 or newer.'
        assert(num_user > 0), 'The number of users must be greater than 0. Received: {}'.format(num_user)

        kwargs['OVERWRITE_PREVIOUS'] = overwrite_previous
        kwargs['GRIDLET_OUTPUT_ENABLED'] = gridlet_output
        kwargs['BENCHMARK_OUTPUT'] = benchmark_output
        kwargs['STATISTICS_OUTPUT'] = statistics_output
        kwargs['SHOW_STATISTICS'] = show_statistics
        kwargs['LOG_LEVEL'] = LOG_LEVEL
        if calendar is not None:
            kwargs['START_TIME'] = calendar.timestamp() if isinstance(calendar, datetime) else calendar

        self._gridlet_writer = None
        self._usage_writer = None
        SimulatorBase.__init__(self, config_file=simulator_config, **kwargs)
        try:
            self._init_simulation(num_user, gridlet_output, benchmark_output, exclude_from_processing)
        except Exception:
            self.close()
            raise

    def _init_simulation(self, num_user, gridlet_output, benchmark_output, exclude_from_processing):
        self.env = Environment()
        self.num_user = num_user
        self._entities = []
        self._entity_names = {}
        self.running = False

        self.gis = None
        self.statistics = None
        self.shutdown = None
        self.gis = GridInformationService('GridInformationService', self)
        self.statistics = GridStatistics('GridStatistics', self, exclude_from_processing)
        self.shutdown = GridSimShutdown('GridSimShutdown', self, num_user)

        if gridlet_output:
            self._gridlet_writer = AsyncWriter(path=self.output_filepath(self.constants.SCHED_PREFIX),
                pre_process_fun=Simulator._gridlet_write_preprocessor)

        if benchmark_output:
            self._usage_writer = AsyncWriter(path=self.output_filepath(self.constants.BENCHMARK_PREFIX),
                pre_process_fun=Simulator.usage_metrics_preprocessor)
            self._process_obj = Process(getpid())
        else:
            self._process_obj = None

        self.start_simulation_time = None
        self.end_simulation_time = None
        self.returned_gridlets = 0
        self.successful_gridlets = 0
        self.wtimes = []
        self.total_cost = 0.0

    # ===========================================================================
    # Entity registry
    # ===========================================================================
    def register_entity(self, entity):
        """

        Adds an entity to the simulation. It is called by the entity constructor.

        :param entity: A :class:`gridsim.base.event_class.SimEntity` object

        :return: The id of the entity

        """
        if entity.name in self._entity_names:
            raise EntityError('An entity with the name {} already exists'.format(entity.name))
        entity_id = len(self._entities)
        self._entities.append(entity)
        self._entity_names[entity.name] = entity
        if self.running:
            entity.start()
        return entity_id

    @property
    def entities(self):
        return list(self._entities)

    def get_entity(self, entity):
        """

        :param entity: Id, name or the entity object

        :return: The registered entity

        """
        if isinstance(entity, SimEntity):
            if entity.simulator is not self:
                raise EntityError('{} belongs to another simulation'.format(entity.name))
            return entity
        if isinstance(entity, int) and 0 <= entity < len(self._entities):
            return self._entities[entity]
        if isinstance(entity, str) and entity in self._entity_names:
            return self._entity_names[entity]
        raise EntityError('Entity {} not found'.format(entity))

    def get_entity_id(self, entity):
        return self.get_entity(entity).id

    def get_entity_name(self, entity):
        return self.get_entity(entity).name

    # ===========================================================================
    # Simulation
    # ===========================================================================
    def start_simulation(self, until=None):
        """

        Runs the simulation until no event is left.

        :param until: Optional. Simulated time limit.

        :return: Dictionary with the generated file paths by prefix.

        """
        if self.end_simulation_time is not None or self.running:
            raise SimulationError('The simulation has already been executed')
        if self._closed:
            raise SimulationError('The simulator has been closed')
        if until is not None and until < 0:
            raise SimulationError('The simulated time limit must be positive. Received: {}'.format(until))
        self._start_logger()
        for writer in self._writers():
            writer.start()

        self.show_config()
        sim_error = None
        try:
            self.run_simulation(until)
        except Exception as e:
            self._logger.error('The simulation will be stopped. Reason: {}'.format(e))
            sim_error = e

        filepaths = self._generated_filepaths()
        self.close()
        if sim_error:
            raise sim_error
        return filepaths

    def _writers(self):
        return [writer for writer in (self._gridlet_writer, self._usage_writer) if writer]

    def close(self):
        """

        Stops the output writers, then releases the constants and the logger handler.

        """
        for writer in self._writers():
            writer.stop()
        self._gridlet_writer = None
        self._usage_writer = None
        SimulatorBase.close(self)

    def run_simulation(self, until=None):
        """

        Processes the events of the kernel one time point at a time. It is called by start_simulation.

        :param until: Optional. Simulated time limit.

        """
        if self.timeout:
            init_sim_time = time()
        self.start_simulation_time = clock()
        self._logger.info('Starting the simulation process.')

        self.running = True
        for entity in self._entities:
            entity.start()

        env = self.env
        while True:
            current_time = env.peek()
            if current_time == inf or (until is not None and current_time > until):
                break
            benchStartTime = clock() * 1000
            steps = 0
            while env.peek() == current_time:
                env.step()
                steps += 1

            if self.constants.BENCHMARK_OUTPUT:
                benchEndTime = clock() * 1000
                benchMemUsage = self._process_obj.memory_info().rss / float(2 ** 20)
                self._usage_writer.push((current_time, steps, benchEndTime - benchStartTime, benchMemUsage))

            if self.timeout and self.timeout <= int(time() - init_sim_time):
                self._logger.warning('The simulation reached the timeout of {} secs'.format(self.timeout))
                break

        self.running = False
        self.end_simulation_time = clock()
        waiting = [entity.name for entity in self._entities if entity.is_alive]
        if waiting:
            self._logger.debug('Entities still waiting for events: {}'.format(', '.join(waiting)))

        self.statics_write_out(self.constants.SHOW_STATISTICS, self.constants.STATISTICS_OUTPUT)
        self._logger.info('Simulation process completed.')

    def gridlet_returned(self, gridlet):
        """

        Called by the resources for every gridlet sent back to its owner.

        :param gridlet: The returned gridlet

        """
        self.returned_gridlets += 1
        if gridlet.status == GridletStatus.SUCCESS:
            self.successful_gridlets += 1
            self.wtimes.append(gridlet.waiting_time)
            self.total_cost += gridlet.processing_cost
        if self._gridlet_writer:
            self._gridlet_writer.push(gridlet)

    @staticmethod
    def _gridlet_write_preprocessor(gridlet):
        """
        To be used as a pre-processor for AsyncWriter objects applied to returned gridlets.
        It uses the format specified in the GRIDLET_OUTPUT constant.

        :param gridlet: The gridlet to be written to output
        """
        constants = CONSTANT()
        _dict = constants.GRIDLET_OUTPUT
        _attrs = {}
        for a, av in _dict['attributes'].items():
            try:
                _attrs[a] = locate(av[-1])(*gridlet.subattr(gridlet, tuple(av[:-1])))
            except ValueError:
                _attrs[a] = 'NA'
        output_format = _dict['format']
        return output_format.format(**_attrs) + '\n'

    @staticmethod
    def usage_metrics_preprocessor(entry):
        """
        To be used as a pre-processor for AsyncWriter objects applied to usage metrics.
        Pre-processes a tuple of usage metrics containing 4 fields. The fields are the following:

        - time: the simulated time of the step
        - events: the number of kernel events processed at that time
        - stepTime: the total time required to perform the simulation step
        - memUsage: memory usage (expressed in MB) at the simulation step

        :param entry: Tuple of data to be written to output
        """
        sep_token = ';'
        bline = sep_token.join([str(v) for v in entry]) + '\n'
        return bline

    def statics_write_out(self, show, save):
        """

        Write the statistic output file

        :param show: True for showing the statistics, False otherwise.
        :param save: True for saving the statistics, False otherwise.

        """
        if not (show or save):
            return
        wtimes = Accumulator()
        for wtime in self.wtimes:
            wtimes.add(wtime)
        sim_time_ = 'Simulation time: {0:.2f} secs\n'.format(self.end_simulation_time - self.start_simulation_time)
        simulated_time_ = 'Simulated time: {0:.2f}\n'.format(self.env.now)
        total_gridlets_ = 'Returned gridlets: {}\n'.format(self.returned_gridlets)
        success_gridlets_ = 'Successful gridlets: {}\n'.format(self.successful_gridlets)
        if self.wtimes:
            avg_wtimes_ = 'Avg. waiting times: {:.2f}\n'.format(wtimes.mean)
        else:
            avg_wtimes_ = 'Avg. waiting times: NA\n'
        total_cost_ = 'Total processing cost: {:.2f}\n'.format(self.total_cost)
        lines = [sim_time_, simulated_time_, total_gridlets_, success_gridlets_, avg_wtimes_, total_cost_]

        if show:
            for line in lines:
                self._logger.info('\t ' + line[:-1])

        if save:
            _filepath = self.output_filepath(self.constants.STATISTICS_PREFIX)
            with open(_filepath, 'a') as f:
                for line in lines:
                    f.write(line)
            self.statistics.write_out(_filepath)


class SimulationError(Exception):
    pass
