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
import matplotlib.pyplot as plt
import numpy as np

from re import findall

from gridsim.utils.misc import DEFAULT_SIMULATION


class PlotFactory:
    """
    A class for plot production from the output files of a simulation.

    The gridlet files (sched-*) are parsed with the GRIDLET_OUTPUT format, and the benchmark files (bench-*) with the
    format of the usage metrics: time;events;step time;memory.
    """

    GRIDLET_CLASS = 'gridlet'
    BENCHMARK_CLASS = 'benchmark'
    WALL_CLOCK_PLOT = 'wall_clock'
    WAITING_TIME_PLOT = 'waiting_time'
    COST_PLOT = 'cost'
    STEP_TIME_PLOT = 'step_time'
    SIMULATION_MEMORY_PLOT = 'sim_memory'

    PLOT_TYPES = {
        GRIDLET_CLASS: [WALL_CLOCK_PLOT, WAITING_TIME_PLOT, COST_PLOT],
        BENCHMARK_CLASS: [STEP_TIME_PLOT, SIMULATION_MEMORY_PLOT]
    }

    def __init__(self, plot_class, output_format=None):
        """
        The constructor for the class.

        :param plot_class: the class of files to be analyzed. Either 'gridlet' or 'benchmark'.
        :param output_format: the format string of the gridlet files. By default the GRIDLET_OUTPUT format.
        """
        assert(plot_class in self.PLOT_TYPES), 'Invalid plot class {}. Available: {}'.format(plot_class, list(self.PLOT_TYPES))
        self._plot_class = plot_class
        if output_format is None:
            output_format = DEFAULT_SIMULATION['GRIDLET_OUTPUT']['format']
        self._columns = findall(r'\{(\w+)\}', output_format)

        self._preprocessed = False
        self._filepaths = []
        self._labels = []

        self._wall_clocks = []
        self._waiting_times = []
        self._costs = []
        self._step_times = []
        self._memory = []

    def set_files(self, paths, labels):
        """
        Set the paths and labels of the files to be analyzed.

        :param paths: A list of filepaths related to the files to be analyzed;
        :param labels: the labels associated to each single file, used in the plots; must have the same length as paths;
        """
        self._preprocessed = False
        if not isinstance(paths, (list, tuple)):
            paths = [paths]
            labels = [labels]
        assert(len(paths) == len(labels)), 'Filepaths and Labels lists must have the same lengths.'
        self._filepaths = list(paths)
        self._labels = list(labels)

    def pre_process(self):
        """
        Parses all the files.

        :return: True if every file was parsed
        """
        if self._preprocessed:
            return True
        self._wall_clocks = []
        self._waiting_times = []
        self._costs = []
        self._step_times = []
        self._memory = []
        parser = self._gridlet_data if self._plot_class == self.GRIDLET_CLASS else self._benchmark_data
        for filepath in self._filepaths:
            parser(filepath)
        self._preprocessed = True
        return True

    def _rows(self, filepath):
        with open(filepath) as f:
            for line in f:
                line = line.strip()
                if line:
                    yield line.split(';')

    def _gridlet_data(self, filepath):
        """
        Extracts the wall clock, waiting time and cost per resource of the successful gridlets.
        """
        index = {name: i for i, name in enumerate(self._columns)}
        wall_clocks = []
        waiting_times = []
        costs = {}
        for row in self._rows(filepath):
            if row[index['status']] != 'Success':
                continue
            wall_clocks.append(float(row[index['wall_clock']]))
            waiting_times.append(float(row[index['start_time']]) - float(row[index['submission_time']]))
            resource = int(row[index['resource']])
            costs[resource] = costs.get(resource, 0.0) + float(row[index['cost']])
        self._wall_clocks.append(wall_clocks)
        self._waiting_times.append(waiting_times)
        self._costs.append(costs)

    def _benchmark_data(self, filepath):
        step_times = []
        memory = []
        for row in self._rows(filepath):
            step_times.append(float(row[2]))
            memory.append(float(row[3]))
        self._step_times.append(step_times)
        self._memory.append(memory)

    def produce_plot(self, type, title='', scale='linear', figsize=(7, 5), output='Output.pdf', **kwargs):
        """
        Produces a single plot on the pre-processed files.

        The available types are:
            - wall_clock: a box-plot of the wall clock time of the gridlets, per file
            - waiting_time: a box-plot of the waiting time of the gridlets, per file
            - cost: a bar plot of the processing cost per resource, per file
            - step_time: a box-plot of the time spent on each simulated time point, per file
            - sim_memory: a box-plot of the memory usage, per file

        :param type: the type of the plot, must be one of the above;
        :param title: the title of the plot;
        :param scale: the scale of the plot (see matplotlib documentation);
        :param figsize: the size of the figure, is a tuple;
        :param output: path of the output file;
        """
        if type not in self.PLOT_TYPES[self._plot_class]:
            raise ValueError('Plot type {} is not valid for {} files.'.format(type, self._plot_class))
        self.pre_process()
        if type == self.WALL_CLOCK_PLOT:
            self.box_plot(self._wall_clocks, title, 'Wall clock time', scale, figsize, output, **kwargs)
        elif type == self.WAITING_TIME_PLOT:
            self.box_plot(self._waiting_times, title, 'Waiting time', scale, figsize, output, **kwargs)
        elif type == self.COST_PLOT:
            self.bar_plot(self._costs, title, 'Processing cost', scale, figsize, output, **kwargs)
        elif type == self.STEP_TIME_PLOT:
            self.box_plot(self._step_times, title, 'Step time (ms)', scale, figsize, output, **kwargs)
        else:
            self.box_plot(self._memory, title, 'Memory usage (MB)', scale, figsize, output, **kwargs)

    def get_statistics(self):
        """
        :return: a list, one dictionary per file, with the distribution statistics of the parsed data
        """
        self.pre_process()
        if self._plot_class == self.GRIDLET_CLASS:
            return [{'wall_clock': self._distribution_stats(w), 'waiting_time': self._distribution_stats(q),
                     'cost': sum(c.values())} for w, q, c in zip(self._wall_clocks, self._waiting_times, self._costs)]
        return [{'step_time': self._distribution_stats(s), 'memory': self._distribution_stats(m)}
                for s, m in zip(self._step_times, self._memory)]

    def _distribution_stats(self, data):
        """
        Returns the mean, minimum, maximum and median of the input data. None for empty data.
        """
        if not data:
            return None
        stats = {}
        stats['avg'] = np.average(data)
        stats['min'] = np.min(data)
        stats['max'] = np.max(data)
        stats['median'] = np.median(data)
        return stats

    def box_plot(self, data, title='', ylabel='', scale='linear', figsize=(7, 5), output='Output.pdf', **kwargs):
        r"""
        Produces a box-and-whiskers plot for the input data's distributions.

        :param data: the input data; a list with one list of values per file, in the order of the labels;
        :param \*\*kwargs:
            - fig_format: arguments for savefig, i.e. {'format': 'pdf', 'dpi': 300}
            - ylim: the bottom-top axis boundaries, is a tuple;
        """
        fontsize = 12
        ylim = kwargs.pop('ylim', None)
        fig, ax = plt.subplots(figsize=figsize)
        bp = ax.boxplot(data, patch_artist=True, showmeans=True, showfliers=False)
        ax.set_xticks(range(1, len(self._labels) + 1))
        ax.set_xticklabels(self._labels)
        for patch in bp['boxes']:
            patch.set_alpha(0.75)
        ax.set_ylabel(ylabel, fontsize=fontsize)
        ax.set_title(title)
        ax.set_yscale(scale)
        if ylim:
            ax.set_ylim(bottom=ylim[0], top=ylim[1])
        plt.grid(linestyle=':', color='gray', zorder=0)
        plt.tight_layout()
        fig.savefig(output, **kwargs.pop('fig_format', {}))
        plt.close(fig)

    def bar_plot(self, data, title='', ylabel='', scale='linear', figsize=(7, 5), output='Output.pdf', **kwargs):
        """
        Produces a grouped bar plot. Each group is a resource and each bar a file.

        :param data: a list with one dictionary {resource: value} per file, in the order of the labels;
        """
        resources = sorted({resource for _dict in data for resource in _dict})
        width = 0.8 / max(len(data), 1)
        ind = np.arange(len(resources))
        fig, ax = plt.subplots(figsize=figsize)
        for i, (_dict, label) in enumerate(zip(data, self._labels)):
            ax.bar(ind + i * width, [_dict.get(resource, 0.0) for resource in resources], width, label=label)
        ax.set_xticks(ind + width * (len(data) - 1) / 2)
        ax.set_xticklabels(['Resource #{}'.format(resource) for resource in resources])
        ax.set_ylabel(ylabel)
        ax.set_title(title)
        ax.set_yscale(scale)
        ax.legend()
        plt.tight_layout()
        fig.savefig(output, **kwargs.pop('fig_format', {}))
        plt.close(fig)
