from setuptools import setup, find_packages
from gridsim import __version__
from codecs import open
from os import path

here = path.abspath(path.dirname(__file__))
package_name = 'gridsim'
with open(path.join(here, 'README.rst'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name=package_name,
    version=__version__,
    description='A discrete-event simulator of grid resources, users and advance reservations',
    long_description=long_description,
    license='MIT',

    # See https://pypi.python.org/pypi?%3Aaction=list_classifiers
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
    ],

    keywords='research, grid, simulation, discrete-event, advance reservation',
    python_requires='>=3.8',

    packages=find_packages(exclude=['contrib', 'docs', 'tests']),

    install_requires=['simpy', 'sortedcontainers', 'matplotlib', 'numpy', 'psutil'],
)
