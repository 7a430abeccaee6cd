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
from os import makedirs as _makedir
from os.path import isfile as _isfile, isdir as _isdir, join as _join
from ntpath import split as _split, basename as _basename


def file_exists(file_path, boolean=False, raise_error=False, head_message=''):
    """

    Checks if a file exists.

    :param file_path: Path of the file
    :param boolean: Return a boolean instead of the path
    :param raise_error: Raises an exception when the file does not exist
    :param head_message: Prefix of the error message

    :return: The file path, or a boolean if boolean is True.

    """
    exists = _isfile(file_path)
    if (raise_error or head_message != '') and not exists:
        raise FileNotFoundError('{}{} File does not exist.'.format(head_message, file_path))
    if boolean:
        return exists
    return file_path


def dir_exists(dir_path, create=False):
    """

    :param dir_path: Path of the directory
    :param create: Creates the directory if it does not exist

    :return: True if the directory exists (or was created)
    """
    exists = _isdir(dir_path)
    if create and not exists:
        _makedir(dir_path)
        return True
    return exists


def path_leaf(path):
    """

    Extract path and filename

    :param path: Entire filepath

    :return: Return a tuple that contains the (path, filename)

    """
    head, tail = _split(path)
    return (head, tail or _basename(head))


def output_filepath(folder, prefix, name, extension=''):
    return _join(folder, prefix + name + extension)
