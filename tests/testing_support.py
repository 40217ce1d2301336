# Copyright 2006-2025 Mark Diekhans
"""
Support functions for tests: file locations and checks for leaked
processes, file descriptors, and threads.
"""
import os
import os.path as osp
import difflib
import errno
import threading
import logging
from io import StringIO
import pytest

try:
    MAXFD = os.sysconf("SC_OPEN_MAX")
except (AttributeError, ValueError, OSError):
    MAXFD = 256


def get_test_dir(request):
    "directory containing the test module"
    return osp.dirname(str(request.path))


def get_test_id(request):
    "test id in the form test_module.py::test_name, with parametrization"
    return osp.basename(request.node.nodeid)


def get_test_input_file(request, fname):
    "path to a file in the test input directory"
    return osp.join(get_test_dir(request), "input", fname)


def get_test_output_dir(request):
    "output directory, created if it doesn't exist"
    outdir = osp.join(get_test_dir(request), "output")
    os.makedirs(outdir, exist_ok=True)
    return outdir


def get_test_output_file(request, ext):
    "output file named after the test, ext should contain a dot"
    return osp.join(get_test_output_dir(request), get_test_id(request) + ext)


def get_test_expect_file(request, ext, basename=None):
    """expected file named after the test or basename, allowing sharing of an
    expected file between tests"""
    return osp.join(get_test_dir(request), "expected",
                    (basename if basename is not None else get_test_id(request)) + ext)


def _read_lines(path):
    with open(path) as fh:
        return fh.readlines()


def diff_results_expected(request, ext, basename=None):
    "diff test output file against expected"
    expFile = get_test_expect_file(request, ext, basename)
    outFile = get_test_output_file(request, ext)
    diffs = list(difflib.unified_diff(_read_lines(expFile), _read_lines(outFile), expFile, outFile))
    if len(diffs) > 0:
        pytest.fail("output differs from expected:\n" + "".join(diffs))


def read_input(request, fname):
    "contents of a test input file"
    with open(get_test_input_file(request, fname)) as fh:
        return fh.read()


def read_expected(request, basename):
    "contents of an expected file shared between tests"
    with open(get_test_expect_file(request, "", basename)) as fh:
        return fh.read()


class LoggerForTests:
    """test logger that logs to memory, each instance has a new logger"""
    def __init__(self, level=logging.DEBUG):
        self.logger = logging.getLogger(str(id(self)))
        self.logger.setLevel(level)
        self.logger.propagate = False
        self._buffer = StringIO()
        self.logger.addHandler(logging.StreamHandler(self._buffer))

    @property
    def data(self):
        return self._buffer.getvalue()


def get_num_running_threads():
    "get the number of threads that are running"
    return sum(1 for t in threading.enumerate() if t.is_alive())


def assert_single_thread():
    "fail if more than one thread is running"
    assert get_num_running_threads() == 1


def assert_no_child_procs():
    "fail if there are any running or zombie child process"
    try:
        s = os.waitpid(-1, os.WNOHANG)
    except OSError as ex:
        if ex.errno != errno.ECHILD:
            raise
        return
    pytest.fail("pending child processes or zombies: " + str(s))


def get_num_open_files():
    "count the number of open files"
    if osp.isdir("/proc/self/fd"):
        return len(os.listdir("/proc/self/fd"))
    n = 0
    for fd in range(0, MAXFD):
        try:
            os.fstat(fd)
            n += 1
        except OSError:
            pass
    return n


def assert_num_open_files_same(prevNumOpen):
    "assert that the number of open files has not changed"
    numOpen = get_num_open_files()
    if numOpen != prevNumOpen:
        pytest.fail("number of open files changed, was {}, now it's {}".format(prevNumOpen, numOpen))
