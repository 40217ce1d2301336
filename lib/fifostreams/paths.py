# Copyright 2006-2025 Mark Diekhans
"""
Creation of the filesystem objects backing streams: named pipes and
plain files, either at a given path or at a fresh temporary path.
"""
import os
import stat
import atexit
import secrets
import tempfile
from threading import Lock
from fifostreams.exceptions import UnsupportedPlatformError

_FIFO_PREFIX = "fifo."
_FILE_PREFIX = "fifofile."

# generated temporary paths that are removed at exit if still present
_tempPaths = set()
_tempPathsLock = Lock()


def has_fifo_support():
    "does this platform support kernel-level named pipes"
    return hasattr(os, "mkfifo")


def _register_temp_path(path):
    with _tempPathsLock:
        _tempPaths.add(path)


def _unregister_temp_path(path):
    with _tempPathsLock:
        _tempPaths.discard(path)


@atexit.register
def _remove_temp_paths():
    with _tempPathsLock:
        for path in _tempPaths:
            try:
                os.unlink(path)
            except FileNotFoundError:
                pass
        _tempPaths.clear()


def remove_path(path):
    """Remove a stream backing path, it is not an error if it no longer
    exists.  The path is dropped from the exit-time cleanup set."""
    _unregister_temp_path(path)
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


def is_fifo(path):
    "check if path exists and is a named pipe"
    try:
        return stat.S_ISFIFO(os.stat(path).st_mode)
    except FileNotFoundError:
        return False


def mkfifo(path, mode=0o600):
    """Create a named pipe at path with the permission bits in mode,
    returning the path.  Unlike os.mkfifo, mode is not modified by the
    umask.

    :raises fifostreams.UnsupportedPlatformError: if named pipes are not
        available on this platform.
    """
    if not has_fifo_support():
        raise UnsupportedPlatformError("mkfifo can't be used on non-Unix systems")
    os.mkfifo(path, mode)
    os.chmod(path, mode)
    return path


def _temp_dir(parent):
    return tempfile.gettempdir() if parent is None else parent


def mktempfifo(parent=None, mode=0o600, cleanup=True):
    """Create a named pipe with a unique name in directory parent, which
    defaults to the system temporary directory.  If cleanup is True, the
    pipe is removed at interpreter exit if it still exists.  Returns the
    path."""
    parent = _temp_dir(parent)
    while True:
        path = os.path.join(parent, _FIFO_PREFIX + secrets.token_hex(8))
        try:
            mkfifo(path, mode)
            break
        except FileExistsError:
            continue  # name collision, try again
    if cleanup:
        _register_temp_path(path)
    return path


def mkfile(path, mode=0o600):
    """Create an empty regular file at path with the permission bits in mode
    if it does not exist.  An existing file is left unchanged.  Returns the
    path."""
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
    except FileExistsError:
        return path
    os.close(fd)
    os.chmod(path, mode)
    return path


def mktempfile(parent=None, mode=0o600, cleanup=True):
    """Create an empty regular file with a unique name in directory parent,
    which defaults to the system temporary directory.  If cleanup is True,
    the file is removed at interpreter exit if it still exists.  Returns the
    path."""
    fd, path = tempfile.mkstemp(prefix=_FILE_PREFIX, dir=_temp_dir(parent))
    os.close(fd)
    os.chmod(path, mode)
    if cleanup:
        _register_temp_path(path)
    return path
