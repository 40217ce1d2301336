# Copyright 2006-2025 Mark Diekhans
"""
Stdio redirections for processes attached to streams.  These connect the
standard input, output, or error of a spawned process to memory, files, or
to the other processes of a pipeline.
"""
import os
import threading
from fifostreams.exceptions import FIFOStreamException


class Dev:
    """Base class for objects specifying process input or output.  A Dev is
    bound to each process that uses it before the process is started, then
    supplies the file descriptor for the child's side.
    """

    def get_child_write_fd(self, process):
        """get write-to fileno for specified process associated with this device"""
        raise NotImplementedError('get_child_write_fd')

    def get_child_read_fd(self, process):
        """get read-from fileno for specified process associated with this device"""
        raise NotImplementedError('get_child_read_fd')

    def _bind_read_to_process(self, process):
        """associate read side with child process."""
        pass

    def _bind_write_to_process(self, process):
        """associate write side with child process."""
        pass

    def _bind_to_process(self, process, mode):
        """associate with a child process based on mode"""
        if mode.startswith("r"):
            self._bind_read_to_process(process)
        else:
            self._bind_write_to_process(process)

    def _post_start_parent(self):
        "called do any post-exec handling in the parent"
        pass

    def close(self):
        """close the device"""
        pass


def _open_pipe_end(fd, mode, binary, buffering, encoding, errors, newline):
    return open(fd, mode + ("b" if binary else ""), buffering=buffering,
                encoding=None if binary else encoding,
                errors=None if binary else errors,
                newline=None if binary else newline)


class _ReaderThread:
    """Pipe from one process into a DataReader, drained by a thread.  A
    DataReader has one of these per process, allowing several processes
    to share a reader for stderr."""
    def __init__(self, process, store, binary, buffering, encoding, errors, newline):
        self.process = process
        self._store = store
        self._thread = None
        read_fd, self.write_fd = os.pipe()
        self._read_fh = _open_pipe_end(read_fd, "r", binary, buffering, encoding, errors, newline)

    def start(self):
        "child now has the write end, close ours and start reading"
        os.close(self.write_fd)
        self.write_fd = None
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self):
        self._store(self._read_fh.read())

    def close(self):
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if self._read_fh is not None:
            self._read_fh.close()
            self._read_fh = None
        if self.write_fd is not None:
            os.close(self.write_fd)
            self.write_fd = None


class DataReader(Dev):
    """Collect output of a process into memory.  A thread reads the pipe so
    that a process writing a lot of output can't deadlock against a parent
    that is blocked writing to or waiting on a stream.

    With binary=True, data is bytes, otherwise it is str.  The buffering,
    encoding, errors, and newline arguments are as used in open().

    A reader may collect from multiple processes, such as the stderr of
    every process in a pipeline.
    """
    def __init__(self, *, binary=False, buffering=-1, encoding=None, errors=None, newline=None):
        self.binary = binary
        self.buffering = buffering
        self.encoding = encoding
        self.errors = errors
        self.newline = newline
        self._readers = []
        self._buffer = []
        self._lock = threading.Lock()

    def __str__(self):
        return "[DataReader]"

    def _bind_read_to_process(self, process):
        raise FIFOStreamException("DataReader can't be used for process input")

    def _bind_write_to_process(self, process):
        self._readers.append(_ReaderThread(process, self._store, self.binary, self.buffering,
                                           self.encoding, self.errors, self.newline))

    def _post_start_parent(self):
        for reader in self._readers:
            if reader.write_fd is not None:
                reader.start()

    def _store(self, data):
        with self._lock:
            self._buffer.append(data)

    def close(self):
        "wait for all output to be read and close the pipes"
        for reader in self._readers:
            reader.close()

    def get_child_write_fd(self, process):
        for reader in self._readers:
            if process is reader.process:
                return reader.write_fd
        raise ValueError("process not associated with this device")

    @property
    def data(self):
        "return collected data as a str or bytes"
        empty = b"" if self.binary else ""
        with self._lock:
            return empty.join(self._buffer)


class DataWriter(Dev):
    """Feed data from memory to the input of a process, writing from a thread
    to prevent deadlock.  Text or binary output is determined by the type of
    data.  The buffering, encoding, errors, and newline arguments are as used
    in open().
    """

    def __init__(self, data, *, buffering=-1, encoding=None, errors=None, newline=None):
        self._data = data
        self._process = None
        self._thread = None
        self._read_fd, write_fd = os.pipe()
        self._write_fh = _open_pipe_end(write_fd, "w", not isinstance(data, str),
                                        buffering, encoding, errors, newline)

    def __str__(self):
        return "[DataWriter]"

    def _bind_read_to_process(self, process):
        if self._process is not None:
            raise FIFOStreamException("DataWriter already bound to a process")
        self._process = process

    def _bind_write_to_process(self, process):
        raise FIFOStreamException("DataWriter can't be used for process output")

    def _post_start_parent(self):
        if self._read_fd is None:
            return
        os.close(self._read_fd)
        self._read_fd = None
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def get_child_read_fd(self, process):
        assert process is self._process
        return self._read_fd

    def _run(self):
        try:
            self._write_fh.write(self._data)
            self._write_fh.close()
        except BrokenPipeError:
            pass  # reader exited without consuming everything

    def close(self):
        "wait for writing to finish and close the pipes"
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if self._read_fd is not None:
            os.close(self._read_fd)
            self._read_fd = None
        if self._write_fh is not None:
            try:
                self._write_fh.close()
            except BrokenPipeError:
                pass
            self._write_fh = None


class File(Dev):
    """A file path for process input or output.  Mode is one of `r`, `w`,
    or `a`."""

    _flags = {
        "r": os.O_RDONLY,
        "w": os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
        "a": os.O_WRONLY | os.O_CREAT | os.O_APPEND,
    }

    def __init__(self, path, mode="r"):
        self.path = str(path)
        self.mode = mode
        flags = self._flags.get(mode[:1])
        if flags is None:
            raise FIFOStreamException("invalid or unsupported mode '{}' opening {}".format(mode, path))
        self._fd = os.open(self.path, flags, 0o666)

    def __str__(self):
        return self.path

    def get_child_write_fd(self, process):
        assert self.mode[:1] in ("w", "a")
        return self._fd

    def get_child_read_fd(self, process):
        assert self.mode[:1] == "r"
        return self._fd

    def _post_start_parent(self):
        self.close()

    def close(self):
        "close file if open"
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None


class _SiblingPipe(Dev):
    """Anonymous pipe connecting two processes in a pipeline."""

    def __init__(self):
        self._read_fd, self._write_fd = os.pipe()

    def __str__(self):
        return "[Pipe]"

    def get_child_write_fd(self, process):
        return self._write_fd

    def get_child_read_fd(self, process):
        return self._read_fd

    def _post_start_parent(self):
        self.close()

    def close(self):
        if self._read_fd is not None:
            os.close(self._read_fd)
            self._read_fd = None
        if self._write_fd is not None:
            os.close(self._write_fd)
            self._write_fd = None
