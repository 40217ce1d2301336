# Copyright 2006-2025 Mark Diekhans
"""
Streams connecting the parent to an external program through a filesystem
path.  The path is given to the program as an argument, while the parent
reads or writes it as an ordinary file object.
"""
import os
import enum
from io import UnsupportedOperation
from fifostreams import paths
from fifostreams.docstrings import doc_stream_args, doc_attach_args, doc_close_args
from fifostreams.exceptions import (FIFOStreamException, UnsupportedPlatformError, InvalidDirectionError,
                                    AlreadyAttachedError, StreamClosedError)
from fifostreams.processes import Pipeline, _getLoggerToUse, _getLogLevelToUse, _log


class Direction(enum.Enum):
    """Direction a stream is opened in the parent"""
    READ = "r"
    WRITE = "w"


class StreamState(enum.IntEnum):
    """Life cycle of a stream, states are never revisited"""
    CREATED = 0
    ATTACHING = 1
    ATTACHED = 2
    CLOSED = 3


def _parse_direction(read, write):
    if write is None:
        write = not read
    if bool(read) == bool(write):
        raise InvalidDirectionError(read, write)
    return Direction.READ if read else Direction.WRITE


class FIFOStream:
    """Abstract base for a stream backed by a filesystem path.  A stream is
    created, attached to a local file object and optionally an external
    command with attach(), used for I/O, then closed.  Closing waits for the
    external command and raises PipelineError if it failed.

    The two implementations are UnixFIFOStream, using a kernel named pipe,
    and FallbackFIFOStream, using a regular file.  They differ only in when
    the attached command is run.  Use createFIFOStream() to get the best
    one for the platform.
    """

    def __init__(self, path=None, *, read=False, write=None, cleanup=True, mode=0o600,
                 binary=False, buffering=-1, encoding=None, errors=None, newline=None,
                 logger=None, logLevel=None):
        self.direction = _parse_direction(read, write)
        self.cleanup = cleanup
        self.binary = binary
        self.buffering = buffering
        self.encoding = encoding
        self.errors = errors
        self.newline = newline
        self.logger = _getLoggerToUse(logger)
        self.logLevel = _getLogLevelToUse(logLevel)
        self.pipeline = None  # attached command
        self._handle = None
        self._state = StreamState.CREATED
        self._path = self._create_path(path, mode)

    def __str__(self):
        return "{}({}) {}".format(self.__class__.__name__, self.direction.value, self._path)

    @property
    def path(self):
        "filesystem path backing the stream"
        return self._path

    @property
    def state(self):
        "current StreamState"
        return self._state

    ### Variant specific ###

    def _create_path(self, path, mode):
        "create the backing object at path, or at a temporary path if None"
        raise NotImplementedError('_create_path')

    def _spawn(self, pipeline):
        """run the command as needed before the local side is opened.
        self.pipeline is waited on at close, starting it if needed"""
        raise NotImplementedError('_spawn')

    ### Attach ###

    def _check_attachable(self):
        if self._state is StreamState.CLOSED:
            raise StreamClosedError("FIFOStream is closed: {}".format(self))
        if self._state is not StreamState.CREATED:
            raise AlreadyAttachedError("FIFOStream already attached: {}".format(self))

    def _open_handle(self):
        return open(self._path, self.direction.value + ("b" if self.binary else ""),
                    buffering=self.buffering,
                    encoding=None if self.binary else self.encoding,
                    errors=None if self.binary else self.errors,
                    newline=None if self.binary else self.newline)

    def attach(self, cmds=None, *, stdin=None, stdout=None, stderr=None, env=None):
        """Attach the stream to an external command and open the local side
        of the stream.  If cmds is None, only the local side is opened.  The
        stream is returned.
        """    # doc extended below after class creation
        self._check_attachable()
        if (cmds is None) and not all(s is None for s in (stdin, stdout, stderr, env)):
            raise FIFOStreamException("stdio or env specified without a command")
        self._state = StreamState.ATTACHING  # do first to prevent re-attach on error
        if cmds is not None:
            self.pipeline = Pipeline(cmds, stdin=stdin, stdout=stdout, stderr=stderr, env=env,
                                     logger=self.logger, logLevel=self.logLevel)
            self._spawn(self.pipeline)
        _log(self.logger, self.logLevel, "attach: {}".format(self))
        try:
            self._handle = self._open_handle()
        except BaseException:
            # command may be blocked waiting on the other side of the pipe
            if self.pipeline is not None:
                self.pipeline.shutdown()
            raise
        self._state = StreamState.ATTACHED
        return self

    ### Close ###

    def _close_handle(self):
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        try:
            handle.close()
        except BrokenPipeError:
            pass  # reader exited early, its exit status decides

    def remove(self):
        "remove the backing path, it is not an error if it doesn't exist"
        paths.remove_path(self._path)

    def close(self, remove=None):
        """Close the local side of the stream, then wait for the attached
        command to complete.
        """    # doc extended below after class creation
        if self._state is StreamState.CLOSED:
            raise StreamClosedError("FIFOStream is already closed: {}".format(self))
        if remove is None:
            remove = self.cleanup
        self._state = StreamState.CLOSED
        _log(self.logger, self.logLevel, "close: {}".format(self))
        try:
            try:
                self._close_handle()
            except BaseException:
                if self.pipeline is not None:
                    self.pipeline.shutdown()
                raise
            if self.pipeline is not None:
                self.pipeline.wait()
        finally:
            if remove:
                self.remove()

    ### Context manager ###

    def __enter__(self):
        "support for with statement"
        if self._state is StreamState.CLOSED:
            raise ValueError("I/O operation on closed stream")
        return self

    def __exit__(self, type, value, traceback):
        "support for with statement, closes stream if not already closed"
        if self._state is not StreamState.CLOSED:
            self.close()

    ### Internal ###

    def _unsupported(self, name):
        raise UnsupportedOperation("%s.%s() not supported" %
                                   (self.__class__.__name__, name))

    def _checkHandle(self):
        """raise a ValueError if stream is not attached or closed, otherwise
        return the local file object"""
        if self._handle is None:
            if self._state is StreamState.CLOSED:
                raise ValueError("I/O operation on closed stream")
            raise ValueError("I/O operation on stream that is not attached")
        return self._handle

    ### Inquiries ###

    @property
    def closed(self):
        """closed: bool.  True if the stream has been closed."""
        return self._state is StreamState.CLOSED

    def readable(self):
        """Return a bool indicating whether the stream is opened for reading."""
        return self.direction is Direction.READ

    def writable(self):
        """Return a bool indicating whether the stream is opened for writing."""
        return self.direction is Direction.WRITE

    def seekable(self):
        """Not seekable"""
        return False

    def isatty(self):
        """Return a bool indicating whether this is an 'interactive' stream."""
        self._checkHandle()
        return False

    def seek(self, pos, whence=0):
        """Changing stream position not supported"""
        self._unsupported("seek")

    def truncate(self, pos=None):
        """Truncate unsupported"""
        self._unsupported("truncate")

    ### Lower-level APIs ###

    def fileno(self):
        "get the integer OS-dependent file handle"
        return self._checkHandle().fileno()

    def flush(self):
        "Flush the internal I/O buffer."
        self._checkHandle().flush()

    ### read, write and readline[s] and writelines ###

    def read(self, size=-1):
        return self._checkHandle().read(size)

    def readline(self, size=-1):
        return self._checkHandle().readline(size)

    def readlines(self, hint=-1):
        return self._checkHandle().readlines(hint)

    def __iter__(self):
        "iter over contents of stream"
        return iter(self._checkHandle())

    def write(self, data):
        "Write str or bytes to the stream."
        return self._checkHandle().write(data)

    def writelines(self, lines):
        """Write a list of lines to the stream.

        Line separators are not added, so it is usual for each of the lines
        provided to have a line separator at the end.
        """
        self._checkHandle().writelines(lines)


class UnixFIFOStream(FIFOStream):
    """Stream backed by a kernel named pipe.  Opening a named pipe blocks
    until the other side is also opened, which synchronizes the parent with
    the attached command.  The command is started by attach() and waited
    for by close().
    """    # doc extended below after class creation

    def __init__(self, path=None, **kwargs):
        if not paths.has_fifo_support():
            raise UnsupportedPlatformError("UnixFIFOStream can't be used on non-Unix systems")
        super().__init__(path, **kwargs)

    def _create_path(self, path, mode):
        if path is None:
            return paths.mktempfifo(mode=mode)
        path = os.fspath(path)
        if not paths.is_fifo(path):
            paths.mkfifo(path, mode)
        return path

    def _spawn(self, pipeline):
        pipeline.start()


class FallbackFIFOStream(FIFOStream):
    """Stream backed by a regular file, for platforms without named
    pipes.  Opening a file does not block, so the command is run where a
    named pipe would have made the two sides wait for each other:

       - read: the command is run to completion by attach(), before the
         file is opened, so it has been fully written before it is read.
       - write: the command is not started until close(), after the file
         has been written and closed.

    A read command that also reads the stream path back while running
    is not supported; it will not see the parent side.
    """    # doc extended below after class creation

    def _create_path(self, path, mode):
        if path is None:
            return paths.mktempfile(mode=mode)
        return paths.mkfile(os.fspath(path), mode)

    def _spawn(self, pipeline):
        if self.direction is Direction.READ:
            pipeline.wait()


def getDefaultStreamClass():
    """return the FIFOStream class to use on this platform, UnixFIFOStream if
    named pipes are supported, otherwise FallbackFIFOStream"""
    return UnixFIFOStream if paths.has_fifo_support() else FallbackFIFOStream


def createFIFOStream(path=None, **kwargs):
    """Create a stream with the default FIFOStream class for this platform.
    """    # doc extended below after class creation
    return getDefaultStreamClass()(path, **kwargs)


# extend documentation from common text
FIFOStream.attach.__doc__ += '\n' + doc_attach_args
FIFOStream.close.__doc__ += '\n' + doc_close_args
UnixFIFOStream.__doc__ += '\n' + doc_stream_args
FallbackFIFOStream.__doc__ += '\n' + doc_stream_args
createFIFOStream.__doc__ += '\n' + doc_stream_args
