# Copyright 2006-2025 Mark Diekhans
"""
A group of streams used by one external command, such as the two input
files of diff.
"""
from fifostreams.exceptions import FIFOStreamException, InvalidCountError
from fifostreams.exceptions import _warn_error_during_error_handling
from fifostreams.streams import getDefaultStreamClass


class FIFOStreamCollection:
    """A main stream plus zero or more child streams, all created with the
    same options.  Attaching a command attaches it to the main stream only,
    the children just open their side, as the command is expected to use all
    of the paths.  Closing closes all handles in reverse order of creation,
    so the command is not left blocked on a stream that is closed later,
    followed by removal of the paths.

    Members are accessed by iteration or by 0-based index, while path(i)
    numbers the paths from 1, as they would be given to a shell command.

    :param n: number of streams, at least 1.
    :param streamClass: FIFOStream class of the members, the platform default
        if None.
    :param streamArgs: keyword arguments passed to each member's constructor,
        except for ``path``.
    :raises fifostreams.InvalidCountError: if n is less than 1.
    """
    def __init__(self, n, *, streamClass=None, **streamArgs):
        if n < 1:
            raise InvalidCountError(n)
        if "path" in streamArgs:
            raise FIFOStreamException("members of a FIFOStreamCollection can't share a path")
        if streamClass is None:
            streamClass = getDefaultStreamClass()
        streams = []
        try:
            for _ in range(n):
                streams.append(streamClass(**streamArgs))
        except BaseException:
            for stream in streams:
                self._error_cleanup_stream(stream)
            raise
        self.main = streams[0]
        self.children = streams[1:]

    @staticmethod
    def _error_cleanup_stream(stream):
        try:
            stream.remove()
        except Exception as ex:
            _warn_error_during_error_handling("error removing stream path on error", ex)

    def __str__(self):
        return "[" + ", ".join([str(s) for s in self]) + "]"

    def __len__(self):
        return len(self.children) + 1

    def __iter__(self):
        yield self.main
        yield from self.children

    def __reversed__(self):
        yield from reversed(self.children)
        yield self.main

    def __getitem__(self, i):
        return ([self.main] + self.children)[i]

    def path(self, i):
        "path of the i-th stream, numbered from 1, with 1 being main"
        if not (1 <= i <= len(self)):
            raise IndexError("FIFOStreamCollection path index out of range: {}".format(i))
        return self.main.path if i == 1 else self.children[i - 2].path

    @property
    def closed(self):
        "True if all members have been closed"
        return all(s.closed for s in self)

    def attach(self, cmds=None, **kwargs):
        """Attach main to the command, with the same arguments as
        FIFOStream.attach(), then open the local side of each child.
        Returns the collection."""
        self.main.attach(cmds, **kwargs)
        for child in self.children:
            child.attach()
        return self

    def close(self, remove=None):
        """Close all members, last created first, without removing their
        paths.  Once all are closed, remove the paths in creation order, each
        one based on remove if not None, otherwise that member's cleanup.

        If closing a member fails, the remaining members are still closed and
        the paths removed before the first error is raised.
        """
        firstEx = None
        for stream in reversed(self):
            try:
                stream.close(remove=False)
            except Exception as ex:
                if firstEx is None:
                    firstEx = ex
                else:
                    _warn_error_during_error_handling("error closing {}".format(stream), ex)
        for stream in self:
            if stream.cleanup if remove is None else remove:
                stream.remove()
        if firstEx is not None:
            raise firstEx

    ### Context manager ###

    def __enter__(self):
        "support for with statement"
        return self

    def __exit__(self, type, value, traceback):
        "support for with statement, closes members if not already closed"
        if not self.closed:
            self.close()
