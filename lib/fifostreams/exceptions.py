# Copyright 2006-2025 Mark Diekhans
import sys
import traceback
import signal
from warnings import warn


def _signal_num_to_name(num):
    "get name for a signal number"
    try:
        return signal.Signals(num).name
    except ValueError:
        return "signal" + str(num)


class FIFOStreamException(Exception):
    """Base class for fifostreams exceptions."""
    pass


class UnsupportedPlatformError(FIFOStreamException):
    """Kernel-level named pipes are not available on this platform."""
    pass


class InvalidDirectionError(FIFOStreamException, ValueError):
    """A stream must be opened for exactly one of read or write."""
    def __init__(self, read, write):
        self.read = read
        self.write = write
        super().__init__("invalid arguments read={}, write={}: can only open a FIFOStream "
                         "for either read or write".format(read, write))

    def __reduce__(self):
        return (InvalidDirectionError, (self.read, self.write))


class AlreadyAttachedError(FIFOStreamException):
    """attach() called on a stream that has already been attached."""
    pass


class StreamClosedError(FIFOStreamException):
    """Operation on a stream that has been closed."""
    pass


class InvalidCountError(FIFOStreamException, ValueError):
    """A stream collection must have at least one member."""
    def __init__(self, count):
        self.count = count
        super().__init__("number of streams has to be >= 1, got {}".format(count))

    def __reduce__(self):
        return (InvalidCountError, (self.count,))


class PipelineError(FIFOStreamException):
    """Exception associated with running an attached process.  A None
    returncode indicates a exec failure."""
    def __init__(self, procDesc, returncode=None, stderr=None):
        self.procDesc = procDesc
        self.returncode = returncode
        self.stderr = stderr
        if returncode is None:
            msg = "exec failed"
        elif (returncode < 0):
            msg = "process signaled: " + _signal_num_to_name(-returncode)
        else:
            msg = "process exited " + str(returncode)
        if procDesc is not None:
            msg += ": " + procDesc
        if (stderr is not None) and (len(stderr) != 0):
            msg += ":\n" + stderr
        super().__init__(msg)

    def __reduce__(self):
        # message is rebuilt from the fields
        return (PipelineError, (self.procDesc, self.returncode, self.stderr))


class ErrorDuringErrorHandlingWarning(Warning):
    """An error occurred while handing another error"""
    pass


def _warn_error_during_error_handling(msg, exception):
    "called to issue warning on error during error handling"
    exi = sys.exc_info()
    stack = "" if exi[2] is None else "".join(traceback.format_list(traceback.extract_tb(exi[2]))) + "\n"
    warn(msg + " " + str(exception) + "\n" + stack, ErrorDuringErrorHandlingWarning)
