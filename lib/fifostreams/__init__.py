"""
Stream data to and from external programs through named pipes.
"""
from fifostreams.exceptions import (FIFOStreamException, UnsupportedPlatformError, InvalidDirectionError,
                                    AlreadyAttachedError, StreamClosedError, InvalidCountError,
                                    PipelineError, ErrorDuringErrorHandlingWarning)
from fifostreams.devices import DataReader, DataWriter, File
from fifostreams.processes import Pipeline, setDefaultLogger, getDefaultLogger, setDefaultLogLevel, getDefaultLogLevel, setDefaultLogging
from fifostreams.paths import has_fifo_support, mkfifo, mktempfifo, mktempfile
from fifostreams.streams import (Direction, StreamState, FIFOStream, UnixFIFOStream, FallbackFIFOStream,
                                 getDefaultStreamClass, createFIFOStream)
from fifostreams.collection import FIFOStreamCollection

__version__ = "1.0.0"

__all__ = (FIFOStreamException.__name__, UnsupportedPlatformError.__name__, InvalidDirectionError.__name__,
           AlreadyAttachedError.__name__, StreamClosedError.__name__, InvalidCountError.__name__,
           PipelineError.__name__, ErrorDuringErrorHandlingWarning.__name__,
           DataReader.__name__, DataWriter.__name__, File.__name__, Pipeline.__name__,
           setDefaultLogger.__name__, getDefaultLogger.__name__,
           setDefaultLogLevel.__name__, getDefaultLogLevel.__name__, setDefaultLogging.__name__,
           has_fifo_support.__name__, mkfifo.__name__, mktempfifo.__name__, mktempfile.__name__,
           Direction.__name__, StreamState.__name__, FIFOStream.__name__,
           UnixFIFOStream.__name__, FallbackFIFOStream.__name__,
           getDefaultStreamClass.__name__, createFIFOStream.__name__,
           FIFOStreamCollection.__name__)
