"""
Common documentation strings used functions and methods to avoid
repeating the same text
"""

# to work with Sphinx after concatenation, strings must not start with a
# newline and must end with a newline.

doc_stream_args = """\
:param path: Path of the named pipe or file backing the stream.  If None,
    a unique path in the temporary directory is created.
:param read: Open the parent side of the stream for reading.
:param write: Open the parent side of the stream for writing.  Defaults to
    ``not read``.  Exactly one of ``read`` and ``write`` must be true.
:param cleanup: Remove the path when the stream is closed.
:param mode: Permission bits of the created path.
:param binary: Read or write bytes rather than str.
:param logger: Name of the logger or a `Logger` instance. If ``None``,
    the default ``fifostreams`` logger is used.
:param logLevel: Log level to use instead of the default.
:param buffering: controls buffering.
    See open() for more details.
:param encoding:  name of the encoding used to decode or encode the stream
    See open() for more details.
:param errors: how encoding errors are handled.
    See open() for more details.
:param newline: controls how universal newlines works
    See open() for more details.
:raises fifostreams.InvalidDirectionError: if both or neither of ``read``
    and ``write`` are specified.
"""

doc_attach_args = """\
:param cmds: A list (or tuple) of arguments for a single process, or a
    list of such lists for a pipeline. Arguments are converted to strings.
    The stream path is normally one of the arguments.
:param stdin: Input to the first process. Can be None (inherit),
    filename, file-like object, file descriptor, a :class:`fifostreams.File`
    object, or a :class:`fifostreams.DataWriter` object.
:param stdout: Output from the last process. Can be None (inherit), a
    filename, file-like object, file descriptor, a :class:`fifostreams.File`
    object, or a :class:`fifostreams.DataReader` object.
:param stderr: stderr for the processes. Can be None (inherit), a
    filename, file-like object, file descriptor, a :class:`fifostreams.File`
    object, or a :class:`fifostreams.DataReader` object. It may also be the
    class :class:`fifostreams.DataReader` itself, which collects the stderr
    of each process to include in the error.
:param env: Environment for the processes, None inherits it.
:raises fifostreams.AlreadyAttachedError: if the stream has already
    been attached, even if that attach failed.
:raises fifostreams.StreamClosedError: if the stream has been closed.
:raises fifostreams.PipelineError: if the command can not be executed, or
    for a read stream without named pipes, if the command fails.
"""

doc_close_args = """\
:param remove: Remove the stream path.  If None, the ``cleanup`` value
    the stream was created with is used.  The path is removed even if the
    command failed.
:raises fifostreams.PipelineError: if a process of the attached command exits
    with a non-zero status or is killed by a signal.
:raises fifostreams.StreamClosedError: if the stream is already closed.
"""
