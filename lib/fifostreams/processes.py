# Copyright 2006-2025 Mark Diekhans
"""
Spawning of the external processes attached to streams.  A command is run
as a Pipeline of one or more processes placed in their own process group.
"""
import os
import signal
import shlex
import logging
import subprocess
import enum
from threading import RLock
from fifostreams.devices import Dev
from fifostreams.devices import DataReader
from fifostreams.devices import _SiblingPipe
from fifostreams.devices import File
from fifostreams.exceptions import FIFOStreamException
from fifostreams.exceptions import PipelineError
from fifostreams.exceptions import _warn_error_during_error_handling

_defaultLogger = None
_defaultLogLevel = logging.DEBUG

def setDefaultLogger(logger):
    """Set the default fifostreams logger used in logging stream, command,
    and errors.  If None, there is no default logging.  The logger can be
    the name of a logger or the logger itself.  Standard value is None"""
    global _defaultLogger
    _defaultLogger = logging.getLogger(logger) if isinstance(logger, str) else logger

def getDefaultLogger():
    """return the current value of the fifostreams default logger"""
    return _defaultLogger

def setDefaultLogLevel(level):
    """Set the default log level to use in logging streams, commands, and
    errors.  Standard value is logging.DEBUG"""
    global _defaultLogLevel
    _defaultLogLevel = level

def getDefaultLogLevel():
    """Get the default log level to use in logging streams, commands, and errors."""
    return _defaultLogLevel

def setDefaultLogging(logger, level):
    """Set both default logger and level. Either can be None to leave as default"""
    if logger is not None:
        setDefaultLogger(logger)
    if level is not None:
        setDefaultLogLevel(level)

def _getLoggerToUse(logger):
    """if logger is None, get default, otherwise if it's a string, look it up,
    otherwise it's the logger object."""
    if logger is None:
        return _defaultLogger
    elif isinstance(logger, str):
        return logging.getLogger(logger)
    else:
        return logger

def _getLogLevelToUse(logLevel):
    "get log level to use, either what is specified or default"
    return logLevel if logLevel is not None else getDefaultLogLevel()

def _log(logger, level, message, ex=None):
    """If logging is available and enabled, log message and optional
    exception"""
    if (logger is not None) and logger.isEnabledFor(level):
        kwargs = {}
        if ex is not None:
            kwargs["exc_info"] = ex
        logger.log(level, message, **kwargs)


class State(enum.IntEnum):
    """Current state of a process or pipeline"""
    PREINIT = 0
    STARTUP = 1
    RUNNING = 2
    FINISHED = 4


class Process:
    """A process, represented as a node a pipeline, connected by Dev objects.

    Process arguments can be can be any object, with str() being called on
    the object before exec.

    The stdin/out/err arguments can have the following values:
       - None - stdio file descriptor is inherited.
       - str or path-like - opened as a file
       - int -  file number
       - file-like object - fileno() is used, this includes streams
       - a Dev derived object

    If stderr is an instance of DataReader, then stderr is included in
    PipelineError on process error.  If the class DataReader is passed
    in as stderr, a DataReader object is created.
    """

    def __init__(self, cmd, stdin=None, stdout=None, stderr=None, env=None):
        self.lock = RLock()
        self.cmd = tuple(cmd)
        self.env = env
        self.stdin = self._stdio_assoc(stdin, "r")
        self.stdout = self._stdio_assoc(stdout, "w")
        if stderr is DataReader:
            stderr = DataReader(errors='backslashreplace')
        self.stderr = self._stdio_assoc(stderr, "w")
        self.popen = None
        self.pid = None
        self.pgid = None
        self.returncode = None  # exit code, or -signal
        self.procExcept = None  # exception because of failed process
        self.state = State.PREINIT
        self.forced = False    # force termination during error cleanup

    def __str__(self):
        "get simple description of process"
        return " ".join([shlex.quote(str(arg)) for arg in self.cmd])

    def _stdio_assoc(self, spec, mode):
        """pre-start check a stdio spec validity and associate Dev or file
        number.  mode is mode in child"""
        if (spec is None) or isinstance(spec, int):
            return spec  # passed unchanged
        elif isinstance(spec, Dev):
            spec._bind_to_process(self, mode)
            return spec  # passed unchanged
        elif callable(getattr(spec, "fileno", None)):
            return spec.fileno()  # is file-like
        elif isinstance(spec, (str, os.PathLike)):
            return File(spec, mode)
        else:
            raise FIFOStreamException("invalid stdio specification object type: {} {}".format(type(spec), spec))

    def _get_child_stdio(self, spec, stdfd):
        """get fd to pass to child as one of the stdio handles."""
        if spec is None:
            return None
        elif isinstance(spec, int):
            return spec
        elif stdfd == 0:
            return spec.get_child_read_fd(self)
        else:
            return spec.get_child_write_fd(self)

    def _start_process(self, pgid):
        """Do work of starting the process.  If pgid is None, this process
        becomes group leader, otherwise this process is added to group pgid."""
        self.state = State.STARTUP    # do first to prevent restarts on error
        groupId = 0 if pgid is None else pgid
        try:
            self.popen = subprocess.Popen(self.cmd,
                                          stdin=self._get_child_stdio(self.stdin, 0),
                                          stdout=self._get_child_stdio(self.stdout, 1),
                                          stderr=self._get_child_stdio(self.stderr, 2),
                                          env=self.env,
                                          preexec_fn=lambda: os.setpgid(0, groupId))
        except Exception as ex:
            raise PipelineError(str(self)) from ex
        self.pid = self.popen.pid
        self.pgid = self.pid if pgid is None else pgid
        self.state = State.RUNNING

    def _start(self, pgid):
        """Start the process,  If pgid is None, this process
        becomes group leader."""
        try:
            self._start_process(pgid)
        except BaseException as ex:
            self.procExcept = ex
            raise

    @property
    def running(self):
        "determined if this process has been running"
        return self.state is State.RUNNING

    @property
    def finished(self):
        "determined if been detected as finished (waited on)"
        return self.state is State.FINISHED

    def _parent_stdio_exit_close(self):
        "close devices on exit"
        # MUST do before reading stderr in _handle_error_exit
        for std in (self.stdin, self.stdout, self.stderr):
            if isinstance(std, Dev):
                std.close()

    def _handle_error_exit(self):
        stderr = None
        if isinstance(self.stderr, DataReader):
            stderr = self.stderr.data
        # killed during error cleanup is not a primary failure
        if not self.forced:
            self.procExcept = PipelineError(str(self), self.returncode, stderr)

    def _handle_exit(self, waitStat):
        """Handle process exiting, saving status"""
        self.state = State.FINISHED
        self.returncode = os.waitstatus_to_exitcode(waitStat)
        # must tell subprocess.Popen about this
        self.popen.returncode = self.returncode
        self._parent_stdio_exit_close()  # MUST DO BEFORE _handle_error_exit
        if not ((self.returncode == 0) or (self.returncode == -signal.SIGPIPE)):
            self._handle_error_exit()

    def _waitpid(self, flag=0):
        "Do waitpid and handle exit if finished, return True if finished"
        if self.pid is None:
            raise FIFOStreamException("process has not been started")
        w = os.waitpid(self.pid, flag)
        if w[0] != 0:
            self._handle_exit(w[1])
        return (w[0] != 0)

    def poll(self):
        """Check if the process has completed.  Return True if it
        has, False if it hasn't."""
        with self.lock:
            if self.state is State.FINISHED:
                return True
            return self._waitpid(os.WNOHANG)

    def wait(self):
        "wait for the process to complete, if it has not already"
        with self.lock:
            if self.state is not State.FINISHED:
                self._waitpid()

    def _force_finish(self):
        """Force termination of process.  The forced flag is set, as an
        indication that this was not a primary failure in the pipeline.
        """
        with self.lock:
            if (self.state is State.RUNNING) and (not self.poll()):
                self.forced = True
                os.kill(self.pid, signal.SIGKILL)
                self._waitpid()

    def failed(self):
        "check if process failed, call after poll() or wait()"
        return self.procExcept is not None


class Pipeline:
    """
    The external command attached to a stream: a single process or a
    pipeline of processes.  Once constructed, the pipeline is started with
    start() or wait().  A pipeline that has been constructed but not started
    is a deferred command; wait() runs it to completion.

    The cmds argument is either a list of arguments for a single process, or a
    list of such lists for a pipeline.  Stdin is input to the first process,
    stdout is output from the last process and stderr is attached to all
    processes.  If the stdin/out/err arguments are None, the open files of
    the calling process are inherited.  Otherwise they can be file names,
    file-like objects, file numbers, or Dev objects.  DataReader and
    DataWriter objects exchange data with the pipeline from memory without
    danger of deadlock.

    If stderr is the class DataReader, a new instance is created for each
    process and its contents are included in the PipelineError for that
    process.

    Command arguments will be converted to strings.  The env argument
    is the environment for the processes, None inherits it.

    The logger argument can be the name of a logger or a logger object.  If
    None, the default is used.
    """
    def __init__(self, cmds, *, stdin=None, stdout=None, stderr=DataReader, env=None,
                 logger=None, logLevel=None):
        self.lock = RLock()
        self.stdin = stdin
        self.stdout = stdout
        self.stderr = stderr
        self.env = env
        self.procs = []
        self.devs = []
        self.pgid = None       # process group leader
        self.bypid = dict()    # indexed by pid
        self.state = State.PREINIT
        self.logger = _getLoggerToUse(logger)
        self.logLevel = _getLogLevelToUse(logLevel)

        if len(cmds) == 0:
            raise FIFOStreamException("empty command")
        if isinstance(cmds[0], (str, os.PathLike)):
            cmds = [cmds]  # one-process pipeline
        cmds = self._stringify(cmds)
        try:
            self._setup_processes(cmds)
        except BaseException:
            self._error_cleanup()
            raise

    @staticmethod
    def _stringify(cmds):
        return [[str(a) for a in cmd] for cmd in cmds]

    @property
    def running(self):
        "determined if this pipeline has been started and not waited on"
        return self.state is State.RUNNING

    @property
    def finished(self):
        "determined if been detected as finished (waited on)"
        return self.state is State.FINISHED

    def _log(self, level, message, ex=None):
        _log(self.logger, level, "{}: {}".format(message, str(self)), ex)

    def _setup_processes(self, cmds):
        prevPipe = None
        lastCmdIdx = len(cmds) - 1
        for i, cmd in enumerate(cmds):
            prevPipe = self._add_process(cmd, prevPipe, (i == lastCmdIdx))

    def _add_process(self, cmd, prevPipe, isLastCmd):
        """add one process to the pipeline, return the output pipe if not the last process"""
        stdin = self.stdin if prevPipe is None else prevPipe
        if isLastCmd:
            outPipe = None
            stdout = self.stdout
        else:
            outPipe = stdout = _SiblingPipe()
        try:
            self._create_process(cmd, stdin, stdout, self.stderr)
        except BaseException:
            if outPipe is not None:
                outPipe.close()
            raise
        return outPipe

    def _create_process(self, cmd, stdin, stdout, stderr):
        """create process and track Dev objects"""
        proc = Process(cmd, stdin, stdout, stderr, self.env)
        self.procs.append(proc)
        # Process may have wrapped a Dev
        for std in (proc.stdin, proc.stdout, proc.stderr):
            if isinstance(std, Dev) and (std not in self.devs):
                self.devs.append(std)

    def __str__(self):
        """get a string describing the pipeline"""
        desc = " | ".join([str(proc) for proc in self.procs])
        if self.stdin not in (None, 0):
            desc += " <" + str(self.stdin)
        if self.stdout not in (None, 1):
            desc += " >" + str(self.stdout)
        if self.stderr is DataReader:
            desc += " 2>[DataReader]"  # instance made in Process
        elif self.stderr not in (None, 2):
            desc += " 2>" + str(self.stderr)
        return desc

    def _start_processes(self):
        for proc in self.procs:
            proc._start(self.pgid)
            self.bypid[proc.pid] = proc
            self.pgid = proc.pgid

    def _post_start_parent(self):
        for d in self.devs:
            d._post_start_parent()

    def _finish(self):
        "finish up when no errors have occurred"
        self.state = State.FINISHED
        for d in self.devs:
            d.close()
        self._log(self.logLevel, "success")

    def _log_failure(self, ex):
        self._log(logging.ERROR, "failure", ex)

    def _error_cleanup_dev(self, dev):
        try:
            dev.close()
        except Exception as ex:
            _warn_error_during_error_handling("error during device cleanup on error", ex)

    def _error_cleanup_process(self, proc):
        try:
            if not proc.finished:
                proc._force_finish()
        except Exception as ex:
            _warn_error_during_error_handling("error during process cleanup on error", ex)

    def _error_cleanup(self):
        """forced cleanup of child processed after failure"""
        self.state = State.FINISHED
        for p in self.procs:
            self._error_cleanup_process(p)
        for d in self.devs:
            self._error_cleanup_dev(d)

    def start(self):
        """start processes"""
        with self.lock:
            if self.state >= State.STARTUP:
                raise FIFOStreamException("Pipeline is already been started")
            self._log(self.logLevel, "start")
            self.state = State.STARTUP
            try:
                self._start_processes()
                self._post_start_parent()
            except Exception as ex:
                self._log_failure(ex)
                self._error_cleanup()
                raise
            self.state = State.RUNNING

    def _raise_if_failed(self):
        """raise exception for the first process that failed, otherwise do nothing"""
        for p in self.procs:
            if p.procExcept is not None:
                self._log_failure(p.procExcept)
                raise p.procExcept

    def poll(self):
        """Check if all of the processes have completed.  Return True if it
        has, False if it hasn't.  Starts processes if not already running."""
        with self.lock:
            if self.state is State.PREINIT:
                self.start()
            if self.state is State.FINISHED:
                return True
            try:
                for p in self.procs:
                    if not p.poll():
                        return False
            except BaseException:
                self._error_cleanup()
                raise
            self._raise_if_failed()
            self._finish()
            return True

    def _wait_on_one(self, proc):
        "wait on the next process in group to complete"
        w = os.waitpid(proc.pid, 0)
        self.bypid[w[0]]._handle_exit(w[1])

    def wait(self):
        """Wait for all of the process to complete. Raise PipelineError if
        any exits non-zero or signals.  Starts processes if not already
        running."""
        with self.lock:
            if self.state is State.FINISHED:
                return
            if self.state < State.RUNNING:
                self.start()
            try:
                for p in self.procs:
                    if not p.finished:
                        self._wait_on_one(p)
            except BaseException as ex:
                self._log_failure(ex)
                self._error_cleanup()
                raise
            try:
                self._raise_if_failed()
            finally:
                self.state = State.FINISHED
            self._finish()

    def shutdown(self):
        """Close down the pipeline prematurely. If the pipeline is running,
        it's killed.  This does not report errors from child processes and
        doesn't start the pipeline if it has not been started, just frees up
        open pipes.  Intended for error recovery."""
        with self.lock:
            self._log(self.logLevel, "shutdown")
            if self.state is not State.FINISHED:
                self._error_cleanup()

    def failed(self):
        "check if any process failed, call after poll() or wait()"
        with self.lock:
            return any(p.failed() for p in self.procs)

    def kill(self, sig=signal.SIGTERM):
        "send a signal to all of the running processes in the pipeline"
        for p in self.procs:
            if p.running:
                os.kill(p.pid, sig)
