"""Runs external programs and classifies how they exited.

Every program jot launches - the finder, the lister, $EDITOR and git - goes through :func:`run_invocation`, so
stream handling, decoding and error reporting are the same everywhere.

An invocation is only considered an error if it exits with a non-zero exit code. Nothing is assumed about what
the program does; only its stdout is used as a result.
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
import logging
import shlex
import signal
import subprocess
import threading
from typing import List, Optional, Tuple
from jot.env import SHELL, get_env_var
from jot.errors import InvocationLaunchFailure, InvocationNonZeroExit, InvocationOutputNotUtf8

LOG = logging.getLogger(__name__)

CTRL_C_EXIT_CODE = 130
"""Exit code shells and most interactive programs (like fzf) use after receiving SIGINT."""

STDERR_NOT_CAPTURED = '<jot: stderr not captured>'


class Stream(Enum):
    INHERIT = 'inherit'
    """The child shares the stream with jot, e.g. so that it can draw on the terminal."""

    PIPE = 'pipe'
    """For stdout/stderr, the output is captured. For stdin, the child gets an immediately-closed pipe."""


class ExitStatus(Enum):
    SUCCESS = 'success'
    QUIET_INTERRUPT = 'quiet-interrupt'
    """The program was interrupted and quiet_on_ctrl_c is set. Its output should not be used."""


@dataclass(frozen=True)
class InvocationRequest:
    """Describes one execution of an external program."""

    label: str
    """Human-readable name for the program's role, used in diagnostics, e.g. ``finder`` or ``pulling``."""

    program: str

    args: Tuple[str, ...] = ()

    stdin: Stream = Stream.INHERIT
    stdout: Stream = Stream.PIPE
    stderr: Stream = Stream.INHERIT

    def argv(self) -> List[str]:
        return [self.program, *self.args]

    def display(self) -> str:
        """Returns the program and arguments quoted as they would be typed into a shell."""
        return shlex.join(self.argv())


@dataclass(frozen=True)
class InvocationOutcome:
    status: ExitStatus

    stdout: str
    """Trimmed stdout. Empty if stdout was inherited."""

    stderr: str
    """Raw stderr, or :data:`STDERR_NOT_CAPTURED`."""

    exit_code: Optional[int]

    @property
    def interrupted(self) -> bool:
        return self.status == ExitStatus.QUIET_INTERRUPT


def shell_request(label: str, command: str, shell_cmd_flag: str, capture_std: bool) -> InvocationRequest:
    """Builds a request that runs user-supplied command text via ``$SHELL``.

    When capture_std is False, stdin and stderr are inherited, so that programs like fzf which draw
    their UI there keep working. Otherwise stdin is an empty pipe and stderr is captured for diagnostics.
    """
    policy = Stream.PIPE if capture_std else Stream.INHERIT
    return InvocationRequest(label, get_env_var(SHELL), (shell_cmd_flag, command),
                             stdin=policy, stdout=Stream.PIPE, stderr=policy)


def _ignore_interrupt(signum, frame):
    pass


@contextmanager
def _interrupts_left_to_child():
    # A Python-level handler (unlike SIG_IGN) is reset to the default on exec, so the child can still be
    # interrupted; jot just observes the exit code instead of raising KeyboardInterrupt mid-wait.
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, _ignore_interrupt)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, signal.SIG_DFL if previous is None else previous)


def _decode(request: InvocationRequest, stream: str, data: Optional[bytes]) -> str:
    if data is None:
        return ''
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError as e:
        raise InvocationOutputNotUtf8(request.label, stream) from e


def classify(request: InvocationRequest, returncode: int, stdout: str, stderr: str,
             quiet_on_ctrl_c: bool) -> InvocationOutcome:
    """Turns a finished process's exit code into an outcome, or raises :exc:`InvocationNonZeroExit`.

    stdout should be the raw decoded output; the outcome carries it trimmed, while the error (if any)
    shows it untouched. A negative returncode means the process was killed by that signal, in which case
    no exit code is available.
    """
    exit_code = returncode if returncode >= 0 else None
    trimmed = stdout.strip()
    if returncode == 0:
        return InvocationOutcome(ExitStatus.SUCCESS, trimmed, stderr, exit_code)
    if quiet_on_ctrl_c and exit_code == CTRL_C_EXIT_CODE:
        LOG.debug('%s was interrupted', request.label)
        return InvocationOutcome(ExitStatus.QUIET_INTERRUPT, trimmed, stderr, exit_code)
    raise InvocationNonZeroExit(request.label, request.display(), exit_code, stdout, stderr)


def run_invocation(request: InvocationRequest, quiet_on_ctrl_c: bool) -> InvocationOutcome:
    """Runs the program to completion and returns its outcome.

    Blocks until the child exits. Raises :exc:`jot.errors.InvocationLaunchFailure` if it cannot be started,
    :exc:`jot.errors.InvocationOutputNotUtf8` if captured output cannot be decoded, and
    :exc:`jot.errors.InvocationNonZeroExit` if it fails (see :func:`classify`).
    """
    kwargs = {
        'stdout': subprocess.PIPE if request.stdout == Stream.PIPE else None,
        'stderr': subprocess.PIPE if request.stderr == Stream.PIPE else None,
    }
    if request.stdin == Stream.PIPE:
        kwargs['input'] = b''
    LOG.debug('Running %s: %s', request.label, request.display())
    try:
        with _interrupts_left_to_child():
            completed = subprocess.run(request.argv(), check=False, **kwargs)
    except OSError as e:
        raise InvocationLaunchFailure(request.label, request.display(), e) from e

    stdout = _decode(request, 'stdout', completed.stdout)
    if request.stderr == Stream.PIPE:
        stderr = _decode(request, 'stderr', completed.stderr)
    else:
        stderr = STDERR_NOT_CAPTURED
    return classify(request, completed.returncode, stdout, stderr, quiet_on_ctrl_c)
