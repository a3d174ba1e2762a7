"""Exceptions raised by jot.

Everything that should be reported to the user as a plain diagnostic (rather than a traceback) derives from
:class:`JotError`. :class:`SyncInterrupted` is not one of them: it signals that the user cancelled,
not that something went wrong.
"""

from __future__ import annotations
from typing import Optional


class JotError(Exception):
    """Base class for errors that are reported to the user by the CLI."""
    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint
        """Suggested remedy, shown below the message."""


class ConfError(JotError):
    """Raised when configuration is missing or malformed."""


class MissingEnvironmentVariable(JotError):
    def __init__(self, name: str):
        super().__init__(f'failed to find ${name} in environment')
        self.name = name


class InvocationLaunchFailure(JotError):
    """Raised when an external program could not be started at all."""
    def __init__(self, label: str, invocation: str, cause: BaseException):
        super().__init__(f'failed to execute {label}: `{invocation}`: {cause}')
        self.label = label
        self.invocation = invocation
        self.cause = cause


class InvocationOutputNotUtf8(JotError):
    def __init__(self, label: str, stream: str):
        super().__init__(f'{label} wrote output to {stream} that is not valid UTF-8')
        self.label = label
        self.stream = stream


class InvocationNonZeroExit(JotError):
    """Raised when an external program exits unsuccessfully.

    ``exit_code`` is None if the program was killed by a signal.
    """
    def __init__(self, label: str, invocation: str, exit_code: Optional[int], stdout: str, stderr: str):
        super().__init__(
            f'{label} (`{invocation}`) exited unsuccessfully with non-zero exit code '
            f'({"not available" if exit_code is None else exit_code})\n'
            f'\tstdout:\n'
            f'\t"{stdout}"\n'
            f'\tstderr:\n'
            f'\t"{stderr}"')
        self.label = label
        self.invocation = invocation
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


class PathOutsideBaseDirectory(JotError):
    def __init__(self, candidate, base):
        super().__init__(f'given path must be below base_dir {base}; {candidate} is not')
        self.candidate = candidate
        self.base = base


class WorkingDirectoryChangeFailure(JotError):
    def __init__(self, target, cause: BaseException = None):
        super().__init__(f'failed to change working directory to {target}: {cause}')
        self.target = target
        self.cause = cause


class SyncPhaseFailure(JotError):
    """Raised when one of the git steps of a sync fails. No later step will have run."""
    def __init__(self, phase, underlying: JotError, summary: str):
        super().__init__(f'{summary}\n{underlying}',
                         hint='please resolve the issue and run `jot sync` again')
        self.phase = phase
        self.underlying = underlying


class BaseDirectoryNotAGitRepository(JotError):
    def __init__(self, base_dir, reason: str = 'is not a git repository'):
        super().__init__(f'base_dir {base_dir} {reason}',
                         hint='base_dir must be the working tree of a git repository, see `git init` or `git clone`')
        self.base_dir = base_dir


class BaseDirectoryNotClean(JotError):
    def __init__(self, base_dir):
        super().__init__(f'base_dir {base_dir} has uncommitted changes',
                         hint='run `jot sync` to commit them, or pass --no-edit-syncs')
        self.base_dir = base_dir


class SyncInterrupted(Exception):
    """Raised when a git step of a sync was interrupted (e.g. by Ctrl+C) and quiet_on_ctrl_c is set."""
    def __init__(self, phase):
        super().__init__(f'sync interrupted while {phase.verb}')
        self.phase = phase
