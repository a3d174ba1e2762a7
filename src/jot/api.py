"""Provides the main entry point for using the library, :class:`Jot`"""

from __future__ import annotations
from contextlib import ExitStack
import logging
import os.path
from pathlib import Path
from typing import Optional
from jot import invocation
from jot.conf import JotConf
from jot.env import EDITOR, get_env_var
from jot.errors import BaseDirectoryNotAGitRepository, BaseDirectoryNotClean, JotError
from jot.invocation import InvocationRequest, Stream, shell_request
from jot.paths import PathIsh, resolve_path, working_directory
from jot.sync import check_repository, is_clean, sync

LOG = logging.getLogger(__name__)


class Jot:
    """Runs jot's workflows against one notes repository.

    Use an instance as a context manager: entering it moves the process into the base directory and checks that
    it is a git repository, and exiting moves back to wherever the process was before. The workflow methods
    assume they are called inside that block.

    .. attribute:: conf
       :type: jot.conf.JotConf

    Here's an example of how to use this class. This opens the note chosen by the configured finder, then syncs:

    .. code-block:: python

       from jot.conf import JotConf
       with JotConf.for_user().instantiate() as jot:
           jot.edit()
    """

    @staticmethod
    def for_user() -> Jot:
        """Creates an instance using the user's config file. See :meth:`jot.conf.JotConf.for_user`."""
        return JotConf.for_user().instantiate()

    def __init__(self, conf: JotConf):
        self.conf = conf
        self._stack = ExitStack()

    def __enter__(self):
        if not os.path.isdir(self.conf.base_dir):
            raise BaseDirectoryNotAGitRepository(self.conf.base_dir, 'does not exist or is not a directory')
        self._stack.enter_context(working_directory(self.conf.base_dir))
        try:
            check_repository(self.conf)
        except BaseException:
            self._stack.close()
            raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._stack.close()

    def resolve(self, path: PathIsh) -> Path:
        """Returns the absolute path for a path given relative to the base directory, or an absolute one inside it."""
        return resolve_path(path, self.conf.base_dir)

    def _require_clean_for_sync(self) -> None:
        if self.conf.edit_syncs and not is_clean(self.conf):
            raise BaseDirectoryNotClean(self.conf.base_dir)

    def open_editor(self, path: PathIsh) -> None:
        """Opens the file in ``$EDITOR``, then syncs if :attr:`jot.conf.JotConf.edit_syncs` is set.

        The editor shares stdin and stdout with jot; its stderr is captured for error messages. Any unsuccessful
        exit of the editor, even an interrupt, is an error.
        """
        request = InvocationRequest(f'${EDITOR}', get_env_var(EDITOR), (str(path),),
                                    stdin=Stream.INHERIT, stdout=Stream.INHERIT, stderr=Stream.PIPE)
        invocation.run_invocation(request, False)
        if self.conf.edit_syncs:
            self.sync()

    def new(self, path: PathIsh) -> Path:
        """Creates an empty note at the path (unless a file is already there) and opens it in the editor.

        Missing parent directories are created. Returns the absolute path of the note.
        """
        target = self.resolve(path)
        self._require_clean_for_sync()
        if not target.exists():
            LOG.info('Creating %s', target)
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                with open(target, 'x'):
                    pass
            except OSError as e:
                raise JotError(f'failed to create a file at {target}: {e}') from e
        elif not target.is_file():
            raise JotError(f'{target} exists and is not a file')
        self.open_editor(target)
        return target

    def edit(self) -> Optional[Path]:
        """Runs the finder, then opens the file it printed in the editor.

        Returns the path that was opened, or None if the finder was interrupted (with quiet_on_ctrl_c set)
        or printed nothing. The finder's output is resolved like any other path, so it may be relative to
        the base directory but may not point outside it.
        """
        self._require_clean_for_sync()
        request = shell_request('finder', self.conf.finder, self.conf.shell_cmd_flag, self.conf.capture_std)
        outcome = invocation.run_invocation(request, self.conf.quiet_on_ctrl_c)
        if outcome.interrupted:
            # Whatever the finder printed before being interrupted is not a real selection.
            return None
        if not outcome.stdout:
            LOG.info('finder selected nothing')
            return None
        target = self.resolve(outcome.stdout)
        self.open_editor(target)
        return target

    def list(self, subpath: Optional[PathIsh] = None) -> str:
        """Runs the lister from within the given directory (the base directory by default) and returns its output.

        The working directory is restored afterward, whether or not the lister succeeds.
        """
        target = self.resolve(subpath) if subpath else Path(self.conf.base_dir)
        request = shell_request('lister', self.conf.lister, self.conf.shell_cmd_flag, self.conf.capture_std)
        with working_directory(target):
            outcome = invocation.run_invocation(request, self.conf.quiet_on_ctrl_c)
        return '' if outcome.interrupted else outcome.stdout

    def sync(self) -> None:
        """Pulls, commits and pushes the notes. See :func:`jot.sync.sync`."""
        sync(self.conf)
