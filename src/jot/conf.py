"""Configuration for jot.

Settings come from three places, later ones winning: the defaults on :class:`JotConf`, the user's config file
(``~/.jot.toml``, or the file named by ``$JOT_CONFIG``), and command-line options. A config file might look like:

.. code-block:: toml

   base_dir = "~/notes"
   finder = "fd . --type f | fzf"
   lister = "tree -C"
   git_upstream_branch = "master"
"""

from __future__ import annotations
from dataclasses import dataclass, fields, replace
import os
import os.path
from pathlib import Path
from typing import Any, Dict, Optional
import toml
from jot.errors import ConfError

CONFIG_ENV_VARNAME = 'JOT_CONFIG'


@dataclass(frozen=True)
class JotConf:
    base_dir: str
    """The directory under which all notes handled by jot must reside. This must be a git repository."""

    finder: str
    """A command invocation that prints a single filepath to stdout upon completion.

    Invocations are passed to the user's ``$SHELL``, so they may use pipes, variables and so on.
    """

    lister: str
    """A command invocation that prints a listing to stdout. It is run from within the directory being listed."""

    edit_syncs: bool = True
    """Whether creating or editing a note should be followed by a sync."""

    capture_std: bool = False
    """Whether stderr of invocations should be captured (and stdin closed).

    If False, the child process inherits them from jot, which interactive programs like fzf need. Error
    diagnostics such programs print to stderr then appear directly on the terminal rather than in jot's
    error message. $EDITOR's stderr is always captured.
    """

    shell_cmd_flag: str = '-c'
    """Flag that makes the user's ``$SHELL`` run a command string, e.g. ``-c`` for bash."""

    quiet_on_ctrl_c: bool = True
    """Whether an invocation exiting with code 130 (usually Ctrl+C) should end jot quietly rather than as an error."""

    git_remote_name: str = 'origin'

    git_upstream_branch: str = 'main'

    custom_commit_msg: bool = False
    """If True, ``git commit`` is run interactively so you can write the message. Otherwise a timestamp is used."""

    @classmethod
    def user_config_path(cls) -> Path:
        """Returns the Path to the user's config file, ``$JOT_CONFIG`` or ``~/.jot.toml``."""
        override = os.environ.get(CONFIG_ENV_VARNAME)
        if override:
            return Path(override).expanduser()
        return Path.home().joinpath('.jot.toml')

    @classmethod
    def load_file(cls, path: Path, required: bool = False) -> Dict[str, Any]:
        """Reads settings from a TOML file.

        Returns an empty dict if the file does not exist, unless required is True.
        Raises :exc:`jot.errors.ConfError` for unparseable files, unknown settings or values of the wrong type.
        """
        if not path.is_file():
            if required:
                raise ConfError(f'No config file found at {path}')
            return {}
        try:
            data = toml.load(str(path))
        except toml.TomlDecodeError as e:
            raise ConfError(f'Invalid config file {path}: {e}') from e

        known = {f.name: f for f in fields(cls)}
        for key, value in data.items():
            if key not in known:
                raise ConfError(f'Unknown setting "{key}" in config file {path}')
            expected = bool if known[key].type == 'bool' else str
            if not isinstance(value, expected):
                raise ConfError(f'Setting "{key}" in config file {path} must be a {expected.__name__}')
        return data

    @classmethod
    def for_user(cls, overrides: Dict[str, Any] = None, path: Optional[Path] = None) -> JotConf:
        """Builds configuration from the user's config file and the given overrides.

        Overrides whose value is None are ignored, so that unset command-line options fall through to the
        file or the defaults. If path is given, that file must exist.
        """
        settings = cls.load_file(path or cls.user_config_path(), required=path is not None)
        settings.update({k: v for k, v in (overrides or {}).items() if v is not None})
        missing = [name for name in ('base_dir', 'finder', 'lister') if not settings.get(name)]
        if missing:
            raise ConfError(f'Missing required setting(s): {", ".join(missing)}',
                            hint=f'pass them as options (e.g. --{missing[0].replace("_", "-")}) '
                                 f'or set them in {path or cls.user_config_path()}')
        return cls(**settings).standardize()

    def standardize(self) -> JotConf:
        return replace(
            self,
            base_dir=os.path.realpath(os.path.expanduser(self.base_dir))
        )

    def instantiate(self):
        from jot.api import Jot
        return Jot(self.standardize())
