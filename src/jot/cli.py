"""Command-line interface for jot."""


import argparse
import dataclasses
import logging
from pathlib import Path
import sys
from jot.api import Jot
from jot.conf import JotConf
from jot.errors import JotError, SyncInterrupted
from jot.invocation import CTRL_C_EXIT_CODE
from jot.logging_utils import configure_logging

LOG = logging.getLogger(__name__)

DESCRIPTION = """Helps you jot notes.

For options that take a command invocation, only the output on stdout is used. An invocation is only considered
an error if it exits with a non-zero exit code. There is no restriction on the invocation itself: it can be
anything from /bin/ls to fzf to a custom Python script. Invocations are passed to your $SHELL (using
--shell-cmd-flag), so they may use your shell's syntax and environment variables.

Unless --capture-std is given, stdin and stderr are inherited by the finder and lister, so that programs like fzf
can draw their UI. When invoking $EDITOR, stdin and stdout are inherited and stderr is captured.

Every option can also be set in ~/.jot.toml (or the file named by $JOT_CONFIG), using the option's long name with
underscores, e.g. base_dir = "~/notes". Options given on the command line win."""


def _new(args, jot: Jot) -> int:
    jot.new(args.path[0])
    return 0


def _edit(args, jot: Jot) -> int:
    jot.edit()
    return 0


def _list(args, jot: Jot) -> int:
    listing = jot.list(args.subpath)
    if listing:
        print(listing)
    return 0


def _sync(args, jot: Jot) -> int:
    jot.sync()
    return 0


def argparser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='jot', description=DESCRIPTION,
                                     formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.set_defaults(func=_edit)

    parser.add_argument('-b', '--base-dir',
                        help='The directory under which all notes handled by jot must reside. '
                             'This must be a git repository.')
    parser.add_argument('-f', '--finder', help='A command invocation that prints a single filepath to stdout.')
    parser.add_argument('-l', '--lister',
                        help='A command invocation that prints a listing to stdout. It is run from within the '
                             'directory being listed.')
    parser.add_argument('-e', '--edit-syncs', action=argparse.BooleanOptionalAction, default=None,
                        help='Whether creating or editing a note should be followed by a sync. Default: true.')
    parser.add_argument('--capture-std', action=argparse.BooleanOptionalAction, default=None,
                        help='Whether stderr of the finder, lister and git should be captured (and stdin closed) '
                             'rather than inherited. Default: false.')
    parser.add_argument('-s', '--shell-cmd-flag',
                        help='Flag that makes your $SHELL run a command string, e.g. bash uses `-c`. A value that '
                             'starts with a dash must be attached, as in --shell-cmd-flag=-lc. Default: -c.')
    parser.add_argument('-q', '--quiet-on-ctrl-c', action=argparse.BooleanOptionalAction, default=None,
                        help='Whether an invocation exiting with code 130 (usually Ctrl+C) should end jot quietly '
                             'instead of as an error. Default: true.')
    parser.add_argument('-r', '--git-remote-name', help='Remote to sync with. Default: origin.')
    parser.add_argument('-u', '--git-upstream-branch', help='Branch to sync with. Default: main.')
    parser.add_argument('-m', '--custom-commit-msg', action=argparse.BooleanOptionalAction, default=None,
                        help='Write the commit message for syncs yourself, in the editor git opens. By default the '
                             'current time is used. Default: false.')
    parser.add_argument('--config', help='Path of the config file. Default: $JOT_CONFIG or ~/.jot.toml.')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase verbosity (can be specified multiple times).')

    subs = parser.add_subparsers(title='Commands')

    p_new = subs.add_parser('new', help='Create a note (unless it already exists) and open it in $EDITOR.')
    p_new.add_argument('path', nargs=1,
                       help='Path of the note, relative to the base directory or absolute (but within it). '
                            'Missing parent directories are created.')
    p_new.set_defaults(func=_new)

    p_edit = subs.add_parser(
        'edit',
        help='Run the finder and open the file it prints in $EDITOR. This is the default when no command is given.')
    p_edit.set_defaults(func=_edit)

    p_list = subs.add_parser('list', help='Run the lister, e.g. tree, and print its output.')
    p_list.add_argument('subpath', nargs='?',
                        help='Directory to list, relative to the base directory. Default: the base directory.')
    p_list.set_defaults(func=_list)

    p_sync = subs.add_parser(
        'sync',
        help='Synchronize the notes: git pull, then stage and commit everything, then git push. If a step fails '
             '(namely with a merge conflict), the remaining steps are skipped and the error is reported.')
    p_sync.set_defaults(func=_sync)

    return parser


def main(args=None) -> int:
    """Runs the tool and returns its exit code.

    args may be an array of string command-line arguments; if absent,
    the process's arguments are used.
    """
    parser = argparser()
    args = parser.parse_args(args)
    configure_logging(args.verbose)
    overrides = {f.name: getattr(args, f.name) for f in dataclasses.fields(JotConf)}
    try:
        conf = JotConf.for_user(overrides, Path(args.config).expanduser() if args.config else None)
        with conf.instantiate() as jot:
            return args.func(args, jot)
    except SyncInterrupted as e:
        LOG.info('%s', e)
        return CTRL_C_EXIT_CODE
    except JotError as e:
        print(f'jot: error: {e}', file=sys.stderr)
        if e.hint:
            print(f'hint: {e.hint}', file=sys.stderr)
        return 1
