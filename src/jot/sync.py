"""Synchronizes the notes repository with its remote, and checks the repository's state.

A sync is four git steps run strictly in order - pull, stage, commit, push. The first one that fails stops
the sync, and nothing already done is undone. Pulling first means a merge conflict is discovered before any
local changes are committed on top of it.
"""

from __future__ import annotations
from datetime import datetime, timezone
from enum import Enum
import logging
from jot import invocation
from jot.conf import JotConf
from jot.errors import BaseDirectoryNotAGitRepository, InvocationNonZeroExit, JotError, SyncInterrupted,\
    SyncPhaseFailure
from jot.invocation import InvocationOutcome, InvocationRequest, Stream

LOG = logging.getLogger(__name__)

GIT = 'git'


class Phase(Enum):
    PULL = 'pull'
    STAGE = 'stage'
    COMMIT = 'commit'
    PUSH = 'push'

    @property
    def verb(self) -> str:
        return {
            Phase.PULL: 'pulling',
            Phase.STAGE: 'staging',
            Phase.COMMIT: 'committing',
            Phase.PUSH: 'pushing',
        }[self]


def commit_message(now: datetime = None) -> str:
    """Formats the time as RFC 3339 in UTC with seconds precision, e.g. ``2024-03-02T10:15:30Z``."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


def git_request(conf: JotConf, label: str, *args: str) -> InvocationRequest:
    policy = Stream.PIPE if conf.capture_std else Stream.INHERIT
    return InvocationRequest(label, GIT, args, stdin=policy, stdout=Stream.PIPE, stderr=policy)


def commit_request(conf: JotConf) -> InvocationRequest:
    if conf.custom_commit_msg:
        # git opens its own editor for the message, so it needs the terminal.
        return InvocationRequest(Phase.COMMIT.verb, GIT, ('commit',),
                                 stdin=Stream.INHERIT, stdout=Stream.INHERIT,
                                 stderr=Stream.PIPE if conf.capture_std else Stream.INHERIT)
    return git_request(conf, Phase.COMMIT.verb, 'commit', '-m', commit_message())


def check_repository(conf: JotConf) -> None:
    """Verifies that the current working directory, which should be base_dir, is inside a git working tree.

    Raises :exc:`jot.errors.BaseDirectoryNotAGitRepository` otherwise.
    """
    request = InvocationRequest('checking base_dir', GIT, ('rev-parse', '--git-dir'),
                                stdin=Stream.PIPE, stdout=Stream.PIPE, stderr=Stream.PIPE)
    try:
        invocation.run_invocation(request, False)
    except InvocationNonZeroExit as e:
        raise BaseDirectoryNotAGitRepository(conf.base_dir) from e


def _git_answers(conf: JotConf, label: str, *args: str) -> bool:
    """Runs a git command whose exit code answers a question: 0 means yes, 1 means no, anything else is an error."""
    request = InvocationRequest(label, GIT, args, stdin=Stream.PIPE, stdout=Stream.PIPE, stderr=Stream.PIPE)
    try:
        invocation.run_invocation(request, False)
    except InvocationNonZeroExit as e:
        if e.exit_code == 1:
            return False
        raise
    return True


def has_commits(conf: JotConf) -> bool:
    """Returns False if HEAD is unborn, i.e. nothing has been committed to the repository yet."""
    return _git_answers(conf, 'checking for commits', 'rev-parse', '--verify', '-q', 'HEAD')


def refresh_index(conf: JotConf) -> None:
    """Updates the stat information git keeps for tracked files, so files that were only touched are not dirty."""
    request = InvocationRequest('refreshing index', GIT, ('update-index', '-q', '--refresh'),
                                stdin=Stream.PIPE, stdout=Stream.PIPE, stderr=Stream.PIPE)
    try:
        invocation.run_invocation(request, False)
    except InvocationNonZeroExit as e:
        # Exits 1 when some files really changed; is_clean reports those.
        LOG.debug('git update-index exited with %s', e.exit_code)


def is_clean(conf: JotConf) -> bool:
    """Returns True if neither the index nor tracked files differ from HEAD.

    Before the first commit there is no HEAD to differ from, so the repository counts as clean.
    """
    refresh_index(conf)
    if not has_commits(conf):
        return True
    return _git_answers(conf, 'checking for changes', 'diff-index', '--quiet', 'HEAD', '--')


def has_staged_changes(conf: JotConf) -> bool:
    """Returns True if the index differs from HEAD, or if anything is staged at all before the first commit."""
    if has_commits(conf):
        return not _git_answers(conf, 'checking for changes', 'diff-index', '--quiet', '--cached', 'HEAD', '--')
    return not _git_answers(conf, 'checking for changes', 'diff', '--cached', '--quiet')


def _run_phase(conf: JotConf, phase: Phase, request: InvocationRequest, summary: str) -> InvocationOutcome:
    LOG.info('Sync: %s', phase.verb)
    try:
        outcome = invocation.run_invocation(request, conf.quiet_on_ctrl_c)
    except JotError as e:
        raise SyncPhaseFailure(phase, e, summary) from e
    if outcome.interrupted:
        raise SyncInterrupted(phase)
    return outcome


def sync(conf: JotConf) -> None:
    """Pulls, stages everything, commits and pushes.

    If nothing is staged after pulling and staging, no commit is made, but the push still happens (there may be
    earlier local commits that never made it upstream).

    Raises :exc:`jot.errors.SyncPhaseFailure` naming the first step that failed, or
    :exc:`jot.errors.SyncInterrupted` if a step was interrupted and quiet_on_ctrl_c is set.
    """
    upstream = f'{conf.git_remote_name} {conf.git_upstream_branch}'

    _run_phase(conf, Phase.PULL,
               git_request(conf, Phase.PULL.verb, 'pull', conf.git_remote_name, conf.git_upstream_branch),
               f'failed to pull upstream changes from {upstream}')

    _run_phase(conf, Phase.STAGE, git_request(conf, Phase.STAGE.verb, 'add', '-A'),
               'failed to stage local changes')

    try:
        staged = has_staged_changes(conf)
    except JotError as e:
        raise SyncPhaseFailure(Phase.COMMIT, e, 'failed to check for staged changes') from e
    if staged:
        _run_phase(conf, Phase.COMMIT, commit_request(conf), 'failed to commit local changes')
    else:
        LOG.info('Sync: nothing to commit')

    _run_phase(conf, Phase.PUSH,
               git_request(conf, Phase.PUSH.verb, 'push', conf.git_remote_name, conf.git_upstream_branch),
               f'failed to push to upstream {upstream}')
