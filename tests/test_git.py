import os
import re
import shutil
import subprocess
import pytest
from jot import cli
from jot.conf import JotConf
from jot.sync import has_staged_changes, is_clean

pytestmark = pytest.mark.skipif(shutil.which('git') is None, reason='git is not installed')


def _run_git(args, cwd):
    return subprocess.run(['git', *args], cwd=str(cwd), text=True, capture_output=True, check=True)


def _init(path, bare=False):
    _run_git(['init', '-q', *(['--bare'] if bare else [])], cwd=path)
    _run_git(['symbolic-ref', 'HEAD', 'refs/heads/main'], cwd=path)
    if not bare:
        _run_git(['config', 'user.name', 'jot'], cwd=path)
        _run_git(['config', 'user.email', 'jot@example.com'], cwd=path)
        _run_git(['config', 'pull.rebase', 'false'], cwd=path)


def _commit_count(path):
    return int(_run_git(['rev-list', '--count', 'HEAD'], cwd=path).stdout)


def args(notes, *rest):
    return ['-b', str(notes), '-f', 'true', '-l', 'true', '--capture-std', *rest]


@pytest.fixture(autouse=True)
def editor(monkeypatch):
    monkeypatch.setenv('EDITOR', 'true')


@pytest.fixture
def remote(tmp_path):
    path = tmp_path.joinpath('remote.git')
    path.mkdir()
    _init(path, bare=True)
    return path


@pytest.fixture
def repo(notes, remote):
    """A notes repository with one commit, in sync with its origin."""
    _init(notes)
    notes.joinpath('a.md').write_text('Remember the milk.\n')
    _run_git(['add', 'a.md'], cwd=notes)
    _run_git(['commit', '-q', '-m', 'initial'], cwd=notes)
    _run_git(['remote', 'add', 'origin', str(remote)], cwd=notes)
    _run_git(['push', '-q', 'origin', 'main'], cwd=notes)
    return notes


def test_touched_file_is_clean(repo, capsys):
    note = repo.joinpath('a.md')
    stat = note.stat()
    os.utime(note, (stat.st_atime + 10, stat.st_mtime + 10))
    assert cli.main(args(repo, 'new', 'a.md')) == 0
    out, err = capsys.readouterr()
    assert 'uncommitted changes' not in err
    assert _commit_count(repo) == 1


def test_modified_file_is_not_clean(repo, capsys):
    repo.joinpath('a.md').write_text('Remember the eggs.\n')
    assert cli.main(args(repo, 'new', 'b.md')) == 1
    out, err = capsys.readouterr()
    assert err.startswith(f'jot: error: base_dir {repo} has uncommitted changes')
    assert not repo.joinpath('b.md').exists()


def test_sync_commits_and_pushes(repo, remote):
    repo.joinpath('b.md').write_text('Call the plumber.\n')
    assert cli.main(args(repo, 'sync')) == 0
    assert _commit_count(repo) == 2
    message = _run_git(['log', '-1', '--format=%s'], cwd=repo).stdout.strip()
    assert re.fullmatch(r'\d{4}-\d\d-\d\dT\d\d:\d\d:\d\dZ', message)
    assert _run_git(['rev-parse', 'main'], cwd=remote).stdout == _run_git(['rev-parse', 'HEAD'], cwd=repo).stdout


def test_sync_nothing_to_commit_still_pushes(repo, remote):
    repo.joinpath('b.md').write_text('Committed by hand.\n')
    _run_git(['add', 'b.md'], cwd=repo)
    _run_git(['commit', '-q', '-m', 'by hand'], cwd=repo)
    assert cli.main(args(repo, 'sync')) == 0
    assert _commit_count(repo) == 2
    assert _run_git(['rev-parse', 'main'], cwd=remote).stdout == _run_git(['rev-parse', 'HEAD'], cwd=repo).stdout


def test_checks_before_first_commit(notes):
    _init(notes)
    conf = JotConf(base_dir=str(notes), finder='true', lister='true')
    with conf.instantiate():
        assert is_clean(conf)
        assert not has_staged_changes(conf)
        notes.joinpath('first.md').write_text('Hello.\n')
        _run_git(['add', 'first.md'], cwd=notes)
        assert is_clean(conf)
        assert has_staged_changes(conf)


def test_new_before_first_commit(notes, remote, tmp_path):
    other = tmp_path.joinpath('other')
    other.mkdir()
    _init(other)
    other.joinpath('a.md').write_text('From another machine.\n')
    _run_git(['add', 'a.md'], cwd=other)
    _run_git(['commit', '-q', '-m', 'initial'], cwd=other)
    _run_git(['push', '-q', str(remote), 'main'], cwd=other)

    _init(notes)
    _run_git(['remote', 'add', 'origin', str(remote)], cwd=notes)
    assert cli.main(args(notes, 'new', 'first.md')) == 0
    assert _commit_count(notes) == 2
    assert notes.joinpath('a.md').is_file()
    files = _run_git(['ls-tree', '--name-only', 'main'], cwd=remote).stdout.split()
    assert files == ['a.md', 'first.md']
