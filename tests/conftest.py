import pytest
from jot.invocation import STDERR_NOT_CAPTURED, Stream, classify


class FakeRunner:
    """Stands in for :func:`jot.invocation.run_invocation`.

    Records every request, and answers with the exit code and output scripted for the request's label
    (exit code 0 and no output by default). Exit codes are classified the same way as for real processes.
    """
    def __init__(self):
        self.requests = []
        self.quiet_flags = []
        self._scripts = {}

    def respond(self, label, exit_code=0, stdout='', stderr='', hook=None):
        """hook, if given, is called with the request before the fake process "exits"."""
        self._scripts[label] = (exit_code, stdout, stderr, hook)

    def __call__(self, request, quiet_on_ctrl_c):
        self.requests.append(request)
        self.quiet_flags.append(quiet_on_ctrl_c)
        exit_code, stdout, stderr, hook = self._scripts.get(request.label, (0, '', '', None))
        if hook:
            hook(request)
        if request.stderr != Stream.PIPE:
            stderr = STDERR_NOT_CAPTURED
        return classify(request, exit_code, stdout, stderr, quiet_on_ctrl_c)

    @property
    def labels(self):
        return [r.label for r in self.requests]

    def request(self, label):
        matches = [r for r in self.requests if r.label == label]
        assert len(matches) == 1, f'expected one {label} request, got {len(matches)}'
        return matches[0]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    monkeypatch.setenv('HOME', '/home/jot')
    monkeypatch.delenv('JOT_CONFIG', raising=False)
    monkeypatch.setenv('SHELL', '/bin/sh')
    monkeypatch.setenv('EDITOR', 'vim')


@pytest.fixture
def runner(mocker):
    fake = FakeRunner()
    mocker.patch('jot.invocation.run_invocation', side_effect=fake)
    return fake


@pytest.fixture
def notes(tmp_path, monkeypatch):
    """An empty notes directory. The test starts (and ends) in its parent directory."""
    monkeypatch.chdir(tmp_path)
    path = tmp_path.joinpath('notes').resolve()
    path.mkdir()
    return path
