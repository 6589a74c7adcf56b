"""panekeeper test configuration."""

import os
import subprocess
import tempfile

# Keep log output of imported modules out of the user's home directory.
os.environ.setdefault("PANEKEEPER_LOG_DIR", tempfile.mkdtemp(prefix="panekeeper-test-logs-"))

import pytest  # noqa: E402

from panekeeper.adapters import MultiplexerAdapter, PaneInfo  # noqa: E402
from panekeeper.panes import (  # noqa: E402
    AgentMonitorCommand,
    PaneLifecycleManager,
    PaneRegistry,
)


class FakeRunner:
    """Stand-in for subprocess.run that records calls and replays canned results.

    Each queued response is ``(returncode, stdout, stderr)`` or an exception to raise.
    """

    def __init__(self, responses=None):
        self.calls = []
        self.responses = list(responses or [])

    def __call__(self, argv, **kwargs):
        self.calls.append((list(argv), kwargs))
        result = self.responses.pop(0) if self.responses else (0, "", "")
        if isinstance(result, BaseException):
            raise result
        returncode, stdout, stderr = result
        return subprocess.CompletedProcess(argv, returncode, stdout, stderr)

    @property
    def argvs(self):
        return [argv for argv, _ in self.calls]


class FakeAdapter(MultiplexerAdapter):
    """In-memory multiplexer: panes exist until closed or killed."""

    name = "fake"
    executable = "fake-mux"

    def __init__(self):
        super().__init__(environ={})
        self.alive = set()
        self.splits = []
        self.closed = []
        self.sent = []
        self._counter = 0

    def split_pane(self, direction="right", percent=40, command=None, cwd=None, name=None):
        self._counter += 1
        pane_id = f"%{self._counter}"
        self.alive.add(pane_id)
        self.splits.append(
            {"pane_id": pane_id, "direction": direction, "percent": percent, "command": command, "name": name}
        )
        return pane_id

    def close_pane(self, pane_id):
        self.closed.append(pane_id)
        self.alive.discard(pane_id)

    def send_keys(self, pane_id, text):
        self.sent.append((pane_id, text))

    def get_pane_info(self, pane_id):
        return PaneInfo(pane_id=pane_id) if pane_id in self.alive else None

    def kill(self, pane_id):
        """Simulate the user closing the pane outside panekeeper."""
        self.alive.discard(pane_id)


class FakeClock:
    def __init__(self, now=1_000_000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run every test with its own PANEKEEPER_HOME and no inherited overrides."""
    for key in list(os.environ):
        if key.startswith("PANEKEEPER_") and key != "PANEKEEPER_LOG_DIR":
            monkeypatch.delenv(key, raising=False)
    home = tmp_path / "home"
    monkeypatch.setenv("PANEKEEPER_HOME", str(home))
    return home


@pytest.fixture
def home(isolated_env):
    return isolated_env


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def fake_adapter():
    return FakeAdapter()


@pytest.fixture
def registry(home):
    return PaneRegistry(home, lock_timeout=0.5)


@pytest.fixture
def manager(registry, fake_adapter):
    return PaneLifecycleManager(
        registry,
        adapter=fake_adapter,
        monitor=AgentMonitorCommand("agent-monitor"),
    )


@pytest.fixture
def clock():
    return FakeClock()
