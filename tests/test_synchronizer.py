"""Task synchronizer tests."""

import json
from datetime import datetime

import pytest

from panekeeper.adapters import MultiplexerDetector
from panekeeper.config import PaneKeeperConfig
from panekeeper.panes import PaneLifecycleManager, PaneRegistry, TaskMonitorCommand
from panekeeper.signals import SignalChannel
from panekeeper.tasks import CompletionLog, SessionStore, TaskSynchronizer, TaskUpdate
from panekeeper.tasks.synchronizer import OUTCOME_HIDDEN, OUTCOME_UPDATED, TASK_PANE_KEY

KEY = "/home/u/.claude/projects/demo/abc123.jsonl"


def _update(*pairs, key=KEY):
    return TaskUpdate(
        correlation_key=key,
        payload={"todos": [{"content": c, "status": s, "activeForm": c} for c, s in pairs]},
        tool_use_id="toolu_1",
    )


@pytest.fixture
def config():
    return PaneKeeperConfig()


@pytest.fixture
def make_sync(home, config, clock):
    def factory(adapter=None, **overrides):
        cfg = PaneKeeperConfig(**{**config.to_dict(), **overrides})
        sessions = SessionStore(home / "tasks")
        detector = MultiplexerDetector(adapters={}) if adapter is None else None
        panes = PaneLifecycleManager(
            PaneRegistry(home, lock_timeout=0.5),
            adapter=adapter,
            detector=detector,
            monitor=TaskMonitorCommand("task-monitor", sessions.path),
        )
        return TaskSynchronizer(cfg, sessions, CompletionLog(home / "tasks" / "logs"), panes, clock=clock)

    return factory


def _today_log(home):
    return home / "tasks" / "logs" / f"{datetime.now().date().isoformat()}.jsonl"


class TestProcess:
    """One snapshot through the pipeline"""

    def test_first_update_spawns_and_signals(self, make_sync, fake_adapter, home, clock):
        sync = make_sync(fake_adapter)
        result = sync.process(_update(("A", "completed"), ("B", "in_progress"), ("C", "pending")))

        assert result.outcome == OUTCOME_UPDATED
        assert result.spawned_pane == "%1"
        assert result.signal == f"update:{clock.now}"
        assert len(fake_adapter.splits) == 1
        split = fake_adapter.splits[0]
        assert split["command"][0] == "task-monitor"
        assert split["command"][1] == str(home / "tasks" / "state.json")
        assert split["percent"] == 25

        state = json.loads((home / "tasks" / "state.json").read_text())
        assert state["paneId"] == "%1"
        session = state["sessions"][0]
        assert session["sessionId"] == "abc123"
        assert session["currentTask"] == "B"
        assert session["progress"]["percentage"] == 33

        signal = SignalChannel(state["signalFile"])
        assert signal.path == PaneRegistry(home).signal_path(TASK_PANE_KEY)
        assert signal.read() == f"update:{clock.now}"

    def test_visible_pane_is_not_respawned(self, make_sync, fake_adapter):
        sync = make_sync(fake_adapter)
        sync.process(_update(("A", "pending")))
        result = sync.process(_update(("A", "in_progress")))
        assert result.spawned_pane is None
        assert len(fake_adapter.splits) == 1

    def test_closed_pane_is_respawned(self, make_sync, fake_adapter):
        sync = make_sync(fake_adapter)
        sync.process(_update(("A", "pending")))
        fake_adapter.kill("%1")
        result = sync.process(_update(("A", "in_progress")))
        assert result.spawned_pane == "%2"

    def test_identical_snapshot_changes_only_timestamps(self, make_sync, fake_adapter, home, clock):
        sync = make_sync(fake_adapter)
        update = _update(("A", "completed"), ("B", "in_progress"))
        sync.process(update)
        first = json.loads((home / "tasks" / "state.json").read_text())["sessions"][0]

        clock.advance(5000)
        sync.process(update)
        second = json.loads((home / "tasks" / "state.json").read_text())["sessions"][0]

        first.pop("updatedAt")
        second.pop("updatedAt")
        assert second == first

    def test_elapsed_time_carried_across_updates(self, make_sync, fake_adapter, clock):
        sync = make_sync(fake_adapter)
        sync.process(_update(("A", "in_progress")))
        started = clock.now
        clock.advance(3000)
        result = sync.process(_update(("A", "completed")))

        task = result.session.tasks[0]
        assert task.started_at == started
        assert task.completed_at == started + 3000
        assert task.elapsed_ms == 3000
        assert result.session.progress.total_elapsed_ms == 3000

    def test_no_multiplexer_still_updates(self, make_sync, home):
        sync = make_sync()
        result = sync.process(_update(("A", "pending")))

        assert result.outcome == OUTCOME_UPDATED
        assert result.spawned_pane is None
        assert SessionStore(home / "tasks").load().get_session(KEY) is not None
        assert sync.signal_channel().read().startswith("update:")

    def test_auto_spawn_disabled(self, make_sync, fake_adapter):
        sync = make_sync(fake_adapter, auto_spawn=False)
        sync.process(_update(("A", "pending")))
        assert fake_adapter.splits == []


class TestEmptyList:
    """Empty snapshots hide the pane"""

    def test_empty_list_hides_without_spawn(self, make_sync, fake_adapter, home):
        sync = make_sync(fake_adapter)
        result = sync.process(TaskUpdate(correlation_key=KEY, payload={"todos": []}))

        assert result.outcome == OUTCOME_HIDDEN
        assert fake_adapter.splits == []
        assert PaneRegistry(home).signal_path(TASK_PANE_KEY).read_text() == "hide"

    def test_empty_list_removes_session(self, make_sync, fake_adapter, home):
        sync = make_sync(fake_adapter)
        sync.process(_update(("A", "pending")))
        sync.process(TaskUpdate(correlation_key=KEY, payload={"todos": []}))

        store = SessionStore(home / "tasks").load()
        assert store.get_session(KEY) is None
        assert store.pane_id == "%1"
        assert sync.signal_channel().read() == "hide"

    def test_empty_list_without_auto_hide_keeps_session(self, make_sync, fake_adapter, home):
        sync = make_sync(fake_adapter, auto_hide_empty=False)
        result = sync.process(TaskUpdate(correlation_key=KEY, payload={"todos": []}))

        assert result.outcome == OUTCOME_UPDATED
        assert fake_adapter.splits == []
        assert SessionStore(home / "tasks").load().get_session(KEY).tasks == []


class TestCompletionLogging:
    """Summary written once per completion"""

    def test_logged_once(self, make_sync, fake_adapter, home):
        sync = make_sync(fake_adapter)
        done = _update(("A", "completed"), ("B", "failed"))

        assert sync.process(done).logged is True
        assert sync.process(done).logged is False

        lines = _today_log(home).read_text().splitlines()
        assert len(lines) == 1
        record = json.loads(lines[0])
        assert (record["completed"], record["failed"], record["total"]) == (1, 1, 2)

    def test_logged_again_after_reopening(self, make_sync, fake_adapter, home):
        sync = make_sync(fake_adapter)
        sync.process(_update(("A", "completed")))
        sync.process(_update(("A", "completed"), ("B", "pending")))
        sync.process(_update(("A", "completed"), ("B", "completed")))

        assert len(_today_log(home).read_text().splitlines()) == 2

    def test_persistence_disabled(self, make_sync, fake_adapter, home):
        sync = make_sync(fake_adapter, task_log_persistence=False)
        assert sync.process(_update(("A", "completed"))).logged is False
        assert not _today_log(home).exists()


class TestHidePane:
    def test_hide_closes_and_forgets(self, make_sync, fake_adapter, home):
        sync = make_sync(fake_adapter)
        sync.process(_update(("A", "pending")))
        signal_path = PaneRegistry(home).signal_path(TASK_PANE_KEY)

        sync.hide_pane()

        assert fake_adapter.closed == ["%1"]
        assert not signal_path.exists()
        store = SessionStore(home / "tasks").load()
        assert store.pane_id is None
        assert store.get_session(KEY) is not None
