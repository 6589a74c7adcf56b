"""Signal file tests."""

import stat

from panekeeper.signals import SignalChannel, safe_signal_name


class TestSignalChannel:
    """Last write wins"""

    def test_tokens(self, tmp_path):
        channel = SignalChannel(tmp_path / "signals" / "signal-x")
        assert channel.read() is None

        assert channel.signal_update(1700000000000) == "update:1700000000000"
        assert channel.read() == "update:1700000000000"
        channel.signal_hide()
        assert channel.read() == "hide"
        channel.signal_done()
        assert channel.read() == "done"
        channel.signal_error("line one\nline two")
        assert channel.read() == "error:line one line two"

    def test_error_without_message(self, tmp_path):
        channel = SignalChannel(tmp_path / "s")
        channel.signal_error("")
        assert channel.read() == "error:Unknown error"

    def test_private_and_no_leftovers(self, tmp_path):
        channel = SignalChannel(tmp_path / "s")
        channel.signal_done()
        assert stat.S_IMODE(channel.path.stat().st_mode) == 0o600
        assert [p.name for p in tmp_path.iterdir()] == ["s"]

    def test_clear(self, tmp_path):
        channel = SignalChannel(tmp_path / "s")
        channel.signal_done()
        channel.clear()
        channel.clear()
        assert channel.read() is None

    def test_safe_name(self):
        assert safe_signal_name("toolu_01AB") == "toolu_01AB"
        assert safe_signal_name("a/b c") == "a_b_c"
        assert safe_signal_name("///") == "signal"
