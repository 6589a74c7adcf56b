"""Configuration tests."""

import stat

import pytest
import yaml

from panekeeper.config import (
    PaneKeeperConfig,
    default_home,
    get_config_path,
    get_config_value,
    reset_config,
    set_config_value,
    validate_int_env,
)


class TestDefaults:
    def test_default_values(self):
        config = PaneKeeperConfig()
        assert config.enabled is True
        assert config.multiplexer == "auto"
        assert (config.direction, config.percent) == ("right", 40)
        assert config.auto_close_timeout == 0
        assert config.debounce_ms == 50
        assert config.log_retention_days == 7

    def test_home_from_env(self, home):
        assert default_home() == home
        assert get_config_path() == home / "config.yaml"

    def test_home_fallback(self, monkeypatch, tmp_path):
        monkeypatch.delenv("PANEKEEPER_HOME")
        monkeypatch.setenv("HOME", str(tmp_path))
        assert default_home() == tmp_path / ".panekeeper"


class TestLoad:
    """config.yaml merged over defaults"""

    def test_missing_file(self, tmp_path):
        assert PaneKeeperConfig.load(tmp_path / "config.yaml", environ={}) == PaneKeeperConfig()

    def test_file_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("percent: 55\ndirection: bottom\nunknown_key: 1\n")
        config = PaneKeeperConfig.load(path, environ={})
        assert config.percent == 55
        assert config.direction == "bottom"

    def test_percent_is_clamped(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("percent: 99\ntask_percent: 2\n")
        config = PaneKeeperConfig.load(path, environ={})
        assert (config.percent, config.task_percent) == (90, 10)

    def test_corrupt_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("percent: [unclosed\n")
        assert PaneKeeperConfig.load(path, environ={}) == PaneKeeperConfig()

    def test_non_mapping_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        assert PaneKeeperConfig.load(path, environ={}) == PaneKeeperConfig()


class TestEnvOverrides:
    """Environment beats the file; bad values are ignored"""

    def test_disable(self, tmp_path):
        assert PaneKeeperConfig.load(tmp_path / "c.yaml", environ={"PANEKEEPER_DISABLE": "1"}).enabled is False

    def test_valid_overrides(self, tmp_path):
        env = {
            "PANEKEEPER_MULTIPLEXER": "tmux",
            "PANEKEEPER_DIRECTION": "bottom",
            "PANEKEEPER_PERCENT": "25",
            "PANEKEEPER_AUTOCLOSE": "3600",
        }
        config = PaneKeeperConfig.load(tmp_path / "c.yaml", environ=env)
        assert config.multiplexer == "tmux"
        assert (config.direction, config.task_direction) == ("bottom", "bottom")
        assert config.percent == 25
        assert config.auto_close_timeout == 3600

    @pytest.mark.parametrize("value", ["abc", "-1", "3601", ""])
    def test_invalid_autoclose_keeps_previous(self, tmp_path, value):
        path = tmp_path / "config.yaml"
        path.write_text("auto_close_timeout: 30\n")
        config = PaneKeeperConfig.load(path, environ={"PANEKEEPER_AUTOCLOSE": value})
        assert config.auto_close_timeout == 30

    def test_invalid_multiplexer_and_direction(self, tmp_path):
        env = {"PANEKEEPER_MULTIPLEXER": "screen", "PANEKEEPER_DIRECTION": "diagonal", "PANEKEEPER_PERCENT": "5"}
        config = PaneKeeperConfig.load(tmp_path / "c.yaml", environ=env)
        assert (config.multiplexer, config.direction, config.percent) == ("auto", "right", 40)

    def test_validate_int_env(self):
        assert validate_int_env("10", minimum=0, maximum=20) == (True, 10)
        assert validate_int_env(None, minimum=0, maximum=20)[0] is False
        assert validate_int_env("21", minimum=0, maximum=20) == (False, "must be <= 20")
        assert validate_int_env("1.5", minimum=0, maximum=20) == (False, "must be a number")


class TestPersistence:
    def test_save_writes_private_yaml(self, tmp_path):
        path = tmp_path / "sub" / "config.yaml"
        PaneKeeperConfig(percent=33).save(path)
        assert yaml.safe_load(path.read_text())["percent"] == 33
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_set_value_coerces_types(self, tmp_path):
        path = tmp_path / "config.yaml"
        set_config_value("percent", "60", path=path)
        set_config_value("auto_spawn", "false", path=path)
        set_config_value("command_timeout", "none", path=path)

        assert get_config_value("percent", path=path) == 60
        assert get_config_value("auto_spawn", path=path) is False
        assert get_config_value("command_timeout", path=path) is None

    def test_set_unknown_key(self, tmp_path):
        with pytest.raises(KeyError):
            set_config_value("colour", "red", path=tmp_path / "config.yaml")

    def test_set_bad_number(self, tmp_path):
        with pytest.raises(ValueError):
            set_config_value("percent", "lots", path=tmp_path / "config.yaml")

    def test_reset(self, tmp_path):
        path = tmp_path / "config.yaml"
        set_config_value("percent", "60", path=path)
        assert reset_config(path) == PaneKeeperConfig()
        assert get_config_value("percent", path=path) == 40


class TestFileValidation:
    """Bad config.yaml values fall back to defaults"""

    def _load(self, tmp_path, text):
        path = tmp_path / "config.yaml"
        path.write_text(text)
        return PaneKeeperConfig.load(path, environ={})

    def test_wrong_types_keep_defaults(self, tmp_path):
        config = self._load(
            tmp_path,
            "debounce_ms: fast\ncommand_timeout: soon\nenabled: maybe\nagent_monitor: 3\nmultiplexer: screen\n",
        )
        assert config.debounce_ms == 50
        assert config.command_timeout == 10.0
        assert config.enabled is True
        assert config.agent_monitor == "panekeeper-agent-monitor"
        assert config.multiplexer == "auto"

    def test_out_of_range_keeps_defaults(self, tmp_path):
        config = self._load(tmp_path, "auto_close_timeout: 99999\ndebounce_ms: -5\ncommand_timeout: 0\n")
        assert config.auto_close_timeout == 0
        assert config.debounce_ms == 50
        assert config.command_timeout == 10.0

    def test_string_spellings_are_normalized(self, tmp_path):
        config = self._load(
            tmp_path,
            'enabled: "no"\nauto_spawn: "on"\ndebounce_ms: "120"\ncommand_timeout: "2.5"\nmultiplexer: TMUX\n',
        )
        assert config.enabled is False
        assert config.auto_spawn is True
        assert config.debounce_ms == 120
        assert config.command_timeout == 2.5
        assert config.multiplexer == "tmux"

    def test_null_timeout_disables(self, tmp_path):
        assert self._load(tmp_path, "command_timeout: null\n").command_timeout is None

    def test_valid_values_survive_next_to_bad_ones(self, tmp_path):
        config = self._load(tmp_path, "auto_close_timeout: 120\ndebounce_ms: fast\n")
        assert config.auto_close_timeout == 120
        assert config.debounce_ms == 50

    def test_set_rejects_out_of_range(self, tmp_path):
        path = tmp_path / "config.yaml"
        with pytest.raises(ValueError):
            set_config_value("auto_close_timeout", "99999", path=path)
        with pytest.raises(ValueError):
            set_config_value("auto_spawn", "perhaps", path=path)
        assert not path.exists()
