import pytest

from xstate_lite import Settings


class TestSettings:

    def test_defaults(self):
        settings = Settings.from_env(environ={})

        assert settings == Settings(history_limit=20, metrics_enabled=True, log_level="INFO")

    def test_from_env(self):
        settings = Settings.from_env(environ={
            "XSTATE_HISTORY_LIMIT": "5",
            "XSTATE_METRICS_ENABLED": "False",
            "XSTATE_LOG_LEVEL": "debug",
        })

        assert settings.history_limit == 5
        assert settings.metrics_enabled is False
        assert settings.log_level == "DEBUG"

    def test_from_file(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("history_limit: 3\nmetrics_enabled: false\n")

        settings = Settings.from_file(config_file)

        assert settings.history_limit == 3
        assert settings.metrics_enabled is False
        assert settings.log_level == "INFO"

    def test_environment_overrides_file(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("history_limit: 3\nlog_level: WARNING\n")

        settings = Settings.load(config_file, environ={"XSTATE_HISTORY_LIMIT": "7"})

        assert settings.history_limit == 7
        assert settings.log_level == "WARNING"

    def test_empty_file_keeps_defaults(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("")

        assert Settings.from_file(config_file) == Settings()

    def test_unknown_keys_are_ignored(self, tmp_path, caplog):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("colour: blue\n")

        assert Settings.from_file(config_file) == Settings()
        assert "colour" in caplog.text

    @pytest.mark.parametrize("environ", [
        {"XSTATE_HISTORY_LIMIT": "many"},
        {"XSTATE_HISTORY_LIMIT": "-1"},
        {"XSTATE_METRICS_ENABLED": "maybe"},
        {"XSTATE_LOG_LEVEL": "LOUD"},
    ])
    def test_invalid_values(self, environ):
        name = next(iter(environ))[len("XSTATE_"):].lower()
        with pytest.raises(ValueError, match=name):
            Settings.from_env(environ=environ)

    def test_file_must_hold_a_mapping(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("- 1\n- 2\n")

        with pytest.raises(ValueError):
            Settings.from_file(config_file)
