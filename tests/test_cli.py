import json

import pytest

from xstate_lite.cli import load_guards, main
from xstate_lite.samples import TRAFFIC_LIGHT, TRAFFIC_LIGHT_GUARDS


GUARDS = "xstate_lite.samples:TRAFFIC_LIGHT_GUARDS"


@pytest.fixture
def definition_file(tmp_path):
    path = tmp_path / "traffic_light.json"
    path.write_text(json.dumps(TRAFFIC_LIGHT))
    return path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("XSTATE_HISTORY_LIMIT", "XSTATE_METRICS_ENABLED", "XSTATE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_demo(capsys):
    assert main(["demo"]) == 0

    out = capsys.readouterr().out
    assert "Next state: yellow" in out
    assert out.index("turnOffLight") < out.index("logTransition") < out.index("startTimer")


def test_resolve_json(definition_file, capsys):
    assert main(["resolve", str(definition_file), "green", "timer", "--guards", GUARDS, "--json"]) == 0

    result = json.loads(capsys.readouterr().out)
    assert result["state"] == "yellow"
    assert [a["type"] for a in result["actions"]] == [
        "turnOffLight", "logTransition", "startTimer", "turnOnLight"
    ]
    assert result["actions"][2]["params"] == {"duration": 5000}


def test_resolve_without_guards_stays(definition_file, capsys):
    assert main(["resolve", str(definition_file), "green", "timer"]) == 0

    assert "Next state: green" in capsys.readouterr().out


def test_events(definition_file, capsys):
    assert main(["events", str(definition_file), "red"]) == 0

    assert capsys.readouterr().out.split() == ["timer"]


def test_visualize(definition_file, capsys):
    assert main(["visualize", str(definition_file), "--state", "red"]) == 0

    assert "state red #yellow : Current State" in capsys.readouterr().out


def test_bad_definition(tmp_path, capsys):
    path = tmp_path / "broken.json"
    path.write_text("{not json")

    assert main(["events", str(path), "green"]) == 1
    assert "Error creating state machine" in capsys.readouterr().err


def test_missing_definition(tmp_path):
    assert main(["events", str(tmp_path / "missing.json"), "green"]) == 1


def test_bad_guards(definition_file):
    assert main(["resolve", str(definition_file), "green", "timer", "--guards", "nope"]) == 1


def test_load_guards():
    assert load_guards(GUARDS) is TRAFFIC_LIGHT_GUARDS
    assert load_guards(None) == {}

    with pytest.raises(ImportError):
        load_guards("xstate_lite.samples:MISSING")


def test_config_file(definition_file, tmp_path, capsys):
    config_file = tmp_path / "settings.yaml"
    config_file.write_text("log_level: WARNING\nhistory_limit: 5\n")

    assert main(["--config", str(config_file), "events", str(definition_file), "green"]) == 0
    assert capsys.readouterr().out.split() == ["timer"]


def test_invalid_config_file(definition_file, tmp_path, capsys):
    config_file = tmp_path / "settings.yaml"
    config_file.write_text("history_limit: many\n")

    assert main(["--config", str(config_file), "events", str(definition_file), "green"]) == 1
    assert "Error loading settings" in capsys.readouterr().err


def test_missing_config_file(definition_file, tmp_path, capsys):
    assert main(["--config", str(tmp_path / "missing.yaml"), "demo"]) == 1
    assert "Error loading settings" in capsys.readouterr().err


def test_invalid_environment_setting(monkeypatch, capsys):
    monkeypatch.setenv("XSTATE_LOG_LEVEL", "LOUD")

    assert main(["demo"]) == 1
    assert "log_level" in capsys.readouterr().err


def test_verbose(definition_file, capsys):
    assert main(["--verbose", "events", str(definition_file), "yellow"]) == 0
    assert capsys.readouterr().out.split() == ["timer"]


def test_resolve_yaml_with_nested_params(tmp_path, capsys):
    path = tmp_path / "switch.yaml"
    path.write_text(
        "initial: off\n"
        "states:\n"
        "  off:\n"
        "    on:\n"
        "      press:\n"
        "        target: on\n"
        "        actions:\n"
        "          - type: notify\n"
        "            params: {channels: [led, buzzer], at: {x: 1}}\n"
    )

    assert main(["resolve", str(path), "off", "press", "--json"]) == 0

    result = json.loads(capsys.readouterr().out)
    assert result == {
        "state": "on",
        "actions": [{"type": "notify", "params": {"channels": ["led", "buzzer"], "at": {"x": 1}}}],
    }
