import json
import logging
import select

import pytest

import main
from telemetry import __version__
from telemetry.logs import MAIN_LOGGER, NETWORK_LOGGER, SENSORS_LOGGER

from conftest import PollerFactory


@pytest.fixture(autouse=True)
def restore_log_levels():
    loggers = [logging.getLogger(n) for n in (MAIN_LOGGER, SENSORS_LOGGER, NETWORK_LOGGER)]
    saved = [lg.level for lg in loggers]
    yield
    for lg, level in zip(loggers, saved):
        lg.setLevel(level)


@pytest.fixture
def daemon_env(sysfs, monkeypatch):
    sysfs.add("w1", "28-aaaa", "temperature", "36850\n")
    monkeypatch.setattr(main, "SYSFS_ROOT", str(sysfs.root))
    monkeypatch.setattr(main, "PUBLISHER", "log")
    return sysfs


def _config(tmp_path, **overrides) -> str:
    data = {
        "module": "beehive",
        "names": ["insideTemp"],
        "sensors": ["temperature"],
        "serials": ["28-aaaa"],
        "inputTypes": ["w1"],
        "delays": 1,
    }
    data.update(overrides)
    path = tmp_path / "telemetry.json"
    path.write_text(json.dumps(data))
    return str(path)


def test_version(capsys):
    assert main.main(["-v"]) == 0
    assert capsys.readouterr().out.strip() == f"Version {__version__}"


def test_help_exits_zero(capsys):
    with pytest.raises(SystemExit) as exc:
        main.main(["-h"])
    assert exc.value.code == 0
    assert "--config" in capsys.readouterr().out


def test_mismatched_lists_fail_startup(tmp_path, daemon_env, monkeypatch):
    started = []
    monkeypatch.setattr(main.AcquisitionLoop, "run", lambda self: started.append(self))

    assert main.main(["-f", _config(tmp_path, names=["a", "b"])]) == 1
    assert started == []


def test_unsupported_input_type_fails_startup(tmp_path, daemon_env):
    assert main.main(["-f", _config(tmp_path, inputTypes=["usb"])]) == 1


def test_bad_log_level_fails_startup(tmp_path, daemon_env):
    assert main.main(["-f", _config(tmp_path), "-d", "shouty"]) == 1
    assert main.main(["-f", _config(tmp_path, mainlog="shouty")]) == 1


def test_oversized_delay_fails_startup(tmp_path, daemon_env, monkeypatch):
    started = []
    monkeypatch.setattr(main.AcquisitionLoop, "run", lambda self: started.append(self))

    assert main.main(["-f", _config(tmp_path, delays=3_000_000)]) == 1
    assert started == []


def test_unknown_publisher_fails_startup(tmp_path, daemon_env, monkeypatch):
    monkeypatch.setattr(main, "PUBLISHER", "fax")
    assert main.main(["-f", _config(tmp_path)]) == 1


def test_hangup_exits_nonzero_after_one_cycle(tmp_path, daemon_env, monkeypatch, caplog):
    factory = PollerFactory(lambda fds: [(fds[0], select.POLLHUP)])
    monkeypatch.setattr(select, "poll", factory)

    assert main.main(["-f", _config(tmp_path), "-d", "info"]) == 1
    assert len(factory.pollers) == 1
    assert any(r.levelno == logging.CRITICAL and "Hangup" in r.getMessage() for r in caplog.records)


def test_payloads_flow_to_publisher_until_interrupted(tmp_path, daemon_env, monkeypatch, caplog):
    cycles = []

    def respond(fds):
        cycles.append(fds)
        if len(cycles) > 2:
            raise KeyboardInterrupt
        return [(fd, select.POLLIN) for fd in fds]

    monkeypatch.setattr(select, "poll", PollerFactory(respond))
    caplog.set_level(logging.INFO)

    assert main.main(["-f", _config(tmp_path), "-d", "info"]) == 0

    payloads = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Next Payload:")]
    assert len(payloads) == 2
    assert all(p.endswith(",beehive,insideTemp,36.85") for p in payloads)
