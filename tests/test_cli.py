"""
Tests for the whistle_counter command line and monitor wiring.

The microphone is replaced by FakeCapture so no audio hardware is needed.
"""
import json
import logging
import pytest
import numpy as np
from unittest.mock import patch

import monitor
import whistle_counter
from whistle_core import SessionStatus, TickScheduler
from whistle_core.errors import AcquisitionError
from whistle_core.spectrum import bin_to_frequency

from tests.conftest import FakeAlarm, FakeCapture, make_sine, TEST_FFT_SIZE, TEST_SAMPLE_RATE, WHISTLE_BIN


BLOCK_SEC = TEST_FFT_SIZE / TEST_SAMPLE_RATE  # ~46 ms per analysis block


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def whistle_blocks():
    whistle = make_sine(bin_to_frequency(WHISTLE_BIN, TEST_SAMPLE_RATE, TEST_FFT_SIZE))
    quiet = np.zeros(TEST_FFT_SIZE, dtype=np.float32)
    # ~1.9 s apart; the default 0.8 smoothing decays below threshold well within the debounce
    return ([whistle] + [quiet] * 40) * 2


class TestBuildSession:
    def test_build_session_wires_visualizer(self, config):
        session = monitor.build_session(config, TickScheduler(), alarm=FakeAlarm())
        assert len(session.sinks) == 1
        assert session.detection_config.threshold == 180.0

    def test_visualization_can_be_disabled(self, config):
        config["visualization"]["enabled"] = False
        session = monitor.build_session(config, TickScheduler(), alarm=FakeAlarm())
        assert session.sinks == []


class TestRunListen:
    def test_listen_until_target(self, tmp_path):
        capture = FakeCapture(whistle_blocks(), step_sec=BLOCK_SEC)
        with patch("whistle_core.audio.AudioCapture", return_value=capture), \
                patch("monitor.AlarmPlayer", return_value=FakeAlarm()):
            session = monitor.run_listen(tmp_path / "none.json", target=2, visualize=False)

        assert session.status is SessionStatus.COMPLETED
        assert session.count == 2
        assert not capture.open
        assert session.alarm.plays == 1

    def test_stream_end_before_target_stops_session(self, tmp_path):
        capture = FakeCapture(whistle_blocks()[:5], step_sec=BLOCK_SEC)
        with patch("whistle_core.audio.AudioCapture", return_value=capture), \
                patch("monitor.AlarmPlayer", return_value=FakeAlarm()):
            session = monitor.run_listen(tmp_path / "none.json", target=3, visualize=False)

        assert session.status is SessionStatus.IDLE
        assert session.alarm.plays == 0


class TestMain:
    def test_show_config(self, capsys, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"session": {"target_count": 4}}))
        assert whistle_counter.main(["show-config", "--config", str(path)]) == 0
        assert json.loads(capsys.readouterr().out)["session"]["target_count"] == 4

    def test_invalid_target_exit_code(self, tmp_path):
        capture = FakeCapture()
        with patch("whistle_core.audio.AudioCapture", return_value=capture):
            code = whistle_counter.main(["listen", "--target", "0", "--config", str(tmp_path / "x.json")])
        assert code == 2
        assert capture.started == 0

    def test_acquisition_error_exit_code(self, tmp_path, capsys):
        with patch("monitor.run_listen", side_effect=AcquisitionError("Permission denied")):
            code = whistle_counter.main(["listen", "--config", str(tmp_path / "x.json")])
        assert code == 1
        assert "Troubleshooting" in capsys.readouterr().err

    def test_unknown_mode(self, tmp_path):
        assert whistle_counter.main(["bake", "--config", str(tmp_path / "x.json")]) == 2

    def test_timer_mode(self, tmp_path):
        with patch("monitor.CookingTimer") as timer_cls, patch("monitor.AlarmPlayer"):
            timer = timer_cls.return_value
            timer.running = False
            timer.finished = True
            timer.format_remaining.return_value = "00:00"
            code = whistle_counter.main(["timer", "--minutes", "0", "--seconds", "1",
                                         "--config", str(tmp_path / "x.json")])
        assert code == 0
        timer.start.assert_called_once_with(0, 1)
