"""
Tests for whistle_core.alarm and whistle_core.timer modules.
"""
import io
import subprocess
import pytest
from unittest.mock import MagicMock, patch

from whistle_core.alarm import AlarmPlayer
from whistle_core.errors import InvalidConfigError
from whistle_core.timer import CookingTimer

from tests.conftest import FakeAlarm


class TestAlarmPlayer:
    def test_bell_without_sound_file(self, config):
        stream = io.StringIO()
        player = AlarmPlayer(config, stream=stream)
        with patch("whistle_core.alarm.subprocess.Popen") as popen:
            player.play()
        popen.assert_not_called()
        assert stream.getvalue() == "\a"
        assert player.play_count == 1

    def test_plays_sound_file(self, config, tmp_path):
        sound = tmp_path / "alarm.wav"
        sound.write_bytes(b"RIFF")
        config["alarm"]["sound_file"] = str(sound)
        player = AlarmPlayer(config)

        process = MagicMock()
        process.poll.return_value = None
        with patch("whistle_core.alarm.subprocess.Popen", return_value=process) as popen:
            player.play()

        assert popen.call_args[0][0] == ["aplay", "-q", str(sound)]
        assert player.is_playing()
        player.stop()
        process.terminate.assert_called_once()
        process.wait.assert_called_once_with(timeout=0.5)
        process.kill.assert_not_called()
        assert not player.is_playing()

    def test_stuck_player_is_killed(self, config, tmp_path):
        sound = tmp_path / "alarm.wav"
        sound.write_bytes(b"RIFF")
        config["alarm"]["sound_file"] = str(sound)
        player = AlarmPlayer(config)

        process = MagicMock()
        process.poll.return_value = None
        process.wait.side_effect = [subprocess.TimeoutExpired("aplay", 0.5), 0]
        with patch("whistle_core.alarm.subprocess.Popen", return_value=process):
            player.play()
        player.stop()

        process.terminate.assert_called_once()
        process.kill.assert_called_once()
        assert process.wait.call_count == 2
        assert not player.is_playing()

    def test_missing_sound_file_falls_back_to_bell(self, config, tmp_path):
        config["alarm"]["sound_file"] = str(tmp_path / "missing.wav")
        stream = io.StringIO()
        AlarmPlayer(config, stream=stream).play()
        assert stream.getvalue() == "\a"

    def test_player_failure_is_not_raised(self, config, tmp_path):
        sound = tmp_path / "alarm.wav"
        sound.write_bytes(b"RIFF")
        config["alarm"]["sound_file"] = str(sound)
        player = AlarmPlayer(config)
        with patch("whistle_core.alarm.subprocess.Popen", side_effect=FileNotFoundError("aplay")):
            player.play()
        assert not player.is_playing()


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestCookingTimer:
    def test_counts_down_and_alarms_once(self):
        clock = FakeClock()
        alarm = FakeAlarm()
        timer = CookingTimer(alarm=alarm, clock=clock)
        timer.start(0, 3)
        assert timer.format_remaining() == "00:03"

        for t in (100.5, 101.0, 102.0, 103.0, 104.0, 105.0):
            timer.tick(t)

        assert timer.remaining == 0
        assert timer.finished
        assert not timer.running
        assert alarm.plays == 1

    def test_fractional_ticks_accumulate(self):
        clock = FakeClock()
        timer = CookingTimer(clock=clock)
        timer.start(1, 0)
        for i in range(1, 9):
            timer.tick(100.0 + i * 0.25)
        assert timer.remaining == 58

    def test_pause_and_resume(self):
        clock = FakeClock()
        timer = CookingTimer(alarm=FakeAlarm(), clock=clock)
        timer.start(0, 10)
        timer.tick(102.0)
        timer.pause()
        timer.tick(150.0)
        assert timer.remaining == 8

        clock.now = 200.0
        timer.resume()
        timer.tick(201.0)
        assert timer.remaining == 7

    def test_reset(self):
        timer = CookingTimer(clock=FakeClock())
        timer.start(2, 30)
        timer.reset()
        assert timer.remaining == 0
        assert not timer.running
        assert timer.format_remaining() == "00:00"

    def test_format(self):
        timer = CookingTimer(clock=FakeClock())
        timer.start(12, 5)
        assert timer.format_remaining() == "12:05"

    @pytest.mark.parametrize("minutes,seconds", [(0, 0), (-1, 30), (0, -5)])
    def test_invalid_duration(self, minutes, seconds):
        with pytest.raises(InvalidConfigError):
            CookingTimer().start(minutes, seconds)
