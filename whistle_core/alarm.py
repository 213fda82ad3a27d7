"""
Alarm sound trigger.

Single Responsibility: Fire the alarm sound. Playback itself belongs to
aplay (or the terminal).
"""
import subprocess
import sys
from pathlib import Path
from typing import Optional, TextIO

from logger import get_logger

log = get_logger(__name__)


class AlarmPlayer:
    """
    Plays a single alarm sound without blocking the tick loop.

    Failures are logged and swallowed: a broken speaker must not end a
    whistle session.
    """

    def __init__(self, config: dict, stream: TextIO = sys.stdout):
        """
        Initialize alarm player.

        Args:
            config: Configuration dictionary with alarm settings
            stream: Where the terminal bell is written when no sound file
                is configured
        """
        alarm_config = config.get("alarm", {})
        sound_file = alarm_config.get("sound_file")
        self.sound_file: Optional[Path] = Path(sound_file) if sound_file else None
        self.player = alarm_config.get("player", "aplay")
        self.stream = stream
        self._process: Optional[subprocess.Popen] = None
        self.play_count = 0

    def play(self) -> None:
        """Start the alarm sound (restarting it if already playing)."""
        self.play_count += 1
        self.stop()

        if self.sound_file is None:
            log.info("ALARM (terminal bell)")
            self.stream.write("\a")
            self.stream.flush()
            return

        if not self.sound_file.exists():
            log.error(f"Alarm sound file not found: {self.sound_file}")
            self.stream.write("\a")
            self.stream.flush()
            return

        cmd = [self.player, "-q", str(self.sound_file)]
        try:
            self._process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL
            )
            log.info(f"ALARM playing {self.sound_file}")
        except OSError as e:
            log.error(f"Failed to play alarm. Command: {' '.join(cmd)}. Error: {e}")
            self._process = None

    def is_playing(self) -> bool:
        if self._process is None:
            return False
        return self._process.poll() is None

    def stop(self) -> None:
        """Stop a running alarm. Safe to call when nothing is playing."""
        if self._process is None:
            return

        process = self._process
        self._process = None
        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=0.5)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()
