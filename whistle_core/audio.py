"""
Audio capture and spectral frame production.

Single Responsibility: Handle audio input from hardware and turn it into
spectrum frames at a fixed cadence.
"""
import subprocess
import time
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from logger import get_logger

from .errors import AcquisitionError
from .scheduler import TickScheduler
from .spectrum import INT16_FULL_SCALE, SpectrumAnalyser, SpectrumFrame

log = get_logger(__name__)

FrameCallback = Callable[[SpectrumFrame], None]

_ERROR_HINTS = {
    "Device or resource busy": "Audio device is in use by another process. Check with 'fuser -v /dev/snd/*'",
    "No such file or directory": "Audio device '{device}' not found. Check with 'arecord -l'",
    "Permission denied": "No permission to access audio device. Add user to audio group: 'sudo usermod -a -G audio $USER'",
    "Invalid argument": "Invalid audio device or format. Device: {device}, Format: {sample_format}",
}


@dataclass
class AudioBlock:
    """One block of mono samples read from the device."""
    samples: np.ndarray  # Normalized float32 samples [-1.0, 1.0]
    sample_rate: int
    timestamp: float  # Unix timestamp

    @property
    def duration_sec(self) -> float:
        """Duration of block in seconds."""
        return len(self.samples) / self.sample_rate


class AudioCapture:
    """
    Handles audio capture from ALSA arecord.

    Single Responsibility: Audio I/O operations.
    """

    # Raw stream is decoded as little-endian int16 only
    SAMPLE_FORMAT = "S16_LE"
    BYTES_PER_SAMPLE = 2
    STARTUP_GRACE_SEC = 0.1

    def __init__(self, config: dict):
        """
        Initialize audio capture.

        Args:
            config: Configuration dictionary with audio settings
        """
        self.config = config
        self.audio_config = config["audio"]
        self.device = self.audio_config["device"]
        self.sample_rate = self.audio_config["sample_rate"]
        self.channels = self.audio_config["channels"]
        self.sample_format = self.audio_config["sample_format"]
        self.block_samples = self.audio_config["fft_size"]
        self.block_bytes = self.block_samples * self.BYTES_PER_SAMPLE * self.channels

        self._process: Optional[subprocess.Popen] = None

    def _command(self) -> list:
        return [
            "arecord",
            "-D", self.device,
            "-f", self.sample_format,
            "-r", str(self.sample_rate),
            "-c", str(self.channels),
            "-q",
            "-t", "raw"
        ]

    def start(self) -> None:
        """
        Start audio capture process.

        Raises:
            AcquisitionError: if the device cannot be opened
        """
        if self._process is not None:
            raise AcquisitionError("Audio capture already started")

        if not self.device or not isinstance(self.device, str):
            raise AcquisitionError(
                f"Invalid audio device configuration: {self.device!r}. "
                f"Expected string like 'default' or 'plughw:CARD=Device,DEV=0'"
            )

        if self.sample_format != self.SAMPLE_FORMAT:
            raise AcquisitionError(
                f"Unsupported sample format {self.sample_format!r}. "
                f"Only {self.SAMPLE_FORMAT} is supported"
            )

        cmd = self._command()
        try:
            self._process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE
            )
        except FileNotFoundError:
            raise AcquisitionError(
                "arecord command not found. Install alsa-utils: "
                "sudo apt-get install alsa-utils"
            )
        except OSError as e:
            raise AcquisitionError(
                f"Failed to start arecord process. Command: {' '.join(cmd)}. Error: {e}"
            )

        # Give process a moment to fail on a bad device
        time.sleep(self.STARTUP_GRACE_SEC)

        if self._process.poll() is not None:
            stderr_msg = ""
            if self._process.stderr:
                stderr_msg = self._process.stderr.read().decode(errors="ignore").strip()
            self._process = None
            raise AcquisitionError(
                f"arecord failed to start. Device: {self.device}. "
                f"Error: {stderr_msg}.{self._hint_for(stderr_msg)}"
            )

        log.info(f"Audio capture started on {self.device} "
                 f"({self.sample_rate} Hz, {self.channels} ch)")

    def _hint_for(self, stderr_msg: str) -> str:
        for key, msg in _ERROR_HINTS.items():
            if key in stderr_msg:
                hint = msg.format(device=self.device, sample_format=self.sample_format)
                return f" Hint: {hint}"
        return ""

    def read_block(self) -> Optional[AudioBlock]:
        """
        Read the next analysis block.

        Returns:
            AudioBlock or None if stream ended
        """
        if self._process is None:
            raise AcquisitionError("Audio capture not started")

        if self._process.stdout is None:
            return None

        data = self._process.stdout.read(self.block_bytes)

        if not data or len(data) < self.block_bytes:
            return None

        samples = np.frombuffer(data, dtype="<i2")  # little-endian int16
        float_samples = samples.astype(np.float32) / INT16_FULL_SCALE

        # Down-mix interleaved channels to mono
        if self.channels > 1:
            float_samples = float_samples.reshape(-1, self.channels).mean(axis=1)

        return AudioBlock(
            samples=float_samples,
            sample_rate=self.sample_rate,
            timestamp=time.time()
        )

    def is_running(self) -> bool:
        """Check if capture process is still running."""
        if self._process is None:
            return False
        return self._process.poll() is None

    def stop(self) -> None:
        """Stop audio capture process. Safe to call repeatedly."""
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
        log.info("Audio capture stopped")

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.stop()


class SpectralFrameProducer:
    """
    Emits a SpectrumFrame on every scheduler tick while started.

    Single Responsibility: Own the device between start() and stop() and
    feed analysed frames to one registered callback.
    """

    def __init__(
        self,
        config: dict,
        scheduler: TickScheduler,
        capture: Optional[AudioCapture] = None,
        analyser: Optional[SpectrumAnalyser] = None
    ):
        """
        Initialize producer.

        Args:
            config: Configuration dictionary
            scheduler: Tick scheduler driving frame production
            capture: Audio source (defaults to AudioCapture(config))
            analyser: Spectrum analyser (defaults to one built from config)
        """
        audio = config["audio"]
        self.scheduler = scheduler
        self.capture = capture if capture is not None else AudioCapture(config)
        self.analyser = analyser if analyser is not None else SpectrumAnalyser(
            fft_size=audio["fft_size"],
            smoothing_time_constant=audio["smoothing_time_constant"],
            min_decibels=audio["min_decibels"],
            max_decibels=audio["max_decibels"],
        )
        self.sample_rate = audio["sample_rate"]

        self._callback: Optional[FrameCallback] = None
        self._tick_handle: Optional[int] = None
        self._running = False
        self._frames_emitted = 0

    def on_frame(self, callback: Optional[FrameCallback]) -> None:
        """Register the callback that receives every frame."""
        self._callback = callback

    @property
    def running(self) -> bool:
        return self._running

    @property
    def frames_emitted(self) -> int:
        return self._frames_emitted

    def start(self) -> None:
        """
        Acquire the audio device and begin producing frames.

        Raises:
            AcquisitionError: if the device is unavailable or denied
        """
        if self._running:
            return

        try:
            self.capture.start()
        except AcquisitionError:
            self.capture.stop()
            raise

        self.analyser.reset()
        self._frames_emitted = 0
        self._running = True
        self._tick_handle = self.scheduler.request_tick(self._tick)

    def stop(self) -> None:
        """Cancel the pending tick and release the device. Idempotent."""
        was_running = self._running
        self._running = False
        self.scheduler.cancel(self._tick_handle)
        self._tick_handle = None
        self.capture.stop()
        if was_running:
            log.debug(f"Frame producer stopped after {self._frames_emitted} frames")

    def _tick(self) -> None:
        self._tick_handle = None
        if not self._running:
            return

        block = self.capture.read_block()
        if block is None:
            log.warning("Audio stream ended")
            self.stop()
            return

        frame = self.analyser.analyse(block.samples, self.sample_rate, block.timestamp)
        self._frames_emitted += 1

        if self._callback is not None:
            try:
                self._callback(frame)
            except Exception:
                log.error("Frame callback failed, stopping producer")
                self.stop()
                raise

        # The callback may have stopped us (session completed)
        if self._running:
            self._tick_handle = self.scheduler.request_tick(self._tick)
