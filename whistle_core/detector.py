"""
Whistle detection logic.

Single Responsibility: Detect whistle events in spectrum frames.
"""
from dataclasses import dataclass
from typing import Optional

from logger import get_logger

from .errors import InvalidConfigError, MalformedFrameError
from .spectrum import BYTE_MAX, SpectrumFrame, bin_to_frequency, peak_in_band

log = get_logger(__name__)


@dataclass(frozen=True)
class DetectionConfig:
    """Band, threshold and debounce policy for one session."""
    min_hz: float = 5000.0
    max_hz: float = 16000.0
    threshold: float = 180.0  # 0-255 byte magnitude scale
    debounce_ms: float = 1200.0

    def validate(self) -> None:
        """
        Raises:
            InvalidConfigError: if the band, threshold or debounce is unusable
        """
        if self.min_hz < 0 or self.max_hz <= self.min_hz:
            raise InvalidConfigError(
                f"Invalid whistle band [{self.min_hz}, {self.max_hz}] Hz: "
                f"need 0 <= min_hz < max_hz"
            )
        if not 0 <= self.threshold <= BYTE_MAX:
            raise InvalidConfigError(
                f"Threshold {self.threshold} outside 0-{BYTE_MAX}"
            )
        if self.debounce_ms < 0:
            raise InvalidConfigError(f"debounce_ms must be non-negative, got {self.debounce_ms}")


@dataclass(frozen=True)
class WhistleEvent:
    """A confirmed whistle."""
    timestamp: float  # Unix timestamp (seconds)
    peak_value: int = 0
    peak_frequency_hz: Optional[float] = None


class WhistleEventDetector:
    """
    Band-limited peak threshold with debounce.

    One sustained whistle spans many frames above threshold; the debounce
    interval collapses them into a single event.
    """

    def __init__(self, config: Optional[DetectionConfig] = None):
        """
        Initialize detector.

        Args:
            config: Default detection policy, used when process_frame()
                is called without one
        """
        self.config = config if config is not None else DetectionConfig()
        self._last_event_ms: Optional[float] = None
        self._last_peak_value = 0

    @property
    def last_event_time(self) -> Optional[float]:
        """Timestamp (seconds) of the last emitted event, if any."""
        if self._last_event_ms is None:
            return None
        return self._last_event_ms / 1000.0

    @property
    def last_peak_value(self) -> int:
        """In-band peak of the most recent well-formed frame."""
        return self._last_peak_value

    def reset(self) -> None:
        """Forget the last event (start of a new session)."""
        self._last_event_ms = None
        self._last_peak_value = 0

    def process_frame(
        self,
        frame: SpectrumFrame,
        config: Optional[DetectionConfig] = None
    ) -> Optional[WhistleEvent]:
        """
        Process one spectrum frame.

        Args:
            frame: Spectrum frame; its timestamp is used as "now"
            config: Detection policy (defaults to the detector's own)

        Returns:
            WhistleEvent if a new whistle was confirmed, None otherwise.
            Malformed frames return None and never raise.
        """
        cfg = config if config is not None else self.config

        try:
            frame.validate()
        except MalformedFrameError as e:
            log.debug(f"Skipping malformed frame: {e}")
            return None

        peak_value, peak_bin = peak_in_band(frame, cfg.min_hz, cfg.max_hz)
        self._last_peak_value = peak_value

        if peak_value <= cfg.threshold:
            return None

        now_ms = frame.timestamp * 1000.0
        if self._last_event_ms is not None and now_ms - self._last_event_ms <= cfg.debounce_ms:
            return None

        self._last_event_ms = now_ms
        peak_freq = bin_to_frequency(peak_bin, frame.sample_rate, frame.fft_size)
        log.debug(f"Whistle: peak {peak_value} at {peak_freq:.0f} Hz")
        return WhistleEvent(
            timestamp=frame.timestamp,
            peak_value=peak_value,
            peak_frequency_hz=peak_freq,
        )
