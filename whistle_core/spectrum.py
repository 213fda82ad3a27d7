"""
Spectrum frames and the byte-magnitude analyser.

Single Responsibility: Turn blocks of PCM samples into per-bin magnitudes.
"""
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .errors import MalformedFrameError

# Constant for int16 to float32 conversion (2^15)
INT16_FULL_SCALE = 32768.0

BYTE_MAX = 255


def bin_to_frequency(bin_index: int, sample_rate: int, fft_size: int) -> float:
    """Centre frequency in Hz of an FFT bin."""
    return bin_index * sample_rate / fft_size


def frequency_to_bin(freq_hz: float, sample_rate: int, fft_size: int) -> int:
    """Index of the first bin whose frequency is >= freq_hz."""
    return int(math.ceil(freq_hz * fft_size / sample_rate))


@dataclass(frozen=True)
class SpectrumFrame:
    """One instantaneous magnitude spectrum."""
    magnitudes: Tuple[int, ...]  # 0-255 per bin, frequency ordered
    sample_rate: int
    fft_size: int
    timestamp: float = 0.0  # Unix timestamp (seconds)

    def __post_init__(self):
        # Accept any sequence (lists, numpy arrays) but store a tuple
        if not isinstance(self.magnitudes, tuple):
            try:
                object.__setattr__(self, "magnitudes", tuple(self.magnitudes))
            except TypeError:
                pass  # not iterable; validate() reports it

    @property
    def bin_count(self) -> int:
        if not isinstance(self.magnitudes, tuple):
            return 0
        return len(self.magnitudes)

    @property
    def bin_width_hz(self) -> float:
        """Frequency spacing between adjacent bins."""
        return self.sample_rate / self.fft_size

    def validate(self) -> None:
        """
        Check the frame is usable.

        Raises:
            MalformedFrameError: if the frame is empty or inconsistent
        """
        if not isinstance(self.magnitudes, tuple):
            raise MalformedFrameError(
                f"Magnitudes must be a sequence, got {type(self.magnitudes).__name__}"
            )
        if len(self.magnitudes) == 0:
            raise MalformedFrameError("Spectrum frame has no bins")
        try:
            geometry_ok = self.sample_rate > 0 and self.fft_size > 0
        except TypeError:
            geometry_ok = False
        if not geometry_ok:
            raise MalformedFrameError(
                f"Invalid frame geometry: sample_rate={self.sample_rate}, "
                f"fft_size={self.fft_size}"
            )
        if len(self.magnitudes) != self.fft_size // 2:
            raise MalformedFrameError(
                f"Frame has {len(self.magnitudes)} bins, "
                f"expected {self.fft_size // 2} for fft_size={self.fft_size}"
            )
        for value in self.magnitudes:
            try:
                usable = math.isfinite(value) and value >= 0
            except (TypeError, ValueError):
                usable = False
            if not usable:
                raise MalformedFrameError(f"Invalid magnitude in frame: {value!r}")

    @classmethod
    def from_array(
        cls,
        magnitudes: np.ndarray,
        sample_rate: int,
        fft_size: int,
        timestamp: float = 0.0
    ) -> "SpectrumFrame":
        """Build an immutable frame from a numpy magnitude array."""
        return cls(
            magnitudes=tuple(int(v) for v in np.asarray(magnitudes).ravel()),
            sample_rate=sample_rate,
            fft_size=fft_size,
            timestamp=timestamp,
        )


class SpectrumAnalyser:
    """
    Byte frequency analyser.

    Produces the same kind of data as a browser AnalyserNode's
    byte frequency output: a Blackman-windowed FFT, smoothed over time,
    converted to dB and mapped from [min_decibels, max_decibels] onto 0-255.
    """

    def __init__(
        self,
        fft_size: int = 2048,
        smoothing_time_constant: float = 0.8,
        min_decibels: float = -100.0,
        max_decibels: float = -30.0
    ):
        """
        Initialize analyser.

        Args:
            fft_size: Samples per analysis window (power of two)
            smoothing_time_constant: Weight of the previous frame (0 disables)
            min_decibels: dB value mapped to 0
            max_decibels: dB value mapped to 255
        """
        if fft_size < 32 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two >= 32, got {fft_size}")
        if not 0.0 <= smoothing_time_constant <= 1.0:
            raise ValueError("smoothing_time_constant must be between 0 and 1")
        if min_decibels >= max_decibels:
            raise ValueError("min_decibels must be lower than max_decibels")

        self.fft_size = fft_size
        self.smoothing_time_constant = smoothing_time_constant
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels
        self._window = np.blackman(fft_size).astype(np.float32)
        self._previous: Optional[np.ndarray] = None

    @property
    def bin_count(self) -> int:
        return self.fft_size // 2

    def reset(self) -> None:
        """Forget smoothing history (call between sessions)."""
        self._previous = None

    def magnitudes(self, samples: np.ndarray) -> np.ndarray:
        """
        Smoothed linear magnitude per bin.

        Args:
            samples: Exactly fft_size float samples in [-1.0, 1.0]

        Returns:
            float array of length fft_size // 2
        """
        samples = np.asarray(samples, dtype=np.float32)
        if samples.shape != (self.fft_size,):
            raise ValueError(
                f"Expected {self.fft_size} samples, got shape {samples.shape}"
            )

        spectrum = np.abs(np.fft.rfft(samples * self._window))[:self.bin_count]
        spectrum = spectrum / self.fft_size

        tau = self.smoothing_time_constant
        if self._previous is not None and tau > 0:
            spectrum = tau * self._previous + (1.0 - tau) * spectrum
        self._previous = spectrum
        return spectrum

    def byte_frequency_data(self, samples: np.ndarray) -> np.ndarray:
        """
        Byte-scaled magnitudes for one block of samples.

        Returns:
            uint8 array of length fft_size // 2
        """
        spectrum = self.magnitudes(samples)
        db = 20 * np.log10(spectrum + 1e-12)
        scale = BYTE_MAX / (self.max_decibels - self.min_decibels)
        scaled = (db - self.min_decibels) * scale
        return np.clip(np.floor(scaled), 0, BYTE_MAX).astype(np.uint8)

    def analyse(self, samples: np.ndarray, sample_rate: int, timestamp: float) -> SpectrumFrame:
        """Analyse one block and wrap the result as a SpectrumFrame."""
        return SpectrumFrame.from_array(
            self.byte_frequency_data(samples),
            sample_rate=sample_rate,
            fft_size=self.fft_size,
            timestamp=timestamp,
        )


def peak_in_band(frame: SpectrumFrame, min_hz: float, max_hz: float) -> Tuple[int, Optional[int]]:
    """
    Largest magnitude within [min_hz, max_hz].

    Bins are scanned in increasing frequency; the scan stops at the first
    bin above max_hz.

    Returns:
        Tuple of (peak_value, peak_bin) - peak_bin is None if no bin in band
        exceeded zero
    """
    peak_value = 0
    peak_bin = None
    for i, value in enumerate(frame.magnitudes):
        freq = bin_to_frequency(i, frame.sample_rate, frame.fft_size)
        if freq < min_hz:
            continue
        if freq > max_hz:
            break
        if value > peak_value:
            peak_value = value
            peak_bin = i
    return peak_value, peak_bin
