"""
Pytest configuration and shared fixtures.

This module provides:
- Common fixtures for test configuration
- Helper functions for synthetic frames and audio
- Fakes for the audio device and the alarm
"""
import sys
from pathlib import Path
from typing import Dict, List, Optional

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import config_loader
import pytest
import numpy as np

from whistle_core import (
    AudioBlock,
    DetectionConfig,
    SpectralFrameProducer,
    SpectrumAnalyser,
    SpectrumFrame,
    TickScheduler,
    WhistleCountSession,
)
from whistle_core.errors import AcquisitionError

# Test constants
TEST_SAMPLE_RATE = 44100
TEST_FFT_SIZE = 2048
TEST_BIN_COUNT = TEST_FFT_SIZE // 2
WHISTLE_BIN = 400  # ~8613 Hz at 44.1 kHz / 2048
NOISE_BIN = 50     # ~1077 Hz, below the whistle band


@pytest.fixture
def config():
    """Default configuration (no config.json)."""
    return config_loader.get_default_config()


@pytest.fixture
def detection_config():
    return DetectionConfig(min_hz=5000, max_hz=16000, threshold=180, debounce_ms=1200)


@pytest.fixture
def scheduler():
    return TickScheduler()


@pytest.fixture
def fake_capture():
    return FakeCapture()


@pytest.fixture
def alarm():
    return FakeAlarm()


@pytest.fixture
def producer(config, scheduler, fake_capture):
    # No smoothing so each block is judged on its own
    analyser = SpectrumAnalyser(fft_size=TEST_FFT_SIZE, smoothing_time_constant=0.0)
    return SpectralFrameProducer(config, scheduler, capture=fake_capture, analyser=analyser)


@pytest.fixture
def session(producer, detection_config, alarm):
    return WhistleCountSession(producer, detection_config, alarm=alarm)


# Helper functions for test data creation

def make_frame(
    peaks: Optional[Dict[int, int]] = None,
    timestamp: float = 0.0,
    sample_rate: int = TEST_SAMPLE_RATE,
    fft_size: int = TEST_FFT_SIZE,
    floor: int = 0
) -> SpectrumFrame:
    """
    Build a spectrum frame with given bin magnitudes.

    Args:
        peaks: Mapping of bin index -> magnitude (0-255)
        timestamp: Frame timestamp in seconds
        sample_rate: Sample rate in Hz
        fft_size: FFT size (bin count is fft_size // 2)
        floor: Magnitude of every other bin
    """
    magnitudes = [floor] * (fft_size // 2)
    for index, value in (peaks or {}).items():
        magnitudes[index] = value
    return SpectrumFrame(tuple(magnitudes), sample_rate, fft_size, timestamp)


def make_sine(
    frequency: float,
    amplitude: float = 0.5,
    n_samples: int = TEST_FFT_SIZE,
    sample_rate: int = TEST_SAMPLE_RATE
) -> np.ndarray:
    """Float32 sine block in [-1.0, 1.0]."""
    t = np.arange(n_samples) / sample_rate
    return (np.sin(2 * np.pi * frequency * t) * amplitude).astype(np.float32)


class FakeCapture:
    """Stands in for AudioCapture: serves pre-loaded blocks."""

    def __init__(self, blocks: Optional[List[np.ndarray]] = None, fail_with: Optional[str] = None,
                 step_sec: float = 0.5):
        self.blocks = list(blocks or [])
        self.fail_with = fail_with
        self.step_sec = step_sec
        self.started = 0
        self.stopped = 0
        self.open = False
        self._time = 1000.0

    def start(self) -> None:
        self.started += 1
        if self.fail_with:
            raise AcquisitionError(self.fail_with)
        self.open = True

    def read_block(self) -> Optional[AudioBlock]:
        if not self.blocks:
            return None
        self._time += self.step_sec
        return AudioBlock(self.blocks.pop(0), TEST_SAMPLE_RATE, self._time)

    def stop(self) -> None:
        self.stopped += 1
        self.open = False


class FakeAlarm:
    def __init__(self):
        self.plays = 0

    def play(self) -> None:
        self.plays += 1
