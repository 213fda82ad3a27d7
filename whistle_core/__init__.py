"""
Core components of the whistle counter.

Frames flow from the producer to the session, which runs detection and
fans each frame out to the visualization sinks.
"""

from .alarm import AlarmPlayer
from .audio import AudioBlock, AudioCapture, SpectralFrameProducer
from .detector import DetectionConfig, WhistleEvent, WhistleEventDetector
from .errors import (
    WhistleCounterError,
    AcquisitionError,
    MalformedFrameError,
    InvalidConfigError,
    SessionStateError,
)
from .scheduler import TickScheduler
from .session import SessionListener, SessionStatus, WhistleCountSession
from .spectrum import (
    SpectrumAnalyser,
    SpectrumFrame,
    bin_to_frequency,
    frequency_to_bin,
    peak_in_band,
    INT16_FULL_SCALE,
)
from .timer import CookingTimer
from .visualizer import TerminalVisualizer, TextCanvas, VisualizationSink

__all__ = [
    # Alarm
    'AlarmPlayer',
    # Audio
    'AudioBlock',
    'AudioCapture',
    'SpectralFrameProducer',
    # Detector
    'DetectionConfig',
    'WhistleEvent',
    'WhistleEventDetector',
    # Errors
    'WhistleCounterError',
    'AcquisitionError',
    'MalformedFrameError',
    'InvalidConfigError',
    'SessionStateError',
    # Scheduler
    'TickScheduler',
    # Session
    'SessionListener',
    'SessionStatus',
    'WhistleCountSession',
    # Spectrum
    'SpectrumAnalyser',
    'SpectrumFrame',
    'bin_to_frequency',
    'frequency_to_bin',
    'peak_in_band',
    'INT16_FULL_SCALE',
    # Timer
    'CookingTimer',
    # Visualization
    'TerminalVisualizer',
    'TextCanvas',
    'VisualizationSink',
]
