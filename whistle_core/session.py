"""
Whistle counting session.

Single Responsibility: Count whistles toward a target and own the
producer's lifecycle while listening.
"""
import enum
from typing import Iterable, List, Optional

from logger import get_logger

from .audio import SpectralFrameProducer
from .detector import DetectionConfig, WhistleEvent, WhistleEventDetector
from .errors import AcquisitionError, InvalidConfigError, SessionStateError
from .spectrum import SpectrumFrame
from .visualizer import VisualizationSink

log = get_logger(__name__)


class SessionStatus(enum.Enum):
    IDLE = "idle"
    LISTENING = "listening"
    COMPLETED = "completed"


class SessionListener:
    """Receives session notifications. Override what you need."""

    def whistle_detected(self, event: WhistleEvent, count: int, target: int) -> None:
        pass

    def session_completed(self, count: int) -> None:
        pass

    def session_stopped(self) -> None:
        pass


class WhistleCountSession:
    """
    Idle -> Listening -> Completed state machine.

    Single Responsibility: Session state. The alarm fires exactly once per
    session, at the transition into Completed.
    """

    def __init__(
        self,
        producer: SpectralFrameProducer,
        detection_config: DetectionConfig,
        alarm=None,
        listeners: Optional[Iterable[SessionListener]] = None,
        sinks: Optional[Iterable[VisualizationSink]] = None
    ):
        """
        Initialize session controller.

        Args:
            producer: Frame producer; started and stopped by this session
            detection_config: Band/threshold/debounce policy
            alarm: Object with a play() method, or None for no alarm
            listeners: SessionListener instances to notify
            sinks: Visualization sinks fed with every frame
        """
        self.producer = producer
        self.detection_config = detection_config
        self.alarm = alarm
        self.listeners: List[SessionListener] = list(listeners or [])
        self.sinks: List[VisualizationSink] = list(sinks or [])

        # State
        self._status = SessionStatus.IDLE
        self._target = 0
        self._count = 0
        self._detector: Optional[WhistleEventDetector] = None
        self._alarm_raised = False

        self.producer.on_frame(self.on_frame)

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def count(self) -> int:
        return self._count

    @property
    def target(self) -> int:
        return self._target

    @property
    def detector(self) -> Optional[WhistleEventDetector]:
        """Detector of the active session (None when idle)."""
        return self._detector

    def start_session(self, target: int) -> None:
        """
        Begin listening for whistles.

        Args:
            target: Number of whistles after which the alarm sounds

        Raises:
            InvalidConfigError: bad target or detection config (no device
                access has happened)
            SessionStateError: already listening
            AcquisitionError: microphone unavailable; session is left Idle
        """
        if isinstance(target, bool) or not isinstance(target, int) or target < 1:
            raise InvalidConfigError(f"Target whistle count must be an integer >= 1, got {target!r}")
        self.detection_config.validate()

        if self._status is SessionStatus.LISTENING:
            raise SessionStateError("Session is already listening; stop it first")

        self._target = target
        self._count = 0
        self._alarm_raised = False
        self._detector = WhistleEventDetector(self.detection_config)
        self._status = SessionStatus.LISTENING

        try:
            self.producer.start()
        except AcquisitionError:
            log.error("Could not access the microphone", exc_info=True)
            self._reset_state()
            raise

        log.info(f"Listening for {target} whistle(s) "
                 f"({self.detection_config.min_hz:.0f}-{self.detection_config.max_hz:.0f} Hz, "
                 f"threshold {self.detection_config.threshold:.0f})")

    def on_frame(self, frame: SpectrumFrame) -> None:
        """Per-tick step: detect, update the session, then render."""
        if self._status is SessionStatus.LISTENING and self._detector is not None:
            event = self._detector.process_frame(frame)
            if event is not None:
                self.on_whistle_event(event)

        for sink in self.sinks:
            try:
                sink.render(frame)
            except Exception as e:
                log.error(f"Visualization failed: {e}")

    def on_whistle_event(self, event: WhistleEvent) -> None:
        """Count a confirmed whistle. Ignored unless listening."""
        if self._status is not SessionStatus.LISTENING:
            log.debug(f"Ignoring whistle in state {self._status.value}")
            return

        self._count += 1
        log.info(f"Whistle {self._count}/{self._target} "
                 f"(peak {event.peak_value})")
        for listener in self.listeners:
            listener.whistle_detected(event, self._count, self._target)

        if self._count >= self._target:
            self._complete()

    def _complete(self) -> None:
        self._status = SessionStatus.COMPLETED
        self.producer.stop()
        if not self._alarm_raised:
            self._alarm_raised = True
            if self.alarm is not None:
                self.alarm.play()
        log.info(f"Target reached: {self._count} whistle(s)")
        for listener in self.listeners:
            listener.session_completed(self._count)

    def stop_session(self) -> None:
        """Stop listening (or dismiss a completed session) and return to Idle."""
        if self._status is SessionStatus.IDLE:
            return

        self.producer.stop()
        self._reset_state()
        log.info("Session stopped")
        for listener in self.listeners:
            listener.session_stopped()

    def _reset_state(self) -> None:
        self._status = SessionStatus.IDLE
        self._count = 0
        self._target = 0
        self._detector = None
