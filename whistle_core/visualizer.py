"""
Real-time spectrum bar visualization.

Single Responsibility: Draw frames. Read-only consumer, never touches
detection state.
"""
import math
import sys
from typing import List, Optional, TextIO

from logger import get_logger

from .errors import MalformedFrameError
from .spectrum import BYTE_MAX, SpectrumFrame

log = get_logger(__name__)


class TextCanvas:
    """Character grid drawn bottom-up, one column per bar."""

    FILL = "█"
    EMPTY = " "

    def __init__(self, width: int, height: int):
        self.width = max(0, int(width))
        self.height = max(0, int(height))
        self.clear()

    @property
    def is_drawable(self) -> bool:
        return self.width > 0 and self.height > 0

    def clear(self) -> None:
        self._rows: List[List[str]] = [
            [self.EMPTY] * self.width for _ in range(self.height)
        ]

    def fill_bar(self, x: int, bar_height: int) -> None:
        """Fill column x from the bottom up to bar_height cells."""
        if not 0 <= x < self.width:
            return
        bar_height = max(0, min(self.height, bar_height))
        for row in range(self.height - bar_height, self.height):
            self._rows[row][x] = self.FILL

    def lines(self) -> List[str]:
        return ["".join(row) for row in self._rows]

    def to_text(self) -> str:
        return "\n".join(self.lines())


class VisualizationSink:
    """
    Bar renderer for spectrum frames.

    Bins are grouped when there are more bins than columns; each bar shows
    the loudest bin of its group.
    """

    def __init__(self, canvas: Optional[TextCanvas] = None):
        self.canvas = canvas
        self._latest: Optional[SpectrumFrame] = None

    @property
    def latest_frame(self) -> Optional[SpectrumFrame]:
        return self._latest

    def render(self, frame: SpectrumFrame) -> None:
        """Draw one frame. Missing or zero-sized canvas is a no-op."""
        canvas = self.canvas
        if canvas is None or not canvas.is_drawable:
            return

        canvas.clear()
        if frame.bin_count == 0:
            return
        try:
            frame.validate()
        except MalformedFrameError as e:
            log.debug(f"Not drawing malformed frame: {e}")
            return

        self._latest = frame
        magnitudes = frame.magnitudes
        group = max(1, math.ceil(len(magnitudes) / canvas.width))

        for x, start in enumerate(range(0, len(magnitudes), group)):
            level = max(magnitudes[start:start + group]) / BYTE_MAX
            canvas.fill_bar(x, int(round(level * canvas.height)))


class TerminalVisualizer(VisualizationSink):
    """Redraws the canvas in place on an ANSI terminal."""

    def __init__(self, width: int, height: int, stream: TextIO = sys.stdout):
        super().__init__(TextCanvas(width, height))
        self.stream = stream
        self._drawn_lines = 0

    def render(self, frame: SpectrumFrame) -> None:
        super().render(frame)
        if self.canvas is None or not self.canvas.is_drawable:
            return
        if self._drawn_lines:
            # Move cursor back to the top of the previous drawing
            self.stream.write(f"\033[{self._drawn_lines}F")
        text = self.canvas.to_text()
        self.stream.write(text + "\n")
        self.stream.flush()
        self._drawn_lines = self.canvas.height
