"""
Text measurement for the speech bubble.

The layout only needs two things from a font: the pixel width of a
string and the height of a line. Wrapping is done here with a greedy
word wrapper so the lines we measure are exactly the lines we draw.
"""

from abc import ABC, abstractmethod
from typing import Callable

from .geometry import Size


def _break_word(word: str, max_width: float, width_of: Callable[[str], float]) -> list[str]:
    """Split a word wider than max_width into chunks that fit."""
    chunks = []
    current = ""
    for char in word:
        if current and width_of(current + char) > max_width:
            chunks.append(current)
            current = char
        else:
            current += char
    if current:
        chunks.append(current)
    return chunks


def wrap_text(text: str, max_width: float, width_of: Callable[[str], float]) -> list[str]:
    """
    Greedy word wrap.

    Explicit newlines are kept, words wider than the limit are broken
    by character. Always returns at least one (possibly empty) line.
    """
    lines: list[str] = []
    for paragraph in text.split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue

        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if width_of(candidate) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            if width_of(word) <= max_width:
                current = word
            else:
                *full, current = _break_word(word, max_width, width_of)
                lines.extend(full)
        lines.append(current)
    return lines


class TextMeasurer(ABC):
    """Measures text for a single font."""

    @abstractmethod
    def width_of(self, text: str) -> float:
        """Pixel width of a single line."""

    @property
    @abstractmethod
    def line_height(self) -> float:
        """Pixel height of one line, including leading."""

    def wrap(self, text: str, max_width: float) -> list[str]:
        return wrap_text(text, max_width, self.width_of)

    def measure(self, text: str, max_width: float) -> Size:
        lines = self.wrap(text, max_width)
        width = max((self.width_of(line) for line in lines), default=0.0)
        return Size(width, len(lines) * self.line_height)

    def measure_no_wrap(self, text: str) -> Size:
        lines = text.split("\n")
        width = max((self.width_of(line) for line in lines), default=0.0)
        return Size(width, len(lines) * self.line_height)


class MonospaceMeasurer(TextMeasurer):
    """Fixed advance per character. Used headless and in tests."""

    def __init__(self, char_width: float = 7.0, line_height: float = 16.0):
        self.char_width = char_width
        self._line_height = line_height

    def width_of(self, text: str) -> float:
        return len(text) * self.char_width

    @property
    def line_height(self) -> float:
        return self._line_height


class TkTextMeasurer(TextMeasurer):
    """Exact metrics of the tkinter font used to draw the bubble."""

    def __init__(self, font):
        self.font = font
        self._widths: dict[str, float] = {}
        self._line_height = float(font.metrics("linespace"))

    def width_of(self, text: str) -> float:
        width = self._widths.get(text)
        if width is None:
            width = float(self.font.measure(text))
            if len(self._widths) > 4096:
                self._widths.clear()
            self._widths[text] = width
        return width

    @property
    def line_height(self) -> float:
        return self._line_height
