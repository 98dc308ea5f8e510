"""
Speech bubble placement.

Places the bubble beside the anchor image, never on top of it:

1. Turn "N characters per line" into a pixel upper bound ("W" * N)
2. Measure the free space left and right of the anchor
3. Pick a side (preferred side first, a side must offer at least
   MIN_USABLE_WIDTH + gap to count as viable)
4. Wrap the text to fit that side and measure it exactly
5. Size the frame from the measured text, extra content scrolls
6. Center vertically on the anchor, shift into the screen
7. If the result still overlaps the anchor, flip sides once

Layout failures are never fatal: the best effort is returned with
ok=False and a warning in the log.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .geometry import Point, Rect
from .text_metrics import TextMeasurer

logger = logging.getLogger(__name__)

MIN_USABLE_WIDTH = 120.0
PADDING = 12.0
TAIL_LENGTH = 10.0
SCREEN_MARGIN = 5.0


class Side(str, Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def opposite(self) -> "Side":
        return Side.RIGHT if self is Side.LEFT else Side.LEFT


@dataclass(frozen=True)
class Placement:
    """
    Result of one layout pass.

    Attributes:
        rect: Visible bubble frame (screen coordinates)
        side: Side of the anchor the bubble sits on
        wrap_width: Width the text was wrapped at
        lines: Wrapped text lines, in drawing order
        line_height: Height of one line in pixels
        content_height: Height of the full text block
        scrollable: True when the text is taller than the visible area
        tail: Three points of the pointer triangle, facing the anchor
        ok: False when overlap with the anchor could not be avoided
    """
    rect: Rect
    side: Side
    wrap_width: float
    lines: tuple[str, ...]
    line_height: float
    content_height: float
    scrollable: bool
    tail: tuple[Point, Point, Point]
    ok: bool = True
    padding: float = field(default=PADDING, repr=False)

    @property
    def content_rect(self) -> Rect:
        return self.rect.shrink(self.padding)

    @property
    def visible_line_count(self) -> int:
        if self.line_height <= 0:
            return len(self.lines)
        return max(1, int(self.content_rect.height // self.line_height))

    @property
    def max_scroll(self) -> int:
        """Largest first-line index that still fills the visible area."""
        return max(0, len(self.lines) - self.visible_line_count)

    def visible_lines(self, scroll: int) -> tuple[str, ...]:
        start = min(max(scroll, 0), self.max_scroll)
        return self.lines[start:start + self.visible_line_count]


def choose_side(
    space_left: float,
    space_right: float,
    gap: float,
    prefer_left: bool,
    min_width: float = MIN_USABLE_WIDTH,
) -> tuple[Side, bool]:
    """
    Pick the bubble side.

    Returns (side, viable). When neither side is viable the larger one
    is forced (ties go right) and viable is False.
    """
    required = min_width + gap
    left_ok = space_left >= required
    right_ok = space_right >= required

    if prefer_left and left_ok and (space_left >= space_right or not right_ok):
        return Side.LEFT, True
    if not prefer_left and left_ok and space_left > space_right:
        return Side.LEFT, True
    if right_ok:
        return Side.RIGHT, True
    if left_ok:
        return Side.LEFT, True
    return (Side.LEFT if space_left > space_right else Side.RIGHT), False


def _x_for_side(side: Side, anchor: Rect, width: float, gap: float) -> float:
    if side is Side.LEFT:
        return anchor.min_x - gap - width
    return anchor.max_x + gap


def _clamp_y(y: float, height: float, screen: Rect) -> float:
    if y < screen.min_y:
        y = screen.min_y + SCREEN_MARGIN
    if y + height > screen.max_y:
        y = screen.max_y - height - SCREEN_MARGIN
    # Taller than the screen minus margins: pin to the top edge
    if y < screen.min_y:
        y = screen.min_y
    return y


def _clamp_x(x: float, width: float, screen: Rect) -> float:
    """Shift (never resize) a frame that sticks out of the screen sideways."""
    if x + width > screen.max_x:
        x = screen.max_x - width
    if x < screen.min_x:
        x = screen.min_x
    return x


def resolve_position(
    anchor: Rect,
    screen: Rect,
    side: Side,
    width: float,
    height: float,
    gap: float,
) -> tuple[Rect, Side, bool]:
    """
    Put a frame of the given size beside the anchor.

    The frame starts flush against `side` with `gap` separation,
    vertically centered on the anchor, and is shifted into the screen.
    If it then covers the anchor the other side is tried once. Returns
    (rect, side, ok), ok is False when both sides overlap.
    """
    _, anchor_cy = anchor.center
    y = _clamp_y(anchor_cy - height / 2, height, screen)

    def frame_on(s: Side) -> Rect:
        x = _clamp_x(_x_for_side(s, anchor, width, gap), width, screen)
        return Rect.from_min_size(x, y, width, height)

    rect = frame_on(side)
    if not rect.intersects(anchor):
        return rect, side, True

    flipped = frame_on(side.opposite)
    if not flipped.intersects(anchor):
        logger.debug(f"Bubble covered the anchor on the {side.value}, moved to the {side.opposite.value}")
        return flipped, side.opposite, True

    logger.warning(f"Bubble layout impossible: {flipped} overlaps anchor {anchor}")
    return flipped, side.opposite, False


def tail_points(rect: Rect, side: Side, length: float = TAIL_LENGTH) -> tuple[Point, Point, Point]:
    """Pointer triangle on the bubble edge that faces the anchor."""
    _, cy = rect.center
    if side is Side.LEFT:
        # bubble on the left -> tail points right, towards the anchor
        x = rect.max_x
        return (x, cy), (x + length * 0.7, cy), (x + length, cy + length * 0.5)
    x = rect.min_x
    return (x, cy), (x - length * 0.7, cy), (x - length, cy + length * 0.5)


class BubbleLayout:
    """
    Stateless solver with a one-entry memo.

    The placement is recomputed whenever any input changes (the anchor
    is dragged, the text or the screen changes) and reused otherwise.
    """

    def __init__(
        self,
        measurer: TextMeasurer,
        padding: float = PADDING,
        min_usable_width: float = MIN_USABLE_WIDTH,
    ):
        self.measurer = measurer
        self.padding = padding
        self.min_usable_width = min_usable_width
        self._last_key: Optional[tuple] = None
        self._last: Optional[Placement] = None

    @property
    def last(self) -> Optional[Placement]:
        """Most recent placement, used for hit-testing bubble buttons."""
        return self._last

    def place(
        self,
        anchor: Rect,
        screen: Rect,
        text: str,
        max_chars_per_line: int,
        max_height: float,
        gap: float,
        prefer_left: bool,
    ) -> Placement:
        key = (anchor, screen, text, max_chars_per_line, max_height, gap, prefer_left)
        if key == self._last_key and self._last is not None:
            return self._last

        placement = self._solve(anchor, screen, text, max_chars_per_line, max_height, gap, prefer_left)
        self._last_key = key
        self._last = placement
        return placement

    def _solve(
        self,
        anchor: Rect,
        screen: Rect,
        text: str,
        max_chars_per_line: int,
        max_height: float,
        gap: float,
        prefer_left: bool,
    ) -> Placement:
        pad = self.padding
        floor = self.min_usable_width

        # 1) "N characters" -> pixels, an upper bound on the wrap width
        target_width = self.measurer.measure_no_wrap("W" * max(1, max_chars_per_line)).width

        # 2) free space on each side of the anchor
        space_left = max(0.0, anchor.min_x - screen.min_x - gap)
        space_right = max(0.0, screen.max_x - anchor.max_x - gap)

        # 3-4) side selection
        side, viable = choose_side(space_left, space_right, gap, prefer_left, floor)
        if not viable:
            logger.warning(
                f"No side has {floor + gap:.0f}px free (left={space_left:.0f}, right={space_right:.0f}), "
                f"forcing {side.value}"
            )

        # 5) wrap width: as wide as the side allows, within [floor, target]
        space = space_left if side is Side.LEFT else space_right
        wrap_width = max(floor, min(space - gap, target_width))
        if viable:
            # the padded frame has to fit between the screen edge and the gap
            wrap_width = min(wrap_width, space - pad * 2)

        # 6) exact text block at that width
        lines = tuple(self.measurer.wrap(text, wrap_width))
        line_height = self.measurer.line_height
        text_size = self.measurer.measure(text, wrap_width)

        # 7) frame = measured text + padding, visible height capped, overflow scrolls
        width = min(text_size.width, wrap_width) + pad * 2
        full_height = text_size.height + pad * 2
        height = min(full_height, max_height + pad * 2)
        scrollable = text_size.height > max_height

        # 8-9) beside the anchor, inside the screen, never covering the anchor
        rect, side, ok = resolve_position(anchor, screen, side, width, height, gap)

        # 10) cosmetic tail
        return Placement(
            rect=rect,
            side=side,
            wrap_width=wrap_width,
            lines=lines,
            line_height=line_height,
            content_height=text_size.height,
            scrollable=scrollable,
            tail=tail_points(rect, side),
            ok=ok,
            padding=pad,
        )
