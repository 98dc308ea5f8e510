"""
Desktop Overlay Module

Provides the desktop overlay for the assistant:
- Bubble layout beside a draggable anchor (pure, testable)
- Interaction state machine driven by the frame loop
- Background asyncio worker for network, speech and storage
- tkinter window, system tray and global hotkeys (app.py)

app.py imports tkinter and is loaded lazily by the launcher.
"""

from .geometry import Rect, Size
from .layout import BubbleLayout, Placement, Side, choose_side
from .state import InteractionController, Phase, TranscriptEntry, UIState
from .text_metrics import MonospaceMeasurer, TextMeasurer, TkTextMeasurer, wrap_text
from .worker import BackgroundWorker

__all__ = [
    "Rect",
    "Size",
    "BubbleLayout",
    "Placement",
    "Side",
    "choose_side",
    "InteractionController",
    "Phase",
    "TranscriptEntry",
    "UIState",
    "MonospaceMeasurer",
    "TextMeasurer",
    "TkTextMeasurer",
    "wrap_text",
    "BackgroundWorker",
]
