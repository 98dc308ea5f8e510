"""
Desktop Overlay Application

A transparent, frameless, always-on-top tkinter window showing the
character (the anchor) and a speech bubble placed beside it.

Features:
- Draggable anchor, double-click toggles the bubble
- Green "+" button opens the bubble, "×" or Escape closes it
- Input field under the bubble (Enter or ↑ sends)
- Mouse wheel scrolls long replies
- Widgets strip with weather, exchange rates and message count
- System tray with quick actions
- Global hotkey (F12 toggle)

All drawing happens on the tkinter thread. The frame callback drains
the worker's event queue, advances the fade-in and redraws.
"""

import logging
import sys
import threading
import time
import tkinter as tk
import tkinter.font as tkfont
from queue import Empty, Queue
from typing import Callable, Optional

from PIL import Image, ImageTk

from clippy.config import AppConfig

from .geometry import Rect
from .layout import BubbleLayout, Placement, Side
from .state import InteractionController
from .text_metrics import TkTextMeasurer

logger = logging.getLogger(__name__)

# Optional imports with fallbacks
try:
    from pynput import keyboard
    PYNPUT_AVAILABLE = True
except ImportError:
    PYNPUT_AVAILABLE = False
    logger.warning("pynput not installed. Hotkeys disabled. Install with: pip install pynput")

try:
    import pystray
    TRAY_AVAILABLE = True
except ImportError:
    TRAY_AVAILABLE = False
    logger.warning("pystray not installed. System tray disabled. Install with: pip install pystray")

# Colour made fully transparent on platforms that support a key colour
TRANSPARENT_KEY = "#010203"
BUBBLE_FILL = "#ffffff"
BUBBLE_OUTLINE = "#4b4b5a"
TEXT_COLOR = "#1a1a24"
SHOW_BUTTON_COLOR = "#2ecc71"
CLOSE_BUTTON_SIZE = 14
SHOW_BUTTON_RADIUS = 11
INPUT_HEIGHT = 28


def _stipple_for(opacity: float) -> str:
    """tkinter has no per-item alpha, fake the fade with stipple masks."""
    if opacity >= 1.0:
        return ""
    if opacity >= 0.75:
        return "gray75"
    if opacity >= 0.5:
        return "gray50"
    if opacity >= 0.25:
        return "gray25"
    return "gray12"


class ClippyApp:
    """
    The overlay window.

    Manages the canvas, input field, system tray and hotkeys; all
    behaviour decisions are delegated to the InteractionController.
    """

    def __init__(
        self,
        config: AppConfig,
        controller: InteractionController,
        anchor_image: Image.Image,
        enable_hotkeys: bool = True,
        enable_tray: bool = True,
        on_close: Optional[Callable[[], None]] = None,
    ):
        self.config = config
        self.controller = controller
        self.enable_hotkeys = enable_hotkeys
        self.enable_tray = enable_tray
        self.on_close = on_close

        self.root = tk.Tk()
        self.root.title(config.assistant_name)
        self.width = config.window.width
        self.height = config.window.height
        self._place_window()
        self._apply_transparency()

        self.canvas = tk.Canvas(
            self.root,
            width=self.width,
            height=self.height,
            bg=self._background,
            highlightthickness=0,
            bd=0,
        )
        self.canvas.pack(fill=tk.BOTH, expand=True)

        self.font = tkfont.Font(family=config.bubble.font_family, size=config.bubble.font_size)
        self.small_font = tkfont.Font(family=config.bubble.font_family, size=max(8, config.bubble.font_size - 3))
        self.layout = BubbleLayout(TkTextMeasurer(self.font))

        self._photo = ImageTk.PhotoImage(anchor_image)
        self.anchor_size = (anchor_image.width, anchor_image.height)
        margin = config.window.margin
        self.anchor_pos = [
            float(self.width - anchor_image.width - margin),
            float(self.height * 0.6 - anchor_image.height / 2),
        ]

        self._build_input()
        self._bind_events()

        # Thread-safe commands from the tray and hotkey threads
        self._commands: Queue = Queue()
        self.tray = None
        self.hotkey_listener = None

        self._drag_offset: Optional[tuple[float, float]] = None
        self._scroll = 0
        self._shown_text = ""
        self._placement: Optional[Placement] = None
        self._started_at = time.monotonic()
        self._running = False
        self._frame_ms = max(1, int(1000 / max(1, config.window.fps)))

        logger.info("ClippyApp initialized")

    # ==================== Window setup ====================

    def _place_window(self):
        """Bottom-right of the screen unless a position is configured."""
        cfg = self.config.window
        screen_w = self.root.winfo_screenwidth()
        screen_h = self.root.winfo_screenheight()
        x = cfg.x if cfg.x >= 0 else screen_w - self.width - cfg.margin
        y = cfg.y if cfg.y >= 0 else screen_h - self.height - 50
        self.root.geometry(f"{self.width}x{self.height}+{x}+{y}")

    def _apply_transparency(self):
        cfg = self.config.window
        self.root.overrideredirect(True)
        if cfg.on_top:
            self.root.attributes("-topmost", True)

        self._background = "#1a1a24"
        if not cfg.transparent:
            return

        try:
            if sys.platform == "win32":
                self._background = TRANSPARENT_KEY
                self.root.attributes("-transparentcolor", TRANSPARENT_KEY)
            elif sys.platform == "darwin":
                self._background = "systemTransparent"
                self.root.attributes("-transparent", True)
                self.root.config(bg="systemTransparent")
            else:
                # X11 has no per-pixel transparency in Tk, dim the whole window instead
                self.root.attributes("-alpha", 0.95)
                self._background = "#101018"
        except tk.TclError as e:
            logger.warning(f"Transparency not supported here: {e}")

    def _build_input(self):
        self.input_var = tk.StringVar()
        self.entry = tk.Entry(
            self.canvas,
            textvariable=self.input_var,
            font=self.font,
            relief=tk.FLAT,
            bg="#f4f4f8",
            fg=TEXT_COLOR,
        )
        self.send_button = tk.Button(
            self.canvas,
            text="↑",
            command=self._send,
            relief=tk.FLAT,
            bg=SHOW_BUTTON_COLOR,
            fg="#ffffff",
            width=2,
        )
        self._entry_item = self.canvas.create_window(0, 0, window=self.entry, anchor="nw", state="hidden")
        self._send_item = self.canvas.create_window(0, 0, window=self.send_button, anchor="nw", state="hidden")

    def _bind_events(self):
        self.canvas.bind("<ButtonPress-1>", self._on_press)
        self.canvas.bind("<B1-Motion>", self._on_drag)
        self.canvas.bind("<ButtonRelease-1>", self._on_release)
        self.canvas.bind("<Double-Button-1>", self._on_double_click)
        self.canvas.bind("<MouseWheel>", self._on_wheel)
        self.canvas.bind("<Button-4>", lambda e: self._scroll_by(-1))
        self.canvas.bind("<Button-5>", lambda e: self._scroll_by(1))
        self.root.bind("<Escape>", lambda e: self.controller.escape())
        self.entry.bind("<Return>", lambda e: self._send())

    # ==================== Lifecycle ====================

    def run(self):
        """Start tray, hotkeys and the frame loop. Blocks until quit."""
        self._running = True

        if self.enable_tray and TRAY_AVAILABLE:
            self._start_tray()
        if self.enable_hotkeys and PYNPUT_AVAILABLE:
            self._start_hotkeys()

        self.root.after(0, self._frame)
        try:
            self.root.mainloop()
        finally:
            self._running = False

    def stop(self):
        """Close the window and everything attached to it."""
        if not self._running:
            return
        self._running = False

        if self.tray:
            self.tray.stop()
        if self.hotkey_listener:
            self.hotkey_listener.stop()
        if self.on_close:
            self.on_close()

        self.root.destroy()
        logger.info("Window closed")

    def _start_tray(self):
        """Start the system tray icon."""
        def create_tray():
            icon = Image.new("RGB", (64, 64), color=(46, 204, 113))
            menu = pystray.Menu(
                pystray.MenuItem("Show/Hide (F12)", lambda: self._commands.put(self.controller.toggle_panel)),
                pystray.Menu.SEPARATOR,
                pystray.MenuItem("Clear History", lambda: self._commands.put(self.controller.clear)),
                pystray.MenuItem("Stats", lambda: self._commands.put(self.controller.request_stats)),
                pystray.Menu.SEPARATOR,
                pystray.MenuItem("Quit", lambda: self._commands.put(self.stop)),
            )
            self.tray = pystray.Icon("clippy", icon, self.config.assistant_name, menu)
            self.tray.run()

        thread = threading.Thread(target=create_tray, daemon=True)
        thread.start()

    def _start_hotkeys(self):
        """Start global hotkey listener."""
        def on_press(key):
            if key == keyboard.Key.f12:
                self._commands.put(self.controller.toggle_panel)

        self.hotkey_listener = keyboard.Listener(on_press=on_press)
        self.hotkey_listener.daemon = True
        self.hotkey_listener.start()
        logger.info("Hotkeys: F12=toggle bubble")

    # ==================== Frame loop ====================

    def _frame(self):
        if not self._running:
            return

        self._run_commands()
        if not self._running:
            return

        self.controller.drain()
        self.controller.maybe_greet(time.monotonic() - self._started_at)
        self.controller.tick()
        self._redraw()
        self.root.after(self._frame_ms, self._frame)

    def _run_commands(self):
        while True:
            try:
                command = self._commands.get_nowait()
            except Empty:
                return
            try:
                command()
            except Exception:
                logger.exception("Command from tray/hotkey failed")

    # ==================== Drawing ====================

    @property
    def anchor_rect(self) -> Rect:
        x, y = self.anchor_pos
        w, h = self.anchor_size
        return Rect.from_min_size(x, y, w, h)

    @property
    def screen_rect(self) -> Rect:
        return Rect(0.0, 0.0, float(self.width), float(self.height))

    def _redraw(self):
        canvas = self.canvas
        canvas.delete("frame")

        anchor = self.anchor_rect
        canvas.create_image(anchor.min_x, anchor.min_y, image=self._photo, anchor="nw", tags="frame")

        state = self.controller.state
        if not state.panel_visible:
            self._draw_show_button(anchor)
            self._hide_input()
            self._placement = None
            return

        text = self.controller.bubble_text()
        if text != self._shown_text:
            self._shown_text = text
            self._scroll = 0

        bubble = self.config.bubble
        placement = self.layout.place(
            anchor,
            self.screen_rect,
            text,
            bubble.max_chars_per_line,
            bubble.max_height,
            bubble.gap,
            bubble.prefer_left,
        )
        self._placement = placement
        self._draw_bubble(placement)
        self._draw_widgets(placement)
        self._show_input(placement)

    def _draw_show_button(self, anchor: Rect):
        r = SHOW_BUTTON_RADIUS
        cx = anchor.max_x + r + 4 if anchor.max_x + 2 * r + 4 <= self.width else anchor.min_x - r - 4
        cy = anchor.min_y + r
        self.canvas.create_oval(cx - r, cy - r, cx + r, cy + r, fill=SHOW_BUTTON_COLOR, outline="", tags=("frame", "show"))
        self.canvas.create_text(cx, cy, text="+", fill="#ffffff", font=self.font, tags=("frame", "show"))
        self._show_button_rect = Rect.from_center_size(cx, cy, 2 * r, 2 * r)

    def _scaled(self, rect: Rect, placement: Placement) -> Rect:
        """Grow the bubble out of the edge facing the anchor."""
        scale = self.controller.scale()
        if scale >= 1.0:
            return rect
        pivot_x, pivot_y = placement.tail[0]
        return Rect(
            pivot_x + (rect.min_x - pivot_x) * scale,
            pivot_y + (rect.min_y - pivot_y) * scale,
            pivot_x + (rect.max_x - pivot_x) * scale,
            pivot_y + (rect.max_y - pivot_y) * scale,
        )

    def _draw_bubble(self, placement: Placement):
        canvas = self.canvas
        opacity = self.controller.opacity()
        stipple = _stipple_for(opacity)
        rect = self._scaled(placement.rect, placement)

        canvas.create_rectangle(
            rect.min_x, rect.min_y, rect.max_x, rect.max_y,
            fill=BUBBLE_FILL, outline=BUBBLE_OUTLINE, width=2, stipple=stipple, tags="frame",
        )
        if opacity < 1.0:
            return

        tail = [coord for point in placement.tail for coord in point]
        canvas.create_polygon(*tail, fill=BUBBLE_FILL, outline=BUBBLE_OUTLINE, tags="frame")

        content = placement.content_rect
        lines = placement.visible_lines(self._scroll)
        canvas.create_text(
            content.min_x, content.min_y,
            text="\n".join(lines), anchor="nw", font=self.font, fill=TEXT_COLOR, tags="frame",
        )
        if placement.scrollable:
            marker = "▲▼" if 0 < self._scroll < placement.max_scroll else ("▼" if self._scroll == 0 else "▲")
            canvas.create_text(rect.max_x - 4, rect.max_y - 4, text=marker, anchor="se",
                               font=self.small_font, fill=BUBBLE_OUTLINE, tags="frame")

        # close button
        s = CLOSE_BUTTON_SIZE
        canvas.create_text(rect.max_x - 4, rect.min_y + 2, text="×", anchor="ne",
                           font=self.font, fill=BUBBLE_OUTLINE, tags="frame")
        self._close_button_rect = Rect(rect.max_x - 4 - s, rect.min_y + 2, rect.max_x - 4, rect.min_y + 2 + s)

        label = self.controller.state.pending_backend_label
        if label != "none":
            canvas.create_text(rect.min_x + 4, rect.max_y - 2, text=label, anchor="sw",
                               font=self.small_font, fill="#9a9aa8", tags="frame")

    def _draw_widgets(self, placement: Placement):
        if not self.config.widgets.enabled or self.controller.opacity() < 1.0:
            return
        widgets = self.controller.widgets
        parts = [
            widgets.weather.replace("\n", "  "),
            widgets.currency.replace("\n", "  "),
            f"💬 {self.controller.message_count()}",
        ]
        rect = placement.rect
        self.canvas.create_text(
            rect.min_x, max(2.0, rect.min_y - 6), text="\n".join(parts), anchor="sw",
            font=self.small_font, fill="#e8e8f0", width=max(rect.width, 200), tags="frame",
        )

    def _show_input(self, placement: Placement):
        rect = placement.rect
        y = min(rect.max_y + 8, self.height - INPUT_HEIGHT - 2)
        # The bubble shrinks to short replies, the input keeps the full wrap width
        row_width = placement.wrap_width + 2 * placement.padding
        entry_width = max(60, int(row_width) - 36)
        x = rect.max_x - row_width if placement.side is Side.LEFT else rect.min_x
        x = min(max(0.0, x), max(0.0, self.width - row_width))
        self.canvas.coords(self._entry_item, x, y)
        self.canvas.itemconfigure(self._entry_item, width=entry_width, height=INPUT_HEIGHT, state="normal")
        self.canvas.coords(self._send_item, x + entry_width + 4, y)
        self.canvas.itemconfigure(self._send_item, height=INPUT_HEIGHT, state="normal")
        state = tk.DISABLED if self.controller.awaiting else tk.NORMAL
        self.send_button.configure(state=state)

    def _hide_input(self):
        self.canvas.itemconfigure(self._entry_item, state="hidden")
        self.canvas.itemconfigure(self._send_item, state="hidden")

    # ==================== Input ====================

    def _send(self):
        if self.controller.submit(self.input_var.get()):
            self.input_var.set("")

    def _on_press(self, event):
        point = (float(event.x), float(event.y))
        if self.controller.state.panel_visible:
            close_rect = getattr(self, "_close_button_rect", None)
            if close_rect is not None and close_rect.contains(point):
                self.controller.hide_panel()
                return
        else:
            show_rect = getattr(self, "_show_button_rect", None)
            if show_rect is not None and show_rect.contains(point):
                self.controller.show_panel()
                return

        anchor = self.anchor_rect
        if anchor.contains(point):
            self._drag_offset = (point[0] - anchor.min_x, point[1] - anchor.min_y)

    def _on_drag(self, event):
        if self._drag_offset is None:
            return
        dx, dy = self._drag_offset
        w, h = self.anchor_size
        self.anchor_pos[0] = min(max(0.0, event.x - dx), self.width - w)
        self.anchor_pos[1] = min(max(0.0, event.y - dy), self.height - h)

    def _on_release(self, event):
        self._drag_offset = None

    def _on_double_click(self, event):
        if self.anchor_rect.contains((float(event.x), float(event.y))):
            self.controller.toggle_panel()

    def _on_wheel(self, event):
        self._scroll_by(-1 if event.delta > 0 else 1)

    def _scroll_by(self, lines: int):
        placement = self._placement
        if placement is None or not placement.scrollable:
            return
        self._scroll = min(max(0, self._scroll + lines), placement.max_scroll)
