"""
Clippy - a desktop assistant overlay.

A character sits on the desktop with a speech bubble. Messages go to
GigaChat, OpenAI or local rules (first that answers), replies are shown,
spoken and logged.
"""

__version__ = "0.3.0"
