"""
Utility modules for the companion.
"""

from .logger import LOG_FORMAT, setup_logging
from .tasks import drain_background_tasks, fire_and_forget

__all__ = [
    "LOG_FORMAT",
    "setup_logging",
    "fire_and_forget",
    "drain_background_tasks",
]
