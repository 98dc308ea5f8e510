#!/usr/bin/env python3
"""
Clippy Desktop Launcher

Starts the assistant as a desktop overlay (transparent window with the
character and its speech bubble).

Usage:
    python -m clippy.desktop                  # Start with config/config.yaml
    python -m clippy.desktop --debug          # Debug logging
    python -m clippy.desktop --no-tts         # Silent mode
    python -m clippy.desktop --help           # Show help
"""

import argparse
import logging
import sys
from pathlib import Path

from clippy.assistant import HistoryStore, ResponderChain
from clippy.config import AppConfig, load_config
from clippy.llm import build_responders
from clippy.services import CurrencyService, WeatherService
from clippy.storage import ConversationLog
from clippy.tts import create_tts
from clippy.utils import drain_background_tasks, setup_logging

from .image import load_anchor_image
from .state import InteractionController
from .worker import BackgroundWorker

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Clippy - a desktop assistant with a speech bubble"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to config.yaml (default: config/config.yaml)"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--no-tts",
        action="store_true",
        help="Disable speech"
    )
    parser.add_argument(
        "--no-hotkeys",
        action="store_true",
        help="Disable global hotkeys"
    )
    parser.add_argument(
        "--no-tray",
        action="store_true",
        help="Disable system tray icon"
    )
    parser.add_argument(
        "--image",
        default=None,
        help="Character picture (PNG/JPG), background is removed automatically"
    )
    return parser.parse_args(argv)


def build_controller(config: AppConfig, worker: BackgroundWorker) -> InteractionController:
    """Wire the conversation core, speech and widget services together."""
    log = ConversationLog(config.storage.path) if config.storage.enabled else None
    history = HistoryStore(limit=config.history_limit, log=log)
    chain = ResponderChain(build_responders(config), history=history, log=log)

    widgets = config.widgets
    return InteractionController(
        chain=chain,
        worker=worker,
        tts=create_tts(config.tts),
        weather=WeatherService() if widgets.enabled else None,
        currency=CurrencyService() if widgets.enabled else None,
        city=widgets.city,
        currencies=tuple(widgets.currencies),
        greeting_delay=config.greeting_delay,
    )


async def shutdown(controller: InteractionController) -> None:
    """Close every client; runs on the worker loop."""
    await drain_background_tasks()
    await controller.chain.close()
    for service in (controller.tts, controller.weather, controller.currency):
        if service is None:
            continue
        try:
            await service.close()
        except Exception as e:
            logger.warning(f"Error closing {type(service).__name__}: {e}")


def main(argv=None):
    args = parse_args(argv)

    config = load_config(args.config)
    if args.no_tts:
        config.tts.enabled = False
    if args.image:
        config.window.image_path = args.image

    setup_logging("DEBUG" if args.debug else config.log_level, config.log_file)

    # Import after logging is configured so optional-import warnings are formatted
    from .app import ClippyApp

    worker = BackgroundWorker()
    worker.start()
    controller = build_controller(config, worker)

    log = controller.chain.log
    if log is not None:
        try:
            worker.run(log.connect())
        except Exception as e:
            logger.warning(f"⚠️ Conversation log unavailable: {e}")

    logger.info("=" * 50)
    logger.info(f"📎 {config.assistant_name}")
    logger.info("=" * 50)
    logger.info(f"   Window: {config.window.width}x{config.window.height}")
    logger.info(f"   Backends: {', '.join(r.name for r in controller.chain.responders if r.is_configured)}")
    logger.info(f"   TTS: {'enabled' if controller.tts else 'disabled'}")
    logger.info(f"   Hotkeys: {'F12=toggle' if not args.no_hotkeys else 'disabled'}")
    logger.info(f"   Tray: {'disabled' if args.no_tray else 'enabled'}")
    logger.info("=" * 50)

    image = load_anchor_image(
        config.window.image_path,
        config.window.image_max_size,
        config.window.background_threshold,
    )
    app = ClippyApp(
        config,
        controller,
        image,
        enable_hotkeys=not args.no_hotkeys,
        enable_tray=not args.no_tray,
    )

    try:
        app.run()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Error: {e}")
        if args.debug:
            raise
        return 1
    finally:
        worker.stop(cleanup=shutdown(controller), timeout=5.0)
    return 0


if __name__ == "__main__":
    sys.exit(main())
