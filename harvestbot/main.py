"""Harvestbot — Main entry point."""

import asyncio
import logging
import signal
from typing import Optional

from .communication.telegram import TelegramChannel
from .config import BotSettings, load_settings
from .digest import broadcast_digest, build_digest_sources
from .handlers import default_context
from .scheduler import Scheduler

_log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger("harvestbot")


def setup_logging(settings: Optional[BotSettings] = None, debug: bool = False):
    handlers: list[logging.Handler] = [logging.StreamHandler()]  # stderr (console)
    if settings and settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))

    logging.basicConfig(level=logging.INFO, format=_log_format, handlers=handlers)
    # python-telegram-bot polls every few seconds; keep httpx request logs out of INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    if debug or (settings and settings.debug):
        logging.getLogger("harvestbot").setLevel(logging.DEBUG)


async def run(debug: bool = False):
    """Main run loop."""
    settings = load_settings()
    setup_logging(settings, debug=debug)

    if not settings.bot_token:
        logger.critical("No Telegram bot token configured. Set BOT_TOKEN in the environment or .env.")
        raise SystemExit(1)

    sources = build_digest_sources(settings)
    stop_event = asyncio.Event()

    def request_stop(reason: str = ""):
        if not stop_event.is_set():
            logger.info(f"{reason or 'Stop'} received, stopping bot...")
            stop_event.set()

    channel = TelegramChannel(
        settings.bot_token,
        default_context(digest_sources=sources),
        on_shutdown=request_stop,
    )
    scheduler: Optional[Scheduler] = None

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_stop, sig.name)
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows event loops
            pass

    try:
        await channel.start()

        if settings.target_chat_id:
            scheduler = Scheduler(
                settings.digest_cron,
                settings.digest_timezone,
                job=lambda: broadcast_digest(sources, settings.target_chat_id, channel.execute),
                name="crypto-digest",
            )
            await scheduler.start()
            logger.info("Scheduler active.")

        logger.info("Harvestbot is running. Press Ctrl+C to stop.")
        await stop_event.wait()

    except Exception as e:
        logger.critical(f"Fatal error: {type(e).__name__}: {e}", exc_info=True)
    finally:
        # Transport first, then background jobs
        await channel.stop()
        if scheduler:
            await scheduler.stop()
        logger.info("Harvestbot stopped.")


def main():
    """Entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
