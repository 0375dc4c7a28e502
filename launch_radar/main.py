"""Entry point for the launch-radar pool monitor."""

import asyncio
import signal
import sys

from loguru import logger

from config.settings import settings, validate_settings
from launch_radar.parsers.exceptions import ConfigurationError
from launch_radar.parsers.worker import run_monitor
from launch_radar.utils.logger import setup_logger

EXIT_BAD_CONFIG = 2


async def main() -> int:
    setup_logger(json_logs=settings.json_logs, level=settings.log_level, log_dir=settings.log_dir)

    try:
        validate_settings(settings)
    except ConfigurationError as e:
        logger.critical(f"Invalid configuration: {e}")
        return EXIT_BAD_CONFIG

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    logger.info(f"Starting launch-radar (sink={settings.report_sink})")
    try:
        await run_monitor(settings, stop)
    except Exception:
        logger.exception("Monitor crashed")
        return 1
    logger.info("Shutdown complete")
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
