"""Command-line interface for unified-airquality"""

import argparse
import asyncio
import contextlib
import json
import logging
import signal
import sys
from typing import Optional

from unified_airquality import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unified-airquality",
        description="Poll air quality sources, aggregate them and log a decimated history",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        help="Path to config file (default: auto-detect)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run one update cycle, print the values as JSON and exit",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-web",
        action="store_true",
        help="Disable web server",
    )
    parser.add_argument(
        "--web-port",
        type=int,
        default=None,
        help="Port for web server (default: from config, 8080)",
    )
    parser.add_argument(
        "--web-host",
        type=str,
        default=None,
        help="Host for web server (default: from config, 0.0.0.0)",
    )
    return parser


async def async_main(argv: Optional[list[str]] = None) -> int:
    """Async main entry point"""
    args = build_parser().parse_args(argv)

    from unified_airquality.config import load_config
    from unified_airquality.context import AppContext
    from unified_airquality.errors import ConfigurationError
    from unified_airquality.log_handler import setup_logging

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    log_level = "DEBUG" if args.verbose else config.logging.level
    setup_logging(log_level, config.logging.file)

    logger = logging.getLogger(__name__)
    logger.info("=" * 50)
    logger.info(f"Starting unified-airquality ({config.name})")
    logger.info("=" * 50)
    logger.debug(f"Update interval: {config.update.interval} s")

    context = AppContext.create(config)

    if args.once:
        try:
            cycle = await context.run_once()
            print(json.dumps(cycle.to_dict(), indent=2))
            return 1 if cycle.error else 0
        finally:
            await context.shutdown()

    shutdown_event = asyncio.Event()

    def signal_handler(sig: signal.Signals) -> None:
        logger.info(f"Received signal {sig.name}, initiating graceful shutdown...")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler, sig)

    web_server_task = None
    try:
        await context.start()

        if config.web.enabled and not args.no_web:
            import uvicorn

            from unified_airquality.web.app import create_app

            host = args.web_host or config.web.host
            port = args.web_port or config.web.port
            logger.info(f"Starting web server on {host}:{port}")

            config_uvicorn = uvicorn.Config(
                create_app(context),
                host=host,
                port=port,
                log_level=log_level.lower(),
                log_config=None,  # Prevent uvicorn from reconfiguring logging
            )
            server = uvicorn.Server(config_uvicorn)
            web_server_task = asyncio.create_task(server.serve())

        await shutdown_event.wait()
        return 0

    except asyncio.CancelledError:
        logger.info("Main task cancelled")
        return 0
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        return 1
    finally:
        logger.info("Shutting down...")
        if web_server_task:
            web_server_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await web_server_task
        await context.shutdown()
        logger.info("Cleanup complete")


def main() -> int:
    """Main entry point - wraps async_main()"""
    return asyncio.run(async_main())


if __name__ == "__main__":
    sys.exit(main())
