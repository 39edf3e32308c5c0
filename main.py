"""
Lounge booking service entry point.

Serves the availability and booking API, or runs the console booking form
for development.

Usage:
    API server:   python main.py serve
    Console mode: python main.py console [--offline] [--scenario lounge|mobile]
"""

import logging
import sys

from lounge_booking.config import settings

logger = logging.getLogger(__name__)


def _run_server() -> None:
    """Start the HTTP API with uvicorn."""
    import uvicorn

    logger.info("Starting API on %s:%d", settings.server.host, settings.server.port)
    uvicorn.run(
        "lounge_booking.api.app:app",
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.log_level.lower(),
    )


def _run_console_mode() -> None:
    """Start the console booking form."""
    from console_demo import main as console_main

    sys.argv = [sys.argv[0], *sys.argv[2:]]
    console_main()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode()
    else:
        _run_server()
