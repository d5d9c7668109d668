"""
Entry point: serve the analyzer HTTP API.

Usage::

    python run.py
"""

import logging
import sys

import uvicorn
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("run")


def main() -> None:
    from brandscan.api import create_app
    from brandscan.config import get_settings, validate_env
    from brandscan.exceptions import ConfigurationError

    try:
        validate_env(strict=True)
        settings = get_settings()
    except ConfigurationError as exc:
        logger.error("Cannot start: %s", exc)
        sys.exit(1)

    logging.getLogger().setLevel(settings.log_level.strip().upper())
    logger.info(
        "Starting analyzer on %s:%d (detection=%s, metrics=%s)",
        settings.host,
        settings.port,
        settings.detection_mode,
        settings.metrics_mode,
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(0)
