"""Entry point for running offlined daemon.

This module provides the ``python -m offlined`` entry point.
"""

import logging
import sys

import uvicorn

from offline_library.config import load_config

logger = logging.getLogger(__name__)


def main() -> None:
    """Run the offlined daemon.

    Loads configuration and starts the uvicorn server.
    """
    try:
        config = load_config()

        uvicorn.run(
            "offlined.main:create_app",
            factory=True,
            host=config.host,
            port=config.port,
            log_level=config.log_level.lower(),
            workers=config.workers,
        )

    except KeyboardInterrupt:
        logger.info("Received interrupt, shutting down")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Failed to start daemon: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
