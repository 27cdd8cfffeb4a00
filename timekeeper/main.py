"""Main entry point for the timeline service."""

import logging
import sys

import uvicorn

from .config import load_config

logger = logging.getLogger(__name__)


def main() -> int:
    """Main entry point for the application.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    try:
        config = load_config()
        logging.basicConfig(level=config.server.log_level)

        # Ensure the database directory exists
        config.paths.database.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Starting server at http://{config.server.host}:{config.server.port}")
        uvicorn.run(
            "timekeeper.web.server:app",
            host=config.server.host,
            port=config.server.port,
            reload=config.server.reload,
            log_level=config.server.log_level.lower(),
        )
        return 0

    except KeyboardInterrupt:
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
