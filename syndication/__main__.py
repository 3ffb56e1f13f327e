"""
Service entry point.

    python -m syndication

Exits with status 1 on a fatal configuration error or when a listener
cannot be bound.
"""

import logging
import sys
from pathlib import Path

import uvicorn

from .config import config
from .exceptions import ConfigError

logger = logging.getLogger("syndication")


def main() -> int:
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config.validate()
    except ConfigError as e:
        logger.error(f"Configuration error: {e.message}")
        return 1

    options = {"host": "0.0.0.0", "port": config.HTTP_PORT, "log_config": None}
    if config.ENABLE_TLS:
        cert_dir = Path(config.CERT_CACHE_DIR)
        options.update(
            port=config.TLS_PORT,
            ssl_certfile=str(cert_dir / f"{config.DOMAIN}.crt"),
            ssl_keyfile=str(cert_dir / f"{config.DOMAIN}.key"),
        )

    server = uvicorn.Server(uvicorn.Config("syndication.server:app", **options))
    try:
        server.run()
    except (ConfigError, OSError) as e:
        logger.error(f"Could not start service: {e}")
        return 1

    # uvicorn reports startup failures (lifespan errors, bind failures) by
    # leaving the server unstarted rather than raising
    if not server.started:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
