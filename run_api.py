#!/usr/bin/env python3
"""
Script to run the Library Catalog API server.
"""

import structlog
import uvicorn

from api.config import config
from utilities.config import config as catalog_config

logger = structlog.get_logger(__name__)


def main():
    """Run the API server."""
    logger.info(
        "Starting Library Catalog API server",
        host=config.host,
        port=config.port,
        debug=config.debug,
        database=catalog_config.mongodb_database,
    )

    # Requests are logged by the application middleware
    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=catalog_config.log_level.lower(),
        access_log=False
    )


if __name__ == "__main__":
    main()
