import sys

import uvicorn

from constants import HOST, LOG_FILE, LOG_LEVEL, PORT, TOKEN
from logging_config import get_logger, setup_logging

# Setup logging before importing app
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)

from app import app  # noqa: E402

logger = get_logger(__name__)

if __name__ == "__main__":
    if not TOKEN:
        logger.error("Environment var 'TOKEN' not set")
        sys.exit(1)
    logger.info(f"Starting privatevoice on {HOST}:{PORT}")
    uvicorn.run(app, host=HOST, port=PORT)
