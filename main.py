"""
Production entrypoint for the ARV comp engine.

Binds to 0.0.0.0:$PORT.
"""

import logging

import uvicorn

from utils.config import Config
from utils.logging_setup import configure_logging

if __name__ == "__main__":
    config = Config.load()
    configure_logging(config.log_level)
    logging.getLogger(__name__).info("Starting ARV comp engine on port %s", config.port)

    # Import app here to ensure clean module loading
    from web.app import app

    uvicorn.run(app, host="0.0.0.0", port=config.port)
