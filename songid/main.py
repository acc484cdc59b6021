"""Main entry point for the SongID backend."""

import logging

import uvicorn
from dotenv import load_dotenv

from .api.app import create_app
from .config import load_config


def main():
    """Run the SongID backend server."""
    _ = load_dotenv()
    config = load_config()
    logging.basicConfig(
        level=config.server.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level,
    )


if __name__ == "__main__":
    main()
