"""Run the Tysiąc API under uvicorn, configured from the environment."""

import logging
import os

import uvicorn

logger = logging.getLogger(__name__)


def server_settings() -> dict:
    return {
        "host": os.getenv("HOST", "0.0.0.0"),
        "port": int(os.getenv("PORT", 8000)),
        "reload": os.getenv("RELOAD", "false").lower() == "true",
        "log_level": os.getenv("LOG_LEVEL", "info").lower(),
    }


def main():
    settings = server_settings()
    logging.basicConfig(level=settings["log_level"].upper())
    logger.info("Serving POST /api/game and /ws/{room_id}/{player_id} on %s:%s",
                settings["host"], settings["port"])
    uvicorn.run("tysiac_engine.main:app", **settings)


if __name__ == "__main__":
    main()
