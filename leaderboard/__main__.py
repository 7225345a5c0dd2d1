"""
Run the leaderboard server.
"""

from __future__ import annotations

import argparse
import logging

import uvicorn

from leaderboard.app import create_app
from leaderboard.config import get_settings

logger = logging.getLogger("leaderboard")


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Leaderboard API server")
    parser.add_argument(
        "--host",
        type=str,
        default=settings.host,
        help="Interface to bind",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=settings.port,
        help="Port to listen on",
    )
    parser.add_argument(
        "--env",
        type=str,
        default=settings.app_env,
        help="'development' serves the live client template, anything else the built bundle",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level,
        help="Logging level",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%I:%M:%S %p",
    )

    settings = settings.model_copy(
        update={"host": args.host, "port": args.port, "app_env": args.env}
    )
    app = create_app(settings)
    logger.info("serving on port %s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
