from __future__ import annotations

import argparse
import logging
from pathlib import Path

import uvicorn

from telemetry_replay.replay.replay_config import ReplayConfig
from telemetry_replay.runtime.context import build_runtime
from telemetry_replay.transport.api import create_app

LOGGER = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Replay recorded page samples to a backend and live subscribers"
    )

    parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to replay JSON config.",
    )

    parser.add_argument(
        "--host",
        default=None,
        help="Bind address (overrides server.host).",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Bind port (overrides server.port).",
    )

    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Root log level.",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # ------------------------------------------------------------------
    # Load config and wire the runtime
    # ------------------------------------------------------------------

    config = ReplayConfig.from_file(args.config)
    host = args.host or config.server.host
    port = args.port or config.server.port

    runtime = build_runtime(config)
    app = create_app(runtime)

    LOGGER.info("Starting replay server", extra={"host": host, "port": port})
    uvicorn.run(app, host=host, port=port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
