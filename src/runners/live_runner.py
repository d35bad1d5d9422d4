"""Process entry point for the live channel scalper."""

from __future__ import annotations

import argparse
import logging
import signal
import threading

from dotenv import load_dotenv

from config.logging import setup_logging
from config.settings import load_settings
from core.application.bootstrap import StartupError
from core.application.execution import run

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the channel scalper against Binance spot")
    parser.add_argument("--env-file", default=".env", help="dotenv file to load")
    parser.add_argument("--log-level", help="Override LOG_LEVEL")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    load_dotenv(args.env_file)

    stop = threading.Event()

    def _request_stop(signum, _frame) -> None:
        logger.info("Signal %s received, stopping", signum)
        stop.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    try:
        settings = load_settings()
        setup_logging(
            level=args.log_level or settings.LOG_LEVEL,
            mode=settings.LOG_MODE,
            log_file=settings.LOG_FILE,
        )
        run(settings, stop=stop)
    except StartupError:
        logger.exception("Startup failed")
        return 1
    except ValueError:
        # pydantic's ValidationError is a ValueError too
        logger.exception("Invalid configuration")
        return 2
    return 0


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    raise SystemExit(main())
