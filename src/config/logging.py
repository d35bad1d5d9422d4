import logging
import sys
from typing import Literal


def _build_formatter(mode: str) -> logging.Formatter:
    if mode == "json":
        return logging.Formatter(
            '{"level":"%(levelname)s","time":"%(asctime)s","name":"%(name)s","msg":"%(message)s"}',
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    return logging.Formatter("%(levelname)s - %(message)s")


def setup_logging(
    level: str = "INFO",
    mode: Literal["plain", "json"] = "plain",
    log_file: str | None = None,
) -> None:
    """Configure root logging for the bot.

    Always logs to stdout; ``log_file`` adds a file handler with the same
    format so unattended runs keep a local trail.
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    formatter = _build_formatter(mode)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root.addHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.setLevel(level.upper())
