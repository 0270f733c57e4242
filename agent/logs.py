"""File loggers for agent components."""

import logging
import os


def get_file_logger(name: str, log_dir: str) -> logging.Logger:
    """Return a logger writing to <log_dir>/<name>.log. A logger keeps one file handler."""
    os.makedirs(log_dir, exist_ok=True)
    logger = logging.getLogger(f"agentic_chatbot.{name}")
    logger.setLevel(logging.INFO)

    log_path = os.path.abspath(os.path.join(log_dir, f"{name}.log"))
    for handler in list(logger.handlers):
        if not isinstance(handler, logging.FileHandler):
            continue
        if handler.baseFilename == log_path:
            return logger
        logger.removeHandler(handler)
        handler.close()

    handler = logging.FileHandler(log_path, encoding="utf-8")
    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False
    return logger
