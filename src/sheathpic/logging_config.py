"""
Logging setup for simulation scripts.

Library modules only create module loggers; scripts call setup_logging()
once to attach handlers.
"""

import logging
from pathlib import Path


def setup_logging(log_dir=None, level=logging.INFO):
    """
    Configure the root logger with a console handler and optional log file.

    Args:
        log_dir: Directory for simulation.log (None: console only)
        level: Logging level

    Returns:
        logger: The "sheathpic" package logger
    """
    handlers = [logging.StreamHandler()]

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / "simulation.log"))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )

    return logging.getLogger("sheathpic")
