"""
Logging Configuration

Standard-library logging for the engine. Every module logs through
``logging.getLogger(__name__)``; game events go to the ``game_events``
logger at debug level as ``key=value`` lines.
"""

import logging
import os
import sys
from typing import Any, Optional

LOG_LEVEL_ENV = "CARDENGINE_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Set up basic logging configuration.

    Args:
        level: Level name; falls back to ``CARDENGINE_LOG_LEVEL`` and then ``INFO``.
    """
    level_name = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=DEFAULT_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger(__name__).info("Logging configuration initialized")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_game_event(game: str, event_type: str, **kwargs: Any) -> None:
    """
    Log game-related events for debugging and replay analysis.

    Args:
        game: Game name, e.g. ``"hearts"``
        event_type: Type of game event (``round_dealt``, ``trick_won`` ...)
        **kwargs: Additional event data
    """
    logger = get_logger("game_events")
    if not logger.isEnabledFor(logging.DEBUG):
        return
    extra_info = " ".join(f"{key}={value}" for key, value in kwargs.items())
    logger.debug(f"Game event: game={game} event_type={event_type} {extra_info}".rstrip())
