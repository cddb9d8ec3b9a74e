"""Bot strategies that drive seats through the rule engines."""

from .base import BotStrategy
from .heuristic import HeuristicBot
from .random_bot import RandomBot

__all__ = ["BotStrategy", "HeuristicBot", "RandomBot"]
