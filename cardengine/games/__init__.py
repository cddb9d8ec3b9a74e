"""Rule engines for the individual games."""

from .blackjack import BlackjackGame
from .bridge import BridgeGame
from .canasta import CanastaGame
from .cribbage import CribbageGame
from .hearts import HeartsGame
from .pinochle import PinochleGame

__all__ = [
    "BlackjackGame",
    "BridgeGame",
    "CanastaGame",
    "CribbageGame",
    "HeartsGame",
    "PinochleGame",
]
