"""
Bots module - Computer players.

Provides:
- BotPolicy: Interface for bot decision-making
- RandomPolicy / FirstLegalPolicy: simple baseline players
"""

from .policy import BotPolicy, BotDecision, RandomPolicy, FirstLegalPolicy

__all__ = [
    "BotPolicy",
    "BotDecision",
    "RandomPolicy",
    "FirstLegalPolicy",
]
