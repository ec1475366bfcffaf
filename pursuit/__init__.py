"""
Pursuit - Joker Pursuit rules engine

A deterministic engine for the card-driven peg race game. Provides:
- Board topology and game state
- Legal move generation for every card, including split 7s and 9s
- Move application with bumping
- The turn state machine and win detection
- An in-memory game store, HTTP API and bot players
"""

__version__ = "0.1.0"
