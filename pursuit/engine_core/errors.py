"""
Engine errors.

Recoverable situations (no legal moves, an event that does not fit the
current turn stage) are reported with sentinels and failure results.
Only broken engine contracts raise.
"""


class EngineInvariantError(AssertionError):
    """
    A caller or the engine itself broke a contract.

    Raised when applying a move that was never generated, when the game is
    not in a phase that accepts moves, or when the board stops satisfying
    its invariants (peg conservation, capacity, ownership).
    """
