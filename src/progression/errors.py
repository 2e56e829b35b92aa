"""
Errors raised by the tournament progression engine.

Every error is local and recoverable: validation runs before any output is
produced, so callers can surface the message and nothing needs undoing.
"""


class TournamentError(Exception):
    """Base class for all engine errors."""

    def __init__(self, message: str = ''):
        super().__init__(message)
        self.message = message

    @property
    def code(self) -> str:
        return type(self).__name__


# Group generation

class InsufficientPairs(TournamentError):
    """Raised when a category has fewer pairs than the minimum group size."""


class InfeasibleConfiguration(TournamentError):
    """Raised when no group count satisfies both group size bounds."""


# Qualification

class InsufficientQualifiers(TournamentError):
    """Raised when first and second places cannot fill the bracket."""


# Elimination bracket

class InvalidBracketSize(TournamentError):
    """Raised when a bracket size is not a supported power of two."""


class DuplicatePairInBracket(TournamentError):
    """Raised when the same pair is placed in a bracket more than once."""


class SelfMatchup(TournamentError):
    """Raised when a pair is drawn against itself."""


class UnqualifiedPair(TournamentError):
    """Raised when a manual matchup uses a pair outside the selected qualifiers."""


# Matches and scores

class InvalidScore(TournamentError):
    """Raised when a score cannot produce an unambiguous winner."""


class InvalidMatch(TournamentError):
    """Raised on illegal match state: status regressions, bad advancement."""


# Settings

class ConfigurationError(TournamentError):
    """Raised when tournament settings cannot be loaded or are out of range."""
