class TransitLiveError(Exception):
    """Base exception for map orchestration failures."""


class InvalidSelectionError(TransitLiveError):
    """Raised when an action is not valid from the current selection phase."""
