"""
Scroll exceptions

Every error a scroll session can raise derives from ScrollError, so callers can
catch the whole family at once and still tell an expired cursor apart from any
other engine failure.
"""


class ScrollError(Exception):
    """Base exception for all scroll errors"""
    pass


class InvalidCommandError(ScrollError):
    """Raised when a scroll command is rejected before any request is sent"""
    pass


class ScrollStateError(ScrollError):
    """Raised when a session operation is called in a state that does not allow it"""
    pass


class SearchExecutionError(ScrollError):
    """Raised when the engine or the transport fails during a scroll request.

    Attributes:
        phase: "initial", "continuation" or "release".
        cause: The underlying exception, if any.
    """

    def __init__(self, message: str, phase: str, cause: Exception | None = None):
        super().__init__(f"[{phase}] {message}")
        self.phase = phase
        self.cause = cause


class ScrollExpiredError(SearchExecutionError):
    """Raised when the engine no longer knows the scroll cursor; the scroll must be restarted"""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message, phase="continuation", cause=cause)
