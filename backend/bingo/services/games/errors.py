"""
Domain exceptions.

Every failure surfaced by the game services derives from BingoError so the
API layer can render them uniformly. ``retryable`` tells the caller whether
repeating the whole request is safe and may succeed.
"""


class BingoError(Exception):
    """Base class for all game service errors."""
    code = 'error'
    status_code = 400
    retryable = False

    def __init__(self, message):
        self.message = message
        super().__init__(message)

    def to_dict(self):
        return {'error': self.message, 'code': self.code, 'retryable': self.retryable}


class NotFound(BingoError):
    """A room, round, seat or card referenced by an entry point does not exist."""
    code = 'not_found'
    status_code = 404

    def __init__(self, kind, key):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind.capitalize()} {key} not found")


class InvalidState(BingoError):
    """The requested lifecycle transition is not legal right now."""
    code = 'invalid_state'
    status_code = 409


class InvalidMarks(BingoError):
    """The submitted mark vector is malformed or marks undrawn numbers."""
    code = 'invalid_marks'
    status_code = 400

    def __init__(self, message, positions=None):
        self.positions = list(positions or [])
        super().__init__(message)

    def to_dict(self):
        data = super().to_dict()
        if self.positions:
            data['positions'] = self.positions
        return data


class PersistenceFailure(BingoError):
    """A store read or write failed; nothing from this invocation is assumed committed."""
    code = 'persistence_failure'
    status_code = 503
    retryable = True
