class GameError(Exception):
    """Base class for failures reported back to a player as an ``error`` event."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidAction(GameError):
    pass


class NotFound(GameError):
    pass
