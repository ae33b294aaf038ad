"""Domain errors raised by the service layer and mapped to HTTP statuses
in ``ludotheque_web``."""
from typing import List


class InvalidGameIdError(Exception):
    """Raised when a game identifier is malformed."""

    message = 'ID invalide'

    def __init__(self, game_id) -> None:
        super().__init__(f"Malformed game id: {game_id!r}")
        self.game_id = game_id


class GameNotFoundError(Exception):
    """Raised when no game has the requested identifier."""

    message = 'Jeu non trouvé'

    def __init__(self, game_id: str) -> None:
        super().__init__(f"Game not found: {game_id}")
        self.game_id = game_id


class GameValidationError(Exception):
    """Raised when a payload breaks one or more field rules."""

    def __init__(self, errors: List[str]) -> None:
        super().__init__('; '.join(errors))
        self.errors = list(errors)
