"""Business logic for the game collection: create, list, read, update,
delete and favourite toggling."""
from typing import Dict, List, Mapping, Optional

import ludotheque
from ..errors import GameNotFoundError, GameValidationError, InvalidGameIdError
from ..schemas import EDITABLE_FIELDS, FIELD_ATTRIBUTES, GameDocument, GamePayload
from .validation_service import validate_game


class GameService:
    """Validates payloads and delegates persistence to the ``database``
    module's helper functions.

    All methods accept a *db* SQLAlchemy session as the first argument so
    that callers (Flask route handlers) control the session lifecycle.
    Failures are raised as :mod:`catalog.errors` exceptions; store errors
    (``SQLAlchemyError``) propagate unchanged.
    """

    def __init__(self, db_module) -> None:
        """
        Args:
            db_module: The imported ``database`` module (or any object that
                exposes ``insert_game``, ``find_games``, ``get_game``,
                ``update_game``, ``delete_game``, ``toggle_favorite`` and
                ``game_to_dict``).
        """
        self._db = db_module

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_id(game_id) -> str:
        if not ludotheque.is_valid_game_id(game_id):
            raise InvalidGameIdError(game_id)
        return game_id

    @staticmethod
    def _to_attributes(payload: Mapping) -> Dict:
        """Map the editable wire keys present in *payload* to model attributes."""
        changes = {}
        for key in EDITABLE_FIELDS:
            if key not in payload:
                continue
            value = payload[key]
            if key == 'titre':
                value = value.strip()
            elif key in ('editeur', 'developpeur'):
                value = (value or '').strip()
            elif key == 'temps_jeu_heures':
                value = 0.0 if value is None else float(value)
            elif key in ('annee_sortie', 'metacritic_score') and value is not None:
                value = int(value)
            elif key in ('genre', 'plateforme'):
                value = [v.strip() for v in value]
            changes[FIELD_ATTRIBUTES[key]] = value
        return changes

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create(self, db, payload: GamePayload) -> GameDocument:
        """Validate and insert a new game.

        Optional fields fall back to their defaults (empty publisher and
        developer, no year or score, zero hours, not completed).  New games
        are never favourites.

        Raises:
            GameValidationError: if the payload breaks any field rule.
        """
        errors = validate_game(payload)
        if errors:
            raise GameValidationError(errors)
        fields = {
            'publisher': '',
            'developer': '',
            'release_year': None,
            'metacritic_score': None,
            'hours_played': 0.0,
            'completed': False,
        }
        fields.update(self._to_attributes(payload))
        fields['favorite'] = False
        game = self._db.insert_game(db, fields)
        return self._db.game_to_dict(game)

    def list(self, db, genre: Optional[str] = None, platform: Optional[str] = None,
             completed: Optional[bool] = None, favorite: Optional[bool] = None,
             search: Optional[str] = None) -> List[GameDocument]:
        """Return games matching all given filters, newest first."""
        games = self._db.find_games(db, genre=genre, platform=platform,
                                    completed=completed, favorite=favorite,
                                    search=search)
        return [self._db.game_to_dict(g) for g in games]

    def get(self, db, game_id) -> GameDocument:
        """Return one game.

        Raises:
            InvalidGameIdError, GameNotFoundError
        """
        game = self._db.get_game(db, self._check_id(game_id))
        if game is None:
            raise GameNotFoundError(game_id)
        return self._db.game_to_dict(game)

    def update(self, db, game_id, payload: GamePayload) -> GameDocument:
        """Merge the provided fields into an existing game.

        Fields absent from *payload* keep their value; ``date_modification``
        always advances, even for an empty payload.

        Raises:
            InvalidGameIdError, GameValidationError, GameNotFoundError
        """
        self._check_id(game_id)
        errors = validate_game(payload, partial=True)
        if errors:
            raise GameValidationError(errors)
        game = self._db.update_game(db, game_id, self._to_attributes(payload))
        if game is None:
            raise GameNotFoundError(game_id)
        return self._db.game_to_dict(game)

    def delete(self, db, game_id) -> None:
        """Remove a game.

        Raises:
            InvalidGameIdError, GameNotFoundError
        """
        if not self._db.delete_game(db, self._check_id(game_id)):
            raise GameNotFoundError(game_id)

    def toggle_favorite(self, db, game_id) -> GameDocument:
        """Flip the favourite flag and return the updated game.

        Raises:
            InvalidGameIdError, GameNotFoundError
        """
        game = self._db.toggle_favorite(db, self._check_id(game_id))
        if game is None:
            raise GameNotFoundError(game_id)
        return self._db.game_to_dict(game)
