"""Services package - expose all concrete services from one import."""
from .game_service import GameService
from .stats_service import StatsService
from .validation_service import validate_game

__all__ = [
    'GameService',
    'StatsService',
    'validate_game',
]
