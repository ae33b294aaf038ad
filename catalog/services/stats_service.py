"""Aggregate statistics and full-collection export."""
import ludotheque
from ..schemas import CollectionExport, CollectionStats


class StatsService:
    """Computes collection-wide statistics and builds the JSON export,
    delegating the aggregation queries to the ``database`` module.
    """

    def __init__(self, db_module) -> None:
        self._db = db_module

    def get_stats(self, db) -> CollectionStats:
        """Return general totals plus per-genre and per-platform counts.

        A game counts once for every genre and platform it lists.  An empty
        collection gives zero totals and empty breakdowns.
        """
        return {
            'general': self._db.get_general_stats(db),
            'by_genre': self._db.count_by_genre(db),
            'by_platform': self._db.count_by_platform(db),
        }

    def export(self, db) -> CollectionExport:
        """Return every game in one document, stamped with the export time."""
        games = [self._db.game_to_dict(g) for g in self._db.get_all_games(db)]
        return {
            'exported_at': ludotheque.format_timestamp(ludotheque.utcnow()),
            'total_games': len(games),
            'games': games,
        }
