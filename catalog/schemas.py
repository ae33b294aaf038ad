"""Request and response shapes exchanged over the HTTP API.

Wire keys keep the collection's historical (French) names so existing
exports and clients stay compatible.
"""
from typing import List, Optional, TypedDict


class GameDocument(TypedDict):
    """A game record as returned by every endpoint."""
    _id: str
    titre: str
    genre: List[str]
    plateforme: List[str]
    editeur: str
    developpeur: str
    annee_sortie: Optional[int]
    metacritic_score: Optional[int]
    temps_jeu_heures: float
    termine: bool
    favori: bool
    date_ajout: str
    date_modification: str


class GamePayload(TypedDict, total=False):
    """Body of ``POST /api/games`` and ``PUT /api/games/<id>``.

    Every key is optional at the type level; which ones are required is
    decided by :func:`catalog.services.validation_service.validate_game`.
    """
    titre: str
    genre: List[str]
    plateforme: List[str]
    editeur: Optional[str]
    developpeur: Optional[str]
    annee_sortie: Optional[int]
    metacritic_score: Optional[int]
    temps_jeu_heures: Optional[float]
    termine: bool
    favori: bool


class GeneralStats(TypedDict):
    total_jeux: int
    jeux_termines: int
    jeux_favoris: int
    temps_jeu_total: float
    score_moyen: Optional[float]


class BreakdownEntry(TypedDict):
    _id: str
    count: int


class CollectionStats(TypedDict):
    general: GeneralStats
    by_genre: List[BreakdownEntry]
    by_platform: List[BreakdownEntry]


class CollectionExport(TypedDict):
    exported_at: str
    total_games: int
    games: List[GameDocument]


# Keys a client may set through create/update.
EDITABLE_FIELDS = (
    'titre',
    'genre',
    'plateforme',
    'editeur',
    'developpeur',
    'annee_sortie',
    'metacritic_score',
    'temps_jeu_heures',
    'termine',
    'favori',
)

# Wire key -> ``database.Game`` attribute.
FIELD_ATTRIBUTES = {
    'titre': 'title',
    'genre': 'genres',
    'plateforme': 'platforms',
    'editeur': 'publisher',
    'developpeur': 'developer',
    'annee_sortie': 'release_year',
    'metacritic_score': 'metacritic_score',
    'temps_jeu_heures': 'hours_played',
    'termine': 'completed',
    'favori': 'favorite',
}
