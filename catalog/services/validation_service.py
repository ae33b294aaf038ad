"""Field rules for game payloads submitted to the API."""
import math
import numbers
from typing import Any, List, Mapping, Optional

import ludotheque

MIN_RELEASE_YEAR = 1970
MIN_METACRITIC = 0
MAX_METACRITIC = 100


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid number here
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _is_integer(value: Any) -> bool:
    if not _is_number(value):
        return False
    return isinstance(value, numbers.Integral) or float(value).is_integer()


def _is_label_list(value: Any) -> bool:
    return (isinstance(value, list) and len(value) >= 1
            and all(isinstance(v, str) and v.strip() for v in value))


def validate_game(data: Any, partial: bool = False,
                  current_year: Optional[int] = None) -> List[str]:
    """Check a create/update payload against the collection's field rules.

    Every rule is evaluated, so the returned list holds all violations at
    once rather than only the first.

    Args:
        data:         Decoded JSON body.
        partial:      ``True`` for updates: required fields may be absent.
        current_year: Upper bound for the release year (defaults to today's).

    Returns:
        Human-readable messages; an empty list means the payload is valid.
    """
    if not isinstance(data, Mapping):
        return ['Le corps de la requête doit être un objet JSON']

    if current_year is None:
        current_year = ludotheque.current_year()
    errors: List[str] = []

    if not partial or 'titre' in data:
        titre = data.get('titre')
        if not isinstance(titre, str) or not titre.strip():
            errors.append('Le titre est requis et doit être une chaîne non vide')

    if not partial or 'genre' in data:
        if not _is_label_list(data.get('genre')):
            errors.append('Le genre est requis et doit contenir au moins un élément')

    if not partial or 'plateforme' in data:
        if not _is_label_list(data.get('plateforme')):
            errors.append('La plateforme est requise et doit contenir au moins un élément')

    year = data.get('annee_sortie')
    if year is not None:
        if not _is_integer(year) or not MIN_RELEASE_YEAR <= year <= current_year:
            errors.append(f"L'année de sortie doit être entre {MIN_RELEASE_YEAR} et {current_year}")

    score = data.get('metacritic_score')
    if score is not None:
        if not _is_integer(score) or not MIN_METACRITIC <= score <= MAX_METACRITIC:
            errors.append(f'Le score Metacritic doit être entre {MIN_METACRITIC} et {MAX_METACRITIC}')

    hours = data.get('temps_jeu_heures')
    if hours is not None:
        if not _is_number(hours) or hours < 0:
            errors.append('Le temps de jeu doit être un nombre positif')

    for key, label in (('editeur', "L'éditeur"), ('developpeur', 'Le développeur')):
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            errors.append(f'{label} doit être une chaîne de caractères')

    for key, label in (('termine', 'Le statut terminé'), ('favori', 'Le statut favori')):
        if key in data and not isinstance(data[key], bool):
            errors.append(f'{label} doit être un booléen')

    return errors
