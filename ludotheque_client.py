#!/usr/bin/env python3
"""
Ludotheque client - keeps a local copy of the collection, filters it,
renders it to HTML and drives the HTTP API from the command line.
"""

import argparse
import json
import logging
import sys
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional

import requests
from colorama import init, Fore, Style
from jinja2 import Environment
from markupsafe import Markup

import ludotheque
from catalog.schemas import CollectionStats, GameDocument, GamePayload

logger = logging.getLogger('ludotheque.client')

_DEFAULT_TIMEOUT = 10  # seconds
SEARCH_DEBOUNCE_SECONDS = 0.3
CHART_LIMIT = 6

# Status filter values
STATUS_ANY = ''
STATUS_IN_PROGRESS = 'termine-false'
STATUS_COMPLETED = 'termine-true'
STATUS_FAVORITES = 'favori-true'
STATUSES = (STATUS_ANY, STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_FAVORITES)


# ---------------------------------------------------------------------------
# HTTP API client
# ---------------------------------------------------------------------------

class ApiError(Exception):
    """Raised when the API answers with a failure or cannot be reached."""

    def __init__(self, message: str, status: Optional[int] = None,
                 errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.errors = list(errors or [])


class ApiClient:
    """Thin wrapper over the collection's JSON API."""

    def __init__(self, base_url: str = ludotheque.DEFAULT_API_URL,
                 timeout: int = _DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None) -> None:
        """
        Args:
            base_url: API root, e.g. ``http://localhost:3000/api``.
            timeout:  HTTP request timeout in seconds.
            session:  Optional pre-configured :class:`requests.Session`.
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> Dict:
        url = f"{self.base_url}{path}"
        try:
            resp = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ApiError(f"Connexion impossible: {e}") from e
        try:
            data = resp.json()
        except ValueError as e:
            raise ApiError(f"Réponse invalide ({resp.status_code})", resp.status_code) from e
        if not isinstance(data, dict):
            raise ApiError(f"Réponse invalide ({resp.status_code})", resp.status_code)
        if resp.status_code >= 400 or data.get('success') is False:
            errors = data.get('errors') or []
            message = ', '.join(errors) if errors else data.get('error', f"HTTP {resp.status_code}")
            raise ApiError(message, resp.status_code, errors)
        return data

    def list_games(self, **filters) -> List[GameDocument]:
        params = {k: v for k, v in filters.items() if v is not None}
        return self._request('GET', '/games', params=params)['data']

    def get_game(self, game_id: str) -> GameDocument:
        return self._request('GET', f'/games/{game_id}')['data']

    def create_game(self, payload: GamePayload) -> GameDocument:
        return self._request('POST', '/games', json=payload)['data']

    def update_game(self, game_id: str, payload: GamePayload) -> GameDocument:
        return self._request('PUT', f'/games/{game_id}', json=payload)['data']

    def delete_game(self, game_id: str) -> str:
        return self._request('DELETE', f'/games/{game_id}').get('message', '')

    def toggle_favorite(self, game_id: str) -> GameDocument:
        return self._request('POST', f'/games/{game_id}/favorite')['data']

    def get_stats(self) -> CollectionStats:
        return self._request('GET', '/stats')['data']

    def export(self) -> Dict:
        return self._request('GET', '/export')


# ---------------------------------------------------------------------------
# Client state and filtering
# ---------------------------------------------------------------------------

@dataclass
class GameFilters:
    """Active filters; empty strings mean "no restriction"."""
    search: str = ''
    genre: str = ''
    platform: str = ''
    status: str = STATUS_ANY


def matches(game: GameDocument, filters: GameFilters) -> bool:
    """Return ``True`` if *game* passes every active filter."""
    search = filters.search.strip().lower()
    if search and search not in game['titre'].lower():
        return False
    if filters.genre and filters.genre not in game['genre']:
        return False
    if filters.platform and filters.platform not in game['plateforme']:
        return False
    if filters.status == STATUS_COMPLETED and not game['termine']:
        return False
    if filters.status == STATUS_IN_PROGRESS and game['termine']:
        return False
    if filters.status == STATUS_FAVORITES and not game['favori']:
        return False
    return True


def filter_games(games: Iterable[GameDocument], filters: GameFilters) -> List[GameDocument]:
    return [g for g in games if matches(g, filters)]


class CollectionState:
    """The last-fetched game list plus the option sets derived from it.

    The list is replaced wholesale after every fetch; the genre and platform
    options are recomputed from scratch each time.
    """

    def __init__(self) -> None:
        self.games: List[GameDocument] = []
        self.genres: List[str] = []
        self.platforms: List[str] = []
        self.stats: Optional[CollectionStats] = None

    def replace(self, games: List[GameDocument]) -> None:
        self.games = list(games)
        self.genres = sorted({g for game in self.games for g in game['genre']})
        self.platforms = sorted({p for game in self.games for p in game['plateforme']})

    def patch(self, updated: GameDocument) -> bool:
        """Swap in the server's copy of one game; ``False`` if not loaded."""
        for i, game in enumerate(self.games):
            if game['_id'] == updated['_id']:
                self.games[i] = updated
                return True
        return False


class Debouncer:
    """Delay calls to *func* until *wait* seconds pass without a new call."""

    def __init__(self, wait: float, func: Callable[[], None]) -> None:
        self.wait = wait
        self._func = func
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def __call__(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.wait, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            # a newer call may already have installed another timer
            if self._timer is threading.current_thread():
                self._timer = None
        self._func()

    def flush(self) -> None:
        """Run a pending call now instead of waiting."""
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            self._func()

    def cancel(self) -> None:
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()


# ---------------------------------------------------------------------------
# Form handling
# ---------------------------------------------------------------------------

def split_labels(text: Optional[str]) -> List[str]:
    """Split comma-separated text into trimmed, non-empty labels."""
    if not text:
        return []
    return [part.strip() for part in text.split(',') if part.strip()]


def _parse_int(text: Optional[str]) -> Optional[int]:
    text = (text or '').strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _parse_hours(text: Optional[str]) -> float:
    text = (text or '').strip().replace(',', '.')
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0


def form_to_payload(form: Mapping[str, object]) -> GamePayload:
    """Build an API payload from form fields (all values as entered).

    Genre and platform are comma-separated text; an empty or unparsable
    year or score becomes ``None`` and empty hours become ``0``.
    """
    termine = form.get('termine', False)
    if isinstance(termine, str):
        termine = termine.strip().lower() in ('1', 'true', 'on', 'yes', 'oui')
    return {
        'titre': str(form.get('titre') or '').strip(),
        'genre': split_labels(form.get('genre')),
        'plateforme': split_labels(form.get('plateforme')),
        'editeur': str(form.get('editeur') or '').strip(),
        'developpeur': str(form.get('developpeur') or '').strip(),
        'annee_sortie': _parse_int(form.get('annee_sortie')),
        'metacritic_score': _parse_int(form.get('metacritic_score')),
        'temps_jeu_heures': _parse_hours(form.get('temps_jeu_heures')),
        'termine': bool(termine),
    }


def game_to_form(game: GameDocument) -> Dict[str, object]:
    """Pre-fill form fields from an existing game (the edit form)."""
    def _text(value) -> str:
        return '' if value is None else str(value)

    return {
        'titre': game['titre'],
        'genre': ', '.join(game['genre']),
        'plateforme': ', '.join(game['plateforme']),
        'editeur': game.get('editeur') or '',
        'developpeur': game.get('developpeur') or '',
        'annee_sortie': _text(game.get('annee_sortie')),
        'metacritic_score': _text(game.get('metacritic_score')),
        'temps_jeu_heures': _text(game.get('temps_jeu_heures')),
        'termine': bool(game.get('termine')),
    }


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def score_class(score: Optional[int]) -> str:
    if score is None:
        return ''
    if score >= 75:
        return 'score-high'
    if score >= 50:
        return 'score-mid'
    return 'score-low'


def _format_hours(value) -> str:
    return f"{value or 0:g}h"


_env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)
_env.filters['score_class'] = score_class
_env.filters['hours'] = _format_hours

_CARD_TEMPLATE = _env.from_string("""\
<div class="game-card" data-id="{{ game._id }}">
  <div class="game-card-header">
    <h3 class="game-title">{{ game.titre }}</h3>
    <div class="game-meta">
{% for g in game.genre[:3] %}
      <span class="game-badge genre">{{ g }}</span>
{% endfor %}
    </div>
  </div>
  <div class="game-card-body">
    <div class="game-info">
      <div class="info-item"><span class="info-label">Développeur</span><span class="info-value">{{ game.developpeur or '-' }}</span></div>
      <div class="info-item"><span class="info-label">Année</span><span class="info-value">{{ game.annee_sortie if game.annee_sortie is not none else '-' }}</span></div>
      <div class="info-item"><span class="info-label">Temps de jeu</span><span class="info-value">{{ game.temps_jeu_heures|hours }}</span></div>
      <div class="info-item"><span class="info-label">Score</span>
{% if game.metacritic_score is not none %}
        <span class="game-score {{ game.metacritic_score|score_class }}">{{ game.metacritic_score }}/100</span>
{% else %}
        <span class="info-value">-</span>
{% endif %}
      </div>
    </div>
    <div class="game-meta">
{% for p in game.plateforme %}
      <span class="game-badge platform">{{ p }}</span>
{% endfor %}
    </div>
  </div>
  <div class="game-card-footer">
    <span class="status-badge {{ 'status-completed' if game.termine else 'status-playing' }}">{{ '✅ Terminé' if game.termine else '🎮 En cours' }}</span>
    <span class="favorite{{ ' active' if game.favori else '' }}" title="Favori">{{ '⭐' if game.favori else '☆' }}</span>
  </div>
</div>
""")

_GRID_TEMPLATE = _env.from_string("""\
{% if cards %}
<div id="games-grid" class="games-grid">
{% for card in cards %}
{{ card }}
{% endfor %}
</div>
{% else %}
<div id="empty-state" class="empty-state"><p>Aucun jeu trouvé</p></div>
{% endif %}
""")

_CHART_TEMPLATE = _env.from_string("""\
{% if not bars %}
<p class="chart-empty">Aucune donnée</p>
{% else %}
{% for bar in bars %}
<div class="chart-bar">
  <span class="chart-bar-label">{{ bar.label }}</span>
  <div class="chart-bar-track"><div class="chart-bar-fill" style="width: {{ bar.width }}%"><span class="chart-bar-value">{{ bar.count }}</span></div></div>
</div>
{% endfor %}
{% endif %}
""")

_STATS_TEMPLATE = _env.from_string("""\
<div class="stats-cards">
  <div class="stat-card"><span class="stat-label">Jeux</span><span id="stat-total" class="stat-value">{{ general.total_jeux or 0 }}</span></div>
  <div class="stat-card"><span class="stat-label">Terminés</span><span id="stat-completed" class="stat-value">{{ general.jeux_termines or 0 }}</span></div>
  <div class="stat-card"><span class="stat-label">Favoris</span><span id="stat-favorites" class="stat-value">{{ general.jeux_favoris or 0 }}</span></div>
  <div class="stat-card"><span class="stat-label">Temps de jeu</span><span id="stat-playtime" class="stat-value">{{ general.temps_jeu_total|hours }}</span></div>
  <div class="stat-card"><span class="stat-label">Score moyen</span><span id="stat-avg-score" class="stat-value">{{ avg_score }}</span></div>
</div>
<div class="charts">
  <div id="genre-chart" class="chart"><h3>Genres</h3>{{ genre_chart }}</div>
  <div id="platform-chart" class="chart"><h3>Plateformes</h3>{{ platform_chart }}</div>
</div>
""")

_PAGE_TEMPLATE = _env.from_string("""\
<!DOCTYPE html>
<html lang="fr">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Ludothèque</title>
</head>
<body>
  <header><h1>🎮 Ludothèque</h1><a href="/api/export">Exporter</a></header>
{% if toasts %}
  <div id="toast-container">
{% for toast in toasts %}
    <div class="toast {{ toast.level }}">{{ toast.message }}</div>
{% endfor %}
  </div>
{% endif %}
  <form class="filters" method="get" action="/">
    <input id="search-input" type="search" name="search" value="{{ filters.search }}" placeholder="Rechercher un jeu...">
    <select id="filter-genre" name="genre">
      <option value="">Tous les genres</option>
{% for g in state.genres %}
      <option value="{{ g }}"{{ ' selected' if g == filters.genre else '' }}>{{ g }}</option>
{% endfor %}
    </select>
    <select id="filter-plateforme" name="plateforme">
      <option value="">Toutes les plateformes</option>
{% for p in state.platforms %}
      <option value="{{ p }}"{{ ' selected' if p == filters.platform else '' }}>{{ p }}</option>
{% endfor %}
    </select>
    <select id="filter-status" name="status">
{% for value, label in statuses %}
      <option value="{{ value }}"{{ ' selected' if value == filters.status else '' }}>{{ label }}</option>
{% endfor %}
    </select>
    <button type="submit">Filtrer</button>
  </form>
  <section id="games-tab">
{{ grid }}
  </section>
{% if stats_html %}
  <section id="stats-tab">
{{ stats_html }}
  </section>
{% endif %}
</body>
</html>
""")

_STATUS_LABELS = (
    (STATUS_ANY, 'Tous les statuts'),
    (STATUS_IN_PROGRESS, 'En cours'),
    (STATUS_COMPLETED, 'Terminés'),
    (STATUS_FAVORITES, 'Favoris'),
)


def render_game_card(game: GameDocument) -> Markup:
    return Markup(_CARD_TEMPLATE.render(game=game))


def render_games(games: List[GameDocument]) -> str:
    """Render the card grid, or the empty state when *games* is empty."""
    return _GRID_TEMPLATE.render(cards=[render_game_card(g) for g in games])


def render_chart(entries, limit: int = CHART_LIMIT) -> str:
    """Horizontal bars for the first *limit* entries, scaled to the largest count."""
    entries = list(entries or [])[:limit]
    bars = []
    if entries:
        top = max(e['count'] for e in entries) or 1
        bars = [{'label': e['_id'], 'count': e['count'],
                 'width': round(e['count'] / top * 100, 1)} for e in entries]
    return _CHART_TEMPLATE.render(bars=bars)


def render_stats(stats: CollectionStats) -> str:
    general = stats['general']
    score = general.get('score_moyen')
    return _STATS_TEMPLATE.render(
        general=general,
        avg_score=round(score) if score is not None else '-',
        genre_chart=Markup(render_chart(stats['by_genre'])),
        platform_chart=Markup(render_chart(stats['by_platform'])),
    )


def render_page(state: CollectionState, filters: GameFilters,
                toasts: Iterable['Toast'] = ()) -> str:
    """Render the full collection page as a function of state and filters."""
    return _PAGE_TEMPLATE.render(
        state=state,
        filters=filters,
        statuses=_STATUS_LABELS,
        toasts=list(toasts),
        grid=Markup(render_games(filter_games(state.games, filters))),
        stats_html=Markup(render_stats(state.stats)) if state.stats else '',
    )


# ---------------------------------------------------------------------------
# Application controller
# ---------------------------------------------------------------------------

class Toast(NamedTuple):
    level: str
    message: str


class CollectionApp:
    """Owns the client state and keeps it in sync with the API.

    Every mutation is sent to the server and followed by a full re-fetch,
    except a favourite toggle, which swaps the returned game into the loaded
    list.  Failed requests push an ``error`` toast and leave the previous
    state untouched.
    """

    def __init__(self, api: ApiClient, debounce_wait: float = SEARCH_DEBOUNCE_SECONDS,
                 on_render: Optional[Callable[[List[GameDocument]], None]] = None) -> None:
        self.api = api
        self.state = CollectionState()
        self.filters = GameFilters()
        self.toasts: deque = deque(maxlen=20)
        self.visible: List[GameDocument] = []
        self._on_render = on_render
        self._search_debouncer = Debouncer(debounce_wait, self.refilter)

    # -- notifications -------------------------------------------------

    def _toast(self, level: str, message: str) -> None:
        self.toasts.append(Toast(level, message))

    def drain_toasts(self) -> List[Toast]:
        toasts = list(self.toasts)
        self.toasts.clear()
        return toasts

    def _failed(self, message: str, error: ApiError) -> None:
        logger.error(f"{message}: {error.message}")
        self._toast('error', error.message if error.status is not None else message)

    # -- loading / filtering --------------------------------------------

    def load(self) -> bool:
        """Fetch the full (unfiltered) list, then statistics, and re-render."""
        try:
            games = self.api.list_games()
        except ApiError as e:
            self._failed('Erreur de chargement des jeux', e)
            return False
        self.state.replace(games)
        self.refilter()
        self.load_stats()
        return True

    def load_stats(self) -> bool:
        try:
            self.state.stats = self.api.get_stats()
        except ApiError as e:
            logger.error(f"Erreur chargement stats: {e.message}")
            return False
        return True

    def refilter(self) -> List[GameDocument]:
        self.visible = filter_games(self.state.games, self.filters)
        if self._on_render is not None:
            self._on_render(self.visible)
        return self.visible

    def set_search(self, text: str) -> None:
        """Update the search text; refiltering waits for typing to pause."""
        self.filters.search = text
        self._search_debouncer()

    def flush_search(self) -> None:
        self._search_debouncer.flush()

    def set_filters(self, genre: Optional[str] = None, platform: Optional[str] = None,
                    status: Optional[str] = None) -> List[GameDocument]:
        """Change the selection filters and refilter immediately."""
        if genre is not None:
            self.filters.genre = genre
        if platform is not None:
            self.filters.platform = platform
        if status is not None:
            if status not in STATUSES:
                raise ValueError(f"Unknown status filter: {status!r}")
            self.filters.status = status
        return self.refilter()

    # -- mutations -------------------------------------------------------

    def submit(self, form: Mapping[str, object], game_id: Optional[str] = None) -> bool:
        """Create (no *game_id*) or update a game from form fields, then reload."""
        payload = form_to_payload(form)
        try:
            if game_id:
                self.api.update_game(game_id, payload)
            else:
                self.api.create_game(payload)
        except ApiError as e:
            self._failed('Erreur lors de la sauvegarde', e)
            return False
        self._toast('success', 'Jeu modifié avec succès' if game_id else 'Jeu ajouté avec succès')
        self.load()
        return True

    def toggle_favorite(self, game_id: str) -> Optional[GameDocument]:
        try:
            game = self.api.toggle_favorite(game_id)
        except ApiError as e:
            self._failed('Erreur lors de la mise à jour', e)
            return None
        self._toast('success', 'Ajouté aux favoris' if game['favori'] else 'Retiré des favoris')
        # only the flag changed, so the server's copy replaces ours in place
        if self.state.patch(game):
            self.refilter()
            self.load_stats()
        else:
            self.load()
        return game

    def delete(self, game_id: str) -> bool:
        try:
            self.api.delete_game(game_id)
        except ApiError as e:
            self._failed('Erreur lors de la suppression', e)
            return False
        self._toast('success', 'Jeu supprimé avec succès')
        self.load()
        return True

    def export(self, path: str) -> bool:
        """Download the collection export and write it to *path*."""
        try:
            document = self.api.export()
        except ApiError as e:
            self._failed("Erreur lors de l'export", e)
            return False
        with open(path, 'w', encoding='utf-8') as fh:
            json.dump(document, fh, ensure_ascii=False, indent=2)
        self._toast('success', f"Export enregistré dans {path}")
        return True

    def render(self) -> str:
        return render_page(self.state, self.filters, self.drain_toasts())


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

def _print_toasts(app: CollectionApp) -> None:
    for toast in app.drain_toasts():
        colour = Fore.GREEN if toast.level == 'success' else Fore.RED
        print(f"{colour}{toast.message}")


def _print_game(game: GameDocument) -> None:
    star = f"{Fore.YELLOW}★" if game['favori'] else ' '
    status = f"{Fore.GREEN}terminé" if game['termine'] else f"{Fore.CYAN}en cours"
    year = game['annee_sortie'] if game['annee_sortie'] is not None else '-'
    print(f"{star}{Style.RESET_ALL} {Style.BRIGHT}{game['titre']}{Style.RESET_ALL} "
          f"({year}) [{', '.join(game['plateforme'])}] {status}{Style.RESET_ALL} "
          f"{Style.DIM}{game['_id']}")


def _form_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--titre', help='Title')
    parser.add_argument('--genre', help='Comma-separated genres')
    parser.add_argument('--plateforme', help='Comma-separated platforms')
    parser.add_argument('--editeur', help='Publisher')
    parser.add_argument('--developpeur', help='Developer')
    parser.add_argument('--annee-sortie', dest='annee_sortie', help='Release year')
    parser.add_argument('--metacritic-score', dest='metacritic_score', help='Metacritic score (0-100)')
    parser.add_argument('--temps-jeu-heures', dest='temps_jeu_heures', help='Hours played')
    parser.add_argument('--termine', action=argparse.BooleanOptionalAction, default=None,
                        help='Mark as completed')


def _collect_form(args, base: Optional[Dict] = None) -> Dict[str, object]:
    form = dict(base or {})
    for key in ('titre', 'genre', 'plateforme', 'editeur', 'developpeur',
                'annee_sortie', 'metacritic_score', 'temps_jeu_heures', 'termine'):
        value = getattr(args, key)
        if value is not None:
            form[key] = value
    return form


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Ludotheque - manage your video-game collection',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ludotheque-client list --genre Roguelike
  ludotheque-client add --titre Hades --genre Roguelike --plateforme "PC, Switch"
  ludotheque-client favorite <id>
  ludotheque-client export -o collection.json
        """
    )
    parser.add_argument('--api-url', help='API root (default: LUDOTHEQUE_API_URL)')
    parser.add_argument('--log-level', default='WARNING', help='Log level (default: WARNING)')
    sub = parser.add_subparsers(dest='command', required=True)

    p_list = sub.add_parser('list', help='List games')
    p_list.add_argument('--search', default='')
    p_list.add_argument('--genre', default='')
    p_list.add_argument('--plateforme', default='')
    p_list.add_argument('--status', default=STATUS_ANY, choices=STATUSES)

    p_show = sub.add_parser('show', help='Show one game')
    p_show.add_argument('game_id')

    p_add = sub.add_parser('add', help='Add a game')
    _form_args(p_add)

    p_edit = sub.add_parser('edit', help='Edit a game')
    p_edit.add_argument('game_id')
    _form_args(p_edit)

    p_fav = sub.add_parser('favorite', help='Toggle the favourite flag')
    p_fav.add_argument('game_id')

    p_del = sub.add_parser('delete', help='Delete a game')
    p_del.add_argument('game_id')
    p_del.add_argument('--yes', '-y', action='store_true', help='Do not ask for confirmation')

    sub.add_parser('stats', help='Show collection statistics')

    p_export = sub.add_parser('export', help='Export the collection as JSON')
    p_export.add_argument('-o', '--output', default=ludotheque.EXPORT_FILENAME)

    p_render = sub.add_parser('render', help='Render the collection page as HTML')
    p_render.add_argument('-o', '--output', default='-')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    init(autoreset=True)
    args = build_parser().parse_args(argv)
    config = ludotheque.load_config()
    ludotheque.setup_logging(args.log_level)
    app = CollectionApp(ApiClient(args.api_url or config['api_url']))

    if args.command == 'list':
        if not app.load():
            _print_toasts(app)
            return 1
        app.filters.search = args.search
        visible = app.set_filters(genre=args.genre, platform=args.plateforme, status=args.status)
        for game in visible:
            _print_game(game)
        print(f"{Style.DIM}{len(visible)} / {len(app.state.games)} jeux")
        return 0

    if args.command == 'show':
        try:
            game = app.api.get_game(args.game_id)
        except ApiError as e:
            print(f"{Fore.RED}{e.message}")
            return 1
        print(json.dumps(game, ensure_ascii=False, indent=2))
        return 0

    if args.command in ('add', 'edit'):
        game_id = getattr(args, 'game_id', None)
        base = None
        if game_id:
            try:
                base = game_to_form(app.api.get_game(game_id))
            except ApiError as e:
                print(f"{Fore.RED}{e.message}")
                return 1
        ok = app.submit(_collect_form(args, base), game_id=game_id)
        _print_toasts(app)
        return 0 if ok else 1

    if args.command == 'favorite':
        ok = app.toggle_favorite(args.game_id) is not None
        _print_toasts(app)
        return 0 if ok else 1

    if args.command == 'delete':
        if not args.yes:
            answer = input("Êtes-vous sûr de vouloir supprimer ce jeu ? [o/N] ")
            if answer.strip().lower() not in ('o', 'oui', 'y', 'yes'):
                return 0
        ok = app.delete(args.game_id)
        _print_toasts(app)
        return 0 if ok else 1

    if args.command == 'stats':
        if not app.load_stats():
            print(f"{Fore.RED}Erreur chargement stats")
            return 1
        general = app.state.stats['general']
        print(f"{Style.BRIGHT}Jeux:{Style.RESET_ALL} {general['total_jeux']}  "
              f"{Style.BRIGHT}Terminés:{Style.RESET_ALL} {general['jeux_termines']}  "
              f"{Style.BRIGHT}Favoris:{Style.RESET_ALL} {general['jeux_favoris']}  "
              f"{Style.BRIGHT}Temps:{Style.RESET_ALL} {_format_hours(general['temps_jeu_total'])}")
        for title, key in (('Genres', 'by_genre'), ('Plateformes', 'by_platform')):
            print(f"\n{Fore.CYAN}{title}")
            for entry in app.state.stats[key]:
                print(f"  {entry['_id']:<24} {entry['count']}")
        return 0

    if args.command == 'export':
        ok = app.export(args.output)
        _print_toasts(app)
        return 0 if ok else 1

    if args.command == 'render':
        if not app.load():
            _print_toasts(app)
            return 1
        html = app.render()
        if args.output == '-':
            sys.stdout.write(html)
        else:
            with open(args.output, 'w', encoding='utf-8') as fh:
                fh.write(html)
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
