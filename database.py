#!/usr/bin/env python3
"""
Database models and configuration for Ludotheque.
Holds the game collection in a SQL store (PostgreSQL by default) and
provides the query, mutation and aggregation helpers used by the services.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import (
    create_engine, Column, Integer, String, Boolean, DateTime, Float,
    ForeignKey, case, event, func, text,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

import ludotheque
from catalog.schemas import BreakdownEntry, GameDocument, GeneralStats

logger = logging.getLogger('ludotheque.database')

Base = declarative_base()

# Bound by configure(); route handlers open sessions with SessionLocal().
engine: Optional[Engine] = None
SessionLocal = sessionmaker(autoflush=False, expire_on_commit=False)


class Game(Base):
    """One game in the collection."""
    __tablename__ = "games"

    id = Column(String(32), primary_key=True, default=ludotheque.new_game_id)
    title = Column(String(500), nullable=False, index=True)
    publisher = Column(String(255), nullable=False, default='')
    developer = Column(String(255), nullable=False, default='')
    release_year = Column(Integer, nullable=True)
    metacritic_score = Column(Integer, nullable=True)
    hours_played = Column(Float, nullable=False, default=0.0)
    completed = Column(Boolean, nullable=False, default=False)
    favorite = Column(Boolean, nullable=False, default=False)
    added_at = Column(DateTime, nullable=False, index=True)
    modified_at = Column(DateTime, nullable=False)

    # Relationships (ordered lists, replaced wholesale on update)
    genre_entries = relationship(
        "GameGenre", back_populates="game", order_by="GameGenre.position",
        cascade="all, delete-orphan", lazy="selectin")
    platform_entries = relationship(
        "GamePlatform", back_populates="game", order_by="GamePlatform.position",
        cascade="all, delete-orphan", lazy="selectin")

    @property
    def genres(self) -> List[str]:
        return [entry.name for entry in self.genre_entries]

    @genres.setter
    def genres(self, names: List[str]) -> None:
        self.genre_entries = [GameGenre(position=i, name=n) for i, n in enumerate(names)]

    @property
    def platforms(self) -> List[str]:
        return [entry.name for entry in self.platform_entries]

    @platforms.setter
    def platforms(self, names: List[str]) -> None:
        self.platform_entries = [GamePlatform(position=i, name=n) for i, n in enumerate(names)]


class GameGenre(Base):
    """A genre label attached to a game; a game lists one or more."""
    __tablename__ = "game_genres"

    id = Column(Integer, primary_key=True)
    game_id = Column(String(32), ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False, index=True)

    game = relationship("Game", back_populates="genre_entries")


class GamePlatform(Base):
    """A platform label attached to a game; a game lists one or more."""
    __tablename__ = "game_platforms"

    id = Column(Integer, primary_key=True)
    game_id = Column(String(32), ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False, index=True)

    game = relationship("Game", back_populates="platform_entries")


# ---------------------------------------------------------------------------
# Engine / session management
# ---------------------------------------------------------------------------

def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _register_unicode_lower(dbapi_connection, connection_record):
    # SQLite's built-in lower() only folds ASCII letters
    dbapi_connection.create_function('lower', 1, _unicode_lower, deterministic=True)


def configure(database_url: str, db_name: Optional[str] = None, **engine_kwargs) -> Engine:
    """Create the engine for *database_url* and bind :data:`SessionLocal` to it.

    Args:
        database_url: SQLAlchemy connection string.
        db_name:      Database name replacing the URL's own database part.
                      Ignored for SQLite, where the URL names the file.
        **engine_kwargs: Passed through to :func:`sqlalchemy.create_engine`.
    """
    global engine
    url = make_url(database_url)
    if db_name and url.get_backend_name() != 'sqlite':
        url = url.set(database=db_name)
    engine = create_engine(url, **engine_kwargs)
    if url.get_backend_name() == 'sqlite':
        event.listen(engine, 'connect', _register_unicode_lower)
    SessionLocal.configure(bind=engine)
    logger.debug("Database engine configured for %s", url.render_as_string(hide_password=True))
    return engine


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> bool:
    """Check the store is reachable and create missing tables.

    Returns:
        ``True`` on success, ``False`` if the store cannot be reached.
    """
    if engine is None:
        logger.error("Database engine is not configured")
        return False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables initialized successfully")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Failed to initialize database: {e}")
        return False


def ping(db) -> None:
    """Run a trivial query; raises :class:`SQLAlchemyError` if the store is down."""
    db.execute(text("SELECT 1"))


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------

def game_to_dict(game: Game) -> GameDocument:
    """Convert a :class:`Game` row to its wire representation."""
    return {
        '_id': game.id,
        'titre': game.title,
        'genre': game.genres,
        'plateforme': game.platforms,
        'editeur': game.publisher,
        'developpeur': game.developer,
        'annee_sortie': game.release_year,
        'metacritic_score': game.metacritic_score,
        'temps_jeu_heures': game.hours_played,
        'termine': game.completed,
        'favori': game.favorite,
        'date_ajout': ludotheque.format_timestamp(game.added_at),
        'date_modification': ludotheque.format_timestamp(game.modified_at),
    }


def _next_modification(previous: Optional[datetime], now: datetime) -> datetime:
    # modified_at must strictly increase even when the clock does not move.
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


# ---------------------------------------------------------------------------
# Queries and mutations
# ---------------------------------------------------------------------------

def insert_game(db, fields: Dict) -> Game:
    """Insert a new game.

    Args:
        db:     Database session
        fields: Mapping of :class:`Game` attribute names to values
                (``genres`` / ``platforms`` as lists of strings).

    Returns:
        The persisted game, with ``id`` and both timestamps set.
    """
    now = ludotheque.utcnow()
    try:
        game = Game(id=ludotheque.new_game_id(), publisher='', developer='',
                    hours_played=0.0, completed=False, favorite=False,
                    added_at=now, modified_at=now)
        for attr, value in fields.items():
            setattr(game, attr, value)
        db.add(game)
        db.commit()
        logger.info(f"Added game {game.id} ({game.title})")
        return game
    except SQLAlchemyError as e:
        logger.error(f"Error inserting game: {e}")
        db.rollback()
        raise


def find_games(db, genre: Optional[str] = None, platform: Optional[str] = None,
               completed: Optional[bool] = None, favorite: Optional[bool] = None,
               search: Optional[str] = None) -> List[Game]:
    """Return games matching every given filter, newest first.

    Args:
        db:        Database session
        genre:     Keep games listing this genre
        platform:  Keep games listing this platform
        completed: Keep games whose completed flag equals this value
        favorite:  Keep games whose favorite flag equals this value
        search:    Case-insensitive substring of the title
    """
    query = db.query(Game)
    if genre:
        query = query.filter(Game.genre_entries.any(GameGenre.name == genre))
    if platform:
        query = query.filter(Game.platform_entries.any(GamePlatform.name == platform))
    if completed is not None:
        query = query.filter(Game.completed.is_(completed))
    if favorite is not None:
        query = query.filter(Game.favorite.is_(favorite))
    if search:
        query = query.filter(func.lower(Game.title).contains(search.lower(), autoescape=True))
    return query.order_by(Game.added_at.desc()).all()


def get_all_games(db) -> List[Game]:
    """Return the whole collection, oldest first."""
    return db.query(Game).order_by(Game.added_at.asc()).all()


def get_game(db, game_id: str) -> Optional[Game]:
    """Get a game by identifier, or ``None``."""
    return db.get(Game, game_id)


def update_game(db, game_id: str, changes: Dict) -> Optional[Game]:
    """Apply *changes* (attribute name -> value) and bump ``modified_at``.

    Returns:
        The updated game, or ``None`` if no game has *game_id*.
    """
    try:
        game = db.get(Game, game_id)
        if not game:
            return None
        for attr, value in changes.items():
            setattr(game, attr, value)
        game.modified_at = _next_modification(game.modified_at, ludotheque.utcnow())
        db.commit()
        return game
    except SQLAlchemyError as e:
        logger.error(f"Error updating game {game_id}: {e}")
        db.rollback()
        raise


def toggle_favorite(db, game_id: str) -> Optional[Game]:
    """Flip the favorite flag of a game.

    Returns:
        The updated game, or ``None`` if no game has *game_id*.
    """
    try:
        game = db.get(Game, game_id)
        if not game:
            return None
        game.favorite = not game.favorite
        game.modified_at = _next_modification(game.modified_at, ludotheque.utcnow())
        db.commit()
        return game
    except SQLAlchemyError as e:
        logger.error(f"Error toggling favorite for {game_id}: {e}")
        db.rollback()
        raise


def delete_game(db, game_id: str) -> bool:
    """Delete a game from the database; ``False`` if it did not exist."""
    try:
        game = db.get(Game, game_id)
        if not game:
            return False
        db.delete(game)
        db.commit()
        logger.info(f"Deleted game {game_id}")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Error deleting game {game_id}: {e}")
        db.rollback()
        raise


# ---------------------------------------------------------------------------
# Aggregations
# ---------------------------------------------------------------------------

def get_general_stats(db) -> GeneralStats:
    """Totals over the whole collection.

    The average Metacritic score ignores games without one and is ``None``
    when no game has a score.  An empty collection yields all zeros.
    """
    total, completed, favorites, hours, avg_score = db.query(
        func.count(Game.id),
        func.sum(case((Game.completed.is_(True), 1), else_=0)),
        func.sum(case((Game.favorite.is_(True), 1), else_=0)),
        func.sum(Game.hours_played),
        func.avg(Game.metacritic_score),
    ).one()
    if not total:
        return {
            'total_jeux': 0,
            'jeux_termines': 0,
            'jeux_favoris': 0,
            'temps_jeu_total': 0,
            'score_moyen': 0,
        }
    return {
        'total_jeux': int(total),
        'jeux_termines': int(completed or 0),
        'jeux_favoris': int(favorites or 0),
        'temps_jeu_total': float(hours or 0),
        'score_moyen': float(avg_score) if avg_score is not None else None,
    }


def _count_by(db, model) -> List[BreakdownEntry]:
    count = func.count(model.id)
    rows = (
        db.query(model.name, count)
        .group_by(model.name)
        .order_by(count.desc(), model.name.asc())
        .all()
    )
    return [{'_id': name, 'count': int(n)} for name, n in rows]


def count_by_genre(db) -> List[BreakdownEntry]:
    """Number of games per genre, most common first."""
    return _count_by(db, GameGenre)


def count_by_platform(db) -> List[BreakdownEntry]:
    """Number of games per platform, most common first."""
    return _count_by(db, GamePlatform)
