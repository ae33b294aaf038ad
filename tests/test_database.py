#!/usr/bin/env python3
"""
Tests for the database helpers: queries, mutations and aggregations.

Run with:
    python -m pytest tests/test_database.py
"""
import datetime
import os
import sys
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import database
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


# ---------------------------------------------------------------------------
# In-memory DB helper
# ---------------------------------------------------------------------------

def _make_session():
    engine = create_engine('sqlite:///:memory:', connect_args={"check_same_thread": False})
    database.Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)()


def _add(db, title, genres=('Action',), platforms=('PC',), **extra):
    fields = {'title': title, 'genres': list(genres), 'platforms': list(platforms)}
    fields.update(extra)
    return database.insert_game(db, fields)


T0 = datetime.datetime(2024, 5, 1, 12, 0, 0)


# ===========================================================================
# insert / get / serialisation
# ===========================================================================

class TestInsertGame(unittest.TestCase):

    def setUp(self):
        self.db = _make_session()

    def tearDown(self):
        self.db.close()

    def test_assigns_id_and_timestamps(self):
        with patch('ludotheque.utcnow', return_value=T0):
            game = _add(self.db, 'Hades')
        self.assertEqual(len(game.id), 32)
        self.assertEqual(game.added_at, T0)
        self.assertEqual(game.modified_at, T0)

    def test_lists_keep_their_order(self):
        game = _add(self.db, 'Celeste', genres=['Platformer', 'Indie', 'Action'],
                    platforms=['Switch', 'PC'])
        fetched = database.get_game(self.db, game.id)
        self.assertEqual(fetched.genres, ['Platformer', 'Indie', 'Action'])
        self.assertEqual(fetched.platforms, ['Switch', 'PC'])

    def test_get_unknown_returns_none(self):
        self.assertIsNone(database.get_game(self.db, 'f' * 32))

    def test_game_to_dict_uses_wire_keys(self):
        with patch('ludotheque.utcnow', return_value=T0):
            game = _add(self.db, 'Hades', release_year=2020, metacritic_score=93)
        doc = database.game_to_dict(game)
        self.assertEqual(doc['_id'], game.id)
        self.assertEqual(doc['titre'], 'Hades')
        self.assertEqual(doc['genre'], ['Action'])
        self.assertEqual(doc['plateforme'], ['PC'])
        self.assertEqual(doc['annee_sortie'], 2020)
        self.assertEqual(doc['metacritic_score'], 93)
        self.assertFalse(doc['favori'])
        self.assertEqual(doc['date_ajout'], '2024-05-01T12:00:00.000000Z')


# ===========================================================================
# find_games
# ===========================================================================

class TestFindGames(unittest.TestCase):

    def setUp(self):
        self.db = _make_session()
        times = [T0 + datetime.timedelta(minutes=i) for i in range(4)]
        with patch('ludotheque.utcnow', side_effect=times):
            self.hades = _add(self.db, 'Hades', ['Roguelike', 'Action'], ['PC', 'Switch'])
            self.celeste = _add(self.db, 'Celeste', ['Platformer'], ['Switch'], completed=True)
            self.dead_cells = _add(self.db, 'Dead Cells', ['Roguelike'], ['PC'], favorite=True)
            self.percent = _add(self.db, '100% Orange Juice', ['Board'], ['PC'])

    def tearDown(self):
        self.db.close()

    def _titles(self, **filters):
        return [g.title for g in database.find_games(self.db, **filters)]

    def test_newest_first(self):
        self.assertEqual(self._titles(),
                         ['100% Orange Juice', 'Dead Cells', 'Celeste', 'Hades'])

    def test_genre_membership(self):
        self.assertEqual(self._titles(genre='Roguelike'), ['Dead Cells', 'Hades'])

    def test_platform_membership(self):
        self.assertEqual(self._titles(platform='Switch'), ['Celeste', 'Hades'])

    def test_filters_are_conjunctive(self):
        self.assertEqual(self._titles(genre='Roguelike', platform='Switch'), ['Hades'])
        self.assertEqual(self._titles(genre='Platformer', platform='PC'), [])

    def test_completed_flag(self):
        self.assertEqual(self._titles(completed=True), ['Celeste'])
        self.assertEqual(len(self._titles(completed=False)), 3)

    def test_favorite_flag(self):
        self.assertEqual(self._titles(favorite=True), ['Dead Cells'])

    def test_search_is_case_insensitive_substring(self):
        self.assertEqual(self._titles(search='CELL'), ['Dead Cells'])
        self.assertEqual(self._titles(search='de'), ['Dead Cells', 'Hades'])

    def test_search_treats_wildcards_literally(self):
        self.assertEqual(self._titles(search='100%'), ['100% Orange Juice'])
        self.assertEqual(self._titles(search='%'), ['100% Orange Juice'])

    def test_get_all_games_oldest_first(self):
        titles = [g.title for g in database.get_all_games(self.db)]
        self.assertEqual(titles[0], 'Hades')
        self.assertEqual(len(titles), 4)


# ===========================================================================
# update / toggle / delete
# ===========================================================================

class TestMutations(unittest.TestCase):

    def setUp(self):
        self.db = _make_session()
        with patch('ludotheque.utcnow', return_value=T0):
            self.game = _add(self.db, 'Hades', ['Roguelike'], ['PC'], publisher='Supergiant')

    def tearDown(self):
        self.db.close()

    def test_update_changes_only_given_fields(self):
        later = T0 + datetime.timedelta(hours=1)
        with patch('ludotheque.utcnow', return_value=later):
            game = database.update_game(self.db, self.game.id, {'hours_played': 12.0})
        self.assertEqual(game.hours_played, 12.0)
        self.assertEqual(game.publisher, 'Supergiant')
        self.assertEqual(game.genres, ['Roguelike'])
        self.assertEqual(game.added_at, T0)
        self.assertEqual(game.modified_at, later)

    def test_update_replaces_lists(self):
        game = database.update_game(self.db, self.game.id, {'platforms': ['PS5', 'Xbox']})
        self.assertEqual(database.get_game(self.db, game.id).platforms, ['PS5', 'Xbox'])
        self.assertEqual(self.db.query(database.GamePlatform).count(), 2)

    def test_modified_at_advances_with_frozen_clock(self):
        with patch('ludotheque.utcnow', return_value=T0):
            game = database.update_game(self.db, self.game.id, {})
        self.assertGreater(game.modified_at, T0)

    def test_update_unknown_returns_none(self):
        self.assertIsNone(database.update_game(self.db, 'a' * 32, {'title': 'x'}))

    def test_toggle_favorite_flips(self):
        self.assertTrue(database.toggle_favorite(self.db, self.game.id).favorite)
        self.assertFalse(database.toggle_favorite(self.db, self.game.id).favorite)

    def test_toggle_unknown_returns_none(self):
        self.assertIsNone(database.toggle_favorite(self.db, 'a' * 32))

    def test_delete_removes_game_and_labels(self):
        self.assertTrue(database.delete_game(self.db, self.game.id))
        self.assertIsNone(database.get_game(self.db, self.game.id))
        self.assertEqual(self.db.query(database.GameGenre).count(), 0)
        self.assertEqual(self.db.query(database.GamePlatform).count(), 0)

    def test_delete_unknown_returns_false(self):
        self.assertFalse(database.delete_game(self.db, 'a' * 32))


# ===========================================================================
# Aggregations
# ===========================================================================

class TestAggregations(unittest.TestCase):

    def setUp(self):
        self.db = _make_session()

    def tearDown(self):
        self.db.close()

    def test_empty_collection(self):
        self.assertEqual(database.get_general_stats(self.db), {
            'total_jeux': 0,
            'jeux_termines': 0,
            'jeux_favoris': 0,
            'temps_jeu_total': 0,
            'score_moyen': 0,
        })
        self.assertEqual(database.count_by_genre(self.db), [])
        self.assertEqual(database.count_by_platform(self.db), [])

    def test_general_stats(self):
        _add(self.db, 'A', hours_played=10.0, metacritic_score=80, completed=True)
        _add(self.db, 'B', hours_played=2.5, metacritic_score=90, favorite=True)
        _add(self.db, 'C', hours_played=0.0)
        stats = database.get_general_stats(self.db)
        self.assertEqual(stats['total_jeux'], 3)
        self.assertEqual(stats['jeux_termines'], 1)
        self.assertEqual(stats['jeux_favoris'], 1)
        self.assertAlmostEqual(stats['temps_jeu_total'], 12.5)
        self.assertAlmostEqual(stats['score_moyen'], 85.0)

    def test_average_score_none_when_no_scores(self):
        _add(self.db, 'A')
        self.assertIsNone(database.get_general_stats(self.db)['score_moyen'])

    def test_breakdowns_count_every_label(self):
        _add(self.db, 'A', genres=['RPG', 'Action'], platforms=['PC'])
        _add(self.db, 'B', genres=['RPG'], platforms=['PC', 'PS5'])
        _add(self.db, 'C', genres=['Puzzle'], platforms=['Switch'])
        self.assertEqual(database.count_by_genre(self.db), [
            {'_id': 'RPG', 'count': 2},
            {'_id': 'Action', 'count': 1},
            {'_id': 'Puzzle', 'count': 1},
        ])
        self.assertEqual(database.count_by_platform(self.db)[0], {'_id': 'PC', 'count': 2})


if __name__ == '__main__':
    unittest.main()
