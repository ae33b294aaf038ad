#!/usr/bin/env python3
"""
Ludotheque Web - HTTP API and collection page for the game collection.
Exposes CRUD, favourite toggling, statistics and export over JSON.
"""

import argparse
import json
import logging
import sys
from functools import wraps
from typing import Optional

from flask import Flask, jsonify, request, Response
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

import database
import ludotheque
import ludotheque_client
from catalog.errors import GameNotFoundError, GameValidationError, InvalidGameIdError
from catalog.services import GameService, StatsService
from openapi_spec import build_spec

app = Flask(__name__)

web_logger = logging.getLogger('ludotheque.web')

_game_service = GameService(database)
_stats_service = StatsService(database)


def _fail(message: str, status: int):
    return jsonify({'success': False, 'error': message}), status


class _BadRequestBody(Exception):
    pass


def _json_body():
    """Return the decoded JSON body; an empty body counts as ``{}``."""
    if not request.get_data():
        return {}
    payload = request.get_json(silent=True)
    if payload is None:
        raise _BadRequestBody()
    return payload


def _flag_arg(name: str, alias: str) -> Optional[bool]:
    """Read a boolean query parameter: ``'true'`` is true, any other value false."""
    value = request.args.get(name)
    if value is None:
        value = request.args.get(alias)
    if value is None:
        return None
    return value == 'true'


def with_db_session(f):
    """Decorator opening a session per request and mapping domain errors
    to the API failure shape."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        db = database.SessionLocal()
        try:
            return f(db, *args, **kwargs)
        except _BadRequestBody:
            return _fail('Corps JSON invalide', 400)
        except InvalidGameIdError as e:
            return _fail(e.message, 400)
        except GameValidationError as e:
            return jsonify({'success': False, 'errors': e.errors}), 400
        except GameNotFoundError as e:
            return _fail(e.message, 404)
        except SQLAlchemyError as e:
            web_logger.exception(f"Database error in {request.method} {request.path}: {e}")
            return _fail(str(e), 500)
        except Exception as e:
            web_logger.exception(f"Unexpected error in {request.method} {request.path}: {e}")
            return _fail(str(e), 500)
        finally:
            db.close()
    return decorated_function


@app.after_request
def add_cors_headers(response):
    response.headers.setdefault('Access-Control-Allow-Origin', '*')
    response.headers.setdefault('Access-Control-Allow-Methods', 'GET, POST, PUT, DELETE, OPTIONS')
    response.headers.setdefault('Access-Control-Allow-Headers', 'Content-Type')
    return response


@app.errorhandler(HTTPException)
def handle_http_error(e):
    """Unknown API routes and wrong methods answer with the JSON failure shape."""
    if request.path.startswith('/api/'):
        return _fail(e.description or e.name, e.code)
    return e


# ---------------------------------------------------------------------------
# Collection page
# ---------------------------------------------------------------------------

@app.route('/')
@with_db_session
def index(db):
    """Render the collection grid, filtered by the query string."""
    state = ludotheque_client.CollectionState()
    state.replace(_game_service.list(db))
    state.stats = _stats_service.get_stats(db)
    filters = ludotheque_client.GameFilters(
        search=request.args.get('search', ''),
        genre=request.args.get('genre', ''),
        platform=request.args.get('plateforme', request.args.get('platform', '')),
        status=request.args.get('status', ''),
    )
    return ludotheque_client.render_page(state, filters)


# ---------------------------------------------------------------------------
# Games
# ---------------------------------------------------------------------------

@app.route('/api/games', methods=['POST'])
@with_db_session
def api_create_game(db):
    """Add a new game to the collection"""
    game = _game_service.create(db, _json_body())
    web_logger.info(f"Created game {game['_id']}")
    return jsonify({'success': True, 'data': game}), 201


@app.route('/api/games', methods=['GET'])
@with_db_session
def api_list_games(db):
    """List games, optionally filtered by genre, platform, status and title"""
    games = _game_service.list(
        db,
        genre=request.args.get('genre') or None,
        platform=request.args.get('plateforme') or request.args.get('platform') or None,
        completed=_flag_arg('termine', 'completed'),
        favorite=_flag_arg('favori', 'favorite'),
        search=request.args.get('search') or None,
    )
    return jsonify({'success': True, 'count': len(games), 'data': games})


@app.route('/api/games/<game_id>', methods=['GET'])
@with_db_session
def api_get_game(db, game_id):
    return jsonify({'success': True, 'data': _game_service.get(db, game_id)})


@app.route('/api/games/<game_id>', methods=['PUT'])
@with_db_session
def api_update_game(db, game_id):
    """Update the provided fields of a game"""
    game = _game_service.update(db, game_id, _json_body())
    return jsonify({'success': True, 'data': game})


@app.route('/api/games/<game_id>', methods=['DELETE'])
@with_db_session
def api_delete_game(db, game_id):
    _game_service.delete(db, game_id)
    return jsonify({'success': True, 'message': 'Jeu supprimé avec succès'})


@app.route('/api/games/<game_id>/favorite', methods=['POST'])
@with_db_session
def api_toggle_favorite(db, game_id):
    """Flip the favourite flag of a game"""
    return jsonify({'success': True, 'data': _game_service.toggle_favorite(db, game_id)})


# ---------------------------------------------------------------------------
# Statistics / export
# ---------------------------------------------------------------------------

@app.route('/api/stats', methods=['GET'])
@with_db_session
def api_stats(db):
    return jsonify({'success': True, 'data': _stats_service.get_stats(db)})


@app.route('/api/export', methods=['GET'])
@with_db_session
def api_export(db):
    """Download the whole collection as a JSON attachment."""
    body = json.dumps(_stats_service.export(db), ensure_ascii=False, indent=2)
    return Response(
        body.encode('utf-8'),
        mimetype='application/json',
        headers={'Content-Disposition': f'attachment; filename={ludotheque.EXPORT_FILENAME}'},
    )


# ---------------------------------------------------------------------------
# Service endpoints
# ---------------------------------------------------------------------------

@app.route('/api/health', methods=['GET'])
def api_health():
    db = database.SessionLocal()
    try:
        database.ping(db)
        return jsonify({'success': True, 'database': 'ok'})
    except SQLAlchemyError as e:
        web_logger.error(f"Health check failed: {e}")
        return _fail('Base de données indisponible', 503)
    finally:
        db.close()


@app.route('/api/openapi.json', methods=['GET'])
def api_openapi():
    return jsonify(build_spec(server_url=request.host_url.rstrip('/')))


def main():
    """Main entry point for the web server"""
    parser = argparse.ArgumentParser(description='Ludotheque web server')
    parser.add_argument('--env-file', help='Path to a .env file (default: ./.env)')
    parser.add_argument('--host', help='Listen host (overrides HOST)')
    parser.add_argument('--port', type=int, help='Listen port (overrides PORT)')
    parser.add_argument('--debug', action='store_true', help='Run Flask in debug mode')
    args = parser.parse_args()

    config = ludotheque.load_config(args.env_file)
    logger = ludotheque.setup_logging(config['log_level'])
    ludotheque.add_file_handler(logger, 'logs/ludotheque_web.log')

    database.configure(config['database_url'], config['db_name'], pool_pre_ping=True)
    if not database.init_db():
        web_logger.error("Cannot reach the database, exiting")
        sys.exit(1)
    web_logger.info("Connected to the database")

    host = args.host or config['host']
    port = args.port or config['port']

    print("\n" + "="*60)
    print("🎮 Ludotheque is starting...")
    print("="*60)
    print(f"\n  Collection: http://{host}:{port}")
    print(f"  API:        http://{host}:{port}/api/games")
    print("\nPress Ctrl+C to stop the server")
    print("="*60 + "\n")

    try:
        app.run(host=host, port=port, debug=args.debug)
    except KeyboardInterrupt:
        print("\n🛑 Ludotheque stopped\n")


if __name__ == "__main__":
    main()
