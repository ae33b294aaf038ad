"""
openapi_spec.py - Ludotheque OpenAPI 3.0 specification builder.

Returns a Python dict (compatible with ``json.dumps``) that describes every
REST endpoint exposed by ``ludotheque_web.py``.

Usage (from ludotheque_web.py)::

    from openapi_spec import build_spec
    spec = build_spec(server_url="http://localhost:3000")
"""

from typing import Any, Dict

from catalog.services.validation_service import (
    MAX_METACRITIC, MIN_METACRITIC, MIN_RELEASE_YEAR,
)


def _ref(name: str) -> Dict[str, str]:
    return {"$ref": f"#/components/schemas/{name}"}


def _resp(description: str, schema: Dict = None) -> Dict:
    content: Dict[str, Any] = {}
    if schema:
        content = {"application/json": {"schema": schema}}
    r: Dict[str, Any] = {"description": description}
    if content:
        r["content"] = content
    return r


def _json_resp(description: str, schema: Dict = None) -> Dict:
    if schema is None:
        schema = {"type": "object"}
    return _resp(description, schema)


def _data(schema: Dict) -> Dict:
    return {"type": "object",
            "properties": {"success": {"type": "boolean", "example": True},
                           "data": schema}}


def _error(description: str) -> Dict:
    return _json_resp(description, _ref("Error"))


_ID_PARAM = {"name": "id", "in": "path", "required": True,
             "schema": {"type": "string", "pattern": "^[0-9a-f]{32}$"}}


def _game_properties() -> Dict[str, Any]:
    return {
        "titre":            {"type": "string", "example": "Hades"},
        "genre":            {"type": "array", "items": {"type": "string"}, "minItems": 1,
                             "example": ["Roguelike"]},
        "plateforme":       {"type": "array", "items": {"type": "string"}, "minItems": 1,
                             "example": ["PC"]},
        "editeur":          {"type": "string", "nullable": True},
        "developpeur":      {"type": "string", "nullable": True},
        "annee_sortie":     {"type": "integer", "nullable": True,
                             "minimum": MIN_RELEASE_YEAR,
                             "description": "Up to the current calendar year"},
        "metacritic_score": {"type": "integer", "nullable": True,
                             "minimum": MIN_METACRITIC, "maximum": MAX_METACRITIC},
        "temps_jeu_heures": {"type": "number", "nullable": True, "minimum": 0},
        "termine":          {"type": "boolean"},
        "favori":           {"type": "boolean"},
    }


def build_spec(server_url: str = "/") -> Dict[str, Any]:
    """Return the full OpenAPI 3.0 specification dict."""

    game = {
        "type": "object",
        "properties": dict(
            {"_id": {"type": "string", "example": "9f1c2d3e4b5a69788796a5b4c3d2e1f0"}},
            **_game_properties(),
            date_ajout={"type": "string", "format": "date-time"},
            date_modification={"type": "string", "format": "date-time"},
        ),
    }

    spec: Dict[str, Any] = {
        "openapi": "3.0.3",
        "info": {
            "title": "Ludotheque - video-game collection API",
            "version": "1.0.0",
            "description": (
                "CRUD API over a personal video-game collection, with favourite "
                "toggling, aggregate statistics and a JSON export.\n\n"
                "Failures use `{success: false, error}` or "
                "`{success: false, errors: [...]}`."
            ),
            "license": {"name": "MIT"},
        },
        "servers": [{"url": server_url, "description": "Ludotheque server"}],
        "tags": [
            {"name": "games",  "description": "Game records"},
            {"name": "stats",  "description": "Collection statistics"},
            {"name": "export", "description": "JSON export"},
            {"name": "docs",   "description": "API documentation and health"},
        ],
        "components": {
            "schemas": {
                "Error": {
                    "type": "object",
                    "properties": {
                        "success": {"type": "boolean", "example": False},
                        "error":   {"type": "string"},
                    },
                    "required": ["success", "error"],
                },
                "ValidationErrors": {
                    "type": "object",
                    "properties": {
                        "success": {"type": "boolean", "example": False},
                        "errors":  {"type": "array", "items": {"type": "string"}},
                    },
                    "required": ["success", "errors"],
                },
                "Game": game,
                "GameInput": {
                    "type": "object",
                    "required": ["titre", "genre", "plateforme"],
                    "properties": _game_properties(),
                },
                "GameUpdate": {
                    "type": "object",
                    "properties": _game_properties(),
                },
                "BreakdownEntry": {
                    "type": "object",
                    "properties": {"_id": {"type": "string"}, "count": {"type": "integer"}},
                },
                "Stats": {
                    "type": "object",
                    "properties": {
                        "general": {
                            "type": "object",
                            "properties": {
                                "total_jeux":      {"type": "integer"},
                                "jeux_termines":   {"type": "integer"},
                                "jeux_favoris":    {"type": "integer"},
                                "temps_jeu_total": {"type": "number"},
                                "score_moyen":     {"type": "number", "nullable": True},
                            },
                        },
                        "by_genre":    {"type": "array", "items": _ref("BreakdownEntry")},
                        "by_platform": {"type": "array", "items": _ref("BreakdownEntry")},
                    },
                },
            },
        },
        "paths": _build_paths(),
    }
    return spec


def _build_paths() -> Dict[str, Any]:
    paths: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Games
    # ------------------------------------------------------------------
    paths["/api/games"] = {
        "get": {
            "tags": ["games"],
            "summary": "List games",
            "description": "All filters are optional and combined with AND. "
                           "Results are ordered newest first.",
            "parameters": [
                {"name": "genre", "in": "query", "schema": {"type": "string"}},
                {"name": "plateforme", "in": "query", "schema": {"type": "string"},
                 "description": "Alias: `platform`"},
                {"name": "termine", "in": "query", "schema": {"type": "string", "enum": ["true", "false"]},
                 "description": "Alias: `completed`"},
                {"name": "favori", "in": "query", "schema": {"type": "string", "enum": ["true", "false"]},
                 "description": "Alias: `favorite`"},
                {"name": "search", "in": "query", "schema": {"type": "string"},
                 "description": "Case-insensitive substring of the title"},
            ],
            "responses": {
                "200": _json_resp("Matching games", {
                    "type": "object",
                    "properties": {
                        "success": {"type": "boolean"},
                        "count":   {"type": "integer"},
                        "data":    {"type": "array", "items": _ref("Game")},
                    },
                }),
                "500": _error("Store failure"),
            },
        },
        "post": {
            "tags": ["games"],
            "summary": "Add a game",
            "requestBody": {
                "required": True,
                "content": {"application/json": {"schema": _ref("GameInput")}},
            },
            "responses": {
                "201": _json_resp("Created game", _data(_ref("Game"))),
                "400": _json_resp("Validation errors", _ref("ValidationErrors")),
                "500": _error("Store failure"),
            },
        },
    }

    paths["/api/games/{id}"] = {
        "get": {
            "tags": ["games"],
            "summary": "Get one game",
            "parameters": [_ID_PARAM],
            "responses": {
                "200": _json_resp("Game", _data(_ref("Game"))),
                "400": _error("Malformed id"),
                "404": _error("Game not found"),
            },
        },
        "put": {
            "tags": ["games"],
            "summary": "Update the provided fields of a game",
            "parameters": [_ID_PARAM],
            "requestBody": {
                "required": True,
                "content": {"application/json": {"schema": _ref("GameUpdate")}},
            },
            "responses": {
                "200": _json_resp("Updated game", _data(_ref("Game"))),
                "400": _json_resp("Malformed id or validation errors", _ref("ValidationErrors")),
                "404": _error("Game not found"),
            },
        },
        "delete": {
            "tags": ["games"],
            "summary": "Delete a game",
            "parameters": [_ID_PARAM],
            "responses": {
                "200": _json_resp("Deleted", {
                    "type": "object",
                    "properties": {"success": {"type": "boolean"},
                                   "message": {"type": "string"}},
                }),
                "400": _error("Malformed id"),
                "404": _error("Game not found"),
            },
        },
    }

    paths["/api/games/{id}/favorite"] = {
        "post": {
            "tags": ["games"],
            "summary": "Toggle the favourite flag",
            "parameters": [_ID_PARAM],
            "responses": {
                "200": _json_resp("Updated game", _data(_ref("Game"))),
                "400": _error("Malformed id"),
                "404": _error("Game not found"),
            },
        }
    }

    # ------------------------------------------------------------------
    # Stats / export
    # ------------------------------------------------------------------
    paths["/api/stats"] = {
        "get": {
            "tags": ["stats"],
            "summary": "Collection statistics",
            "responses": {
                "200": _json_resp("Statistics", _data(_ref("Stats"))),
                "500": _error("Store failure"),
            },
        }
    }

    paths["/api/export"] = {
        "get": {
            "tags": ["export"],
            "summary": "Download the whole collection as JSON",
            "responses": {
                "200": _json_resp("Export attachment", {
                    "type": "object",
                    "properties": {
                        "exported_at": {"type": "string", "format": "date-time"},
                        "total_games": {"type": "integer"},
                        "games":       {"type": "array", "items": _ref("Game")},
                    },
                }),
                "500": _error("Store failure"),
            },
        }
    }

    # ------------------------------------------------------------------
    # Health / docs
    # ------------------------------------------------------------------
    paths["/api/health"] = {
        "get": {
            "tags": ["docs"],
            "summary": "Store connectivity check",
            "responses": {
                "200": _json_resp("Store reachable"),
                "503": _error("Store unreachable"),
            },
        }
    }

    paths["/api/openapi.json"] = {
        "get": {
            "tags": ["docs"],
            "summary": "OpenAPI 3.0 specification (JSON)",
            "responses": {
                "200": _json_resp("OpenAPI spec", {"type": "object"}),
            },
        }
    }

    return paths
