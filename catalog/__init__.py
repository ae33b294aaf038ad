"""
Ludotheque application package.

Layered the same way throughout:

  database.py         - SQL store: models, queries, aggregations.
  catalog/services/   - business logic: validation, domain rules, errors.
  ludotheque_web.py   - HTTP layer: Flask routes mapping services to JSON.

Route handlers open a SQLAlchemy session per request and pass it to the
services, which raise :mod:`catalog.errors` exceptions on user errors.
"""
