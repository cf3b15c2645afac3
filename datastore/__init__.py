"""Generic persistent stores over SQLAlchemy.

The domain contracts live in datastore.domain; the SQLAlchemy adapter and
database wiring live in datastore.infrastructure.
"""
