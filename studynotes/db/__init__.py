"""Persistence: SQLAlchemy models, session handling and repositories."""
