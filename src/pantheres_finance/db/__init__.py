"""Persistance SQLAlchemy."""
