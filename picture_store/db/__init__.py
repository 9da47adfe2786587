"""Database configuration and session management."""

from .database import SessionLocal, create_db_engine, engine, get_db, init_db

__all__ = ["engine", "create_db_engine", "get_db", "init_db", "SessionLocal"]
