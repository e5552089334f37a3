"""
Database infrastructure for the GigWallet project.
"""

from .database import engine, SessionLocal, get_db, Base, build_engine
from .models import *

__all__ = [
    "engine",
    "SessionLocal",
    "get_db",
    "Base",
    "build_engine",
]
