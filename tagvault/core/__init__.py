"""Core application components."""

from .config import Settings, settings
from .database import AsyncSessionLocal, drop_db, engine, init_db
from .locks import KeyedLock

__all__ = [
    "settings",
    "Settings",
    "engine",
    "AsyncSessionLocal",
    "init_db",
    "drop_db",
    "KeyedLock",
]
