"""Database models, session management and listen repository."""

from scrobbles.db.base import Base
from scrobbles.db.models import ListenRecord
from scrobbles.db.operations import ListenRepository
from scrobbles.db.session import DatabaseManager

__all__ = ["Base", "DatabaseManager", "ListenRecord", "ListenRepository"]
