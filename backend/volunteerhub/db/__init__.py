"""Database package."""

from volunteerhub.db.base import Base, BaseModel
from volunteerhub.db.session import DBSession, get_db_session

__all__ = ["Base", "BaseModel", "DBSession", "get_db_session"]
