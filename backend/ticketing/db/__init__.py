from ticketing.db.base import Base, TimestampMixin
from ticketing.db.session import Database, get_db

__all__ = ["Base", "TimestampMixin", "Database", "get_db"]
