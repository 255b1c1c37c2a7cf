from .database import Collection, Database, PersistenceError, SCHEMA_VERSION

__all__ = ["Collection", "Database", "PersistenceError", "SCHEMA_VERSION"]
