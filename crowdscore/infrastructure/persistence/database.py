"""
SQLite Database Repository - Collection Store
==============================================

Key-value persistence over named collections. Each collection is one table
of ``key -> JSON value``; every public call is a single transaction scoped
to one collection.

Collections with an in-line key take it from the stored value
(projects by ``id``, users by ``email``, companies by ``name``); the others
need an explicit key.
"""

import json
import sqlite3
import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from ...domain.errors import CrowdScoreError
from ...domain.models import AnalysisResult, Company, ProjectDelay, User

logger = logging.getLogger(__name__)

DATABASE_FILE = "crowdscore.db"
SCHEMA_VERSION = 4


class Collection(Enum):
    """Named collections in the store."""
    PROJECTS = "projects"
    USERS = "users"
    COMPANIES = "companies"
    ANALYSES = "company_analyses"
    DISMISSED_DUPLICATES = "dismissed_duplicates"
    SETTINGS = "settings"


KEY_PATHS = {
    Collection.PROJECTS: "id",
    Collection.USERS: "email",
    Collection.COMPANIES: "name",
}


class PersistenceError(CrowdScoreError):
    """Store could not be opened, read or written."""
    pass


class Database:
    """
    Collection store for CrowdScore.

    Usage:
        db = Database()
        db.init()

        db.put_project(project)
        projects = db.get_all_projects()
        db.put_setting("theme", "dark")
    """

    def __init__(self, db_path: str = DATABASE_FILE):
        self.db_path = db_path

    @contextmanager
    def _get_connection(self, error_message: str):
        """Open a connection; commit on success, roll back and wrap on failure."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise PersistenceError("Erro ao abrir o banco de dados.") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"{error_message} ({e})")
            raise PersistenceError(error_message) from e
        finally:
            conn.close()

    def init(self):
        """Create missing collection tables. Never drops anything."""
        with self._get_connection("Erro ao abrir o banco de dados.") as conn:
            existing = {
                row[0] for row in
                conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
            }
            for collection in Collection:
                if collection.value in existing:
                    continue
                conn.execute(f"""
                    CREATE TABLE IF NOT EXISTS {collection.value} (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                """)
                if existing:
                    logger.info(f"Migrated: created '{collection.value}' collection")

            version = conn.execute("PRAGMA user_version").fetchone()[0]
            if version < SCHEMA_VERSION:
                conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

        logger.info(f"Database initialized: {self.db_path}")

    def schema_version(self) -> int:
        with self._get_connection("Erro ao ler a versão do banco de dados.") as conn:
            return conn.execute("PRAGMA user_version").fetchone()[0]

    # ── Generic collection operations ──────────────────────────────

    def _resolve_key(self, collection: Collection, value: Any, key: Optional[str]) -> str:
        key_path = KEY_PATHS.get(collection)
        if key_path is not None:
            return str(value[key_path])
        if key is None:
            raise ValueError(f"Collection '{collection.value}' requires an explicit key")
        return key

    def get_all(self, collection: Collection) -> List[Any]:
        """All values in insertion order."""
        with self._get_connection(f"Erro ao buscar todos os dados de {collection.value}.") as conn:
            rows = conn.execute(f"SELECT value FROM {collection.value} ORDER BY rowid").fetchall()
            return [json.loads(row[0]) for row in rows]

    def get_all_keys(self, collection: Collection) -> List[str]:
        with self._get_connection(f"Erro ao buscar todas as chaves de {collection.value}.") as conn:
            rows = conn.execute(f"SELECT key FROM {collection.value} ORDER BY rowid").fetchall()
            return [row[0] for row in rows]

    def get_all_items(self, collection: Collection) -> Dict[str, Any]:
        with self._get_connection(f"Erro ao buscar todos os dados de {collection.value}.") as conn:
            rows = conn.execute(f"SELECT key, value FROM {collection.value} ORDER BY rowid").fetchall()
            return {row[0]: json.loads(row[1]) for row in rows}

    def get(self, collection: Collection, key: str) -> Optional[Any]:
        with self._get_connection(f"Erro ao buscar {key} de {collection.value}.") as conn:
            row = conn.execute(
                f"SELECT value FROM {collection.value} WHERE key = ?", (key,)
            ).fetchone()
            return json.loads(row[0]) if row else None

    def put(self, collection: Collection, value: Any, key: Optional[str] = None):
        """Insert or replace. Replacing keeps the record's original position."""
        resolved = self._resolve_key(collection, value, key)
        encoded = json.dumps(value, ensure_ascii=False)
        with self._get_connection(f"Erro ao salvar item em {collection.value}.") as conn:
            conn.execute(
                f"""INSERT INTO {collection.value} (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value""",
                (resolved, encoded)
            )

    def put_many(self, collection: Collection, values: Iterable[Any]):
        with self._get_connection(f"Erro ao salvar itens em {collection.value}.") as conn:
            for value in values:
                conn.execute(
                    f"""INSERT INTO {collection.value} (key, value) VALUES (?, ?)
                        ON CONFLICT(key) DO UPDATE SET value = excluded.value""",
                    (self._resolve_key(collection, value, None), json.dumps(value, ensure_ascii=False))
                )

    def delete(self, collection: Collection, key: str):
        """Delete one key. Missing keys are ignored."""
        with self._get_connection(f"Erro ao remover {key} de {collection.value}.") as conn:
            conn.execute(f"DELETE FROM {collection.value} WHERE key = ?", (key,))

    def delete_many(self, collection: Collection, keys: Iterable[str]):
        """Delete several keys in one transaction."""
        with self._get_connection(f"Erro ao remover itens de {collection.value}.") as conn:
            conn.executemany(
                f"DELETE FROM {collection.value} WHERE key = ?",
                [(key,) for key in keys]
            )

    def count(self, collection: Collection) -> int:
        with self._get_connection(f"Erro ao contar itens de {collection.value}.") as conn:
            return conn.execute(f"SELECT COUNT(*) FROM {collection.value}").fetchone()[0]

    # ── Seeding ────────────────────────────────────────────────────

    def initialize(self, initial_projects: List[ProjectDelay], initial_users: List[User]) -> bool:
        """Seed demo data when both projects and users are empty.

        Returns True if the seed ran. A store with only one of the two
        collections empty is left untouched.
        """
        if self.count(Collection.PROJECTS) or self.count(Collection.USERS):
            return False

        logger.info("Seeding database with demo data...")
        company_names = [p.company_name for p in initial_projects]
        company_names += [u.company_name for u in initial_users if u.company_name]
        self.put_many(Collection.PROJECTS, [p.to_dict() for p in initial_projects])
        self.put_many(Collection.USERS, [u.to_dict() for u in initial_users])
        self.put_many(Collection.COMPANIES, [{"name": n} for n in dict.fromkeys(company_names)])
        logger.info(f"Seeded {len(initial_projects)} projects and {len(initial_users)} users")
        return True

    # ── Projects ───────────────────────────────────────────────────

    def get_all_projects(self) -> List[ProjectDelay]:
        return [ProjectDelay.from_dict(v) for v in self.get_all(Collection.PROJECTS)]

    def put_project(self, project: ProjectDelay):
        self.put(Collection.PROJECTS, project.to_dict())

    def remove_projects(self, ids: List[str]):
        self.delete_many(Collection.PROJECTS, ids)

    # ── Users ──────────────────────────────────────────────────────

    def get_all_users(self) -> List[User]:
        return [User.from_dict(v) for v in self.get_all(Collection.USERS)]

    def put_user(self, user: User):
        self.put(Collection.USERS, user.to_dict())

    # ── Companies ──────────────────────────────────────────────────

    def get_all_companies(self) -> List[Company]:
        return [Company.from_dict(v) for v in self.get_all(Collection.COMPANIES)]

    def put_company(self, company: Company):
        self.put(Collection.COMPANIES, company.to_dict())

    # ── Analyses ───────────────────────────────────────────────────

    def get_all_company_analyses(self) -> Dict[str, AnalysisResult]:
        return {
            name: AnalysisResult.from_dict(value)
            for name, value in self.get_all_items(Collection.ANALYSES).items()
        }

    def put_company_analysis(self, company_name: str, analysis: AnalysisResult):
        self.put(Collection.ANALYSES, analysis.to_dict(), company_name)

    # ── Dismissed duplicates ───────────────────────────────────────

    def get_all_dismissed_duplicates(self) -> List[str]:
        return self.get_all_keys(Collection.DISMISSED_DUPLICATES)

    def put_dismissed_duplicate(self, group_key: str):
        self.put(Collection.DISMISSED_DUPLICATES, True, group_key)

    # ── Settings ───────────────────────────────────────────────────

    def get_setting(self, key: str) -> Optional[Any]:
        return self.get(Collection.SETTINGS, key)

    def put_setting(self, key: str, value: Any):
        self.put(Collection.SETTINGS, value, key)

    def remove_setting(self, key: str):
        self.delete(Collection.SETTINGS, key)
