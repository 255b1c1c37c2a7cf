"""
Tests for the SQLite collection store.
"""

import sqlite3

import pytest

from crowdscore.application.seed import INITIAL_PROJECTS, INITIAL_USERS
from crowdscore.domain.models import AnalysisResult, Company, SubmissionStatus
from crowdscore.infrastructure.persistence import Collection, Database, PersistenceError, SCHEMA_VERSION

from .helpers import make_project


class TestSchema:
    """Test store creation and upgrades."""

    def test_init_sets_schema_version(self, database):
        assert database.schema_version() == SCHEMA_VERSION

    def test_init_is_idempotent_and_keeps_data(self, database):
        database.put_project(make_project("1"))
        database.init()
        assert len(database.get_all_projects()) == 1

    def test_init_creates_missing_collections(self, db_path):
        conn = sqlite3.connect(db_path)
        conn.execute("CREATE TABLE projects (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
        conn.commit()
        conn.close()

        db = Database(db_path)
        db.init()
        for collection in Collection:
            assert db.count(collection) == 0

    def test_unopenable_store_raises_persistence_error(self, tmp_path):
        db = Database(str(tmp_path))
        with pytest.raises(PersistenceError):
            db.init()


class TestCollections:
    """Test generic get/put/delete."""

    def test_project_round_trip(self, database):
        project = make_project("1", actual="2024-02-01", comment="atrasou", would_buy_again=False)
        database.put_project(project)
        assert database.get_all_projects() == [project]

    def test_put_replaces_and_keeps_position(self, database):
        database.put_project(make_project("1"))
        database.put_project(make_project("2"))
        database.put_project(make_project("1", status=SubmissionStatus.REJECTED))

        projects = database.get_all_projects()
        assert [p.id for p in projects] == ["1", "2"]
        assert projects[0].status is SubmissionStatus.REJECTED

    def test_delete_missing_key_is_noop(self, database):
        database.delete(Collection.PROJECTS, "missing")
        assert database.count(Collection.PROJECTS) == 0

    def test_remove_projects_in_one_call(self, database):
        for pid in ("1", "2", "3"):
            database.put_project(make_project(pid))
        database.remove_projects(["1", "3", "nope"])
        assert [p.id for p in database.get_all_projects()] == ["2"]

    def test_out_of_line_collection_requires_key(self, database):
        with pytest.raises(ValueError):
            database.put(Collection.SETTINGS, "dark")

    def test_settings(self, database):
        assert database.get_setting("theme") is None
        database.put_setting("theme", "dark")
        assert database.get_setting("theme") == "dark"
        database.remove_setting("theme")
        assert database.get_setting("theme") is None

    def test_analyses_and_dismissed_duplicates(self, database):
        database.put_company_analysis("ACME", AnalysisResult(text="Erro: falhou", is_error=True))
        database.put_dismissed_duplicate("x.com/a")
        assert database.get_all_company_analyses() == {"ACME": AnalysisResult(text="Erro: falhou", is_error=True)}
        assert database.get_all_dismissed_duplicates() == ["x.com/a"]

    def test_companies(self, database):
        database.put_company(Company(name="ACME"))
        database.put_company(Company(name="ACME"))
        assert database.get_all_companies() == [Company(name="ACME")]


class TestInitialize:
    """Test first-run seeding."""

    def test_seeds_empty_store(self, database):
        assert database.initialize(INITIAL_PROJECTS, INITIAL_USERS) is True
        assert database.count(Collection.PROJECTS) == len(INITIAL_PROJECTS)
        assert database.count(Collection.USERS) == len(INITIAL_USERS)
        assert "Relógios Geniais" in {c.name for c in database.get_all_companies()}

    def test_second_run_does_not_reseed(self, database):
        database.initialize(INITIAL_PROJECTS, INITIAL_USERS)
        database.remove_projects(["1"])
        assert database.initialize(INITIAL_PROJECTS, INITIAL_USERS) is False
        assert database.count(Collection.PROJECTS) == len(INITIAL_PROJECTS) - 1

    def test_only_one_collection_empty_is_left_alone(self, database):
        database.put_user(INITIAL_USERS[0])
        assert database.initialize(INITIAL_PROJECTS, INITIAL_USERS) is False
        assert database.count(Collection.PROJECTS) == 0
