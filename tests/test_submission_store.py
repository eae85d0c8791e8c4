"""
Tests for the storage tiers and the database-first fallback behavior
"""
import json
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from study_planner.exceptions import StorageError
from study_planner.models import SubmissionRecord
from study_planner.schemas.submission import AdmissionPlan, AIResponse, Submission
from study_planner.services.submission_store import (
    DatabaseSubmissionStore,
    InMemorySubmissionStore,
    JsonFileSubmissionStore,
    TieredSubmissionStore,
    build_submission_store,
)

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def make_submission(user_input, tum_program_payload):
    def _make(submission_id="sub-1", email=None, minutes=0):
        return Submission(
            id=submission_id,
            email=email or user_input.email,
            input=user_input,
            response=AIResponse.model_validate({"programs": [tum_program_payload]}),
            created_at=BASE_TIME + timedelta(minutes=minutes),
        )
    return _make


@pytest.fixture
def plan(plan_payload):
    return AdmissionPlan.model_validate(plan_payload)


@pytest.fixture
def sqlite_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture(params=["memory", "file", "database"])
def store(request, tmp_path, sqlite_engine):
    if request.param == "memory":
        return InMemorySubmissionStore()
    if request.param == "file":
        return JsonFileSubmissionStore(tmp_path / "data" / "submissions.json")
    return DatabaseSubmissionStore(sqlite_engine)


class TestStoreContract:
    """Every tier honors the same contract"""

    def test_save_and_get_by_id(self, store, make_submission):
        submission = make_submission()
        store.save(submission)
        loaded = store.get_by_id("sub-1")
        assert loaded is not None
        assert loaded.to_document() == submission.to_document()

    def test_missing_id(self, store):
        assert store.get_by_id("nope") is None

    def test_get_by_email_case_insensitive(self, store, make_submission):
        store.save(make_submission("a", email="student@example.com"))
        store.save(make_submission("b", email="other@example.com", minutes=1))
        found = store.get_by_email("STUDENT@Example.COM")
        assert [s.id for s in found] == ["a"]

    def test_get_all_newest_first(self, store, make_submission):
        store.save(make_submission("old", minutes=0))
        store.save(make_submission("new", minutes=5))
        assert [s.id for s in store.get_all()] == ["new", "old"]

    def test_save_same_id_replaces(self, store, make_submission):
        store.save(make_submission("a"))
        store.save(make_submission("a", email="changed@example.com"))
        assert len(store.get_all()) == 1
        assert store.get_by_id("a").email == "changed@example.com"

    def test_update_plan(self, store, make_submission, plan):
        store.save(make_submission("a"))
        assert store.update_plan("a", plan, program_index=0) is True
        response = store.get_by_id("a").response
        assert response.plan.before_deadlines == ["Submit application by May 31, 2026"]
        assert response.program_plans["0"].now_to_three_months == ["Book IELTS test"]

    def test_plans_for_different_programs_kept_apart(self, store, make_submission, plan):
        store.save(make_submission("a"))
        other = plan.model_copy(update={"now_to_three_months": ["Other program step"]})
        store.update_plan("a", plan, program_index=0)
        store.update_plan("a", other, program_index=1)
        response = store.get_by_id("a").response
        assert response.plan.now_to_three_months == ["Other program step"]
        assert response.program_plans["0"].now_to_three_months == ["Book IELTS test"]
        assert response.program_plans["1"].now_to_three_months == ["Other program step"]

    def test_update_plan_unknown_id(self, store, plan):
        assert store.update_plan("missing", plan) is False


class TestJsonFileStore:
    def test_writes_camel_case_array(self, tmp_path, make_submission):
        path = tmp_path / "submissions.json"
        JsonFileSubmissionStore(path).save(make_submission())
        data = json.loads(path.read_text(encoding="utf-8"))
        assert isinstance(data, list)
        assert data[0]["id"] == "sub-1"
        assert "createdAt" in data[0]
        assert data[0]["input"]["admissionType"] == "Master"

    def test_reads_legacy_entries(self, tmp_path, user_input):
        path = tmp_path / "submissions.json"
        path.write_text(json.dumps([{
            "id": "legacy",
            "email": "student@example.com",
            "input": user_input.to_document(),
            "response": {"universities": [{"name": "University of Vienna", "country": "Austria"}]},
            "createdAt": "2025-06-01T12:00:00.000Z",
        }]), encoding="utf-8")
        submission = JsonFileSubmissionStore(path).get_by_id("legacy")
        assert submission.response.programs[0].university == "University of Vienna"

    def test_corrupt_file_reads_empty(self, tmp_path):
        path = tmp_path / "submissions.json"
        path.write_text("{not json", encoding="utf-8")
        store = JsonFileSubmissionStore(path)
        assert store.get_all() == []
        assert store.get_by_email("student@example.com") == []

    def test_malformed_entry_skipped(self, tmp_path, make_submission):
        path = tmp_path / "submissions.json"
        store = JsonFileSubmissionStore(path)
        store.save(make_submission())
        data = json.loads(path.read_text(encoding="utf-8"))
        data.append({"id": "broken"})
        path.write_text(json.dumps(data), encoding="utf-8")
        assert [s.id for s in store.get_all()] == ["sub-1"]


class TestDatabaseStore:
    @pytest.fixture
    def database(self, sqlite_engine, make_submission):
        database = DatabaseSubmissionStore(sqlite_engine)
        database.save(make_submission("good"))
        db = database.SessionLocal()
        try:
            db.add(SubmissionRecord(
                id="bad",
                email="student@example.com",
                input={"countries": "x"},
                response={},
                created_at=BASE_TIME + timedelta(minutes=1),
            ))
            db.commit()
        finally:
            db.close()
        return database

    def test_malformed_row_skipped(self, database):
        assert [s.id for s in database.get_all()] == ["good"]
        assert [s.id for s in database.get_by_email("student@example.com")] == ["good"]
        assert database.get_by_id("bad") is None
        assert database.get_by_id("good") is not None

    def test_malformed_row_does_not_hide_good_rows_behind_fallback(self, database):
        store = TieredSubmissionStore(local=InMemorySubmissionStore(), remote=database)
        assert [s.id for s in store.get_all()] == ["good"]

    def test_plan_not_attached_to_malformed_row(self, database, plan):
        assert database.update_plan("bad", plan, 0) is False


class TestTieredStore:
    @pytest.fixture
    def failing_remote(self):
        remote = Mock(spec=DatabaseSubmissionStore)
        for name in ("save", "get_all", "get_by_id", "get_by_email", "update_plan"):
            getattr(remote, name).side_effect = StorageError("connection refused")
        return remote

    def test_local_only_without_database(self, make_submission):
        local = InMemorySubmissionStore()
        store = TieredSubmissionStore(local=local)
        store.save(make_submission())
        assert local.get_by_id("sub-1") is not None

    def test_database_used_when_available(self, sqlite_engine, make_submission):
        local = InMemorySubmissionStore()
        store = TieredSubmissionStore(local=local, remote=DatabaseSubmissionStore(sqlite_engine))
        store.save(make_submission())
        assert local.get_all() == []
        assert store.get_by_id("sub-1") is not None

    def test_read_failure_falls_back_to_local(self, failing_remote, make_submission):
        local = InMemorySubmissionStore()
        local.save(make_submission())
        store = TieredSubmissionStore(local=local, remote=failing_remote)
        assert store.get_by_id("sub-1").id == "sub-1"
        assert [s.id for s in store.get_all()] == ["sub-1"]
        assert len(store.get_by_email("student@example.com")) == 1

    def test_save_failure_surfaces(self, failing_remote, make_submission):
        local = InMemorySubmissionStore()
        store = TieredSubmissionStore(local=local, remote=failing_remote)
        with pytest.raises(StorageError):
            store.save(make_submission())
        assert local.get_all() == []

    def test_unexpected_save_failure_wrapped(self, make_submission):
        remote = Mock(spec=DatabaseSubmissionStore)
        remote.save.side_effect = RuntimeError("boom")
        store = TieredSubmissionStore(local=InMemorySubmissionStore(), remote=remote)
        with pytest.raises(StorageError):
            store.save(make_submission())

    def test_update_plan_failure_applied_locally(self, failing_remote, make_submission, plan):
        local = InMemorySubmissionStore()
        local.save(make_submission())
        store = TieredSubmissionStore(local=local, remote=failing_remote)
        assert store.update_plan("sub-1", plan, 0) is True
        assert local.get_by_id("sub-1").response.plan is not None

    def test_reads_never_raise(self, failing_remote):
        local = Mock(spec=InMemorySubmissionStore)
        local.get_all.side_effect = RuntimeError("disk gone")
        local.get_by_id.side_effect = RuntimeError("disk gone")
        store = TieredSubmissionStore(local=local, remote=failing_remote)
        assert store.get_all() == []
        assert store.get_by_id("x") is None

    def test_ensure_ready_swallows_database_errors(self):
        remote = Mock(spec=DatabaseSubmissionStore)
        remote.ensure_table.side_effect = RuntimeError("unreachable")
        TieredSubmissionStore(local=InMemorySubmissionStore(), remote=remote).ensure_ready()
        remote.ensure_table.assert_called_once()


class TestBuildSubmissionStore:
    def test_file_tier_by_default(self, test_settings):
        store = build_submission_store(test_settings)
        assert isinstance(store.local, JsonFileSubmissionStore)
        assert store.remote is None

    def test_memory_tier_on_serverless(self, test_settings):
        serverless = test_settings.model_copy(update={"VERCEL": "1"})
        store = build_submission_store(serverless)
        assert isinstance(store.local, InMemorySubmissionStore)

    def test_lambda_counts_as_serverless(self, test_settings):
        serverless = test_settings.model_copy(update={"AWS_LAMBDA_FUNCTION_NAME": "planner"})
        assert isinstance(build_submission_store(serverless).local, InMemorySubmissionStore)

    def test_database_tier_with_engine(self, test_settings, sqlite_engine):
        store = build_submission_store(test_settings, engine=sqlite_engine)
        assert isinstance(store.remote, DatabaseSubmissionStore)
