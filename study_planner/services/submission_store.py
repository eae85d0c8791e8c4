"""
Submission storage backends.

Three tiers share one interface: PostgreSQL (when DATABASE_URL is set), an
in-memory list (serverless hosts without a durable disk) and a JSON file.
TieredSubmissionStore puts the database in front of the applicable local tier.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from study_planner.config import Settings
from study_planner.database import Base, build_engine, make_session_factory
from study_planner.exceptions import StorageError
from study_planner.models import SubmissionRecord
from study_planner.schemas.submission import AdmissionPlan, Submission

logger = logging.getLogger(__name__)


class SubmissionStore(Protocol):
    """Interface the submission service depends on."""

    def save(self, submission: Submission) -> None:  # pragma: no cover - interface only
        ...

    def get_all(self) -> List[Submission]:  # pragma: no cover - interface only
        ...

    def get_by_id(self, submission_id: str) -> Optional[Submission]:  # pragma: no cover - interface only
        ...

    def get_by_email(self, email: str) -> List[Submission]:  # pragma: no cover - interface only
        ...

    def update_plan(self, submission_id: str, plan: AdmissionPlan, program_index: Optional[int] = None) -> bool:  # pragma: no cover - interface only
        ...


def with_plan(submission: Submission, plan: AdmissionPlan, program_index: Optional[int] = None) -> Submission:
    """
    Copy of the submission carrying the plan.

    `response.plan` always holds the latest plan; with a program index the plan
    is also kept under `response.programPlans[str(index)]`.
    """
    response = submission.response.model_copy(deep=True)
    response.plan = plan
    if program_index is not None:
        response.program_plans = {**response.program_plans, str(program_index): plan}
    return submission.model_copy(update={"response": response})


def newest_first(submissions: List[Submission]) -> List[Submission]:
    return sorted(submissions, key=lambda s: s.created_at, reverse=True)


class InMemorySubmissionStore:
    """Volatile store for serverless hosts, lost on restart."""

    def __init__(self) -> None:
        self._submissions: List[Submission] = []

    def save(self, submission: Submission) -> None:
        for i, existing in enumerate(self._submissions):
            if existing.id == submission.id:
                self._submissions[i] = submission
                return
        self._submissions.append(submission)

    def get_all(self) -> List[Submission]:
        return newest_first(self._submissions)

    def get_by_id(self, submission_id: str) -> Optional[Submission]:
        return next((s for s in self._submissions if s.id == submission_id), None)

    def get_by_email(self, email: str) -> List[Submission]:
        email_lower = email.lower()
        return newest_first([s for s in self._submissions if s.email.lower() == email_lower])

    def update_plan(self, submission_id: str, plan: AdmissionPlan, program_index: Optional[int] = None) -> bool:
        for i, existing in enumerate(self._submissions):
            if existing.id == submission_id:
                self._submissions[i] = with_plan(existing, plan, program_index)
                return True
        return False


class JsonFileSubmissionStore:
    """
    Single JSON array file, rewritten on every mutation.
    No locking: concurrent writers can lose updates.
    """

    def __init__(self, path: str | os.PathLike = "data/submissions.json") -> None:
        self.path = Path(path)

    def _load_raw(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read {self.path}: {e}")
            return []
        return data if isinstance(data, list) else []

    def _load_all(self) -> List[Submission]:
        submissions = []
        for entry in self._load_raw():
            try:
                submissions.append(Submission.model_validate(entry))
            except ValidationError as e:
                logger.warning(f"Skipping malformed submission {entry.get('id') if isinstance(entry, dict) else entry!r}: {e}")
        return submissions

    def _save_all(self, submissions: List[Submission]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                json.dump([s.to_document() for s in submissions], f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.error(f"Could not write {self.path}: {e}")
            raise StorageError() from e

    def save(self, submission: Submission) -> None:
        submissions = [s for s in self._load_all() if s.id != submission.id]
        submissions.append(submission)
        self._save_all(submissions)

    def get_all(self) -> List[Submission]:
        return newest_first(self._load_all())

    def get_by_id(self, submission_id: str) -> Optional[Submission]:
        return next((s for s in self._load_all() if s.id == submission_id), None)

    def get_by_email(self, email: str) -> List[Submission]:
        email_lower = email.lower()
        return newest_first([s for s in self._load_all() if s.email.lower() == email_lower])

    def update_plan(self, submission_id: str, plan: AdmissionPlan, program_index: Optional[int] = None) -> bool:
        submissions = self._load_all()
        for i, existing in enumerate(submissions):
            if existing.id == submission_id:
                submissions[i] = with_plan(existing, plan, program_index)
                self._save_all(submissions)
                return True
        return False


class DatabaseSubmissionStore:
    """
    PostgreSQL-backed store (any SQLAlchemy engine works, SQLite in tests).
    The table is created on first use. Database errors surface as StorageError.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.SessionLocal = make_session_factory(engine)
        self._table_ready = False

    def ensure_table(self) -> None:
        if not self._table_ready:
            Base.metadata.create_all(bind=self.engine, tables=[SubmissionRecord.__table__])
            self._table_ready = True

    @staticmethod
    def _to_record(submission: Submission) -> SubmissionRecord:
        return SubmissionRecord(
            id=submission.id,
            email=submission.email,
            input=submission.input.to_document(),
            response=submission.response.to_document(),
            created_at=submission.created_at,
        )

    @staticmethod
    def _from_record(record: SubmissionRecord) -> Submission:
        return Submission.model_validate({
            "id": record.id,
            "email": record.email,
            "input": record.input,
            "response": record.response or {},
            "createdAt": record.created_at,
        })

    def _query(self, *criteria) -> List[Submission]:
        db = self.SessionLocal()
        try:
            self.ensure_table()
            records = (
                db.query(SubmissionRecord)
                .filter(*criteria)
                .order_by(SubmissionRecord.created_at.desc())
                .all()
            )
            submissions = []
            for record in records:
                try:
                    submissions.append(self._from_record(record))
                except ValidationError as e:
                    logger.warning(f"Skipping malformed submission row {record.id}: {e}")
            return submissions
        except SQLAlchemyError as e:
            raise StorageError(f"Database read failed: {e}") from e
        finally:
            db.close()

    def save(self, submission: Submission) -> None:
        db = self.SessionLocal()
        try:
            self.ensure_table()
            db.merge(self._to_record(submission))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError() from e
        finally:
            db.close()

    def get_all(self) -> List[Submission]:
        return self._query()

    def get_by_id(self, submission_id: str) -> Optional[Submission]:
        results = self._query(SubmissionRecord.id == submission_id)
        return results[0] if results else None

    def get_by_email(self, email: str) -> List[Submission]:
        return self._query(func.lower(SubmissionRecord.email) == email.lower())

    def update_plan(self, submission_id: str, plan: AdmissionPlan, program_index: Optional[int] = None) -> bool:
        db = self.SessionLocal()
        try:
            self.ensure_table()
            record = db.get(SubmissionRecord, submission_id)
            if record is None:
                return False
            try:
                current = self._from_record(record)
            except ValidationError as e:
                logger.error(f"Cannot attach plan to malformed submission row {submission_id}: {e}")
                return False
            updated = with_plan(current, plan, program_index)
            record.response = updated.response.to_document()
            db.commit()
            return True
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"Database update failed: {e}") from e
        finally:
            db.close()


class TieredSubmissionStore:
    """
    Database first, local tier as fallback.

    Read failures of the database degrade to the local tier and never raise.
    A failed database save is surfaced as StorageError. A failed plan update
    is logged and applied to the local tier instead.
    """

    def __init__(self, local: SubmissionStore, remote: Optional[DatabaseSubmissionStore] = None) -> None:
        self.local = local
        self.remote = remote

    def _read(self, operation: str, *args, default=None):
        if self.remote is not None:
            try:
                return getattr(self.remote, operation)(*args)
            except Exception as e:
                logger.warning(f"Database {operation} failed, falling back to local storage: {e}")
        try:
            return getattr(self.local, operation)(*args)
        except Exception as e:
            logger.error(f"Local {operation} failed: {e}")
            return default

    def save(self, submission: Submission) -> None:
        if self.remote is None:
            self.local.save(submission)
            return
        try:
            self.remote.save(submission)
        except StorageError:
            logger.exception(f"Failed to save submission {submission.id} to the database")
            raise
        except Exception as e:
            logger.exception(f"Failed to save submission {submission.id} to the database")
            raise StorageError() from e

    def get_all(self) -> List[Submission]:
        return self._read("get_all", default=[])

    def get_by_id(self, submission_id: str) -> Optional[Submission]:
        return self._read("get_by_id", submission_id)

    def get_by_email(self, email: str) -> List[Submission]:
        return self._read("get_by_email", email, default=[])

    def update_plan(self, submission_id: str, plan: AdmissionPlan, program_index: Optional[int] = None) -> bool:
        if self.remote is not None:
            try:
                return self.remote.update_plan(submission_id, plan, program_index)
            except Exception as e:
                logger.error(f"Database plan update failed for {submission_id}, using local storage: {e}")
        return self.local.update_plan(submission_id, plan, program_index)

    def ensure_ready(self) -> None:
        """Create the database table up front; failures are logged, not raised"""
        if self.remote is None:
            return
        try:
            self.remote.ensure_table()
        except Exception as e:
            logger.error(f"Error creating submissions table: {e}")


def build_submission_store(settings: Settings, engine: Engine = None) -> TieredSubmissionStore:
    """Resolve the storage tiers for this process"""
    if settings.is_serverless:
        logger.info("Serverless environment detected, using in-memory local storage")
        local = InMemorySubmissionStore()
    else:
        local = JsonFileSubmissionStore(settings.SUBMISSIONS_FILE)

    if engine is None and settings.DATABASE_URL:
        engine = build_engine(settings.DATABASE_URL)
    remote = DatabaseSubmissionStore(engine) if engine is not None else None
    if remote is None:
        logger.info("DATABASE_URL not configured, using local storage only")
    return TieredSubmissionStore(local=local, remote=remote)
