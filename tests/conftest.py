"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all PillPal tests.
Fixtures include database sessions, the test client, services wired to an
in-memory notification subsystem, and sample data factories.
"""

import os
import sys
from datetime import datetime
from typing import Generator, Callable, Optional
from unittest.mock import AsyncMock, MagicMock

# The app module builds its engine at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base, get_db, init_db, create_db_engine, create_session_factory
from models import Medication, HistoryEntry
from tools.notification_service import LocalNotificationService
from actions.reminder_scheduler import ReminderScheduler
from services.history_service import HistoryService, to_epoch_millis
from services.adherence_service import AdherenceService
from services.medication_service import MedicationService
from services.dose_service import DoseService
from services.achievement_service import AchievementService
from services.report_service import ReportService
from app import app


# ==================== DATABASE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = create_db_engine("sqlite:///:memory:")
    init_db(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a test database session"""
    TestingSessionLocal = create_session_factory(test_engine)

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client with database override"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def broken_client(broken_session) -> Generator[TestClient, None, None]:
    """Test client whose request sessions fail on every read and commit"""

    def override_get_db():
        yield broken_session

    app.dependency_overrides[get_db] = override_get_db

    # Return the 500 response instead of re-raising into the test
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def broken_session() -> MagicMock:
    """Session whose reads and commits fail as if the database went away"""
    session = MagicMock(spec=Session)
    session.query.side_effect = SQLAlchemyError("disk I/O error")
    session.commit.side_effect = SQLAlchemyError("disk I/O error")
    return session


# ==================== SERVICE FIXTURES ====================

@pytest.fixture
def notifications() -> LocalNotificationService:
    """Fresh in-memory notification subsystem"""
    return LocalNotificationService()


@pytest.fixture
def retry_sleep() -> AsyncMock:
    """Stand-in for asyncio.sleep so backoff does not slow tests down"""
    return AsyncMock()


@pytest.fixture
def scheduler(notifications, retry_sleep) -> ReminderScheduler:
    return ReminderScheduler(
        notifications=notifications,
        max_retries=2,
        base_delay=0.5,
        sleep=retry_sleep
    )


@pytest.fixture
def history_service() -> HistoryService:
    return HistoryService()


@pytest.fixture
def adherence_service(history_service) -> AdherenceService:
    return AdherenceService(history=history_service)


@pytest.fixture
def medication_service(scheduler) -> MedicationService:
    return MedicationService(scheduler=scheduler)


@pytest.fixture
def dose_service(history_service, medication_service) -> DoseService:
    return DoseService(history=history_service, medications=medication_service)


@pytest.fixture
def achievement_service(adherence_service, medication_service) -> AchievementService:
    return AchievementService(adherence=adherence_service, medications=medication_service)


@pytest.fixture
def report_service(adherence_service, medication_service) -> ReportService:
    return ReportService(adherence=adherence_service, medications=medication_service)


# ==================== SAMPLE DATA FIXTURES ====================

@pytest.fixture
def fixed_now() -> datetime:
    """Wednesday evening, away from any DST change"""
    return datetime(2024, 6, 12, 20, 0, 0)


@pytest.fixture
def make_medication(db_session: Session) -> Callable[..., Medication]:
    """Insert a medication row directly, bypassing reminder scheduling"""

    def _make(
        name: str = "Lisinopril",
        dosage: str = "10mg",
        scheduled_time: Optional[datetime] = None,
        supply: int = 30,
        low_supply_threshold: int = 5,
        **kwargs
    ) -> Medication:
        medication = Medication(
            name=name,
            dosage=dosage,
            scheduled_time=scheduled_time or datetime(2024, 6, 1, 8, 0),
            supply=supply,
            low_supply_threshold=low_supply_threshold,
            **kwargs
        )
        db_session.add(medication)
        db_session.commit()
        db_session.refresh(medication)
        return medication

    return _make


@pytest.fixture
def log_dose(db_session: Session) -> Callable[..., HistoryEntry]:
    """Insert a dose event at a given local datetime"""

    def _log(medication_id: int, at: datetime, taken: bool = True, notes: Optional[str] = None) -> HistoryEntry:
        entry = HistoryEntry(
            medication_id=medication_id,
            timestamp=to_epoch_millis(at),
            taken=taken,
            notes=notes
        )
        db_session.add(entry)
        db_session.commit()
        db_session.refresh(entry)
        return entry

    return _log


@pytest.fixture
def sample_medication(make_medication) -> Medication:
    return make_medication()
