"""
Tests for Achievement Service
Tests the catalog, monotonic progress updates and achievement checks
"""

import pytest
import pytest_asyncio
from unittest.mock import MagicMock
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import Achievement
from services.achievement_service import (
    AVAILABLE_ACHIEVEMENTS,
    UpdateStatus,
    apply_progress,
    is_first_medication,
    is_perfect_week,
    is_medication_master,
)


@pytest_asyncio.fixture
async def initialized(achievement_service, db_session):
    await achievement_service.initialize_achievements(db=db_session)


# =============================================================================
# Predicates
# =============================================================================

class TestPredicates:
    """Pure achievement predicates"""

    def test_first_medication(self):
        assert is_first_medication(0) is False
        assert is_first_medication(1) is True
        assert is_first_medication(3) is True

    def test_perfect_week_needs_full_adherence(self):
        assert is_perfect_week(100.0) is True
        assert is_perfect_week(99.9) is False

    def test_medication_master_needs_full_adherence(self):
        assert is_medication_master(100.0) is True
        assert is_medication_master(96.7) is False


class TestApplyProgress:
    """Progress clamping and sticky completion"""

    def _achievement(self, progress=0, target=7, completed=False):
        return Achievement(id="perfect_week", name="Perfect Week", progress=progress,
                           target=target, completed=completed)

    def test_clamps_to_target(self):
        achievement = self._achievement()
        assert apply_progress(achievement, 50) is True
        assert achievement.progress == 7
        assert achievement.completed is True

    def test_never_decreases(self):
        achievement = self._achievement(progress=5)
        assert apply_progress(achievement, 2) is False
        assert achievement.progress == 5
        assert achievement.completed is False

    def test_completed_is_sticky(self):
        achievement = self._achievement(progress=7, completed=True)
        assert apply_progress(achievement, 0) is False
        assert achievement.completed is True


# =============================================================================
# Catalog
# =============================================================================

class TestCatalog:
    """Tests for initializing and listing achievements"""

    @pytest.mark.asyncio
    async def test_initialize_creates_catalog_once(self, achievement_service, db_session):
        created = await achievement_service.initialize_achievements(db=db_session)
        again = await achievement_service.initialize_achievements(db=db_session)

        assert created == len(AVAILABLE_ACHIEVEMENTS)
        assert again == 0

    @pytest.mark.asyncio
    async def test_get_achievements_in_catalog_order(self, achievement_service, db_session, initialized):
        achievements = await achievement_service.get_achievements(db=db_session)

        assert [a.id for a in achievements] == [entry["id"] for entry in AVAILABLE_ACHIEVEMENTS]
        assert all(a.progress == 0 and not a.completed for a in achievements)

    @pytest.mark.asyncio
    async def test_get_unknown_achievement(self, achievement_service, db_session, initialized):
        assert await achievement_service.get_achievement("unknown", db=db_session) is None


# =============================================================================
# Progress Updates
# =============================================================================

class TestUpdateProgress:
    """Tests for update_progress"""

    @pytest.mark.asyncio
    async def test_partial_progress(self, achievement_service, db_session, initialized):
        result = await achievement_service.update_progress("perfect_week", 3, db=db_session)

        assert result.ok
        assert result.achievement.progress == 3
        assert result.achievement.completed is False
        assert result.newly_completed is False

    @pytest.mark.asyncio
    async def test_completion_reported_once(self, achievement_service, db_session, initialized):
        first = await achievement_service.update_progress("perfect_week", 7, db=db_session)
        second = await achievement_service.update_progress("perfect_week", 7, db=db_session)

        assert first.newly_completed is True
        assert second.newly_completed is False
        assert second.achievement.progress == 7
        assert second.achievement.completed is True

    @pytest.mark.asyncio
    async def test_lower_value_is_ignored(self, achievement_service, db_session, initialized):
        await achievement_service.update_progress("medication_master", 20, db=db_session)
        result = await achievement_service.update_progress("medication_master", 10, db=db_session)

        assert result.achievement.progress == 20

    @pytest.mark.asyncio
    async def test_overshoot_clamped(self, achievement_service, db_session, initialized):
        result = await achievement_service.update_progress("first_medication", 5, db=db_session)

        assert result.achievement.progress == 1
        assert result.achievement.completed is True

    @pytest.mark.asyncio
    async def test_unknown_id(self, achievement_service, db_session, initialized):
        result = await achievement_service.update_progress("unknown", 1, db=db_session)

        assert result.status == UpdateStatus.NOT_FOUND
        assert result.achievement is None
        assert not result.ok

    @pytest.mark.asyncio
    async def test_storage_error_is_reported(self, achievement_service):
        session = MagicMock(spec=Session)
        session.get.side_effect = SQLAlchemyError("database is locked")

        result = await achievement_service.update_progress("perfect_week", 7, db=session)

        assert result.status == UpdateStatus.STORAGE_ERROR
        assert "database is locked" in result.error
        session.rollback.assert_called_once()


# =============================================================================
# Checks
# =============================================================================

class TestEvaluateAchievements:
    """Tests for the wired achievement checks"""

    @pytest.mark.asyncio
    async def test_nothing_without_medications(self, achievement_service, db_session, fixed_now):
        results = await achievement_service.evaluate_achievements(now=fixed_now, db=db_session)

        assert results == []

    @pytest.mark.asyncio
    async def test_first_medication_only(self, achievement_service, db_session, sample_medication, log_dose, fixed_now):
        log_dose(sample_medication.id, fixed_now - timedelta(days=1), taken=False)

        results = await achievement_service.evaluate_achievements(now=fixed_now, db=db_session)

        assert [r.achievement.id for r in results] == ["first_medication"]
        assert results[0].newly_completed is True

    @pytest.mark.asyncio
    async def test_perfect_adherence_completes_all(self, achievement_service, db_session, sample_medication, log_dose, fixed_now):
        for offset in range(7):
            log_dose(sample_medication.id, fixed_now - timedelta(days=offset, hours=2), taken=True)

        await achievement_service.evaluate_achievements(now=fixed_now, db=db_session)
        achievements = {a.id: a for a in await achievement_service.get_achievements(db=db_session)}

        assert achievements["first_medication"].completed is True
        assert achievements["perfect_week"].progress == 7
        assert achievements["perfect_week"].completed is True
        assert achievements["medication_master"].progress == 30
        assert achievements["early_bird"].progress == 0
        assert achievements["sharing_care"].completed is False

    @pytest.mark.asyncio
    async def test_check_perfect_week_below_full(self, achievement_service, db_session, initialized):
        assert await achievement_service.check_perfect_week(95.0, db=db_session) is None
