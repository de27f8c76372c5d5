"""
Achievements API Router
Endpoints for achievement progress
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from api.deps import get_db, services
from api.schemas.report import AchievementResponse, AchievementList, ProgressUpdate
from services.achievement_service import UpdateStatus


router = APIRouter(prefix="/achievements", tags=["achievements"])


@router.get("/", response_model=AchievementList)
async def list_achievements(db: Session = Depends(get_db)):
    """All achievements with progress"""
    achievement_service = services.get_achievement_service()

    await achievement_service.initialize_achievements(db=db)
    achievements = await achievement_service.get_achievements(db=db)
    return AchievementList(
        achievements=[AchievementResponse.model_validate(a) for a in achievements],
        completed_count=sum(1 for a in achievements if a.completed)
    )


@router.put("/{achievement_id}/progress", response_model=AchievementResponse)
async def update_achievement_progress(
    achievement_id: str,
    update: ProgressUpdate,
    db: Session = Depends(get_db)
):
    """Set progress; it is clamped to the target and never decreases"""
    achievement_service = services.get_achievement_service()

    await achievement_service.initialize_achievements(db=db)
    result = await achievement_service.update_progress(achievement_id, update.progress, db=db)

    if result.status == UpdateStatus.NOT_FOUND:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Achievement {achievement_id} not found"
        )
    if result.status == UpdateStatus.STORAGE_ERROR:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Achievement progress could not be saved"
        )
    return result.achievement


@router.post("/evaluate", response_model=AchievementList)
async def evaluate_achievements(db: Session = Depends(get_db)):
    """Run achievement checks against current adherence"""
    achievement_service = services.get_achievement_service()

    await achievement_service.evaluate_achievements(db=db)
    achievements = await achievement_service.get_achievements(db=db)
    return AchievementList(
        achievements=[AchievementResponse.model_validate(a) for a in achievements],
        completed_count=sum(1 for a in achievements if a.completed)
    )
