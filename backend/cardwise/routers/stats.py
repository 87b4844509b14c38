import aiosqlite
from fastapi import APIRouter, Depends

from cardwise.auth import get_current_user_id
from cardwise.db.sqlite import get_db
from cardwise.models.review import StudySummary
from cardwise.services.stats import study_summary

router = APIRouter()


@router.get("/summary", response_model=StudySummary)
async def summary(
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    """Card counts, accuracy and the caller's XP, coins and streaks."""
    return await study_summary(db, user_id)
