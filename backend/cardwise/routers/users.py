import aiosqlite
from fastapi import APIRouter, Depends, HTTPException

from cardwise.auth import get_current_user_id
from cardwise.db.sqlite import (
    create_user,
    find_user_by_username,
    get_db,
    get_user,
    set_frequency_mode,
)
from cardwise.models.user import (
    FrequencyModeResponse,
    FrequencyModeUpdate,
    StreakSummary,
    UserCreate,
    UserProfile,
)
from cardwise.services.streak import streak_summary

router = APIRouter()


async def _current_user(
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> UserProfile:
    user = await get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("/", response_model=UserProfile, status_code=201)
async def register(body: UserCreate, db: aiosqlite.Connection = Depends(get_db)):
    if await find_user_by_username(db, body.username):
        raise HTTPException(status_code=409, detail="Username already taken")
    return await create_user(db, body)


@router.get("/me", response_model=UserProfile)
async def me(user: UserProfile = Depends(_current_user)):
    return user


# --- Frequency mode ---


@router.get("/me/frequency-mode", response_model=FrequencyModeResponse)
async def get_frequency_mode(user: UserProfile = Depends(_current_user)):
    return FrequencyModeResponse(frequency_mode=user.frequency_mode)


@router.put("/me/frequency-mode", response_model=FrequencyModeResponse)
async def update_frequency_mode(
    body: FrequencyModeUpdate,
    user: UserProfile = Depends(_current_user),
    db: aiosqlite.Connection = Depends(get_db),
):
    updated = await set_frequency_mode(db, user.id, body.frequency_mode)
    return FrequencyModeResponse(frequency_mode=updated.frequency_mode)


@router.get("/me/streak", response_model=StreakSummary)
async def streak(user: UserProfile = Depends(_current_user)):
    return streak_summary(user)
