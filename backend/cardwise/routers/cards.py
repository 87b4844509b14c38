import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from cardwise.auth import get_current_user_id
from cardwise.db.sqlite import (
    create_card,
    get_card,
    get_db,
    list_cards,
    set_card_flags,
    update_card_content,
)
from cardwise.models.card import Card, CardCreate, CardList, CardStatus, CardUpdate

router = APIRouter()


@router.post("/", response_model=Card, status_code=201)
async def create(
    body: CardCreate,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    return await create_card(db, user_id, body)


@router.get("/", response_model=CardList)
async def list_all(
    course_id: str | None = Query(default=None),
    status: CardStatus | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    items = await list_cards(db, user_id, course_id=course_id, status=status, limit=limit)
    return CardList(items=items, total=len(items))


@router.get("/{card_id}", response_model=Card)
async def get_one(
    card_id: str,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    card = await get_card(db, card_id, user_id)
    if not card:
        raise HTTPException(status_code=404, detail="Card not found")
    return card


@router.patch("/{card_id}", response_model=Card)
async def edit(
    card_id: str,
    body: CardUpdate,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    card = await update_card_content(db, card_id, user_id, body)
    if not card:
        raise HTTPException(status_code=404, detail="Card not found")
    return card


@router.delete("/{card_id}", status_code=204)
async def deactivate(
    card_id: str,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    # Soft delete: the card keeps its history but leaves every queue
    card = await set_card_flags(db, card_id, user_id, is_active=False)
    if not card:
        raise HTTPException(status_code=404, detail="Card not found")


@router.post("/{card_id}/suspend", response_model=Card)
async def suspend(
    card_id: str,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    card = await set_card_flags(db, card_id, user_id, is_suspended=True)
    if not card:
        raise HTTPException(status_code=404, detail="Card not found")
    return card


@router.post("/{card_id}/resume", response_model=Card)
async def resume(
    card_id: str,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    card = await set_card_flags(db, card_id, user_id, is_suspended=False)
    if not card:
        raise HTTPException(status_code=404, detail="Card not found")
    return card
