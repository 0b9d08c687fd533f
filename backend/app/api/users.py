"""Voter registration & profile endpoints."""

import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import get_db
from backend.app.models.user import User
from backend.app.schemas.user import UserCreate, UserResponse
from backend.app.services.errors import InvalidRequest
from backend.app.services.identity import require_user_id

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse, status_code=201)
async def register_user(data: UserCreate, db: AsyncSession = Depends(get_db)) -> User:
    name = data.name.strip()
    if not name:
        raise InvalidRequest("Name is required")

    user = User(
        id=str(uuid.uuid4()),
        name=name,
        created_at=datetime.now(UTC).isoformat(),
        display_name=data.display_name,
    )
    db.add(user)
    await db.flush()
    return user


@router.get("/me", response_model=UserResponse)
async def get_current_user(
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one()


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    data: UserCreate,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> User:
    name = data.name.strip()
    if not name:
        raise InvalidRequest("Name is required")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one()
    user.name = name
    user.display_name = data.display_name
    return user
