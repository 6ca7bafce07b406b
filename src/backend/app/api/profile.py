"""
个人资料与阅读统计API
"""
from typing import List, Optional
from pydantic import BaseModel
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.users import UserResponse
from app.core.database import get_db
from app.core.identity import Identity, require_identity
from app.services.user_service import UserService


router = APIRouter(prefix="/profile", tags=["个人资料"])


class ProfileUpdate(BaseModel):
    """资料更新请求（未提供的字段不修改）"""
    username: Optional[str] = None
    full_name: Optional[str] = None
    bio: Optional[str] = None
    preferred_categories: Optional[List[str]] = None


class ProfileStatsResponse(BaseModel):
    """阅读统计响应"""
    total_books: int
    books_read: int
    average_rating: float
    total_reading_time: int


@router.get("", response_model=UserResponse)
def get_profile(identity: Identity = Depends(require_identity), db: Session = Depends(get_db)):
    """当前用户资料"""
    return UserService.get_user(db, identity.user_id)


@router.put("", response_model=UserResponse)
def update_profile(
    payload: ProfileUpdate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    """更新当前用户资料"""
    try:
        return UserService.update_profile(
            db,
            identity.user_id,
            username=payload.username,
            full_name=payload.full_name,
            bio=payload.bio,
            preferred_categories=payload.preferred_categories,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/stats", response_model=ProfileStatsResponse)
def get_profile_stats(identity: Identity = Depends(require_identity), db: Session = Depends(get_db)):
    """当前用户阅读统计"""
    return ProfileStatsResponse(**UserService.get_user_stats(db, identity.user_id))
