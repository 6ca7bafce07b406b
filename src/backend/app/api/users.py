"""
用户管理API路由
支持Dev模式（按用户名免注册快速体验）
"""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.services.user_service import UserService


router = APIRouter(prefix="/users", tags=["用户管理"])


# Schemas
class UserCreateRequest(BaseModel):
    """创建用户请求"""
    username: str
    email: Optional[str] = None


class UserResponse(BaseModel):
    """用户响应"""
    id: str
    username: str
    email: str
    full_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str
    preferred_categories: List[str] = []
    is_suspended: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Endpoints
@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_or_get_user(request: UserCreateRequest, db: Session = Depends(get_db)):
    """
    获取或创建用户（Dev模式）

    同一个用户名总是得到同一个用户；新用户一律是普通读者，
    作者和管理员角色由管理员分配（首个管理员由 scripts/init_db.py 创建）
    """
    try:
        return UserService.get_or_create_user(
            db, request.username, email=request.email
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, db: Session = Depends(get_db)):
    """获取用户信息"""
    user = UserService.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="用户不存在")
    return user
