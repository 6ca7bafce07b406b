"""
请求身份

每个请求显式解析出 Identity（用户 ID + 角色）并传给处理函数，
不使用全局的“当前用户”。Dev 模式下通过 user_id 查询参数识别用户。
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models import User


@dataclass(frozen=True)
class Identity:
    """当前请求的用户身份"""
    user_id: str
    username: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def can_upload(self) -> bool:
        return self.role in ("author", "admin")


def get_identity(
    user_id: Optional[str] = None,
    db: Session = Depends(get_db)
) -> Optional[Identity]:
    """解析身份；未提供或查无此人时返回 None"""
    if not user_id:
        return None
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        return None
    if user.is_suspended:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="账号已被封禁")
    return Identity(user_id=user.id, username=user.username, role=user.role)


def require_identity(identity: Optional[Identity] = Depends(get_identity)) -> Identity:
    """需要登录的接口"""
    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="请先登录")
    return identity


def require_admin(identity: Identity = Depends(require_identity)) -> Identity:
    """管理后台接口：非管理员一律返回固定的拒绝访问"""
    if not identity.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return identity
