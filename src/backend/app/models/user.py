"""
用户模型
角色：user（读者）| author（作者）| admin（管理员）
"""
from sqlalchemy import Column, String, Boolean, Text, DateTime, JSON
from sqlalchemy.orm import relationship
from datetime import datetime

from .base import Base


USER_ROLES = ("user", "author", "admin")


class User(Base):
    """用户模型"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False)
    full_name = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    avatar_url = Column(String(500), nullable=True)
    role = Column(String(20), default="user", nullable=False)  # user | author | admin
    preferred_categories = Column(JSON, nullable=True, default=list)  # ["Science", "Fiction"]
    is_suspended = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    books = relationship("Book", back_populates="author")

    def __repr__(self):
        return f"<User(id='{self.id}' username='{self.username}' role='{self.role}')>"
