"""
分类模型（管理后台维护）
"""
from sqlalchemy import Column, String, Text, Boolean, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime

from .base import Base


class Category(Base):
    """分类模型"""
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(50), default="BookOpen")  # 前端图标名
    color = Column(String(20), default="#6366f1")
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # 关系
    books = relationship("Book", back_populates="category")

    def __repr__(self):
        return f"<Category(id='{self.id}' name='{self.name}' active={self.is_active})>"
