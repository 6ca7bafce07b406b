"""
图书模型
上传后默认 pending，管理员审核后 approved / rejected
"""
from sqlalchemy import Column, String, Integer, Float, Text, DateTime, JSON, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from .base import Base


BOOK_STATUSES = ("pending", "approved", "rejected")


class Book(Base):
    """图书模型"""
    __tablename__ = "books"

    id = Column(String(36), primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    author_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True, index=True)
    cover_url = Column(String(500), nullable=True)
    file_url = Column(String(500), nullable=True)
    categories = Column(JSON, nullable=True, default=list)  # 分类标签（无序）
    tags = Column(JSON, nullable=True, default=list)
    avg_rating = Column(Float, default=0.0)
    total_pages = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default="pending", index=True)  # pending | approved | rejected
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # 关系
    author = relationship("User", back_populates="books")
    category = relationship("Category", back_populates="books")

    def __repr__(self):
        return f"<Book(id='{self.id}' title='{self.title}' status='{self.status}')>"
