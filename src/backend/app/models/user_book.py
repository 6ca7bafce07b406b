"""
阅读进度模型 - 每个 (用户, 图书) 至多一行
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from .base import Base


class UserBook(Base):
    """阅读进度模型 - 记录用户在一本书上的阅读状态"""

    __tablename__ = "user_books"
    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_user_books_user_book"),
    )

    id = Column(String(36), primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    book_id = Column(String(36), ForeignKey('books.id'), nullable=False, index=True)
    current_page = Column(Integer, default=1)
    reading_progress = Column(Integer, default=0)  # 阅读百分比（0-100）
    reading_time = Column(Integer, default=0)  # 阅读时长（分钟）
    is_favorite = Column(Boolean, default=False)
    started_reading_at = Column(DateTime, default=datetime.utcnow)
    finished_reading_at = Column(DateTime, nullable=True)  # 首次读到 100% 的时间
    last_read_at = Column(DateTime, default=datetime.utcnow, index=True)

    # 关系
    book = relationship("Book")

    def __repr__(self):
        return f"<UserBook(user_id='{self.user_id}' book_id='{self.book_id}' page={self.current_page} progress={self.reading_progress}%)>"
