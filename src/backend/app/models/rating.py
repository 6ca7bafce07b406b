"""
评分模型 - 每个 (用户, 图书) 一条
"""
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from .base import Base


class Rating(Base):
    """评分 / 书评"""
    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_ratings_user_book"),
    )

    id = Column(String(36), primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    book_id = Column(String(36), ForeignKey('books.id'), nullable=False, index=True)
    rating = Column(Integer, nullable=False)  # 1-5
    review = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # 关系
    user = relationship("User")

    def __repr__(self):
        return f"<Rating(user_id='{self.user_id}' book_id='{self.book_id}' rating={self.rating})>"
