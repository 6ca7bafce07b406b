"""
书签 / 高亮模型
"""
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey
from datetime import datetime

from .base import Base


class Bookmark(Base):
    """书签模型（创建后不再修改）"""
    __tablename__ = "bookmarks"

    id = Column(String(36), primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    book_id = Column(String(36), ForeignKey('books.id'), nullable=False, index=True)
    page_number = Column(Integer, nullable=False)
    note = Column(Text, nullable=True)
    highlight_text = Column(Text, nullable=True)
    highlight_color = Column(String(20), nullable=True)  # 取值见 app.reader.session.HIGHLIGHT_COLORS
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Bookmark(id='{self.id}' book_id='{self.book_id}' page={self.page_number})>"
